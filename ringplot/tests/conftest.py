"""
Shared pytest fixtures for ringplot tests

Supports both development mode (pytest from the repo root) and installed mode (pip install -e .)
"""
import sys
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import pandas as pd
import pytest

# Add repository root to Python path for development mode, before test
# modules are collected
#
#   ringplot-repo/                <- repo root (need to add this to sys.path)
#   └── ringplot/                 <- package
#       └── tests/
#           └── conftest.py       <- we are here
REPO_ROOT = Path(__file__).parent.parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def flat_config():
    """Config without gaps, so sector widths are plain proportions of 360 degrees"""
    from ringplot.config import CircularConfig
    return CircularConfig(gap_degree=0.0)


@pytest.fixture
def two_sector_session(flat_config):
    """
    Session with sectors a (x 0..3, 0-270 deg) and b (x 0..1, 270-360 deg)
    and one unpadded track occupying radius 0.8..1.0
    """
    from ringplot.session import LayoutSession
    session = LayoutSession(flat_config)
    session.initialize({'a': (0, 3), 'b': (0, 1)})
    session.add_track(ylim=(0, 1), height=0.2, margin=(0, 0), padding=(0, 0, 0, 0))
    return session


@pytest.fixture
def records() -> pd.DataFrame:
    """One row per data point: sector a spans x 0..10, sector b x 0..40"""
    return pd.DataFrame({
        'sector': ['a', 'a', 'a', 'b', 'b', 'b'],
        'x': [0.0, 5.0, 10.0, 0.0, 20.0, 40.0],
        'value': [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
    })


@pytest.fixture
def recording_backend():
    from ringplot.backend import RecordingBackend
    return RecordingBackend()


# Pytest configuration
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests rendering complete layouts"
    )
    config.addinivalue_line(
        "markers", "coordinates: Tests validating angle and radius calculations"
    )
