"""
Root-level conftest for pytest configuration
"""
import os
import sys

# Make the flat-layout package and the tests namespace importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def pytest_configure(config):
    """Configure pytest"""
    # Run async tests without requiring the marker on every one
    config.option.asyncio_mode = "auto"
