"""Test configuration for pytest.

This module imports fixtures that should be available to all tests.
"""

# Import fixtures
from tests.fixtures.common import (  # noqa
    clean_settings,
    settings,
    fake_clock,
    cache,
    analyzer,
    tracker,
    scam_token_data,
    stablecoin_token_data,
    complete_token_data,
    scam_token,
    stablecoin_token,
    complete_token,
)
