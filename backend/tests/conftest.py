"""Pytest configuration and fixtures."""

import logging

import pytest


@pytest.fixture
def pricefeed_logs(caplog):
    """Capture everything the price feed logs, down to DEBUG."""
    caplog.set_level(logging.DEBUG, logger="app.pricefeed")
    return caplog
