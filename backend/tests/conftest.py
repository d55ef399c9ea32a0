"""Pytest configuration and fixtures."""

import logging

import pytest


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture(autouse=True)
def _quiet_provider_logs(caplog):
    """Keep expected provider-failure warnings out of the test output."""
    caplog.set_level(logging.ERROR, logger="app.stockdata")
