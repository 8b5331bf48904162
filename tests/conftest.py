"""Shared pytest fixtures."""

import pytest

from household_ledger.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test sees default settings, unaffected by the host environment."""
    for name in (
        "LEDGER_CURRENCY_MARK",
        "LEDGER_EDIT_MAX_ATTEMPTS",
        "LEDGER_RETRY_WAIT_MULTIPLIER",
        "LEDGER_RETRY_WAIT_MAX",
        "LOG_LEVEL",
        "LOG_JSON_LOGS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
