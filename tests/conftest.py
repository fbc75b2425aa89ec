"""Shared fixtures for the masjid sign test suite.

- In-memory SQLite database per test
- A config object shaped like core.config.Config for the API routers
- Civil-time helpers in the mosque's timezone
"""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import Mock
from zoneinfo import ZoneInfo

import pytest

from masjid_sign.core.db import dispose_db, init_db

TZ_NAME = "America/Chicago"
ZONE = ZoneInfo(TZ_NAME)

# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def db():
    """Fresh in-memory database with every plugin table created."""
    dispose_db()
    init_db(db_url="sqlite://")
    yield
    dispose_db()


# ============================================================================
# Time
# ============================================================================


@pytest.fixture
def local():
    """Factory for aware datetimes in the mosque's timezone."""

    def make(year, month, day, hour=0, minute=0, second=0):
        return datetime(year, month, day, hour, minute, second, tzinfo=ZONE)

    return make


# ============================================================================
# App stand-in for the API
# ============================================================================


@pytest.fixture
def sign_app(tmp_path):
    """Just enough of SignApp for create_app(): config.data, task_manager and last_state."""
    task_manager = Mock()
    task_manager.get_active_timers.return_value = []
    data = {
        "sign": {"mosque_name": "Islamic Society", "timezone": TZ_NAME},
        "storage": {"directory": str(tmp_path / "uploads"), "public_url": "http://sign.local/files"},
        "notifications": {},
        "api": {"admin_token": ""},
    }
    return SimpleNamespace(config=SimpleNamespace(data=data), task_manager=task_manager, last_state=None)
