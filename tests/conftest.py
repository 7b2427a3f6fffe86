"""
Pytest configuration and shared fixtures for rules service tests.
"""

import os

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SEED_DEFAULTS", "false")

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from rules_service.audit.service import AuditRecorder
from rules_service.models import Rule


@pytest.fixture
def mock_db():
    """Create a mock async session for unit tests."""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute = AsyncMock()
    mock_session.add = MagicMock()
    mock_session.delete = AsyncMock()
    mock_session.commit = AsyncMock()
    mock_session.refresh = AsyncMock()
    mock_session.flush = AsyncMock()
    mock_session.rollback = AsyncMock()
    return mock_session


@pytest.fixture
def mock_audit():
    """Audit recorder whose record() calls can be inspected."""
    audit = MagicMock(spec=AuditRecorder)
    audit.record = AsyncMock()
    return audit


@pytest.fixture
def make_rule():
    """Factory for detached Rule rows."""

    def _make_rule(
        rule_type="keyword_filter",
        rule_config=None,
        priority=1,
        is_active=True,
        user_id="user-1",
        rule_name="Test rule",
    ):
        return Rule(
            id=str(uuid.uuid4()),
            user_id=user_id,
            rule_type=rule_type,
            rule_name=rule_name,
            rule_description=None,
            rule_config=rule_config if rule_config is not None else {"keywords": ["spam"]},
            priority=priority,
            is_active=is_active,
            created_at=datetime.now(timezone.utc),
            created_by=user_id,
            updated_by=user_id,
        )

    return _make_rule
