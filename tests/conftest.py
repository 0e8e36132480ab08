"""
Pytest configuration: make sure `import accord` works regardless of
where pytest is invoked, plus shared fakes for the remote collaborator.

It prepends the project root (one directory above *tests/*) to
``sys.path`` **before** any tests are collected.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# /path/to/project/tests -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from accord.models import Organization  # noqa: E402

REMOTE_STAMP = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeStatusService:
    """
    Stand-in for the backend.

    ``gate`` (an asyncio.Event) holds every status change until it is set;
    ``fail`` is raised instead of answering; ``response`` overrides the
    record returned.  ``orgs`` and ``stats`` are what the read side serves.
    """

    def __init__(self, fail=None, response=None, orgs=(), stats=None):
        self.calls = []
        self.fail = fail
        self.response = response
        self.gate = None
        self.orgs = list(orgs)
        self.stats = stats or {}
        self.closed = False

    async def change_status(self, organization_id, target_status,
                            agreement_expiry=None, observation=None, actor_id=None):
        self.calls.append((organization_id, target_status, agreement_expiry, observation, actor_id))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        if self.response is not None:
            return self.response
        return Organization(
            organization_id,
            name="from backend",
            status=target_status,
            agreement_expiry=agreement_expiry,
            last_status_change=REMOTE_STAMP,
        )

    async def list_organizations(self, page=1, limit=100, statuses=None, search=None):
        start = (page - 1) * limit
        return self.orgs[start:start + limit], len(self.orgs)

    async def fetch_stats(self):
        return dict(self.stats)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def service():
    return FakeStatusService()
