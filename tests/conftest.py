from collections import Counter
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from idle_reaper.sessions.models.cleanup_report_model import ReapResult, TerminatedSession
from idle_reaper.sessions.models.session_activity_model import SessionActivity

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
OWN_PID = 1
DATABASE = "appdb"
USERNAME = "app_user"


def make_session(pid, state, idle_for=timedelta(0), usename=USERNAME, datname=DATABASE, app=None):
    return SessionActivity(
        pid=pid,
        datname=datname,
        usename=usename,
        application_name=app,
        state=state,
        state_change=NOW - idle_for,
    )


class FakeSessionActivityService:
    """In-memory pg_stat_activity applying the same predicates as the real queries."""

    def __init__(self, sessions, now=NOW):
        self.sessions = list(sessions)
        self.now = now
        self.terminate_calls = []
        self.fail_on = None
        self.fail_message = "connection refused"

    def _maybe_fail(self, step):
        if self.fail_on == step:
            raise OperationalError("SELECT 1", {}, Exception(self.fail_message))

    def _own_sessions(self):
        return [
            s for s in self.sessions
            if s.datname == DATABASE and s.usename == USERNAME and s.pid != OWN_PID
        ]

    def get_state_snapshot(self):
        self._maybe_fail("snapshot")
        return dict(Counter(s.state or "unknown" for s in self._own_sessions()))

    def terminate_idle_sessions(self, idle_threshold):
        self._maybe_fail("terminate")
        stale = [
            s for s in self._own_sessions()
            if s.state == "idle" and s.state_change < self.now - idle_threshold
        ]
        terminated = []
        for s in stale:
            self.terminate_calls.append(s.pid)
            self.sessions.remove(s)
            terminated.append(
                TerminatedSession(
                    pid=s.pid,
                    terminated=True,
                    username=s.usename,
                    application_name=s.application_name,
                    state=s.state,
                    idle_seconds=round((self.now - s.state_change).total_seconds()),
                )
            )
        return ReapResult(sessions=terminated)

    def count_remaining_sessions(self):
        self._maybe_fail("remaining")
        return len(self._own_sessions())

    def get_current_username(self):
        self._maybe_fail("username")
        return USERNAME


@pytest.fixture
def mixed_sessions():
    return [
        make_session(OWN_PID, "idle", timedelta(minutes=30), app="idle-reaper"),
        make_session(10, "idle", timedelta(minutes=5), app="web"),
        make_session(11, "idle", timedelta(seconds=125)),
        make_session(12, "idle", timedelta(seconds=30), app="web"),
        make_session(13, "active", timedelta(minutes=10), app="worker"),
        make_session(20, "idle", timedelta(minutes=10), usename="someone_else"),
        make_session(30, "idle", timedelta(minutes=10), datname="other_db"),
    ]


@pytest.fixture
def fake_service(mixed_sessions):
    return FakeSessionActivityService(mixed_sessions)


@pytest.fixture
def mock_engine():
    engine = MagicMock()
    conn = MagicMock()
    engine.connect.return_value.__enter__.return_value = conn
    engine.conn = conn
    return engine
