from datetime import timedelta

from sqlalchemy import extract, func, select
from sqlalchemy.engine import Engine

from idle_reaper.core.config import IDLE_THRESHOLD
from idle_reaper.sessions.models.cleanup_report_model import (
    IDLE_STATE,
    ReapResult,
    TerminatedSession,
)
from idle_reaper.sessions.models.session_activity_model import SessionActivity


def own_sessions_filter() -> list:
    """Sessions of the current user in the current database, never our own backend."""
    return [
        SessionActivity.datname == func.current_database(),
        SessionActivity.usename == func.current_user(),
        SessionActivity.pid != func.pg_backend_pid(),
    ]


def state_snapshot_query():
    return (
        select(SessionActivity.state, func.count().label("total"))
        .where(*own_sessions_filter())
        .group_by(SessionActivity.state)
    )


def terminate_idle_query(idle_threshold: timedelta = IDLE_THRESHOLD):
    """
    Select the stale idle sessions and terminate each one in the same statement.

    :param idle_threshold: Minimum time a session must have spent in the idle state
    :return: SELECT yielding terminated, pid, usename, application_name, state, idle_seconds
    """
    idle_seconds = func.round(extract("epoch", func.now() - SessionActivity.state_change))
    return select(
        func.pg_terminate_backend(SessionActivity.pid).label("terminated"),
        SessionActivity.pid,
        SessionActivity.usename,
        SessionActivity.application_name,
        SessionActivity.state,
        idle_seconds.label("idle_seconds"),
    ).where(
        *own_sessions_filter(),
        SessionActivity.state == IDLE_STATE,
        SessionActivity.state_change < func.now() - idle_threshold,
    )


def remaining_count_query():
    return (
        select(func.count().label("remaining"))
        .select_from(SessionActivity)
        .where(*own_sessions_filter())
    )


def current_user_query():
    return select(func.current_user().label("current_user"))


class SessionActivityService:
    def __init__(self, engine: Engine):
        self.engine = engine

    def get_state_snapshot(self) -> dict[str, int]:
        with self.engine.connect() as conn:
            rows = conn.execute(state_snapshot_query()).mappings().all()
        return {(row["state"] or "unknown"): int(row["total"]) for row in rows}

    def terminate_idle_sessions(self, idle_threshold: timedelta = IDLE_THRESHOLD) -> ReapResult:
        with self.engine.connect() as conn:
            rows = conn.execute(terminate_idle_query(idle_threshold)).mappings().all()

        return ReapResult(
            sessions=[
                TerminatedSession(
                    pid=row["pid"],
                    terminated=bool(row["terminated"]),
                    username=row["usename"],
                    application_name=row["application_name"],
                    state=row["state"],
                    idle_seconds=int(row["idle_seconds"]),
                )
                for row in rows
            ]
        )

    def count_remaining_sessions(self) -> int:
        with self.engine.connect() as conn:
            return int(conn.execute(remaining_count_query()).scalar_one())

    def get_current_username(self) -> str:
        with self.engine.connect() as conn:
            return conn.execute(current_user_query()).scalar_one()
