from datetime import datetime, timezone

from pydantic import BaseModel, Field

IDLE_STATE = "idle"


class TerminatedSession(BaseModel):
    pid: int
    terminated: bool
    username: str | None = None
    application_name: str | None = None
    state: str | None = None
    idle_seconds: int

    def describe(self) -> str:
        line = f"PID {self.pid}: idle {self.idle_seconds}s, app: {self.application_name or 'N/A'}"
        if not self.terminated:
            line += " (terminate returned false)"
        return line


class ReapResult(BaseModel):
    sessions: list[TerminatedSession] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.sessions)

    @property
    def failed(self) -> list[TerminatedSession]:
        return [session for session in self.sessions if not session.terminated]


class CleanupReport(BaseModel):
    """Outcome of one cleanup cycle, built once and dropped after it is logged."""

    username: str
    before: dict[str, int]
    result: ReapResult
    remaining: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def render(self) -> str:
        lines = [
            "Cleanup executed:",
            f"  - User: {self.username}",
            f"  - Before: {self.before}",
            f"  - Terminated: {self.result.count} connections",
            f"  - Remaining: {self.remaining}",
        ]
        if self.result.sessions:
            lines.append("  - Terminated connection details:")
            lines.extend(f"    {session.describe()}" for session in self.result.sessions)
        return "\n".join(lines)
