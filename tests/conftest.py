"""Shared fixtures for the trap generator tests."""

import os
import sys
import warnings
from pathlib import Path
from typing import Any, Generator, List, Optional, Set

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from trapgen.app_logger import AppLogger  # noqa: E402
from trapgen.emitter_config import EmitterConfig  # noqa: E402
from trapgen.errors import TrapConnectError, TrapSendError  # noqa: E402
from trapgen.payload import TrapPayload  # noqa: E402

# pysnmp still emits DeprecationWarnings from its own internals
warnings.filterwarnings("ignore", category=DeprecationWarning, module=r"pysnmp.*")


class FakeSession:
    """Stands in for TrapSession; records every call instead of sending.

    ``fail_on`` lists 1-based send numbers that raise TrapSendError.
    """

    def __init__(
        self,
        config: EmitterConfig,
        fail_on: Optional[Set[int]] = None,
        connect_error: Optional[Exception] = None,
        events: Optional[List[str]] = None,
    ) -> None:
        self.config = config
        self.fail_on = fail_on or set()
        self.connect_error = connect_error
        self.events = events if events is not None else []
        self.sent: List[TrapPayload] = []
        self.send_attempts = 0
        self.connected = False
        self.closed = False

    async def connect(self) -> "FakeSession":
        self.events.append("connect")
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        return self

    async def send_trap(self, payload: TrapPayload) -> None:
        self.send_attempts += 1
        self.events.append(f"send:{self.send_attempts}")
        self.sent.append(payload)
        if self.send_attempts in self.fail_on:
            raise TrapSendError(f"simulated timeout on send {self.send_attempts}")

    async def close(self) -> None:
        self.events.append("close")
        self.connected = False
        self.closed = True


class RecordingSleep:
    """Async sleep replacement that records requested delays and advances a clock."""

    def __init__(self, clock: "FakeClock", events: Optional[List[str]] = None) -> None:
        self.clock = clock
        self.delays: List[float] = []
        self.events = events

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.clock.now += delay
        if self.events is not None:
            self.events.append(f"sleep:{delay}")


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def emitter_config() -> EmitterConfig:
    return EmitterConfig(count=3, rate=1)


@pytest.fixture
def events() -> List[str]:
    return []


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep(fake_clock: FakeClock, events: List[str]) -> RecordingSleep:
    return RecordingSleep(fake_clock, events)


@pytest.fixture
def session_factory(events: List[str]) -> Any:
    """Factory producing FakeSessions; the created sessions are kept on ``.sessions``."""

    class Factory:
        def __init__(self) -> None:
            self.sessions: List[FakeSession] = []
            self.fail_on: Set[int] = set()
            self.connect_error: Optional[Exception] = None

        def __call__(self, config: EmitterConfig) -> FakeSession:
            session = FakeSession(
                config,
                fail_on=self.fail_on,
                connect_error=self.connect_error,
                events=events,
            )
            self.sessions.append(session)
            return session

        @property
        def session(self) -> FakeSession:
            assert len(self.sessions) == 1
            return self.sessions[0]

    return Factory()


@pytest.fixture
def connect_failure() -> TrapConnectError:
    return TrapConnectError("Cannot open SNMP session to nowhere.invalid:162")


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory so no stray trapgen.yaml is picked up."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("TRAPGEN_"):
            monkeypatch.delenv(key)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo AppLogger configuration between tests."""
    yield
    if AppLogger._configured:
        AppLogger.reset()
