"""The trap emission loop.

Timing policy: a fixed ``1000 // rate`` millisecond pause follows every send
attempt, the last one included. Time spent inside the send is not deducted,
so the achieved rate is at most the requested one. A failed send is logged
immediately, before its pause.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TextIO

from trapgen.app_logger import AppLogger
from trapgen.emitter_config import EmitterConfig
from trapgen.errors import TrapSendError
from trapgen.payload import TrapPayload, build_cold_start_payload
from trapgen.trap_session import TrapSession

SessionFactory = Callable[[EmitterConfig], TrapSession]
Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class EmitReport:
    """Outcome of one run."""

    count: int
    rate: int
    elapsed: float = 0.0
    sent: int = 0
    failed_iterations: list[int] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_iterations)


def format_duration(seconds: float) -> str:
    if seconds < 1.0:
        return f"{seconds * 1000:.3f}ms"
    return f"{seconds:.3f}s"


class TrapEmitter:
    """Sends ``config.count`` copies of one ColdStart trap over one session.

    The session factory, sleep coroutine and clock are injectable so the
    loop can be driven without a network or real delays.
    """

    def __init__(
        self,
        config: EmitterConfig,
        session_factory: SessionFactory = TrapSession,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        out: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.session_factory = session_factory
        self.sleep = sleep
        self.clock = clock
        self.out = out
        self.logger = logger or AppLogger.get(__name__)
        self.payload: TrapPayload = build_cold_start_payload(
            config.source_ip, include_agent_address=config.include_agent_address
        )
        if config.include_agent_address and not self.payload.carries_agent_address:
            self.logger.warning(
                f"Source IP {config.source_ip!r} is not an IPv4 address; "
                "sending traps without snmpTrapAddress.0"
            )

    def run(self) -> EmitReport:
        """Blocking entry point; runs the whole loop on a fresh event loop."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> EmitReport:
        """Connect, send every trap, close, then print the summary.

        Raises:
            TrapConnectError: if the session cannot be opened; nothing is
                sent in that case
        """
        config = self.config
        report = EmitReport(count=config.count, rate=config.rate)
        interval = config.send_interval

        session = self.session_factory(config)
        try:
            await session.connect()
            print(
                f"Sending {config.count} SNMP v2c ColdStart traps...",
                file=self.out,
                flush=True,
            )
            start = self.clock()
            for i in range(1, config.count + 1):
                try:
                    await session.send_trap(self.payload)
                    report.sent += 1
                except TrapSendError as exc:
                    report.failed_iterations.append(i)
                    self.logger.error(f"send_trap() failed for iteration {i}: {exc}")
                await self.sleep(interval)
            report.elapsed = self.clock() - start
        finally:
            await session.close()

        print(
            f"Finished sending {config.count} traps with {config.rate} traps per second "
            f"in {format_duration(report.elapsed)} to {config.target}:{config.port} "
            f"using community {config.community}",
            file=self.out,
            flush=True,
        )
        if report.failed:
            self.logger.warning(f"{report.failed} of {report.count} traps failed to send")
        return report
