"""One SNMP v2c session to a trap receiver, built on the pysnmp asyncio HLAPI.

Note on pysnmp type hints:
    send_notification() is typed as taking ``*varBinds: NotificationType`` in
    pysnmp v7, but it also accepts plain ``(oid, value)`` tuples. We send raw
    tuples so no MIB lookup is involved in building the trap.
"""

from __future__ import annotations

import logging
import time
from types import TracebackType
from typing import Optional, Type

from pysnmp.error import PySnmpError
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    SnmpEngine,
    UdpTransportTarget,
    send_notification,
)
from pysnmp.proto import rfc1902

from trapgen.app_logger import AppLogger
from trapgen.emitter_config import EmitterConfig
from trapgen.errors import TrapConnectError, TrapSendError
from trapgen.payload import SYS_UPTIME_OID, TrapPayload

V2C_MP_MODEL = 1
TIMETICKS_MODULUS = 2**32


class TrapSession:
    """Owns the engine, auth data and transport target for one run.

    Lifecycle is linear: ``connect()``, any number of ``send_trap()`` calls,
    then ``close()``. Use it as an async context manager so the session is
    released on every exit path.
    """

    def __init__(
        self,
        config: EmitterConfig,
        snmp_engine: Optional[SnmpEngine] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self._owns_engine = snmp_engine is None
        self.snmp_engine = snmp_engine if snmp_engine is not None else SnmpEngine()
        self.auth = CommunityData(config.community, mpModel=V2C_MP_MODEL)
        self.logger = logger or AppLogger.get(__name__)
        self.transport_target: Optional[UdpTransportTarget] = None
        self.start_time: Optional[float] = None
        self.closed = False

    @property
    def connected(self) -> bool:
        return self.transport_target is not None and not self.closed

    async def connect(self) -> "TrapSession":
        """Resolve the receiver address and prepare the UDP transport.

        Raises:
            TrapConnectError: if the session is closed or the target cannot
                be resolved
        """
        if self.closed:
            raise TrapConnectError("Session already closed")
        if self.transport_target is not None:
            return self

        host, port = self.config.dest
        try:
            self.transport_target = await UdpTransportTarget.create(
                self.config.dest,
                timeout=self.config.timeout,
                retries=self.config.retries,
            )
        except (PySnmpError, OSError) as exc:
            raise TrapConnectError(
                f"Cannot open SNMP session to {host}:{port}: {exc}"
            ) from exc

        self.start_time = time.monotonic()
        self.logger.debug(f"SNMP v2c session open to {host}:{port}")
        return self

    def uptime(self) -> int:
        """Session uptime in centiseconds, wrapped to fit TimeTicks."""
        if self.start_time is None:
            return 0
        elapsed = time.monotonic() - self.start_time
        return int(elapsed * 100) % TIMETICKS_MODULUS

    async def send_trap(self, payload: TrapPayload) -> None:
        """Send one unconfirmed trap carrying ``payload``.

        sysUpTime.0 is prepended here as RFC 3416 requires it first in every
        v2c notification; the payload's own bindings follow unchanged.

        Raises:
            TrapSendError: if the session is not connected or pysnmp reports
                a failure
        """
        if not self.connected:
            raise TrapSendError("Session is not connected")

        varbinds = [
            (SYS_UPTIME_OID, rfc1902.TimeTicks(self.uptime())),
            *payload.varbinds,
        ]
        try:
            error_indication, error_status, error_index, _ = await send_notification(
                self.snmp_engine,
                self.auth,
                self.transport_target,
                ContextData(),
                "trap",
                *varbinds,  # pyright: ignore[reportArgumentType]
            )
        except (PySnmpError, OSError) as exc:
            raise TrapSendError(f"Exception while sending SNMP trap: {exc}") from exc

        if error_indication:
            raise TrapSendError(f"Trap send error: {error_indication}")
        if error_status:
            raise TrapSendError(f"Trap send error: {error_status} at {error_index}")

        self.logger.debug(f"Trap {payload.name} sent to {self.config.dest}")

    async def close(self) -> None:
        """Release the transport. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.transport_target = None
        if not self._owns_engine:
            return
        try:
            self.snmp_engine.close_dispatcher()
        except PySnmpError as exc:
            self.logger.warning(f"Error closing SNMP dispatcher: {exc}")
        self.logger.debug("SNMP session closed")

    async def __aenter__(self) -> "TrapSession":
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()
