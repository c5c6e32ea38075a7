"""SNMP v2c coldStart trap generator."""

from trapgen.emitter import EmitReport, TrapEmitter
from trapgen.emitter_config import EmitterConfig
from trapgen.errors import (
    ConfigurationError,
    TrapConnectError,
    TrapGenError,
    TrapSendError,
)
from trapgen.payload import TrapPayload, build_cold_start_payload
from trapgen.trap_session import TrapSession

__version__ = "0.1.0"


def send_cold_start_traps(config: EmitterConfig) -> EmitReport:
    """
    Send ``config.count`` coldStart traps and return the run report.

    Convenience wrapper around TrapEmitter for library callers.

    Example:
        >>> from trapgen import EmitterConfig, send_cold_start_traps
        >>> report = send_cold_start_traps(EmitterConfig(count=5, rate=10))
        >>> print(f"{report.sent} sent, {report.failed} failed")
    """
    return TrapEmitter(config).run()


__all__ = [
    "ConfigurationError",
    "EmitReport",
    "EmitterConfig",
    "TrapConnectError",
    "TrapEmitter",
    "TrapGenError",
    "TrapPayload",
    "TrapSendError",
    "TrapSession",
    "build_cold_start_payload",
    "send_cold_start_traps",
]
