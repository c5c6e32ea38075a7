"""Immutable run configuration for the trap emitter."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from trapgen.errors import ConfigurationError

SNMP_VERSION_2C = "2c"
DEFAULT_TIMEOUT = 2.0
DEFAULT_RETRIES = 0


@dataclass(frozen=True)
class EmitterConfig:
    """Everything a single run needs, fixed for the lifetime of the process.

    The protocol version, timeout and retries are not user-tunable; they are
    kept here so the session reads them from one place.
    """

    target: str = "127.0.0.1"
    port: int = 162
    community: str = "public"
    count: int = 1
    rate: int = 1
    source_ip: str = "127.0.0.1"
    include_agent_address: bool = False
    version: str = SNMP_VERSION_2C
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES

    def __post_init__(self) -> None:
        if self.rate <= 0:
            raise ConfigurationError(
                f"rate must be a positive number of traps per second, got {self.rate}"
            )
        if self.count < 0:
            raise ConfigurationError(f"count must not be negative, got {self.count}")
        if not 0 < self.port <= 0xFFFF:
            raise ConfigurationError(f"port must be in 1..65535, got {self.port}")
        if self.version != SNMP_VERSION_2C:
            raise ConfigurationError(
                f"only SNMP v{SNMP_VERSION_2C} is supported, got v{self.version}"
            )

    @property
    def send_interval_ms(self) -> int:
        """Delay after each send, truncated to whole milliseconds."""
        return 1000 // self.rate

    @property
    def send_interval(self) -> float:
        return self.send_interval_ms / 1000.0

    @property
    def dest(self) -> tuple[str, int]:
        return (self.target, self.port)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "EmitterConfig":
        """Build a config from a settings mapping, ignoring unknown keys.

        Keys are matched case-insensitively since Dynaconf and environment
        overrides may upper-case them. Numeric values given as strings are
        converted; anything unconvertible is a ConfigurationError.
        """
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = str(key).lower()
            if name not in known or value is None:
                continue
            kwargs[name] = _coerce(name, value)
        return cls(**kwargs)


_INT_FIELDS = {"port", "count", "rate", "retries"}


def _coerce(name: str, value: Any) -> Any:
    try:
        if name in _INT_FIELDS:
            if isinstance(value, bool):
                raise ValueError(value)
            return int(value)
        if name == "timeout":
            return float(value)
        if name == "include_agent_address":
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        return str(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid value for {name}: {value!r}") from exc
