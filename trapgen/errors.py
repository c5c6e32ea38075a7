"""Exceptions raised by the trap generator."""


class TrapGenError(Exception):
    """Base class for all trap generator failures."""

    pass


class ConfigurationError(TrapGenError):
    """Raised when run parameters or the settings file are invalid."""

    pass


class TrapConnectError(TrapGenError):
    """Raised when the SNMP session to the trap receiver cannot be opened.

    Fatal for a run: no traps are sent once this is raised.
    """

    pass


class TrapSendError(TrapGenError):
    """Raised when a single trap could not be sent.

    The emitter logs it and carries on with the next iteration.
    """

    pass
