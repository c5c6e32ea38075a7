"""The fixed ColdStart trap payload.

OIDs are kept as tuples of integers so pysnmp never has to resolve them
through a MIB. The payload is built once per run and the same instance is
handed to every send; nothing in it changes between iterations.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, Tuple

from pysnmp.proto import rfc1902

Oid = Tuple[int, ...]
VarBind = Tuple[Oid, Any]

SYS_UPTIME_OID: Oid = (1, 3, 6, 1, 2, 1, 1, 3, 0)  # SNMPv2-MIB::sysUpTime.0
SNMP_TRAP_OID: Oid = (1, 3, 6, 1, 6, 3, 1, 1, 4, 1, 0)  # SNMPv2-MIB::snmpTrapOID.0
SNMP_TRAP_ADDRESS_OID: Oid = (1, 3, 6, 1, 6, 3, 18, 1, 3, 0)  # SNMP-COMMUNITY-MIB::snmpTrapAddress.0
COLD_START_OID: Oid = (1, 3, 6, 1, 6, 3, 1, 1, 5, 1)  # SNMPv2-MIB::coldStart


def format_oid(oid: Oid) -> str:
    return ".".join(str(part) for part in oid)


def is_ipv4(address: str) -> bool:
    try:
        ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class TrapPayload:
    """A v2c notification: its type OID, the agent address and the varbinds.

    ``varbinds`` is computed at construction and never rebuilt, so every
    send carries identical bindings. By default that is the single
    snmpTrapOID.0 binding; ``include_agent_address`` adds snmpTrapAddress.0,
    but only when the agent address is an IPv4 literal.
    """

    trap_oid: Oid
    agent_address: str
    include_agent_address: bool = False
    varbinds: Tuple[VarBind, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        bindings: list[VarBind] = [
            (SNMP_TRAP_OID, rfc1902.ObjectIdentifier(self.trap_oid)),
        ]
        # v2c has no AgentAddress header field; snmpTrapAddress.0 carries it
        if self.include_agent_address and is_ipv4(self.agent_address):
            bindings.append(
                (SNMP_TRAP_ADDRESS_OID, rfc1902.IpAddress(self.agent_address))
            )
        object.__setattr__(self, "varbinds", tuple(bindings))

    @property
    def name(self) -> str:
        return format_oid(self.trap_oid)

    @property
    def carries_agent_address(self) -> bool:
        return any(oid == SNMP_TRAP_ADDRESS_OID for oid, _ in self.varbinds)


def build_cold_start_payload(
    agent_address: str, include_agent_address: bool = False
) -> TrapPayload:
    return TrapPayload(
        trap_oid=COLD_START_OID,
        agent_address=agent_address,
        include_agent_address=include_agent_address,
    )
