"""End-to-end: real pysnmp session sending to a UDP socket on loopback."""

import socket
from typing import Generator, List

import pytest

from trapgen.emitter import TrapEmitter
from trapgen.emitter_config import EmitterConfig

pytestmark = pytest.mark.integration

# BER encodings of the pieces every coldStart trap must carry
SYS_UPTIME_NAME = bytes.fromhex("06082b06010201010300")
SNMP_TRAP_OID_NAME = bytes.fromhex("060a2b060106030101040100")
COLD_START_VALUE = bytes.fromhex("06092b06010603010105" "01")
SNMP_TRAP_ADDRESS_NAME = bytes.fromhex("06092b0601060312010300")
SNMPV2_TRAP_PDU_TAG = 0xA7


@pytest.fixture
def receiver() -> Generator[socket.socket, None, None]:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(3.0)
    yield sock
    sock.close()


def drain(sock: socket.socket, expected: int) -> List[bytes]:
    datagrams = []
    for _ in range(expected):
        data, _ = sock.recvfrom(65535)
        datagrams.append(data)
    sock.settimeout(0.2)
    with pytest.raises(socket.timeout):
        sock.recvfrom(65535)
    return datagrams


def test_three_traps_received(receiver: socket.socket) -> None:
    port = receiver.getsockname()[1]
    config = EmitterConfig(
        target="127.0.0.1",
        port=port,
        community="trapgen-it",
        count=3,
        rate=20,
        source_ip="192.0.2.33",
    )

    report = TrapEmitter(config).run()

    assert report.sent == 3
    assert report.failed == 0
    # One 50 ms pause per send, the last one included
    assert report.elapsed >= 3 * 0.05

    datagrams = drain(receiver, 3)
    for data in datagrams:
        assert bytes([SNMPV2_TRAP_PDU_TAG]) in data
        assert b"\x04\x0atrapgen-it" in data
        # sysUpTime.0 then snmpTrapOID.0 = coldStart, nothing else
        assert SYS_UPTIME_NAME in data
        assert SNMP_TRAP_OID_NAME + COLD_START_VALUE in data
        assert data.endswith(SNMP_TRAP_OID_NAME + COLD_START_VALUE)
        assert SNMP_TRAP_ADDRESS_NAME not in data


def test_agent_address_opt_in(receiver: socket.socket) -> None:
    port = receiver.getsockname()[1]
    config = EmitterConfig(
        port=port,
        count=1,
        rate=100,
        source_ip="192.0.2.33",
        include_agent_address=True,
    )

    TrapEmitter(config).run()

    (data,) = drain(receiver, 1)
    assert SNMP_TRAP_OID_NAME + COLD_START_VALUE in data
    # snmpTrapAddress.0 = IpAddress 192.0.2.33
    assert SNMP_TRAP_ADDRESS_NAME + bytes.fromhex("4004c0000221") in data


def test_non_ipv4_source_ip_sends_bare_trap(receiver: socket.socket) -> None:
    port = receiver.getsockname()[1]
    config = EmitterConfig(
        port=port,
        count=1,
        rate=100,
        source_ip="::1",
        include_agent_address=True,
    )

    report = TrapEmitter(config).run()

    assert report.sent == 1
    (data,) = drain(receiver, 1)
    assert data.endswith(SNMP_TRAP_OID_NAME + COLD_START_VALUE)
    assert SNMP_TRAP_ADDRESS_NAME not in data


def test_zero_count_sends_nothing(receiver: socket.socket) -> None:
    port = receiver.getsockname()[1]
    report = TrapEmitter(EmitterConfig(port=port, count=0)).run()

    assert report.sent == 0
    drain(receiver, 0)
