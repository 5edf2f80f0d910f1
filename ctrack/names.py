"""Names of protocols and protocol states used in conntrack output."""

from __future__ import annotations

import socket
from collections.abc import Mapping, Sequence
from types import MappingProxyType

UNKNOWN = "unknown"

L3PROTO_NAMES: Mapping[int, str] = MappingProxyType(
    {
        socket.AF_INET: "ipv4",
        socket.AF_INET6: "ipv6",
    }
)

PROTO_NAMES: Mapping[int, str] = MappingProxyType(
    {
        6: "tcp",
        17: "udp",
        136: "udplite",
        1: "icmp",
        58: "icmpv6",
        132: "sctp",
        47: "gre",
        33: "dccp",
    }
)

TCP_STATES: Sequence[str] = (
    "NONE",
    "SYN_SENT",
    "SYN_RECV",
    "ESTABLISHED",
    "FIN_WAIT",
    "CLOSE_WAIT",
    "LAST_ACK",
    "TIME_WAIT",
    "CLOSE",
    "SYN_SENT2",
)

SCTP_STATES: Sequence[str] = (
    "NONE",
    "CLOSED",
    "COOKIE_WAIT",
    "COOKIE_ECHOED",
    "ESTABLISHED",
    "SHUTDOWN_SENT",
    "SHUTDOWN_RECD",
    "SHUTDOWN_ACK_SENT",
)

DCCP_STATES: Sequence[str] = (
    "NONE",
    "REQUEST",
    "RESPOND",
    "PARTOPEN",
    "OPEN",
    "CLOSEREQ",
    "CLOSING",
    "TIMEWAIT",
    "IGNORE",
    "INVALID",
)


def l3proto_name(protonum: int) -> str:
    """Return the name of a layer 3 protocol family, or "unknown"."""
    return L3PROTO_NAMES.get(protonum, UNKNOWN)


def proto_name(protonum: int) -> str:
    """Return the name of a layer 4 protocol number, or "unknown"."""
    return PROTO_NAMES.get(protonum, UNKNOWN)


def _state_name(states: Sequence[str], state: int) -> str:
    return states[state] if 0 <= state < len(states) else states[0]


def tcp_state_name(state: int) -> str:
    """Return the name of a TCP conntrack state; out-of-range states read NONE."""
    return _state_name(TCP_STATES, state)


def sctp_state_name(state: int) -> str:
    """Return the name of an SCTP conntrack state; out-of-range states read NONE."""
    return _state_name(SCTP_STATES, state)


def dccp_state_name(state: int) -> str:
    """Return the name of a DCCP conntrack state; out-of-range states read NONE."""
    return _state_name(DCCP_STATES, state)