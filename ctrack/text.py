"""Plain-text, one-line rendering of tracked connections."""

from __future__ import annotations

import enum
import ipaddress
import socket
import time
from collections.abc import Iterable

from .attributes import Attr, Direction
from .conntrack import Conntrack, Tuple
from .labels import LabelMap
from .names import (
    l3proto_name,
    proto_name,
    sctp_state_name,
    tcp_state_name,
)

NSEC_PER_SEC = 1_000_000_000

IPS_SEEN_REPLY = 1 << 1
IPS_ASSURED = 1 << 2

IPPROTO_DCCP = 33
IPPROTO_GRE = 47
IPPROTO_SCTP = 132
IPPROTO_UDPLITE = 136
IPPROTO_ICMPV6 = 58

_PORT_PROTOCOLS = frozenset(
    {socket.IPPROTO_TCP, socket.IPPROTO_UDP, IPPROTO_UDPLITE, IPPROTO_SCTP, IPPROTO_DCCP}
)
_ICMP_PROTOCOLS = frozenset({socket.IPPROTO_ICMP, IPPROTO_ICMPV6})


class OutputFlags(enum.IntFlag):
    """Optional parts of the rendered output."""

    NONE = 0
    SHOW_LAYER3 = 1 << 0
    TIME = 1 << 1
    ID = 1 << 2
    TIMESTAMP = 1 << 3


class MessageType(enum.IntEnum):
    """Kind of conntrack event a connection object came from."""

    UNKNOWN = 0
    NEW = 1 << 0
    UPDATE = 1 << 1
    DESTROY = 1 << 2


_HEADERS = {
    MessageType.NEW: "[NEW]",
    MessageType.UPDATE: "[UPDATE]",
    MessageType.DESTROY: "[DESTROY]",
}


def format_address(tuple_: Tuple, src_tag: str = "src", dst_tag: str = "dst") -> str:
    """Render the addresses of ``tuple_``; empty for an unknown address family."""
    family = tuple_.l3protonum
    if family == socket.AF_INET:
        src = ipaddress.IPv4Address(tuple_.src_v4)
        dst = ipaddress.IPv4Address(tuple_.dst_v4)
    elif family == socket.AF_INET6:
        src = ipaddress.IPv6Address(tuple_.src_v6)
        dst = ipaddress.IPv6Address(tuple_.dst_v6)
    else:
        return ""
    return f"{src_tag}={src} {dst_tag}={dst} "


def format_proto(tuple_: Tuple) -> str:
    """Render the layer 4 part of ``tuple_``; empty for other protocols."""
    protonum = tuple_.protonum
    if protonum in _PORT_PROTOCOLS:
        return f"sport={tuple_.l4src} dport={tuple_.l4dst} "
    if protonum == IPPROTO_GRE:
        return f"srckey=0x{tuple_.l4src:x} dstkey=0x{tuple_.l4dst:x} "
    if protonum in _ICMP_PROTOCOLS:
        # The id is shown for every ICMP message, as /proc output does.
        return (
            f"type={tuple_.icmp_type} code={tuple_.icmp_code} id={tuple_.icmp_id} "
        )
    return ""


def format_connlabels(labels: Iterable[int], labelmap: LabelMap, fmt: str = "%s") -> str:
    """Render each named label bit in ``labels`` through ``fmt``, lowest bit first."""
    parts = []
    for bit in sorted(labels):
        name = labelmap.get_name(bit)
        if not name:
            continue
        parts.append(fmt % name)
    return "".join(parts)


def _format_clabels(ct: Conntrack, labelmap: LabelMap) -> str:
    labels = ct.connlabels
    if labels is None:
        return ""
    text = "labels=" + format_connlabels(labels, labelmap, "%s,")
    # Drop the final separator (or the '=' when no label has a name).
    return text[:-1] + " "


def _counters(ct: Conntrack, direction: Direction) -> str:
    counters = ct.counters[direction]
    return f"packets={counters.packets} bytes={counters.bytes} "


def _delta_time(ct: Conntrack) -> str:
    if ct.timestamp_stop == 0:
        stop = int(time.time())
    else:
        stop = ct.timestamp_stop // NSEC_PER_SEC
    delta = (stop - ct.timestamp_start // NSEC_PER_SEC) % (1 << 64)
    return f"delta-time={delta} "


def format_default(
    ct: Conntrack,
    msg_type: MessageType | int = MessageType.UNKNOWN,
    flags: OutputFlags | int = OutputFlags.NONE,
    labelmap: LabelMap | None = None,
) -> str:
    """Render ``ct`` as one line in the classic conntrack text format."""
    flags = OutputFlags(flags)
    out: list[str] = []

    header = _HEADERS.get(msg_type)
    if header is not None:
        out.append(f"{header:>9} ")

    orig = ct.orig
    if flags & OutputFlags.SHOW_LAYER3:
        out.append(f"{l3proto_name(orig.l3protonum):<8} {orig.l3protonum} ")
    out.append(f"{proto_name(orig.protonum):<8} {orig.protonum} ")

    if ct.is_set(Attr.TIMEOUT):
        out.append(f"{ct.timeout} ")
    if ct.is_set(Attr.TCP_STATE):
        out.append(f"{tcp_state_name(ct.tcp_state)} ")
    if ct.is_set(Attr.SCTP_STATE):
        out.append(f"{sctp_state_name(ct.sctp_state)} ")
    if ct.is_set(Attr.DCCP_STATE):
        # DCCP states are looked up in the SCTP name table.
        out.append(f"{sctp_state_name(ct.dccp_state)} ")

    out.append(format_address(orig))
    out.append(format_proto(orig))

    if ct.is_set(Attr.ORIG_COUNTER_PACKETS) and ct.is_set(Attr.ORIG_COUNTER_BYTES):
        out.append(_counters(ct, Direction.ORIG))

    status_set = ct.is_set(Attr.STATUS)
    if status_set and not ct.status & IPS_SEEN_REPLY:
        out.append("[UNREPLIED] ")

    out.append(format_address(ct.repl))
    out.append(format_proto(ct.repl))

    if ct.is_set(Attr.REPL_COUNTER_PACKETS) and ct.is_set(Attr.REPL_COUNTER_BYTES):
        out.append(_counters(ct, Direction.REPL))

    if status_set and ct.status & IPS_ASSURED:
        out.append("[ASSURED] ")
    if ct.is_set(Attr.MARK):
        out.append(f"mark={ct.mark} ")
    if ct.is_set(Attr.SECMARK):
        out.append(f"secmark={ct.secmark} ")
    if ct.is_set(Attr.SECCTX):
        out.append(f"secctx={ct.secctx} ")
    if ct.is_set(Attr.ZONE):
        out.append(f"zone={ct.zone} ")

    if ct.is_set(Attr.TIMESTAMP_START):
        out.append(_delta_time(ct))
    if flags & OutputFlags.TIMESTAMP:
        if ct.is_set(Attr.TIMESTAMP_START):
            out.append(f"[start={time.ctime(ct.timestamp_start // NSEC_PER_SEC)}] ")
        if ct.is_set(Attr.TIMESTAMP_STOP):
            out.append(f"[stop={time.ctime(ct.timestamp_stop // NSEC_PER_SEC)}] ")

    if ct.is_set(Attr.HELPER_NAME):
        out.append(f"helper={ct.helper_name} ")
    if ct.is_set(Attr.USE):
        out.append(f"use={ct.use} ")
    if flags & OutputFlags.ID and ct.is_set(Attr.ID):
        out.append(f"id={ct.id} ")
    if labelmap is not None and ct.is_set(Attr.CONNLABELS):
        out.append(_format_clabels(ct, labelmap))

    # The last field always ends in a blank, which is dropped.
    return "".join(out)[:-1]