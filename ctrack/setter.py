"""Writing single attributes of a tracked connection."""

from __future__ import annotations

import socket
from collections.abc import Callable, Iterable
from typing import Any

from .attributes import Attr, Direction
from .conntrack import Conntrack

HELPER_NAME_MAX = 16
ICMP_TYPE_UNKNOWN = 255

_ICMP_REPLY = {
    8: 0,     # echo request -> echo reply
    0: 8,
    13: 14,   # timestamp
    14: 13,
    15: 16,   # information request
    16: 15,
    17: 18,   # address mask
    18: 17,
}

_ICMPV6_REPLY = {
    128: 129,  # echo request -> echo reply
    129: 128,
    139: 139,  # node information query
    140: 140,  # node information reply
}

_O = Direction.ORIG
_R = Direction.REPL


def icmp_reply_type(l3protonum: int, icmp_type: int) -> int:
    """Return the ICMP type expected in the reply direction, or 255 if unknown."""
    if l3protonum == socket.AF_INET:
        table = _ICMP_REPLY
    elif l3protonum == socket.AF_INET6:
        table = _ICMPV6_REPLY
    else:
        return ICMP_TYPE_UNKNOWN
    return table.get(icmp_type, ICMP_TYPE_UNKNOWN)


def _uint(bits: int) -> Callable[[Any], int]:
    limit = 1 << bits

    def check(value: Any) -> int:
        number = int(value)
        if not 0 <= number < limit:
            raise ValueError(f"{value!r} does not fit in {bits} bits")
        return number

    return check


_u8 = _uint(8)
_u16 = _uint(16)
_u32 = _uint(32)
_u64 = _uint(64)


def _set_icmp_type(ct: Conntrack, value: Any) -> None:
    icmp_type = _u8(value)
    ct.orig.icmp_type = icmp_type
    ct.repl.icmp_type = icmp_reply_type(ct.orig.l3protonum, icmp_type)


def _set_icmp_code(ct: Conntrack, value: Any) -> None:
    code = _u8(value)
    ct.orig.icmp_code = code
    ct.repl.icmp_code = code


def _set_icmp_id(ct: Conntrack, value: Any) -> None:
    icmp_id = _u16(value)
    ct.orig.icmp_id = icmp_id
    ct.repl.icmp_id = icmp_id


def _set_snat_ipv4(ct: Conntrack, value: Any) -> None:
    ct.snat.min_ip = ct.snat.max_ip = _ipv4(value)


def _set_dnat_ipv4(ct: Conntrack, value: Any) -> None:
    # The upper bound lands in the source NAT range, as it always has.
    ct.dnat.min_ip = ct.snat.max_ip = _ipv4(value)


def _set_snat_port(ct: Conntrack, value: Any) -> None:
    ct.snat.l4min = ct.snat.l4max = _u16(value)


def _set_dnat_port(ct: Conntrack, value: Any) -> None:
    ct.dnat.l4min = ct.dnat.l4max = _u16(value)


def _ipv4(value: Any):
    import ipaddress

    return ipaddress.IPv4Address(value)


def _helper_name(value: Any) -> str:
    return str(value).split("\0", 1)[0][: HELPER_NAME_MAX - 1]


def _labels(value: Iterable[int] | None) -> frozenset[int] | None:
    if value is None:
        return None
    bits = frozenset(int(bit) for bit in value)
    if any(bit < 0 for bit in bits):
        raise ValueError("label bits must not be negative")
    return bits


def _setattr(path: str, convert: Callable[[Any], Any]) -> Callable[[Conntrack, Any], None]:
    owner_name, _, name = path.rpartition(".")

    def setter(ct: Conntrack, value: Any) -> None:
        owner = getattr(ct, owner_name) if owner_name else ct
        setattr(owner, name, convert(value))

    return setter


def _setitem(
    field_name: str, index: int, convert: Callable[[Any], Any], attr: str | None = None
) -> Callable[[Conntrack, Any], None]:
    def setter(ct: Conntrack, value: Any) -> None:
        container = getattr(ct, field_name)
        if attr is None:
            container[index] = convert(value)
        else:
            setattr(container[index], attr, convert(value))

    return setter


def _identity(value: Any) -> Any:
    return value


_SETTERS: dict[Attr, Callable[[Conntrack, Any], None]] = {
    Attr.ORIG_IPV4_SRC: _setattr("orig.src_v4", _identity),
    Attr.ORIG_IPV4_DST: _setattr("orig.dst_v4", _identity),
    Attr.REPL_IPV4_SRC: _setattr("repl.src_v4", _identity),
    Attr.REPL_IPV4_DST: _setattr("repl.dst_v4", _identity),
    Attr.ORIG_IPV6_SRC: _setattr("orig.src_v6", _identity),
    Attr.ORIG_IPV6_DST: _setattr("orig.dst_v6", _identity),
    Attr.REPL_IPV6_SRC: _setattr("repl.src_v6", _identity),
    Attr.REPL_IPV6_DST: _setattr("repl.dst_v6", _identity),
    Attr.ORIG_PORT_SRC: _setattr("orig.l4src", _u16),
    Attr.ORIG_PORT_DST: _setattr("orig.l4dst", _u16),
    Attr.REPL_PORT_SRC: _setattr("repl.l4src", _u16),
    Attr.REPL_PORT_DST: _setattr("repl.l4dst", _u16),
    Attr.ICMP_TYPE: _set_icmp_type,
    Attr.ICMP_CODE: _set_icmp_code,
    Attr.ICMP_ID: _set_icmp_id,
    Attr.ORIG_L3PROTO: _setattr("orig.l3protonum", _u8),
    Attr.REPL_L3PROTO: _setattr("repl.l3protonum", _u8),
    Attr.ORIG_L4PROTO: _setattr("orig.protonum", _u8),
    Attr.REPL_L4PROTO: _setattr("repl.protonum", _u8),
    Attr.TCP_STATE: _setattr("tcp_state", _u8),
    Attr.SNAT_IPV4: _set_snat_ipv4,
    Attr.DNAT_IPV4: _set_dnat_ipv4,
    Attr.SNAT_PORT: _set_snat_port,
    Attr.DNAT_PORT: _set_dnat_port,
    Attr.TIMEOUT: _setattr("timeout", _u32),
    Attr.MARK: _setattr("mark", _u32),
    Attr.ID: _setattr("id", _u32),
    Attr.STATUS: _setattr("status", _u32),
    Attr.TCP_FLAGS_ORIG: _setitem("tcp_flags", _O, _u8),
    Attr.TCP_FLAGS_REPL: _setitem("tcp_flags", _R, _u8),
    Attr.TCP_MASK_ORIG: _setitem("tcp_mask", _O, _u8),
    Attr.TCP_MASK_REPL: _setitem("tcp_mask", _R, _u8),
    Attr.MASTER_IPV4_SRC: _setattr("master.src_v4", _identity),
    Attr.MASTER_IPV4_DST: _setattr("master.dst_v4", _identity),
    Attr.MASTER_IPV6_SRC: _setattr("master.src_v6", _identity),
    Attr.MASTER_IPV6_DST: _setattr("master.dst_v6", _identity),
    Attr.MASTER_PORT_SRC: _setattr("master.l4src", _u16),
    Attr.MASTER_PORT_DST: _setattr("master.l4dst", _u16),
    Attr.MASTER_L3PROTO: _setattr("master.l3protonum", _u8),
    Attr.MASTER_L4PROTO: _setattr("master.protonum", _u8),
    Attr.SECMARK: _setattr("secmark", _u32),
    Attr.ORIG_NAT_SEQ_CORRECTION_POS: _setitem("natseq", _O, _u32, "correction_pos"),
    Attr.ORIG_NAT_SEQ_OFFSET_BEFORE: _setitem("natseq", _O, _u32, "offset_before"),
    Attr.ORIG_NAT_SEQ_OFFSET_AFTER: _setitem("natseq", _O, _u32, "offset_after"),
    Attr.REPL_NAT_SEQ_CORRECTION_POS: _setitem("natseq", _R, _u32, "correction_pos"),
    Attr.REPL_NAT_SEQ_OFFSET_BEFORE: _setitem("natseq", _R, _u32, "offset_before"),
    Attr.REPL_NAT_SEQ_OFFSET_AFTER: _setitem("natseq", _R, _u32, "offset_after"),
    Attr.SCTP_STATE: _setattr("sctp_state", _u8),
    Attr.SCTP_VTAG_ORIG: _setitem("sctp_vtag", _O, _u32),
    Attr.SCTP_VTAG_REPL: _setitem("sctp_vtag", _R, _u32),
    Attr.HELPER_NAME: _setattr("helper_name", _helper_name),
    Attr.DCCP_STATE: _setattr("dccp_state", _u8),
    Attr.DCCP_ROLE: _setattr("dccp_role", _u8),
    Attr.DCCP_HANDSHAKE_SEQ: _setattr("dccp_handshake_seq", _u64),
    Attr.TCP_WSCALE_ORIG: _setitem("tcp_wscale", _O, _u8),
    Attr.TCP_WSCALE_REPL: _setitem("tcp_wscale", _R, _u8),
    Attr.ZONE: _setattr("zone", _u16),
    Attr.HELPER_INFO: _setattr("helper_info", bytes),
    Attr.CONNLABELS: _setattr("connlabels", _labels),
    Attr.CONNLABELS_MASK: _setattr("connlabels_mask", _labels),
}

READ_ONLY = frozenset(
    {
        Attr.ORIG_COUNTER_PACKETS,
        Attr.REPL_COUNTER_PACKETS,
        Attr.ORIG_COUNTER_BYTES,
        Attr.REPL_COUNTER_BYTES,
        Attr.USE,
        Attr.SECCTX,
        Attr.TIMESTAMP_START,
        Attr.TIMESTAMP_STOP,
    }
)


def set_attr(ct: Conntrack, attr: Attr | int, value: Any) -> None:
    """Store ``value`` for ``attr`` in ``ct`` and mark it set.

    Attributes that only the kernel reports (counters, use count, security
    context, timestamps) are silently left alone.  Values that do not fit
    the attribute raise ValueError.
    """
    attr = Attr(attr)
    if attr in READ_ONLY:
        return
    _SETTERS[attr](ct, value)
    ct.mark_set(attr)