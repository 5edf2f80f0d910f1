"""Decoding conntrack netlink messages into connection objects."""

from __future__ import annotations

import contextlib
import struct
from collections.abc import Callable

from .attributes import Attr, Direction
from .conntrack import Conntrack, Tuple
from .nlattr import (
    AttrKind,
    NetlinkAttribute,
    NetlinkError,
    parse_attributes,
    parse_nlmsg_header,
)
from .setter import HELPER_NAME_MAX, set_attr

# Top-level conntrack attributes.
CTA_TUPLE_ORIG = 1
CTA_TUPLE_REPLY = 2
CTA_STATUS = 3
CTA_PROTOINFO = 4
CTA_HELP = 5
CTA_NAT_SRC = 6
CTA_TIMEOUT = 7
CTA_MARK = 8
CTA_COUNTERS_ORIG = 9
CTA_COUNTERS_REPLY = 10
CTA_USE = 11
CTA_ID = 12
CTA_NAT_DST = 13
CTA_TUPLE_MASTER = 14
CTA_NAT_SEQ_ADJ_ORIG = 15
CTA_NAT_SEQ_ADJ_REPLY = 16
CTA_SECMARK = 17
CTA_ZONE = 18
CTA_SECCTX = 19
CTA_TIMESTAMP = 20
CTA_MARK_MASK = 21
CTA_LABELS = 22
CTA_LABELS_MASK = 23
CTA_MAX = 23

CTA_TUPLE_IP = 1
CTA_TUPLE_PROTO = 2
CTA_TUPLE_MAX = 2

CTA_IP_V4_SRC = 1
CTA_IP_V4_DST = 2
CTA_IP_V6_SRC = 3
CTA_IP_V6_DST = 4
CTA_IP_MAX = 4

CTA_PROTO_NUM = 1
CTA_PROTO_SRC_PORT = 2
CTA_PROTO_DST_PORT = 3
CTA_PROTO_ICMP_ID = 4
CTA_PROTO_ICMP_TYPE = 5
CTA_PROTO_ICMP_CODE = 6
CTA_PROTO_ICMPV6_ID = 7
CTA_PROTO_ICMPV6_TYPE = 8
CTA_PROTO_ICMPV6_CODE = 9
CTA_PROTO_MAX = 9

CTA_PROTOINFO_TCP = 1
CTA_PROTOINFO_DCCP = 2
CTA_PROTOINFO_SCTP = 3
CTA_PROTOINFO_MAX = 3

CTA_PROTOINFO_TCP_STATE = 1
CTA_PROTOINFO_TCP_WSCALE_ORIGINAL = 2
CTA_PROTOINFO_TCP_WSCALE_REPLY = 3
CTA_PROTOINFO_TCP_FLAGS_ORIGINAL = 4
CTA_PROTOINFO_TCP_FLAGS_REPLY = 5
CTA_PROTOINFO_TCP_MAX = 5

CTA_PROTOINFO_DCCP_STATE = 1
CTA_PROTOINFO_DCCP_ROLE = 2
CTA_PROTOINFO_DCCP_HANDSHAKE_SEQ = 3
CTA_PROTOINFO_DCCP_MAX = 3

CTA_PROTOINFO_SCTP_STATE = 1
CTA_PROTOINFO_SCTP_VTAG_ORIGINAL = 2
CTA_PROTOINFO_SCTP_VTAG_REPLY = 3
CTA_PROTOINFO_SCTP_MAX = 3

CTA_COUNTERS_PACKETS = 1
CTA_COUNTERS_BYTES = 2
CTA_COUNTERS32_PACKETS = 3
CTA_COUNTERS32_BYTES = 4
CTA_COUNTERS_MAX = 4

CTA_NAT_SEQ_CORRECTION_POS = 1
CTA_NAT_SEQ_OFFSET_BEFORE = 2
CTA_NAT_SEQ_OFFSET_AFTER = 3
CTA_NAT_SEQ_MAX = 3

CTA_HELP_NAME = 1
CTA_HELP_INFO = 2
CTA_HELP_MAX = 2

CTA_SECCTX_NAME = 1
CTA_SECCTX_MAX = 1

CTA_TIMESTAMP_START = 1
CTA_TIMESTAMP_STOP = 2
CTA_TIMESTAMP_MAX = 2

TCP_FLAGS_LEN = 2
IN6_ADDR_LEN = 16


class ParseError(NetlinkError):
    """A conntrack message holds an attribute of the wrong shape."""


_Spec = dict[int, tuple[AttrKind, "int | None"]]

_O = Direction.ORIG
_R = Direction.REPL
_M = Direction.MASTER


def _collect(data: bytes, maximum: int, spec: _Spec) -> dict[int, NetlinkAttribute]:
    """Index the attributes in ``data`` by type, validating the known ones.

    Types above ``maximum`` are skipped; a later duplicate replaces an
    earlier one.
    """
    try:
        attributes = parse_attributes(data)
    except NetlinkError as exc:
        raise ParseError(str(exc)) from exc
    table: dict[int, NetlinkAttribute] = {}
    for attribute in attributes:
        if attribute.type > maximum:
            continue
        expected = spec.get(attribute.type)
        if expected is not None:
            kind, size = expected
            try:
                attribute.validate(kind, size)
            except NetlinkError as exc:
                raise ParseError(str(exc)) from exc
        table[attribute.type] = attribute
    return table


def _per_direction(orig: Attr, repl: Attr, master: Attr) -> dict[Direction, Attr]:
    return {_O: orig, _R: repl, _M: master}


def _any_direction(attr: Attr) -> dict[Direction, Attr]:
    return {_O: attr, _R: attr, _M: attr}


_IP_SPEC: _Spec = {
    CTA_IP_V4_SRC: (AttrKind.U32, None),
    CTA_IP_V4_DST: (AttrKind.U32, None),
    CTA_IP_V6_SRC: (AttrKind.UNSPEC, IN6_ADDR_LEN),
    CTA_IP_V6_DST: (AttrKind.UNSPEC, IN6_ADDR_LEN),
}

_IP_FIELDS = (
    (CTA_IP_V4_SRC, "src_v4", 4,
     _per_direction(Attr.ORIG_IPV4_SRC, Attr.REPL_IPV4_SRC, Attr.MASTER_IPV4_SRC)),
    (CTA_IP_V4_DST, "dst_v4", 4,
     _per_direction(Attr.ORIG_IPV4_DST, Attr.REPL_IPV4_DST, Attr.MASTER_IPV4_DST)),
    (CTA_IP_V6_SRC, "src_v6", IN6_ADDR_LEN,
     _per_direction(Attr.ORIG_IPV6_SRC, Attr.REPL_IPV6_SRC, Attr.MASTER_IPV6_SRC)),
    (CTA_IP_V6_DST, "dst_v6", IN6_ADDR_LEN,
     _per_direction(Attr.ORIG_IPV6_DST, Attr.REPL_IPV6_DST, Attr.MASTER_IPV6_DST)),
)

_PROTO_SPEC: _Spec = {
    CTA_PROTO_SRC_PORT: (AttrKind.U16, None),
    CTA_PROTO_DST_PORT: (AttrKind.U16, None),
    CTA_PROTO_ICMP_ID: (AttrKind.U16, None),
    CTA_PROTO_ICMPV6_ID: (AttrKind.U16, None),
    CTA_PROTO_NUM: (AttrKind.U8, None),
    CTA_PROTO_ICMP_TYPE: (AttrKind.U8, None),
    CTA_PROTO_ICMP_CODE: (AttrKind.U8, None),
    CTA_PROTO_ICMPV6_TYPE: (AttrKind.U8, None),
    CTA_PROTO_ICMPV6_CODE: (AttrKind.U8, None),
}

_Reader = Callable[[NetlinkAttribute], int]

_PROTO_FIELDS: tuple[tuple[int, str, _Reader, dict[Direction, Attr]], ...] = (
    (CTA_PROTO_NUM, "protonum", NetlinkAttribute.as_u8,
     _per_direction(Attr.ORIG_L4PROTO, Attr.REPL_L4PROTO, Attr.MASTER_L4PROTO)),
    (CTA_PROTO_SRC_PORT, "l4src", NetlinkAttribute.as_u16,
     _per_direction(Attr.ORIG_PORT_SRC, Attr.REPL_PORT_SRC, Attr.MASTER_PORT_SRC)),
    (CTA_PROTO_DST_PORT, "l4dst", NetlinkAttribute.as_u16,
     _per_direction(Attr.ORIG_PORT_DST, Attr.REPL_PORT_DST, Attr.MASTER_PORT_DST)),
    (CTA_PROTO_ICMP_TYPE, "icmp_type", NetlinkAttribute.as_u8,
     _any_direction(Attr.ICMP_TYPE)),
    (CTA_PROTO_ICMP_CODE, "icmp_code", NetlinkAttribute.as_u8,
     _any_direction(Attr.ICMP_CODE)),
    (CTA_PROTO_ICMP_ID, "icmp_id", NetlinkAttribute.as_u16,
     _any_direction(Attr.ICMP_ID)),
    (CTA_PROTO_ICMPV6_TYPE, "icmp_type", NetlinkAttribute.as_u8,
     _any_direction(Attr.ICMP_TYPE)),
    (CTA_PROTO_ICMPV6_CODE, "icmp_code", NetlinkAttribute.as_u8,
     _any_direction(Attr.ICMP_CODE)),
    (CTA_PROTO_ICMPV6_ID, "icmp_id", NetlinkAttribute.as_u16,
     _any_direction(Attr.ICMP_ID)),
)

_TUPLE_SPEC: _Spec = {
    CTA_TUPLE_IP: (AttrKind.NESTED, None),
    CTA_TUPLE_PROTO: (AttrKind.NESTED, None),
}


def _parse_ip(data: bytes, tuple_: Tuple, direction: Direction, ct: Conntrack) -> None:
    table = _collect(data, CTA_IP_MAX, _IP_SPEC)
    for cta, field_name, size, attrs in _IP_FIELDS:
        attribute = table.get(cta)
        if attribute is not None:
            setattr(tuple_, field_name, attribute.payload[:size])
            ct.mark_set(attrs[direction])


def _parse_proto(
    data: bytes, tuple_: Tuple, direction: Direction, ct: Conntrack
) -> None:
    table = _collect(data, CTA_PROTO_MAX, _PROTO_SPEC)
    for cta, field_name, read, attrs in _PROTO_FIELDS:
        attribute = table.get(cta)
        if attribute is not None:
            setattr(tuple_, field_name, read(attribute))
            ct.mark_set(attrs[direction])


def parse_tuple(
    data: bytes, direction: Direction | int, ct: Conntrack | None = None
) -> Tuple:
    """Decode the nested payload of a tuple attribute into ``ct``.

    Return the tuple of ``direction`` that was filled in; raise ParseError
    on a malformed attribute.
    """
    ct = Conntrack() if ct is None else ct
    direction = Direction(direction)
    tuple_ = ct.tuple_for(direction)
    table = _collect(data, CTA_TUPLE_MAX, _TUPLE_SPEC)
    ip = table.get(CTA_TUPLE_IP)
    if ip is not None:
        _parse_ip(ip.payload, tuple_, direction, ct)
    proto = table.get(CTA_TUPLE_PROTO)
    if proto is not None:
        _parse_proto(proto.payload, tuple_, direction, ct)
    return tuple_


_TCP_SPEC: _Spec = {
    CTA_PROTOINFO_TCP_STATE: (AttrKind.U8, None),
    CTA_PROTOINFO_TCP_WSCALE_ORIGINAL: (AttrKind.U8, None),
    CTA_PROTOINFO_TCP_WSCALE_REPLY: (AttrKind.U8, None),
    CTA_PROTOINFO_TCP_FLAGS_ORIGINAL: (AttrKind.UNSPEC, TCP_FLAGS_LEN),
    CTA_PROTOINFO_TCP_FLAGS_REPLY: (AttrKind.UNSPEC, TCP_FLAGS_LEN),
}


def _parse_protoinfo_tcp(data: bytes, ct: Conntrack) -> None:
    table = _collect(data, CTA_PROTOINFO_TCP_MAX, _TCP_SPEC)
    state = table.get(CTA_PROTOINFO_TCP_STATE)
    if state is not None:
        ct.tcp_state = state.as_u8()
        ct.mark_set(Attr.TCP_STATE)
    for cta, direction, attr in (
        (CTA_PROTOINFO_TCP_WSCALE_ORIGINAL, _O, Attr.TCP_WSCALE_ORIG),
        (CTA_PROTOINFO_TCP_WSCALE_REPLY, _R, Attr.TCP_WSCALE_REPL),
    ):
        wscale = table.get(cta)
        if wscale is not None:
            ct.tcp_wscale[direction] = wscale.payload[0]
            ct.mark_set(attr)
    for cta, direction, flags_attr, mask_attr in (
        (CTA_PROTOINFO_TCP_FLAGS_ORIGINAL, _O, Attr.TCP_FLAGS_ORIG, Attr.TCP_MASK_ORIG),
        (CTA_PROTOINFO_TCP_FLAGS_REPLY, _R, Attr.TCP_FLAGS_REPL, Attr.TCP_MASK_REPL),
    ):
        flags = table.get(cta)
        if flags is not None:
            ct.tcp_flags[direction] = flags.payload[0]
            ct.tcp_mask[direction] = flags.payload[1]
            ct.mark_set(flags_attr)
            ct.mark_set(mask_attr)


_SCTP_SPEC: _Spec = {
    CTA_PROTOINFO_SCTP_STATE: (AttrKind.U8, None),
    CTA_PROTOINFO_SCTP_VTAG_ORIGINAL: (AttrKind.U32, None),
    CTA_PROTOINFO_SCTP_VTAG_REPLY: (AttrKind.U32, None),
}


def _parse_protoinfo_sctp(data: bytes, ct: Conntrack) -> None:
    table = _collect(data, CTA_PROTOINFO_SCTP_MAX, _SCTP_SPEC)
    state = table.get(CTA_PROTOINFO_SCTP_STATE)
    if state is not None:
        ct.sctp_state = state.as_u8()
        ct.mark_set(Attr.SCTP_STATE)
    for cta, direction, attr in (
        (CTA_PROTOINFO_SCTP_VTAG_ORIGINAL, _O, Attr.SCTP_VTAG_ORIG),
        (CTA_PROTOINFO_SCTP_VTAG_REPLY, _R, Attr.SCTP_VTAG_REPL),
    ):
        vtag = table.get(cta)
        if vtag is not None:
            ct.sctp_vtag[direction] = vtag.as_u32()
            ct.mark_set(attr)


_DCCP_SPEC: _Spec = {
    CTA_PROTOINFO_DCCP_STATE: (AttrKind.U8, None),
    CTA_PROTOINFO_DCCP_ROLE: (AttrKind.U8, None),
    CTA_PROTOINFO_DCCP_HANDSHAKE_SEQ: (AttrKind.U64, None),
}


def _parse_protoinfo_dccp(data: bytes, ct: Conntrack) -> None:
    table = _collect(data, CTA_PROTOINFO_DCCP_MAX, _DCCP_SPEC)
    state = table.get(CTA_PROTOINFO_DCCP_STATE)
    if state is not None:
        ct.dccp_state = state.as_u8()
        ct.mark_set(Attr.DCCP_STATE)
    role = table.get(CTA_PROTOINFO_DCCP_ROLE)
    if role is not None:
        ct.dccp_role = role.as_u8()
        ct.mark_set(Attr.DCCP_ROLE)
    seq = table.get(CTA_PROTOINFO_DCCP_HANDSHAKE_SEQ)
    if seq is not None:
        ct.dccp_handshake_seq = seq.as_u64()
        ct.mark_set(Attr.DCCP_HANDSHAKE_SEQ)


_PROTOINFO_SPEC: _Spec = {
    CTA_PROTOINFO_TCP: (AttrKind.NESTED, None),
    CTA_PROTOINFO_SCTP: (AttrKind.NESTED, None),
    CTA_PROTOINFO_DCCP: (AttrKind.NESTED, None),
}


def _parse_protoinfo(data: bytes, ct: Conntrack) -> None:
    table = _collect(data, CTA_PROTOINFO_MAX, _PROTOINFO_SPEC)
    for cta, parser in (
        (CTA_PROTOINFO_TCP, _parse_protoinfo_tcp),
        (CTA_PROTOINFO_SCTP, _parse_protoinfo_sctp),
        (CTA_PROTOINFO_DCCP, _parse_protoinfo_dccp),
    ):
        attribute = table.get(cta)
        if attribute is not None:
            # A malformed protocol block is dropped; the rest of the message
            # still applies.
            with contextlib.suppress(ParseError):
                parser(attribute.payload, ct)


_COUNTERS_SPEC: _Spec = {
    CTA_COUNTERS_PACKETS: (AttrKind.U64, None),
    CTA_COUNTERS_BYTES: (AttrKind.U64, None),
    CTA_COUNTERS32_PACKETS: (AttrKind.U32, None),
    CTA_COUNTERS32_BYTES: (AttrKind.U32, None),
}

_COUNTER_ATTRS = {
    _O: (Attr.ORIG_COUNTER_PACKETS, Attr.ORIG_COUNTER_BYTES),
    _R: (Attr.REPL_COUNTER_PACKETS, Attr.REPL_COUNTER_BYTES),
}


def _parse_counters(data: bytes, ct: Conntrack, direction: Direction) -> None:
    table = _collect(data, CTA_COUNTERS_MAX, _COUNTERS_SPEC)
    counters = ct.counters[direction]
    packets_attr, bytes_attr = _COUNTER_ATTRS[direction]
    for cta32, cta64, field_name, attr in (
        (CTA_COUNTERS32_PACKETS, CTA_COUNTERS_PACKETS, "packets", packets_attr),
        (CTA_COUNTERS32_BYTES, CTA_COUNTERS_BYTES, "bytes", bytes_attr),
    ):
        short = table.get(cta32)
        long = table.get(cta64)
        if short is None and long is None:
            continue
        if short is not None:
            setattr(counters, field_name, short.as_u32())
        if long is not None:
            setattr(counters, field_name, long.as_u64())
        ct.mark_set(attr)


_NAT_SEQ_SPEC: _Spec = {
    CTA_NAT_SEQ_CORRECTION_POS: (AttrKind.U32, None),
    CTA_NAT_SEQ_OFFSET_BEFORE: (AttrKind.U32, None),
    CTA_NAT_SEQ_OFFSET_AFTER: (AttrKind.U32, None),
}

_NAT_SEQ_FIELDS = (
    (CTA_NAT_SEQ_CORRECTION_POS, "correction_pos",
     {_O: Attr.ORIG_NAT_SEQ_CORRECTION_POS, _R: Attr.REPL_NAT_SEQ_CORRECTION_POS}),
    (CTA_NAT_SEQ_OFFSET_BEFORE, "offset_before",
     {_O: Attr.ORIG_NAT_SEQ_OFFSET_BEFORE, _R: Attr.REPL_NAT_SEQ_OFFSET_BEFORE}),
    (CTA_NAT_SEQ_OFFSET_AFTER, "offset_after",
     {_O: Attr.ORIG_NAT_SEQ_OFFSET_AFTER, _R: Attr.REPL_NAT_SEQ_OFFSET_AFTER}),
)


def _parse_nat_seq(data: bytes, ct: Conntrack, direction: Direction) -> None:
    table = _collect(data, CTA_NAT_SEQ_MAX, _NAT_SEQ_SPEC)
    natseq = ct.natseq[direction]
    for cta, field_name, attrs in _NAT_SEQ_FIELDS:
        attribute = table.get(cta)
        if attribute is not None:
            setattr(natseq, field_name, attribute.as_u32())
            ct.mark_set(attrs[direction])


def _parse_helper(data: bytes, ct: Conntrack) -> None:
    table = _collect(data, CTA_HELP_MAX, {CTA_HELP_NAME: (AttrKind.STRING, None)})
    name = table.get(CTA_HELP_NAME)
    if name is None:
        return
    raw = name.payload.split(b"\0", 1)[0][: HELPER_NAME_MAX - 1]
    ct.helper_name = raw.decode("utf-8", "replace")
    ct.mark_set(Attr.HELPER_NAME)
    info = table.get(CTA_HELP_INFO)
    if info is None:
        return
    ct.helper_info = bytes(info.payload)
    ct.mark_set(Attr.HELPER_INFO)


def _parse_secctx(data: bytes, ct: Conntrack) -> None:
    table = _collect(
        data, CTA_SECCTX_MAX, {CTA_SECCTX_NAME: (AttrKind.STRING, None)}
    )
    name = table.get(CTA_SECCTX_NAME)
    if name is None:
        return
    ct.secctx = name.as_str()
    ct.mark_set(Attr.SECCTX)


def _parse_timestamp(data: bytes, ct: Conntrack) -> None:
    table = _collect(
        data,
        CTA_TIMESTAMP_MAX,
        {
            CTA_TIMESTAMP_START: (AttrKind.U64, None),
            CTA_TIMESTAMP_STOP: (AttrKind.U64, None),
        },
    )
    start = table.get(CTA_TIMESTAMP_START)
    if start is not None:
        ct.timestamp_start = start.as_u64()
        ct.mark_set(Attr.TIMESTAMP_START)
    stop = table.get(CTA_TIMESTAMP_STOP)
    if stop is not None:
        ct.timestamp_stop = stop.as_u64()
        ct.mark_set(Attr.TIMESTAMP_STOP)


def _parse_labels(payload: bytes, ct: Conntrack) -> None:
    if not payload:
        return
    padded = bytes(payload) + bytes(-len(payload) % 4)
    bits: set[int] = set()
    for index, (word,) in enumerate(struct.iter_unpack("=I", padded)):
        bits.update(index * 32 + bit for bit in range(32) if word >> bit & 1)
    set_attr(ct, Attr.CONNLABELS, bits)


_CONNTRACK_SPEC: _Spec = {
    **{
        cta: (AttrKind.NESTED, None)
        for cta in (
            CTA_TUPLE_ORIG, CTA_TUPLE_REPLY, CTA_TUPLE_MASTER,
            CTA_NAT_SEQ_ADJ_ORIG, CTA_NAT_SEQ_ADJ_REPLY, CTA_PROTOINFO,
            CTA_COUNTERS_ORIG, CTA_COUNTERS_REPLY, CTA_HELP, CTA_SECCTX,
            CTA_TIMESTAMP,
        )
    },
    **{
        cta: (AttrKind.U32, None)
        for cta in (CTA_STATUS, CTA_TIMEOUT, CTA_MARK, CTA_SECMARK, CTA_USE, CTA_ID)
    },
    CTA_ZONE: (AttrKind.U16, None),
}


def _scalar(
    table: dict[int, NetlinkAttribute],
    cta: int,
    ct: Conntrack,
    field_name: str,
    attr: Attr,
    read: _Reader = NetlinkAttribute.as_u32,
) -> None:
    attribute = table.get(cta)
    if attribute is not None:
        setattr(ct, field_name, read(attribute))
        ct.mark_set(attr)


def parse_payload(
    payload: bytes, l3num: int, ct: Conntrack | None = None
) -> Conntrack:
    """Decode the conntrack attributes in ``payload`` into ``ct``.

    ``l3num`` is the address family of the message.  Return the connection
    object; raise ParseError on a malformed attribute, in which case ``ct``
    may already hold the attributes decoded before it.
    """
    ct = Conntrack() if ct is None else ct
    table = _collect(payload, CTA_MAX, _CONNTRACK_SPEC)

    for cta, direction, l3attr in (
        (CTA_TUPLE_ORIG, _O, Attr.ORIG_L3PROTO),
        (CTA_TUPLE_REPLY, _R, Attr.REPL_L3PROTO),
        (CTA_TUPLE_MASTER, _M, Attr.MASTER_L3PROTO),
    ):
        attribute = table.get(cta)
        if attribute is not None:
            ct.tuple_for(direction).l3protonum = l3num
            ct.mark_set(l3attr)
            parse_tuple(attribute.payload, direction, ct)

    for cta, direction in ((CTA_NAT_SEQ_ADJ_ORIG, _O), (CTA_NAT_SEQ_ADJ_REPLY, _R)):
        attribute = table.get(cta)
        if attribute is not None:
            _parse_nat_seq(attribute.payload, ct, direction)

    _scalar(table, CTA_STATUS, ct, "status", Attr.STATUS)

    protoinfo = table.get(CTA_PROTOINFO)
    if protoinfo is not None:
        _parse_protoinfo(protoinfo.payload, ct)

    _scalar(table, CTA_TIMEOUT, ct, "timeout", Attr.TIMEOUT)
    _scalar(table, CTA_MARK, ct, "mark", Attr.MARK)
    _scalar(table, CTA_SECMARK, ct, "secmark", Attr.SECMARK)

    for cta, direction in ((CTA_COUNTERS_ORIG, _O), (CTA_COUNTERS_REPLY, _R)):
        attribute = table.get(cta)
        if attribute is not None:
            _parse_counters(attribute.payload, ct, direction)

    _scalar(table, CTA_USE, ct, "use", Attr.USE)
    _scalar(table, CTA_ID, ct, "id", Attr.ID)

    helper = table.get(CTA_HELP)
    if helper is not None:
        _parse_helper(helper.payload, ct)

    _scalar(table, CTA_ZONE, ct, "zone", Attr.ZONE, NetlinkAttribute.as_u16)

    secctx = table.get(CTA_SECCTX)
    if secctx is not None:
        _parse_secctx(secctx.payload, ct)

    timestamp = table.get(CTA_TIMESTAMP)
    if timestamp is not None:
        _parse_timestamp(timestamp.payload, ct)

    labels = table.get(CTA_LABELS)
    if labels is not None:
        _parse_labels(labels.payload, ct)
    # CTA_LABELS_MASK is never sent by the kernel.

    return ct


def parse_nlmsg(message: bytes, ct: Conntrack | None = None) -> Conntrack:
    """Decode a whole conntrack netlink message into ``ct`` and return it."""
    try:
        _type, _flags, family, payload = parse_nlmsg_header(message)
    except ParseError:
        raise
    except NetlinkError as exc:
        raise ParseError(str(exc)) from exc
    return parse_payload(payload, family, ct)