"""Conntrack attribute identifiers and attribute groups."""

from __future__ import annotations

import enum
from collections.abc import Iterable


class Attr(enum.IntEnum):
    """Individual conntrack attributes."""

    ORIG_IPV4_SRC = 0
    ORIG_IPV4_DST = 1
    REPL_IPV4_SRC = 2
    REPL_IPV4_DST = 3
    ORIG_IPV6_SRC = 4
    ORIG_IPV6_DST = 5
    REPL_IPV6_SRC = 6
    REPL_IPV6_DST = 7
    ORIG_PORT_SRC = 8
    ORIG_PORT_DST = 9
    REPL_PORT_SRC = 10
    REPL_PORT_DST = 11
    ICMP_TYPE = 12
    ICMP_CODE = 13
    ICMP_ID = 14
    ORIG_L3PROTO = 15
    REPL_L3PROTO = 16
    ORIG_L4PROTO = 17
    REPL_L4PROTO = 18
    TCP_STATE = 19
    SNAT_IPV4 = 20
    DNAT_IPV4 = 21
    SNAT_PORT = 22
    DNAT_PORT = 23
    TIMEOUT = 24
    MARK = 25
    ORIG_COUNTER_PACKETS = 26
    REPL_COUNTER_PACKETS = 27
    ORIG_COUNTER_BYTES = 28
    REPL_COUNTER_BYTES = 29
    USE = 30
    ID = 31
    STATUS = 32
    TCP_FLAGS_ORIG = 33
    TCP_FLAGS_REPL = 34
    TCP_MASK_ORIG = 35
    TCP_MASK_REPL = 36
    MASTER_IPV4_SRC = 37
    MASTER_IPV4_DST = 38
    MASTER_IPV6_SRC = 39
    MASTER_IPV6_DST = 40
    MASTER_PORT_SRC = 41
    MASTER_PORT_DST = 42
    MASTER_L3PROTO = 43
    MASTER_L4PROTO = 44
    SECMARK = 45
    ORIG_NAT_SEQ_CORRECTION_POS = 46
    ORIG_NAT_SEQ_OFFSET_BEFORE = 47
    ORIG_NAT_SEQ_OFFSET_AFTER = 48
    REPL_NAT_SEQ_CORRECTION_POS = 49
    REPL_NAT_SEQ_OFFSET_BEFORE = 50
    REPL_NAT_SEQ_OFFSET_AFTER = 51
    SCTP_STATE = 52
    SCTP_VTAG_ORIG = 53
    SCTP_VTAG_REPL = 54
    HELPER_NAME = 55
    DCCP_STATE = 56
    DCCP_ROLE = 57
    DCCP_HANDSHAKE_SEQ = 58
    TCP_WSCALE_ORIG = 59
    TCP_WSCALE_REPL = 60
    ZONE = 61
    SECCTX = 62
    TIMESTAMP_START = 63
    TIMESTAMP_STOP = 64
    HELPER_INFO = 65
    CONNLABELS = 66
    CONNLABELS_MASK = 67


class AttrGroup(enum.IntEnum):
    """Groups of attributes that are read or written together."""

    ORIG_IPV4 = 0
    REPL_IPV4 = 1
    ORIG_IPV6 = 2
    REPL_IPV6 = 3
    ORIG_PORT = 4
    REPL_PORT = 5
    ICMP = 6
    MASTER_IPV4 = 7
    MASTER_IPV6 = 8
    MASTER_PORT = 9
    ORIG_COUNTERS = 10
    REPL_COUNTERS = 11
    ORIG_ADDR_SRC = 12
    ORIG_ADDR_DST = 13
    REPL_ADDR_SRC = 14
    REPL_ADDR_DST = 15


class BitmaskType(enum.Enum):
    """Whether a group needs all of its members set, or any one."""

    AND = "and"
    OR = "or"


class Direction(enum.IntEnum):
    """Tuple direction of a connection."""

    ORIG = 0
    REPL = 1
    MASTER = 2


_AND = BitmaskType.AND
_OR = BitmaskType.OR

_GROUPS: dict[AttrGroup, tuple[frozenset[Attr], BitmaskType]] = {
    AttrGroup.ORIG_IPV4: (
        frozenset({Attr.ORIG_IPV4_SRC, Attr.ORIG_IPV4_DST, Attr.ORIG_L3PROTO}),
        _AND,
    ),
    AttrGroup.REPL_IPV4: (
        frozenset({Attr.REPL_IPV4_SRC, Attr.REPL_IPV4_DST, Attr.REPL_L3PROTO}),
        _AND,
    ),
    AttrGroup.ORIG_IPV6: (
        frozenset({Attr.ORIG_IPV6_SRC, Attr.ORIG_IPV6_DST, Attr.ORIG_L3PROTO}),
        _AND,
    ),
    AttrGroup.REPL_IPV6: (
        frozenset({Attr.REPL_IPV6_SRC, Attr.REPL_IPV6_DST, Attr.REPL_L3PROTO}),
        _AND,
    ),
    AttrGroup.ORIG_PORT: (
        frozenset({Attr.ORIG_PORT_SRC, Attr.ORIG_PORT_DST, Attr.ORIG_L4PROTO}),
        _AND,
    ),
    AttrGroup.REPL_PORT: (
        frozenset({Attr.REPL_PORT_SRC, Attr.REPL_PORT_DST, Attr.REPL_L4PROTO}),
        _AND,
    ),
    AttrGroup.ICMP: (
        frozenset({Attr.ICMP_CODE, Attr.ICMP_TYPE, Attr.ICMP_ID}),
        _AND,
    ),
    AttrGroup.MASTER_IPV4: (
        frozenset({Attr.MASTER_IPV4_SRC, Attr.MASTER_IPV4_DST, Attr.MASTER_L3PROTO}),
        _AND,
    ),
    AttrGroup.MASTER_IPV6: (
        frozenset({Attr.MASTER_IPV6_SRC, Attr.MASTER_IPV6_DST, Attr.MASTER_L3PROTO}),
        _AND,
    ),
    AttrGroup.MASTER_PORT: (
        frozenset({Attr.MASTER_PORT_SRC, Attr.MASTER_PORT_DST, Attr.MASTER_L4PROTO}),
        _AND,
    ),
    AttrGroup.ORIG_COUNTERS: (
        frozenset({Attr.ORIG_COUNTER_PACKETS, Attr.ORIG_COUNTER_BYTES}),
        _AND,
    ),
    AttrGroup.REPL_COUNTERS: (
        frozenset({Attr.REPL_COUNTER_PACKETS, Attr.REPL_COUNTER_BYTES}),
        _AND,
    ),
    AttrGroup.ORIG_ADDR_SRC: (
        frozenset({Attr.ORIG_IPV4_SRC, Attr.ORIG_IPV6_SRC}),
        _OR,
    ),
    AttrGroup.ORIG_ADDR_DST: (
        frozenset({Attr.ORIG_IPV4_DST, Attr.ORIG_IPV6_DST}),
        _OR,
    ),
    AttrGroup.REPL_ADDR_SRC: (
        frozenset({Attr.REPL_IPV4_SRC, Attr.REPL_IPV6_SRC}),
        _OR,
    ),
    AttrGroup.REPL_ADDR_DST: (
        frozenset({Attr.REPL_IPV4_DST, Attr.REPL_IPV6_DST}),
        _OR,
    ),
}


def group_members(group: AttrGroup | int) -> frozenset[Attr]:
    """Return the attributes that make up ``group``."""
    return _GROUPS[AttrGroup(group)][0]


def group_type(group: AttrGroup | int) -> BitmaskType:
    """Return whether ``group`` needs all or any of its members."""
    return _GROUPS[AttrGroup(group)][1]


def group_is_set(group: AttrGroup | int, present: Iterable[Attr | int]) -> bool:
    """Tell whether ``group`` counts as set given the attributes in ``present``."""
    members, kind = _GROUPS[AttrGroup(group)]
    available = {Attr(attr) for attr in present}
    if kind is BitmaskType.AND:
        return members <= available
    return bool(members & available)