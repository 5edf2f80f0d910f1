"""Whole-object operations: NAT undo, tuple completion and NAT queries."""

from __future__ import annotations

import enum
import socket
from collections.abc import Callable

from .attributes import Attr, Direction
from .conntrack import Conntrack

IPS_SRC_NAT_DONE = 1 << 7
IPS_DST_NAT_DONE = 1 << 8

IPPROTO_DCCP = 33
IPPROTO_GRE = 47
IPPROTO_SCTP = 132
IPPROTO_UDPLITE = 136

_PORT_PROTOCOLS = frozenset(
    {
        socket.IPPROTO_UDP,
        socket.IPPROTO_TCP,
        IPPROTO_SCTP,
        IPPROTO_DCCP,
        IPPROTO_GRE,
        IPPROTO_UDPLITE,
    }
)

_TUPLE_ATTRS = frozenset(
    {
        Attr.ORIG_IPV4_SRC, Attr.ORIG_IPV4_DST,
        Attr.ORIG_IPV6_SRC, Attr.ORIG_IPV6_DST,
        Attr.ORIG_PORT_SRC, Attr.ORIG_PORT_DST,
        Attr.ORIG_L3PROTO, Attr.ORIG_L4PROTO,
        Attr.REPL_IPV4_SRC, Attr.REPL_IPV4_DST,
        Attr.REPL_IPV6_SRC, Attr.REPL_IPV6_DST,
        Attr.REPL_PORT_SRC, Attr.REPL_PORT_DST,
        Attr.REPL_L3PROTO, Attr.REPL_L4PROTO,
    }
)


class SetOption(enum.IntEnum):
    """Operations that change a connection object."""

    UNDO_SNAT = 0
    UNDO_DNAT = 1
    UNDO_SPAT = 2
    UNDO_DPAT = 3
    SETUP_ORIGINAL = 4
    SETUP_REPLY = 5


class GetOption(enum.IntEnum):
    """Questions about the NAT state of a connection object."""

    IS_SNAT = 0
    IS_DNAT = 1
    IS_SPAT = 2
    IS_DPAT = 3


def _autocomplete(ct: Conntrack, direction: Direction) -> None:
    if direction is Direction.ORIG:
        this, other = ct.orig, ct.repl
    else:
        this, other = ct.repl, ct.orig
    this.l3protonum = other.l3protonum
    this.protonum = other.protonum
    this.src = other.dst
    this.dst = other.src
    # ICMP reply fields are already filled in when the ICMP attributes are set.
    if this.protonum in _PORT_PROTOCOLS:
        this.l4src = other.l4dst
        this.l4dst = other.l4src
    for attr in _TUPLE_ATTRS:
        ct.mark_set(attr)


def _undo_snat(ct: Conntrack) -> None:
    ct.snat.min_ip = ct.repl.dst_v4
    ct.snat.max_ip = ct.snat.min_ip
    ct.repl.dst_v4 = ct.orig.src_v4
    ct.mark_set(Attr.SNAT_IPV4)


def _undo_dnat(ct: Conntrack) -> None:
    ct.dnat.min_ip = ct.repl.src_v4
    ct.dnat.max_ip = ct.dnat.min_ip
    ct.repl.src_v4 = ct.orig.dst_v4
    ct.mark_set(Attr.DNAT_IPV4)


def _undo_spat(ct: Conntrack) -> None:
    ct.snat.l4min = ct.repl.l4dst
    ct.snat.l4max = ct.snat.l4min
    ct.repl.l4dst = ct.orig.l4src
    ct.mark_set(Attr.SNAT_PORT)


def _undo_dpat(ct: Conntrack) -> None:
    ct.dnat.l4min = ct.repl.l4src
    ct.dnat.l4max = ct.dnat.l4min
    ct.repl.l4src = ct.orig.l4dst
    ct.mark_set(Attr.DNAT_PORT)


_SET_OPTIONS: dict[SetOption, Callable[[Conntrack], None]] = {
    SetOption.UNDO_SNAT: _undo_snat,
    SetOption.UNDO_DNAT: _undo_dnat,
    SetOption.UNDO_SPAT: _undo_spat,
    SetOption.UNDO_DPAT: _undo_dpat,
    SetOption.SETUP_ORIGINAL: lambda ct: _autocomplete(ct, Direction.ORIG),
    SetOption.SETUP_REPLY: lambda ct: _autocomplete(ct, Direction.REPL),
}


def _nat_done(ct: Conntrack, flag: int) -> bool:
    return bool(ct.status & flag) if ct.is_set(Attr.STATUS) else True


_GET_OPTIONS: dict[GetOption, Callable[[Conntrack], bool]] = {
    GetOption.IS_SNAT: lambda ct: _nat_done(ct, IPS_SRC_NAT_DONE)
    and ct.repl.dst[:4] != ct.orig.src[:4],
    GetOption.IS_DNAT: lambda ct: _nat_done(ct, IPS_DST_NAT_DONE)
    and ct.repl.src[:4] != ct.orig.dst[:4],
    GetOption.IS_SPAT: lambda ct: _nat_done(ct, IPS_SRC_NAT_DONE)
    and ct.repl.l4dst != ct.orig.l4src,
    GetOption.IS_DPAT: lambda ct: _nat_done(ct, IPS_DST_NAT_DONE)
    and ct.repl.l4src != ct.orig.l4dst,
}


def set_option(ct: Conntrack, option: SetOption | int) -> None:
    """Apply ``option`` to ``ct``; raise ValueError for an unknown option."""
    _SET_OPTIONS[SetOption(option)](ct)


def get_option(ct: Conntrack, option: GetOption | int) -> bool:
    """Answer ``option`` about ``ct``; raise ValueError for an unknown option."""
    return _GET_OPTIONS[GetOption(option)](ct)