"""Reading and writing attribute groups of a tracked connection."""

from __future__ import annotations

import ipaddress
import socket
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .attributes import AttrGroup, Direction, group_members
from .conntrack import Conntrack, Tuple
from .setter import icmp_reply_type


def _checked(value: Any, bits: int, what: str) -> int:
    number = int(value)
    if not 0 <= number < (1 << bits):
        raise ValueError(f"{what} {value!r} does not fit in {bits} bits")
    return number


@dataclass(frozen=True)
class Ipv4Group:
    """Source and destination IPv4 addresses of one tuple."""

    src: ipaddress.IPv4Address
    dst: ipaddress.IPv4Address

    def __post_init__(self) -> None:
        object.__setattr__(self, "src", ipaddress.IPv4Address(self.src))
        object.__setattr__(self, "dst", ipaddress.IPv4Address(self.dst))


@dataclass(frozen=True)
class Ipv6Group:
    """Source and destination IPv6 addresses of one tuple."""

    src: ipaddress.IPv6Address
    dst: ipaddress.IPv6Address

    def __post_init__(self) -> None:
        object.__setattr__(self, "src", ipaddress.IPv6Address(self.src))
        object.__setattr__(self, "dst", ipaddress.IPv6Address(self.dst))


@dataclass(frozen=True)
class PortGroup:
    """Source and destination layer 4 ports of one tuple, in host order."""

    sport: int
    dport: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "sport", _checked(self.sport, 16, "port"))
        object.__setattr__(self, "dport", _checked(self.dport, 16, "port"))


@dataclass(frozen=True)
class IcmpGroup:
    """ICMP type, code and identifier of the original direction."""

    type: int
    code: int
    id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", _checked(self.type, 8, "ICMP type"))
        object.__setattr__(self, "code", _checked(self.code, 8, "ICMP code"))
        object.__setattr__(self, "id", _checked(self.id, 16, "ICMP id"))


@dataclass(frozen=True)
class CountersGroup:
    """Packet and byte counters of one direction."""

    packets: int
    bytes: int


def _ipv4(tuple_: Tuple) -> Ipv4Group:
    return Ipv4Group(tuple_.src_v4, tuple_.dst_v4)


def _ipv6(tuple_: Tuple) -> Ipv6Group:
    return Ipv6Group(tuple_.src_v6, tuple_.dst_v6)


def _ports(tuple_: Tuple) -> PortGroup:
    return PortGroup(tuple_.l4src, tuple_.l4dst)


def _counters(ct: Conntrack, direction: Direction) -> CountersGroup:
    counters = ct.counters[direction]
    return CountersGroup(counters.packets, counters.bytes)


_GETTERS: dict[AttrGroup, Callable[[Conntrack], Any]] = {
    AttrGroup.ORIG_IPV4: lambda ct: _ipv4(ct.orig),
    AttrGroup.REPL_IPV4: lambda ct: _ipv4(ct.repl),
    AttrGroup.ORIG_IPV6: lambda ct: _ipv6(ct.orig),
    AttrGroup.REPL_IPV6: lambda ct: _ipv6(ct.repl),
    AttrGroup.ORIG_PORT: lambda ct: _ports(ct.orig),
    AttrGroup.REPL_PORT: lambda ct: _ports(ct.repl),
    AttrGroup.ICMP: lambda ct: IcmpGroup(
        ct.orig.icmp_type, ct.orig.icmp_code, ct.orig.icmp_id
    ),
    AttrGroup.MASTER_IPV4: lambda ct: _ipv4(ct.master),
    AttrGroup.MASTER_IPV6: lambda ct: _ipv6(ct.master),
    AttrGroup.MASTER_PORT: lambda ct: _ports(ct.master),
    AttrGroup.ORIG_COUNTERS: lambda ct: _counters(ct, Direction.ORIG),
    AttrGroup.REPL_COUNTERS: lambda ct: _counters(ct, Direction.REPL),
    AttrGroup.ORIG_ADDR_SRC: lambda ct: bytes(ct.orig.src),
    AttrGroup.ORIG_ADDR_DST: lambda ct: bytes(ct.orig.dst),
    AttrGroup.REPL_ADDR_SRC: lambda ct: bytes(ct.repl.src),
    AttrGroup.REPL_ADDR_DST: lambda ct: bytes(ct.repl.dst),
}


def get_group(ct: Conntrack, group: AttrGroup | int) -> Any:
    """Return the values of ``group`` in ``ct``.

    Address groups return the 16 raw address bytes shared by the IPv4 and
    IPv6 views of the tuple.
    """
    return _GETTERS[AttrGroup(group)](ct)


def _set_ipv4(tuple_: Tuple, value: Ipv4Group) -> None:
    tuple_.src_v4 = value.src
    tuple_.dst_v4 = value.dst
    tuple_.l3protonum = socket.AF_INET


def _set_ipv6(tuple_: Tuple, value: Ipv6Group) -> None:
    tuple_.src_v6 = value.src
    tuple_.dst_v6 = value.dst
    tuple_.l3protonum = socket.AF_INET6


def _set_ports(tuple_: Tuple, value: PortGroup) -> None:
    tuple_.l4src = value.sport
    tuple_.l4dst = value.dport


def _set_icmp(ct: Conntrack, value: IcmpGroup) -> None:
    ct.orig.icmp_type = value.type
    ct.repl.icmp_type = icmp_reply_type(ct.orig.l3protonum, value.type)
    ct.orig.icmp_code = value.code
    ct.repl.icmp_code = value.code
    ct.orig.icmp_id = value.id
    ct.repl.icmp_id = value.id


_SETTERS: dict[AttrGroup, tuple[type, Callable[[Conntrack, Any], None]]] = {
    AttrGroup.ORIG_IPV4: (Ipv4Group, lambda ct, v: _set_ipv4(ct.orig, v)),
    AttrGroup.REPL_IPV4: (Ipv4Group, lambda ct, v: _set_ipv4(ct.repl, v)),
    AttrGroup.ORIG_IPV6: (Ipv6Group, lambda ct, v: _set_ipv6(ct.orig, v)),
    AttrGroup.REPL_IPV6: (Ipv6Group, lambda ct, v: _set_ipv6(ct.repl, v)),
    AttrGroup.ORIG_PORT: (PortGroup, lambda ct, v: _set_ports(ct.orig, v)),
    AttrGroup.REPL_PORT: (PortGroup, lambda ct, v: _set_ports(ct.repl, v)),
    AttrGroup.ICMP: (IcmpGroup, _set_icmp),
    AttrGroup.MASTER_IPV4: (Ipv4Group, lambda ct, v: _set_ipv4(ct.master, v)),
    AttrGroup.MASTER_IPV6: (Ipv6Group, lambda ct, v: _set_ipv6(ct.master, v)),
    AttrGroup.MASTER_PORT: (PortGroup, lambda ct, v: _set_ports(ct.master, v)),
}


def set_group(ct: Conntrack, group: AttrGroup | int, value: Any) -> None:
    """Store ``value`` for ``group`` in ``ct`` and mark its members set.

    Counter and address groups are only reported by the kernel; setting
    them leaves ``ct`` unchanged.  A value of the wrong group class raises
    TypeError.
    """
    group = AttrGroup(group)
    entry = _SETTERS.get(group)
    if entry is None:
        return
    expected, setter = entry
    if not isinstance(value, expected):
        raise TypeError(
            f"group {group.name} needs a {expected.__name__}, "
            f"not {type(value).__name__}"
        )
    setter(ct, value)
    for attr in group_members(group):
        ct.mark_set(attr)