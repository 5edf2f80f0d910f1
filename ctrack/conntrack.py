"""In-memory model of a tracked connection."""

from __future__ import annotations

import ipaddress
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .attributes import Attr, Direction

_ZERO_ADDR = bytes(16)


def _check_u8(value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{value} does not fit in one byte")
    return value


def _with_v4(raw: bytes, value: Any) -> bytes:
    return ipaddress.IPv4Address(value).packed + raw[4:]


@dataclass
class Tuple:
    """One direction of a connection.

    ``src`` and ``dst`` hold 16 raw address bytes shared by the IPv4 and IPv6
    views; an IPv4 address occupies the first four.  ``l4src`` and ``l4dst``
    hold the layer 4 identifiers in host order: ports, or for ICMP the id in
    ``l4src`` and the type (high byte) and code (low byte) in ``l4dst``.
    """

    l3protonum: int = 0
    protonum: int = 0
    src: bytes = _ZERO_ADDR
    dst: bytes = _ZERO_ADDR
    l4src: int = 0
    l4dst: int = 0

    @property
    def src_v4(self) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(self.src[:4])

    @src_v4.setter
    def src_v4(self, value: Any) -> None:
        self.src = _with_v4(self.src, value)

    @property
    def dst_v4(self) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(self.dst[:4])

    @dst_v4.setter
    def dst_v4(self, value: Any) -> None:
        self.dst = _with_v4(self.dst, value)

    @property
    def src_v6(self) -> ipaddress.IPv6Address:
        return ipaddress.IPv6Address(self.src)

    @src_v6.setter
    def src_v6(self, value: Any) -> None:
        self.src = ipaddress.IPv6Address(value).packed

    @property
    def dst_v6(self) -> ipaddress.IPv6Address:
        return ipaddress.IPv6Address(self.dst)

    @dst_v6.setter
    def dst_v6(self, value: Any) -> None:
        self.dst = ipaddress.IPv6Address(value).packed

    @property
    def icmp_type(self) -> int:
        return (self.l4dst >> 8) & 0xFF

    @icmp_type.setter
    def icmp_type(self, value: int) -> None:
        self.l4dst = (_check_u8(value) << 8) | (self.l4dst & 0xFF)

    @property
    def icmp_code(self) -> int:
        return self.l4dst & 0xFF

    @icmp_code.setter
    def icmp_code(self, value: int) -> None:
        self.l4dst = (self.l4dst & 0xFF00) | _check_u8(value)

    @property
    def icmp_id(self) -> int:
        return self.l4src

    @icmp_id.setter
    def icmp_id(self, value: int) -> None:
        self.l4src = value


@dataclass
class Counters:
    """Packet and byte counters for one direction."""

    packets: int = 0
    bytes: int = 0


@dataclass
class NatSeq:
    """Sequence number adjustment for one direction."""

    correction_pos: int = 0
    offset_before: int = 0
    offset_after: int = 0


@dataclass
class NatRange:
    """Source or destination NAT range."""

    min_ip: ipaddress.IPv4Address = ipaddress.IPv4Address(0)
    max_ip: ipaddress.IPv4Address = ipaddress.IPv4Address(0)
    l4min: int = 0
    l4max: int = 0


def _pair() -> list[int]:
    return [0, 0]


@dataclass
class Conntrack:
    """A tracked connection with the set of attributes that hold a value."""

    orig: Tuple = field(default_factory=Tuple)
    repl: Tuple = field(default_factory=Tuple)
    master: Tuple = field(default_factory=Tuple)
    snat: NatRange = field(default_factory=NatRange)
    dnat: NatRange = field(default_factory=NatRange)
    timeout: int = 0
    mark: int = 0
    secmark: int = 0
    status: int = 0
    use: int = 0
    id: int = 0
    zone: int = 0
    counters: list[Counters] = field(default_factory=lambda: [Counters(), Counters()])
    natseq: list[NatSeq] = field(default_factory=lambda: [NatSeq(), NatSeq()])
    tcp_state: int = 0
    tcp_flags: list[int] = field(default_factory=_pair)
    tcp_mask: list[int] = field(default_factory=_pair)
    tcp_wscale: list[int] = field(default_factory=_pair)
    sctp_state: int = 0
    sctp_vtag: list[int] = field(default_factory=_pair)
    dccp_state: int = 0
    dccp_role: int = 0
    dccp_handshake_seq: int = 0
    helper_name: str = ""
    helper_info: bytes | None = None
    secctx: str | None = None
    timestamp_start: int = 0
    timestamp_stop: int = 0
    connlabels: frozenset[int] | None = None
    connlabels_mask: frozenset[int] | None = None
    _set: set[Attr] = field(default_factory=set, repr=False)

    def get(self, attr: Attr | int) -> Any:
        """Return the value stored for ``attr``."""
        return _GETTERS[Attr(attr)](self)

    def is_set(self, attr: Attr | int) -> bool:
        """Tell whether ``attr`` holds a value."""
        return Attr(attr) in self._set

    def unset(self, attr: Attr | int) -> None:
        """Mark ``attr`` as holding no value."""
        self._set.discard(Attr(attr))

    def mark_set(self, attr: Attr | int) -> None:
        """Mark ``attr`` as holding a value."""
        self._set.add(Attr(attr))

    def attributes(self) -> frozenset[Attr]:
        """Return the attributes that hold a value."""
        return frozenset(self._set)

    def tuple_for(self, direction: Direction | int) -> Tuple:
        """Return the tuple of the given direction."""
        direction = Direction(direction)
        if direction is Direction.ORIG:
            return self.orig
        if direction is Direction.REPL:
            return self.repl
        return self.master


_O = Direction.ORIG
_R = Direction.REPL

_GETTERS: dict[Attr, Callable[[Conntrack], Any]] = {
    Attr.ORIG_IPV4_SRC: lambda ct: ct.orig.src_v4,
    Attr.ORIG_IPV4_DST: lambda ct: ct.orig.dst_v4,
    Attr.REPL_IPV4_SRC: lambda ct: ct.repl.src_v4,
    Attr.REPL_IPV4_DST: lambda ct: ct.repl.dst_v4,
    Attr.ORIG_IPV6_SRC: lambda ct: ct.orig.src_v6,
    Attr.ORIG_IPV6_DST: lambda ct: ct.orig.dst_v6,
    Attr.REPL_IPV6_SRC: lambda ct: ct.repl.src_v6,
    Attr.REPL_IPV6_DST: lambda ct: ct.repl.dst_v6,
    Attr.ORIG_PORT_SRC: lambda ct: ct.orig.l4src,
    Attr.ORIG_PORT_DST: lambda ct: ct.orig.l4dst,
    Attr.REPL_PORT_SRC: lambda ct: ct.repl.l4src,
    Attr.REPL_PORT_DST: lambda ct: ct.repl.l4dst,
    Attr.ICMP_TYPE: lambda ct: ct.orig.icmp_type,
    Attr.ICMP_CODE: lambda ct: ct.orig.icmp_code,
    Attr.ICMP_ID: lambda ct: ct.orig.icmp_id,
    Attr.ORIG_L3PROTO: lambda ct: ct.orig.l3protonum,
    Attr.REPL_L3PROTO: lambda ct: ct.repl.l3protonum,
    Attr.ORIG_L4PROTO: lambda ct: ct.orig.protonum,
    Attr.REPL_L4PROTO: lambda ct: ct.repl.protonum,
    Attr.TCP_STATE: lambda ct: ct.tcp_state,
    Attr.SNAT_IPV4: lambda ct: ct.snat.min_ip,
    Attr.DNAT_IPV4: lambda ct: ct.dnat.min_ip,
    Attr.SNAT_PORT: lambda ct: ct.snat.l4min,
    Attr.DNAT_PORT: lambda ct: ct.dnat.l4min,
    Attr.TIMEOUT: lambda ct: ct.timeout,
    Attr.MARK: lambda ct: ct.mark,
    Attr.ORIG_COUNTER_PACKETS: lambda ct: ct.counters[_O].packets,
    Attr.ORIG_COUNTER_BYTES: lambda ct: ct.counters[_O].bytes,
    Attr.REPL_COUNTER_PACKETS: lambda ct: ct.counters[_R].packets,
    Attr.REPL_COUNTER_BYTES: lambda ct: ct.counters[_R].bytes,
    Attr.USE: lambda ct: ct.use,
    Attr.ID: lambda ct: ct.id,
    Attr.STATUS: lambda ct: ct.status,
    Attr.TCP_FLAGS_ORIG: lambda ct: ct.tcp_flags[_O],
    Attr.TCP_FLAGS_REPL: lambda ct: ct.tcp_flags[_R],
    Attr.TCP_MASK_ORIG: lambda ct: ct.tcp_mask[_O],
    Attr.TCP_MASK_REPL: lambda ct: ct.tcp_mask[_R],
    Attr.MASTER_IPV4_SRC: lambda ct: ct.master.src_v4,
    Attr.MASTER_IPV4_DST: lambda ct: ct.master.dst_v4,
    Attr.MASTER_IPV6_SRC: lambda ct: ct.master.src_v6,
    Attr.MASTER_IPV6_DST: lambda ct: ct.master.dst_v6,
    Attr.MASTER_PORT_SRC: lambda ct: ct.master.l4src,
    Attr.MASTER_PORT_DST: lambda ct: ct.master.l4dst,
    Attr.MASTER_L3PROTO: lambda ct: ct.master.l3protonum,
    Attr.MASTER_L4PROTO: lambda ct: ct.master.protonum,
    Attr.SECMARK: lambda ct: ct.secmark,
    Attr.ORIG_NAT_SEQ_CORRECTION_POS: lambda ct: ct.natseq[_O].correction_pos,
    Attr.ORIG_NAT_SEQ_OFFSET_BEFORE: lambda ct: ct.natseq[_O].offset_before,
    Attr.ORIG_NAT_SEQ_OFFSET_AFTER: lambda ct: ct.natseq[_O].offset_after,
    Attr.REPL_NAT_SEQ_CORRECTION_POS: lambda ct: ct.natseq[_R].correction_pos,
    Attr.REPL_NAT_SEQ_OFFSET_BEFORE: lambda ct: ct.natseq[_R].offset_before,
    Attr.REPL_NAT_SEQ_OFFSET_AFTER: lambda ct: ct.natseq[_R].offset_after,
    Attr.SCTP_STATE: lambda ct: ct.sctp_state,
    Attr.SCTP_VTAG_ORIG: lambda ct: ct.sctp_vtag[_O],
    Attr.SCTP_VTAG_REPL: lambda ct: ct.sctp_vtag[_R],
    Attr.HELPER_NAME: lambda ct: ct.helper_name,
    Attr.DCCP_STATE: lambda ct: ct.dccp_state,
    Attr.DCCP_ROLE: lambda ct: ct.dccp_role,
    Attr.DCCP_HANDSHAKE_SEQ: lambda ct: ct.dccp_handshake_seq,
    Attr.TCP_WSCALE_ORIG: lambda ct: ct.tcp_wscale[_O],
    Attr.TCP_WSCALE_REPL: lambda ct: ct.tcp_wscale[_R],
    Attr.ZONE: lambda ct: ct.zone,
    Attr.SECCTX: lambda ct: ct.secctx,
    Attr.TIMESTAMP_START: lambda ct: ct.timestamp_start,
    Attr.TIMESTAMP_STOP: lambda ct: ct.timestamp_stop,
    Attr.HELPER_INFO: lambda ct: ct.helper_info,
    Attr.CONNLABELS: lambda ct: ct.connlabels,
    Attr.CONNLABELS_MASK: lambda ct: ct.connlabels_mask,
}