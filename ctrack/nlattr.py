"""Netlink attribute and nfnetlink message encoding and decoding.

Attribute and message headers use the host byte order; the integer values
carried by conntrack attributes are in network byte order.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

NLA_HDRLEN = 4
NLA_ALIGNTO = 4
NLA_F_NESTED = 0x8000
NLA_F_NET_BYTEORDER = 0x4000
NLA_TYPE_MASK = ~(NLA_F_NESTED | NLA_F_NET_BYTEORDER) & 0xFFFF

NLMSG_HDRLEN = 16
NFGENMSG_LEN = 4
NFNETLINK_V0 = 0

_NLA_HEADER = struct.Struct("=HH")
_NLMSG_HEADER = struct.Struct("=IHHII")
_NFGENMSG = struct.Struct("=BB2s")


class NetlinkError(ValueError):
    """A netlink message or attribute is malformed."""


class AttrKind(enum.Enum):
    """Expected data type of an attribute payload."""

    UNSPEC = "unspec"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    STRING = "string"
    FLAG = "flag"
    MSECS = "msecs"
    NESTED = "nested"
    NUL_STRING = "nul_string"
    BINARY = "binary"


_FIXED_LENGTH = {
    AttrKind.U8: 1,
    AttrKind.U16: 2,
    AttrKind.U32: 4,
    AttrKind.U64: 8,
    AttrKind.MSECS: 8,
}


def _align(length: int) -> int:
    return (length + NLA_ALIGNTO - 1) & ~(NLA_ALIGNTO - 1)


@dataclass(frozen=True)
class NetlinkAttribute:
    """One type-length-value attribute."""

    type: int
    payload: bytes
    nested: bool = False
    net_byteorder: bool = False

    def _int(self, size: int) -> int:
        if len(self.payload) < size:
            raise NetlinkError(
                f"attribute {self.type} holds {len(self.payload)} bytes, "
                f"needs {size}"
            )
        return int.from_bytes(self.payload[:size], "big")

    def as_u8(self) -> int:
        """Return the payload as an 8-bit value."""
        return self._int(1)

    def as_u16(self) -> int:
        """Return the payload as a 16-bit value in network byte order."""
        return self._int(2)

    def as_u32(self) -> int:
        """Return the payload as a 32-bit value in network byte order."""
        return self._int(4)

    def as_u64(self) -> int:
        """Return the payload as a 64-bit value in network byte order."""
        return self._int(8)

    def as_str(self) -> str:
        """Return the payload up to its first NUL byte as text."""
        return self.payload.split(b"\0", 1)[0].decode("utf-8", "replace")

    def validate(self, kind: AttrKind, size: int | None = None) -> None:
        """Raise NetlinkError unless the payload suits ``kind`` (and ``size``)."""
        length = len(self.payload)
        expected = size if size is not None else _FIXED_LENGTH.get(kind, 0)
        if length < expected:
            raise NetlinkError(
                f"attribute {self.type} too short: {length} < {expected}"
            )
        if kind is AttrKind.FLAG and length > 0:
            raise NetlinkError(f"flag attribute {self.type} carries a payload")
        if kind is AttrKind.NUL_STRING:
            if length == 0:
                raise NetlinkError(f"attribute {self.type} holds an empty string")
            if self.payload[-1] != 0:
                raise NetlinkError(f"attribute {self.type} lacks a NUL terminator")
        if kind is AttrKind.STRING and length == 0:
            raise NetlinkError(f"attribute {self.type} holds an empty string")
        if kind is AttrKind.NESTED and 0 < length < NLA_HDRLEN:
            raise NetlinkError(f"nested attribute {self.type} is truncated")
        if expected and length > expected:
            raise NetlinkError(
                f"attribute {self.type} too long: {length} > {expected}"
            )


def parse_attributes(data: bytes) -> list[NetlinkAttribute]:
    """Split ``data`` into the attributes it holds."""
    attributes: list[NetlinkAttribute] = []
    view = memoryview(bytes(data))
    offset = 0
    while offset < len(view):
        remaining = len(view) - offset
        if remaining < NLA_HDRLEN:
            raise NetlinkError("truncated attribute header")
        nla_len, nla_type = _NLA_HEADER.unpack_from(view, offset)
        if nla_len < NLA_HDRLEN or nla_len > remaining:
            raise NetlinkError(f"bad attribute length {nla_len}")
        attributes.append(
            NetlinkAttribute(
                type=nla_type & NLA_TYPE_MASK,
                payload=bytes(view[offset + NLA_HDRLEN: offset + nla_len]),
                nested=bool(nla_type & NLA_F_NESTED),
                net_byteorder=bool(nla_type & NLA_F_NET_BYTEORDER),
            )
        )
        offset += min(_align(nla_len), remaining)
    return attributes


def build_attribute(attr_type: int, payload: bytes, nested: bool = False) -> bytes:
    """Encode one attribute, padded to a four-byte boundary."""
    if not 0 <= attr_type <= NLA_TYPE_MASK:
        raise ValueError(f"attribute type {attr_type} out of range")
    length = NLA_HDRLEN + len(payload)
    if length > 0xFFFF:
        raise ValueError("attribute payload too large")
    header = _NLA_HEADER.pack(length, attr_type | (NLA_F_NESTED if nested else 0))
    return header + bytes(payload) + bytes(_align(length) - length)


def build_nlmsg(nlmsg_type: int, flags: int, family: int, payload: bytes) -> bytes:
    """Encode an nfnetlink message: netlink header, nfgenmsg, then ``payload``."""
    length = NLMSG_HDRLEN + NFGENMSG_LEN + len(payload)
    return (
        _NLMSG_HEADER.pack(length, nlmsg_type, flags, 0, 0)
        + _NFGENMSG.pack(family, NFNETLINK_V0, b"\0\0")
        + bytes(payload)
    )


def parse_nlmsg_header(data: bytes) -> tuple[int, int, int, bytes]:
    """Decode an nfnetlink message.

    Return ``(nlmsg_type, flags, family, payload)`` where ``payload`` is the
    attribute data that follows the nfgenmsg header.
    """
    data = bytes(data)
    minimum = NLMSG_HDRLEN + NFGENMSG_LEN
    if len(data) < minimum:
        raise NetlinkError("message shorter than its headers")
    length, nlmsg_type, flags, _seq, _pid = _NLMSG_HEADER.unpack_from(data)
    if length < minimum or length > len(data):
        raise NetlinkError(f"bad message length {length}")
    family, _version, _res_id = _NFGENMSG.unpack_from(data, NLMSG_HDRLEN)
    return nlmsg_type, flags, family, data[minimum:length]