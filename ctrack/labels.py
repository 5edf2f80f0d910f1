"""Connection label name maps read from connlabel configuration files."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from os import PathLike

CONNLABEL_CFG = "/etc/xtables/connlabel.conf"
MAX_BITS = 1024

_POSIX_SPACE = " \f\r\t\v"
_NUMBER = re.compile(
    r"[ \t\n\v\f\r]*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)"
)


def label_is_sane(label: str) -> bool:
    """Return True if ``label`` holds only ASCII letters, digits, space and '-'."""
    return all(
        "a" <= ch <= "z" or "A" <= ch <= "Z" or "0" <= ch <= "9" or ch in " -"
        for ch in label
    )


def _parse_numerical(line: str) -> tuple[int, str] | None:
    """Read a leading bit number the way strtoul with base 0 does."""
    match = _NUMBER.match(line)
    if match is None:
        return None
    sign, digits = match.groups()
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif len(digits) > 1 and digits[0] == "0":
        value = int(digits[1:], 8)
    else:
        value = int(digits, 10)
    if sign == "-" and value:
        # A negated unsigned value wraps around to a huge number.
        return None
    if value >= MAX_BITS:
        return None
    return value, line[match.end():]


def _trim_label(text: str) -> str | None:
    text = text.lstrip(_POSIX_SPACE)
    text = text.split("\n", 1)[0]
    text = text.rstrip(_POSIX_SPACE)
    return text or None


class LabelMap:
    """Two-way mapping between connection label bits and names."""

    def __init__(self, names: Mapping[int, str]) -> None:
        by_bit: dict[int, str] = {}
        by_name: dict[str, int] = {}
        for bit, name in names.items():
            if not 0 <= bit < MAX_BITS:
                raise ValueError(f"label bit {bit} out of range")
            if name in by_name:
                raise ValueError(f"duplicate label name {name!r}")
            by_bit[bit] = name
            by_name[name] = bit
        self._by_bit = by_bit
        self._by_name = by_name
        self._count = max(by_bit) + 1 if by_bit else 0

    @classmethod
    def parse(cls, lines: Iterable[str]) -> "LabelMap":
        """Build a map from the lines of a connlabel configuration."""
        names: dict[int, str] = {}
        used: set[str] = set()
        for line in lines:
            if line.startswith("#"):
                continue
            parsed = _parse_numerical(line)
            if parsed is None:
                continue
            bit, rest = parsed
            if bit in names:
                continue
            label = _trim_label(rest)
            if label is None:
                continue
            if label_is_sane(label) and label not in used:
                names[bit] = label
                used.add(label)
        return cls(names)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> "LabelMap":
        """Read a connlabel configuration file; raise OSError if it cannot be read."""
        with open(path, encoding="latin-1") as handle:
            return cls.parse(handle)

    def get_bit(self, name: str) -> int | None:
        """Return the bit assigned to ``name``, or None if unknown."""
        return self._by_name.get(name)

    def get_name(self, bit: int) -> str | None:
        """Return the name of ``bit``: "" for an unnamed bit in range, None beyond it."""
        if 0 <= bit < self._count:
            return self._by_bit.get(bit, "")
        return None

    def __len__(self) -> int:
        return self._count


def load_labelmap(path: str | PathLike[str] | None = None) -> LabelMap | None:
    """Load a label map, or return None if the file is unreadable or names no label."""
    try:
        labelmap = LabelMap.from_file(path if path is not None else CONNLABEL_CFG)
    except OSError:
        return None
    return labelmap if len(labelmap) else None