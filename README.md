# ctrack

A pure-Python library for working with connection tracking entries as
reported by the kernel's netfilter subsystem.

It provides:

- `ctrack.conntrack.Conntrack` — an entry with its original, reply and
  master tuples, counters, NAT data, protocol state and more, plus a record
  of which attributes are set.
- `ctrack.attributes` — the `Attr` and `AttrGroup` enumerations and helpers
  such as `group_members` and `group_is_set`.
- `ctrack.setter.set_attr` and `ctrack.groups.get_group` / `set_group` for
  changing entries one attribute or group at a time (ICMP reply types are
  filled in for you).
- `ctrack.objopt.set_option` / `get_option` for NAT undo, tuple
  autocompletion and NAT checks.
- `ctrack.parse.parse_nlmsg` and `parse_payload`, which decode netlink
  conntrack messages built from `ctrack.nlattr` attributes.
- `ctrack.labels.LabelMap` and `load_labelmap`, which read connection label
  configuration files.
- `ctrack.text.format_default` and `ctrack.xmlformat.format_xml` /
  `format_conntrack`, which render entries in the familiar one-line text
  form or as XML.

## Installation

```
pip install .
```

## Example

```python
from ctrack.conntrack import Conntrack
from ctrack.parse import parse_nlmsg
from ctrack.text import format_default, MessageType

ct = Conntrack()
msg_type = parse_nlmsg(message_bytes, ct)
print(format_default(ct, MessageType.NEW, 0, None))
```

## Running the tests

```
pip install .[test]
pytest
```