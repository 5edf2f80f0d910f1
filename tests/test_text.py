import time

import pytest

from ctrack.attributes import Attr, AttrGroup, Direction
from ctrack.conntrack import Conntrack
from ctrack.groups import IcmpGroup, Ipv4Group, Ipv6Group, PortGroup, set_group
from ctrack.labels import LabelMap
from ctrack.setter import set_attr
from ctrack.text import (
    MessageType,
    OutputFlags,
    format_address,
    format_connlabels,
    format_default,
    format_proto,
)


def _tcp_conn(sport=1024, dport=80):
    ct = Conntrack()
    set_group(ct, AttrGroup.ORIG_IPV4, Ipv4Group("192.168.0.1", "192.168.0.2"))
    set_group(ct, AttrGroup.REPL_IPV4, Ipv4Group("192.168.0.2", "192.168.0.1"))
    set_attr(ct, Attr.ORIG_L4PROTO, 6)
    set_attr(ct, Attr.REPL_L4PROTO, 6)
    set_group(ct, AttrGroup.ORIG_PORT, PortGroup(sport, dport))
    set_group(ct, AttrGroup.REPL_PORT, PortGroup(dport, sport))
    return ct


def test_format_proto_ports():
    ct = _tcp_conn(1024, 80)
    assert format_proto(ct.orig) == "sport=1024 dport=80 "
    assert format_proto(ct.repl) == "sport=80 dport=1024 "


def test_format_proto_gre_keys_in_hex():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_L4PROTO, 47)
    set_group(ct, AttrGroup.ORIG_PORT, PortGroup(255, 16))
    assert format_proto(ct.orig) == "srckey=0xff dstkey=0x10 "


def test_format_proto_icmp():
    ct = Conntrack()
    set_group(ct, AttrGroup.ORIG_IPV4, Ipv4Group("10.0.0.1", "10.0.0.2"))
    set_attr(ct, Attr.ORIG_L4PROTO, 1)
    set_group(ct, AttrGroup.ICMP, IcmpGroup(8, 0, 7))
    assert format_proto(ct.orig) == "type=8 code=0 id=7 "


def test_format_proto_other_protocol_is_empty():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_L4PROTO, 250)
    assert format_proto(ct.orig) == ""


def test_format_address_ipv4_and_tags():
    ct = _tcp_conn()
    assert format_address(ct.orig) == "src=192.168.0.1 dst=192.168.0.2 "
    assert format_address(ct.orig, "s", "d") == "s=192.168.0.1 d=192.168.0.2 "


def test_format_address_ipv6():
    ct = Conntrack()
    set_group(ct, AttrGroup.ORIG_IPV6, Ipv6Group("::1", "2001:db8::2"))
    assert format_address(ct.orig) == "src=::1 dst=2001:db8::2 "


def test_format_address_unknown_family_is_empty():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_L3PROTO, 99)
    assert format_address(ct.orig) == ""


def test_format_default_basic_line():
    ct = _tcp_conn()
    assert format_default(ct) == (
        "tcp      6 src=192.168.0.1 dst=192.168.0.2 sport=1024 dport=80 "
        "src=192.168.0.2 dst=192.168.0.1 sport=80 dport=1024"
    )


@pytest.mark.parametrize(
    "msg_type, header",
    [
        (MessageType.NEW, "    [NEW] "),
        (MessageType.UPDATE, " [UPDATE] "),
        (MessageType.DESTROY, "[DESTROY] "),
    ],
)
def test_message_headers(msg_type, header):
    ct = _tcp_conn()
    text = format_default(ct, msg_type)
    assert text.startswith(header)
    assert text[len(header):] == format_default(ct)


def test_no_trailing_blank():
    ct = _tcp_conn()
    set_attr(ct, Attr.MARK, 3)
    assert not format_default(ct).endswith(" ")
    assert format_default(ct).endswith("mark=3")


def test_show_layer3():
    ct = _tcp_conn()
    text = format_default(ct, flags=OutputFlags.SHOW_LAYER3)
    assert text.startswith("ipv4     2 tcp      6 ")


def test_timeout_and_state_order():
    ct = _tcp_conn()
    set_attr(ct, Attr.TIMEOUT, 120)
    set_attr(ct, Attr.TCP_STATE, 3)
    text = format_default(ct)
    assert text.startswith("tcp      6 120 ESTABLISHED src=")


def test_out_of_range_tcp_state_reads_none():
    ct = _tcp_conn()
    set_attr(ct, Attr.TCP_STATE, 99)
    assert " NONE " in format_default(ct)


def test_unreplied_and_assured():
    ct = _tcp_conn()
    set_attr(ct, Attr.STATUS, 0)
    text = format_default(ct)
    assert "[UNREPLIED]" in text
    assert "[ASSURED]" not in text

    set_attr(ct, Attr.STATUS, 2 | 4)
    text = format_default(ct)
    assert "[UNREPLIED]" not in text
    assert "[ASSURED]" in text
    assert text.index("[ASSURED]") > text.rindex("dport=")


def test_counters_need_both_values():
    ct = _tcp_conn()
    ct.counters[Direction.ORIG].packets = 5
    ct.counters[Direction.ORIG].bytes = 300
    ct.mark_set(Attr.ORIG_COUNTER_PACKETS)
    assert "packets=" not in format_default(ct)
    ct.mark_set(Attr.ORIG_COUNTER_BYTES)
    text = format_default(ct)
    assert "packets=5 bytes=300 " in text
    assert text.index("packets=") < text.index("src=192.168.0.2")


def test_id_only_with_flag():
    ct = _tcp_conn()
    set_attr(ct, Attr.ID, 42)
    assert "id=" not in format_default(ct)
    assert format_default(ct, flags=OutputFlags.ID).endswith("id=42")


def test_scalars_and_helper():
    ct = _tcp_conn()
    set_attr(ct, Attr.ZONE, 4)
    set_attr(ct, Attr.SECMARK, 9)
    set_attr(ct, Attr.HELPER_NAME, "ftp")
    text = format_default(ct)
    assert "secmark=9 " in text
    assert "zone=4 " in text
    assert text.endswith("helper=ftp")
    assert text.index("secmark=") < text.index("zone=") < text.index("helper=")


def test_secctx():
    ct = _tcp_conn()
    ct.secctx = "ctx"
    ct.mark_set(Attr.SECCTX)
    assert format_default(ct).endswith("secctx=ctx")


def test_timestamps():
    ct = _tcp_conn()
    ct.timestamp_start = 10 * 1_000_000_000
    ct.timestamp_stop = 25 * 1_000_000_000
    ct.mark_set(Attr.TIMESTAMP_START)
    ct.mark_set(Attr.TIMESTAMP_STOP)
    assert format_default(ct).endswith("delta-time=15")
    text = format_default(ct, flags=OutputFlags.TIMESTAMP)
    assert f"[start={time.ctime(10)}] [stop={time.ctime(25)}]" in text


def test_format_connlabels_skips_unnamed_bits():
    labelmap = LabelMap({0: "eth", 2: "vpn"})
    assert format_connlabels({2, 1, 0}, labelmap, "%s,") == "eth,vpn,"
    assert format_connlabels({5}, labelmap, "%s,") == ""


def test_labels_in_default_output():
    labelmap = LabelMap({0: "eth", 2: "vpn"})
    ct = _tcp_conn()
    set_attr(ct, Attr.CONNLABELS, {0, 1, 2})
    assert format_default(ct, labelmap=labelmap).endswith("labels=eth,vpn")
    assert "labels" not in format_default(ct)


def test_labels_without_names():
    labelmap = LabelMap({3: "lan"})
    ct = _tcp_conn()
    set_attr(ct, Attr.CONNLABELS, {0})
    assert format_default(ct, labelmap=labelmap).endswith("dport=1024 labels")