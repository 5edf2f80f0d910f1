import ipaddress
import socket

import pytest

from ctrack.attributes import Attr
from ctrack.conntrack import Conntrack
from ctrack.setter import icmp_reply_type, set_attr


def test_icmp_reply_type_ipv4_echo():
    assert icmp_reply_type(socket.AF_INET, 8) == 0
    assert icmp_reply_type(socket.AF_INET, 0) == 8


def test_icmp_reply_type_pairs_are_symmetric():
    for request in (13, 15, 17):
        reply = icmp_reply_type(socket.AF_INET, request)
        assert icmp_reply_type(socket.AF_INET, reply) == request


def test_icmp_reply_type_ipv6_echo():
    assert icmp_reply_type(socket.AF_INET6, 128) == 129
    assert icmp_reply_type(socket.AF_INET6, 129) == 128


def test_icmp_reply_type_unknown():
    assert icmp_reply_type(socket.AF_INET, 3) == 255
    assert icmp_reply_type(socket.AF_INET6, 1) == 255
    assert icmp_reply_type(0, 8) == 255


def test_set_ipv4_round_trip():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_IPV4_SRC, "10.0.0.1")
    assert ct.get(Attr.ORIG_IPV4_SRC) == ipaddress.IPv4Address("10.0.0.1")
    assert ct.is_set(Attr.ORIG_IPV4_SRC)
    assert not ct.is_set(Attr.ORIG_IPV4_DST)


def test_set_ipv6_round_trip():
    ct = Conntrack()
    set_attr(ct, Attr.REPL_IPV6_DST, "2001:db8::1")
    assert ct.get(Attr.REPL_IPV6_DST) == ipaddress.IPv6Address("2001:db8::1")


def test_set_port_and_proto():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_PORT_DST, 443)
    set_attr(ct, Attr.ORIG_L4PROTO, socket.IPPROTO_TCP)
    assert ct.get(Attr.ORIG_PORT_DST) == 443
    assert ct.get(Attr.ORIG_L4PROTO) == socket.IPPROTO_TCP


def test_icmp_type_fills_reply_direction():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_L3PROTO, socket.AF_INET)
    set_attr(ct, Attr.ICMP_TYPE, 8)
    assert ct.orig.icmp_type == 8
    assert ct.repl.icmp_type == 0


def test_icmp_code_and_id_set_both_directions():
    ct = Conntrack()
    set_attr(ct, Attr.ICMP_CODE, 3)
    set_attr(ct, Attr.ICMP_ID, 4242)
    assert ct.orig.icmp_code == ct.repl.icmp_code == 3
    assert ct.orig.icmp_id == ct.repl.icmp_id == 4242


def test_snat_sets_range():
    ct = Conntrack()
    set_attr(ct, Attr.SNAT_IPV4, "192.0.2.7")
    assert ct.snat.min_ip == ct.snat.max_ip == ipaddress.IPv4Address("192.0.2.7")
    set_attr(ct, Attr.DNAT_PORT, 8080)
    assert ct.dnat.l4min == ct.dnat.l4max == 8080


def test_helper_name_truncated():
    ct = Conntrack()
    set_attr(ct, Attr.HELPER_NAME, "x" * 40)
    assert len(ct.get(Attr.HELPER_NAME)) == 15
    set_attr(ct, Attr.HELPER_NAME, "ftp")
    assert ct.get(Attr.HELPER_NAME) == "ftp"


def test_list_fields():
    ct = Conntrack()
    set_attr(ct, Attr.TCP_FLAGS_REPL, 3)
    set_attr(ct, Attr.SCTP_VTAG_ORIG, 123456)
    set_attr(ct, Attr.REPL_NAT_SEQ_OFFSET_AFTER, 77)
    assert ct.get(Attr.TCP_FLAGS_REPL) == 3
    assert ct.get(Attr.TCP_FLAGS_ORIG) == 0
    assert ct.get(Attr.SCTP_VTAG_ORIG) == 123456
    assert ct.get(Attr.REPL_NAT_SEQ_OFFSET_AFTER) == 77


def test_connlabels_and_helper_info():
    ct = Conntrack()
    set_attr(ct, Attr.CONNLABELS, [1, 5, 5])
    set_attr(ct, Attr.HELPER_INFO, b"\x01\x02")
    assert ct.get(Attr.CONNLABELS) == frozenset({1, 5})
    assert ct.get(Attr.HELPER_INFO) == b"\x01\x02"
    assert ct.is_set(Attr.CONNLABELS)


def test_read_only_attributes_ignored():
    ct = Conntrack()
    set_attr(ct, Attr.USE, 5)
    set_attr(ct, Attr.ORIG_COUNTER_PACKETS, 9)
    assert ct.use == 0
    assert ct.counters[0].packets == 0
    assert ct.attributes() == frozenset()


@pytest.mark.parametrize(
    "attr, value",
    [
        (Attr.ORIG_PORT_SRC, 70000),
        (Attr.TCP_STATE, 256),
        (Attr.MARK, -1),
        (Attr.ICMP_TYPE, 300),
        (Attr.CONNLABELS, [-1]),
    ],
)
def test_out_of_range_rejected(attr, value):
    ct = Conntrack()
    with pytest.raises(ValueError):
        set_attr(ct, attr, value)


def test_unknown_attribute_rejected():
    with pytest.raises(ValueError):
        set_attr(Conntrack(), 999, 1)