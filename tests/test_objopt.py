import ipaddress
import socket

import pytest

from ctrack.attributes import Attr
from ctrack.conntrack import Conntrack
from ctrack.objopt import GetOption, SetOption, get_option, set_option
from ctrack.setter import set_attr


def _snat_conntrack():
    ct = Conntrack()
    ct.orig.l3protonum = ct.repl.l3protonum = socket.AF_INET
    ct.orig.protonum = ct.repl.protonum = socket.IPPROTO_TCP
    ct.orig.src_v4 = "10.0.0.1"
    ct.orig.dst_v4 = "10.0.0.2"
    ct.orig.l4src = 1000
    ct.orig.l4dst = 80
    ct.repl.src_v4 = "10.0.0.2"
    ct.repl.dst_v4 = "192.0.2.9"
    ct.repl.l4src = 80
    ct.repl.l4dst = 2000
    return ct


def test_is_snat_and_spat():
    ct = _snat_conntrack()
    assert get_option(ct, GetOption.IS_SNAT) is True
    assert get_option(ct, GetOption.IS_SPAT) is True
    assert get_option(ct, GetOption.IS_DNAT) is False
    assert get_option(ct, GetOption.IS_DPAT) is False


def test_status_without_nat_flag_means_no_nat():
    ct = _snat_conntrack()
    set_attr(ct, Attr.STATUS, 0)
    assert get_option(ct, GetOption.IS_SNAT) is False


def test_status_with_nat_flag_keeps_nat():
    ct = _snat_conntrack()
    set_attr(ct, Attr.STATUS, 1 << 7)
    assert get_option(ct, GetOption.IS_SNAT) is True


def test_undo_snat():
    ct = _snat_conntrack()
    set_option(ct, SetOption.UNDO_SNAT)
    assert ct.snat.min_ip == ct.snat.max_ip == ipaddress.IPv4Address("192.0.2.9")
    assert ct.repl.dst_v4 == ct.orig.src_v4
    assert ct.is_set(Attr.SNAT_IPV4)
    assert get_option(ct, GetOption.IS_SNAT) is False


def test_undo_spat():
    ct = _snat_conntrack()
    set_option(ct, SetOption.UNDO_SPAT)
    assert ct.snat.l4min == ct.snat.l4max == 2000
    assert ct.repl.l4dst == 1000
    assert ct.is_set(Attr.SNAT_PORT)


def test_undo_dnat_and_dpat():
    ct = _snat_conntrack()
    ct.repl.src_v4 = "198.51.100.3"
    ct.repl.l4src = 8080
    set_option(ct, SetOption.UNDO_DNAT)
    set_option(ct, SetOption.UNDO_DPAT)
    assert ct.dnat.min_ip == ipaddress.IPv4Address("198.51.100.3")
    assert ct.dnat.l4min == 8080
    assert ct.repl.src_v4 == ct.orig.dst_v4
    assert ct.repl.l4src == ct.orig.l4dst
    assert ct.is_set(Attr.DNAT_IPV4) and ct.is_set(Attr.DNAT_PORT)


def test_setup_reply_mirrors_original():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_L3PROTO, socket.AF_INET)
    set_attr(ct, Attr.ORIG_L4PROTO, socket.IPPROTO_UDP)
    set_attr(ct, Attr.ORIG_IPV4_SRC, "10.1.1.1")
    set_attr(ct, Attr.ORIG_IPV4_DST, "10.2.2.2")
    set_attr(ct, Attr.ORIG_PORT_SRC, 5353)
    set_attr(ct, Attr.ORIG_PORT_DST, 53)
    set_option(ct, SetOption.SETUP_REPLY)
    assert ct.repl.src_v4 == ct.orig.dst_v4
    assert ct.repl.dst_v4 == ct.orig.src_v4
    assert (ct.repl.l4src, ct.repl.l4dst) == (53, 5353)
    assert ct.repl.l3protonum == socket.AF_INET
    assert ct.is_set(Attr.REPL_PORT_SRC)


def test_setup_original_mirrors_reply():
    ct = Conntrack()
    ct.repl.l3protonum = socket.AF_INET6
    ct.repl.protonum = socket.IPPROTO_TCP
    ct.repl.src_v6 = "2001:db8::1"
    ct.repl.dst_v6 = "2001:db8::2"
    ct.repl.l4src = 22
    ct.repl.l4dst = 40000
    set_option(ct, SetOption.SETUP_ORIGINAL)
    assert ct.orig.src_v6 == ipaddress.IPv6Address("2001:db8::2")
    assert ct.orig.dst_v6 == ipaddress.IPv6Address("2001:db8::1")
    assert (ct.orig.l4src, ct.orig.l4dst) == (40000, 22)


def test_setup_reply_leaves_icmp_fields():
    ct = Conntrack()
    set_attr(ct, Attr.ORIG_L3PROTO, socket.AF_INET)
    set_attr(ct, Attr.ORIG_L4PROTO, socket.IPPROTO_ICMP)
    set_attr(ct, Attr.ICMP_TYPE, 8)
    set_attr(ct, Attr.ICMP_ID, 7)
    set_option(ct, SetOption.SETUP_REPLY)
    assert ct.repl.icmp_type == 0
    assert ct.repl.icmp_id == 7


def test_unknown_options_rejected():
    ct = Conntrack()
    with pytest.raises(ValueError):
        set_option(ct, 6)
    with pytest.raises(ValueError):
        get_option(ct, 4)