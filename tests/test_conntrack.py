import ipaddress

import pytest

from ctrack.attributes import Attr, Direction
from ctrack.conntrack import Conntrack, Counters, Tuple


def test_ipv4_view_reads_first_four_bytes_of_address():
    tup = Tuple()
    tup.src_v6 = "2001:db8::1"
    assert tup.src_v4.packed == tup.src_v6.packed[:4]


def test_setting_ipv4_keeps_rest_of_address():
    tup = Tuple()
    tup.src_v6 = "2001:db8::1"
    tup.src_v4 = "10.0.0.1"
    assert tup.src_v4 == ipaddress.IPv4Address("10.0.0.1")
    assert tup.src[4:] == ipaddress.IPv6Address("2001:db8::1").packed[4:]


def test_icmp_fields_share_layer4_storage():
    tup = Tuple()
    tup.icmp_type = 8
    tup.icmp_code = 3
    assert tup.icmp_type == 8
    assert tup.icmp_code == 3
    assert tup.l4dst == 0x0803
    tup.icmp_id = 4242
    assert tup.l4src == 4242


def test_icmp_type_out_of_range_rejected():
    with pytest.raises(ValueError):
        Tuple().icmp_type = 256


def test_get_reads_fields():
    ct = Conntrack()
    ct.mark = 5
    ct.orig.l4src = 1234
    ct.repl.dst_v4 = "192.168.0.2"
    ct.counters[Direction.REPL].bytes = 10
    ct.tcp_flags[Direction.ORIG] = 7
    assert ct.get(Attr.MARK) == 5
    assert ct.get(Attr.ORIG_PORT_SRC) == 1234
    assert ct.get(Attr.REPL_IPV4_DST) == ipaddress.IPv4Address("192.168.0.2")
    assert ct.get(Attr.REPL_COUNTER_BYTES) == 10
    assert ct.get(Attr.TCP_FLAGS_ORIG) == 7


def test_get_icmp_attributes_use_original_tuple():
    ct = Conntrack()
    ct.orig.icmp_type = 8
    ct.orig.icmp_id = 99
    assert ct.get(Attr.ICMP_TYPE) == 8
    assert ct.get(Attr.ICMP_ID) == 99
    assert ct.get(Attr.ICMP_CODE) == ct.orig.icmp_code


def test_get_nat_attributes_return_minimum():
    ct = Conntrack()
    ct.snat.min_ip = ipaddress.IPv4Address("1.2.3.4")
    ct.dnat.l4min = 8080
    assert ct.get(Attr.SNAT_IPV4) == ipaddress.IPv4Address("1.2.3.4")
    assert ct.get(Attr.DNAT_PORT) == 8080


def test_get_unknown_attribute_raises():
    with pytest.raises(ValueError):
        Conntrack().get(1000)


def test_set_bookkeeping():
    ct = Conntrack()
    assert not ct.is_set(Attr.MARK)
    ct.mark_set(Attr.MARK)
    ct.mark_set(int(Attr.ZONE))
    assert ct.is_set(Attr.MARK)
    assert ct.attributes() == {Attr.MARK, Attr.ZONE}
    ct.unset(Attr.MARK)
    assert ct.attributes() == {Attr.ZONE}


def test_tuple_for_directions():
    ct = Conntrack()
    assert ct.tuple_for(Direction.ORIG) is ct.orig
    assert ct.tuple_for(Direction.REPL) is ct.repl
    assert ct.tuple_for(Direction.MASTER) is ct.master


def test_default_counters_are_independent():
    ct = Conntrack()
    ct.counters[Direction.ORIG].packets = 3
    assert ct.counters[Direction.REPL] == Counters()
    assert Conntrack().counters[Direction.ORIG] == Counters()