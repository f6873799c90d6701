import struct

import pytest

from hprobe.apdformat import (
    Layer,
    LayerKind,
    data_to_apd,
    icmp_to_apd,
    igrp_to_apd,
    igrpentry_to_apd,
    ip_to_apd,
    ipopt_to_apd,
    packet_to_apd,
    tcp_to_apd,
    tcpopt_to_apd,
    udp_to_apd,
)


def ip_header(ver_ihl=0x45, tos=0x10, tot_len=48, ident=777, frag=0,
              ttl=64, proto=17, check=0xBEEF,
              saddr=bytes([192, 0, 2, 1]), daddr=bytes([192, 0, 2, 2])):
    return struct.pack("!BBHHHBBH4s4s", ver_ihl, tos, tot_len, ident, frag,
                       ttl, proto, check, saddr, daddr)


def tcp_header(sport=1234, dport=80, seq=1000, ack=0, offx2=0x50,
               flags=0x02, win=512, check=0x1234, urp=0):
    return struct.pack("!HHIIBBHHH", sport, dport, seq, ack, offx2, flags,
                       win, check, urp)


def test_ip_without_default_lists_every_field():
    out = ip_to_apd(ip_header(), None)
    assert out.startswith("ip(")
    assert out.endswith(")+")
    for piece in ("totlen=48,", "id=777,", "ttl=64,", "proto=17,",
                  "saddr=192.0.2.1,", "daddr=192.0.2.2)"):
        assert piece in out
    assert "cksum=0xbeef," in out
    assert "mf=0," in out


def test_ip_with_equal_default_omits_defaults():
    hdr = ip_header()
    out = ip_to_apd(hdr, hdr)
    assert "ihl=" not in out
    assert "ver=" not in out
    assert "ttl=" not in out
    assert "id=" not in out
    assert "totlen=48," in out


def test_ip_more_fragments_flag():
    out = ip_to_apd(ip_header(frag=0x2000), ip_header())
    assert "mf=1," in out
    assert "df=" not in out


def test_ip_truncated_header_raises():
    with pytest.raises(ValueError):
        ip_to_apd(ip_header()[:10], None)


def test_ipopt_nop_and_eol():
    assert ipopt_to_apd(b"\x01") == "ip.nop()+"
    assert ipopt_to_apd(b"\x00") == "ip.eol()+"


def test_ipopt_record_route():
    opt = bytes([7, 11, 4]) + bytes([10, 0, 0, 1]) + bytes([10, 0, 0, 2])
    assert ipopt_to_apd(opt) == "ip.rr(ptr=4,data=10.0.0.1/10.0.0.2)+"


def test_ipopt_unknown_dumps_hex():
    out = ipopt_to_apd(bytes([0x99, 3, 0xAB]))
    assert out.startswith("ip.unknown(hex=")
    assert "0xab" in out


def test_icmp_echo_has_id_and_seq():
    hdr = struct.pack("!BBHHH", 8, 0, 0, 4321, 9)
    out = icmp_to_apd(hdr)
    assert "id=4321," in out
    assert "seq=9)" in out
    assert ",)" not in out


def test_icmp_redirect_gateway():
    hdr = struct.pack("!BBH4s", 5, 1, 0, bytes([198, 51, 100, 7]))
    assert "gw=198.51.100.7" in icmp_to_apd(hdr)


def test_udp_pinned():
    hdr = struct.pack("!HHHH", 53, 1024, 8, 0)
    assert udp_to_apd(hdr) == "udp(sport=53,dport=1024,len=8,cksum=0x0000)+"


def test_tcp_flags_and_defaults():
    hdr = tcp_header(flags=0x12)
    out = tcp_to_apd(hdr, hdr)
    assert "flags=sa," in out
    assert "off=" not in out and "urp=" not in out
    assert "sport=1234," in out
    assert out.endswith(")+")


def test_tcp_without_default_shows_off():
    assert "off=5," in tcp_to_apd(tcp_header(), None)


def test_tcpopt_known_options():
    assert tcpopt_to_apd(struct.pack("!BBH", 2, 4, 1460)) == "tcp.mss(size=1460)+"
    assert tcpopt_to_apd(bytes([4, 2])) == "tcp.sackperm()+"
    ts = struct.pack("!BBII", 8, 10, 7, 9)
    assert tcpopt_to_apd(ts) == f"tcp.timestamp(val={7},ecr={9})+"


def test_tcpopt_sack_blocks_joined():
    opt = struct.pack("!BBIIII", 5, 18, 1, 2, 3, 4)
    assert tcpopt_to_apd(opt) == "tcp.sack(blocks=" + "1-2/3-4" + ")+"


def test_igrp_header_and_entry():
    hdr = struct.pack("!BBHHHHH", 0x11, 3, 100, 1, 2, 3, 0)
    out = igrp_to_apd(hdr)
    assert "opcode=update," in out
    assert "autosys=100," in out
    entry = bytes([10, 1, 2]) + (5).to_bytes(3, "big") + (6).to_bytes(3, "big") \
        + (1500).to_bytes(2, "big") + bytes([255, 1, 0])
    eout = igrpentry_to_apd(entry)
    assert "dest=10.1.2," in eout
    assert "mtu=1500," in eout


def test_data_hex_and_escape():
    raw = bytes([0, 255, 65])
    assert data_to_apd(raw, True) == "data(hex=" + raw.hex() + ")+"
    out = data_to_apd(b"a(b", False)
    inner = out[len("data(str="):-2]
    assert "(" not in inner
    assert inner.startswith("a") and inner.endswith("b")


def test_packet_joins_layers_and_drops_last_plus():
    ip = ip_header()
    udp = struct.pack("!HHHH", 1, 2, 8, 0)
    layers = [
        Layer(LayerKind.IP, ip),
        Layer(LayerKind.UDP, udp),
        Layer(LayerKind.DATA, b"hi"),
    ]
    expected = ip_to_apd(ip, None) + udp_to_apd(udp) + data_to_apd(b"hi", False)
    assert packet_to_apd(layers, False) == expected[:-1]
    assert not packet_to_apd(layers, False).endswith("+")