"""Rendering of packet layers as APD text descriptions."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

IP_HEADER_SIZE = 20
ICMP_HEADER_SIZE = 8
UDP_HEADER_SIZE = 8
TCP_HEADER_SIZE = 20
IGRP_HEADER_SIZE = 12
IGRP_ENTRY_SIZE = 14

IP_RF = 0x8000
IP_DF = 0x4000
IP_MF = 0x2000

IPOPT_EOL = 0
IPOPT_NOP = 1
IPOPT_RR = 7
IPOPT_TIMESTAMP = 68
IPOPT_LSRR = 131
IPOPT_SSRR = 137

IPOPT_TS_TSONLY = 0
IPOPT_TS_TSANDADDR = 1
IPOPT_TS_PRESPEC = 3

ICMP_ECHOREPLY = 0
ICMP_DEST_UNREACH = 3
ICMP_SOURCE_QUENCH = 4
ICMP_REDIRECT = 5
ICMP_ECHO = 8
ICMP_TIME_EXCEEDED = 11
ICMP_PARAMETERPROB = 12
ICMP_TIMESTAMP = 13
ICMP_TIMESTAMPREPLY = 14
ICMP_INFO_REQUEST = 15
ICMP_INFO_REPLY = 16

TCPOPT_EOL = 0
TCPOPT_NOP = 1
TCPOPT_MAXSEG = 2
TCPOPT_WINDOW = 3
TCPOPT_SACK_PERM = 4
TCPOPT_SACK = 5
TCPOPT_ECHOREQUEST = 6
TCPOPT_ECHOREPLY = 7
TCPOPT_TIMESTAMP = 8

IGRP_OPCODE_UPDATE = 1
IGRP_OPCODE_REQUEST = 2

_TCP_FLAG_LETTERS = (
    (0x01, "f"),
    (0x02, "s"),
    (0x04, "r"),
    (0x08, "p"),
    (0x10, "a"),
    (0x20, "u"),
    (0x40, "x"),
    (0x80, "y"),
)

_ROUTE_NAMES = {IPOPT_RR: "rr", IPOPT_LSRR: "lsrr", IPOPT_SSRR: "ssrr"}
_TS_FLAG_NAMES = {
    IPOPT_TS_TSONLY: "tsonly",
    IPOPT_TS_TSANDADDR: "tsandaddr",
    IPOPT_TS_PRESPEC: "prespec",
}
_DATA_SPECIALS = frozenset(b"()+,=")


class LayerKind(enum.Enum):
    """Kinds of packet layer that can be described."""

    IP = "ip"
    IPOPT = "ipopt"
    ICMP = "icmp"
    UDP = "udp"
    TCP = "tcp"
    TCPOPT = "tcpopt"
    IGRP = "igrp"
    IGRPENTRY = "igrpentry"
    DATA = "data"


@dataclass(frozen=True)
class Layer:
    """One layer of a packet: its kind, wire bytes and optional default header."""

    kind: LayerKind
    data: bytes
    default: bytes | None = None


def _need(data, size: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) < size:
        raise ValueError(f"{what} needs at least {size} bytes, got {len(data)}")
    return data


def _dotted(octets: bytes) -> str:
    return ".".join(str(octet) for octet in octets)


def _u32(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 4], "big")


def _u24(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 3], "big")


@dataclass(frozen=True)
class _Ip:
    version: int
    ihl: int
    tos: int
    tot_len: int
    ident: int
    frag_off: int
    ttl: int
    protocol: int
    check: int
    saddr: bytes
    daddr: bytes

    @classmethod
    def parse(cls, data: bytes) -> "_Ip":
        (ver_ihl, tos, tot_len, ident, frag_off, ttl, protocol, check,
         saddr, daddr) = struct.unpack("!BBHHHBBH4s4s", data[:IP_HEADER_SIZE])
        return cls(ver_ihl >> 4, ver_ihl & 0xF, tos, tot_len, ident, frag_off,
                   ttl, protocol, check, saddr, daddr)


def ip_to_apd(header, default=None) -> str:
    """Describe an IP header; fields equal to the default header are omitted."""
    ip = _Ip.parse(_need(header, IP_HEADER_SIZE, "IP header"))
    base = None
    if default is not None:
        base = _Ip.parse(_need(default, IP_HEADER_SIZE, "default IP header"))

    def differs(value) -> bool:
        return base is None or value(ip) != value(base)

    items = []
    if differs(lambda h: h.ihl):
        items.append(f"ihl=0x{ip.ihl:x}")
    if differs(lambda h: h.version):
        items.append(f"ver=0x{ip.version:x}")
    if differs(lambda h: h.tos):
        items.append(f"tos=0x{ip.tos:02x}")
    items.append(f"totlen={ip.tot_len}")
    if differs(lambda h: h.ident):
        items.append(f"id={ip.ident}")
    items.append(f"fragoff={(ip.frag_off & 0x1FFF) << 3}")
    for name, mask in (("mf", IP_MF), ("df", IP_DF), ("rf", IP_RF)):
        if differs(lambda h, mask=mask: h.frag_off & mask):
            items.append(f"{name}={int(bool(ip.frag_off & mask))}")
    if differs(lambda h: h.ttl):
        items.append(f"ttl={ip.ttl}")
    items.append(f"proto={ip.protocol}")
    items.append(f"cksum=0x{ip.check:04x}")
    items.append(f"saddr={_dotted(ip.saddr)}")
    items.append(f"daddr={_dotted(ip.daddr)}")
    return "ip(" + ",".join(items) + ")+"


def ipopt_to_apd(data) -> str:
    """Describe one IP option given its bytes, starting at the kind byte."""
    data = _need(data, 1, "IP option")
    kind = data[0]
    if kind == IPOPT_EOL:
        return "ip.eol()+"
    if kind == IPOPT_NOP:
        return "ip.nop()+"
    data = _need(data, 2, "IP option")
    optlen = data[1]
    if kind in _ROUTE_NAMES:
        data = _need(data, max(optlen, 3), "IP route option")
        addresses = []
        ptr = 4
        while ptr <= 37 and ptr <= optlen - 3:
            addresses.append(_dotted(data[ptr - 1:ptr + 3]))
            ptr += 4
        return (f"ip.{_ROUTE_NAMES[kind]}(ptr={data[2]},data="
                + "/".join(addresses) + ")+")
    if kind == IPOPT_TIMESTAMP:
        data = _need(data, max(optlen, 4), "IP timestamp option")
        overflow = (data[3] & 0xF0) >> 4
        flags = data[3] & 0xF
        flag_text = _TS_FLAG_NAMES.get(flags, str(flags))
        stamps = []
        ptr = 5
        while ptr <= 37 and ptr <= optlen - 4:
            if flags not in (IPOPT_TS_TSANDADDR, IPOPT_TS_PRESPEC):
                stamps.append(str(_u32(data, ptr - 1)))
                ptr += 4
            else:
                _need(data, ptr + 7, "IP timestamp option")
                address = _dotted(data[ptr - 1:ptr + 3])
                stamps.append(f"{_u32(data, ptr + 3)}@{address}")
                ptr += 8
        return (f"ip.ts(ptr={data[2]},flags={flag_text},overflow={overflow},data="
                + "/".join(stamps) + ")+")
    data = _need(data, optlen, "IP option")
    return "ip.unknown(hex=" + "".join(f"0x{b:02x}" for b in data[:optlen]) + ")+"


def icmp_to_apd(header) -> str:
    """Describe an ICMP header."""
    icmp = _need(header, ICMP_HEADER_SIZE, "ICMP header")
    icmp_type, code = icmp[0], icmp[1]
    items = [f"type={icmp_type}", f"code={code}"]
    if icmp_type in (ICMP_DEST_UNREACH, ICMP_TIME_EXCEEDED,
                     ICMP_PARAMETERPROB, ICMP_SOURCE_QUENCH):
        items.append(f"unused={_u32(icmp, 4)}")
    if icmp_type in (ICMP_ECHOREPLY, ICMP_ECHO, ICMP_TIMESTAMP,
                     ICMP_TIMESTAMPREPLY, ICMP_INFO_REQUEST, ICMP_INFO_REPLY):
        ident, sequence = struct.unpack("!HH", icmp[4:8])
        items.append(f"id={ident}")
        items.append(f"seq={sequence}")
    if icmp_type == ICMP_REDIRECT:
        items.append(f"gw={_dotted(icmp[4:8])}")
    return "icmp(" + ",".join(items) + ")+"


def udp_to_apd(header) -> str:
    """Describe a UDP header."""
    udp = _need(header, UDP_HEADER_SIZE, "UDP header")
    sport, dport, length, checksum = struct.unpack("!HHHH", udp[:8])
    return f"udp(sport={sport},dport={dport},len={length},cksum=0x{checksum:04x})+"


def tcp_to_apd(header, default=None) -> str:
    """Describe a TCP header; x2, off and urp equal to the default are omitted."""
    fmt = "!HHIIBBHHH"
    tcp = struct.unpack(fmt, _need(header, TCP_HEADER_SIZE, "TCP header")[:20])
    base = None
    if default is not None:
        base = struct.unpack(fmt, _need(default, TCP_HEADER_SIZE,
                                        "default TCP header")[:20])
    sport, dport, seq, ack, offx2, flags, win, checksum, urp = tcp
    items = [f"sport={sport}", f"dport={dport}", f"seq={seq}", f"ack={ack}"]
    if base is None or (offx2 & 0xF) != (base[4] & 0xF):
        items.append(f"x2=0x{offx2 & 0xF:x}")
    if base is None or (offx2 >> 4) != (base[4] >> 4):
        items.append(f"off={offx2 >> 4}")
    letters = "".join(letter for bit, letter in _TCP_FLAG_LETTERS if flags & bit)
    items.append(f"flags={letters}")
    items.append(f"win={win}")
    items.append(f"cksum=0x{checksum:04x}")
    if base is None or urp != base[8]:
        items.append(f"urp={urp}")
    return "tcp(" + ",".join(items) + ")+"


def tcpopt_to_apd(data) -> str:
    """Describe one TCP option given its bytes, starting at the kind byte."""
    data = _need(data, 1, "TCP option")
    kind = data[0]
    if kind == TCPOPT_EOL:
        return "tcp.eol()+"
    if kind == TCPOPT_NOP:
        return "tcp.nop()+"
    data = _need(data, 2, "TCP option")
    optlen = data[1]
    if kind == TCPOPT_MAXSEG:
        data = _need(data, 4, "TCP mss option")
        return f"tcp.mss(size={int.from_bytes(data[2:4], 'big')})+"
    if kind == TCPOPT_WINDOW:
        data = _need(data, 3, "TCP window scale option")
        return f"tcp.wscale(shift={data[2]})+"
    if kind == TCPOPT_SACK_PERM:
        return "tcp.sackperm()+"
    if kind == TCPOPT_SACK:
        blocks = max(optlen - 2, 0) // 8
        data = _need(data, 2 + 8 * blocks, "TCP sack option")
        ranges = [
            f"{_u32(data, 2 + 8 * n)}-{_u32(data, 6 + 8 * n)}"
            for n in range(blocks)
        ]
        return "tcp.sack(blocks=" + "/".join(ranges) + ")+"
    if kind == TCPOPT_ECHOREQUEST:
        data = _need(data, 6, "TCP echo option")
        return f"tcp.echoreq(info={_u32(data, 2)})+"
    if kind == TCPOPT_ECHOREPLY:
        data = _need(data, 6, "TCP echo option")
        return f"tcp.echoreply(info={_u32(data, 2)})+"
    if kind == TCPOPT_TIMESTAMP:
        data = _need(data, 10, "TCP timestamp option")
        return f"tcp.timestamp(val={_u32(data, 2)},ecr={_u32(data, 6)})+"
    data = _need(data, optlen, "TCP option")
    return "tcp.unknown(hex=" + data[:optlen].hex() + ")+"


def igrp_to_apd(header) -> str:
    """Describe an IGRP header."""
    igrp = _need(header, IGRP_HEADER_SIZE, "IGRP header")
    version, opcode = igrp[0] >> 4, igrp[0] & 0xF
    autosys, interior, system, exterior, checksum = struct.unpack("!HHHHH", igrp[2:12])
    if opcode == IGRP_OPCODE_UPDATE:
        opname = "update"
    elif opcode == IGRP_OPCODE_REQUEST:
        opname = "request"
    else:
        opname = str(opcode)
    return (f"igrp(version={version},opcode={opname},edition={igrp[1]},"
            f"autosys={autosys},interior={interior},system={system},"
            f"exterior={exterior},cksum=0x{checksum:04x})+")


def igrpentry_to_apd(entry) -> str:
    """Describe one IGRP routing entry."""
    data = _need(entry, IGRP_ENTRY_SIZE, "IGRP entry")
    return (f"igrp.entry(dest={_dotted(data[0:3])},delay={_u24(data, 3)},"
            f"bandwidth={_u24(data, 6)},mtu={int.from_bytes(data[9:11], 'big')},"
            f"reliability={data[11]},load={data[12]},hopcount={data[13]})+")


def data_to_apd(data, hexdata=False) -> str:
    """Describe payload bytes, as hex or as an escaped string."""
    data = bytes(data)
    if hexdata:
        return "data(hex=" + data.hex() + ")+"
    text = "".join(
        chr(byte) if 0x21 <= byte <= 0x7E and byte not in _DATA_SPECIALS
        else f"\\{byte:02x}"
        for byte in data
    )
    return "data(str=" + text + ")+"


def _layer_to_apd(layer: Layer, hexdata: bool) -> str:
    match layer.kind:
        case LayerKind.IP:
            return ip_to_apd(layer.data, layer.default)
        case LayerKind.IPOPT:
            return ipopt_to_apd(layer.data)
        case LayerKind.ICMP:
            return icmp_to_apd(layer.data)
        case LayerKind.UDP:
            return udp_to_apd(layer.data)
        case LayerKind.TCP:
            return tcp_to_apd(layer.data, layer.default)
        case LayerKind.TCPOPT:
            return tcpopt_to_apd(layer.data)
        case LayerKind.IGRP:
            return igrp_to_apd(layer.data)
        case LayerKind.IGRPENTRY:
            return igrpentry_to_apd(layer.data)
        case LayerKind.DATA:
            return data_to_apd(layer.data, hexdata)
    raise ValueError(f"unknown layer kind: {layer.kind!r}")


def packet_to_apd(layers, hexdata=False) -> str:
    """Describe a whole packet; layer descriptions are joined by '+'."""
    text = "".join(_layer_to_apd(layer, hexdata) for layer in layers)
    return text[:-1]