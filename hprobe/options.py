"""Command-line option parsing for the packet prober."""

from __future__ import annotations

import enum
import os
import socket
from dataclasses import dataclass, field

IPHDR_SIZE = 20
TCPHDR_SIZE = 20
MAX_NAME_LEN = 1023
MAX_SIGN_LEN = 1024
MAX_ROUTE_ADDRESSES = 62
LSRR_KIND = 131
SSRR_KIND = 137

DEFAULT_COUNT = -1
DEFAULT_SENDINGWAIT = 1
DEFAULT_DPORT = 0
DEFAULT_INITSPORT = -1
DEFAULT_SRCWINSIZE = 512
DEFAULT_TTL = 64
DEFAULT_TRACEROUTE_TTL = 1
DEFAULT_ICMP_TYPE = 8
DEFAULT_ICMP_CODE = 0
DEFAULT_VIRTUAL_MTU = 16
DEFAULT_ICMP_IP_VERSION = 4
DEFAULT_ICMP_IP_IHL = IPHDR_SIZE >> 2
DEFAULT_ICMP_IP_TOS = 0
DEFAULT_ICMP_IP_TOT_LEN = 0
DEFAULT_ICMP_IP_ID = 0
DEFAULT_ICMP_IP_PROTOCOL = 6
DEFAULT_ICMP_CKSUM = -1
DEFAULT_RAW_IP_PROTOCOL = 6
DEFAULT_CS_WINDOW = 300
DEFAULT_CS_WINDOW_SHIFT = 5
DEFAULT_CS_VECTOR_LEN = 10

_U32 = 0xFFFFFFFF
_SPACE = " \t\n\v\f\r"
_HEX = "0123456789abcdefABCDEF"


class OptionError(ValueError):
    """Raised for an invalid command line."""


class Bind(enum.IntEnum):
    """What the suspend key changes while probing."""

    NONE = 0
    DPORT = 1
    TTL = 2


class TcpFlag(enum.IntFlag):
    """TCP header flag bits."""

    FIN = 0x01
    SYN = 0x02
    RST = 0x04
    PUSH = 0x08
    ACK = 0x10
    URG = 0x20
    X = 0x40
    Y = 0x80


@dataclass
class Options:
    """Settings gathered from the command line."""

    target: str = ""
    count: int = DEFAULT_COUNT
    sending_wait: int = DEFAULT_SENDINGWAIT
    wait_in_usec: bool = False
    usec_delay: int = 0
    numeric: bool = False
    gethost: bool = True
    quiet: bool = False
    interface: str = ""
    incdport: bool = False
    force_incdport: bool = False
    base_dst_port: int = DEFAULT_DPORT
    dst_port: int = DEFAULT_DPORT
    initsport: int = DEFAULT_INITSPORT
    src_ttl: int = DEFAULT_TTL
    src_id: int = -1
    src_winsize: int = DEFAULT_SRCWINSIZE
    spoofaddr: str = ""
    tcp_flags: TcpFlag = TcpFlag(0)
    fragment: bool = False
    mf: bool = False
    df: bool = False
    ip_frag_offset: int = 0
    src_thoff: int = TCPHDR_SIZE >> 2
    relid: bool = False
    data_size: int = 0
    rawip: bool = False
    icmp: bool = False
    icmptype: int = DEFAULT_ICMP_TYPE
    icmpcode: int = DEFAULT_ICMP_CODE
    udp: bool = False
    scan: bool = False
    scan_ports: str = ""
    listen: bool = False
    sign: str = ""
    sign_len: int = 0
    raw_ip_protocol: int = DEFAULT_RAW_IP_PROTOCOL
    bind: Bind = Bind.DPORT
    debug: bool = False
    verbose: bool = False
    winid_order: bool = False
    keep_still: bool = False
    data_from_file: bool = False
    data_filename: str = ""
    hexdump: bool = False
    contdump: bool = False
    safe: bool = False
    end: bool = False
    traceroute: bool = False
    ip_tos: int = 0
    virtual_mtu: int = DEFAULT_VIRTUAL_MTU
    seqnum: bool = False
    badcksum: bool = False
    set_seqnum: bool = False
    tcp_seqnum: int = 0
    set_ack: bool = False
    tcp_ack: int = 0
    rroute: bool = False
    icmp_ip_version: int = DEFAULT_ICMP_IP_VERSION
    icmp_ip_ihl: int = DEFAULT_ICMP_IP_IHL
    icmp_ip_tos: int = DEFAULT_ICMP_IP_TOS
    icmp_ip_tot_len: int = DEFAULT_ICMP_IP_TOT_LEN
    icmp_ip_id: int = DEFAULT_ICMP_IP_ID
    icmp_ip_protocol: int = DEFAULT_ICMP_IP_PROTOCOL
    icmp_ip_srcip: str = ""
    icmp_ip_dstip: str = ""
    icmp_gwip: str = ""
    icmp_ip_srcport: int = DEFAULT_DPORT
    icmp_ip_dstport: int = DEFAULT_DPORT
    force_icmp: bool = False
    icmp_cksum: int = DEFAULT_ICMP_CKSUM
    tcpexitcode: bool = False
    tr_keep_ttl: bool = False
    tcp_timestamp: bool = False
    tr_stop: bool = False
    tr_no_rtt: bool = False
    rand_dest: bool = False
    rand_source: bool = False
    lsrr: bool = False
    lsr: bytes = b""
    ssrr: bool = False
    ssr: bytes = b""
    beep: bool = False
    flood: bool = False
    clock_skew: bool = False
    cs_window: int = DEFAULT_CS_WINDOW
    cs_window_shift: int = DEFAULT_CS_WINDOW_SHIFT
    cs_vector_len: int = DEFAULT_CS_VECTOR_LEN
    requests: list[str] = field(default_factory=list)
    apd_packets: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Spec:
    short: str
    long: str
    needs_arg: bool
    setuid_disabled: bool


def _spec(short, long, needs_arg, setuid_disabled=False):
    return _Spec(short, long, needs_arg, setuid_disabled)


_SPECS = (
    _spec("c", "count", True),
    _spec("i", "interval", True, True),
    _spec("n", "numeric", False),
    _spec("q", "quiet", False),
    _spec("I", "interface", True),
    _spec("h", "help", False),
    _spec("v", "version", False),
    _spec("p", "destport", True, True),
    _spec("s", "baseport", True, True),
    _spec("t", "ttl", True),
    _spec("N", "id", True, True),
    _spec("w", "win", True, True),
    _spec("a", "spoof", True, True),
    _spec("F", "fin", False, True),
    _spec("S", "syn", False, True),
    _spec("R", "rst", False, True),
    _spec("P", "push", False, True),
    _spec("A", "ack", False, True),
    _spec("U", "urg", False, True),
    _spec("X", "xmas", False, True),
    _spec("Y", "ymas", False, True),
    _spec("f", "frag", False, True),
    _spec("x", "morefrag", False, True),
    _spec("y", "dontfrag", False),
    _spec("g", "fragoff", True, True),
    _spec("O", "tcpoff", True, True),
    _spec("r", "rel", False),
    _spec("d", "data", True, True),
    _spec("0", "rawip", False, True),
    _spec("1", "icmp", False),
    _spec("2", "udp", False),
    _spec("8", "scan", True),
    _spec("z", "bind", False),
    _spec("Z", "unbind", False),
    _spec("D", "debug", False),
    _spec("V", "verbose", False),
    _spec("W", "winid", False),
    _spec("k", "keep", False),
    _spec("E", "file", True, True),
    _spec("j", "dump", False, True),
    _spec("J", "print", False, True),
    _spec("e", "sign", True, True),
    _spec("9", "listen", True, True),
    _spec("B", "safe", False, True),
    _spec("T", "traceroute", False),
    _spec("o", "tos", True),
    _spec("m", "mtu", True, True),
    _spec("Q", "seqnum", False, True),
    _spec("b", "badcksum", False, True),
    _spec("M", "setseq", True, True),
    _spec("L", "setack", True, True),
    _spec("C", "icmptype", True, True),
    _spec("K", "icmpcode", True, True),
    _spec("u", "end", False, True),
    _spec("G", "rroute", False),
    _spec("H", "ipproto", True, True),
    _spec("", "icmp-help", False),
    _spec("", "icmp-ipver", True, True),
    _spec("", "icmp-iphlen", True, True),
    _spec("", "icmp-iplen", True, True),
    _spec("", "icmp-ipid", True, True),
    _spec("", "icmp-ipproto", True, True),
    _spec("", "icmp-cksum", True, True),
    _spec("", "icmp-ts", False),
    _spec("", "icmp-addr", False),
    _spec("", "tcpexitcode", False),
    _spec("", "fast", False, True),
    _spec("", "faster", False, True),
    _spec("", "tr-keep-ttl", False),
    _spec("", "tcp-timestamp", False),
    _spec("", "tr-stop", False),
    _spec("", "tr-no-rtt", False),
    _spec("", "rand-dest", False),
    _spec("", "rand-source", False),
    _spec("", "lsrr", True, True),
    _spec("", "ssrr", True, True),
    _spec("", "route-help", False),
    _spec("", "apd-send", True),
    _spec("", "icmp-ipsrc", True, True),
    _spec("", "icmp-ipdst", True, True),
    _spec("", "icmp-gw", True, True),
    _spec("", "icmp-srcport", True, True),
    _spec("", "icmp-dstport", True, True),
    _spec("", "force-icmp", False),
    _spec("", "beep", False),
    _spec("", "flood", False),
    _spec("", "clock-skew", False),
    _spec("", "clock-skew-win", True),
    _spec("", "clock-skew-win-shift", True),
    _spec("", "clock-skew-packets-per-sample", True),
)

_BY_SHORT = {spec.short: spec for spec in _SPECS if spec.short}
_BY_LONG = {spec.long: spec for spec in _SPECS}

_FLAG_OPTIONS = {
    "fin": TcpFlag.FIN,
    "syn": TcpFlag.SYN,
    "rst": TcpFlag.RST,
    "push": TcpFlag.PUSH,
    "ack": TcpFlag.ACK,
    "urg": TcpFlag.URG,
    "xmas": TcpFlag.X,
    "ymas": TcpFlag.Y,
}

_BOOLEAN_OPTIONS = {
    "numeric": "numeric",
    "quiet": "quiet",
    "frag": "fragment",
    "morefrag": "mf",
    "dontfrag": "df",
    "rel": "relid",
    "rawip": "rawip",
    "icmp": "icmp",
    "udp": "udp",
    "debug": "debug",
    "verbose": "verbose",
    "winid": "winid_order",
    "keep": "keep_still",
    "dump": "hexdump",
    "print": "contdump",
    "safe": "safe",
    "end": "end",
    "traceroute": "traceroute",
    "seqnum": "seqnum",
    "badcksum": "badcksum",
    "rroute": "rroute",
    "force-icmp": "force_icmp",
    "tcpexitcode": "tcpexitcode",
    "tr-keep-ttl": "tr_keep_ttl",
    "tcp-timestamp": "tcp_timestamp",
    "tr-stop": "tr_stop",
    "tr-no-rtt": "tr_no_rtt",
    "rand-dest": "rand_dest",
    "rand-source": "rand_source",
    "beep": "beep",
    "flood": "flood",
}

_INT_OPTIONS = {
    "count": "count",
    "baseport": "initsport",
    "id": "src_id",
    "win": "src_winsize",
    "fragoff": "ip_frag_offset",
    "tcpoff": "src_thoff",
    "ipproto": "raw_ip_protocol",
    "icmp-ipver": "icmp_ip_version",
    "icmp-iphlen": "icmp_ip_ihl",
    "icmp-iplen": "icmp_ip_tot_len",
    "icmp-ipid": "icmp_ip_id",
    "icmp-ipproto": "icmp_ip_protocol",
    "icmp-srcport": "icmp_ip_srcport",
    "icmp-dstport": "icmp_ip_dstport",
    "icmp-cksum": "icmp_cksum",
}

_TEXT_OPTIONS = {
    "interface": "interface",
    "spoof": "spoofaddr",
    "icmp-ipsrc": "icmp_ip_srcip",
    "icmp-ipdst": "icmp_ip_dstip",
    "icmp-gw": "icmp_gwip",
}

_REQUESTS = {
    "help": "help",
    "version": "version",
    "icmp-help": "icmp-help",
    "route-help": "route-help",
}


def _strtol(text: str, base: int = 0) -> int:
    """Read the leading integer of text the way C's strtol does; 0 if none."""
    s = text.lstrip(_SPACE)
    negative = False
    if s[:1] in ("+", "-"):
        negative = s[0] == "-"
        s = s[1:]
    if base == 0:
        if s[:2].lower() == "0x" and s[2:3] and s[2] in _HEX:
            base, s = 16, s[2:]
        elif s.startswith("0"):
            base = 8
        else:
            base = 10
    elif base == 16 and s[:2].lower() == "0x" and s[2:3] and s[2] in _HEX:
        s = s[2:]
    value = 0
    for char in s:
        if not char.isascii() or not char.isalnum():
            break
        digit = int(char, 36)
        if digit >= base:
            break
        value = value * base + digit
    return -value if negative else value


def _strtoul32(text: str) -> int:
    return _strtol(text) & _U32


def _scan_hex2(text: str) -> int | None:
    """Read at most two characters of hex number; None if nothing matched."""
    chunk = text.lstrip(_SPACE)[:2]
    negative = False
    if chunk[:1] in ("+", "-"):
        negative = chunk[0] == "-"
        chunk = chunk[1:]
    digits = ""
    for char in chunk:
        if char not in _HEX:
            break
        digits += char
    if not digits:
        return None
    value = int(digits, 16)
    return (-value if negative else value) & _U32


def _cstr(text: str) -> str:
    return text[:MAX_NAME_LEN]


def parse_route(text: str) -> bytes:
    """Parse a source route such as "[ptr:]addr/addr/..." into option bytes.

    The result is the IP option without its kind byte: the length byte
    (which counts the kind byte too), the pointer byte and the addresses.
    Without an explicit pointer it is 8 when addresses are given, else 4.
    """
    addresses = []
    pointer = None
    i = 0
    end = len(text)
    while i < end:
        j = i
        while j < end and text[j].isascii() and (text[j].isalnum() or text[j] == "."):
            j += 1
        stop = text[j] if j < end else ""
        if stop in ("", "/"):
            if len(addresses) >= MAX_ROUTE_ADDRESSES:
                raise OptionError("too long route")
            try:
                addresses.append(socket.inet_aton(text[i:j]))
            except (OSError, ValueError) as exc:
                raise OptionError("invalid IP address in route") from exc
            if stop == "/":
                j += 1
        elif stop == ":":
            prefix = text[:j]
            if i != 0 or not 0 < j < 4 or not prefix.isdigit() or not prefix.isascii():
                raise OptionError("invalid route syntax")
            value = int(prefix)
            if value >= 256:
                raise OptionError("invalid route syntax")
            pointer = value
            j += 1
        else:
            raise OptionError("invalid route syntax")
        i = j
    if pointer is None:
        pointer = 8 if addresses else 4
    length = 4 * len(addresses) + 3
    return bytes((length, pointer)) + b"".join(addresses)


def _setuid() -> bool:
    getuid = getattr(os, "getuid", None)
    geteuid = getattr(os, "geteuid", None)
    if getuid is None or geteuid is None:
        return False
    return getuid() != geteuid()


def _lookup_long(name: str) -> _Spec:
    spec = _BY_LONG.get(name)
    if spec is not None:
        return spec
    candidates = [spec for spec in _SPECS if name and spec.long.startswith(name)]
    if not candidates:
        raise OptionError(f"unrecognized option '--{name}'")
    if len(candidates) > 1:
        raise OptionError(f"option '--{name}' is ambiguous")
    return candidates[0]


def _tokens(argv: list[str]) -> list[tuple[_Spec | None, str | None]]:
    """Split argv into (option, argument) pairs; positionals have no option."""
    result: list[tuple[_Spec | None, str | None]] = []
    args = iter(argv)
    for arg in args:
        if arg == "--":
            result.extend((None, rest) for rest in args)
            break
        if arg.startswith("--"):
            name, eq, value = arg[2:].partition("=")
            spec = _lookup_long(name)
            if spec.needs_arg:
                if not eq:
                    value = next(args, None)
                    if value is None:
                        raise OptionError(f"option '--{spec.long}' requires an argument")
                result.append((spec, value))
            else:
                if eq:
                    raise OptionError(f"option '--{spec.long}' doesn't allow an argument")
                result.append((spec, None))
        elif arg.startswith("-") and len(arg) > 1:
            for pos, char in enumerate(arg[1:], start=1):
                spec = _BY_SHORT.get(char)
                if spec is None:
                    raise OptionError(f"invalid option -- '{char}'")
                if not spec.needs_arg:
                    result.append((spec, None))
                    continue
                value = arg[pos + 1:]
                if not value:
                    value = next(args, None)
                    if value is None:
                        raise OptionError(f"option requires an argument -- '{char}'")
                result.append((spec, value))
                break
        else:
            result.append((None, arg))
    return result


class _State:
    def __init__(self) -> None:
        self.options = Options()
        self.ttl_set = False
        self.delay_changed = False
        self.tos_last = 0


def _set_usec(opts: Options, usec: int) -> None:
    opts.wait_in_usec = True
    opts.usec_delay = usec


def _apply(state: _State, name: str, arg: str | None) -> None:
    opts = state.options
    if name in _FLAG_OPTIONS:
        opts.tcp_flags |= _FLAG_OPTIONS[name]
        return
    if name in _BOOLEAN_OPTIONS:
        setattr(opts, _BOOLEAN_OPTIONS[name], True)
        return
    if name in _REQUESTS:
        opts.requests.append(_REQUESTS[name])
        return
    assert arg is not None or not _BY_LONG[name].needs_arg
    if name in _INT_OPTIONS:
        setattr(opts, _INT_OPTIONS[name], _strtol(arg))
        return
    if name in _TEXT_OPTIONS:
        setattr(opts, _TEXT_OPTIONS[name], _cstr(arg))
        return
    match name:
        case "interval":
            state.delay_changed = True
            if arg.startswith("u"):
                _set_usec(opts, _strtol(arg[1:], 10))
            else:
                opts.sending_wait = _strtol(arg)
        case "destport":
            if arg.startswith("+"):
                opts.incdport = True
                arg = arg[1:]
            if arg.startswith("+"):
                opts.force_incdport = True
                arg = arg[1:]
            opts.base_dst_port = opts.dst_port = _strtol(arg)
        case "ttl":
            opts.src_ttl = _strtol(arg)
            state.ttl_set = True
        case "data":
            opts.data_size = _strtol(arg) & 0xFFFF
        case "icmp-ts":
            opts.icmp = True
            opts.icmptype = 13
        case "icmp-addr":
            opts.icmp = True
            opts.icmptype = 17
        case "scan":
            opts.scan = True
            opts.scan_ports = arg
        case "listen" | "sign":
            if name == "listen":
                opts.listen = True
            else:
                opts.sign = True if False else opts.sign
            opts.sign = _cstr(arg)
            opts.sign_len = len(arg)
            if name == "sign":
                state.signing = True
        case "icmptype":
            opts.icmp = True
            opts.icmptype = _strtol(arg)
        case "icmpcode":
            opts.icmp = True
            opts.icmpcode = _strtol(arg)
        case "bind":
            opts.bind = Bind.TTL
        case "unbind":
            opts.bind = Bind.NONE
        case "file":
            opts.data_from_file = True
            opts.data_filename = _cstr(arg)
        case "tos":
            if arg == "help":
                opts.requests.append("tos-help")
            else:
                value = _scan_hex2(arg)
                if value is not None:
                    state.tos_last = value
                opts.ip_tos |= state.tos_last
        case "mtu":
            opts.fragment = True
            mtu = _strtol(arg) & _U32
            if mtu > 65535:
                mtu = 65535
                opts.warnings.append("Specified MTU too high, fixed to 65535.")
            opts.virtual_mtu = mtu
        case "setseq":
            opts.set_seqnum = True
            opts.tcp_seqnum = _strtoul32(arg)
        case "setack":
            opts.set_ack = True
            opts.tcp_ack = _strtoul32(arg)
        case "fast":
            state.delay_changed = True
            _set_usec(opts, 100000)
        case "faster":
            state.delay_changed = True
            _set_usec(opts, 1)
            # Selecting the fastest rate also keeps the traceroute TTL.
            opts.tr_keep_ttl = True
        case "lsrr":
            opts.lsrr = True
            body = parse_route(arg)
            if opts.lsr:
                opts.warnings.append("Warning: erasing previously given loose source route")
            opts.lsr = bytes((LSRR_KIND,)) + body
        case "ssrr":
            opts.ssrr = True
            body = parse_route(arg)
            if opts.ssr:
                opts.warnings.append("Warning: erasing previously given strong source route")
            opts.ssr = bytes((SSRR_KIND,)) + body
        case "apd-send":
            opts.apd_packets.append(arg)
        case "clock-skew":
            opts.tcp_timestamp = True
            opts.clock_skew = True
        case "clock-skew-win":
            opts.cs_window = _strtol(arg)
            if opts.cs_window < 30:
                raise OptionError("clock skew window can't be < 30 sec.")
        case "clock-skew-win-shift":
            opts.cs_window_shift = _strtol(arg)
            if opts.cs_window_shift < 1:
                raise OptionError("clock skew window shift can't be < 1")
        case "clock-skew-packets-per-sample":
            opts.cs_vector_len = _strtol(arg)
            if opts.cs_vector_len < 1:
                raise OptionError("clock skew packets per sample can't be < 1")
        case _:
            raise OptionError(f"unhandled option '--{name}'")


def _validate(state: _State, target_set: bool) -> None:
    opts = state.options
    signing = getattr(state, "signing", False)
    if not target_set and opts.listen and opts.safe:
        raise OptionError(
            "you must specify a target host if you require safe protocol\n"
            "because hping needs a target for HCMP packets"
        )
    if not target_set and not opts.listen:
        raise OptionError("missing host argument")
    if opts.numeric:
        opts.gethost = False
    if opts.data_size + IPHDR_SIZE + TCPHDR_SIZE > 65535:
        raise OptionError(
            f"sorry, data size must be <= {65535 - IPHDR_SIZE + TCPHDR_SIZE}"
        )
    if opts.count <= 0 and opts.count != -1:
        raise OptionError("count must > 0")
    if opts.sending_wait < 0:
        raise OptionError("bad timing interval")
    if opts.wait_in_usec and opts.usec_delay < 0:
        raise OptionError("bad timing interval")
    if opts.data_from_file and opts.data_size == 0:
        raise OptionError("-E option useless without -d")
    if signing and opts.data_size and opts.sign_len > opts.data_size:
        raise OptionError(
            f"signature ({opts.sign_len} bytes) is larger than data size\n"
            "check -d option, don't specify -d to let hping compute it"
        )
    if (signing or opts.listen) and opts.sign_len > MAX_SIGN_LEN:
        raise OptionError("signature too big")
    if opts.safe and opts.src_id != -1:
        raise OptionError("sorry, you can't set id and use safe protocol at some time")
    if opts.safe and not opts.data_from_file and not opts.listen:
        raise OptionError(
            "sorry, safe protocol is useless without 'data from file' option"
        )
    if opts.safe and not signing and not opts.listen:
        raise OptionError(
            "sorry, safe protocol require you sign your packets, see --sign | -e option"
        )
    if opts.rand_dest and not opts.interface:
        raise OptionError(
            "you need to specify an interface when the --rand-dest option is enabled"
        )


def parse_options(argv) -> Options:
    """Parse the arguments that follow the program name.

    Raises OptionError for any invalid command line, including a missing
    target host.
    """
    argv = list(argv)
    if not argv:
        raise OptionError("missing host argument")
    state = _State()
    opts = state.options
    target_set = False
    setuid = _setuid()
    for spec, arg in _tokens(argv):
        if spec is None:
            if target_set:
                raise OptionError("you must specify only one target host at a time")
            opts.target = _cstr(arg)
            target_set = True
            continue
        if spec.setuid_disabled and setuid:
            raise OptionError("Option disabled when setuid")
        _apply(state, spec.long, arg)

    _validate(state, target_set)

    if opts.safe:
        opts.src_id = 1
    if opts.traceroute and opts.bind == Bind.DPORT:
        opts.bind = Bind.TTL
    if opts.traceroute and not state.ttl_set:
        opts.src_ttl = DEFAULT_TRACEROUTE_TTL
    if getattr(state, "signing", False) and not opts.data_size:
        opts.data_size = opts.sign_len
    if opts.scan and not state.delay_changed:
        _set_usec(opts, 0)
    return opts