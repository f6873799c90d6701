import socket
from unittest import mock

import pytest

from hprobe import options
from hprobe.options import Bind, OptionError, TcpFlag, parse_options, parse_route


def test_defaults_with_target_only():
    opts = parse_options(["example.com"])
    assert opts.target == "example.com"
    assert opts.count == -1
    assert opts.gethost is True
    assert opts.bind == Bind.DPORT
    assert opts.tcp_flags == TcpFlag(0)


def test_empty_argv_is_missing_host():
    with pytest.raises(OptionError, match="missing host"):
        parse_options([])


def test_options_without_target_is_missing_host():
    with pytest.raises(OptionError, match="missing host"):
        parse_options(["-S"])


def test_two_targets_rejected():
    with pytest.raises(OptionError, match="one target"):
        parse_options(["a.example.com", "b.example.com"])


def test_grouped_short_flags():
    opts = parse_options(["-SA", "host"])
    assert opts.tcp_flags == TcpFlag.SYN | TcpFlag.ACK


def test_short_option_attached_and_separate_argument():
    assert parse_options(["-c5", "host"]).count == 5
    assert parse_options(["-c", "7", "host"]).count == 7


def test_count_accepts_hex():
    assert parse_options(["-c", "0x10", "host"]).count == 16


def test_long_option_with_equals_and_abbreviation():
    assert parse_options(["--count=3", "host"]).count == 3
    assert parse_options(["--cou", "4", "host"]).count == 4


def test_exact_long_name_beats_prefix():
    opts = parse_options(["--icmp", "host"])
    assert opts.icmp is True
    assert opts.requests == []


def test_ambiguous_long_option():
    with pytest.raises(OptionError, match="ambiguous"):
        parse_options(["--icmp-ip", "4", "host"])


def test_unknown_options():
    with pytest.raises(OptionError, match="unrecognized"):
        parse_options(["--nonsense", "host"])
    with pytest.raises(OptionError, match="invalid option"):
        parse_options(["-!", "host"])


def test_missing_argument():
    with pytest.raises(OptionError, match="requires an argument"):
        parse_options(["host", "-c"])


def test_double_dash_ends_options():
    assert parse_options(["--", "-S"]).target == "-S"


def test_destport_increment_markers():
    opts = parse_options(["-p", "++80", "host"])
    assert opts.incdport and opts.force_incdport
    assert opts.dst_port == 80 and opts.base_dst_port == 80


def test_interval_in_microseconds():
    opts = parse_options(["-i", "u250", "host"])
    assert opts.wait_in_usec is True
    assert opts.usec_delay == 250


def test_fast_and_faster():
    fast = parse_options(["--fast", "host"])
    assert fast.usec_delay == 100000
    assert fast.tr_keep_ttl is False
    faster = parse_options(["--faster", "host"])
    assert faster.usec_delay == 1
    assert faster.tr_keep_ttl is True


def test_mtu_clamped_with_warning():
    opts = parse_options(["-m", "70000", "host"])
    assert opts.virtual_mtu == 65535
    assert opts.fragment is True
    assert "Specified MTU too high, fixed to 65535." in opts.warnings


def test_tos_values_are_ored():
    opts = parse_options(["-o", "10", "-o", "02", "host"])
    assert opts.ip_tos == 0x10 | 0x02


def test_tos_help_request():
    assert "tos-help" in parse_options(["-o", "help", "host"]).requests


def test_setseq_wraps_negative():
    opts = parse_options(["-M", "-1", "host"])
    assert opts.set_seqnum is True
    assert opts.tcp_seqnum == 0xFFFFFFFF


def test_sign_sets_data_size():
    opts = parse_options(["-e", "signature", "host"])
    assert opts.sign == "signature"
    assert opts.data_size == len("signature")


def test_sign_larger_than_data_rejected():
    with pytest.raises(OptionError, match="larger than data size"):
        parse_options(["-e", "signature", "-d", "3", "host"])


def test_count_zero_rejected():
    with pytest.raises(OptionError, match="count"):
        parse_options(["-c", "0", "host"])


def test_file_without_data_rejected():
    with pytest.raises(OptionError, match="-E option useless"):
        parse_options(["-E", "payload.bin", "host"])


def test_safe_requires_target_in_listen_mode():
    with pytest.raises(OptionError, match="target host"):
        parse_options(["-9", "sig", "-B"])


def test_listen_without_target_allowed():
    opts = parse_options(["-9", "sig"])
    assert opts.listen is True
    assert opts.sign == "sig"
    assert opts.target == ""


def test_safe_with_id_rejected():
    with pytest.raises(OptionError, match="set id"):
        parse_options(["-B", "-N", "5", "host"])


def test_safe_sets_id_in_listen_mode():
    opts = parse_options(["-9", "sig", "-B", "host"])
    assert opts.src_id == 1


def test_rand_dest_requires_interface():
    with pytest.raises(OptionError, match="interface"):
        parse_options(["--rand-dest", "10.0.0.x"])


def test_traceroute_dependencies():
    opts = parse_options(["-T", "host"])
    assert opts.src_ttl == options.DEFAULT_TRACEROUTE_TTL
    assert opts.bind == Bind.TTL
    kept = parse_options(["-T", "-t", "9", "host"])
    assert kept.src_ttl == 9


def test_scan_mode_sends_without_delay():
    opts = parse_options(["-8", "1-100", "host"])
    assert opts.scan is True
    assert opts.scan_ports == "1-100"
    assert opts.wait_in_usec is True
    assert opts.usec_delay == 0


def test_numeric_disables_name_lookup():
    assert parse_options(["-n", "host"]).gethost is False


def test_clock_skew_window_limit():
    with pytest.raises(OptionError, match="30 sec"):
        parse_options(["--clock-skew-win", "10", "host"])


def test_clock_skew_enables_timestamp():
    opts = parse_options(["--clock-skew", "host"])
    assert opts.clock_skew and opts.tcp_timestamp


def test_lsrr_kind_and_repeat_warning():
    opts = parse_options(["--lsrr", "1.2.3.4", "--lsrr", "5.6.7.8", "host"])
    assert opts.lsr[0] == options.LSRR_KIND
    assert opts.lsr[3:] == socket.inet_aton("5.6.7.8")
    assert any("loose source route" in w for w in opts.warnings)


def test_setuid_disables_options():
    with mock.patch("hprobe.options.os.getuid", return_value=1000), mock.patch(
        "hprobe.options.os.geteuid", return_value=0
    ):
        with pytest.raises(OptionError, match="setuid"):
            parse_options(["-S", "host"])


def test_parse_route_single_address():
    body = parse_route("1.2.3.4")
    assert body[1] == 8
    assert body[0] == len(body) + 1
    assert body[2:] == socket.inet_aton("1.2.3.4")


def test_parse_route_with_pointer():
    body = parse_route("5:1.2.3.4/5.6.7.8")
    assert body[1] == 5
    assert body[2:] == socket.inet_aton("1.2.3.4") + socket.inet_aton("5.6.7.8")
    assert body[0] == len(body) + 1


def test_parse_route_empty():
    assert parse_route("") == bytes((3, 4))


@pytest.mark.parametrize("text", ["1.2.3.4//", "host.invalid", "300:1.2.3.4", "1.2.3.4;", "1:2:1.2.3.4"])
def test_parse_route_errors(text):
    with pytest.raises(OptionError):
        parse_route(text)


def test_parse_route_too_long():
    with pytest.raises(OptionError, match="too long"):
        parse_route("/".join(["1.2.3.4"] * 63))
    assert len(parse_route("/".join(["1.2.3.4"] * 62))) + 1 == parse_route(
        "/".join(["1.2.3.4"] * 62)
    )[0]