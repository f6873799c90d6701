# hprobe

Building blocks for a packet probing tool, in plain Python with no
third-party dependencies.

## What is inside

- `hprobe.options`: `parse_options(argv)` turns the arguments that follow
  the program name into an `Options` dataclass, raising `OptionError` for an
  invalid command line (including a missing target host).
  `parse_route(text)` turns a source route such as `1.2.3.4/5.6.7.8` or
  `12:1.2.3.4` into IP option bytes: the length byte, the pointer byte and
  the addresses, without the option kind.
- `hprobe.apdformat`: renders packet layers as APD description strings.
  There is one function per layer (`ip_to_apd`, `ipopt_to_apd`,
  `icmp_to_apd`, `udp_to_apd`, `tcp_to_apd`, `tcpopt_to_apd`,
  `igrp_to_apd`, `igrpentry_to_apd`, `data_to_apd`), and `packet_to_apd`
  joins a list of `Layer` objects (each with a `LayerKind`) into one
  description such as `ip(...)+tcp(...)+data(...)`.
- `hprobe.icmplog`: `time_exceeded_message` and `unreachable_message`
  build the lines reported for ICMP time-exceeded and
  destination-unreachable replies.
- `hprobe.listen`: a `Listener` finds a signature in captured frames and
  returns a `ListenEvent` with the bytes that follow it; in safe mode it
  checks that IP ids arrive in sequence and otherwise reports the id to
  restart from. `memstr` searches bytes for a signature.
- `hprobe.scan`: `parse_ports` reads specifications like `21-25,80,!23`,
  `all` or `known` into a set of ports; `ScanTable` tracks pending ports,
  retries, replies and the average round-trip time; `tcp_strflags` gives
  the `FSRPAYXY` flag view; `format_tcp_reply` and `format_icmp_reply`
  build the report lines; `port_to_name` looks up service names.
- `hprobe.rtt`: `RttStats` keeps minimum, maximum and average round-trip
  times; `DelayTable` records sent probes and matches replies to them.
- `hprobe.relid`: `IdRelativizer` turns absolute IP ids into per-packet
  increments.
- `hprobe.netutil`: `resolve_addr` resolves a host name or dotted address
  to a dotted IPv4 address, raising `ResolveError`; `open_raw_socket`
  opens a raw IPv4 socket.
- `hprobe.rc4`: `Rc4Random` is an RC4-based 32-bit generator, created
  with a fixed starting state by `identity_generator` or seeded from the
  system random source and the clock by `urandom_generator`;
  `random_atoms` builds a random number from 32-bit atoms.
- A small integer library over Python ints with sign/magnitude semantics:
  `hprobe.bignum` (comparison, `add`, `sub`, `mul`, `factorial`, `power`),
  `hprobe.bignum_bits` (bit tests, setting, clearing, shifts, `bit_and`),
  `hprobe.bignum_div` (truncating `tdiv_qr`/`tdiv_q`/`tdiv_r`, `mod`,
  `powm`, `isqrt`, `gcd`) and `hprobe.bignum_text` (`to_str`, `from_str`
  and `size_in_base` for bases 2 to 36). Errors raise `BignumError`.

## Example

```python
from hprobe.scan import tcp_strflags
from hprobe.apdformat import data_to_apd

print(tcp_strflags(0x12))      # ".S..A..."
print(data_to_apd(b"hi+"))     # "data(str=hi\2b)+"
```

## What it does not do

There is no command to run: the package does not itself send probes,
capture packets, run a scan loop or print statistics. It supplies the
parsing, bookkeeping and formatting pieces such a tool is built from. The
integer library has no conversion to or from floats or fixed-width
integers.

Raw sockets need the privileges your operating system requires for them;
everything else works as an ordinary user.