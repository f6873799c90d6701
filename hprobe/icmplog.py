"""Text of the messages reported for received ICMP errors."""

from __future__ import annotations

ICMP_EXC_TTL = 0
ICMP_EXC_FRAGTIME = 1

_UNREACHABLE = (
    "Network Unreachable from",
    "Host Unreachable from",
    "Protocol Unreachable from",
    "Port Unreachable from",
    "Fragmentation Needed/DF set from",
    "Source Route failed from",
    None,
    None,
    None,
    None,
    None,
    None,
    None,
    "Packet filtered from",
    "Precedence violation from",
    "precedence cut off from",
)


def _name_part(hostname: str | None) -> str:
    if hostname is None:
        return ""
    return f"name={hostname or 'UNKNOWN'}"


def time_exceeded_message(src_addr, code, hostname=None) -> str:
    """Line reported for an ICMP time-exceeded message.

    With hostname None no name is shown; an empty name shows as UNKNOWN.
    """
    if code == ICMP_EXC_TTL:
        text = f"TTL 0 during transit from ip={src_addr}"
    elif code == ICMP_EXC_FRAGTIME:
        text = f"TTL 0 during reassembly from ip={src_addr}"
    else:
        text = ""
    return text + _name_part(hostname)


def unreachable_message(src_addr, code, hostname=None) -> str:
    """Line reported for an ICMP destination-unreachable message.

    With hostname None no name is shown; an empty name shows as UNKNOWN.
    """
    description = _UNREACHABLE[code] if 0 <= code < len(_UNREACHABLE) else None
    if description is not None:
        text = f"ICMP {description} ip={src_addr}"
    else:
        text = f"ICMP Unreachable type={code} from ip={src_addr}"
    return text + _name_part(hostname)