"""CIDR containment matching over IPv4 and IPv6.

Addresses and range networks are compared as packed bytes: the whole
bytes covered by the prefix must be equal, then the high-order bits of
the boundary byte are mask-compared.  Every entry point is total:
malformed addresses or ranges never raise, they simply do not match.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable
from dataclasses import dataclass

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

_HOST_PREFIX = {4: 32, 6: 128}


@dataclass(frozen=True)
class CidrRange:
    """A network address plus prefix length.

    ``network`` holds the packed bytes of the address as written; host
    bits past the prefix are kept and ignored during comparison.
    """

    network: bytes
    prefix: int
    version: int
    literal: str

    def __str__(self) -> str:
        return self.literal


def parse_address(text: str) -> IPAddress | None:
    """Parse an IP literal, returning ``None`` when it is not valid."""
    if not isinstance(text, str):
        return None
    try:
        addr = ipaddress.ip_address(text.strip())
    except ValueError:
        return None
    # Zone IDs ("fe80::1%eth0") carry free text; not a plain address.
    if getattr(addr, "scope_id", None):
        return None
    return addr


def is_valid_ip(text: str) -> bool:
    return parse_address(text) is not None


def parse_range(text: str) -> CidrRange | None:
    """Parse ``addr/prefix`` or a bare address into a ``CidrRange``.

    A bare address becomes a single-host /32 or /128.  Returns ``None``
    for an invalid network, a non-numeric prefix, or a prefix outside
    the family's width.
    """
    if not isinstance(text, str):
        return None
    text = text.strip()
    if not text:
        return None

    subnet, sep, mask = text.partition("/")
    addr = parse_address(subnet)
    if addr is None:
        return None

    width = _HOST_PREFIX[addr.version]
    if not sep:
        prefix = width
    elif mask.isascii() and mask.isdigit():
        prefix = int(mask)
    else:
        return None
    if prefix > width:
        return None

    return CidrRange(
        network=addr.packed,
        prefix=prefix,
        version=addr.version,
        literal=f"{subnet.strip()}/{prefix}",
    )


def _contains(packed: bytes, cidr: CidrRange) -> bool:
    if len(packed) != len(cidr.network):
        return False

    whole, bits = divmod(cidr.prefix, 8)
    if packed[:whole] != cidr.network[:whole]:
        return False
    if bits == 0:
        return True

    mask_byte = ~((1 << (8 - bits)) - 1) & 0xFF
    return (packed[whole] & mask_byte) == (cidr.network[whole] & mask_byte)


def matches(address: str, ranges: Iterable[CidrRange | str]) -> bool:
    """Return ``True`` if *address* falls within any of *ranges*.

    Ranges may be ``CidrRange`` objects or literals; malformed literals
    are skipped.  A family mismatch is a non-match.
    """
    addr = parse_address(address)
    if addr is None:
        return False
    packed = addr.packed

    for entry in ranges:
        cidr = entry if isinstance(entry, CidrRange) else parse_range(entry)
        if cidr is None:
            continue
        if _contains(packed, cidr):
            return True
    return False


# ---------------------------------------------------------------------------
# Public-address validation
# ---------------------------------------------------------------------------

_PRIVATE_RANGES = tuple(
    parse_range(r)
    for r in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "fc00::/7",
    )
)

_RESERVED_RANGES = tuple(
    parse_range(r)
    for r in (
        "0.0.0.0/8",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "240.0.0.0/4",
        "::/128",
        "::1/128",
        "::ffff:0:0/96",
        "fe80::/10",
    )
)

NON_PUBLIC_RANGES: tuple[CidrRange, ...] = _PRIVATE_RANGES + _RESERVED_RANGES  # type: ignore[assignment]


def is_public_ip(text: str) -> bool:
    """Valid IP literal outside the private-use and reserved ranges."""
    if not isinstance(text, str):
        return False
    candidate = text.strip()
    if parse_address(candidate) is None:
        return False
    return not matches(candidate, NON_PUBLIC_RANGES)
