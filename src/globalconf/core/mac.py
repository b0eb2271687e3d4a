"""Hardware address parsing and generation.

Two derivations live here:
- the service monitor MAC (a full 6-octet address adopted from intent
  options, or generated once and persisted), and
- the MAC prefix (3 octets used to seed dynamically assigned addresses).

Both take an injectable random.Random so tests are deterministic.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

_OCTET = r"([0-9a-fA-F]{1,2})"
_FULL_MAC_RE = re.compile(r"^" + ":".join([_OCTET] * 6) + r"$")
_PREFIX_RE = re.compile(r"^" + ":".join([_OCTET] * 3))

# Bit 0 of the first octet: multicast/group address
_MULTICAST_BIT = 0x01
# Bit 1 of the first octet: locally administered address
_LOCAL_BIT = 0x02


@dataclass(frozen=True, slots=True)
class EthAddr:
    """A 48-bit Ethernet address."""

    octets: bytes

    def __post_init__(self) -> None:
        if len(self.octets) != 6:
            raise ValueError(f"Ethernet address needs 6 octets, got {len(self.octets)}")

    @classmethod
    def parse(cls, text: str) -> EthAddr | None:
        """Parse "xx:xx:xx:xx:xx:xx". Returns None if text is not a valid address."""
        match = _FULL_MAC_RE.match(text)
        if match is None:
            return None
        return cls(bytes(int(group, 16) for group in match.groups()))

    @classmethod
    def random(cls, rng: random.Random) -> EthAddr:
        """Generate a random locally administered unicast address."""
        raw = bytearray(rng.getrandbits(8) for _ in range(6))
        raw[0] = (raw[0] & ~_MULTICAST_BIT) | _LOCAL_BIT
        return cls(bytes(raw))

    def __str__(self) -> str:
        return ":".join(f"{octet:02x}" for octet in self.octets)


def derive_mac_prefix(value: str | None, rng: random.Random) -> str:
    """Derive the 3-octet MAC prefix from the mac_prefix option.

    The first three colon-separated hex octets of value are used. An absent,
    unparsable or all-zero prefix is replaced by a random locally
    administered one.

    Returns:
        The prefix formatted as "xx:xx:xx".
    """
    prefix = b"\x00\x00\x00"
    if value is not None:
        match = _PREFIX_RE.match(value)
        if match is not None:
            prefix = bytes(int(group, 16) for group in match.groups())

    if not any(prefix):
        prefix = EthAddr.random(rng).octets[:3]

    return ":".join(f"{octet:02x}" for octet in prefix)
