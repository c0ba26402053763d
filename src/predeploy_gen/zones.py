"""Zone allocator: deterministic addresses for predeploys and mirrored tokens.

The 160-bit address space is partitioned into fixed, disjoint zones:

    ethereum_precompiles   0x0          .. 0x400
    runtime_precompiles    0x400        .. 0x800
    predeployed            0x800        .. 0x1000
    mirrored_tokens        0x1000000    .. 0x2000000
    mirrored_nft           0x2000000    .. 0x3000000
    mirrored_lp_tokens     1 << 64      .. 1 << 65

An address is zone base + zone-local offset, rendered as an EIP-55 checksum
address. Liquidity-pool tokens pack two currency ids into one offset: the
lower id goes in the low 32-bit field and the higher id in the high 32-bit
field, so a pair resolves to the same address whichever order it is given in.

Usage:
    from predeploy_gen.zones import PREDEPLOYED, allocate, address

    allocate(PREDEPLOYED, 0)   # '0x0000000000000000000000000000000000000800'
    address(0x800, 1)          # '0x0000000000000000000000000000000000000801'
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import to_checksum_address

from .errors import AllocationOverflow, InputValidationError

ADDRESS_BITS = 160
LP_FIELD_BITS = 32


@dataclass(frozen=True)
class Zone:
    """A reserved sub-range [base, base + width) of the address space."""

    name: str
    base: int
    width: int

    @property
    def end(self) -> int:
        return self.base + self.width

    def contains(self, value: int) -> bool:
        return self.base <= value < self.end


ETHEREUM_PRECOMPILES = Zone("ethereum_precompiles", 0x0, 0x400)
RUNTIME_PRECOMPILES = Zone("runtime_precompiles", 0x400, 0x400)
PREDEPLOYED = Zone("predeployed", 0x800, 0x800)
MIRRORED_TOKENS = Zone("mirrored_tokens", 0x1000000, 0x1000000)
MIRRORED_NFT = Zone("mirrored_nft", 0x2000000, 0x1000000)
MIRRORED_LP_TOKENS = Zone("mirrored_lp_tokens", 1 << 64, 1 << 64)

ZONES: tuple[Zone, ...] = (
    ETHEREUM_PRECOMPILES,
    RUNTIME_PRECOMPILES,
    PREDEPLOYED,
    MIRRORED_TOKENS,
    MIRRORED_NFT,
    MIRRORED_LP_TOKENS,
)

ZONES_BY_NAME: dict[str, Zone] = {zone.name: zone for zone in ZONES}


def format_address(value: int) -> str:
    """Render a 160-bit integer as a checksummed hex address."""
    if not 0 <= value < (1 << ADDRESS_BITS):
        raise ValueError(f"Address value out of range: {value:#x}")
    return to_checksum_address(f"0x{value:040x}")


def allocate(zone: Zone, offset: int) -> str:
    """Allocate the address at `offset` inside `zone`.

    Raises:
        AllocationOverflow: If the offset is negative or not below the zone width
    """
    if offset < 0 or offset >= zone.width:
        raise AllocationOverflow(zone.name, offset, zone.width)
    return format_address(zone.base + offset)


def zone_for_base(base: int) -> Zone:
    for zone in ZONES:
        if zone.base == base:
            return zone
    raise ValueError(f"No zone starts at {base:#x}")


def address(base: int, offset: int) -> str:
    """Allocate by zone start, e.g. ``address(0x800, 2)`` for the third predeploy."""
    return allocate(zone_for_base(base), offset)


def zone_of(value: int | str) -> Zone | None:
    """Return the zone containing an address (int or hex string), if any."""
    if isinstance(value, str):
        value = int(value, 16)
    for zone in ZONES:
        if zone.contains(value):
            return zone
    return None


def lp_offset(currency_a: int, currency_b: int) -> int:
    """Pack a currency id pair into a mirrored LP token offset.

    The pair is canonicalized first: the lower id occupies bits 0..31 and the
    higher id bits 32..63. ``lp_offset(a, b) == lp_offset(b, a)``.

    Raises:
        InputValidationError: If both ids are the same
        AllocationOverflow: If an id does not fit a 32-bit field
    """
    if currency_a == currency_b:
        raise InputValidationError(
            f"LP pair needs two distinct currencies, got {currency_a} twice",
            currency_id=currency_a,
        )
    low, high = sorted((currency_a, currency_b))
    field_width = 1 << LP_FIELD_BITS
    for currency_id in (low, high):
        if currency_id < 0 or currency_id >= field_width:
            raise AllocationOverflow(MIRRORED_LP_TOKENS.name, currency_id, field_width)
    return (high << LP_FIELD_BITS) | low


def lp_address(currency_a: int, currency_b: int) -> str:
    return allocate(MIRRORED_LP_TOKENS, lp_offset(currency_a, currency_b))


def mirrored_token_address(currency_id: int) -> str:
    return allocate(MIRRORED_TOKENS, currency_id)


def mirrored_nft_address(class_id: int) -> str:
    return allocate(MIRRORED_NFT, class_id)


def predeploy_address(offset: int) -> str:
    return allocate(PREDEPLOYED, offset)
