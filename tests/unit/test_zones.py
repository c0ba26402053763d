"""Unit tests for the zone allocator."""

import itertools

import pytest
from eth_utils import is_checksum_address

from predeploy_gen.errors import AllocationOverflow, InputValidationError
from predeploy_gen.zones import (
    MIRRORED_LP_TOKENS,
    MIRRORED_NFT,
    MIRRORED_TOKENS,
    PREDEPLOYED,
    ZONES,
    address,
    allocate,
    format_address,
    lp_address,
    lp_offset,
    zone_of,
)


class TestZoneTable:
    """The fixed zone table partitions the address space."""

    def test_zones_are_pairwise_disjoint(self) -> None:
        for a, b in itertools.combinations(ZONES, 2):
            assert a.end <= b.base or b.end <= a.base, f"{a.name} overlaps {b.name}"

    def test_zones_fit_in_160_bits(self) -> None:
        for zone in ZONES:
            assert zone.end <= 1 << 160

    def test_zone_of_finds_containing_zone(self) -> None:
        assert zone_of(0x800) is PREDEPLOYED
        assert zone_of(0x1000005) is MIRRORED_TOKENS
        assert zone_of("0x0000000000000000000000000000000002000001") is MIRRORED_NFT
        assert zone_of((1 << 64) + 7) is MIRRORED_LP_TOKENS

    def test_zone_of_gap_is_none(self) -> None:
        # Between the predeployed zone and the mirrored tokens
        assert zone_of(0x1000) is None


class TestAllocate:
    """allocate() and address() produce checksummed, zone-bound addresses."""

    def test_system_contract_addresses(self) -> None:
        assert allocate(PREDEPLOYED, 0) == "0x0000000000000000000000000000000000000800"
        assert allocate(PREDEPLOYED, 1) == "0x0000000000000000000000000000000000000801"
        assert allocate(PREDEPLOYED, 2) == "0x0000000000000000000000000000000000000802"

    def test_address_by_base(self) -> None:
        assert address(0x800, 4) == "0x0000000000000000000000000000000000000804"
        assert address(0x1000000, 0) == "0x0000000000000000000000000000000001000000"

    def test_unknown_base_rejected(self) -> None:
        with pytest.raises(ValueError):
            address(0x900, 0)

    def test_deterministic(self) -> None:
        assert allocate(MIRRORED_TOKENS, 42) == allocate(MIRRORED_TOKENS, 42)

    def test_output_is_valid_checksum_address(self) -> None:
        for zone in ZONES:
            for offset in {0, 1, zone.width // 2, zone.width - 1}:
                result = allocate(zone, offset)
                assert len(result) == 42
                assert is_checksum_address(result)

    def test_checksum_matches_eip55_vector(self) -> None:
        value = int("5aaeb6053f3e94c9b9a09f33669435e7ef1beaed", 16)
        assert format_address(value) == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

    def test_injective_within_zone(self) -> None:
        addresses = {allocate(MIRRORED_TOKENS, i) for i in range(256)}
        assert len(addresses) == 256

    def test_offset_at_width_overflows(self) -> None:
        with pytest.raises(AllocationOverflow) as exc_info:
            allocate(PREDEPLOYED, PREDEPLOYED.width)
        assert exc_info.value.zone == "predeployed"
        assert exc_info.value.offset == 0x800

    def test_last_slot_fits(self) -> None:
        assert int(allocate(PREDEPLOYED, 0x7FF), 16) == 0xFFF

    def test_negative_offset_rejected(self) -> None:
        with pytest.raises(AllocationOverflow):
            allocate(MIRRORED_TOKENS, -1)


class TestLiquidityPoolPacking:
    """LP offsets canonicalize the pair: lower id low, higher id high."""

    def test_packing_layout(self) -> None:
        assert lp_offset(0, 5) == 5 << 32
        assert lp_offset(1, 5) == (5 << 32) | 1

    def test_pair_order_does_not_matter(self) -> None:
        assert lp_offset(5, 0) == lp_offset(0, 5)
        assert lp_address(4, 2) == lp_address(2, 4)

    def test_lp_address(self) -> None:
        assert lp_address(0, 5) == "0x" + "0" * 23 + "10000000500000000"

    def test_distinct_pairs_distinct_addresses(self) -> None:
        pairs = list(itertools.combinations(range(8), 2))
        assert len({lp_address(a, b) for a, b in pairs}) == len(pairs)

    def test_same_currency_rejected(self) -> None:
        with pytest.raises(InputValidationError):
            lp_offset(3, 3)

    def test_field_overflow_rejected(self) -> None:
        with pytest.raises(AllocationOverflow):
            lp_offset(0, 1 << 32)
