"""Registry of predeployed contracts and mirrored tokens.

The registry is the ordered list of (name, address, bytecode) triples every
emitted artifact is derived from. Names and addresses are unique across the
whole registry, and each address lies inside the zone its entry claims.

Order is fixed and meaningful:
    1. mirrored tokens, in token-list order
    2. mirrored LP tokens, in lp_pairs order
    3. system contracts, in SYSTEM_CONTRACTS order

Usage:
    registry = build(
        token_entries(config.tokens, compiled, "deployedBytecode")
        + lp_entries(config.lp_pairs, config.tokens),
        system_entries(compiled, "deployedBytecode"),
    )
    registry.to_triples()  # [["SETM", "0x...1000000", "0x6080..."], ...]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Sequence

from .compiler import CompiledContract
from .config_schema import TokenDescriptor
from .errors import CompileError, RegistryConflict
from .zones import (
    MIRRORED_LP_TOKENS,
    MIRRORED_TOKENS,
    PREDEPLOYED,
    ZONES_BY_NAME,
    allocate,
    lp_offset,
)


@dataclass(frozen=True)
class SystemContract:
    """A predeployed contract at a fixed offset in the predeployed zone."""

    name: str
    offset: int


# Hand-maintained. Reordering or renumbering moves contracts in genesis and
# breaks every consumer of the emitted constants.
SYSTEM_CONTRACTS: tuple[SystemContract, ...] = (
    SystemContract("Token", 0),
    SystemContract("StateRent", 1),
    SystemContract("Oracle", 2),
    SystemContract("Schedule", 3),
    SystemContract("DEX", 4),
)


@dataclass(frozen=True)
class RegistryEntry:
    """One named address, with its bytecode ('' when there is none)."""

    name: str
    address: str
    bytecode: str
    zone: str

    @property
    def value(self) -> int:
        return int(self.address, 16)

    def to_triple(self) -> list[str]:
        return [self.name, self.address, self.bytecode]


class Registry:
    """Immutable ordered sequence of registry entries."""

    def __init__(self, entries: Iterable[RegistryEntry]) -> None:
        self._entries: tuple[RegistryEntry, ...] = tuple(entries)
        self._by_name: dict[str, RegistryEntry] = {e.name: e for e in self._entries}

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, name: str) -> RegistryEntry:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Registry):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Registry({len(self._entries)} entries)"

    @property
    def entries(self) -> tuple[RegistryEntry, ...]:
        return self._entries

    def names(self) -> list[str]:
        return [e.name for e in self._entries]

    def addresses(self) -> list[str]:
        return [e.address for e in self._entries]

    def to_triples(self) -> list[list[str]]:
        """Bytecode manifest form: [[name, address, bytecode], ...]."""
        return [e.to_triple() for e in self._entries]


class RegistryBuilder:
    """Accumulates entries, rejecting conflicts as they are added.

    Only `freeze()` hands out a Registry, so a build that raises midway never
    exposes a partially populated one.
    """

    def __init__(self) -> None:
        self._entries: list[RegistryEntry] = []
        self._names: dict[str, str] = {}
        self._addresses: dict[int, str] = {}

    def add(self, entry: RegistryEntry) -> None:
        """Add an entry.

        Raises:
            RegistryConflict: On a duplicate name or address, or an address
                outside the entry's zone
        """
        if entry.name in self._names:
            raise RegistryConflict(entry.name, "duplicate name", existing=entry.name)

        zone = ZONES_BY_NAME.get(entry.zone)
        if zone is None:
            raise RegistryConflict(entry.name, f"unknown zone '{entry.zone}'")
        if not zone.contains(entry.value):
            raise RegistryConflict(
                entry.name, f"address {entry.address} is outside zone '{zone.name}'"
            )

        owner = self._addresses.get(entry.value)
        if owner is not None:
            raise RegistryConflict(entry.name, f"duplicate address {entry.address}", existing=owner)

        self._entries.append(entry)
        self._names[entry.name] = entry.address
        self._addresses[entry.value] = entry.name

    def freeze(self) -> Registry:
        return Registry(self._entries)


def build(
    token_entries: Sequence[RegistryEntry], system_entries: Sequence[RegistryEntry]
) -> Registry:
    """Merge token-derived and system entries into one validated registry."""
    builder = RegistryBuilder()
    for entry in list(token_entries) + list(system_entries):
        builder.add(entry)
    return builder.freeze()


def _bytecode(compiled: Mapping[str, CompiledContract], name: str, field: str) -> str:
    contract = compiled.get(name)
    if contract is None:
        raise CompileError(f"No compiled artifact for {name}", contract=name)
    return contract.field(field)


def token_entries(
    tokens: Iterable[TokenDescriptor],
    compiled: Mapping[str, CompiledContract] | None = None,
    bytecode_field: str = "deployedBytecode",
) -> list[RegistryEntry]:
    """Entries for mirrored tokens; bytecode is '' when `compiled` is None."""
    entries = []
    for token in tokens:
        bytecode = ""
        if compiled is not None:
            bytecode = _bytecode(compiled, token.contract_name, bytecode_field)
        entries.append(
            RegistryEntry(
                name=token.symbol,
                address=allocate(MIRRORED_TOKENS, token.currency_id),
                bytecode=bytecode,
                zone=MIRRORED_TOKENS.name,
            )
        )
    return entries


def lp_entries(
    pairs: Iterable[tuple[str, str]], tokens: Iterable[TokenDescriptor]
) -> list[RegistryEntry]:
    """Entries for mirrored LP tokens, named LP_{first}_{second}."""
    currency_ids = {token.symbol: token.currency_id for token in tokens}
    entries = []
    for first, second in pairs:
        offset = lp_offset(currency_ids[first], currency_ids[second])
        entries.append(
            RegistryEntry(
                name=f"LP_{first}_{second}",
                address=allocate(MIRRORED_LP_TOKENS, offset),
                bytecode="",
                zone=MIRRORED_LP_TOKENS.name,
            )
        )
    return entries


def system_entries(
    compiled: Mapping[str, CompiledContract] | None = None,
    bytecode_field: str = "deployedBytecode",
    contracts: Iterable[SystemContract] = SYSTEM_CONTRACTS,
) -> list[RegistryEntry]:
    """Entries for the predeployed system contracts, in declaration order."""
    entries = []
    for contract in contracts:
        bytecode = ""
        if compiled is not None:
            bytecode = _bytecode(compiled, contract.name, bytecode_field)
        entries.append(
            RegistryEntry(
                name=contract.name,
                address=allocate(PREDEPLOYED, contract.offset),
                bytecode=bytecode,
                zone=PREDEPLOYED.name,
            )
        )
    return entries


def system_contract_names() -> list[str]:
    return [contract.name for contract in SYSTEM_CONTRACTS]
