"""Testing utilities for the generation pipeline.

Provides a deterministic stand-in for the external compiler so pipeline tests
run without a contract toolchain.

Usage:
    from tests.testing_utils import FakeCompiler, fake_bytecode

    compiler = FakeCompiler(address_sol=project / "contracts/utils/Address.sol")
    generate(config, compiler)
    assert compiler.calls[0][1] == ["Token", "StateRent", ...]
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from predeploy_gen.compiler import CompiledContract
from predeploy_gen.errors import CompileError


def fake_bytecode(name: str, prefix: str = "0x6080") -> str:
    """Deterministic stand-in bytecode derived from the contract name."""
    return prefix + name.encode().hex()


class FakeCompiler:
    """CompilerAdapter that fabricates artifacts and records every call.

    `address_sol` is read on each call so tests can see what each compile
    pass observed on disk. `fail_on_call` makes the Nth call (0-based) raise.
    """

    def __init__(self, address_sol: Path | None = None, fail_on_call: int | None = None) -> None:
        self.address_sol = address_sol
        self.fail_on_call = fail_on_call
        self.calls: list[tuple[dict[str, str], list[str]]] = []
        self.seen_address_sol: list[str | None] = []

    def compile(
        self, sources: Mapping[str, str], contracts: Iterable[str] = ()
    ) -> dict[str, CompiledContract]:
        contracts = list(contracts)
        self.calls.append((dict(sources), contracts))
        if self.address_sol is not None:
            self.seen_address_sol.append(
                self.address_sol.read_text() if self.address_sol.exists() else None
            )
        if self.fail_on_call == len(self.calls) - 1:
            raise CompileError("fake compiler failure")
        names = list(sources) + [c for c in contracts if c not in sources]
        return {
            name: CompiledContract(
                name=name,
                bytecode=fake_bytecode(name, "0x6080"),
                deployed_bytecode=fake_bytecode(name, "0x6060"),
            )
            for name in names
        }
