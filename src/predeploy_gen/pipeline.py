"""Two-phase generation pipeline.

Phase 1 (build):
    1. allocate  - lay out every address; zone overflows and conflicts abort
                   here, before the compiler runs or any file is written
    2. specialize - instantiate the token template per token
    3. compile   - compile the specialized tokens alongside the system contracts
    4. merge     - build the registry with bytecode

Phase 2 (emit):
    5. render    - every artifact from the one registry snapshot
    6. write     - all files, flushed and swapped in (the barrier)
    7. recompile - the project again, now seeing the fresh Address.sol

Usage:
    config = load_config("config/predeploy.yaml")
    result = generate(config, CommandCompiler.from_config(config))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .compiler import CompilerAdapter
from .config_schema import GeneratorConfig
from .emitter import render_all, stale_outputs, write_all
from .errors import InputValidationError
from .registry import (
    Registry,
    build,
    lp_entries,
    system_contract_names,
    system_entries,
    token_entries,
)
from .specializer import specialize_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one run."""

    registry: Registry
    outputs: dict[Path, str]
    written: bool
    stale: list[Path] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return not self.stale


def allocate_layout(config: GeneratorConfig) -> Registry:
    """Lay out every address without bytecode.

    Raises:
        AllocationOverflow: If any offset overflows its zone
        RegistryConflict: On duplicate names or addresses
    """
    layout = build(
        token_entries(config.tokens) + lp_entries(config.lp_pairs, config.tokens),
        system_entries(),
    )
    logger.info(f"Allocated {len(layout)} addresses")
    return layout


def read_token_template(config: GeneratorConfig) -> str:
    path = config.resolve(config.paths.token_template)
    if not path.exists():
        raise InputValidationError(f"Token template not found: {path}", path=str(path))
    return path.read_text()


def build_registry(config: GeneratorConfig, compiler: CompilerAdapter) -> Registry:
    """Phase 1: allocate, specialize, compile, merge."""
    allocate_layout(config)

    sources = specialize_all(read_token_template(config), config.tokens)
    logger.info(f"Specialized {len(sources)} token contracts")

    compiled = compiler.compile(sources, contracts=system_contract_names())

    bytecode_field = config.compiler.bytecode_field
    registry = build(
        token_entries(config.tokens, compiled, bytecode_field)
        + lp_entries(config.lp_pairs, config.tokens),
        system_entries(compiled, bytecode_field),
    )
    logger.info(f"Registry built: {len(registry)} entries")
    return registry


def generate(
    config: GeneratorConfig, compiler: CompilerAdapter, check: bool = False
) -> GenerationResult:
    """Run the full pipeline.

    With `check=True` no artifact is written and no second compile happens; the
    result lists the artifacts whose on-disk content is out of date. The
    phase-1 compile still refreshes the compiler's own sources and build dir.
    """
    registry = build_registry(config, compiler)
    outputs = render_all(registry, config)

    if check:
        stale = stale_outputs(outputs)
        for path in stale:
            logger.warning(f"Out of date: {path}")
        return GenerationResult(registry, outputs, written=False, stale=stale)

    write_all(outputs)
    logger.info(f"Wrote {len(outputs)} artifacts")

    # Address.sol is on disk now; compile again so the project builds against it.
    compiler.compile({})
    logger.info("Recompiled project with emitted address constants")
    return GenerationResult(registry, outputs, written=True)
