"""Multi-target emitter: one registry snapshot, every output artifact.

Targets:
    solidity      contracts/utils/Address.sol   (template address.sol.j2)
    javascript    contracts/utils/Address.js    (template address.js.j2)
    declarations  contracts/utils/Address.d.ts  (derived from Address.js)
    bytecodes     resources/bytecodes.json      ([name, address, bytecode] triples)

Every target is rendered in memory before anything touches disk. Constants
targets are parsed back and must name exactly the registry's entries, with
the same addresses, in the same order. Files are then written through temp
files and swapped in with os.replace, so a failure never leaves one target
regenerated and another stale.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from .config_schema import GeneratorConfig, is_identifier
from .errors import EmissionError
from .registry import Registry
from .template import load_template, render_template

logger = logging.getLogger(__name__)

SOLIDITY_CONSTANT = re.compile(
    r"^[ \t]*address public constant ([A-Za-z_$][A-Za-z0-9_$]*) = (0x[0-9a-fA-F]{40});$", re.MULTILINE
)
JAVASCRIPT_CONSTANT = re.compile(
    r'^export const ([A-Za-z_$][A-Za-z0-9_$]*) = "(0x[0-9a-fA-F]{40})";$', re.MULTILINE
)
DECLARATION_CONSTANT = re.compile(
    r'^export const ([A-Za-z_$][A-Za-z0-9_$]*): "(0x[0-9a-fA-F]{40})";$', re.MULTILINE
)

DECLARATIONS_HEADER = (
    "// AUTO-GENERATED by predeploy-gen from Address.js - Do not edit manually\n\n"
)


@dataclass(frozen=True)
class Target:
    """An output artifact and how to check it against the registry."""

    name: str
    filename: str
    template: str | None = None
    constant_pattern: re.Pattern[str] | None = None


SOLIDITY = Target("solidity", "Address.sol", "address.sol.j2", SOLIDITY_CONSTANT)
JAVASCRIPT = Target("javascript", "Address.js", "address.js.j2", JAVASCRIPT_CONSTANT)
DECLARATIONS = Target("declarations", "Address.d.ts", None, DECLARATION_CONSTANT)
BYTECODES = Target("bytecodes", "bytecodes.json")

TEMPLATE_TARGETS: tuple[Target, ...] = (SOLIDITY, JAVASCRIPT)


def check_identifiers(registry: Registry) -> None:
    """Entry names are emitted verbatim, so each must be a valid identifier."""
    for entry in registry:
        if not is_identifier(entry.name):
            raise EmissionError(f"Registry name {entry.name!r} is not a valid identifier")


def parse_constants(text: str, pattern: re.Pattern[str]) -> list[tuple[str, str]]:
    return [(m.group(1), m.group(2)) for m in pattern.finditer(text)]


def check_consistency(registry: Registry, target: Target, text: str) -> None:
    """Fail unless `text` declares exactly the registry's constants, in order.

    Raises:
        EmissionError: On any missing, extra, reordered or altered constant
    """
    if target.constant_pattern is None:
        return
    expected = [(e.name, e.address) for e in registry]
    found = parse_constants(text, target.constant_pattern)
    if found == expected:
        return
    for index, (want, got) in enumerate(zip(expected, found)):
        if want != got:
            raise EmissionError(
                f"{target.filename}: constant #{index} is {got[0]}={got[1]}, "
                f"expected {want[0]}={want[1]}",
                target=target.name,
            )
    raise EmissionError(
        f"{target.filename}: declares {len(found)} constants, registry has {len(expected)}",
        target=target.name,
    )


def render_target(
    registry: Registry, target: Target, templates_dir: Path | None = None
) -> str:
    if target.template is None:
        raise ValueError(f"Target {target.name} is not template-rendered")
    template = load_template(target.template, templates_dir)
    text = render_template(template, {"entries": registry.entries})
    check_consistency(registry, target, text)
    return text


def derive_declarations(js_text: str) -> str:
    """Re-express each exported address of Address.js as a literal type.

    ``export const SETM = "0x..";`` becomes ``export const SETM: "0x..";`` so
    no two distinct addresses are interchangeable at the type level.
    """
    constants = parse_constants(js_text, JAVASCRIPT_CONSTANT)
    if not constants:
        raise EmissionError("Address.js exports no address constants", target=DECLARATIONS.name)
    lines = [f'export const {name}: "{address}";' for name, address in constants]
    return DECLARATIONS_HEADER + "\n".join(lines) + "\n"


def render_bytecodes(registry: Registry) -> str:
    return json.dumps(registry.to_triples(), indent=2)


def render_all(registry: Registry, config: GeneratorConfig) -> dict[Path, str]:
    """Render every target from one registry snapshot, keyed by output path."""
    check_identifiers(registry)
    templates_dir = (
        config.resolve(config.paths.templates_dir) if config.paths.templates_dir else None
    )
    address_dir = config.resolve(config.paths.address_dir)

    solidity = render_target(registry, SOLIDITY, templates_dir)
    javascript = render_target(registry, JAVASCRIPT, templates_dir)
    declarations = derive_declarations(javascript)
    check_consistency(registry, DECLARATIONS, declarations)

    outputs = {
        config.resolve(config.paths.bytecodes_file): render_bytecodes(registry),
        address_dir / SOLIDITY.filename: solidity,
        address_dir / JAVASCRIPT.filename: javascript,
        address_dir / DECLARATIONS.filename: declarations,
    }
    logger.info(f"Rendered {len(outputs)} artifacts for {len(registry)} registry entries")
    return outputs


def stale_outputs(outputs: Mapping[Path, str]) -> list[Path]:
    """Paths whose on-disk content differs from the rendered text."""
    stale = []
    for path, text in outputs.items():
        if not path.exists() or path.read_text() != text:
            stale.append(path)
    return stale


def write_all(outputs: Mapping[Path, str]) -> None:
    """Write every output, all or nothing, and flush before returning.

    Each file goes to a temp sibling first. Existing targets are copied to a
    backup before the swap, and a failed swap puts every backup back so the
    targets never mix old and new content.

    Raises:
        EmissionError: If any file cannot be written
    """
    pending: list[tuple[Path, Path]] = []
    try:
        for path, text in outputs.items():
            tmp = path.with_name(path.name + ".tmp")
            pending.append((tmp, path))
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
    except OSError as e:
        _discard(tmp for tmp, _ in pending)
        raise EmissionError(f"Writing artifacts failed: {e}") from e

    backups: dict[Path, Path] = {}
    try:
        for _, path in pending:
            if path.exists():
                backup = path.with_name(path.name + ".bak")
                shutil.copy2(path, backup)
                backups[path] = backup
    except OSError as e:
        _discard([tmp for tmp, _ in pending] + list(backups.values()))
        raise EmissionError(f"Backing up artifacts failed: {e}") from e

    replaced: list[Path] = []
    try:
        for tmp, path in pending:
            os.replace(tmp, path)
            replaced.append(path)
            logger.debug(f"Wrote {path}")
    except OSError as e:
        _restore(replaced, backups)
        _discard([tmp for tmp, _ in pending] + list(backups.values()))
        raise EmissionError(f"Replacing artifacts failed: {e}") from e

    _discard(backups.values())


def _restore(replaced: list[Path], backups: Mapping[Path, Path]) -> None:
    """Undo swapped-in targets: restore the backup, or remove a new file."""
    for path in reversed(replaced):
        backup = backups.get(path)
        if backup is not None:
            os.replace(backup, path)
        else:
            path.unlink(missing_ok=True)
        logger.warning(f"Rolled back {path}")


def _discard(paths: Iterable[Path]) -> None:
    for path in paths:
        path.unlink(missing_ok=True)
