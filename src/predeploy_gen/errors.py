"""Error taxonomy for predeploy generation runs.

Every pipeline stage raises a subclass of GenerationError and the run aborts
on the first one. There is no partial-success mode: downstream artifacts are
only defined in terms of a fully valid registry, and every failure cause is a
deterministic configuration or template defect, so nothing is retried.

Usage:
    from predeploy_gen.errors import AllocationOverflow, GenerationError

    try:
        generate(config, compiler)
    except GenerationError as e:
        logger.error(f"{e.stage.value} failed: {e}")
"""

from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    """Pipeline stage that raised an error.

    Used by the CLI to report where a run stopped:
    - INPUT: token/config validation
    - SPECIALIZE: token contract specialization
    - ALLOCATE: zone address allocation
    - REGISTRY: registry merge
    - COMPILE: external compiler
    - EMIT: artifact rendering and writing
    """

    INPUT = "input"
    SPECIALIZE = "specialize"
    ALLOCATE = "allocate"
    REGISTRY = "registry"
    COMPILE = "compile"
    EMIT = "emit"


class GenerationError(Exception):
    """Base class for all fatal generation errors."""

    stage: Stage = Stage.INPUT

    def __init__(self, message: str, **details: object) -> None:
        self.message = message
        self.details: dict[str, object] = dict(details)
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for structured reporting."""
        result: dict[str, object] = {
            "error": self.message,
            "type": type(self).__name__,
            "stage": self.stage.value,
        }
        if self.details:
            result["details"] = self.details
        return result


class InputValidationError(GenerationError):
    """Malformed, missing or duplicated token descriptor or config value."""

    stage = Stage.INPUT


class TemplateMismatch(GenerationError):
    """Specialization left a placeholder unresolved or could not find one."""

    stage = Stage.SPECIALIZE

    def __init__(self, symbol: str, placeholder: str, reason: str) -> None:
        self.symbol = symbol
        self.placeholder = placeholder
        super().__init__(
            f"Token '{symbol}': placeholder {placeholder!r} {reason}",
            symbol=symbol,
            placeholder=placeholder,
        )


class AllocationOverflow(GenerationError):
    """Offset does not fit inside the zone's reserved width."""

    stage = Stage.ALLOCATE

    def __init__(self, zone: str, offset: int, width: int) -> None:
        self.zone = zone
        self.offset = offset
        self.width = width
        super().__init__(
            f"Offset {offset:#x} does not fit zone '{zone}' (width {width:#x})",
            zone=zone,
            offset=offset,
            width=width,
        )


class RegistryConflict(GenerationError):
    """Two registry entries share a name or address, or an entry left its zone."""

    stage = Stage.REGISTRY

    def __init__(self, name: str, reason: str, existing: str | None = None) -> None:
        self.name = name
        self.existing = existing
        message = f"Registry entry '{name}': {reason}"
        if existing is not None:
            message += f" (already used by '{existing}')"
        super().__init__(message, name=name, existing=existing)


class CompileError(GenerationError):
    """External compiler failed or did not produce an expected artifact."""

    stage = Stage.COMPILE

    def __init__(self, message: str, contract: str | None = None, output: str = "") -> None:
        self.contract = contract
        self.output = output
        super().__init__(message, contract=contract)


class EmissionError(GenerationError):
    """Rendering, consistency check, or write of an output artifact failed."""

    stage = Stage.EMIT

    def __init__(self, message: str, target: str | None = None) -> None:
        self.target = target
        super().__init__(message, target=target)
