"""Pydantic schema for generator configuration and token descriptors.

All config values are validated before allocation begins. Typos, duplicate
symbols and out-of-range values fail fast with clear error messages, raised
as InputValidationError.

Usage:
    from predeploy_gen.config_schema import validate_config_dict
    config = validate_config_dict({"tokens": [...], "lp_pairs": [...]})
    # config is now an immutable GeneratorConfig instance
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InputValidationError
from .zones import MIRRORED_TOKENS

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Registry names become Solidity and JavaScript identifiers verbatim.
RESERVED_WORDS = frozenset({
    # Solidity
    "abstract", "address", "after", "alias", "anonymous", "apply", "assembly",
    "auto", "bool", "byte", "bytes", "calldata", "case", "catch", "constant",
    "constructor", "contract", "copyof", "days", "default", "define", "delete",
    "do", "else", "emit", "enum", "ether", "event", "external", "fallback",
    "false", "final", "finney", "fixed", "for", "function", "gwei", "hours",
    "if", "immutable", "implements", "import", "in", "indexed", "inline",
    "interface", "internal", "is", "let", "library", "macro", "mapping",
    "match", "memory", "minutes", "modifier", "mutable", "new", "null", "of",
    "override", "partial", "payable", "pragma", "private", "promise", "public",
    "pure", "receive", "reference", "relocatable", "return", "returns",
    "sealed", "seconds", "sizeof", "static", "storage", "string", "struct",
    "super", "supports", "switch", "szabo", "this", "throw", "true", "try",
    "type", "typedef", "typeof", "ufixed", "unchecked", "var", "view",
    "virtual", "weeks", "wei", "while", "years",
    # JavaScript
    "await", "break", "class", "const", "continue", "debugger", "export",
    "extends", "finally", "instanceof", "package", "protected", "void",
    "with", "yield",
})

_SIZED_TYPE_PATTERN = re.compile(r"^(u?int\d*|bytes\d+|u?fixed\d+x\d+)$")


def is_identifier(name: str) -> bool:
    """True if `name` can be declared as a constant in Solidity and JavaScript."""
    return (
        bool(IDENTIFIER_PATTERN.match(name))
        and name not in RESERVED_WORDS
        and not _SIZED_TYPE_PATTERN.match(name)
    )


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos) and is immutable."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


# =============================================================================
# TOKEN MODELS
# =============================================================================

class TokenDescriptor(StrictModel):
    """One mirrored fungible token, as listed in tokens.json."""

    name: str = Field(min_length=1, description="Display name (e.g., 'Setheum')")
    symbol: str = Field(description="Unique symbol, used as identifier in every artifact")
    decimals: int = Field(ge=0, le=255, description="ERC20 decimals")
    currency_id: int = Field(
        alias="currencyId",
        ge=0,
        le=255,
        description="Runtime currency id (u8 on the wire)",
    )
    address: str | None = Field(
        default=None,
        description="Optional precomputed address; must match the derived one",
    )

    @field_validator("symbol")
    @classmethod
    def symbol_is_identifier(cls, v: str) -> str:
        if not is_identifier(v):
            raise ValueError(f"symbol {v!r} is not a valid identifier")
        return v

    @field_validator("name")
    @classmethod
    def name_is_string_literal_safe(cls, v: str) -> str:
        if any(ch in v for ch in '"\\\n\r'):
            raise ValueError(f"name {v!r} cannot be embedded in a string literal")
        return v

    @model_validator(mode="after")
    def address_matches_currency_id(self) -> "TokenDescriptor":
        """Reject a listed address that disagrees with the zone allocation."""
        if self.address is None:
            return self
        try:
            listed = int(self.address, 16)
        except ValueError:
            raise ValueError(f"address {self.address!r} is not hex") from None
        derived = MIRRORED_TOKENS.base + self.currency_id
        if listed != derived:
            raise ValueError(
                f"address {self.address} of {self.symbol} does not match "
                f"currencyId {self.currency_id} (expected {derived:#042x})"
            )
        return self

    @property
    def contract_name(self) -> str:
        """Name of the specialized token contract."""
        return f"{self.symbol}ERC20"


# =============================================================================
# PATH / COMPILER / LOGGING MODELS
# =============================================================================

class PathsConfig(StrictModel):
    """Project-relative locations of inputs and outputs."""

    token_template: str = Field(
        default="contracts/token/Token.sol",
        description="Generic ERC20 template contract",
    )
    specialized_dir: str = Field(
        default="contracts/tmp",
        description="Directory receiving the specialized {symbol}ERC20.sol files",
    )
    build_dir: str = Field(
        default="build/contracts",
        description="Compiler artifact directory ({Name}.json)",
    )
    address_dir: str = Field(
        default="contracts/utils",
        description="Directory receiving Address.sol / Address.js / Address.d.ts",
    )
    bytecodes_file: str = Field(
        default="resources/bytecodes.json",
        description="Bytecode manifest output",
    )
    templates_dir: str | None = Field(
        default=None,
        description="Directory overriding the packaged output templates",
    )


class CompilerConfig(StrictModel):
    """External compiler invocation."""

    command: tuple[str, ...] = Field(
        default=("yarn", "truffle-compile"),
        min_length=1,
        description="Build command run in the project directory",
    )
    bytecode_field: Literal["deployedBytecode", "bytecode"] = Field(
        default="deployedBytecode",
        description="Which artifact field goes into the bytecode manifest",
    )


class LoggingConfig(StrictModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level for the CLI",
    )


# =============================================================================
# ROOT MODEL
# =============================================================================

class GeneratorConfig(StrictModel):
    """Root configuration for one generation run.

    Built once from the YAML config and the token list, then passed
    explicitly into the pipeline.
    """

    project_dir: Path = Field(
        default=Path("."),
        description="Contract project root; relative paths resolve against it",
    )
    tokens_file: str = Field(
        default="resources/tokens.json",
        description="JSON token list (read by the loader when 'tokens' is absent)",
    )
    tokens: tuple[TokenDescriptor, ...] = Field(
        default=(),
        description="Mirrored fungible tokens, in registry order",
    )
    lp_pairs: tuple[tuple[str, str], ...] = Field(
        default=(),
        description="Liquidity-pool token pairs by symbol",
    )
    paths: PathsConfig = Field(default_factory=PathsConfig)
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def unique_symbols(self) -> "GeneratorConfig":
        seen: set[str] = set()
        for token in self.tokens:
            if token.symbol in seen:
                raise ValueError(f"duplicate token symbol {token.symbol!r}")
            seen.add(token.symbol)
        return self

    @model_validator(mode="after")
    def lp_pairs_reference_tokens(self) -> "GeneratorConfig":
        symbols = {token.symbol for token in self.tokens}
        seen: set[frozenset[str]] = set()
        for first, second in self.lp_pairs:
            for symbol in (first, second):
                if symbol not in symbols:
                    raise ValueError(f"LP pair {first}/{second}: unknown token {symbol!r}")
            if first == second:
                raise ValueError(f"LP pair {first}/{second} pairs a token with itself")
            key = frozenset((first, second))
            if key in seen:
                raise ValueError(f"LP pair {first}/{second} is declared twice")
            seen.add(key)
        return self

    def token(self, symbol: str) -> TokenDescriptor:
        for token in self.tokens:
            if token.symbol == symbol:
                return token
        raise KeyError(symbol)

    def resolve(self, relative: str) -> Path:
        """Resolve a configured path against the project directory."""
        path = Path(relative)
        if path.is_absolute():
            return path
        return self.project_dir / path


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_config_dict(config_dict: dict[str, Any]) -> GeneratorConfig:
    """Validate a configuration dictionary.

    Args:
        config_dict: Configuration as a dictionary (may include "tokens").

    Returns:
        Validated GeneratorConfig instance.

    Raises:
        InputValidationError: If config or token list is invalid.
    """
    try:
        return GeneratorConfig.model_validate(config_dict)
    except ValidationError as e:
        raise InputValidationError(f"Invalid generator config: {e}") from e


def validate_tokens(tokens: list[dict[str, Any]]) -> tuple[TokenDescriptor, ...]:
    """Validate a raw token list on its own (symbol uniqueness included)."""
    return validate_config_dict({"tokens": tokens}).tokens


__all__ = [
    "StrictModel",
    "TokenDescriptor",
    "PathsConfig",
    "CompilerConfig",
    "LoggingConfig",
    "GeneratorConfig",
    "validate_config_dict",
    "validate_tokens",
    "is_identifier",
]
