"""Token specializer: instantiate the generic ERC20 template per token.

The generic template (contracts/token/Token.sol) is a compilable contract
whose token-specific constants hold well-known placeholder values. Each
placeholder is a whole declaration line; specialization swaps every line for
the token's value and then checks that nothing generic is left behind.

Usage:
    from predeploy_gen.specializer import specialize

    source = specialize(template_text, token)
    # 'contract SETMERC20 is IERC20' ... '_currencyId = 0x0;' ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .config_schema import TokenDescriptor
from .errors import TemplateMismatch

logger = logging.getLogger(__name__)

CURRENCY_ID_BITS = 8
CURRENCY_ID_SHIFT = 8


@dataclass(frozen=True)
class Placeholder:
    """A generic declaration in the template and its per-token replacement."""

    key: str
    generic: str
    replacement: str

    def render(self, values: dict[str, str]) -> str:
        return self.replacement.format(**values)


TOKEN_PLACEHOLDERS: tuple[Placeholder, ...] = (
    Placeholder(
        "contract_name",
        "contract ERC20 is IERC20",
        "contract {contract_name} is IERC20",
    ),
    Placeholder(
        "currency_id",
        "uint256 private constant _currencyId = 0xffff;",
        "uint256 private constant _currencyId = {currency_id};",
    ),
    Placeholder(
        "name",
        'string private constant _name = "TEMPLATE";',
        'string private constant _name = "{name}";',
    ),
    Placeholder(
        "symbol",
        'string private constant _symbol = "TEMP";',
        'string private constant _symbol = "{symbol}";',
    ),
    Placeholder(
        "decimals",
        "uint8 private constant _decimals = 0;",
        "uint8 private constant _decimals = {decimals};",
    ),
)

# Specialized sources live in contracts/tmp, one level away from the
# template's siblings.
IMPORT_RELOCATIONS: tuple[tuple[str, str], ...] = (
    ('import "./MultiCurrency.sol";', 'import "../token/MultiCurrency.sol";'),
    ('import "./IMultiCurrency.sol";', 'import "../token/IMultiCurrency.sol";'),
)


def encode_currency_id(currency_id: int) -> int:
    """Convert a u8 currency id into its packed uint256 constant.

    The id moves into byte 30 of the big-endian word so that bytes 29 and 31
    stay zero, which is how the runtime's multi-currency precompile decodes it.
    """
    if not 0 <= currency_id < (1 << CURRENCY_ID_BITS):
        raise ValueError(f"currency id {currency_id} does not fit in {CURRENCY_ID_BITS} bits")
    return currency_id << CURRENCY_ID_SHIFT


def format_currency_id(currency_id: int) -> str:
    return hex(encode_currency_id(currency_id))


def placeholder_values(token: TokenDescriptor) -> dict[str, str]:
    return {
        "contract_name": token.contract_name,
        "currency_id": format_currency_id(token.currency_id),
        "name": token.name,
        "symbol": token.symbol,
        "decimals": str(token.decimals),
    }


def specialize(
    template: str,
    token: TokenDescriptor,
    placeholders: Iterable[Placeholder] = TOKEN_PLACEHOLDERS,
) -> str:
    """Return the template with every placeholder replaced for `token`.

    Raises:
        TemplateMismatch: If a placeholder is missing from the template, or
            any generic declaration survives substitution
    """
    values = placeholder_values(token)
    placeholders = tuple(placeholders)
    source = template

    for placeholder in placeholders:
        if placeholder.generic not in source:
            raise TemplateMismatch(token.symbol, placeholder.generic, "not found in template")
        source = source.replace(placeholder.generic, placeholder.render(values))

    for old, new in IMPORT_RELOCATIONS:
        source = source.replace(old, new)

    for placeholder in placeholders:
        rendered = placeholder.render(values)
        if rendered != placeholder.generic and placeholder.generic in source:
            raise TemplateMismatch(
                token.symbol, placeholder.generic, "still present after substitution"
            )

    logger.debug(f"Specialized {token.contract_name} (currency id {token.currency_id})")
    return source


def specialize_all(template: str, tokens: Iterable[TokenDescriptor]) -> dict[str, str]:
    """Specialize the template for each token, keyed by contract name, in order."""
    sources: dict[str, str] = {}
    for token in tokens:
        sources[token.contract_name] = specialize(template, token)
    return sources
