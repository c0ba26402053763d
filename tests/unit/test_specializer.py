"""Unit tests for token contract specialization."""

from __future__ import annotations

import pytest

from predeploy_gen.config_schema import TokenDescriptor
from predeploy_gen.errors import TemplateMismatch
from predeploy_gen.specializer import (
    TOKEN_PLACEHOLDERS,
    encode_currency_id,
    format_currency_id,
    specialize,
    specialize_all,
)


def make_token(symbol: str = "SETM", currency_id: int = 0, **overrides: object) -> TokenDescriptor:
    data = {"name": "Setheum", "symbol": symbol, "decimals": 18, "currencyId": currency_id}
    data.update(overrides)
    return TokenDescriptor.model_validate(data)


class TestCurrencyIdEncoding:
    """The u8 currency id is shifted into byte 30 of the uint256 word."""

    def test_shift(self) -> None:
        assert encode_currency_id(0) == 0
        assert encode_currency_id(1) == 0x100
        assert encode_currency_id(255) == 0xFF00

    def test_low_and_high_bytes_stay_zero(self) -> None:
        for currency_id in range(256):
            word = encode_currency_id(currency_id).to_bytes(32, "big")
            assert word[31] == 0
            assert word[29] == 0
            assert word[30] == currency_id

    def test_hex_rendering(self) -> None:
        assert format_currency_id(0) == "0x0"
        assert format_currency_id(5) == "0x500"
        assert format_currency_id(16) == "0x1000"

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_currency_id(256)
        with pytest.raises(ValueError):
            encode_currency_id(-1)


class TestSpecialize:
    """specialize() substitutes every placeholder and validates completeness."""

    def test_substitutes_all_constants(self, token_template: str) -> None:
        source = specialize(token_template, make_token("SETUSD", 5, name="Slick USD", decimals=12))

        assert "contract SETUSDERC20 is IERC20" in source
        assert "uint256 private constant _currencyId = 0x500;" in source
        assert 'string private constant _name = "Slick USD";' in source
        assert 'string private constant _symbol = "SETUSD";' in source
        assert "uint8 private constant _decimals = 12;" in source

    def test_no_placeholder_survives(self, token_template: str) -> None:
        for currency_id, symbol in enumerate(["SETM", "SERP", "DNAR", "HELP"]):
            source = specialize(token_template, make_token(symbol, currency_id))
            for placeholder in TOKEN_PLACEHOLDERS:
                assert placeholder.generic not in source

    def test_imports_relocated(self, token_template: str) -> None:
        source = specialize(token_template, make_token())
        assert 'import "../token/MultiCurrency.sol";' in source
        assert 'import "../token/IMultiCurrency.sol";' in source
        assert 'import "./MultiCurrency.sol";' not in source

    def test_template_untouched(self, token_template: str) -> None:
        before = token_template
        specialize(token_template, make_token())
        assert token_template == before

    def test_missing_placeholder_raises(self, token_template: str) -> None:
        drifted = token_template.replace(
            "uint8 private constant _decimals = 0;", "uint8 private constant _decimals = 18;"
        )
        with pytest.raises(TemplateMismatch) as exc_info:
            specialize(drifted, make_token())
        assert exc_info.value.symbol == "SETM"
        assert "_decimals" in exc_info.value.placeholder

    def test_duplicated_placeholder_all_replaced(self, token_template: str) -> None:
        doubled = token_template + "\n// contract ERC20 is IERC20\n"
        source = specialize(doubled, make_token())
        assert "contract ERC20 is IERC20" not in source
        assert source.count("contract SETMERC20 is IERC20") == 2

    def test_generic_values_as_real_values(self, token_template: str) -> None:
        # A token whose real decimals equal the generic value is still valid.
        source = specialize(token_template, make_token(decimals=0))
        assert "uint8 private constant _decimals = 0;" in source


class TestSpecializeAll:
    def test_keyed_by_contract_name_in_order(self, token_template: str) -> None:
        tokens = [make_token("SETM", 0), make_token("SERP", 1), make_token("DNAR", 2)]
        sources = specialize_all(token_template, tokens)
        assert list(sources) == ["SETMERC20", "SERPERC20", "DNARERC20"]
        assert "_currencyId = 0x200;" in sources["DNARERC20"]
