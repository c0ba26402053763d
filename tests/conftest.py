"""Pytest fixtures for predeploy-gen tests.

Common fixtures: a token list matching resources/tokens.json, a throwaway
contract project under tmp_path, and a fake compiler that records its calls.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

import pytest

from predeploy_gen.config_schema import GeneratorConfig, validate_config_dict

from tests.testing_utils import FakeCompiler

REPO_ROOT = Path(__file__).parent.parent
TOKEN_TEMPLATE = REPO_ROOT / "contracts" / "token" / "Token.sol"


@pytest.fixture
def raw_tokens() -> list[dict[str, Any]]:
    """Token list as it appears in tokens.json."""
    return [
        {"name": "Setheum", "symbol": "SETM", "decimals": 18, "currencyId": 0},
        {"name": "Serp", "symbol": "SERP", "decimals": 18, "currencyId": 1},
        {"name": "The Dinar", "symbol": "DNAR", "decimals": 18, "currencyId": 2},
        {"name": "Slick USD", "symbol": "SETUSD", "decimals": 18, "currencyId": 5},
    ]


@pytest.fixture
def token_template() -> str:
    """The generic ERC20 template shipped in contracts/token."""
    return TOKEN_TEMPLATE.read_text()


@pytest.fixture
def project_dir(tmp_path: Path, raw_tokens: list[dict[str, Any]]) -> Path:
    """A minimal contract project: token template plus token list."""
    (tmp_path / "contracts" / "token").mkdir(parents=True)
    shutil.copy(TOKEN_TEMPLATE, tmp_path / "contracts" / "token" / "Token.sol")
    (tmp_path / "resources").mkdir()
    (tmp_path / "resources" / "tokens.json").write_text(json.dumps(raw_tokens, indent=2))
    return tmp_path


@pytest.fixture
def config(project_dir: Path, raw_tokens: list[dict[str, Any]]) -> GeneratorConfig:
    """Validated config rooted at the temporary project."""
    return validate_config_dict({
        "project_dir": project_dir,
        "tokens": raw_tokens,
        "lp_pairs": [["SETM", "SETUSD"], ["SERP", "SETUSD"]],
    })


@pytest.fixture
def fake_compiler(project_dir: Path) -> FakeCompiler:
    """Fake compiler watching the project's Address.sol."""
    return FakeCompiler(address_sol=project_dir / "contracts" / "utils" / "Address.sol")
