import pytest
from eth_utils import to_checksum_address

from tests.conftest import STRATEGY, VAULT, WANT
from vault_deployment.constants import DEFAULT_VAULT_CONTRACT, MAX_UINT256
from vault_deployment.params import (
    DeployRequest,
    InitializeRequest,
    load_params,
    merge_vault_config,
)
from vault_deployment.utils import DeploymentConfigError


def test_deploy_request_from_params_file(params_filepath):
    config = load_params(params_filepath)
    request = DeployRequest.from_config(config)

    assert request.contract_name == DEFAULT_VAULT_CONTRACT
    assert request.want == WANT
    assert request.token_name == "FTM-DAI WigoSwap Crypt"
    assert request.token_symbol == "rf-ws-FTM-DAI"
    assert request.deposit_fee == 0
    assert request.tvl_cap == MAX_UINT256


def test_constructor_args_follow_constructor_order(params_filepath):
    request = DeployRequest.from_config(load_params(params_filepath), deposit_fee=25, tvl_cap=10)
    assert request.constructor_args() == [
        WANT,
        "FTM-DAI WigoSwap Crypt",
        "rf-ws-FTM-DAI",
        25,
        10,
    ]


def test_options_override_params_file(params_filepath):
    config = load_params(params_filepath)
    request = DeployRequest.from_config(
        config, contract="ReaperVaultv1_5", symbol="rf-OTHER", want=None, tvl_cap="max"
    )
    assert request.contract_name == "ReaperVaultv1_5"
    assert request.token_symbol == "rf-OTHER"
    assert request.want == WANT  # None does not override
    assert request.tvl_cap == MAX_UINT256


def test_deploy_request_without_params_file():
    request = DeployRequest.from_config(
        load_params(None), want=WANT.lower(), name="Crypt", symbol="rf-X"
    )
    assert request.want == WANT
    assert request.deposit_fee == 0
    assert request.tvl_cap == MAX_UINT256


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"want": None, "name": "Crypt", "symbol": "rf-X"}, "'want' is not set"),
        ({"want": "0x1234", "name": "Crypt", "symbol": "rf-X"}, "'want' must be an address"),
        ({"want": "0x" + "0" * 40, "name": "Crypt", "symbol": "rf-X"}, "zero address"),
        ({"want": WANT, "name": "", "symbol": "rf-X"}, "'name' must be a non-empty string"),
        ({"want": WANT, "name": "Crypt"}, "'symbol' is not set"),
        ({"want": WANT, "name": "Crypt", "symbol": "rf-X", "deposit_fee": 10_001}, "deposit_fee"),
        ({"want": WANT, "name": "Crypt", "symbol": "rf-X", "deposit_fee": -1}, "deposit_fee"),
        ({"want": WANT, "name": "Crypt", "symbol": "rf-X", "tvl_cap": 2**256}, "tvl_cap"),
        ({"want": WANT, "name": "Crypt", "symbol": "rf-X", "tvl_cap": "lots"}, "tvl_cap"),
        ({"want": WANT, "name": "Crypt", "symbol": "rf-X", "tvl_cap": True}, "tvl_cap"),
    ],
)
def test_invalid_deploy_request(overrides, message):
    with pytest.raises(DeploymentConfigError, match=message):
        DeployRequest.from_config(dict(), **overrides)


@pytest.mark.parametrize("field, value", [("deposit_fee", "2.5"), ("tvl_cap", "1.0e+30")])
def test_fractional_amounts_are_not_truncated(tmp_path, field, value):
    filepath = tmp_path / "vault.yml"
    vault_section = f"vault:\n  want: '{WANT}'\n  name: Crypt\n  symbol: rf-X\n"
    filepath.write_text(f"{vault_section}  {field}: {value}\n")
    config = load_params(filepath)
    assert isinstance(config["vault"][field], float)

    with pytest.raises(DeploymentConfigError, match=f"'{field}' must be an integer"):
        DeployRequest.from_config(config)


def test_unknown_constant():
    config = {"vault": {"want": "$NOT_DEFINED", "name": "Crypt", "symbol": "rf-X"}}
    with pytest.raises(DeploymentConfigError, match="Constant 'NOT_DEFINED' not found"):
        DeployRequest.from_config(config)


def test_file_constants_shadow_builtins():
    config = {"constants": {"MAX_UINT256": 5}, "vault": {"tvl_cap": "$MAX_UINT256"}}
    assert merge_vault_config(config)["tvl_cap"] == 5


def test_initialize_request(params_filepath):
    config = load_params(params_filepath)
    request = InitializeRequest.from_config(config, address=VAULT.lower())
    assert request == InitializeRequest(
        contract_name=DEFAULT_VAULT_CONTRACT, vault=VAULT, strategy=STRATEGY
    )


def test_initialize_request_requires_vault_address(params_filepath):
    config = load_params(params_filepath)
    with pytest.raises(DeploymentConfigError, match="'address' is not set"):
        InitializeRequest.from_config(config)


def test_initialize_request_rejects_zero_strategy():
    with pytest.raises(DeploymentConfigError, match="'strategy' cannot be the zero address"):
        InitializeRequest.from_config(
            dict(), address=VAULT, strategy=to_checksum_address("0x" + "0" * 40)
        )


@pytest.mark.parametrize("content", ["- just\n- a list\n", "vault: not-a-mapping\n"])
def test_malformed_params_file(tmp_path, content):
    filepath = tmp_path / "bad.yml"
    filepath.write_text(content)
    with pytest.raises(DeploymentConfigError, match="Malformed"):
        load_params(filepath)
