from types import SimpleNamespace

import pytest
from eth_utils import to_checksum_address
from ethpm_types.abi import ABIType, MethodABI

from vault_deployment.constants import DEFAULT_VAULT_CONTRACT

# Common constants
WANT = to_checksum_address("0x280f2f0cc01b2fd1b10d830b5deaf2343a78d3d5")
STRATEGY = to_checksum_address("0xbb907e1e5f5fadaae2e1a81fa064700897c8b8db")
VAULT = to_checksum_address("0x220ef595e18465410c5b5c9ced6dd88a44f14289")
DEPLOYER = to_checksum_address("0x0000000000000000000000000000000000001234")

VAULT_CONSTRUCTOR_INPUTS = [
    ABIType(name="_token", type="address"),
    ABIType(name="_name", type="string"),
    ABIType(name="_symbol", type="string"),
    ABIType(name="_depositFee", type="uint256"),
    ABIType(name="_tvlCap", type="uint256"),
]

INITIALIZE_ABI = MethodABI(
    type="function",
    name="initialize",
    inputs=[ABIType(name="_strategy", type="address")],
    outputs=[],
    stateMutability="nonpayable",
)

VAULT_PARAMS_YAML = f"""
deployment:
  name: test-vault
  chain_id: 250

constants:
  LP_TOKEN: "{WANT.lower()}"

vault:
  want: $LP_TOKEN
  name: FTM-DAI WigoSwap Crypt
  symbol: rf-ws-FTM-DAI
  deposit_fee: 0
  tvl_cap: $MAX_UINT256
  strategy: "{STRATEGY.lower()}"
"""


# Fakes standing in for ape accounts, containers and transaction handlers
class FakeMethod:
    def __init__(self, contract, abi, error=None):
        self.contract = contract
        self.abis = [abi]
        self.error = error
        self.calls = []

    def __str__(self):
        return self.abis[0].name

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error:
            raise self.error
        return SimpleNamespace(txn_hash="0x" + "ab" * 32)


class FakeVaultContainer:
    def __init__(self, inputs=None, initialize_error=None):
        self.contract_type = SimpleNamespace(name=DEFAULT_VAULT_CONTRACT)
        inputs = VAULT_CONSTRUCTOR_INPUTS if inputs is None else inputs
        self.constructor = SimpleNamespace(abi=SimpleNamespace(inputs=inputs))
        self.initialize_error = initialize_error
        self.attached = []

    def at(self, address):
        vault = SimpleNamespace(contract_type=self.contract_type, address=address)
        vault.initialize = FakeMethod(vault, INITIALIZE_ABI, error=self.initialize_error)
        self.attached.append(vault)
        return vault


class FakeAccount:
    address = DEPLOYER

    def __init__(self, error=None):
        self.error = error
        self.autosign = None
        self.deployments = []

    def set_autosign(self, enabled):
        self.autosign = enabled

    def deploy(self, container, *args, **kwargs):
        self.deployments.append((container, args, kwargs))
        if self.error:
            raise self.error
        return SimpleNamespace(address=VAULT, contract_type=container.contract_type)


# Fixtures
@pytest.fixture
def account():
    return FakeAccount()


@pytest.fixture
def vault_container():
    return FakeVaultContainer()


@pytest.fixture
def params_filepath(tmp_path):
    filepath = tmp_path / "vault.yml"
    filepath.write_text(VAULT_PARAMS_YAML)
    return filepath


@pytest.fixture
def answer(monkeypatch):
    """Answers every confirmation prompt with the given reply."""

    def _answer(reply):
        prompts = []

        def _input(prompt):
            prompts.append(prompt)
            return reply

        monkeypatch.setattr("builtins.input", _input)
        return prompts

    return _answer
