import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, NamedTuple, Optional

from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.utils import ZERO_ADDRESS
from eth_typing import ChecksumAddress
from eth_utils import is_hex_address, to_checksum_address
from ethpm_types import MethodABI
from web3.auto import w3

from vault_deployment.confirm import _confirm_resolution, _continue
from vault_deployment.constants import (
    BUILTIN_CONSTANTS,
    DEFAULT_VAULT_CONTRACT,
    INITIALIZE_METHOD,
    MAX_UINT256,
    MAX_UINT256_ALIAS,
    PERCENT_DIVISOR,
)
from vault_deployment.registry import registry_from_ape_deployments
from vault_deployment.utils import DeploymentConfigError, _load_yaml, verify_contracts

VARIABLE_PREFIX = "$"
CONSTANTS_KEY = "constants"
VAULT_KEY = "vault"


def is_variable(param: Any) -> bool:
    """Returns True if the param references a constant."""
    return isinstance(param, str) and param.startswith(VARIABLE_PREFIX)


def _resolve_param(value: Any, constants: typing.Dict[str, Any]) -> Any:
    if not is_variable(value):
        return value  # literally a value

    constant_name = value[len(VARIABLE_PREFIX) :]
    if constant_name in constants:
        return constants[constant_name]
    if constant_name in BUILTIN_CONSTANTS:
        return BUILTIN_CONSTANTS[constant_name]
    raise DeploymentConfigError(f"Constant '{constant_name}' not found in params file.")


def load_params(filepath: Optional[Path]) -> typing.Dict:
    """Loads a params YAML file; no file means an empty config."""
    if filepath is None:
        return dict()

    config = _load_yaml(filepath)
    if not isinstance(config, dict):
        raise DeploymentConfigError(f"Malformed params file {filepath}.")
    for section in (CONSTANTS_KEY, VAULT_KEY):
        if not isinstance(config.get(section) or dict(), dict):
            raise DeploymentConfigError(f"Malformed '{section}' section in params file.")
    return config


def merge_vault_config(config: typing.Dict, **overrides) -> typing.Dict[str, Any]:
    """
    Returns the vault section of a params config with constants resolved.
    Overrides that are not None take precedence over values from the file.
    """
    constants = config.get(CONSTANTS_KEY) or dict()
    vault_config = dict(config.get(VAULT_KEY) or dict())
    for name, value in overrides.items():
        if value is not None:
            vault_config[name] = value

    return {name: _resolve_param(value, constants) for name, value in vault_config.items()}


def _require(vault_config: typing.Dict[str, Any], field: str) -> Any:
    try:
        value = vault_config[field]
    except KeyError:
        raise DeploymentConfigError(f"'{field}' is not set in params file or options.")
    if value is None:
        raise DeploymentConfigError(f"'{field}' is not set in params file or options.")
    return value


def _to_address(field: str, value: Any) -> ChecksumAddress:
    if not isinstance(value, str) or not is_hex_address(value):
        raise DeploymentConfigError(f"'{field}' must be an address; got {value!r}.")
    address = to_checksum_address(value)
    if address == ZERO_ADDRESS:
        raise DeploymentConfigError(f"'{field}' cannot be the zero address.")
    return address


def _to_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DeploymentConfigError(f"'{field}' must be a non-empty string; got {value!r}.")
    return value


def _to_uint(field: str, value: Any, maximum: int) -> int:
    if isinstance(value, str) and value.strip().lower() == MAX_UINT256_ALIAS:
        value = MAX_UINT256
    if isinstance(value, (bool, float)):
        raise DeploymentConfigError(f"'{field}' must be an integer; got {value!r}.")
    try:
        ivalue = int(value)
    except (TypeError, ValueError):
        raise DeploymentConfigError(f"'{field}' must be an integer; got {value!r}.")
    if not 0 <= ivalue <= maximum:
        raise DeploymentConfigError(f"'{field}' must be between 0 and {maximum}; got {ivalue}.")
    return ivalue


class DeployRequest(NamedTuple):
    """Constructor arguments for a single vault deployment."""

    contract_name: str
    want: ChecksumAddress
    token_name: str
    token_symbol: str
    deposit_fee: int
    tvl_cap: int

    class Invalid(DeploymentConfigError):
        """Raised when the constructor arguments do not match the contract ABI"""

    def constructor_params(self) -> OrderedDict:
        """Constructor arguments by name, in constructor order."""
        return OrderedDict(
            [
                ("want", self.want),
                ("token_name", self.token_name),
                ("token_symbol", self.token_symbol),
                ("deposit_fee", self.deposit_fee),
                ("tvl_cap", self.tvl_cap),
            ]
        )

    def constructor_args(self) -> List[Any]:
        return list(self.constructor_params().values())

    @classmethod
    def from_config(cls, config: typing.Dict, **overrides) -> "DeployRequest":
        vault_config = merge_vault_config(config, **overrides)
        return cls(
            contract_name=_to_text("contract", vault_config.get("contract", DEFAULT_VAULT_CONTRACT)),
            want=_to_address("want", _require(vault_config, "want")),
            token_name=_to_text("name", _require(vault_config, "name")),
            token_symbol=_to_text("symbol", _require(vault_config, "symbol")),
            deposit_fee=_to_uint("deposit_fee", vault_config.get("deposit_fee", 0), PERCENT_DIVISOR),
            tvl_cap=_to_uint("tvl_cap", vault_config.get("tvl_cap", MAX_UINT256), MAX_UINT256),
        )


class InitializeRequest(NamedTuple):
    """Binds a deployed vault to its strategy."""

    contract_name: str
    vault: ChecksumAddress
    strategy: ChecksumAddress

    @classmethod
    def from_config(cls, config: typing.Dict, **overrides) -> "InitializeRequest":
        vault_config = merge_vault_config(config, **overrides)
        return cls(
            contract_name=_to_text("contract", vault_config.get("contract", DEFAULT_VAULT_CONTRACT)),
            vault=_to_address("address", _require(vault_config, "address")),
            strategy=_to_address("strategy", _require(vault_config, "strategy")),
        )


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def _validate_constructor_abi_inputs(
    contract_name: str,
    abi_inputs: List[Any],
    resolved_parameters: OrderedDict,
) -> None:
    """Validates the constructor parameters against the constructor ABI, by position."""
    if len(resolved_parameters) != len(abi_inputs):
        raise DeployRequest.Invalid(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
        )

    codex = enumerate(zip(abi_inputs, resolved_parameters.items()), start=0)
    for position, (abi_input, (name, value)) in codex:
        if not w3.is_encodable(abi_input.type, value):
            raise DeployRequest.Invalid(
                f"Constructor param '{name}' at position {position} has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_input.type}' "
                f"of '{abi_input.name}'"
            )


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        required_confirmations: typing.Optional[int] = None,
    ):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)
        self.required_confirmations = required_confirmations

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def _get_kwargs(self) -> typing.Dict[str, Any]:
        """Returns the transaction kwargs."""
        kwargs = {}
        if self.required_confirmations is not None:
            kwargs["required_confirmations"] = self.required_confirmations
        return kwargs

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        # blocks until the receipt is available
        result = method(*args, sender=self._account, **self._get_kwargs())
        return result

    def initialize_vault(
        self, container: ContractContainer, request: InitializeRequest
    ) -> ReceiptAPI:
        """Binds the strategy to an already deployed vault."""
        vault = container.at(request.vault)
        initialize = getattr(vault, INITIALIZE_METHOD)
        return self.transact(initialize, request.strategy)


class Deployer(Transactor):
    """
    Represents an ape account plus validated/annotated vault deployment.
    """

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        required_confirmations: typing.Optional[int] = None,
        verify: bool = False,
        registry_filepath: typing.Optional[Path] = None,
        registry_name: typing.Optional[str] = None,
    ):
        super().__init__(account, autosign, required_confirmations)
        self.verify = verify
        self.registry_filepath = registry_filepath
        self.registry_name = registry_name

    def deploy_vault(self, container: ContractContainer, request: DeployRequest) -> ContractInstance:
        contract_name = container.contract_type.name
        resolved_params = request.constructor_params()
        _validate_constructor_abi_inputs(
            contract_name=contract_name,
            abi_inputs=container.constructor.abi.inputs,
            resolved_parameters=resolved_params,
        )
        if not self._autosign:
            _confirm_resolution(resolved_params, contract_name)

        # blocks until the deployment receipt is available
        return self._account.deploy(container, *request.constructor_args(), **self._get_kwargs())

    def finalize(self, deployments: List[ContractInstance]) -> None:
        """
        Publishes the deployments to the registry and optionally to block explorers.
        """
        if self.registry_filepath:
            registry_names = dict()
            if self.registry_name:
                registry_names = {
                    instance.contract_type.name: self.registry_name for instance in deployments
                }
            registry_from_ape_deployments(
                deployments=deployments,
                output_filepath=self.registry_filepath,
                registry_names=registry_names,
            )
        if self.verify:
            verify_contracts(contracts=deployments)
