import json
import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from ape import networks, project
from ape.contracts import ContractContainer, ContractInstance

from vault_deployment.constants import ARTIFACTS_DIR, ETHERSCAN_API_KEY_ENVVAR
from vault_deployment.networks import get_chain_id, is_local_network


class DeploymentConfigError(ValueError):
    pass


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file) or dict()


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def get_artifact_filepath(config: Dict) -> Optional[Path]:
    """Returns the filepath of the artifact file, if the params file names one."""
    artifact_config = config.get("artifacts")
    if not artifact_config:
        return None
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise DeploymentConfigError("artifact filename is not set in params file.")
    return artifact_dir / filename


def get_deployment_name(config: Dict, default: str) -> str:
    """Name a deployment is recorded under in the registry."""
    deployment = config.get("deployment") or dict()
    return deployment.get("name") or default


def check_chain_id(config: Dict, chain_id: int, live: bool) -> None:
    """
    Checks that the chain_id in the params file, if any, matches the
    connected network. Local networks are exempt.
    """
    deployment = config.get("deployment") or dict()
    config_chain_id = deployment.get("chain_id")
    if config_chain_id is None:
        return
    config_chain_id = int(config_chain_id)
    if config_chain_id != chain_id and live:
        raise DeploymentConfigError(
            f"chain_id in params file ({config_chain_id}) does not match "
            f"chain_id of current network ({chain_id})."
        )


def validate_config(config: Dict) -> None:
    print("Validating parameters YAML...")
    check_chain_id(config=config, chain_id=get_chain_id(), live=not is_local_network())


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        from ape_etherscan import utils as etherscan_utils
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to use this script.")
    ecosystem_name = networks.provider.network.ecosystem.name
    envvar_map = getattr(etherscan_utils, "API_KEY_ENV_KEY_MAP", {})
    explorer_envvar = envvar_map.get(ecosystem_name, ETHERSCAN_API_KEY_ENVVAR)
    api_key = os.environ.get(explorer_envvar)
    if not api_key:
        raise ValueError(f"{explorer_envvar} is not set.")


def check_infura_plugin() -> None:
    """Checks that the ape-infura plugin is installed."""
    if is_local_network():
        return  # unnecessary for local deployment
    if networks.provider.name != "infura":
        return  # unnecessary when using a provider different than infura
    try:
        import ape_infura  # noqa: F401
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-infura plugin to use this script.")
    for envvar in _ENVIRONMENT_VARIABLE_NAMES:
        api_key = os.environ.get(envvar)
        if api_key:
            break
    else:
        raise ValueError(
            f"No Infura API key found in "
            f"environment variables: {', '.join(_ENVIRONMENT_VARIABLE_NAMES)}"
        )


def check_plugins(verify: bool = False) -> None:
    print("Checking plugins...")
    if verify:
        check_etherscan_plugin()
    check_infura_plugin()


def verify_contracts(contracts: List[ContractInstance]) -> None:
    if is_local_network():
        print("(i) Skipping verification on local network.")
        return
    explorer = networks.provider.network.explorer
    for instance in contracts:
        print(f"(i) Verifying {instance.contract_type.name}...")
        explorer.publish_contract(instance.address)


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def print_deployment_info(account, params_filepath: Optional[Path], **details) -> None:
    print(
        f"Account: {account.address}",
        f"Config: {params_filepath or '(options only)'}",
        *(f"{name.replace('_', ' ').capitalize()}: {value}" for name, value in details.items()),
        f"Ecosystem: {networks.provider.network.ecosystem.name}",
        f"Network: {networks.provider.network.name}",
        f"Chain ID: {networks.provider.network.chain_id}",
        f"Gas Price: {networks.provider.gas_price}",
        sep="\n",
    )
