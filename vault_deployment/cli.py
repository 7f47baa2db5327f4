from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from vault_deployment.constants import DEFAULT_VAULT_CONTRACT, DEPLOYED_MESSAGE, INITIALIZED_MESSAGE
from vault_deployment.networks import get_chain_id
from vault_deployment.options import (
    autosign_option,
    contract_option,
    deposit_fee_option,
    params_filepath_option,
    registry_filepath_option,
    required_confirmations_option,
    strategy_option,
    token_name_option,
    token_symbol_option,
    tvl_cap_option,
    vault_option,
    want_option,
)
from vault_deployment.params import (
    Deployer,
    DeployRequest,
    InitializeRequest,
    Transactor,
    _to_address,
    load_params,
    merge_vault_config,
)
from vault_deployment.registry import get_registry_entry
from vault_deployment.utils import (
    DeploymentConfigError,
    check_plugins,
    get_artifact_filepath,
    get_contract_container,
    get_deployment_name,
    print_deployment_info,
    validate_config,
)

DEPLOY_FIELDS = ("want", "name", "symbol")


@contextmanager
def _exit_on_failure():
    """Reports any failure on stderr and exits with status 1."""
    try:
        yield
    except click.ClickException:
        raise
    except Exception as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e


def run_deploy(
    account,
    params_filepath: Optional[Path] = None,
    registry_filepath: Optional[Path] = None,
    required_confirmations: Optional[int] = None,
    verify: bool = False,
    autosign: bool = False,
    **overrides,
) -> None:
    """Deploys a vault and reports its address."""
    with _exit_on_failure():
        config = load_params(params_filepath)
        request = DeployRequest.from_config(config, **overrides)
        check_plugins(verify=verify)
        validate_config(config)

        deployer = Deployer(
            account=account,
            autosign=autosign,
            required_confirmations=required_confirmations,
            verify=verify,
            registry_filepath=registry_filepath or get_artifact_filepath(config),
            registry_name=get_deployment_name(config, default=request.contract_name),
        )
        print_deployment_info(
            deployer.get_account(),
            params_filepath,
            registry=deployer.registry_filepath,
            verify=verify,
        )
        container = get_contract_container(request.contract_name)
        vault = deployer.deploy_vault(container, request)
        click.echo(DEPLOYED_MESSAGE.format(address=vault.address))
        try:
            deployer.finalize(deployments=[vault])
        except Exception as e:
            raise click.ClickException(
                f"Vault deployed to {vault.address}, but post-deploy steps failed: "
                f"{type(e).__name__}: {e}"
            ) from e


def _lookup_vault_address(config, vault_config, registry_filepath: Optional[Path]) -> str:
    registry_filepath = registry_filepath or get_artifact_filepath(config)
    if not registry_filepath:
        raise DeploymentConfigError("Provide the vault address, or a registry to look it up in.")
    contract_name = vault_config.get("contract", DEFAULT_VAULT_CONTRACT)
    name = get_deployment_name(config, default=contract_name)
    entry = get_registry_entry(registry_filepath, chain_id=get_chain_id(), name=name)
    click.echo(f"Using {name} at {entry.address} from {registry_filepath}")
    return entry.address


def run_initialize(
    account,
    params_filepath: Optional[Path] = None,
    registry_filepath: Optional[Path] = None,
    required_confirmations: Optional[int] = None,
    autosign: bool = False,
    **overrides,
) -> None:
    """Binds a deployed vault to its strategy and reports success."""
    with _exit_on_failure():
        config = load_params(params_filepath)
        vault_config = merge_vault_config(config, **overrides)
        if vault_config.get("address") is None:
            overrides["address"] = _lookup_vault_address(config, vault_config, registry_filepath)
        request = InitializeRequest.from_config(config, **overrides)
        check_plugins()
        validate_config(config)

        transactor = Transactor(
            account=account,
            autosign=autosign,
            required_confirmations=required_confirmations,
        )
        print_deployment_info(transactor.get_account(), params_filepath, vault=request.vault)
        container = get_contract_container(request.contract_name)
        transactor.initialize_vault(container, request)
    click.echo(INITIALIZED_MESSAGE)


@click.group()
def cli():
    """Vault deployment CLI"""


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@params_filepath_option
@contract_option
@want_option
@token_name_option
@token_symbol_option
@deposit_fee_option
@tvl_cap_option
@registry_filepath_option
@required_confirmations_option
@click.option("--verify/--no-verify", help="Publish the vault source.", default=False)
@autosign_option
def deploy(
    network,
    account,
    params_filepath,
    contract_name,
    want,
    token_name,
    token_symbol,
    deposit_fee,
    tvl_cap,
    registry_filepath,
    required_confirmations,
    verify,
    autosign,
):
    """Deploy a vault contract."""
    run_deploy(
        account=account,
        params_filepath=params_filepath,
        registry_filepath=registry_filepath,
        required_confirmations=required_confirmations,
        verify=verify,
        autosign=autosign,
        contract=contract_name,
        want=want,
        name=token_name,
        symbol=token_symbol,
        deposit_fee=deposit_fee,
        tvl_cap=tvl_cap,
    )


@cli.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@params_filepath_option
@contract_option
@vault_option
@strategy_option
@registry_filepath_option
@required_confirmations_option
@autosign_option
def initialize(
    network,
    account,
    params_filepath,
    contract_name,
    vault,
    strategy,
    registry_filepath,
    required_confirmations,
    autosign,
):
    """Bind a deployed vault to its strategy."""
    run_initialize(
        account=account,
        params_filepath=params_filepath,
        registry_filepath=registry_filepath,
        required_confirmations=required_confirmations,
        autosign=autosign,
        contract=contract_name,
        address=vault,
        strategy=strategy,
    )


@cli.command()
@click.argument(
    "params_filepath", type=click.Path(dir_okay=False, exists=True, path_type=Path)
)
def show(params_filepath):
    """Print the resolved vault parameters of a params file."""
    with _exit_on_failure():
        config = load_params(params_filepath)
        vault_config = merge_vault_config(config)
        if not vault_config:
            raise click.ClickException(f"No vault parameters in {params_filepath}")

        if any(field in vault_config for field in DEPLOY_FIELDS):
            request = DeployRequest.from_config(config)
            click.secho(f"Deploy {request.contract_name}", fg="green")
            for name, value in request.constructor_params().items():
                click.echo(f"\t{name}={value}")

        if "strategy" in vault_config:
            contract_name = vault_config.get("contract", DEFAULT_VAULT_CONTRACT)
            click.secho(f"Initialize {contract_name}", fg="green")
            if vault_config.get("address") is None:
                click.echo("\tvault=(registry lookup)")
                click.echo(f"\tstrategy={_to_address('strategy', vault_config['strategy'])}")
            else:
                request = InitializeRequest.from_config(config)
                click.echo(f"\tvault={request.vault}")
                click.echo(f"\tstrategy={request.strategy}")
