from pathlib import Path

import click

from vault_deployment.constants import DEFAULT_VAULT_CONTRACT
from vault_deployment.types import BasisPoints, ChecksumAddress, Uint256

params_filepath_option = click.option(
    "--params-filepath",
    "-p",
    help="Vault params YAML file.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=False,
)

contract_option = click.option(
    "--contract",
    "-c",
    "contract_name",
    help=f"Vault contract type; defaults to the params file, then {DEFAULT_VAULT_CONTRACT}.",
    type=click.STRING,
    required=False,
)

registry_filepath_option = click.option(
    "--registry-filepath",
    "-r",
    help="Registry to record (deploy) or look up (initialize) the vault in.",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)

required_confirmations_option = click.option(
    "--required-confirmations",
    help="Block confirmations to wait for; defaults to the network configuration.",
    type=click.IntRange(min=0),
    required=False,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without confirmation prompts.",
    is_flag=True,
    default=False,
)

want_option = click.option(
    "--want",
    help="Underlying asset address.",
    type=ChecksumAddress(),
    required=False,
)

token_name_option = click.option(
    "--token-name",
    help="Vault share token name.",
    type=click.STRING,
    required=False,
)

token_symbol_option = click.option(
    "--token-symbol",
    help="Vault share token symbol.",
    type=click.STRING,
    required=False,
)

deposit_fee_option = click.option(
    "--deposit-fee",
    help="Deposit fee in basis points.",
    type=BasisPoints(),
    required=False,
)

tvl_cap_option = click.option(
    "--tvl-cap",
    help="TVL cap in want token units; 'max' for no cap.",
    type=Uint256(),
    required=False,
)

vault_option = click.option(
    "--vault",
    "-v",
    help="Address of the deployed vault.",
    type=ChecksumAddress(),
    required=False,
)

strategy_option = click.option(
    "--strategy",
    "-s",
    help="Address of the strategy to bind the vault to.",
    type=ChecksumAddress(),
    required=False,
)
