from ape import networks

from vault_deployment.constants import LOCAL_BLOCKCHAIN_ENVIRONMENTS


def is_local_network() -> bool:
    """Returns True when connected to a development network."""
    return networks.provider.network.name in LOCAL_BLOCKCHAIN_ENVIRONMENTS


def get_chain_id() -> int:
    """Returns the chain id of the connected network."""
    return networks.provider.network.chain_id
