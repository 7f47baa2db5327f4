from pathlib import Path

import vault_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(vault_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

LOCAL_BLOCKCHAIN_ENVIRONMENTS = ["local"]
ETHERSCAN_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"

#
# Contracts
#

DEFAULT_VAULT_CONTRACT = "ReaperVaultv1_4"
INITIALIZE_METHOD = "initialize"

MAX_UINT256 = 2**256 - 1
MAX_UINT256_ALIAS = "max"

# deposit fee is expressed in basis points of this divisor
PERCENT_DIVISOR = 10_000

BUILTIN_CONSTANTS = {
    "MAX_UINT256": MAX_UINT256,
}

#
# Console
#

DEPLOYED_MESSAGE = "Vault deployed to: {address}"
INITIALIZED_MESSAGE = "Vault initialized"
