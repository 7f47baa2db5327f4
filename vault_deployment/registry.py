import json
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from ape.contracts import ContractInstance
from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from vault_deployment.utils import _load_json

ChainId = int
RegistryName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryError(ValueError):
    """Raised when a registry cannot resolve a deployment unambiguously."""


class RegistryEntry(NamedTuple):
    """
    A deployed contract as recorded in a registry file. Entries are keyed
    by chain id and then by registry name, which is the deployment name
    of the params file the contract was deployed from.
    """

    chain_id: ChainId
    name: RegistryName
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str

    def to_json(self) -> dict:
        # stable abi order keeps registry diffs readable
        abi = sorted(self.abi, key=lambda item: (item["type"], item.get("name", "")))
        return {
            "address": self.address,
            "abi": abi,
            "tx_hash": self.tx_hash,
            "block_number": int(self.block_number),
            "deployer": self.deployer,
        }

    @classmethod
    def from_json(cls, chain_id: str, name: str, data: dict) -> "RegistryEntry":
        return cls(
            chain_id=int(chain_id),
            name=name,
            address=data["address"],
            abi=data["abi"],
            tx_hash=data["tx_hash"],
            block_number=data["block_number"],
            deployer=data["deployer"],
        )


def _get_abi(contract_instance: ContractInstance) -> ABI:
    """Returns the ABI of a contract instance."""
    abi = contract_instance.contract_type.abi
    return [item.model_dump(mode="json", by_alias=True) for item in abi]


def _get_entry(
    contract_instance: ContractInstance, registry_names: Dict[str, RegistryName]
) -> RegistryEntry:
    contract_name = contract_instance.contract_type.name
    receipt = contract_instance.receipt
    return RegistryEntry(
        chain_id=receipt.chain_id,
        name=registry_names.get(contract_name, contract_name),
        address=to_checksum_address(contract_instance.address),
        abi=_get_abi(contract_instance),
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        deployer=receipt.transaction.sender,
    )


def unmerged_filepath(filepath: Path) -> Path:
    """Sibling file that receives entries which would overwrite a recorded deployment."""
    return filepath.with_suffix(".unmerged.json")


def _load_registry(filepath: Path) -> Dict[str, Dict[str, dict]]:
    if not filepath.exists():
        return dict()
    return _load_json(filepath)


def read_registry(filepath: Path) -> List[RegistryEntry]:
    return [
        RegistryEntry.from_json(chain_id, name, data)
        for chain_id, deployments in _load_registry(filepath).items()
        for name, data in deployments.items()
    ]


def write_registry(entries: List[RegistryEntry], filepath: Path) -> Path:
    """
    Records entries in a registry file, next to the deployments already recorded
    for the same chain. A recorded deployment is never overwritten: when any entry
    reuses a recorded (chain id, name) pair, the entries go to the unmerged sibling
    file instead. Returns the path that was written.
    """
    if not entries:
        print("No entries provided.")
        return filepath

    registry = _load_registry(filepath)
    taken = [e for e in entries if e.name in registry.get(str(e.chain_id), dict())]
    if taken:
        names = ", ".join(f"{e.name} (chain {e.chain_id})" for e in taken)
        filepath = unmerged_filepath(filepath)
        print(f"{names} already recorded; writing to {filepath} to keep the existing entry.")
        registry = _load_registry(filepath)
    elif registry:
        print(f"Updating existing registry at {filepath}.")
    else:
        print(f"Creating new registry at {filepath}.")

    for entry in entries:
        registry.setdefault(str(entry.chain_id), dict())[entry.name] = entry.to_json()

    ordered = {
        chain_id: dict(sorted(registry[chain_id].items()))
        for chain_id in sorted(registry, key=int)
    }
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as file:
        json.dump(ordered, file, **STANDARD_REGISTRY_JSON_FORMAT)
    return filepath


def registry_from_ape_deployments(
    deployments: List[ContractInstance],
    output_filepath: Path,
    registry_names: Optional[Dict[str, RegistryName]] = None,
) -> Path:
    """
    Records ape deployments in a registry. `registry_names` maps a contract
    type name to the name its deployment is recorded under.
    """
    registry_names = registry_names or dict()
    entries = [_get_entry(instance, registry_names) for instance in deployments]
    output_filepath = write_registry(entries=entries, filepath=output_filepath)
    print(f"(i) Registry written to {output_filepath}!")
    return output_filepath


def _find_entry(filepath: Path, chain_id: ChainId, name: RegistryName) -> Optional[RegistryEntry]:
    for entry in read_registry(filepath):
        if entry.chain_id == chain_id and entry.name == name:
            return entry
    return None


def get_registry_entry(filepath: Path, chain_id: ChainId, name: RegistryName) -> RegistryEntry:
    """
    Returns the deployment recorded under `name` for the given chain.
    Refuses to choose when the unmerged sibling records a second deployment
    under the same name.
    """
    if not filepath.exists():
        raise RegistryError(f"No registry found at {filepath}")

    entry = _find_entry(filepath, chain_id, name)
    if entry is None:
        raise RegistryError(f"'{name}' not found in registry '{filepath}' for chain {chain_id}")

    unmerged = unmerged_filepath(filepath)
    duplicate = _find_entry(unmerged, chain_id, name)
    if duplicate is not None and duplicate.address != entry.address:
        raise RegistryError(
            f"'{name}' is recorded twice for chain {chain_id} "
            f"({entry.address} in {filepath}, {duplicate.address} in {unmerged}); "
            f"pass the vault address explicitly."
        )
    return entry
