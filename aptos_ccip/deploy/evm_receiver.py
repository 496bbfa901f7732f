# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from web3 import Web3

from aptos_ccip.evm import EvmWallet, deploy_contract
from aptos_ccip.logging import log
from aptos_ccip.network_config import get_evm_chain_config


class InvalidArtifactError(Exception):
    """The compiled contract JSON has no usable abi or bytecode"""


@dataclass(frozen=True)
class DeployReceiverArgs:
    """Data class for storing the arguments to the deploy_receiver_main function"""

    chain: str
    artifact_path: str


def load_artifact(path: str) -> Tuple[List[Dict[str, Any]], str]:
    """
    Reads (abi, bytecode) from a compiled contract JSON. Both the flat
    `"bytecode": "0x..."` layout and Foundry's `"bytecode": {"object": ...}`
    are accepted.
    """
    with open(path, "r", encoding="utf-8") as f:
        artifact = json.load(f)

    abi = artifact.get("abi")
    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not isinstance(abi, list) or not isinstance(bytecode, str) or not bytecode:
        raise InvalidArtifactError(f"{path} must contain an abi list and bytecode")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return abi, bytecode


def deploy_receiver_main(
    args: DeployReceiverArgs, w3: Web3, wallet: EvmWallet
) -> Tuple[str, str]:
    chain = get_evm_chain_config(args.chain)
    abi, bytecode = load_artifact(args.artifact_path)

    log.info(f"Deploying receiver contract to {chain.network_name}...")
    address, tx_hash = deploy_contract(
        w3,
        wallet,
        abi,
        bytecode,
        (
            Web3.to_checksum_address(chain.ccip_router_address),
            Web3.to_checksum_address(chain.link_token_address),
        ),
    )
    log.info(f"Receiver contract is deployed to: {address}")
    return address, tx_hash
