# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Publishing the starter-kit Move packages to Aptos testnet: to a fresh
object through `aptos move deploy-object`, to a resource account derived
from the deployer, or as an upgrade of code already held by an object.
"""

import os
from dataclasses import dataclass
from typing import Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress

from aptos_ccip.aptos_client import CcipRestClient
from aptos_ccip.encoding import aptos_address_bytes
from aptos_ccip.logging import log
from aptos_ccip.move_package import (
    AptosCli,
    create_resource_account_and_publish,
    read_compiled_package,
    resource_account_address,
    resource_account_seed,
    upgrade_object_code,
)
from aptos_ccip.network_config import APTOS_TESTNET

MODULES_DIR = "modules"

PACKAGE_NAMES = [
    APTOS_TESTNET.data_feed_demo_module_name,
    APTOS_TESTNET.ccip_sender_module_name,
]
ADDRESS_NAMES = [
    APTOS_TESTNET.data_feed_demo_address_name,
    APTOS_TESTNET.ccip_sender_address_name,
]
RECEIVER_PACKAGE_DIR = os.path.join(MODULES_DIR, APTOS_TESTNET.ccip_receiver_module_name)

# named addresses declared by the receiver package
DEPLOYER_ADDRESS_NAME = "deployer"
RECEIVER_ADDRESS_NAME = "receiver"


def package_dir_for(package_name: str, package_dir: Optional[str] = None) -> str:
    return package_dir or os.path.join(MODULES_DIR, package_name)


@dataclass(frozen=True)
class DeployObjectArgs:
    """Data class for storing the arguments to the deploy_object_main function"""

    package_name: str
    address_name: str
    package_dir: Optional[str] = None


def deploy_object_main(args: DeployObjectArgs, cli: AptosCli) -> Optional[str]:
    package_dir = package_dir_for(args.package_name, args.package_dir)
    log.info(f"Deploying {package_dir} to a new object as '{args.address_name}'")
    return cli.deploy_object(package_dir, args.address_name)


@dataclass(frozen=True)
class ResourceAccountResult:
    seed: str
    address: AccountAddress
    txn_hash: str


async def publish_resource_account_main(
    client: CcipRestClient,
    account: Account,
    cli: AptosCli,
    package_dir: str = RECEIVER_PACKAGE_DIR,
    seed: Optional[str] = None,
) -> ResourceAccountResult:
    """
    Creates a resource account from a fresh seed and publishes the receiver
    package to it in one transaction.
    """
    seed = seed or resource_account_seed()
    deployer = account.address()
    address = resource_account_address(deployer, seed)
    log.info(f'Generated seed "{seed}", derived resource account address {address}')

    cli.compile_package(
        package_dir,
        {DEPLOYER_ADDRESS_NAME: str(deployer), RECEIVER_ADDRESS_NAME: str(address)},
    )
    package = read_compiled_package(package_dir)
    log.info(f"Found and read {len(package.modules)} module(s) from {package_dir}.")

    txn = await client.submit_entry_function(
        account, create_resource_account_and_publish(seed, package)
    )
    return ResourceAccountResult(seed, address, txn["hash"])


@dataclass(frozen=True)
class UpgradeArgs:
    """Data class for storing the arguments to the upgrade_object_main function"""

    object_address: str
    package_name: str
    address_name: str
    package_dir: Optional[str] = None


async def upgrade_object_main(
    args: UpgradeArgs, client: CcipRestClient, account: Account, cli: AptosCli
) -> str:
    object_address = AccountAddress(aptos_address_bytes(args.object_address))
    package_dir = package_dir_for(args.package_name, args.package_dir)
    log.info(f"Upgrading object {object_address} with {package_dir}")

    cli.compile_package(package_dir, {args.address_name: str(object_address)})
    package = read_compiled_package(package_dir)
    log.info(f"Found and read {len(package.modules)} module(s) from {package_dir}.")

    txn = await client.submit_entry_function(
        account, upgrade_object_code(package, object_address)
    )
    return txn["hash"]
