# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import asyncio
from typing import Optional

import click

from aptos_ccip import environment
from aptos_ccip.aptos_client import rest_client
from aptos_ccip.deploy.aptos_publish import (
    ADDRESS_NAMES,
    PACKAGE_NAMES,
    RECEIVER_PACKAGE_DIR,
    DeployObjectArgs,
    UpgradeArgs,
    deploy_object_main,
    publish_resource_account_main,
    upgrade_object_main,
)
from aptos_ccip.deploy.evm_receiver import DeployReceiverArgs, deploy_receiver_main
from aptos_ccip.evm import EvmWallet, connect
from aptos_ccip.move_package import AptosCli
from aptos_ccip.network_config import (
    APTOS_TESTNET,
    SUPPORTED_EVM_CHAINS,
    get_evm_chain_config,
)

package_name_option = click.option(
    "--packageName",
    "package_name",
    required=True,
    type=click.Choice(PACKAGE_NAMES),
    help="Move package to publish.",
)
address_name_option = click.option(
    "--addressName",
    "address_name",
    required=True,
    type=click.Choice(ADDRESS_NAMES),
    help="Named address the package is published at.",
)
package_dir_option = click.option(
    "--packageDir",
    "package_dir",
    help="Path to the Move package. Defaults to modules/<packageName>.",
)
aptos_cli_option = click.option(
    "--aptos-cli-path",
    "aptos_cli_path",
    default=None,
    help="Pass the path to the aptos CLI if it is not in your $PATH var.",
)


def aptos_cli(aptos_cli_path: Optional[str]) -> AptosCli:
    return AptosCli(binary=aptos_cli_path)


@click.command("evm-receiver", help="Deploy the CCIP receiver contract to an EVM chain.")
@click.option(
    "--chain",
    required=True,
    type=click.Choice(SUPPORTED_EVM_CHAINS),
    help="EVM chain to deploy to.",
)
@click.option(
    "--artifact",
    "artifact_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Compiled contract JSON with abi and bytecode.",
)
def evm_receiver(chain: str, artifact_path: str):
    args = DeployReceiverArgs(chain=chain, artifact_path=artifact_path)
    private_key = environment.evm_private_key()
    w3 = connect(get_evm_chain_config(chain))
    address, tx_hash = deploy_receiver_main(args, w3, EvmWallet(w3, private_key))
    click.echo(f"Receiver contract is deployed to: {address}")
    click.echo(f"Deployment transaction: {get_evm_chain_config(chain).tx_url(tx_hash)}")


@click.command("aptos-object", help="Publish a Move package to a new object with the Aptos CLI.")
@package_name_option
@address_name_option
@package_dir_option
@aptos_cli_option
def aptos_object(
    package_name: str,
    address_name: str,
    package_dir: Optional[str],
    aptos_cli_path: Optional[str],
):
    args = DeployObjectArgs(package_name, address_name, package_dir)
    address = deploy_object_main(args, aptos_cli(aptos_cli_path))
    if address is None:
        click.echo(
            "Could not parse the object address from the CLI output, but the command succeeded."
        )
    else:
        click.echo(f"Deployed Object Address: {address}")


@click.command(
    "aptos-resource-account",
    help="Create a resource account and publish the ccip_message_receiver package to it.",
)
@click.option(
    "--packageDir",
    "package_dir",
    default=RECEIVER_PACKAGE_DIR,
    show_default=True,
    help="Path to the receiver Move package.",
)
@aptos_cli_option
def aptos_resource_account(package_dir: str, aptos_cli_path: Optional[str]):
    account = environment.aptos_account()
    cli = aptos_cli(aptos_cli_path)

    async def publish():
        client = rest_client()
        try:
            return await publish_resource_account_main(client, account, cli, package_dir)
        finally:
            await client.close()

    result = asyncio.run(publish())
    click.echo("Resource account created and package published successfully!")
    click.echo(f"Resource Account Address: {result.address}")
    click.echo(f"Transaction: {APTOS_TESTNET.tx_url(result.txn_hash)}")


@click.command("aptos-upgrade", help="Upgrade the code of a package held by an object.")
@click.option(
    "--objectAddress",
    "object_address",
    required=True,
    help="Address of the object to upgrade.",
)
@package_name_option
@address_name_option
@package_dir_option
@aptos_cli_option
def aptos_upgrade(
    object_address: str,
    package_name: str,
    address_name: str,
    package_dir: Optional[str],
    aptos_cli_path: Optional[str],
):
    args = UpgradeArgs(object_address, package_name, address_name, package_dir)
    account = environment.aptos_account()
    cli = aptos_cli(aptos_cli_path)

    async def upgrade():
        client = rest_client()
        try:
            return await upgrade_object_main(args, client, account, cli)
        finally:
            await client.close()

    txn_hash = asyncio.run(upgrade())
    click.echo("Object successfully upgraded with the new package!")
    click.echo(f"Transaction: {APTOS_TESTNET.tx_url(txn_hash)}")
