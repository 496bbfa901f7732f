# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import asyncio
import os
from typing import Optional

import click
from aptos_sdk.account_address import AccountAddress

from aptos_ccip import environment
from aptos_ccip.aptos_client import rest_client
from aptos_ccip.encoding import aptos_address_bytes
from aptos_ccip.evm import EvmWallet, connect
from aptos_ccip.network_config import (
    ALL_NETWORKS,
    APTOS_TESTNET,
    get_evm_chain_config,
)
from aptos_ccip.ops.faucet import drip_main
from aptos_ccip.ops.price_feed import fetch_price_main, get_price_main
from aptos_ccip.ops.withdraw import (
    WithdrawArgs,
    withdraw_on_aptos_main,
    withdraw_on_evm_main,
)


@click.command("drip", help="Mint 1 CCIP-BnM token on Aptos testnet.")
@click.option("--to", required=True, help="Aptos address to drip the token to.")
def drip(to: str):
    account = environment.aptos_account()

    async def run():
        client = rest_client()
        try:
            return await drip_main(to, client, account)
        finally:
            await client.close()

    txn_hash = asyncio.run(run())
    click.echo(
        f"1 CCIP-BnM token is minted to {to} successfully.\n"
        f"Please check the transaction at {APTOS_TESTNET.tx_url(txn_hash)}"
    )


@click.command("fetch-price", help="Store the latest data feed report through the price_feed_demo module.")
@click.option(
    "--priceFeedDemo",
    "price_feed_demo",
    help=f"Address of the price_feed_demo module. Defaults to ${environment.DATA_FEED_DEMO_MODULE_ADDRESS_ENV}.",
)
@click.option(
    "--feedId",
    "feed_id",
    help=f"Data feed id. Defaults to ${environment.DATA_FEED_ID_ENV}, then the BTC/USD feed.",
)
def fetch_price(price_feed_demo: Optional[str], feed_id: Optional[str]):
    module_address = price_feed_demo or environment.require_env(
        environment.DATA_FEED_DEMO_MODULE_ADDRESS_ENV
    )
    feed_id = feed_id or os.getenv(environment.DATA_FEED_ID_ENV) or APTOS_TESTNET.data_feed_id
    account = environment.aptos_account()

    async def run():
        client = rest_client()
        try:
            return await fetch_price_main(module_address, feed_id, client, account)
        finally:
            await client.close()

    txn_hash = asyncio.run(run())
    click.echo(f"Transaction submitted successfully. Transaction Hash: {txn_hash}")


@click.command("get-price", help="Read the stored price data for an account from the price_feed_demo module.")
@click.option(
    "--priceFeedDemo",
    "price_feed_demo",
    required=True,
    help="Address of the price_feed_demo module.",
)
@click.option(
    "--account",
    "account_address",
    help="Account whose price data is read. Defaults to the PRIVATE_KEY_HEX account.",
)
def get_price(price_feed_demo: str, account_address: Optional[str]):
    if account_address:
        owner = AccountAddress(aptos_address_bytes(account_address))
    else:
        owner = environment.aptos_account().address()

    async def run():
        client = rest_client()
        try:
            return await get_price_main(price_feed_demo, owner, client)
        finally:
            await client.close()

    price = asyncio.run(run())
    if price is None:
        click.echo("No PriceData found for the given address.")
    else:
        click.echo(f"Price: {price.price}")
        click.echo(f"Timestamp: {price.timestamp}")


@click.command("withdraw", help="Withdraw CCIP-BnM tokens held by a receiver module or contract.")
@click.option(
    "--network",
    required=True,
    type=click.Choice(ALL_NETWORKS),
    help="Chain the receiver is deployed on.",
)
@click.option("--receiver", required=True, help="Receiver module or contract address.")
@click.option("--to", required=True, help="Wallet address to withdraw the tokens to.")
def withdraw(network: str, receiver: str, to: str):
    args = WithdrawArgs(network=network, receiver=receiver, to=to)
    if network == APTOS_TESTNET.network_name:
        account = environment.aptos_account()

        async def run():
            client = rest_client()
            try:
                return await withdraw_on_aptos_main(args, client, account)
            finally:
                await client.close()

        tx_url = APTOS_TESTNET.tx_url(asyncio.run(run()))
    else:
        chain = get_evm_chain_config(network)
        private_key = environment.evm_private_key()
        w3 = connect(chain)
        tx_url = chain.tx_url(withdraw_on_evm_main(args, w3, EvmWallet(w3, private_key), chain))

    click.echo(f"Transaction successful: {tx_url}")
    click.echo(f"Tokens have been successfully withdrawn to {to}")
