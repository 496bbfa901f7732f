# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import asyncio
from typing import Optional

import click

from aptos_ccip import environment
from aptos_ccip.aptos_client import IndexerClient, rest_client
from aptos_ccip.evm import EvmWallet, connect
from aptos_ccip.evm2aptos.ccip_send import CcipRouter, EvmSendArgs, evm_send_main
from aptos_ccip.evm2aptos.check_execution_state import check_state_main
from aptos_ccip.evm2aptos.latest_message import latest_message_main
from aptos_ccip.network_config import (
    APTOS_TESTNET,
    SUPPORTED_EVM_CHAINS,
    get_evm_chain_config,
)

source_chain_option = click.option(
    "--sourceChain",
    "source_chain",
    required=True,
    type=click.Choice(SUPPORTED_EVM_CHAINS),
    help="EVM chain the message is sent from.",
)
fee_token_option = click.option(
    "--feeToken",
    "fee_token",
    required=True,
    type=click.Choice(APTOS_TESTNET.fee_token_names),
    help="Token used to pay the CCIP fee.",
)
aptos_receiver_option = click.option(
    "--aptosReceiver",
    "aptos_receiver",
    required=True,
    help="Aptos account or receiver module address.",
)


def run_evm_send(args: EvmSendArgs) -> None:
    chain = get_evm_chain_config(args.source_chain)
    private_key = environment.evm_private_key()
    w3 = connect(chain)
    router = CcipRouter(w3, EvmWallet(w3, private_key), chain)
    click.echo(evm_send_main(args, router).describe())


@click.command("send", help="Send a message and/or CCIP-BnM tokens from an EVM chain to Aptos.")
@source_chain_option
@fee_token_option
@aptos_receiver_option
@click.option("--msgString", "message", help="Message to send as UTF-8 data.")
@click.option("--amount", help="Amount of CCIP-BnM to send, in whole tokens.")
@click.option(
    "--gasLimit",
    "gas_limit",
    type=click.IntRange(min=0),
    help="Gas limit for execution on Aptos.",
)
@click.option(
    "--allowOutOfOrderExecution/--strict",
    "allow_out_of_order_execution",
    default=True,
    show_default=True,
    help="Whether the message may be executed out of order.",
)
def send(
    source_chain: str,
    fee_token: str,
    aptos_receiver: str,
    message: Optional[str],
    amount: Optional[str],
    gas_limit: Optional[int],
    allow_out_of_order_execution: bool,
):
    run_evm_send(
        EvmSendArgs(
            source_chain=source_chain,
            fee_token=fee_token,
            aptos_receiver=aptos_receiver,
            message=message,
            amount=amount,
            gas_limit=gas_limit,
            allow_out_of_order_execution=allow_out_of_order_execution,
        )
    )


@click.command(
    "forward-token",
    help="Send CCIP-BnM tokens to an Aptos receiver module that forwards them to an account.",
)
@source_chain_option
@fee_token_option
@aptos_receiver_option
@click.option(
    "--aptosAccount",
    "aptos_account",
    required=True,
    help="Aptos account the receiver forwards the tokens to.",
)
@click.option("--amount", required=True, help="Amount of CCIP-BnM to send, in whole tokens.")
def forward_token(
    source_chain: str,
    fee_token: str,
    aptos_receiver: str,
    aptos_account: str,
    amount: str,
):
    run_evm_send(
        EvmSendArgs(
            source_chain=source_chain,
            fee_token=fee_token,
            aptos_receiver=aptos_receiver,
            aptos_account=aptos_account,
            amount=amount,
        )
    )


@click.command("check-state", help="Check the execution state of a message on Aptos.")
@click.option("--msgId", "message_id", required=True, help="CCIP message id.")
def check_state(message_id: str):
    async def check():
        client = rest_client()
        indexer = IndexerClient(environment.indexer_url())
        try:
            return await check_state_main(message_id, client, indexer)
        finally:
            await indexer.close()
            await client.close()

    click.echo(asyncio.run(check()).describe(message_id))


@click.command("latest-message", help="Print the latest message received by an Aptos receiver module.")
@aptos_receiver_option
def latest_message(aptos_receiver: str):
    async def fetch():
        indexer = IndexerClient(environment.indexer_url())
        try:
            return await latest_message_main(aptos_receiver, indexer)
        finally:
            await indexer.close()

    click.echo(asyncio.run(fetch()).describe())
