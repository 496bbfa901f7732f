# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import asyncio
from typing import Optional

import click

from aptos_ccip import environment
from aptos_ccip.aptos2evm.ccip_send import (
    SendArgs,
    SendKind,
    ccip_send_main,
    describe_result,
)
from aptos_ccip.aptos2evm.check_execution_state import (
    CheckStateArgs,
    check_state_main,
    offramp_log_source,
)
from aptos_ccip.aptos2evm.message_id import message_id_main
from aptos_ccip.aptos_client import rest_client
from aptos_ccip.evm import connect
from aptos_ccip.execution_state import DEFAULT_BLOCK_WINDOW
from aptos_ccip.network_config import APTOS_TESTNET, get_evm_chain_config

DEST_CHAINS = list(APTOS_TESTNET.dest_chains.values())


def send_options(func):
    """Options shared by every Aptos to EVM send"""
    for option in reversed(
        [
            click.option(
                "--feeToken",
                "fee_token",
                required=True,
                type=click.Choice(APTOS_TESTNET.fee_token_names),
                help="Token used to pay the CCIP fee.",
            ),
            click.option(
                "--destChain",
                "dest_chain",
                required=True,
                type=click.Choice(DEST_CHAINS),
                help="Destination EVM chain.",
            ),
            click.option(
                "--evmReceiver",
                "evm_receiver",
                required=True,
                help="20 byte hex address of the receiver on the destination chain.",
            ),
            click.option(
                "--aptosSender",
                "aptos_sender",
                help="Object address of a deployed ccip_message_sender module. Sends through the router when omitted.",
            ),
            click.option(
                "--gasLimit",
                "gas_limit",
                type=click.IntRange(min=0),
                help="Gas limit for execution on the destination chain.",
            ),
            click.option(
                "--allowOutOfOrderExecution/--strict",
                "allow_out_of_order_execution",
                default=True,
                show_default=True,
                help="Whether the message may be executed out of order.",
            ),
        ]
    ):
        func = option(func)
    return func


def run_send(args: SendArgs) -> None:
    account = environment.aptos_account()
    fee_token_store = environment.fee_token_store(APTOS_TESTNET.fee_token_store_address)

    async def send():
        client = rest_client()
        try:
            return await ccip_send_main(args, client, account, fee_token_store)
        finally:
            await client.close()

    result = asyncio.run(send())
    click.echo(describe_result(result))


@click.command("send-message", help="Send an arbitrary message from Aptos to an EVM chain.")
@send_options
@click.option(
    "--msgString",
    "message",
    required=True,
    help="Message to send.",
)
def send_message(
    fee_token: str,
    dest_chain: str,
    evm_receiver: str,
    aptos_sender: Optional[str],
    gas_limit: Optional[int],
    allow_out_of_order_execution: bool,
    message: str,
):
    run_send(
        SendArgs(
            kind=SendKind.MESSAGE,
            fee_token=fee_token,
            dest_chain=dest_chain,
            evm_receiver=evm_receiver,
            message=message,
            aptos_sender=aptos_sender,
            gas_limit=gas_limit,
            allow_out_of_order_execution=allow_out_of_order_execution,
        )
    )


@click.command("send-token", help="Send CCIP-BnM tokens from Aptos to an EVM chain.")
@send_options
@click.option(
    "--amount",
    required=True,
    help="Amount of CCIP-BnM to send, in whole tokens (e.g. 0.5).",
)
def send_token(
    fee_token: str,
    dest_chain: str,
    evm_receiver: str,
    aptos_sender: Optional[str],
    gas_limit: Optional[int],
    allow_out_of_order_execution: bool,
    amount: str,
):
    run_send(
        SendArgs(
            kind=SendKind.TOKEN,
            fee_token=fee_token,
            dest_chain=dest_chain,
            evm_receiver=evm_receiver,
            amount=amount,
            aptos_sender=aptos_sender,
            gas_limit=gas_limit,
            allow_out_of_order_execution=allow_out_of_order_execution,
        )
    )


@click.command(
    "send-message-and-token",
    help="Send a message together with CCIP-BnM tokens from Aptos to an EVM chain.",
)
@send_options
@click.option("--msgString", "message", help="Message to send.")
@click.option(
    "--amount",
    required=True,
    help="Amount of CCIP-BnM to send, in whole tokens (e.g. 0.5).",
)
def send_message_and_token(
    fee_token: str,
    dest_chain: str,
    evm_receiver: str,
    aptos_sender: Optional[str],
    gas_limit: Optional[int],
    allow_out_of_order_execution: bool,
    message: Optional[str],
    amount: str,
):
    run_send(
        SendArgs(
            kind=SendKind.MESSAGE_AND_TOKEN,
            fee_token=fee_token,
            dest_chain=dest_chain,
            evm_receiver=evm_receiver,
            message=message,
            amount=amount,
            aptos_sender=aptos_sender,
            gas_limit=gas_limit,
            allow_out_of_order_execution=allow_out_of_order_execution,
        )
    )


@click.command("message-id", help="Print the CCIP message id of a committed Aptos send.")
@click.option("--txHash", "txn_hash", required=True, help="Hash of the Aptos transaction.")
def message_id(txn_hash: str):
    async def fetch():
        client = rest_client()
        try:
            return await message_id_main(txn_hash, client)
        finally:
            await client.close()

    click.echo(f"Message Id is {asyncio.run(fetch())}")


@click.command("check-state", help="Check the execution state of a message on the destination EVM chain.")
@click.option("--msgId", "message_id", required=True, help="CCIP message id.")
@click.option(
    "--destChain",
    "dest_chain",
    required=True,
    type=click.Choice(DEST_CHAINS),
    help="Destination EVM chain.",
)
@click.option(
    "--window",
    default=DEFAULT_BLOCK_WINDOW,
    show_default=True,
    type=click.IntRange(min=1),
    help="Number of recent blocks to search.",
)
@click.option(
    "--skipExecuteCheck",
    "skip_execute_check",
    is_flag=True,
    help="Accept state changes emitted by any transaction, not only offramp execute calls.",
)
def check_state(message_id: str, dest_chain: str, window: int, skip_execute_check: bool):
    args = CheckStateArgs(
        message_id=message_id,
        dest_chain=dest_chain,
        window=window,
        require_execute_call=not skip_execute_check,
    )
    source = offramp_log_source(connect(get_evm_chain_config(dest_chain)), dest_chain)
    result = check_state_main(args, source, source.decode)
    click.echo(result.describe(message_id))
