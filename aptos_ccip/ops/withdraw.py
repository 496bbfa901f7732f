# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument
from web3 import Web3

from aptos_ccip.aptos_client import CcipRestClient
from aptos_ccip.encoding import aptos_address_bytes
from aptos_ccip.evm import EvmWallet, load_abi, wait_for_confirmations
from aptos_ccip.evm_errors import decoded_reverts
from aptos_ccip.logging import log
from aptos_ccip.network_config import (
    APTOS_TESTNET,
    AptosChainConfig,
    EvmChainConfig,
)


@dataclass(frozen=True)
class WithdrawArgs:
    """Data class for storing the arguments to the withdraw functions"""

    network: str  # aptos, sepolia or fuji
    receiver: str  # receiver module or contract holding the tokens
    to: str  # wallet the tokens are withdrawn to


def withdraw_entry_function(
    receiver: AccountAddress,
    to: AccountAddress,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> EntryFunction:
    return EntryFunction.natural(
        f"{receiver}::{chain.ccip_receiver_module_name}",
        "withdraw_token",
        [],
        [
            TransactionArgument(to, Serializer.struct),
            TransactionArgument(
                AccountAddress.from_str_relaxed(chain.ccip_bnm_token_address),
                Serializer.struct,
            ),
        ],
    )


async def withdraw_on_aptos_main(
    args: WithdrawArgs,
    client: CcipRestClient,
    account: Account,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> str:
    entry_function = withdraw_entry_function(
        AccountAddress(aptos_address_bytes(args.receiver)),
        AccountAddress(aptos_address_bytes(args.to)),
        chain,
    )
    txn = await client.submit_entry_function(account, entry_function)
    return txn["hash"]


def withdraw_on_evm_main(
    args: WithdrawArgs, w3: Web3, wallet: EvmWallet, chain: EvmChainConfig
) -> str:
    receiver_abi = load_abi("CCIPReceiver")
    receiver = w3.eth.contract(
        address=Web3.to_checksum_address(args.receiver), abi=receiver_abi
    )
    to = Web3.to_checksum_address(args.to)
    token = Web3.to_checksum_address(chain.ccip_bnm_token_address)

    with decoded_reverts(
        {"CCIPReceiverInterface": receiver_abi, "ERC20Interface": load_abi("ERC20")}
    ):
        tx_hash = wallet.send(receiver.functions.withdrawToken(to, token))
        log.info(f"Transaction sent: {tx_hash}, waiting for confirmation...")
        wait_for_confirmations(w3, tx_hash)
    return tx_hash
