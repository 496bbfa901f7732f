# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument

from aptos_ccip.aptos_client import CcipRestClient
from aptos_ccip.encoding import aptos_address_bytes
from aptos_ccip.network_config import APTOS_TESTNET, AptosChainConfig


def drip_entry_function(
    to: AccountAddress, chain: AptosChainConfig = APTOS_TESTNET
) -> EntryFunction:
    return EntryFunction.natural(
        f"{chain.ccip_bnm_faucet_address}::faucet",
        "drip",
        [],
        [TransactionArgument(to, Serializer.struct)],
    )


async def drip_main(
    to: str,
    client: CcipRestClient,
    account: Account,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> str:
    """Mints one CCIP-BnM token to `to`. Returns the transaction hash."""
    recipient = AccountAddress(aptos_address_bytes(to))
    txn = await client.submit_entry_function(account, drip_entry_function(recipient, chain))
    return txn["hash"]
