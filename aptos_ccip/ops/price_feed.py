# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Calls into a deployed price_feed_demo module: fetch_price stores the latest
report for a data feed under the caller, get_price_data reads it back.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument
from eth_utils import decode_hex

from aptos_ccip.aptos_client import CcipRestClient
from aptos_ccip.encoding import aptos_address_bytes
from aptos_ccip.network_config import APTOS_TESTNET, AptosChainConfig


class InvalidFeedIdError(ValueError):
    """The data feed id is not hex"""


@dataclass(frozen=True)
class PriceData:
    price: str
    timestamp: str


def feed_id_bytes(feed_id: str) -> bytes:
    try:
        raw = decode_hex(feed_id.strip())
    except ValueError:
        raise InvalidFeedIdError(f"Data feed id is not valid hex: {feed_id}")
    if not raw:
        raise InvalidFeedIdError("Data feed id is empty")
    return raw


def price_feed_module(module_address: str, chain: AptosChainConfig = APTOS_TESTNET) -> str:
    address = AccountAddress(aptos_address_bytes(module_address))
    return f"{address}::{chain.data_feed_demo_module_name}"


def fetch_price_entry_function(
    module_address: str, feed_id: str, chain: AptosChainConfig = APTOS_TESTNET
) -> EntryFunction:
    return EntryFunction.natural(
        price_feed_module(module_address, chain),
        "fetch_price",
        [],
        [TransactionArgument(feed_id_bytes(feed_id), Serializer.to_bytes)],
    )


async def fetch_price_main(
    module_address: str,
    feed_id: str,
    client: CcipRestClient,
    account: Account,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> str:
    entry_function = fetch_price_entry_function(module_address, feed_id, chain)
    txn = await client.submit_entry_function(account, entry_function)
    return txn["hash"]


def parse_price_data(result: List[Any]) -> Optional[PriceData]:
    """Unwraps the Option<PriceData> returned by get_price_data."""
    if not result:
        return None
    values = (result[0] or {}).get("vec", [])
    if not values:
        return None
    return PriceData(price=str(values[0]["price"]), timestamp=str(values[0]["timestamp"]))


async def get_price_main(
    module_address: str,
    account_address: AccountAddress,
    client: CcipRestClient,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> Optional[PriceData]:
    result = await client.view_function(
        f"{price_feed_module(module_address, chain)}::get_price_data",
        [],
        [str(account_address)],
    )
    return parse_price_data(result)
