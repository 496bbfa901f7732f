# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass
from typing import Any, Dict, Optional

from aptos_ccip.aptos_client import IndexerClient
from aptos_ccip.encoding import aptos_address_bytes
from aptos_ccip.network_config import APTOS_TESTNET, AptosChainConfig

RECEIVED_MESSAGE_EVENT = "ReceivedMessage"
EVENT_LIMIT = 100


@dataclass(frozen=True)
class LatestMessage:
    receiver: str
    event: Optional[Dict[str, Any]]

    def describe(self) -> str:
        if self.event is None:
            return (
                "No messages received yet. If you've already sent a CCIP message, "
                "please wait for the transaction to be processed."
            )
        message = self.event.get("data", {}).get("message")
        return f"Latest message received on Aptos by {self.receiver}: {message}"


def type_address(address: str) -> str:
    """Addresses inside Move type names are rendered without leading zeros."""
    trimmed = aptos_address_bytes(address).hex().lstrip("0")
    return "0x" + (trimmed or "0")


async def latest_message_main(
    aptos_receiver: str,
    indexer: IndexerClient,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> LatestMessage:
    receiver = aptos_receiver.strip()
    events = await indexer.account_events(
        receiver,
        f"{type_address(receiver)}::{chain.ccip_receiver_module_name}::{RECEIVED_MESSAGE_EVENT}",
        limit=EVENT_LIMIT,
    )
    return LatestMessage(receiver, events[0] if events else None)
