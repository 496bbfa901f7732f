# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Dict

from aptos_ccip.aptos_client import CcipRestClient, MessageIdNotFoundError
from aptos_ccip.logging import log

USER_TRANSACTION = "user_transaction"


def message_id_from_transaction(txn: Dict[str, Any]) -> str:
    if txn.get("type") != USER_TRANSACTION:
        raise MessageIdNotFoundError(
            f"Transaction {txn.get('hash')} is a {txn.get('type')}, not a user transaction"
        )
    return CcipRestClient.ccip_message_id(txn)


async def message_id_main(txn_hash: str, client: CcipRestClient) -> str:
    """Message id of the CCIP send committed in `txn_hash`."""
    txn = await client.transaction_by_hash(txn_hash)
    log.debug(f"Fetched transaction {txn_hash} at version {txn.get('version')}")
    return message_id_from_transaction(txn)
