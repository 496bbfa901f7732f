# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Aptos side of the CCIP operations: a RestClient that runs the full
simulate, sign, submit and wait lifecycle for one entry function, and a
small client for the indexer GraphQL API.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ApiError, ClientConfig, RestClient
from aptos_sdk.transactions import (
    EntryFunction,
    SignedTransaction,
    TransactionPayload,
)

from aptos_ccip import environment
from aptos_ccip.logging import log

CCIP_MESSAGE_SENT_EVENT = "onramp::CCIPMessageSent"

MODULE_EVENTS_QUERY = """
query ModuleEvents($address: String!, $eventType: String!, $limit: Int!) {
  events(
    where: {
      account_address: { _eq: $address }
      indexed_type: { _eq: $eventType }
    }
    order_by: { transaction_version: desc }
    limit: $limit
  ) {
    account_address
    creation_number
    data
    event_index
    sequence_number
    transaction_block_height
    transaction_version
    type
  }
}
"""


class SimulationFailedError(Exception):
    """The transaction would abort; nothing was submitted"""

    vm_status: str

    def __init__(self, vm_status: str):
        super().__init__(f"Transaction simulation failed: {vm_status}")
        self.vm_status = vm_status


class TransactionExecutionError(Exception):
    """The transaction was committed but did not execute successfully"""

    txn_hash: str
    vm_status: str

    def __init__(self, txn_hash: str, vm_status: str):
        super().__init__(f"Transaction {txn_hash} failed: {vm_status}")
        self.txn_hash = txn_hash
        self.vm_status = vm_status


class TransactionTimeoutError(Exception):
    """The transaction was still pending when the wait limit ran out"""


class MessageIdNotFoundError(Exception):
    """The transaction emitted no CCIPMessageSent event"""


class IndexerError(Exception):
    """The indexer answered with GraphQL errors"""


def client_config(max_gas_amount: Optional[int] = None) -> ClientConfig:
    config = ClientConfig()
    if max_gas_amount is not None:
        config.max_gas_amount = max_gas_amount
    return config


class CcipRestClient(RestClient):
    # one pending check per second of transaction_wait_in_seconds
    poll_interval_secs: float = 1.0

    async def submit_entry_function(
        self, sender: Account, entry_function: EntryFunction
    ) -> Dict[str, Any]:
        """
        Builds, simulates, signs and submits `entry_function`, then waits for
        it to commit. Returns the committed transaction.
        """
        raw_transaction = await self.create_bcs_transaction(
            sender, TransactionPayload(entry_function)
        )

        log.info("Simulating transaction...")
        simulation = await self.simulate_transaction(raw_transaction, sender)
        result = simulation[0] if isinstance(simulation, list) else simulation
        if not result.get("success", False):
            raise SimulationFailedError(result.get("vm_status", "unknown"))
        log.debug(f"Simulation gas used: {result.get('gas_used')}")

        authenticator = sender.sign_transaction(raw_transaction)
        signed_transaction = SignedTransaction(raw_transaction, authenticator)
        txn_hash = await self.submit_bcs_transaction(signed_transaction)
        log.info(f"Submitted transaction {txn_hash}, waiting for it to commit")

        return await self.wait_for_committed(txn_hash)

    async def wait_for_committed(self, txn_hash: str) -> Dict[str, Any]:
        """
        Polls until the transaction leaves the pending state, for at most
        client_config.transaction_wait_in_seconds.
        """
        count = 0
        while await self.transaction_pending(txn_hash):
            if count >= self.client_config.transaction_wait_in_seconds:
                raise TransactionTimeoutError(f"Transaction {txn_hash} timed out")
            await asyncio.sleep(self.poll_interval_secs)
            count += 1

        txn = await self.transaction_by_hash(txn_hash)
        if not txn.get("success", False):
            raise TransactionExecutionError(txn_hash, txn.get("vm_status", "unknown"))
        return txn

    async def view_function(
        self,
        function: str,
        type_arguments: Optional[List[str]] = None,
        arguments: Optional[List[Any]] = None,
    ) -> List[Any]:
        content = await self.view(function, type_arguments or [], arguments or [])
        return json.loads(content)

    @staticmethod
    def ccip_message_id(txn: Dict[str, Any]) -> str:
        for event in txn.get("events", []):
            if CCIP_MESSAGE_SENT_EVENT in event.get("type", ""):
                return event["data"]["message"]["header"]["message_id"]
        raise MessageIdNotFoundError(
            f"No {CCIP_MESSAGE_SENT_EVENT} event in transaction {txn.get('hash')}"
        )


def rest_client(max_gas_amount: Optional[int] = None) -> CcipRestClient:
    return CcipRestClient(environment.node_url(), client_config(max_gas_amount))


class IndexerClient:
    """Minimal client for the Aptos indexer GraphQL endpoint"""

    url: str
    client: httpx.AsyncClient

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(60.0))

    async def close(self):
        await self.client.aclose()

    async def account_events(
        self, account_address: str, event_type: str, limit: int = 100
    ) -> List[Dict[str, Any]]:
        """Events of `event_type` emitted under `account_address`, newest first."""
        address = AccountAddress.from_str_relaxed(account_address)
        response = await self.client.post(
            self.url,
            json={
                "query": MODULE_EVENTS_QUERY,
                "variables": {
                    "address": "0x" + address.address.hex(),
                    "eventType": event_type,
                    "limit": limit,
                },
            },
        )
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)

        body = response.json()
        if body.get("errors"):
            raise IndexerError(json.dumps(body["errors"]))
        return body["data"]["events"]
