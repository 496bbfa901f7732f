# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import unittest
from typing import Any, Dict, List, Optional

from aptos_ccip.encoding import InvalidMessageIdError
from aptos_ccip.evm2aptos.check_execution_state import check_state_main
from aptos_ccip.execution_state import MessageExecutionState
from aptos_ccip.network_config import APTOS_TESTNET

MESSAGE_ID = "0x" + "ab" * 32
STATE_ADDRESS = "0x" + "3d" * 32


class FakeClient:
    def __init__(self):
        self.views: List[str] = []

    async def view_function(
        self,
        function: str,
        type_arguments: Optional[List[str]] = None,
        arguments: Optional[List[Any]] = None,
    ) -> List[Any]:
        self.views.append(function)
        return [STATE_ADDRESS]


class FakeIndexer:
    def __init__(self, events: List[Dict[str, Any]]):
        self.events = events
        self.queries: List[Any] = []

    async def account_events(
        self, account_address: str, event_type: str, limit: int = 100
    ) -> List[Dict[str, Any]]:
        self.queries.append((account_address, event_type, limit))
        return self.events


def state_event(message_id: str, state: int, version: int) -> Dict[str, Any]:
    return {
        "data": {"message_id": message_id, "state": state},
        "transaction_version": version,
    }


class CheckStateOnAptosTest(unittest.IsolatedAsyncioTestCase):
    async def test_found(self):
        client = FakeClient()
        indexer = FakeIndexer(
            [
                state_event("0x" + "cd" * 32, 3, 12),
                state_event(MESSAGE_ID, 2, 11),
                state_event(MESSAGE_ID, 1, 10),
            ]
        )
        result = await check_state_main(MESSAGE_ID.upper().replace("0X", "0x"), client, indexer)

        self.assertTrue(result.found)
        self.assertEqual(result.state, MessageExecutionState.SUCCESS)
        self.assertEqual(result.block_number, 11)
        self.assertEqual(
            client.views, [f"{APTOS_TESTNET.ccip_object_address}::offramp::get_state_address"]
        )
        self.assertEqual(
            indexer.queries,
            [
                (
                    STATE_ADDRESS,
                    f"{APTOS_TESTNET.ccip_object_address}::offramp::ExecutionStateChanged",
                    100,
                )
            ],
        )

    async def test_not_found(self):
        result = await check_state_main(MESSAGE_ID, FakeClient(), FakeIndexer([]))
        self.assertFalse(result.found)
        self.assertIn("try again later", result.describe(MESSAGE_ID))

    async def test_invalid_message_id(self):
        client = FakeClient()
        with self.assertRaises(InvalidMessageIdError):
            await check_state_main("0x1234", client, FakeIndexer([]))
        self.assertEqual(client.views, [])


if __name__ == "__main__":
    unittest.main()
