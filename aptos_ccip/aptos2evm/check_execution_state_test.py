# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import unittest
from typing import Any, Dict, List, Sequence

from web3 import Web3

from aptos_ccip.aptos2evm.check_execution_state import (
    CheckStateArgs,
    check_state_main,
    offramp_log_source,
)
from aptos_ccip.encoding import InvalidMessageIdError
from aptos_ccip.execution_state import (
    DecodedStateChange,
    LogSource,
    MessageExecutionState,
    execute_selector,
)
from aptos_ccip.network_config import AVALANCHE_FUJI, UnsupportedChainError

MESSAGE_ID = "0x" + "AB" * 32
TX_HASH = "0x" + "77" * 32


class FakeLogSource(LogSource):
    def __init__(self, logs: List[Dict[str, Any]], call_data: bytes):
        self.logs = logs
        self.call_data = call_data
        self.windows = []

    def latest_block(self) -> int:
        return 1000

    def get_logs(self, from_block: int, to_block: int) -> Sequence[Any]:
        self.windows.append((from_block, to_block))
        return self.logs

    def transaction_input(self, tx_hash: str) -> bytes:
        return self.call_data


def decode(entry: Dict[str, Any]) -> DecodedStateChange:
    return DecodedStateChange(entry["messageId"], entry["state"])


def state_log(state: int) -> Dict[str, Any]:
    return {
        "blockNumber": 990,
        "logIndex": 3,
        "transactionHash": bytes.fromhex(TX_HASH[2:]),
        "messageId": MESSAGE_ID.lower(),
        "state": state,
    }


class CheckStateTest(unittest.TestCase):
    def test_found(self):
        source = FakeLogSource([state_log(2)], execute_selector() + b"\x00" * 64)
        result = check_state_main(CheckStateArgs(MESSAGE_ID, "sepolia"), source, decode)
        self.assertTrue(result.found)
        self.assertEqual(result.state, MessageExecutionState.SUCCESS)
        self.assertEqual(result.transaction_hash, TX_HASH)
        self.assertEqual(source.windows, [(501, 1000)])

    def test_not_an_execute_call(self):
        source = FakeLogSource([state_log(3)], bytes.fromhex("deadbeef"))
        result = check_state_main(CheckStateArgs(MESSAGE_ID, "sepolia"), source, decode)
        self.assertFalse(result.found)

        result = check_state_main(
            CheckStateArgs(MESSAGE_ID, "sepolia", require_execute_call=False),
            source,
            decode,
        )
        self.assertEqual(result.state, MessageExecutionState.FAILURE)

    def test_custom_window(self):
        source = FakeLogSource([], b"")
        result = check_state_main(CheckStateArgs(MESSAGE_ID, "fuji", window=10), source, decode)
        self.assertFalse(result.found)
        self.assertEqual(source.windows, [(991, 1000)])

    def test_invalid_message_id(self):
        with self.assertRaises(InvalidMessageIdError):
            check_state_main(CheckStateArgs("0x1234", "sepolia"), FakeLogSource([], b""), decode)


class OfframpLogSourceTest(unittest.TestCase):
    def test_uses_destination_offramp(self):
        source = offramp_log_source(Web3(), "fuji")
        self.assertEqual(
            source.offramp_address,
            Web3.to_checksum_address(AVALANCHE_FUJI.ccip_offramp_address),
        )

    def test_unknown_chain(self):
        with self.assertRaises(UnsupportedChainError):
            offramp_log_source(Web3(), "aptos")


if __name__ == "__main__":
    unittest.main()
