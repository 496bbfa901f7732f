# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import unittest
from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_abi import encode
from web3 import Web3

from aptos_ccip.evm import load_abi
from aptos_ccip.execution_state import (
    EXECUTION_STATE_CHANGED_SIGNATURE,
    NOT_FOUND,
    DecodedStateChange,
    ExecutionStateResult,
    LogDecodeError,
    LogSource,
    MessageExecutionState,
    Web3LogSource,
    first_matching_state,
    scan_execution_state,
)

TARGET = "0x" + "ab" * 32
OTHER = "0x" + "cd" * 32
EXECUTE = bytes.fromhex("3f4b04aa")


class FakeLogSource(LogSource):
    def __init__(
        self,
        latest: int,
        logs: List[Dict[str, Any]],
        inputs: Optional[Dict[str, bytes]] = None,
    ):
        self.latest = latest
        self.logs = logs
        self.inputs = inputs or {}
        self.ranges: List[Tuple[int, int]] = []

    def latest_block(self) -> int:
        return self.latest

    def get_logs(self, from_block: int, to_block: int) -> Sequence[Any]:
        self.ranges.append((from_block, to_block))
        return [
            entry
            for entry in self.logs
            if from_block <= entry["blockNumber"] <= to_block
        ]

    def transaction_input(self, tx_hash: str) -> bytes:
        return self.inputs[tx_hash]


def make_log(block: int, message_id: str, state: int, tx_hash: str) -> Dict[str, Any]:
    return {
        "blockNumber": block,
        "logIndex": 0,
        "transactionHash": bytes.fromhex(tx_hash[2:]),
        "messageId": message_id,
        "state": state,
    }


def decode(entry: Dict[str, Any]) -> DecodedStateChange:
    if entry["messageId"] is None:
        raise LogDecodeError("bad log")
    return DecodedStateChange(message_id=entry["messageId"], state=entry["state"])


class ScanExecutionStateTest(unittest.TestCase):
    def test_returns_matching_entry(self):
        source = FakeLogSource(
            1000,
            [
                make_log(990, OTHER, 3, "0x01"),
                make_log(995, TARGET.upper().replace("0X", "0x"), 2, "0x02"),
            ],
        )
        result = scan_execution_state(source, TARGET, decode)
        self.assertTrue(result.found)
        self.assertEqual(result.state, MessageExecutionState.SUCCESS)
        self.assertEqual(result.transaction_hash, "0x02")
        self.assertEqual(result.block_number, 995)

    def test_empty_logs_are_not_found(self):
        source = FakeLogSource(1000, [])
        self.assertEqual(scan_execution_state(source, TARGET, decode), NOT_FOUND)

    def test_no_match_is_not_found(self):
        source = FakeLogSource(1000, [make_log(999, OTHER, 2, "0x01")])
        result = scan_execution_state(source, TARGET, decode)
        self.assertFalse(result.found)
        self.assertIsNone(result.state)

    def test_window_bounds(self):
        source = FakeLogSource(1000, [make_log(500, TARGET, 2, "0x01")])
        self.assertFalse(scan_execution_state(source, TARGET, decode).found)
        self.assertEqual(source.ranges, [(501, 1000)])

        self.assertTrue(
            scan_execution_state(source, TARGET, decode, window=501).found
        )
        self.assertEqual(source.ranges[-1], (500, 1000))

    def test_window_near_genesis(self):
        source = FakeLogSource(10, [])
        scan_execution_state(source, TARGET, decode)
        self.assertEqual(source.ranges, [(0, 10)])

    def test_most_recent_first(self):
        source = FakeLogSource(
            1000,
            [
                make_log(996, TARGET, 1, "0x01"),
                make_log(998, TARGET, 3, "0x02"),
                make_log(997, TARGET, 2, "0x03"),
            ],
        )
        result = scan_execution_state(source, TARGET, decode)
        self.assertEqual(result.state, MessageExecutionState.FAILURE)
        self.assertEqual(result.transaction_hash, "0x02")

    def test_skips_undecodable_logs(self):
        source = FakeLogSource(
            1000,
            [make_log(990, TARGET, 2, "0x01"), make_log(999, None, 0, "0x02")],
        )
        result = scan_execution_state(source, TARGET, decode)
        self.assertEqual(result.state, MessageExecutionState.SUCCESS)

    def test_execute_selector(self):
        source = FakeLogSource(
            1000,
            [make_log(990, TARGET, 2, "0x01"), make_log(999, TARGET, 3, "0x02")],
            inputs={"0x01": EXECUTE + b"\x00" * 4, "0x02": b"\xde\xad\xbe\xef"},
        )
        result = scan_execution_state(
            source, TARGET, decode, execute_selector=EXECUTE
        )
        self.assertEqual(result.state, MessageExecutionState.SUCCESS)
        self.assertEqual(result.transaction_hash, "0x01")

    def test_rejects_empty_window(self):
        with self.assertRaises(ValueError):
            scan_execution_state(FakeLogSource(1, []), TARGET, decode, window=0)


OFFRAMP = "0xe3d660848B680355a90b8E7fD4E4a1f63F3522D7"


def offramp_log(
    block: int, message_id: str, state: int, topic0: Optional[bytes] = None
) -> Dict[str, Any]:
    """An ExecutionStateChanged log as returned by eth_getLogs"""
    if topic0 is None:
        topic0 = bytes(Web3.keccak(text=EXECUTION_STATE_CHANGED_SIGNATURE))
    return {
        "address": OFFRAMP,
        "blockHash": b"\x11" * 32,
        "blockNumber": block,
        "logIndex": 0,
        "transactionHash": bytes([block % 256]) * 32,
        "transactionIndex": 0,
        "topics": [
            topic0,
            encode(["uint64"], [16015286601757825753]),
            encode(["uint64"], [42]),
            bytes.fromhex(message_id[2:]),
        ],
        "data": encode(
            ["bytes32", "uint8", "bytes", "uint256"],
            [b"\x22" * 32, state, b"", 61000],
        ),
    }


class StaticWeb3LogSource(Web3LogSource):
    def __init__(self, latest: int, logs: List[Dict[str, Any]]):
        super().__init__(Web3(), OFFRAMP, load_abi("OffRamp_1_6"))
        self.latest = latest
        self.logs = logs

    def latest_block(self) -> int:
        return self.latest

    def get_logs(self, from_block: int, to_block: int) -> Sequence[Any]:
        return self.logs


class Web3LogSourceTest(unittest.TestCase):
    def test_topic_is_event_signature_hash(self):
        source = StaticWeb3LogSource(0, [])
        self.assertEqual(
            source.topic,
            "0x" + bytes(Web3.keccak(text=EXECUTION_STATE_CHANGED_SIGNATURE)).hex(),
        )

    def test_decodes_indexed_message_id_and_state(self):
        source = StaticWeb3LogSource(0, [])
        decoded = source.decode(offramp_log(10, TARGET, 2))
        self.assertEqual(decoded, DecodedStateChange(message_id=TARGET, state=2))

    def test_wrong_event_raises_decode_error(self):
        source = StaticWeb3LogSource(0, [])
        other_topic = bytes(Web3.keccak(text="Transfer(address,address,uint256)"))
        with self.assertRaises(LogDecodeError):
            source.decode(offramp_log(10, TARGET, 2, topic0=other_topic))

    def test_scan_with_real_decoder(self):
        other_topic = bytes(Web3.keccak(text="Transfer(address,address,uint256)"))
        source = StaticWeb3LogSource(
            1000,
            [
                offramp_log(990, TARGET, 2),
                offramp_log(995, OTHER, 3),
                offramp_log(999, TARGET, 1, topic0=other_topic),
            ],
        )
        result = scan_execution_state(source, TARGET, source.decode)
        self.assertEqual(result.state, MessageExecutionState.SUCCESS)
        self.assertEqual(result.block_number, 990)
        self.assertEqual(result.transaction_hash, "0x" + bytes([990 % 256]).hex() * 32)


class FirstMatchingStateTest(unittest.TestCase):
    def test_matches_newest(self):
        events = [
            {"transaction_version": "30", "data": {"message_id": OTHER, "state": 3}},
            {"transaction_version": "20", "data": {"message_id": TARGET, "state": 2}},
            {"transaction_version": "10", "data": {"message_id": TARGET, "state": 1}},
        ]
        result = first_matching_state(events, TARGET.upper().replace("0X", "0x"))
        self.assertEqual(
            result,
            ExecutionStateResult(
                found=True, state=MessageExecutionState.SUCCESS, block_number=20
            ),
        )

    def test_empty(self):
        self.assertEqual(first_matching_state([], TARGET), NOT_FOUND)

    def test_describe(self):
        self.assertIn("try again later", NOT_FOUND.describe(TARGET))
        found = ExecutionStateResult(found=True, state=MessageExecutionState.SUCCESS)
        self.assertEqual(
            found.describe(TARGET),
            f"Execution state for CCIP message {TARGET} is SUCCESS",
        )


if __name__ == "__main__":
    unittest.main()
