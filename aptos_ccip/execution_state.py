# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Looks up the delivery state of a CCIP message on the destination chain.

On EVM chains the offramp emits ExecutionStateChanged logs; only a bounded
block window is queried because public RPC providers cap eth_getLogs ranges.
On Aptos the same event is read from the indexer, already ordered newest
first. In both cases a message that has not been executed yet is a normal
outcome and is reported as NOT_FOUND rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Iterable, List, Optional, Sequence

from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import MismatchedABI

from aptos_ccip.logging import log

DEFAULT_BLOCK_WINDOW = 500

EXECUTION_STATE_CHANGED_SIGNATURE = (
    "ExecutionStateChanged(uint64,uint64,bytes32,bytes32,uint8,bytes,uint256)"
)
EXECUTE_SIGNATURE = "execute(bytes32[2],bytes)"


class MessageExecutionState(IntEnum):
    UNTOUCHED = 0
    IN_PROGRESS = 1
    SUCCESS = 2
    FAILURE = 3


@dataclass(frozen=True)
class ExecutionStateResult:
    found: bool
    state: Optional[MessageExecutionState] = None
    transaction_hash: Optional[str] = None
    # block number on EVM chains, ledger version on Aptos
    block_number: Optional[int] = None

    def describe(self, message_id: str) -> str:
        if not self.found or self.state is None:
            return (
                f"No execution state found for CCIP message {message_id} yet. "
                "Please wait for the message to be processed and try again later."
            )
        return f"Execution state for CCIP message {message_id} is {self.state.name}"


NOT_FOUND = ExecutionStateResult(found=False)


@dataclass(frozen=True)
class DecodedStateChange:
    message_id: str
    state: int


class LogDecodeError(Exception):
    """A log could not be decoded as ExecutionStateChanged"""


Decoder = Callable[[Any], DecodedStateChange]


class LogSource:
    """Read access to the offramp logs of one chain"""

    def latest_block(self) -> int:
        raise NotImplementedError()

    def get_logs(self, from_block: int, to_block: int) -> Sequence[Any]:
        raise NotImplementedError()

    def transaction_input(self, tx_hash: str) -> bytes:
        raise NotImplementedError()


class Web3LogSource(LogSource):
    def __init__(self, w3: Web3, offramp_address: str, offramp_abi: List[dict]):
        self.w3 = w3
        self.offramp_address = Web3.to_checksum_address(offramp_address)
        self.contract = w3.eth.contract(address=self.offramp_address, abi=offramp_abi)
        self.topic = Web3.to_hex(Web3.keccak(text=EXECUTION_STATE_CHANGED_SIGNATURE))

    def latest_block(self) -> int:
        return self.w3.eth.block_number

    def get_logs(self, from_block: int, to_block: int) -> Sequence[Any]:
        return self.w3.eth.get_logs(
            {
                "address": self.offramp_address,
                "fromBlock": from_block,
                "toBlock": to_block,
                "topics": [self.topic],
            }
        )

    def transaction_input(self, tx_hash: str) -> bytes:
        tx = self.w3.eth.get_transaction(tx_hash)
        return bytes(tx["input"])

    def decode(self, entry: Any) -> DecodedStateChange:
        try:
            event = self.contract.events.ExecutionStateChanged().process_log(entry)
        except (MismatchedABI, DecodingError, KeyError, ValueError) as e:
            raise LogDecodeError(str(e)) from e
        return DecodedStateChange(
            message_id=Web3.to_hex(event["args"]["messageId"]),
            state=event["args"]["state"],
        )


def execute_selector() -> bytes:
    return bytes(Web3.keccak(text=EXECUTE_SIGNATURE)[:4])


def scan_execution_state(
    source: LogSource,
    message_id: str,
    decoder: Decoder,
    window: int = DEFAULT_BLOCK_WINDOW,
    execute_selector: Optional[bytes] = None,
) -> ExecutionStateResult:
    """
    Scans the last `window` blocks, newest first, for the state change of
    `message_id`. When `execute_selector` is set the emitting transaction
    must be a call to that function.
    """
    if window < 1:
        raise ValueError(f"Block window must be positive, got {window}")

    target = message_id.lower()
    latest = source.latest_block()
    from_block = max(0, latest - window + 1)
    logs = source.get_logs(from_block, latest)
    log.debug(f"Fetched {len(logs)} logs in blocks [{from_block}, {latest}]")

    if not logs:
        log.warning(f"No ExecutionStateChanged event within the last {window} blocks")
        return NOT_FOUND

    for entry in _most_recent_first(logs):
        try:
            decoded = decoder(entry)
        except LogDecodeError as e:
            log.error(f"Error parsing log: {e}")
            continue

        if decoded.message_id.lower() != target:
            continue

        tx_hash = _to_hex(entry["transactionHash"])
        if execute_selector is not None:
            call_data = source.transaction_input(tx_hash)
            if not call_data.startswith(execute_selector):
                log.debug(f"Skipping {tx_hash}: not an execute call")
                continue

        return ExecutionStateResult(
            found=True,
            state=MessageExecutionState(decoded.state),
            transaction_hash=tx_hash,
            block_number=entry["blockNumber"],
        )

    log.warning(f"No matching message id within the last {window} blocks")
    return NOT_FOUND


def first_matching_state(
    events: Iterable[dict], message_id: str
) -> ExecutionStateResult:
    """Matches Aptos offramp ExecutionStateChanged events, newest first."""
    target = message_id.lower()
    for event in events:
        data = event.get("data", {})
        if str(data.get("message_id", "")).lower() != target:
            continue
        version = event.get("transaction_version")
        return ExecutionStateResult(
            found=True,
            state=MessageExecutionState(int(data["state"])),
            block_number=int(version) if version is not None else None,
        )
    return NOT_FOUND


def _most_recent_first(logs: Sequence[Any]) -> List[Any]:
    return sorted(
        logs,
        key=lambda entry: (entry["blockNumber"], entry.get("logIndex", 0)),
        reverse=True,
    )


def _to_hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)
