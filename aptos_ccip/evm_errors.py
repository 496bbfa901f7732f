# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, keccak
from eth_utils.abi import collapse_if_tuple
from web3.exceptions import ContractLogicError

from aptos_ccip.logging import log

ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")

UNKNOWN_ERROR = "Unknown error format or not found in any interface."
NO_REVERT_DATA = "No valid revert data."


class EvmRevertError(Exception):
    """An EVM call reverted; `reason` is the best-effort decoded revert data"""

    reason: str
    data: Optional[str]

    def __init__(self, reason: str, data: Optional[str] = None):
        super().__init__(f"Transaction reverted: {reason}")
        self.reason = reason
        self.data = data


def error_signature(entry: Dict[str, Any]) -> str:
    types = ",".join(collapse_if_tuple(dict(i)) for i in entry.get("inputs", []))
    return f"{entry['name']}({types})"


def error_selectors(
    abis: Dict[str, List[Dict[str, Any]]]
) -> Dict[bytes, Tuple[str, Dict[str, Any]]]:
    """Maps 4 byte selectors to (interface name, error ABI entry)."""
    selectors: Dict[bytes, Tuple[str, Dict[str, Any]]] = {}
    for interface_name, abi in abis.items():
        for entry in abi:
            if entry.get("type") != "error":
                continue
            selector = keccak(text=error_signature(entry))[:4]
            selectors.setdefault(selector, (interface_name, entry))
    return selectors


def decode_revert_data(
    data: Union[str, bytes, None], abis: Dict[str, List[Dict[str, Any]]]
) -> str:
    """
    Describes revert data: Error(string) and Panic(uint256) first, then the
    custom errors declared in `abis`, checked in insertion order.
    """
    raw = _to_bytes(data)
    if raw is None or len(raw) < 4:
        return NO_REVERT_DATA

    selector, payload = raw[:4], raw[4:]
    if selector == ERROR_STRING_SELECTOR:
        try:
            (reason,) = decode(["string"], payload)
        except DecodingError:
            return "Failed to decode standard error."
        return f"Require/Revert with string: {reason}"

    if selector == PANIC_SELECTOR:
        code = int.from_bytes(payload[:32], "big")
        return f"Panic with code: {code:#x}"

    match = error_selectors(abis).get(selector)
    if match is None:
        return UNKNOWN_ERROR

    interface_name, entry = match
    inputs = entry.get("inputs", [])
    if not inputs:
        return f"Custom Error: {entry['name']} ({interface_name})"
    try:
        values = decode([collapse_if_tuple(dict(i)) for i in inputs], payload)
    except DecodingError:
        return f"Custom Error: {entry['name']} ({interface_name}), undecodable args"
    args = {
        i.get("name") or f"arg{index}": _display(value)
        for index, (i, value) in enumerate(zip(inputs, values))
    }
    return f"Custom Error: {entry['name']} ({interface_name}) {args}"


def revert_data_from_exception(error: BaseException) -> Optional[str]:
    """Pulls the raw revert data off a web3 ContractLogicError, if present."""
    data = getattr(error, "data", None)
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, (bytes, bytearray)):
        return "0x" + bytes(data).hex()
    if isinstance(data, str) and data.startswith("0x"):
        return data
    return None


def _to_bytes(data: Union[str, bytes, None]) -> Optional[bytes]:
    if data is None:
        return None
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if not data.startswith("0x"):
        return None
    try:
        return decode_hex(data)
    except ValueError:
        return None


def _display(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return value


@contextmanager
def decoded_reverts(abis: Dict[str, List[Dict[str, Any]]]) -> Iterator[None]:
    """Re-raises web3 contract reverts as EvmRevertError with a decoded reason."""
    try:
        yield
    except ContractLogicError as e:
        data = revert_data_from_exception(e)
        reason = decode_revert_data(data, abis) if data else str(e)
        log.error(reason)
        raise EvmRevertError(reason, data) from e
