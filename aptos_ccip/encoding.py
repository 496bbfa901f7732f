# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Pure conversions shared by every command: receiver padding, message id
validation, payload encoding and human amount parsing.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Union

from aptos_sdk.account_address import AccountAddress
from eth_abi import encode
from eth_utils import decode_hex

EVM_ADDRESS_LENGTH = 20
RECEIVER_SLOT_LENGTH = 32
MAX_U64 = 2**64 - 1

MESSAGE_ID_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")

Amount = Union[int, float, Decimal, str]


def pad_evm_receiver(receiver: Union[str, bytes]) -> bytes:
    """
    Left pads a 20 byte EVM address into the 32 byte receiver slot of a CCIP
    message. Any other length is rejected rather than padded.
    """
    if isinstance(receiver, str):
        try:
            raw = decode_hex(receiver.strip())
        except ValueError:
            raise InvalidReceiverError(f"Receiver is not valid hex: {receiver}")
    else:
        raw = bytes(receiver)

    if len(raw) != EVM_ADDRESS_LENGTH:
        raise InvalidReceiverError(
            f"EVM receiver must be {EVM_ADDRESS_LENGTH} bytes, got {len(raw)}"
        )
    return bytes(RECEIVER_SLOT_LENGTH - EVM_ADDRESS_LENGTH) + raw


def aptos_address_bytes(address: str) -> bytes:
    """32 byte form of an Aptos account or object address."""
    try:
        return AccountAddress.from_str_relaxed(address).address
    except (RuntimeError, ValueError) as e:
        raise InvalidReceiverError(f"Invalid Aptos address {address}: {e}")


def validate_message_id(message_id: str) -> str:
    message_id = message_id.strip()
    if not MESSAGE_ID_PATTERN.match(message_id):
        raise InvalidMessageIdError(
            f"Message id must be 0x followed by 64 hex characters, got {message_id}"
        )
    return message_id.lower()


def abi_encode_string(text: str) -> bytes:
    """Payload layout decoded by the EVM receiver with abi.decode(data, (string))."""
    return encode(["string"], [text])


def parse_amount(amount: Amount, decimals: int = 8) -> int:
    """
    Converts a human decimal amount into token base units. The string form of
    the input is parsed so 1.5 and "1.5" are treated identically, and
    half-way values round away from zero.
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise InvalidAmountError(f"Invalid amount: {amount!r}")
    if not value.is_finite():
        raise InvalidAmountError(f"Amount must be finite: {amount!r}")
    if value < 0:
        raise InvalidAmountError(f"Amount must not be negative: {amount!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        try:
            scaled = (value.scaleb(decimals)).quantize(
                Decimal(1), rounding=ROUND_HALF_UP
            )
        except InvalidOperation:
            raise InvalidAmountError(f"Amount is out of range: {amount!r}")
    return int(scaled)


def parse_amount_to_u64(amount: Amount, decimals: int = 8) -> int:
    base_units = parse_amount(amount, decimals)
    if base_units > MAX_U64:
        raise InvalidAmountError(f"Amount {amount} does not fit in u64")
    return base_units


class InvalidReceiverError(ValueError):
    """The receiver address has the wrong length or is not hex"""


class InvalidMessageIdError(ValueError):
    """Not a 0x-prefixed 32 byte hex message id"""


class InvalidAmountError(ValueError):
    """The amount is not a finite non-negative decimal number"""
