# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
GenericExtraArgsV2 encoders.

The blob is decoded by the router of the *source* chain, so its layout
follows that router:

* Aptos router (``router::ccip_send``): tag || BCS u256 (32 bytes, little
  endian) || BCS bool (1 byte).
* EVM router (``Router.ccipSend``): tag || abi.encode(uint256 gasLimit,
  bool allowOutOfOrderExecution), i.e. two big-endian 32-byte words.
"""

from aptos_sdk.bcs import Serializer
from eth_abi import encode

GENERIC_EXTRA_ARGS_V2_TAG = bytes([0x18, 0x1D, 0xCF, 0x10])

MAX_U256 = 2**256 - 1


def encode_generic_extra_args_v2(
    gas_limit: int, allow_out_of_order_execution: bool
) -> bytes:
    """Extra args for messages sent from Aptos."""
    _check_gas_limit(gas_limit)
    ser = Serializer()
    ser.fixed_bytes(GENERIC_EXTRA_ARGS_V2_TAG)
    ser.fixed_bytes(gas_limit.to_bytes(32, "little", signed=False))
    ser.bool(bool(allow_out_of_order_execution))
    return ser.output()


def encode_evm_extra_args_v2(
    gas_limit: int, allow_out_of_order_execution: bool
) -> bytes:
    """Extra args for messages sent from an EVM chain."""
    _check_gas_limit(gas_limit)
    return GENERIC_EXTRA_ARGS_V2_TAG + encode(
        ["uint256", "bool"], [gas_limit, bool(allow_out_of_order_execution)]
    )


def _check_gas_limit(gas_limit: int):
    if isinstance(gas_limit, bool) or not isinstance(gas_limit, int):
        raise ExtraArgsError(f"Gas limit must be an integer, got {gas_limit!r}")
    if gas_limit < 0 or gas_limit > MAX_U256:
        raise ExtraArgsError(f"Cannot encode {gas_limit} into u256")


class ExtraArgsError(ValueError):
    """The extra args cannot be encoded without truncation"""
