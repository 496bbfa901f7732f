# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass

from web3 import Web3

from aptos_ccip.encoding import validate_message_id
from aptos_ccip.evm import load_abi
from aptos_ccip.execution_state import (
    DEFAULT_BLOCK_WINDOW,
    ExecutionStateResult,
    LogSource,
    Web3LogSource,
    execute_selector,
    scan_execution_state,
)
from aptos_ccip.logging import log
from aptos_ccip.network_config import get_evm_chain_config


@dataclass(frozen=True)
class CheckStateArgs:
    """Data class for storing the arguments to the check_state_main function"""

    message_id: str
    dest_chain: str
    window: int = DEFAULT_BLOCK_WINDOW
    require_execute_call: bool = True


def offramp_log_source(w3: Web3, dest_chain: str) -> Web3LogSource:
    chain = get_evm_chain_config(dest_chain)
    return Web3LogSource(w3, chain.ccip_offramp_address, load_abi("OffRamp_1_6"))


def check_state_main(
    args: CheckStateArgs, source: LogSource, decoder
) -> ExecutionStateResult:
    message_id = validate_message_id(args.message_id)
    log.info(
        f"Looking for message {message_id} in the last {args.window} blocks of the {args.dest_chain} offramp"
    )
    return scan_execution_state(
        source,
        message_id,
        decoder,
        window=args.window,
        execute_selector=execute_selector() if args.require_execute_call else None,
    )
