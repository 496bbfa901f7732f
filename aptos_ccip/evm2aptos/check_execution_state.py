# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from aptos_ccip.aptos_client import CcipRestClient, IndexerClient
from aptos_ccip.encoding import validate_message_id
from aptos_ccip.execution_state import ExecutionStateResult, first_matching_state
from aptos_ccip.logging import log
from aptos_ccip.network_config import APTOS_TESTNET, AptosChainConfig

EVENT_LIMIT = 100


async def offramp_state_address(
    client: CcipRestClient, chain: AptosChainConfig = APTOS_TESTNET
) -> str:
    (state_address,) = await client.view_function(
        f"{chain.module(chain.ccip_offramp_module_name)}::get_state_address"
    )
    return state_address


async def check_state_main(
    message_id: str,
    client: CcipRestClient,
    indexer: IndexerClient,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> ExecutionStateResult:
    """
    Looks for the ExecutionStateChanged event of `message_id` among the most
    recent events emitted under the offramp state object.
    """
    message_id = validate_message_id(message_id)
    state_address = await offramp_state_address(client, chain)
    log.debug(f"Offramp state address: {state_address}")

    events = await indexer.account_events(
        state_address,
        f"{chain.module(chain.ccip_offramp_module_name)}::ExecutionStateChanged",
        limit=EVENT_LIMIT,
    )
    log.debug(f"Fetched {len(events)} ExecutionStateChanged events")
    return first_matching_state(events, message_id)
