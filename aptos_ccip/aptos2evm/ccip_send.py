# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Sends a CCIP message, tokens, or both from Aptos to an EVM chain, either
through the CCIP router directly or through a deployed starter-kit
ccip_message_sender module.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument

from aptos_ccip.aptos_client import CcipRestClient
from aptos_ccip.encoding import (
    Amount,
    abi_encode_string,
    pad_evm_receiver,
    parse_amount_to_u64,
)
from aptos_ccip.extra_args import encode_generic_extra_args_v2
from aptos_ccip.logging import log
from aptos_ccip.network_config import (
    APTOS_TESTNET,
    CCIP_EXPLORER_URL,
    AptosChainConfig,
    get_evm_chain_config,
)

ROUTER_ENTRY_FUNCTION = "ccip_send"
BNM_DECIMALS = 8
# the BnM token is withdrawn from the primary store
TOKEN_STORE_ADDRESS = "0x0"

DEFAULT_MESSAGE = "hello from aptos"
MESSAGE_GAS_LIMIT = 300000
TOKEN_GAS_LIMIT = 100000


class SendKind(Enum):
    MESSAGE = "send_message"
    TOKEN = "send_tokens"
    MESSAGE_AND_TOKEN = "send_message_with_tokens"

    @property
    def carries_data(self) -> bool:
        return self is not SendKind.TOKEN

    @property
    def carries_tokens(self) -> bool:
        return self is not SendKind.MESSAGE


@dataclass(frozen=True)
class SendArgs:
    """Data class for storing the arguments to the ccip_send_main function"""

    kind: SendKind
    fee_token: str  # link or native
    dest_chain: str  # sepolia or fuji
    evm_receiver: str  # 20 byte hex address
    message: Optional[str] = None  # defaults to DEFAULT_MESSAGE for message sends
    amount: Optional[Amount] = None  # human units of CCIP-BnM, required for token sends
    aptos_sender: Optional[str] = None  # sender object address; None sends through the router
    gas_limit: Optional[int] = None  # defaults depend on the kind of send
    allow_out_of_order_execution: bool = True


@dataclass(frozen=True)
class CcipSendRequest:
    dest_chain_selector: int
    receiver: bytes
    data: bytes
    token_addresses: List[AccountAddress]
    token_amounts: List[int]
    token_store_addresses: List[AccountAddress]
    fee_token: AccountAddress
    fee_token_store: AccountAddress
    extra_args: bytes

    def router_entry_function(self, chain: AptosChainConfig) -> EntryFunction:
        return EntryFunction.natural(
            chain.module(chain.ccip_router_module_name),
            ROUTER_ENTRY_FUNCTION,
            [],
            [
                TransactionArgument(self.dest_chain_selector, Serializer.u64),
                TransactionArgument(self.receiver, Serializer.to_bytes),
                TransactionArgument(self.data, Serializer.to_bytes),
                *self._token_arguments(),
                TransactionArgument(self.fee_token, Serializer.struct),
                TransactionArgument(self.fee_token_store, Serializer.struct),
                TransactionArgument(self.extra_args, Serializer.to_bytes),
            ],
        )

    def sender_entry_function(
        self, sender_module: str, kind: SendKind
    ) -> EntryFunction:
        """The starter-kit sender builds its own extra args."""
        args = [
            TransactionArgument(self.dest_chain_selector, Serializer.u64),
            TransactionArgument(self.receiver, Serializer.to_bytes),
        ]
        if kind.carries_data:
            args.append(TransactionArgument(self.data, Serializer.to_bytes))
        if kind.carries_tokens:
            args.extend(self._token_arguments())
        args.append(TransactionArgument(self.fee_token, Serializer.struct))
        args.append(TransactionArgument(self.fee_token_store, Serializer.struct))
        return EntryFunction.natural(sender_module, kind.value, [], args)

    def _token_arguments(self) -> List[TransactionArgument]:
        return [
            TransactionArgument(
                self.token_addresses, Serializer.sequence_serializer(Serializer.struct)
            ),
            TransactionArgument(
                self.token_amounts, Serializer.sequence_serializer(Serializer.u64)
            ),
            TransactionArgument(
                self.token_store_addresses,
                Serializer.sequence_serializer(Serializer.struct),
            ),
        ]


@dataclass(frozen=True)
class SendResult:
    txn_hash: str
    message_id: str


def default_gas_limit(kind: SendKind) -> int:
    return MESSAGE_GAS_LIMIT if kind.carries_data else TOKEN_GAS_LIMIT


def build_request(
    args: SendArgs,
    fee_token_store: str,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> CcipSendRequest:
    """Validates every input before anything touches the network."""
    dest = get_evm_chain_config(args.dest_chain)
    receiver = pad_evm_receiver(args.evm_receiver)
    fee_token = AccountAddress.from_str_relaxed(chain.fee_token_address(args.fee_token))

    data = b""
    if args.kind.carries_data:
        data = abi_encode_string(
            args.message if args.message is not None else DEFAULT_MESSAGE
        )

    token_addresses: List[AccountAddress] = []
    token_amounts: List[int] = []
    token_stores: List[AccountAddress] = []
    if args.kind.carries_tokens:
        if args.amount is None:
            raise ValueError("An amount is required when sending tokens")
        token_addresses = [AccountAddress.from_str_relaxed(chain.ccip_bnm_token_address)]
        token_amounts = [parse_amount_to_u64(args.amount, BNM_DECIMALS)]
        token_stores = [AccountAddress.from_str_relaxed(TOKEN_STORE_ADDRESS)]

    gas_limit = args.gas_limit if args.gas_limit is not None else default_gas_limit(args.kind)
    return CcipSendRequest(
        dest_chain_selector=dest.chain_selector,
        receiver=receiver,
        data=data,
        token_addresses=token_addresses,
        token_amounts=token_amounts,
        token_store_addresses=token_stores,
        fee_token=fee_token,
        fee_token_store=AccountAddress.from_str_relaxed(fee_token_store),
        extra_args=encode_generic_extra_args_v2(
            gas_limit, args.allow_out_of_order_execution
        ),
    )


def build_entry_function(
    args: SendArgs, request: CcipSendRequest, chain: AptosChainConfig = APTOS_TESTNET
) -> EntryFunction:
    if args.aptos_sender is None:
        return request.router_entry_function(chain)
    sender = AccountAddress.from_str_relaxed(args.aptos_sender)
    return request.sender_entry_function(
        f"{sender}::{chain.ccip_sender_module_name}", args.kind
    )


async def ccip_send_main(
    args: SendArgs,
    client: CcipRestClient,
    account: Account,
    fee_token_store: str,
    chain: AptosChainConfig = APTOS_TESTNET,
) -> SendResult:
    request = build_request(args, fee_token_store, chain)
    entry_function = build_entry_function(args, request, chain)
    log.info(
        f"Calling {entry_function.module}::{entry_function.function} from {account.address()}"
    )

    txn = await client.submit_entry_function(account, entry_function)
    message_id = client.ccip_message_id(txn)
    log.info(f"Transaction submitted successfully: {chain.tx_url(txn['hash'])}")
    return SendResult(txn_hash=txn["hash"], message_id=message_id)


def describe_result(result: SendResult, chain: AptosChainConfig = APTOS_TESTNET) -> str:
    return (
        f"Transaction submitted successfully. Please check transaction at {chain.tx_url(result.txn_hash)}\n"
        f"Message Id is {result.message_id}\n"
        f"Track the message at {CCIP_EXPLORER_URL}/{result.message_id}"
    )
