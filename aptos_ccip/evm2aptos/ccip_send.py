# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Sends a CCIP message and/or CCIP-BnM tokens from an EVM chain to Aptos
through the EVM router. The fee is quoted with getFee, padded by 20% and
either approved in LINK or attached as native value.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from web3 import Web3

from aptos_ccip.encoding import Amount, aptos_address_bytes, parse_amount
from aptos_ccip.evm import (
    NATIVE_FEE_TOKEN,
    EvmWallet,
    approve_token,
    extract_ccip_message_id,
    fee_with_buffer,
    load_abi,
    token_decimals,
    wait_for_confirmations,
)
from aptos_ccip.evm_errors import decoded_reverts
from aptos_ccip.extra_args import encode_evm_extra_args_v2
from aptos_ccip.logging import log
from aptos_ccip.network_config import (
    APTOS_TESTNET,
    CCIP_EXPLORER_URL,
    EvmChainConfig,
    InvalidFeeTokenError,
    get_evm_chain_config,
)

DEFAULT_MESSAGE = "Hello world!"
MESSAGE_GAS_LIMIT = 100000
# tokens sent without data go straight to an account, nothing executes
TOKEN_ONLY_GAS_LIMIT = 0
FORWARDER_GAS_LIMIT = 100000


def revert_abis() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "CCIPRouterInterface": load_abi("Router"),
        "CCIPOnRampInterface": load_abi("OnRamp_1_6"),
        "ERC20Interface": load_abi("ERC20"),
        "FeeQuoterInterface": load_abi("FeeQuoter_1_6"),
    }


@dataclass(frozen=True)
class EvmSendArgs:
    """Data class for storing the arguments to the evm_send_main function"""

    source_chain: str  # sepolia or fuji
    fee_token: str  # link or native
    aptos_receiver: str  # account or receiver module address on Aptos
    message: Optional[str] = None
    amount: Optional[Amount] = None  # whole CCIP-BnM tokens
    # forward-token only: account the receiver module forwards the tokens to
    aptos_account: Optional[str] = None
    gas_limit: Optional[int] = None
    allow_out_of_order_execution: bool = True

    @property
    def is_forward(self) -> bool:
        return self.aptos_account is not None


@dataclass(frozen=True)
class EvmToAptosMessage:
    receiver: bytes
    data: bytes
    token_amounts: List[Tuple[str, int]]
    fee_token: str
    extra_args: bytes

    def as_tuple(self) -> Tuple[Any, ...]:
        """Client.EVM2AnyMessage as web3 expects it"""
        return (
            self.receiver,
            self.data,
            list(self.token_amounts),
            self.fee_token,
            self.extra_args,
        )


@dataclass(frozen=True)
class EvmSendResult:
    tx_hash: str
    tx_url: str
    fee: int
    message_id: Optional[str]

    def describe(self) -> str:
        lines = [f"Transaction successful: {self.tx_url}"]
        if self.message_id is None:
            lines.append("CCIPMessageSent event not found in the transaction receipt.")
        else:
            lines.append(f"Message Id is {self.message_id}")
            lines.append(f"Track the message at {CCIP_EXPLORER_URL}/{self.message_id}")
        return "\n".join(lines)


class CcipRouter:
    """The EVM router of one chain, plus the wallet that pays for sends"""

    def __init__(self, w3: Web3, wallet: EvmWallet, chain: EvmChainConfig):
        self.w3 = w3
        self.wallet = wallet
        self.chain = chain
        self.address = Web3.to_checksum_address(chain.ccip_router_address)
        self.contract = w3.eth.contract(address=self.address, abi=load_abi("Router"))

    def token_decimals(self, token_address: str) -> int:
        return token_decimals(self.w3, token_address)

    def get_fee(self, dest_chain_selector: int, message: EvmToAptosMessage) -> int:
        return self.contract.functions.getFee(
            dest_chain_selector, message.as_tuple()
        ).call()

    def approve(self, token_address: str, amount: int) -> Optional[str]:
        return approve_token(self.w3, self.wallet, token_address, self.address, amount)

    def ccip_send(
        self, dest_chain_selector: int, message: EvmToAptosMessage, value: int
    ) -> str:
        return self.wallet.send(
            self.contract.functions.ccipSend(dest_chain_selector, message.as_tuple()),
            value=value,
        )

    def wait(self, tx_hash: str) -> Any:
        return wait_for_confirmations(self.w3, tx_hash)

    def message_id(self, receipt: Any) -> Optional[str]:
        return extract_ccip_message_id(self.w3, self.chain.ccip_onramp_address, receipt)


def default_gas_limit(args: EvmSendArgs) -> int:
    if args.is_forward:
        return FORWARDER_GAS_LIMIT
    if args.amount is not None and args.message is None:
        return TOKEN_ONLY_GAS_LIMIT
    return MESSAGE_GAS_LIMIT


def message_data(args: EvmSendArgs) -> bytes:
    if args.is_forward:
        # the forwarder module reads the final recipient from the data
        return aptos_address_bytes(args.aptos_account)
    if args.amount is not None and args.message is None:
        return b""
    return (args.message if args.message is not None else DEFAULT_MESSAGE).encode("utf-8")


def fee_token_address(args: EvmSendArgs, chain: EvmChainConfig) -> str:
    if args.fee_token == APTOS_TESTNET.fee_token_name_link:
        return Web3.to_checksum_address(chain.link_token_address)
    if args.fee_token == APTOS_TESTNET.fee_token_name_native:
        return NATIVE_FEE_TOKEN
    raise InvalidFeeTokenError(args.fee_token, APTOS_TESTNET.fee_token_names)


def build_message(
    args: EvmSendArgs, chain: EvmChainConfig, decimals: Optional[int] = None
) -> EvmToAptosMessage:
    token_amounts: List[Tuple[str, int]] = []
    if args.amount is not None:
        if decimals is None:
            raise ValueError("Token decimals are required when sending tokens")
        token_amounts.append(
            (
                Web3.to_checksum_address(chain.ccip_bnm_token_address),
                parse_amount(args.amount, decimals),
            )
        )
    elif args.is_forward:
        raise ValueError("An amount is required when forwarding tokens")

    gas_limit = args.gas_limit if args.gas_limit is not None else default_gas_limit(args)
    return EvmToAptosMessage(
        receiver=aptos_address_bytes(args.aptos_receiver),
        data=message_data(args),
        token_amounts=token_amounts,
        fee_token=fee_token_address(args, chain),
        extra_args=encode_evm_extra_args_v2(gas_limit, args.allow_out_of_order_execution),
    )


def validate_args(args: EvmSendArgs, chain: EvmChainConfig) -> None:
    """Rejects bad input before the token decimals are read from the chain."""
    fee_token_address(args, chain)
    aptos_address_bytes(args.aptos_receiver)
    if args.is_forward:
        aptos_address_bytes(args.aptos_account)
    if args.amount is not None:
        parse_amount(args.amount, 0)


def evm_send_main(args: EvmSendArgs, router: CcipRouter) -> EvmSendResult:
    chain = get_evm_chain_config(args.source_chain)
    validate_args(args, chain)
    decimals = None
    if args.amount is not None:
        decimals = router.token_decimals(chain.ccip_bnm_token_address)
    message = build_message(args, chain, decimals)
    pays_native = message.fee_token == NATIVE_FEE_TOKEN

    with decoded_reverts(revert_abis()):
        base_fee = router.get_fee(APTOS_TESTNET.chain_selector, message)
        fee = fee_with_buffer(base_fee)
        unit = "WEI" if pays_native else "LINK JUELS"
        log.info(f"Base Fee (in {unit}): {base_fee}")
        log.info(f"Fee with 20% buffer (in {unit}): {fee}")

        for token, amount in message.token_amounts:
            router.approve(token, amount)
        if not pays_native:
            router.approve(message.fee_token, fee)

        log.info("Proceeding with the transfer...")
        tx_hash = router.ccip_send(
            APTOS_TESTNET.chain_selector, message, fee if pays_native else 0
        )
        log.info(f"Transaction sent: {tx_hash}, waiting for confirmation...")
        receipt = router.wait(tx_hash)

    return EvmSendResult(
        tx_hash=tx_hash,
        tx_url=chain.tx_url(tx_hash),
        fee=fee,
        message_id=router.message_id(receipt),
    )
