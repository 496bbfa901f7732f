# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
EVM side of the CCIP operations, on top of web3.py.
"""

import json
import os
import time
from typing import Any, Dict, List, Optional, Tuple

from eth_abi.exceptions import DecodingError
from eth_account import Account as EthAccount
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import MismatchedABI

from aptos_ccip import environment
from aptos_ccip.evm_errors import EvmRevertError
from aptos_ccip.logging import log
from aptos_ccip.network_config import EvmChainConfig

ABI_DIR = os.path.join(os.path.dirname(__file__), "abi")

CONFIRMATIONS = 3
RECEIPT_TIMEOUT_SECS = 300
DEPLOY_GAS_LIMIT = 3_000_000
FALLBACK_GAS_PRICE = Web3.to_wei(25, "gwei")
NATIVE_FEE_TOKEN = "0x0000000000000000000000000000000000000000"


def load_abi(name: str) -> List[Dict[str, Any]]:
    with open(os.path.join(ABI_DIR, f"{name}.json"), "r", encoding="utf-8") as f:
        return json.load(f)


def connect(chain: EvmChainConfig) -> Web3:
    return Web3(Web3.HTTPProvider(environment.evm_rpc_url(chain.rpc_url_env)))


def fee_with_buffer(base_fee: int) -> int:
    """Base fee plus a 20% margin, in integer math."""
    return base_fee + base_fee // 5


def gas_price_or_fallback(w3: Web3) -> int:
    price = w3.eth.gas_price
    return price if price else FALLBACK_GAS_PRICE


class EvmWallet:
    """Signs and broadcasts transactions for one externally owned account"""

    w3: Web3
    account: LocalAccount

    def __init__(self, w3: Web3, private_key: str):
        self.w3 = w3
        self.account = EthAccount.from_key(private_key)

    @property
    def address(self) -> str:
        return self.account.address

    def send(
        self,
        call: Any,
        value: int = 0,
        gas: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> str:
        """Builds `call` (a bound contract function or constructor) and sends it."""
        params: Dict[str, Any] = {
            "from": self.address,
            "nonce": self.w3.eth.get_transaction_count(self.address, "pending"),
            "value": value,
        }
        if gas is not None:
            params["gas"] = gas
        if gas_price is not None:
            params["gasPrice"] = gas_price

        tx = call.build_transaction(params)
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)


def wait_for_confirmations(
    w3: Web3,
    tx_hash: str,
    confirmations: int = CONFIRMATIONS,
    poll_interval_secs: float = 2.0,
) -> Any:
    """
    Waits for the receipt and then until `confirmations` blocks, counting the
    inclusion block, are on top of it. A reverted receipt raises.
    """
    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT_SECS)
    if receipt["status"] != 1:
        raise EvmRevertError(f"transaction {tx_hash} reverted on chain")

    target = receipt["blockNumber"] + confirmations - 1
    while w3.eth.block_number < target:
        time.sleep(poll_interval_secs)
    log.info(
        f"Transaction confirmed in block {receipt['blockNumber']} after {confirmations} confirmations."
    )
    return receipt


def token_decimals(w3: Web3, token_address: str) -> int:
    token = w3.eth.contract(
        address=Web3.to_checksum_address(token_address), abi=load_abi("ERC20")
    )
    return token.functions.decimals().call()


def approve_token(
    w3: Web3,
    wallet: EvmWallet,
    token_address: str,
    spender: str,
    amount: int,
) -> Optional[str]:
    """Approves `spender` for `amount` unless the current allowance covers it."""
    token = w3.eth.contract(
        address=Web3.to_checksum_address(token_address), abi=load_abi("ERC20")
    )
    spender = Web3.to_checksum_address(spender)
    symbol = token.functions.symbol().call()
    allowance = token.functions.allowance(wallet.address, spender).call()
    log.info(f"Current allowance of {symbol} token: {allowance}")

    if allowance >= amount:
        log.info("Sufficient allowance already granted.")
        return None

    tx_hash = wallet.send(token.functions.approve(spender, amount))
    log.info(f"Approval tx sent: {tx_hash}")
    wait_for_confirmations(w3, tx_hash)
    log.info(f"Router approved to spend {amount} of {symbol} token from your account.")
    return tx_hash


def extract_ccip_message_id(w3: Web3, onramp_address: str, receipt: Any) -> Optional[str]:
    """Message id from the first CCIPMessageSent log in `receipt`."""
    onramp = w3.eth.contract(
        address=Web3.to_checksum_address(onramp_address), abi=load_abi("OnRamp_1_6")
    )
    for entry in receipt["logs"]:
        try:
            event = onramp.events.CCIPMessageSent().process_log(entry)
        except (MismatchedABI, DecodingError, KeyError, ValueError):
            continue
        header = _field(event["args"]["message"], "header", 0)
        return Web3.to_hex(_field(header, "messageId", 0))

    log.warning("CCIPMessageSent event not found.")
    return None


def deploy_contract(
    w3: Web3,
    wallet: EvmWallet,
    abi: List[Dict[str, Any]],
    bytecode: str,
    constructor_args: Tuple[Any, ...],
    gas: int = DEPLOY_GAS_LIMIT,
) -> Tuple[str, str]:
    """Deploys a contract and returns (contract address, tx hash)."""
    factory = w3.eth.contract(abi=abi, bytecode=bytecode)
    tx_hash = wallet.send(
        factory.constructor(*constructor_args),
        gas=gas,
        gas_price=gas_price_or_fallback(w3),
    )
    log.info(f"Deployment tx sent: {tx_hash}")
    receipt = wait_for_confirmations(w3, tx_hash, confirmations=1)
    return receipt["contractAddress"], tx_hash


def _field(value: Any, name: str, index: int) -> Any:
    """Struct member by name, or by position for tuples decoded without names."""
    if isinstance(value, (tuple, list)):
        return value[index]
    return value[name]
