# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import unittest
from typing import Any, List, Optional, Tuple

from eth_abi import encode
from web3 import Web3
from web3.exceptions import ContractLogicError

from aptos_ccip.encoding import InvalidAmountError, InvalidReceiverError
from aptos_ccip.evm import NATIVE_FEE_TOKEN
from aptos_ccip.evm2aptos.ccip_send import (
    DEFAULT_MESSAGE,
    EvmSendArgs,
    build_message,
    evm_send_main,
)
from aptos_ccip.evm_errors import EvmRevertError
from aptos_ccip.extra_args import encode_evm_extra_args_v2
from aptos_ccip.network_config import (
    APTOS_TESTNET,
    AVALANCHE_FUJI,
    ETHEREUM_SEPOLIA,
    InvalidFeeTokenError,
)

APTOS_RECEIVER = "0x" + "1f" * 32
APTOS_ACCOUNT = "0x" + "2e" * 32
TX_HASH = "0x" + "99" * 32
MESSAGE_ID = "0x" + "ab" * 32

BNM_SEPOLIA = Web3.to_checksum_address(ETHEREUM_SEPOLIA.ccip_bnm_token_address)
LINK_SEPOLIA = Web3.to_checksum_address(ETHEREUM_SEPOLIA.link_token_address)


class FakeRouter:
    def __init__(self, base_fee: int = 1000, fee_error: Optional[Exception] = None):
        self.base_fee = base_fee
        self.fee_error = fee_error
        self.approvals: List[Tuple[str, int]] = []
        self.sent: List[Tuple[int, Any, int]] = []
        self.decimals_requested: List[str] = []

    def token_decimals(self, token_address: str) -> int:
        self.decimals_requested.append(token_address)
        return 18

    def get_fee(self, dest_chain_selector: int, message) -> int:
        if self.fee_error is not None:
            raise self.fee_error
        return self.base_fee

    def approve(self, token_address: str, amount: int) -> Optional[str]:
        self.approvals.append((token_address, amount))
        return None

    def ccip_send(self, dest_chain_selector: int, message, value: int) -> str:
        self.sent.append((dest_chain_selector, message, value))
        return TX_HASH

    def wait(self, tx_hash: str) -> Any:
        return {"status": 1, "blockNumber": 5, "logs": []}

    def message_id(self, receipt: Any) -> Optional[str]:
        return MESSAGE_ID


class BuildMessageTest(unittest.TestCase):
    def test_message_only(self):
        message = build_message(
            EvmSendArgs("sepolia", "link", APTOS_RECEIVER), ETHEREUM_SEPOLIA
        )
        self.assertEqual(message.receiver, bytes.fromhex("1f" * 32))
        self.assertEqual(message.data, DEFAULT_MESSAGE.encode())
        self.assertEqual(message.token_amounts, [])
        self.assertEqual(message.fee_token, LINK_SEPOLIA)
        self.assertEqual(message.extra_args, encode_evm_extra_args_v2(100000, True))

    def test_tokens_only(self):
        message = build_message(
            EvmSendArgs("fuji", "native", APTOS_RECEIVER, amount="0.25"),
            AVALANCHE_FUJI,
            decimals=18,
        )
        self.assertEqual(message.data, b"")
        self.assertEqual(
            message.token_amounts,
            [(Web3.to_checksum_address(AVALANCHE_FUJI.ccip_bnm_token_address), 25 * 10**16)],
        )
        self.assertEqual(message.fee_token, NATIVE_FEE_TOKEN)
        self.assertEqual(message.extra_args, encode_evm_extra_args_v2(0, True))

    def test_forward(self):
        message = build_message(
            EvmSendArgs("sepolia", "link", APTOS_RECEIVER, amount=1, aptos_account=APTOS_ACCOUNT),
            ETHEREUM_SEPOLIA,
            decimals=18,
        )
        self.assertEqual(message.data, bytes.fromhex("2e" * 32))
        self.assertEqual(message.token_amounts, [(BNM_SEPOLIA, 10**18)])
        self.assertEqual(message.extra_args, encode_evm_extra_args_v2(100000, True))

    def test_message_tuple_encodes(self):
        message = build_message(
            EvmSendArgs("sepolia", "link", APTOS_RECEIVER, message="hi", amount=1),
            ETHEREUM_SEPOLIA,
            decimals=18,
        )
        encoded = encode(
            ["(bytes,bytes,(address,uint256)[],address,bytes)"], [message.as_tuple()]
        )
        self.assertTrue(len(encoded) > 0)


class EvmSendMainTest(unittest.TestCase):
    def test_pay_link(self):
        router = FakeRouter(base_fee=1000)
        result = evm_send_main(
            EvmSendArgs("sepolia", "link", APTOS_RECEIVER, message="hi", amount="1.5"),
            router,
        )
        self.assertEqual(router.decimals_requested, [ETHEREUM_SEPOLIA.ccip_bnm_token_address])
        self.assertEqual(router.approvals, [(BNM_SEPOLIA, 15 * 10**17), (LINK_SEPOLIA, 1200)])
        selector, message, value = router.sent[0]
        self.assertEqual(selector, APTOS_TESTNET.chain_selector)
        self.assertEqual(message.data, b"hi")
        self.assertEqual(value, 0)
        self.assertEqual(result.fee, 1200)
        self.assertEqual(result.message_id, MESSAGE_ID)
        self.assertEqual(result.tx_url, f"https://sepolia.etherscan.io/tx/{TX_HASH}")
        self.assertIn(f"Message Id is {MESSAGE_ID}", result.describe())

    def test_pay_native(self):
        router = FakeRouter(base_fee=500)
        evm_send_main(EvmSendArgs("fuji", "native", APTOS_RECEIVER), router)
        self.assertEqual(router.approvals, [])
        self.assertEqual(router.sent[0][2], 600)

    def test_invalid_input_touches_nothing(self):
        router = FakeRouter()
        with self.assertRaises(InvalidReceiverError):
            evm_send_main(EvmSendArgs("sepolia", "link", "not-an-address", amount=1), router)
        with self.assertRaises(InvalidAmountError):
            evm_send_main(EvmSendArgs("sepolia", "link", APTOS_RECEIVER, amount="-1"), router)
        with self.assertRaises(InvalidFeeTokenError):
            evm_send_main(EvmSendArgs("sepolia", "eth", APTOS_RECEIVER, amount=1), router)
        self.assertEqual(router.decimals_requested, [])
        self.assertEqual(router.sent, [])

    def test_revert_is_decoded(self):
        data = "0x08c379a0" + encode(["string"], ["fee too low"]).hex()
        router = FakeRouter(fee_error=ContractLogicError("execution reverted", data=data))
        with self.assertRaises(EvmRevertError) as cm:
            evm_send_main(EvmSendArgs("sepolia", "link", APTOS_RECEIVER), router)
        self.assertEqual(cm.exception.reason, "Require/Revert with string: fee too low")
        self.assertEqual(router.sent, [])


if __name__ == "__main__":
    unittest.main()
