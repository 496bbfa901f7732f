# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import os
import tempfile
import unittest
from unittest.mock import patch

from aptos_sdk.account import Account

from aptos_ccip import environment
from aptos_ccip.environment import MissingEnvironmentVariableError


class EnvironmentTest(unittest.TestCase):
    def test_aptos_account_accepts_both_key_formats(self):
        account = Account.generate()
        key = "0x" + account.private_key.key.encode().hex()
        for value in [key, f"ed25519-priv-{key}", f"  {key}\n"]:
            with patch.dict(os.environ, {environment.APTOS_PRIVATE_KEY_ENV: value}):
                self.assertEqual(environment.aptos_account().address(), account.address())

    def test_missing_variable(self):
        with patch.dict(os.environ, {environment.EVM_PRIVATE_KEY_ENV: ""}):
            with self.assertRaises(MissingEnvironmentVariableError) as cm:
                environment.evm_private_key()
        self.assertEqual(cm.exception.name, "PRIVATE_KEY")
        self.assertEqual(str(cm.exception), "Please set the environment variable PRIVATE_KEY.")

    def test_defaults(self):
        with patch.dict(os.environ, {}):
            os.environ.pop(environment.NODE_URL_ENV, None)
            os.environ.pop(environment.FEE_TOKEN_STORE_ENV, None)
            self.assertEqual(environment.node_url(), environment.DEFAULT_NODE_URL)
            self.assertEqual(environment.fee_token_store("0x0"), "0x0")

        with patch.dict(os.environ, {environment.FEE_TOKEN_STORE_ENV: "0x5"}):
            self.assertEqual(environment.fee_token_store("0x0"), "0x5")

    def test_load_environment_does_not_override(self):
        with tempfile.TemporaryDirectory() as root:
            path = os.path.join(root, ".env")
            with open(path, "w") as f:
                f.write("AVALANCHE_FUJI_RPC_URL=https://from-file\nETHEREUM_SEPOLIA_RPC_URL=https://file\n")
            with patch.dict(os.environ, {"ETHEREUM_SEPOLIA_RPC_URL": "https://exported"}):
                os.environ.pop("AVALANCHE_FUJI_RPC_URL", None)
                environment.load_environment(path)
                self.assertEqual(environment.evm_rpc_url("AVALANCHE_FUJI_RPC_URL"), "https://from-file")
                self.assertEqual(environment.evm_rpc_url("ETHEREUM_SEPOLIA_RPC_URL"), "https://exported")


if __name__ == "__main__":
    unittest.main()
