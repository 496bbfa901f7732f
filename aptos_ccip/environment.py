# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Secrets and endpoints read from the process environment (optionally seeded
from a .env file). Nothing here touches the network.
"""

import os
from typing import Optional

from aptos_sdk.account import Account
from dotenv import load_dotenv

NODE_URL_ENV = "APTOS_NODE_URL"
INDEXER_URL_ENV = "APTOS_INDEXER_URL"
APTOS_PRIVATE_KEY_ENV = "PRIVATE_KEY_HEX"
EVM_PRIVATE_KEY_ENV = "PRIVATE_KEY"
FEE_TOKEN_STORE_ENV = "FEE_TOKEN_STORE"
DATA_FEED_DEMO_MODULE_ADDRESS_ENV = "DATA_FEED_DEMO_MODULE_ADDRESS"
DATA_FEED_ID_ENV = "DATA_FEED_ID"
APTOS_CLI_PATH_ENV = "APTOS_CLI_PATH"

DEFAULT_NODE_URL = "https://fullnode.testnet.aptoslabs.com/v1"
DEFAULT_INDEXER_URL = "https://api.testnet.aptoslabs.com/v1/graphql"

# AIP-80 prefix emitted by newer wallets and the Aptos CLI
ED25519_KEY_PREFIX = "ed25519-priv-"


def load_environment(dotenv_path: Optional[str] = None) -> None:
    """Seed os.environ from a .env file without overriding exported values."""
    load_dotenv(dotenv_path=dotenv_path, override=False)


def require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise MissingEnvironmentVariableError(name)
    return value


def node_url() -> str:
    return os.getenv(NODE_URL_ENV, DEFAULT_NODE_URL)


def indexer_url() -> str:
    return os.getenv(INDEXER_URL_ENV, DEFAULT_INDEXER_URL)


def aptos_account() -> Account:
    """The Ed25519 signer from PRIVATE_KEY_HEX."""
    key = require_env(APTOS_PRIVATE_KEY_ENV).strip()
    if key.startswith(ED25519_KEY_PREFIX):
        key = key[len(ED25519_KEY_PREFIX) :]
    return Account.load_key(key)


def evm_private_key() -> str:
    return require_env(EVM_PRIVATE_KEY_ENV).strip()


def evm_rpc_url(rpc_url_env: str) -> str:
    return require_env(rpc_url_env)


def fee_token_store(default: str) -> str:
    return os.getenv(FEE_TOKEN_STORE_ENV, default)


def aptos_cli_path() -> str:
    """The aptos binary, assumed to be on PATH unless APTOS_CLI_PATH is set."""
    return os.getenv(APTOS_CLI_PATH_ENV) or "aptos"


class MissingEnvironmentVariableError(Exception):
    """A required environment variable is unset or empty"""

    name: str

    def __init__(self, name: str):
        super().__init__(f"Please set the environment variable {name}.")
        self.name = name
