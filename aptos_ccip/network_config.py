# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Static CCIP network table for the Aptos testnet and the EVM testnets it is
lane-connected to. Records are immutable and looked up by network name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Union


@dataclass(frozen=True)
class EvmChainConfig:
    network_name: str
    chain_selector: int
    ccip_router_address: str
    ccip_onramp_address: str
    ccip_offramp_address: str
    ccip_bnm_token_address: str
    link_token_address: str
    explorer_url: str
    rpc_url_env: str

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"


@dataclass(frozen=True)
class AptosChainConfig:
    network_name: str
    chain_selector: int
    ccip_object_address: str
    ccip_router_module_name: str
    ccip_offramp_module_name: str
    ccip_onramp_module_name: str
    ccip_bnm_token_address: str
    ccip_bnm_faucet_address: str
    link_token_address: str
    link_faucet_address: str
    native_token_address: str
    fee_token_store_address: str
    fee_token_name_link: str
    fee_token_name_native: str
    data_feed_demo_module_name: str
    data_feed_demo_address_name: str
    data_feed_id: str
    ccip_sender_module_name: str
    ccip_sender_address_name: str
    ccip_receiver_module_name: str
    explorer_url: str
    explorer_network: str
    dest_chains: Dict[str, str] = field(default_factory=dict)

    @property
    def fee_token_names(self) -> List[str]:
        return [self.fee_token_name_link, self.fee_token_name_native]

    def fee_token_address(self, fee_token_name: str) -> str:
        if fee_token_name == self.fee_token_name_link:
            return self.link_token_address
        if fee_token_name == self.fee_token_name_native:
            return self.native_token_address
        raise InvalidFeeTokenError(fee_token_name, self.fee_token_names)

    def module(self, module_name: str) -> str:
        """Fully qualified id of a module published under the CCIP object"""
        return f"{self.ccip_object_address}::{module_name}"

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/txn/{tx_hash}?network={self.explorer_network}"


CCIP_EXPLORER_URL = "https://ccip.chain.link/#/side-drawer/msg"

APTOS_TESTNET = AptosChainConfig(
    network_name="aptos",
    chain_selector=743186221051783445,
    ccip_object_address="0xbf9c97104a501e238a10ef1180386d4c030dbd9834a557cfcb016e85d929fdaf",
    ccip_router_module_name="router",
    ccip_offramp_module_name="offramp",
    ccip_onramp_module_name="onramp",
    ccip_bnm_token_address="0x9fb6e529e89805611769c76f7d5b6bfc557f04ec9ec69156bdb490e3403246b8",
    ccip_bnm_faucet_address="0x68c7af48bfea9e459bd6b6f7240d6764750313a8639dc58c82f88806f559b764",
    link_token_address="0x8873d0d9aa0e1d7bf7a42de620906d51f535314c72f27032bcaaf5519a22fec9",
    link_faucet_address="0xa15307fbc421fc3ede3a74fb3bf2fd7f6b30eae731470a70e763a5b76475a0b6",
    native_token_address="0xa",
    fee_token_store_address="0x0",
    fee_token_name_link="link",
    fee_token_name_native="native",
    data_feed_demo_module_name="price_feed_demo",
    data_feed_demo_address_name="data_feeds_demo",
    data_feed_id="0x01a0b4d920000332000000000000000000000000000000000000000000000000",
    ccip_sender_module_name="ccip_message_sender",
    ccip_sender_address_name="sender",
    ccip_receiver_module_name="ccip_message_receiver",
    explorer_url="https://explorer.aptoslabs.com",
    explorer_network="testnet",
    dest_chains={"ethereumSepolia": "sepolia", "avalancheFuji": "fuji"},
)

ETHEREUM_SEPOLIA = EvmChainConfig(
    network_name="sepolia",
    chain_selector=16015286601757825753,
    ccip_router_address="0x85634Ebafbc5D71d6606D4ea76630941B0e18Cee",
    ccip_onramp_address="0x48B2e5D487Cb85a7586FCdbDF9cC4E8c7391ED1B",
    ccip_offramp_address="0xe3d660848B680355a90b8E7fD4E4a1f63F3522D7",
    ccip_bnm_token_address="0xFd57b4ddBf88a4e07fF4e34C487b99af2Fe82a05",
    link_token_address="0x779877A7B0D9E8603169DdbD7836e478b4624789",
    explorer_url="https://sepolia.etherscan.io",
    rpc_url_env="ETHEREUM_SEPOLIA_RPC_URL",
)

AVALANCHE_FUJI = EvmChainConfig(
    network_name="fuji",
    chain_selector=14767482510784806043,
    ccip_router_address="0x8cEc1C22Fc5382633b7Ac5F07Cdd82FF3fB72C67",
    ccip_onramp_address="0x6ebe6c93878586dDF1825134E2144Fb737b54bdd",
    ccip_offramp_address="0xe9fA9D0de47a0B606C1A9af09746cCe82C82c8C3",
    ccip_bnm_token_address="0xD21341536c5cF5EB1bcb58f6723cE26e8D8E90e4",
    link_token_address="0x0b9d5D9136855f6FEc3c0993feE6E9CE8a297846",
    explorer_url="https://testnet.snowtrace.io",
    rpc_url_env="AVALANCHE_FUJI_RPC_URL",
)

EVM_CHAINS: Dict[str, EvmChainConfig] = {
    chain.network_name: chain for chain in [ETHEREUM_SEPOLIA, AVALANCHE_FUJI]
}

SUPPORTED_EVM_CHAINS: List[str] = list(EVM_CHAINS)

ALL_NETWORKS: List[str] = [APTOS_TESTNET.network_name] + SUPPORTED_EVM_CHAINS


def get_evm_chain_config(network_name: str) -> EvmChainConfig:
    """Return the EVM chain record for a network name such as 'sepolia'."""
    try:
        return EVM_CHAINS[network_name]
    except KeyError:
        raise UnsupportedChainError(network_name, SUPPORTED_EVM_CHAINS)


def get_chain_config(network_name: str) -> Union[AptosChainConfig, EvmChainConfig]:
    if network_name == APTOS_TESTNET.network_name:
        return APTOS_TESTNET
    if network_name in EVM_CHAINS:
        return EVM_CHAINS[network_name]
    raise UnsupportedChainError(network_name, ALL_NETWORKS)


class UnsupportedChainError(Exception):
    """The requested network is not in the chain table"""

    network_name: str

    def __init__(self, network_name: str, supported: List[str]):
        super().__init__(
            f"Invalid chain specified: {network_name}. Please specify a valid chain from {', '.join(supported)}."
        )
        self.network_name = network_name


class InvalidFeeTokenError(Exception):
    """The fee token name is neither 'link' nor 'native'"""

    def __init__(self, fee_token_name: str, supported: List[str]):
        super().__init__(
            f"Invalid fee token specified: {fee_token_name}. Please specify one of {', '.join(supported)}."
        )
