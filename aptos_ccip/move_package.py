# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Compiling and publishing the starter-kit Move packages. Compilation and
object deployment go through the Aptos CLI; the compiled artifacts are then
read back so they can be published from Python.
"""

import os
import re
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import tomli
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument

from aptos_ccip import environment
from aptos_ccip.logging import log
from aptos_ccip.shell import LocalShell, RunResult, Shell

RESOURCE_ACCOUNT_SEED_PREFIX = "resource_account_seed_"
OBJECT_ADDRESS_PATTERN = re.compile(r"object address (0x[a-fA-F0-9]+)")


class CLIError(Exception):
    """The CLI failed execution of a command."""

    def __init__(self, command: List[str], output: str):
        super().__init__(
            f"The CLI operation failed:\n\tCommand: {' '.join(command)}\n\tOutput: {output}"
        )


@dataclass
class CompiledPackage:
    name: str
    metadata: bytes
    modules: List[bytes]


class AptosCli:
    """Runs Move package commands through the Aptos CLI"""

    shell: Shell
    binary: str

    def __init__(self, shell: Optional[Shell] = None, binary: Optional[str] = None):
        self.shell = shell or LocalShell()
        self.binary = binary or environment.aptos_cli_path()

    @staticmethod
    def prepare_named_addresses(named_addresses: Dict[str, str]) -> List[str]:
        if not named_addresses:
            return []
        rendered = ",".join(f"{name}={addr}" for name, addr in named_addresses.items())
        return ["--named-addresses", rendered]

    def compile_package(
        self, package_dir: str, named_addresses: Dict[str, str]
    ) -> RunResult:
        args = [
            self.binary,
            "move",
            "compile",
            "--save-metadata",
            "--package-dir",
            package_dir,
        ]
        args.extend(self.prepare_named_addresses(named_addresses))

        log.info(f"Compiling {package_dir} with addresses: {named_addresses}")
        result = self.shell.run(args)
        if not result.succeeded():
            raise CLIError(args, result.output_str())
        log.info(f"{package_dir} compiled successfully.")
        return result

    def deploy_object(self, package_dir: str, address_name: str) -> Optional[str]:
        """
        Publishes the package to a new object. Returns the object address
        parsed from the CLI output, or None if it could not be found.
        """
        args = [
            self.binary,
            "move",
            "deploy-object",
            "--package-dir",
            package_dir,
            "--address-name",
            address_name,
            "--assume-yes",
        ]
        result = self.shell.run(args, stream_output=True)
        if not result.succeeded():
            raise CLIError(args, result.output_str())

        match = OBJECT_ADDRESS_PATTERN.search(result.output_str())
        if match is None:
            log.warning(
                "Could not parse the object address from the CLI output, but the command succeeded."
            )
            return None
        return match.group(1)


def read_compiled_package(package_dir: str) -> CompiledPackage:
    with open(os.path.join(package_dir, "Move.toml"), "rb") as f:
        data = tomli.load(f)
    name = data["package"]["name"]

    build_dir = os.path.join(package_dir, "build", name)
    module_directory = os.path.join(build_dir, "bytecode_modules")
    modules = []
    for module_file in sorted(os.listdir(module_directory)):
        module_path = os.path.join(module_directory, module_file)
        if not os.path.isfile(module_path) or not module_file.endswith(".mv"):
            continue
        with open(module_path, "rb") as f:
            modules.append(f.read())
    if not modules:
        raise FileNotFoundError(f"No .mv module files found in {module_directory}")

    with open(os.path.join(build_dir, "package-metadata.bcs"), "rb") as f:
        metadata = f.read()
    return CompiledPackage(name, metadata, modules)


def resource_account_seed(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{RESOURCE_ACCOUNT_SEED_PREFIX}{now_ms}"


def resource_account_address(creator: AccountAddress, seed: str) -> AccountAddress:
    return AccountAddress.for_resource_account(creator, seed.encode("utf-8"))


def create_resource_account_and_publish(
    seed: str, package: CompiledPackage
) -> EntryFunction:
    return EntryFunction.natural(
        "0x1::resource_account",
        "create_resource_account_and_publish_package",
        [],
        [
            TransactionArgument(seed.encode("utf-8"), Serializer.to_bytes),
            TransactionArgument(package.metadata, Serializer.to_bytes),
            TransactionArgument(
                package.modules, Serializer.sequence_serializer(Serializer.to_bytes)
            ),
        ],
    )


def upgrade_object_code(
    package: CompiledPackage, object_address: AccountAddress
) -> EntryFunction:
    return EntryFunction.natural(
        "0x1::object_code_deployment",
        "upgrade",
        [],
        [
            TransactionArgument(package.metadata, Serializer.to_bytes),
            TransactionArgument(
                package.modules, Serializer.sequence_serializer(Serializer.to_bytes)
            ),
            TransactionArgument(object_address, Serializer.struct),
        ],
    )
