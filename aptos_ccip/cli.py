# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import logging
import sys
from typing import Any, Optional

import click

from aptos_ccip import environment
from aptos_ccip.aptos2evm import commands as aptos2evm_commands
from aptos_ccip.deploy import commands as deploy_commands
from aptos_ccip.evm2aptos import commands as evm2aptos_commands
from aptos_ccip.logging import init_logging, log
from aptos_ccip.ops import commands as ops_commands


class CatchAllExceptions(click.Group):
    def __call__(self, *args: Any, **kwargs: Any):
        try:
            return self.main(*args, **kwargs)
        except Exception as exc:
            log.debug("Command failed", exc_info=True)
            click.echo("Exception: %s" % exc, err=True)
            sys.exit(1)


CONTEXT_SETTINGS = {
    "max_content_width": 140,
    "terminal_width": 140,
    "help_option_names": ["-h", "--help"],
}


@click.group("ccip", context_settings=CONTEXT_SETTINGS, cls=CatchAllExceptions)
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
@click.option(
    "--env-file",
    "env_file",
    type=click.Path(dir_okay=False),
    help="Path to a .env file. Defaults to searching from the working directory.",
)
def cli(verbose: bool, env_file: Optional[str]):
    """Manual CCIP operations between Aptos testnet and EVM testnets"""
    init_logging(log, level=logging.DEBUG if verbose else logging.INFO)
    environment.load_environment(env_file)


@cli.group()
def aptos2evm():
    """The aptos2evm subgroup: send messages and tokens from Aptos and track them on the EVM side"""
    pass


aptos2evm.add_command(aptos2evm_commands.send_message)
aptos2evm.add_command(aptos2evm_commands.send_token)
aptos2evm.add_command(aptos2evm_commands.send_message_and_token)
aptos2evm.add_command(aptos2evm_commands.message_id)
aptos2evm.add_command(aptos2evm_commands.check_state)


@cli.group()
def evm2aptos():
    """The evm2aptos subgroup: send messages and tokens to Aptos and track them on the Aptos side"""
    pass


evm2aptos.add_command(evm2aptos_commands.send)
evm2aptos.add_command(evm2aptos_commands.forward_token)
evm2aptos.add_command(evm2aptos_commands.check_state)
evm2aptos.add_command(evm2aptos_commands.latest_message)


@cli.group()
def deploy():
    """The deploy subgroup: deploy receivers and publish the Move packages"""
    pass


deploy.add_command(deploy_commands.evm_receiver)
deploy.add_command(deploy_commands.aptos_object)
deploy.add_command(deploy_commands.aptos_resource_account)
deploy.add_command(deploy_commands.aptos_upgrade)


@cli.group()
def ops():
    """The ops subgroup: faucet, price feed and withdrawal helpers"""
    pass


ops.add_command(ops_commands.drip)
ops.add_command(ops_commands.fetch_price)
ops.add_command(ops_commands.get_price)
ops.add_command(ops_commands.withdraw)


def main():
    cli()


if __name__ == "__main__":
    main()
