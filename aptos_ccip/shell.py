# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

# A wrapper around running external commands, with a spy for tests

from __future__ import annotations

import logging
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from aptos_ccip.logging import log


@dataclass
class RunResult:
    exit_code: int
    output: bytes

    def output_str(self) -> str:
        return self.output.decode("utf-8", errors="replace")

    def succeeded(self) -> bool:
        return self.exit_code == 0


class Shell:
    def run(
        self,
        command: Sequence[str],
        stream_output: bool = False,
        timeout_secs: Optional[float] = None,
    ) -> RunResult:
        raise NotImplementedError()


@dataclass
class LocalShell(Shell):
    logger: logging.Logger = log

    def run(
        self,
        command: Sequence[str],
        stream_output: bool = False,
        timeout_secs: Optional[float] = None,
    ) -> RunResult:
        self.logger.debug(f"+ {' '.join(command)}")

        process = subprocess.Popen(
            command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT
        )
        if process.stdout is None:
            raise Exception(f"Could not get stdout for command: {command}")

        start_time = time.time()
        output = b""
        for line in iter(process.stdout.readline, b""):
            if stream_output:
                sys.stderr.buffer.write(line)
                sys.stderr.flush()
            output += line
            if timeout_secs and time.time() - start_time > timeout_secs:
                process.kill()
                raise subprocess.TimeoutExpired(" ".join(command), timeout_secs)

        try:
            process.wait(timeout=timeout_secs)
        except subprocess.TimeoutExpired:
            process.kill()
            raise
        return RunResult(process.returncode, output)


class FakeCommand:
    def __init__(
        self, command: str, result_or_exception: Union[RunResult, Exception]
    ) -> None:
        self.command = command
        self.result_or_exception = result_or_exception

    def __repr__(self) -> str:
        return f"FakeCommand({self.command})"


class SpyShell(Shell):
    """Replays canned results for an expected command list, in order"""

    def __init__(self, expected_command_list: Sequence[FakeCommand]) -> None:
        self.expected_command_list = list(expected_command_list)
        self.commands: List[str] = []

    def get_fake_commands(self) -> List[str]:
        return [fake.command for fake in self.expected_command_list]

    def run(
        self,
        command: Sequence[str],
        stream_output: bool = False,
        timeout_secs: Optional[float] = None,
    ) -> RunResult:
        rendered_command = " ".join(command)
        times_called_before = self.commands.count(rendered_command)
        matches = [
            fake
            for fake in self.expected_command_list
            if fake.command == rendered_command
        ]
        if times_called_before >= len(matches):
            raise Exception(
                f"Did not find command '{rendered_command}' in expected command list: {self.get_fake_commands()}"
            )
        self.commands.append(rendered_command)

        result = matches[times_called_before].result_or_exception
        if isinstance(result, Exception):
            raise result
        return result

    def assert_commands(self, testcase) -> None:
        """Compare the commands that were run to the expected commands"""
        testcase.assertEqual(self.get_fake_commands(), self.commands)
