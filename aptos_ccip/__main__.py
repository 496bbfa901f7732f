# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

from aptos_ccip.cli import main

main()
