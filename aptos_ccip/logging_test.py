# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import logging
import unittest

from aptos_ccip.logging import CcipStreamHandler, init_logging


class InitLoggingTest(unittest.TestCase):
    def test_reinit_replaces_handler(self):
        logger = logging.getLogger("aptos_ccip.logging_test")
        init_logging(logger)
        init_logging(logger, level=logging.DEBUG)

        handlers = [h for h in logger.handlers if isinstance(h, CcipStreamHandler)]
        self.assertEqual(len(handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(logging.getLogger("httpx").level, logging.DEBUG)

        init_logging(logger, print_metadata=False)
        self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)


if __name__ == "__main__":
    unittest.main()
