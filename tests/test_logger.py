"""
Tests for the diagnostic log file written by core.logger.
"""

import tempfile
import unittest
from pathlib import Path

from core import logger


class TestDiagnosticLog(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "logs" / "diagnostic.log"

    def tearDown(self):
        if logger._logger is not None:
            for handler in list(logger._logger.handlers):
                handler.close()
                logger._logger.removeHandler(handler)
        logger._logger = None
        logger._console_enabled = True
        self._tmp.cleanup()

    def read_log(self) -> str:
        for handler in logger._logger.handlers:
            handler.flush()
        return self.path.read_text(encoding="utf-8")

    def test_session_events_written(self):
        logger.setup_logging(self.path, level="INFO", log_to_console=False)
        logger.log_session("end", "Paginator ended: timed out")

        self.assertIn("INFO - [end] Paginator ended: timed out", self.read_log())

    def test_debug_only_at_debug_level(self):
        logger.setup_logging(self.path, level="INFO", log_to_console=False)
        logger.log_debug("next: page 2/5")
        logger.log_warning("edit failed [400]")
        content = self.read_log()

        self.assertNotIn("next: page 2/5", content)
        self.assertIn("WARNING - ⚠️ edit failed [400]", content)

        logger.setup_logging(self.path, level="DEBUG", log_to_console=False)
        logger.log_debug("back: page 1/5")
        self.assertIn("DEBUG - back: page 1/5", self.read_log())

    def test_no_file_when_disabled(self):
        logger.setup_logging(self.path, log_to_file=False, log_to_console=False)
        logger.log_info("hello")
        self.assertFalse(self.path.exists())


if __name__ == '__main__':
    unittest.main()
