import logging
import os
import tempfile
import unittest

from deep_thought.utils.logger import setup_logger


class TestSetupLogger(unittest.TestCase):
    def test_console_handler_added_once(self):
        logger = setup_logger("deep_thought.test.console")
        setup_logger("deep_thought.test.console")
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.INFO)

    def test_file_handler(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "logs", "train.log")
            logger = setup_logger("deep_thought.test.file", log_file=path)
            setup_logger("deep_thought.test.file", log_file=path)
            self.assertEqual(len(logger.handlers), 2)

            logger.info("Epoch 0, Loss: 0.250000")
            for handler in list(logger.handlers):
                handler.flush()
                if isinstance(handler, logging.FileHandler):
                    handler.close()
                    logger.removeHandler(handler)

            with open(path) as f:
                line = f.read()
            self.assertIn("INFO - Epoch 0, Loss: 0.250000", line)


if __name__ == "__main__":
    unittest.main()
