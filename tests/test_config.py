import logging
import logging.handlers
import tempfile
import unittest
from pathlib import Path

from chessduel.config import Config, LoggingConfig, load_config, load_config_or_default
from chessduel.logging_setup import setup_logging
from chessduel.state import TimeControl


class LoadConfigTests(unittest.TestCase):

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "config.yaml"

    def _write(self, text: str) -> None:
        self.path.write_text(text, encoding="utf-8")

    def test_full_file(self):
        self._write(
            "game:\n"
            "  base_minutes: 3\n"
            "  increment_seconds: 2\n"
            "  player_ordering: random\n"
            "logging:\n"
            "  level: debug\n"
            "  file: null\n"
            "web:\n"
            "  port: 9000\n"
        )
        config = load_config(self.path)
        self.assertEqual(config.game.time_control, TimeControl(3, 2))
        self.assertEqual(config.game.player_ordering, "random")
        self.assertEqual(config.logging.level, "DEBUG")
        self.assertEqual(config.logging.level_number, logging.DEBUG)
        self.assertIsNone(config.logging.file)
        self.assertEqual(config.web.port, 9000)
        self.assertEqual(config.web.host, "0.0.0.0")

    def test_empty_file_gives_defaults(self):
        self._write("")
        self.assertEqual(load_config(self.path), Config())

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config(self.path)
        self.assertEqual(load_config_or_default(self.path), Config())

    def test_invalid_values(self):
        cases = [
            "game:\n  player_ordering: coin-toss\n",
            "game:\n  variant: atomic\n",
            "game:\n  base_minutes: 0\n",
            "logging:\n  level: chatty\n",
            "web:\n  clock_poll_seconds: -1\n",
            "game: [1, 2]\n",
        ]
        for text in cases:
            with self.subTest(text=text):
                self._write(text)
                with self.assertRaises(ValueError):
                    load_config(self.path)


class SetupLoggingTests(unittest.TestCase):

    def tearDown(self) -> None:
        logger = logging.getLogger("chessduel")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    def test_file_and_console_handlers(self):
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "nested" / "chessduel.log"
            logger = setup_logging(LoggingConfig(level="WARNING", file=str(log_file)))

            self.assertEqual(logger.level, logging.WARNING)
            kinds = {type(h) for h in logger.handlers}
            self.assertEqual(kinds, {logging.StreamHandler, logging.handlers.RotatingFileHandler})
            self.assertTrue(log_file.parent.is_dir())

            logging.getLogger("chessduel.game").warning("flag fell")
            for handler in logger.handlers:
                handler.flush()
            self.assertIn("flag fell", log_file.read_text(encoding="utf-8"))
            self.tearDown()

    def test_repeated_setup_replaces_handlers(self):
        setup_logging(LoggingConfig(file=None))
        logger = setup_logging(LoggingConfig(file=None))
        self.assertEqual(len(logger.handlers), 1)
