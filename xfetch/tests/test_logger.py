import io
import json
import os
import sys
import tempfile
import logging
import unittest
from datetime import timedelta

from xfetch.entry import CacheEntry, new_entry
from xfetch.logger import JsonFormatter, configure_logger, log_extra
from xfetch.oracle import is_expired


class TestLogExtra(unittest.TestCase):
    """Test the log_extra() helper."""

    def test_durations_become_seconds(self):
        """Test timedeltas are reported as seconds and floats are rounded."""
        extra = log_extra(delta=timedelta(milliseconds=250), window=0.1234567891, ttl=None)
        self.assertEqual(extra, {"data": {"delta": 0.25, "window": 0.123457, "ttl": None}})


class TestJsonFormatter(unittest.TestCase):
    """Test the JsonFormatter class."""

    def _record(self, msg="hello", exc_info=None):
        return logging.LogRecord(
            name="xfetch.entry",
            level=logging.DEBUG,
            pathname=__file__,
            lineno=10,
            msg=msg,
            args=(),
            exc_info=exc_info
        )

    def test_format(self):
        """Test records become JSON objects carrying the attached fields."""
        record = self._record()
        record.data = log_extra(delta=timedelta(seconds=0.1))["data"]

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["logger"], "xfetch.entry")
        self.assertEqual(payload["level"], "DEBUG")
        self.assertEqual(payload["message"], "hello")
        self.assertEqual(payload["delta"], 0.1)

    def test_format_exception(self):
        """Test exception info is included."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = self._record(exc_info=sys.exc_info())

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["exception"]["type"], "ValueError")
        self.assertEqual(payload["exception"]["message"], "boom")
        self.assertIn("Traceback", payload["exception"]["traceback"])


class TestConfigureLogger(unittest.TestCase):
    """Test configure_logger() against the library's own log records."""

    def setUp(self):
        self.stream = io.StringIO()
        self.logger = logging.getLogger("xfetch")
        self._saved = (self.logger.handlers[:], self.logger.level)

    def tearDown(self):
        for handler in self.logger.handlers:
            handler.close()
        self.logger.handlers, level = self._saved
        self.logger.setLevel(level)

    def _lines(self):
        return [json.loads(line) for line in self.stream.getvalue().splitlines()]

    def test_plain_text(self):
        """Test the text format shows the entry creation message."""
        configure_logger(level="debug", stream=self.stream)
        new_entry(lambda: 1, ttl=10)

        self.assertEqual(self.logger.level, logging.DEBUG)
        self.assertIn("Computed cache value", self.stream.getvalue())

    def test_json_entry_creation(self):
        """Test entry creation emits its parameters as JSON fields."""
        configure_logger(level=logging.DEBUG, use_json=True, stream=self.stream)
        entry = new_entry(lambda: 1, delta=timedelta(milliseconds=500), beta=2.0, ttl=30)

        payload = self._lines()[0]
        self.assertEqual(payload["logger"], "xfetch.entry")
        self.assertEqual(payload["delta"], 0.5)
        self.assertEqual(payload["beta"], 2.0)
        self.assertEqual(payload["ttl"], 30.0)
        self.assertAlmostEqual(payload["expires_at"], entry.expires_at, places=3)
        self.assertGreaterEqual(payload["elapsed"], 0.0)

    def test_json_early_expiration(self):
        """Test an early verdict emits the window and time left as JSON fields."""
        configure_logger(level=logging.DEBUG, use_json=True, stream=self.stream)
        entry = CacheEntry(value=1, delta=timedelta(seconds=1), beta=1.0, expires_at=100.0)

        self.assertTrue(is_expired(entry, 99.0, lambda: 0.1))

        payload = self._lines()[0]
        self.assertEqual(payload["logger"], "xfetch.oracle")
        self.assertEqual(payload["expires_in"], 1.0)
        self.assertAlmostEqual(payload["window"], 2.302585, places=5)
        self.assertEqual(payload["delta"], 1.0)

    def test_info_level_hides_debug_records(self):
        """Test nothing is written at the default INFO level."""
        configure_logger(stream=self.stream)
        new_entry(lambda: 1, ttl=10)
        self.assertEqual(self.stream.getvalue(), "")

    def test_log_file(self):
        """Test JSON output to a log file in a created directory."""
        with tempfile.TemporaryDirectory() as directory:
            log_file = os.path.join(directory, "logs", "xfetch.log")
            configure_logger(level="DEBUG", use_json=True, log_file=log_file)
            new_entry(lambda: 1)
            for handler in self.logger.handlers:
                handler.close()

            with open(log_file, encoding="utf-8") as f:
                payload = json.loads(f.readline())

        self.assertEqual(payload["message"].split(" in ")[0], "Computed cache value")
        self.assertIsNone(payload["ttl"])


class TestOracleLogging(unittest.TestCase):
    """Test which expiration verdicts are logged."""

    def test_only_early_verdicts_are_logged(self):
        """Test early verdicts log at DEBUG and verdicts past expiry do not."""
        entry = CacheEntry(value=1, delta=timedelta(seconds=1), beta=1.0, expires_at=100.0)

        with self.assertLogs("xfetch.oracle", level="DEBUG") as captured:
            # past the nominal expiry
            self.assertTrue(is_expired(entry, 100.5, lambda: 0.5))
            # not expired at all
            self.assertFalse(is_expired(entry, 90.0, lambda: 0.5))
            # early
            self.assertTrue(is_expired(entry, 99.5, lambda: 0.1))

        self.assertEqual(len(captured.records), 1)
        self.assertEqual(captured.records[0].levelno, logging.DEBUG)
        self.assertTrue(captured.records[0].getMessage().startswith("Early expiration"))

    def test_verdict_at_expiry_instant(self):
        """Test a true verdict exactly at expires_at still counts as early."""
        entry = CacheEntry(value=1, delta=timedelta(seconds=1), beta=1.0, expires_at=100.0)

        with self.assertLogs("xfetch.oracle", level="DEBUG") as captured:
            # zero window: the hard TTL check is not yet true
            self.assertFalse(is_expired(entry, 100.0, lambda: 1.0))
            self.assertTrue(is_expired(entry, 100.0, lambda: 0.5))

        self.assertEqual(len(captured.records), 1)
        self.assertTrue(captured.records[0].getMessage().startswith("Early expiration 0.000s"))
