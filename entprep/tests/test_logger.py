import json
import logging
import os
import tempfile
import unittest

import pytest

from entprep.common.logger import JsonFormatter, configure_logger, log_execution_time, with_context


class ListHandler(logging.Handler):

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestSessionLogger(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger("entprep.test.session")
        self.logger.setLevel(logging.DEBUG)
        self.handler = ListHandler()
        self.logger.addHandler(self.handler)

    def tearDown(self):
        self.logger.removeHandler(self.handler)

    def test_context_prefix_and_fields(self):
        log = with_context("entprep.test.session", session_id="abc")
        log.info("started")

        record = self.handler.records[0]
        self.assertEqual(record.getMessage(), "[session_id=abc] started")
        self.assertEqual(record.context, {"session_id": "abc"})

    def test_json_output_merges_context(self):
        log = with_context("entprep.test.session", session_id="abc")
        log.warning("late")

        entry = json.loads(JsonFormatter().format(self.handler.records[0]))
        self.assertEqual(entry["level"], "WARNING")
        self.assertEqual(entry["logger"], "entprep.test.session")
        self.assertEqual(entry["session_id"], "abc")


class TestConfigureLogger(unittest.TestCase):

    def test_reconfiguring_replaces_handlers(self):
        name = "entprep.test.configure"
        configure_logger(level="debug", name=name)
        logger = configure_logger(level="warning", name=name)

        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.WARNING)

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "logs", "entprep.log")
            logger = configure_logger(use_json=True, log_file=path, name="entprep.test.file")
            logger.info("hello")
            for handler in logger.handlers:
                handler.flush()
                handler.close()

            with open(path, encoding="utf-8") as f:
                self.assertEqual(json.loads(f.readline())["message"], "hello")


@pytest.mark.asyncio
class TestLogExecutionTime:

    async def test_result_and_errors_pass_through(self):
        logger = logging.getLogger("entprep.test.timing")
        handler = ListHandler()
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

        @log_execution_time(logger)
        async def ok():
            return 42

        @log_execution_time(logger)
        async def boom():
            raise RuntimeError("nope")

        try:
            assert await ok() == 42
            with pytest.raises(RuntimeError):
                await boom()
        finally:
            logger.removeHandler(handler)

        assert handler.records[0].levelno == logging.DEBUG
        assert handler.records[1].levelno == logging.ERROR
        assert "nope" in handler.records[1].getMessage()
