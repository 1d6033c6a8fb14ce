import logging

import pytest
from loguru import logger

from docmigrate.converter.logging_config import InterceptHandler, configure_logging, conversion_context


class TestConfigureLogging:
    def test_standard_logging_is_routed_to_loguru(self):
        configure_logging("DEBUG")
        messages: list[str] = []
        sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
        try:
            logging.getLogger("bs4").warning("parser fell back")
        finally:
            logger.remove(sink_id)

        assert messages == ["parser fell back"]
        assert any(isinstance(handler, InterceptHandler) for handler in logging.getLogger().handlers)

    def test_json_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "docmigrate.jsonl"
        configure_logging("INFO", log_file)
        logger.info("converted")
        logger.remove()

        assert '"converted"' in log_file.read_text(encoding="utf-8")


class TestConversionContext:
    def test_records_carry_conversion_id(self):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
        try:
            with conversion_context("markdown") as conversion_id:
                logger.info("inside")
        finally:
            logger.remove(sink_id)

        assert records[0]["extra"] == {"conversion_id": conversion_id, "profile": "markdown"}

    def test_failure_is_logged_and_reraised(self):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
        try:
            with pytest.raises(RuntimeError):
                with conversion_context("asciidoc"):
                    raise RuntimeError("broken")
        finally:
            logger.remove(sink_id)

        assert records[-1]["level"].name == "ERROR"
        assert "broken" in records[-1]["message"]
