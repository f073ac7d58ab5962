import logging

import pytest

from mindchat.observability.logging import configure_logging, get_logger, resolve_level


@pytest.fixture(autouse=True)
def _restore_levels():
    root = logging.getLogger()
    saved = root.level, logging.getLogger("httpx").level
    yield
    root.setLevel(saved[0])
    logging.getLogger("httpx").setLevel(saved[1])


class TestResolveLevel:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MINDCHAT_LOG_LEVEL", "debug")
        assert resolve_level() == logging.DEBUG

    def test_unknown_name_falls_back_to_info(self):
        assert resolve_level("chatty") == logging.INFO
        assert resolve_level("basic_format") == logging.INFO


class TestGetLogger:
    def test_level_applies_to_root_on_every_call(self, monkeypatch):
        monkeypatch.setenv("MINDCHAT_LOG_LEVEL", "ERROR")
        get_logger("mindchat.test.first")
        assert logging.getLogger().level == logging.ERROR

        monkeypatch.setenv("MINDCHAT_LOG_LEVEL", "DEBUG")
        logger = get_logger("mindchat.test.second")
        assert logging.getLogger().level == logging.DEBUG
        assert logger.level == logging.DEBUG

    def test_handler_attached_once(self):
        get_logger("mindchat.test.a")
        count = len(logging.getLogger().handlers)
        get_logger("mindchat.test.b")
        assert len(logging.getLogger().handlers) == count

    def test_http_client_logs_kept_at_warning(self):
        configure_logging(logging.DEBUG)
        assert logging.getLogger("httpx").level == logging.WARNING

        configure_logging(logging.ERROR)
        assert logging.getLogger("httpx").level == logging.ERROR
