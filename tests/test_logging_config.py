"""structlog 配置测试"""

import json
import logging

import pytest
import structlog
from checknumber.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    """还原 root logger 与 structlog 全局配置"""
    monkeypatch.delenv("CHECKNUMBER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CHECKNUMBER_LOG_FORMAT", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)
    structlog.reset_defaults()


class TestLevel:
    def test_default_info(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv("CHECKNUMBER_LOG_LEVEL", "warning")
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_argument_overrides_env(self, monkeypatch):
        monkeypatch.setenv("CHECKNUMBER_LOG_LEVEL", "ERROR")
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        # DEBUG 时保留 httpx 请求日志
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_unknown_level_falls_back(self):
        setup_logging(level="LOUD")
        assert logging.getLogger().level == logging.INFO


class TestJsonOutput:
    def test_contextvars_merged(self, capsys):
        """绑定的 task_id 出现在每条日志中"""
        setup_logging(log_format="json")
        log = structlog.get_logger("checknumber.test")

        with structlog.contextvars.bound_contextvars(task_id="task-9"):
            log.info("task_status", status="processing")
        log.info("job_idle")

        lines = [json.loads(line) for line in capsys.readouterr().err.splitlines()]
        assert lines[0]["event"] == "task_status"
        assert lines[0]["task_id"] == "task-9"
        assert lines[0]["level"] == "info"
        assert "timestamp" in lines[0]
        assert lines[1]["event"] == "job_idle"
        assert "task_id" not in lines[1]

    def test_env_format(self, monkeypatch, capsys):
        monkeypatch.setenv("CHECKNUMBER_LOG_FORMAT", "json")
        setup_logging()
        structlog.get_logger("checknumber.test").warning("input_file_empty", path="a.txt")

        record = json.loads(capsys.readouterr().err.strip())
        assert record["event"] == "input_file_empty"
        assert record["path"] == "a.txt"
