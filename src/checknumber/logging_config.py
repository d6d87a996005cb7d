"""structlog 配置模块

CLI 启动时调用 setup_logging()。日志写到 stderr，stdout 只输出命令结果。
JobClient 在提交成功后通过 structlog.contextvars 绑定 task_id / user_id，
由 merge_contextvars 合并进同一任务的每条日志。
"""

import logging
import os

import structlog

LOG_FORMATS = ("dev", "json")


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get("CHECKNUMBER_LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    # 未知级别名 getLevelName 返回字符串
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """初始化 structlog 配置

    Args:
        level: 日志级别，优先于 CHECKNUMBER_LOG_LEVEL（默认 INFO）
        log_format: "dev" 带颜色的控制台输出，"json" 每行一个 JSON 对象；
            优先于 CHECKNUMBER_LOG_FORMAT（默认 dev）
    """
    log_format = log_format or os.environ.get("CHECKNUMBER_LOG_FORMAT", "dev")
    log_level = _resolve_level(level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # 轮询时 httpx 会逐条记录请求，DEBUG 以外只保留告警
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    )
