"""CheckerConfig -- 客户端配置加载

从环境变量加载配置。核心组件不读取环境变量，配置只在 CLI 层解析后以参数传入。
"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

DEFAULT_BASE_URL = "https://api.checknumber.ai/wa/api/simple/tasks"
DEFAULT_POLL_INTERVAL_S: float = 5.0
DEFAULT_TIMEOUT_S: int = 30
# 结果文件可能较大，下载超时单独设置
DEFAULT_DOWNLOAD_TIMEOUT_S: int = 300
DEFAULT_OUTPUT_PATH = "whatsapp_results.xlsx"

# 占位 key，视为未配置
PLACEHOLDER_API_KEY = "YOUR_API_KEY"


class CheckerConfig(BaseModel):
    """checknumber 客户端配置 -- 从环境变量加载

    环境变量:
        WHATSAPP_API_KEY: 服务 API key
        CHECKNUMBER_BASE_URL: 任务接口地址
        CHECKNUMBER_POLL_INTERVAL_S: 轮询间隔（秒，默认 5）
        CHECKNUMBER_TIMEOUT_S: 接口调用超时（秒，默认 30）
        CHECKNUMBER_DOWNLOAD_TIMEOUT_S: 结果下载超时（秒，默认 300）
        CHECKNUMBER_OUTPUT: 结果文件保存路径
    """

    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="X-API-Key 请求头取值",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="任务接口基础 URL",
    )
    poll_interval_s: float = Field(
        default=DEFAULT_POLL_INTERVAL_S,
        gt=0,
        description="状态轮询间隔（秒）",
    )
    timeout_s: int = Field(
        default=DEFAULT_TIMEOUT_S,
        ge=1,
        description="接口调用超时（秒）",
    )
    download_timeout_s: int = Field(
        default=DEFAULT_DOWNLOAD_TIMEOUT_S,
        ge=1,
        description="结果下载超时（秒）",
    )
    output_path: str = Field(
        default=DEFAULT_OUTPUT_PATH,
        description="结果文件保存路径",
    )

    @property
    def has_api_key(self) -> bool:
        """API key 是否已配置（空值和占位值均视为未配置）"""
        key = self.api_key.get_secret_value().strip()
        return bool(key) and key != PLACEHOLDER_API_KEY


def _env_number(env_var: str, cast, fallback):
    """读取数值型环境变量，非法值记录告警并回退默认值"""
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        return cast(val)
    except ValueError:
        log.warning(
            "invalid_number_config",
            env_var=env_var,
            value=val,
            fallback=fallback,
        )
        return None


def load_checker_config() -> CheckerConfig:
    """从环境变量加载客户端配置

    环境变量映射:
        WHATSAPP_API_KEY -> api_key (默认 "")
        CHECKNUMBER_BASE_URL -> base_url
        CHECKNUMBER_POLL_INTERVAL_S -> poll_interval_s (默认 5)
        CHECKNUMBER_TIMEOUT_S -> timeout_s (默认 30)
        CHECKNUMBER_DOWNLOAD_TIMEOUT_S -> download_timeout_s (默认 300)
        CHECKNUMBER_OUTPUT -> output_path (默认 whatsapp_results.xlsx)

    Returns:
        CheckerConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("WHATSAPP_API_KEY"):
        kwargs["api_key"] = SecretStr(val)

    if val := os.environ.get("CHECKNUMBER_BASE_URL"):
        kwargs["base_url"] = val.rstrip("/")

    if val := os.environ.get("CHECKNUMBER_OUTPUT"):
        kwargs["output_path"] = val

    numeric = [
        ("CHECKNUMBER_POLL_INTERVAL_S", "poll_interval_s", float, DEFAULT_POLL_INTERVAL_S),
        ("CHECKNUMBER_TIMEOUT_S", "timeout_s", int, DEFAULT_TIMEOUT_S),
        (
            "CHECKNUMBER_DOWNLOAD_TIMEOUT_S",
            "download_timeout_s",
            int,
            DEFAULT_DOWNLOAD_TIMEOUT_S,
        ),
    ]
    for env_var, field, cast, fallback in numeric:
        parsed = _env_number(env_var, cast, fallback)
        if parsed is not None:
            kwargs[field] = parsed

    return CheckerConfig(**kwargs)
