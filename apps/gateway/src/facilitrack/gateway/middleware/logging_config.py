"""gateway 日志与 APM 初始化

structlog 处理器链由 facilitrack.core.logging_config 提供（component=gateway）。
Logfire 由 LOGFIRE_SEND_TO_LOGFIRE 控制，默认关闭；初始化失败时只保留本地日志。
"""

import os

import structlog
from facilitrack.core.logging_config import setup_logging
from fastapi import FastAPI

GATEWAY_COMPONENT = "gateway"


def setup_gateway_logging(app: FastAPI) -> None:
    setup_logging(component=GATEWAY_COMPONENT)
    setup_logfire(app)


def setup_logfire(app: FastAPI) -> bool:
    """按需启用 Logfire 并挂载 FastAPI instrumentation

    Returns:
        是否已启用
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name="facilitrack-gateway")
        logfire.instrument_fastapi(app, excluded_urls="/health,/ready")
    except Exception:
        structlog.get_logger().warning(
            "logfire_init_failed",
            message="Logfire 初始化失败，仅输出本地日志",
            exc_info=True,
        )
        return False
    return True
