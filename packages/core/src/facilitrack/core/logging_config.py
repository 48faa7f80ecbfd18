"""structlog 配置模块

gateway 与调度 CLI 共用同一套处理器链：
- component：日志来源（gateway / scheduler）
- trace_id：未绑定时从事件中的 task_id / plan_id 推导，
  与 gateway TraceMiddleware 绑定的格式一致（plan-<id> / task-<id>）

FACILITRACK_LOG_FORMAT=json|dev 选择渲染模式，FACILITRACK_LOG_LEVEL 设置级别。
"""

import logging
import os

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# 事件字段 -> trace 前缀，按优先级排列
_TRACE_SOURCES = (
    ("task_id", "task"),
    ("plan_id", "plan"),
)


def trace_id_for(prefix: str, identifier: str) -> str:
    return f"{prefix}-{identifier}"


def add_trace_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """事件携带 task_id / plan_id 且上下文未绑定 trace_id 时补上 trace_id"""
    if "trace_id" in event_dict:
        return event_dict
    for key, prefix in _TRACE_SOURCES:
        identifier = event_dict.get(key)
        if identifier:
            event_dict["trace_id"] = trace_id_for(prefix, str(identifier))
            break
    return event_dict


def component_adder(component: str) -> Processor:
    def add_component(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("component", component)
        return event_dict

    return add_component


def setup_logging(component: str) -> None:
    """初始化 structlog 与标准库 logging

    Args:
        component: 日志来源标识，写入每条日志的 component 字段
    """
    log_format = os.environ.get("FACILITRACK_LOG_FORMAT", "dev")
    log_level = os.environ.get("FACILITRACK_LOG_LEVEL", "INFO")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        component_adder(component),
        add_trace_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
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

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
