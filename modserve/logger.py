"""
日志模块

使用 loguru 输出日志，aiohttp 与 SQLAlchemy 的标准库日志也转发到 loguru。
"""

import logging
import os
import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"

# 转发到 loguru 的标准库 logger
STDLIB_LOGGERS = ("aiohttp.access", "aiohttp.server", "aiohttp.web", "sqlalchemy.engine")


class InterceptHandler(logging.Handler):
    """把标准库 logging 记录交给 loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 跳过 logging 模块自身的栈帧，定位到真正的调用方
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logger(
    level: Optional[str] = None,
    sink=sys.stdout,
    log_file: Optional[str] = None,
    enqueue: bool = True,
    colorize: bool = True,
) -> None:
    """
    设置日志记录器

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
        sink: 控制台输出目标
        log_file: 日志文件路径，按 10 MB 轮转
        enqueue: 是否启用队列（线程安全）
        colorize: 是否启用颜色
    """
    if level is None:
        level = "DEBUG" if os.environ.get("MODSERVE_DEBUG", "0") == "1" else "INFO"
    debug = level == "DEBUG"

    logger.remove()
    logger.add(
        sink=sink,
        format=LOG_FORMAT,
        enqueue=enqueue,
        level=level,
        colorize=colorize,
        backtrace=debug,
        diagnose=debug,
    )

    if log_file:
        logger.add(
            log_file,
            format=LOG_FORMAT,
            enqueue=enqueue,
            level=level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )

    handler = InterceptHandler()
    for name in STDLIB_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False
    # SQL 语句只在调试模式输出
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if debug else logging.WARNING
    )

    if debug:
        logger.debug("DEBUG 模式已启用")


__all__ = ["logger", "setup_logger", "InterceptHandler"]
