"""日志初始化"""

import sys
from typing import Any, Optional

from loguru import logger

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>[{level}]</level> {message}"


def setup_logging(level: str = "INFO", sink: Optional[Any] = None, colorize: bool = True) -> int:
    """重新配置 loguru 输出

    Args:
        level: 日志级别
        sink: 输出目标，默认为标准输出
        colorize: 是否着色

    Returns:
        新添加的 handler ID
    """
    logger.remove()
    return logger.add(
        sink if sink is not None else sys.stdout,
        format=LOG_FORMAT,
        level=level.upper(),
        colorize=colorize,
    )


def setup_logging_from_config(config: Any, sink: Optional[Any] = None) -> int:
    """按配置中的 logging.level 初始化日志"""
    return setup_logging(config.get("logging.level", "INFO"), sink=sink)


__all__ = [
    "LOG_FORMAT",
    "setup_logging",
    "setup_logging_from_config",
]
