"""
OKR Tracker 日志配置。

所有模块的 logger 都挂在 ``okr_tracker`` 之下，由 setup_logging 统一装配：
- <logs_dir>/system.log: 变更与加载记录 (默认 INFO+)
- <logs_dir>/error.log: 保存失败等错误 (ERROR+)
- stderr: 恢复路径的警告 (默认 WARNING+)

级别默认取自 config (LOG_LEVEL / CONSOLE_LOG_LEVEL)，可被参数覆盖。
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from okr.config_manager import config

LOGS_DIR = Path(__file__).parent.parent / "logs"

ROOT_LOGGER_NAME = "okr_tracker"

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

Level = Union[int, str]


def _resolve_level(level: Optional[Level], fallback: str) -> int:
    """把 "info" / "WARNING" / 20 统一成 logging 的整数级别。"""
    value = level if level is not None else fallback
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _rotating_file(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=config.LOG_MAX_BYTES,
        backupCount=config.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: Optional[Level] = None,
    console_level: Optional[Level] = None,
    logs_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    装配 okr_tracker logger，重复调用会替换旧的 handlers。

    Args:
        log_level: system.log 级别，默认 config.LOG_LEVEL
        console_level: stderr 级别，默认 config.CONSOLE_LOG_LEVEL
        logs_dir: 日志目录，默认 <project_root>/logs
    """
    target_dir = logs_dir or LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)

    file_formatter = logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root.addHandler(
        _rotating_file(target_dir / "system.log", _resolve_level(log_level, config.LOG_LEVEL), file_formatter)
    )
    root.addHandler(_rotating_file(target_dir / "error.log", logging.ERROR, file_formatter))

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_resolve_level(console_level, config.CONSOLE_LOG_LEVEL))
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """``get_logger("store")`` -> ``okr_tracker.store``"""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)
