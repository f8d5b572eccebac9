"""
Configuration Manager for OKR Tracker.

集中管理系统常量和配置参数。
所有阈值必须显式声明并可通过 config/runtime.yaml 覆盖。

使用方式:
    from okr.config_manager import config
    limit = config.HISTORY_LIMIT
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from okr.exceptions import ConfigError


CONFIG_DIR = Path(__file__).parent.parent / "config"
RUNTIME_CONFIG_PATH = CONFIG_DIR / "runtime.yaml"


@dataclass
class SystemConfig:
    """
    系统运行时常量配置。
    """

    # === 历史记录 ===

    # 历史条目上限，超出后从最旧的条目开始淘汰
    # 快照条目与普通条目共享同一额度
    HISTORY_LIMIT: int = 1000

    # === 日期提醒 ===

    # 距离截止日期不超过该天数时显示黄色提醒（含当天）
    DUE_SOON_DAYS: int = 7

    # 距上次 check-in 达到该天数视为逾期
    CHECKIN_OVERDUE_DAYS: int = 8

    # === 进度阈值 ===

    # Objective 外框颜色的进度分界线（百分比）
    OUTLINE_PROGRESS_THRESHOLD: int = 70

    # 界面上 +/- 按钮的默认步长
    PROGRESS_STEP: int = 10

    # === 存储 ===

    DATA_FILENAME: str = "okr_data.json"

    # === 日志 ===

    # system.log 与控制台的级别名 (DEBUG/INFO/WARNING/ERROR)
    LOG_LEVEL: str = "INFO"
    CONSOLE_LOG_LEVEL: str = "WARNING"

    # 单个日志文件上限与保留份数
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 3


def _load_runtime_config(path: Optional[Path] = None) -> dict:
    """加载运行时配置覆盖（如果存在）。"""
    target = path or RUNTIME_CONFIG_PATH
    if not target.exists():
        return {}

    try:
        with open(target, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def _coerce_override(key: str, value, default, source: Path):
    """覆盖值必须与默认值同类型；整数阈值不能为负。"""
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"{key} 必须是非负整数，实际为 {value!r}", str(source))
        return value
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} 必须是非空字符串，实际为 {value!r}", str(source))
    return value


def get_config(path: Optional[Path] = None) -> SystemConfig:
    """
    获取系统配置实例。

    优先级：runtime.yaml > 默认值
    """
    base = SystemConfig()
    overrides = _load_runtime_config(path)

    for key, value in overrides.items():
        if hasattr(base, key):
            setattr(base, key, _coerce_override(key, value, getattr(base, key), path or RUNTIME_CONFIG_PATH))

    return base


# 全局配置实例（单例模式）
config = get_config()
