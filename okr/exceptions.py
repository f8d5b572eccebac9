"""
OKR Tracker 异常定义模块。

定义系统中所有自定义异常的层次结构：
- OKRError: 基类，所有已知错误
- ConfigError: 配置文件错误
- PersistenceError: 文档保存失败
- ValidationError: 输入字段非法
"""
from typing import Optional


class OKRError(Exception):
    """OKR Tracker 基础异常类。

    所有系统内已知错误都继承自此类。
    捕获此类可以处理所有预期的错误情况。
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        """
        Args:
            message: 错误描述
            hint: 对用户的操作建议
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def get_user_message(self) -> str:
        """返回用户友好的错误消息。"""
        if self.hint:
            return f"{self.message}\n💡 建议: {self.hint}"
        return self.message


class ConfigError(OKRError):
    """配置文件错误。

    当配置文件缺失、格式错误或内容非法时抛出。
    """

    def __init__(self, message: str, config_path: Optional[str] = None):
        hint = f"请检查配置文件: {config_path}" if config_path else "请检查配置文件格式"
        super().__init__(message, hint)
        self.config_path = config_path


class PersistenceError(OKRError):
    """文档保存失败。

    内存中的状态已经更新，但未能写入磁盘。
    调用方必须把该错误暴露给用户，避免内存与磁盘状态悄悄分叉。
    """

    def __init__(self, message: str, path: Optional[str] = None):
        hint = f"内存中的修改尚未保存，请检查文件是否可写: {path}" if path else None
        super().__init__(message, hint)
        self.path = path


class ValidationError(OKRError):
    """输入字段非法（标题为空、未知分组、季度越界等）。"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, hint=None)
        self.field = field
