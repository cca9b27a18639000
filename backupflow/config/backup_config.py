"""备份配置类

继承 dict，从 JSON 文件加载，缺失的配置项自动补全，支持点号访问
"""

import copy
import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .schema import BACKUP_CONFIG_JSON_SCHEMA, get_default_config
from .validator import get_validator

SCHEMA_NAME = "backup_config"


class BackupConfig(dict):
    """备份配置（继承 dict）

    Parameters:
        config_path: 配置文件路径，None 表示只使用默认配置不落盘
        validate: 加载后是否做 Schema 验证
    """

    def __init__(self, config_path: Optional[Path] = None, validate: bool = True):
        super().__init__()
        self.config_path = Path(config_path) if config_path is not None else None
        self.validate_enabled = validate
        self._initialize_config()

    def _initialize_config(self) -> None:
        """初始化配置（加载或创建）"""
        if self.config_path is not None and self.config_path.exists():
            self.load()
            self._check_config_integrity()
        else:
            self.update(get_default_config())
            if self.config_path is not None:
                self.save()
                logger.info(f"已创建配置文件: {self.config_path}")

        if self.validate_enabled:
            self.validate()

    def load(self) -> None:
        """从文件加载配置"""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.clear()
            self.update(data)
            logger.debug(f"已加载配置: {self.config_path}")
        except json.JSONDecodeError as e:
            logger.error(f"配置文件格式错误: {e}")
            raise

    def save(self) -> None:
        """保存配置到文件"""
        if self.config_path is None:
            return
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(dict(self), f, indent=2, ensure_ascii=False)
            logger.debug(f"已保存配置: {self.config_path}")
        except Exception as e:
            logger.error(f"保存配置失败: {e}")
            raise

    def validate(self) -> bool:
        """按 Schema 验证当前配置

        Raises:
            ConfigValidationError: 验证失败
        """
        validator = get_validator()
        if not validator.has_schema(SCHEMA_NAME):
            validator.register_schema(SCHEMA_NAME, BACKUP_CONFIG_JSON_SCHEMA)
        return validator.validate(dict(self), SCHEMA_NAME)

    def _check_config_integrity(self) -> None:
        """插入缺失的配置项，有变更时自动保存"""
        has_changes = False
        for key, value in get_default_config().items():
            if key not in self:
                self[key] = copy.deepcopy(value)
                logger.debug(f"插入缺失配置: {key}")
                has_changes = True
            elif isinstance(value, dict) and isinstance(super().get(key), dict):
                current = super().get(key)
                for sub_key, sub_value in value.items():
                    if sub_key not in current:
                        current[sub_key] = copy.deepcopy(sub_value)
                        logger.debug(f"插入缺失配置: {key}.{sub_key}")
                        has_changes = True

        if has_changes:
            self.save()
            logger.info("配置完整性检查完成，已自动修复")

    def __getattr__(self, key: str) -> Any:
        """支持点号访问"""
        try:
            return self[key]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{key}'")

    def __setattr__(self, key: str, value: Any) -> None:
        """支持点号赋值"""
        if key in ("config_path", "validate_enabled"):
            super().__setattr__(key, value)
        else:
            self[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """获取嵌套配置值（支持点号路径，如 "storage.controller_dir"）"""
        if "." not in key:
            return super().get(key, default)

        parts = key.split(".")
        current: Any = self
        for part in parts[:-1]:
            current = current.get(part, {})
            if not isinstance(current, dict):
                return default
        return current.get(parts[-1], default)

    def set(self, key: str, value: Any) -> None:
        """设置嵌套配置值（支持点号路径）"""
        if "." not in key:
            self[key] = value
            return

        parts = key.split(".")
        current: Any = self
        for part in parts[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value


__all__ = [
    "SCHEMA_NAME",
    "BackupConfig",
]
