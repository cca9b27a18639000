"""备份配置管理

提供配置 Schema、配置类和 Schema 验证
"""

from .schema import CONFIG_SCHEMA, BACKUP_CONFIG_JSON_SCHEMA, get_default_config
from .validator import ConfigValidationError, ConfigValidator, get_validator
from .backup_config import BackupConfig

__all__ = [
    "CONFIG_SCHEMA",
    "BACKUP_CONFIG_JSON_SCHEMA",
    "get_default_config",
    "ConfigValidationError",
    "ConfigValidator",
    "get_validator",
    "BackupConfig",
]
