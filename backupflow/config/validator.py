"""配置 Schema 验证器

提供基于 JSON Schema 的配置验证功能
"""

from typing import Dict, List, Optional

from jsonschema import ValidationError, validate
from loguru import logger


class ConfigValidationError(Exception):
    """配置验证错误"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class ConfigValidator:
    """配置验证器

    使用 JSON Schema 验证配置
    """

    def __init__(self):
        self._schemas: Dict[str, dict] = {}

    def register_schema(self, name: str, schema: dict) -> None:
        self._schemas[name] = schema
        logger.debug(f"已注册 Schema: {name}")

    def has_schema(self, name: str) -> bool:
        return name in self._schemas

    def validate(self, config: dict, schema_name: str) -> bool:
        """验证配置

        Returns:
            验证通过返回 True

        Raises:
            ConfigValidationError: Schema 不存在或验证失败
        """
        if schema_name not in self._schemas:
            raise ConfigValidationError(f"Schema 不存在: {schema_name}")

        try:
            validate(instance=config, schema=self._schemas[schema_name])
        except ValidationError as e:
            errors = self._format_validation_error(e)
            raise ConfigValidationError(f"配置验证失败: {schema_name}", errors=errors)

        logger.debug(f"配置验证通过: {schema_name}")
        return True

    def _format_validation_error(self, error: ValidationError) -> List[str]:
        """格式化验证错误"""
        errors = [str(error.message)]

        if error.path:
            path_str = " -> ".join(str(p) for p in error.path)
            errors.append(f"路径: {path_str}")

        return errors


# 全局验证器实例
_global_validator: Optional[ConfigValidator] = None


def get_validator() -> ConfigValidator:
    """获取全局配置验证器实例"""
    global _global_validator
    if _global_validator is None:
        _global_validator = ConfigValidator()
    return _global_validator


__all__ = [
    "ConfigValidationError",
    "ConfigValidator",
    "get_validator",
]
