"""备份表单数据

调用方提交的表单数据，字段内容对核心透明
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import StageId


class BackupFormData(BaseModel):
    """一次表单提交

    ``stage`` 是产生这份数据的表单所属阶段，而不是请求的目标阶段
    """

    stage: StageId
    cancelled: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("stage", mode="before")
    @classmethod
    def validate_stage(cls, v):
        """接受整数或数字字符串"""
        if isinstance(v, str) and v.strip().isdigit():
            v = int(v.strip())
        return v

    @field_validator("data", mode="before")
    @classmethod
    def validate_data(cls, v):
        """None 视为空表单"""
        if v is None:
            return {}
        return v

    def has(self, name: str) -> bool:
        return name in self.data

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)

    def is_from(self, stage: StageId) -> bool:
        """是否由指定阶段的表单提交"""
        return self.stage == stage


def parse_form(raw: Optional[Dict[str, Any]]) -> Optional[BackupFormData]:
    """从请求参数解析表单

    Args:
        raw: 形如 {"stage": 1, "cancelled": False, "data": {...}} 的字典

    Returns:
        表单数据，raw 为空时返回 None
    """
    if not raw:
        return None
    return BackupFormData.model_validate(raw)


__all__ = [
    "BackupFormData",
    "parse_form",
]
