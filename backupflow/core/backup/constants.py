"""备份模块常量

定义备份界面、控制器和执行器共享的常量与结果类型
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Any, List, Optional


class StageId(IntEnum):
    """备份界面阶段

    取值为 2 的幂，前一阶段总是 ``stage // 2``
    """

    INITIAL = 1
    SCHEMA = 2
    CONFIRMATION = 4
    FINAL = 8

    @property
    def previous(self) -> Optional["StageId"]:
        """前一阶段，INITIAL 没有前一阶段"""
        prev = self.value // 2
        return StageId(prev) if prev else None


class ProgressState(IntEnum):
    """备份界面实例的进度（只增不减）"""

    INITIAL = 0
    PROCESSED = 1
    SAVED = 2
    EXECUTED = 3


class ControllerStatus(str, Enum):
    """备份控制器状态"""

    CREATED = "created"
    SETTING_UI = "setting_ui"
    AWAITING = "awaiting"
    EXECUTING = "executing"
    FINISHED_OK = "finished_ok"
    FINISHED_ERR = "finished_err"


class SettingStatus(str, Enum):
    """设置项锁定状态"""

    UNLOCKED = "unlocked"
    LOCKED_BY_CONFIG = "locked_by_config"
    LOCKED_BY_HIERARCHY = "locked_by_hierarchy"
    LOCKED_BY_PERMISSION = "locked_by_permission"


class SettingUIType(str, Enum):
    """设置项在表单中的控件类型"""

    CHECKBOX = "checkbox"
    SELECT = "select"
    TEXT = "text"
    HIDDEN = "hidden"


class SettingLevel(str, Enum):
    """设置项所属层级"""

    ROOT = "root"
    COURSE = "course"
    SECTION = "section"
    ACTIVITY = "activity"


class TaskKind(str, Enum):
    """备份任务类型"""

    ROOT = "root"
    COURSE = "course"
    SECTION = "section"
    ACTIVITY = "activity"


# 确认阶段负责的根设置项名称
FILENAME_SETTING = "filename"

# 备份 ID 长度（uuid4 十六进制）
BACKUP_ID_LENGTH = 32

# 控制器持久化格式版本
CONTROLLER_FORMAT_VERSION = "1.0"


@dataclass
class BackupResult:
    """备份执行结果"""

    success: bool
    """是否成功"""

    backup_id: str = ""
    """备份ID"""

    message: str = ""
    """结果消息"""

    tasks: Dict[str, Any] = field(default_factory=dict)
    """各任务执行结果 {任务名: 结果}"""

    errors: List[str] = field(default_factory=list)
    """错误列表"""

    warnings: List[str] = field(default_factory=list)
    """警告列表"""

    duration: float = 0.0
    """耗时（秒）"""

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "success": self.success,
            "backup_id": self.backup_id,
            "message": self.message,
            "tasks": self.tasks,
            "errors": self.errors,
            "warnings": self.warnings,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupResult":
        """从字典创建"""
        return cls(
            success=data.get("success", False),
            backup_id=data.get("backup_id", ""),
            message=data.get("message", ""),
            tasks=data.get("tasks", {}),
            errors=data.get("errors", []),
            warnings=data.get("warnings", []),
            duration=data.get("duration", 0.0),
        )


__all__ = [
    "StageId",
    "ProgressState",
    "ControllerStatus",
    "SettingStatus",
    "SettingUIType",
    "SettingLevel",
    "TaskKind",
    "FILENAME_SETTING",
    "BACKUP_ID_LENGTH",
    "CONTROLLER_FORMAT_VERSION",
    "BackupResult",
]
