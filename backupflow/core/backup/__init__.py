"""备份模块

提供分阶段的备份界面工作流：阶段处理、依赖约束、控制器持久化和计划执行
"""

from .constants import (
    StageId,
    ProgressState,
    ControllerStatus,
    SettingStatus,
    SettingUIType,
    SettingLevel,
    TaskKind,
    FILENAME_SETTING,
    BackupResult,
)
from .exceptions import (
    BackupUIError,
    SequenceError,
    AlreadyProcessedError,
    AlreadySavedError,
    AlreadyExecutedError,
    FinalizedBeforeExecuteError,
    DisplayBeforeSaveError,
    InvalidStageError,
    PreviousStageProcessingFailedError,
    BackupCancelledError,
    ControllerNotFoundError,
    BackupAlreadyFinishedError,
    PlanFrozenError,
    SettingNotFoundError,
)
from .settings import (
    Setting,
    SettingDependency,
    DisabledIfEquals,
    DisabledIfChecked,
    DisabledIfNotChecked,
    DisabledIfEmpty,
)
from .plan import BackupTask, BackupPlan
from .builder import build_course_plan
from .executor import ExecutionContext, TaskRegistry, TaskExecutor
from .store import (
    ControllerStore,
    MemoryControllerStore,
    JsonControllerStore,
    create_controller_store,
)
from .controller import BackupController
from .forms import BackupFormData, parse_form
from .context import (
    IBackupRenderer,
    TextRenderer,
    PageContext,
    BackupUIContext,
    create_ui_context,
)
from .stages import (
    BackupStage,
    InitialStage,
    SchemaStage,
    ConfirmationStage,
    FinalStage,
    CompleteStage,
)
from .ui import BackupUI
from .request import handle_backup_request

__all__ = [
    # 常量
    "StageId",
    "ProgressState",
    "ControllerStatus",
    "SettingStatus",
    "SettingUIType",
    "SettingLevel",
    "TaskKind",
    "FILENAME_SETTING",
    "BackupResult",
    # 异常
    "BackupUIError",
    "SequenceError",
    "AlreadyProcessedError",
    "AlreadySavedError",
    "AlreadyExecutedError",
    "FinalizedBeforeExecuteError",
    "DisplayBeforeSaveError",
    "InvalidStageError",
    "PreviousStageProcessingFailedError",
    "BackupCancelledError",
    "ControllerNotFoundError",
    "BackupAlreadyFinishedError",
    "PlanFrozenError",
    "SettingNotFoundError",
    # 设置与计划
    "Setting",
    "SettingDependency",
    "DisabledIfEquals",
    "DisabledIfChecked",
    "DisabledIfNotChecked",
    "DisabledIfEmpty",
    "BackupTask",
    "BackupPlan",
    "build_course_plan",
    # 执行与存储
    "ExecutionContext",
    "TaskRegistry",
    "TaskExecutor",
    "ControllerStore",
    "MemoryControllerStore",
    "JsonControllerStore",
    "create_controller_store",
    "BackupController",
    # 界面
    "BackupFormData",
    "parse_form",
    "IBackupRenderer",
    "TextRenderer",
    "PageContext",
    "BackupUIContext",
    "create_ui_context",
    "BackupStage",
    "InitialStage",
    "SchemaStage",
    "ConfirmationStage",
    "FinalStage",
    "CompleteStage",
    "BackupUI",
    "handle_backup_request",
]
