"""备份界面异常

所有异常都携带一个错误码（对应本地化字符串键）和可选的详情
"""

from typing import Any, Optional


class BackupUIError(Exception):
    """备份界面异常基类"""

    error_code = "backupuierror"

    def __init__(self, message: str = "", detail: Any = None):
        super().__init__(message or self.error_code)
        self.detail = detail

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, detail={self.detail!r})"


# ============== 顺序违规 ==============

class SequenceError(BackupUIError):
    """调用顺序违规（process/save/display/execute）"""


class AlreadyProcessedError(SequenceError):
    """当前阶段已处理"""

    error_code = "backupuialreadyprocessed"


class AlreadySavedError(SequenceError):
    """控制器已保存"""

    error_code = "backupuialreadysaved"


class AlreadyExecutedError(SequenceError):
    """备份计划已执行"""

    error_code = "backupuialreadyexecuted"


class FinalizedBeforeExecuteError(SequenceError):
    """未到达最终阶段就执行"""

    error_code = "backupuifinalisedbeforeexecute"


class DisplayBeforeSaveError(SequenceError):
    """保存之前就显示"""

    error_code = "backupsavebeforedisplay"


# ============== 阶段错误 ==============

class InvalidStageError(BackupUIError):
    """请求了未知的阶段"""

    error_code = "backupuiinvalidstage"

    def __init__(self, stage: Any):
        super().__init__(f"未知的备份阶段: {stage!r}", detail=stage)
        self.stage = stage


class PreviousStageProcessingFailedError(BackupUIError):
    """重放之前阶段时某个阶段处理失败"""

    error_code = "backup_ui_process_all_previous_stages_failed"

    def __init__(self, stage: Any):
        super().__init__(f"阶段 {stage!r} 处理失败", detail=stage)
        self.stage = stage


class BackupCancelledError(BackupUIError):
    """用户取消了备份，调用方应跳转到 ``url``"""

    error_code = "backupcancelled"

    def __init__(self, url: str):
        super().__init__(f"备份已取消，跳转到 {url}", detail=url)
        self.url = url


# ============== 控制器与计划 ==============

class ControllerNotFoundError(BackupUIError):
    """找不到指定的备份控制器"""

    error_code = "backupcontrollernotfound"

    def __init__(self, backup_id: str):
        super().__init__(f"备份控制器不存在: {backup_id}", detail=backup_id)
        self.backup_id = backup_id


class BackupAlreadyFinishedError(BackupUIError):
    """加载的控制器已经执行完毕，不能再次进入工作流"""

    error_code = "backupalreadyfinished"

    def __init__(self, backup_id: str):
        super().__init__(f"备份已执行完毕: {backup_id}", detail=backup_id)
        self.backup_id = backup_id


class PlanFrozenError(BackupUIError):
    """计划已保存或已结束交互，不允许再修改"""

    error_code = "backupplanfrozen"


class SettingNotFoundError(BackupUIError):
    """找不到指定的设置项"""

    error_code = "backupsettingnotfound"

    def __init__(self, name: str, where: Optional[str] = None):
        message = f"设置项不存在: {name}"
        if where:
            message = f"{message}（{where}）"
        super().__init__(message, detail=name)


__all__ = [
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
]
