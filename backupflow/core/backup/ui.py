"""备份界面工作流引擎

管理阶段初始化、之前阶段的重放、进度守卫、依赖约束和计划执行。

典型请求流程:

    controller = BackupUI.load_controller(context, store) or BackupController(plan)
    ui = BackupUI(controller, context)
    ui.process()
    ui.save_controller()
    if ui.get_stage() == StageId.FINAL:
        ui.execute()
    ui.display()

进度只能前进：process、save_controller、execute 每个实例各只能调用一次。
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from .constants import ProgressState, StageId
from .context import BackupUIContext
from .controller import BackupController
from .exceptions import (
    AlreadyExecutedError,
    AlreadyProcessedError,
    AlreadySavedError,
    BackupCancelledError,
    ControllerNotFoundError,
    DisplayBeforeSaveError,
    FinalizedBeforeExecuteError,
    PreviousStageProcessingFailedError,
)
from .forms import BackupFormData
from .plan import BackupTask
from .stages import BackupStage, CompleteStage, get_stage_class
from .store import ControllerStore, is_valid_backup_id


class BackupUI:
    """备份界面工作流引擎

    Parameters:
        controller: 备份控制器
        context: 请求上下文，默认为空上下文
        stage: 要初始化的阶段，None 表示从请求参数读取

    Raises:
        InvalidStageError: 请求了未知的阶段
    """

    def __init__(
        self,
        controller: BackupController,
        context: Optional[BackupUIContext] = None,
        stage: Any = None,
    ):
        self.controller = controller
        self.context = context or BackupUIContext()
        self.progress = ProgressState.INITIAL
        self.dependency_change_count = 0
        self.stage: BackupStage = self.initialise_stage(stage)

    def initialise_stage(self, stage: Any = None) -> BackupStage:
        """初始化请求的阶段

        Args:
            stage: 阶段 ID，None 表示从请求参数读取（默认 INITIAL）

        Raises:
            InvalidStageError: 未知的阶段
        """
        if stage is None:
            stage = self.context.requested_stage()
        stage_cls = get_stage_class(stage)
        logger.debug(f"初始化备份阶段 {int(stage_cls.stage_id)}: {stage_cls.__name__}")
        return stage_cls(self)

    def process_previous_stage(self, stage: BackupStage) -> Optional[int]:
        """把当前阶段的处理交给前一阶段

        当前阶段的表单尚未提交时调用

        Returns:
            前一阶段的处理结果，没有前一阶段时返回 None
        """
        prev_stage = stage.get_prev_stage()
        if not prev_stage:
            return None
        return self.initialise_stage(prev_stage).process()

    def process_all_previous_stages(self, stage: BackupStage, form: BackupFormData) -> int:
        """按顺序用同一份表单处理所有之前的阶段

        Returns:
            修改的设置项总数

        Raises:
            PreviousStageProcessingFailedError: 某个阶段处理失败，之后的阶段不再处理
        """
        stages: List[BackupStage] = []
        prev_stage = stage.get_prev_stage()
        while prev_stage:
            previous = self.initialise_stage(prev_stage)
            stages.append(previous)
            prev_stage = previous.get_prev_stage()
        stages.reverse()

        changes = 0
        for previous in stages:
            outcome = previous.process(form)
            if outcome is None:
                logger.warning(f"重放阶段 {int(previous.get_stage())} 失败")
                raise PreviousStageProcessingFailedError(previous.get_stage())
            changes += outcome
        logger.debug(f"重放了 {len(stages)} 个阶段，共修改 {changes} 个设置项")
        return changes

    def process(self) -> Optional[int]:
        """处理当前阶段

        Raises:
            AlreadyProcessedError: 已经处理过
        """
        if self.progress >= ProgressState.PROCESSED:
            raise AlreadyProcessedError()
        self.progress = ProgressState.PROCESSED
        return self.stage.process()

    def save_controller(self) -> bool:
        """约束依赖后保存控制器，之后计划不能再修改

        Raises:
            AlreadySavedError: 已经保存过
        """
        if self.progress >= ProgressState.SAVED:
            raise AlreadySavedError()
        self.progress = ProgressState.SAVED
        self.enforce_dependencies()
        self.controller.save()
        return True

    def display(self) -> None:
        """显示当前阶段

        Raises:
            DisplayBeforeSaveError: 尚未保存
        """
        if self.progress < ProgressState.SAVED:
            raise DisplayBeforeSaveError()
        self.stage.display()

    def execute(self) -> bool:
        """执行备份计划

        Raises:
            AlreadyExecutedError: 已经执行过
            FinalizedBeforeExecuteError: 当前不是最终阶段
        """
        if self.progress >= ProgressState.EXECUTED:
            raise AlreadyExecutedError()
        if self.stage.get_stage() < StageId.FINAL:
            raise FinalizedBeforeExecuteError()
        self.progress = ProgressState.EXECUTED
        self.controller.finish_ui()
        self.controller.execute_plan()
        self.stage = CompleteStage(self, self.controller.get_results())
        return True

    def enforce_dependencies(self) -> bool:
        """对所有设置项执行依赖约束（单遍扫描）

        Returns:
            是否有设置项被修改
        """
        changes = 0
        for task in self.get_backup_tasks():
            for setting in task.get_settings():
                for dependency in setting.get_dependencies():
                    if dependency.enforce():
                        changes += 1
        self.dependency_change_count = changes
        if changes:
            logger.info(f"依赖约束修改了 {changes} 处设置")
        return changes > 0

    def enforce_changed_dependencies(self) -> bool:
        """上一次依赖约束是否修改了设置"""
        return self.dependency_change_count > 0

    def get_backup_tasks(self) -> List[BackupTask]:
        return self.controller.get_plan().get_tasks()

    @property
    def current_stage(self) -> BackupStage:
        return self.stage

    def get_stage(self) -> StageId:
        return self.stage.get_stage()

    def get_stage_name(self) -> str:
        return self.stage.get_name()

    def get_backup_id(self) -> str:
        return self.controller.get_backup_id()

    @staticmethod
    def load_controller(
        context: BackupUIContext, store: ControllerStore
    ) -> Optional[BackupController]:
        """加载请求中跟踪的控制器

        Returns:
            控制器；请求没有备份 ID 或首次加载找不到时返回 None
        """
        backup_id = context.get_param("backup")
        if not backup_id:
            return None
        if not is_valid_backup_id(backup_id):
            logger.warning(f"忽略非法的备份ID: {backup_id!r}")
            return None
        try:
            return BackupController.load(backup_id, store)
        except ControllerNotFoundError:
            logger.debug(f"备份控制器 {backup_id} 不存在，视为首次加载")
            return None

    def cancel_backup(self) -> None:
        """取消备份并跳转回相关页面

        Raises:
            BackupCancelledError: 总是抛出，终止当前请求
        """
        url = self.context.page.relevant_url()
        logger.info(f"备份 {self.get_backup_id()} 已取消")
        if self.context.redirect is not None:
            self.context.redirect(url)
        raise BackupCancelledError(url)

    def get_progress_bar(self) -> List[Dict[str, Any]]:
        """生成进度条条目（最早的阶段在前）"""
        stage = int(StageId.FINAL)
        current = int(self.stage.get_stage())
        items: List[Dict[str, Any]] = []
        while stage > 0:
            classes = ["backup_stage"]
            if stage // 2 == current:
                classes.append("backup_stage_next")
            elif stage == current:
                classes.append("backup_stage_current")
            elif stage < current:
                classes.append("backup_stage_complete")
            items.insert(0, {
                "stage": stage,
                "text": self.context.get_string(f"currentstage{stage}"),
                "class": " ".join(classes),
            })
            stage //= 2
        return items


__all__ = [
    "BackupUI",
]
