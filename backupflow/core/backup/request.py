"""备份页面请求处理

把一次页面请求串起来：加载或创建控制器、处理阶段、保存或执行、显示
"""

from typing import Callable, Optional

from loguru import logger

from .constants import FILENAME_SETTING, StageId
from .context import BackupUIContext
from .controller import BackupController
from .exceptions import BackupAlreadyFinishedError
from .executor import TaskExecutor
from .plan import BackupPlan
from .store import ControllerStore
from .ui import BackupUI


def _fill_default_filename(controller: BackupController, context: BackupUIContext) -> None:
    root = controller.get_plan().get_root_task()
    if root is None:
        return
    setting = root.find_setting(FILENAME_SETTING)
    if setting is not None and not setting.get_value():
        setting.set_value(context.default_filename(controller.get_backup_id()))


def handle_backup_request(
    context: BackupUIContext,
    store: ControllerStore,
    plan_factory: Callable[[], BackupPlan],
    executor: Optional[TaskExecutor] = None,
) -> BackupUI:
    """处理一次备份页面请求

    Args:
        context: 请求上下文
        store: 控制器存储
        plan_factory: 首次请求时创建计划
        executor: 任务执行器

    Returns:
        处理完成并已显示的工作流引擎

    Raises:
        BackupUIError: 顺序违规、阶段处理失败或取消
        BackupAlreadyFinishedError: 请求的备份已经执行完毕
    """
    controller = BackupUI.load_controller(context, store)
    if controller is None:
        controller = BackupController(plan_factory(), store=store, executor=executor)
        _fill_default_filename(controller, context)
        logger.info(f"创建新的备份控制器: {controller.get_backup_id()}")
    else:
        if controller.is_finished():
            raise BackupAlreadyFinishedError(controller.get_backup_id())
        if executor is not None:
            controller.executor = executor

    ui = BackupUI(controller, context)
    ui.process()
    # 最终阶段重放修改的设置也要先约束依赖并保存
    ui.save_controller()
    if ui.get_stage() == StageId.FINAL:
        ui.execute()
    ui.display()
    return ui


__all__ = [
    "handle_backup_request",
]
