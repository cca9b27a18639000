"""备份控制器

持有备份计划，负责持久化计划并触发执行
"""

import uuid
from typing import Any, Callable, Dict, Optional

from loguru import logger

from .constants import (
    BackupResult,
    ControllerStatus,
    CONTROLLER_FORMAT_VERSION,
)
from .executor import ExecutionContext, TaskExecutor
from .plan import BackupPlan
from .store import ControllerStore, MemoryControllerStore


class BackupController:
    """备份控制器

    Parameters:
        plan: 备份计划（控制器独占）
        backup_id: 备份ID，默认自动生成
        store: 控制器存储，默认为内存存储
        executor: 任务执行器
    """

    def __init__(
        self,
        plan: BackupPlan,
        backup_id: Optional[str] = None,
        store: Optional[ControllerStore] = None,
        executor: Optional[TaskExecutor] = None,
        status: ControllerStatus = ControllerStatus.SETTING_UI,
    ):
        self.plan = plan
        self.backup_id = backup_id or uuid.uuid4().hex
        self.store = store if store is not None else MemoryControllerStore()
        self.executor = executor or TaskExecutor()
        self.status = ControllerStatus(status)
        self.results: Optional[BackupResult] = None
        self.progress_callback: Optional[Callable[[str, int, int, str], None]] = None

    @classmethod
    def load(
        cls,
        backup_id: str,
        store: ControllerStore,
        executor: Optional[TaskExecutor] = None,
    ) -> "BackupController":
        """从存储加载控制器

        Raises:
            ControllerNotFoundError: 控制器不存在
        """
        data = store.load(backup_id)
        controller = cls.from_dict(data, store=store, executor=executor)
        logger.debug(f"已加载备份控制器: {backup_id}（状态 {controller.status.value}）")
        return controller

    def get_plan(self) -> BackupPlan:
        return self.plan

    def get_backup_id(self) -> str:
        return self.backup_id

    def get_status(self) -> ControllerStatus:
        return self.status

    def is_finished(self) -> bool:
        return self.status in (ControllerStatus.FINISHED_OK, ControllerStatus.FINISHED_ERR)

    def save(self) -> None:
        """持久化控制器，之后计划不能再修改

        存储写入失败时异常直接抛出
        """
        self.store.save(self.backup_id, self.to_dict())
        self.plan.freeze()
        logger.info(f"备份控制器已保存: {self.backup_id}")

    def finish_ui(self) -> None:
        """结束界面交互"""
        self.plan.freeze()
        self.status = ControllerStatus.AWAITING
        logger.debug(f"备份 {self.backup_id} 界面交互结束")

    def execute_plan(self) -> BackupResult:
        """执行备份计划"""
        self.status = ControllerStatus.EXECUTING
        logger.info(f"开始执行备份计划: {self.backup_id}")

        context = ExecutionContext(
            backup_id=self.backup_id,
            plan=self.plan,
            progress_callback=self.progress_callback,
        )
        self.results = self.executor.execute(context)
        self.status = (
            ControllerStatus.FINISHED_OK
            if self.results.success
            else ControllerStatus.FINISHED_ERR
        )
        self.store.save(self.backup_id, self.to_dict())
        return self.results

    def get_results(self) -> Optional[BackupResult]:
        return self.results

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "version": CONTROLLER_FORMAT_VERSION,
            "backup_id": self.backup_id,
            "status": self.status.value,
            "plan": self.plan.to_dict(),
            "results": self.results.to_dict() if self.results else None,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        store: Optional[ControllerStore] = None,
        executor: Optional[TaskExecutor] = None,
    ) -> "BackupController":
        """从字典创建"""
        controller = cls(
            plan=BackupPlan.from_dict(data.get("plan", {})),
            backup_id=data["backup_id"],
            store=store,
            executor=executor,
            status=data.get("status", ControllerStatus.SETTING_UI.value),
        )
        if data.get("results"):
            controller.results = BackupResult.from_dict(data["results"])
        return controller

    def __repr__(self) -> str:
        return f"BackupController(backup_id={self.backup_id!r}, status={self.status.value})"


__all__ = [
    "BackupController",
]
