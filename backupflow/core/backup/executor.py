"""备份任务执行器

使用装饰器按任务类型注册处理函数，执行时按计划顺序逐个调用
"""

import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, Optional

from loguru import logger

from .constants import BackupResult, TaskKind
from .plan import BackupPlan, BackupTask
from .settings import is_checked


@dataclass
class TaskHandler:
    """任务处理函数"""

    kind: TaskKind
    """处理的任务类型"""

    func: Callable[[BackupTask, "ExecutionContext"], Any]
    """处理函数"""

    description: str = ""
    """描述"""


@dataclass
class ExecutionContext:
    """执行上下文

    传递给任务处理函数的上下文信息
    """

    backup_id: str
    """备份ID"""

    plan: BackupPlan
    """正在执行的计划"""

    progress_callback: Optional[Callable[[str, int, int, str], None]] = None
    """进度回调函数 (任务名, 当前, 总数, 消息)"""

    metadata: dict = field(default_factory=dict)
    """元数据"""


class TaskRegistry:
    """任务处理函数注册表"""

    _handlers: Dict[TaskKind, TaskHandler] = {}

    @classmethod
    def register(cls, kind: TaskKind, description: str = ""):
        """注册任务处理函数装饰器

        Example:
            @TaskRegistry.register(TaskKind.ACTIVITY, "活动备份")
            def backup_activity(task, context):
                ...
        """

        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                return func(*args, **kwargs)

            handler_kind = TaskKind(kind)
            if handler_kind in cls._handlers:
                logger.warning(f"任务类型 {handler_kind.value} 的处理函数已存在，将被覆盖。")
            cls._handlers[handler_kind] = TaskHandler(
                kind=handler_kind, func=wrapper, description=description
            )
            return wrapper

        return decorator

    @classmethod
    def get_handler(cls, kind: TaskKind) -> Optional[TaskHandler]:
        return cls._handlers.get(TaskKind(kind))

    @classmethod
    def unregister(cls, kind: TaskKind) -> bool:
        return cls._handlers.pop(TaskKind(kind), None) is not None

    @classmethod
    def clear(cls) -> None:
        """清空所有处理函数"""
        cls._handlers.clear()


def summarize_task(task: BackupTask) -> Dict[str, Any]:
    """没有处理函数时的默认结果：列出任务中已启用的设置项"""
    return {
        "included": [
            setting.name for setting in task.get_settings() if is_checked(setting.get_value())
        ],
        "settings": len(task.get_settings()),
    }


class TaskExecutor:
    """备份任务执行器

    单个任务失败只记录错误，不会中断后续任务
    """

    def __init__(self, registry: type = TaskRegistry):
        self.registry = registry

    def execute(self, context: ExecutionContext) -> BackupResult:
        """按计划顺序执行所有任务

        Args:
            context: 执行上下文

        Returns:
            执行结果
        """
        start_time = time.time()
        result = BackupResult(success=True, backup_id=context.backup_id)
        tasks = context.plan.get_tasks()
        total = len(tasks)

        for index, task in enumerate(tasks):
            if context.progress_callback:
                context.progress_callback(task.name, index, total, f"开始执行任务 {task.name}...")

            handler = self.registry.get_handler(task.kind)
            try:
                if handler is None:
                    logger.warning(f"任务类型 {task.kind.value} 没有处理函数，仅记录设置项: {task.name}")
                    result.warnings.append(f"任务 {task.name} 没有处理函数")
                    result.tasks[task.name] = summarize_task(task)
                else:
                    result.tasks[task.name] = handler.func(task, context)
            except Exception as e:
                logger.error(f"执行任务 {task.name} 失败: {e}")
                result.errors.append(f"{task.name}: {e}")
                result.tasks[task.name] = None

            if context.progress_callback:
                context.progress_callback(task.name, index + 1, total, f"任务 {task.name} 执行完成")

        result.success = not result.errors
        result.duration = time.time() - start_time
        result.message = (
            f"备份完成，共 {total} 个任务"
            if result.success
            else f"备份完成，{len(result.errors)} 个任务失败"
        )
        logger.info(f"备份 {context.backup_id} 执行结束: {result.message}")
        return result


__all__ = [
    "TaskHandler",
    "ExecutionContext",
    "TaskRegistry",
    "TaskExecutor",
    "summarize_task",
]
