"""备份计划与备份任务

计划按顺序持有任务，任务持有设置项。任务顺序即执行顺序。
"""

from typing import Any, Dict, Iterator, List, Optional

from .constants import TaskKind
from .exceptions import SettingNotFoundError
from .settings import Setting


class BackupTask:
    """备份任务（一组设置项）"""

    def __init__(
        self,
        name: str,
        kind: TaskKind = TaskKind.ACTIVITY,
        settings: Optional[List[Setting]] = None,
    ):
        self.name = name
        self.kind = TaskKind(kind)
        self._settings: List[Setting] = list(settings or [])

    def get_name(self) -> str:
        return self.name

    def get_settings(self) -> List[Setting]:
        """获取设置项（返回引用，修改会作用到任务本身）"""
        return self._settings

    def add_setting(self, setting: Setting) -> Setting:
        if self.find_setting(setting.name) is not None:
            raise ValueError(f"任务 {self.name} 已存在设置项 {setting.name}")
        self._settings.append(setting)
        return setting

    def find_setting(self, name: str) -> Optional[Setting]:
        for setting in self._settings:
            if setting.name == name:
                return setting
        return None

    def get_setting(self, name: str) -> Setting:
        """获取设置项

        Raises:
            SettingNotFoundError: 设置项不存在
        """
        setting = self.find_setting(name)
        if setting is None:
            raise SettingNotFoundError(name, where=f"任务 {self.name}")
        return setting

    def is_root(self) -> bool:
        return self.kind == TaskKind.ROOT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "settings": [setting.to_dict() for setting in self._settings],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupTask":
        return cls(
            name=data["name"],
            kind=data.get("kind", TaskKind.ACTIVITY.value),
            settings=[Setting.from_dict(item) for item in data.get("settings", [])],
        )

    def __repr__(self) -> str:
        return f"BackupTask(name={self.name!r}, kind={self.kind.value}, settings={len(self._settings)})"


class BackupPlan:
    """备份计划

    Parameters:
        name: 计划名称
        tasks: 初始任务列表（顺序即执行顺序）
    """

    def __init__(self, name: str = "backup", tasks: Optional[List[BackupTask]] = None):
        self.name = name
        self._tasks: List[BackupTask] = list(tasks or [])
        self._frozen = False

    def get_tasks(self) -> List[BackupTask]:
        """获取任务列表（返回引用，顺序有意义）"""
        return self._tasks

    def add_task(self, task: BackupTask) -> BackupTask:
        if any(existing.name == task.name for existing in self._tasks):
            raise ValueError(f"计划 {self.name} 已存在任务 {task.name}")
        self._tasks.append(task)
        return task

    def get_task(self, name: str) -> Optional[BackupTask]:
        for task in self._tasks:
            if task.name == name:
                return task
        return None

    def get_root_task(self) -> Optional[BackupTask]:
        for task in self._tasks:
            if task.is_root():
                return task
        return None

    def iter_settings(self) -> Iterator[Setting]:
        for task in self._tasks:
            yield from task.get_settings()

    def get_setting(self, name: str) -> Setting:
        """在整个计划中按名称查找设置项

        Raises:
            SettingNotFoundError: 设置项不存在
        """
        for setting in self.iter_settings():
            if setting.name == name:
                return setting
        raise SettingNotFoundError(name, where=f"计划 {self.name}")

    def find_task_setting(self, task_name: Optional[str], name: str) -> Setting:
        """按任务名和设置项名查找设置项，task_name 为 None 时在整个计划中查找

        Raises:
            SettingNotFoundError: 任务或设置项不存在
        """
        if task_name is None:
            return self.get_setting(name)
        task = self.get_task(task_name)
        if task is None:
            raise SettingNotFoundError(name, where=f"任务 {task_name}")
        return task.get_setting(name)

    def freeze(self) -> None:
        """冻结计划，之后任何设置项都不能再修改"""
        self._frozen = True
        for setting in self.iter_settings():
            setting.freeze()

    def is_frozen(self) -> bool:
        return self._frozen

    def to_dict(self) -> Dict[str, Any]:
        # 不同任务可能有同名设置项，依赖记录同时保存所属任务
        owners = {id(s): task.name for task in self._tasks for s in task.get_settings()}
        dependencies = []
        for task in self._tasks:
            for setting in task.get_settings():
                for dependency in setting.get_dependencies():
                    item = dependency.to_dict()
                    item["setting_task"] = task.name
                    item["dependent_task"] = owners.get(id(dependency.dependent))
                    dependencies.append(item)
        return {
            "name": self.name,
            "tasks": [task.to_dict() for task in self._tasks],
            "dependencies": dependencies,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupPlan":
        """从字典创建（依赖规则按任务名和设置项名重新连接）"""
        plan = cls(
            name=data.get("name", "backup"),
            tasks=[BackupTask.from_dict(item) for item in data.get("tasks", [])],
        )
        for item in data.get("dependencies", []):
            setting = plan.find_task_setting(item.get("setting_task"), item["setting"])
            dependent = plan.find_task_setting(item.get("dependent_task"), item["dependent"])
            setting.add_dependency(
                dependent,
                item["kind"],
                value=item.get("value"),
                default=item.get("default"),
            )
        return plan

    def __repr__(self) -> str:
        return f"BackupPlan(name={self.name!r}, tasks={len(self._tasks)})"


__all__ = [
    "BackupTask",
    "BackupPlan",
]
