"""备份界面阶段

每个阶段处理工作流中的一步：

    INITIAL(1) -> SCHEMA(2) -> CONFIRMATION(4) -> FINAL(8) -> 完成

表单处理规则:
    - 显式传入表单（重放之前阶段时）：阶段只应用表单中属于自己的字段
    - 未传入表单：读取本次请求提交的表单
        * 没有表单 -> 返回 None（处理失败）
        * 表单已取消 -> 取消备份
        * 表单由本阶段提交 -> 应用
        * 表单由更早的阶段提交 -> 交给前一阶段处理

复选框字段缺失视为取消选中，但只在表单确实由本阶段提交时才成立。
"""

import abc
from typing import Any, ClassVar, Dict, List, Optional, Type

from loguru import logger

from .constants import (
    BackupResult,
    FILENAME_SETTING,
    SettingUIType,
    StageId,
)
from .exceptions import InvalidStageError
from .forms import BackupFormData
from .settings import Setting, is_checked


# 全局阶段注册表
_stage_registry: Dict[StageId, Type["BackupStage"]] = {}
"""按阶段 ID 索引的阶段类"""


class BackupStage(abc.ABC):
    """备份界面阶段基类

    ``ui`` 是对工作流引擎的非拥有引用，仅用于委托
    """

    stage_id: ClassVar[StageId]

    def __init__(self, ui: Any):
        self.ui = ui

    def get_stage(self) -> StageId:
        return self.stage_id

    def get_prev_stage(self) -> Optional[StageId]:
        return self.stage_id.previous

    def get_name(self) -> str:
        return self.ui.context.get_string(f"currentstage{int(self.stage_id)}")

    @abc.abstractmethod
    def process(self, form: Optional[BackupFormData] = None) -> Optional[int]:
        """处理阶段输入

        Args:
            form: 显式传入的表单，None 表示使用本次请求的表单

        Returns:
            修改的设置项数量，处理失败返回 None
        """

    def display(self) -> None:
        """交给渲染器显示"""
        renderer = self.ui.context.renderer
        if renderer is None:
            logger.warning(f"没有配置渲染器，跳过显示阶段 {self.get_name()}")
            return
        renderer.render(self)

    def describe(self) -> Dict[str, Any]:
        """渲染器使用的阶段摘要"""
        return {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(stage={int(self.get_stage())})"


class SettingsStage(BackupStage):
    """通过表单修改设置项的阶段"""

    def process(self, form: Optional[BackupFormData] = None) -> Optional[int]:
        explicit = form is not None
        if not explicit:
            form = self.ui.context.form
        if form is None:
            logger.debug(f"阶段 {int(self.stage_id)} 没有可处理的表单")
            return None

        if form.cancelled:
            self.ui.cancel_backup()

        if explicit or form.is_from(self.stage_id):
            return self.apply_form(form)

        if form.stage < self.stage_id:
            # 本阶段的表单尚未提交，先完成前一阶段
            return self.ui.process_previous_stage(self)

        logger.debug(f"阶段 {int(self.stage_id)} 收到来自后续阶段 {int(form.stage)} 的表单，忽略")
        return None

    @abc.abstractmethod
    def apply_form(self, form: BackupFormData) -> Optional[int]:
        pass

    def apply_settings(self, settings: List[Setting], form: BackupFormData) -> int:
        """把表单值应用到设置项

        Returns:
            修改的设置项数量
        """
        own = form.is_from(self.stage_id)
        changes = 0
        for setting in settings:
            if setting.is_locked():
                continue

            name = setting.ui_name
            if form.has(name):
                value = form.get(name)
                if setting.ui_type == SettingUIType.CHECKBOX:
                    value = 1 if is_checked(value) else 0
                if value != setting.get_value():
                    setting.set_value(value)
                    changes += 1
            elif (
                own
                and setting.ui_type == SettingUIType.CHECKBOX
                and is_checked(setting.get_value())
            ):
                setting.set_value(0)
                changes += 1
        return changes


def register_stage(stage_cls: type) -> type:
    """注册阶段类的装饰器"""
    stage_id = stage_cls.stage_id
    if stage_id in _stage_registry:
        logger.warning(f"阶段 {int(stage_id)} 已存在，将被覆盖。")
    _stage_registry[stage_id] = stage_cls
    return stage_cls


def get_stage_class(stage: Any) -> Type[BackupStage]:
    """获取阶段类

    Raises:
        InvalidStageError: 未知的阶段
    """
    try:
        stage_id = StageId(stage)
    except (ValueError, TypeError):
        raise InvalidStageError(stage)
    stage_cls = _stage_registry.get(stage_id)
    if stage_cls is None:
        raise InvalidStageError(stage)
    return stage_cls


def list_stages() -> Dict[StageId, Type[BackupStage]]:
    return _stage_registry.copy()


@register_stage
class InitialStage(SettingsStage):
    """初始阶段：根任务的设置项"""

    stage_id = StageId.INITIAL

    def _root_settings(self) -> List[Setting]:
        settings = []
        for task in self.ui.get_backup_tasks():
            if task.is_root():
                settings.extend(
                    s for s in task.get_settings() if s.name != FILENAME_SETTING
                )
        return settings

    def apply_form(self, form: BackupFormData) -> Optional[int]:
        return self.apply_settings(self._root_settings(), form)

    def describe(self) -> Dict[str, Any]:
        return {s.name: s.get_value() for s in self._root_settings()}


@register_stage
class SchemaStage(SettingsStage):
    """结构阶段：除根任务外所有任务的设置项"""

    stage_id = StageId.SCHEMA

    def _schema_settings(self) -> List[Setting]:
        settings = []
        for task in self.ui.get_backup_tasks():
            if not task.is_root():
                settings.extend(task.get_settings())
        return settings

    def apply_form(self, form: BackupFormData) -> Optional[int]:
        return self.apply_settings(self._schema_settings(), form)

    def describe(self) -> Dict[str, Any]:
        return {
            task.name: {s.name: s.get_value() for s in task.get_settings()}
            for task in self.ui.get_backup_tasks()
            if not task.is_root()
        }


@register_stage
class ConfirmationStage(SettingsStage):
    """确认阶段：检查所有设置并填写备份文件名"""

    stage_id = StageId.CONFIRMATION

    def _filename_setting(self) -> Optional[Setting]:
        for task in self.ui.get_backup_tasks():
            if task.is_root():
                setting = task.find_setting(FILENAME_SETTING)
                if setting is not None:
                    return setting
        return None

    def apply_form(self, form: BackupFormData) -> Optional[int]:
        setting = self._filename_setting()
        if setting is None:
            return 0

        value = form.get(setting.ui_name)
        if form.is_from(self.stage_id):
            extension = self.ui.context.file_extension
            if not isinstance(value, str) or not value.strip():
                logger.debug("确认阶段缺少备份文件名")
                return None
            if extension and not value.endswith(extension):
                logger.debug(f"备份文件名 {value} 的扩展名不是 {extension}")
                return None

        if value is None or setting.is_locked() or value == setting.get_value():
            return 0
        setting.set_value(value)
        return 1

    def describe(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {
            task.name: [s.name for s in task.get_settings() if is_checked(s.get_value())]
            for task in self.ui.get_backup_tasks()
        }
        setting = self._filename_setting()
        if setting is not None:
            summary[FILENAME_SETTING] = setting.get_value()
        return summary


@register_stage
class FinalStage(BackupStage):
    """最终阶段：用确认表单重放所有之前的阶段"""

    stage_id = StageId.FINAL

    def process(self, form: Optional[BackupFormData] = None) -> Optional[int]:
        if form is None:
            form = self.ui.context.form
        if form is None:
            logger.debug("最终阶段没有可处理的表单")
            return None
        if form.cancelled:
            self.ui.cancel_backup()
        return self.ui.process_all_previous_stages(self, form)

    def describe(self) -> Dict[str, Any]:
        return {"tasks": len(self.ui.get_backup_tasks())}


class CompleteStage(FinalStage):
    """完成阶段（执行后产生，不接受输入）"""

    def __init__(self, ui: Any, results: Optional[BackupResult] = None):
        super().__init__(ui)
        self.results = results

    def get_name(self) -> str:
        return self.ui.context.get_string("currentstage16")

    def process(self, form: Optional[BackupFormData] = None) -> Optional[int]:
        return 0

    def describe(self) -> Dict[str, Any]:
        if self.results is None:
            return {}
        return {
            "success": self.results.success,
            "message": self.results.message,
            "errors": len(self.results.errors),
        }


__all__ = [
    "BackupStage",
    "SettingsStage",
    "register_stage",
    "get_stage_class",
    "list_stages",
    "InitialStage",
    "SchemaStage",
    "ConfirmationStage",
    "FinalStage",
    "CompleteStage",
]
