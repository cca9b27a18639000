"""备份设置项与设置依赖

一个设置项 (Setting) 属于某个任务，并拥有若干依赖规则 (SettingDependency)。
依赖规则约束另一个设置项：当本设置项满足条件时，被依赖设置项会被
重置为默认值并锁定；条件不再满足时解除锁定。
"""

from typing import Any, Dict, List, Optional, Type

from loguru import logger

from .constants import SettingLevel, SettingStatus, SettingUIType
from .exceptions import PlanFrozenError


def is_checked(value: Any) -> bool:
    """复选框取值是否为选中"""
    return value not in (None, False, 0, "0", "")


class Setting:
    """备份设置项"""

    def __init__(
        self,
        name: str,
        value: Any = None,
        ui_type: SettingUIType = SettingUIType.CHECKBOX,
        level: SettingLevel = SettingLevel.ROOT,
        status: SettingStatus = SettingStatus.UNLOCKED,
        visible: bool = True,
    ):
        """初始化设置项

        Args:
            name: 设置项名称
            value: 初始值
            ui_type: 表单控件类型
            level: 所属层级
            status: 锁定状态
            visible: 是否在界面中显示
        """
        self.name = name
        self.ui_type = SettingUIType(ui_type)
        self.level = SettingLevel(level)
        self.visible = visible
        self._value = value
        self._status = SettingStatus(status)
        self._dependencies: List["SettingDependency"] = []
        # 约束本设置项的依赖规则（由其他设置项拥有）
        self._depends_on: List["SettingDependency"] = []
        self._frozen = False

    @property
    def ui_name(self) -> str:
        """表单字段名"""
        return f"setting_{self.level.value}_{self.name}"

    def get_value(self) -> Any:
        return self._value

    def set_value(self, value: Any) -> None:
        """修改设置值

        Raises:
            PlanFrozenError: 计划已保存
        """
        self._check_mutable()
        self._value = value

    def get_status(self) -> SettingStatus:
        return self._status

    def set_status(self, status: SettingStatus) -> None:
        self._check_mutable()
        self._status = SettingStatus(status)

    def is_locked(self) -> bool:
        return self._status != SettingStatus.UNLOCKED

    def get_dependencies(self) -> List["SettingDependency"]:
        """获取本设置项拥有的依赖规则"""
        return list(self._dependencies)

    def add_dependency(
        self,
        dependent: "Setting",
        kind: str = "disabledif_not_checked",
        value: Any = None,
        default: Any = None,
    ) -> "SettingDependency":
        """添加依赖规则

        Args:
            dependent: 被约束的设置项
            kind: 依赖类型，见 DEPENDENCY_TYPES
            value: DisabledIfEquals 比较值
            default: 条件满足时被依赖设置项的取值

        Returns:
            新建的依赖规则
        """
        if dependent is self:
            raise ValueError(f"设置项 {self.name} 不能依赖自身")
        dependency = create_dependency(kind, self, dependent, value=value, default=default)
        self._dependencies.append(dependency)
        dependent._depends_on.append(dependency)
        return dependency

    def get_parent_dependencies(self) -> List["SettingDependency"]:
        """获取约束本设置项的依赖规则"""
        return list(self._depends_on)

    def freeze(self) -> None:
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise PlanFrozenError(f"设置项 {self.name} 已冻结，不能修改")

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（不含依赖，依赖由计划统一序列化）"""
        return {
            "name": self.name,
            "value": self._value,
            "ui_type": self.ui_type.value,
            "level": self.level.value,
            "status": self._status.value,
            "visible": self.visible,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Setting":
        """从字典创建"""
        return cls(
            name=data["name"],
            value=data.get("value"),
            ui_type=data.get("ui_type", SettingUIType.CHECKBOX.value),
            level=data.get("level", SettingLevel.ROOT.value),
            status=data.get("status", SettingStatus.UNLOCKED.value),
            visible=data.get("visible", True),
        )

    def __repr__(self) -> str:
        return f"Setting(name={self.name!r}, value={self._value!r}, status={self._status.value})"


class SettingDependency:
    """设置依赖规则基类

    子类实现 ``_condition_met``，决定何时约束被依赖设置项
    """

    kind = ""

    def __init__(
        self,
        setting: Setting,
        dependent: Setting,
        value: Any = None,
        default: Any = None,
    ):
        self.setting = setting
        self.dependent = dependent
        self.value = value
        self.default = default

    def _condition_met(self, value: Any) -> bool:
        raise NotImplementedError

    def is_locked(self) -> bool:
        """当前是否应锁定被依赖设置项"""
        return self._condition_met(self.setting.get_value())

    def enforce(self) -> bool:
        """执行依赖约束

        Returns:
            是否修改了被依赖设置项
        """
        changed = False
        dependent = self.dependent

        if self.is_locked():
            if dependent.get_value() != self.default:
                dependent.set_value(self.default)
                changed = True
            # 已被配置或权限锁定的设置项保持原状态
            if dependent.get_status() == SettingStatus.UNLOCKED:
                dependent.set_status(SettingStatus.LOCKED_BY_HIERARCHY)
                changed = True
        elif dependent.get_status() == SettingStatus.LOCKED_BY_HIERARCHY and not any(
            other.is_locked()
            for other in dependent.get_parent_dependencies()
            if other is not self
        ):
            dependent.set_status(SettingStatus.UNLOCKED)
            changed = True

        if changed:
            logger.debug(
                f"依赖约束修改了设置项 {dependent.name}"
                f"（由 {self.setting.name} 触发，规则 {self.kind}）"
            )
        return changed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "setting": self.setting.name,
            "dependent": self.dependent.name,
            "value": self.value,
            "default": self.default,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.setting.name!r} -> {self.dependent.name!r})"
        )


class DisabledIfEquals(SettingDependency):
    """本设置项等于 ``value`` 时禁用被依赖设置项"""

    kind = "disabledif_equals"

    def _condition_met(self, value: Any) -> bool:
        return value == self.value


class DisabledIfChecked(SettingDependency):
    """本设置项被选中时禁用被依赖设置项"""

    kind = "disabledif_checked"

    def _condition_met(self, value: Any) -> bool:
        return is_checked(value)


class DisabledIfNotChecked(SettingDependency):
    """本设置项未选中时禁用被依赖设置项"""

    kind = "disabledif_not_checked"

    def __init__(self, setting: Setting, dependent: Setting, value: Any = None, default: Any = None):
        # 未选中时被依赖的复选框也应取消选中
        if default is None and dependent.ui_type == SettingUIType.CHECKBOX:
            default = 0
        super().__init__(setting, dependent, value=value, default=default)

    def _condition_met(self, value: Any) -> bool:
        return not is_checked(value)


class DisabledIfEmpty(SettingDependency):
    """本设置项为空时禁用被依赖设置项"""

    kind = "disabledif_empty"

    def _condition_met(self, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip() == ""
        return value is None


DEPENDENCY_TYPES: Dict[str, Type[SettingDependency]] = {
    cls.kind: cls
    for cls in (DisabledIfEquals, DisabledIfChecked, DisabledIfNotChecked, DisabledIfEmpty)
}


def create_dependency(
    kind: str,
    setting: Setting,
    dependent: Setting,
    value: Any = None,
    default: Any = None,
) -> SettingDependency:
    """按类型名创建依赖规则

    Raises:
        ValueError: 未知的依赖类型
    """
    dependency_cls = DEPENDENCY_TYPES.get(kind)
    if dependency_cls is None:
        raise ValueError(f"未知的依赖类型: {kind}，可用: {sorted(DEPENDENCY_TYPES)}")
    return dependency_cls(setting, dependent, value=value, default=default)


__all__ = [
    "is_checked",
    "Setting",
    "SettingDependency",
    "DisabledIfEquals",
    "DisabledIfChecked",
    "DisabledIfNotChecked",
    "DisabledIfEmpty",
    "DEPENDENCY_TYPES",
    "create_dependency",
]
