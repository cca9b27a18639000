"""默认备份计划构建

构建一个课程备份计划：根任务、课程任务、每个活动一个任务。
根任务的 users 未选中时，依赖用户数据的设置项都会被禁用。
"""

from typing import Iterable, Optional

from .constants import FILENAME_SETTING, SettingLevel, SettingUIType, TaskKind
from .plan import BackupPlan, BackupTask
from .settings import Setting

# 根设置项 (名称, 默认值)
ROOT_SETTINGS = (
    ("users", 1),
    ("anonymize", 0),
    ("role_assignments", 1),
    ("activities", 1),
    ("blocks", 1),
    ("filters", 1),
    ("comments", 1),
)

# 依赖根 users 的设置项
USER_DEPENDENT_SETTINGS = ("anonymize", "role_assignments", "comments")


def build_course_plan(
    course_id: int,
    activities: Iterable[str] = (),
    filename: Optional[str] = None,
) -> BackupPlan:
    """构建课程备份计划

    Args:
        course_id: 课程 ID
        activities: 活动名称列表（如 "forum_12"）
        filename: 备份文件名，None 表示留空由请求处理填写

    Returns:
        备份计划
    """
    plan = BackupPlan(name=f"course_{course_id}")

    root = BackupTask("root", kind=TaskKind.ROOT)
    for name, default in ROOT_SETTINGS:
        root.add_setting(Setting(name, default))
    root.add_setting(
        Setting(FILENAME_SETTING, filename or "", ui_type=SettingUIType.TEXT)
    )
    users = root.get_setting("users")
    for name in USER_DEPENDENT_SETTINGS:
        users.add_dependency(root.get_setting(name), "disabledif_not_checked")
    plan.add_task(root)

    course = BackupTask(f"course_{course_id}", kind=TaskKind.COURSE)
    course.add_setting(Setting(f"course_{course_id}_userinfo", 1, level=SettingLevel.COURSE))
    users.add_dependency(course.get_setting(f"course_{course_id}_userinfo"), "disabledif_not_checked")
    plan.add_task(course)

    activities_setting = root.get_setting("activities")
    for activity in activities:
        task = BackupTask(activity, kind=TaskKind.ACTIVITY)
        included = task.add_setting(
            Setting(f"{activity}_included", 1, level=SettingLevel.ACTIVITY)
        )
        userinfo = task.add_setting(
            Setting(f"{activity}_userinfo", 1, level=SettingLevel.ACTIVITY)
        )
        activities_setting.add_dependency(included, "disabledif_not_checked")
        users.add_dependency(userinfo, "disabledif_not_checked")
        included.add_dependency(userinfo, "disabledif_not_checked")
        plan.add_task(task)

    return plan


__all__ = [
    "ROOT_SETTINGS",
    "USER_DEPENDENT_SETTINGS",
    "build_course_plan",
]
