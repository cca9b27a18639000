"""备份界面阶段单元测试

测试各阶段的表单处理规则
"""

from unittest.mock import Mock

import pytest

from backupflow.core.backup import (
    BackupCancelledError,
    BackupController,
    BackupFormData,
    BackupResult,
    BackupUI,
    BackupUIContext,
    CompleteStage,
    ConfirmationStage,
    FinalStage,
    InitialStage,
    InvalidStageError,
    PageContext,
    PreviousStageProcessingFailedError,
    SchemaStage,
    SettingStatus,
    StageId,
    build_course_plan,
)
from backupflow.core.backup.context import CONTEXT_MODULE
from backupflow.core.backup.stages import get_stage_class, list_stages


def make_ui(stage=StageId.INITIAL, form=None, **context_kwargs):
    """创建指定阶段和表单的界面"""
    plan = build_course_plan(5, ["forum_1"], filename="course.mbz")
    context = BackupUIContext(params={"stage": int(stage)}, form=form, **context_kwargs)
    return BackupUI(BackupController(plan), context)


def form(stage, cancelled=False, **data):
    return BackupFormData(stage=stage, cancelled=cancelled, data=data)


ALL_ROOT_CHECKED = {
    "setting_root_users": 1,
    "setting_root_role_assignments": 1,
    "setting_root_activities": 1,
    "setting_root_blocks": 1,
    "setting_root_filters": 1,
    "setting_root_comments": 1,
}


class TestStageRegistry:
    """测试阶段注册表"""

    def test_registered_stages(self):
        """测试四个阶段都已注册"""
        stages = list_stages()
        assert stages[StageId.INITIAL] is InitialStage
        assert stages[StageId.SCHEMA] is SchemaStage
        assert stages[StageId.CONFIRMATION] is ConfirmationStage
        assert stages[StageId.FINAL] is FinalStage

    @pytest.mark.parametrize("value", [0, 3, 16, 99, "x", None])
    def test_invalid_stage(self, value):
        """测试未知阶段"""
        with pytest.raises(InvalidStageError) as exc_info:
            get_stage_class(value)
        assert exc_info.value.stage == value

    @pytest.mark.parametrize(
        "stage,previous",
        [
            (StageId.INITIAL, None),
            (StageId.SCHEMA, StageId.INITIAL),
            (StageId.CONFIRMATION, StageId.SCHEMA),
            (StageId.FINAL, StageId.CONFIRMATION),
        ],
    )
    def test_prev_stage(self, stage, previous):
        """测试前一阶段为 stage // 2"""
        ui = make_ui(stage)
        assert ui.stage.get_prev_stage() == previous
        assert stage.previous == previous


class TestInitialStage:
    """测试初始阶段"""

    def test_no_form_fails(self):
        """测试没有表单时返回 None"""
        ui = make_ui(StageId.INITIAL)
        assert ui.stage.process() is None

    def test_own_form_applies_changes(self):
        """测试本阶段表单：缺失的复选框视为取消选中"""
        data = dict(ALL_ROOT_CHECKED)
        data.pop("setting_root_blocks")
        data["setting_root_anonymize"] = "1"
        ui = make_ui(StageId.INITIAL, form(StageId.INITIAL, **data))

        assert ui.stage.process() == 2
        plan = ui.controller.get_plan()
        assert plan.get_setting("blocks").get_value() == 0
        assert plan.get_setting("anonymize").get_value() == 1

    def test_filename_not_touched(self):
        """测试初始阶段不处理文件名"""
        ui = make_ui(StageId.INITIAL, form(StageId.INITIAL, setting_root_filename="x.mbz", **ALL_ROOT_CHECKED))
        assert ui.stage.process() == 0
        assert ui.controller.get_plan().get_setting("filename").get_value() == "course.mbz"

    def test_locked_setting_ignored(self):
        """测试锁定的设置项不被表单修改"""
        ui = make_ui(StageId.INITIAL, form(StageId.INITIAL))
        plan = ui.controller.get_plan()
        for name in ("users", "role_assignments", "activities", "blocks", "filters", "comments"):
            plan.get_setting(name).set_status(SettingStatus.LOCKED_BY_PERMISSION)

        assert ui.stage.process() == 0
        assert plan.get_setting("users").get_value() == 1

    def test_explicit_foreign_form_only_present_fields(self):
        """测试显式传入其他阶段的表单时只应用存在的字段"""
        ui = make_ui(StageId.INITIAL)
        outcome = ui.stage.process(form(StageId.CONFIRMATION, setting_root_comments=0))

        assert outcome == 1
        plan = ui.controller.get_plan()
        assert plan.get_setting("comments").get_value() == 0
        assert plan.get_setting("blocks").get_value() == 1

    def test_form_from_later_stage_ignored(self):
        """测试来自后续阶段的表单"""
        ui = make_ui(StageId.INITIAL, form(StageId.SCHEMA))
        assert ui.stage.process() is None

    def test_cancelled_form(self):
        """测试取消备份"""
        redirect = Mock()
        page = PageContext(course_id=5, context_level=CONTEXT_MODULE, module_name="forum", cm_id=9)
        ui = make_ui(
            StageId.INITIAL, form(StageId.INITIAL, cancelled=True), page=page, redirect=redirect
        )

        with pytest.raises(BackupCancelledError) as exc_info:
            ui.stage.process()
        assert exc_info.value.url == "/mod/forum/view.php?id=9"
        redirect.assert_called_once_with("/mod/forum/view.php?id=9")


class TestSchemaStage:
    """测试结构阶段"""

    def test_defers_to_initial(self):
        """测试本阶段表单未提交时交给初始阶段处理"""
        data = dict(ALL_ROOT_CHECKED)
        data.pop("setting_root_comments")
        ui = make_ui(StageId.SCHEMA, form(StageId.INITIAL, **data))

        assert ui.stage.process() == 1
        assert ui.controller.get_plan().get_setting("comments").get_value() == 0

    def test_own_form(self):
        """测试处理非根任务的设置项"""
        ui = make_ui(
            StageId.SCHEMA,
            form(
                StageId.SCHEMA,
                setting_course_course_5_userinfo=1,
                setting_activity_forum_1_included=1,
            ),
        )

        assert ui.stage.process() == 1
        plan = ui.controller.get_plan()
        assert plan.get_setting("forum_1_userinfo").get_value() == 0
        assert plan.get_setting("users").get_value() == 1

    def test_deferral_chain_stops_at_initial(self):
        """测试逐级回退到初始阶段"""
        ui = make_ui(StageId.CONFIRMATION, form(StageId.INITIAL, **ALL_ROOT_CHECKED))
        assert ui.stage.process() == 0


class TestConfirmationStage:
    """测试确认阶段"""

    @pytest.mark.parametrize("filename", [None, "", "   ", "backup.zip"])
    def test_invalid_filename(self, filename):
        """测试文件名缺失或扩展名错误"""
        data = {} if filename is None else {"setting_root_filename": filename}
        ui = make_ui(StageId.CONFIRMATION, form(StageId.CONFIRMATION, **data))
        assert ui.stage.process() is None

    def test_valid_filename(self):
        """测试修改文件名"""
        ui = make_ui(StageId.CONFIRMATION, form(StageId.CONFIRMATION, setting_root_filename="new.mbz"))

        assert ui.stage.process() == 1
        assert ui.controller.get_plan().get_setting("filename").get_value() == "new.mbz"

    def test_unchanged_filename(self):
        """测试文件名未变化"""
        ui = make_ui(
            StageId.CONFIRMATION, form(StageId.CONFIRMATION, setting_root_filename="course.mbz")
        )
        assert ui.stage.process() == 0

    def test_custom_extension(self):
        """测试自定义扩展名"""
        ui = make_ui(
            StageId.CONFIRMATION,
            form(StageId.CONFIRMATION, setting_root_filename="new.zip"),
            file_extension=".zip",
        )
        assert ui.stage.process() == 1


class TestFinalStage:
    """测试最终阶段"""

    def test_replays_previous_stages(self):
        """测试用确认表单重放所有之前的阶段"""
        ui = make_ui(
            StageId.FINAL,
            form(StageId.CONFIRMATION, setting_root_filename="final.mbz", setting_root_blocks=0),
        )

        assert ui.stage.process() == 2
        plan = ui.controller.get_plan()
        assert plan.get_setting("filename").get_value() == "final.mbz"
        assert plan.get_setting("blocks").get_value() == 0
        assert plan.get_setting("users").get_value() == 1

    def test_replay_failure(self):
        """测试确认阶段失败时整体失败"""
        ui = make_ui(StageId.FINAL, form(StageId.CONFIRMATION))

        with pytest.raises(PreviousStageProcessingFailedError) as exc_info:
            ui.stage.process()
        assert exc_info.value.stage == StageId.CONFIRMATION

    def test_no_form(self):
        """测试没有表单"""
        ui = make_ui(StageId.FINAL)
        assert ui.stage.process() is None


class TestCompleteStage:
    """测试完成阶段"""

    def test_complete_stage(self):
        """测试完成阶段不处理输入"""
        ui = make_ui(StageId.FINAL)
        results = BackupResult(success=True, message="ok")
        stage = CompleteStage(ui, results)

        assert stage.get_stage() == StageId.FINAL
        assert stage.process(form(StageId.CONFIRMATION)) == 0
        assert stage.describe()["success"] is True
        assert stage.get_name() == "Complete"


class TestStageDisplay:
    """测试阶段显示"""

    def test_display_uses_renderer(self):
        """测试交给渲染器"""
        renderer = Mock()
        ui = make_ui(StageId.SCHEMA, renderer=renderer)
        ui.stage.display()
        renderer.render.assert_called_once_with(ui.stage)

    def test_display_without_renderer(self):
        """测试没有渲染器时跳过"""
        ui = make_ui(StageId.SCHEMA)
        ui.stage.display()

    def test_stage_names(self):
        """测试本地化阶段名称"""
        assert make_ui(StageId.SCHEMA).get_stage_name() == "Schema settings"
        assert make_ui(StageId.SCHEMA, language="zh_CN").get_stage_name() == "结构设置"
