"""备份页面请求流程测试

模拟用户依次提交四个阶段的表单，完成一次备份
"""

import pytest

from backupflow.core.backup import (
    BackupAlreadyFinishedError,
    BackupCancelledError,
    BackupController,
    BackupFormData,
    CompleteStage,
    ControllerStatus,
    JsonControllerStore,
    PreviousStageProcessingFailedError,
    SettingStatus,
    StageId,
    TaskKind,
    TaskRegistry,
    TextRenderer,
    build_course_plan,
    create_ui_context,
    handle_backup_request,
)
from backupflow.core.backup.builder import ROOT_SETTINGS


@pytest.fixture(autouse=True)
def clean_registry():
    TaskRegistry.clear()
    yield
    TaskRegistry.clear()


@pytest.fixture
def store(tmp_path):
    return JsonControllerStore(tmp_path / "controllers")


@pytest.fixture
def config():
    """点号路径配置"""
    return {
        "ui.language": "en",
        "ui.default_stage": 1,
        "ui.filename_format": "backup-{backup_id}{extension}",
        "storage.file_extension": ".mbz",
    }


@pytest.fixture
def renderer():
    return TextRenderer()


def plan_factory():
    return build_course_plan(2, ["forum_1"])


def request(config, store, renderer, stage=None, backup_id=None, form=None):
    params = {}
    if stage is not None:
        params["stage"] = int(stage)
    if backup_id is not None:
        params["backup"] = backup_id
    form_data = BackupFormData.model_validate(form) if form else None
    context = create_ui_context(config, params=params, form=form_data, renderer=renderer)
    return handle_backup_request(context, store, plan_factory)


class TestBackupRequestFlow:
    """测试完整的请求流程"""

    def test_full_workflow(self, config, store, renderer):
        """测试从初始阶段到执行完成"""
        executed = []

        @TaskRegistry.register(TaskKind.ACTIVITY, "活动")
        def backup_activity(task, context):
            executed.append((task.name, task.get_setting("forum_1_userinfo").get_value()))
            return {"ok": True}

        # 第一次请求：创建控制器
        ui = request(config, store, renderer)
        backup_id = ui.get_backup_id()
        assert ui.get_stage() == StageId.INITIAL
        assert store.exists(backup_id)
        plan = BackupController.load(backup_id, store).get_plan()
        assert plan.get_setting("filename").get_value() == f"backup-{backup_id}.mbz"

        # 第二次请求：提交初始表单，取消 comments
        initial = {f"setting_root_{name}": 1 for name, default in ROOT_SETTINGS if default}
        initial.pop("setting_root_comments")
        ui = request(
            config, store, renderer, StageId.SCHEMA, backup_id,
            {"stage": StageId.INITIAL, "data": initial},
        )
        assert ui.get_stage() == StageId.SCHEMA
        plan = BackupController.load(backup_id, store).get_plan()
        assert plan.get_setting("comments").get_value() == 0

        # 第三次请求：提交结构表单，取消活动用户数据
        schema = {
            "setting_course_course_2_userinfo": 1,
            "setting_activity_forum_1_included": 1,
            "setting_activity_forum_1_userinfo": 0,
        }
        ui = request(
            config, store, renderer, StageId.CONFIRMATION, backup_id,
            {"stage": StageId.SCHEMA, "data": schema},
        )
        assert ui.get_stage() == StageId.CONFIRMATION

        # 第四次请求：提交确认表单并执行
        ui = request(
            config, store, renderer, StageId.FINAL, backup_id,
            {"stage": StageId.CONFIRMATION, "data": {"setting_root_filename": "mine.mbz"}},
        )
        assert isinstance(ui.stage, CompleteStage)
        assert ui.stage.results.success is True
        assert executed == [("forum_1", 0)]

        saved = BackupController.load(backup_id, store)
        assert saved.get_status() == ControllerStatus.FINISHED_OK
        assert saved.get_plan().get_setting("filename").get_value() == "mine.mbz"
        assert saved.get_plan().get_setting("comments").get_value() == 0

        assert any(line.endswith("[Perform backup]") for line in renderer.lines)
        assert "  success: True" in renderer.lines

    def test_dependencies_enforced_between_requests(self, config, store, renderer):
        """测试取消 users 后保存时依赖设置项被锁定"""
        ui = request(config, store, renderer)
        backup_id = ui.get_backup_id()

        initial = {f"setting_root_{name}": 1 for name, default in ROOT_SETTINGS if default}
        initial.pop("setting_root_users")
        ui = request(
            config, store, renderer, StageId.SCHEMA, backup_id,
            {"stage": StageId.INITIAL, "data": initial},
        )

        assert ui.enforce_changed_dependencies() is True
        plan = BackupController.load(backup_id, store).get_plan()
        assert plan.get_setting("forum_1_userinfo").get_value() == 0
        assert plan.get_setting("forum_1_userinfo").is_locked()

    def test_final_request_enforces_dependencies(self, config, store, renderer):
        """测试最终阶段重放修改的设置在执行前完成依赖约束并保存"""
        seen = {}

        @TaskRegistry.register(TaskKind.ROOT, "根任务")
        def backup_root(task, context):
            seen["role_assignments"] = task.get_setting("role_assignments").get_value()
            return {"ok": True}

        ui = request(config, store, renderer)
        backup_id = ui.get_backup_id()

        ui = request(
            config, store, renderer, StageId.FINAL, backup_id,
            {
                "stage": StageId.CONFIRMATION,
                "data": {"setting_root_users": 0, "setting_root_filename": "final.mbz"},
            },
        )

        assert ui.enforce_changed_dependencies() is True
        assert seen == {"role_assignments": 0}
        plan = BackupController.load(backup_id, store).get_plan()
        assert plan.get_setting("users").get_value() == 0
        role_assignments = plan.get_setting("role_assignments")
        assert role_assignments.get_value() == 0
        assert role_assignments.get_status() == SettingStatus.LOCKED_BY_HIERARCHY
        assert plan.get_setting("forum_1_userinfo").is_locked()

    def test_finished_backup_not_reentered(self, config, store, renderer):
        """测试已执行完毕的备份不能再次执行"""
        calls = []

        @TaskRegistry.register(TaskKind.ACTIVITY, "活动")
        def backup_activity(task, context):
            calls.append(task.name)
            return {"ok": True}

        ui = request(config, store, renderer)
        backup_id = ui.get_backup_id()
        final_form = {
            "stage": StageId.CONFIRMATION,
            "data": {"setting_root_filename": "once.mbz"},
        }
        request(config, store, renderer, StageId.FINAL, backup_id, final_form)
        assert calls == ["forum_1"]

        with pytest.raises(BackupAlreadyFinishedError) as exc_info:
            request(config, store, renderer, StageId.FINAL, backup_id, final_form)
        assert exc_info.value.backup_id == backup_id
        assert calls == ["forum_1"]
        assert BackupController.load(backup_id, store).get_status() == ControllerStatus.FINISHED_OK

    def test_invalid_confirmation(self, config, store, renderer):
        """测试确认表单无效时整个请求失败且不执行"""
        ui = request(config, store, renderer)
        backup_id = ui.get_backup_id()

        with pytest.raises(PreviousStageProcessingFailedError):
            request(
                config, store, renderer, StageId.FINAL, backup_id,
                {"stage": StageId.CONFIRMATION, "data": {"setting_root_filename": "x.tar"}},
            )
        saved = BackupController.load(backup_id, store)
        assert saved.get_status() == ControllerStatus.SETTING_UI

    def test_cancel(self, config, store, renderer):
        """测试取消备份"""
        ui = request(config, store, renderer)

        with pytest.raises(BackupCancelledError):
            request(
                config, store, renderer, StageId.SCHEMA, ui.get_backup_id(),
                {"stage": StageId.INITIAL, "cancelled": True},
            )

    def test_unknown_backup_id_starts_new(self, config, store, renderer):
        """测试未知的备份ID视为首次请求"""
        ui = request(config, store, renderer, backup_id="doesnotexist")
        assert ui.get_backup_id() != "doesnotexist"
        assert store.exists(ui.get_backup_id())
