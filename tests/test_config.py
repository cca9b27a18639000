"""配置、日志与本地化字符串测试"""

import io
import json

import pytest
from loguru import logger

from backupflow.config import (
    BACKUP_CONFIG_JSON_SCHEMA,
    BackupConfig,
    ConfigValidationError,
    ConfigValidator,
    get_default_config,
)
from backupflow.core import setup_logging, setup_logging_from_config
from backupflow.core.backup import StageId, create_ui_context
from backupflow.core.backup.strings import get_string


class TestBackupConfig:
    """测试备份配置类"""

    def test_defaults_without_file(self):
        """测试不指定文件时使用默认配置"""
        config = BackupConfig()

        assert config.get("storage.controller_dir") == "data/backup_controllers"
        assert config.get("storage.file_extension") == ".mbz"
        assert config.get("ui.default_stage") == 1
        assert config.get("logging.level") == "INFO"
        assert config.get("ui.missing", "fallback") == "fallback"

    def test_creates_file(self, tmp_path):
        """测试配置文件不存在时自动创建"""
        path = tmp_path / "config" / "backup.json"
        BackupConfig(path)

        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == get_default_config()

    def test_integrity_fill(self, tmp_path):
        """测试缺失的配置项被补全并保存"""
        path = tmp_path / "backup.json"
        path.write_text(json.dumps({"ui": {"language": "en"}}), encoding="utf-8")

        config = BackupConfig(path)

        assert config.get("ui.language") == "en"
        assert config.get("ui.default_stage") == 1
        assert config.get("storage.controller_dir") == "data/backup_controllers"
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["logging"]["level"] == "INFO"

    def test_dotted_set(self):
        """测试点号路径设置"""
        config = BackupConfig()
        config.set("ui.language", "en")
        config.set("extra.nested.key", 3)

        assert config.ui["language"] == "en"
        assert config.get("extra.nested.key") == 3

    def test_attribute_access(self):
        """测试点号属性访问"""
        config = BackupConfig()
        config.custom = {"a": 1}

        assert config["custom"] == {"a": 1}
        assert config.storage["file_extension"] == ".mbz"
        with pytest.raises(AttributeError):
            _ = config.not_there

    def test_invalid_value(self, tmp_path):
        """测试不在可选范围内的值"""
        path = tmp_path / "backup.json"
        path.write_text(json.dumps({"ui": {"language": "fr"}}), encoding="utf-8")

        with pytest.raises(ConfigValidationError) as exc_info:
            BackupConfig(path)
        assert any("ui" in error for error in exc_info.value.errors)

    def test_validation_disabled(self, tmp_path):
        """测试关闭验证"""
        path = tmp_path / "backup.json"
        path.write_text(json.dumps({"ui": {"default_stage": 3}}), encoding="utf-8")

        config = BackupConfig(path, validate=False)
        assert config.get("ui.default_stage") == 3

    def test_corrupt_file(self, tmp_path):
        """测试损坏的配置文件"""
        path = tmp_path / "backup.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            BackupConfig(path)


class TestConfigValidator:
    """测试配置验证器"""

    def test_missing_schema(self):
        validator = ConfigValidator()
        with pytest.raises(ConfigValidationError):
            validator.validate({}, "nothing")

    def test_validate(self):
        """测试验证通过与失败"""
        validator = ConfigValidator()
        validator.register_schema("backup", BACKUP_CONFIG_JSON_SCHEMA)

        assert validator.validate(get_default_config(), "backup") is True
        with pytest.raises(ConfigValidationError) as exc_info:
            validator.validate({"storage": {"controller_dir": 1}}, "backup")
        assert "路径: storage -> controller_dir" in exc_info.value.errors


class TestLogging:
    """测试日志初始化"""

    def test_setup_logging(self):
        """测试日志级别过滤"""
        sink = io.StringIO()
        handler_id = setup_logging("warning", sink=sink, colorize=False)
        try:
            logger.info("不应输出")
            logger.warning("备份已取消")
        finally:
            logger.remove(handler_id)

        output = sink.getvalue()
        assert "[WARNING] 备份已取消" in output
        assert "不应输出" not in output

    def test_setup_from_config(self):
        """测试按配置初始化"""
        config = BackupConfig()
        config.set("logging.level", "ERROR")
        sink = io.StringIO()
        handler_id = setup_logging_from_config(config, sink=sink)
        try:
            logger.warning("忽略")
            logger.error("失败")
        finally:
            logger.remove(handler_id)

        assert "失败" in sink.getvalue()
        assert "忽略" not in sink.getvalue()


class TestUIContextAndStrings:
    """测试请求上下文与本地化字符串"""

    def test_create_ui_context(self):
        """测试按配置创建上下文"""
        config = BackupConfig()
        config.set("ui.default_stage", 4)
        config.set("storage.file_extension", ".zip")

        context = create_ui_context(config)

        assert context.language == "zh_CN"
        assert context.requested_stage() == StageId.CONFIRMATION
        assert context.default_filename("abc") == "backup-abc.zip"

    def test_requested_stage_from_params(self):
        """测试请求参数中的阶段"""
        config = BackupConfig()
        assert create_ui_context(config, params={"stage": "2"}).requested_stage() == 2
        assert create_ui_context(config, params={"stage": ""}).requested_stage() == StageId.INITIAL
        assert create_ui_context(config, params={"stage": "abc"}).requested_stage() == "abc"

    def test_get_string(self):
        """测试字符串查找与回退"""
        assert get_string("currentstage1") == "Initial settings"
        assert get_string("currentstage8", "zh_CN") == "执行备份"
        assert get_string("currentstage2", "fr") == "Schema settings"
        assert get_string("no_such_key") == "[[no_such_key]]"
