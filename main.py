"""backupflow 命令行入口

演示分阶段备份流程，并查看已保存的备份控制器
"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from backupflow import __version__
from backupflow.config import BackupConfig
from backupflow.core import setup_logging_from_config
from backupflow.core.backup import (
    BackupFormData,
    BackupUIError,
    StageId,
    TextRenderer,
    build_course_plan,
    create_controller_store,
    create_ui_context,
    handle_backup_request,
)
from backupflow.core.backup.builder import ROOT_SETTINGS


def run_demo(config: BackupConfig, course_id: int, activities: list) -> int:
    """依次模拟四次页面请求，完成一次课程备份"""
    store = create_controller_store(config)
    renderer = TextRenderer()
    extension = config.get("storage.file_extension", ".mbz")

    def plan_factory():
        return build_course_plan(course_id, activities)

    # 每次请求提交的是上一阶段的表单
    initial_data = {
        f"setting_root_{name}": default for name, default in ROOT_SETTINGS if default
    }
    schema_data = {f"setting_course_course_{course_id}_userinfo": 1}
    requests = [
        (StageId.INITIAL, None),
        (StageId.SCHEMA, {"stage": StageId.INITIAL, "data": initial_data}),
        (StageId.CONFIRMATION, {"stage": StageId.SCHEMA, "data": schema_data}),
        (StageId.FINAL, {"stage": StageId.CONFIRMATION, "data": {}}),
    ]

    backup_id = None
    for stage, form in requests:
        params = {"stage": int(stage)}
        if backup_id:
            params["backup"] = backup_id
        form_data = BackupFormData.model_validate(form) if form else None
        if form_data is not None and form_data.stage == StageId.SCHEMA:
            for activity in activities:
                form_data.data[f"setting_activity_{activity}_included"] = 1
                form_data.data[f"setting_activity_{activity}_userinfo"] = 1
        if form_data is not None and form_data.stage == StageId.CONFIRMATION:
            form_data.data["setting_root_filename"] = f"course-{course_id}{extension}"

        context = create_ui_context(config, params=params, form=form_data, renderer=renderer)
        try:
            ui = handle_backup_request(context, store, plan_factory)
        except BackupUIError as e:
            logger.error(f"备份请求失败: {e}")
            return 1
        backup_id = ui.get_backup_id()

    print("\n".join(renderer.lines))
    return 0


def list_controllers(config: BackupConfig) -> int:
    """列出已保存的备份控制器"""
    store = create_controller_store(config)
    for backup_id in store.list_ids():
        print(backup_id)
    return 0


def show_controller(config: BackupConfig, backup_id: str) -> int:
    """显示一个备份控制器的内容"""
    store = create_controller_store(config)
    try:
        data = store.load(backup_id)
    except BackupUIError as e:
        logger.error(str(e))
        return 1
    print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="backupflow 命令行工具", allow_abbrev=False)
    parser.add_argument("-c", "--config", default="data/backup_config.json", help="配置文件路径")
    parser.add_argument("-v", "--version", action="store_true", help="显示版本信息")
    subparsers = parser.add_subparsers(dest="command")

    demo = subparsers.add_parser("demo", help="演示一次完整的备份流程")
    demo.add_argument("--course", type=int, default=1, help="课程 ID")
    demo.add_argument("--activity", action="append", default=[], help="活动名称，可重复")

    subparsers.add_parser("list", help="列出已保存的备份控制器")

    show = subparsers.add_parser("show", help="显示备份控制器")
    show.add_argument("backup_id", help="备份ID")

    args = parser.parse_args()

    if args.version:
        print(f"backupflow {__version__}")
        return 0

    config = BackupConfig(Path(args.config))
    setup_logging_from_config(config)

    if args.command == "demo":
        return run_demo(config, args.course, args.activity)
    if args.command == "list":
        return list_controllers(config)
    if args.command == "show":
        return show_controller(config, args.backup_id)

    parser.print_help()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("收到退出信号")
    except Exception as e:
        logger.error(f"操作失败: {e}")
        sys.exit(1)
