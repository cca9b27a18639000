"""备份界面本地化字符串"""

from typing import Dict

DEFAULT_LANGUAGE = "en"

STRINGS: Dict[str, Dict[str, str]] = {
    "en": {
        "currentstage1": "Initial settings",
        "currentstage2": "Schema settings",
        "currentstage4": "Confirmation and review",
        "currentstage8": "Perform backup",
        "currentstage16": "Complete",
        "backupuialreadyprocessed": "The backup has already been processed",
        "backupuialreadysaved": "The backup has already been saved",
        "backupuialreadyexecuted": "The backup has already been executed",
        "backupuifinalisedbeforeexecute": "The backup must be finalised before it can be executed",
        "backupsavebeforedisplay": "The backup must be saved before it can be displayed",
        "backup_ui_process_all_previous_stages_failed": "Processing a previous stage failed",
        "backupuiinvalidstage": "Invalid backup stage",
        "backupcancelled": "Backup cancelled",
        "backupalreadyfinished": "This backup has already finished",
    },
    "zh_CN": {
        "currentstage1": "初始设置",
        "currentstage2": "结构设置",
        "currentstage4": "确认与检查",
        "currentstage8": "执行备份",
        "currentstage16": "完成",
        "backupuialreadyprocessed": "备份已处理",
        "backupuialreadysaved": "备份已保存",
        "backupuialreadyexecuted": "备份已执行",
        "backupuifinalisedbeforeexecute": "备份必须先完成设置才能执行",
        "backupsavebeforedisplay": "备份必须先保存才能显示",
        "backup_ui_process_all_previous_stages_failed": "处理之前的阶段失败",
        "backupuiinvalidstage": "无效的备份阶段",
        "backupcancelled": "备份已取消",
        "backupalreadyfinished": "该备份已经执行完毕",
    },
}


def get_string(key: str, language: str = DEFAULT_LANGUAGE) -> str:
    """查找本地化字符串

    找不到时回退到默认语言，仍找不到返回 ``[[key]]``
    """
    table = STRINGS.get(language, {})
    if key in table:
        return table[key]
    return STRINGS[DEFAULT_LANGUAGE].get(key, f"[[{key}]]")


__all__ = [
    "DEFAULT_LANGUAGE",
    "STRINGS",
    "get_string",
]
