"""备份配置 Schema 定义

CONFIG_SCHEMA 描述配置分组和默认值，
BACKUP_CONFIG_JSON_SCHEMA 由它生成，用于 jsonschema 验证
"""

import copy

CONFIG_SCHEMA = {
    "storage_group": {
        "name": "存储设置",
        "metadata": {
            "storage": {
                "type": "object",
                "description": "备份控制器存储",
                "items": {
                    "controller_dir": {
                        "type": "string",
                        "default": "data/backup_controllers",
                        "hint": "控制器 JSON 文件目录",
                    },
                    "file_extension": {
                        "type": "string",
                        "default": ".mbz",
                        "hint": "备份文件扩展名",
                    },
                },
            }
        },
    },
    "ui_group": {
        "name": "界面设置",
        "metadata": {
            "ui": {
                "type": "object",
                "description": "备份界面配置",
                "items": {
                    "default_stage": {
                        "type": "int",
                        "default": 1,
                        "options": [1, 2, 4, 8],
                        "hint": "请求未指定阶段时使用的阶段",
                    },
                    "language": {
                        "type": "string",
                        "default": "zh_CN",
                        "options": ["en", "zh_CN"],
                        "hint": "界面语言",
                    },
                    "filename_format": {
                        "type": "string",
                        "default": "backup-{backup_id}{extension}",
                        "hint": "默认备份文件名格式",
                    },
                },
            }
        },
    },
    "logging_group": {
        "name": "日志设置",
        "metadata": {
            "logging": {
                "type": "object",
                "description": "日志配置",
                "items": {
                    "level": {
                        "type": "string",
                        "default": "INFO",
                        "options": ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
                        "hint": "日志级别",
                    },
                },
            }
        },
    },
}

_JSON_TYPES = {
    "string": "string",
    "int": "integer",
    "bool": "boolean",
    "list": "array",
    "float": "number",
}


def get_default_config() -> dict:
    """从 Schema 生成默认配置"""
    config = {}
    for group_data in CONFIG_SCHEMA.values():
        for section_name, section_data in group_data["metadata"].items():
            if section_data["type"] == "object":
                config[section_name] = {
                    field_name: copy.deepcopy(field_data["default"])
                    for field_name, field_data in section_data["items"].items()
                }
            else:
                config[section_name] = copy.deepcopy(section_data["default"])
    return config


def _field_json_schema(field_data: dict) -> dict:
    schema = {"type": _JSON_TYPES[field_data["type"]]}
    if "options" in field_data:
        schema["enum"] = list(field_data["options"])
    validation = field_data.get("validation", {})
    if "min" in validation:
        schema["minimum"] = validation["min"]
    if "max" in validation:
        schema["maximum"] = validation["max"]
    return schema


def build_json_schema() -> dict:
    """把 CONFIG_SCHEMA 转换为 JSON Schema"""
    properties = {}
    for group_data in CONFIG_SCHEMA.values():
        for section_name, section_data in group_data["metadata"].items():
            if section_data["type"] == "object":
                properties[section_name] = {
                    "type": "object",
                    "properties": {
                        name: _field_json_schema(data)
                        for name, data in section_data["items"].items()
                    },
                }
            else:
                properties[section_name] = _field_json_schema(section_data)
    return {"type": "object", "properties": properties}


BACKUP_CONFIG_JSON_SCHEMA = build_json_schema()
