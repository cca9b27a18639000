"""备份控制器存储

按备份 ID 保存控制器数据，实现不同备份会话之间的隔离
"""

import abc
import copy
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from .exceptions import ControllerNotFoundError

_BACKUP_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


def is_valid_backup_id(backup_id: Any) -> bool:
    """备份 ID 只允许字母和数字"""
    return isinstance(backup_id, str) and bool(_BACKUP_ID_PATTERN.match(backup_id))


class ControllerStore(abc.ABC):
    """控制器存储接口"""

    @abc.abstractmethod
    def save(self, backup_id: str, data: Dict[str, Any]) -> None:
        """保存控制器数据"""

    @abc.abstractmethod
    def load(self, backup_id: str) -> Dict[str, Any]:
        """加载控制器数据

        Raises:
            ControllerNotFoundError: 不存在
        """

    @abc.abstractmethod
    def exists(self, backup_id: str) -> bool:
        pass

    @abc.abstractmethod
    def delete(self, backup_id: str) -> bool:
        pass

    @abc.abstractmethod
    def list_ids(self) -> List[str]:
        pass


class MemoryControllerStore(ControllerStore):
    """内存存储（测试和单进程使用）"""

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}

    def save(self, backup_id: str, data: Dict[str, Any]) -> None:
        if not is_valid_backup_id(backup_id):
            raise ValueError(f"非法的备份ID: {backup_id!r}")
        self._records[backup_id] = copy.deepcopy(data)
        logger.debug(f"已保存备份控制器: {backup_id}")

    def load(self, backup_id: str) -> Dict[str, Any]:
        if backup_id not in self._records:
            raise ControllerNotFoundError(backup_id)
        return copy.deepcopy(self._records[backup_id])

    def exists(self, backup_id: str) -> bool:
        return backup_id in self._records

    def delete(self, backup_id: str) -> bool:
        return self._records.pop(backup_id, None) is not None

    def list_ids(self) -> List[str]:
        return list(self._records.keys())


class JsonControllerStore(ControllerStore):
    """JSON 文件存储

    每个控制器保存为 ``<目录>/<备份ID><扩展名>``
    """

    def __init__(self, directory: Path, extension: str = ".json"):
        self.directory = Path(directory)
        self.extension = extension

    def _path_for(self, backup_id: str) -> Path:
        return self.directory / f"{backup_id}{self.extension}"

    def save(self, backup_id: str, data: Dict[str, Any]) -> None:
        if not is_valid_backup_id(backup_id):
            raise ValueError(f"非法的备份ID: {backup_id!r}")
        path = self._path_for(backup_id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            logger.debug(f"已保存备份控制器: {path}")
        except Exception as e:
            logger.error(f"保存备份控制器失败 {backup_id}: {e}")
            raise

    def load(self, backup_id: str) -> Dict[str, Any]:
        if not is_valid_backup_id(backup_id):
            raise ControllerNotFoundError(str(backup_id))
        path = self._path_for(backup_id)
        if not path.exists():
            raise ControllerNotFoundError(backup_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"备份控制器文件格式错误 {path}: {e}")
            raise

    def exists(self, backup_id: str) -> bool:
        return is_valid_backup_id(backup_id) and self._path_for(backup_id).exists()

    def delete(self, backup_id: str) -> bool:
        if not self.exists(backup_id):
            return False
        self._path_for(backup_id).unlink()
        logger.debug(f"已删除备份控制器: {backup_id}")
        return True

    def list_ids(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(
            path.name[: -len(self.extension)]
            for path in self.directory.glob(f"*{self.extension}")
        )


def create_controller_store(config: Any, root: Optional[Path] = None) -> JsonControllerStore:
    """按配置 storage.controller_dir 创建 JSON 存储

    Args:
        config: BackupConfig 或支持点号路径 get 的对象
        root: 相对路径的根目录，默认为当前目录
    """
    directory = Path(config.get("storage.controller_dir", "data/backup_controllers"))
    if not directory.is_absolute():
        directory = Path(root or Path.cwd()) / directory
    return JsonControllerStore(directory)


__all__ = [
    "create_controller_store",
    "is_valid_backup_id",
    "ControllerStore",
    "MemoryControllerStore",
    "JsonControllerStore",
]
