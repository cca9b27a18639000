"""备份界面请求上下文

替代全局页面状态：请求参数、表单数据、渲染器、跳转函数都显式传入
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from loguru import logger

from .constants import StageId
from .forms import BackupFormData
from .strings import DEFAULT_LANGUAGE, get_string

if TYPE_CHECKING:
    from .stages import BackupStage


# ============== 接口定义 ==============

class IBackupRenderer(ABC):
    """备份界面渲染器接口"""

    @abstractmethod
    def render(self, stage: "BackupStage") -> None:
        pass


class TextRenderer(IBackupRenderer):
    """纯文本渲染器，把输出收集到 ``lines``"""

    def __init__(self):
        self.lines: List[str] = []

    def render(self, stage: "BackupStage") -> None:
        ui = stage.ui
        bar = " > ".join(
            f"[{item['text']}]" if "backup_stage_current" in item["class"] else item["text"]
            for item in ui.get_progress_bar()
        )
        self.lines.append(bar)
        self.lines.append(f"{stage.get_name()} ({ui.get_backup_id()})")
        for key, value in stage.describe().items():
            self.lines.append(f"  {key}: {value}")
        logger.debug(f"已渲染备份阶段: {stage.get_name()}")


# ============== 页面上下文 ==============

CONTEXT_COURSE = "course"
CONTEXT_MODULE = "module"


@dataclass
class PageContext:
    """当前页面位置，用于取消时决定跳转地址"""

    course_id: int = 0
    """课程 ID"""

    context_level: str = CONTEXT_COURSE
    """上下文层级（course / module）"""

    module_name: Optional[str] = None
    """活动模块名称（如 forum）"""

    cm_id: Optional[int] = None
    """课程模块 ID"""

    def relevant_url(self) -> str:
        """取消备份后应跳转的地址"""
        if self.context_level == CONTEXT_MODULE and self.cm_id is not None:
            return f"/mod/{self.module_name}/view.php?id={self.cm_id}"
        return f"/course/view.php?id={self.course_id}"


# ============== 请求上下文 ==============

@dataclass
class BackupUIContext:
    """一次备份界面请求的上下文"""

    params: Dict[str, Any] = field(default_factory=dict)
    """请求参数（stage、backup 等）"""

    form: Optional[BackupFormData] = None
    """本次请求提交的表单"""

    page: PageContext = field(default_factory=PageContext)
    """页面位置"""

    renderer: Optional[IBackupRenderer] = None
    """渲染器"""

    redirect: Optional[Callable[[str], None]] = None
    """跳转函数"""

    language: str = DEFAULT_LANGUAGE
    """界面语言"""

    default_stage: StageId = StageId.INITIAL
    """请求未指定阶段时使用的阶段"""

    file_extension: str = ".mbz"
    """备份文件扩展名"""

    filename_format: str = "backup-{backup_id}{extension}"
    """新建备份时的默认文件名格式"""

    def get_param(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)

    def get_string(self, key: str) -> str:
        return get_string(key, self.language)

    def requested_stage(self) -> Any:
        """请求的阶段（原样返回，由界面校验）"""
        value = self.params.get("stage")
        if value is None or value == "":
            return self.default_stage
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return value

    def default_filename(self, backup_id: str) -> str:
        return self.filename_format.format(backup_id=backup_id, extension=self.file_extension)


def create_ui_context(
    config: Any,
    params: Optional[Dict[str, Any]] = None,
    form: Optional[BackupFormData] = None,
    **kwargs: Any,
) -> BackupUIContext:
    """按配置创建请求上下文

    Args:
        config: BackupConfig 或支持点号路径 get 的对象
        params: 请求参数
        form: 提交的表单
        **kwargs: 其余 BackupUIContext 字段（page、renderer、redirect）
    """
    return BackupUIContext(
        params=params or {},
        form=form,
        language=config.get("ui.language", DEFAULT_LANGUAGE),
        default_stage=StageId(config.get("ui.default_stage", int(StageId.INITIAL))),
        file_extension=config.get("storage.file_extension", ".mbz"),
        filename_format=config.get("ui.filename_format", "backup-{backup_id}{extension}"),
        **kwargs,
    )


__all__ = [
    "create_ui_context",
    "IBackupRenderer",
    "TextRenderer",
    "CONTEXT_COURSE",
    "CONTEXT_MODULE",
    "PageContext",
    "BackupUIContext",
]
