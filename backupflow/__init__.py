"""backupflow - 分阶段备份工作流"""

__version__ = "1.0.0"
