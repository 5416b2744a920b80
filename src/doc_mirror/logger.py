import os
import threading
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class LogLevel(Enum):
    """日志级别"""
    DEBUG = 0
    INFO = 1
    SUCCESS = 2
    WARNING = 3
    ERROR = 4


_LEVEL_STYLES = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "blue",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red bold",
}


class Logger:
    """
    线程安全的日志记录器

    支持：
    - 彩色输出（rich）
    - 表格汇总
    - 日志级别控制（DOCMIRROR_LOG_LEVEL 环境变量）
    """

    def __init__(self, name: str = "DocMirror", level: LogLevel = LogLevel.INFO,
                 console: Optional[Console] = None):
        self.name = name
        self.level = level
        self.console = console or Console()
        self._lock = threading.Lock()

        env_level = os.getenv("DOCMIRROR_LOG_LEVEL", "").upper()
        if env_level:
            self.set_level_name(env_level)

    def set_level(self, level: LogLevel):
        """设置日志级别"""
        self.level = level

    def set_level_name(self, name: str):
        """按名称设置日志级别，未知名称忽略"""
        level = LogLevel.__members__.get(name.upper())
        if level is not None:
            self.level = level

    def _should_log(self, level: LogLevel) -> bool:
        return level.value >= self.level.value

    def _log(self, level: LogLevel, icon: str, message: str):
        if not self._should_log(level):
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        style = _LEVEL_STYLES[level]
        with self._lock:
            self.console.print(f"[cyan][{timestamp}][/cyan] [{style}]{icon} {message}[/{style}]",
                               highlight=False)

    def debug(self, message, icon="🔧"):
        """调试信息 - 仅在 DEBUG 模式显示"""
        self._log(LogLevel.DEBUG, icon, message)

    def info(self, message, icon="ℹ️ "):
        self._log(LogLevel.INFO, icon, message)

    def success(self, message, icon="✅"):
        self._log(LogLevel.SUCCESS, icon, message)

    def warning(self, message, icon="⚠️ "):
        self._log(LogLevel.WARNING, icon, message)

    def error(self, message, icon="❌"):
        self._log(LogLevel.ERROR, icon, message)

    def header(self, message, icon=""):
        """打印标题面板"""
        if not self._should_log(LogLevel.INFO):
            return
        title = f"{icon} {message}" if icon else message
        with self._lock:
            self.console.print(Panel(title, style="bold magenta", width=60))

    def rule(self, message=""):
        """打印分隔线"""
        if not self._should_log(LogLevel.INFO):
            return
        with self._lock:
            self.console.rule(message)

    def summary_table(self, title: str, data: Dict[str, object]):
        """打印汇总表格

        Args:
            title: 表格标题
            data: 字典，key 为行名，value 为值
        """
        if not self._should_log(LogLevel.INFO):
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("状态", style="dim")
        table.add_column("数量", justify="right")
        for key, value in data.items():
            if "成功" in key or "✅" in key:
                table.add_row(key, f"[green]{value}[/green]")
            elif "失败" in key or "❌" in key:
                table.add_row(key, f"[red]{value}[/red]")
            elif "跳过" in key or "⏭️" in key:
                table.add_row(key, f"[yellow]{value}[/yellow]")
            else:
                table.add_row(key, str(value))

        with self._lock:
            self.console.print(table)


# 全局日志实例
logger = Logger()
