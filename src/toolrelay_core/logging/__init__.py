"""Relay logging - colored or JSON component logging."""

from .logger import ConnectionLogger, LogConfig, RelayLogger, ToolLogger

__all__ = ["RelayLogger", "ConnectionLogger", "ToolLogger", "LogConfig"]
