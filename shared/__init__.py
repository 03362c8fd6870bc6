"""
Toolkit Shared Module
======================

Configuration, structured logging, console presentation and result
models shared by the toolkit commands.
"""

from shared.config import ToolkitConfig

__all__ = ["ToolkitConfig"]
