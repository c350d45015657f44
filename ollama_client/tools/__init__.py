"""
Tools Package - functions the model can call

- base.py: Tool and ToolParameter descriptors
- registry.py: name lookup, argument binding and invocation
"""

from .base import Tool, ToolParameter
from .registry import ToolRegistry, bind_arguments

__all__ = ["Tool", "ToolParameter", "ToolRegistry", "bind_arguments"]
