"""
Tool registry: maps tool names to descriptors and runs them.

Arguments are resolved strictly by declared parameter name and coerced to
the declared type with pydantic before the handler is called.
"""

import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ..errors import ArgumentBindingError, ToolInvocationError
from .base import Tool

logger = logging.getLogger(__name__)


def bind_arguments(tool: Tool, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """
    Resolve the handler's keyword arguments from a tool call payload.

    Raises:
        ArgumentBindingError: a required parameter is missing, or a value
            cannot be converted to the declared type
    """
    kwargs = {}

    for param in tool.parameters:
        if param.name in arguments:
            value = arguments[param.name]
            try:
                kwargs[param.name] = param.adapter.validate_python(value)
            except ValidationError as e:
                raise ArgumentBindingError(
                    param.name,
                    f"Tool '{tool.name}': cannot convert {value!r} for parameter '{param.name}'",
                    value=value,
                ) from e
        elif not param.required:
            kwargs[param.name] = param.default
        else:
            raise ArgumentBindingError(
                param.name,
                f"Tool '{tool.name}': missing required parameter '{param.name}'",
            )

    unknown = set(arguments) - {p.name for p in tool.parameters}
    if unknown:
        logger.debug("Tool %s: ignoring undeclared arguments %s", tool.name, sorted(unknown))

    return kwargs


class ToolRegistry:
    """Registry for managing tools and their schemas."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self.tools: Dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        self.tools[tool.name] = tool

    def register_callable(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Tool:
        """Describe a callable as a tool and register it."""
        tool = Tool.from_callable(func, name=name, description=description)
        self.register(tool)
        return tool

    def get_schemas(self) -> List[Dict[str, Any]]:
        """Get all tool schemas in Ollama's function-calling format."""
        return [tool.to_schema() for tool in self.tools.values()]

    def has_tool(self, name: str) -> bool:
        return name in self.tools

    def resolve(self, name: Optional[str]) -> Tool:
        """Find the tool a call refers to by its exact name."""
        if name in self.tools:
            return self.tools[name]
        raise ToolInvocationError(name, f"Model requested unknown tool '{name}'")

    async def invoke(self, name: Optional[str], arguments: Dict[str, Any]) -> Any:
        """
        Bind the arguments and run the tool's handler (sync or async).

        Raises:
            ArgumentBindingError: the arguments don't fit the declared parameters
            ToolInvocationError: the tool is unknown or its handler raised
        """
        tool = self.resolve(name)
        kwargs = bind_arguments(tool, arguments)

        logger.info("Invoking tool %s with %s", tool.name, kwargs)
        try:
            result = tool.handler(**kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.info("Tool %s failed: %s", tool.name, e)
            raise ToolInvocationError(tool.name, f"Tool '{tool.name}' failed: {e}") from e

        return result

    def __len__(self) -> int:
        return len(self.tools)
