"""
Tool descriptors.

A Tool pairs a function name and parameter schema with the handler that
runs when the model asks for it. Tools can be declared by hand or built
from a plain Python function with Tool.from_callable().
"""

import inspect
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Dict, List, Optional, get_type_hints

from pydantic import TypeAdapter
from pydantic.errors import PydanticUserError


@dataclass
class ToolParameter:
    """
    One named parameter of a tool.

    A parameter without a default is required: binding fails when the
    model leaves it out.
    """
    name: str
    annotation: Any = str
    description: str = ""
    default: Any = inspect.Parameter.empty

    @property
    def required(self) -> bool:
        return self.default is inspect.Parameter.empty

    @cached_property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(self.annotation)

    def json_schema(self) -> Dict[str, Any]:
        try:
            schema = dict(self.adapter.json_schema())
        except PydanticUserError:
            schema = {"type": "string"}  # Not expressible, let the model send text
        schema.pop("title", None)
        schema["description"] = self.description or f"The {self.name} parameter"
        return schema


@dataclass
class Tool:
    """A function the model may call during a chat turn."""
    name: str
    handler: Callable[..., Any]
    description: str = ""
    parameters: List[ToolParameter] = field(default_factory=list)

    @classmethod
    def from_callable(
        cls,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "Tool":
        """
        Describe a function (or bound method) as a tool.

        Parameter types come from the type hints, defaulting to str, and the
        description from the docstring.
        """
        tool_name = name or func.__name__
        sig = inspect.signature(func)
        type_hints = get_type_hints(func)

        if description is None:
            doc = inspect.getdoc(func)
            description = doc.strip() if doc else f"Execute {tool_name}"

        parameters = []
        for param_name, param in sig.parameters.items():
            if param_name == "self":
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            parameters.append(ToolParameter(
                name=param_name,
                annotation=type_hints.get(param_name, str),
                default=param.default,
            ))

        return cls(name=tool_name, handler=func, description=description, parameters=parameters)

    def to_schema(self) -> Dict[str, Any]:
        """Describe the tool in Ollama's function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description or f"Execute {self.name}",
                "parameters": {
                    "type": "object",
                    "properties": {p.name: p.json_schema() for p in self.parameters},
                    "required": [p.name for p in self.parameters if p.required],
                },
            },
        }
