#!/usr/bin/env python3
"""
Toolkit Registry - Tool definitions, argument models and the tool catalog
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Type

from mcp.types import Tool
from pydantic import BaseModel, ConfigDict, ValidationError

from toolkit_validation import invalid_params, wrap_handler_errors

logger = logging.getLogger(__name__)


class ToolInput(BaseModel):
    """
    Base class for every tool's argument model.

    Strict validation: JSON numbers are not coerced from strings and
    booleans are not coerced from integers. Unknown keys are ignored.
    """
    model_config = ConfigDict(strict=True, extra="ignore")


ToolHandler = Callable[[Any], Dict[str, Any]]


def format_validation_error(tool_name: str, error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into a single readable message"""
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        problems.append(f"{location}: {item.get('msg', 'invalid value')}")
    return f"Invalid arguments for tool '{tool_name}': " + "; ".join(problems)


@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-described, stateless text operation"""
    name: str
    description: str
    input_model: Type[ToolInput]
    handler: ToolHandler

    @property
    def input_schema(self) -> Dict[str, Any]:
        """JSON Schema of the tool's arguments"""
        return self.input_model.model_json_schema()

    def to_mcp_tool(self) -> Tool:
        """Describe the tool the way tools/list reports it"""
        return Tool(name=self.name, description=self.description, inputSchema=self.input_schema)

    def validate_arguments(self, arguments: Optional[Mapping[str, Any]]) -> ToolInput:
        """
        Check raw arguments against the declared schema.

        Raises:
            McpError: InvalidParams naming every offending field
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise invalid_params(f"Arguments for tool '{self.name}' must be an object")
        try:
            return self.input_model.model_validate(dict(arguments))
        except ValidationError as e:
            raise invalid_params(format_validation_error(self.name, e))

    def invoke(self, arguments: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Validate the arguments, then run the handler"""
        validated = self.validate_arguments(arguments)
        return self.handler(validated)


class ToolCatalog:
    """
    Ordered, name-keyed collection of tool definitions.

    Filled once at startup and read-only afterwards.
    """

    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}

    def add(self, name: str, description: str, input_model: Type[ToolInput], handler: ToolHandler) -> ToolDefinition:
        """
        Register a handler under a unique name.

        The handler is wrapped so that it can only raise protocol errors.
        """
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")

        definition = ToolDefinition(
            name=name,
            description=description,
            input_model=input_model,
            handler=wrap_handler_errors(handler),
        )
        self._tools[name] = definition
        logger.debug(f"Registered tool {name}")
        return definition

    def tool(self, name: str, description: str, input_model: Type[ToolInput]) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of add(); returns the undecorated handler"""
        def decorator(fn: ToolHandler) -> ToolHandler:
            self.add(name, description, input_model, fn)
            return fn
        return decorator

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Look up a tool by name"""
        return self._tools.get(name)

    def list(self) -> List[ToolDefinition]:
        """All tools in registration order"""
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())


def build_catalog() -> ToolCatalog:
    """Create a catalog holding every text tool family"""
    # Imported here so tool modules can depend on this module
    from analysis_tools import register_analysis_tools
    from case_tools import register_case_tools
    from encoding_tools import register_encoding_tools
    from formatting_tools import register_formatting_tools
    from hash_tools import register_hash_tools
    from lorem_tools import register_lorem_tools
    from regex_tools import register_regex_tools
    from string_tools import register_string_tools
    from uuid_tools import register_uuid_tools

    catalog = ToolCatalog()
    register_case_tools(catalog)
    register_encoding_tools(catalog)
    register_formatting_tools(catalog)
    register_analysis_tools(catalog)
    register_string_tools(catalog)
    register_uuid_tools(catalog)
    register_hash_tools(catalog)
    register_lorem_tools(catalog)
    register_regex_tools(catalog)

    logger.info(f"Tool catalog ready with {len(catalog)} tools")
    return catalog
