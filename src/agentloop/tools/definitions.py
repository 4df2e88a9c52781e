"""Tool derivation from typed functions.

A derived tool is described once, by a parameter table mapping each argument
name to its kind, and both the JSON Schema shown to the model and the runtime
argument decoding are generated from that same table. Tools can be derived:
1. Explicitly, with ``derive_tool`` and a parameter table
2. With the ``@tool_fn`` decorator, which builds the table from type hints
3. From a Pydantic model, with ``tool_from_pydantic``
"""

import copy
import inspect
import json
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, TypeVar, get_type_hints

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..types import (
    ConfigurationError,
    InvalidInputError,
    RunContext,
    SerializationError,
)
from .base import Tool, ToolResult, format_tool_output

F = TypeVar("F", bound=Callable[..., Any])


class ParamKind(str, Enum):
    """Primitive kinds a tool parameter can be declared with."""

    INTEGER = "integer"
    UNSIGNED = "unsigned"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    OBJECT = "object"


# A ParamKind, or any other type which is decoded structurally
ParamType = Any
ParameterTable = Mapping[str, ParamType]

_SCHEMA_TYPES: dict[ParamKind, str] = {
    ParamKind.INTEGER: "number",
    ParamKind.UNSIGNED: "number",
    ParamKind.NUMBER: "number",
    ParamKind.STRING: "string",
    ParamKind.BOOLEAN: "boolean",
    ParamKind.OBJECT: "object",
}

_BUILTIN_KINDS: dict[Any, ParamKind] = {
    int: ParamKind.INTEGER,
    float: ParamKind.NUMBER,
    str: ParamKind.STRING,
    bool: ParamKind.BOOLEAN,
}


def param_kind_for(annotation: Any) -> ParamType:
    """Map a Python annotation to its parameter kind."""
    if isinstance(annotation, ParamKind):
        return annotation
    if annotation is inspect.Parameter.empty:
        return Any
    return _BUILTIN_KINDS.get(annotation, annotation)


def build_parameters_schema(parameters: ParameterTable) -> dict[str, Any]:
    """
    Build the JSON Schema for a parameter table.

    Every parameter is required.

    Args:
        parameters: Mapping of parameter name to ParamKind or Python type

    Returns:
        JSON Schema object describing the parameters
    """
    properties: dict[str, Any] = {}
    for name, kind in parameters.items():
        schema_type = _SCHEMA_TYPES[kind] if isinstance(kind, ParamKind) else "object"
        properties[name] = {"type": schema_type}

    return {
        "type": "object",
        "properties": properties,
        "required": list(parameters),
    }


def parse_arguments(raw_args: str | None) -> dict[str, Any]:
    """
    Parse raw tool arguments into a JSON object.

    Blank input counts as an empty object.

    Raises:
        SerializationError: If the text is not valid JSON
        InvalidInputError: If the JSON is not an object
    """
    if raw_args is None or not raw_args.strip():
        return {}

    try:
        parsed = json.loads(raw_args)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Invalid JSON arguments: {e}") from e

    if not isinstance(parsed, dict):
        raise InvalidInputError(
            f"Tool arguments must be a JSON object, got {type(parsed).__name__}"
        )
    return parsed


def _missing(name: str) -> InvalidInputError:
    return InvalidInputError(f"Missing or invalid parameter: {name}", parameter=name)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def extract_argument(
    arguments: Mapping[str, Any],
    name: str,
    kind: ParamType,
    adapter: TypeAdapter[Any] | None = None,
) -> Any:
    """
    Extract and coerce a single parameter from decoded arguments.

    Args:
        arguments: Decoded JSON object
        name: Parameter name to look up
        kind: Declared ParamKind, or a type for structural decoding
        adapter: Prebuilt TypeAdapter for ``kind`` (built on demand if omitted)

    Returns:
        The coerced value

    Raises:
        InvalidInputError: If the key is absent or has the wrong shape
    """
    if name not in arguments:
        raise _missing(name)
    value = arguments[name]

    if kind is ParamKind.INTEGER:
        if not _is_integer(value):
            raise _missing(name)
        return value

    if kind is ParamKind.UNSIGNED:
        if not _is_integer(value) or value < 0:
            raise _missing(name)
        return value

    if kind is ParamKind.NUMBER:
        if not (_is_integer(value) or isinstance(value, float)):
            raise _missing(name)
        try:
            return float(value)
        except OverflowError:
            raise _missing(name) from None

    if kind is ParamKind.STRING:
        if not isinstance(value, str):
            raise _missing(name)
        return value

    if kind is ParamKind.BOOLEAN:
        if not isinstance(value, bool):
            raise _missing(name)
        return value

    if kind is ParamKind.OBJECT:
        if not isinstance(value, dict):
            raise _missing(name)
        return value

    adapter = adapter or TypeAdapter(kind)
    try:
        return adapter.validate_python(value)
    except PydanticValidationError as e:
        raise InvalidInputError(f"Invalid parameter {name}: {e}", parameter=name) from e


class DerivedTool(Tool):
    """
    A tool whose schema and argument decoding come from one parameter table.

    The wrapped function is called as ``func(context, *values)`` with values
    in table order. Sync and async functions are both supported.
    """

    def __init__(
        self,
        name: str,
        description: str,
        func: Callable[..., Any],
        parameters: ParameterTable,
    ):
        self._name = name
        self._description = description
        self._func = func
        self._parameters: dict[str, ParamType] = {
            param: param_kind_for(kind) for param, kind in parameters.items()
        }
        self._adapters: dict[str, TypeAdapter[Any]] = {
            param: TypeAdapter(kind)
            for param, kind in self._parameters.items()
            if not isinstance(kind, ParamKind)
        }

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, ParamType]:
        """The declared parameter table."""
        return dict(self._parameters)

    @property
    def func(self) -> Callable[..., Any]:
        return self._func

    def parameters_schema(self) -> dict[str, Any]:
        return build_parameters_schema(self._parameters)

    def extract(self, arguments: Mapping[str, Any]) -> list[Any]:
        """Extract every declared parameter, in declaration order."""
        return [
            extract_argument(arguments, param, kind, self._adapters.get(param))
            for param, kind in self._parameters.items()
        ]

    async def execute(self, context: RunContext, raw_args: str) -> ToolResult:
        values = self.extract(parse_arguments(raw_args))
        result = self._func(context, *values)
        if inspect.isawaitable(result):
            result = await result
        return ToolResult(tool_name=self._name, output=format_tool_output(result))


def derive_tool(
    func: Callable[..., Any],
    *,
    name: str,
    description: str,
    parameters: ParameterTable,
) -> DerivedTool:
    """
    Derive a tool from a function and an explicit parameter table.

    Args:
        func: Function called as ``func(context, *values)``
        name: Tool name
        description: Tool description
        parameters: Mapping of parameter name to ParamKind or Python type,
            in the order the function expects them

    Example:
        def calculator(context, a, b, operation):
            ...

        calc = derive_tool(
            calculator,
            name="calculator",
            description="A simple calculator",
            parameters={
                "a": ParamKind.NUMBER,
                "b": ParamKind.NUMBER,
                "operation": ParamKind.STRING,
            },
        )
    """
    return DerivedTool(name=name, description=description, func=func, parameters=parameters)


def _is_context_parameter(param: inspect.Parameter, annotation: Any) -> bool:
    if param.name.lstrip("_") == "context":
        return True
    return annotation is RunContext or "RunContext" in str(annotation)


def _extract_parameter_table(func: Callable[..., Any]) -> dict[str, ParamType]:
    """Build a parameter table from a function signature, skipping the context."""
    sig = inspect.signature(func)
    hints = get_type_hints(func) if hasattr(func, "__annotations__") else {}
    params = list(sig.parameters.values())

    if not params or not _is_context_parameter(params[0], hints.get(params[0].name)):
        raise ConfigurationError(
            f"Tool function {func.__name__} must take the RunContext as its first parameter"
        )

    table: dict[str, ParamType] = {}
    for param in params[1:]:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise ConfigurationError(
                f"Tool function {func.__name__} cannot take *args or **kwargs"
            )
        table[param.name] = param_kind_for(hints.get(param.name, param.annotation))

    return table


def _extract_docstring_description(func: Callable[..., Any]) -> str:
    """Extract description from function docstring."""
    doc = func.__doc__
    if not doc:
        return f"Tool function {func.__name__}"

    # Get first paragraph (up to first blank line)
    lines = doc.strip().split("\n")
    desc_lines = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            break
        desc_lines.append(stripped)

    return " ".join(desc_lines) if desc_lines else f"Tool function {func.__name__}"


def tool_fn(
    name: str | None = None,
    description: str | None = None,
) -> Callable[[F], F]:
    """
    Decorator to derive a tool from a typed function.

    The first parameter receives the RunContext and must be named
    ``context`` (leading underscores allowed) or annotated with RunContext.
    The remaining parameters' type hints form the parameter table; all of
    them are required.

    Args:
        name: Tool name (defaults to function name)
        description: Tool description (defaults to docstring)

    Example:
        @tool_fn(name="calculator", description="A simple calculator")
        def calculator(context: RunContext, a: float, b: float, operation: str) -> str:
            ...

        agent = AgentBuilder("math").model(model).add_tool(calculator).build()
    """

    def decorator(func: F) -> F:
        tool_name = name or func.__name__
        tool_desc = description or _extract_docstring_description(func)
        parameters = _extract_parameter_table(func)

        func._tool_definition = DerivedTool(  # type: ignore[attr-defined]
            name=tool_name,
            description=tool_desc,
            func=func,
            parameters=parameters,
        )
        return func

    return decorator


def get_tool_definition(func: Callable[..., Any]) -> DerivedTool | None:
    """Get the tool definition attached to a decorated function."""
    return getattr(func, "_tool_definition", None)


class PydanticTool(Tool):
    """A tool whose parameters are described by a Pydantic model."""

    def __init__(
        self,
        model: type[BaseModel],
        func: Callable[[RunContext, Any], Any],
        name: str,
        description: str,
    ):
        self._model = model
        self._func = func
        self._name = name
        self._description = description

        schema = model.model_json_schema()
        # Remove $defs if present (inline definitions)
        schema.pop("$defs", None)
        self._schema = schema

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def model(self) -> type[BaseModel]:
        return self._model

    def parameters_schema(self) -> dict[str, Any]:
        return copy.deepcopy(self._schema)

    async def execute(self, context: RunContext, raw_args: str) -> ToolResult:
        arguments = parse_arguments(raw_args)
        try:
            params = self._model.model_validate(arguments)
        except PydanticValidationError as e:
            raise InvalidInputError(f"Invalid arguments for {self._name}: {e}") from e

        result = self._func(context, params)
        if inspect.isawaitable(result):
            result = await result
        return ToolResult(tool_name=self._name, output=format_tool_output(result))


def tool_from_pydantic(
    model: type[BaseModel],
    func: Callable[[RunContext, Any], Any],
    name: str | None = None,
    description: str | None = None,
) -> PydanticTool:
    """
    Create a tool from a Pydantic model.

    This allows richer parameter schemas with full Pydantic features like
    Field descriptions, defaults and validators.

    Args:
        model: Pydantic model defining the tool parameters
        func: Function called as ``func(context, params)`` with a validated model
        name: Tool name (defaults to model name)
        description: Tool description (defaults to model docstring)

    Example:
        class SearchParams(BaseModel):
            '''Search the web for information.'''
            query: str = Field(description="The search query")
            max_results: int = Field(default=10, ge=1, le=100)

        async def do_search(context: RunContext, params: SearchParams) -> list[str]:
            return await search_api(params.query, params.max_results)

        search_tool = tool_from_pydantic(SearchParams, do_search)
    """
    tool_name = name or model.__name__
    tool_desc = description or model.__doc__ or f"Tool {tool_name}"

    return PydanticTool(model=model, func=func, name=tool_name, description=tool_desc)
