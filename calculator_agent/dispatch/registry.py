"""Named, schema-described registry of operations the planner may invoke."""
from typing import Annotated, Any, Callable, Dict, List, Literal, Type, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    ValidationError,
    create_model,
)

from calculator_agent.common import operations
from calculator_agent.common.models import FIRST_PARAM, SECOND_PARAM, ToolCall


def _as_double(value: Union[int, float]) -> float:
    """Widen an int to a double, rejecting ints too large to represent."""
    try:
        return float(value)
    except OverflowError:
        raise ValueError("Number is too large for a double") from None


# Booleans and numeric strings are rejected, ints are widened to float
Number = Annotated[Union[StrictInt, StrictFloat], AfterValidator(_as_double)]


class ContractViolation(ValueError):
    """Raised when an invocation names an unknown tool or carries invalid arguments."""


class ToolParam(BaseModel):
    """Schema of one named tool parameter."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Parameter name used by the planner")
    description: str = Field(..., description="Human-readable parameter description")
    type: Literal["number"] = Field(default="number", description="JSON schema type")


class ToolDef(BaseModel):
    """A tool: its name, descriptions, ordered parameters and the handler it calls."""

    # Allow arbitrary callables as handlers
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Unique tool name")
    description: str = Field(..., description="What the tool does")
    params: List[ToolParam] = Field(..., min_length=1, description="Positional parameter order")
    handler: Callable[..., float] = Field(..., exclude=True, description="Function invoked")

    def spec(self) -> Dict[str, Any]:
        """
        Describe the tool in function-calling JSON schema form.

        :return: Function spec with name, description and parameter schema
        :rtype: Dict[str, Any]
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {
                        p.name: {"type": p.type, "description": p.description}
                        for p in self.params
                    },
                    "required": [p.name for p in self.params],
                    "additionalProperties": False,
                },
            },
        }


class ToolRegistry:
    """
    Explicit mapping of tool name to definition, looked up at invocation time.

    Arguments are validated against a pydantic model generated from the tool's
    parameters, so contract violations are rejected before the handler runs.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDef] = {}
        self._argument_models: Dict[str, Type[BaseModel]] = {}

    def register(self, tool: ToolDef) -> None:
        """
        Add a tool to the registry.

        :param ToolDef tool: Tool definition

        :raises ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        fields = {
            p.name: (Number, Field(..., description=p.description)) for p in tool.params
        }
        self._argument_models[tool.name] = create_model(
            f"{tool.name.title()}Arguments",
            __config__=ConfigDict(extra="forbid"),
            **fields,
        )
        self._tools[tool.name] = tool

    def names(self) -> List[str]:
        """Registered tool names in registration order."""
        return list(self._tools)

    def get(self, name: str) -> ToolDef:
        """
        Look up a tool by name.

        :param str name: Tool name

        :return: The tool definition
        :rtype: ToolDef
        :raises ContractViolation: If no tool has that name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ContractViolation(f"Unknown operation: {name!r}") from None

    def tool_specs(self) -> List[Dict[str, Any]]:
        """Function-calling schemas of every registered tool, for the planner."""
        return [tool.spec() for tool in self._tools.values()]

    def invoke(self, call: ToolCall) -> float:
        """
        Validate a call's arguments and run the tool's handler.

        Exceptions raised by the handler itself propagate unchanged.

        :param ToolCall call: Named invocation from the planner

        :return: Handler result
        :rtype: float
        :raises ContractViolation: If the name is unknown or arguments are missing, extra or non-numeric
        """
        tool = self.get(call.name)
        try:
            args = self._argument_models[call.name].model_validate(call.arguments)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ContractViolation(f"Invalid arguments for {call.name!r}: {details}") from exc
        return float(tool.handler(*(getattr(args, p.name) for p in tool.params)))


def _first(description: str = "The first number.") -> ToolParam:
    return ToolParam(name=FIRST_PARAM, description=description)


def _second(description: str = "The second number.") -> ToolParam:
    return ToolParam(name=SECOND_PARAM, description=description)


def default_registry() -> ToolRegistry:
    """
    Build a registry holding add, subtract, multiply and divide.

    :return: Registry with the four arithmetic tools
    :rtype: ToolRegistry
    """
    registry = ToolRegistry()
    registry.register(ToolDef(
        name="add",
        description="Adds two numbers.",
        params=[_first(), _second()],
        handler=operations.add,
    ))
    registry.register(ToolDef(
        name="subtract",
        description="Subtracts the second number from the first.",
        params=[_first(), _second("The second number to subtract.")],
        handler=operations.subtract,
    ))
    registry.register(ToolDef(
        name="multiply",
        description="Multiplies two numbers.",
        params=[_first(), _second()],
        handler=operations.multiply,
    ))
    registry.register(ToolDef(
        name="divide",
        description="Divides the first number by the second.",
        params=[
            _first("The dividend (the number being divided)."),
            _second("The divisor (the number to divide by). This value cannot be 0."),
        ],
        handler=operations.divide,
    ))
    return registry
