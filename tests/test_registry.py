"""Test class ToolRegistry and the default arithmetic tools."""
import pytest

from calculator_agent.common.models import ToolCall
from calculator_agent.common.operations import InvalidOperation
from calculator_agent.dispatch.registry import (
    ContractViolation,
    ToolDef,
    ToolParam,
    ToolRegistry,
    default_registry,
)


@pytest.fixture
def registry() -> ToolRegistry:
    """Registry with the four default tools."""
    return default_registry()


def call(name: str, first=None, second=None, **extra) -> ToolCall:
    arguments = dict(extra)
    if first is not None:
        arguments["firstNumber"] = first
    if second is not None:
        arguments["secondNumber"] = second
    return ToolCall(name=name, arguments=arguments)


def test_default_names(registry: ToolRegistry) -> None:
    """The four operations are registered in order."""
    assert registry.names() == ["add", "subtract", "multiply", "divide"]


@pytest.mark.parametrize("name,expected", [
    ("add", 5.0),
    ("subtract", -1.0),
    ("multiply", 6.0),
    ("divide", 2 / 3),
])
def test_invoke(registry: ToolRegistry, name: str, expected: float) -> None:
    """Invocation by name with named arguments runs the handler."""
    assert registry.invoke(call(name, 2, 3)) == expected


def test_invoke_accepts_ints_and_floats(registry: ToolRegistry) -> None:
    """Integers are widened to floats."""
    result = registry.invoke(call("add", 2, 0.5))
    assert result == 2.5
    assert isinstance(result, float)


def test_unknown_operation(registry: ToolRegistry) -> None:
    """Unknown names are contract violations."""
    with pytest.raises(ContractViolation, match="Unknown operation"):
        registry.invoke(call("power", 2, 3))


@pytest.mark.parametrize("arguments", [
    {"firstNumber": 1},
    {},
    {"firstNumber": "1", "secondNumber": 2},
    {"firstNumber": True, "secondNumber": 2},
    {"firstNumber": None, "secondNumber": 2},
    {"firstNumber": [1], "secondNumber": 2},
    {"firstNumber": 1, "secondNumber": 2, "thirdNumber": 3},
    {"a": 1, "b": 2},
])
def test_invalid_arguments(registry: ToolRegistry, arguments) -> None:
    """Missing, extra and non-numeric arguments are rejected before the handler runs."""
    with pytest.raises(ContractViolation, match="Invalid arguments"):
        registry.invoke(ToolCall(name="add", arguments=arguments))


def test_handler_not_called_on_violation() -> None:
    """A contract violation never reaches the handler."""
    calls = []

    def spy(a: float, b: float) -> float:
        calls.append((a, b))
        return a

    registry = ToolRegistry()
    registry.register(ToolDef(
        name="spy",
        description="Records calls.",
        params=[ToolParam(name="firstNumber", description="x"), ToolParam(name="secondNumber", description="y")],
        handler=spy,
    ))
    with pytest.raises(ContractViolation):
        registry.invoke(call("spy", "one", 2))
    assert calls == []

    registry.invoke(call("spy", 4, 2))
    assert calls == [(4.0, 2.0)]


def test_divide_by_zero_propagates(registry: ToolRegistry) -> None:
    """Domain errors from the handler are not wrapped."""
    with pytest.raises(InvalidOperation):
        registry.invoke(call("divide", 6, 0))


def test_duplicate_registration(registry: ToolRegistry) -> None:
    """A name can only be registered once."""
    with pytest.raises(ValueError):
        registry.register(registry.get("add"))


def test_tool_specs(registry: ToolRegistry) -> None:
    """Specs describe each tool and both named parameters."""
    specs = registry.tool_specs()
    assert [spec["function"]["name"] for spec in specs] == registry.names()

    divide_spec = specs[3]["function"]
    assert divide_spec["description"] == "Divides the first number by the second."
    parameters = divide_spec["parameters"]
    assert parameters["required"] == ["firstNumber", "secondNumber"]
    assert parameters["additionalProperties"] is False
    assert parameters["properties"]["firstNumber"]["type"] == "number"
    assert "cannot be 0" in parameters["properties"]["secondNumber"]["description"]


def test_every_param_is_described(registry: ToolRegistry) -> None:
    """Every tool and parameter carries a human-readable description."""
    for spec in registry.tool_specs():
        function = spec["function"]
        assert function["description"]
        for prop in function["parameters"]["properties"].values():
            assert prop["description"]


def test_int_too_large_for_double(registry: ToolRegistry) -> None:
    """An int beyond the double range is a contract violation, not an overflow."""
    with pytest.raises(ContractViolation, match="too large"):
        registry.invoke(call("add", 10**400, 1))
