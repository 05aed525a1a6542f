"""Unit tests for InvocationWorker."""
import pytest

from calculator_agent.common.models import ToolCall
from calculator_agent.dispatch.registry import default_registry
from calculator_agent.dispatch.worker import InvocationWorker


@pytest.mark.parametrize(
    "name,expected",
    [
        ("add", 5.0),
        ("subtract", -1.0),
        ("multiply", 6.0),
        ("divide", 2 / 3),
    ],
)
def test_worker_returns_result(name: str, expected: float) -> None:
    """Worker returns the computed value for valid calls."""
    worker = InvocationWorker(
        registry=default_registry(),
        call=ToolCall(name=name, arguments={"firstNumber": 2, "secondNumber": 3}),
        index=0,
    )
    result = worker.run()
    assert result.ok
    assert result.operation == name
    assert result.value == expected


def test_worker_carries_unit() -> None:
    """The unit handed to the worker ends up on the result."""
    worker = InvocationWorker(
        registry=default_registry(),
        call=ToolCall(name="subtract", arguments={"firstNumber": 15, "secondNumber": 3}),
        index=1,
        unit="apple",
    )
    result = worker.run()
    assert result.value == 12.0
    assert result.unit == "apple"


def test_worker_marks_division_by_zero() -> None:
    """Division by zero becomes a failure marker, not a number."""
    worker = InvocationWorker(
        registry=default_registry(),
        call=ToolCall(name="divide", arguments={"firstNumber": 6, "secondNumber": 0}),
        index=0,
    )
    result = worker.run()
    assert not result.ok
    assert result.value is None
    assert result.error_kind == "division_by_zero"


@pytest.mark.parametrize(
    "call",
    [
        ToolCall(name="modulo", arguments={"firstNumber": 6, "secondNumber": 4}),
        ToolCall(name="add", arguments={"firstNumber": 6}),
        ToolCall(name="add", arguments={"firstNumber": "six", "secondNumber": 4}),
    ],
)
def test_worker_marks_contract_violation(call: ToolCall) -> None:
    """Contract violations become failure markers of their own kind."""
    result = InvocationWorker(registry=default_registry(), call=call, index=2).run()
    assert result.error_kind == "contract_violation"
    assert result.value is None


def test_worker_rejects_negative_index() -> None:
    """Pydantic validation prevents creating a worker with a negative index."""
    with pytest.raises(ValueError):
        InvocationWorker(
            registry=default_registry(),
            call=ToolCall(name="add", arguments={}),
            index=-1,
        )
