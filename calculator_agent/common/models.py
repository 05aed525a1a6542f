"""Pydantic models for operands, operation requests and results, and the session."""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


OperationName = Literal["add", "subtract", "multiply", "divide"]
ErrorKind = Literal["division_by_zero", "contract_violation"]

# Parameter names published to the planner for every operation
FIRST_PARAM = "firstNumber"
SECOND_PARAM = "secondNumber"


class Operand(BaseModel):
    """A number with an optional free-text unit label such as ``"apple"``."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(..., description="Numeric value of the operand")
    unit: Optional[str] = Field(default=None, description="Opaque unit label")


class ToolCall(BaseModel):
    """A single named invocation issued by the planner."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Name of the operation to invoke")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Named arguments")


class OperationRequest(BaseModel):
    """One arithmetic operation applied to exactly two operands."""

    model_config = ConfigDict(frozen=True)

    operation: OperationName = Field(..., description="Operation to perform")
    first: Operand = Field(..., description="Left operand")
    second: Operand = Field(..., description="Right operand")

    @property
    def shared_unit(self) -> Optional[str]:
        """Unit carried by the result: set only when both operands share the same tag."""
        if self.first.unit is not None and self.first.unit == self.second.unit:
            return self.first.unit
        return None

    def to_call(self) -> ToolCall:
        """Express the request as a planner-facing tool call."""
        return ToolCall(
            name=self.operation,
            arguments={FIRST_PARAM: self.first.value, SECOND_PARAM: self.second.value},
        )


class OperationResult(BaseModel):
    """
    Outcome of one invocation: either a numeric value or a failure marker.

    A result never holds both a value and an error.
    """

    model_config = ConfigDict(frozen=True)

    operation: str = Field(..., description="Name of the invoked operation")
    value: Optional[float] = Field(default=None, description="Numeric result")
    unit: Optional[str] = Field(default=None, description="Unit shared by both operands")
    error: Optional[str] = Field(default=None, description="Failure message")
    error_kind: Optional[ErrorKind] = Field(default=None, description="Failure category")

    @model_validator(mode="after")
    def value_xor_error(self) -> "OperationResult":
        """Ensure exactly one of value and error is set."""
        if (self.value is None) == (self.error is None):
            raise ValueError("OperationResult needs exactly one of value or error")
        if self.error is not None and self.error_kind is None:
            raise ValueError("A failed OperationResult needs an error_kind")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None


class Turn(BaseModel):
    """One (utterance, answer) exchange and the operations it triggered."""

    model_config = ConfigDict(frozen=True)

    utterance: str
    answer: str
    requests: List[OperationRequest] = Field(default_factory=list)
    results: List[OperationResult] = Field(default_factory=list)


class Session(BaseModel):
    """In-memory, append-only conversation history for one user."""

    app_name: str = Field(default="calculator_agent", description="Application name")
    user_id: str = Field(default="calculator_user", description="User identity")
    turns: List[Turn] = Field(default_factory=list, description="Turns in arrival order")

    def append(self, turn: Turn) -> None:
        """Record a finished turn at the end of the history."""
        self.turns.append(turn)
