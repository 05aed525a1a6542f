"""Worker evaluating a single operation invocation."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from calculator_agent.common.logger import logger
from calculator_agent.common.models import OperationResult, ToolCall
from calculator_agent.common.operations import InvalidOperation
from calculator_agent.dispatch.registry import ContractViolation, ToolRegistry


class InvocationWorker(BaseModel):
    """
    Worker responsible for evaluating one invocation of a batch.

    Lifecycle:
        - Created by the dispatcher for one call only
        - Invokes the tool through the registry
        - Returns the numeric result, or a failure marker for domain
          errors and contract violations
    """

    # Make the Pydantic instance immutable (read-only) for safety
    # Allow arbitrary types like ToolRegistry
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    registry: ToolRegistry = Field(..., description="Registry used to resolve the call")
    call: ToolCall = Field(..., description="Single invocation to evaluate")
    index: int = Field(..., ge=0, description="Position of the call in its batch")
    unit: Optional[str] = Field(default=None, description="Unit carried into the result")

    def run(self) -> OperationResult:
        """
        Evaluate the invocation.

        :return: Result holding either the value or the failure marker
        :rtype: OperationResult
        """
        logger.info(f"👷🏁 Worker started on call {self.index}: {self.call.name}({self.call.arguments})")

        try:
            value: float = self.registry.invoke(self.call)
        except InvalidOperation as exc:
            logger.warning(f"👷➗ Worker failed on call {self.index}: {exc}")
            return OperationResult(
                operation=self.call.name,
                error=str(exc),
                error_kind="division_by_zero",
            )
        except ContractViolation as exc:
            logger.error(
                f"👷❌ Worker rejected call {self.index}: {exc}\n"
                f"Planner issued an invalid invocation: {self.call!r}"
            )
            return OperationResult(
                operation=self.call.name,
                error=str(exc),
                error_kind="contract_violation",
            )

        logger.info(f"👷✅ Worker finished on call {self.index}: {value}")
        return OperationResult(operation=self.call.name, value=value, unit=self.unit)
