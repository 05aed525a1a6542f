"""Dispatch single and batched invocations to the operation registry."""
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from calculator_agent.common.logger import logger
from calculator_agent.common.models import OperationRequest, OperationResult, ToolCall
from calculator_agent.dispatch.registry import ToolRegistry, default_registry
from calculator_agent.dispatch.worker import InvocationWorker


class BatchDispatcher(BaseModel):
    """
    Run the invocations of one turn and hand back their results in request order.

    Features:
        - One worker per invocation, run concurrently up to max_workers.
        - Results are collected as soon as a worker finishes.
        - Results are re-ordered by request index before being returned.
        - A failing invocation never affects the others of its batch.
    """

    # Allow arbitrary types like ToolRegistry
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    registry: ToolRegistry = Field(default_factory=default_registry, description="Available tools")
    max_workers: int = Field(default=4, ge=1, le=64, description="Concurrent workers per batch")

    def invoke(self, call: ToolCall) -> float:
        """
        Invoke a single call directly; failures raise instead of becoming markers.

        :param ToolCall call: Named invocation

        :return: Numeric result
        :rtype: float
        :raises ContractViolation: If the call breaks the tool contract
        :raises InvalidOperation: If the operation itself fails
        """
        return self.registry.invoke(call)

    def _collect_finished_workers(
        self, futures: Dict[Future, int], results: Dict[int, OperationResult]
    ) -> None:
        """
        Store each worker's result under its request index as it completes.

        :param dict futures: Future to request index
        :param dict results: Request index to result, filled in place
        """
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    def dispatch(
        self,
        calls: Sequence[ToolCall],
        units: Optional[Sequence[Optional[str]]] = None,
    ) -> List[OperationResult]:
        """
        Evaluate a batch of independent invocations.

        :param Sequence[ToolCall] calls: Invocations in request order
        :param Sequence units: Optional unit per call, carried into its result

        :return: One result per call, in request order
        :rtype: List[OperationResult]
        """
        if not calls:
            return []
        if units is None:
            units = [None] * len(calls)
        if len(units) != len(calls):
            raise ValueError("units must match calls one to one")

        logger.info(f"📨 Dispatching batch of {len(calls)} call(s)")

        results: Dict[int, OperationResult] = {}
        workers: int = min(self.max_workers, len(calls))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures: Dict[Future, int] = {}
            for index, (call, unit) in enumerate(zip(calls, units)):
                worker = InvocationWorker(registry=self.registry, call=call, index=index, unit=unit)
                futures[pool.submit(worker.run)] = index
            self._collect_finished_workers(futures, results)

        return [results[index] for index in range(len(calls))]

    def dispatch_requests(self, requests: Sequence[OperationRequest]) -> List[OperationResult]:
        """
        Evaluate a batch of typed requests, carrying each shared unit into its result.

        :param Sequence[OperationRequest] requests: Requests in order

        :return: One result per request, in request order
        :rtype: List[OperationResult]
        """
        return self.dispatch(
            [request.to_call() for request in requests],
            units=[request.shared_unit for request in requests],
        )
