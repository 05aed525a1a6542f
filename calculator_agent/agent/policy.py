"""Conversation policy: run a plan through the dispatcher and render the answer."""
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from calculator_agent.agent import responses
from calculator_agent.agent.planner import Intent, Plan, QuantityGroup, RuleBasedPlanner
from calculator_agent.common.logger import logger
from calculator_agent.common.models import (
    Operand,
    OperationRequest,
    OperationResult,
    Session,
    Turn,
)
from calculator_agent.dispatch.dispatcher import BatchDispatcher


FIXED_RESPONSES = {
    Intent.GREETING: responses.GREETING_RESPONSE,
    Intent.CAPABILITIES: responses.CAPABILITIES_RESPONSE,
    Intent.OUT_OF_SCOPE: responses.OUT_OF_SCOPE_RESPONSE,
    Intent.INCOMPLETE: responses.INCOMPLETE_RESPONSE,
    Intent.DIVISION_BY_ZERO: responses.DIVISION_BY_ZERO_RESPONSE,
}


class GroupState:
    """Evaluation stack of one group while its program runs."""

    def __init__(self, group: QuantityGroup) -> None:
        self.group = group
        self.position = 0
        self.stack: List[Operand] = []
        self.failure: Optional[OperationResult] = None

    @property
    def finished(self) -> bool:
        return self.failure is not None or self.position >= len(self.group.program)

    def next_request(self) -> Optional[OperationRequest]:
        """
        Push literal operands until the next operation and build its request.

        :return: The request, or None once the program is exhausted
        :rtype: Optional[OperationRequest]
        """
        program = self.group.program
        while self.position < len(program) and isinstance(program[self.position], Operand):
            self.stack.append(program[self.position])
            self.position += 1
        if self.position >= len(program):
            return None
        second: Operand = self.stack.pop()
        first: Operand = self.stack.pop()
        return OperationRequest(operation=program[self.position], first=first, second=second)

    def accept(self, result: OperationResult) -> None:
        """Push a successful result, or stop the group on failure."""
        self.position += 1
        if not result.ok:
            self.failure = result
            return
        self.stack.append(Operand(value=result.value, unit=result.unit))


class ConversationPolicy(BaseModel):
    """
    Answer user utterances using only tool results for every computed number.

    Steps for one turn:
        1. Ask the planner for a plan.
        2. Answer greetings, capability questions, out-of-scope and guarded
           requests with a fixed message, without dispatching anything.
        3. Otherwise evaluate every group in lock step: each round dispatches
           one batch holding the next operation of each unfinished group.
        4. Render one total per group, or state that the operation is not possible.
        5. Append the turn to the session.
    """

    # Allow arbitrary types like the planner and dispatcher
    model_config = ConfigDict(arbitrary_types_allowed=True)

    planner: Any = Field(default_factory=RuleBasedPlanner, description="Object with plan(utterance)")
    dispatcher: BatchDispatcher = Field(default_factory=BatchDispatcher, description="Tool dispatcher")
    session: Session = Field(default_factory=Session, description="Conversation history")

    def respond(self, utterance: str) -> str:
        """
        Produce the answer for one utterance and record the turn.

        :param str utterance: User utterance

        :return: Natural-language answer
        :rtype: str
        """
        plan: Plan = self.planner.plan(utterance)
        requests: List[OperationRequest] = []
        results: List[OperationResult] = []

        if plan.intent in FIXED_RESPONSES:
            answer = FIXED_RESPONSES[plan.intent]
        else:
            states, requests, results = self.execute(plan)
            answer = self.render(states)

        self.session.append(Turn(utterance=utterance, answer=answer, requests=requests, results=results))
        return answer

    def execute(
        self, plan: Plan
    ) -> Tuple[List[GroupState], List[OperationRequest], List[OperationResult]]:
        """
        Run every group's program through the dispatcher.

        :param Plan plan: Arithmetic plan

        :return: Final group states plus every request issued and its result, in order
        :rtype: tuple
        """
        states = [GroupState(group) for group in plan.groups]
        issued: List[OperationRequest] = []
        received: List[OperationResult] = []

        while True:
            pending: List[Tuple[GroupState, OperationRequest]] = []
            for state in states:
                if state.finished:
                    continue
                request = state.next_request()
                if request is not None:
                    pending.append((state, request))
            if not pending:
                break

            batch = [request for _, request in pending]
            batch_results = self.dispatcher.dispatch_requests(batch)
            for (state, _), result in zip(pending, batch_results):
                state.accept(result)
            issued.extend(batch)
            received.extend(batch_results)

        return states, issued, received

    @staticmethod
    def render(states: List[GroupState]) -> str:
        """
        Compose the final answer from evaluated groups.

        :param List[GroupState] states: Groups after execution

        :return: Answer text
        :rtype: str
        """
        parts: List[str] = []
        failures: List[str] = []
        for state in states:
            if state.failure is not None:
                logger.warning(f"🧮❌ Group {state.group.unit!r} failed: {state.failure.error}")
                message = (
                    responses.DIVISION_BY_ZERO_RESPONSE
                    if state.failure.error_kind == "division_by_zero"
                    else responses.OPERATION_FAILED_RESPONSE
                )
                if message not in failures:
                    failures.append(message)
                continue
            total: Operand = state.stack[-1]
            parts.append(responses.format_quantity(total.value, state.group.unit))

        sentences: List[str] = []
        if parts:
            sentences.append(responses.result_sentence(parts))
        sentences.extend(failures)
        return " ".join(sentences)
