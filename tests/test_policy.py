"""Test class ConversationPolicy end to end with a recording dispatcher."""
from typing import List, Sequence

from pydantic import Field, ValidationError
import pytest

from calculator_agent.agent import responses
from calculator_agent.agent.planner import Intent, Plan, QuantityGroup
from calculator_agent.agent.policy import ConversationPolicy
from calculator_agent.common.models import Operand, OperationRequest, OperationResult
from calculator_agent.dispatch.dispatcher import BatchDispatcher


class RecordingDispatcher(BatchDispatcher):
    """Dispatcher remembering every batch it was asked to run."""

    batches: List[List[OperationRequest]] = Field(default_factory=list)

    def dispatch_requests(self, requests: Sequence[OperationRequest]) -> List[OperationResult]:
        self.batches.append(list(requests))
        return super().dispatch_requests(requests)


class FixedPlanner:
    """Planner returning a prepared plan, standing in for an external planner."""

    def __init__(self, plan: Plan) -> None:
        self._plan = plan

    def plan(self, utterance: str) -> Plan:
        return self._plan


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def policy(dispatcher: RecordingDispatcher) -> ConversationPolicy:
    return ConversationPolicy(dispatcher=dispatcher)


def signatures(dispatcher: RecordingDispatcher) -> List[List[tuple]]:
    return [
        [(r.operation, r.first.value, r.second.value) for r in batch]
        for batch in dispatcher.batches
    ]


def test_single_unit_subtraction(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """15 apples minus 3 apples is one subtract call reported as 12 apples."""
    answer = policy.respond("What is 15 apples minus 3 apples?")
    assert answer == "The result is 12 apples."
    assert signatures(dispatcher) == [[("subtract", 15.0, 3.0)]]


def test_plain_subtraction(policy: ConversationPolicy) -> None:
    """Numbers without units are reported plainly."""
    assert policy.respond("What is 15 minus 3?") == "The result is 12."


def test_mixed_items(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """Only same-type quantities are combined; the banana is reported as is."""
    answer = policy.respond("What is 12 apples plus one apple and a banana?")
    assert answer == "The result is 13 apples and 1 banana."
    assert signatures(dispatcher) == [[("add", 12.0, 1.0)]]


def test_parallel_calls_in_one_batch(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """Independent groups are dispatched together, in request order."""
    answer = policy.respond("what is 2 apples plus 2 apples and 1 banana multiplied by 3 bananas?")
    assert answer == "The result is 4 apples and 3 bananas."
    assert signatures(dispatcher) == [[("add", 2.0, 2.0), ("multiply", 1.0, 3.0)]]


def test_chained_operations_use_tool_results(
    policy: ConversationPolicy, dispatcher: RecordingDispatcher
) -> None:
    """A multi-step request feeds each tool result into the next call."""
    answer = policy.respond("what is 2 plus 3 times 4")
    assert answer == "The result is 14."
    assert signatures(dispatcher) == [[("multiply", 3.0, 4.0)], [("add", 2.0, 12.0)]]


def test_non_integral_result(policy: ConversationPolicy) -> None:
    """Fractional results keep their decimals."""
    assert policy.respond("what is 7 divided by 2") == "The result is 3.5."


def test_division_by_zero_is_guarded(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """A literal zero divisor is answered without calling divide."""
    answer = policy.respond("what is 10 divided by 0")
    assert answer == responses.DIVISION_BY_ZERO_RESPONSE
    assert dispatcher.batches == []


def test_division_by_zero_backstop(dispatcher: RecordingDispatcher) -> None:
    """If a planner misses the zero divisor, the tool failure is reported, not a number."""
    plan = Plan(
        intent=Intent.ARITHMETIC,
        groups=[QuantityGroup(program=[Operand(value=10), Operand(value=0), "divide"])],
    )
    policy = ConversationPolicy(planner=FixedPlanner(plan), dispatcher=dispatcher)

    answer = policy.respond("ten over nothing")

    assert answer == responses.DIVISION_BY_ZERO_RESPONSE
    assert signatures(dispatcher) == [[("divide", 10.0, 0.0)]]
    assert not policy.session.turns[-1].results[0].ok


def test_failure_in_one_group_keeps_others(dispatcher: RecordingDispatcher) -> None:
    """A failing group is reported while the other group still gets its total."""
    plan = Plan(
        intent=Intent.ARITHMETIC,
        groups=[
            QuantityGroup(
                unit="apple",
                program=[Operand(value=2, unit="apple"), Operand(value=2, unit="apple"), "add"],
            ),
            QuantityGroup(
                unit="pear",
                program=[Operand(value=4, unit="pear"), Operand(value=0, unit="pear"), "divide"],
            ),
        ],
    )
    policy = ConversationPolicy(planner=FixedPlanner(plan), dispatcher=dispatcher)

    answer = policy.respond("anything")

    assert answer == f"The result is 4 apples. {responses.DIVISION_BY_ZERO_RESPONSE}"


@pytest.mark.parametrize("utterance,expected", [
    ("Hi there", responses.GREETING_RESPONSE),
    ("What can you do?", responses.CAPABILITIES_RESPONSE),
    ("Who won the match yesterday?", responses.OUT_OF_SCOPE_RESPONSE),
    ("What is 5 plus?", responses.INCOMPLETE_RESPONSE),
])
def test_fixed_responses_dispatch_nothing(
    policy: ConversationPolicy, dispatcher: RecordingDispatcher, utterance: str, expected: str
) -> None:
    """Non-mathematical input gets a fixed answer and no tool call."""
    assert policy.respond(utterance) == expected
    assert dispatcher.batches == []


def test_turns_are_recorded(policy: ConversationPolicy) -> None:
    """Every turn lands in the session with the requests and results it produced."""
    policy.respond("hello")
    policy.respond("what is 2 plus 3")

    first, second = policy.session.turns
    assert (first.utterance, first.requests, first.results) == ("hello", [], [])
    assert second.answer == "The result is 5."
    assert [result.value for result in second.results] == [5.0]
    assert second.requests[0].operation == "add"


def test_unit_on_second_operand_only(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """'15 minus 3 apples' is one subtract call reported in apples."""
    answer = policy.respond("What is 15 minus 3 apples?")
    assert answer == "The result is 12 apples."
    assert signatures(dispatcher) == [[("subtract", 15.0, 3.0)]]


def test_trailing_time_word(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """A trailing word like 'today' does not split the calculation."""
    assert policy.respond("What is 6 times 3 today?") == "The result is 18."
    assert signatures(dispatcher) == [[("multiply", 6.0, 3.0)]]


def test_less_than(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """'5 less than 3' subtracts 5 from 3."""
    assert policy.respond("what is 5 less than 3") == "The result is -2."
    assert signatures(dispatcher) == [[("subtract", 3.0, 5.0)]]


def test_signed_number_as_subtraction(policy: ConversationPolicy, dispatcher: RecordingDispatcher) -> None:
    """'5 -3' is answered as 5 minus 3."""
    assert policy.respond("what is 5 -3") == "The result is 2."
    assert signatures(dispatcher) == [[("subtract", 5.0, 3.0)]]


def test_malformed_external_plan_is_rejected() -> None:
    """A plan with an operation missing an operand cannot be built."""
    with pytest.raises(ValidationError):
        Plan(intent=Intent.ARITHMETIC, groups=[QuantityGroup(program=[Operand(value=1), "add"])])
