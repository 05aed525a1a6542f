"""Rule-based planner mapping an utterance to grouped operation programs."""
from enum import Enum
import re
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, Field, model_validator

from calculator_agent.common.logger import logger
from calculator_agent.common.models import Operand, OperationName
from calculator_agent.common.parser import ParsedUtterance, Quantity, RpnItem, UtteranceParser


GREETING_PATTERN = re.compile(
    r"^\s*(hi|hello|hey|hiya|howdy|greetings|good\s+(morning|afternoon|evening))\b",
    re.IGNORECASE,
)
CAPABILITIES_PATTERN = re.compile(
    r"what\s+can\s+you\s+do|what\s+do\s+you\s+do|what\s+are\s+you\s+able"
    r"|capabilit|who\s+are\s+you|how\s+do\s+you\s+work|^\s*help\b|can\s+you\s+(add|subtract|multiply|divide)",
    re.IGNORECASE,
)

# Connectors after which a unit-less number belongs to the previous item
SCALING_CONNECTORS = frozenset({"by", "from", "to", "into"})


class Intent(str, Enum):
    """What the planner decided to do with an utterance."""

    GREETING = "greeting"
    CAPABILITIES = "capabilities"
    OUT_OF_SCOPE = "out_of_scope"
    INCOMPLETE = "incomplete"
    DIVISION_BY_ZERO = "division_by_zero"
    ARITHMETIC = "arithmetic"


class QuantityGroup(BaseModel):
    """Quantities sharing one unit, as a program in Reverse Polish Notation."""

    unit: Optional[str] = Field(default=None, description="Unit shared by the group")
    program: List[RpnItem] = Field(..., min_length=1, description="Operands and operations in RPN")

    @property
    def operation_count(self) -> int:
        return sum(1 for item in self.program if not isinstance(item, Operand))

    @model_validator(mode="after")
    def program_is_well_formed(self) -> "QuantityGroup":
        """Ensure every operation has two operands and exactly one value remains."""
        depth = 0
        for item in self.program:
            if isinstance(item, Operand):
                depth += 1
            elif depth < 2:
                raise ValueError(f"Operation {item!r} needs two operands")
            else:
                depth -= 1
        if depth != 1:
            raise ValueError(f"Program leaves {depth} values instead of one")
        return self


class Plan(BaseModel):
    """Decision for one utterance: an intent and, for arithmetic, one group per unit."""

    intent: Intent
    groups: List[QuantityGroup] = Field(default_factory=list)


class Planner(Protocol):
    """Anything able to turn an utterance into a Plan."""

    def plan(self, utterance: str) -> Plan:
        ...


class RuleBasedPlanner:
    """
    Deterministic planner built on best-effort text matching.

    Rules:
        1. Operator words with two or more quantities make an arithmetic request
        2. Quantities are grouped by unit, one total per group
        3. Inside a group, quantities are joined by the operator word before them,
           falling back to the group's leading operator, then to addition
        4. A divide by a literal zero is caught before anything is dispatched
        5. Greetings, capability questions and anything else get fixed answers
    """

    def plan(self, utterance: str) -> Plan:
        """
        Decide how to answer an utterance.

        :param str utterance: User utterance

        :return: Plan for the conversation policy
        :rtype: Plan
        """
        parsed: ParsedUtterance = UtteranceParser.parse(utterance)
        plan = self._classify(utterance, parsed)
        logger.info(f"🧭 Planned {plan.intent.value} with {len(plan.groups)} group(s)")
        return plan

    def _classify(self, utterance: str, parsed: ParsedUtterance) -> Plan:
        if parsed.operators and len(parsed.quantities) >= 2:
            groups = self.group(parsed.quantities)
            if any(self._divides_by_literal_zero(group) for group in groups):
                return Plan(intent=Intent.DIVISION_BY_ZERO)
            return Plan(intent=Intent.ARITHMETIC, groups=groups)
        if parsed.operators and len(parsed.quantities) == 1:
            return Plan(intent=Intent.INCOMPLETE)
        if GREETING_PATTERN.search(utterance):
            return Plan(intent=Intent.GREETING)
        if CAPABILITIES_PATTERN.search(utterance):
            return Plan(intent=Intent.CAPABILITIES)
        return Plan(intent=Intent.OUT_OF_SCOPE)

    @staticmethod
    def _inherit_units(quantities: List[Quantity]) -> List[Quantity]:
        """
        Give a unit-less quantity the unit of the item it is explicitly combined with.

        "15 apples minus 3" and "15 minus 3 apples" both become apples.
        """
        resolved: List[Quantity] = []
        for quantity in quantities:
            operand = quantity.operand
            joined = quantity.operator is not None or quantity.connector in SCALING_CONNECTORS
            if operand.unit is None and resolved and joined:
                previous_unit = resolved[-1].operand.unit
                if previous_unit is not None:
                    quantity = quantity.model_copy(
                        update={"operand": Operand(value=operand.value, unit=previous_unit)}
                    )
            resolved.append(quantity)

        # Second pass: take the unit of the next item joined by an operator word
        for i in range(len(resolved) - 2, -1, -1):
            operand = resolved[i].operand
            following = resolved[i + 1]
            joined = following.operator is not None
            if operand.unit is None and joined and following.operand.unit is not None:
                resolved[i] = resolved[i].model_copy(
                    update={"operand": Operand(value=operand.value, unit=following.operand.unit)}
                )
        return resolved

    def group(self, quantities: List[Quantity]) -> List[QuantityGroup]:
        """
        Partition quantities by unit and build one RPN program per group.

        Groups keep the order in which their unit first appears.

        :param List[Quantity] quantities: Quantities in reading order

        :return: One group per unit
        :rtype: List[QuantityGroup]
        """
        quantities = self._inherit_units(quantities)
        utterance_lead: Optional[OperationName] = quantities[0].operator if quantities else None

        by_unit: Dict[Optional[str], List[Quantity]] = {}
        for quantity in quantities:
            by_unit.setdefault(quantity.operand.unit, []).append(quantity)

        groups: List[QuantityGroup] = []
        for unit, members in by_unit.items():
            lead: Optional[OperationName] = members[0].operator or utterance_lead
            infix: List[RpnItem] = [members[0].operand]
            for position, quantity in enumerate(members[1:], start=1):
                operation: OperationName = quantity.operator or lead or "add"
                reversed_pair = (
                    (quantity.operator is None and quantity.connector == "from")
                    or (operation == "subtract" and quantity.connector == "than")
                )
                if position == 1 and reversed_pair:
                    # "subtract 3 from 10" and "3 less than 10" -> 10 - 3
                    infix = [quantity.operand, operation, members[0].operand]
                else:
                    infix.extend([operation, quantity.operand])
            groups.append(QuantityGroup(unit=unit, program=UtteranceParser.to_rpn(infix)))
        return groups

    @staticmethod
    def _divides_by_literal_zero(group: QuantityGroup) -> bool:
        """True if some divide in the program takes a literal zero as divisor."""
        for position, item in enumerate(group.program):
            if item == "divide" and position > 0:
                divisor = group.program[position - 1]
                if isinstance(divisor, Operand) and divisor.value == 0:
                    return True
        return False
