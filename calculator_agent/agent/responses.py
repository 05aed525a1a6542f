"""Fixed answers and number/unit formatting for the final response."""
import math
from typing import List, Optional


GREETING_RESPONSE = (
    "Hello! I'm CalcBot, your friendly calculator assistant. I can help you with "
    "addition, subtraction, multiplication, and division. How can I help you with "
    "your calculations today?"
)
CAPABILITIES_RESPONSE = (
    "I can perform basic arithmetic operations: addition, subtraction, "
    "multiplication, and division. Just give me a calculation to solve!"
)
OUT_OF_SCOPE_RESPONSE = (
    "I'm sorry, but I can only help with calculations: addition, subtraction, "
    "multiplication, and division."
)
INCOMPLETE_RESPONSE = (
    "I need at least two numbers to perform a calculation. "
    "Could you tell me the full calculation?"
)
DIVISION_BY_ZERO_RESPONSE = "I'm sorry, but division by zero is not possible."
OPERATION_FAILED_RESPONSE = "I'm sorry, but that operation is not possible."


def format_number(value: float) -> str:
    """
    Render a value plainly: integral values lose their ``.0``.

    :param float value: Number to render

    :return: Text form, e.g. 12.0 -> "12", 2.5 -> "2.5"
    :rtype: str
    """
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def pluralize(unit: str, value: float) -> str:
    """
    Plural form of a singular unit, unless the value is exactly one.

    :param str unit: Singular unit label, e.g. "apple"
    :param float value: Quantity the label describes

    :return: "apple" for 1, "apples" otherwise
    :rtype: str
    """
    if value == 1:
        return unit
    if unit.endswith(("ch", "sh", "s", "x", "z")):
        return unit + "es"
    if len(unit) > 1 and unit.endswith("y") and unit[-2] not in "aeiou":
        return unit[:-1] + "ies"
    return unit + "s"


def format_quantity(value: float, unit: Optional[str]) -> str:
    """Render ``12.0, "apple"`` as ``"12 apples"``, or just the number without a unit."""
    text = format_number(value)
    if unit is None:
        return text
    return f"{text} {pluralize(unit, value)}"


def join_parts(parts: List[str]) -> str:
    """Join ``["a", "b", "c"]`` as ``"a, b and c"``."""
    if len(parts) <= 1:
        return "".join(parts)
    return f"{', '.join(parts[:-1])} and {parts[-1]}"


def result_sentence(parts: List[str]) -> str:
    return f"The result is {join_parts(parts)}."
