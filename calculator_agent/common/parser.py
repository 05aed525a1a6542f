"""Extract quantities, unit words and operator words from free text."""
import re
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from calculator_agent.common.models import Operand, OperationName


# Mapping of operator words and symbols to operation names
OPERATORS: Dict[str, OperationName] = {
    "+": "add",
    "plus": "add",
    "add": "add",
    "added": "add",
    "sum": "add",
    "total": "add",
    "-": "subtract",
    "minus": "subtract",
    "subtract": "subtract",
    "subtracted": "subtract",
    "less": "subtract",
    "difference": "subtract",
    "*": "multiply",
    "×": "multiply",
    "x": "multiply",
    "times": "multiply",
    "multiply": "multiply",
    "multiplied": "multiply",
    "product": "multiply",
    "/": "divide",
    "÷": "divide",
    "divide": "divide",
    "divided": "divide",
    "over": "divide",
    "quotient": "divide",
}

# Operation precedence used by the Shunting-yard conversion
PRECEDENCE: Dict[str, int] = {"add": 1, "subtract": 1, "multiply": 2, "divide": 2}

# Words linking two quantities without naming an operation
CONNECTORS = frozenset({"and", "by", "to", "with", "of", "from", "between", "into", "than"})

# Words that never name an item
STOPWORDS = frozenset({
    "a", "again", "all", "altogether", "am", "an", "are", "be", "calculate", "can",
    "compute", "do", "does", "each", "equal", "equals", "exactly", "for", "get", "give",
    "have", "has", "how", "i", "if", "in", "is", "it", "left", "many", "me", "more",
    "much", "my", "now", "please", "result", "right", "so", "that", "the", "then",
    "there", "this", "today", "tomorrow", "tonight", "was", "what", "whats", "what's",
    "will", "yesterday", "you", "your",
})

UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16,
    "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

# A leading minus is a sign only when not glued to a preceding word or number
TOKEN_PATTERN = re.compile(
    r"(?<![\w.)])-?\d+(?:,\d{3})*(?:\.\d+)?"
    r"|\d+(?:,\d{3})*(?:\.\d+)?"
    r"|[A-Za-z]+(?:['-][A-Za-z]+)*"
    r"|[+\-*/×÷]"
)

RpnItem = Union[Operand, OperationName]


class Quantity(BaseModel):
    """A quantity found in the text and what linked it to the previous one."""

    operand: Operand = Field(..., description="Value and optional unit")
    operator: Optional[OperationName] = Field(default=None, description="Operation word before it")
    connector: Optional[str] = Field(default=None, description="Connector word before it")


class ParsedUtterance(BaseModel):
    """Quantities and operator words extracted from one utterance."""

    text: str
    quantities: List[Quantity] = Field(default_factory=list)
    operators: List[OperationName] = Field(default_factory=list)


class UtteranceParser:
    """
    Turn a natural-language arithmetic request into typed quantities.

    Extraction is best-effort text matching:
        1. Tokenize into numbers, words and operator symbols
        2. Read digits and number words as values
        3. Attach the following item word, in singular form, as the unit
        4. Record the operator and connector words seen between quantities

    Examples:
        - "What is 15 apples minus 3 apples?" -> 15 apple, (minus) 3 apple
        - "12 apples plus one apple and a banana" -> 12 apple, (plus) 1 apple, (and) 1 banana
    """

    @staticmethod
    def tokenize(text: str) -> List[str]:
        """
        Split text into lowercase number, word and symbol tokens.

        :param str text: Free text

        :return: List of tokens
        :rtype: List[str]
        """
        return [token.lower() for token in TOKEN_PATTERN.findall(text)]

    @staticmethod
    def _is_number(token: str) -> bool:
        """
        Determine if a token is written with digits.

        :param str token: Token string

        :return: True if token can be converted to float, else False
        :rtype: bool
        """
        try:
            float(token.replace(",", ""))
            return True
        except ValueError:
            return False

    @staticmethod
    def _is_unit_word(token: str) -> bool:
        """Return True if the token can name an item, e.g. ``"apples"``."""
        return (
            token.isalpha()
            and token not in OPERATORS
            and token not in CONNECTORS
            and token not in STOPWORDS
            and token not in UNITS
            and token not in TENS
        )

    @staticmethod
    def _word_value(word: str) -> Optional[int]:
        """Value of a number word such as ``"seven"`` or ``"twenty-one"``."""
        if word in UNITS:
            return UNITS[word]
        if word in TENS:
            return TENS[word]
        tens, _, unit = word.partition("-")
        if tens in TENS and UNITS.get(unit, 0) in range(1, 10):
            return TENS[tens] + UNITS[unit]
        return None

    @staticmethod
    def read_number(tokens: List[str], start: int) -> Tuple[Optional[float], int]:
        """
        Read a value starting at ``tokens[start]``.

        :param List[str] tokens: Tokens of the utterance
        :param int start: Index to read from

        :return: (value, number of tokens consumed), or (None, 0) if no number starts here
        :rtype: Tuple[Optional[float], int]
        """
        token = tokens[start]
        nxt = tokens[start + 1] if start + 1 < len(tokens) else None

        if UtteranceParser._is_number(token):
            return float(token.replace(",", "")), 1

        value = UtteranceParser._word_value(token)
        if value is not None:
            # "twenty one" written as two words
            if token in TENS and nxt is not None and UNITS.get(nxt, 0) in range(1, 10):
                return float(value + UNITS[nxt]), 2
            return float(value), 1

        # "a banana" counts as one banana
        if token in ("a", "an") and nxt is not None and UtteranceParser._is_unit_word(nxt):
            return 1.0, 1

        return None, 0

    @staticmethod
    def singularize(word: str) -> str:
        """
        Best-effort singular form used to match item words.

        :param str word: Lowercase item word

        :return: Singular form, e.g. "apples" -> "apple", "peaches" -> "peach"
        :rtype: str
        """
        if len(word) <= 3 or word.endswith("ss"):
            return word
        if word.endswith("ies"):
            return word[:-3] + "y"
        if word.endswith(("ches", "shes", "sses", "xes", "zes")):
            return word[:-2]
        if word.endswith("s"):
            return word[:-1]
        return word

    @staticmethod
    def parse(text: str) -> ParsedUtterance:
        """
        Extract quantities and operator words from free text.

        :param str text: User utterance

        :return: Parsed utterance
        :rtype: ParsedUtterance
        """
        tokens: List[str] = UtteranceParser.tokenize(text)
        quantities: List[Quantity] = []
        operators: List[OperationName] = []
        pending_operator: Optional[OperationName] = None
        pending_connector: Optional[str] = None

        i = 0
        while i < len(tokens):
            value, consumed = UtteranceParser.read_number(tokens, i)
            if value is not None:
                # "5 -3" reads as 5 minus 3
                if (
                    tokens[i].startswith("-")
                    and quantities
                    and pending_operator is None
                    and pending_connector is None
                ):
                    value = -value
                    pending_operator = "subtract"
                    operators.append(pending_operator)
                i += consumed
                unit: Optional[str] = None
                if i < len(tokens) and UtteranceParser._is_unit_word(tokens[i]):
                    unit = UtteranceParser.singularize(tokens[i])
                    i += 1
                quantities.append(Quantity(
                    operand=Operand(value=value, unit=unit),
                    operator=pending_operator,
                    connector=pending_connector,
                ))
                pending_operator = pending_connector = None
                continue

            token = tokens[i]
            if token in OPERATORS:
                pending_operator = OPERATORS[token]
                operators.append(pending_operator)
            elif token in CONNECTORS:
                pending_connector = token
            i += 1

        return ParsedUtterance(text=text, quantities=quantities, operators=operators)

    @staticmethod
    def to_rpn(infix: List[RpnItem]) -> List[RpnItem]:
        """
        Convert alternating operands and operation names into Reverse Polish Notation
        using the Shunting-yard algorithm.

        :param list infix: Operand, operation, Operand, ... in reading order

        :return: Items in RPN order
        :rtype: list
        """
        output: List[RpnItem] = []
        stack: List[OperationName] = []

        for item in infix:
            if isinstance(item, Operand):
                # Operands go directly to the output
                output.append(item)
            else:
                # Operation: pop operations from stack with higher or equal precedence
                prec = PRECEDENCE[item]
                while stack and PRECEDENCE[stack[-1]] >= prec:
                    output.append(stack.pop())
                stack.append(item)

        # Append remaining operations in reverse order (stack top first)
        output.extend(stack[::-1])
        return output
