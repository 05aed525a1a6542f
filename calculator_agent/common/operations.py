"""Arithmetic operations exposed to the planner as tools."""


class InvalidOperation(ValueError):
    """Raised when an operation cannot produce a numeric result."""


def add(a: float, b: float) -> float:
    """
    Add two numbers.

    :param float a: The first number
    :param float b: The second number

    :return: a + b
    :rtype: float
    """
    return a + b


def subtract(a: float, b: float) -> float:
    """
    Subtract the second number from the first.

    :param float a: The first number
    :param float b: The second number to subtract

    :return: a - b
    :rtype: float
    """
    return a - b


def multiply(a: float, b: float) -> float:
    """
    Multiply two numbers.

    :param float a: The first number
    :param float b: The second number

    :return: a * b
    :rtype: float
    """
    return a * b


def divide(a: float, b: float) -> float:
    """
    Divide the first number by the second.

    :param float a: The dividend (the number being divided)
    :param float b: The divisor (the number to divide by), cannot be 0

    :return: a / b
    :rtype: float
    :raises InvalidOperation: If the divisor is zero
    """
    # Also catches -0.0
    if b == 0:
        raise InvalidOperation("Cannot divide by zero.")
    return a / b
