import math
from typing import Iterable

NEG_INF = float("-inf")


def log_add(a: float, b: float) -> float:
    """
    Return ln(exp(a) + exp(b)) without leaving log space.

    The larger operand is factored out so the argument to exp() is never
    positive. -inf is the identity (it stands for zero mass).
    """
    if a == NEG_INF:
        return b
    if b == NEG_INF:
        return a
    if a < b:
        return b + math.log1p(math.exp(a - b))
    return a + math.log1p(math.exp(b - a))


def linear_add(a: float, b: float) -> float:
    return a + b


def safe_log(x: float) -> float:
    """ln(x), with ln(0) mapped to -inf instead of raising."""
    if x == 0.0:
        return NEG_INF
    if x < 0.0:
        raise ValueError(f"cannot take the log of negative mass {x}")
    return math.log(x)


def total_mass(log_masses: Iterable[float]) -> float:
    return math.fsum(math.exp(m) for m in log_masses)
