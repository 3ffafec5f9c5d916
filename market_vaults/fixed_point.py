"""WAD fixed-point arithmetic over the uint256 domain.

Every operation rounds down (floor) unless its name says otherwise, and fails
instead of wrapping or clamping when an intermediate value leaves uint256:

    mul_wad_down(a, b) = floor(a * b / WAD)
    div_wad_down(a, b) = floor(a * WAD / b)
    mul_div_down(x, y, d) = floor(x * y / d)
    mul_div_up(x, y, d) = ceil(x * y / d)
"""

from market_vaults.constants import MAX_UINT256, WAD
from market_vaults.errors import ArithmeticOverflow, DivisionByZero


def _checked_product(x: int, y: int) -> int:
    if x < 0 or y < 0:
        raise ArithmeticOverflow(f"negative operand: {x} * {y}")
    product = x * y
    if product > MAX_UINT256:
        raise ArithmeticOverflow(f"{x} * {y} overflows uint256")
    return product


def mul_div_down(x: int, y: int, denominator: int) -> int:
    if denominator == 0:
        raise DivisionByZero(f"{x} * {y} / 0")
    return _checked_product(x, y) // denominator


def mul_div_up(x: int, y: int, denominator: int) -> int:
    if denominator == 0:
        raise DivisionByZero(f"{x} * {y} / 0")
    product = _checked_product(x, y)
    return product // denominator + (product % denominator != 0)


def mul_wad_down(a: int, b: int) -> int:
    return mul_div_down(a, b, WAD)


def div_wad_down(a: int, b: int) -> int:
    return mul_div_down(a, WAD, b)
