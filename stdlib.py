"""
Polish Standard Library
Preset function and constant libraries, installed through the public
registration API of a Context
"""

from typing import Callable, Dict
import math

from interpreter import Context


# ============================================================================
# BOOLEAN FUNCTIONS
# ============================================================================

def bool_and(a: bool, b: bool) -> bool:
  return a and b


def bool_or(a: bool, b: bool) -> bool:
  return a or b


def bool_xor(a: bool, b: bool) -> bool:
  return a != b


def bool_not(a: bool) -> bool:
  return not a


# ============================================================================
# FLOAT FUNCTIONS
# ============================================================================

def float_add(a: float, b: float) -> float:
  return a + b


def float_sub(a: float, b: float) -> float:
  return a - b


def float_mul(a: float, b: float) -> float:
  return a * b


def float_div(a: float, b: float) -> float:
  """IEEE division: a zero divisor gives a signed infinity, or NaN for 0/0"""
  if b == 0.0:
    if a == 0.0 or math.isnan(a):
      return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)
  return a / b


def float_pow(base: float, exp: float) -> float:
  """math.pow with IEEE results where it would raise"""
  odd = exp % 2 == 1
  try:
    return math.pow(base, exp)
  except OverflowError:
    return -math.inf if base < 0.0 and odd else math.inf
  except ValueError:
    # Zero to a negative power, or a negative base to a fractional power
    if base == 0.0:
      return math.copysign(math.inf, base) if odd else math.inf
    return math.nan


def _ieee_log(log: Callable[[float], float], x: float) -> float:
  if x == 0.0:
    return -math.inf
  if x < 0.0:
    return math.nan
  return log(x)


def float_ln(x: float) -> float:
  return _ieee_log(math.log, x)


def float_log2(x: float) -> float:
  return _ieee_log(math.log2, x)


def float_log10(x: float) -> float:
  return _ieee_log(math.log10, x)


def float_abs(x: float) -> float:
  return math.fabs(x)


def float_lt(a: float, b: float) -> bool:
  return a < b


def float_le(a: float, b: float) -> bool:
  return a <= b


def float_gt(a: float, b: float) -> bool:
  return a > b


def float_ge(a: float, b: float) -> bool:
  return a >= b


def float_eq(a: float, b: float) -> bool:
  return a == b


# ============================================================================
# INTEGER FUNCTIONS
# ============================================================================

def int_add(a: int, b: int) -> int:
  return a + b


def int_sub(a: int, b: int) -> int:
  return a - b


def int_mul(a: int, b: int) -> int:
  return a * b


def int_div(a: int, b: int) -> int:
  """Integer division truncating toward zero (-7 / 2 is -3)"""
  quotient = abs(a) // abs(b)
  return -quotient if (a < 0) != (b < 0) else quotient


def int_pow(base: int, exp: int) -> int:
  if exp < 0:
    raise ValueError("Cannot raise to a negative power when using integer exponentiation")
  return base ** exp


def int_abs(a: int) -> int:
  return -a if a < 0 else a


def int_lt(a: int, b: int) -> bool:
  return a < b


def int_le(a: int, b: int) -> bool:
  return a <= b


def int_gt(a: int, b: int) -> bool:
  return a > b


def int_ge(a: int, b: int) -> bool:
  return a >= b


def int_eq(a: int, b: int) -> bool:
  return a == b


# ============================================================================
# PRESET REGISTRIES
# ============================================================================

BOOLEAN_FUNCTIONS: Dict[str, Callable] = {
  "&&": bool_and,
  "||": bool_or,
  "^^": bool_xor,
  "!": bool_not,
}

FLOAT_MATH_FUNCTIONS: Dict[str, Callable] = {
  "+": float_add,
  "-": float_sub,
  "*": float_mul,
  "/": float_div,
  "^": float_pow,
  "ln": float_ln,
  "log2": float_log2,
  "log10": float_log10,
  "abs": float_abs,
  "<": float_lt,
  "<=": float_le,
  ">": float_gt,
  ">=": float_ge,
  "==": float_eq,
}

FLOAT_MATH_CONSTANTS: Dict[str, float] = {
  "pi": math.pi,
  "e": math.e,
}

INT_MATH_FUNCTIONS: Dict[str, Callable] = {
  "+": int_add,
  "-": int_sub,
  "*": int_mul,
  "/": int_div,
  "^": int_pow,
  "abs": int_abs,
  "<": int_lt,
  "<=": int_le,
  ">": int_gt,
  ">=": int_ge,
  "==": int_eq,
}


def add_boolean_context(ctx: Context) -> None:
  """Add && (and), || (or), ^^ (xor) and ! (not)"""
  for name, func in BOOLEAN_FUNCTIONS.items():
    ctx.add_func(name, func)


def add_float_math_context(ctx: Context) -> None:
  """Add float arithmetic, logarithms and comparisons, and the constants pi and e"""
  for name, func in FLOAT_MATH_FUNCTIONS.items():
    ctx.add_func(name, func)
  for name, value in FLOAT_MATH_CONSTANTS.items():
    ctx.set_value(name, value)


def add_int_math_context(ctx: Context) -> None:
  """Add integer arithmetic and comparisons"""
  for name, func in INT_MATH_FUNCTIONS.items():
    ctx.add_func(name, func)


PRESETS: Dict[str, Callable[[Context], None]] = {
  "bool": add_boolean_context,
  "float": add_float_math_context,
  "int": add_int_math_context,
}


def list_presets() -> list:
  """List all available preset names"""
  return list(PRESETS.keys())
