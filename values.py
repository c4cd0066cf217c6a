"""
Runtime values for the Polish notation evaluator
Every evaluation result is an immutable Value tagged with its kind
"""

from dataclasses import dataclass
from typing import Any, Optional

from error_handling import TypeMismatchError


# ============================================================================
# KINDS
# ============================================================================

INTEGER = "Integer"
FLOAT = "Float"
BOOLEAN = "Boolean"
TEXT = "Text"

# Text accepts anything, so it must stay last to keep the numeric kinds reachable
DEFAULT_PARSE_ORDER = (INTEGER, FLOAT, TEXT)


def kind_of(datum: Any) -> str:
  """Classify a Python object; bool is checked before int since bool subclasses it"""
  if isinstance(datum, bool):
    return BOOLEAN
  if isinstance(datum, int):
    return INTEGER
  if isinstance(datum, float):
    return FLOAT
  if isinstance(datum, str):
    return TEXT
  return type(datum).__name__


# ============================================================================
# VALUE
# ============================================================================

@dataclass(frozen=True)
class Value:
  """One evaluation result"""
  kind: str
  value: Any

  def __str__(self) -> str:
    return format_value(self)

  def as_integer(self) -> int:
    return self._expect(INTEGER)

  def as_float(self) -> float:
    return self._expect(FLOAT)

  def as_boolean(self) -> bool:
    return self._expect(BOOLEAN)

  def as_text(self) -> str:
    return self._expect(TEXT)

  def _expect(self, kind: str) -> Any:
    if self.kind != kind:
      raise TypeMismatchError(
        f"Cannot read {self.kind} value {self.value!r} as {kind}"
      )
    return self.value


def make_value(datum: Any, kind: Optional[str] = None) -> Value:
  """Box a Python object; Values pass through unchanged"""
  if isinstance(datum, Value):
    return datum
  return Value(kind or kind_of(datum), datum)


def format_value(value: Value) -> str:
  """Render a Value the way it would be written in an expression"""
  if value.kind == BOOLEAN:
    return "true" if value.value else "false"
  return str(value.value)
