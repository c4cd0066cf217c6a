"""
Polish notation interpreter
Function registry, constant table and the recursive term evaluator.
A Context owns all registrations; each eval call gets its own term queue.
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
import traceback

from error_handling import (
  EvaluationFault,
  FunctionAlreadyRegisteredError,
  NameCollisionError,
  PolishError,
  UnderflowError,
)
from parsing import Term, coerce_literal, normalize_kind, tokenize
from utilities import (
  adapt_callable,
  introspect_callable,
  trailing_terms_error,
  underflow_error,
)
from values import DEFAULT_PARSE_ORDER, Value, format_value, make_value


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class FunctionDescriptor:
  """A registered function: arity, parameter kinds and the adapted callable"""
  name: str
  inputs: int
  outputs: int
  params: Tuple[Dict, ...]
  call: Callable[[List[Value]], List[Value]]

  @property
  def signature(self) -> str:
    kinds = " ".join(param['kind'] for param in self.params) or "()"
    return f"{kinds} -> {self.outputs}"


def make_function_descriptor(
  name: str,
  func: Any,
  inputs: Optional[int] = None,
  outputs: Optional[int] = None
) -> FunctionDescriptor:
  """Introspect func once and capture its arity and kind checks"""
  spec = introspect_callable(name, func, inputs, outputs)
  return FunctionDescriptor(
    name=name,
    inputs=spec['inputs'],
    outputs=spec['outputs'],
    params=tuple(spec['params']),
    call=adapt_callable(name, func, spec)
  )


def make_evaluation_state(expression: str, terms: List[Term], debug: bool = False) -> Dict:
  """Create the per-call state: the term queue and the recursion depth"""
  return {
    'expression': expression,
    'terms': deque(terms),
    'depth': 0,
    'debug': debug
  }


def trace(state: Dict, message: str) -> None:
  if state['debug']:
    print(f"{'  ' * state['depth']}{message}")


def format_values(values: List[Value]) -> str:
  return "[" + ", ".join(format_value(v) for v in values) + "]"


# ============================================================================
# EVALUATOR
# ============================================================================

def sub_eval(ctx: 'Context', state: Dict) -> List[Value]:
  """
  Resolve the head of the term queue.

  A function pulls further resolutions until it has at least its input arity.
  Values beyond that are carried: they follow the function's own outputs in
  the result instead of being dropped.
  """
  terms = state['terms']
  term = terms.popleft()

  descriptor = ctx.describe_function(term.text)
  if descriptor is not None:
    trace(state, f"call {descriptor.name} ({descriptor.inputs} -> {descriptor.outputs})")

    args: List[Value] = []
    state['depth'] += 1
    try:
      while len(args) < descriptor.inputs:
        if not terms:
          raise underflow_error(descriptor.name, descriptor.inputs, len(args), term)
        args.extend(sub_eval(ctx, state))
    finally:
      state['depth'] -= 1

    carried = args[descriptor.inputs:]
    args = args[:descriptor.inputs]
    if carried:
      trace(state, f"carry {format_values(carried)} past {descriptor.name}")

    results = descriptor.call(args) + carried
    trace(state, f"{descriptor.name} => {format_values(results)}")
    return results

  value = ctx.get_value(term.text)
  if value is not None:
    trace(state, f"constant {term.text} = {format_value(value)}")
    return [value]

  value = coerce_literal(term, ctx.parse_order)
  trace(state, f"literal {format_value(value)} : {value.kind}")
  return [value]


# ============================================================================
# CONTEXT
# ============================================================================

class Context:
  """
  Functions, constants and the literal parse order used to evaluate Polish
  notation expressions.

    ctx = make_context()
    ctx.add_func("+", lambda a, b: a + b)
    ctx.add_func("*", lambda a, b: a * b)
    ctx.set_value("pi", math.pi)
    ctx.eval("* 2.0 pi")        # [Value("Float", 6.283...)]

  Contexts are independent of each other. Registration mutates the context in
  place, so populate it before sharing it.
  """

  def __init__(self, strict: bool = False, debug: bool = False):
    self._functions: Dict[str, FunctionDescriptor] = {}
    self._values: Dict[str, Value] = {}
    self.parse_order: List[str] = list(DEFAULT_PARSE_ORDER)
    self.strict = strict
    self.debug = debug

  # -------------------- registration --------------------

  def add_func(self, name: str, func: Any, inputs: Optional[int] = None,
               outputs: Optional[int] = None) -> None:
    """Register a function. Functions cannot be reassigned.

    Input arity comes from the positional parameters without defaults and
    output arity from the return annotation (None -> 0, Tuple[A, B] -> 2,
    anything else -> 1); inputs= and outputs= override both.
    """
    if name in self._functions:
      raise FunctionAlreadyRegisteredError(
        f"Tried to add the function '{name}' more than once."
      )
    if name in self._values:
      raise NameCollisionError(
        f"Tried to give the name '{name}' to a function and a value."
      )
    self._functions[name] = make_function_descriptor(name, func, inputs, outputs)

  def set_value(self, name: str, value: Any) -> None:
    """Bind a constant. Constants can be rebound at any time."""
    if name in self._functions:
      raise NameCollisionError(
        f"Tried to give the name '{name}' to a function and a value."
      )
    self._values[name] = make_value(value)

  def set_parse_order(self, *kinds: str) -> None:
    """Set the order in which literal kinds are tried for bare terms.

    The default is Integer, Float, Text. Float, Text makes '1' a Float.
    Text accepts anything, so kinds listed after it are never tried.
    """
    self.parse_order = [normalize_kind(kind) for kind in kinds]

  # -------------------- lookup --------------------

  def has_function(self, name: str) -> bool:
    return name in self._functions

  def describe_function(self, name: str) -> Optional[FunctionDescriptor]:
    return self._functions.get(name)

  def list_functions(self) -> List[str]:
    return list(self._functions.keys())

  def get_value(self, name: str) -> Optional[Value]:
    return self._values.get(name)

  def list_values(self) -> Dict[str, Value]:
    return dict(self._values)

  # -------------------- evaluation --------------------

  def eval(self, expression: str) -> List[Value]:
    """
    Evaluate a Polish notation expression.

    Returns every Value produced by the outermost term, including values
    carried past it. Taxonomy errors propagate as raised; any other
    exception from a registered callable becomes an EvaluationFault.
    """
    terms = tokenize(expression)
    state = make_evaluation_state(expression, terms, self.debug)

    try:
      if not terms:
        raise UnderflowError("Cannot evaluate an empty expression")

      results = sub_eval(self, state)

      if state['terms']:
        if self.strict:
          raise trailing_terms_error(list(state['terms']))
        trace(state, f"ignoring {len(state['terms'])} trailing term(s)")
    except PolishError as e:
      if e.expression is None:
        e.expression = expression
      if isinstance(e, EvaluationFault) and e.stack is None:
        e.stack = traceback.format_exc()
      raise
    except Exception as e:
      raise EvaluationFault(
        f"Failed to evaluate ({expression}): {e}.",
        expression=expression,
        stack=traceback.format_exc()
      ) from e

    return results


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def make_context(strict: bool = False, debug: bool = False) -> Context:
  """Make a new Context with no functions or values"""
  return Context(strict=strict, debug=debug)


def create_debug_context(strict: bool = False) -> Context:
  """Make a new Context that traces every resolution step"""
  return make_context(strict=strict, debug=True)
