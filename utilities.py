"""
Utilities module for the Polish notation evaluator
Signature introspection, argument kind checks and error message builders
shared by the registry and the evaluator
"""

from typing import Any, Callable, Dict, List, Optional, Union
import inspect
import types
import typing

from error_handling import (
  EvaluationFault,
  NotCallableError,
  TrailingTermsError,
  TypeMismatchError,
  UnderflowError,
)
from values import BOOLEAN, FLOAT, INTEGER, TEXT, Value, make_value


ANNOTATION_KINDS = {
  int: INTEGER,
  float: FLOAT,
  bool: BOOLEAN,
  str: TEXT,
}

ANY_KIND = "Any"

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


# ==================== ERROR MESSAGE BUILDERS ====================

def type_mismatch_error(
  func_name: str,
  position: int,
  expected: str,
  actual: Value
) -> TypeMismatchError:
  """
  Generate type mismatch error

  Args:
    func_name: Function name
    position: 1-based argument position
    expected: Expected kind
    actual: Value that was supplied

  Returns:
    TypeMismatchError with formatted message
  """
  return TypeMismatchError(
    f"'{func_name}' requires {expected} for argument {position}, got {actual.kind} {actual.value!r}"
  )


def underflow_error(func_name: str, expected: int, got: int, term=None) -> UnderflowError:
  """
  Generate the error for a function that ran out of terms

  Args:
    func_name: Function name
    expected: Declared input arity
    got: Values collected before the queue ran dry
    term: The function's own term, for the caret context
  """
  return UnderflowError(
    f"'{func_name}' requires {expected} arguments, got {got}",
    term=term
  )


def result_count_error(func_name: str, expected: int, result: Any) -> EvaluationFault:
  """Generate the error for a callable that broke its declared output arity"""
  return EvaluationFault(
    f"'{func_name}' must return {expected} values, got {result!r}"
  )


def trailing_terms_error(remaining: List) -> TrailingTermsError:
  """Generate the strict-mode error for terms the top-level resolution never reached"""
  texts = " ".join(term.text for term in remaining)
  return TrailingTermsError(
    f"Unexpected trailing terms: {texts}",
    term=remaining[0]
  )


# ==================== PARAMETER KINDS ====================

def make_param_spec(name: str, annotation: Any) -> Dict:
  """
  Describe how one parameter is checked and passed

  Args:
    name: Parameter name (for error messages)
    annotation: Resolved annotation, or inspect.Parameter.empty

  Returns:
    Dict with 'name', 'kind' (display), 'accepts' (Value -> bool) and
    'boxed' (pass the Value itself instead of its datum)

  Examples:
    make_param_spec("a", int)['kind'] -> "Integer"
    make_param_spec("v", Value)['boxed'] -> True
  """
  if annotation is inspect.Parameter.empty or annotation is Any or isinstance(annotation, str):
    return {'name': name, 'kind': ANY_KIND, 'accepts': lambda v: True, 'boxed': False}

  if annotation is Value:
    return {'name': name, 'kind': "Value", 'accepts': lambda v: True, 'boxed': True}

  if annotation is None or annotation is type(None):
    return {'name': name, 'kind': "NoneType", 'accepts': lambda v: v.value is None, 'boxed': False}

  if annotation in ANNOTATION_KINDS:
    kind = ANNOTATION_KINDS[annotation]
    return {'name': name, 'kind': kind, 'accepts': lambda v: v.kind == kind, 'boxed': False}

  origin = typing.get_origin(annotation)
  if origin is Union or origin is types.UnionType:
    members = [make_param_spec(name, member) for member in typing.get_args(annotation)]
    return {
      'name': name,
      'kind': " | ".join(member['kind'] for member in members),
      'accepts': lambda v: any(member['accepts'](v) for member in members),
      'boxed': False
    }

  cls = origin or annotation
  if not isinstance(cls, type):
    return {'name': name, 'kind': ANY_KIND, 'accepts': lambda v: True, 'boxed': False}

  return {
    'name': name,
    'kind': cls.__name__,
    'accepts': lambda v: isinstance(v.value, cls),
    'boxed': False
  }


def count_results(annotation: Any) -> Optional[int]:
  """
  Derive output arity from a return annotation

  Returns:
    Number of results, or None when the annotation is a variable-length tuple

  Examples:
    count_results(None) -> 0
    count_results(Tuple[int, int]) -> 2
    count_results(float) -> 1
  """
  if annotation is inspect.Signature.empty:
    return 1
  if annotation is None or annotation is type(None):
    return 0
  if annotation is typing.Tuple:
    return None

  if typing.get_origin(annotation) is tuple:
    args = typing.get_args(annotation)
    # Tuple[()] is reported as ((),) on older interpreters
    if args in ((), ((),)):
      return 0
    if len(args) == 2 and args[1] is Ellipsis:
      return None
    return len(args)

  return 1


def is_tuple_annotation(annotation: Any) -> bool:
  return annotation is typing.Tuple or typing.get_origin(annotation) is tuple


# ==================== SIGNATURE INTROSPECTION ====================

def get_signature(func: Callable) -> Optional[inspect.Signature]:
  """Signature with string annotations resolved where possible, or None for opaque builtins"""
  try:
    return inspect.signature(func, eval_str=True)
  except (NameError, SyntaxError, AttributeError):
    # Unresolvable forward references: keep the raw strings, they check as Any
    return inspect.signature(func)
  except (ValueError, TypeError):
    return None


def introspect_callable(
  func_name: str,
  func: Any,
  inputs: Optional[int] = None,
  outputs: Optional[int] = None
) -> Dict:
  """
  Work out input arity, output arity and parameter kinds for a callable

  Args:
    func_name: Name being registered (for error messages)
    func: The callable
    inputs: Explicit input arity, overriding the signature
    outputs: Explicit output arity, overriding the return annotation

  Returns:
    Dict with 'inputs', 'outputs', 'params' (list of param specs) and
    'unpack' (results arrive as a sequence)

  Raises:
    NotCallableError when func is not callable or its arity cannot be derived
  """
  if not callable(func):
    raise NotCallableError(f"Tried to add a {type(func).__name__} instead of a function.")

  sig = get_signature(func)

  if sig is None:
    if inputs is None:
      raise NotCallableError(
        f"Cannot read the signature of '{func_name}'; pass inputs= explicitly"
      )
    return {
      'inputs': inputs,
      'outputs': 1 if outputs is None else outputs,
      'params': [make_param_spec(f"arg{i}", inspect.Parameter.empty) for i in range(inputs)],
      'unpack': outputs is not None and outputs != 1
    }

  positional = [p for p in sig.parameters.values() if p.kind in _POSITIONAL]
  required = [p for p in positional if p.default is inspect.Parameter.empty]
  var_positional = [p for p in sig.parameters.values() if p.kind == inspect.Parameter.VAR_POSITIONAL]
  kw_required = [
    p for p in sig.parameters.values()
    if p.kind == inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
  ]

  if kw_required:
    raise NotCallableError(
      f"'{func_name}' has required keyword-only parameters: {', '.join(p.name for p in kw_required)}"
    )

  if inputs is None:
    if var_positional and not required:
      raise NotCallableError(
        f"'{func_name}' takes *{var_positional[0].name}; pass inputs= explicitly"
      )
    inputs = len(required)

  params = []
  for i in range(inputs):
    if i < len(positional):
      params.append(make_param_spec(positional[i].name, positional[i].annotation))
    elif var_positional:
      params.append(make_param_spec(var_positional[0].name, var_positional[0].annotation))
    else:
      raise NotCallableError(
        f"'{func_name}' accepts at most {len(positional)} arguments, not {inputs}"
      )

  unpack = outputs is not None and outputs != 1
  if outputs is None:
    outputs = count_results(sig.return_annotation)
    if outputs is None:
      raise NotCallableError(
        f"'{func_name}' returns a variable-length tuple; pass outputs= explicitly"
      )
    unpack = is_tuple_annotation(sig.return_annotation)

  return {
    'inputs': inputs,
    'outputs': outputs,
    'params': params,
    'unpack': unpack
  }


# ==================== VALIDATION UTILITIES ====================

def validate_function_args(
  func_name: str,
  args: List[Value],
  params: List[Dict]
) -> None:
  """
  Validate argument kinds against the declared parameters

  Raises:
    TypeMismatchError if any argument is of the wrong kind
  """
  for i, (arg, spec) in enumerate(zip(args, params)):
    if not spec['accepts'](arg):
      raise type_mismatch_error(func_name, i + 1, spec['kind'], arg)


def box_results(func_name: str, result: Any, outputs: int, unpack: bool) -> List[Value]:
  """Wrap a callable's return value into exactly `outputs` Values"""
  if outputs == 0:
    return []
  if not unpack:
    return [make_value(result)]

  if not isinstance(result, (tuple, list)) or len(result) != outputs:
    raise result_count_error(func_name, outputs, result)
  return [make_value(item) for item in result]


def adapt_callable(func_name: str, func: Callable, spec: Dict) -> Callable[[List[Value]], List[Value]]:
  """
  Wrap a typed Python callable into a uniform Values-in, Values-out closure

  Kind checks and boxing happen here; the evaluator only counts Values.
  """
  params = spec['params']
  outputs = spec['outputs']
  unpack = spec['unpack']

  def call(args: List[Value]) -> List[Value]:
    validate_function_args(func_name, args, params)
    raw = [arg if param['boxed'] else arg.value for arg, param in zip(args, params)]
    return box_results(func_name, func(*raw), outputs, unpack)

  return call
