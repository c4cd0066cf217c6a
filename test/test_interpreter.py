"""
Evaluator tests: registration, constants, arity, carry-forward and the
error boundary
"""

from typing import Tuple

import pytest
from interpreter import Context, create_debug_context, make_context
from error_handling import (
  EvaluationFault,
  FunctionAlreadyRegisteredError,
  NameCollisionError,
  NotCallableError,
  PolishParseError,
  TrailingTermsError,
  TypeMismatchError,
  UnderflowError,
)
from values import FLOAT, INTEGER, TEXT, Value


def raw(values):
  return [v.value for v in values]


def rev3(a, b, c) -> Tuple[int, int, int]:
  return c, b, a


class TestLiterals:

  def test_integer_literal(self, context):
    assert context.eval("42") == [Value(INTEGER, 42)]

  def test_float_literal(self, context):
    assert context.eval("4.25") == [Value(FLOAT, 4.25)]

  def test_text_literal(self, context):
    assert context.eval("hello") == [Value(TEXT, "hello")]

  def test_parse_order(self, context):
    context.set_parse_order(FLOAT, TEXT)
    assert context.eval("1") == [Value(FLOAT, 1.0)]

  def test_parse_order_aliases(self, context):
    context.set_parse_order("float", "string")
    assert context.parse_order == [FLOAT, TEXT]

  def test_no_text_kind(self, context):
    context.set_parse_order(INTEGER)
    with pytest.raises(PolishParseError) as exc_info:
      context.eval("abc")
    assert exc_info.value.expression == "abc"
    assert exc_info.value.term.text == "abc"


class TestFunctions:

  def test_integer_add(self, context):
    context.add_func("+", lambda a, b: a + b)
    assert context.eval("+ 1 2") == [Value(INTEGER, 3)]

  def test_float_add(self, context):
    def add(a: float, b: float) -> float:
      return a + b
    context.add_func("+", add)
    assert context.eval("+ 1.0 2.0") == [Value(FLOAT, 3.0)]

  def test_float_add_rejects_integers(self, context):
    def add(a: float, b: float) -> float:
      return a + b
    context.add_func("+", add)
    with pytest.raises(TypeMismatchError, match="requires Float for argument 1"):
      context.eval("+ 1 2")

  def test_nested_calls(self, context):
    context.add_func("-", lambda a, b: a - b)
    context.add_func("*", lambda a, b: a * b)
    # 3 * (10 - 4)
    assert raw(context.eval("* 3 - 10 4")) == [18]

  def test_function_of_zero_arguments(self, context):
    context.add_func("answer", lambda: 42)
    assert raw(context.eval("answer")) == [42]

  def test_underflow(self, context):
    context.add_func("+", lambda a, b: a + b)
    with pytest.raises(UnderflowError, match="requires 2 arguments, got 1"):
      context.eval("+ 1")

  def test_nested_underflow(self, context):
    context.add_func("+", lambda a, b: a + b)
    with pytest.raises(UnderflowError):
      context.eval("+ 1 + 2")

  def test_empty_expression(self, context):
    with pytest.raises(UnderflowError):
      context.eval("   ")

  def test_underflow_points_at_function(self, context):
    context.add_func("+", lambda a, b: a + b)
    with pytest.raises(UnderflowError) as exc_info:
      context.eval("+ 1 + 2")
    assert exc_info.value.term.start == 4
    assert "^" in str(exc_info.value)

  def test_value_parameter_receives_box(self, context):
    def kind(v: Value) -> str:
      return v.kind
    context.add_func("kind", kind)
    assert raw(context.eval("kind 1.5")) == [FLOAT]


class TestMultipleResults:

  def test_two_outputs(self, context):
    def make_two() -> Tuple[int, int]:
      return 1, 2
    context.add_func("makeTwo", make_two)
    assert context.eval("makeTwo") == [Value(INTEGER, 1), Value(INTEGER, 2)]

  def test_zero_outputs(self, context):
    def make_zero() -> None:
      pass
    context.add_func("makeZero", make_zero)
    assert context.eval("makeZero") == []

  def test_outputs_override(self, context):
    context.add_func("makeTwo", lambda: (1, 2), outputs=2)
    assert raw(context.eval("makeTwo")) == [1, 2]

  def test_carry_forward(self, context):
    """rev3 yields [3, 2, 1]; f1 takes 3 and the rest follows its output"""
    context.add_func("f1", lambda x: x * 10)
    context.add_func("rev3", rev3)
    assert raw(context.eval("f1 rev3 1 2 3")) == [30, 2, 1]

  def test_multi_output_feeds_binary(self, context):
    context.add_func("+", lambda a, b: a + b)
    context.add_func("pair", lambda: (4, 5), outputs=2)
    assert raw(context.eval("+ pair")) == [9]

  def test_carry_through_two_levels(self, context):
    context.add_func("neg", lambda x: -x)
    context.add_func("rev3", rev3)
    # inner neg carries [2, 1]; outer neg consumes -3 and carries them again
    assert raw(context.eval("neg neg rev3 1 2 3")) == [3, 2, 1]

  def test_zero_output_argument_is_skipped(self, context):
    """A zero-output call contributes nothing, so further terms are pulled"""
    seen = []
    def note() -> None:
      seen.append(True)
    context.add_func("note", note)
    context.add_func("neg", lambda x: -x)
    assert raw(context.eval("neg note 4")) == [-4]
    assert seen == [True]

  def test_wrong_result_count_is_fault(self, context):
    context.add_func("bad", lambda: (1, 2, 3), outputs=2)
    with pytest.raises(EvaluationFault, match="must return 2 values"):
      context.eval("bad")


class TestConstants:

  def test_constant_lookup(self, context):
    context.set_value("pi", 3.14)
    assert context.eval("pi") == [Value(FLOAT, 3.14)]

  def test_rebinding(self, context):
    context.set_value("pi", 3)
    context.set_value("pi", 4)
    assert context.eval("pi") == [Value(INTEGER, 4)]

  def test_constant_as_argument(self, context):
    context.add_func("+", lambda a, b: a + b)
    context.set_value("x", 10)
    assert raw(context.eval("+ x x")) == [20]

  def test_constant_shadows_literal(self, context):
    context.set_value("1", "one")
    assert context.eval("1") == [Value(TEXT, "one")]

  def test_value_stored_as_is(self, context):
    context.set_value("flag", Value("Flag", "up"))
    assert context.eval("flag") == [Value("Flag", "up")]

  def test_list_values_is_a_copy(self, context):
    context.list_values()["x"] = Value(INTEGER, 1)
    assert context.get_value("x") is None


class TestRegistrationErrors:

  def test_function_twice(self, context):
    context.add_func("f", lambda: 1)
    with pytest.raises(FunctionAlreadyRegisteredError, match="more than once"):
      context.add_func("f", lambda: 2)
    assert raw(context.eval("f")) == [1]

  def test_function_then_constant(self, context):
    context.add_func("x", lambda: 1)
    with pytest.raises(NameCollisionError):
      context.set_value("x", 1)

  def test_constant_then_function(self, context):
    context.set_value("x", 1)
    with pytest.raises(NameCollisionError):
      context.add_func("x", lambda: 1)

  def test_not_callable(self, context):
    with pytest.raises(NotCallableError, match="instead of a function"):
      context.add_func("f", 42)
    assert not context.has_function("f")


class TestEvaluationFaults:

  def test_exception_becomes_fault(self, context):
    context.add_func("/", lambda a, b: a / b)
    with pytest.raises(EvaluationFault) as exc_info:
      context.eval("/ 1 0")
    fault = exc_info.value
    assert fault.message.startswith("Failed to evaluate (/ 1 0):")
    assert fault.expression == "/ 1 0"
    assert "ZeroDivisionError" in fault.stack
    assert isinstance(fault.__cause__, ZeroDivisionError)

  def test_deliberate_abort(self, context):
    def boom():
      raise RuntimeError("stop here")
    context.add_func("boom", boom)
    with pytest.raises(EvaluationFault, match="stop here"):
      context.eval("boom")

  def test_runaway_recursion(self, context):
    def forever(n):
      return forever(n + 1)
    context.add_func("forever", forever)
    with pytest.raises(EvaluationFault):
      context.eval("forever 0")

  def test_context_usable_after_fault(self, context):
    context.add_func("/", lambda a, b: a / b)
    with pytest.raises(EvaluationFault):
      context.eval("/ 1 0")
    assert raw(context.eval("/ 1 4")) == [0.25]


class TestTrailingTerms:

  def test_permissive_ignores_trailing(self, context):
    context.add_func("+", lambda a, b: a + b)
    assert raw(context.eval("+ 1 2 3 4")) == [3]

  def test_strict_rejects_trailing(self):
    ctx = make_context(strict=True)
    ctx.add_func("+", lambda a, b: a + b)
    with pytest.raises(TrailingTermsError, match="Unexpected trailing terms: 3 4"):
      ctx.eval("+ 1 2 3 4")
    assert raw(ctx.eval("+ 1 2")) == [3]

  def test_trailing_is_a_parse_error(self):
    assert issubclass(TrailingTermsError, PolishParseError)


class TestWhitespaceAndIsolation:

  def test_whitespace_insensitive(self, context):
    context.add_func("-", lambda a, b: a - b)
    assert context.eval("- 10 4") == context.eval("   -\t10     4  ")

  def test_contexts_are_isolated(self):
    first = make_context()
    second = make_context()
    first.add_func("f", lambda: "first")
    second.add_func("f", lambda: "second")
    first.set_value("k", 1)
    assert raw(first.eval("f")) == ["first"]
    assert raw(second.eval("f")) == ["second"]
    assert second.eval("k") == [Value(TEXT, "k")]

  def test_no_state_left_between_calls(self, context):
    context.add_func("+", lambda a, b: a + b)
    context.eval("+ 1 2 99")
    assert raw(context.eval("+ 5 5")) == [10]

  def test_reentrant_eval(self, context):
    """A callable may evaluate another expression on the same context"""
    context.add_func("+", lambda a, b: a + b)
    context.add_func("twice", lambda x: context.eval(f"+ {x} {x}")[0].value)
    assert raw(context.eval("+ twice 3 1")) == [7]


class TestDebugTrace:

  def test_trace_output(self, capsys):
    ctx = create_debug_context()
    ctx.add_func("f1", lambda x: x)
    ctx.add_func("rev3", rev3)
    ctx.eval("f1 rev3 1 2 3")
    out = capsys.readouterr().out
    assert "call f1 (1 -> 1)" in out
    assert "  call rev3 (3 -> 3)" in out
    assert "literal 1 : Integer" in out
    assert "carry [2, 1] past f1" in out

  def test_quiet_by_default(self, context, capsys):
    context.eval("1")
    assert capsys.readouterr().out == ""

  def test_context_class(self):
    assert isinstance(make_context(), Context)
    assert create_debug_context().debug
