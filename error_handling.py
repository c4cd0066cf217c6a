"""
Error taxonomy for the Polish notation evaluator
Exception classes plus dict-based error reports for the command line
"""

from typing import Dict, List, Optional


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class PolishError(Exception):
    """Base class for every failure raised while registering or evaluating.

    ``expression`` and ``term`` are optional; when both are known the error
    renders a caret line under the offending term.
    """

    kind = "PolishError"

    def __init__(self, message: str, expression: Optional[str] = None, term=None):
        self.message = message
        self.expression = expression
        self.term = term
        super().__init__(message)

    def __str__(self) -> str:
        if self.expression is not None and self.term is not None:
            context = get_term_context(self.expression, self.term.start, self.term.end)
            return f"{self.message}\n{context}"
        return self.message


class PolishParseError(PolishError):
    """A term is not a function, not a constant, and fails every literal kind"""

    kind = "ParseError"


class TrailingTermsError(PolishParseError):
    """Strict mode: terms were left over after the top-level resolution"""

    kind = "ParseError"


class UnderflowError(PolishError):
    """The term queue ran out while a function still needed arguments"""

    kind = "Underflow"


class NameCollisionError(PolishError):
    """A name was given to both a function and a constant"""

    kind = "NameCollision"


class FunctionAlreadyRegisteredError(PolishError):
    """A function name was registered twice"""

    kind = "FunctionAlreadyRegistered"


class NotCallableError(PolishError, TypeError):
    """add_func was given something that cannot be adapted into a function"""

    kind = "NotCallable"


class TypeMismatchError(PolishError, TypeError):
    """Argument kinds do not match the declared parameters, or a Value was
    read with the wrong accessor"""

    kind = "TypeMismatch"


class EvaluationFault(PolishError):
    """Any other failure raised by a registered callable during eval"""

    kind = "EvaluationFault"

    def __init__(self, message: str, expression: Optional[str] = None, term=None,
                 stack: Optional[str] = None):
        self.stack = stack
        super().__init__(message, expression, term)


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_term_context(expression: str, start: int, end: int) -> str:
    """Show the expression with a caret marker under characters [start, end)"""
    width = max(1, end - start)
    return f"  {expression}\n  {' ' * start}{'^' * width}"


def generate_hints(error: PolishError) -> List[str]:
    """Suggest a fix for the common failure kinds"""
    hints = []

    if isinstance(error, TrailingTermsError):
        hints.append("Remove the extra terms, or evaluate without strict mode")
    elif isinstance(error, PolishParseError):
        hints.append("Register the term as a function or constant, or add Text to the parse order")
    elif isinstance(error, UnderflowError):
        hints.append("A function needs more arguments than the expression supplies")
    elif isinstance(error, TypeMismatchError):
        hints.append("'1' parses as an Integer and '1.0' as a Float; check the literal kinds")
    elif isinstance(error, NameCollisionError):
        hints.append("Functions and constants share one namespace; pick another name")
    elif isinstance(error, FunctionAlreadyRegisteredError):
        hints.append("Functions cannot be reassigned; use a fresh context")

    return hints


def make_error_report(error: PolishError) -> Dict:
    """Create an immutable error report from an evaluator exception"""
    context = None
    if error.expression is not None and error.term is not None:
        context = get_term_context(error.expression, error.term.start, error.term.end)

    return {
        'kind': error.kind,
        'message': error.message,
        'expression': error.expression,
        'term': error.term.text if error.term is not None else None,
        'context': context,
        'hints': generate_hints(error),
        'stack': getattr(error, 'stack', None),
    }


def format_error_report(report: Dict, show_stack: bool = False) -> str:
    """Format an error report as a string"""
    error_msg = f"{report['kind']}: {report['message']}\n"

    if report['context']:
        error_msg += f"{report['context']}\n"
    elif report['expression'] is not None:
        error_msg += f"  Expression: {report['expression']}\n"

    if report['hints']:
        error_msg += "  Hints:\n"
        for hint in report['hints']:
            error_msg += f"    - {hint}\n"

    if show_stack and report['stack']:
        error_msg += report['stack']

    return error_msg
