"""
Polish notation term parsing
Whitespace tokenizer with source spans, and pyparsing grammars used to coerce
bare terms into literal Values
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Sequence

from pyparsing import CaselessKeyword, ParseException, ParserElement, Regex

from error_handling import PolishParseError
from values import BOOLEAN, FLOAT, INTEGER, TEXT, Value


@dataclass(frozen=True)
class Term:
    """One whitespace-delimited token and its character span in the expression"""
    text: str
    start: int
    end: int

    def __str__(self) -> str:
        return self.text


# ============================================================================
# TOKENIZER
# ============================================================================

_TERM_PATTERN = re.compile(r'\S+')


def tokenize(expression: str) -> List[Term]:
    """Split an expression on whitespace, keeping left-to-right order.

    There is no quoting, escaping or comment syntax: every run of
    non-whitespace characters is one term.
    """
    return [Term(m.group(0), m.start(), m.end()) for m in _TERM_PATTERN.finditer(expression)]


# ============================================================================
# LITERAL GRAMMARS
# ============================================================================

# Optional sign then ASCII digits only
integer_literal = Regex(r'[+-]?[0-9]+').set_parse_action(lambda t: int(t[0]))

# ASCII digits with optional fraction and exponent, or the inf/nan spellings float() accepts
float_literal = Regex(
    r'[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)',
    flags=re.IGNORECASE,
).set_parse_action(lambda t: float(t[0]))

boolean_literal = (CaselessKeyword("true") | CaselessKeyword("false")).set_parse_action(
    lambda t: t[0] == "true"
)

LITERAL_GRAMMARS: Dict[str, ParserElement] = {
    INTEGER: integer_literal,
    FLOAT: float_literal,
    BOOLEAN: boolean_literal,
}

KIND_ALIASES = {
    "integer": INTEGER,
    "int": INTEGER,
    "float": FLOAT,
    "float64": FLOAT,
    "boolean": BOOLEAN,
    "bool": BOOLEAN,
    "text": TEXT,
    "string": TEXT,
    "str": TEXT,
}


def normalize_kind(kind: str) -> str:
    """Map a case-insensitive alias ('int', 'string', ...) to its kind.

    Unknown names are returned unchanged so the failure surfaces when the
    parse order actually reaches them.
    """
    if not isinstance(kind, str):
        return kind
    return KIND_ALIASES.get(kind.lower(), kind)


def parse_kind_list(text: str) -> List[str]:
    """Parse a comma separated parse order such as 'float,text'"""
    return [normalize_kind(part.strip()) for part in text.split(',') if part.strip()]


def coerce_literal(term: Term, parse_order: Sequence[str]) -> Value:
    """Turn a bare term into a Value using the first kind in parse_order that parses it"""
    for kind in parse_order:
        if kind == TEXT:
            return Value(TEXT, term.text)

        grammar = LITERAL_GRAMMARS.get(kind)
        if grammar is None:
            raise PolishParseError(f"Unknown literal kind: {kind!r}", term=term)

        try:
            result = grammar.parse_string(term.text, parse_all=True)
        except ParseException:
            continue
        return Value(kind, result[0])

    raise PolishParseError(f"Unable to parse term: '{term.text}'", term=term)


# ============================================================================
# SCRIPT FILES
# ============================================================================

def preprocess_script(text: str) -> List[str]:
    """Split a script into expressions: one per line, '#' comments and blank lines removed"""
    expressions = []

    for line in text.split('\n'):
        if '#' in line:
            line = line[:line.index('#')]

        line = line.strip()
        if line:
            expressions.append(line)

    return expressions
