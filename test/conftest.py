"""
Test configuration for the Polish notation evaluator tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import make_context
from stdlib import add_boolean_context, add_float_math_context, add_int_math_context


@pytest.fixture
def context():
  """A fresh, empty context for each test"""
  return make_context()


@pytest.fixture
def float_context():
  ctx = make_context()
  add_float_math_context(ctx)
  add_boolean_context(ctx)
  return ctx


@pytest.fixture
def int_context():
  ctx = make_context()
  add_int_math_context(ctx)
  add_boolean_context(ctx)
  return ctx
