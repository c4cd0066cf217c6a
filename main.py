"""
Polish Notation Evaluator - Main Entry Point
Evaluate prefix expressions from the command line, a script file or a REPL
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import PolishError, format_error_report, make_error_report
from interpreter import Context, make_context
from parsing import Term, coerce_literal, parse_kind_list, preprocess_script
from stdlib import PRESETS, list_presets
from values import Value, format_value

VERSION = "polish 0.1.0"

DEFAULT_PRESETS = ["float", "bool"]

REPL_COMMANDS = [":env", ":funcs", ":order", ":let", ":strict", ":help", "exit"]


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='Evaluate Polish (prefix) notation expressions',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s -e "* 2.0 pi"                    # Evaluate one expression
  %(prog)s --preset int -e "^ 5 5"          # Integer arithmetic
  %(prog)s --parse-order float,text -e "/ 1 2"
  %(prog)s script.pn                        # One expression per line
  %(prog)s -i --debug                       # Interactive mode with tracing
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='File with one expression per line (# starts a comment)'
  )

  parser.add_argument(
      '-e', '--eval',
      action='append',
      default=[],
      metavar='EXPR',
      help='Evaluate EXPR and print the results (repeatable)'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--preset',
      action='append',
      choices=list_presets() + ["none"],
      help='Function library to install (repeatable, default: float and bool)'
  )

  parser.add_argument(
      '--parse-order',
      type=parse_kind_list,
      metavar='KIND[,KIND...]',
      help='Literal kinds tried for bare terms (default: integer,float,text)'
  )

  parser.add_argument(
      '--define',
      action='append',
      default=[],
      metavar='NAME=LITERAL',
      help='Bind a constant before evaluating (repeatable)'
  )

  parser.add_argument(
      '--strict',
      action='store_true',
      help='Reject terms left over after the outermost function'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace every resolution step'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def define_constant(ctx: Context, spec: str) -> None:
  """Bind NAME=LITERAL, coercing the literal with the context's parse order"""
  if '=' not in spec:
    raise ValueError(f"Expected NAME=LITERAL, got '{spec}'")
  name, literal = spec.split('=', 1)
  name = name.strip()
  literal = literal.strip()
  if not name or not literal:
    raise ValueError(f"Expected NAME=LITERAL, got '{spec}'")
  ctx.set_value(name, coerce_literal(Term(literal, 0, len(literal)), ctx.parse_order))


def build_context(args: argparse.Namespace) -> Context:
  """Create a context from command line options"""
  ctx = make_context(strict=args.strict, debug=args.debug)

  if args.parse_order:
    ctx.set_parse_order(*args.parse_order)

  for preset in args.preset or DEFAULT_PRESETS:
    if preset != "none":
      PRESETS[preset](ctx)

  for spec in args.define:
    define_constant(ctx, spec)

  return ctx


def format_results(values: List[Value]) -> str:
  """Space separated values, as printed for -e and script files"""
  return " ".join(format_value(v) for v in values)


def format_typed_results(values: List[Value]) -> str:
  """Values with their kinds, as printed by the REPL"""
  if not values:
    return "(no values)"
  return ", ".join(f"{format_value(v)} : {v.kind}" for v in values)


def print_error(error: PolishError, debug: bool = False) -> None:
  print(format_error_report(make_error_report(error), show_stack=debug), end='')


def run_expression(ctx: Context, expression: str, debug: bool = False) -> bool:
  """Evaluate one expression and print its results; False on failure"""
  try:
    values = ctx.eval(expression)
  except PolishError as e:
    print_error(e, debug)
    return False
  print(format_results(values))
  return True


def run_script_file(ctx: Context, script_path: str, debug: bool = False) -> None:
  """Evaluate every expression in a script file, stopping at the first failure"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      content = f.read()
  except PermissionError:
    print(f"Error: Cannot read script '{script_path}': permission denied")
    sys.exit(1)
  except OSError as e:
    print(f"Error: Cannot open script '{script_path}': {e.strerror}")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Script '{script_path}' is not UTF-8 text ({e.reason})")
    sys.exit(1)

  expressions = preprocess_script(content)
  if debug:
    print(f"Read {len(expressions)} expressions from {script_path}")

  for line_num, expression in enumerate(expressions, 1):
    if not run_expression(ctx, expression, debug):
      print(f"  In '{script_path}', expression {line_num}")
      sys.exit(1)


def setup_readline(ctx: Context) -> None:
  """Setup readline with history and completion over registered names"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.polish_history")
  try:
    readline.read_history_file(history_file)
  except (FileNotFoundError, PermissionError, OSError):
    pass  # First run, no history yet

  readline.set_history_length(1000)

  def completer(text, state):
    names = ctx.list_functions() + list(ctx.list_values().keys()) + REPL_COMMANDS
    options = [name for name in names if name.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  # Operators like '+' and '<=' are names here, so only whitespace breaks words
  readline.set_completer_delims(" \t\n")
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_help() -> None:
  print("REPL Commands:")
  print("  :env                 - Show bound constants")
  print("  :funcs               - Show registered functions")
  print("  :order [KIND ...]    - Show or set the literal parse order")
  print("  :let NAME LITERAL    - Bind a constant")
  print("  :strict on|off       - Toggle rejection of trailing terms")
  print("  :help                - Show this help")
  print("  exit                 - Exit REPL")
  print()
  print("Expressions:")
  print("  + 1 2                - Function name first, then its arguments")
  print("  * 3.0 - pi e         - Arguments may be nested calls")
  print("  pi                   - Constants and literals evaluate to themselves")


def handle_command(ctx: Context, line: str) -> bool:
  """Run a ':' REPL command; returns False when line is not a command"""
  if not line.startswith(":"):
    return False

  parts = line.split()
  command, rest = parts[0], parts[1:]

  if command == ":env":
    bindings = ctx.list_values()
    if not bindings:
      print("  (no constants)")
    for name, value in bindings.items():
      print(f"  {name} = {format_value(value)} : {value.kind}")

  elif command == ":funcs":
    names = ctx.list_functions()
    if not names:
      print("  (no functions)")
    for name in names:
      print(f"  {name} : {ctx.describe_function(name).signature}")

  elif command == ":order":
    if rest:
      ctx.set_parse_order(*parse_kind_list(",".join(rest)))
    print(f"  parse order: {', '.join(ctx.parse_order)}")

  elif command == ":let":
    if len(rest) != 2:
      print("Usage: :let NAME LITERAL")
      return True
    try:
      define_constant(ctx, f"{rest[0]}={rest[1]}")
    except PolishError as e:
      print_error(e, ctx.debug)
      return True
    value = ctx.get_value(rest[0])
    print(f"Bound: {rest[0]} = {format_value(value)} : {value.kind}")

  elif command == ":strict":
    if rest and rest[0] in ("on", "off"):
      ctx.strict = rest[0] == "on"
    print(f"  strict: {'on' if ctx.strict else 'off'}")

  elif command == ":help":
    show_help()

  else:
    print(f"Unknown command: {command} (try :help)")

  return True


def run_interactive_mode(ctx: Context, debug: bool = False) -> None:
  """Read expressions and print their results until exit"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline(ctx)

  while True:
    try:
      code = input("polish> ").strip()

      if code == "exit":
        break

      if not code:
        continue

      if handle_command(ctx, code):
        continue

      try:
        values = ctx.eval(code)
      except PolishError as e:
        print_error(e, debug)
        continue
      print(f"=> {format_typed_results(values)}")

    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break


def show_language_info() -> None:
  """Show evaluator information"""
  print("Polish Notation Evaluator")
  print("=" * 50)
  print("Functions come before their arguments: '* 3.0 - pi e'")
  print("means 3.0 * (pi - e). No parentheses, no precedence.")
  print()
  print(f"Presets: {', '.join(list_presets())}")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point"""
  argv = sys.argv[1:] if argv is None else argv
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  try:
    ctx = build_context(args)
  except (PolishError, ValueError) as e:
    print(f"Error: {e}")
    sys.exit(1)

  # No arguments - show info and start interactive mode
  if not argv:
    show_language_info()
    run_interactive_mode(ctx)
    return

  if args.eval:
    for expression in args.eval:
      if not run_expression(ctx, expression, args.debug):
        sys.exit(1)

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)
    run_script_file(ctx, args.script, debug=args.debug)

  if args.interactive:
    run_interactive_mode(ctx, debug=args.debug)
  elif not args.eval and not args.script:
    arg_parser.print_help()
    print()
    show_language_info()


if __name__ == "__main__":
  main()
