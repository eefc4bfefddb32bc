import sys

from parsley.parsley_errors import RegistryInconsistency
from parsley.parsley_help import UnknownTopic, describe_topic, format_json, format_text
from parsley.parsley_runtime import Runtime

USAGE = """usage: pars.py describe <topic> [--json]

Topics:
  types        list every value type
  builtins     list builtin functions by category
  <type>       methods of a type, e.g. array
  <type.name>  one method, e.g. array.take
  <builtin>    one builtin, e.g. toInt"""


def describe(args) -> int:
    as_json = "--json" in args
    topics = [a for a in args if not a.startswith("-")]
    if len(topics) != 1:
        print(USAGE, file=sys.stderr)
        return 2
    try:
        # Construction runs the metadata consistency check.
        runtime = Runtime()
        result = describe_topic(topics[0], runtime.registry)
    except (UnknownTopic, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except RegistryInconsistency as e:
        print(f"InternalError: {e}", file=sys.stderr)
        return 3
    if as_json:
        print(format_json(result))
    else:
        print(format_text(result), end="")
    return 0


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in ("-h", "--help"):
        print(USAGE)
        return 0
    if args[0] == "describe":
        return describe(args[1:])
    print(f"Error: unknown command: {args[0]}", file=sys.stderr)
    print(USAGE, file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
