import asyncio
import sys
from typing import List, Optional

from envpath.envpath_config import configure_logging, load_config
from envpath.envpath_datatypes import RawExpression
from envpath.envpath_printer import Printer
from envpath.envpath_runtime import PathRunner
from envpath.envpath_serialize import deserialize

USAGE = "usage: envpath_repl.py [--config FILE] [--explain] [ELEMENT ...]"


# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)


def read_expression(line: str) -> RawExpression:
    """A flow list (`["$dir: dl", "app"]`) is a whole expression; anything else is one element."""
    if line.lstrip().startswith("["):
        items = deserialize(line, fmt="yaml")
        if not isinstance(items, list):
            raise ValueError(f"expected a list, got {type(items).__name__}")
        return RawExpression(items)
    return RawExpression([line])


def _make_runner(config_path: Optional[str]) -> PathRunner:
    cfg = load_config(config_path)
    configure_logging(cfg.debug)
    return PathRunner(cfg.make_lookups(), debug=cfg.debug)


async def run_elements(elements: List[str], runner: PathRunner, explain: bool = False) -> int:
    """Resolve ELEMENTs given on the command line; returns the exit status."""
    printer = Printer()
    result = await asyncio.get_running_loop().run_in_executor(None, runner.explain, elements)
    if explain:
        print(printer.pformat(result))
    elif result.path is not None:
        print(printer.pformat(result.resolved))
    return 0 if result.path is not None else 1


async def main(argv: Optional[List[str]] = None):
    """Resolve the given elements when provided, otherwise start the interactive REPL."""
    args = list(sys.argv[1:] if argv is None else argv)
    config_path = None
    explain = False
    while args and args[0].startswith("--"):
        flag = args.pop(0)
        if flag == "--config" and args:
            config_path = args.pop(0)
        elif flag == "--explain":
            explain = True
        elif flag == "--":
            break
        else:
            print(USAGE, file=sys.stderr)
            raise SystemExit(2)

    runner = _make_runner(config_path)
    if args:
        raise SystemExit(await run_elements(args, runner, explain))

    print("envpath REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit. Prefix a line with 'explain' to see each element.")
    printer = Printer()

    while True:
        try:
            raw = await ainput(">> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break

            show_steps = False
            if line.startswith("explain "):
                show_steps = True
                line = line[len("explain "):].strip()

            expr = read_expression(line)
            if show_steps:
                print(printer.pformat(runner.explain(expr)))
            else:
                print(printer.pformat(await runner.resolve_async(expr)))

        except EOFError:
            print("\nExiting.")
            break
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
