import argparse
import asyncio
import sys
from pathlib import Path

from slang.slang_errors import SlangError
from slang.slang_lexer import tokenize
from slang.slang_parser import parse
from slang.slang_runtime import ScriptRunner
from slang.slang_printer import Printer
from slang.slang_serialize import serialize


# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)


def _read_source(file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)


def dump_script_file(file_path: str, what: str) -> None:
    """Print the token stream or syntax tree of a file as YAML."""
    source = _read_source(file_path)
    try:
        data = tokenize(source) if what == "tokens" else parse(source)
    except SlangError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    try:
        text = serialize(data, fmt="yaml", with_loc=(what == "tokens"))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    sys.stdout.write(text)


async def run_script_file(file_path: str):
    """Run a slang script file non-interactively and exit with appropriate status."""
    source = _read_source(file_path)
    runner = ScriptRunner(output=print)
    result = await runner.handle_script(source)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)


async def repl():
    print("slang REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    runner = ScriptRunner(output=print)
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

            result = await runner.handle_script(line)

            if result.status == 'error':
                print(result.format_error(), file=sys.stderr)
                continue

            if result.value is not None:
                print(printer.pformat(result.value))

        except EOFError:
            print("\nExiting.")
            break


async def amain(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    ap = argparse.ArgumentParser(prog="slang", description="Run slang scripts.")
    ap.add_argument("file", nargs="?", help="script to run; omit for the REPL")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--tokens", action="store_true", help="print the token stream as YAML and exit")
    mode.add_argument("--ast", action="store_true", help="print the syntax tree as YAML and exit")
    args = ap.parse_args(argv)

    if args.file is None:
        if args.tokens or args.ast:
            ap.error("--tokens and --ast need a file")
        await repl()
        return
    if args.tokens or args.ast:
        dump_script_file(args.file, "tokens" if args.tokens else "ast")
        return
    await run_script_file(args.file)


def main(argv=None):
    try:
        asyncio.run(amain(argv))
    except KeyboardInterrupt:
        print("\nExiting.")


if __name__ == "__main__":
    main()
