"""
Script execution for slang: lex, parse and evaluate source text and report
the outcome as an ExecutionResult.
"""
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from slang.slang_errors import SlangError, SlangRuntimeError
from slang.slang_lexer import Lexer
from slang.slang_parser import Parser
from slang.slang_interpreter import Evaluator, ExecutionStats
from slang.slang_datatypes import Scope
from slang.slang_printer import Printer

# Each slang call costs a handful of Python frames; this allows roughly
# two thousand nested slang calls.
DEFAULT_RECURSION_LIMIT = 12000


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None   # 'LexError' | 'ParseError' | 'RuntimeError'
    error_kind: Optional[str] = None   # e.g. 'undefined variable' for runtime errors
    error_token: Optional[Dict[str, Any]] = None
    side_effects: List[Dict] = field(default_factory=list)
    stats: Optional[ExecutionStats] = None

    @property
    def output(self) -> List[str]:
        """Lines written by `print`, in order."""
        return [e.get('message', '') for e in self.side_effects if e.get('topics') == ['stdout']]

    def format_error(self) -> str:
        """Formats an error message with line and column if available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.error_token and 'line' in self.error_token:
            line = self.error_token.get('line')
            col = self.error_token.get('col')
            if not msg.startswith("Error on line "):
                col_info = f", col {col}" if col is not None else ""
                return f"Error on line {line}{col_info}: {msg}"
        return msg


class ScriptRunner:
    """Parses and executes slang code against a persistent root scope.

    Bindings made by one script stay visible to the next one run on the same
    runner, which is what the REPL relies on.
    """

    def __init__(self, output: Optional[Callable[[str], None]] = None,
                 recursion_limit: int = DEFAULT_RECURSION_LIMIT):
        self.recursion_limit = recursion_limit
        self.root_scope = Scope()
        self.evaluator = Evaluator(output=output)
        self.printer = Printer()

    def _source_context(self, source: str, line: int, col: Optional[int], radius: int = 2) -> str:
        lines = source.splitlines()
        if not line or line < 1 or line > len(lines):
            return ""
        start = max(1, line - radius)
        end = min(len(lines), line + radius)
        width = len(str(end))
        out = []
        for i in range(start, end + 1):
            prefix = ">" if i == line else " "
            ln = str(i).rjust(width)
            out.append(f"{prefix} {ln} | {lines[i - 1]}")
            if i == line and col is not None:
                caret = " " * max(col - 1, 0)
                out.append(f"  {' ' * width} | {caret}^")
        return "\n".join(out)

    def _format_stacktrace(self) -> str:
        stack = self.evaluator.call_stack
        if not stack:
            return ""
        frames = []
        for frame in stack:
            args = " ".join(self.printer.pformat(a) for a in frame.get('args') or [])
            frames.append(f"({frame.get('name')}{' ' + args if args else ''})")
        return "slang stacktrace: " + " ".join(frames)

    def _format_error(self, e: SlangError, source: str) -> str:
        msg = f"{e.phase}: {e.message}"
        if e.line is not None:
            context = self._source_context(source, e.line, e.col)
            if context:
                msg = f"{msg}\n{context}"
        if isinstance(e, SlangRuntimeError):
            st = self._format_stacktrace()
            if st:
                msg = f"{msg}\n{st}"
        return msg

    def run(self, source_code: str) -> ExecutionResult:
        """Execute a script synchronously.

        The host recursion limit is raised to `recursion_limit` for the
        duration of the run and restored afterwards.
        """
        previous_limit = sys.getrecursionlimit()
        if self.recursion_limit > previous_limit:
            sys.setrecursionlimit(self.recursion_limit)
        try:
            return self._run(source_code)
        finally:
            sys.setrecursionlimit(previous_limit)

    def _run(self, source_code: str) -> ExecutionResult:
        ev = self.evaluator
        ev.side_effects.clear()
        ev.call_stack.clear()
        ev.stats = ExecutionStats()
        started = time.perf_counter()
        try:
            try:
                program = Parser(Lexer(source_code)).parse()
                value = ev.run(program, self.root_scope)
            except RecursionError:
                raise ev._error("stack overflow", "maximum nesting depth exceeded",
                                ev.current_node) from None
        except SlangError as e:
            ev.stats.elapsed = time.perf_counter() - started
            ev._dbg("error", e.phase, e.kind, e.message)
            err_msg = self._format_error(e, source_code)
            ev.side_effects.append({'topics': ['stderr'], 'message': err_msg})
            return ExecutionResult(
                status='error',
                error_message=err_msg,
                error_type=e.phase,
                error_kind=e.kind,
                error_token=e.loc,
                side_effects=list(ev.side_effects),
                stats=ev.stats,
            )
        ev.stats.elapsed = time.perf_counter() - started
        return ExecutionResult(
            status='success',
            value=value,
            side_effects=list(ev.side_effects),
            stats=ev.stats,
        )

    async def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script.

        Evaluation itself is synchronous: the coroutine does not yield while the
        script runs, so a long script holds the event loop until it finishes.
        """
        return self.run(source_code)


def run(source_code: str, output: Optional[Callable[[str], None]] = None) -> ExecutionResult:
    """Run `source_code` on a fresh runner."""
    return ScriptRunner(output=output).run(source_code)
