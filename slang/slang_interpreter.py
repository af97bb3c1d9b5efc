"""
The slang tree-walking evaluator.

Statements are executed for effect and return either None or a ReturnSignal;
the signal travels back up through blocks and loops until the enclosing call
takes its value. Faults raise SlangRuntimeError carrying the position of the
node that failed.
"""
import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from slang.slang_errors import SlangRuntimeError
from slang.slang_datatypes import (
    Scope, SlangObject, SlangFunction, wrap_int, kind_of, is_number, is_truthy,
)
from slang.slang_printer import Printer
from slang.slang_ast import (
    Assignment, Binary, Block, Call, ExprStmt, FunctionDecl, GetField, Grouping,
    Identifier, If, Literal, Logical, ObjectLiteral, Print, Program, Return,
    SetField, Ternary, Unary, VarDecl, While,
)


class ReturnSignal:
    """Carries a `return` value out of nested statements to the call site."""
    __slots__ = ("value", "node")

    def __init__(self, value: Any, node: Return):
        self.value = value
        self.node = node

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"


@dataclass
class ExecutionStats:
    """Counters collected while a program runs."""
    statements: int = 0
    calls: int = 0
    max_call_depth: int = 0
    scopes_created: int = 0
    elapsed: float = 0.0


def promote(a: Any, b: Any):
    """Int/Float pair: the Int becomes a Float. Same-kind pairs are returned unchanged."""
    if isinstance(a, float) != isinstance(b, float):
        return float(a), float(b)
    return a, b


def values_equal(a: Any, b: Any) -> bool:
    """`==` semantics: numbers by value across Int/Float, objects and functions by identity."""
    if is_number(a) and is_number(b):
        a, b = promote(a, b)
        return a == b
    if kind_of(a) != kind_of(b):
        return False
    if isinstance(a, (SlangObject, SlangFunction)):
        return a is b
    return a == b


class Evaluator:
    """Executes Program trees against a Scope chain."""

    def __init__(self, output: Optional[Callable[[str], None]] = None):
        # Extra sink for printed lines; side_effects always records them.
        self.output = output
        self.side_effects: List[Dict[str, Any]] = []
        self.call_stack: List[Dict[str, Any]] = []
        self.current_node = None
        self.stats = ExecutionStats()
        self.printer = Printer()

    def _dbg(self, *parts):
        if os.environ.get("SLANG_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def _error(self, kind: str, message: str, node) -> SlangRuntimeError:
        loc = getattr(node, "loc", None)
        if loc is None:
            return SlangRuntimeError(kind, message)
        return SlangRuntimeError(kind, message, loc.line, loc.col)

    def emit(self, line: str) -> None:
        """Deliver one printed line to the output sink."""
        self.side_effects.append({'topics': ['stdout'], 'message': line})
        if self.output is not None:
            self.output(line)

    # -----------------------------------------------------------------
    # Statements
    # -----------------------------------------------------------------

    def run(self, program: Program, scope: Scope) -> Any:
        """Execute a whole program in `scope`.

        Returns the value of the last top-level expression statement, or None
        when the program has none.
        """
        result = None
        for stmt in program.statements:
            if isinstance(stmt, ExprStmt):
                self.stats.statements += 1
                self.current_node = stmt
                result = self.eval(stmt.expr, scope)
                continue
            signal = self.execute(stmt, scope)
            if signal is not None:
                raise self._error("return outside function",
                                  "'return' used outside of a function", signal.node)
        return result

    def execute(self, stmt, scope: Scope) -> Optional[ReturnSignal]:
        self.stats.statements += 1
        self.current_node = stmt
        match stmt:
            case ExprStmt():
                self.eval(stmt.expr, scope)
            case VarDecl():
                value = self.eval(stmt.initializer, scope) if stmt.initializer is not None else None
                scope.define(stmt.name, value)
            case Print():
                self.emit(self.printer.render(self.eval(stmt.expr, scope)))
            case Block():
                return self.execute_block(stmt, scope)
            case If():
                if is_truthy(self.eval(stmt.condition, scope)):
                    return self.execute_block(stmt.then_branch, scope)
                if stmt.else_branch is not None:
                    return self.execute(stmt.else_branch, scope)
            case While():
                while is_truthy(self.eval(stmt.condition, scope)):
                    signal = self.execute_block(stmt.body, scope)
                    if signal is not None:
                        return signal
            case FunctionDecl():
                # Bound before the body ever runs, so the function can call itself.
                scope.define(stmt.name, SlangFunction(stmt.name, stmt.params, stmt.body, scope))
            case Return():
                value = self.eval(stmt.value, scope) if stmt.value is not None else None
                return ReturnSignal(value, stmt)
            case _:
                raise TypeError(f"unknown statement node: {stmt!r}")
        return None

    def execute_block(self, block: Block, parent: Scope) -> Optional[ReturnSignal]:
        scope = Scope(parent)
        self.stats.scopes_created += 1
        return self.execute_statements(block.statements, scope)

    def execute_statements(self, statements, scope: Scope) -> Optional[ReturnSignal]:
        for stmt in statements:
            signal = self.execute(stmt, scope)
            if signal is not None:
                return signal
        return None

    # -----------------------------------------------------------------
    # Expressions
    # -----------------------------------------------------------------

    def eval(self, expr, scope: Scope) -> Any:
        match expr:
            case Literal():
                return expr.value
            case Identifier():
                owner = scope.find_owner(expr.name)
                if owner is None:
                    raise self._error("undefined variable", f"undefined variable '{expr.name}'", expr)
                return owner.bindings[expr.name]
            case Grouping():
                return self.eval(expr.expr, scope)
            case Assignment():
                value = self.eval(expr.value, scope)
                owner = scope.find_owner(expr.name)
                if owner is None:
                    raise self._error("undefined variable",
                                      f"cannot assign to undefined variable '{expr.name}'", expr)
                owner.bindings[expr.name] = value
                return value
            case Ternary():
                if is_truthy(self.eval(expr.condition, scope)):
                    return self.eval(expr.then_expr, scope)
                return self.eval(expr.else_expr, scope)
            case Logical():
                left = self.eval(expr.left, scope)
                if expr.op == "&&":
                    return self.eval(expr.right, scope) if is_truthy(left) else left
                return left if is_truthy(left) else self.eval(expr.right, scope)
            case Binary():
                left = self.eval(expr.left, scope)
                right = self.eval(expr.right, scope)
                return self.binary(expr.op, left, right, expr)
            case Unary():
                return self.unary(expr.op, self.eval(expr.operand, scope), expr)
            case Call():
                callee = self.eval(expr.callee, scope)
                args = [self.eval(arg, scope) for arg in expr.args]
                return self.call(callee, args, expr)
            case GetField():
                obj = self.eval(expr.obj, scope)
                if not isinstance(obj, SlangObject):
                    raise self._error("type mismatch",
                                      f"cannot read field '{expr.name}' of {kind_of(obj)}", expr)
                if expr.name not in obj:
                    raise self._error("undefined field", f"object has no field '{expr.name}'", expr)
                return obj.get(expr.name)
            case SetField():
                obj = self.eval(expr.obj, scope)
                if not isinstance(obj, SlangObject):
                    raise self._error("type mismatch",
                                      f"cannot set field '{expr.name}' on {kind_of(obj)}", expr)
                value = self.eval(expr.value, scope)
                obj.set(expr.name, value)
                return value
            case ObjectLiteral():
                obj = SlangObject()
                for key, value_expr in expr.entries:
                    obj.set(key, self.eval(value_expr, scope))
                return obj
        raise TypeError(f"unknown expression node: {expr!r}")

    def binary(self, op: str, left: Any, right: Any, node) -> Any:
        match op:
            case "==":
                return values_equal(left, right)
            case "!=":
                return not values_equal(left, right)
            case "&" | "|":
                if not (type(left) is int and type(right) is int):
                    raise self._mismatch(op, left, right, node)
                return left & right if op == "&" else left | right
            case "<" | "<=" | ">" | ">=":
                if not (is_number(left) and is_number(right)):
                    raise self._mismatch(op, left, right, node)
                left, right = promote(left, right)
                match op:
                    case "<":
                        return left < right
                    case "<=":
                        return left <= right
                    case ">":
                        return left > right
                    case _:
                        return left >= right
            case "+" if isinstance(left, str) and isinstance(right, str):
                return left + right
            case "+" | "-" | "*" | "/":
                if not (is_number(left) and is_number(right)):
                    raise self._mismatch(op, left, right, node)
                if op == "/":
                    if right == 0:
                        raise self._error("division by zero", "division by zero", node)
                    return float(left) / float(right)
                both_int = isinstance(left, int) and isinstance(right, int)
                if not both_int:
                    left, right = float(left), float(right)
                match op:
                    case "+":
                        result = left + right
                    case "-":
                        result = left - right
                    case _:
                        result = left * right
                return wrap_int(result) if both_int else result
        raise TypeError(f"unknown binary operator {op!r}")

    def _mismatch(self, op: str, left: Any, right: Any, node) -> SlangRuntimeError:
        return self._error("type mismatch",
                           f"operator '{op}' is not defined for {kind_of(left)} and {kind_of(right)}",
                           node)

    def unary(self, op: str, operand: Any, node) -> Any:
        if op == "!":
            return not is_truthy(operand)
        if not is_number(operand):
            raise self._error("type mismatch",
                              f"operator '-' is not defined for {kind_of(operand)}", node)
        if isinstance(operand, int):
            return wrap_int(-operand)
        return -operand

    # -----------------------------------------------------------------
    # Calls
    # -----------------------------------------------------------------

    def _push_frame(self, func: SlangFunction, args: List[Any], call_site) -> None:
        self.call_stack.append({
            'name': func.name,
            'func': func,
            'args': args,
            'call_site': getattr(call_site, 'loc', None),
        })
        depth = len(self.call_stack)
        if depth > self.stats.max_call_depth:
            self.stats.max_call_depth = depth

    def _pop_frame(self) -> None:
        if self.call_stack:
            self.call_stack.pop()

    def call(self, func: Any, args: List[Any], call_site=None) -> Any:
        """Invoke a function value with already-evaluated arguments."""
        if not isinstance(func, SlangFunction):
            raise self._error("not callable", f"{kind_of(func)} is not callable", call_site)
        if len(args) != func.arity:
            raise self._error("arity mismatch",
                              f"{func.name} expects {func.arity} argument(s), got {len(args)}",
                              call_site)
        self._dbg("call", func.name, "argc", len(args), "depth", len(self.call_stack))
        self.stats.calls += 1

        # Parent is the captured scope, not the caller's: scoping is lexical.
        scope = Scope(func.closure)
        self.stats.scopes_created += 1
        for name, value in zip(func.params, args):
            scope.define(name, value)

        self._push_frame(func, args, call_site)
        try:
            signal = self.execute_statements(func.body.statements, scope)
        except RecursionError:
            raise self._error("stack overflow",
                              f"maximum recursion depth exceeded in '{func.name}'", call_site) from None
        # Frames are only popped on success so a failing call leaves its trace behind.
        self._pop_frame()
        return signal.value if signal is not None else None
