"""
Abstract syntax tree for slang.

Every node is a frozen dataclass; child sequences are tuples. The parser
builds the tree once and the evaluator only reads it. Source positions live
in `loc` and are excluded from equality, so two parses of the same text
compare equal regardless of where the text came from.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Loc:
    line: int
    col: int


def _loc():
    return field(default=None, compare=False, repr=False)


# =================================================================
# Expressions
# =================================================================

@dataclass(frozen=True)
class Literal:
    """A string, integer, float, boolean or null literal.

    Equality also compares the value's type, so `1`, `1.0` and `true` are
    different literals even though Python treats them as equal.
    """
    value: Union[str, int, float, bool, None]
    loc: Optional[Loc] = _loc()

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return type(self.value) is type(other.value) and self.value == other.value

    def __hash__(self):
        return hash((type(self.value), self.value))


@dataclass(frozen=True)
class Identifier:
    name: str
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Grouping:
    """A parenthesised expression, kept so source can be printed back faithfully."""
    expr: "Expr"
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Assignment:
    """`name = value`. Right-associative."""
    name: str
    value: "Expr"
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Ternary:
    condition: "Expr"
    then_expr: "Expr"
    else_expr: "Expr"
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Logical:
    """Short-circuiting `&&` / `||`."""
    op: str
    left: "Expr"
    right: "Expr"
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Expr"
    right: "Expr"
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Expr"
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Call:
    callee: "Expr"
    args: Tuple["Expr", ...]
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class GetField:
    """`object.name`"""
    obj: "Expr"
    name: str
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class SetField:
    """`object.name = value`"""
    obj: "Expr"
    name: str
    value: "Expr"
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class ObjectLiteral:
    """`{ key: expr, ... }`; entries keep source order, duplicates included."""
    entries: Tuple[Tuple[str, "Expr"], ...]
    loc: Optional[Loc] = _loc()


Expr = Union[Literal, Identifier, Grouping, Assignment, Ternary, Logical, Binary,
             Unary, Call, GetField, SetField, ObjectLiteral]


# =================================================================
# Statements
# =================================================================

@dataclass(frozen=True)
class Block:
    """A braced statement list. Runs in its own scope."""
    statements: Tuple["Stmt", ...]
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class VarDecl:
    name: str
    initializer: Optional[Expr] = None
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class FunctionDecl:
    name: str
    params: Tuple[str, ...]
    body: Block
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Return:
    value: Optional[Expr] = None
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class If:
    """`else_branch` is a Block, a nested If (for `else if`), or None."""
    condition: Expr
    then_branch: Block
    else_branch: Optional[Union[Block, "If"]] = None
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class While:
    condition: Expr
    body: Block
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr
    loc: Optional[Loc] = _loc()


@dataclass(frozen=True)
class Print:
    expr: Expr
    loc: Optional[Loc] = _loc()


Stmt = Union[Block, VarDecl, FunctionDecl, Return, If, While, ExprStmt, Print]


@dataclass(frozen=True)
class Program:
    """Top-level sequence of statements. Runs directly in the root scope."""
    statements: Tuple[Stmt, ...]
    loc: Optional[Loc] = _loc()
