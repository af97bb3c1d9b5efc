"""
Runtime data types for slang.

Primitive values map straight onto Python: null is None, booleans are bool,
integers are int (kept inside the signed 64-bit range), floats are float and
strings are str. Objects and functions are reference types defined here,
together with Scope, the link in the lexical environment chain.
"""
from typing import Any, Dict, Iterator, Optional, Tuple

from slang.slang_ast import Block

INT_MIN = -(2 ** 63)
INT_BITS = 2 ** 64


class Scope:
    """One level of the lexical environment.

    A scope maps names to values and points at its enclosing scope. Function
    values hold a reference to the scope they were defined in, which keeps
    that scope (and its parents) alive after the defining block has exited.
    """

    def __init__(self, parent: Optional['Scope'] = None):
        self.bindings: Dict[str, Any] = {}
        self.parent = parent

    def define(self, name: str, value: Any) -> None:
        """Bind `name` in this scope, overwriting any binding it already has here."""
        self.bindings[name] = value

    def find_owner(self, name: str) -> Optional['Scope']:
        """Nearest scope in the chain (self first) that binds `name`."""
        scope = self
        while scope is not None:
            if name in scope.bindings:
                return scope
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Any:
        owner = self.find_owner(name)
        if owner is None:
            raise KeyError(name)
        return owner.bindings[name]

    def assign(self, name: str, value: Any) -> None:
        """Rebind `name` in the nearest scope that already holds it."""
        owner = self.find_owner(name)
        if owner is None:
            raise KeyError(name)
        owner.bindings[name] = value

    def __contains__(self, name: str) -> bool:
        return self.find_owner(name) is not None

    def depth(self) -> int:
        n, scope = 0, self.parent
        while scope is not None:
            n += 1
            scope = scope.parent
        return n

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Scope bindings=[{keys}]{parent_id}>"


class SlangObject:
    """A mutable string-keyed record that remembers insertion order.

    Objects are shared by reference: two bindings to the same object see each
    other's writes, and equality is identity.
    """

    def __init__(self, fields: Optional[Dict[str, Any]] = None):
        self.fields: Dict[str, Any] = dict(fields or {})

    def get(self, key: str) -> Any:
        return self.fields[key]

    def set(self, key: str, value: Any) -> None:
        self.fields[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self.fields.items())

    def __repr__(self) -> str:
        return f"<SlangObject keys={list(self.fields)!r}>"


class SlangFunction:
    """A user-defined function: parameters, body and the captured scope."""

    def __init__(self, name: str, params: Tuple[str, ...], body: Block, closure: Scope):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"<SlangFunction {self.name}({', '.join(self.params)})>"


def wrap_int(n: int) -> int:
    """Reduce an int to two's-complement signed 64-bit."""
    return (n - INT_MIN) % INT_BITS + INT_MIN


def kind_of(value: Any) -> str:
    """The slang type name of a runtime value, used in error messages."""
    match value:
        case None:
            return "Null"
        case bool():
            return "Bool"
        case int():
            return "Int"
        case float():
            return "Float"
        case str():
            return "String"
        case SlangObject():
            return "Object"
        case SlangFunction():
            return "Function"
    raise TypeError(f"not a slang value: {value!r}")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """null and false are falsy; every other value, including 0 and "", is truthy."""
    return not (value is None or value is False)
