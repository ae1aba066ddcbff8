"""
Crust Runtime - Value Model

Runtime values map onto plain Python objects:

    null     -> None
    number   -> float
    string   -> str
    boolean  -> bool
    list     -> list   (shared reference, mutated in place)
    object   -> dict   (shared reference, mutated in place)
    closure  -> UserFunction | BuiltinFunction

Python lists and dicts already alias on assignment, which is exactly the
reference semantics scripts expect from containers.
"""

import math
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple


# ============================================================================
# Callables
# ============================================================================

class Closure:
    """Base for callable values"""
    name: str = "<closure>"


class UserFunction(Closure):
    """Function defined in script source, with bindings captured at creation"""

    def __init__(self, name: str, params: List[str], body: list, returns: Any,
                 captured: Optional[list] = None):
        self.name = name
        self.params = params
        self.body = body
        self.returns = returns
        self.captured = list(captured or [])

    def __repr__(self) -> str:
        return f"<fn {self.name}({', '.join(self.params)})>"


class BuiltinFunction(Closure):
    """Native function from the builtin registry; compares by name"""

    def __init__(self, name: str, function: Callable):
        self.name = name
        self.function = function

    def __call__(self, ctx, args: List[Any]) -> Any:
        return self.function(ctx, args)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, BuiltinFunction) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


# ============================================================================
# Coercions
# ============================================================================

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> float:
    """Numbers pass through, numeric strings parse, booleans are 1/0, else 0"""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return isinstance(value, Closure)


def format_number(number: float) -> str:
    """3.0 prints as 3, 2.5 as 2.5"""
    if math.isnan(number):
        return "nan"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if float(number).is_integer():
        return str(int(number))
    return repr(float(number))


def to_string(value: Any, _active: FrozenSet[int] = frozenset()) -> str:
    """Display form; a container nested inside itself prints as ..."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, dict)):
        if id(value) in _active:
            return "..."
        active = _active | {id(value)}
        if isinstance(value, list):
            return ", ".join(to_string(item, active) for item in value)
        return "{" + ", ".join(f"{key}: {to_string(item, active)}" for key, item in value.items()) + "}"
    if isinstance(value, Closure):
        return f"<fn {value.name}>"
    return str(value)


def to_list(value: Any) -> List[Any]:
    """A list is returned as-is (same reference)"""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return list(value)
    if isinstance(value, dict):
        return list(value.keys())
    if value is None:
        return []
    return [value]


def to_object(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        result = {}
        for item in value:
            # [[key, value], ...] pairs, anything else indexed by position
            if isinstance(item, list) and len(item) == 2:
                result[to_string(item[0])] = item[1]
            else:
                result[format_number(len(result))] = item
        return result
    return {}


def type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, Closure):
        return "closure"
    return type(value).__name__


# ============================================================================
# Equality
# ============================================================================

def values_equal(left: Any, right: Any, _active: FrozenSet[Tuple[int, int]] = frozenset()) -> bool:
    """Structural for scalars and containers, identity/name for closures.

    A pair of containers already being compared further up counts as equal,
    so self-referencing lists terminate.
    """
    if isinstance(left, Closure) or isinstance(right, Closure):
        if isinstance(left, BuiltinFunction) and isinstance(right, BuiltinFunction):
            return left.name == right.name
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return float(left) == float(right)
    if isinstance(left, list) and isinstance(right, list):
        if left is right or (id(left), id(right)) in _active:
            return True
        active = _active | {(id(left), id(right))}
        return len(left) == len(right) and all(values_equal(a, b, active) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        if left is right or (id(left), id(right)) in _active:
            return True
        active = _active | {(id(left), id(right))}
        return left.keys() == right.keys() and all(values_equal(left[k], right[k], active) for k in left)
    if type(left) is not type(right):
        return False
    return left == right


def contains(container: Any, item: Any) -> bool:
    return any(values_equal(element, item) for element in to_list(container))
