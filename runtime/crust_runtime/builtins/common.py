"""
Argument checking shared by the builtin modules.

Every builtin has the signature ``fn(ctx, args) -> value`` and reports bad
input by raising BuiltinError; the evaluator turns that into a diagnostic
and a null result.
"""

import math
from typing import Any, Callable, Dict, List

from ..errors import BuiltinError, E_ARITY_ERROR, E_TYPE_ERROR, E_VALUE_ERROR
from ..values import is_number, type_name


def builtin(table: Dict[str, Callable], *names: str):
    """Register a function under one or more script-visible names"""
    def decorator(function: Callable) -> Callable:
        for name in names:
            table[name] = function
        return function
    return decorator


def expect_count(name: str, args: List[Any], *counts: int):
    if len(args) not in counts:
        expected = ' or '.join(str(c) for c in counts)
        plural = '' if counts == (1,) else 's'
        raise BuiltinError(f"{name}() takes {expected} argument{plural}, got {len(args)}", E_ARITY_ERROR)


def number(name: str, args: List[Any], index: int) -> float:
    value = args[index]
    if not is_number(value):
        raise BuiltinError(f"{name}() argument {index + 1} must be a number, got {type_name(value)}",
                           E_TYPE_ERROR)
    return float(value)


def integer(name: str, args: List[Any], index: int) -> int:
    """A numeric argument truncated to an int; inf and nan are rejected"""
    value = number(name, args, index)
    if not math.isfinite(value):
        raise BuiltinError(f"{name}() argument {index + 1} must be a finite number", E_VALUE_ERROR)
    return int(value)


def string(name: str, args: List[Any], index: int) -> str:
    value = args[index]
    if not isinstance(value, str):
        raise BuiltinError(f"{name}() argument {index + 1} must be a string, got {type_name(value)}",
                           E_TYPE_ERROR)
    return value


def boolean(name: str, args: List[Any], index: int) -> bool:
    value = args[index]
    if not isinstance(value, bool):
        raise BuiltinError(f"{name}() argument {index + 1} must be a boolean, got {type_name(value)}",
                           E_TYPE_ERROR)
    return value


def list_arg(name: str, args: List[Any], index: int) -> list:
    value = args[index]
    if not isinstance(value, list):
        raise BuiltinError(f"{name}() argument {index + 1} must be a list, got {type_name(value)}",
                           E_TYPE_ERROR)
    return value


def numbers(name: str, args: List[Any], count: int) -> List[float]:
    """Exactly `count` numeric arguments"""
    expect_count(name, args, count)
    return [number(name, args, i) for i in range(count)]
