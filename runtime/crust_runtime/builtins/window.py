"""Window builtins. Size and title changes are requests the host applies."""

import math
from typing import Any, Callable, Dict, List

from ..errors import BuiltinError, E_VALUE_ERROR
from ..values import to_string
from .common import builtin, expect_count, numbers


BUILTINS: Dict[str, Callable] = {}


@builtin(BUILTINS, 'window_width')
def window_width(ctx, args: List[Any]) -> float:
    return float(ctx.project.frame.window_size[0])


@builtin(BUILTINS, 'window_height')
def window_height(ctx, args: List[Any]) -> float:
    return float(ctx.project.frame.window_size[1])


@builtin(BUILTINS, 'set_window_size')
def set_window_size(ctx, args: List[Any]) -> None:
    width, height = numbers('set_window_size', args, 2)
    if not (0 < width < math.inf and 0 < height < math.inf):
        raise BuiltinError("set_window_size() expects positive finite dimensions", E_VALUE_ERROR)
    ctx.project.window.request('size', (width, height))


@builtin(BUILTINS, 'set_window_title')
def set_window_title(ctx, args: List[Any]) -> None:
    expect_count('set_window_title', args, 1)
    ctx.project.window.request('title', to_string(args[0]))
