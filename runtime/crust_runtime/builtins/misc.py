"""
General purpose builtins: output, maths, containers, strings, conversions
and file I/O. Container helpers return new containers and leave their
arguments untouched.
"""

import functools
import math
from pathlib import Path
from typing import Any, Callable, Dict, List

import numpy as np

from ..errors import BuiltinError, E_IO_ERROR, E_NAME_ERROR, E_VALUE_ERROR
from ..values import (
    Closure, to_boolean, to_list, to_number, to_object, to_string, type_name,
    values_equal, is_number,
)
from .common import builtin, boolean, expect_count, integer, list_arg, number, numbers, string
from .motion import resolve_target


BUILTINS: Dict[str, Callable] = {}

DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
MAX_RANGE_LENGTH = 1_000_000


# ============================================================================
# Output and Input
# ============================================================================

@builtin(BUILTINS, 'print')
def print_(ctx, args: List[Any]) -> None:
    print(f"{ctx.sprite.name} => " + " ".join(to_string(a) for a in args))


@builtin(BUILTINS, 'print_raw')
def print_raw(ctx, args: List[Any]) -> None:
    print(" ".join(to_string(a) for a in args))


@builtin(BUILTINS, 'input')
def input_(ctx, args: List[Any]) -> Any:
    expect_count('input', args, 1)
    prompt = string('input', args, 0)
    try:
        return input(f"{ctx.sprite.name} => {prompt} ").strip()
    except EOFError:
        return None


@builtin(BUILTINS, 'args')
def args_(ctx, args: List[Any]) -> List[str]:
    expect_count('args', args, 0)
    return list(ctx.config.args)


@builtin(BUILTINS, 'whoami')
def whoami(ctx, args: List[Any]) -> str:
    return ctx.sprite.name


@builtin(BUILTINS, 'cloneid')
def cloneid(ctx, args: List[Any]) -> float:
    return float(ctx.sprite.clone_id or 0)


# ============================================================================
# Time
# ============================================================================

@builtin(BUILTINS, 'time')
def time_(ctx, args: List[Any]) -> float:
    return float(ctx.project.frame.elapsed)


@builtin(BUILTINS, 'frame')
def frame(ctx, args: List[Any]) -> float:
    return float(ctx.project.frame_count)


@builtin(BUILTINS, 'delta_time')
def delta_time(ctx, args: List[Any]) -> float:
    return float(ctx.project.frame.delta_time)


# ============================================================================
# Maths
# ============================================================================

def _unary_math(name: str, function: Callable[[float], float]) -> Callable:
    def wrapper(ctx, args: List[Any]) -> float:
        (value,) = numbers(name, args, 1)
        try:
            return function(value)
        except ValueError:
            return math.nan
    return wrapper


for _name, _function in (
    ('abs', abs), ('sqrt', math.sqrt), ('sin', math.sin), ('cos', math.cos),
    ('tan', math.tan), ('asin', math.asin), ('acos', math.acos), ('atan', math.atan),
    ('to_rad', math.radians), ('to_deg', math.degrees),
):
    BUILTINS[_name] = _unary_math(_name, _function)


@builtin(BUILTINS, 'lerp')
def lerp(ctx, args: List[Any]) -> float:
    a, b, t = numbers('lerp', args, 3)
    return a + (b - a) * t


@builtin(BUILTINS, 'clamp')
def clamp(ctx, args: List[Any]) -> float:
    value, low, high = numbers('clamp', args, 3)
    return min(max(value, low), high)


@builtin(BUILTINS, 'random')
def random(ctx, args: List[Any]) -> float:
    low, high = numbers('random', args, 2)
    if not (math.isfinite(low) and math.isfinite(high)):
        raise BuiltinError("random() bounds must be finite numbers", E_VALUE_ERROR)
    if low >= high:
        raise BuiltinError("random() expects two numbers where min < max", E_VALUE_ERROR)
    return float(ctx.project.rng.uniform(low, high))


@builtin(BUILTINS, 'distance')
def distance(ctx, args: List[Any]) -> float:
    x1, y1, x2, y2 = numbers('distance', args, 4)
    return float(np.hypot(x2 - x1, y2 - y1))


@builtin(BUILTINS, 'distance_to')
def distance_to(ctx, args: List[Any]) -> float:
    expect_count('distance_to', args, 1, 2)
    x, y = resolve_target(ctx, 'distance_to', args)
    return float(np.hypot(x - ctx.sprite.x, y - ctx.sprite.y))


@builtin(BUILTINS, 'property_of')
def property_of(ctx, args: List[Any]) -> Any:
    expect_count('property_of', args, 2)
    name = string('property_of', args, 0)
    prop = string('property_of', args, 1)
    snapshot = ctx.find_snapshot(name)
    if snapshot is None:
        raise BuiltinError(f"Sprite '{name}' not found", E_NAME_ERROR)
    return snapshot.property(prop)


# ============================================================================
# Containers
# ============================================================================

@builtin(BUILTINS, 'len')
def len_(ctx, args: List[Any]) -> float:
    expect_count('len', args, 1)
    return float(len(to_list(args[0])))


@builtin(BUILTINS, 'keys')
def keys(ctx, args: List[Any]) -> List[str]:
    expect_count('keys', args, 1)
    if not isinstance(args[0], dict):
        raise BuiltinError("keys() expects one object argument")
    return list(args[0].keys())


@builtin(BUILTINS, 'values')
def values(ctx, args: List[Any]) -> List[Any]:
    expect_count('values', args, 1)
    if not isinstance(args[0], dict):
        raise BuiltinError("values() expects one object argument")
    return list(args[0].values())


@builtin(BUILTINS, 'typeof')
def typeof(ctx, args: List[Any]) -> str:
    expect_count('typeof', args, 1)
    return type_name(args[0])


@builtin(BUILTINS, 'push')
def push(ctx, args: List[Any]) -> List[Any]:
    expect_count('push', args, 2)
    return list_arg('push', args, 0) + [args[1]]


@builtin(BUILTINS, 'pop')
def pop(ctx, args: List[Any]) -> List[Any]:
    """Returns [remaining, popped]"""
    expect_count('pop', args, 1)
    items = list(list_arg('pop', args, 0))
    if not items:
        raise BuiltinError("pop() called on an empty list")
    value = items.pop()
    return [items, value]


def _index(name: str, value: Any, limit: int) -> int:
    if not is_number(value) or not math.isfinite(value) or value < 0 or int(value) > limit:
        raise BuiltinError(f"{name}() index out of bounds")
    return int(value)


@builtin(BUILTINS, 'insert')
def insert(ctx, args: List[Any]) -> Any:
    expect_count('insert', args, 3)
    container, key, value = args
    if isinstance(container, dict) and isinstance(key, str):
        result = dict(container)
        result[key] = value
        return result
    if isinstance(container, list):
        result = list(container)
        result.insert(_index('insert', key, len(container)), value)
        return result
    raise BuiltinError("insert() expects a list or an object, a key, and a value")


@builtin(BUILTINS, 'remove')
def remove(ctx, args: List[Any]) -> Any:
    expect_count('remove', args, 2)
    container, key = args
    if isinstance(container, dict) and isinstance(key, str):
        result = dict(container)
        result.pop(key, None)
        return result
    if isinstance(container, list):
        result = list(container)
        del result[_index('remove', key, len(container) - 1)]
        return result
    raise BuiltinError("remove() expects a list or an object, and a key or index")


@builtin(BUILTINS, 'extend')
def extend(ctx, args: List[Any]) -> List[Any]:
    expect_count('extend', args, 2)
    return list_arg('extend', args, 0) + list_arg('extend', args, 1)


@builtin(BUILTINS, 'contains')
def contains(ctx, args: List[Any]) -> bool:
    expect_count('contains', args, 2)
    container, item = args
    if isinstance(container, list):
        return any(values_equal(element, item) for element in container)
    if isinstance(container, dict) and isinstance(item, str):
        return item in container
    if isinstance(container, str) and isinstance(item, str):
        return item in container
    raise BuiltinError("contains() expects a list or an object and a value or key")


def _closure(name: str, args: List[Any], index: int) -> Closure:
    if not isinstance(args[index], Closure):
        raise BuiltinError(f"{name}() argument {index + 1} must be a closure, got {type_name(args[index])}")
    return args[index]


@builtin(BUILTINS, 'sort')
def sort(ctx, args: List[Any]) -> List[Any]:
    """sort(list, before) where before(a, b) is true when a sorts first"""
    expect_count('sort', args, 2)
    items = list_arg('sort', args, 0)
    before = _closure('sort', args, 1)

    def compare(a, b):
        result = ctx.call(before, [a, b])
        if isinstance(result, bool):
            return -1 if result else 1
        return 0

    return sorted(items, key=functools.cmp_to_key(compare))


@builtin(BUILTINS, 'filter')
def filter_(ctx, args: List[Any]) -> List[Any]:
    expect_count('filter', args, 2)
    items = list_arg('filter', args, 0)
    keep = _closure('filter', args, 1)
    return [item for item in items if to_boolean(ctx.call(keep, [item]))]


@builtin(BUILTINS, 'map')
def map_(ctx, args: List[Any]) -> List[Any]:
    expect_count('map', args, 2)
    items = list_arg('map', args, 0)
    transform = _closure('map', args, 1)
    return [ctx.call(transform, [item]) for item in items]


@builtin(BUILTINS, 'range')
def range_(ctx, args: List[Any]) -> List[float]:
    """Inclusive: range(3) is [0, 1, 2, 3]"""
    expect_count('range', args, 1, 2, 3)
    bounds = [number('range', args, i) for i in range(len(args))]
    if len(bounds) == 1:
        start, end, step = 0.0, bounds[0], 1.0
    elif len(bounds) == 2:
        start, end, step = bounds[0], bounds[1], 1.0
    else:
        start, end, step = bounds
    if not all(math.isfinite(bound) for bound in bounds):
        raise BuiltinError("range() bounds must be finite numbers", E_VALUE_ERROR)
    if start > end:
        raise BuiltinError("range() expects start <= end", E_VALUE_ERROR)
    if step <= 0:
        raise BuiltinError("range() step must be positive", E_VALUE_ERROR)
    count = int(math.floor((end - start) / step + 1e-9)) + 1
    if count > MAX_RANGE_LENGTH:
        raise BuiltinError(f"range() would produce more than {MAX_RANGE_LENGTH} items", E_VALUE_ERROR)
    return [float(v) for v in start + np.arange(count) * step]


# ============================================================================
# Strings
# ============================================================================

@builtin(BUILTINS, 'split')
def split(ctx, args: List[Any]) -> List[str]:
    expect_count('split', args, 2)
    text, delimiter = string('split', args, 0), string('split', args, 1)
    if delimiter == "":
        return list(text)
    return text.split(delimiter)


@builtin(BUILTINS, 'join')
def join(ctx, args: List[Any]) -> str:
    expect_count('join', args, 2)
    return string('join', args, 1).join(to_string(v) for v in list_arg('join', args, 0))


@builtin(BUILTINS, 'starts_with')
def starts_with(ctx, args: List[Any]) -> bool:
    expect_count('starts_with', args, 2)
    return string('starts_with', args, 0).startswith(string('starts_with', args, 1))


@builtin(BUILTINS, 'ends_with')
def ends_with(ctx, args: List[Any]) -> bool:
    expect_count('ends_with', args, 2)
    return string('ends_with', args, 0).endswith(string('ends_with', args, 1))


@builtin(BUILTINS, 'trim')
def trim(ctx, args: List[Any]) -> str:
    expect_count('trim', args, 1)
    return string('trim', args, 0).strip()


# ============================================================================
# Conversions
# ============================================================================

def format_radix(value: int, base: int) -> str:
    if not 2 <= base <= 36:
        raise BuiltinError("to_string() base must be between 2 and 36", E_VALUE_ERROR)
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, remainder = divmod(value, base)
        digits.append(DIGITS[remainder])
    return sign + "".join(reversed(digits))


@builtin(BUILTINS, 'to_string')
def to_string_(ctx, args: List[Any]) -> str:
    expect_count('to_string', args, 1, 2)
    if len(args) == 2:
        return format_radix(integer('to_string', args, 0), integer('to_string', args, 1))
    return to_string(args[0])


@builtin(BUILTINS, 'to_number')
def to_number_(ctx, args: List[Any]) -> float:
    expect_count('to_number', args, 1)
    return to_number(args[0])


@builtin(BUILTINS, 'to_boolean')
def to_boolean_(ctx, args: List[Any]) -> bool:
    expect_count('to_boolean', args, 1)
    return to_boolean(args[0])


@builtin(BUILTINS, 'to_list')
def to_list_(ctx, args: List[Any]) -> List[Any]:
    expect_count('to_list', args, 1)
    return list(to_list(args[0]))


@builtin(BUILTINS, 'to_object')
def to_object_(ctx, args: List[Any]) -> Dict[str, Any]:
    expect_count('to_object', args, 1)
    return dict(to_object(args[0]))


# ============================================================================
# Files
# ============================================================================

@builtin(BUILTINS, 'write')
def write(ctx, args: List[Any]) -> None:
    """write(content, path); the path is relative to the export directory"""
    expect_count('write', args, 2, 3)
    content = string('write', args, 0)
    path = Path(ctx.config.export_path) / string('write', args, 1)
    append = boolean('write', args, 2) if len(args) == 3 else False
    try:
        with open(path, 'a' if append else 'w', encoding='utf-8') as handle:
            handle.write(content)
    except OSError as error:
        raise BuiltinError(f"Failed to write {path}: {error.strerror}", E_IO_ERROR)
    return None


@builtin(BUILTINS, 'read')
def read(ctx, args: List[Any]) -> str:
    """read(path); the path is relative to the project base directory"""
    expect_count('read', args, 1)
    path = Path(ctx.config.base_dir) / string('read', args, 0)
    if not path.exists():
        raise BuiltinError(f"File '{path}' does not exist", E_IO_ERROR)
    try:
        return path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as error:
        raise BuiltinError(f"Failed to read {path}: {error}", E_IO_ERROR)


@builtin(BUILTINS, 'read_binary')
def read_binary(ctx, args: List[Any]) -> List[float]:
    expect_count('read_binary', args, 1)
    path = Path(ctx.config.base_dir) / string('read_binary', args, 0)
    if not path.exists():
        raise BuiltinError(f"File '{path}' does not exist", E_IO_ERROR)
    try:
        data = np.frombuffer(path.read_bytes(), dtype=np.uint8)
    except OSError as error:
        raise BuiltinError(f"Failed to read {path}: {error.strerror}", E_IO_ERROR)
    return [float(b) for b in data]
