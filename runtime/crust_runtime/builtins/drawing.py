"""
Drawing builtins. Shapes are recorded on the project's DrawList in the
sprite's current draw color; colors are given in 0-255 and stored in 0-1.
"""

from typing import Any, Callable, Dict, List

from ..collaborators import DrawCommand
from ..errors import BuiltinError
from ..values import is_number
from .common import builtin, expect_count, list_arg, number, numbers


BUILTINS: Dict[str, Callable] = {}

# name -> (argument names, accepts a trailing rotation)
SHAPES = {
    'line': (('x1', 'y1', 'x2', 'y2', 'thickness'), False),
    'rect': (('x', 'y', 'width', 'height'), False),
    'hrect': (('x', 'y', 'width', 'height', 'thickness'), False),
    'circle': (('x', 'y', 'radius'), False),
    'hcircle': (('x', 'y', 'radius', 'thickness'), False),
    'ellipse': (('x', 'y', 'width', 'height'), True),
    'hellipse': (('x', 'y', 'width', 'height', 'thickness'), True),
}

CHANNELS = ('r', 'g', 'b', 'a')


def _record(ctx, shape: str, params):
    ctx.project.draw_list.add(DrawCommand(shape, tuple(params), ctx.sprite.draw_color, ctx.sprite.name))


def _shape(name: str, params, rotation: bool) -> Callable:
    def wrapper(ctx, args: List[Any]) -> None:
        # Ellipses take an optional rotation as the last argument
        counts = (len(params), len(params) + 1) if rotation else (len(params),)
        expect_count(name, args, *counts)
        _record(ctx, name, [number(name, args, i) for i in range(len(args))])
    return wrapper


for _name, (_params, _rotation) in SHAPES.items():
    BUILTINS[_name] = _shape(_name, _params, _rotation)


def _points(name: str, args: List[Any]) -> List[float]:
    flat = []
    for point in list_arg(name, args, 0):
        if not (isinstance(point, list) and len(point) == 2 and all(is_number(v) for v in point)):
            raise BuiltinError(f"{name}() expects a list of [x, y] points")
        flat.extend(float(v) for v in point)
    if len(flat) < 6:
        raise BuiltinError(f"{name}() needs at least three points")
    return flat


@builtin(BUILTINS, 'polygon')
def polygon(ctx, args: List[Any]) -> None:
    expect_count('polygon', args, 1)
    _record(ctx, 'polygon', _points('polygon', args))


@builtin(BUILTINS, 'hpolygon')
def hpolygon(ctx, args: List[Any]) -> None:
    expect_count('hpolygon', args, 2)
    _record(ctx, 'hpolygon', _points('hpolygon', args) + [number('hpolygon', args, 1)])


@builtin(BUILTINS, 'set_color')
def set_color(ctx, args: List[Any]) -> None:
    r, g, b, a = numbers('set_color', args, 4)
    ctx.sprite.draw_color = tuple(min(max(c / 255.0, 0.0), 1.0) for c in (r, g, b, a))


def _change_channel(channel: int) -> Callable:
    name = f"change_{CHANNELS[channel]}"

    def wrapper(ctx, args: List[Any]) -> None:
        (amount,) = numbers(name, args, 1)
        color = list(ctx.sprite.draw_color)
        color[channel] = min(max(color[channel] + amount / 255.0, 0.0), 1.0)
        ctx.sprite.draw_color = tuple(color)
    return wrapper


def _read_channel(channel: int) -> Callable:
    def wrapper(ctx, args: List[Any]) -> float:
        return ctx.sprite.draw_color[channel] * 255.0
    return wrapper


for _index, _channel in enumerate(CHANNELS):
    BUILTINS[f"change_{_channel}"] = _change_channel(_index)
    BUILTINS[_channel] = _read_channel(_index)


@builtin(BUILTINS, 'stamp')
def stamp(ctx, args: List[Any]) -> None:
    """Leave a persistent copy of the sprite's current look on the stage"""
    sprite = ctx.sprite
    ctx.project.draw_list.stamp({
        'sprite': sprite.name,
        'costume': sprite.costume,
        'x': sprite.x,
        'y': sprite.y,
        'direction': sprite.direction,
        'scale': sprite.scale,
        'effects': dict(sprite.effects),
    })


@builtin(BUILTINS, 'clear_all_stamps')
def clear_all_stamps(ctx, args: List[Any]) -> None:
    ctx.project.draw_list.clear_stamps()
