"""
Motion builtins. Positions are in stage coordinates centred on the window;
direction is in degrees, 0 pointing along +x.
"""

from typing import Any, Callable, Dict, List, Tuple

import numpy as np

from ..easing import get_easing
from ..errors import BuiltinError, E_NAME_ERROR, E_VALUE_ERROR
from ..sprite import Glide, ROTATION_STYLES
from ..values import is_number
from .common import builtin, boolean, expect_count, number, numbers, string


BUILTINS: Dict[str, Callable] = {}


def resolve_target(ctx, name: str, args: List[Any]) -> Tuple[float, float]:
    """(x, y) numbers, "mouse", "random" or a sprite name from this tick's snapshots"""
    if len(args) == 2:
        return number(name, args, 0), number(name, args, 1)
    target = string(name, args, 0)
    if target == 'mouse':
        return ctx.project.frame.mouse
    if target == 'random':
        width, height = ctx.project.frame.window_size
        x = ctx.project.rng.uniform(-width / 2.0, width / 2.0)
        y = ctx.project.rng.uniform(-height / 2.0, height / 2.0)
        return float(x), float(y)
    snapshot = ctx.find_snapshot(target)
    if snapshot is None:
        raise BuiltinError(f"{name}() target '{target}' not found", E_NAME_ERROR)
    return snapshot.x, snapshot.y


@builtin(BUILTINS, 'move')
def move(ctx, args: List[Any]) -> None:
    (step,) = numbers('move', args, 1)
    ctx.sprite.move_by(step, ctx.project.frame.window_size)


@builtin(BUILTINS, 'turn_cw')
def turn_cw(ctx, args: List[Any]) -> None:
    (degrees,) = numbers('turn_cw', args, 1)
    ctx.sprite.direction = (ctx.sprite.direction + degrees) % 360.0


@builtin(BUILTINS, 'turn_ccw')
def turn_ccw(ctx, args: List[Any]) -> None:
    (degrees,) = numbers('turn_ccw', args, 1)
    ctx.sprite.direction = (ctx.sprite.direction - degrees) % 360.0


@builtin(BUILTINS, 'goto')
def goto(ctx, args: List[Any]) -> None:
    expect_count('goto', args, 1, 2)
    ctx.sprite.move_to(*resolve_target(ctx, 'goto', args))


@builtin(BUILTINS, 'glide')
def glide(ctx, args: List[Any]) -> None:
    """glide(x, y, seconds[, easing]) or glide(target, seconds[, easing])"""
    expect_count('glide', args, 2, 3, 4)
    if is_number(args[0]):
        if len(args) < 3:
            raise BuiltinError("glide() requires two position arguments and a duration")
        end = resolve_target(ctx, 'glide', args[:2])
        rest = args[2:]
    else:
        end = resolve_target(ctx, 'glide', args[:1])
        rest = args[1:]
        if len(rest) > 2:
            raise BuiltinError("glide() takes a target, a duration and an optional easing")

    seconds = number('glide', rest, 0)
    easing = get_easing(string('glide', rest, 1).lower() if len(rest) == 2 else 'linear')
    ctx.sprite.glide = Glide(
        start=ctx.sprite.position,
        end=(float(end[0]), float(end[1])),
        duration=ctx.config.seconds_to_ticks(seconds),
        easing=easing,
    )


@builtin(BUILTINS, 'point')
def point(ctx, args: List[Any]) -> None:
    """point(angle), point(x, y) or point(target)"""
    expect_count('point', args, 1, 2)
    if len(args) == 1 and is_number(args[0]):
        ctx.sprite.direction = float(args[0]) % 360.0
        return
    x, y = resolve_target(ctx, 'point', args)
    dx, dy = x - ctx.sprite.x, y - ctx.sprite.y
    if dx == 0 and dy == 0:
        return
    ctx.sprite.direction = float(np.degrees(np.arctan2(dy, dx))) % 360.0


@builtin(BUILTINS, 'set_x')
def set_x(ctx, args: List[Any]) -> None:
    (ctx.sprite.x,) = numbers('set_x', args, 1)


@builtin(BUILTINS, 'set_y')
def set_y(ctx, args: List[Any]) -> None:
    (ctx.sprite.y,) = numbers('set_y', args, 1)


@builtin(BUILTINS, 'change_x')
def change_x(ctx, args: List[Any]) -> None:
    (amount,) = numbers('change_x', args, 1)
    ctx.sprite.x += amount


@builtin(BUILTINS, 'change_y')
def change_y(ctx, args: List[Any]) -> None:
    (amount,) = numbers('change_y', args, 1)
    ctx.sprite.y += amount


@builtin(BUILTINS, 'edge_bounce')
def edge_bounce(ctx, args: List[Any]) -> None:
    expect_count('edge_bounce', args, 1)
    ctx.sprite.edge_bounce = boolean('edge_bounce', args, 0)


@builtin(BUILTINS, 'rotation_style')
def rotation_style(ctx, args: List[Any]) -> None:
    expect_count('rotation_style', args, 1)
    style = string('rotation_style', args, 0)
    if style not in ROTATION_STYLES:
        raise BuiltinError(f"Invalid rotation style '{style}', expected one of {', '.join(ROTATION_STYLES)}",
                           E_VALUE_ERROR)
    ctx.sprite.rotation_style = style


@builtin(BUILTINS, 'direction')
def direction(ctx, args: List[Any]) -> float:
    return ctx.sprite.direction


@builtin(BUILTINS, 'x')
def x(ctx, args: List[Any]) -> float:
    return ctx.sprite.x


@builtin(BUILTINS, 'y')
def y(ctx, args: List[Any]) -> float:
    return ctx.sprite.y
