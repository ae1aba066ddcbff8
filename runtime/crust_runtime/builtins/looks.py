"""
Looks builtins: visibility, dialogue, costumes, backdrops, scale, effects
and layering.
"""

from typing import Any, Callable, Dict, List

from ..errors import BuiltinError, E_NAME_ERROR, E_VALUE_ERROR
from ..sprite import Dialogue
from ..values import is_number, to_string
from .common import builtin, expect_count, integer, number, numbers, string


BUILTINS: Dict[str, Callable] = {}


@builtin(BUILTINS, 'hide')
def hide(ctx, args: List[Any]) -> None:
    ctx.sprite.visible = False


@builtin(BUILTINS, 'show')
def show(ctx, args: List[Any]) -> None:
    ctx.sprite.visible = True


@builtin(BUILTINS, 'visible')
def visible(ctx, args: List[Any]) -> bool:
    return ctx.sprite.visible


def _dialogue(ctx, name: str, args: List[Any], think: bool):
    expect_count(name, args, 1, 2)
    remaining = None
    if len(args) == 2:
        remaining = ctx.config.seconds_to_ticks(number(name, args, 1))
    ctx.sprite.dialogue = Dialogue(to_string(args[0]), think=think, remaining=remaining)


@builtin(BUILTINS, 'say')
def say(ctx, args: List[Any]) -> None:
    """say(text) shows until replaced; say(text, seconds) also pauses the script"""
    _dialogue(ctx, 'say', args, think=False)


@builtin(BUILTINS, 'think')
def think(ctx, args: List[Any]) -> None:
    _dialogue(ctx, 'think', args, think=True)


# ============================================================================
# Costumes and Backdrops
# ============================================================================

@builtin(BUILTINS, 'switch_costume')
def switch_costume(ctx, args: List[Any]) -> None:
    expect_count('switch_costume', args, 1)
    sprite = ctx.sprite
    if is_number(args[0]):
        index = integer('switch_costume', args, 0)
        if sprite.costumes and not 0 <= index < len(sprite.costumes):
            raise BuiltinError(f"Costume index {index} out of range", E_VALUE_ERROR)
        sprite.current_costume = index
        return
    name = string('switch_costume', args, 0)
    if name not in sprite.costumes:
        raise BuiltinError(f"Costume '{name}' not found", E_NAME_ERROR)
    sprite.current_costume = sprite.costumes.index(name)


@builtin(BUILTINS, 'next_costume')
def next_costume(ctx, args: List[Any]) -> None:
    sprite = ctx.sprite
    if sprite.costumes:
        sprite.current_costume = (sprite.current_costume + 1) % len(sprite.costumes)


@builtin(BUILTINS, 'previous_costume')
def previous_costume(ctx, args: List[Any]) -> None:
    sprite = ctx.sprite
    if sprite.costumes:
        sprite.current_costume = (sprite.current_costume - 1) % len(sprite.costumes)


@builtin(BUILTINS, 'costume')
def costume(ctx, args: List[Any]) -> float:
    return float(ctx.sprite.current_costume)


@builtin(BUILTINS, 'switch_backdrop')
def switch_backdrop(ctx, args: List[Any]) -> None:
    expect_count('switch_backdrop', args, 1)
    stage = ctx.project.stage
    if is_number(args[0]):
        index = integer('switch_backdrop', args, 0)
        if not 0 <= index < max(len(stage.backdrops), 1):
            raise BuiltinError(f"Backdrop index {index} out of range", E_VALUE_ERROR)
        stage.current = index
    elif not stage.switch(string('switch_backdrop', args, 0)):
        raise BuiltinError(f"Backdrop '{args[0]}' not found", E_NAME_ERROR)


@builtin(BUILTINS, 'next_backdrop')
def next_backdrop(ctx, args: List[Any]) -> None:
    ctx.project.stage.next()


@builtin(BUILTINS, 'previous_backdrop')
def previous_backdrop(ctx, args: List[Any]) -> None:
    ctx.project.stage.previous()


@builtin(BUILTINS, 'backdrop')
def backdrop(ctx, args: List[Any]) -> float:
    return float(ctx.project.stage.current)


# ============================================================================
# Size and Effects
# ============================================================================

@builtin(BUILTINS, 'set_scale')
def set_scale(ctx, args: List[Any]) -> None:
    """Percent: set_scale(150) draws at 1.5x"""
    (percent,) = numbers('set_scale', args, 1)
    ctx.sprite.scale = percent / 100.0


@builtin(BUILTINS, 'change_scale')
def change_scale(ctx, args: List[Any]) -> None:
    (percent,) = numbers('change_scale', args, 1)
    ctx.sprite.scale += percent / 100.0


@builtin(BUILTINS, 'scale')
def scale(ctx, args: List[Any]) -> float:
    return ctx.sprite.scale * 100.0


@builtin(BUILTINS, 'size')
def size(ctx, args: List[Any]) -> List[float]:
    width, height = ctx.sprite.scaled_size
    return [width, height]


@builtin(BUILTINS, 'bounds')
def bounds(ctx, args: List[Any]) -> List[float]:
    """[left, top, right, bottom]"""
    box = ctx.sprite.bounds()
    return [box['left'], box['top'], box['right'], box['bottom']]


@builtin(BUILTINS, 'set_effect')
def set_effect(ctx, args: List[Any]) -> None:
    expect_count('set_effect', args, 2)
    ctx.sprite.effects[string('set_effect', args, 0)] = number('set_effect', args, 1)


@builtin(BUILTINS, 'change_effect')
def change_effect(ctx, args: List[Any]) -> None:
    expect_count('change_effect', args, 2)
    name = string('change_effect', args, 0)
    ctx.sprite.effects[name] = ctx.sprite.effects.get(name, 0.0) + number('change_effect', args, 1)


@builtin(BUILTINS, 'clear_effect')
def clear_effect(ctx, args: List[Any]) -> None:
    expect_count('clear_effect', args, 1)
    ctx.sprite.effects.pop(string('clear_effect', args, 0), None)


@builtin(BUILTINS, 'clear_effects')
def clear_effects(ctx, args: List[Any]) -> None:
    ctx.sprite.effects.clear()


@builtin(BUILTINS, 'effect')
def effect(ctx, args: List[Any]) -> float:
    expect_count('effect', args, 1)
    return ctx.sprite.effects.get(string('effect', args, 0), 0.0)


# ============================================================================
# Layers
# ============================================================================

@builtin(BUILTINS, 'go_to_layer')
def go_to_layer(ctx, args: List[Any]) -> None:
    expect_count('go_to_layer', args, 1)
    ctx.sprite.layer = integer('go_to_layer', args, 0)


@builtin(BUILTINS, 'go_by_layers')
def go_by_layers(ctx, args: List[Any]) -> None:
    expect_count('go_by_layers', args, 2)
    way = string('go_by_layers', args, 0)
    steps = integer('go_by_layers', args, 1)
    if way == 'forwards':
        ctx.sprite.layer += steps
    elif way == 'backwards':
        ctx.sprite.layer -= steps
    else:
        raise BuiltinError("go_by_layers() requires 'forwards' or 'backwards' as the first argument",
                           E_VALUE_ERROR)


@builtin(BUILTINS, 'layer')
def layer(ctx, args: List[Any]) -> float:
    return float(ctx.sprite.layer)
