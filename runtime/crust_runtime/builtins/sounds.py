"""Sound builtins. Playback goes through the project's AudioSink."""

from typing import Any, Callable, Dict, List

from ..errors import BuiltinError, E_NAME_ERROR
from .common import builtin, boolean, expect_count, number, string


BUILTINS: Dict[str, Callable] = {}


def _sound(ctx, name: str, args: List[Any]) -> str:
    sound = string(name, args, 0)
    if sound not in ctx.sprite.sounds:
        raise BuiltinError(f"Sound '{sound}' not found", E_NAME_ERROR)
    return sound


@builtin(BUILTINS, 'play_sound')
def play_sound(ctx, args: List[Any]) -> None:
    """play_sound(name[, stop_others])"""
    expect_count('play_sound', args, 1, 2)
    sound = _sound(ctx, 'play_sound', args)
    if len(args) == 2 and boolean('play_sound', args, 1):
        stop_all_sounds(ctx, [])
    volume = ctx.sprite.sound_effects.get('volume', 100.0) / 100.0
    ctx.project.audio.play(sound, volume)


@builtin(BUILTINS, 'stop_sound')
def stop_sound(ctx, args: List[Any]) -> None:
    expect_count('stop_sound', args, 1)
    ctx.project.audio.stop(_sound(ctx, 'stop_sound', args))


@builtin(BUILTINS, 'stop_all_sounds')
def stop_all_sounds(ctx, args: List[Any]) -> None:
    for sound in ctx.sprite.sounds:
        ctx.project.audio.stop(sound)


@builtin(BUILTINS, 'set_sound_effect')
def set_sound_effect(ctx, args: List[Any]) -> None:
    expect_count('set_sound_effect', args, 2)
    ctx.sprite.sound_effects[string('set_sound_effect', args, 0)] = number('set_sound_effect', args, 1)


@builtin(BUILTINS, 'change_sound_effect')
def change_sound_effect(ctx, args: List[Any]) -> None:
    expect_count('change_sound_effect', args, 2)
    effect = string('change_sound_effect', args, 0)
    effects = ctx.sprite.sound_effects
    effects[effect] = effects.get(effect, 0.0) + number('change_sound_effect', args, 1)


@builtin(BUILTINS, 'sound_effect')
def sound_effect(ctx, args: List[Any]) -> float:
    expect_count('sound_effect', args, 1)
    effect = string('sound_effect', args, 0)
    if effect not in ctx.sprite.sound_effects:
        raise BuiltinError(f"Sound effect '{effect}' not found", E_NAME_ERROR)
    return ctx.sprite.sound_effects[effect]
