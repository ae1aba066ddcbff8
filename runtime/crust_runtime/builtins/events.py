"""Input queries and broadcasts."""

from typing import Any, Callable, Dict, List

from ..errors import BuiltinError, E_NAME_ERROR
from .common import builtin, expect_count, string


BUILTINS: Dict[str, Callable] = {}


def _query(name: str, method: str) -> Callable:
    def wrapper(ctx, args: List[Any]) -> bool:
        expect_count(name, args, 1)
        return getattr(ctx.project.input, method)(string(name, args, 0))
    return wrapper


for _name, _method in (
    ('key_down', 'key_down'),
    ('key_pressed', 'key_pressed'),
    ('key_released', 'key_released'),
    ('mouse_button_down', 'button_down'),
    ('mouse_button_pressed', 'button_pressed'),
    ('mouse_button_released', 'button_released'),
):
    BUILTINS[_name] = _query(_name, _method)


@builtin(BUILTINS, 'mouse_x')
def mouse_x(ctx, args: List[Any]) -> float:
    return float(ctx.project.frame.mouse[0])


@builtin(BUILTINS, 'mouse_y')
def mouse_y(ctx, args: List[Any]) -> float:
    return float(ctx.project.frame.mouse[1])


@builtin(BUILTINS, 'sprite_clicked')
def sprite_clicked(ctx, args: List[Any]) -> bool:
    return ctx.project.frame.clicked_sprite == ctx.sprite.name


@builtin(BUILTINS, 'is_backdrop')
def is_backdrop(ctx, args: List[Any]) -> bool:
    expect_count('is_backdrop', args, 1)
    return ctx.project.stage.backdrop == string('is_backdrop', args, 0)


@builtin(BUILTINS, 'broadcast')
def broadcast(ctx, args: List[Any]) -> float:
    """Handlers for the message run on the next tick; returns its id"""
    expect_count('broadcast', args, 1)
    return float(ctx.project.broadcasts.post(string('broadcast', args, 0)))


@builtin(BUILTINS, 'broadcast_id_of')
def broadcast_id_of(ctx, args: List[Any]) -> float:
    expect_count('broadcast_id_of', args, 1)
    message = string('broadcast_id_of', args, 0)
    broadcast_id = ctx.project.broadcasts.lookup(message)
    if broadcast_id is None:
        raise BuiltinError(f"Broadcast '{message}' not found", E_NAME_ERROR)
    return float(broadcast_id)
