"""Control builtins: waiting, stopping, cloning and frame skipping."""

from typing import Any, Callable, Dict, List

from ..errors import BuiltinError, E_NAME_ERROR, E_VALUE_ERROR
from ..sprite import StopRequest, STOP_KINDS
from ..values import is_number
from .common import builtin, boolean, expect_count, integer, numbers, string


BUILTINS: Dict[str, Callable] = {}


@builtin(BUILTINS, 'wait')
def wait(ctx, args: List[Any]) -> None:
    """Pause the sprite's scripts for the given number of seconds"""
    (seconds,) = numbers('wait', args, 1)
    ctx.sprite.wait_ticks = ctx.config.seconds_to_ticks(seconds)


@builtin(BUILTINS, 'stop')
def stop(ctx, args: List[Any]) -> None:
    expect_count('stop', args, 1)
    kind = string('stop', args, 0)
    if kind not in STOP_KINDS:
        raise BuiltinError(f"stop() expects one of {', '.join(STOP_KINDS)}", E_VALUE_ERROR)
    ctx.sprite.stop_request = StopRequest(kind, ctx.script_id)


@builtin(BUILTINS, 'clone')
def clone(ctx, args: List[Any]) -> float:
    """Clone the calling sprite; returns the new clone id"""
    expect_count('clone', args, 0)
    return float(ctx.sprite.make_clone().clone_id)


@builtin(BUILTINS, 'delete_clone')
def delete_clone(ctx, args: List[Any]) -> None:
    """delete_clone() removes the calling clone, delete_clone(id) an owned one"""
    expect_count('delete_clone', args, 0, 1)
    if not args:
        if ctx.sprite.clone_id is None:
            raise BuiltinError("delete_clone() called on a sprite that is not a clone", E_VALUE_ERROR)
        ctx.sprite.delete_pending = True
        return
    if not is_number(args[0]):
        raise BuiltinError("delete_clone() expects a clone id")
    clone_id = integer('delete_clone', args, 0)
    target = ctx.sprite.find_clone(clone_id)
    if target is None:
        raise BuiltinError(f"Clone {clone_id} not found", E_NAME_ERROR)
    target.delete_pending = True


@builtin(BUILTINS, 'skip_further_execution_if')
def skip_further_execution_if(ctx, args: List[Any]) -> None:
    expect_count('skip_further_execution_if', args, 1)
    if boolean('skip_further_execution_if', args, 0):
        ctx.sprite.skip_frame = True
