"""
Crust Runtime - Scheduler

Runs one tick for one sprite, in a fixed order:

1. an active glide advances one tick and nothing else runs
2. setup until it has finished, then every update script
3. broadcast handlers for messages delivered this tick
4. conditional handlers whose guard is true
5. the pending stop request, clone removal, then every clone

Two policies decide how a statement list resumes after a suspension
(wait, timed dialogue):

- "cursor": each script keeps its position and continues from there on
  the next tick; counters count down once per tick.
- "replay": each pass starts at the first statement again and the
  counters count down once per statement check. Statements before a pending
  wait therefore run again every tick.
"""

from typing import Any, Sequence

from .easing import lerp_point
from .evaluator import ExecutionContext
from .sprite import (
    Script, Sprite,
    STOP_ALL, STOP_THIS, STOP_SCRIPT, STOP_OTHER_SCRIPTS, STOP_OTHER_SPRITES_AND_SCRIPTS,
)
from .values import to_boolean


class Scheduler:
    """Per-sprite, per-tick script driver"""

    def __init__(self, config):
        self.config = config

    @property
    def replay(self) -> bool:
        return self.config.replay

    def step(self, sprite: Sprite, project: Any, snapshots: Sequence[Any]):
        """Advance one sprite (and then its clones) by one tick"""
        if sprite.glide is not None:
            self._advance_glide(sprite)
        else:
            self._run_scripts(sprite, project, snapshots)

        self._apply_stop_request(sprite, project)
        sprite.clones = [clone for clone in sprite.clones if not clone.delete_pending]
        for clone in list(sprite.clones):
            self.step(clone, project, snapshots)

    # ------------------------------------------------------------------
    # Glide
    # ------------------------------------------------------------------

    def _advance_glide(self, sprite: Sprite):
        glide = sprite.glide
        glide.elapsed += 1
        if glide.elapsed >= glide.duration:
            sprite.move_to(*glide.end)
            sprite.glide = None
            return
        progress = glide.easing(glide.elapsed / glide.duration)
        sprite.move_to(*lerp_point(glide.start, glide.end, progress))

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    def _run_scripts(self, sprite: Sprite, project: Any, snapshots: Sequence[Any]):
        if not self.replay:
            sprite.tick_suspension()

        if not sprite.setup_finished:
            if self._run(sprite.setup, sprite, project, snapshots):
                sprite.setup_finished = True
        else:
            for script in sprite.updates:
                if self._run(script, sprite, project, snapshots):
                    script.cursor = 0

        handled_now = set()
        for script in sprite.broadcast_handlers:
            if script.stopped:
                continue
            if script.running:
                self._continue_handler(script, sprite, project, snapshots)
                continue
            broadcast_id = project.broadcasts.delivered_id(script.message)
            if broadcast_id is None:
                continue
            if broadcast_id in sprite.completed_broadcasts and broadcast_id not in handled_now:
                continue
            sprite.completed_broadcasts.add(broadcast_id)
            handled_now.add(broadcast_id)
            self._start_handler(script, sprite, project, snapshots)

        for script in sprite.condition_handlers:
            if script.stopped:
                continue
            if script.running:
                self._continue_handler(script, sprite, project, snapshots)
                continue
            ctx = ExecutionContext(sprite, project, tuple(snapshots), script.script_id)
            guard = to_boolean(project.evaluator.resolve(script.condition, ctx))
            if script.fired:
                if self.config.rearm_conditions and not guard:
                    script.fired = False
                continue
            if guard:
                script.fired = True
                self._start_handler(script, sprite, project, snapshots)

    def _start_handler(self, script: Script, sprite: Sprite, project: Any, snapshots: Sequence[Any]):
        script.cursor = 0
        script.running = True
        self._continue_handler(script, sprite, project, snapshots)

    def _continue_handler(self, script: Script, sprite: Sprite, project: Any, snapshots: Sequence[Any]):
        if self._run(script, sprite, project, snapshots):
            script.running = False
            script.cursor = 0

    def _run(self, script: Script, sprite: Sprite, project: Any, snapshots: Sequence[Any]) -> bool:
        """One pass over a script; True when the script reached its end"""
        if self.replay:
            script.cursor = 0
        ctx = ExecutionContext(sprite, project, tuple(snapshots), script.script_id)

        while script.cursor < len(script.body):
            if self._suspended(sprite):
                # A replayed pass always counts as complete
                return self.replay
            statement = script.body[script.cursor]
            script.cursor += 1
            project.evaluator.execute(statement, ctx)
            if script.stopped:
                return True
            if sprite.skip_frame:
                sprite.skip_frame = False
                return True
        return True

    def _suspended(self, sprite: Sprite) -> bool:
        if sprite.glide is not None and not self.replay:
            return True
        if sprite.wait_ticks > 0:
            if self.replay:
                sprite.wait_ticks -= 1
            return True
        dialogue = sprite.dialogue
        if dialogue is not None and dialogue.remaining is not None:
            if not self.replay:
                return dialogue.remaining > 0
            if dialogue.remaining > 0:
                dialogue.remaining -= 1
            else:
                sprite.dialogue = None
            return True
        return False

    # ------------------------------------------------------------------
    # Stop requests
    # ------------------------------------------------------------------

    def _apply_stop_request(self, sprite: Sprite, project: Any):
        request = sprite.stop_request
        if request is None:
            return
        sprite.stop_request = None

        if request.kind == STOP_ALL:
            project.request_stop_all()
        elif request.kind == STOP_THIS:
            sprite.stop_self()
        elif request.kind == STOP_SCRIPT:
            sprite.stop_script(request.script_id)
        elif request.kind == STOP_OTHER_SCRIPTS:
            sprite.stop_other_scripts(request.script_id)
        elif request.kind == STOP_OTHER_SPRITES_AND_SCRIPTS:
            sprite.stop_other_scripts(request.script_id)
            project.request_stop_others(sprite)
