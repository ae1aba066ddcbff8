"""
Crust Runtime - Sprites

A Sprite owns its transform and look state, its variables and functions,
its categorized scripts and the suspension state the scheduler consults.
Clones are Sprites owned by the sprite that created them.

Script ids are positional: setup is 0, update scripts are 1..n, broadcast
handlers come next and conditional handlers last. Stop requests target
scripts by these ids.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from .easing import EasingCurve
from .nodes import (
    Statement, Expression, Setup, Update, CloneSetup, CloneUpdate,
    WhenBroadcast, WhenCondition, FunctionDefinition, Import,
)
from .values import Closure, UserFunction


ROTATION_STYLES = ('all-around', 'left-right', 'dont-rotate')

STOP_ALL = 'all'
STOP_THIS = 'this'
STOP_SCRIPT = 'script'
STOP_OTHER_SCRIPTS = 'other-scripts'
STOP_OTHER_SPRITES_AND_SCRIPTS = 'other-sprites-and-scripts'
STOP_KINDS = (STOP_ALL, STOP_THIS, STOP_SCRIPT, STOP_OTHER_SCRIPTS, STOP_OTHER_SPRITES_AND_SCRIPTS)


# ============================================================================
# Sprite State Records
# ============================================================================

@dataclass
class Dialogue:
    """Speech or thought bubble; remaining is None for an untimed bubble"""
    text: str
    think: bool = False
    remaining: Optional[int] = None


@dataclass
class Glide:
    """Position interpolation in progress"""
    start: Tuple[float, float]
    end: Tuple[float, float]
    duration: int
    easing: EasingCurve
    elapsed: int = 0


@dataclass
class StopRequest:
    """Pending stop, applied after the sprite's pass"""
    kind: str
    script_id: int = 0


@dataclass(frozen=True)
class SpriteSnapshot:
    """Read-only view of a sprite taken before anyone runs in a tick"""
    name: str
    x: float
    y: float
    size: Tuple[float, float]
    scale: float
    direction: float
    completed_broadcasts: FrozenSet[int]
    tags: Tuple[str, ...]
    visible: bool = True
    layer: int = 0
    costume: Optional[str] = None

    def property(self, name: str) -> Any:
        """Script-facing property lookup used by property_of()"""
        if name == 'size':
            return [self.size[0], self.size[1]]
        if name == 'scale':
            return self.scale * 100.0
        if name == 'completed_broadcasts':
            return sorted(float(i) for i in self.completed_broadcasts)
        if name == 'tags':
            return list(self.tags)
        if name in ('name', 'x', 'y', 'direction', 'visible', 'costume'):
            return getattr(self, name)
        if name == 'layer':
            return float(self.layer)
        return None


# ============================================================================
# Scripts
# ============================================================================

class Script:
    """One categorized statement list plus its scheduling state"""

    def __init__(self, script_id: int, kind: str, body: List[Statement],
                 message: Optional[str] = None, condition: Optional[Expression] = None):
        self.script_id = script_id
        self.kind = kind
        self.body = body
        self.message = message
        self.condition = condition
        self.cursor = 0
        self.running = False
        self.fired = False
        self.stopped = False

    def stop(self):
        self.body = []
        self.cursor = 0
        self.running = False
        self.stopped = True

    def __repr__(self) -> str:
        return f"<Script {self.script_id} {self.kind} cursor={self.cursor}/{len(self.body)}>"


# ============================================================================
# Sprite
# ============================================================================

class Sprite:
    """Scripted visual entity"""

    def __init__(self, name: str, statements: Sequence[Statement] = (),
                 loader=None, tags: Sequence[str] = (), costumes: Sequence[str] = (),
                 sounds: Sequence[str] = ()):
        self.name = name
        self.clone_id: Optional[int] = None
        self.tags = list(tags)

        # Transform and looks
        self.x = 0.0
        self.y = 0.0
        self.size = (100.0, 100.0)
        self.direction = 0.0
        self.rotation_style = 'all-around'
        self.scale = 1.0
        self.layer = 0
        self.visible = True
        self.draw_color = (1.0, 1.0, 1.0, 1.0)
        self.effects: Dict[str, float] = {}
        self.sound_effects: Dict[str, float] = {'volume': 100.0}
        self.edge_bounce = False
        self.costumes = list(costumes)
        self.current_costume = 0
        self.sounds = list(sounds)

        # Environment
        self.variables: Dict[str, Any] = {}
        self.functions: Dict[str, Closure] = {}

        # Suspension and lifecycle
        self.wait_ticks = 0
        self.dialogue: Optional[Dialogue] = None
        self.glide: Optional[Glide] = None
        self.skip_frame = False
        self.stop_request: Optional[StopRequest] = None
        self.delete_pending = False
        self.setup_finished = False
        self.completed_broadcasts = set()
        self.clones: List['Sprite'] = []
        self._next_clone_id = 1

        # Script definitions, kept so clones get fresh copies
        self.clone_setup_body: List[Statement] = []
        self.clone_update_bodies: List[List[Statement]] = []
        self.broadcast_defs: List[Tuple[str, List[Statement]]] = []
        self.condition_defs: List[Tuple[Expression, List[Statement]]] = []

        setup_body: List[Statement] = []
        update_bodies: List[List[Statement]] = []
        loose: List[Statement] = []
        hoisted: List[Statement] = []

        for statement in statements:
            if isinstance(statement, Setup):
                setup_body.extend(statement.body)
            elif isinstance(statement, Update):
                update_bodies.append(statement.body)
            elif isinstance(statement, CloneSetup):
                self.clone_setup_body = statement.body
            elif isinstance(statement, CloneUpdate):
                self.clone_update_bodies.append(statement.body)
            elif isinstance(statement, WhenBroadcast):
                self.broadcast_defs.append((statement.message, statement.body))
            elif isinstance(statement, WhenCondition):
                self.condition_defs.append((statement.condition, statement.body))
            elif isinstance(statement, FunctionDefinition):
                self.define_function(statement)
            elif isinstance(statement, Import):
                if loader is not None:
                    module = loader.load(statement.path)
                    for definition in module.functions:
                        self.define_function(definition)
                    hoisted.extend(module.assignments)
            else:
                # Top-level statements outside any section run with setup
                loose.append(statement)

        self._install_scripts(hoisted + loose + setup_body, update_bodies)

    def _install_scripts(self, setup_body: List[Statement], update_bodies: List[List[Statement]]):
        next_id = 0
        self.setup = Script(next_id, 'setup', list(setup_body))
        self.updates: List[Script] = []
        for body in update_bodies:
            next_id += 1
            self.updates.append(Script(next_id, 'update', list(body)))
        self.broadcast_handlers: List[Script] = []
        for message, body in self.broadcast_defs:
            next_id += 1
            self.broadcast_handlers.append(Script(next_id, 'broadcast', list(body), message=message))
        self.condition_handlers: List[Script] = []
        for condition, body in self.condition_defs:
            next_id += 1
            self.condition_handlers.append(Script(next_id, 'condition', list(body), condition=condition))

    def define_function(self, definition: FunctionDefinition):
        self.functions[definition.name] = UserFunction(
            definition.name, definition.params, definition.body, definition.returns,
        )

    # ------------------------------------------------------------------
    # Scripts and stopping
    # ------------------------------------------------------------------

    @property
    def scripts(self) -> List[Script]:
        return [self.setup] + self.updates + self.broadcast_handlers + self.condition_handlers

    def find_script(self, script_id: int) -> Optional[Script]:
        for script in self.scripts:
            if script.script_id == script_id:
                return script
        return None

    def stop_script(self, script_id: int):
        script = self.find_script(script_id)
        if script is not None:
            script.stop()

    def stop_other_scripts(self, script_id: int):
        for script in self.scripts:
            if script.script_id != script_id:
                script.stop()

    def stop_self(self):
        """Clear every script of this sprite and of its clones"""
        for script in self.scripts:
            script.stop()
        self.glide = None
        self.wait_ticks = 0
        for clone in self.clones:
            clone.stop_self()

    # ------------------------------------------------------------------
    # Suspension
    # ------------------------------------------------------------------

    def tick_suspension(self):
        """Count down wait and timed dialogue by one tick"""
        if self.wait_ticks > 0:
            self.wait_ticks -= 1
        if self.dialogue is not None and self.dialogue.remaining is not None:
            self.dialogue.remaining -= 1
            if self.dialogue.remaining <= 0:
                self.dialogue = None

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def move_to(self, x: float, y: float):
        self.x = float(x)
        self.y = float(y)

    def move_by(self, step: float, window_size: Tuple[float, float]):
        radians = math.radians(self.direction)
        self.x += step * math.cos(radians)
        self.y += step * math.sin(radians)
        if self.edge_bounce:
            self.bounce_off_edges(window_size)

    def bounce_off_edges(self, window_size: Tuple[float, float]):
        """Reflect direction and clamp when the sprite leaves the window"""
        half_w = window_size[0] / 2.0
        half_h = window_size[1] / 2.0
        width, height = self.scaled_size
        min_x, max_x = -half_w + width / 2.0, half_w - width / 2.0
        min_y, max_y = -half_h + height / 2.0, half_h - height / 2.0
        if self.x < min_x or self.x > max_x:
            self.direction = (180.0 - self.direction) % 360.0
            self.x = min(max(self.x, min_x), max_x)
        if self.y < min_y or self.y > max_y:
            self.direction = (-self.direction) % 360.0
            self.y = min(max(self.y, min_y), max_y)

    @property
    def scaled_size(self) -> Tuple[float, float]:
        return (self.size[0] * self.scale, self.size[1] * self.scale)

    def bounds(self) -> Dict[str, float]:
        width, height = self.scaled_size
        return {
            'left': self.x - width / 2.0,
            'right': self.x + width / 2.0,
            'top': self.y - height / 2.0,
            'bottom': self.y + height / 2.0,
        }

    @property
    def costume(self) -> Optional[str]:
        if not self.costumes:
            return None
        return self.costumes[self.current_costume % len(self.costumes)]

    # ------------------------------------------------------------------
    # Clones and snapshots
    # ------------------------------------------------------------------

    def make_clone(self) -> 'Sprite':
        """Create a clone owned by this sprite and running the clone scripts"""
        number = self._next_clone_id
        self._next_clone_id += 1

        clone = Sprite(f"{self.name} (clone {number})", tags=self.tags,
                       costumes=self.costumes, sounds=self.sounds)
        clone.clone_id = number
        clone.x, clone.y = self.x, self.y
        clone.size = self.size
        clone.direction = self.direction
        clone.rotation_style = self.rotation_style
        clone.scale = self.scale
        clone.layer = self.layer
        clone.draw_color = self.draw_color
        clone.effects = dict(self.effects)
        clone.sound_effects = dict(self.sound_effects)
        clone.edge_bounce = self.edge_bounce
        clone.current_costume = self.current_costume
        # Shallow: container values stay shared with the parent
        clone.variables = dict(self.variables)
        clone.functions = dict(self.functions)

        clone.clone_setup_body = self.clone_setup_body
        clone.clone_update_bodies = self.clone_update_bodies
        clone.broadcast_defs = self.broadcast_defs
        clone.condition_defs = self.condition_defs
        clone._install_scripts(self.clone_setup_body, self.clone_update_bodies)

        self.clones.append(clone)
        return clone

    def find_clone(self, clone_id: int) -> Optional['Sprite']:
        for clone in self.clones:
            if clone.clone_id == clone_id:
                return clone
        return None

    def iter_tree(self):
        """This sprite followed by all clones, depth first"""
        yield self
        for clone in self.clones:
            yield from clone.iter_tree()

    def snapshot(self) -> SpriteSnapshot:
        return SpriteSnapshot(
            name=self.name,
            x=self.x,
            y=self.y,
            size=self.size,
            scale=self.scale,
            direction=self.direction,
            completed_broadcasts=frozenset(self.completed_broadcasts),
            tags=tuple(self.tags),
            visible=self.visible,
            layer=self.layer,
            costume=self.costume,
        )

    def __repr__(self) -> str:
        return f"<Sprite {self.name!r} at ({self.x:g}, {self.y:g})>"
