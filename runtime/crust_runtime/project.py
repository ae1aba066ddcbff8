"""
Crust Runtime - Project

The Project owns everything shared between sprites: globals, the stage,
the broadcast registry, the builtin table and the collaborator surfaces.
tick() is the engine's heartbeat; call it once per rendered frame.
"""

from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .builtins import build_registry
from .collaborators import AudioSink, DrawList, FrameInput, InputState, WindowState
from .config import RuntimeConfig
from .errors import CrustError, Diagnostics, E_IO_ERROR
from .evaluator import Evaluator
from .imports import ModuleLoader
from .parser import parse
from .scheduler import Scheduler
from .sprite import Sprite, SpriteSnapshot


# ============================================================================
# Broadcasts
# ============================================================================

class BroadcastRegistry:
    """Message name -> id, assigned on first use and never reused"""

    def __init__(self):
        self.ids: Dict[str, int] = {}
        self.history: List[Tuple[str, int]] = []
        self._pending: List[int] = []
        self.delivered: FrozenSet[int] = frozenset()

    def id_of(self, name: str) -> int:
        if name not in self.ids:
            self.ids[name] = len(self.ids)
        return self.ids[name]

    def lookup(self, name: str) -> Optional[int]:
        return self.ids.get(name)

    def post(self, name: str) -> int:
        """Queue a message; it is delivered to every sprite next tick"""
        broadcast_id = self.id_of(name)
        self._pending.append(broadcast_id)
        self.history.append((name, broadcast_id))
        return broadcast_id

    def deliver(self) -> FrozenSet[int]:
        """Start of tick: last tick's posts become this tick's deliveries"""
        self.delivered = frozenset(self._pending)
        self._pending = []
        return self.delivered

    def delivered_id(self, name: str) -> Optional[int]:
        broadcast_id = self.ids.get(name)
        return broadcast_id if broadcast_id in self.delivered else None


# ============================================================================
# Stage
# ============================================================================

class Stage:
    """Backdrop list and current index"""

    def __init__(self, backdrops: Sequence[str] = ()):
        self.backdrops = list(backdrops)
        self.current = 0

    @property
    def backdrop(self) -> Optional[str]:
        return self.backdrops[self.current] if self.backdrops else None

    def switch(self, name: str) -> bool:
        if name not in self.backdrops:
            return False
        self.current = self.backdrops.index(name)
        return True

    def next(self):
        if self.backdrops:
            self.current = (self.current + 1) % len(self.backdrops)

    def previous(self):
        if self.backdrops:
            self.current = (self.current - 1) % len(self.backdrops)


# ============================================================================
# Project
# ============================================================================

class Project:
    """A set of sprites ticked together"""

    def __init__(self, config: Optional[RuntimeConfig] = None, backdrops: Sequence[str] = (),
                 audio: Optional[AudioSink] = None):
        self.config = config or RuntimeConfig()
        self.diagnostics = Diagnostics(echo=self.config.echo_diagnostics)
        self.evaluator = Evaluator(self.diagnostics)
        self.scheduler = Scheduler(self.config)
        self.builtins = build_registry()
        self.loader = ModuleLoader(self.config.base_dir, self.diagnostics)

        self.globals: Dict[str, Any] = {}
        self.sprites: List[Sprite] = []
        self.stage = Stage(backdrops)
        self.broadcasts = BroadcastRegistry()

        self.input = InputState()
        self.draw_list = DrawList()
        self.audio = audio or AudioSink()
        self.window = WindowState()
        self.rng = np.random.default_rng(self.config.seed)

        self.frame_count = 0
        self._stop_all = False
        self._stop_others_of: List[Sprite] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def add_sprite(self, name: str, source: str, tags: Sequence[str] = (),
                   costumes: Sequence[str] = (), sounds: Sequence[str] = ()) -> Sprite:
        """Parse source and add the resulting sprite"""
        statements, parse_diagnostics = parse(source, name)
        self.diagnostics.report_block(parse_diagnostics, name)
        sprite = Sprite(name, statements, self.loader, tags=tags, costumes=costumes, sounds=sounds)
        self.sprites.append(sprite)
        return sprite

    def load_sprite(self, path: str, name: Optional[str] = None, **kwargs) -> Sprite:
        script = Path(path)
        try:
            source = script.read_text(encoding='utf-8')
        except OSError as error:
            raise CrustError(E_IO_ERROR, f"Failed to read sprite script {path}: {error}")
        return self.add_sprite(name or script.stem, source, **kwargs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def iter_sprites(self) -> Iterator[Sprite]:
        """Every sprite including clones, in processing order"""
        for sprite in self.sprites:
            yield from sprite.iter_tree()

    def find_sprite(self, name: str) -> Optional[Sprite]:
        for sprite in self.iter_sprites():
            if sprite.name == name:
                return sprite
        return None

    def render_order(self) -> List[Sprite]:
        """Visible sprites sorted back to front"""
        return sorted((s for s in self.iter_sprites() if s.visible), key=lambda s: s.layer)

    @property
    def frame(self) -> FrameInput:
        return self.input.frame

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def broadcast(self, message: str) -> int:
        return self.broadcasts.post(message)

    def request_stop_all(self):
        self._stop_all = True

    def request_stop_others(self, sprite: Sprite):
        self._stop_others_of.append(sprite)

    def default_frame(self) -> FrameInput:
        delta = 1.0 / self.config.ticks_per_second
        return FrameInput(elapsed=self.frame_count * delta, delta_time=delta,
                          window_size=self.window.size)

    def tick(self, frame: Optional[FrameInput] = None):
        """Run every sprite once"""
        self.input.update(frame or self.default_frame())
        self.frame_count += 1
        self.draw_list.begin_frame()

        delivered = self.broadcasts.deliver()
        if delivered and self.config.rearm_broadcasts:
            for sprite in self.iter_sprites():
                sprite.completed_broadcasts -= delivered

        snapshots: Tuple[SpriteSnapshot, ...] = tuple(s.snapshot() for s in self.iter_sprites())
        for sprite in list(self.sprites):
            self.scheduler.step(sprite, self, snapshots)

        self._apply_project_stops()

    def run(self, ticks: int, frame: Optional[FrameInput] = None):
        for _ in range(ticks):
            self.tick(frame)

    def _apply_project_stops(self):
        if self._stop_all:
            self._stop_all = False
            self._stop_others_of = []
            for sprite in self.sprites:
                sprite.stop_self()
                sprite.clones = []
            return

        for requester in self._stop_others_of:
            for sprite in self.sprites:
                if requester not in list(sprite.iter_tree()):
                    sprite.stop_self()
        self._stop_others_of = []


# ============================================================================
# Convenience Function
# ============================================================================

def run_source(source: str, ticks: int = 1, name: str = "Sprite",
               config: Optional[RuntimeConfig] = None) -> Project:
    """
    Build a one-sprite project from source and run it (convenience function)

    Args:
        source: sprite script source
        ticks: number of ticks to run
        name: sprite name
        config: runtime settings

    Returns:
        The project after running, for inspection

    Example:
        >>> project = run_source('setup { total = 3 + 4 * 2 }')
        >>> project.sprites[0].variables['total']
        11.0
    """
    project = Project(config)
    project.add_sprite(name, source)
    project.run(ticks)
    return project
