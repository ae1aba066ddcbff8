"""
Crust Runtime - Collaborator Interfaces

Rendering, audio, windowing and input live outside the runtime. This module
holds the narrow surfaces the runtime talks to, with in-memory defaults so a
project can run headless:

- FrameInput: per-tick inputs (time, window size, mouse, keys)
- InputState: edge tracking for pressed/released keys and buttons
- DrawList: draw commands recorded per tick, plus persistent stamps
- AudioSink: play/stop requests, recorded by default
- WindowState: window size/title requests
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from .config import DEFAULT_WINDOW_SIZE


# ============================================================================
# Input
# ============================================================================

@dataclass
class FrameInput:
    """What the host observed for one frame"""
    elapsed: float = 0.0
    delta_time: float = 0.0
    window_size: Tuple[float, float] = DEFAULT_WINDOW_SIZE
    mouse: Tuple[float, float] = (0.0, 0.0)
    keys_down: FrozenSet[str] = frozenset()
    mouse_buttons_down: FrozenSet[str] = frozenset()
    clicked_sprite: Optional[str] = None


class InputState:
    """Tracks held keys and the edges between consecutive frames"""

    def __init__(self):
        self.frame = FrameInput()
        self._keys_before: FrozenSet[str] = frozenset()
        self._buttons_before: FrozenSet[str] = frozenset()

    def update(self, frame: FrameInput):
        self._keys_before = self.frame.keys_down
        self._buttons_before = self.frame.mouse_buttons_down
        self.frame = frame

    def key_down(self, key: str) -> bool:
        return key in self.frame.keys_down

    def key_pressed(self, key: str) -> bool:
        return key in self.frame.keys_down and key not in self._keys_before

    def key_released(self, key: str) -> bool:
        return key not in self.frame.keys_down and key in self._keys_before

    def button_down(self, button: str) -> bool:
        return button in self.frame.mouse_buttons_down

    def button_pressed(self, button: str) -> bool:
        return button in self.frame.mouse_buttons_down and button not in self._buttons_before

    def button_released(self, button: str) -> bool:
        return button not in self.frame.mouse_buttons_down and button in self._buttons_before


# ============================================================================
# Drawing
# ============================================================================

@dataclass
class DrawCommand:
    """One immediate-mode shape, in the sprite's draw color"""
    shape: str
    params: Tuple[float, ...]
    color: Tuple[float, float, float, float]
    sprite: str


class DrawList:
    """Per-tick draw commands; stamps persist until cleared"""

    def __init__(self):
        self.commands: List[DrawCommand] = []
        self.stamps: List[Dict[str, Any]] = []

    def add(self, command: DrawCommand):
        self.commands.append(command)

    def stamp(self, state: Dict[str, Any]):
        self.stamps.append(state)

    def clear_stamps(self):
        self.stamps.clear()

    def begin_frame(self):
        self.commands.clear()


# ============================================================================
# Audio
# ============================================================================

class AudioSink:
    """Audio playback surface; the default just records requests"""

    def __init__(self):
        self.events: List[Tuple[str, str, float]] = []
        self.playing: Set[str] = set()

    def play(self, sound: str, volume: float = 1.0):
        self.events.append(('play', sound, volume))
        self.playing.add(sound)

    def stop(self, sound: str):
        self.events.append(('stop', sound, 0.0))
        self.playing.discard(sound)


# ============================================================================
# Window
# ============================================================================

@dataclass
class WindowState:
    """Requested window properties; the host applies them"""
    size: Tuple[float, float] = DEFAULT_WINDOW_SIZE
    title: str = "Crust"
    requests: List[Tuple[str, Any]] = field(default_factory=list)

    def request(self, name: str, value: Any):
        self.requests.append((name, value))
        if name == 'size':
            self.size = value
        elif name == 'title':
            self.title = value
