# Keyboard / pointer state

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Set

import pymunk

MODIFIERS = ("ctrl", "alt", "shift")

BUTTON_NONE = -1
BUTTON_PRIMARY = 0
BUTTON_SECONDARY = 2

_ALIASES = {
    "del": "delete",
    "control": "ctrl",
    "spacebar": "space",
    "back": "backspace",
}


def normalize_key(name: str) -> str:
    name = (name or "").strip().lower()
    return _ALIASES.get(name, name)


def normalize_combo(combo: str) -> str:
    parts = [normalize_key(p) for p in combo.split("+") if p.strip()]
    mods = [m for m in MODIFIERS if m in parts]
    keys = [p for p in parts if p not in MODIFIERS]
    return "+".join(mods + keys[-1:])


class KeyState:
    """Which keys are held right now."""

    def __init__(self) -> None:
        self.down: Set[str] = set()

    def press(self, name: str) -> Optional[str]:
        """Record a key press. Returns the combo it completes, if any."""
        key = normalize_key(name)
        self.down.add(key)
        if key in MODIFIERS:
            return None
        mods = [m for m in MODIFIERS if m in self.down]
        return "+".join(mods + [key])

    def release(self, name: str) -> None:
        self.down.discard(normalize_key(name))

    def release_all(self) -> None:
        self.down.clear()

    def is_pressed(self, name: str) -> bool:
        return normalize_key(name) in self.down

    @property
    def shift(self) -> bool:
        return "shift" in self.down

    @property
    def ctrl(self) -> bool:
        return "ctrl" in self.down


class KeyBindings:
    def __init__(self) -> None:
        self._handlers: Dict[str, Callable] = {}

    def bind(self, combo: str, handler: Callable) -> None:
        self._handlers[normalize_combo(combo)] = handler

    def unbind(self, combo: str) -> None:
        self._handlers.pop(normalize_combo(combo), None)

    def unbind_all(self) -> None:
        self._handlers.clear()

    def combos(self):
        return list(self._handlers)

    def dispatch(self, combo: Optional[str]) -> bool:
        if not combo:
            return False
        handler = self._handlers.get(normalize_combo(combo))
        if handler is None:
            return False
        handler()
        return True


class Mouse:
    def __init__(self) -> None:
        self.position = pymunk.Vec2d(0.0, 0.0)
        self.button = BUTTON_NONE

    def move(self, x: float, y: float) -> None:
        self.position = pymunk.Vec2d(float(x), float(y))


@dataclass(frozen=True)
class InputState:
    """Mode predicates evaluated once per tick."""

    pointer: pymunk.Vec2d
    key_delta: int = 0
    rotating: bool = False
    scaling: bool = False
    scale_axis: Optional[str] = None  # 'x', 'y' or None for both
    translating: bool = False


def read_input(keys: KeyState, mouse: Mouse) -> InputState:
    key_delta = (int(keys.is_pressed("up")) + int(keys.is_pressed("right"))
                 - int(keys.is_pressed("down")) - int(keys.is_pressed("left")))
    rotating = keys.shift and keys.is_pressed("r")
    scaling = keys.shift and keys.is_pressed("s") and not rotating
    axis = None
    if scaling:
        if keys.is_pressed("d"):
            axis = "x"
        elif keys.is_pressed("f"):
            axis = "y"
    return InputState(
        pointer=mouse.position,
        key_delta=key_delta,
        rotating=rotating,
        scaling=scaling,
        scale_axis=axis,
        translating=mouse.button == BUTTON_SECONDARY,
    )
