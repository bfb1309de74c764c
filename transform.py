# Rotate / scale / translate of the selection

import pymunk

from controls import InputState

MAX_DELTA = 2.0
ROTATE_SPEED = 0.03
SCALE_SPEED = 0.02


def clamp_delta(delta: float) -> float:
    return max(-MAX_DELTA, min(MAX_DELTA, float(delta)))


def rotation_step(delta: float) -> float:
    return clamp_delta(delta) * ROTATE_SPEED


def scale_step(delta: float) -> float:
    return 1.0 + clamp_delta(delta) * SCALE_SPEED


class TransformController:
    """Applies the held edit modes to the selection once per pre-tick."""

    def __init__(self, ctx) -> None:
        self.ctx = ctx
        self.prev_pointer = pymunk.Vec2d(0.0, 0.0)

    def apply(self, inp: InputState) -> None:
        delta = (inp.pointer.x - self.prev_pointer.x) + inp.key_delta
        if inp.rotating:
            self.rotate_selected(rotation_step(delta))
        elif inp.scaling:
            factor = scale_step(delta)
            if inp.scale_axis == "x":
                self.scale_selected(factor, 1.0)
            elif inp.scale_axis == "y":
                self.scale_selected(1.0, factor)
            else:
                self.scale_selected(factor, factor)
        if inp.translating:
            self.move_selected(inp.pointer)

    def record_pointer(self, pointer) -> None:
        self.prev_pointer = pymunk.Vec2d(float(pointer[0]), float(pointer[1]))

    # ----- Modes -----
    def rotate_selected(self, angle: float) -> None:
        for entry in self.ctx.selection.entries:
            if entry.obj.type == "body":
                entry.obj.rotate(angle)

    def scale_selected(self, sx: float, sy: float) -> None:
        for entry in self.ctx.selection.entries:
            if entry.obj.type == "body":
                entry.obj.scale(sx, sy)

    def begin_translate(self, pointer) -> None:
        p = pymunk.Vec2d(float(pointer[0]), float(pointer[1]))
        for entry in self.ctx.selection.entries:
            anchor = _anchor(entry.obj)
            entry.mousedown_offset = None if anchor is None else p - anchor

    def end_translate(self) -> None:
        for entry in self.ctx.selection.entries:
            entry.mousedown_offset = None

    def move_selected(self, pointer) -> None:
        p = pymunk.Vec2d(float(pointer[0]), float(pointer[1]))
        for entry in self.ctx.selection.entries:
            if entry.mousedown_offset is None:
                continue
            obj = entry.obj
            target = p - entry.mousedown_offset
            if obj.type == "body":
                obj.set_position(target)
            elif obj.type == "constraint":
                if obj.body_a is None:
                    obj.point_a = target
                else:
                    obj.point_b = target
                obj.length = (obj.world_point_a() - obj.world_point_b()).length
                obj.sync_joint()


def _anchor(obj):
    if obj.type == "body":
        return obj.position
    if obj.type == "constraint":
        if obj.body_a is None:
            return obj.point_a
        if obj.body_b is None:
            return obj.point_b
    return None
