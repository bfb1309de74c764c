import math

import pytest

from controls import BUTTON_SECONDARY, InputState, KeyState, Mouse, read_input
from physics import Constraint
from transform import clamp_delta, rotation_step, scale_step


def test_deltas_are_clamped():
    assert [clamp_delta(d) for d in (-5, 0, 2, 5)] == [-2, 0, 2, 2]
    angles = [rotation_step(d) for d in (-5, 0, 2, 5)]
    assert angles == pytest.approx([-0.06, 0.0, 0.06, 0.06])
    assert scale_step(5) == pytest.approx(1.04)


def test_rotate_wins_over_scale():
    keys = KeyState()
    for k in ("shift", "r", "s"):
        keys.press(k)
    inp = read_input(keys, Mouse())
    assert inp.rotating and not inp.scaling


def test_scale_axis_from_modifier_keys():
    keys = KeyState()
    for k in ("shift", "s", "f"):
        keys.press(k)
    inp = read_input(keys, Mouse())
    assert inp.scaling and inp.scale_axis == "y"


def test_arrow_key_rotates_selection(ins, engine):
    box = engine.add_box(20, 20, (0, 0))
    ins.selection.replace([box])
    for k in ("shift", "r", "right"):
        ins.on_key_down(k)
    ins.pre_tick()
    assert box.angle == pytest.approx(0.03)


def test_scale_x_only(ins, engine):
    box = engine.add_box(20, 20, (0, 0))
    ins.selection.replace([box])
    ins.transform.apply(InputState(pointer=ins.mouse.position, key_delta=2, scaling=True, scale_axis="x"))
    bb = box.bounds()
    assert bb.right - bb.left == pytest.approx(20 * 1.04)
    assert bb.top - bb.bottom == pytest.approx(20)


def test_empty_selection_is_a_noop(ins, engine):
    box = engine.add_box(20, 20, (0, 0))
    ins.transform.apply(InputState(pointer=ins.mouse.position, key_delta=2, rotating=True))
    assert box.angle == 0


def test_translate_keeps_grab_offset(ins, engine):
    box = engine.add_box(20, 20, (0, 0))
    ins.selection.replace([box])
    ins.transform.begin_translate((5, 5))
    ins.mouse.move(105, 55)
    ins.mouse.button = BUTTON_SECONDARY
    ins.pre_tick()
    assert tuple(box.position) == pytest.approx((100, 50))
    assert tuple(box.pm_body.velocity) == pytest.approx((0, 0))


def test_translate_moves_free_constraint_end(ins, engine):
    body = engine.add_box(10, 10, (0, 0))
    c = engine.add(Constraint(point_a=(0, 100), body_b=body))
    ins.selection.replace([c])
    ins.transform.begin_translate((0, 100))
    ins.transform.move_selected((30, 100))
    assert tuple(c.point_a) == pytest.approx((30, 100))
    assert c.length == pytest.approx(math.hypot(30, 100))
    assert c.joint.rest_length == pytest.approx(c.length)
