import pytest

from physics import Body, Constraint, Group


def test_only_world_objects_are_simulated(engine):
    inside = engine.add_box(20, 20, (0, 0))
    loose = engine.add(Group("Loose"), engine.root)
    outside = engine.add_circle(10, (100, 0), parent=loose)
    assert inside.pm_body in engine.space.bodies
    assert outside.pm_body not in engine.space.bodies

    engine.move(loose, engine.world)
    assert outside.pm_body in engine.space.bodies

    engine.remove([loose])
    assert outside.pm_body not in engine.space.bodies


def test_constraint_joins_space_with_its_bodies(engine):
    a = engine.add_box(10, 10, (0, 0))
    b = engine.add_box(10, 10, (50, 0))
    c = engine.add(Constraint(body_a=a, body_b=b))
    assert c.joint is not None
    assert c.joint in engine.space.constraints
    assert c.length == pytest.approx(50.0)

    engine.remove([b])
    assert c.joint is None
    assert c in engine.graph


def test_world_and_root_are_never_removed(engine):
    assert engine.remove([engine.world, engine.root]) == []
    assert engine.world in engine.graph


def test_scale_polygon_along_world_axes(engine):
    body = engine.add_box(20, 10, (0, 0))
    body.scale(2.0, 1.0)
    bb = body.bounds()
    assert bb.right - bb.left == pytest.approx(40.0)
    assert bb.top - bb.bottom == pytest.approx(10.0)
    assert body.mass == pytest.approx(2.0)


def test_scale_circle_radius(engine):
    body = engine.add_circle(10, (0, 0))
    body.scale(1.5, 1.5)
    assert body.circle_radius == pytest.approx(15.0)


def test_contains_point():
    box = Body.box(20, 20, (100, 100))
    assert box.contains((105, 95))
    assert not box.contains((125, 100))
    circle = Body.circle(10, (0, 0))
    assert circle.contains((0, 9))
    assert not circle.contains((8, 8))


def test_step_fires_hook_even_when_paused(engine):
    calls = []
    engine.before_update.subscribe(lambda: calls.append(engine.time_scale))
    engine.time_scale = 0.0
    body = engine.add_box(10, 10, (0, 0))
    engine.step(1 / 60)
    assert calls == [0.0]
    assert body.position.y == pytest.approx(0.0)


def test_falling_body_moves_when_running(engine):
    body = engine.add_circle(5, (0, 0))
    for _ in range(10):
        engine.step(1 / 60)
    assert body.position.y < 0


def test_out_of_bounds_bodies_are_pruned(engine):
    body = engine.add_box(10, 10, (engine.bounds_limit + 10, 0))
    engine.step(1 / 60)
    assert body not in engine.graph
    assert engine.last_pruned == 1
