from hittest import bodies_in_region, hit_test, pick, region
from physics import Body, Constraint


def test_bodies_win_over_constraints():
    box = Body.box(20, 20, (0, 0))
    c = Constraint(point_a=(0, 0), point_b=(100, 0))
    assert hit_test((1, 1), [box], [c]) is box


def test_constraint_endpoint_within_threshold():
    c = Constraint(point_a=(0, 0), point_b=(100, 0))
    assert hit_test((100, 9), [], [c]) is c
    # squared distance 100 is not strictly inside
    assert hit_test((100, 10), [], [c]) is None


def test_pointer_constraint_is_skipped():
    c = Constraint(point_a=(0, 0), point_b=(0, 0), is_pointer=True)
    assert hit_test((0, 0), [], [c]) is None


def test_first_body_in_order_wins():
    a = Body.circle(10, (0, 0))
    b = Body.circle(10, (5, 0))
    assert pick((3, 0), [a, b]) is a
    assert pick((3, 0), [b, a]) is b


def test_region_is_order_independent():
    bb = region((10, 10), (-10, -5))
    assert (bb.left, bb.bottom, bb.right, bb.top) == (-10, -5, 10, 10)


def test_bodies_in_region_uses_bounds_overlap():
    inside = Body.box(10, 10, (0, 0))
    touching = Body.circle(10, (25, 0))
    far = Body.box(10, 10, (200, 0))
    picked = bodies_in_region(region((-20, -20), (20, 20)), [inside, touching, far])
    assert picked == [inside, touching]
