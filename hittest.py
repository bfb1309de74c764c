# Pointer picking

from typing import Iterable, List, Optional

import pymunk

# Squared distance (world units) within which a constraint endpoint is hit.
ENDPOINT_HIT_SQ = 100.0


def _dist_sq(p, q) -> float:
    dx, dy = p[0] - q[0], p[1] - q[1]
    return dx * dx + dy * dy


def hit_test(point, bodies: Iterable, constraints: Iterable):
    """Return the first body, else the first constraint endpoint, under point."""
    p = pymunk.Vec2d(float(point[0]), float(point[1]))
    for body in bodies:
        if body.bounds().contains_vect(p) and body.contains(p):
            return body
    for c in constraints:
        if c.is_pointer:
            continue
        if _dist_sq(p, c.world_point_a()) < ENDPOINT_HIT_SQ or _dist_sq(p, c.world_point_b()) < ENDPOINT_HIT_SQ:
            return c
    return None


def region(p0, p1) -> pymunk.BB:
    return pymunk.BB(min(p0[0], p1[0]), min(p0[1], p1[1]), max(p0[0], p1[0]), max(p0[1], p1[1]))


def bodies_in_region(bb: pymunk.BB, bodies: Iterable) -> List:
    return [b for b in bodies if b.bounds().intersects(bb)]


def pick(point, bodies: Iterable) -> Optional[object]:
    """Body under point, ignoring constraints."""
    return hit_test(point, bodies, ())
