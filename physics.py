# Physics backend

import itertools
import logging
import math
from typing import List, Optional, Tuple

import pymunk

from events import Channel
from scene import SceneGraph

log = logging.getLogger(__name__)

# ---------- Config ----------
DEFAULT_GRAVITY = (0.0, -900.0)
BOUNDS_LIMIT = 5000.0

_ids = itertools.count(1)


def next_id() -> int:
    """Process-wide id counter shared by every graph object type."""
    return next(_ids)


def _vec(p) -> pymunk.Vec2d:
    return pymunk.Vec2d(float(p[0]), float(p[1]))


# ---------- Graph objects ----------
class Group:
    type = "group"

    def __init__(self, label: str = "Group", id: Optional[int] = None) -> None:
        self.id = next_id() if id is None else int(id)
        self.label = label

    def __repr__(self) -> str:
        return f"Group(id={self.id}, label={self.label!r})"


class Body:
    """A pymunk body with exactly one circle or polygon shape."""

    type = "body"

    def __init__(self, pm_body: pymunk.Body, shape: pymunk.Shape, label: str = "Body",
                 mass: float = 1.0, id: Optional[int] = None) -> None:
        self.id = next_id() if id is None else int(id)
        self.label = label
        self.pm_body = pm_body
        self.shape = shape
        self.mass = float(mass)

    # ----- Construction -----
    @classmethod
    def circle(cls, radius: float, pos: Tuple[float, float], mass: float = 1.0, static: bool = False,
               friction: float = 0.8, elasticity: float = 0.3, label: str = "Circle Body",
               id: Optional[int] = None) -> "Body":
        if static:
            b = pymunk.Body(body_type=pymunk.Body.STATIC)
        else:
            b = pymunk.Body(mass, pymunk.moment_for_circle(mass, 0, radius))
        b.position = pos
        s = pymunk.Circle(b, radius)
        s.friction = float(friction)
        s.elasticity = float(elasticity)
        return cls(b, s, label=label, mass=mass, id=id)

    @classmethod
    def polygon(cls, vertices, pos: Tuple[float, float], mass: float = 1.0, static: bool = False,
                friction: float = 0.8, elasticity: float = 0.3, label: str = "Body",
                id: Optional[int] = None) -> "Body":
        vertices = [(float(x), float(y)) for x, y in vertices]
        if static:
            b = pymunk.Body(body_type=pymunk.Body.STATIC)
        else:
            b = pymunk.Body(mass, pymunk.moment_for_poly(mass, vertices))
        b.position = pos
        s = pymunk.Poly(b, vertices)
        s.friction = float(friction)
        s.elasticity = float(elasticity)
        return cls(b, s, label=label, mass=mass, id=id)

    @classmethod
    def box(cls, w: float, h: float, pos: Tuple[float, float], label: str = "Rectangle Body", **kw) -> "Body":
        hw, hh = float(w) * 0.5, float(h) * 0.5
        return cls.polygon([(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)], pos, label=label, **kw)

    def __repr__(self) -> str:
        p = self.position
        return f"Body(id={self.id}, label={self.label!r}, position=({p.x:.1f}, {p.y:.1f}), angle={self.angle:.3f})"

    # ----- Geometry -----
    @property
    def position(self) -> pymunk.Vec2d:
        return self.pm_body.position

    @property
    def angle(self) -> float:
        return self.pm_body.angle

    @property
    def is_static(self) -> bool:
        return self.pm_body.body_type == pymunk.Body.STATIC

    @property
    def circle_radius(self) -> Optional[float]:
        if isinstance(self.shape, pymunk.Circle):
            return self.shape.radius
        return None

    def local_vertices(self) -> List[pymunk.Vec2d]:
        if isinstance(self.shape, pymunk.Poly):
            return list(self.shape.get_vertices())
        return []

    def vertices(self) -> List[pymunk.Vec2d]:
        return [self.pm_body.local_to_world(v) for v in self.local_vertices()]

    def bounds(self) -> pymunk.BB:
        if isinstance(self.shape, pymunk.Circle):
            c = self.pm_body.local_to_world(self.shape.offset)
            return pymunk.BB.newForCircle(c, self.shape.radius)
        vs = self.vertices()
        xs = [v.x for v in vs]
        ys = [v.y for v in vs]
        return pymunk.BB(min(xs), min(ys), max(xs), max(ys))

    def contains(self, point) -> bool:
        p = _vec(point)
        if isinstance(self.shape, pymunk.Circle):
            c = self.pm_body.local_to_world(self.shape.offset)
            return (p - c).length <= self.shape.radius
        return vertices_contain(self.vertices(), p)

    # ----- Edits -----
    def _moved(self) -> None:
        space = self.pm_body.space
        if space is not None and self.is_static:
            space.reindex_shapes_for_body(self.pm_body)

    def set_position(self, pos) -> None:
        self.pm_body.position = _vec(pos)
        self.pm_body.velocity = (0.0, 0.0)
        self._moved()

    def translate(self, delta) -> None:
        self.pm_body.position = self.pm_body.position + _vec(delta)
        self._moved()

    def rotate(self, angle: float) -> None:
        self.pm_body.angle = self.pm_body.angle + float(angle)
        self._moved()

    def scale(self, sx: float, sy: float) -> None:
        """Scale along the world axes about the body position."""
        sx, sy = float(sx), float(sy)
        if isinstance(self.shape, pymunk.Circle):
            self.shape.unsafe_set_radius(self.shape.radius * sx)
            area_factor = sx * sx
        else:
            # world-axis scale expressed in body space: R^-1 * S * R
            c, s = math.cos(self.angle), math.sin(self.angle)
            verts = []
            for v in self.shape.get_vertices():
                wx, wy = v.x * c - v.y * s, v.x * s + v.y * c
                wx, wy = wx * sx, wy * sy
                verts.append((wx * c + wy * s, -wx * s + wy * c))
            self.shape.unsafe_set_vertices(verts)
            area_factor = abs(sx * sy)
        if not self.is_static:
            self.mass = self.mass * area_factor
            self._update_mass()
        self._moved()

    def _update_mass(self) -> None:
        self.pm_body.mass = self.mass
        if isinstance(self.shape, pymunk.Circle):
            self.pm_body.moment = pymunk.moment_for_circle(self.mass, 0, self.shape.radius)
        else:
            self.pm_body.moment = pymunk.moment_for_poly(self.mass, self.shape.get_vertices())

    def set_static(self) -> None:
        if self.is_static:
            return
        self.pm_body.body_type = pymunk.Body.STATIC
        self._moved()


class Constraint:
    """A spring between two anchors, each bound to a Body or fixed in the world."""

    type = "constraint"

    def __init__(self, body_a: Optional[Body] = None, point_a=(0.0, 0.0),
                 body_b: Optional[Body] = None, point_b=(0.0, 0.0),
                 length: Optional[float] = None, stiffness: float = 400.0, damping: float = 20.0,
                 label: str = "Constraint", is_pointer: bool = False, id: Optional[int] = None) -> None:
        self.id = next_id() if id is None else int(id)
        self.label = label
        self.body_a = body_a
        self.point_a = _vec(point_a)
        self.body_b = body_b
        self.point_b = _vec(point_b)
        self.stiffness = float(stiffness)
        self.damping = float(damping)
        self.is_pointer = bool(is_pointer)
        self.joint: Optional[pymunk.DampedSpring] = None
        if length is None:
            length = (self.world_point_a() - self.world_point_b()).length
        self.length = float(length)

    def __repr__(self) -> str:
        return f"Constraint(id={self.id}, label={self.label!r}, length={self.length:.1f})"

    def world_point_a(self) -> pymunk.Vec2d:
        if self.body_a is not None:
            return self.body_a.pm_body.local_to_world(self.point_a)
        return self.point_a

    def world_point_b(self) -> pymunk.Vec2d:
        if self.body_b is not None:
            return self.body_b.pm_body.local_to_world(self.point_b)
        return self.point_b

    def bodies(self) -> List[Body]:
        return [b for b in (self.body_a, self.body_b) if b is not None]

    def build_joint(self, space: pymunk.Space) -> Optional[pymunk.DampedSpring]:
        if self.body_a is None and self.body_b is None:
            return None
        a = self.body_a.pm_body if self.body_a is not None else space.static_body
        b = self.body_b.pm_body if self.body_b is not None else space.static_body
        self.joint = pymunk.DampedSpring(a, b, self.point_a, self.point_b,
                                         self.length, self.stiffness, self.damping)
        return self.joint

    def sync_joint(self) -> None:
        if self.joint is None:
            return
        self.joint.anchor_a = self.point_a
        self.joint.anchor_b = self.point_b
        self.joint.rest_length = self.length
        for b in self.bodies():
            if not b.is_static:
                b.pm_body.activate()


def vertices_contain(vertices, point) -> bool:
    """Point-in-convex-polygon test, either winding."""
    n = len(vertices)
    if n < 3:
        return False
    sign = 0
    for i in range(n):
        a = vertices[i]
        b = vertices[(i + 1) % n]
        cross = (point[0] - a[0]) * (b[1] - a[1]) - (point[1] - a[1]) * (b[0] - a[0])
        if abs(cross) < 1e-12:
            continue
        s = 1 if cross > 0 else -1
        if sign == 0:
            sign = s
        elif s != sign:
            return False
    return True


# ---------- Simulation ----------
class Engine:
    """Owns the pymunk space and the scene graph.

    Objects below the world group are mirrored into the space; everything
    else in the graph (imported or newly added groups) is inert until it is
    moved under the world.
    """

    def __init__(self) -> None:
        self.space = pymunk.Space()
        self.space.gravity = DEFAULT_GRAVITY
        self.space.damping = 1.0
        self.space.sleep_time_threshold = 1.2
        self.space.idle_speed_threshold = 0.2
        self.space.iterations = 40

        self.graph = SceneGraph(Group("Root"))
        self.world = self.graph.add(Group("World"))
        self.time_scale = 1.0
        self.bounds_limit = BOUNDS_LIMIT
        self.last_pruned = 0
        self.before_update = Channel("before_update")
        self._in_space = {}
        self._accum = 0.0

    @property
    def root(self) -> Group:
        return self.graph.root

    @property
    def is_running(self) -> bool:
        return self.time_scale > 0

    # ----- Structure -----
    def add(self, obj, parent=None, index: Optional[int] = None, source: SceneGraph = None):
        self.graph.add(obj, self.world if parent is None else parent, index=index, source=source)
        self.sync_space()
        return obj

    def remove(self, objects) -> list:
        removed = []
        for obj in objects:
            if obj is self.world or obj is self.root:
                continue
            removed.extend(self.graph.remove(obj))
        self.sync_space()
        return removed

    def move(self, obj, new_parent) -> bool:
        moved = self.graph.move(obj, new_parent)
        if moved:
            self.sync_space()
        return moved

    def add_circle(self, r: float, pos: Tuple[float, float], parent=None, **kw) -> Body:
        return self.add(Body.circle(r, pos, **kw), parent)

    def add_box(self, w: float, h: float, pos: Tuple[float, float], parent=None, **kw) -> Body:
        return self.add(Body.box(w, h, pos, **kw), parent)

    def add_constraint(self, parent=None, **kw) -> Constraint:
        return self.add(Constraint(**kw), parent)

    def sync_space(self) -> None:
        """Make the space hold exactly the bodies and constraints under the world."""
        bodies = self.graph.all_bodies(self.world)
        body_set = set(id(b) for b in bodies)
        wanted = {id(b): b for b in bodies}
        for c in self.graph.all_constraints(self.world):
            if all(id(b) in body_set for b in c.bodies()):
                wanted[id(c)] = c
        # joints go out before their bodies and come in after them
        for kind in ("constraint", "body"):
            for key, obj in list(self._in_space.items()):
                if obj.type == kind and key not in wanted:
                    self._space_remove(obj)
        for kind in ("body", "constraint"):
            for key, obj in wanted.items():
                if obj.type == kind and key not in self._in_space:
                    self._space_add(obj)

    def refresh_constraint(self, c: Constraint) -> None:
        """Rebuild a constraint's joint after its bodies changed."""
        if id(c) in self._in_space:
            self._space_remove(c)
        self.sync_space()

    def _space_add(self, obj) -> None:
        if obj.type == "body":
            self.space.add(obj.pm_body, obj.shape)
        else:
            joint = obj.build_joint(self.space)
            if joint is None:
                return
            self.space.add(joint)
        self._in_space[id(obj)] = obj

    def _space_remove(self, obj) -> None:
        self._in_space.pop(id(obj), None)
        if obj.type == "body":
            self.space.remove(obj.shape, obj.pm_body)
        elif obj.joint is not None:
            self.space.remove(obj.joint)
            obj.joint = None

    # ----- Simulation -----
    def step(self, dt: float) -> None:
        """Fire the pre-tick hook, then advance with a bounded fixed timestep.

        The hook runs even while paused so the inspector can keep editing.
        """
        self.before_update.publish()
        dt = float(max(0.0, min(float(dt), 0.25))) * self.time_scale
        if dt <= 0:
            return
        self._accum += dt
        h = 1.0 / 240.0
        max_steps = 24
        steps = 0
        while self._accum >= h and steps < max_steps:
            self.space.step(h)
            self._accum -= h
            steps += 1
        if steps >= max_steps and self._accum > h * 2:
            self._accum = 0.0
        self.last_pruned = self._prune_out_of_bounds()

    def _prune_out_of_bounds(self) -> int:
        limit = float(self.bounds_limit)
        gone = [b for b in self.graph.all_bodies(self.world)
                if abs(b.position.x) > limit or abs(b.position.y) > limit]
        if gone:
            log.info("Pruned %d bodies outside +/-%.0f", len(gone), limit)
            self.remove(gone)
        return len(gone)

    def stats(self):
        bodies = self.graph.all_bodies(self.world)
        ke = sum(0.5 * b.pm_body.mass * (b.pm_body.velocity.length ** 2) for b in bodies if not b.is_static)
        return len(bodies), len(self.graph.all_constraints(self.world)), ke
