# JSON serializer for scene fragments

import json
import logging
from typing import Dict, Optional

import pymunk

from physics import Body, Constraint, Group, next_id
from scene import KINDS, SceneGraph, SceneGraphError

log = logging.getLogger(__name__)

FORMAT_VERSION = 1


class SerializerError(Exception):
    pass


# ---------- Object <-> dict ----------
def _xy(v):
    return [float(v[0]), float(v[1])]


def _vec(v) -> tuple:
    if not isinstance(v, (list, tuple)) or len(v) != 2:
        raise SerializerError(f"expected an [x, y] pair, got {v!r}")
    return float(v[0]), float(v[1])


def _entries(d: dict, key: str) -> list:
    items = d.get(key, [])
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise SerializerError(f"{key!r} must be a list of objects")
    return items


def body_to_dict(b: Body) -> dict:
    pb = b.pm_body
    d = {
        "type": "body",
        "id": b.id,
        "label": b.label,
        "position": _xy(pb.position),
        "angle": float(pb.angle),
        "velocity": _xy(pb.velocity),
        "angular_velocity": float(pb.angular_velocity),
        "mass": float(b.mass),
        "static": bool(b.is_static),
        "friction": float(b.shape.friction),
        "elasticity": float(b.shape.elasticity),
    }
    if isinstance(b.shape, pymunk.Circle):
        d["shape"] = "circle"
        d["radius"] = float(b.shape.radius)
    else:
        d["shape"] = "poly"
        d["vertices"] = [_xy(v) for v in b.shape.get_vertices()]
    return d


def body_from_dict(d: dict, id: Optional[int] = None) -> Body:
    kw = dict(
        mass=float(d.get("mass", 1.0)),
        static=bool(d.get("static", False)),
        friction=float(d.get("friction", 0.8)),
        elasticity=float(d.get("elasticity", 0.3)),
        label=str(d.get("label", "Body")),
        id=d["id"] if id is None else id,
    )
    pos = _vec(d.get("position", (0.0, 0.0)))
    shape = d.get("shape")
    if shape == "circle":
        b = Body.circle(float(d["radius"]), pos, **kw)
    elif shape == "poly":
        vertices = d["vertices"]
        if not isinstance(vertices, list) or len(vertices) < 3:
            raise SerializerError("polygon needs at least three vertices")
        b = Body.polygon([_vec(v) for v in vertices], pos, **kw)
    else:
        raise SerializerError(f"unknown body shape {shape!r}")
    b.pm_body.angle = float(d.get("angle", 0.0))
    if not b.is_static:
        b.pm_body.velocity = _vec(d.get("velocity", (0.0, 0.0)))
        b.pm_body.angular_velocity = float(d.get("angular_velocity", 0.0))
    return b


def constraint_to_dict(c: Constraint) -> dict:
    return {
        "type": "constraint",
        "id": c.id,
        "label": c.label,
        "body_a": c.body_a.id if c.body_a is not None else None,
        "point_a": _xy(c.point_a),
        "world_a": _xy(c.world_point_a()),
        "body_b": c.body_b.id if c.body_b is not None else None,
        "point_b": _xy(c.point_b),
        "world_b": _xy(c.world_point_b()),
        "length": float(c.length),
        "stiffness": float(c.stiffness),
        "damping": float(c.damping),
    }


def constraint_from_dict(d: dict, bodies: Dict[int, Body]) -> Constraint:
    ends = {}
    for end in ("a", "b"):
        bid = d.get(f"body_{end}")
        body = bodies.get(bid) if bid is not None else None
        if body is not None:
            ends[end] = (body, _vec(d.get(f"point_{end}", (0.0, 0.0))))
        else:
            # unresolved body: keep the endpoint where it was in the world
            ends[end] = (None, _vec(d.get(f"world_{end}", d.get(f"point_{end}", (0.0, 0.0)))))
    return Constraint(
        body_a=ends["a"][0], point_a=ends["a"][1],
        body_b=ends["b"][0], point_b=ends["b"][1],
        length=float(d["length"]) if "length" in d else None,
        stiffness=float(d.get("stiffness", 400.0)),
        damping=float(d.get("damping", 20.0)),
        label=str(d.get("label", "Constraint")),
        id=d["id"],
    )


def group_to_dict(graph: SceneGraph, group) -> dict:
    return {
        "type": "group",
        "id": group.id,
        "label": group.label,
        "groups": [group_to_dict(graph, g) for g in graph.children(group, "group")],
        "bodies": [body_to_dict(b) for b in graph.children(group, "body")],
        "constraints": [constraint_to_dict(c) for c in graph.children(group, "constraint") if not c.is_pointer],
    }


# ---------- Serializer ----------
class JsonSerializer:
    """Clone, (de)serialise and snapshot scene fragments as JSON text."""

    def __init__(self) -> None:
        self._states: Dict[str, str] = {}

    def clone(self, obj):
        if obj.type != "body":
            raise SerializerError(f"cannot clone a {obj.type}")
        return body_from_dict(body_to_dict(obj), id=next_id())

    def serialize(self, fragment: SceneGraph, indent: int = 0) -> str:
        return self.serialize_group(fragment, fragment.root, indent)

    def serialize_group(self, graph: SceneGraph, group, indent: int = 0) -> str:
        data = {"version": FORMAT_VERSION, "group": group_to_dict(graph, group)}
        return json.dumps(data, indent=indent or None)

    def parse(self, text: str) -> Optional[SceneGraph]:
        """Fragment graph rooted at the serialised group, or None if unreadable."""
        try:
            data = json.loads(text)
            if not isinstance(data, dict) or not isinstance(data.get("group"), dict):
                raise SerializerError("missing top-level group")
            return self._build(data["group"])
        except (ValueError, KeyError, TypeError, SerializerError, SceneGraphError) as e:
            log.debug("parse failed: %s", e)
            return None

    def _build(self, gd: dict) -> SceneGraph:
        if gd.get("type") != "group":
            raise SerializerError("root is not a group")
        fragment = SceneGraph(Group(str(gd.get("label", "Group")), id=gd["id"]))
        bodies: Dict[int, Body] = {}
        pending = []

        def fill(group, d):
            for bd in _entries(d, "bodies"):
                b = body_from_dict(bd)
                fragment.add(b, group)
                bodies[b.id] = b
            for sub in _entries(d, "groups"):
                if sub.get("type") != "group":
                    raise SerializerError("child group has wrong type")
                g = fragment.add(Group(str(sub.get("label", "Group")), id=sub["id"]), group)
                fill(g, sub)
            for cd in _entries(d, "constraints"):
                pending.append((group, cd))

        fill(fragment.root, gd)
        for group, cd in pending:
            fragment.add(constraint_from_dict(cd, bodies), group)
        return fragment

    def rebase(self, fragment: SceneGraph) -> SceneGraph:
        fragment.rebase(next_id)
        return fragment

    # ----- Engine state -----
    def save_state(self, engine, key: str) -> None:
        self._states[key] = self.serialize_group(engine.graph, engine.world)

    def has_state(self, key: str) -> bool:
        return key in self._states

    def discard_state(self, key: str) -> None:
        self._states.pop(key, None)

    def load_state(self, engine, key: str) -> bool:
        """Replace the world's contents with a saved snapshot."""
        text = self._states.get(key)
        if text is None:
            return False
        fragment = self.parse(text)
        if fragment is None:
            log.warning("Saved state %r could not be parsed", key)
            return False
        graph = engine.graph
        keep = [c for c in graph.children(engine.world, "constraint") if c.is_pointer]
        doomed = [o for kind in KINDS for o in graph.children(engine.world, kind) if o not in keep]
        engine.remove(doomed)
        if any(graph.get(o.type, o.id) is not None for o in fragment.walk()):
            self.rebase(fragment)
        for kind in KINDS:
            for child in fragment.children(fragment.root, kind):
                graph.add(child, engine.world, source=fragment)
        engine.sync_space()
        return True
