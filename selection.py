# Selection model

import logging
from dataclasses import dataclass
from typing import List, Optional

import pymunk

from events import Notification
from hittest import bodies_in_region, region
from mirror import node_id, parse_node_id

log = logging.getLogger(__name__)

LOG_LIMIT = 5
TREE_SELECT_DELAY_MS = 1


@dataclass
class SelectionEntry:
    obj: object
    mousedown_offset: Optional[pymunk.Vec2d] = None


class SelectionModel:
    """Selected graph objects, kept in step with the tree's selected nodes."""

    def __init__(self, ctx) -> None:
        self.ctx = ctx
        self.entries: List[SelectionEntry] = []
        self.select_start: Optional[pymunk.Vec2d] = None
        self.select_end: Optional[pymunk.Vec2d] = None
        self.select_bounds: Optional[pymunk.BB] = None

    @property
    def objects(self) -> list:
        return [e.obj for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, obj) -> bool:
        return any(e.obj is obj for e in self.entries)

    # ----- Core operations -----
    def replace(self, objects) -> None:
        """Select objects in order. An object given twice is selected once."""
        tree = self.ctx.tree
        tree.deselect_all(suppress=True)
        self.entries = []
        objects = list(objects)
        for i, obj in enumerate(objects):
            if not obj:
                continue
            self.add(obj)
            if i < LOG_LIMIT:
                log.info("%s %s: %r", obj.label, obj.id, obj)
        if len(objects) > LOG_LIMIT:
            log.warning("Omitted inspecting %d more objects", len(objects) - LOG_LIMIT)

    def add(self, obj) -> None:
        if not obj or obj in self:
            return
        self.entries.append(SelectionEntry(obj))
        self.ctx.tree.select_node(node_id(obj), suppress=True)

    def clear(self) -> None:
        self.replace([])

    def purge(self, objects) -> None:
        gone = set(id(o) for o in objects)
        self.entries = [e for e in self.entries if id(e.obj) not in gone]
        for o in objects:
            self.ctx.tree.deselect_node(node_id(o), suppress=True)

    def reapply(self) -> None:
        """Drop entries for objects no longer in the graph, re-highlight the rest."""
        graph = self.ctx.engine.graph
        self.entries = [e for e in self.entries if e.obj in graph]
        tree = self.ctx.tree
        tree.deselect_all(suppress=True)
        for e in self.entries:
            tree.select_node(node_id(e.obj), suppress=True)

    # ----- Tree -> model -----
    def on_tree_changed(self, action: str, selected) -> None:
        if action != "select_node":
            return
        self.ctx.timers.schedule("tree_select", TREE_SELECT_DELAY_MS, self._apply_tree_selection)

    def _apply_tree_selection(self) -> None:
        graph = self.ctx.engine.graph
        objects = []
        for nid in self.ctx.tree.get_selected():
            parsed = parse_node_id(nid)
            if parsed is None:
                continue
            obj = graph.get(*parsed)
            if obj is not None:
                objects.append(obj)
        self.replace(objects)

    # ----- Region selection -----
    @property
    def region_active(self) -> bool:
        return self.select_start is not None

    def begin_region(self, point) -> None:
        p = pymunk.Vec2d(float(point[0]), float(point[1]))
        self.select_start = p
        self.select_end = p
        self.select_bounds = region(p, p)
        self.ctx.events.emit(Notification.SELECT_START)

    def update_region(self, point) -> None:
        if self.select_start is None:
            return
        self.select_end = pymunk.Vec2d(float(point[0]), float(point[1]))
        self.select_bounds = region(self.select_start, self.select_end)

    def end_region(self, union: bool = False) -> list:
        if self.select_start is None:
            return []
        engine = self.ctx.engine
        picked = bodies_in_region(self.select_bounds, engine.graph.all_bodies(engine.world))
        if union:
            for b in picked:
                self.add(b)
        else:
            self.replace(picked)
        self.select_start = None
        self.select_end = None
        self.select_bounds = None
        self.ctx.events.emit(Notification.SELECT_END)
        return picked
