# Live scene inspector

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from clipboard import ClipboardSerializer
from config import InspectorOptions
from controls import BUTTON_NONE, BUTTON_PRIMARY, BUTTON_SECONDARY, KeyBindings, KeyState, Mouse, read_input
from events import Channel, EventBus
from hittest import hit_test, pick
from mirror import SceneGraphMirror, parse_node_id
from pause import PauseController
from physics import Constraint, Engine, Group
from reparent import ReparentCoordinator
from selection import SelectionModel
from serializer import JsonSerializer
from timers import Timers
from transform import TransformController
from tree import TreeModel

log = logging.getLogger(__name__)

SEARCH_DELAY_MS = 250

HELP = """Scene Inspector

Drag nodes in the tree to move them between groups.
Selected objects are logged for inspection.

[shift + space] pause or play simulation.
[right click] and drag on empty space to select a region.
[right click] and drag on an object to move it.
[right click + shift] and drag to move whole selection.
[left click] and drag a body to pull it.

[ctrl + c] to copy selected bodies.
[ctrl + v] to paste copied bodies.
[del] or [backspace] delete selected objects.

[shift + s] scale-xy selected objects with mouse or arrows.
[shift + s + d] scale-x selected objects with mouse or arrows.
[shift + s + f] scale-y selected objects with mouse or arrows.
[shift + r] rotate selected objects with mouse or arrows.

[shift + q] set selected objects as static (can't be undone).
[shift + i] import objects.
[shift + o] export selected objects.
[shift + y] toggle auto-hide.
[shift + w] toggle auto-rewind on play/pause.

[shift + j] show this help message."""


class Inspector:
    """Everything one inspector instance needs, passed explicitly to its parts."""

    def __init__(self, engine: Engine, render=None, options: Optional[InspectorOptions] = None) -> None:
        self.engine = engine
        self.render = render
        self.options = options or InspectorOptions()
        self.serializer = JsonSerializer() if self.options.serializer else None
        self.events = EventBus()
        self.timers = Timers()
        self.tree = TreeModel()
        self.keys = KeyState()
        self.bindings = KeyBindings()
        self.mouse = Mouse()
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inspector-read")
        self.mirror = SceneGraphMirror(engine.graph, self.tree, self.options.auto_expand)
        self.selection = SelectionModel(self)
        self.transform = TransformController(self)
        self.clipboard = ClipboardSerializer(self)
        self.reparent = ReparentCoordinator(self)
        self.pause = PauseController(self)
        self.pointer: Optional[Constraint] = None
        # host requests (file dialog, help popup)
        self.import_requested = Channel("import_requested")
        self.help_requested = Channel("help_requested")

    @property
    def is_paused(self) -> bool:
        return self.pause.is_paused

    # ---------- Hooks ----------
    def pre_tick(self) -> None:
        self.clipboard.apply_pending()
        self.timers.poll()
        if self.mirror.check():
            self.selection.reapply()
        pos = self.mouse.position
        self.selection.update_region(pos)
        self.transform.apply(read_input(self.keys, self.mouse))
        self._track_pointer(pos)
        self.transform.record_pointer(pos)

    def after_render(self) -> None:
        if self.render is not None:
            self.render.draw_inspector(self)

    # ---------- Pointer ----------
    def _world_objects(self):
        graph, world = self.engine.graph, self.engine.world
        return graph.all_bodies(world), graph.all_constraints(world)

    def on_mouse_move(self, x: float, y: float) -> None:
        self.mouse.move(x, y)

    def on_mouse_down(self, button: int) -> None:
        self.mouse.button = button
        pos = self.mouse.position
        union = self.keys.shift or self.keys.ctrl
        if button == BUTTON_SECONDARY:
            bodies, constraints = self._world_objects()
            hit = hit_test(pos, bodies, constraints)
            if hit is not None:
                if union:
                    self.selection.add(hit)
                else:
                    self.selection.replace([hit])
                self.transform.begin_translate(pos)
            else:
                if not union:
                    self.selection.clear()
                self.selection.begin_region(pos)
        elif button == BUTTON_PRIMARY:
            self._grab(pos)

    def on_mouse_up(self, button: int) -> None:
        if self.selection.region_active:
            self.selection.end_region(union=self.keys.shift or self.keys.ctrl)
        if button == BUTTON_SECONDARY:
            self.transform.end_translate()
        elif button == BUTTON_PRIMARY:
            self._release()
        self.mouse.button = BUTTON_NONE

    def _pointer_live(self) -> bool:
        return self.pointer is not None and self.pointer in self.engine.graph

    def _grab(self, pos) -> None:
        if not self._pointer_live():
            return
        bodies, _ = self._world_objects()
        body = pick(pos, [b for b in bodies if not b.is_static])
        if body is None:
            return
        c = self.pointer
        c.point_a = pos
        c.body_b = body
        c.point_b = body.pm_body.world_to_local(pos)
        self.engine.refresh_constraint(c)

    def _release(self) -> None:
        if not self._pointer_live() or self.pointer.body_b is None:
            return
        self.pointer.body_b = None
        self.engine.refresh_constraint(self.pointer)

    def _track_pointer(self, pos) -> None:
        if self._pointer_live() and self.pointer.body_b is not None:
            self.pointer.point_a = pos
            self.pointer.sync_joint()

    # ---------- Keys ----------
    def on_key_down(self, name: str) -> bool:
        return self.bindings.dispatch(self.keys.press(name))

    def on_key_up(self, name: str) -> None:
        self.keys.release(name)

    # ---------- Actions ----------
    def copy(self):
        return self.clipboard.copy()

    def paste(self):
        return self.clipboard.paste()

    def export(self):
        return self.clipboard.export()

    def import_file(self, path: str):
        return self.clipboard.import_file(path)

    def request_import(self) -> None:
        if len(self.import_requested) == 0:
            log.warning("Import requested but no file picker is attached")
        self.import_requested.publish()

    def delete_selected(self) -> list:
        engine = self.engine
        objects = [o for o in self.selection.objects if o is not engine.world]
        for nid in self.tree.get_selected():
            parsed = parse_node_id(nid)
            if parsed is None or parsed[0] != "group":
                continue
            group = engine.graph.get(*parsed)
            if group is not None and group is not engine.world and group not in objects:
                objects.append(group)
        removed = engine.remove(objects)
        self.selection.purge(removed)
        self.selection.clear()
        if removed:
            log.info("Deleted %d objects", len(removed))
        return removed

    def add_group(self) -> Group:
        group = Group()
        self.engine.add(group, self.engine.root, index=0)
        return group

    def set_selected_static(self) -> int:
        count = 0
        for obj in self.selection.objects:
            if obj.type == "body" and not obj.is_static:
                obj.set_static()
                count += 1
        return count

    def search(self, text: str) -> None:
        self.timers.schedule("search", SEARCH_DELAY_MS, lambda: self.tree.search(text))

    def help_text(self) -> str:
        return HELP

    def show_help(self) -> None:
        if len(self.help_requested) == 0:
            log.info("\n%s", HELP)
        self.help_requested.publish(HELP)

    def toggle_auto_hide(self) -> bool:
        self.options.auto_hide = not self.options.auto_hide
        return self.options.auto_hide

    def toggle_auto_rewind(self) -> bool:
        self.pause.set_auto_rewind(not self.options.auto_rewind)
        return self.options.auto_rewind


def _bind_keys(ins: Inspector) -> None:
    bind = ins.bindings.bind
    bind("shift+space", ins.pause.toggle)
    if ins.serializer is not None:
        bind("shift+o", ins.export)
        bind("shift+i", ins.request_import)
        bind("ctrl+c", ins.copy)
        bind("ctrl+v", ins.paste)
    bind("shift+j", ins.show_help)
    bind("shift+y", ins.toggle_auto_hide)
    bind("shift+w", ins.toggle_auto_rewind)
    bind("shift+q", ins.set_selected_static)
    bind("delete", ins.delete_selected)
    bind("backspace", ins.delete_selected)


def create(engine: Engine, render=None, options: Optional[InspectorOptions] = None) -> Inspector:
    """Attach an inspector to a running engine (and optionally its renderer)."""
    ins = Inspector(engine, render, options)
    ins.tree.changed.subscribe(ins.selection.on_tree_changed)
    ins.tree.moved.subscribe(ins.reparent.on_moved)
    engine.before_update.subscribe(ins.pre_tick)
    if render is not None:
        render.after_render.subscribe(ins.after_render)
        ins.pointer = engine.add(Constraint(label="Mouse Constraint", is_pointer=True,
                                            stiffness=300.0, damping=30.0, length=0.0))
    engine.graph.modified = True
    _bind_keys(ins)
    return ins


def destroy(ins: Inspector) -> None:
    engine = ins.engine
    engine.before_update.unsubscribe(ins.pre_tick)
    if ins.render is not None:
        ins.render.after_render.unsubscribe(ins.after_render)
    if ins._pointer_live():
        engine.remove([ins.pointer])
    ins.pointer = None
    ins.bindings.unbind_all()
    ins.keys.release_all()
    ins.timers.clear()
    ins.tree.changed.clear()
    ins.tree.moved.clear()
    ins.tree.clear()
    ins.events.clear()
    ins.executor.shutdown(wait=False)
