#Scene Inspector demo

import logging
import time

import dearpygui.dearpygui as dpg

import inspector
import ui
from config import configure_logging, load_options, save_options
from controls import BUTTON_PRIMARY, BUTTON_SECONDARY
from events import Notification
from physics import Constraint, Engine, Group
from renderer import Renderer

log = logging.getLogger("app")

# ---------- CONFIG ----------
WIN_W, WIN_H = 1400, 900
CANVAS_W, CANVAS_H = 1000, 850
ZOOM_FACTOR = 0.25
ZOOM_MIN, ZOOM_MAX = 0.2, 5.0
DEFAULT_ZOOM = 1.0
ZOOM_HALFLIFE = 0.12
MESSAGE_TTL = 4.0

# dpg mouse buttons -> inspector buttons
DPG_BUTTONS = {0: BUTTON_PRIMARY, 1: BUTTON_SECONDARY}
DPG_MIDDLE = 2

_KEY_ALIASES = (
    ("space", ("mvKey_Spacebar", "mvKey_Space")),
    ("shift", ("mvKey_Shift", "mvKey_LShift", "mvKey_RShift", "mvKey_ModShift")),
    ("ctrl", ("mvKey_Control", "mvKey_LControl", "mvKey_RControl", "mvKey_ModCtrl")),
    ("alt", ("mvKey_Alt", "mvKey_LAlt", "mvKey_RAlt", "mvKey_ModAlt")),
    ("delete", ("mvKey_Delete",)),
    ("backspace", ("mvKey_Back", "mvKey_Backspace")),
    ("up", ("mvKey_Up",)),
    ("down", ("mvKey_Down",)),
    ("left", ("mvKey_Left",)),
    ("right", ("mvKey_Right",)),
)


def _key_names():
    names = {}
    for ch in "ABCDEFGHIJKLMNOPQRSTUVWXYZ":
        code = getattr(dpg, f"mvKey_{ch}", None)
        if code is not None:
            names[code] = ch.lower()
    for name, attrs in _KEY_ALIASES:
        for attr in attrs:
            code = getattr(dpg, attr, None)
            if code is not None:
                names[code] = name
    return names


def build_demo_scene(engine: Engine) -> None:
    """Ground, a loose pile, a hanging chain and a nested stack."""
    world = engine.world
    engine.add_box(900, 40, (0, -380), static=True, label="Ground")
    engine.add_box(40, 300, (-430, -210), static=True, label="Wall")
    for i in range(4):
        engine.add_circle(18 + 4 * i, (-260 + 50 * i, 80 + 30 * i), label="Circle Body")
    engine.add_box(60, 40, (-120, 200), mass=2.0)

    chain = engine.add(Group("Chain"), world)
    prev, prev_anchor = None, (120, 300)
    for i in range(5):
        link = engine.add_box(30, 14, (150 + 34 * i, 300), parent=chain)
        if prev is None:
            engine.add(Constraint(point_a=prev_anchor, body_b=link, point_b=(-15, 0)), chain)
        else:
            engine.add(Constraint(body_a=prev, point_a=(15, 0), body_b=link, point_b=(-15, 0)), chain)
        prev = link

    stack = engine.add(Group("Stack"), world)
    for i in range(3):
        engine.add_box(70, 40, (300, -340 + 42 * i), parent=stack, label="Stack Body")
    pyramid = engine.add(Group("Pyramid"), stack)
    for row in range(3):
        for col in range(3 - row):
            x = -20 + col * 42 + row * 21
            engine.add_box(38, 38, (x, -340 + 40 * row), parent=pyramid)


class App:
    def __init__(self) -> None:
        try:
            dpg.destroy_context()
        except Exception:
            pass

        self.options = load_options()
        self.engine = Engine()
        build_demo_scene(self.engine)
        self.R = Renderer("main_canvas", CANVAS_W, CANVAS_H)
        self.R.zoom = DEFAULT_ZOOM
        self.inspector = inspector.create(self.engine, self.R, self.options)
        ins = self.inspector

        # UI references
        self.stats = None
        self.message = ""
        self._message_ttl = 0.0
        self.tree_dirty = True
        self._last_tree_sel = ()

        # Panning
        self.is_panning = False
        self.pan_start_local = (0.0, 0.0)
        self.pan_cam_start = (0.0, 0.0)

        # Smooth zoom state
        self.zoom_target = DEFAULT_ZOOM
        self.zoom_focus_local = (CANVAS_W * 0.5, CANVAS_H * 0.5)
        self.zoom_focus_world = (0.0, 0.0)
        self.zoom_focus_ttl = 0.0
        self.zoom_focus_active = False

        self._keys = _key_names()

        ins.tree.refreshed.subscribe(self._mark_tree_dirty)
        ins.tree.changed.subscribe(lambda action, selected: self._mark_tree_dirty())
        ins.events.on(Notification.MESSAGE, lambda rep: self._show_message(rep.text))
        ins.events.on(Notification.EXPORT, lambda path: self._show_message(f"Exported to {path}"))
        ins.events.on(Notification.IMPORT, lambda group: self._show_message(f"Imported {group.label} {group.id}"))
        ins.events.on(Notification.PAUSED, lambda: log.info("Paused"))
        ins.events.on(Notification.PLAY, lambda: log.info("Playing"))
        ins.help_requested.subscribe(ui.show_help)
        ins.import_requested.subscribe(ui.show_import_dialog)

        # DearPyGui setup
        dpg.create_context()
        dpg.create_viewport(title="Scene Inspector", width=WIN_W, height=WIN_H)
        try:
            dpg.configure_viewport(0, decorated=True)
        except Exception:
            pass
        ui.build_ui(self)

        self._last = time.time()
        dpg.setup_dearpygui()
        dpg.show_viewport()

    # ---------- Mouse utilities ----------
    def _local_mouse(self):
        mouse_x, mouse_y = dpg.get_mouse_pos(local=False)
        try:
            rect_min = dpg.get_item_rect_min("main_canvas")
        except Exception:
            rect_min = dpg.get_item_pos("main_canvas")
        return mouse_x - rect_min[0], mouse_y - rect_min[1]

    def _set_zoom_focus(self, local_x, local_y):
        self.zoom_focus_local = (local_x, local_y)
        self.zoom_focus_world = self.R.to_world(local_x, local_y)
        self.zoom_focus_ttl = 0.4
        self.zoom_focus_active = True

    def _animate_zoom(self, dt):
        if dt <= 0:
            return
        alpha = 1.0 - (0.5 ** (dt / max(1e-6, ZOOM_HALFLIFE)))
        old_zoom = self.R.zoom
        target = max(ZOOM_MIN, min(ZOOM_MAX, self.zoom_target))
        new_zoom = old_zoom + (target - old_zoom) * alpha
        self.R.zoom = new_zoom
        if abs(new_zoom - old_zoom) >= 1e-6 and self.zoom_focus_active:
            # keep the world point under the cursor fixed
            sx, sy = self.zoom_focus_local
            wx, wy = self.zoom_focus_world
            cx, cy = self.R._mid()
            self.R.cam[0] = (sx - cx) / new_zoom - wx
            self.R.cam[1] = -(sy - cy) / new_zoom - wy
        if self.zoom_focus_active:
            self.zoom_focus_ttl -= dt
            if self.zoom_focus_ttl <= 0:
                self.zoom_focus_active = False

    # ---------- Keyboard ----------
    def _typing(self) -> bool:
        try:
            return bool(dpg.is_item_active("search_input"))
        except Exception:
            return False

    def on_key_down(self, sender, app_data):
        name = self._keys.get(app_data)
        if name is None or self._typing():
            return
        self.inspector.on_key_down(name)

    def on_key_up(self, sender, app_data):
        name = self._keys.get(app_data)
        if name is not None:
            self.inspector.on_key_up(name)

    # ---------- Mouse handlers ----------
    def on_mouse_down(self, sender, app_data):
        # Ensure clicks are on the canvas for canvas interactions
        if not dpg.is_item_hovered("main_canvas"):
            return
        local_x, local_y = self._local_mouse()
        if app_data == DPG_MIDDLE:
            self.is_panning = True
            self.pan_start_local = (local_x, local_y)
            self.pan_cam_start = (self.R.cam[0], self.R.cam[1])
            return
        button = DPG_BUTTONS.get(app_data)
        if button is None:
            return
        self.inspector.on_mouse_move(*self.R.to_world(local_x, local_y))
        self.inspector.on_mouse_down(button)

    def on_mouse_move(self, sender, app_data):
        local_x, local_y = self._local_mouse()
        if self.is_panning:
            dxs = local_x - self.pan_start_local[0]
            dys = local_y - self.pan_start_local[1]
            self.R.cam[0] = self.pan_cam_start[0] + dxs / self.R.zoom
            self.R.cam[1] = self.pan_cam_start[1] - dys / self.R.zoom
            return
        self.inspector.on_mouse_move(*self.R.to_world(local_x, local_y))

    def on_mouse_up(self, sender, app_data):
        if app_data == DPG_MIDDLE:
            self.is_panning = False
            return
        button = DPG_BUTTONS.get(app_data)
        if button is not None:
            self.inspector.on_mouse_up(button)

    def on_mouse_wheel(self, sender, app_data):
        if dpg.is_item_hovered("main_canvas"):
            self._set_zoom_focus(*self._local_mouse())
            try:
                steps = int(app_data)
            except Exception:
                steps = 1 if app_data > 0 else -1
            if steps != 0:
                factor = (1.0 + ZOOM_FACTOR) ** steps
                self.zoom_target = max(ZOOM_MIN, min(ZOOM_MAX, self.zoom_target * factor))

    # ---------- Status ----------
    def _show_message(self, text: str):
        self.message = text
        self._message_ttl = MESSAGE_TTL

    def _mark_tree_dirty(self):
        self.tree_dirty = True

    # ---------- Rendering ----------
    def _layout(self, panel_w: int):
        try:
            vw = dpg.get_viewport_client_width()
            vh = dpg.get_viewport_client_height()
            margin = 10
            dpg.configure_item("inspector_win", pos=(margin, margin), height=vh - margin * 2)
            vx = margin + panel_w + margin
            vw_w = max(300, vw - vx - margin)
            vw_h = vh - margin * 2
            dpg.configure_item("viewport_win", pos=(vx, margin), width=vw_w, height=vw_h)
            dpg.configure_item("main_canvas", width=vw_w, height=vw_h)
            self.R.w, self.R.h = int(vw_w), int(vw_h)
        except Exception:
            pass

    def _render(self, dt):
        ins = self.inspector
        sel = tuple(ins.tree.get_selected())
        if sel != self._last_tree_sel:
            self._last_tree_sel = sel
            self.tree_dirty = True
        if self.tree_dirty:
            try:
                ui.rebuild_tree(ins)
            except Exception as e:
                log.warning("Hierarchy rebuild failed: %s", e)
            self.tree_dirty = False

        if self._message_ttl > 0:
            self._message_ttl -= dt
            if self._message_ttl <= 0:
                self.message = ""
        self._layout(ui.update_panel(ins, self.message))
        self.R.draw(self.engine)

    # ---------- Main loop ----------
    def run(self):
        while dpg.is_dearpygui_running():
            now = time.time()
            dt = now - self._last
            self._last = now
            self.engine.step(dt)
            self._animate_zoom(dt)
            self._render(dt)
            try:
                bodies, constraints, ke = self.engine.stats()
                state = "Paused" if self.inspector.is_paused else "Running"
                text = f"{state}  |  Bodies: {bodies}  |  Constraints: {constraints}  |  KE: {ke:.0f}"
                if dpg.does_item_exist(self.stats):
                    dpg.set_value(self.stats, text)
            except Exception as e:
                log.warning("Stats update failed: %s", e)
            dpg.render_dearpygui_frame()
        inspector.destroy(self.inspector)
        save_options(self.options)
        dpg.destroy_context()


# ---------- MAIN ----------
def main():
    configure_logging()
    App().run()


if __name__ == "__main__":
    main()
