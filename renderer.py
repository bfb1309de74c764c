# Scene renderer

import dearpygui.dearpygui as dpg
import pymunk

from events import Channel

# ---------- Colors ----------
C_BG = (20, 21, 31, 255)
C_CIRC = (59, 130, 246, 255)
C_BOX = (71, 85, 105, 255)
C_STATIC = (110, 120, 140, 255)
C_SLEEP = (71, 85, 105, 140)
C_CONSTRAINT = (200, 200, 210, 200)
C_POINTER = (90, 200, 120, 220)
C_HILITE = (250, 204, 21, 220)
C_ENDPOINT = (250, 204, 21, 255)
C_REGION = (255, 255, 255, 90)
C_BOUNDS = (160, 160, 160, 120)
C_LABEL = (235, 235, 240, 255)


class Renderer:
    def __init__(self, tag: str, width: int, height: int):
        self.tag = tag
        self.w = width
        self.h = height
        self.cam = [0.0, 0.0]
        self.zoom = 1.0
        self.show_labels = False
        # fired once the scene is drawn so overlays land on top
        self.after_render = Channel("after_render")

    # ---------- Coordinate helpers ----------
    def _mid(self):
        return self.w // 2, self.h // 2

    def to_screen(self, x: float, y: float):
        cx, cy = self._mid()
        return cx + (x + self.cam[0]) * self.zoom, cy - (y + self.cam[1]) * self.zoom

    def to_world(self, sx: float, sy: float):
        cx, cy = self._mid()
        return (sx - cx) / self.zoom - self.cam[0], -(sy - cy) / self.zoom - self.cam[1]

    # ---------- Frame ----------
    def clear(self):
        try:
            dpg.delete_item(self.tag, children_only=True)
        except Exception:
            pass

    def draw(self, engine):
        self.clear()
        dpg.draw_rectangle((0, 0), (self.w, self.h), color=C_BG, fill=C_BG, parent=self.tag)
        graph, world = engine.graph, engine.world
        for body in graph.all_bodies(world):
            self.draw_body(body)
        for c in graph.all_constraints(world):
            self.draw_constraint(c)
        self.draw_bounds(engine.bounds_limit)
        self.after_render.publish()

    # ---------- Objects ----------
    def draw_body(self, body):
        s = body.shape
        if body.is_static:
            color = C_STATIC
        elif body.pm_body.is_sleeping:
            color = C_SLEEP
        elif isinstance(s, pymunk.Circle):
            color = C_CIRC
        else:
            color = C_BOX
        if isinstance(s, pymunk.Circle):
            p = self.to_screen(*body.position)
            dpg.draw_circle(p, s.radius * self.zoom, color=color, fill=color, parent=self.tag)
            # spoke so rotation is visible
            edge = body.pm_body.local_to_world((s.radius, 0))
            dpg.draw_line(p, self.to_screen(*edge), color=C_BG, thickness=2, parent=self.tag)
        else:
            vs = [self.to_screen(*v) for v in body.vertices()]
            dpg.draw_polygon(vs, color=color, fill=color, parent=self.tag)
        if self.show_labels:
            self.draw_label(body)

    def draw_constraint(self, c):
        if c.body_a is None and c.body_b is None and c.is_pointer:
            return
        a = self.to_screen(*c.world_point_a())
        b = self.to_screen(*c.world_point_b())
        color = C_POINTER if c.is_pointer else C_CONSTRAINT
        dpg.draw_line(a, b, color=color, thickness=2, parent=self.tag)

    def draw_label(self, body):
        bb = body.bounds()
        px, py = self.to_screen(bb.right, bb.top)
        dpg.draw_text((int(px) + 6, int(py) - 6), f"{body.label} {body.id}",
                      color=C_LABEL, parent=self.tag, size=14)

    def draw_bounds(self, limit: float, color=C_BOUNDS):
        """Square from -limit..+limit in world coords."""
        L = float(limit)
        dpg.draw_rectangle(self.to_screen(-L, L), self.to_screen(L, -L), color=color, parent=self.tag)

    # ---------- Inspector overlay ----------
    def draw_inspector(self, ins):
        for obj in ins.selection.objects:
            if obj.type == "body":
                self.highlight_body(obj)
            elif obj.type == "constraint":
                self.highlight_constraint(obj)
        bb = ins.selection.select_bounds
        if bb is not None:
            dpg.draw_rectangle(self.to_screen(bb.left, bb.top), self.to_screen(bb.right, bb.bottom),
                               color=C_REGION, fill=(255, 255, 255, 20), parent=self.tag)

    def highlight_body(self, body):
        bb = body.bounds()
        dpg.draw_rectangle(self.to_screen(bb.left, bb.top), self.to_screen(bb.right, bb.bottom),
                           color=C_HILITE, thickness=1, parent=self.tag)
        s = body.shape
        if isinstance(s, pymunk.Circle):
            p = self.to_screen(*body.position)
            dpg.draw_circle(p, s.radius * self.zoom, color=C_HILITE, thickness=3, parent=self.tag)
        else:
            vs = [self.to_screen(*v) for v in body.vertices()]
            dpg.draw_polygon(vs, color=C_HILITE, thickness=3, parent=self.tag)

    def highlight_constraint(self, c):
        for p in (c.world_point_a(), c.world_point_b()):
            dpg.draw_circle(self.to_screen(*p), 8, color=C_ENDPOINT, thickness=2, parent=self.tag)
        self.draw_dotted_world(c.world_point_a(), c.world_point_b(), color=C_HILITE)

    # ---------- Dotted helpers ----------
    def _draw_dotted_line_screen(self, p0s, p1s, color, dash=6, gap=6):
        x0, y0 = p0s
        x1, y1 = p1s
        dx = x1 - x0
        dy = y1 - y0
        dist = (dx*dx + dy*dy) ** 0.5
        if dist <= 1e-6:
            return
        ux = dx / dist
        uy = dy / dist
        t = 0.0
        while t < dist:
            t_end = min(dist, t + dash)
            dpg.draw_line((x0 + ux * t, y0 + uy * t), (x0 + ux * t_end, y0 + uy * t_end),
                          color=color, parent=self.tag)
            t += dash + gap

    def draw_dotted_world(self, p0, p1, color=C_HILITE, dash=6, gap=6):
        self._draw_dotted_line_screen(self.to_screen(*p0), self.to_screen(*p1), color, dash, gap)
