# Copy / paste / export / import

import logging
import os
import re
from concurrent.futures import Future
from pathlib import Path
from typing import List, Optional

import pymunk

from events import Notification, ReportKind
from physics import Group
from scene import SceneGraph

log = logging.getLogger(__name__)

PASTE_OFFSET = pymunk.Vec2d(50.0, 50.0)
PASTE_SETTLE_MS = 200
IMPORT_EXTENSIONS = (".json", ".txt")
DEFAULT_EXPORT_NAME = "export-objects"


def export_filename(objects) -> str:
    name = DEFAULT_EXPORT_NAME
    if len(objects) == 1:
        obj = objects[0]
        name = f"export-{obj.label}-{obj.id}"
    name = re.sub(r"[^A-Za-z0-9_-]", "", name.lower())
    return (name or DEFAULT_EXPORT_NAME) + ".json"


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


class ClipboardSerializer:
    def __init__(self, ctx) -> None:
        self.ctx = ctx
        self.items: List = []
        self._reads: List = []

    def _serializer(self, action: str):
        ser = self.ctx.serializer
        if ser is None:
            self.ctx.events.report(ReportKind.CONFIG_MISSING, f"No serializer, cannot {action}.")
        return ser

    # ----- Copy / paste -----
    def copy(self) -> List:
        self.items = [o for o in self.ctx.selection.objects if o.type == "body"]
        return list(self.items)

    def paste(self) -> List:
        ser = self._serializer("paste")
        if ser is None:
            return []
        engine = self.ctx.engine
        clones = []
        for src in self.items:
            clone = ser.clone(src)
            clone.translate(PASTE_OFFSET)
            engine.add(clone, self._group_for(src))
            clones.append(clone)
        if clones:
            self.ctx.timers.schedule("paste_settle", PASTE_SETTLE_MS, lambda: self._select_pasted(clones))
        return clones

    def _select_pasted(self, clones) -> None:
        graph = self.ctx.engine.graph
        self.ctx.selection.replace([c for c in clones if c in graph])

    def _group_for(self, obj):
        graph = self.ctx.engine.graph
        gid = self.ctx.mirror.group_id_of(obj)
        group = graph.get("group", gid) if gid is not None else None
        if group is None:
            group = graph.owner_of(obj)
        return group if group is not None else self.ctx.engine.world

    # ----- Export -----
    def export(self) -> Optional[str]:
        selected = self.ctx.selection.objects
        if not selected:
            self.ctx.events.report(
                ReportKind.EMPTY_SELECTION,
                "No objects were selected, so export could not be created.",
            )
            return None
        ser = self._serializer("export")
        if ser is None:
            return None
        fragment = self.build_export(selected)
        text = ser.serialize(fragment, self.ctx.options.export_indent)
        path = os.path.join(self.ctx.options.export_dir, export_filename(selected))
        try:
            Path(path).write_text(text, encoding="utf-8")
        except OSError as e:
            self.ctx.events.report(ReportKind.WRITE_FAILURE, f"Could not write {path}: {e}")
            return None
        log.info("Exported %d objects to %s", len(selected), path)
        self.ctx.events.emit(Notification.EXPORT, path)
        return path

    def build_export(self, objects) -> SceneGraph:
        """Detached graph holding objects, parents ahead of their descendants."""
        graph = self.ctx.engine.graph
        fragment = SceneGraph(Group("Exported Objects"))
        ordered = sorted(objects, key=graph.depth)
        for obj in ordered:
            if obj in fragment:
                continue
            fragment.add(obj, source=graph)
        return fragment

    # ----- Import -----
    def import_file(self, path: str) -> Optional[Future]:
        if self._serializer("import") is None:
            return None
        if not str(path).lower().endswith(IMPORT_EXTENSIONS):
            self.ctx.events.report(ReportKind.UNSUPPORTED_FILE,
                                   "File not supported, .json or .txt JSON files only")
            return None
        future = self.ctx.executor.submit(_read_text, str(path))
        self._reads.append((str(path), future))
        return future

    def apply_pending(self) -> int:
        """Apply finished file reads. Runs on the host loop."""
        applied = 0
        for entry in list(self._reads):
            path, future = entry
            if not future.done():
                continue
            self._reads.remove(entry)
            try:
                text = future.result()
            except (OSError, UnicodeDecodeError) as e:
                self.ctx.events.report(ReportKind.READ_FAILURE, f"Could not read {path}: {e}")
                continue
            if self.apply_import(text, path) is not None:
                applied += 1
        return applied

    def apply_import(self, text: str, source: str = "<text>"):
        ser = self._serializer("import")
        if ser is None:
            return None
        fragment = ser.parse(text)
        if not fragment:
            self.ctx.events.report(ReportKind.PARSE_FAILURE, f"Could not parse {source}")
            return None
        group = fragment.root
        group.label = "Imported Objects"
        ser.rebase(fragment)
        engine = self.ctx.engine
        engine.add(group, engine.root, index=0, source=fragment)
        self.ctx.mirror.rebuild()
        self.ctx.selection.reapply()
        log.info("Imported %d objects from %s", len(fragment) - 1, source)
        self.ctx.events.emit(Notification.IMPORT, group)
        return group
