# Drag-and-drop moves between groups

import logging

from events import ReportKind
from mirror import parse_node_id
from scene import SceneGraphError

log = logging.getLogger(__name__)


class ReparentCoordinator:
    def __init__(self, ctx) -> None:
        self.ctx = ctx

    def on_moved(self, node_ids) -> int:
        tree = self.ctx.tree
        engine = self.ctx.engine
        graph = engine.graph
        moved = 0
        for nid in node_ids:
            node = tree.get_node(nid)
            parent = tree.get_node(tree.get_parent(nid) or "")
            parsed = parse_node_id(nid)
            if node is None or parent is None or parsed is None:
                continue
            if node.group_id == parent.group_id:
                continue
            obj = graph.get(*parsed)
            old_group = graph.get("group", node.group_id)
            new_group = graph.get("group", parent.group_id)
            if obj is None or new_group is None:
                continue
            try:
                if engine.move(obj, new_group):
                    moved += 1
                    log.info("Moved %s %s from group %s to group %s", obj.type, obj.id,
                             getattr(old_group, "id", None), new_group.id)
            except SceneGraphError as e:
                self.ctx.events.report(ReportKind.INVALID_MOVE, str(e))
        # the tree already shows the drop; rebuild so it reflects the graph
        graph.modified = True
        return moved
