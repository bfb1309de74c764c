# Hierarchy tree model

from typing import Dict, Iterable, List, Optional, Set

from events import Channel

# Which node types a container node accepts on drop.
VALID_CHILDREN = {
    "groups": {"group"},
    "bodies": {"body"},
    "constraints": {"constraint"},
}


class TreeModel:
    """State behind the hierarchy panel: nodes, selection, open state, filter.

    Nodes are any objects with ``id``, ``type``, ``text`` and ``children``.
    ``changed`` fires ``(action, selected_ids)`` on user selection,
    ``moved`` fires ``(node_ids)`` after a drop, ``refreshed`` after load.
    """

    def __init__(self) -> None:
        self.roots: list = []
        self._nodes: Dict[str, object] = {}
        self._parent: Dict[str, Optional[str]] = {}
        self._selected: List[str] = []
        self._opened: Set[str] = set()
        self._matches: Optional[Set[str]] = None
        self.changed = Channel("changed")
        self.moved = Channel("moved")
        self.refreshed = Channel("refreshed")

    # ----- Data -----
    def load(self, nodes: Iterable) -> None:
        self.roots = list(nodes)
        self._nodes = {}
        self._parent = {}
        for n in self.roots:
            self._index(n, None)
        self._selected = [i for i in self._selected if i in self._nodes]
        self._opened = {i for i in self._opened if i in self._nodes}
        if self._matches is not None:
            self._matches = {i for i in self._matches if i in self._nodes}
        self.refreshed.publish()

    def _index(self, node, parent_id: Optional[str]) -> None:
        self._nodes[node.id] = node
        self._parent[node.id] = parent_id
        for child in node.children:
            self._index(child, node.id)

    def clear(self) -> None:
        self.roots = []
        self._nodes.clear()
        self._parent.clear()
        self._selected.clear()
        self._opened.clear()
        self._matches = None

    def get_node(self, node_id: str):
        return self._nodes.get(node_id)

    def get_parent(self, node_id: str) -> Optional[str]:
        return self._parent.get(node_id)

    def all_ids(self) -> List[str]:
        return list(self._nodes)

    # ----- Selection -----
    def get_selected(self) -> List[str]:
        return list(self._selected)

    def is_selected(self, node_id: str) -> bool:
        return node_id in self._selected

    def select_node(self, node_id: str, suppress: bool = False) -> bool:
        if node_id not in self._nodes:
            return False
        if node_id not in self._selected:
            self._selected.append(node_id)
        if not suppress:
            self.changed.publish("select_node", self.get_selected())
        return True

    def deselect_node(self, node_id: str, suppress: bool = False) -> None:
        if node_id in self._selected:
            self._selected.remove(node_id)
            if not suppress:
                self.changed.publish("deselect_node", self.get_selected())

    def deselect_all(self, suppress: bool = False) -> None:
        self._selected.clear()
        if not suppress:
            self.changed.publish("deselect_all", [])

    def select_only(self, node_id: str) -> None:
        """Plain click: the clicked node becomes the whole selection."""
        self._selected.clear()
        self.select_node(node_id)

    def select_children(self, node_id: str) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            return
        for child in node.children:
            self.select_node(child.id)

    # ----- Open state -----
    def open_node(self, node_id: str) -> None:
        if node_id in self._nodes:
            self._opened.add(node_id)

    def close_node(self, node_id: str) -> None:
        self._opened.discard(node_id)

    def open_all(self) -> None:
        self._opened = {i for i, n in self._nodes.items() if n.children}

    def is_open(self, node_id: str) -> bool:
        return node_id in self._opened

    # ----- Search -----
    def search(self, text: str) -> Set[str]:
        text = (text or "").strip().lower()
        if not text:
            self._matches = None
            self.refreshed.publish()
            return set()
        hits = {i for i, n in self._nodes.items() if text in n.text.lower()}
        shown = set(hits)
        for i in hits:
            p = self._parent.get(i)
            while p is not None and p not in shown:
                shown.add(p)
                p = self._parent.get(p)
        self._matches = shown
        self._opened.update(shown - hits)
        self.refreshed.publish()
        return hits

    def is_visible(self, node_id: str) -> bool:
        return self._matches is None or node_id in self._matches

    # ----- Drag and drop -----
    def can_drop(self, node_id: str, target_id: str) -> bool:
        node = self._nodes.get(node_id)
        target = self._nodes.get(target_id)
        if node is None or target is None:
            return False
        p = target_id
        while p is not None:
            if p == node_id:
                return False
            p = self._parent.get(p)
        return node.type in VALID_CHILDREN.get(target.type, ())

    def move_node(self, node_id: str, target_id: str) -> bool:
        if not self.can_drop(node_id, target_id):
            return False
        node = self._nodes[node_id]
        old_parent = self._parent.get(node_id)
        if old_parent == target_id:
            return False
        if old_parent is not None:
            self._nodes[old_parent].children.remove(node)
        else:
            self.roots.remove(node)
        self._nodes[target_id].children.append(node)
        self._parent[node_id] = target_id
        self.moved.publish([node_id])
        return True
