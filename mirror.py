# Scene graph -> tree nodes

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from scene import SceneGraph
from tree import TreeModel

CATEGORIES = (
    ("groups", "Groups", "group"),
    ("bodies", "Bodies", "body"),
    ("constraints", "Constraints", "constraint"),
)
OBJECT_TYPES = ("group", "body", "constraint")


@dataclass
class MirrorNode:
    id: str
    type: str
    text: str
    group_id: Optional[int]  # owning group (for category nodes: the listed group)
    children: List["MirrorNode"] = field(default_factory=list)

    def iter(self) -> Iterator["MirrorNode"]:
        yield self
        for child in self.children:
            yield from child.iter()


def node_id(obj) -> str:
    return f"{obj.type}_{obj.id}"


def parse_node_id(nid: str) -> Optional[Tuple[str, int]]:
    kind, _, raw = (nid or "").partition("_")
    if kind not in OBJECT_TYPES:
        return None
    try:
        return kind, int(raw)
    except ValueError:
        return None


def _text(obj, fallback: str) -> str:
    return f"{obj.label or fallback} {obj.id}"


def _group_node(graph: SceneGraph, group, owner_id: Optional[int]) -> MirrorNode:
    node = MirrorNode(node_id(group), "group", _text(group, "Group"), owner_id)
    for cat_id, cat_text, kind in CATEGORIES:
        cat = MirrorNode(f"{cat_id}_{group.id}", cat_id, cat_text, group.id)
        for obj in graph.children(group, kind):
            if kind == "group":
                cat.children.append(_group_node(graph, obj, group.id))
            else:
                cat.children.append(MirrorNode(node_id(obj), kind, _text(obj, kind.title()), group.id))
        node.children.append(cat)
    return node


def build(graph: SceneGraph) -> List[MirrorNode]:
    """Forest of the groups directly under the graph root."""
    root = graph.root
    return [_group_node(graph, g, root.id) for g in graph.children(root, "group")]


def leaf_count(nodes: List[MirrorNode]) -> int:
    return sum(1 for n in nodes for m in n.iter() if m.type in ("body", "constraint"))


class SceneGraphMirror:
    def __init__(self, graph: SceneGraph, tree: TreeModel, auto_expand: bool = True) -> None:
        self.graph = graph
        self.tree = tree
        self.auto_expand = auto_expand
        self.has_expanded = False
        self.rebuilds = 0

    def check(self) -> bool:
        """Rebuild if the graph changed since the last rebuild."""
        if not self.graph.modified:
            return False
        self.rebuild()
        return True

    def rebuild(self) -> List[MirrorNode]:
        nodes = build(self.graph)
        self.graph.modified = False
        self.tree.load(nodes)
        if nodes and self.rebuilds == 0:
            self.tree.open_node(nodes[0].id)
        if self.auto_expand and not self.has_expanded:
            self.has_expanded = True
            self.tree.open_all()
        self.rebuilds += 1
        return nodes

    def group_id_of(self, obj) -> Optional[int]:
        node = self.tree.get_node(node_id(obj))
        if node is None:
            return None
        return node.group_id
