# Scene graph tables

from typing import Dict, Iterator, List, Optional, Tuple

# Child kinds in the order they are listed under a group.

KINDS = ("group", "body", "constraint")

Key = Tuple[str, int]


def key_of(obj) -> Key:
    return obj.type, obj.id


class SceneGraphError(Exception):
    pass


class SceneGraph:
    """Ownership tables for groups, bodies and constraints.

    Objects are stored flat by ``(type, id)``. Each group id maps to ordered
    id lists per kind, and every registered object except the root has one
    entry in the owner table. Objects never reference their group directly.
    """

    def __init__(self, root) -> None:
        self.root = root
        self._objects: Dict[Key, object] = {key_of(root): root}
        self._children: Dict[int, Dict[str, List[int]]] = {root.id: _empty_children()}
        self._owner: Dict[Key, int] = {}
        self.modified = True

    # ----- Lookup -----
    def get(self, kind: str, obj_id: int):
        return self._objects.get((kind, int(obj_id)))

    def __contains__(self, obj) -> bool:
        return obj is not None and self._objects.get(key_of(obj)) is obj

    def __len__(self) -> int:
        return len(self._objects)

    def owner_of(self, obj):
        gid = self._owner.get(key_of(obj))
        if gid is None:
            return None
        return self._objects.get(("group", gid))

    def children(self, group, kind: str) -> list:
        ids = self._children.get(group.id, {}).get(kind, [])
        return [self._objects[(kind, i)] for i in ids]

    def depth(self, obj) -> int:
        d = 0
        gid = self._owner.get(key_of(obj))
        while gid is not None:
            d += 1
            gid = self._owner.get(("group", gid))
        return d

    def is_within(self, obj, group) -> bool:
        """True if obj is group itself or sits anywhere below it."""
        if obj is group:
            return True
        gid = self._owner.get(key_of(obj))
        while gid is not None:
            if gid == group.id:
                return True
            gid = self._owner.get(("group", gid))
        return False

    # ----- Traversal -----
    def walk(self, group=None) -> Iterator:
        """Yield every object below group, parents before children."""
        group = self.root if group is None else group
        for kind in KINDS:
            for obj in self.children(group, kind):
                yield obj
                if kind == "group":
                    yield from self.walk(obj)

    def all_groups(self, group=None) -> list:
        return [o for o in self.walk(group) if o.type == "group"]

    def all_bodies(self, group=None) -> list:
        group = self.root if group is None else group
        out = list(self.children(group, "body"))
        for sub in self.children(group, "group"):
            out.extend(self.all_bodies(sub))
        return out

    def all_constraints(self, group=None) -> list:
        group = self.root if group is None else group
        out = list(self.children(group, "constraint"))
        for sub in self.children(group, "group"):
            out.extend(self.all_constraints(sub))
        return out

    # ----- Mutation -----
    def add(self, obj, parent=None, index: Optional[int] = None, source: "SceneGraph" = None):
        """Register obj under parent (default: root).

        When obj is a group and ``source`` is given, the group's subtree in
        ``source`` is copied into this graph as well.
        """
        parent = self.root if parent is None else parent
        k = key_of(obj)
        if k in self._objects:
            raise SceneGraphError(f"{obj.type} {obj.id} is already in the graph")
        if parent.id not in self._children or self._objects.get(("group", parent.id)) is not parent:
            raise SceneGraphError(f"group {parent.id} is not in the graph")
        self._objects[k] = obj
        self._owner[k] = parent.id
        ids = self._children[parent.id][obj.type]
        if index is None:
            ids.append(obj.id)
        else:
            ids.insert(index, obj.id)
        if obj.type == "group":
            self._children[obj.id] = _empty_children()
            if source is not None:
                for kind in KINDS:
                    for child in source.children(obj, kind):
                        if key_of(child) not in self._objects:
                            self.add(child, obj, source=source)
        self.modified = True
        return obj

    def remove(self, obj) -> list:
        """Unregister obj and, for a group, its whole subtree."""
        k = key_of(obj)
        if k not in self._owner:
            return []
        removed = []
        if obj.type == "group":
            for child in list(self.walk(obj)):
                removed.append(child)
            for child in removed:
                ck = key_of(child)
                self._objects.pop(ck, None)
                self._owner.pop(ck, None)
                if child.type == "group":
                    self._children.pop(child.id, None)
            self._children.pop(obj.id, None)
        gid = self._owner.pop(k)
        self._children[gid][obj.type].remove(obj.id)
        self._objects.pop(k, None)
        removed.insert(0, obj)
        self.modified = True
        return removed

    def move(self, obj, new_parent, index: Optional[int] = None) -> bool:
        """Transfer ownership of obj to new_parent. Returns False on no-op."""
        k = key_of(obj)
        old_gid = self._owner.get(k)
        if old_gid is None:
            raise SceneGraphError(f"{obj.type} {obj.id} is not in the graph")
        if new_parent not in self:
            raise SceneGraphError(f"group {new_parent.id} is not in the graph")
        if obj.type == "group" and self.is_within(new_parent, obj):
            raise SceneGraphError(f"cannot move group {obj.id} into itself")
        if old_gid == new_parent.id:
            return False
        self._children[old_gid][obj.type].remove(obj.id)
        ids = self._children[new_parent.id][obj.type]
        if index is None:
            ids.append(obj.id)
        else:
            ids.insert(index, obj.id)
        self._owner[k] = new_parent.id
        self.modified = True
        return True

    def clear(self, group) -> list:
        removed = []
        for kind in KINDS:
            for child in self.children(group, kind):
                removed.extend(self.remove(child))
        return removed

    def rebase(self, next_id) -> None:
        """Give every object a fresh id from next_id(), keeping structure."""
        order = [self.root] + list(self.walk())
        by_old_key = {key_of(o): o for o in order}
        old_owner = {id(o): self._owner.get(key_of(o)) for o in order}
        old_children = {id(o): self._children[o.id] for o in order if o.type == "group"}
        for obj in order:
            obj.id = next_id()
        self._objects = {key_of(o): o for o in order}
        self._children = {
            g.id: {kind: [by_old_key[(kind, i)].id for i in old_children[id(g)][kind]] for kind in KINDS}
            for g in order if g.type == "group"
        }
        self._owner = {
            key_of(o): by_old_key[("group", old_owner[id(o)])].id
            for o in order if old_owner[id(o)] is not None
        }
        self.modified = True


def _empty_children() -> Dict[str, List[int]]:
    return {kind: [] for kind in KINDS}
