import itertools

import pytest

from physics import Body, Group
from scene import SceneGraph, SceneGraphError


def _graph():
    g = SceneGraph(Group("Root", id=1))
    a = g.add(Group("A", id=2))
    b = g.add(Group("B", id=3), a)
    body = g.add(Body.box(10, 10, (0, 0), id=4), b)
    return g, a, b, body


def test_every_object_has_one_owner():
    g, a, b, body = _graph()
    assert g.owner_of(a) is g.root
    assert g.owner_of(b) is a
    assert g.owner_of(body) is b
    assert g.owner_of(g.root) is None


def test_walk_lists_parents_before_children():
    g, a, b, body = _graph()
    assert list(g.walk()) == [a, b, body]
    assert g.depth(body) == 3
    assert g.is_within(body, a)
    assert not g.is_within(a, b)


def test_duplicate_key_rejected():
    g, a, b, body = _graph()
    with pytest.raises(SceneGraphError):
        g.add(Body.box(5, 5, (0, 0), id=4))


def test_remove_group_takes_subtree():
    g, a, b, body = _graph()
    removed = g.remove(a)
    assert removed[0] is a
    assert set(map(id, removed)) == {id(a), id(b), id(body)}
    assert body not in g
    assert len(g) == 1


def test_move_rejects_cycles_and_reports_noop():
    g, a, b, body = _graph()
    with pytest.raises(SceneGraphError):
        g.move(a, b)
    assert g.move(body, b) is False
    g.modified = False
    assert g.move(body, a) is True
    assert g.owner_of(body) is a
    assert g.modified


def test_add_with_source_copies_subtree():
    src, a, b, body = _graph()
    dst = SceneGraph(Group("Other", id=50))
    dst.add(a, source=src)
    assert dst.owner_of(body) is b
    assert dst.all_bodies() == [body]


def test_rebase_keeps_structure():
    g, a, b, body = _graph()
    counter = itertools.count(100)
    g.rebase(lambda: next(counter))
    assert g.root.id == 100
    assert {a.id, b.id, body.id} == {101, 102, 103}
    assert g.owner_of(body) is b
    assert g.get("body", body.id) is body
    assert g.get("body", 4) is None
