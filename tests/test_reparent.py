from events import Notification, ReportKind
from mirror import node_id
from physics import Group


def test_drop_moves_body_between_groups(ins, engine):
    group = engine.add(Group("Target"))
    body = engine.add_box(10, 10, (0, 0))
    ins.pre_tick()
    assert ins.tree.move_node(node_id(body), f"bodies_{group.id}")
    assert engine.graph.owner_of(body) is group
    assert engine.graph.modified
    ins.pre_tick()
    assert ins.mirror.group_id_of(body) == group.id


def test_drop_into_detached_group_leaves_simulation(ins, engine):
    loose = engine.add(Group("Loose"), engine.root)
    body = engine.add_box(10, 10, (0, 0))
    ins.pre_tick()
    ins.tree.move_node(node_id(body), f"bodies_{loose.id}")
    assert engine.graph.owner_of(body) is loose
    assert body.pm_body not in engine.space.bodies


def test_cycle_is_reported_and_graph_kept(ins, engine):
    outer = engine.add(Group("Outer"))
    inner = engine.add(Group("Inner"), outer)
    ins.pre_tick()
    seen = []
    ins.events.on(Notification.MESSAGE, seen.append)
    # the tree refuses this drop itself, so feed the coordinator directly
    node = ins.tree.get_node(node_id(outer))
    ins.tree.get_node(f"groups_{inner.id}").children.append(node)
    ins.tree._parent[node.id] = f"groups_{inner.id}"
    assert ins.reparent.on_moved([node.id]) == 0
    assert [r.kind for r in seen] == [ReportKind.INVALID_MOVE]
    assert engine.graph.owner_of(outer) is engine.world
    assert engine.graph.modified


def test_moved_body_keeps_selection_and_clipboard(ins, engine):
    group = engine.add(Group("Target"))
    body = engine.add_box(10, 10, (0, 0))
    ins.pre_tick()
    ins.selection.replace([body])
    ins.copy()
    ins.tree.move_node(node_id(body), f"bodies_{group.id}")
    ins.pre_tick()
    assert engine.graph.owner_of(body) is group
    assert ins.selection.objects == [body]
    assert ins.clipboard.items == [body]
    assert ins.tree.is_selected(node_id(body))
