from mirror import MirrorNode
from tree import TreeModel


def _nodes():
    world = MirrorNode("group_1", "group", "World 1", 0)
    groups = MirrorNode("groups_1", "groups", "Groups", 1)
    bodies = MirrorNode("bodies_1", "bodies", "Bodies", 1)
    chain = MirrorNode("group_2", "group", "Chain 2", 1)
    chain_bodies = MirrorNode("bodies_2", "bodies", "Bodies", 2)
    link = MirrorNode("body_3", "body", "Link 3", 2)
    ball = MirrorNode("body_4", "body", "Ball 4", 1)
    chain_bodies.children.append(link)
    chain.children.append(chain_bodies)
    groups.children.append(chain)
    bodies.children.append(ball)
    world.children.extend([groups, bodies])
    return [world]


def test_select_publishes_unless_suppressed():
    tree = TreeModel()
    tree.load(_nodes())
    seen = []
    tree.changed.subscribe(lambda action, sel: seen.append((action, sel)))
    tree.select_node("body_3", suppress=True)
    tree.select_node("body_4")
    assert seen == [("select_node", ["body_3", "body_4"])]
    assert tree.select_node("missing") is False


def test_load_keeps_surviving_selection():
    tree = TreeModel()
    tree.load(_nodes())
    tree.select_node("body_4")
    tree.open_node("group_2")
    tree.load(_nodes())
    assert tree.get_selected() == ["body_4"]
    assert tree.is_open("group_2")


def test_select_children_of_category():
    tree = TreeModel()
    tree.load(_nodes())
    tree.select_children("bodies_2")
    assert tree.get_selected() == ["body_3"]


def test_search_shows_ancestors():
    tree = TreeModel()
    tree.load(_nodes())
    hits = tree.search("link")
    assert hits == {"body_3"}
    assert tree.is_visible("group_1")
    assert tree.is_visible("bodies_2")
    assert not tree.is_visible("body_4")
    assert tree.is_open("group_2")
    tree.search("")
    assert tree.is_visible("body_4")


def test_drop_respects_node_types():
    tree = TreeModel()
    tree.load(_nodes())
    assert tree.can_drop("body_3", "bodies_1")
    assert not tree.can_drop("body_3", "groups_1")
    assert tree.can_drop("group_2", "groups_1")
    # a group cannot go below itself
    assert not tree.can_drop("group_1", "groups_1")


def test_move_node_publishes_moved():
    tree = TreeModel()
    tree.load(_nodes())
    moved = []
    tree.moved.subscribe(moved.append)
    assert tree.move_node("body_3", "bodies_1")
    assert moved == [["body_3"]]
    assert tree.get_parent("body_3") == "bodies_1"
    assert not tree.move_node("body_3", "bodies_1")
