import json
import os

import pytest

import inspector
from clipboard import PASTE_SETTLE_MS, export_filename
from config import InspectorOptions
from events import Notification, ReportKind
from physics import Group


def _reports(ins):
    seen = []
    ins.events.on(Notification.MESSAGE, seen.append)
    return seen


def test_paste_offsets_clone_into_same_group(ins, engine, clock):
    group = engine.add(Group("Pile"))
    src = engine.add_box(10, 10, (0, 0), parent=group)
    ins.pre_tick()
    ins.selection.replace([src])
    ins.copy()
    clones = ins.paste()
    assert len(clones) == 1
    clone = clones[0]
    assert clone.id != src.id
    assert tuple(clone.position) == pytest.approx((50, 50))
    assert engine.graph.owner_of(clone) is group
    assert ins.selection.objects == [src]
    clock.advance(PASTE_SETTLE_MS + 1)
    ins.pre_tick()
    assert ins.selection.objects == [clone]


def test_copy_skips_non_bodies(ins, engine):
    group = engine.add(Group("G"))
    body = engine.add_box(10, 10, (0, 0))
    ins.selection.replace([group, body])
    assert ins.copy() == [body]


def test_export_nested_selection_once_each(ins, engine, tmp_path):
    a = engine.add(Group("A"))
    b = engine.add(Group("B"), a)
    engine.add_box(10, 10, (0, 0), parent=b)
    ins.selection.replace([b, a])
    fragment = ins.clipboard.build_export(ins.selection.objects)
    assert fragment.root.label == "Exported Objects"
    assert fragment.children(fragment.root, "group") == [a]
    assert fragment.owner_of(b) is a

    exported = []
    ins.events.on(Notification.EXPORT, exported.append)
    path = ins.export()
    assert exported == [path]
    assert os.path.dirname(path) == str(tmp_path)
    data = json.loads((tmp_path / os.path.basename(path)).read_text())
    top = data["group"]
    assert [g["label"] for g in top["groups"]] == ["A"]
    assert [g["label"] for g in top["groups"][0]["groups"]] == ["B"]


def test_export_empty_selection_reports(ins):
    seen = _reports(ins)
    assert ins.export() is None
    assert [r.kind for r in seen] == [ReportKind.EMPTY_SELECTION]


def test_export_filename_is_sanitised():
    g = Group("My Fancy.Group!", id=7)
    assert export_filename([g]) == "export-myfancygroup-7.json"
    assert export_filename([g, g]) == "export-objects.json"


def test_import_rejects_other_extensions(ins, engine, tmp_path):
    seen = _reports(ins)
    path = tmp_path / "data.csv"
    path.write_text("a,b\n")
    before = len(engine.graph)
    assert ins.import_file(str(path)) is None
    ins.pre_tick()
    assert [r.kind for r in seen] == [ReportKind.UNSUPPORTED_FILE]
    assert len(engine.graph) == before


def test_import_inserts_rebased_group_first(ins, engine, tmp_path):
    box = engine.add_box(10, 10, (0, 0))
    ins.selection.replace([box])
    path = ins.export()

    imported = []
    ins.events.on(Notification.IMPORT, imported.append)
    future = ins.import_file(path)
    future.result(timeout=5)
    ins.pre_tick()

    group, = imported
    assert group.label == "Imported Objects"
    assert engine.graph.children(engine.root, "group")[0] is group
    copy, = engine.graph.all_bodies(group)
    assert copy is not box
    assert copy.id != box.id
    # outside the world, so not simulated
    assert copy.pm_body not in engine.space.bodies


def test_import_parse_failure_reports(ins, engine, tmp_path):
    seen = _reports(ins)
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    before = len(engine.graph)
    ins.import_file(str(path)).result(timeout=5)
    ins.pre_tick()
    assert [r.kind for r in seen] == [ReportKind.PARSE_FAILURE]
    assert len(engine.graph) == before


def test_import_read_failure_reports(ins, tmp_path):
    seen = _reports(ins)
    future = ins.import_file(str(tmp_path / "missing.json"))
    with pytest.raises(OSError):
        future.result(timeout=5)
    ins.pre_tick()
    assert [r.kind for r in seen] == [ReportKind.READ_FAILURE]


def test_without_serializer_everything_reports(engine, tmp_path):
    ins = inspector.create(engine, options=InspectorOptions(serializer=False, export_dir=str(tmp_path)))
    try:
        seen = _reports(ins)
        ins.selection.replace([engine.add_box(10, 10, (0, 0))])
        assert ins.paste() == []
        assert ins.export() is None
        assert ins.import_file(str(tmp_path / "x.json")) is None
        assert [r.kind for r in seen] == [ReportKind.CONFIG_MISSING] * 3
        assert "ctrl+c" not in ins.bindings.combos()
    finally:
        inspector.destroy(ins)


def test_import_of_non_utf8_file_reports(ins, engine, tmp_path):
    seen = _reports(ins)
    path = tmp_path / "binary.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    before = len(engine.graph)
    future = ins.import_file(str(path))
    with pytest.raises(UnicodeDecodeError):
        future.result(timeout=5)
    ins.pre_tick()
    assert [r.kind for r in seen] == [ReportKind.READ_FAILURE]
    assert len(engine.graph) == before


def test_badly_shaped_import_leaves_graph_alone(ins, engine):
    seen = _reports(ins)
    before = len(engine.graph)
    text = json.dumps({"group": {"type": "group", "id": 1, "bodies": [1]}})
    assert ins.clipboard.apply_import(text) is None
    assert [r.kind for r in seen] == [ReportKind.PARSE_FAILURE]
    assert len(engine.graph) == before


def test_clone_deleted_before_settle_stays_unselected(ins, engine, clock):
    src = engine.add_box(10, 10, (0, 0))
    ins.selection.replace([src])
    ins.copy()
    clone, = ins.paste()
    ins.selection.replace([clone])
    ins.delete_selected()
    ins.pre_tick()
    clock.advance(PASTE_SETTLE_MS + 1)
    ins.pre_tick()
    assert clone not in engine.graph
    assert ins.selection.objects == []


def test_export_to_missing_dir_reports(engine, tmp_path):
    options = InspectorOptions(export_dir=str(tmp_path / "missing"))
    ins = inspector.create(engine, options=options)
    try:
        seen = _reports(ins)
        ins.selection.replace([engine.add_box(10, 10, (0, 0))])
        assert ins.export() is None
        assert [r.kind for r in seen] == [ReportKind.WRITE_FAILURE]
    finally:
        inspector.destroy(ins)
