#UI Module

import dearpygui.dearpygui as dpg

PANEL_W = 300
PANEL_HIDDEN_W = 18
NODE_PAYLOAD = "scene_node"
GROUP_TYPES = ("group", "groups", "bodies", "constraints")


def build_ui(app):
    ins = app.inspector

    # ---------- Inspector panel ----------
    with dpg.window(label="Inspector", pos=(10, 10), width=PANEL_W, height=850,
                    no_close=True, no_title_bar=True, no_move=True, no_resize=True,
                    tag="inspector_win"):
        wrap_w = PANEL_W - 20
        dpg.add_text("Inspector", color=(59, 130, 246, 255), wrap=wrap_w)
        with dpg.group(horizontal=True):
            dpg.add_button(label="Pause", tag="pause_btn", callback=lambda: ins.pause.toggle())
            with dpg.tooltip(dpg.last_item()):
                dpg.add_text("Play / pause [shift + space]")
            if ins.serializer is not None:
                dpg.add_button(label="Import", callback=lambda: ins.request_import())
                dpg.add_button(label="Export", callback=lambda: ins.export())
            dpg.add_button(label="Help", callback=lambda: ins.show_help())
            dpg.add_button(label="+", callback=lambda: ins.add_group())
            with dpg.tooltip(dpg.last_item()):
                dpg.add_text("Add composite")
        dpg.add_input_text(tag="search_input", hint="search", width=wrap_w,
                           callback=lambda s, a: ins.search(a))
        app.stats = dpg.add_text("Stats...", wrap=wrap_w)
        dpg.add_text("", tag="message_text", wrap=wrap_w, color=(239, 68, 68, 255))
        with dpg.child_window(tag="hier_panel", width=wrap_w, height=-1, border=True):
            dpg.add_group(tag="hier_tree")

    # ---------- Main viewport window ----------
    with dpg.window(label="Viewport", pos=(PANEL_W + 20, 10), width=1040, height=880,
                    no_close=True, no_title_bar=True, no_move=True, no_resize=True, no_scrollbar=True,
                    tag="viewport_win"):
        dpg.add_drawlist(width=1000, height=850, tag="main_canvas")

    with dpg.handler_registry():
        dpg.add_mouse_move_handler(callback=app.on_mouse_move)
        dpg.add_mouse_click_handler(callback=app.on_mouse_down)
        dpg.add_mouse_release_handler(callback=app.on_mouse_up)
        dpg.add_mouse_wheel_handler(callback=app.on_mouse_wheel)
        dpg.add_key_press_handler(callback=app.on_key_down)
        dpg.add_key_release_handler(callback=app.on_key_up)

    # one registry shared by every tree node
    with dpg.item_handler_registry(tag="tree_node_handlers"):
        dpg.add_item_clicked_handler(callback=lambda s, a: _on_group_click(ins, a))
        dpg.add_item_double_clicked_handler(callback=lambda s, a: _on_node_double_click(ins, a))
        dpg.add_item_toggled_open_handler(callback=lambda s, a: _on_node_toggled(ins, a))

    # ---------- Popups ----------
    with dpg.window(label="Help", tag="help_win", show=False, modal=True, width=460, height=520,
                    pos=(360, 120)):
        dpg.add_text("", tag="help_text")
        dpg.add_button(label="Close", callback=lambda: dpg.configure_item("help_win", show=False))

    with dpg.file_dialog(tag="import_dialog", show=False, width=640, height=420,
                         callback=lambda s, a: _on_import_chosen(ins, a)):
        dpg.add_file_extension(".json")
        dpg.add_file_extension(".txt")
        dpg.add_file_extension(".*")

    # ---------- Theme ----------
    with dpg.theme(tag="viewport_theme"):
        with dpg.theme_component(dpg.mvAll):
            dpg.add_theme_style(dpg.mvStyleVar_WindowPadding, 0, 0)
            dpg.add_theme_style(dpg.mvStyleVar_FramePadding, 0, 0)
            dpg.add_theme_style(dpg.mvStyleVar_ItemSpacing, 0, 0)
    dpg.bind_item_theme("viewport_win", "viewport_theme")


# ---------- Hierarchy ----------
def rebuild_tree(ins, parent: str = "hier_tree"):
    if not dpg.does_item_exist(parent):
        return
    dpg.delete_item(parent, children_only=True)
    for node in ins.tree.roots:
        _add_node(ins, node, parent)


def _add_node(ins, node, parent):
    tree = ins.tree
    if not tree.is_visible(node.id):
        return
    if node.type in GROUP_TYPES:
        label = f"{node.text} ({len(node.children)})" if node.type != "group" else node.text
        with dpg.tree_node(label=label, parent=parent, user_data=node.id,
                           default_open=tree.is_open(node.id), selectable=True,
                           payload_type=NODE_PAYLOAD,
                           drop_callback=lambda s, a, u: _on_drop(ins, a, u)) as item:
            if node.type == "group":
                _drag_source(item, node)
            for child in node.children:
                _add_node(ins, child, item)
        dpg.bind_item_handler_registry(item, "tree_node_handlers")
    else:
        item = dpg.add_selectable(label=node.text, parent=parent, user_data=node.id,
                                  default_value=tree.is_selected(node.id),
                                  callback=lambda s, a, u: _on_node_click(ins, u))
        _drag_source(item, node)


def _drag_source(item, node):
    with dpg.drag_payload(parent=item, drag_data=node.id, payload_type=NODE_PAYLOAD):
        dpg.add_text(node.text)


def _on_node_click(ins, node_id):
    if ins.keys.ctrl or ins.keys.shift:
        if ins.tree.is_selected(node_id):
            ins.tree.deselect_node(node_id)
        else:
            ins.tree.select_node(node_id)
    else:
        ins.tree.select_only(node_id)


def _handler_node_id(app_data):
    item = app_data[1] if isinstance(app_data, (list, tuple)) else app_data
    return dpg.get_item_user_data(item)


def _on_group_click(ins, app_data):
    node_id = _handler_node_id(app_data)
    if node_id and node_id.startswith("group_"):
        _on_node_click(ins, node_id)


def _on_node_double_click(ins, app_data):
    node_id = _handler_node_id(app_data)
    if node_id:
        ins.tree.select_children(node_id)


def _on_node_toggled(ins, item):
    node_id = dpg.get_item_user_data(item)
    if not node_id:
        return
    if dpg.get_value(item):
        ins.tree.open_node(node_id)
    else:
        ins.tree.close_node(node_id)


def _on_drop(ins, dragged_id, target_id):
    ins.tree.move_node(dragged_id, target_id)


# ---------- Popups ----------
def show_help(text: str):
    dpg.set_value("help_text", text)
    dpg.configure_item("help_win", show=True)


def show_import_dialog():
    dpg.configure_item("import_dialog", show=True)


def _on_import_chosen(ins, app_data):
    path = (app_data or {}).get("file_path_name")
    if path:
        ins.import_file(path)


# ---------- Per-frame ----------
def update_panel(ins, message: str):
    dpg.set_item_label("pause_btn", "Play" if ins.is_paused else "Pause")
    dpg.set_value("message_text", message)
    if ins.options.auto_hide and not dpg.is_item_hovered("inspector_win"):
        width = PANEL_HIDDEN_W
    else:
        width = PANEL_W
    dpg.configure_item("inspector_win", width=width)
    return width
