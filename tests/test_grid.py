"""Grid controller: edits, keyboard navigation and marquee selection."""
import pytest

from app.modules.editor.grid import (
    AUTO_SCROLL_STEP,
    CellRef,
    Direction,
    GridController,
    Point,
    Target,
    Viewport,
    apply_edit,
    remove_rows,
)
from app.modules.reports.totals import ReportRow


def _grid(count=6, **viewport):
    rows = [ReportRow(sabablar=f"row {i}") for i in range(count)]
    return GridController(rows, Viewport(**viewport) if viewport else None)


# -- edits ------------------------------------------------------------------


def test_amount_edit_strips_grouping_separators():
    grid = _grid(1)
    assert grid.edit_cell(0, "tovar", "1.250.000") is True
    assert grid.rows[0].tovar == "1250000"


def test_non_numeric_amount_is_rejected_silently():
    grid = _grid(1)
    grid.edit_cell(0, "ok", "15")
    assert grid.edit_cell(0, "ok", "15a") is False
    assert grid.edit_cell(0, "ok", "-5") is False
    assert grid.rows[0].ok == "15"


def test_amounts_accept_ascii_digits_only():
    grid = _grid(1)
    assert grid.edit_cell(0, "tovar", "\u0663\u0664") is False
    assert grid.edit_cell(0, "tovar", "12\n") is False
    assert grid.edit_cell(0, "tovar", "\uff11\uff12") is False
    assert grid.rows[0].tovar == ""


def test_amounts_beyond_storage_range_are_rejected():
    grid = _grid(1)
    assert grid.edit_cell(0, "pul", str(2**63 - 1)) is True
    assert grid.edit_cell(0, "pul", str(2**63)) is False
    assert grid.edit_cell(0, "pul", "9" * 5000) is False
    assert grid.rows[0].pul == str(2**63 - 1)


def test_clearing_an_amount_makes_it_unset():
    grid = _grid(1)
    grid.edit_cell(0, "pul", "10")
    grid.edit_cell(0, "pul", "")
    assert grid.rows[0].pul == ""


def test_label_is_stored_verbatim():
    grid = _grid(1)
    grid.edit_cell(0, "sabablar", "  Ijara 1.000 ")
    assert grid.rows[0].sabablar == "  Ijara 1.000 "


def test_apply_edit_does_not_touch_input():
    rows = [ReportRow.empty()]
    updated = apply_edit(rows, 0, "tovar", "5")
    assert rows[0].tovar == ""
    assert updated[0].tovar == "5"


def test_unknown_field_raises():
    with pytest.raises(KeyError):
        apply_edit([ReportRow.empty()], 0, "itog", "5")


def test_edits_notify_listeners():
    grid = _grid(1)
    calls = []
    grid.subscribe(lambda: calls.append(len(grid.rows)))
    grid.edit_cell(0, "tovar", "1")
    grid.edit_cell(0, "tovar", "x")
    assert calls == [1]


def test_totals_follow_edits():
    grid = _grid(2)
    grid.edit_cell(0, "tovar", "1.000")
    grid.edit_cell(1, "rasxod", "300")
    assert grid.totals.itog == 700


# -- row add / delete -------------------------------------------------------


def test_append_rows_adds_exactly_n_and_keeps_content():
    grid = _grid(3)
    before = list(grid.rows)
    grid.append_rows(5)
    assert len(grid.rows) == 8
    assert grid.rows[:3] == before
    assert all(row.is_blank() for row in grid.rows[3:])


@pytest.mark.parametrize("count", [0, -2, 2.5, "3", True])
def test_append_rows_ignores_bad_counts(count):
    grid = _grid(2)
    grid.append_rows(count)
    assert len(grid.rows) == 2


def test_deleting_sole_row_leaves_one_empty_row():
    grid = GridController([ReportRow(sabablar="only", tovar="10")])
    grid.delete_row(0)
    assert grid.rows == [ReportRow.empty()]
    assert remove_rows([ReportRow(sabablar="x")], [0]) == [ReportRow.empty()]


def test_delete_row_shifts_selection():
    grid = _grid(5)
    grid.selection = {1, 3, 4}
    grid.delete_row(2)
    assert grid.selection == {1, 2, 3}
    assert [r.sabablar for r in grid.rows] == ["row 0", "row 1", "row 3", "row 4"]


def test_delete_selected_clears_selection():
    grid = _grid(4)
    grid.toggle_row(0)
    grid.toggle_row(2)
    grid.delete_selected()
    assert [r.sabablar for r in grid.rows] == ["row 1", "row 3"]
    assert grid.selection == set()


def test_delete_everything_keeps_one_row():
    grid = _grid(3)
    grid.toggle_all()
    grid.delete_selected()
    assert len(grid.rows) == 1


def test_toggle_all_selects_then_clears():
    grid = _grid(3)
    grid.toggle_row(1)
    grid.toggle_all()
    assert grid.selection == {0, 1, 2}
    assert grid.all_selected
    grid.toggle_all()
    assert grid.selection == set()


# -- navigation -------------------------------------------------------------


def test_commit_moves_to_next_field():
    grid = _grid(2)
    assert grid.navigate(0, "sabablar", Direction.COMMIT) == CellRef(0, "tovar")


def test_commit_on_last_cell_appends_a_row():
    grid = _grid(2)
    target = grid.navigate(1, "kilik_ozi", Direction.COMMIT)
    assert len(grid.rows) == 3
    assert target == CellRef(2, "sabablar")


def test_commit_on_last_field_of_inner_row_goes_down():
    grid = _grid(3)
    assert grid.navigate(0, "kilik_ozi", Direction.COMMIT) == CellRef(1, "sabablar")
    assert len(grid.rows) == 3


def test_next_and_prev_field_wrap_across_rows_and_clamp_at_ends():
    grid = _grid(2)
    assert grid.navigate(0, "kilik_ozi", Direction.NEXT_FIELD) == CellRef(1, "sabablar")
    assert grid.navigate(1, "kilik_ozi", Direction.NEXT_FIELD) == CellRef(1, "kilik_ozi")
    assert grid.navigate(1, "sabablar", Direction.PREV_FIELD) == CellRef(0, "kilik_ozi")
    assert grid.navigate(0, "sabablar", Direction.PREV_FIELD) == CellRef(0, "sabablar")
    assert len(grid.rows) == 2


def test_up_and_down_keep_column_and_clamp():
    grid = _grid(3)
    assert grid.navigate(1, "ok", Direction.DOWN) == CellRef(2, "ok")
    assert grid.navigate(2, "ok", Direction.DOWN) == CellRef(2, "ok")
    assert grid.navigate(0, "ok", Direction.UP) == CellRef(0, "ok")
    assert grid.focus == CellRef(0, "ok")


def test_key_names():
    grid = _grid(3)
    assert grid.handle_key(0, "tovar", "Enter") == CellRef(0, "ok")
    assert grid.handle_key(0, "tovar", "Tab", shift=True) == CellRef(0, "sabablar")
    assert grid.handle_key(0, "tovar", "ArrowDown") == CellRef(1, "tovar")
    assert grid.handle_key(0, "tovar", "x") is None


# -- marquee ----------------------------------------------------------------


def test_marquee_over_rows_two_to_four():
    grid = _grid(6)
    assert grid.pointer_down(Point(10, 85)) is True
    grid.pointer_move(Point(300, 175))
    grid.pointer_up()
    assert grid.selection == {2, 3, 4}
    assert not grid.marquee.active


def test_marquee_with_modifier_keeps_previous_selection():
    grid = _grid(6)
    grid.toggle_row(0)
    grid.pointer_down(Point(10, 85), modifier=True)
    grid.pointer_move(Point(300, 175))
    grid.pointer_up()
    assert grid.selection == {0, 2, 3, 4}


def test_marquee_without_modifier_replaces_selection():
    grid = _grid(6)
    grid.toggle_row(0)
    grid.pointer_down(Point(10, 85))
    grid.pointer_up(Point(300, 175))
    assert grid.selection == {2, 3, 4}


def test_shrinking_the_drag_deselects_rows():
    grid = _grid(6)
    grid.pointer_down(Point(10, 85))
    grid.pointer_move(Point(300, 175))
    grid.pointer_move(Point(300, 100))
    assert grid.selection == {2}


def test_plain_click_selects_row_under_pointer():
    grid = _grid(6)
    grid.pointer_down(Point(10, 50))
    grid.pointer_up()
    assert grid.selection == {1}


@pytest.mark.parametrize(
    "kwargs",
    [{"target": Target.INPUT}, {"target": Target.BUTTON}, {"button": 2}],
)
def test_presses_on_controls_do_not_start_a_drag(kwargs):
    grid = _grid(6)
    assert grid.pointer_down(Point(10, 85), **kwargs) is False
    grid.pointer_move(Point(300, 175))
    grid.pointer_up()
    assert grid.selection == set()


def test_moves_without_a_drag_are_ignored():
    grid = _grid(6)
    grid.pointer_move(Point(10, 100))
    grid.pointer_up(Point(10, 200))
    assert grid.selection == set()


def test_auto_scroll_near_bottom_extends_selection():
    grid = _grid(30, row_height=40, height=200)
    grid.pointer_down(Point(10, 10))
    grid.pointer_move(Point(10, 190))
    assert grid.selection == {0, 1, 2, 3, 4}

    assert grid.tick() is True
    assert grid.viewport.scroll_top == AUTO_SCROLL_STEP
    for _ in range(4):
        grid.tick()
    # content y = 190 + 60
    assert grid.viewport.scroll_top == 5 * AUTO_SCROLL_STEP
    assert grid.selection == {0, 1, 2, 3, 4, 5, 6}


def test_auto_scroll_stops_at_the_edges():
    grid = _grid(6, row_height=40, height=200)
    grid.pointer_down(Point(10, 100))
    grid.pointer_move(Point(10, 5))
    assert grid.tick() is False
    assert grid.viewport.scroll_top == 0

    grid.pointer_move(Point(10, 195))
    for _ in range(10):
        grid.tick()
    assert grid.viewport.scroll_top == grid.viewport.max_scroll(6) == 40


def test_pointer_in_the_middle_does_not_scroll():
    grid = _grid(30, row_height=40, height=200)
    grid.pointer_down(Point(10, 100))
    grid.pointer_move(Point(10, 120))
    assert grid.tick() is False


def test_replace_rows_resets_view_state():
    grid = _grid(6)
    grid.toggle_row(1)
    grid.navigate(0, "ok", Direction.DOWN)
    grid.replace_rows([])
    assert grid.rows == [ReportRow.empty()]
    assert grid.selection == set()
    assert grid.focus is None
