from bewijsje.certificate import COLUMNS
from bewijsje.table import TABLE_MIN_H, TABLE_ROW_H, build_table, table_height


def test_table_height():
    assert table_height(0) == TABLE_MIN_H
    assert table_height(10) == 520 + 10 * TABLE_ROW_H
    assert [table_height(n) for n in range(30)] == sorted(table_height(n) for n in range(30))


def test_default_columns_are_equal_partitions(identity, now):
    surface = build_table({"name": "Eva"}, rows=[["1", "3+4", "7", "7", "✓"]],
                          identity=identity, now=now, device_pixel_ratio=1)
    layout = surface.layout
    assert layout.column_widths == [(1120 - 40) // len(COLUMNS)] * len(COLUMNS)
    assert len(layout.rows) == 1


def test_custom_columns_and_ragged_rows(identity, now):
    rows = [["a", "b", "c"], ["d"], "single", [None, 2]]
    surface = build_table({}, columns=["X", "Y"], rows=rows, identity=identity, now=now)
    assert surface.layout.column_widths == [540, 540]
    assert len(surface.layout.rows) == 4
    assert surface.height == TABLE_MIN_H


def test_empty_table_renders(identity, now):
    surface = build_table(None, columns=[], rows=None, identity=identity, now=now)
    assert surface.layout.rows == []
    assert surface.to_png().startswith(b"\x89PNG")


def test_long_tables_grow(identity, now):
    surface = build_table({}, rows=[[str(i)] for i in range(40)], identity=identity, now=now,
                          device_pixel_ratio=1)
    assert surface.height == 520 + 40 * TABLE_ROW_H
    assert surface.image.size[1] == surface.height
