"""
table.py — Generic tabular PNG export.

Same title and metadata block as the certificate, followed by caller supplied
columns and rows. Cells are plain single-line text in equal width columns;
long values are neither wrapped nor clipped.
"""

from datetime import datetime
from typing import Sequence

from .certificate import (
    COLUMNS, HEADER_FONT_SIZE, RULE_COLOR, ROW_FONT_SIZE, TEXT_FG, ZEBRA_BG,
    RenderSpec, RowLayout, draw_metadata, draw_title, metadata_lines,
)
from .summary import IdentitySource, normalize_summary
from .surface import Surface, create_surface

TABLE_W = 1200
TABLE_MIN_H = 760
TABLE_BASE_H = 520
TABLE_ROW_H = 40
TABLE_LEFT = 40
TABLE_META_LINE_H = 26
TABLE_META_VALUE_X = 190


def table_height(row_count: int) -> int:
    return max(TABLE_MIN_H, TABLE_BASE_H + row_count * TABLE_ROW_H)


def _cells(row) -> Sequence:
    if isinstance(row, (list, tuple)):
        return row
    return [row]


def build_table(meta=None, columns: Sequence | None = None, rows: Sequence | None = None,
                *, identity: IdentitySource | None = None, now: datetime | None = None,
                device_pixel_ratio: float | None = None) -> Surface:
    s = normalize_summary(meta or {}, identity)
    cols = list(columns) if columns is not None else list(COLUMNS)
    rows = list(rows) if isinstance(rows, (list, tuple)) else []

    height = table_height(len(rows))
    surface = create_surface(TABLE_W, height, device_pixel_ratio)
    ctx = surface.ctx

    draw_title(ctx, s, TABLE_LEFT, 50)
    y = draw_metadata(ctx, metadata_lines(s, len(rows), now),
                      TABLE_LEFT, TABLE_META_VALUE_X, 90, TABLE_META_LINE_H)

    tab_x, tab_y, tab_w = TABLE_LEFT, y + 16, TABLE_W - TABLE_LEFT * 2
    col_w = (tab_w - 40) // max(1, len(cols))
    spec = RenderSpec(width=TABLE_W, height=height, row_height=TABLE_ROW_H,
                      table_x=tab_x, table_y=tab_y, table_width=tab_w,
                      column_widths=[col_w] * len(cols))

    ctx.set_font(HEADER_FONT_SIZE, bold=True)
    for i, name in enumerate(cols):
        ctx.fill_text(str(name), tab_x + 20 + i * col_w, tab_y, fill=TEXT_FG)
    ctx.fill_rect(tab_x, tab_y + 10, tab_w, 1, fill=RULE_COLOR)

    ctx.set_font(ROW_FONT_SIZE)
    ry = tab_y + 34
    for i, row in enumerate(rows):
        if i % 2 == 1:
            ctx.fill_rounded_rect(tab_x + 2, ry - 24, tab_w - 4, TABLE_ROW_H, 6, fill=ZEBRA_BG)
        cells = _cells(row)
        for j in range(len(cols)):
            cell = cells[j] if j < len(cells) and cells[j] is not None else ""
            ctx.fill_text(str(cell), tab_x + 20 + j * col_w, ry, fill=TEXT_FG)
        ctx.fill_rect(tab_x, ry - 14, tab_w, 1, fill=RULE_COLOR)
        spec.rows.append(RowLayout(index=i, top=ry - 24, bottom=ry - 24 + TABLE_ROW_H))
        ry += TABLE_ROW_H

    surface.layout = spec
    return surface
