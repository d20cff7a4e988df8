"""
certificate.py — Renders the "bewijsje": a proof-of-completion PNG for one
exercise session.

Layout, top to bottom:
  1. Title:     "Bewijsje — <game id>"
  2. Metadata:  nine key/value lines (name, class, game, date, mode, time,
                score, goals, accommodations)
  3. Table:     a white rounded card with one row per question, question text
                wrapped inside its column, a check or cross per answered row

The surface grows with the number of questions (never below 780 units), so
a long session is still one single tall image.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .formatting import format_datetime, format_duration
from .layout import wrap_text
from .summary import IdentitySource, Summary, mode_label, normalize_summary
from .surface import Surface, create_surface

# ── Design Constants ─────────────────────────────────────────────────────────

CERT_W = 1200
CERT_MIN_H = 780
CERT_BASE_H = 560     # title + metadata + table chrome
ROW_H = 44
LEFT = 40
TOP = 40
CARD_R = 14
META_LINE_H = 28
META_VALUE_X = LEFT + 150
QUESTION_LINE_H = 18

BG_TOP = "#f7f9fc"
BG_BOTTOM = "#fbfdff"
TITLE_FG = "#0b132b"
LABEL_FG = "#6b7280"
TEXT_FG = "#111827"
GIVEN_FG = "#374151"
RULE_COLOR = "#e5e7eb"
ZEBRA_BG = "#f8fafc"

TITLE_FONT_SIZE = 28
META_FONT_SIZE = 18
HEADER_FONT_SIZE = 16
ROW_FONT_SIZE = 15

COLUMNS = ["#", "Vraag", "Correct", "Gegeven", "✓/✗"]
COLUMN_SHARES = (0.08, 0.52, 0.16, 0.16)   # last column takes the rest


# ── Layout record ────────────────────────────────────────────────────────────

@dataclass
class RowLayout:
    index: int
    top: float
    bottom: float
    mark: Optional[str] = None   # "ok", "fail" or None (no correctness data)


@dataclass
class RenderSpec:
    """Resolved geometry of one render call. Attached as ``surface.layout``."""
    width: int
    height: int
    row_height: int
    table_x: float
    table_y: float
    table_width: float
    column_widths: list[int]
    rows: list[RowLayout] = field(default_factory=list)


def certificate_height(row_count: int) -> int:
    return max(CERT_MIN_H, CERT_BASE_H + row_count * ROW_H)


def certificate_columns(table_width: int) -> list[int]:
    widths = [int(table_width * share) for share in COLUMN_SHARES]
    return widths + [table_width - sum(widths)]


# ── Metadata block (shared with the table export) ────────────────────────────

def metadata_lines(summary: Summary, row_count: int,
                   now: datetime | None = None) -> list[tuple[str, str]]:
    moment = summary.date or now or datetime.now().astimezone()
    goals = ", ".join(summary.goals) if summary.goals else "—"
    if summary.accommodations:
        accommodations = ", ".join(summary.accommodations)
    else:
        accommodations = "dyscalculie" if summary.has_dyscalculia else "—"
    return [
        ("Naam", summary.display_name),
        ("Klas", summary.klass or "—"),
        ("Spel-ID", summary.game_id or "—"),
        ("Datum", format_datetime(moment)),
        ("Modus", mode_label(summary.mode)),
        ("Tijd", format_duration(summary.seconds)),
        ("Score", f"{summary.score or 0}/{summary.total or row_count}"),
        ("Doelen", goals),
        ("Aanpassingen", accommodations),
    ]


def draw_metadata(ctx, lines: list[tuple[str, str]], key_x: float, value_x: float,
                  y: float, line_h: float) -> float:
    """Draw key/value pairs; returns the y below the last line."""
    ctx.set_font(META_FONT_SIZE, bold=True)
    for key, value in lines:
        ctx.fill_text(f"{key}:", key_x, y, fill=LABEL_FG)
        ctx.fill_text(str(value), value_x, y, fill=TEXT_FG)
        y += line_h
    return y


def draw_title(ctx, summary: Summary, x: float, y: float):
    ctx.set_font(TITLE_FONT_SIZE, bold=True)
    ctx.fill_text("Bewijsje — " + (summary.game_id or "Spel"), x, y, fill=TITLE_FG)


# ── Public API ───────────────────────────────────────────────────────────────

def build_certificate(summary, *, identity: IdentitySource | None = None,
                      now: datetime | None = None,
                      device_pixel_ratio: float | None = None) -> Surface:
    """
    Render the certificate for ``summary`` (a raw mapping or a ``Summary``).
    Every question is drawn; nothing is sliced off.
    """
    s = normalize_summary(summary, identity)
    rows = s.questions

    height = certificate_height(len(rows))
    surface = create_surface(CERT_W, height, device_pixel_ratio)
    ctx = surface.ctx

    ctx.fill_gradient(BG_TOP, BG_BOTTOM)
    draw_title(ctx, s, LEFT, TOP + 10)
    y = draw_metadata(ctx, metadata_lines(s, len(rows), now),
                      LEFT, META_VALUE_X, TOP + 50, META_LINE_H)

    # Table card
    tab_x, tab_y, tab_w = LEFT, y + 20, CERT_W - LEFT * 2
    tab_h = max(120, 60 + len(rows) * ROW_H)
    ctx.drop_shadow(tab_x, tab_y, tab_w, tab_h, CARD_R)
    ctx.fill_rounded_rect(tab_x, tab_y, tab_w, tab_h, CARD_R, fill="#ffffff")

    col_no, col_q, col_c, col_g, _ = widths = certificate_columns(tab_w)
    spec = RenderSpec(width=CERT_W, height=height, row_height=ROW_H,
                      table_x=tab_x, table_y=tab_y, table_width=tab_w,
                      column_widths=widths)

    ctx.set_font(HEADER_FONT_SIZE, bold=True)
    x = tab_x + 20
    for title, width in zip(COLUMNS, widths):
        ctx.fill_text(title, x, tab_y + 24, fill=TEXT_FG)
        x += width
    ctx.fill_rect(tab_x, tab_y + 40, tab_w, 1, fill=RULE_COLOR)

    ctx.set_font(ROW_FONT_SIZE)
    ry = tab_y + 40 + 12
    for i, row in enumerate(rows):
        top = ry - 12
        if i % 2 == 1:
            ctx.fill_rounded_rect(tab_x + 2, top, tab_w - 4, ROW_H, 6, fill=ZEBRA_BG)

        cx = tab_x + 20
        ctx.fill_text(str(i + 1), cx, ry, fill=TEXT_FG)
        cx += col_no

        q_bottom = wrap_text(ctx, row.question, cx, ry, col_q - 16, QUESTION_LINE_H)
        cx += col_q

        ctx.fill_text(row.correct_answer, cx, ry, fill=TITLE_FG)
        cx += col_c
        ctx.fill_text(row.given_answer, cx, ry, fill=GIVEN_FG)
        cx += col_g

        mark = None
        if row.is_correct is not None:
            ctx.draw_mark(cx + 14, ry - 6, row.is_correct)
            mark = "ok" if row.is_correct else "fail"

        ry = max(ry + ROW_H, q_bottom + 16)
        ctx.fill_rect(tab_x, ry - 12, tab_w, 1, fill=RULE_COLOR)
        spec.rows.append(RowLayout(index=i, top=top, bottom=ry - 12, mark=mark))

    surface.layout = spec
    return surface
