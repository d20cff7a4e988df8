"""
layout.py — Word wrapping against a drawing context's text metrics.
"""

from typing import Callable


def split_lines(text, measure: Callable[[str], float], max_width: float) -> list[str]:
    """
    Greedy word wrap. A word that is wider than ``max_width`` on its own gets
    a line to itself rather than being split. Blank input yields ``[""]``.
    """
    words = str(text or "").split()
    lines = []
    current_line = ""
    for word in words:
        test = f"{current_line} {word}" if current_line else word
        if current_line and measure(test) > max_width:
            lines.append(current_line)
            current_line = word
        else:
            current_line = test
    lines.append(current_line)
    return lines


def wrap_text(ctx, text, x: float, y: float, max_width: float,
              line_height: float, fill="#111827") -> float:
    """
    Draw ``text`` wrapped to ``max_width``, line ``i`` on ``y + i*line_height``.
    Returns the y just past the last line, so callers can grow rows to fit.
    """
    lines = split_lines(text, ctx.measure_text, max_width)
    for i, line in enumerate(lines):
        ctx.fill_text(line, x, y + i * line_height, fill=fill)
    return y + len(lines) * line_height
