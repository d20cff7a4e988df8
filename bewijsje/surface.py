"""
surface.py — Scaled Pillow drawing surfaces.

The renderers lay everything out in logical units (a 1200 wide certificate,
18 unit line heights, ...). A ``Surface`` backs those units with an image
``ceil(device_pixel_ratio)`` times larger, and its ``DrawingContext`` does the
multiplication on every call, so text stays crisp on high density screens
while the layout code never has to think about physical pixels.

Fonts:
  Place a file named font.ttf (or font.otf) next to this package to force a
  specific typeface. Otherwise DejaVu Sans, Liberation Sans or Arial is looked
  up in the usual font directories, and Pillow's bundled default font is the
  last resort.
"""

import io
import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from . import config

log = logging.getLogger(__name__)

# ── Font Setup ───────────────────────────────────────────────────────────────

FONT_CANDIDATES = {
    True: ("DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf", "arialbd.ttf"),
    False: ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "arial.ttf"),
}
FONT_DIRS = ("/usr/share/fonts", "/usr/local/share/fonts",
             "/Library/Fonts", "C:/Windows/Fonts")


def _find_font(bold: bool = False) -> Optional[str]:
    """A font.ttf/font.otf beside the package, else DejaVu, Liberation or Arial."""
    here = Path(__file__).resolve().parent
    for local in (here / "font.ttf", here / "font.otf"):
        if local.exists():
            log.info("Using local font: %s", local)
            return str(local)

    wanted = FONT_CANDIDATES[bold]
    found: dict[str, Path] = {}
    for base in map(Path, FONT_DIRS):
        if base.is_dir():
            for path in base.rglob("*.ttf"):
                found.setdefault(path.name, path)
    for name in wanted:
        if name in found:
            return str(found[name])
    return None


FONT_BOLD_PATH = _find_font(bold=True)
FONT_REG_PATH = _find_font(bold=False)

if not (FONT_BOLD_PATH and FONT_REG_PATH):
    log.warning("No system font found, falling back to Pillow's default font. "
                "Install fonts-dejavu for nicer output.")


@lru_cache(maxsize=64)
def load_font(px_size: int, bold: bool = False):
    path = FONT_BOLD_PATH if bold else FONT_REG_PATH
    if path and Path(path).exists():
        try:
            return ImageFont.truetype(path, px_size)
        except OSError:
            log.warning("Could not load font %s, using default", path)
    try:
        return ImageFont.load_default(size=px_size)
    except TypeError:
        return ImageFont.load_default()


# ── Drawing Context ──────────────────────────────────────────────────────────

SHADOW_COLOR = (15, 23, 42, 15)
CHECK_COLOR = "#10b981"
CROSS_COLOR = "#ef4444"


class DrawingContext:
    """Canvas-style drawing calls in logical units on top of ``ImageDraw``."""

    def __init__(self, image: Image.Image, scale: int):
        self.image = image
        self.scale = scale
        self.draw = ImageDraw.Draw(image)
        self.font_size = 16
        self.bold = False
        self._font = load_font(16 * scale)

    def _px(self, v: float) -> float:
        return v * self.scale

    def set_font(self, size: int, bold: bool = False):
        self.font_size = size
        self.bold = bold
        self._font = load_font(int(round(size * self.scale)), bold)

    # ── text ──

    def measure_text(self, text: str) -> float:
        """Advance width of ``text`` in logical units."""
        return self._font.getlength(str(text)) / self.scale

    def fill_text(self, text: str, x: float, y: float, fill="#111827"):
        """Draw ``text`` with its alphabetic baseline on ``y``."""
        text = " ".join(str(text).splitlines())
        if isinstance(self._font, ImageFont.FreeTypeFont):
            self.draw.text((self._px(x), self._px(y)), text,
                           fill=fill, font=self._font, anchor="ls")
        else:
            top = self._px(y) - self._font.getbbox("Ag")[3]
            self.draw.text((self._px(x), top), text, fill=fill, font=self._font)

    # ── shapes ──

    def fill_rect(self, x: float, y: float, w: float, h: float, fill):
        x0, y0 = self._px(x), self._px(y)
        x1 = max(x0, self._px(x + w) - 1)
        y1 = max(y0, self._px(y + h) - 1)
        self.draw.rectangle((x0, y0, x1, y1), fill=fill)

    def fill_rounded_rect(self, x: float, y: float, w: float, h: float, r: float, fill):
        r = max(0, min(r, min(w, h) / 2))
        self.draw.rounded_rectangle(
            (self._px(x), self._px(y), self._px(x + w), self._px(y + h)),
            radius=self._px(r), fill=fill)

    def fill_gradient(self, start, end):
        """Top-to-bottom two colour gradient over the whole surface."""
        size = self.image.size
        mask = Image.linear_gradient("L").resize(size)
        top = Image.new("RGB", size, start)
        bottom = Image.new("RGB", size, end)
        self.image.paste(Image.composite(bottom, top, mask), (0, 0))

    def drop_shadow(self, x: float, y: float, w: float, h: float, r: float,
                    blur: float = 24, offset_y: float = 10, color=SHADOW_COLOR):
        """Blurred rounded rectangle under a card; only its bounding box is touched."""
        top, bottom = y + offset_y, y + h + offset_y
        width, height = self.image.size
        box = (max(0, math.floor(self._px(x - blur))),
               max(0, math.floor(self._px(top - blur))),
               min(width, math.ceil(self._px(x + w + blur))),
               min(height, math.ceil(self._px(bottom + blur))))
        if box[0] >= box[2] or box[1] >= box[3]:
            return
        region = self.image.crop(box).convert("RGBA")
        overlay = Image.new("RGBA", region.size, (0, 0, 0, 0))
        ImageDraw.Draw(overlay).rounded_rectangle(
            (self._px(x) - box[0], self._px(top) - box[1],
             self._px(x + w) - box[0], self._px(bottom) - box[1]),
            radius=self._px(r), fill=color)
        overlay = overlay.filter(ImageFilter.GaussianBlur(self._px(blur) / 2))
        merged = Image.alpha_composite(region, overlay)
        self.image.paste(merged.convert("RGB"), box[:2])

    def stroke_polyline(self, points, fill, width: float = 3):
        self.draw.line([(self._px(px), self._px(py)) for px, py in points],
                       fill=fill, width=max(1, int(round(self._px(width)))),
                       joint="curve")

    def draw_mark(self, x: float, y: float, ok: bool):
        """Green check or red cross centred around (x, y)."""
        if ok:
            self.stroke_polyline([(x - 8, y), (x - 1, y + 7), (x + 10, y - 8)], CHECK_COLOR)
        else:
            self.stroke_polyline([(x - 8, y - 8), (x + 8, y + 8)], CROSS_COLOR)
            self.stroke_polyline([(x + 8, y - 8), (x - 8, y + 8)], CROSS_COLOR)


# ── Surface ──────────────────────────────────────────────────────────────────

@dataclass
class Surface:
    image: Image.Image
    ctx: DrawingContext
    width: int           # logical
    height: int          # logical
    scale: int
    layout: object = None

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG", optimize=True)
        return buf.getvalue()


def create_surface(width: int, height: int,
                   device_pixel_ratio: float | None = None) -> Surface:
    """White surface of ``width`` × ``height`` logical units."""
    dpr = config.DEVICE_PIXEL_RATIO if device_pixel_ratio is None else device_pixel_ratio
    scale = max(1, math.ceil(dpr or 1))
    image = Image.new("RGB", (math.ceil(width * scale), math.ceil(height * scale)), "#ffffff")
    return Surface(image=image, ctx=DrawingContext(image, scale),
                   width=width, height=height, scale=scale)
