from __future__ import annotations

from functools import lru_cache
from io import BytesIO

from PIL import Image, ImageColor, ImageDraw

from render.layers import PIN_PENDING, PIN_RECOVERED, PIN_REPORTED
from settings.types import PinStyle
from surface.types import StyleImage


def generate_pin(
    fill: str,
    *,
    width: int,
    height: int,
    border: str = "#FFFFFF",
    border_width: int = 2,
) -> StyleImage:
    """
    Teardrop map pin: round head, point at the bottom centre, white dot inside.
    """
    # Draw at 4x and downsample for smooth edges.
    ss = 4
    w, h = width * ss, height * ss
    bw = border_width * ss
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    r = w / 2 - bw
    cx, cy = w / 2, r + bw
    tip = (cx, h - 4 * ss)

    # Soft shadow under the tip.
    draw.ellipse(
        (cx - r * 0.45, h - 7 * ss, cx + r * 0.45, h - 1 * ss),
        fill=(0, 0, 0, 60),
    )

    outline = [(cx - r * 0.82, cy + r * 0.58), tip, (cx + r * 0.82, cy + r * 0.58)]
    fill_rgba = ImageColor.getcolor(fill, "RGBA")
    border_rgba = ImageColor.getcolor(border, "RGBA")

    # Border first, fill inset on top.
    draw.polygon(outline, fill=border_rgba)
    draw.ellipse((cx - r - bw, cy - r - bw, cx + r + bw, cy + r + bw), fill=border_rgba)
    inner = [(x, y - bw) if y == tip[1] else (x, y) for x, y in outline]
    draw.polygon(inner, fill=fill_rgba)
    draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=fill_rgba)

    dot = r * 0.35
    draw.ellipse((cx - dot, cy - dot, cx + dot, cy + dot), fill=border_rgba)

    out = img.resize((width, height), Image.Resampling.LANCZOS)
    buf = BytesIO()
    out.save(buf, format="PNG")
    return StyleImage(width=width, height=height, data=buf.getvalue())


@lru_cache(maxsize=4)
def _all_pins(width: int, height: int, reported: str, recovered: str, pending: str) -> tuple:
    return (
        (PIN_REPORTED, generate_pin(reported, width=width, height=height)),
        (PIN_RECOVERED, generate_pin(recovered, width=width, height=height)),
        (PIN_PENDING, generate_pin(pending, width=width, height=height)),
    )


def generate_all_pins(style: PinStyle) -> dict[str, StyleImage]:
    """
    All pin variants the marker layer's icon expression can select. Cached per style.
    """
    return dict(
        _all_pins(
            style.width,
            style.height,
            style.reportedColor,
            style.recoveredColor,
            style.pendingColor,
        )
    )
