"""Colour conversions and font helpers used by the brand pages."""

from __future__ import annotations

import re
from urllib.parse import quote_plus

from ..core.enums import FONT_DEFAULT_SAMPLE, FONT_ROLE_SAMPLES

HEX_RE = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
GOOGLE_FONTS_CSS = "https://fonts.googleapis.com/css2"


def normalize_hex(value: str | None) -> str:
    """Return ``#RRGGBB`` in upper case or raise ``ValueError``."""

    match = HEX_RE.match((value or "").strip())
    if not match:
        raise ValueError("hex_code must look like #RRGGBB")
    return "#" + "".join(match.groups()).upper()


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    match = HEX_RE.match((value or "").strip())
    if not match:
        raise ValueError("hex_code must look like #RRGGBB")
    r, g, b = (int(part, 16) for part in match.groups())
    return r, g, b


def hex_to_cmyk(value: str) -> tuple[int, int, int, int]:
    """Naive RGB to CMYK in whole percentages (no colour profile)."""

    r, g, b = (channel / 255 for channel in hex_to_rgb(value))
    k = 1 - max(r, g, b)
    if k >= 1:
        return 0, 0, 0, 100
    c = (1 - r - k) / (1 - k)
    m = (1 - g - k) / (1 - k)
    y = (1 - b - k) / (1 - k)
    return round(c * 100), round(m * 100), round(y * 100), round(k * 100)


def rgb_label(value: str) -> str:
    r, g, b = hex_to_rgb(value)
    return f"rgb({r}, {g}, {b})"


def cmyk_label(value: str) -> str:
    c, m, y, k = hex_to_cmyk(value)
    return f"cmyk({c}%, {m}%, {y}%, {k}%)"


def google_font_url(family_name: str, weight: str | None = None) -> str:
    family = quote_plus(family_name.strip())
    if weight and str(weight).strip().isdigit():
        family = f"{family}:wght@{str(weight).strip()}"
    return f"{GOOGLE_FONTS_CSS}?family={family}&display=swap"


def default_sample_text(role: str | None) -> str:
    return FONT_ROLE_SAMPLES.get((role or "").strip(), FONT_DEFAULT_SAMPLE)
