"""Render a memory as a shareable postcard PNG.

Layout, top to bottom: the photo at full card width, the diary text,
then a footer with the date, the age at the time of recording and a
dedication line.

The default Pillow font has no CJK glyphs; pass ``font_path`` pointing to
a font such as Noto Sans CJK to render Chinese text properly.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from memory_box.images import decode_data_url, load_image
from memory_box.models import Memory

logger = logging.getLogger(__name__)

BACKGROUND = "#FDF8F3"
CARD = "#FFFFFF"
BORDER = "#F3C6B8"
TEXT = "#4A3F35"
MUTED = "#8C7B6B"

CARD_WIDTH = 768
MARGIN = 48
PADDING = 40
RADIUS = 32
LINE_SPACING = 1.6

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


def format_date(memory: Memory) -> str:
    d = memory.created_datetime.astimezone().date()
    return f"{d.year}年{d.month}月{d.day}日"


def postcard_filename(memory: Memory) -> str:
    return f"memory-box-{format_date(memory)}.png"


def dedication(memory: Memory) -> str:
    return f"写给 {memory.nickname} 的家人" if memory.nickname else "写给 未来的我们"


def _load_font(size: int, font_path: str | Path | None) -> Font:
    if font_path:
        return ImageFont.truetype(str(font_path), size)
    return ImageFont.load_default(size=size)


def wrap_text(text: str, font: Font, max_width: int) -> list[str]:
    """Greedy wrap by rendered width, character by character.

    Chinese text has no spaces, so words are not kept together. Explicit
    line breaks in ``text`` are preserved.
    """
    draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        line = ""
        for char in paragraph:
            candidate = line + char
            if line and draw.textlength(candidate, font=font) > max_width:
                lines.append(line)
                line = char.lstrip()
            else:
                line = candidate
        lines.append(line)
    return lines


def _line_height(font: Font) -> int:
    left, top, right, bottom = font.getbbox("国Ag")
    return int((bottom - top) * LINE_SPACING) or 1


def render_postcard(
    memory: Memory, font_path: str | Path | None = None
) -> Image.Image:
    body_font = _load_font(30, font_path)
    small_font = _load_font(22, font_path)
    signature_font = _load_font(28, font_path)

    inner_width = CARD_WIDTH - 2 * PADDING

    _, photo_bytes = decode_data_url(memory.photo_data_url)
    photo = load_image(photo_bytes).convert("RGB")
    scale = inner_width / max(photo.width, 1)
    photo = photo.resize(
        (inner_width, max(1, round(photo.height * scale))),
        Image.Resampling.LANCZOS,
    )

    diary_lines = wrap_text(memory.diary, body_font, inner_width)
    footer: list[tuple[str, Font, str]] = [(format_date(memory), small_font, MUTED)]
    if memory.age:
        footer.append((f"记录时约 {memory.age}", small_font, MUTED))
    footer.append((dedication(memory), signature_font, TEXT))

    body_lh = _line_height(body_font)
    diary_height = body_lh * len(diary_lines)
    footer_height = sum(_line_height(f) for _, f, _ in footer)

    card_height = PADDING + photo.height + PADDING + diary_height + PADDING
    card_height += footer_height + PADDING

    canvas = Image.new(
        "RGB", (CARD_WIDTH + 2 * MARGIN, card_height + 2 * MARGIN), BACKGROUND
    )
    draw = ImageDraw.Draw(canvas)
    draw.rounded_rectangle(
        (MARGIN, MARGIN, MARGIN + CARD_WIDTH, MARGIN + card_height),
        radius=RADIUS,
        fill=CARD,
        outline=BORDER,
        width=2,
    )

    x = MARGIN + PADDING
    y = MARGIN + PADDING
    mask = Image.new("L", photo.size, 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, photo.width, photo.height), radius=RADIUS // 2, fill=255
    )
    canvas.paste(photo, (x, y), mask)
    y += photo.height + PADDING

    for line in diary_lines:
        draw.text((x, y), line, font=body_font, fill=TEXT)
        y += body_lh
    y += PADDING

    for text, font, color in footer:
        draw.text((x, y), text, font=font, fill=color)
        y += _line_height(font)

    return canvas


def export_postcard(
    memory: Memory,
    out_dir: str | Path,
    font_path: str | Path | None = None,
) -> Path:
    """Render ``memory`` and write it as a PNG into ``out_dir``."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / postcard_filename(memory)
    render_postcard(memory, font_path=font_path).save(path, format="PNG")
    logger.info("Exported postcard for %s to %s", memory.id, path)
    return path
