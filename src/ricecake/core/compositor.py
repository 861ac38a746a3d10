"""Tray compositing: lay dish photos out on a fixed cafeteria-tray canvas.

Canvas
------
Every tray is a 1200×800 white RGBA canvas with a two-tone frame:

- outer border: ``#e0e0e0``, 4 px, flush with the canvas edge
- inner border: ``#f0f0f0``, 2 px, inset 20 px

Layouts
-------
Two layouts are defined in :data:`TRAY_TEMPLATES`:

- ``standard`` — five slots (main, two side slots, soup, dessert)
- ``compact`` — two slots (main, sides)

Any other template id resolves to ``compact``.

Placement
---------
Images are painted in input order, one per slot.  Each is cover-fitted to its
slot (cropped to the slot's aspect ratio, then resized, never stretched).
Items beyond the number of slots are dropped.  An image that cannot be
decoded or resized is replaced by the dish placeholder for that slot only.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence

from PIL import Image, ImageDraw, ImageOps

from ricecake.core.models import MenuItem, Rect, TraySection, TrayTemplate
from ricecake.core.placeholders import encode_png, render_placeholder

logger = logging.getLogger(__name__)

TRAY_WIDTH = 1200
TRAY_HEIGHT = 800
TRAY_BACKGROUND = (255, 255, 255, 255)
OUTER_BORDER = ((0xE0, 0xE0, 0xE0, 255), 4, 0)  # colour, width, inset
INNER_BORDER = ((0xF0, 0xF0, 0xF0, 255), 2, 20)

MOCK_SIZE = (800, 600)
MOCK_TRAY_RECT = Rect(100, 100, 600, 400)
MOCK_TRAY_COLOUR = (240, 240, 240)

STANDARD = "standard"
COMPACT = "compact"

TRAY_TEMPLATES: dict[str, TrayTemplate] = {
    STANDARD: TrayTemplate(
        id=STANDARD,
        name="Standard tray",
        description="Typical school cafeteria tray layout",
        sections=(
            TraySection("main", "Main dish", "main", 1, Rect(100, 100, 300, 200)),
            TraySection("side1", "Side dish 1", "side", 2, Rect(450, 100, 250, 200)),
            TraySection("side2", "Side dish 2", "side", 2, Rect(100, 350, 250, 150)),
            TraySection("soup", "Soup", "soup", 1, Rect(450, 350, 250, 150)),
            TraySection("dessert", "Dessert", "dessert", 1, Rect(100, 550, 600, 120)),
        ),
    ),
    COMPACT: TrayTemplate(
        id=COMPACT,
        name="Compact tray",
        description="Tray for short menus",
        sections=(
            TraySection("main", "Main", "main", 1, Rect(100, 100, 400, 300)),
            TraySection("side", "Sides", "side", 3, Rect(100, 450, 600, 250)),
        ),
    ),
}


def resolve_template(template_id: str) -> TrayTemplate:
    """Return the layout for *template_id*; unknown ids use ``compact``."""
    template = TRAY_TEMPLATES.get(template_id)
    if template is None:
        logger.warning("Unknown tray template '%s', using compact layout.", template_id)
        return TRAY_TEMPLATES[COMPACT]
    return template


def cover_fit(data: bytes, size: tuple[int, int]) -> Image.Image:
    """Decode *data* and crop/resize it to fill *size* without distortion."""
    with Image.open(io.BytesIO(data)) as source:
        source.load()
        return ImageOps.fit(source.convert("RGBA"), size, method=Image.Resampling.LANCZOS)


class TrayCompositor:
    """Render trays and mock trays as PNG bytes."""

    def __init__(self, width: int = TRAY_WIDTH, height: int = TRAY_HEIGHT) -> None:
        self.width = width
        self.height = height

    def new_canvas(self) -> Image.Image:
        """Blank tray with the two-tone border frame."""
        canvas = Image.new("RGBA", (self.width, self.height), TRAY_BACKGROUND)
        draw = ImageDraw.Draw(canvas)
        for colour, line_width, inset in (OUTER_BORDER, INNER_BORDER):
            draw.rectangle(
                [inset, inset, self.width - 1 - inset, self.height - 1 - inset],
                outline=colour,
                width=line_width,
            )
        return canvas

    def layout(
        self,
        images: Sequence[tuple[MenuItem, bytes]],
        template_id: str,
    ) -> list[tuple[MenuItem, Rect]]:
        """Pair items with the slots they will occupy.

        Returns:
            ``min(len(images), slot count)`` pairs in input order.
        """
        rects = resolve_template(template_id).rects
        if len(images) > len(rects):
            dropped = ", ".join(item.name for item, _ in images[len(rects):])
            logger.info(
                "Template '%s' has %d slots; dropping %s.", template_id, len(rects), dropped
            )
        return [(item, rect) for (item, _), rect in zip(images, rects)]

    def _slot_image(self, item: MenuItem, data: bytes, rect: Rect) -> Image.Image:
        try:
            return cover_fit(data, rect.size)
        except Exception as e:
            logger.warning("Cannot place image for '%s', using placeholder: %s", item.name, e)
            placeholder = render_placeholder(item.name).convert("RGBA")
            return ImageOps.fit(placeholder, rect.size, method=Image.Resampling.LANCZOS)

    def compose(
        self,
        images: Sequence[tuple[MenuItem, bytes]],
        template_id: str = STANDARD,
    ) -> bytes:
        """Composite dish photos onto a tray.

        Args:
            images: ``(item, image bytes)`` pairs in paint order.
            template_id: Layout identifier.

        Returns:
            PNG bytes of the flattened tray.
        """
        canvas = self.new_canvas()
        data_by_position = [data for _, data in images]

        for index, (item, rect) in enumerate(self.layout(images, template_id)):
            tile = self._slot_image(item, data_by_position[index], rect)
            canvas.paste(tile, rect.origin, tile)
            logger.debug("Placed '%s' at (%d, %d).", item.name, rect.x, rect.y)

        return encode_png(canvas)

    def render_mock_tray(self) -> bytes:
        """Flat grey tray on white with no dish photos."""
        canvas = Image.new("RGB", MOCK_SIZE, (255, 255, 255))
        block = Image.new("RGB", MOCK_TRAY_RECT.size, MOCK_TRAY_COLOUR)
        canvas.paste(block, MOCK_TRAY_RECT.origin)
        return encode_png(canvas)
