"""Domain models shared across the tray generator.

``MenuItem`` is a frozen Pydantic model because it crosses the API boundary
and must be validated there; the remaining types are plain dataclasses used
only inside the core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MenuCategory = Literal["main", "side", "soup", "dessert"]

MENU_CATEGORIES: tuple[str, ...] = ("main", "side", "soup", "dessert")


class MenuItem(BaseModel):
    """A single dish submitted for tray generation.

    Identity is ``id``; cache matching only ever looks at ``name``.

    Attributes:
        id: Opaque identifier supplied by the client.
        name: Dish name, e.g. ``"Kimchi Stew"``.
        category: Tray role of the dish.
        description: Optional free-text note from the client.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque item identifier.")
    name: str = Field(..., min_length=1, description="Dish name.")
    category: MenuCategory = Field(..., description="main, side, soup or dessert.")
    description: str | None = Field(default=None, description="Optional note.")


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a match cache lookup.

    ``matched`` means a usable instruction was produced: either a cached image
    (``confidence == 1.0``) or a freshly composed prompt (``0.8``).  An
    internal failure yields ``matched=False`` and ``confidence == 0.0``.
    """

    matched: bool
    confidence: float
    cached_image: str | None = None
    reference_prompt: str | None = None

    @property
    def is_hit(self) -> bool:
        return self.matched and self.cached_image is not None


@dataclass(frozen=True)
class Rect:
    """Pixel rectangle on the tray canvas."""

    x: int
    y: int
    width: int
    height: int

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def origin(self) -> tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True)
class TraySection:
    """One slot of a tray layout."""

    id: str
    name: str
    category: MenuCategory
    max_items: int
    rect: Rect


@dataclass(frozen=True)
class TrayTemplate:
    """A named, fixed arrangement of tray sections."""

    id: str
    name: str
    description: str
    sections: tuple[TraySection, ...] = field(default_factory=tuple)

    @property
    def rects(self) -> list[Rect]:
        return [section.rect for section in self.sections]


@dataclass(frozen=True)
class TrayResult:
    """Result of :meth:`TrayService.generate_tray`."""

    image_url: str
    cached: bool
    mock: bool
    confidence: float = 1.0
    success: bool = True


@dataclass(frozen=True)
class ImageResult:
    """Result of single-image operations (preview, enhance)."""

    image_url: str
    success: bool = True
