"""Pydantic request models for the RiceCake API.

Models
------
MenuItemInput
    Loosely typed item as submitted by clients; validated and normalised by
    ``POST /api/menu/validate``.
ValidateMenuRequest
    Payload for ``POST /api/menu/validate``.
GenerateTrayRequest
    Payload for ``POST /api/image/generate``.
PreviewRequest
    Payload for ``POST /api/image/preview``.
EnhanceRequest
    Payload for ``POST /api/image/enhance``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ricecake.core.models import MenuItem


class MenuItemInput(BaseModel):
    """A menu item before validation.

    All fields are optional here so that the validate endpoint can report
    which item is incomplete instead of failing the whole payload.
    """

    id: str | None = Field(default=None, description="Client item id (generated if absent).")
    name: str | None = Field(default=None, description="Dish name.")
    category: str | None = Field(default=None, description="main, side, soup or dessert.")
    description: str | None = Field(default=None, description="Optional note.")


class ValidateMenuRequest(BaseModel):
    """Request body for ``POST /api/menu/validate``."""

    items: list[MenuItemInput] | None = Field(
        default=None,
        description="Items to validate.",
    )


class GenerateTrayRequest(BaseModel):
    """Request body for ``POST /api/image/generate``.

    Attributes:
        items: Validated menu items (at least one).
        template_id: Tray layout, ``"standard"`` or ``"compact"``.
    """

    items: list[MenuItem] = Field(
        default_factory=list,
        description="Menu items to place on the tray.",
    )
    template_id: str = Field(
        default="standard",
        description="Tray layout identifier.",
    )


class PreviewRequest(BaseModel):
    """Request body for ``POST /api/image/preview``."""

    item_name: str = Field(default="", description="Dish name.")
    category: str = Field(default="", description="Dish category.")


class EnhanceRequest(BaseModel):
    """Request body for ``POST /api/image/enhance``."""

    image_url: str = Field(default="", description="URL path of a stored image.")
    enhancement_type: str = Field(
        default="general",
        description="sharpen, brightness, contrast or general.",
    )
