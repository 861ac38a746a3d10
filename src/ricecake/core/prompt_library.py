"""Static prompt data: per-food descriptive fragments and tray prompt templates.

The library holds two lookup tables:

- **Food prompts** map a dish name to a rich English fragment suitable for an
  image model, e.g. ``"Kimchi Stew"`` →
  ``"kimchi jjigae (spicy kimchi stew) with rich red broth and tender vegetables"``.
  Each dish is registered under its English name and its Korean name.
- **Category templates** are whole-tray prompt templates with ``{main_dish}``,
  ``{side_dish}`` and ``{soup}`` slots, filled in by
  :mod:`ricecake.core.prompt_composer`.

Both tables are built once at import time and exposed read-only.  Runtime
additions go through :meth:`PromptLibrary.add_food_prompt` and
:meth:`PromptLibrary.add_category_template`, which copy-on-write under a
lock so readers never observe a half-updated table.

Lookups are case-insensitive and ignore surrounding whitespace.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Template identifiers.
# ---------------------------------------------------------------------------
KOREAN_TRADITIONAL = "korean_traditional"
JAPANESE_FUSION = "japanese_fusion"
BBQ_STYLE = "bbq_style"
STEW_FOCUSED = "stew_focused"

# (english name, korean name, fragment)
_FOOD_ENTRIES: tuple[tuple[str, str, str], ...] = (
    # Main dishes
    (
        "Kimchi Stew",
        "김치찌개",
        "kimchi jjigae (spicy kimchi stew) with rich red broth and tender vegetables",
    ),
    (
        "Pork Stir-fry",
        "제육볶음",
        "jeyuk bokkeum (spicy pork stir-fry) with caramelized onions and carrots",
    ),
    (
        "Bibimbap",
        "비빔밥",
        "bibimbap (mixed rice bowl) with colorful vegetables and gochujang sauce",
    ),
    (
        "Pork Cutlet",
        "돈까스",
        "tonkatsu (crispy breaded pork cutlet) with golden brown coating",
    ),
    (
        "Curry Rice",
        "카레라이스",
        "Japanese curry rice with rich brown sauce and tender meat",
    ),
    (
        "Grilled Pork Belly",
        "삼겹살",
        "samgyeopsal (grilled pork belly) with charred edges and juicy center",
    ),
    ("Bulgogi", "불고기", "bulgogi (marinated beef) with sweet soy sauce and sesame seeds"),
    (
        "Soft Tofu Stew",
        "순두부찌개",
        "sundubu jjigae (soft tofu stew) with spicy red broth and soft tofu",
    ),
    ("Beef Rib Soup", "갈비탕", "galbitang (beef rib soup) with clear broth and tender ribs"),
    (
        "Spicy Chicken Stew",
        "닭볶음탕",
        "dakbokkeumtang (spicy chicken stew) with potatoes and carrots",
    ),
    (
        "Chicken Karaage",
        "치킨가라아게",
        "chicken karaage (Japanese fried chicken) with crispy coating",
    ),
    ("Grilled Pork Ribs", "돼지갈비", "dwaeji galbi (grilled pork ribs) with sweet marinade"),
    # Soups
    ("Seaweed Soup", "미역국", "miyeokguk (seaweed soup) with clear broth and tender seaweed"),
    (
        "Soybean Paste Soup",
        "된장국",
        "doenjang soup (fermented soybean soup) with vegetables and tofu",
    ),
    (
        "Miso Soup",
        "미소국",
        "miso soup (Japanese fermented soybean soup) with tofu and seaweed",
    ),
    ("Udon", "우동", "udon noodles (thick wheat noodles) in savory broth"),
    # Side dishes
    ("Kimchi", "김치", "kimchi (fermented napa cabbage) with spicy red seasoning"),
    ("Radish Kimchi", "깍두기", "kkakdugi (cubed radish kimchi) with crunchy texture"),
    ("Pickled Radish", "단무지", "danmuji (pickled radish) with sweet and tangy flavor"),
    (
        "Seasoned Spinach",
        "시금치나물",
        "spinach namul (seasoned spinach) with sesame oil and garlic",
    ),
)

_CATEGORY_TEMPLATES: dict[str, str] = {
    KOREAN_TRADITIONAL: (
        "A traditional Korean school cafeteria meal tray with {main_dish}, {side_dish}, "
        "kimchi, and {soup} arranged neatly on a white plastic tray, "
        "Korean food photography style"
    ),
    JAPANESE_FUSION: (
        "A Japanese-Korean fusion meal tray with {main_dish}, {soup}, kimchi, and "
        "{side_dish} on a white school cafeteria tray, fusion cuisine style"
    ),
    BBQ_STYLE: (
        "A Korean BBQ style meal tray with {main_dish}, {soup}, kimchi, and {side_dish} "
        "arranged on a white cafeteria tray, grilled food photography"
    ),
    STEW_FOCUSED: (
        "A hearty Korean stew meal with {main_dish}, {side_dish}, kimchi, and {soup} "
        "on a white school tray, comfort food style"
    ),
}


def _normalize(name: str) -> str:
    return name.strip().casefold()


def _build_food_prompts() -> dict[str, str]:
    prompts: dict[str, str] = {}
    for english, korean, fragment in _FOOD_ENTRIES:
        prompts[_normalize(english)] = fragment
        prompts[_normalize(korean)] = fragment
    return prompts


class PromptLibrary:
    """Read-mostly registry of food prompts and tray prompt templates.

    Attributes
    ----------
    food_prompts : Mapping[str, str]
        Read-only view of normalized dish name → fragment.
    category_templates : Mapping[str, str]
        Read-only view of template id → template text.

    Notes
    -----
    Readers never lock: each mutation swaps in a fresh read-only mapping, so
    a reader holding the old view keeps a consistent snapshot.
    """

    def __init__(
        self,
        food_prompts: Mapping[str, str] | None = None,
        category_templates: Mapping[str, str] | None = None,
    ) -> None:
        foods = _build_food_prompts() if food_prompts is None else {
            _normalize(name): fragment for name, fragment in food_prompts.items()
        }
        templates = dict(_CATEGORY_TEMPLATES if category_templates is None else category_templates)

        self._lock = threading.Lock()
        self._food_prompts: Mapping[str, str] = MappingProxyType(foods)
        self._category_templates: Mapping[str, str] = MappingProxyType(templates)

    @property
    def food_prompts(self) -> Mapping[str, str]:
        return self._food_prompts

    @property
    def category_templates(self) -> Mapping[str, str]:
        return self._category_templates

    def food_prompt(self, name: str) -> str | None:
        """Return the descriptive fragment for *name*, or ``None`` if unknown."""
        return self._food_prompts.get(_normalize(name))

    def template(self, template_id: str) -> str:
        """Return the template text for *template_id*.

        Unknown identifiers fall back to the traditional template.
        """
        template = self._category_templates.get(template_id)
        if template is None:
            logger.warning("Unknown category template '%s', using traditional.", template_id)
            return self._category_templates[KOREAN_TRADITIONAL]
        return template

    def add_food_prompt(self, name: str, fragment: str) -> None:
        """Register or replace the fragment for a dish."""
        with self._lock:
            updated = dict(self._food_prompts)
            updated[_normalize(name)] = fragment
            self._food_prompts = MappingProxyType(updated)
        logger.info("Registered food prompt for '%s'.", name)

    def add_category_template(self, template_id: str, template: str) -> None:
        """Register or replace a tray prompt template."""
        with self._lock:
            updated = dict(self._category_templates)
            updated[template_id] = template
            self._category_templates = MappingProxyType(updated)
        logger.info("Registered category template '%s'.", template_id)

    @property
    def food_count(self) -> int:
        """Number of distinct dishes (English and Korean names count once)."""
        return len(set(self._food_prompts.values()))
