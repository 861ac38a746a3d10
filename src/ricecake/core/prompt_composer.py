"""Natural-language prompt composition for trays and single dishes.

Tray prompts are built in three steps:

1. **Partition** — the first ``main``, ``side`` and ``soup`` item each become
   the representative for their slot.  Everything else (later duplicates and
   desserts) is an *additional* item.
2. **Template selection** — an ordered list of :class:`TemplateRule` objects
   is evaluated against the main dish name.  The first rule whose predicate
   matches picks the template; with no match (or no main dish) the
   traditional template is used.
3. **Substitution** — each slot receives the dish's library fragment, or the
   raw dish name when the library does not know it.  Additional items are
   appended as ``", along with X, Y"``.

Rule order matters: ``"Beef Rib Soup"`` contains both a grilled keyword
(``rib``) and a stew keyword (``soup``) and resolves to the BBQ template
because the grilled rule is evaluated first.

Single-dish prompts (:meth:`PromptComposer.describe`) drive per-item image
generation and previews.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from ricecake.core.models import MenuItem
from ricecake.core.prompt_library import (
    BBQ_STYLE,
    JAPANESE_FUSION,
    KOREAN_TRADITIONAL,
    STEW_FOCUSED,
    PromptLibrary,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Keyword predicates for template selection.
# ---------------------------------------------------------------------------
FUSION_KEYWORDS: tuple[str, ...] = ("cutlet", "curry", "katsu", "돈까스", "카레")
GRILLED_KEYWORDS: tuple[str, ...] = (
    "pork belly",
    "rib",
    "galbi",
    "samgyeopsal",
    "삼겹살",
    "갈비",
)
STEW_KEYWORDS: tuple[str, ...] = ("stew", "soup", "jjigae", "tang", "찌개", "탕")


def _contains_any(name: str, keywords: Iterable[str]) -> bool:
    lowered = name.casefold()
    return any(keyword in lowered for keyword in keywords)


def is_fusion_dish(name: str) -> bool:
    """Cutlet and curry dishes."""
    return _contains_any(name, FUSION_KEYWORDS)


def is_grilled_dish(name: str) -> bool:
    """Grilled pork belly and rib dishes."""
    return _contains_any(name, GRILLED_KEYWORDS)


def is_stew_dish(name: str) -> bool:
    """Stews and soups served as the main dish."""
    return _contains_any(name, STEW_KEYWORDS)


@dataclass(frozen=True)
class TemplateRule:
    """Maps a main-dish predicate to a category template."""

    name: str
    predicate: Callable[[str], bool]
    template_id: str


DEFAULT_RULES: tuple[TemplateRule, ...] = (
    TemplateRule("fusion", is_fusion_dish, JAPANESE_FUSION),
    TemplateRule("grilled", is_grilled_dish, BBQ_STYLE),
    TemplateRule("stew", is_stew_dish, STEW_FOCUSED),
)

# Slot text used when the tray has no item for that role.
_SLOT_FILLERS: dict[str, str] = {
    "main_dish": "a main dish",
    "side_dish": "seasonal side dishes",
    "soup": "a bowl of soup",
}

_CATEGORY_PHRASES: dict[str, str] = {
    "main": "as a main dish, beautifully presented on a plate",
    "side": "as a side dish, colorful and well-arranged",
    "soup": "as a soup, steaming and inviting",
    "dessert": "as a dessert, sweet and appealing",
}
_NEUTRAL_PHRASE = "well-presented on a plate"


@dataclass(frozen=True)
class TrayPartition:
    """Representatives per slot plus the leftover items, in input order."""

    main: MenuItem | None
    side: MenuItem | None
    soup: MenuItem | None
    additional: tuple[MenuItem, ...]


def partition_items(items: Sequence[MenuItem]) -> TrayPartition:
    """Pick the first main, side and soup; everything else is additional."""
    main = next((item for item in items if item.category == "main"), None)
    side = next((item for item in items if item.category == "side"), None)
    soup = next((item for item in items if item.category == "soup"), None)
    chosen = {id(candidate) for candidate in (main, side, soup) if candidate is not None}
    additional = tuple(item for item in items if id(item) not in chosen)
    return TrayPartition(main=main, side=side, soup=soup, additional=additional)


class PromptComposer:
    """Compose generation prompts from menu items.

    Args:
        library: Prompt library used for fragments and templates.
        rules: Ordered template-selection rules; first match wins.
    """

    def __init__(
        self,
        library: PromptLibrary | None = None,
        rules: Sequence[TemplateRule] = DEFAULT_RULES,
    ) -> None:
        self.library = library if library is not None else PromptLibrary()
        self.rules = tuple(rules)

    def select_template(self, main_dish: MenuItem | None) -> str:
        """Return the template id for a tray whose main dish is *main_dish*."""
        if main_dish is None:
            return KOREAN_TRADITIONAL
        for rule in self.rules:
            if rule.predicate(main_dish.name):
                logger.debug("Rule '%s' matched main dish '%s'.", rule.name, main_dish.name)
                return rule.template_id
        return KOREAN_TRADITIONAL

    def fragment(self, name: str) -> str:
        """Library fragment for *name*, or the raw name when unknown."""
        return self.library.food_prompt(name) or name

    def compose(self, items: Sequence[MenuItem]) -> str:
        """Build the whole-tray prompt.

        Callers guarantee a non-empty list.

        Args:
            items: Menu items in submission order.

        Returns:
            A single natural-language prompt describing the tray.
        """
        parts = partition_items(items)
        template_id = self.select_template(parts.main)

        slots = {
            "main_dish": parts.main,
            "side_dish": parts.side,
            "soup": parts.soup,
        }
        prompt = self.library.template(template_id)
        for slot, item in slots.items():
            text = self.fragment(item.name) if item is not None else _SLOT_FILLERS[slot]
            prompt = prompt.replace("{" + slot + "}", text)

        if parts.additional:
            extras = ", ".join(self.fragment(item.name) for item in parts.additional)
            prompt += f", along with {extras}"

        return prompt

    def describe(self, name: str, category: str) -> str:
        """Build the prompt for a single dish photo.

        Args:
            name: Dish name.
            category: Tray role; unknown categories get a neutral phrase.

        Returns:
            Prompt for one food image.
        """
        fragment = self.library.food_prompt(name)
        if fragment:
            return (
                f"A high-quality, appetizing photo of {fragment}, professional food "
                "photography, natural lighting, Korean food style"
            )

        phrase = _CATEGORY_PHRASES.get(category, _NEUTRAL_PHRASE)
        return (
            f"A high-quality, appetizing photo of {name}, {phrase}, Korean food "
            "photography style, natural lighting, professional food photography"
        )
