"""Tests for ricecake.core.prompt_library — food prompts and category templates.

Tests cover:
- English and Korean lookups resolve to the same fragment.
- Case/whitespace-insensitive lookup.
- Read-only views and the explicit registration methods.
- Unknown template ids fall back to the traditional template.
"""

from __future__ import annotations

import pytest

from ricecake.core.prompt_library import (
    BBQ_STYLE,
    JAPANESE_FUSION,
    KOREAN_TRADITIONAL,
    STEW_FOCUSED,
    PromptLibrary,
)


class TestFoodPrompts:
    """Test dish name → fragment lookups."""

    def test_english_name(self):
        """Known English names return their fragment."""
        library = PromptLibrary()
        assert library.food_prompt("Kimchi Stew").startswith("kimchi jjigae")

    def test_korean_name_matches_english(self):
        """Korean and English names share a fragment."""
        library = PromptLibrary()
        assert library.food_prompt("김치찌개") == library.food_prompt("Kimchi Stew")

    def test_lookup_ignores_case_and_whitespace(self):
        """Lookups are normalised."""
        library = PromptLibrary()
        assert library.food_prompt("  seaweed SOUP ") == library.food_prompt("Seaweed Soup")

    def test_unknown_name_returns_none(self):
        """Unknown dishes are not an error."""
        assert PromptLibrary().food_prompt("Space Noodles") is None

    def test_food_count_counts_each_dish_once(self):
        """Bilingual registration does not double the dish count."""
        assert PromptLibrary().food_count == 20

    def test_food_prompts_view_is_read_only(self):
        """The exposed mapping cannot be mutated directly."""
        library = PromptLibrary()
        with pytest.raises(TypeError):
            library.food_prompts["new dish"] = "fragment"  # type: ignore[index]


class TestRegistry:
    """Test runtime additions."""

    def test_add_food_prompt(self):
        """Registered dishes become visible to lookups."""
        library = PromptLibrary()
        library.add_food_prompt("Japchae", "japchae (glass noodles) with vegetables")
        assert library.food_prompt("japchae") == "japchae (glass noodles) with vegetables"

    def test_add_food_prompt_keeps_old_snapshot_intact(self):
        """A view taken before a registration is not mutated by it."""
        library = PromptLibrary()
        before = library.food_prompts
        library.add_food_prompt("Japchae", "glass noodles")
        assert "japchae" not in before
        assert "japchae" in library.food_prompts

    def test_add_category_template(self):
        """Registered templates are returned by id."""
        library = PromptLibrary()
        library.add_category_template("picnic", "A picnic box with {main_dish}")
        assert library.template("picnic") == "A picnic box with {main_dish}"

    def test_custom_tables(self):
        """A library can be built from explicit tables."""
        library = PromptLibrary(
            food_prompts={"Toast": "buttered toast"},
            category_templates={KOREAN_TRADITIONAL: "{main_dish}"},
        )
        assert library.food_prompt("toast") == "buttered toast"
        assert library.food_count == 1


class TestTemplates:
    """Test category template lookup."""

    @pytest.mark.parametrize(
        "template_id", [KOREAN_TRADITIONAL, JAPANESE_FUSION, BBQ_STYLE, STEW_FOCUSED]
    )
    def test_builtin_templates_have_all_slots(self, template_id):
        """Every built-in template uses the three composer slots."""
        template = PromptLibrary().template(template_id)
        for slot in ("{main_dish}", "{side_dish}", "{soup}"):
            assert slot in template

    def test_unknown_template_falls_back(self):
        """Unknown ids resolve to the traditional template."""
        library = PromptLibrary()
        assert library.template("nope") == library.template(KOREAN_TRADITIONAL)
