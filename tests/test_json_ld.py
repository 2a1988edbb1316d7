import json

import pytest

from hauptgang.importers import json_ld


def page(*blocks):
    scripts = "".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>'
        for b in blocks
    )
    return f"<html><head>{scripts}</head><body><h1>Recipe</h1></body></html>"


RECIPE = {
    "@context": "https://schema.org",
    "@type": "Recipe",
    "name": "Spaghetti Carbonara",
    "description": "Classic Roman pasta.",
    "recipeIngredient": ["200g spaghetti", " 2 eggs ", ""],
    "recipeInstructions": [
        {"@type": "HowToStep", "text": "Boil the pasta."},
        {"@type": "HowToStep", "text": "Mix eggs and cheese."},
    ],
    "prepTime": "PT10M",
    "cookTime": "PT1H5M",
    "recipeYield": ["4 servings", "4"],
}


class TestExtract:
    def test_extracts_recipe(self):
        result = json_ld.extract(page(RECIPE), "https://example.com/carbonara")

        assert result.success is True
        assert result.recipe_attributes == {
            "name": "Spaghetti Carbonara",
            "ingredients": ["200g spaghetti", "2 eggs"],
            "instructions": ["Boil the pasta.", "Mix eggs and cheese."],
            "prep_time": 10,
            "cook_time": 65,
            "servings": 4,
            "notes": "Classic Roman pasta.",
            "source_url": "https://example.com/carbonara",
        }

    def test_finds_recipe_inside_graph(self):
        graph = {"@context": "https://schema.org", "@graph": [{"@type": "WebPage"}, RECIPE]}

        result = json_ld.extract(page(graph), "https://example.com/")

        assert result.recipe_attributes["name"] == "Spaghetti Carbonara"

    def test_skips_broken_and_unrelated_blocks(self):
        result = json_ld.extract(
            page("{not json", {"@type": "Organization", "name": "Blog"}, RECIPE),
            "https://example.com/",
        )

        assert result.success is True

    def test_type_list_and_full_url_type(self):
        recipe = dict(RECIPE, **{"@type": ["Thing", "http://schema.org/Recipe"]})

        assert json_ld.extract(page(recipe), "https://example.com/").success is True

    def test_recipe_without_name_is_ignored(self):
        recipe = dict(RECIPE, name="  ")

        result = json_ld.extract(page(recipe), "https://example.com/")

        assert result.success is False
        assert result.error_code == "no_json_ld"

    def test_page_without_json_ld(self):
        result = json_ld.extract("<html><body>Just text</body></html>", "https://example.com/")

        assert result.success is False
        assert result.error_code == "no_json_ld"


class TestInstructions:
    def test_sections_and_list_items(self):
        recipe = dict(
            RECIPE,
            recipeInstructions=[
                {
                    "@type": "HowToSection",
                    "name": "Sauce",
                    "itemListElement": [{"@type": "HowToStep", "text": "Whisk eggs."}],
                },
                {"@type": "ListItem", "item": {"text": "Serve."}},
                "Enjoy.",
            ],
        )

        result = json_ld.extract(page(recipe), "https://example.com/")

        assert result.recipe_attributes["instructions"] == ["Whisk eggs.", "Serve.", "Enjoy."]

    def test_item_list_wrapper(self):
        recipe = dict(
            RECIPE,
            recipeInstructions={
                "@type": "ItemList",
                "itemListElement": [{"@type": "ListItem", "name": "Step one"}],
            },
        )

        result = json_ld.extract(page(recipe), "https://example.com/")

        assert result.recipe_attributes["instructions"] == ["Step one"]


@pytest.mark.parametrize(
    "value, minutes",
    [
        ("PT30M", 30),
        ("PT1H30M", 90),
        ("P1DT2H", 1560),
        ("PT45S", 1),
        ("PT10M20S", 10),
        ("PT10M40S", 11),
        ("PT0M", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_duration_minutes(value, minutes):
    assert json_ld.parse_duration_minutes(value) == minutes


@pytest.mark.parametrize(
    "value, servings",
    [("4", 4), (6, 6), ("Serves 2-3", 2), (["8 pieces"], 8), ("a few", None), (None, None)],
)
def test_parse_servings(value, servings):
    assert json_ld.parse_servings(value) == servings
