"""
Recipe extraction from JSON-LD structured data (schema.org/Recipe).

Most recipe sites embed this for search engines, so it is tried before the
LLM fallback.
"""

from __future__ import annotations

import json
import re
from typing import Any

from bs4 import BeautifulSoup

from . import results

RECIPE_TYPE_PATTERN = re.compile(r"^https?://schema\.org/Recipe$")
DURATION_PATTERN = re.compile(r"P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?")
NUMBER_PATTERN = re.compile(r"\d+")


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def _is_recipe_type(data: dict) -> bool:
    raw_type = data.get("@type")
    if not raw_type:
        return False
    types = raw_type if isinstance(raw_type, list) else [raw_type]
    return any(t == "Recipe" or RECIPE_TYPE_PATTERN.match(str(t)) for t in types)


def find_recipe(data: Any) -> dict | None:
    """
    Locate a Recipe node in arrays, `@graph` lists or mainEntity wrappers.
    """
    if isinstance(data, list):
        for item in data:
            recipe = find_recipe(item)
            if recipe is not None:
                return recipe
        return None

    if not isinstance(data, dict):
        return None

    if _is_recipe_type(data):
        return data

    for key in ("mainEntity", "mainEntityOfPage"):
        if isinstance(data.get(key), dict):
            recipe = find_recipe(data[key])
            if recipe is not None:
                return recipe

    graph = data.get("@graph")
    if isinstance(graph, list):
        return find_recipe(graph)

    return None


def _clean(value: Any) -> str:
    return str(value if value is not None else "").strip()


def _extract_ingredients(recipe: dict) -> list[str]:
    ingredients = recipe.get("recipeIngredient") or recipe.get("ingredients") or []
    if not isinstance(ingredients, list):
        ingredients = [ingredients]
    return [text for text in (_clean(i) for i in ingredients) if text]


def _list_item_text(list_item: dict) -> str:
    item = list_item.get("item")
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, dict):
        return _clean(item.get("text"))
    return _clean(list_item.get("name"))


def _section_steps(section: dict) -> list[str]:
    steps = section.get("itemListElement") or []
    if not isinstance(steps, list):
        steps = [steps]
    return [_clean(step.get("text")) if isinstance(step, dict) else _clean(step) for step in steps]


def _extract_instructions(recipe: dict) -> list[str]:
    instructions = recipe.get("recipeInstructions") or []

    if isinstance(instructions, dict) and instructions.get("@type") == "ItemList":
        instructions = instructions.get("itemListElement") or []
    if not isinstance(instructions, list):
        instructions = [instructions]

    steps: list[str] = []
    for instruction in instructions:
        if isinstance(instruction, str):
            steps.append(instruction.strip())
        elif isinstance(instruction, dict):
            kind = instruction.get("@type")
            if kind == "HowToSection":
                steps.extend(_section_steps(instruction))
            elif kind == "ListItem":
                steps.append(_list_item_text(instruction))
            else:
                steps.append(_clean(instruction.get("text")))
    return [step for step in steps if step]


def parse_duration_minutes(value: Any) -> int | None:
    """
    Convert an ISO-8601 duration ("PT1H30M", "P1DT2H") to whole minutes.

    Seconds round up to a minute when they are the only component or at
    least 30.
    """
    if not value:
        return None

    match = DURATION_PATTERN.search(str(value))
    if not match:
        return None

    days, hours, minutes, seconds = (int(g or 0) for g in match.groups())
    total = days * 1440 + hours * 60 + minutes
    if seconds > 0 and (total == 0 or seconds >= 30):
        total += 1
    return total if total > 0 else None


def parse_servings(value: Any) -> int | None:
    if not value:
        return None
    if isinstance(value, list):
        value = value[0] if value else None
    match = NUMBER_PATTERN.search(str(value if value is not None else ""))
    return int(match.group(0)) if match else None


def extract_attributes(recipe: dict, source_url: str) -> dict[str, Any]:
    return {
        "name": _clean(recipe.get("name")) or None,
        "ingredients": _extract_ingredients(recipe),
        "instructions": _extract_instructions(recipe),
        "prep_time": parse_duration_minutes(recipe.get("prepTime")),
        "cook_time": parse_duration_minutes(recipe.get("cookTime")),
        "servings": parse_servings(recipe.get("recipeYield")),
        "notes": _clean(recipe.get("description")) or None,
        "source_url": source_url,
    }


def extract(html: str, source_url: str) -> results.ImportResult:
    soup = BeautifulSoup(html or "", "html.parser")

    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        data = _parse_json(script.string or script.get_text())
        if data is None:
            continue

        recipe = find_recipe(data)
        if recipe is None:
            continue

        attributes = extract_attributes(recipe, source_url)
        if attributes["name"]:
            return results.succeeded(attributes)

    return results.failed("No JSON-LD recipe data found", "no_json_ld")
