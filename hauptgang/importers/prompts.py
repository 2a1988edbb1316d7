"""
Prompt builders and the response schema for LLM recipe extraction.
"""

from __future__ import annotations

PROMPT_TYPES = ("webpage", "raw_text")

# Strict JSON-schema mode requires every property to be listed in `required`;
# optional fields are expressed as nullable instead.
RECIPE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Recipe title"},
        "ingredients": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of ingredients with quantities",
        },
        "instructions": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Step-by-step cooking instructions",
        },
        "prep_time": {"type": ["integer", "null"], "description": "Preparation time in minutes"},
        "cook_time": {"type": ["integer", "null"], "description": "Cooking time in minutes"},
        "servings": {"type": ["integer", "null"], "description": "Number of servings"},
        "notes": {"type": ["string", "null"], "description": "Recipe description or notes"},
    },
    "required": ["name", "ingredients", "instructions", "prep_time", "cook_time", "servings", "notes"],
    "additionalProperties": False,
}


def webpage_prompt(text: str) -> str:
    return (
        "Extract recipe information from the following webpage content.\n"
        "Find the recipe name, ingredients list, and cooking instructions.\n\n"
        "If you cannot find recipe content, return an empty name field.\n\n"
        "Webpage content:\n"
        "---\n"
        f"{text}\n"
        "---\n"
    )


def raw_text_prompt(text: str) -> str:
    return (
        "Extract recipe information from the following text.\n"
        "Parse the recipe name, ingredients list, and cooking instructions.\n\n"
        "If the text does not contain a valid recipe, return an empty name field.\n\n"
        "Recipe text:\n"
        "---\n"
        f"{text}\n"
        "---\n"
    )


def image_prompt() -> str:
    return (
        "Extract recipe information from the image.\n"
        "Identify the recipe name, ingredients list, and cooking instructions.\n\n"
        "If the image does not contain a valid recipe, return an empty name field."
    )


def prompt_for(prompt_type: str, text: str) -> str:
    if prompt_type == "webpage":
        return webpage_prompt(text)
    if prompt_type == "raw_text":
        return raw_text_prompt(text)
    raise ValueError(f"Invalid prompt_type: {prompt_type}")
