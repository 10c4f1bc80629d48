"""Prompt assembly for room redesign requests.

This module is intentionally narrow: it only builds prompt strings from already
validated inputs. Vision analysis, provider dispatch and error handling happen
outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of prompt components.
    - No hidden side effects (no I/O, no global state mutation).

Tag handling:
    - Style and room-type tags are resolved against fixed label tables.
    - Human-readable input ("Scandinavian Minimalist") is normalized to its slug
      before lookup.
    - Unknown tags are silently replaced by the defaults, never rejected.
"""

import re


# Fallback scene description used when vision analysis is skipped or fails.
SENTINEL_DESCRIPTION = "a room"

DEFAULT_STYLE = "modern_luxury"
DEFAULT_ROOM_TYPE = "living_room"

_SLUG_SEPARATORS = re.compile(r"[\s\-]+")


def slugify_tag(tag) -> str:
    """Normalize a tag to its slug form (`"Art Deco-Glamour"` -> `"art_deco_glamour"`)."""
    if not isinstance(tag, str):
        return ""
    return _SLUG_SEPARATORS.sub("_", tag.strip().lower())


def humanize_tag(slug: str) -> str:
    """Render a slug as a human-readable label (underscore-to-space, title case)."""
    return slug.replace("_", " ").title()


STYLE_SLUGS = (
    "coastal_beachy",
    "mid_century_modern",
    "rustic_bohemian",
    "scandinavian_minimalist",
    "industrial_modern",
    "farmhouse_chic",
    "art_deco_glamour",
    "mediterranean_villa",
    "modern_luxury",
    "japanese_zen",
    "victorian_elegant",
    "tropical_modern",
)

ROOM_TYPE_SLUGS = (
    "living_room",
    "bedroom",
    "kitchen",
    "dining_room",
    "bathroom",
    "office",
)

STYLE_LABELS = {slug: humanize_tag(slug) for slug in STYLE_SLUGS}
ROOM_TYPE_LABELS = {slug: humanize_tag(slug) for slug in ROOM_TYPE_SLUGS}

STRUCTURE_INSTRUCTION = (
    "Maintain the room's original structure and layout while applying the design changes."
)


def _resolve(tag, labels: dict, default: str) -> str:
    slug = slugify_tag(tag)
    if slug not in labels:
        slug = default
    return labels[slug]


def resolve_style(style) -> str:
    """Return the display label for `style`, defaulting to "Modern Luxury"."""
    return _resolve(style, STYLE_LABELS, DEFAULT_STYLE)


def resolve_room_type(room_type) -> str:
    """Return the display label for `room_type`, defaulting to "Living Room"."""
    return _resolve(room_type, ROOM_TYPE_LABELS, DEFAULT_ROOM_TYPE)


def has_scene_description(description) -> bool:
    """True when `description` is a real vision result rather than the sentinel."""
    if not isinstance(description, str):
        return False
    text = description.strip()
    return bool(text) and text != SENTINEL_DESCRIPTION


def build_redesign_prompt(
    user_prompt: str | None = None,
    style: str | None = None,
    room_type: str | None = None,
    description: str | None = SENTINEL_DESCRIPTION,
) -> str:
    """Build the image-generation instruction for one redesign request.

    Args:
        user_prompt: Free-text goal from the client; may be empty.
        style: Style tag; unknown values fall back to "Modern Luxury".
        room_type: Room-type tag; unknown values fall back to "Living Room".
        description: Scene description from vision analysis, or the sentinel.

    Returns:
        Fully assembled prompt string.

    Prompt component order:
        1) `A <Style> <Room Type>` header
        2) user goal (or a default "Apply ... style" goal)
        3) current contents and a restyling instruction, only with a real
           scene description
        4) structure-preservation instruction

    Determinism:
        Deterministic for identical inputs.
    """
    style_label = resolve_style(style)
    room_label = resolve_room_type(room_type)

    goal = user_prompt.strip().rstrip(".") if isinstance(user_prompt, str) else ""
    if not goal:
        goal = f"Apply {style_label} style to this {room_label}"

    prompt = f"A {style_label} {room_label} {goal}"

    if has_scene_description(description):
        contents = description.strip().rstrip(".")
        prompt = (
            f"{prompt}. The room currently contains: {contents}. "
            f"Reorganize and restyle these existing contents in the {style_label} style"
        )

    return f"{prompt}. {STRUCTURE_INSTRUCTION}"
