"""URL slug derivation shared by categories and products."""

import re

_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-+")


def generate_slug(name: str | None) -> str | None:
    """Derive a URL-safe slug from a display name.

    Lower-cases the name, strips characters outside ``[a-z0-9\\s-]``,
    collapses whitespace to single hyphens and trims leading/trailing
    hyphens.

    Args:
        name: Display name.

    Returns:
        Slug string, or None if no name was given.

    Example:
        >>> generate_slug("Home & Garden!!")
        'home-garden'
    """
    if name is None:
        return None
    slug = _INVALID_CHARS.sub("", name.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")
