"""Prompt assembly for the cover form.

The form collects a free-text description and an optional art style; the
provider only ever sees the combined string.
"""
from __future__ import annotations


def build_prompt(freestyle: str, style: str | None = None) -> str:
    """Return the prompt sent to the image provider.

    Raises
    ------
    ValueError
        If *freestyle* is empty after stripping whitespace.
    """

    description = freestyle.strip()
    if not description:
        raise ValueError("Describe an image before generating.")

    style = (style or "").strip()
    if not style:
        return description
    return f"{description}, in the style of {style}"
