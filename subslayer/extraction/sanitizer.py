"""Strip markdown code-fence wrapping from model completions."""

from __future__ import annotations

LEADING_FENCES = ("```json", "```")
TRAILING_FENCE = "```"


def sanitize(raw_text: str) -> str:
    """
    Remove a leading ```json / ``` marker and a trailing ``` marker, then trim.

    Does not repair JSON; a malformed payload stays malformed for the decoder.
    """
    text = (raw_text or "").strip()

    for fence in LEADING_FENCES:
        if text.startswith(fence):
            text = text[len(fence) :]
            break

    if text.endswith(TRAILING_FENCE):
        text = text[: -len(TRAILING_FENCE)]

    return text.strip()
