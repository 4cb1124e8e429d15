"""
Report content formatting.

Turns plain admin-entered text into paragraph HTML.
"""

import re

_BLANK_LINES = re.compile(r"\n\s*\n")
_TAGS = re.compile(r"<[^>]+>")


def format_content(text: str) -> str:
    """Split on blank lines into <p> blocks; single newlines become <br>.

    Content that already looks like HTML is kept as is.
    """
    stripped = text.strip()
    if not stripped or stripped.startswith("<"):
        return stripped

    paragraphs = [p.strip() for p in _BLANK_LINES.split(stripped) if p.strip()]
    return "".join(f"<p>{p.replace(chr(10), '<br>')}</p>" for p in paragraphs)


def plain_text(html: str) -> str:
    """Strip tags, for previews."""
    return re.sub(r"\s+", " ", _TAGS.sub(" ", html)).strip()
