"""Minimal SSML builder for spoken responses."""

import html


def escape(text: str) -> str:
    """Escape characters that are not allowed in SSML text nodes."""
    return html.escape(text, quote=False)


class SSMLBuilder:
    """Accumulates paragraphs and pauses into a <speak> document.

    Text passed to append_paragraph may already contain SSML tags
    (say-as, sub) and is not escaped; escape plain text first.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []

    def append_paragraph(self, text: str) -> "SSMLBuilder":
        if text:
            self._parts.append(f"<p>{text}</p>")
        return self

    def append_break(self, strength: str, time: str) -> "SSMLBuilder":
        self._parts.append(f'<break strength="{strength}" time="{time}"/>')
        return self

    def build(self) -> str:
        return "<speak>" + "".join(self._parts) + "</speak>"
