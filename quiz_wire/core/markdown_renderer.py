"""Markdown rendering for the operator dashboard.

Question prompts travel over the wire as plain single-line text; only the
operator page shows them rendered, so players see exactly what was loaded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import html

from markdown_it import MarkdownIt

from quiz_wire.constants.quiz_constants import OPTION_LETTERS
from quiz_wire.core.models import Question


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts question markdown into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = MarkdownIt("commonmark", {"html": self.enable_html}).enable("strikethrough")

    def render_fragment(self, markdown_text: str) -> str:
        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_question(self, question: Question, reveal_answer: bool = False) -> str:
        """Render the prompt followed by a list of the four options."""
        items = []
        for line, letter in zip(question.options, OPTION_LETTERS):
            marker = " <strong>(correct)</strong>" if reveal_answer and question.is_correct(letter) else ""
            items.append(f"<li><b>{letter}.</b> {self._markdown.renderInline(line)}{marker}</li>")
        return self.render_fragment(question.prompt) + "<ul class=\"options\">" + "".join(items) + "</ul>"


def escape(text: str) -> str:
    return html.escape(text, quote=True)


# shared by the API worker threads; rendering does not mutate the parser
renderer = MarkdownRenderer()
