"""
Response formatter for Chat Me.

Converts raw model output (Markdown, LaTeX-style math, fenced code blocks and
pipe tables) into display markup. The pipeline works on typed segments so that
fenced code is never touched by the prose passes:

1. Fenced code is split out of the raw text first.
2. Prose segments get headings/rules stripped and blank runs collapsed.
3. Math is stashed behind placeholder tokens.
4. Prose is escaped and inline emphasis applied.
5. Runs of pipe lines become tables.
6. Remaining newlines become ``<br>`` (except after table rows).
"""
import html
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class Segment:
    """A piece of the raw answer: either prose or a fenced code block."""
    text: str
    is_code: bool = False
    language: str = ""


class ResponseFormatter:
    """Pure, total transformation from raw answer text to display markup."""

    CODE_FENCE = re.compile(r"```(\w*)\n?([\s\S]*?)```")

    HEADING = re.compile(r"^#{1,6}[ \t]*", re.MULTILINE)
    RULE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})[ \t]*$\n?", re.MULTILINE)
    BLANK_RUN = re.compile(r"\n{2,}")
    MARKDOWN_ARTIFACT = re.compile(r"markdown''", re.IGNORECASE)

    # Display forms first so "$$" is never read as two inline delimiters
    MATH = re.compile(
        r"\$\$(?P<dollar_block>[\s\S]+?)\$\$"
        r"|\\\[(?P<bracket_block>[\s\S]+?)\\\]"
        r"|\\\((?P<paren_inline>.+?)\\\)"
        r"|\$(?P<dollar_inline>[^$\n]+)\$"
    )

    # Backtick spans win over emphasis so their content stays literal
    INLINE = re.compile(
        r"`(?P<code>[^`\n]+)`"
        r"|\*\*(?P<strong>.+?)\*\*"
        r"|\*(?P<em>.+?)\*"
    )

    TABLE_SEPARATOR = re.compile(r"^[\s|:-]*-[\s|:-]*$")

    # Private-use characters delimit stashed math in prose
    STASH_OPEN = "\ue000"
    STASH_CLOSE = "\ue001"
    STASH_TOKEN = re.compile("\ue000(\\d+)\ue001")

    DEFAULT_CODE_LABEL = "Code"

    def format(self, raw: Optional[str]) -> str:
        """
        Format a raw answer for display.

        Args:
            raw: Raw model output; None and "" are accepted

        Returns:
            Markup string ("" for empty input)
        """
        if not raw:
            return ""

        parts = []
        for segment in self.split_code_blocks(raw):
            if segment.is_code:
                parts.append(self._render_code(segment))
            else:
                parts.append(self._render_prose(segment.text))
        return "".join(parts)

    def split_code_blocks(self, raw: str) -> List[Segment]:
        """Split raw text into prose and fenced-code segments, in order."""
        segments: List[Segment] = []
        position = 0
        for match in self.CODE_FENCE.finditer(raw):
            if match.start() > position:
                segments.append(Segment(text=raw[position:match.start()]))
            segments.append(Segment(text=match.group(2), is_code=True, language=match.group(1)))
            position = match.end()
        if position < len(raw):
            segments.append(Segment(text=raw[position:]))
        return segments

    def normalize(self, text: str) -> str:
        """Strip heading markers and horizontal rules, collapse blank runs."""
        text = text.replace(self.STASH_OPEN, "").replace(self.STASH_CLOSE, "")
        text = self.HEADING.sub("", text)
        text = self.RULE.sub("", text)
        text = self.BLANK_RUN.sub("\n", text)
        return self.MARKDOWN_ARTIFACT.sub("", text)

    def _render_code(self, segment: Segment) -> str:
        label = segment.language or self.DEFAULT_CODE_LABEL
        body = html.escape(segment.text, quote=False)
        return (
            f'<pre class="code-block"><div class="code-header">{label}</div>'
            f"<code>{body}</code></pre>"
        )

    def _render_prose(self, text: str) -> str:
        text = self.normalize(text)
        text, stash = self._stash_math(text)

        lines = text.split("\n")
        parts: List[str] = []
        index = 0
        while index < len(lines):
            if "|" in lines[index]:
                end = index
                while end < len(lines) and "|" in lines[end]:
                    end += 1
                parts.append(self._render_table(lines[index:end]))
                # The newline closing the last row is absorbed by the table
                index = end
                continue

            parts.append(self._render_inline(html.escape(lines[index], quote=False)))
            if index < len(lines) - 1:
                parts.append("<br>")
            index += 1

        return self._restore_math("".join(parts), stash)

    def _stash_math(self, text: str) -> Tuple[str, List[str]]:
        stash: List[str] = []

        def replace(match: "re.Match[str]") -> str:
            block = match.group("dollar_block") or match.group("bracket_block")
            if block is not None:
                rendered = f'<div class="math-block">\\({html.escape(block, quote=False)}\\)</div>'
            else:
                inline = match.group("paren_inline") or match.group("dollar_inline")
                rendered = f'<span class="math-inline">\\({html.escape(inline, quote=False)}\\)</span>'
            stash.append(rendered)
            return f"{self.STASH_OPEN}{len(stash) - 1}{self.STASH_CLOSE}"

        return self.MATH.sub(replace, text), stash

    def _restore_math(self, text: str, stash: List[str]) -> str:
        if not stash:
            return text
        return self.STASH_TOKEN.sub(lambda match: stash[int(match.group(1))], text)

    def _render_inline(self, escaped: str) -> str:
        def replace(match: "re.Match[str]") -> str:
            if match.group("code") is not None:
                return f"<code class='inline-code'>{match.group('code')}</code>"
            if match.group("strong") is not None:
                return f"<strong>{self._render_inline(match.group('strong'))}</strong>"
            return f"<em>{match.group('em')}</em>"

        return self.INLINE.sub(replace, escaped)

    def _render_table(self, lines: List[str]) -> str:
        rows = []
        for line in lines:
            if self.TABLE_SEPARATOR.match(line):
                continue
            cells = [cell.strip() for cell in line.split("|")]
            cells = [cell for cell in cells if cell]
            if not cells:
                continue
            rendered = "".join(
                f"<td>{self._render_inline(html.escape(cell, quote=False))}</td>"
                for cell in cells
            )
            rows.append(f"<tr>{rendered}</tr>")

        if not rows:
            logger.debug("Dropped pipe block with no data rows")
            return ""
        return f'<div class="table-wrapper"><table class="markdown-table">{"".join(rows)}</table></div>'


def wrap_reply(markup: str) -> str:
    """Wrap formatted markup in the reply container shown in the chat view."""
    return f'<div class="ai-reply">{markup}</div>'
