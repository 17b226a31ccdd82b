"""Unit tests for ResponseFormatter."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import pytest
from services.text_formatter import ResponseFormatter, wrap_reply


@pytest.fixture
def formatter():
    """Create ResponseFormatter instance."""
    return ResponseFormatter()


class TestPlainText:
    """Plain prose only gains line breaks."""

    def test_newlines_become_breaks(self, formatter):
        assert formatter.format("Hello there\nSecond line") == "Hello there<br>Second line"

    def test_single_line_is_unchanged(self, formatter):
        text = "Nothing to format here, just words."
        assert formatter.format(text) == text

    @pytest.mark.parametrize("raw", ["", None])
    def test_empty_input_returns_empty_string(self, formatter, raw):
        assert formatter.format(raw) == ""

    def test_html_in_prose_is_escaped(self, formatter):
        assert formatter.format("1 < 2 & <b>") == "1 &lt; 2 &amp; &lt;b&gt;"


class TestHeadingsAndRules:

    def test_heading_markers_removed(self, formatter):
        assert formatter.format("## Title\nBody") == "Title<br>Body"

    def test_horizontal_rule_deleted(self, formatter):
        assert formatter.format("Intro\n---\nOutro") == "Intro<br>Outro"
        assert formatter.format("Intro\n***\nOutro") == "Intro<br>Outro"

    def test_blank_runs_collapsed(self, formatter):
        assert formatter.format("a\n\n\nb") == "a<br>b"


class TestInlineEmphasis:

    def test_bold_italic_and_inline_code(self, formatter):
        result = formatter.format("**bold** and *it* and `x*y*`")
        assert result == (
            "<strong>bold</strong> and <em>it</em> and "
            "<code class='inline-code'>x*y*</code>"
        )


class TestCodeBlocks:
    """Fenced code is extracted verbatim and escaped."""

    def test_code_block_content_is_escaped_and_untouched(self, formatter):
        raw = '```js\nlet a = 1<2 && "*x*";\n```'
        result = formatter.format(raw)

        assert result == (
            '<pre class="code-block"><div class="code-header">js</div>'
            '<code>let a = 1&lt;2 &amp;&amp; "*x*";\n</code></pre>'
        )
        assert "<em>" not in result

    def test_default_label_and_comment_lines_survive(self, formatter):
        result = formatter.format("```\n# keep me\n**not bold**\n```")

        assert '<div class="code-header">Code</div>' in result
        assert "# keep me" in result
        assert "**not bold**" in result
        assert "<strong>" not in result

    def test_pipes_inside_code_do_not_make_tables(self, formatter):
        result = formatter.format("```sh\ncat file | grep x\n```")
        assert "table" not in result
        assert "cat file | grep x" in result

    def test_breaks_around_code_block(self, formatter):
        result = formatter.format("Run:\n```sh\nls\n```\nDone")
        assert result == (
            'Run:<br><pre class="code-block"><div class="code-header">sh</div>'
            '<code>ls\n</code></pre><br>Done'
        )

    def test_unclosed_fence_degrades_to_text(self, formatter):
        result = formatter.format("```python\nprint(1)")
        assert "print(1)" in result
        assert "code-block" not in result


class TestTables:

    def test_separator_dropped_and_rows_kept(self, formatter):
        result = formatter.format("a|b\n-|-\nc|d\n")

        assert result == (
            '<div class="table-wrapper"><table class="markdown-table">'
            "<tr><td>a</td><td>b</td></tr>"
            "<tr><td>c</td><td>d</td></tr>"
            "</table></div>"
        )

    def test_no_break_after_table_rows(self, formatter):
        raw = "Intro\n| x | y |\n|---|---|\n| 1 | 2 |\nAfter"
        result = formatter.format(raw)

        assert result.startswith("Intro<br><div class=\"table-wrapper\">")
        assert result.endswith("</table></div>After")
        assert result.count("<tr>") == 2
        assert "<th>" not in result

    def test_emphasis_inside_cells(self, formatter):
        result = formatter.format("| **Name** | `id` |")
        assert "<td><strong>Name</strong></td>" in result
        assert "<td><code class='inline-code'>id</code></td>" in result


class TestMath:

    def test_inline_dollar_math(self, formatter):
        result = formatter.format(r"Euler: $e^{i\pi}+1=0$")
        assert result == r'Euler: <span class="math-inline">\(e^{i\pi}+1=0\)</span>'

    def test_block_math_keeps_its_newlines(self, formatter):
        result = formatter.format("$$\na < b\n$$")
        assert result == '<div class="math-block">\\(\na &lt; b\n\\)</div>'

    def test_bracket_and_paren_delimiters(self, formatter):
        result = formatter.format(r"\[x^2\] and \(y\)")
        assert '<div class="math-block">\\(x^2\\)</div>' in result
        assert '<span class="math-inline">\\(y\\)</span>' in result

    def test_math_is_not_mistaken_for_code(self, formatter):
        result = formatter.format(r"\(x\) and `code`")
        assert result == (
            r'<span class="math-inline">\(x\)</span> and '
            "<code class='inline-code'>code</code>"
        )

    def test_pipes_inside_math_do_not_make_tables(self, formatter):
        result = formatter.format("$|x|$ is the absolute value")
        assert "table" not in result
        assert '<span class="math-inline">\\(|x|\\)</span>' in result


def test_wrap_reply():
    assert wrap_reply("<em>hi</em>") == '<div class="ai-reply"><em>hi</em></div>'
