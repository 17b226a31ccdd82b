"""Reduce a raw answer to plain text suitable for speech synthesis."""
import re

HTML_TABLE = re.compile(r"<table[\s\S]*?</table>", re.IGNORECASE)
PIPE_TABLE = re.compile(r"^[^\n]*\|[^\n]*(?:\n|$)", re.MULTILINE)
TAG = re.compile(r"<[^>]*>")
EMOJI = re.compile(
    "["
    "\U0001F300-\U0001FAFF"  # emoji and pictographs
    "\u2600-\u27BF"  # misc symbols and dingbats
    "\uFE0F"  # emoji variation selector
    "]"
)
MARKDOWN_MARKERS = re.compile(r"[`*_#>\[\]{}]")
PUNCTUATION = re.compile(r"[.;!?:\"“”]")
WHITESPACE = re.compile(r"\s+")


def clean_for_speech(raw: str) -> str:
    """
    Strip tables, markup, emoji and punctuation from a raw answer.

    Returns "" when nothing speakable remains; callers should not speak then.
    """
    if not raw:
        return ""

    text = HTML_TABLE.sub("", raw)
    text = PIPE_TABLE.sub("", text)
    text = TAG.sub(" ", text)
    text = EMOJI.sub("", text)
    text = MARKDOWN_MARKERS.sub("", text)
    text = PUNCTUATION.sub("", text)
    return WHITESPACE.sub(" ", text).strip()
