"""
HTML Sanitizer
Strips quoted history, document wrappers and inline markup from ticket text
"""

import re

# Inline markup RT's rich-text editor emits; removed verbatim
INLINE_TAGS = (
    "<p>",
    "</p>",
    "<ol>",
    "</ol>",
    "<li>",
    "</li>",
    "<br />",
    "<strong>",
    "</strong>",
)

DOCUMENT_WRAPPER_PATTERN = re.compile(r"</?(?:html|body)\b[^>]*>", re.IGNORECASE)


def strip_block(text: str, tag: str) -> str:
    """
    Remove every `<tag ...>...</tag>` span from text.

    Each pass splices from the first opening marker to the first closing
    marker. When the closing marker comes before the opening one (a tag
    nested in itself, matched out of order), the pass splices a second time
    using the same offsets on the shortened text. A pass that finds only one
    of the two markers returns its input unchanged.

    Self-nesting deeper than two levels is not fully balanced, e.g.
    "before<div><div>a <div>b</div> </div></div>" gives "before </div></div>".

    Args:
        text: Text to clean
        tag: Tag name without brackets, e.g. "blockquote"

    Returns:
        Text with the blocks removed
    """
    opening = f"<{tag}"
    closing = f"</{tag}>"

    while True:
        open_at = text.find(opening)
        close_at = text.find(closing)
        if open_at == -1 or close_at == -1:
            return text

        spliced = text[:open_at] + text[close_at + len(closing):]
        if opening not in spliced and closing not in spliced:
            return spliced

        if open_at < close_at:
            text = spliced
        else:
            text = spliced[:close_at] + spliced[open_at + len(opening):]


def strip_inline_tags(text: str) -> str:
    """Remove paragraph, list, line-break and bold tags"""
    if not text:
        return text
    for token in INLINE_TAGS:
        text = text.replace(token, "")
    return text


def strip_document_wrappers(text: str) -> str:
    """Drop <head> blocks and the <html>/<body> wrapper tags around a message"""
    if not text:
        return text
    text = strip_block(text, "head")
    return DOCUMENT_WRAPPER_PATTERN.sub("", text)


def sanitize_description(text: str, strip_inline: bool = True) -> str:
    """
    Clean one message for the description column.

    Quoted replies (<blockquote>) are removed first so earlier messages are
    not repeated in every later fragment.
    """
    if not text:
        return text
    text = strip_block(text, "blockquote")
    text = strip_document_wrappers(text)
    if strip_inline:
        text = strip_inline_tags(text)
    return text.strip()
