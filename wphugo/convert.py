"""HTML to Markdown conversion for WordPress ``content.rendered``.

This is a fixed table of regex substitutions, applied once each and in
order.  It only knows about the handful of tags the block editor emits for
plain posts (headings, paragraphs, bold, italics and images); anything else
is stripped down to its text.  Nested or multi-line elements are not
understood, which is fine for the WordPress output it is fed.
"""
import html
import logging
import re

import requests

logger = logging.getLogger(__name__)

IMG_PATTERN = re.compile(r"""<img\s+[^>]*src=["']([^"']+)["'][^>]*>""")

CONVERSIONS = [
    (re.compile(r"<h1[^>]*>(.*?)</h1>"), "# \\1\n"),
    (re.compile(r"<h2[^>]*>(.*?)</h2>"), "## \\1\n"),
    (re.compile(r"<h3[^>]*>(.*?)</h3>"), "### \\1\n"),
    (re.compile(r"<p[^>]*>(.*?)</p>"), "\\1\n\n"),
    (re.compile(r"<strong>(.*?)</strong>"), "**\\1**"),
    (re.compile(r"<em>(.*?)</em>"), "*\\1*"),
    (re.compile(r"</?[^>]*>"), ""),
]

def replace_images(markup, image_handler=None):
    """Swap each ``<img>`` for a Markdown image.

    ``image_handler`` takes the remote URL and returns the path to reference
    (normally after downloading it).  Images whose download fails are
    dropped from the output.
    """
    def repl(match):
        if image_handler is None:
            # left escaped, html_to_markdown unescapes the whole document once
            return f"![]({match.group(1)})"
        src = html.unescape(match.group(1))
        try:
            local = image_handler(src)
        except (requests.RequestException, OSError, RuntimeError) as e:
            logger.warning("Image download failed for %s: %s", src, e)
            return ""
        return f"![]({local})"
    return IMG_PATTERN.sub(repl, markup)

def html_to_markdown(markup, image_handler=None):
    markdown = replace_images(markup, image_handler)
    for pattern, replacement in CONVERSIONS:
        markdown = pattern.sub(replacement, markdown)
    return html.unescape(markdown)

class MarkdownConverter:
    def __init__(self, image_handler=None):
        self.image_handler = image_handler

    def __call__(self, markup):
        return html_to_markdown(markup, self.image_handler)
