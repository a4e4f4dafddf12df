"""
HTML helpers shared by generation, export and the UI.
"""

import re
from typing import Tuple

from bs4 import BeautifulSoup

WRAPPER_TAG_PATTERN = re.compile(r"<\s*/?\s*(html|head|body)\b[^>]*>", re.IGNORECASE)
HEAD_BLOCK_PATTERN = re.compile(r"<\s*head\b[^>]*>.*?<\s*/\s*head\s*>", re.IGNORECASE | re.DOTALL)
DOCTYPE_PATTERN = re.compile(r"<!doctype[^>]*>", re.IGNORECASE)

def strip_wrapper_tags(html: str) -> Tuple[str, bool]:
    """
    Reduce a full HTML document to its body fragment.

    Returns the fragment and whether anything was removed. Head content is
    dropped entirely; body content is kept.
    """
    if not html:
        return "", False

    cleaned = HEAD_BLOCK_PATTERN.sub("", html)
    cleaned = DOCTYPE_PATTERN.sub("", cleaned)
    cleaned = WRAPPER_TAG_PATTERN.sub("", cleaned)
    return cleaned.strip(), cleaned.strip() != html.strip()

def strip_code_fences(text: str) -> str:
    """Strip markdown code fences some models wrap around their output."""
    if "```json" in text:
        text = text.split("```json", 1)[1].split("```", 1)[0]
    elif text.strip().startswith("```"):
        text = text.split("```", 2)[1]
        if text.startswith("html"):
            text = text[len("html"):]
    return text.strip()

def html_to_text(html: str) -> str:
    """Plain text of an HTML fragment, one block per line."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style"]):
        element.extract()
    text = soup.get_text(separator="\n")
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)
