"""
DOCX export for generated documents.

Converts the HTML fragments produced by the generation operations into a
Word document and hands it back base64-encoded, ready for a download button.
"""

import base64
import io
import re
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from docx import Document
from docx.shared import Pt
from docx.text.paragraph import Paragraph

from ..utils import get_logger

logger = get_logger(__name__)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 3, "h5": 3, "h6": 3}
CONTAINER_TAGS = {"div", "section", "article", "main", "header", "footer", "body", "html"}
BOLD_TAGS = {"strong", "b"}
ITALIC_TAGS = {"em", "i"}

class DocumentExportError(Exception):
    """The HTML could not be turned into a document."""

def sanitize_filename(text: str) -> str:
    """Sanitize text for use in filenames."""
    sanitized = re.sub(r'[^\w\s-]', '', text or "")
    sanitized = re.sub(r'[-\s]+', '_', sanitized).strip('_')
    return sanitized.lower() or "document"

class DocxExporter:
    """Renders HTML fragments (headings, paragraphs, lists) into DOCX."""

    def __init__(self, font_name: str = "Calibri", font_size: int = 11):
        self.font_name = font_name
        self.font_size = font_size

    def convert(self, html: str) -> bytes:
        """Convert an HTML fragment into DOCX bytes."""
        if not html or not html.strip():
            raise DocumentExportError("There is no content to export")

        try:
            document = Document()
            self._setup_styles(document)

            soup = BeautifulSoup(html, "html.parser")
            for element in soup(["script", "style", "head", "title"]):
                element.decompose()
            self._render_children(document, soup)

            buffer = io.BytesIO()
            document.save(buffer)
            return buffer.getvalue()
        except DocumentExportError:
            raise
        except Exception as e:
            logger.error(f"Error converting HTML to DOCX: {e}")
            raise DocumentExportError(f"Could not convert document: {e}") from e

    def to_base64(self, html: str) -> str:
        """Convert an HTML fragment into a base64-encoded DOCX payload."""
        return base64.b64encode(self.convert(html)).decode("ascii")

    def _setup_styles(self, document) -> None:
        style = document.styles['Normal']
        style.font.name = self.font_name
        style.font.size = Pt(self.font_size)

    def _render_children(self, document, parent: Tag, list_depth: int = 0) -> None:
        for child in parent.children:
            if isinstance(child, NavigableString):
                text = str(child).strip()
                if text:
                    document.add_paragraph(text)
            elif isinstance(child, Tag):
                self._render_block(document, child, list_depth)

    def _render_block(self, document, element: Tag, list_depth: int) -> None:
        name = element.name.lower()

        if name in HEADING_LEVELS:
            text = element.get_text(" ", strip=True)
            if text:
                document.add_heading(text, level=HEADING_LEVELS[name])
        elif name == "p":
            paragraph = document.add_paragraph()
            self._add_inline(paragraph, element)
        elif name in ("ul", "ol"):
            self._render_list(document, element, ordered=(name == "ol"), depth=list_depth + 1)
        elif name == "blockquote":
            paragraph = document.add_paragraph(style="Quote")
            self._add_inline(paragraph, element)
        elif name == "hr":
            document.add_paragraph()
        elif name == "br":
            return
        elif name in CONTAINER_TAGS:
            self._render_children(document, element, list_depth)
        else:
            # Inline or unknown element at block level
            paragraph = document.add_paragraph()
            self._add_inline(paragraph, element)

    def _render_list(self, document, element: Tag, ordered: bool, depth: int) -> None:
        base = "List Number" if ordered else "List Bullet"
        style = base if depth <= 1 else f"{base} {min(depth, 3)}"
        for item in element.find_all("li", recursive=False):
            paragraph = document.add_paragraph(style=style)
            nested = []
            for child in item.children:
                if isinstance(child, Tag) and child.name in ("ul", "ol"):
                    nested.append(child)
                else:
                    self._add_inline(paragraph, child)
            for sub_list in nested:
                self._render_list(document, sub_list, ordered=(sub_list.name == "ol"), depth=depth + 1)

    def _add_inline(self, paragraph: Paragraph, node, bold: bool = False, italic: bool = False) -> None:
        if isinstance(node, NavigableString):
            text = re.sub(r"\s+", " ", str(node))
            if text.strip() or (text and paragraph.runs):
                run = paragraph.add_run(text)
                run.bold = bold or None
                run.italic = italic or None
            return

        if not isinstance(node, Tag):
            return

        name = node.name.lower()
        if name == "br":
            paragraph.add_run().add_break()
            return

        bold = bold or name in BOLD_TAGS
        italic = italic or name in ITALIC_TAGS
        for child in node.children:
            self._add_inline(paragraph, child, bold=bold, italic=italic)

        if name == "a":
            href: Optional[str] = node.get("href")
            text = node.get_text(strip=True)
            if href and not href.startswith("mailto:") and href != text:
                paragraph.add_run(f" ({href})")

def html_to_docx_base64(html: str) -> str:
    """Convert an HTML fragment to a base64-encoded DOCX document."""
    return DocxExporter().to_base64(html)
