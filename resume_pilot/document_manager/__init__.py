"""
Document Manager Module

This module provides document export for generated application materials.
"""

from .docx_exporter import (
    DocxExporter,
    DocumentExportError,
    DOCX_MIME_TYPE,
    html_to_docx_base64,
    sanitize_filename
)

__all__ = [
    'DocxExporter',
    'DocumentExportError',
    'DOCX_MIME_TYPE',
    'html_to_docx_base64',
    'sanitize_filename'
]
