"""
DOCUMENT READER
---------------
Convert invoice images and PDFs to base64 for Vision API usage.
"""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path
from typing import Optional


def guess_mime_type(filename: str, default: str = "image/png") -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or default


def encode_document(data: bytes, filename: str, mime_type: Optional[str] = None) -> tuple[str, str]:
    """
    Encode raw document bytes for transport.

    Args:
        data: File content
        filename: Used for MIME type detection when mime_type is not given

    Returns:
        Tuple of (mime_type, base64_string)
    """
    if not data:
        raise ValueError(f"Document is empty: {filename}")
    encoded = base64.b64encode(data).decode("utf-8")
    return mime_type or guess_mime_type(filename), encoded


def image_to_base64(image_path: Path) -> tuple[str, str]:
    """
    Convert an invoice file on disk to base64 with MIME type detection.

    Returns:
        Tuple of (mime_type, base64_string)
    """
    image_path = image_path.expanduser().resolve()
    if not image_path.exists():
        raise FileNotFoundError(f"Invoice file not found: {image_path}")
    return encode_document(image_path.read_bytes(), image_path.name)


def to_data_url(mime_type: str, b64_data: str) -> str:
    """Data URL format for API calls (data:image/png;base64,...)."""
    return f"data:{mime_type};base64,{b64_data}"
