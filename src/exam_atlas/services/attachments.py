"""
Module: services.attachments

Purpose:
    Turn uploaded files into model attachments. Images are decoded with
    Pillow; PDFs (global mark schemes, scanned fragments saved as PDF) are
    rendered page by page with PyMuPDF.

Key Functions:
    - load_images(): FileRefs -> PIL images, PDFs expanded to pages
    - render_pdf_pages(): Render every page of a PDF
    - pdf_page_count(): Page count for resource metadata

Dependencies:
    - fitz (PyMuPDF): PDF rendering
    - PIL.Image: Image decoding
"""

from __future__ import annotations

import io
import logging
from typing import Iterable, Optional

import fitz
from PIL import Image, UnidentifiedImageError

from exam_atlas.core.models.files import FileRef

logger = logging.getLogger(__name__)

DEFAULT_DPI = 150


def render_pdf_pages(file: FileRef, dpi: int = DEFAULT_DPI) -> list[Image.Image]:
    """
    Render every page of a PDF to an RGB image.

    Args:
        file: PDF file
        dpi: Render resolution. Defaults to 150.

    Returns:
        One image per page, in page order
    """
    pages = []
    with fitz.open(stream=file.data, filetype="pdf") as doc:
        for page in doc:
            pix = page.get_pixmap(dpi=dpi)
            pages.append(Image.frombytes("RGB", (pix.width, pix.height), pix.samples))
    logger.debug(f"Rendered {len(pages)} page(s) from {file.name}")
    return pages


def pdf_page_count(file: FileRef) -> Optional[int]:
    """Page count of a PDF, or None if the file is not a readable PDF."""
    if not file.is_pdf:
        return None
    try:
        with fitz.open(stream=file.data, filetype="pdf") as doc:
            return doc.page_count
    except (fitz.FileDataError, RuntimeError) as e:
        logger.warning(f"Could not read PDF {file.name}: {e}")
        return None


def load_images(files: Iterable[Optional[FileRef]], dpi: int = DEFAULT_DPI) -> list[Image.Image]:
    """
    Decode files into images for a multimodal request.

    Missing entries are skipped. Files that cannot be decoded are logged
    and skipped so one bad scan does not sink the whole request.

    Args:
        files: Question, scheme or resource files (None allowed)
        dpi: Render resolution for PDFs

    Returns:
        Images in input order, PDFs expanded to their pages
    """
    images: list[Image.Image] = []
    for file in files:
        if file is None or not file.data:
            continue
        try:
            if file.is_pdf:
                images.extend(render_pdf_pages(file, dpi))
            else:
                with Image.open(io.BytesIO(file.data)) as img:
                    images.append(img.convert("RGB"))
        except (UnidentifiedImageError, fitz.FileDataError, RuntimeError, OSError) as e:
            logger.warning(f"Skipping attachment {file.name}: {e}")
    return images
