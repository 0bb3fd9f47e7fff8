"""
Unit Tests for Attachment Loading
"""

import fitz
import pytest

from exam_atlas.core.models.files import FileRef
from exam_atlas.services.attachments import load_images, pdf_page_count, render_pdf_pages


@pytest.fixture
def pdf_file():
    """Two-page PDF built with PyMuPDF."""
    doc = fitz.open()
    for _ in range(2):
        page = doc.new_page(width=200, height=100)
        page.insert_text((20, 50), "Mark scheme")
    data = doc.tobytes()
    doc.close()
    return FileRef("scheme.pdf", data)


class TestPdf:
    def test_page_count_when_pdf_then_counted(self, pdf_file):
        assert pdf_page_count(pdf_file) == 2

    def test_page_count_when_image_then_none(self, png_file):
        assert pdf_page_count(png_file) is None

    def test_render_when_pdf_then_one_rgb_image_per_page(self, pdf_file):
        pages = render_pdf_pages(pdf_file, dpi=72)
        assert len(pages) == 2
        assert pages[0].mode == "RGB"
        assert pages[0].size == (200, 100)


class TestLoadImages:
    """Tests for load_images."""

    def test_load_when_mixed_inputs_then_pdf_expanded_and_missing_skipped(self, png_file, pdf_file):
        images = load_images([png_file, None, FileRef("empty.png"), pdf_file], dpi=72)
        assert len(images) == 3
        assert images[0].size == (40, 20)

    def test_load_when_bytes_not_an_image_then_skipped_with_warning(self, png_file, caplog):
        images = load_images([FileRef("broken.png", b"not an image"), png_file])
        assert len(images) == 1
        assert "broken.png" in caplog.text
