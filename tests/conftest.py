import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

READABLE_SENTENCE = "The cat sat on the mat."


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def encrypted_pdf_bytes() -> bytes:
    """Generate a PDF that cannot be opened without the user password."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter, encrypt="secret")
    c.drawString(72, 720, "Top secret content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def readable_pdf_bytes() -> bytes:
    """Generate a two-page PDF of short, simple sentences."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for _page in range(2):
        y = 720
        for _ in range(30):
            c.drawString(72, y, f"{READABLE_SENTENCE} {READABLE_SENTENCE}")
            y -= 20
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def short_pdf_bytes() -> bytes:
    """Generate a PDF whose only text is a single short word."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Short")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def long_paragraph_pdf_bytes() -> bytes:
    """Generate a PDF holding one 5000-word paragraph of short sentences."""
    words = READABLE_SENTENCE.split() * 834
    words = words[:5000]
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    y = 740
    for start in range(0, len(words), 12):
        c.drawString(54, y, " ".join(words[start : start + 12]))
        y -= 14
        if y < 54:
            c.showPage()
            y = 740
    c.save()
    return buf.getvalue()
