"""Tests for the pdf_client module."""

import pytest
from PIL import Image
from services import pdf_client


def test_create_pdf_returns_pdf_bytes():
  images = [Image.new('RGBA', (100, 140), (255, 0, 0, 128))]

  pdf_bytes = pdf_client.create_pdf(images)

  assert pdf_bytes.startswith(b"%PDF")


def test_create_pdf_requires_images():
  with pytest.raises(ValueError):
    pdf_client.create_pdf([])


def test_render_story_pages_a4_size():
  pages = pdf_client.render_story_pages("Title", "Short story.")

  assert len(pages) == 1
  # A4 at 150 DPI
  assert pages[0].size == (1240, 1754)


def test_render_story_pages_paginates_long_content():
  content = "\n\n".join(["The bunny hopped over the hill and home again."] *
                        120)

  pages = pdf_client.render_story_pages("Title", content)

  assert len(pages) > 1


def test_render_story_pages_with_cover_uses_more_space():
  content = "\n".join(["A line of the story."] * 60)
  cover = Image.new('RGB', (300, 200), (0, 128, 0))

  without_cover = pdf_client.render_story_pages("Title", content)
  with_cover = pdf_client.render_story_pages("Title", content, cover)

  assert len(with_cover) >= len(without_cover)
  # The cover is drawn near the top-center of the first page.
  red, green, blue = with_cover[0].getpixel((620, 200))
  assert red < 20 and green > 100 and blue < 20


def test_create_story_pdf():
  assert pdf_client.create_story_pdf("Title", "Body").startswith(b"%PDF")
