"""PDF operations."""

from io import BytesIO

import img2pdf
from PIL import Image
from services.image_editor import ImageEditor

_PDF_POINTS_PER_INCH = 72
_MM_PER_INCH = 25.4

# A4 portrait, rendered at _DPI
_DPI = 150
_PAGE_WIDTH_MM = 210
_PAGE_HEIGHT_MM = 297
_MARGIN_MM = 20
_COVER_SIZE_MM = 170
_TITLE_SIZE_PT = 24
_CONTENT_SIZE_PT = 14
_LINE_SPACING = 1.5

_TEXT_COLOR = (51, 51, 51)


def _mm_to_px(mm: float, dpi: int = _DPI) -> int:
  return int(round(mm / _MM_PER_INCH * dpi))


def _pt_to_px(points: float, dpi: int = _DPI) -> int:
  return int(round(points / _PDF_POINTS_PER_INCH * dpi))


def create_pdf(
  images: list[Image.Image],
  dpi: int = _DPI,
  quality: int = 85,
) -> bytes:
  """Creates a PDF with one page per image.

  Args:
      images: PIL images, one per page.
      dpi: DPI of the images in the PDF; sets the physical page size.
      quality: JPEG quality of the images in the PDF.

  Returns:
      The PDF bytes.
  """
  if not images:
    raise ValueError("No images to convert to PDF")

  jpeg_bytes_list = []
  for img in images:
    # JPEG has no alpha channel
    if img.mode != 'RGB':
      img = img.convert('RGB')
    buffer = BytesIO()
    img.save(buffer, format='JPEG', quality=quality, dpi=(dpi, dpi))
    jpeg_bytes_list.append(buffer.getvalue())

  return img2pdf.convert(jpeg_bytes_list)


def render_story_pages(
  title: str,
  content: str,
  cover_image: Image.Image | None = None,
  editor: ImageEditor | None = None,
) -> list[Image.Image]:
  """Lay out a story as A4 page images.

  The first page holds the cover (when given), the title and the start of
  the content. Content that does not fit continues on following pages.
  """
  editor = editor or ImageEditor()
  page_width = _mm_to_px(_PAGE_WIDTH_MM)
  page_height = _mm_to_px(_PAGE_HEIGHT_MM)
  margin = _mm_to_px(_MARGIN_MM)
  text_width = page_width - margin * 2

  title_font = editor.get_font(_pt_to_px(_TITLE_SIZE_PT))
  content_font = editor.get_font(_pt_to_px(_CONTENT_SIZE_PT))
  content_line_height = editor.line_height(content_font, _LINE_SPACING)

  page = editor.create_blank_image(page_width, page_height)
  y = margin

  if cover_image is not None:
    cover_size = _mm_to_px(_COVER_SIZE_MM)
    cover = editor.fit_image(cover_image, cover_size, cover_size)
    editor.paste_image(page, cover, (page_width - cover_size) // 2, y)
    y += cover_size + margin

  title_lines = editor.wrap_text(title, title_font, text_width)
  y = editor.draw_lines(page,
                        title_lines,
                        title_font,
                        x=margin,
                        y=y,
                        fill=_TEXT_COLOR,
                        spacing=1.2)
  y += margin // 2

  pages = [page]
  for line in editor.wrap_text(content, content_font, text_width):
    if y + content_line_height > page_height - margin:
      page = editor.create_blank_image(page_width, page_height)
      pages.append(page)
      y = margin
    y = editor.draw_lines(page, [line],
                          content_font,
                          x=margin,
                          y=y,
                          fill=_TEXT_COLOR,
                          spacing=_LINE_SPACING)

  return pages


def create_story_pdf(
  title: str,
  content: str,
  cover_image: Image.Image | None = None,
) -> bytes:
  """Render a story, with optional cover, as PDF bytes."""
  pages = render_story_pages(title, content, cover_image)
  return create_pdf(pages, dpi=_DPI)
