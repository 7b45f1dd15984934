"""Image composition service using PIL."""

from __future__ import annotations

from typing import Tuple

from PIL import Image, ImageDraw, ImageFont, ImageOps

Color = Tuple[int, int, int]


class ImageEditor:
  """Service for composing story pages and share images using PIL."""

  def create_blank_image(
      self,
      width: int,
      height: int,
      color: Color = (255, 255, 255),
  ) -> Image.Image:
    """Create a new blank RGB image of specified size."""
    return Image.new('RGB', (width, height), color)

  def fit_image(self, image: Image.Image, width: int,
                height: int) -> Image.Image:
    """Scale and center-crop the image to exactly width x height."""
    if image.mode not in ('RGB', 'RGBA'):
      image = image.convert('RGB')
    return ImageOps.fit(image, (width, height),
                        method=Image.Resampling.LANCZOS)

  def round_corners(self, image: Image.Image, radius: int) -> Image.Image:
    """Return an RGBA copy of the image with rounded corners."""
    rounded = image.convert('RGBA')
    mask = Image.new('L', rounded.size, 0)
    ImageDraw.Draw(mask).rounded_rectangle(
      (0, 0, rounded.width - 1, rounded.height - 1),
      radius=radius,
      fill=255,
    )
    rounded.putalpha(mask)
    return rounded

  def paste_image(
    self,
    base_image: Image.Image,
    image_to_paste: Image.Image,
    x: int,
    y: int,
  ) -> Image.Image:
    """Paste image_to_paste onto base_image at (x, y), respecting alpha."""
    if image_to_paste.mode == 'RGBA':
      base_image.paste(image_to_paste, (x, y), image_to_paste)
    else:
      base_image.paste(image_to_paste, (x, y))
    return base_image

  def get_font(self, size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    """Return the default font at the given size."""
    return ImageFont.load_default(size=size)

  def wrap_text(
    self,
    text: str,
    font: ImageFont.ImageFont | ImageFont.FreeTypeFont,
    max_width: int,
  ) -> list[str]:
    """Greedily wrap text into lines no wider than max_width.

    Newlines in the text are kept as line breaks. A single word wider than
    max_width gets a line of its own.
    """
    lines: list[str] = []
    for paragraph in text.split('\n'):
      words = paragraph.split()
      if not words:
        lines.append('')
        continue
      current = words[0]
      for word in words[1:]:
        candidate = f"{current} {word}"
        if font.getlength(candidate) <= max_width:
          current = candidate
        else:
          lines.append(current)
          current = word
      lines.append(current)
    return lines

  def line_height(self, font: ImageFont.ImageFont | ImageFont.FreeTypeFont,
                  spacing: float = 1.5) -> int:
    """Height of one line of text in pixels, including spacing."""
    left, top, right, bottom = font.getbbox("Ag")
    del left, right
    return max(1, int(round((bottom - top) * spacing)))

  def draw_lines(
    self,
    image: Image.Image,
    lines: list[str],
    font: ImageFont.ImageFont | ImageFont.FreeTypeFont,
    *,
    x: int,
    y: int,
    fill: Color,
    spacing: float = 1.5,
    center_width: int | None = None,
  ) -> int:
    """Draw lines of text and return the y coordinate below the last line.

    With center_width, each line is centered within [x, x + center_width].
    """
    draw = ImageDraw.Draw(image)
    step = self.line_height(font, spacing)
    for line in lines:
      line_x = x
      if center_width is not None:
        line_x = x + int((center_width - font.getlength(line)) / 2)
      draw.text((line_x, y), line, font=font, fill=fill)
      y += step
    return y
