"""
Shipping label rendering.

The label is drawn with Pillow on an A5 canvas and saved as a one page PDF.
The scannable code is a Code 128 barcode produced by python-barcode.
"""

import io
import textwrap
from typing import List

from barcode import Code128
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont

# A5 portrait in points (420 x 594) rendered at 2x
DPI = 144
PAGE_SIZE = (840, 1188)
MARGIN = 40
ADDRESS_WRAP = 40

BARCODE_OPTIONS = {
    'module_width': 0.3,
    'module_height': 15.0,
    'quiet_zone': 2.0,
    'dpi': DPI,
    'write_text': False,
}


def scannable_payload(order_id: int, tracking_id: str) -> str:
    return f"ORDER:{order_id}|TRACK:{tracking_id}"


def render_scannable_code(payload: str) -> bytes:
    """Code 128 barcode for payload, as PNG bytes"""
    if not payload or not isinstance(payload, str):
        raise ValueError("payload must be a non-empty string")

    buffer = io.BytesIO()
    Code128(payload, writer=ImageWriter()).write(buffer, options=BARCODE_OPTIONS)
    return buffer.getvalue()


def wrap_address(address_lines: List[str], width: int = ADDRESS_WRAP) -> List[str]:
    wrapped = []
    for line in address_lines:
        wrapped.extend(textwrap.wrap(line, width=width) or [''])
    return wrapped


def render_label(order_id: int, tracking_id: str, recipient_name: str, address_lines: List[str]) -> bytes:
    """Render the shipping label and return the PDF bytes"""
    page = Image.new('RGB', PAGE_SIZE, 'white')
    draw = ImageDraw.Draw(page)
    title_font = ImageFont.load_default(size=36)
    font = ImageFont.load_default(size=24)
    width, height = PAGE_SIZE

    draw.rectangle([MARGIN, MARGIN, width - MARGIN, height - MARGIN], outline=(51, 51, 51), width=2)

    y = MARGIN + 40
    draw.text((MARGIN + 20, y), "Shipping Label", font=title_font, fill=(26, 26, 26))
    y += 70
    draw.text((MARGIN + 20, y), f"Order ID: {order_id}", font=font, fill='black')
    y += 40
    draw.text((MARGIN + 20, y), f"Tracking: {tracking_id}", font=font, fill='black')
    y += 60
    draw.text((MARGIN + 20, y), "Ship To:", font=font, fill='black')
    y += 40
    draw.text((MARGIN + 20, y), recipient_name or '', font=font, fill='black')
    y += 36
    for line in wrap_address(address_lines):
        draw.text((MARGIN + 20, y), line, font=font, fill='black')
        y += 32

    code = Image.open(io.BytesIO(render_scannable_code(scannable_payload(order_id, tracking_id))))
    code.thumbnail((width - 2 * MARGIN - 40, 260))
    page.paste(code, ((width - code.width) // 2, height - MARGIN - 40 - code.height))

    output = io.BytesIO()
    page.save(output, format='PDF', resolution=float(DPI))
    return output.getvalue()
