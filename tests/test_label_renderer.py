import io

import pdfplumber
from PIL import Image

from storefront.backend.label_renderer import (
    render_label,
    render_scannable_code,
    scannable_payload,
    wrap_address,
)


def test_payload_format():
    assert scannable_payload(42, 'TRK1') == 'ORDER:42|TRACK:TRK1'


def test_scannable_code_is_png():
    png = render_scannable_code('ORDER:42|TRACK:TRK1700000000000')
    image = Image.open(io.BytesIO(png))
    assert image.format == 'PNG'
    assert image.width > image.height


def test_label_is_single_a5_page():
    pdf_bytes = render_label(42, 'TRK1700000000000', 'Jane Doe',
                             ['12 Market Street', 'Springfield', 'IL', '62701', 'US'])

    assert pdf_bytes.startswith(b'%PDF')
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        assert len(pdf.pages) == 1
        page = pdf.pages[0]
        assert round(page.width) == 420
        assert round(page.height) == 594


def test_long_address_lines_are_wrapped():
    lines = wrap_address(['Apartment 5B, The Old Jewellery Quarter Building, 221 Vyse Street'])
    assert len(lines) > 1
    assert all(len(line) <= 40 for line in lines)
