from __future__ import annotations

from io import BytesIO

from PIL import Image

from render.layers import PIN_PENDING, PIN_RECOVERED, PIN_REPORTED
from render.pins import generate_all_pins, generate_pin
from settings.types import PinStyle


def test_all_pin_variants_are_generated_at_configured_size():
    pins = generate_all_pins(PinStyle())
    assert set(pins) == {PIN_REPORTED, PIN_RECOVERED, PIN_PENDING}
    for image in pins.values():
        assert (image.width, image.height) == (48, 64)
        assert image.data.startswith(b"\x89PNG")
        with Image.open(BytesIO(image.data)) as img:
            assert img.size == (48, 64)
            assert img.mode == "RGBA"


def test_pin_head_uses_fill_color_and_corners_are_transparent():
    image = generate_pin("#EF4444", width=48, height=64)
    with Image.open(BytesIO(image.data)) as img:
        rgba = img.convert("RGBA")
        assert rgba.getpixel((0, 0))[3] == 0
        # Left of the white centre dot, inside the head.
        r, g, b, a = rgba.getpixel((10, 22))
        assert a == 255
        assert (r, g, b) == (0xEF, 0x44, 0x44)


def test_variants_differ_by_color():
    pins = generate_all_pins(PinStyle())
    assert pins[PIN_REPORTED].data != pins[PIN_RECOVERED].data
    assert pins[PIN_RECOVERED].data != pins[PIN_PENDING].data
