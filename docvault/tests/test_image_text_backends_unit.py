import unittest

from docvault.services.documents.errors import EmptyBuffer, UnsupportedDocument
from docvault.services.preview.image_backend import ImageBackend, fit_within
from docvault.services.preview.text_backend import TextBackend, build_text_svg
from docvault.tests._fixtures import make_jpeg, make_png, png_size


class TestImageBackendUnit(unittest.TestCase):
    def test_large_image_is_bounded_and_keeps_aspect_ratio(self):
        out = ImageBackend(max_edge=800).render(make_png(1600, 400))
        self.assertTrue(out.startswith(b"\x89PNG"))
        self.assertEqual(png_size(out), (800, 200))

        tall = fit_within(make_jpeg(300, 2400))
        self.assertEqual(png_size(tall), (100, 800))

    def test_small_image_is_not_upscaled(self):
        self.assertEqual(png_size(fit_within(make_png(120, 90))), (120, 90))

    def test_empty_and_undecodable(self):
        with self.assertRaises(EmptyBuffer):
            fit_within(b"")
        with self.assertRaises(UnsupportedDocument):
            fit_within(b"definitely not an image")


class TestTextBackendUnit(unittest.TestCase):
    def test_height_follows_line_count(self):
        out = TextBackend().render(b"one\ntwo\nthree")
        self.assertEqual(png_size(out), (800, 40 + 3 * 24))

    def test_long_text_is_capped(self):
        data = ("line\n" * 500).encode("utf-8")
        self.assertEqual(png_size(TextBackend().render(data)), (800, 600))

        svg = build_text_svg(("Q" * 5000).encode("utf-8"))
        self.assertEqual(svg.count("Q"), 2000)

    def test_markup_and_invalid_utf8(self):
        svg = build_text_svg(b"<html>&\xff\r\n\tend")
        self.assertIn("&lt;html&gt;&amp;\ufffd", svg)
        self.assertIn('xml:space="preserve"', svg)
        self.assertIn("    end", svg)
        TextBackend().render(b'{"key": "value"}')


if __name__ == "__main__":
    unittest.main()
