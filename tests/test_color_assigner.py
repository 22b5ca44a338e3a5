"""Row palette generation, recycling and reserved sentinel colors."""

import unittest

from micromap_package.color_assigner import assign_colors, canonical_color, check_reserved
from micromap_package.errors import InvalidColorError, ReservedColorError


class FixedPalette:
    def __init__(self):
        self.requested = []

    def generate(self, k):
        self.requested.append(k)
        return ['#112233'] * k


class ColorAssignerTests(unittest.TestCase):

    def test_generated_palette_sized_to_request(self):
        colors = assign_colors(5)
        self.assertEqual(len(colors), 5)
        self.assertEqual(len(set(colors)), 5)
        self.assertTrue(all(c.startswith('#') and len(c) == 7 for c in colors))

    def test_palette_provider_used_when_no_palette(self):
        provider = FixedPalette()
        self.assertEqual(assign_colors(3, palette_provider=provider), ['#112233'] * 3)
        self.assertEqual(provider.requested, [3])

    def test_short_palette_is_recycled(self):
        self.assertEqual(assign_colors(5, ['red', 'blue']),
                         ['#ff0000', '#0000ff', '#ff0000', '#0000ff', '#ff0000'])

    def test_long_palette_truncated(self):
        self.assertEqual(assign_colors(1, ['red', 'blue']), ['#ff0000'])

    def test_single_color_string(self):
        self.assertEqual(assign_colors(2, 'steelblue'), ['#4682b4', '#4682b4'])

    def test_reserved_colors_rejected_in_any_spelling(self):
        spellings = [
            'cornsilk', 'CORNSILK', '#fff8dc', '#FFF8DC', '#FFF8DCFF', '#fff8dc80',
            '#FFFFF8F8DCDC', '#fffff8f8dcdc',
            'magenta', 'MAGENTA', 'fuchsia', '#ff00ff', '#F0F', '#FF00FFFF', '#FFFF0000FFFF',
        ]
        for color in spellings:
            with self.subTest(color=color):
                with self.assertRaises(ReservedColorError):
                    assign_colors(3, ['#123456', color])

    def test_sentinel_hex_example(self):
        with self.assertRaises(ReservedColorError):
            assign_colors(1, ['#FFF8DC'])

    def test_near_sentinel_allowed(self):
        self.assertEqual(check_reserved(['#fff8dd', '#fe00ff']), ['#fff8dd', '#fe00ff'])

    def test_unparseable_color(self):
        with self.assertRaises(InvalidColorError):
            assign_colors(2, ['notacolor'])
        with self.assertRaises(InvalidColorError):
            assign_colors(2, [])

    def test_canonical_color(self):
        self.assertEqual(canonical_color('  Red '), '#ff0000')
        self.assertEqual(canonical_color('#ABCDEF80'), '#abcdef')
        self.assertEqual(canonical_color('#12345678abcd'), '#1256ab')
        self.assertEqual(canonical_color((0, 0, 1)), '#0000ff')


if __name__ == "__main__":
    unittest.main()
