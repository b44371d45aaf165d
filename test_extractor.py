import unittest

from strikes.exceptions import ParseError
from strikes.extractor import (
    MarkerExtractor,
    SoupDocument,
    extract_markers,
    parse_age_bucket,
    parse_number,
)
from strikes.models import RawMarker

PAGE = """
<html><body>
<div id="lightning-map">
  <img src="map.png" width="800" height="600">
  <span class="ap lgt lgt-3" data-top="300" data-left="400"></span>
  <span class="ap lgt lgt-2" data-top="abc" data-left="10"></span>
  <span class="ap lgt lgt-1" data-top="12.5px" data-left="20"></span>
  <span class="ap city" data-top="1" data-left="1">Caracas</span>
  <span class="ap lgt lgt-x" data-top="5" data-left="6"></span>
  <span class="ap lgt" data-left="7"></span>
  <span class="ap lgt lgt-4" data-top="1e999" data-left="1"></span>
  <span class="ap lgt" data-top="-3" data-left="850.25"></span>
</div>
</body></html>
"""


class FakeElement:
    def __init__(self, attributes, classes):
        self.attributes = attributes
        self.classes = classes

    def attribute(self, name):
        return self.attributes.get(name)

    def class_tokens(self):
        return set(self.classes)


class FakeDocument:
    def __init__(self, html):
        self.selectors = []

    def find_by_class(self, selector):
        self.selectors.append(selector)
        return [
            FakeElement({'data-top': '10', 'data-left': '20'}, ['ap', 'lgt', 'lgt-7']),
            FakeElement({'data-top': None, 'data-left': '20'}, ['ap', 'lgt']),
        ]


class TestMarkerExtractor(unittest.TestCase):
    def test_extracts_markers_in_document_order(self):
        markers = extract_markers(PAGE)
        self.assertEqual(markers, [
            RawMarker(pixel_x=400.0, pixel_y=300.0, age_bucket=3),
            RawMarker(pixel_x=20.0, pixel_y=12.5, age_bucket=1),
            RawMarker(pixel_x=6.0, pixel_y=5.0, age_bucket=0),
            RawMarker(pixel_x=850.25, pixel_y=-3.0, age_bucket=0),
        ])

    def test_malformed_marker_does_not_block_others(self):
        """Only markers with both positions parseable are returned"""
        page = "".join(
            f'<span class="ap lgt lgt-1" data-top="{top}" data-left="{left}"></span>'
            for top, left in [(1, 2), ('x', 2), (3, 4), (5, ''), (6, 7)]
        )
        markers = extract_markers(page)
        self.assertEqual(len(markers), 3)
        self.assertEqual([m.pixel_y for m in markers], [1.0, 3.0, 6.0])

    def test_non_lightning_elements_ignored(self):
        markers = extract_markers('<span class="ap" data-top="1" data-left="1"></span>')
        self.assertEqual(markers, [])

    def test_empty_document(self):
        self.assertEqual(extract_markers(""), [])

    def test_bytes_document(self):
        markers = extract_markers(b'<span class="ap lgt lgt-2" data-top="1" data-left="2"></span>')
        self.assertEqual(markers, [RawMarker(2.0, 1.0, 2)])

    def test_undecodable_bytes_raise_parse_error(self):
        with self.assertRaises(ParseError):
            extract_markers(b'\xff\xfe<span class="ap lgt">\x80\x81')

    def test_missing_document_raises_parse_error(self):
        with self.assertRaises(ParseError):
            extract_markers(None)

    def test_custom_document_query(self):
        """Any DocumentQuery implementation can back the extractor"""
        documents = []

        def factory(html):
            documents.append(FakeDocument(html))
            return documents[-1]

        extractor = MarkerExtractor(query_factory=factory)
        markers = extractor.extract("<ignored>")
        self.assertEqual(markers, [RawMarker(20.0, 10.0, 7)])
        self.assertEqual(documents[0].selectors, ['.ap.lgt'])

    def test_configured_selector(self):
        settings = {
            'source': {
                'marker_selector': '.strike',
                'top_attribute': 'data-y',
                'left_attribute': 'data-x'
            },
            'age': {'class_prefix': 'age-', 'max_bucket': 9}
        }
        page = '<i class="strike age-4" data-y="8" data-x="9"></i><i class="ap lgt" data-top="1" data-left="1"></i>'
        self.assertEqual(MarkerExtractor(settings).extract(page), [RawMarker(9.0, 8.0, 4)])

    def test_old_buckets_are_kept(self):
        with self.assertLogs('strikes.extractor', level='WARNING'):
            markers = extract_markers('<span class="ap lgt lgt-12" data-top="1" data-left="1"></span>')
        self.assertEqual(markers[0].age_bucket, 12)


class TestAttributeParsing(unittest.TestCase):
    def test_parse_number(self):
        self.assertEqual(parse_number("12"), 12.0)
        self.assertEqual(parse_number(" 12.5px"), 12.5)
        self.assertEqual(parse_number("-.5"), -0.5)
        self.assertIsNone(parse_number(None))
        self.assertIsNone(parse_number(""))
        self.assertIsNone(parse_number("px12"))
        self.assertIsNone(parse_number("NaN"))
        self.assertIsNone(parse_number("1e999"))

    def test_parse_age_bucket(self):
        self.assertEqual(parse_age_bucket({'ap', 'lgt', 'lgt-9'}), 9)
        self.assertEqual(parse_age_bucket({'ap', 'lgt'}), 0)
        self.assertEqual(parse_age_bucket({'lgt-'}), 0)
        self.assertEqual(parse_age_bucket({'lgt-a1'}), 0)
        self.assertEqual(parse_age_bucket({'lgt-3a'}), 3)
        self.assertEqual(parse_age_bucket({'ap', 'lgt', 'lgt-12px'}), 12)

    def test_soup_element_handles(self):
        elements = SoupDocument(PAGE).find_by_class('.ap.lgt')
        self.assertEqual(len(elements), 7)
        self.assertEqual(elements[0].attribute('data-top'), '300')
        self.assertIsNone(elements[0].attribute('data-missing'))
        self.assertEqual(elements[0].class_tokens(), {'ap', 'lgt', 'lgt-3'})


if __name__ == '__main__':
    unittest.main()
