import re
import unittest
from datetime import datetime, timedelta, timezone

from strikes.timeslug import time_slug


class TestTimeSlug(unittest.TestCase):
    def test_rounds_down_to_five_minutes(self):
        now = datetime(2024, 3, 1, 12, 7, tzinfo=timezone.utc)
        self.assertEqual(time_slug(now), "20240301-1205z")

    def test_exact_bucket(self):
        now = datetime(2024, 3, 1, 12, 5, 59, tzinfo=timezone.utc)
        self.assertEqual(time_slug(now), "20240301-1205z")

    def test_zero_padding(self):
        now = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
        self.assertEqual(time_slug(now), "20240102-0300z")

    def test_end_of_day(self):
        now = datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
        self.assertEqual(time_slug(now), "20231231-2355z")

    def test_aware_time_converted_to_utc(self):
        caracas = timezone(timedelta(hours=-4))
        now = datetime(2024, 2, 29, 20, 7, tzinfo=caracas)
        self.assertEqual(time_slug(now), "20240301-0005z")

    def test_naive_time_taken_as_utc(self):
        self.assertEqual(time_slug(datetime(2024, 3, 1, 12, 7)), "20240301-1205z")

    def test_current_time(self):
        slug = time_slug()
        match = re.fullmatch(r"\d{8}-(\d{2})(\d{2})z", slug)
        self.assertIsNotNone(match)
        self.assertEqual(int(match.group(2)) % 5, 0)


if __name__ == '__main__':
    unittest.main()
