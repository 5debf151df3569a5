import unittest

from timesheet.allocation.converter import (
    join_duration,
    split_minutes,
    to_minutes,
    to_percentage,
)


class TestConverter(unittest.TestCase):
    def test_half_of_six_hours_is_fifty_percent(self) -> None:
        self.assertEqual(50.0, to_percentage(180, 360))

    def test_percentage_is_rounded_to_two_decimals(self) -> None:
        self.assertEqual(33.33, to_percentage(160, 480))
        self.assertEqual(16.67, to_percentage(60, 360))

    def test_zero_total_gives_zero_percentage(self) -> None:
        for minutes in (0, 1, 60, 480, 10_000):
            self.assertEqual(0, to_percentage(minutes, 0))

    def test_zero_total_percentage_is_a_float(self) -> None:
        self.assertIsInstance(to_percentage(5, 0), float)

    def test_to_minutes_splits_hours_and_minutes(self) -> None:
        self.assertEqual((4, 0), to_minutes(50, 480))
        self.assertEqual((2, 40), to_minutes(33.33, 480))
        self.assertEqual((0, 0), to_minutes(25, 0))

    def test_round_trip_stays_within_one_minute(self) -> None:
        for total in (1, 7, 360, 480, 600, 1440):
            for minutes in range(total + 1):
                back = join_duration(*to_minutes(to_percentage(minutes, total), total))
                self.assertLessEqual(abs(back - minutes), 1, (minutes, total))

    def test_split_and_join(self) -> None:
        self.assertEqual((7, 30), split_minutes(450))
        self.assertEqual(450, join_duration(7, 30))


if __name__ == "__main__":
    unittest.main()
