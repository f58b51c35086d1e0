import unittest

from cyclo_analytics.rounding import clamp, round_half_away, round_whole


class RoundingTests(unittest.TestCase):
    def test_halves_round_away_from_zero(self):
        self.assertEqual(round_half_away(2.5), 3.0)
        self.assertEqual(round_half_away(-2.5), -3.0)
        self.assertEqual(round_half_away(-4.25, 1), -4.3)
        self.assertEqual(round_half_away(4.25, 1), 4.3)
        self.assertEqual(round_half_away(0.285, 2), 0.29)
        self.assertEqual(round_whole(-20.5), -21)

    def test_small_negatives_do_not_become_negative_zero(self):
        self.assertEqual(str(round_half_away(-0.04, 1)), '0.0')

    def test_none_passes_through(self):
        self.assertIsNone(round_half_away(None, 2))
        self.assertIsNone(round_whole(None))

    def test_clamp(self):
        self.assertEqual(clamp(90, 25, 85), 85)
        self.assertEqual(clamp(10, 25, 85), 25)


if __name__ == "__main__":
    unittest.main()
