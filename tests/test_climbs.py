import math
import unittest

from cyclo_analytics.climbs import (
    EARTH_RADIUS_M,
    categorize_climb,
    climb_name,
    detect_climbs,
    difficulty_rating,
    haversine_m,
)
from cyclo_analytics.models import ClimbCategory, ClimbDetectionConfig, Sample

METERS_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180


def _ramp(i, start, length, rate=0.5):
    return rate * min(max(i - start, 0), length)


def _track(elevation_at, n=400, use_gps=False, **fields):
    """1 Hz, 10 m per sample."""
    samples = []
    for i in range(n):
        values = {'timestamp': float(i), 'elevation': elevation_at(i), 'power': 250, 'heart_rate': 150}
        if use_gps:
            values.update(latitude=i * 10 / METERS_PER_DEGREE, longitude=0.0)
        else:
            values['distance'] = i * 10.0
        values.update(fields)
        samples.append(Sample(**values))
    return samples


def _single_climb(i):
    # flat at 100 m, +100 m over samples 100-300, flat at 200 m
    return 100.0 + _ramp(i, 100, 200)


class DetectClimbsTests(unittest.TestCase):
    def test_single_climb(self):
        climbs = detect_climbs(_track(_single_climb))

        self.assertEqual(len(climbs), 1)
        climb = climbs[0]
        self.assertTrue(80 <= climb.start_index <= 100)
        self.assertTrue(295 <= climb.end_index <= 310)
        self.assertEqual(climb.elevation_gain, 100.0)
        self.assertEqual(climb.elevation_loss, 0.0)
        self.assertEqual(climb.category, ClimbCategory.CAT_4)
        self.assertEqual(climb.difficulty_rating, 3)
        self.assertEqual(climb.average_speed_kph, 36.0)
        self.assertEqual(climb.average_power, 250)
        self.assertEqual(climb.max_heart_rate, 150)
        self.assertIsNone(climb.average_cadence)
        self.assertGreater(climb.vam, 1500)

    def test_distance_from_coordinates(self):
        by_field = detect_climbs(_track(_single_climb))[0]
        by_gps = detect_climbs(_track(_single_climb, use_gps=True))[0]

        self.assertEqual((by_gps.start_index, by_gps.end_index), (by_field.start_index, by_field.end_index))
        self.assertAlmostEqual(by_gps.distance_meters, by_field.distance_meters, delta=0.5)

    def test_false_flat_is_merged(self):
        # +50 m, 40 flat samples (enough to end an ascent), +50 m
        def elevation(i):
            return 100.0 + _ramp(i, 50, 100) + _ramp(i, 190, 100)

        climbs = detect_climbs(_track(elevation))

        self.assertEqual(len(climbs), 1)
        self.assertLess(climbs[0].start_index, 60)
        self.assertGreater(climbs[0].end_index, 280)
        self.assertEqual(climbs[0].elevation_gain, 100.0)

    def test_climbs_split_by_descent_are_separate(self):
        # +60 m, -60 m, +100 m
        def elevation(i):
            if i < 200:
                return 100.0 + _ramp(i, 20, 120)
            return 160.0 - _ramp(i, 200, 60, rate=1.0) + _ramp(i, 280, 100, rate=1.0)

        climbs = detect_climbs(_track(elevation, n=420))

        self.assertEqual(len(climbs), 2)
        # hardest first
        self.assertGreater(climbs[0].climb_score, climbs[1].climb_score)
        self.assertGreater(climbs[0].start_index, climbs[1].start_index)

    def test_no_climbs(self):
        self.assertEqual(detect_climbs(_track(lambda i: 100.0, n=9)), [])
        self.assertEqual(detect_climbs(_track(lambda i: 100.0)), [])
        # 10 m bump is below the minimum gain
        self.assertEqual(detect_climbs(_track(lambda i: 100.0 + _ramp(i, 100, 20) - _ramp(i, 120, 20))), [])

    def test_config_can_lower_the_bar(self):
        def elevation(i):
            return 100.0 + _ramp(i, 100, 70)  # +35 m

        self.assertEqual(len(detect_climbs(_track(elevation))), 1)
        self.assertEqual(detect_climbs(_track(elevation), ClimbDetectionConfig(min_elevation_gain=80)), [])

    def test_missing_elevation_is_tolerated(self):
        samples = _track(_single_climb)
        samples[200] = Sample(timestamp=200.0, distance=2000.0)
        self.assertEqual(len(detect_climbs(samples)), 1)


class ClimbScaleTests(unittest.TestCase):
    def test_categories(self):
        self.assertIs(categorize_climb(90000), ClimbCategory.HC)
        self.assertIs(categorize_climb(64000), ClimbCategory.CAT_1)
        self.assertIs(categorize_climb(40000), ClimbCategory.CAT_2)
        self.assertIs(categorize_climb(16000), ClimbCategory.CAT_3)
        self.assertIs(categorize_climb(8000), ClimbCategory.CAT_4)
        self.assertIs(categorize_climb(7999), ClimbCategory.UNCATEGORIZED)

    def test_difficulty_rating(self):
        self.assertEqual(difficulty_rating(500, 3.0, 40), 1)
        self.assertEqual(difficulty_rating(2000, 3.0, 60), 2)
        self.assertEqual(difficulty_rating(20000, 13.0, 300), 6)
        self.assertEqual(difficulty_rating(70000, 8.0, 1200), 10)  # 9.5 rounds up
        self.assertEqual(difficulty_rating(90000, 16.0, 2000), 10)

    def test_haversine(self):
        self.assertAlmostEqual(haversine_m(0.0, 0.0, 1.0, 0.0), 111194.9, delta=0.1)
        self.assertEqual(haversine_m(45.0, 7.0, 45.0, 7.0), 0.0)

    def test_climb_name(self):
        climb = detect_climbs(_track(_single_climb))[0]
        self.assertEqual(climb_name(climb), f"Climb 100m ({climb.average_grade:.1f}%)")
        self.assertTrue(climb_name(climb, 'Sunday ride').endswith(' - Sunday ride'))


if __name__ == "__main__":
    unittest.main()
