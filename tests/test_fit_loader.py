import os
import tempfile
import unittest
from datetime import datetime, timedelta

from cyclo_analytics.errors import ActivityFileError
from cyclo_analytics.fit_loader import load_fit_samples, samples_from_records


class SamplesFromRecordsTests(unittest.TestCase):
    def test_conversions(self):
        start = datetime(2024, 5, 1, 8, 0, 0)
        records = [
            {'heart_rate': 120},  # no timestamp
            {
                'timestamp': start,
                'position_lat': 2**30,  # semicircles -> 90 degrees
                'position_long': 100,
                'enhanced_altitude': 101.2,
                'altitude': 99.0,
                'speed': 10.0,
                'power': 250,
                'heart_rate': 140,
                'cadence': 88,
                'distance': 0.0,
            },
            {
                'timestamp': start + timedelta(seconds=2),
                'altitude': 102.0,
                'enhanced_speed': 5.0,
                'distance': 20.0,
            },
        ]
        samples = samples_from_records(records)

        self.assertEqual(len(samples), 2)
        first, second = samples
        self.assertEqual(first.timestamp, 0.0)
        self.assertAlmostEqual(first.latitude, 90.0)
        # Positions near the equator/meridian are small semicircle counts, still converted
        self.assertAlmostEqual(first.longitude, 100 * 180 / 2**31)
        self.assertEqual(first.elevation, 101.2)
        self.assertAlmostEqual(first.speed, 36.0)
        self.assertEqual(first.power, 250.0)

        self.assertEqual(second.timestamp, 2.0)
        self.assertEqual(second.elevation, 102.0)
        self.assertAlmostEqual(second.speed, 18.0)
        self.assertIsNone(second.power)
        self.assertIsNone(second.heart_rate)


class LoadFitSamplesTests(unittest.TestCase):
    def test_missing_file(self):
        with self.assertRaises(ActivityFileError):
            load_fit_samples('/nonexistent/ride.fit')

    def test_not_a_fit_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'ride.fit')
            with open(path, 'w') as f:
                f.write('this is not a fit file at all')
            with self.assertRaises(ActivityFileError):
                load_fit_samples(path)


if __name__ == "__main__":
    unittest.main()
