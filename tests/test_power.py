import unittest

from cyclo_analytics.models import Sample
from cyclo_analytics.power_bests import calculate_power_bests, power_best_key
from cyclo_analytics.power_zones import classify_power_zone, zones_from_ftp


def _stream(powers):
    return [Sample(timestamp=float(i), power=p) for i, p in enumerate(powers)]


class PowerZoneTests(unittest.TestCase):
    def test_zones_from_ftp(self):
        zones = zones_from_ftp(250)

        self.assertEqual(len(zones), 7)
        self.assertEqual((zones[0].min_watts, zones[0].max_watts), (0, 138))  # 137.5 rounds up
        self.assertEqual((zones[1].min_watts, zones[1].max_watts), (140, 188))
        self.assertEqual(zones[3].min_percent, 91)
        self.assertEqual(zones[6].min_watts, 378)
        self.assertIsNone(zones[6].max_watts)
        self.assertIsNone(zones[6].max_percent)

    def test_classify_power_zone(self):
        self.assertEqual(classify_power_zone(137, 250), 'Z1')
        self.assertEqual(classify_power_zone(150, 250), 'Z2')
        self.assertEqual(classify_power_zone(250, 250), 'Z4')
        self.assertEqual(classify_power_zone(400, 250), 'Z7')
        self.assertIsNone(classify_power_zone(200, None))
        self.assertIsNone(classify_power_zone(200, 0))


class PowerBestsTests(unittest.TestCase):
    def test_constant_power(self):
        bests = calculate_power_bests(_stream([200] * 600))

        self.assertEqual(bests['peak_power'], 200)
        self.assertEqual(bests['p5s'], 200)
        self.assertEqual(bests['p300s'], 200)
        self.assertEqual(bests['p600s'], 200)
        self.assertIsNone(bests['p1200s'])
        self.assertIsNone(bests['p5400s'])

    def test_sprint_inside_easy_ride(self):
        powers = [100] * 60
        powers[10:15] = [800] * 5
        bests = calculate_power_bests(_stream(powers))

        self.assertEqual(bests['peak_power'], 800)
        self.assertEqual(bests['p5s'], 800)
        self.assertEqual(bests['p15s'], 333)  # (5*800 + 10*100) / 15
        self.assertEqual(bests['p60s'], 158)

    def test_no_power(self):
        bests = calculate_power_bests([Sample(timestamp=0.0), Sample(timestamp=1.0)])
        self.assertTrue(all(value is None for value in bests.values()))
        self.assertIn(power_best_key(1200), bests)


if __name__ == "__main__":
    unittest.main()
