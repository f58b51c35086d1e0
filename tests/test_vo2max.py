import unittest
from datetime import date

from cyclo_analytics.models import (
    AthleteProfile,
    Sex,
    VO2maxCategory,
    VO2maxInput,
    VO2maxMethod,
)
from cyclo_analytics.vo2max import (
    VO2MAX_TIERS,
    calculate_age,
    estimate_vo2max,
    evaluate_vo2max_quality,
    ftp_vo2max,
    storer_vo2max,
)


class EstimateVO2maxTests(unittest.TestCase):
    def test_weight_and_ftp_only_uses_basic_ftp_formula(self):
        result = estimate_vo2max(VO2maxInput(weight_kg=70, ftp_watts=250))

        self.assertEqual(result.method, VO2maxMethod.FTP_BASIC)
        self.assertAlmostEqual(result.confidence, 0.60)
        self.assertEqual(result.vo2max, 41)  # 11.5 * 250 / 70 = 41.07
        self.assertEqual(result.power_used, 250)
        self.assertIsNotNone(result.adaptive_message)

    def test_no_data_is_insufficient(self):
        result = estimate_vo2max(VO2maxInput())

        self.assertEqual(result.vo2max, 0)
        self.assertEqual(result.confidence, 0)
        self.assertEqual(result.method, VO2maxMethod.ESTIMATION)
        self.assertIsNone(result.power_used)

    def test_power_without_weight_is_insufficient(self):
        result = estimate_vo2max(VO2maxInput(ftp_watts=250, pb_power_300s_watts=320, age=30, sex=Sex.MALE))
        self.assertEqual(result.vo2max, 0)
        self.assertEqual(result.confidence, 0)

    def test_five_minute_power_tier(self):
        result = estimate_vo2max(VO2maxInput(
            weight_kg=70, age=30, sex=Sex.MALE, ftp_watts=280,
            pb_power_300s_watts=350, pb_power_60s_watts=500, pb_power_1200s_watts=300,
        ))
        # (10.51*350 + 6.35*70 - 10.49*30 + 519.3) / 70 = 61.82
        self.assertEqual(result.vo2max, 62)
        self.assertEqual(result.method, VO2maxMethod.STORER_PPO)
        self.assertAlmostEqual(result.confidence, 0.90)
        self.assertEqual(result.power_used, 350)
        self.assertIsNone(result.adaptive_message)

    def test_one_minute_power_is_scaled(self):
        result = estimate_vo2max(VO2maxInput(
            weight_kg=70, age=30, sex=Sex.MALE, pb_power_60s_watts=500,
        ))
        # PPO 425 W -> 73.08
        self.assertEqual(result.vo2max, 73)
        self.assertEqual(result.method, VO2maxMethod.STORER_PPO)
        self.assertAlmostEqual(result.confidence, 0.80)
        self.assertEqual(result.power_used, 500)
        self.assertIn("-15%", result.adaptive_message)

    def test_twenty_minute_power_is_scaled(self):
        result = estimate_vo2max(VO2maxInput(
            weight_kg=70, age=30, sex=Sex.MALE, pb_power_1200s_watts=300, ftp_watts=280,
        ))
        # PPO 285 W -> 52.06
        self.assertEqual(result.vo2max, 52)
        self.assertEqual(result.method, VO2maxMethod.STORER_CP)
        self.assertAlmostEqual(result.confidence, 0.75)

    def test_ftp_with_age_and_sex(self):
        result = estimate_vo2max(VO2maxInput(weight_kg=60, ftp_watts=250, age=45, sex=Sex.FEMALE))
        # 11.5 * 4.1667 * 0.90 * 0.88 = 37.95
        self.assertEqual(result.vo2max, 38)
        self.assertEqual(result.method, VO2maxMethod.FTP_ADVANCED)
        self.assertAlmostEqual(result.confidence, 0.70)

    def test_missing_sex_skips_storer_tiers(self):
        result = estimate_vo2max(VO2maxInput(weight_kg=70, ftp_watts=250, age=30, pb_power_300s_watts=350))
        self.assertEqual(result.method, VO2maxMethod.FTP_BASIC)

    def test_age_from_birth_date(self):
        result = estimate_vo2max(VO2maxInput(
            weight_kg=70, ftp_watts=250, sex='M',
            birth_date=date(1990, 6, 15), as_of=date(2024, 1, 1),
        ))
        self.assertEqual(result.method, VO2maxMethod.FTP_ADVANCED)
        self.assertIn("33", result.reasoning)

    def test_results_are_clamped(self):
        self.assertEqual(ftp_vo2max(100, 80), 25.0)
        self.assertEqual(ftp_vo2max(600, 60), 85.0)
        self.assertEqual(storer_vo2max(900, 50, 20, Sex.MALE), 85.0)

    def test_age_factor_floor(self):
        # 1 - 75 * 0.005 would be 0.625; floored at 0.7
        self.assertAlmostEqual(ftp_vo2max(350, 70, age=100), 11.5 * 5 * 0.7)

    def test_tier_order(self):
        names = [tier.name for tier in VO2MAX_TIERS]
        self.assertEqual(names[0], 'storer_5min')
        self.assertEqual(names[-1], 'insufficient')


class CalculateAgeTests(unittest.TestCase):
    def test_birthday_not_yet_reached(self):
        self.assertEqual(calculate_age(date(1990, 6, 15), as_of=date(2020, 6, 14)), 29)
        self.assertEqual(calculate_age('1990-06-15', as_of=date(2020, 6, 15)), 30)

    def test_missing_birth_date(self):
        self.assertIsNone(calculate_age(None))
        self.assertIsNone(calculate_age(''))


class VO2maxInputTests(unittest.TestCase):
    def test_from_profile_takes_best_powers(self):
        profile = AthleteProfile(weight_kg=70, ftp_watts=260, sex=Sex.MALE, birth_date=date(1990, 1, 1))
        data = VO2maxInput.from_profile(profile, [
            {'p300s': 300, 'p60s': None},
            {'p300s': 320, 'p60s': 450, 'p1200s': 270},
        ])
        self.assertEqual(data.pb_power_300s_watts, 320)
        self.assertEqual(data.pb_power_60s_watts, 450)
        self.assertEqual(data.pb_power_1200s_watts, 270)
        self.assertEqual(data.ftp_watts, 260)


class EvaluateQualityTests(unittest.TestCase):
    def test_generic_bands(self):
        self.assertEqual(evaluate_vo2max_quality(30).category, VO2maxCategory.POOR)
        self.assertEqual(evaluate_vo2max_quality(35).category, VO2maxCategory.FAIR)
        self.assertEqual(evaluate_vo2max_quality(50).category, VO2maxCategory.GOOD)
        self.assertEqual(evaluate_vo2max_quality(80).category, VO2maxCategory.SUPERIOR)

    def test_age_and_sex_bands(self):
        self.assertEqual(evaluate_vo2max_quality(57, age=25, sex='M').category, VO2maxCategory.VERY_GOOD)
        self.assertEqual(evaluate_vo2max_quality(30, age=55, sex='F').category, VO2maxCategory.FAIR)
        self.assertEqual(evaluate_vo2max_quality(66, age=60, sex='M').category, VO2maxCategory.SUPERIOR)
        self.assertIn('age/sex', evaluate_vo2max_quality(45, age=35, sex='F').description)


if __name__ == "__main__":
    unittest.main()
