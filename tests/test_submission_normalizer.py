from __future__ import annotations

import unittest

from app.domain.categorical import CategoryConfig, CategoryDefinition
from app.domain.indicator import IndicatorRules
from app.errors import ValidationError
from app.services.submission_normalizer import normalize_value, parse_number


class TestParseNumber(unittest.TestCase):
    def test_accepts_numbers_and_numeric_strings(self) -> None:
        self.assertEqual(parse_number(5), 5.0)
        self.assertEqual(parse_number(" 12.5 "), 12.5)

    def test_rejects_booleans_blanks_and_non_finite(self) -> None:
        for value in (True, False, "", "  ", None, "abc", "nan", "inf", float("inf"), "1_000", "1_0.5"):
            with self.subTest(value=value):
                self.assertIsNone(parse_number(value))


class TestNormalizeValue(unittest.TestCase):
    def test_number_within_bounds_is_canonical(self) -> None:
        rules = IndicatorRules(data_type="NUMBER", min_value=10, max_value=100)

        self.assertEqual(normalize_value(rules, "50").value, "50")
        self.assertEqual(normalize_value(rules, 42.5).value, "42.5")
        self.assertEqual(normalize_value(rules, 10.0).value, "10")

    def test_number_bounds(self) -> None:
        rules = IndicatorRules(data_type="NUMBER", min_value=10, max_value=100)

        with self.assertRaises(ValidationError) as ctx:
            normalize_value(rules, 5)
        self.assertEqual(ctx.exception.code, "VALUE_TOO_LOW")
        self.assertEqual(ctx.exception.message, "Value must be >= 10")

        with self.assertRaises(ValidationError) as ctx:
            normalize_value(rules, 150)
        self.assertEqual(ctx.exception.code, "VALUE_TOO_HIGH")

    def test_number_rejects_booleans_and_text(self) -> None:
        rules = IndicatorRules(data_type="NUMBER")
        for value in (True, "ten", "1_000"):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError) as ctx:
                    normalize_value(rules, value)
                self.assertEqual(ctx.exception.code, "INVALID_VALUE")

    def test_percent_defaults_to_zero_hundred(self) -> None:
        rules = IndicatorRules(data_type="PERCENT")

        self.assertEqual(normalize_value(rules, "75").value, "75")
        with self.assertRaises(ValidationError) as ctx:
            normalize_value(rules, 101)
        self.assertEqual(ctx.exception.code, "VALUE_OUT_OF_RANGE")
        self.assertEqual(ctx.exception.message, "Percent must be between 0 and 100")

    def test_boolean_accepts_bool_and_case_insensitive_strings(self) -> None:
        rules = IndicatorRules(data_type="BOOLEAN")

        self.assertEqual(normalize_value(rules, True).value, "true")
        self.assertEqual(normalize_value(rules, "FALSE").value, "false")
        with self.assertRaises(ValidationError) as ctx:
            normalize_value(rules, "yes")
        self.assertEqual(ctx.exception.code, "INVALID_VALUE")

    def test_text_rejects_missing_value(self) -> None:
        rules = IndicatorRules(data_type="TEXT")

        self.assertEqual(normalize_value(rules, 12).value, "12")
        with self.assertRaises(ValidationError):
            normalize_value(rules, None)

    def test_categorical_is_stored_comma_joined(self) -> None:
        rules = IndicatorRules(
            data_type="CATEGORICAL",
            categories=(CategoryDefinition("a", "A"), CategoryDefinition("b", "B")),
            category_config=CategoryConfig(allow_multiple=True),
        )

        normalized = normalize_value(rules, ["a", "b"])

        self.assertEqual(normalized.value, "a,b")
        self.assertEqual(normalized.category_value, "a,b")

    def test_categorical_without_categories(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            normalize_value(IndicatorRules(data_type="CATEGORICAL"), "a")
        self.assertEqual(ctx.exception.code, "NO_CATEGORIES")

    def test_unknown_data_type(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            normalize_value(IndicatorRules(data_type="DATE"), "2024-01-01")
        self.assertEqual(ctx.exception.code, "INVALID_VALUE")


if __name__ == "__main__":
    unittest.main()
