from __future__ import annotations

import unittest

from app.domain.categorical import CategoryConfig, CategoryDefinition
from app.domain.indicator import IndicatorRules
from app.mappers.template_mapper import TemplateMapper, to_strptime_format
from app.validators.import_row_validator import ImportRowValidator
from db.models.import_job import RowValidationStatus

COLUMN_MAPPING = {
    "columns": [
        {
            "csvHeader": "Date",
            "fieldName": "reportedAt",
            "dataType": "date",
            "transform": {"dateFormat": "dd/MM/yyyy", "trim": True},
        },
        {
            "csvHeader": "Value",
            "fieldName": "value",
            "dataType": "number",
            "transform": {"trim": True, "removeCommas": True},
        },
        {
            "csvHeader": "Evidence",
            "fieldName": "evidence",
            "dataType": "text",
            "defaultValue": "none",
            "transform": {"trim": True, "maxLength": 5},
        },
    ]
}


class TestTemplateMapper(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = TemplateMapper.from_column_mapping(COLUMN_MAPPING)

    def test_transforms_dates_numbers_and_text(self) -> None:
        row = self.mapper.transform_row({"Date": " 15/01/2026 ", "Value": "1,250.5", "Evidence": " survey notes "})

        self.assertEqual(
            row,
            {"reportedAt": "2026-01-15", "value": 1250.5, "evidence": "surve"},
        )

    def test_headers_match_loosely_and_defaults_fill_blanks(self) -> None:
        row = self.mapper.transform_row({"date ": "01/02/2026", "VALUE": "7", "Evidence": ""})

        self.assertEqual(row["reportedAt"], "2026-02-01")
        self.assertEqual(row["value"], 7.0)
        self.assertEqual(row["evidence"], "none")

    def test_unparseable_values_pass_through(self) -> None:
        row = self.mapper.transform_row({"Date": "soon", "Value": "lots"})

        self.assertEqual(row["reportedAt"], "soon")
        self.assertEqual(row["value"], "lots")

    def test_category_and_boolean_columns(self) -> None:
        mapper = TemplateMapper.from_column_mapping(
            {
                "columns": [
                    {
                        "csvHeader": "Category",
                        "fieldName": "value",
                        "dataType": "category",
                        "transform": {"categoryMapping": {"Yes": "yes", "No": "no"}},
                    },
                    {
                        "csvHeader": "Flag",
                        "fieldName": "flag",
                        "dataType": "boolean",
                        "transform": {"booleanValues": {"true": ["y", "1"], "false": ["n", "0"]}},
                    },
                ]
            }
        )

        row = mapper.transform_row({"Category": "Yes, Maybe", "Flag": "Y"})

        self.assertEqual(row["value"], "yes,maybe")
        self.assertIs(row["flag"], True)
        self.assertEqual(mapper.transform_row({"Category": "No", "Flag": "perhaps"})["flag"], "perhaps")

    def test_without_columns_rows_pass_through(self) -> None:
        raw = {"reportedAt": "2026-01-01", "value": "3"}

        self.assertEqual(TemplateMapper().transform_row(raw), raw)

    def test_date_pattern_translation(self) -> None:
        self.assertEqual(to_strptime_format("yyyy-MM-dd HH:mm:ss"), "%Y-%m-%d %H:%M:%S")
        self.assertEqual(to_strptime_format("%d.%m.%Y"), "%d.%m.%Y")


class TestImportRowValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = ImportRowValidator()

    def test_out_of_bounds_number_is_a_warning(self) -> None:
        rules = IndicatorRules(data_type="NUMBER", min_value=10, max_value=100)

        low = self.validator.validate({"reportedAt": "2026-01-01", "value": 5.0}, rules)
        high = self.validator.validate({"reportedAt": "2026-01-02", "value": "150"}, rules)

        self.assertEqual(low.status, RowValidationStatus.WARNING)
        self.assertEqual(low.warnings[0].code, "VALUE_TOO_LOW")
        self.assertEqual(low.normalized["value"], "5")
        self.assertEqual(high.warnings[0].code, "VALUE_TOO_HIGH")
        self.assertEqual(high.warnings[0].severity, "warning")

    def test_missing_and_invalid_fields_are_errors(self) -> None:
        rules = IndicatorRules(data_type="NUMBER")

        result = self.validator.validate({"reportedAt": "31/31/2026", "value": "abc"}, rules)

        self.assertEqual(result.status, RowValidationStatus.ERROR)
        fields = {issue.field: issue for issue in result.errors}
        self.assertEqual(fields["reportedAt"].suggestion, "Use format: YYYY-MM-DD")
        self.assertEqual(fields["value"].message, "Value must be a number")

    def test_valid_row_is_canonicalised(self) -> None:
        rules = IndicatorRules(data_type="BOOLEAN")

        result = self.validator.validate({"reportedAt": "2026-03-01", "value": True}, rules)

        self.assertEqual(result.status, RowValidationStatus.VALID)
        self.assertEqual(result.normalized["value"], "true")
        self.assertEqual(result.normalized["reportedAt"], "2026-03-01T00:00:00+00:00")
        self.assertEqual(result.disaggregation_key, "")

    def test_categorical_rows_default_to_required(self) -> None:
        rules = IndicatorRules(
            data_type="CATEGORICAL",
            categories=(CategoryDefinition("yes", "Yes"), CategoryDefinition("no", "No")),
        )

        missing = self.validator.validate({"reportedAt": "2026-01-01", "value": None}, rules)
        invalid = self.validator.validate({"reportedAt": "2026-01-01", "value": "maybe"}, rules)
        valid = self.validator.validate({"reportedAt": "2026-01-01", "value": "yes"}, rules)

        self.assertEqual(missing.errors[0].code, "REQUIRED_CATEGORY")
        self.assertEqual(invalid.errors[0].code, "INVALID_CATEGORY_VALUE")
        self.assertEqual(valid.normalized["categoryValue"], "yes")

    def test_optional_category_may_be_blank(self) -> None:
        rules = IndicatorRules(
            data_type="CATEGORICAL",
            categories=(CategoryDefinition("yes", "Yes"),),
            category_config=CategoryConfig(required=False),
        )

        result = self.validator.validate({"reportedAt": "2026-01-01", "value": ""}, rules)

        self.assertEqual(result.status, RowValidationStatus.VALID)


if __name__ == "__main__":
    unittest.main()
