from __future__ import annotations

import unittest

from app.mappers.template_mapper import TemplateMapper
from app.services.template_service import TemplateService
from db.models.indicator import Indicator


class TestDefaultImportMapping(unittest.TestCase):
    def setUp(self) -> None:
        self.service = TemplateService()

    def test_categorical_indicator_with_disaggregation(self) -> None:
        indicator = Indicator(
            name="Water point status",
            data_type="CATEGORICAL",
            categories=[{"id": "ok", "label": "Working"}, {"id": "broken", "label": "Broken"}],
            category_config={
                "disaggregationDimensions": [
                    {"key": "district", "label": "District", "values": ["north", "south"], "required": True}
                ]
            },
        )

        mapping = self.service.generate_default_import_mapping(indicator)

        columns = mapping["columns"]
        self.assertEqual([column["csvHeader"] for column in columns], ["District", "Date", "Category", "Evidence"])
        self.assertEqual(columns[0]["fieldName"], "disaggregationKey")
        self.assertTrue(columns[0]["required"])
        self.assertEqual(columns[0]["transform"]["allowedValues"], ["north", "south"])
        self.assertEqual(columns[2]["transform"]["categoryMapping"]["WORKING"], "ok")
        self.assertEqual(columns[3]["transform"]["maxLength"], 500)

        row = TemplateMapper.from_column_mapping(mapping).transform_row(
            {"District": " north ", "Date": "2026-05-01", "Category": "working", "Evidence": ""}
        )
        self.assertEqual(
            row,
            {"disaggregationKey": "north", "reportedAt": "2026-05-01", "value": "ok", "evidence": None},
        )

    def test_categorical_indicator_without_categories_has_no_value_column(self) -> None:
        mapping = self.service.generate_default_import_mapping(
            Indicator(name="Empty", data_type="CATEGORICAL")
        )

        self.assertEqual([column["csvHeader"] for column in mapping["columns"]], ["Date", "Evidence"])

    def test_value_column_by_data_type(self) -> None:
        expected = {
            "NUMBER": ("number", {"trim": True, "removeCommas": True}),
            "PERCENT": ("number", {"trim": True, "removeCommas": True}),
            "TEXT": ("text", {"trim": True, "maxLength": 1000}),
        }
        for data_type, (column_type, transform) in expected.items():
            with self.subTest(data_type=data_type):
                mapping = self.service.generate_default_import_mapping(
                    Indicator(name="x", data_type=data_type)
                )
                value_column = mapping["columns"][1]
                self.assertEqual(value_column["csvHeader"], "Value")
                self.assertEqual(value_column["dataType"], column_type)
                self.assertEqual(value_column["transform"], transform)

    def test_boolean_column_accepts_common_spellings(self) -> None:
        mapping = self.service.generate_default_import_mapping(Indicator(name="x", data_type="BOOLEAN"))
        mapper = TemplateMapper.from_column_mapping(mapping)

        self.assertIs(mapper.transform_row({"Date": "2026-01-01", "Value": "Yes"})["value"], True)
        self.assertIs(mapper.transform_row({"Date": "2026-01-01", "Value": "off"})["value"], False)


if __name__ == "__main__":
    unittest.main()
