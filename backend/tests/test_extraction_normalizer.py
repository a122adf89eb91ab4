"""
test_extraction_normalizer.py — Unit tests for document-AI response parsing.

The normalizer must accept fenced or prose-wrapped JSON, coerce every field
with a fallback and never raise.
"""

import json

import pytest

from app.services.extraction_normalizer import (
    PARSE_FAILURE_WARNINGS,
    coerce_extraction,
    extract_json_text,
    parse_extraction_response,
)


class TestExtractJsonText:

    def test_fenced_json_block(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
        assert extract_json_text(text) == '{"a": 1}'

    def test_unlabelled_fence(self):
        assert extract_json_text('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_prose_around_object(self):
        assert extract_json_text('The result is {"a": {"b": 2}} as requested.') == '{"a": {"b": 2}}'

    def test_bare_object_unchanged(self):
        assert extract_json_text('{"a": 1}') == '{"a": 1}'


class TestParseExtractionResponse:

    def test_fenced_response_with_string_numbers(self):
        """String quantity/rate are parsed; an unparseable amount falls back to 0."""
        text = (
            "```json\n"
            '{"supplierName": "Acme", "lineItems": '
            '[{"description": "Bricks", "quantity": "5", "unitRate": "100", "amount": "n/a"}]}\n'
            "```"
        )
        result = parse_extraction_response(text)
        assert result.supplier_name == "Acme"
        assert len(result.line_items) == 1
        item = result.line_items[0]
        assert item.quantity == 5
        assert item.unit_rate == 100
        assert item.amount == 0
        assert item.unit == "item"

    def test_garbage_text(self):
        result = parse_extraction_response("I'm sorry, I cannot read this document.")
        assert result.confidence == "low"
        assert result.line_items == []
        assert result.warnings == PARSE_FAILURE_WARNINGS
        assert len(result.warnings) == 2

    @pytest.mark.parametrize("text", ["", "[1, 2, 3]", "{not json}", "null"])
    def test_never_raises(self, text):
        result = parse_extraction_response(text)
        assert result.confidence == "low"
        assert result.warnings == PARSE_FAILURE_WARNINGS

    def test_full_well_formed_response(self):
        payload = {
            "supplierName": "Cape Roofing CC",
            "supplierEmail": "quotes@caperoofing.co.za",
            "quotationNumber": "Q-2025-118",
            "quotationDate": "2025-02-01",
            "validUntil": "2025-03-01",
            "tradeCategory": "roofing",
            "lineItems": [
                {"description": "IBR sheeting", "unit": "m2", "quantity": 160, "unitRate": 185, "amount": 29600},
            ],
            "subtotal": 29600,
            "vatAmount": 4440,
            "totalInclVat": 34040,
            "confidence": "high",
            "warnings": [],
        }
        result = parse_extraction_response(json.dumps(payload))
        assert result.supplier_name == "Cape Roofing CC"
        assert result.trade_category == "roofing"
        assert result.subtotal == 29600
        assert result.total_incl_vat == 34040
        assert result.confidence == "high"
        assert result.line_items[0].unit == "m2"


class TestCoerceExtraction:

    def test_wrong_types_fall_back(self):
        result = coerce_extraction({
            "supplierName": 123,
            "subtotal": "1000",
            "vatAmount": True,
            "confidence": "certain",
            "warnings": "not a list",
            "lineItems": [{"description": "Tiles", "quantity": 0, "unitRate": None}, "junk", 5],
        })
        assert result.supplier_name is None
        assert result.subtotal is None
        assert result.vat_amount is None
        assert result.confidence == "medium"
        assert result.warnings == []
        assert len(result.line_items) == 1
        assert result.line_items[0].quantity == 1.0
        assert result.line_items[0].unit_rate == 0.0

    def test_unhashable_confidence_defaults_to_medium(self):
        assert coerce_extraction({"confidence": ["high"]}).confidence == "medium"

    def test_missing_line_items(self):
        result = coerce_extraction({"supplierName": "Acme"})
        assert result.line_items == []

    def test_missing_description_becomes_empty(self):
        result = coerce_extraction({"lineItems": [{"amount": 50}]})
        assert result.line_items[0].description == ""
        assert result.line_items[0].amount == 50

    def test_warnings_stringified(self):
        result = coerce_extraction({"warnings": ["Blurry scan", 42]})
        assert result.warnings == ["Blurry scan", "42"]
