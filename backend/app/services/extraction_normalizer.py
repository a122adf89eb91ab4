"""
Document-AI response normalizer.

The model is asked for a bare JSON object but may wrap it in markdown fences
or prose. parse_extraction_response() recovers the object and coerces every
field explicitly; it never raises.
"""
import json
import logging
import math
import re
from typing import Any, List, Optional

from app.models.schemas import ExtractedLineItem, ExtractedQuotationData

logger = logging.getLogger("buildtrack-extraction")

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

_STRING_FIELDS = (
    "supplierName",
    "supplierContact",
    "supplierEmail",
    "supplierPhone",
    "quotationNumber",
    "quotationDate",
    "validUntil",
    "tradeCategory",
    "notes",
)
_TOTAL_FIELDS = ("subtotal", "vatAmount", "totalInclVat")
_CONFIDENCE_LEVELS = {"high", "medium", "low"}

PARSE_FAILURE_WARNINGS = [
    "Could not parse the AI response. The document may be too complex or unclear.",
    "Please enter the quotation details manually.",
]


def extract_json_text(text: str) -> str:
    """Strip markdown fences and surrounding prose, leaving the outermost {...} span."""
    candidate = text.strip()
    fenced = _FENCE_RE.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start >= 0 and end > start:
        candidate = candidate[start:end + 1]
    return candidate


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _as_string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_total(value: Any) -> Optional[float]:
    return float(value) if _is_number(value) else None


def _to_number(value: Any, fallback: float) -> float:
    """Numeric or numeric-string → float; zero, empty or unparseable → fallback."""
    if _is_number(value):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return fallback
        if not math.isfinite(number):
            return fallback
    else:
        return fallback
    return number or fallback


def _coerce_line_item(raw: dict) -> ExtractedLineItem:
    description = raw.get("description")
    unit = raw.get("unit")
    return ExtractedLineItem(
        description=str(description) if description else "",
        unit=str(unit) if unit else "item",
        quantity=_to_number(raw.get("quantity"), 1.0),
        unit_rate=_to_number(raw.get("unitRate"), 0.0),
        amount=_to_number(raw.get("amount"), 0.0),
    )


def coerce_extraction(parsed: dict) -> ExtractedQuotationData:
    """Apply per-field fallbacks to a decoded JSON object."""
    fields = {key: _as_string(parsed.get(key)) for key in _STRING_FIELDS}
    totals = {key: _as_total(parsed.get(key)) for key in _TOTAL_FIELDS}

    raw_items = parsed.get("lineItems")
    line_items: List[ExtractedLineItem] = []
    if isinstance(raw_items, list):
        line_items = [_coerce_line_item(item) for item in raw_items if isinstance(item, dict)]

    confidence = parsed.get("confidence")
    raw_warnings = parsed.get("warnings")

    return ExtractedQuotationData.model_validate({
        **fields,
        **totals,
        "lineItems": line_items,
        "confidence": confidence if isinstance(confidence, str) and confidence in _CONFIDENCE_LEVELS else "medium",
        "warnings": [str(w) for w in raw_warnings] if isinstance(raw_warnings, list) else [],
    })


def parse_failure() -> ExtractedQuotationData:
    return ExtractedQuotationData(confidence="low", warnings=list(PARSE_FAILURE_WARNINGS))


def parse_extraction_response(text: str) -> ExtractedQuotationData:
    """Free-form model output → ExtractedQuotationData. Total: never raises."""
    candidate = extract_json_text(text or "")
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning(f"AI response was not valid JSON: {e}")
        return parse_failure()

    if not isinstance(parsed, dict):
        logger.warning(f"AI response JSON was {type(parsed).__name__}, expected object")
        return parse_failure()

    return coerce_extraction(parsed)
