"""
Spreadsheet Quotation Parser
Turns supplier quotations exported as CSV or Excel into normalized line items.

Both entry points are total: malformed input yields a low-confidence
ExtractedQuotationData with warnings, never an exception.
"""
import io
import logging
from typing import Dict, List, Sequence

import pandas as pd

from app.config import SA_VAT_RATE
from app.models.schemas import ExtractedLineItem, ExtractedQuotationData
from app.services.money import parse_number

logger = logging.getLogger("buildtrack-extraction")

# Header keywords per column role. Keywords match by containment; the
# ``*_EXACT`` sets must equal the whole header.
DESCRIPTION_KEYWORDS = ("description", "item", "detail", "work", "material")
UNIT_KEYWORDS = ("unit",)
UNIT_EXACT = {"uom", "u/m"}
QUANTITY_KEYWORDS = ("qty", "quantity", "quant")
QUANTITY_EXACT = {"no"}
RATE_KEYWORDS = ("rate", "price", "unit cost", "unit price")
AMOUNT_KEYWORDS = ("amount", "total", "value", "cost", "sum")

_SKIP_EXACT = {"description", "item"}
_SKIP_PREFIXES = ("total", "subtotal", "sub-total", "vat", "grand total")

VAT_WARNING = "VAT calculated at 15% (standard SA rate)"


def _find_column(headers: Sequence[str], keywords, exact=frozenset()) -> int:
    for idx, header in enumerate(headers):
        if header in exact or any(kw in header for kw in keywords):
            return idx
    return -1


def identify_columns(headers: Sequence) -> Dict[str, int]:
    """
    Map header cells to column roles.

    Returns {"description", "unit", "quantity", "rate", "amount"} → index.
    Unmatched roles are -1, except description which defaults to column 0.
    """
    lower = [str(h if h is not None else "").lower().strip() for h in headers]
    desc_col = _find_column(lower, DESCRIPTION_KEYWORDS)
    return {
        "description": desc_col if desc_col >= 0 else 0,
        "unit": _find_column(lower, UNIT_KEYWORDS, UNIT_EXACT),
        "quantity": _find_column(lower, QUANTITY_KEYWORDS, QUANTITY_EXACT),
        "rate": _find_column(lower, RATE_KEYWORDS),
        "amount": _find_column(lower, AMOUNT_KEYWORDS),
    }


def _cell(row: Sequence, idx: int) -> str:
    if idx < 0 or idx >= len(row):
        return ""
    value = row[idx]
    return "" if value is None else str(value)


def _is_summary_row(description: str) -> bool:
    lowered = description.lower()
    return lowered in _SKIP_EXACT or lowered.startswith(_SKIP_PREFIXES)


def parse_rows(rows: Sequence[Sequence], cols: Dict[str, int]) -> List[ExtractedLineItem]:
    """Convert data rows (header excluded) into line items, skipping headers, totals and zero-value rows."""
    items: List[ExtractedLineItem] = []

    for row in rows:
        description = _cell(row, cols["description"]).strip()
        if not description or _is_summary_row(description):
            continue

        quantity = parse_number(_cell(row, cols["quantity"])) if cols["quantity"] >= 0 else 1.0
        unit_rate = parse_number(_cell(row, cols["rate"])) if cols["rate"] >= 0 else 0.0
        amount = (
            parse_number(_cell(row, cols["amount"]))
            if cols["amount"] >= 0
            else quantity * unit_rate
        )
        unit = _cell(row, cols["unit"]).strip() if cols["unit"] >= 0 else "item"

        # Rows without any monetary value are headings or notes
        if amount == 0 and unit_rate == 0:
            continue

        items.append(ExtractedLineItem(
            description=description,
            unit=unit or "item",
            quantity=quantity or 1.0,
            unit_rate=unit_rate or amount,
            amount=amount or quantity * unit_rate,
        ))

    return items


def _empty_result(warning: str) -> ExtractedQuotationData:
    return ExtractedQuotationData(confidence="low", warnings=[warning])


def _build_result(line_items: List[ExtractedLineItem], source: str, empty_warning: str) -> ExtractedQuotationData:
    warnings: List[str] = []
    if not line_items:
        warnings.append(empty_warning)

    subtotal = sum(item.amount for item in line_items)
    vat_amount = subtotal * SA_VAT_RATE

    return ExtractedQuotationData(
        line_items=line_items,
        subtotal=subtotal,
        vat_amount=vat_amount,
        total_incl_vat=subtotal + vat_amount,
        confidence="medium" if line_items else "low",
        warnings=warnings + [
            f"Parsed from {source} - supplier details not available",
            VAT_WARNING,
        ],
    )


def _sheet_rows(df: pd.DataFrame) -> List[List[str]]:
    rows: List[List[str]] = []
    for values in df.fillna("").astype(str).values.tolist():
        cells = [v.strip() for v in values]
        if any(cells):
            rows.append(cells)
    return rows


# Widest row accepted from a CSV upload; wider files are reported as unparseable
MAX_CSV_COLUMNS = 64

TOO_FEW_CSV_ROWS = "CSV file has too few rows to extract data"


def read_csv_rows(content: str) -> List[List[str]]:
    """
    Read CSV text into trimmed string rows, dropping blank lines.

    Rows may be ragged; short rows are padded with empty cells.
    Raises pandas ParserError/EmptyDataError on unreadable input.
    """
    df = pd.read_csv(
        io.StringIO(content),
        header=None,
        names=range(MAX_CSV_COLUMNS),
        index_col=False,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        engine="python",
    ).fillna("")
    # Drop the padding columns no row reached
    return _sheet_rows(df.loc[:, (df != "").any()])


def parse_csv(content: str) -> ExtractedQuotationData:
    """Parse CSV text; the first non-empty row is the header row."""
    try:
        rows = read_csv_rows(content)
    except pd.errors.EmptyDataError:
        return _empty_result(TOO_FEW_CSV_ROWS)
    except pd.errors.ParserError as e:
        logger.warning(f"CSV could not be read: {e}")
        return _empty_result("Failed to parse CSV file - check that it is comma-separated text")

    if len(rows) < 2:
        return _empty_result(TOO_FEW_CSV_ROWS)

    cols = identify_columns(rows[0])
    line_items = parse_rows(rows[1:], cols)

    logger.info(f"CSV parsed: {len(line_items)} line items from {len(rows) - 1} rows")
    return _build_result(line_items, "CSV", "No cost line items could be identified in the CSV")


def parse_excel(content: bytes) -> ExtractedQuotationData:
    """Parse the first worksheet of an .xlsx/.xls workbook as display text."""
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=str)
    except Exception as e:
        logger.warning(f"Excel workbook could not be read: {e}")
        return _empty_result("Failed to parse Excel file - it may be corrupted or in an unsupported format")

    if len(df.index) < 2:
        return _empty_result("Excel file has no data or too few rows")

    rows = _sheet_rows(df)
    if len(rows) < 2:
        return _empty_result("Could not parse Excel rows")

    cols = identify_columns(rows[0])
    line_items = parse_rows(rows[1:], cols)

    logger.info(f"Excel parsed: {len(line_items)} line items from {len(rows) - 1} rows")
    return _build_result(line_items, "Excel", "No cost line items could be identified in the Excel file")
