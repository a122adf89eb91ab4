"""
LLM Client Abstraction
Single entry point for all document-AI calls in the build manager.
Provider: Anthropic Claude via litellm. The API key is passed per call
(see app.config.resolve_api_key); no retries and no fallback model.
"""
import base64
import re
import logging
from typing import Optional

import litellm

from app.config import LLM_EXTRACTION_MODEL, LLM_MAX_TOKENS
from app.services.exceptions import UpstreamAIError

logger = logging.getLogger("buildtrack-extraction")

# Suppress litellm verbose logging
litellm.set_verbose = False

CONNECTION_TEST_PROMPT = "Reply with only the word: connected"
CONNECTION_TEST_MAX_TOKENS = 32

EXTRACTION_PROMPT = """You are analyzing a South African building/construction quotation document.
Extract all cost information and return it as a JSON object.

Return ONLY a valid JSON object with this exact structure (no other text, no markdown fences):

{
  "supplierName": "string or null",
  "supplierContact": "string or null - contact person name",
  "supplierEmail": "string or null",
  "supplierPhone": "string or null",
  "quotationNumber": "string or null - the quote/reference number",
  "quotationDate": "YYYY-MM-DD or null",
  "validUntil": "YYYY-MM-DD or null - quote validity/expiry date",
  "tradeCategory": "one of the allowed values below, or null",
  "lineItems": [
    {
      "description": "string - description of the work/material",
      "unit": "string - unit of measurement (m2, m3, m, no, kg, item, day, sum, l, allow)",
      "quantity": 0,
      "unitRate": 0,
      "amount": 0
    }
  ],
  "subtotal": 0,
  "vatAmount": 0,
  "totalInclVat": 0,
  "notes": "string or null - any terms, conditions, or additional notes",
  "confidence": "high or medium or low",
  "warnings": ["array of strings describing any issues"]
}

Allowed tradeCategory values:
general_builder, plumber, electrician, roofing, tiling, painting, carpentry, glazing, waterproofing, plastering, landscaping, structural_steel, hvac, security, other

Important rules:
- All monetary values must be numeric (no currency symbols) and in South African Rand (ZAR)
- South African VAT is 15%
- For each line item: amount should equal quantity x unitRate
- If the document only shows a total without line items, create a single line item with description "Total as per quotation" and the total as the amount
- If quantity or unitRate is not clear, set quantity=1 and unitRate=amount
- subtotal is the sum of all line item amounts (excluding VAT)
- If only a VAT-inclusive total is shown, back-calculate: subtotal = totalInclVat / 1.15, vatAmount = totalInclVat - subtotal
- Set confidence to "high" if all data is clearly readable, "medium" if some fields are uncertain, "low" if the document is unclear or partially readable
- Add warnings for anything that could not be determined or seems uncertain
- Parse dates in any format and convert to YYYY-MM-DD
- Look for supplier details in letterhead, header, or footer areas
- Common SA units: m2 (square meters), m3 (cubic meters), m (linear meters), no (number/each), kg, item, day, sum (lump sum), l (litres), allow (allowance)"""

TIMEOUT_MESSAGE = "The document analysis timed out. Try a smaller or clearer document."
AUTH_MESSAGE = "Authentication failed. Please check that your API key is correct."
RATE_LIMIT_MESSAGE = "Rate limited. The API key is valid but you've hit the rate limit. Try again in a moment."
PERMISSION_MESSAGE = "Permission denied. Your API key may not have the required permissions."


def build_document_content(data: bytes, mime_type: str) -> list:
    """
    Message content for one attached document followed by the extraction prompt.
    Images go as image_url data URIs; PDFs as file parts.
    """
    encoded = base64.b64encode(data).decode("ascii")
    data_uri = f"data:{mime_type};base64,{encoded}"
    if mime_type.startswith("image/"):
        attachment = {"type": "image_url", "image_url": {"url": data_uri}}
    else:
        attachment = {"type": "file", "file": {"file_data": data_uri}}
    return [attachment, {"type": "text", "text": EXTRACTION_PROMPT}]


def _response_text(response) -> str:
    content = response.choices[0].message.content
    return content or ""


async def extract_document(
    data: bytes,
    mime_type: str,
    api_key: str,
    model: Optional[str] = None,
) -> str:
    """
    Send a PDF or image to the extraction model. Returns the raw response text.
    Provider errors are raised as UpstreamAIError (see classify_error).
    """
    model = model or LLM_EXTRACTION_MODEL
    messages = [{"role": "user", "content": build_document_content(data, mime_type)}]
    try:
        response = await litellm.acompletion(
            model=model,
            messages=messages,
            max_tokens=LLM_MAX_TOKENS,
            api_key=api_key,
        )
    except Exception as e:
        logger.error(f"Extraction call failed ({type(e).__name__}: {e})", extra={"mime_type": mime_type})
        raise classify_error(e) from e
    return _response_text(response)


async def test_connection(api_key: str, model: Optional[str] = None) -> dict:
    """Minimal round trip to confirm the key works. Never raises."""
    model = model or LLM_EXTRACTION_MODEL
    try:
        response = await litellm.acompletion(
            model=model,
            messages=[{"role": "user", "content": CONNECTION_TEST_PROMPT}],
            max_tokens=CONNECTION_TEST_MAX_TOKENS,
            api_key=api_key,
        )
    except Exception as e:
        logger.warning(f"Connection test failed ({type(e).__name__}: {e})")
        return {"success": False, "error": connection_error_message(e)}

    return {
        "success": True,
        "message": f"Connected successfully. Model: {getattr(response, 'model', None) or model}",
        "response": _response_text(response).strip(),
    }


# Provider errors that reach us untyped still carry the HTTP status or error type in the text
_TIMEOUT_TEXT = re.compile(r"timeout|timed out|ETIMEDOUT", re.IGNORECASE)
_AUTH_TEXT = re.compile(r"\b401\b|authentication|invalid (?:x-)?api[ _-]?key", re.IGNORECASE)
_RATE_TEXT = re.compile(r"\b429\b|rate[ _-]?limit", re.IGNORECASE)
_PERMISSION_TEXT = re.compile(r"\b403\b|permission", re.IGNORECASE)


def _error_kind(exc: Exception) -> str:
    """Classify a provider exception: timeout | auth | rate | permission | other."""
    if isinstance(exc, litellm.Timeout):
        return "timeout"
    if isinstance(exc, litellm.AuthenticationError):
        return "auth"
    if isinstance(exc, litellm.RateLimitError):
        return "rate"
    if isinstance(exc, litellm.PermissionDeniedError):
        return "permission"

    text = str(exc)
    if _TIMEOUT_TEXT.search(text):
        return "timeout"
    if _AUTH_TEXT.search(text):
        return "auth"
    if _RATE_TEXT.search(text):
        return "rate"
    if _PERMISSION_TEXT.search(text):
        return "permission"
    return "other"


def classify_error(exc: Exception) -> UpstreamAIError:
    kind = _error_kind(exc)
    if kind == "timeout":
        return UpstreamAIError(TIMEOUT_MESSAGE, code="AI_TIMEOUT", status_code=504)
    if kind == "auth":
        return UpstreamAIError(AUTH_MESSAGE, code="AI_AUTH_FAILED", status_code=500)
    if kind == "rate":
        return UpstreamAIError(RATE_LIMIT_MESSAGE, code="AI_RATE_LIMITED", status_code=429)
    if kind == "permission":
        return UpstreamAIError(PERMISSION_MESSAGE, code="AI_PERMISSION_DENIED", status_code=500)
    return UpstreamAIError(f"Extraction failed: {exc}", code="AI_EXTRACTION_FAILED", status_code=500)


def connection_error_message(exc: Exception) -> str:
    kind = _error_kind(exc)
    if kind == "auth":
        return AUTH_MESSAGE
    if kind == "rate":
        return RATE_LIMIT_MESSAGE
    if kind == "permission":
        return PERMISSION_MESSAGE
    return f"Connection failed: {exc}"
