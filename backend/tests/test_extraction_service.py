"""
test_extraction_service.py — Upload gatekeeping, MIME routing and the LLM client.

No network: litellm.acompletion and llm_client.extract_document are
monkeypatched. Coroutines are driven with asyncio.run().
"""

import asyncio
from types import SimpleNamespace

import pytest

from app.services import extraction_service, llm_client
from app.services.exceptions import (
    FileTooLargeError,
    InvalidUploadError,
    MissingApiKeyError,
    UnsupportedFileError,
    UpstreamAIError,
)


def _fake_response(text, model="anthropic/claude-sonnet-4-20250514"):
    return SimpleNamespace(model=model, choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


# ===========================================================================
# Class 1: Upload validation
# ===========================================================================

class TestValidateUpload:

    def test_missing_file(self):
        with pytest.raises(InvalidUploadError) as exc:
            extraction_service.validate_upload(None, None, None)
        assert exc.value.message == "No file provided"
        assert exc.value.status_code == 400

    def test_too_large(self, monkeypatch):
        monkeypatch.setattr(extraction_service, "MAX_UPLOAD_BYTES", 10)
        with pytest.raises(FileTooLargeError) as exc:
            extraction_service.validate_upload(b"x" * 11, "quote.pdf", "application/pdf")
        assert exc.value.message == "File too large. Maximum size is 20MB."

    def test_declared_size_over_limit(self, monkeypatch):
        monkeypatch.setattr(extraction_service, "MAX_UPLOAD_BYTES", 10)
        with pytest.raises(FileTooLargeError):
            extraction_service.check_declared_size(11)

    @pytest.mark.parametrize("size", [None, 0, 10])
    def test_declared_size_within_limit(self, monkeypatch, size):
        monkeypatch.setattr(extraction_service, "MAX_UPLOAD_BYTES", 10)
        extraction_service.check_declared_size(size)

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedFileError) as exc:
            extraction_service.validate_upload(b"PK..", "quote.docx", "application/msword")
        assert exc.value.message == (
            "Unsupported file type: application/msword. Supported: PDF, PNG, JPG, CSV, XLS, XLSX"
        )

    @pytest.mark.parametrize("content_type, filename, expected", [
        ("application/octet-stream", "quote.xlsx", extraction_service.XLSX_MIME),
        ("", "scan.JPG", "image/jpeg"),
        (None, "quote.csv", "text/csv"),
        ("text/csv; charset=utf-8", "quote.txt", "text/csv"),
        ("application/pdf", "quote.bin", "application/pdf"),
    ])
    def test_mime_resolution(self, content_type, filename, expected):
        assert extraction_service.validate_upload(b"data", filename, content_type) == expected


# ===========================================================================
# Class 2: Routing
# ===========================================================================

class TestExtractQuotation:

    def test_csv_never_calls_ai(self, monkeypatch):
        async def _boom(*args, **kwargs):
            raise AssertionError("document AI must not be called for CSV")

        monkeypatch.setattr(llm_client, "extract_document", _boom)
        content = b"Description,Qty,Rate,Amount\nSupply and fit door,2,1500,3000\n"
        result = asyncio.run(extraction_service.extract_quotation(content, "quote.csv", "text/csv", None))
        assert result.line_items[0].amount == 3000

    def test_pdf_without_key(self):
        with pytest.raises(MissingApiKeyError) as exc:
            asyncio.run(extraction_service.extract_quotation(b"%PDF-1.4", "quote.pdf", "application/pdf", None))
        assert exc.value.message == "No API key configured. Go to Settings to add your Anthropic API key."
        assert exc.value.status_code == 500

    def test_pdf_goes_through_normalizer(self, monkeypatch):
        calls = {}

        async def _fake_extract(data, mime_type, api_key, model=None):
            calls["mime_type"] = mime_type
            calls["api_key"] = api_key
            return '```json\n{"supplierName": "Acme", "lineItems": [], "confidence": "high"}\n```'

        monkeypatch.setattr(llm_client, "extract_document", _fake_extract)
        result = asyncio.run(extraction_service.extract_quotation(b"%PDF-1.4", "quote.pdf", "application/pdf", "sk-test"))
        assert result.supplier_name == "Acme"
        assert result.confidence == "high"
        assert calls == {"mime_type": "application/pdf", "api_key": "sk-test"}

    def test_jpg_alias_sent_as_jpeg(self, monkeypatch):
        seen = []

        async def _fake_extract(data, mime_type, api_key, model=None):
            seen.append(mime_type)
            return "not json"

        monkeypatch.setattr(llm_client, "extract_document", _fake_extract)
        result = asyncio.run(extraction_service.extract_quotation(b"\xff\xd8", "scan.jpg", "image/jpg", "sk-test"))
        assert seen == ["image/jpeg"]
        assert result.confidence == "low"


# ===========================================================================
# Class 3: LLM client
# ===========================================================================

class TestLlmClient:

    def test_document_content_for_pdf(self):
        content = llm_client.build_document_content(b"%PDF", "application/pdf")
        assert content[0]["type"] == "file"
        assert content[0]["file"]["file_data"].startswith("data:application/pdf;base64,")
        assert content[1] == {"type": "text", "text": llm_client.EXTRACTION_PROMPT}

    def test_document_content_for_image(self):
        content = llm_client.build_document_content(b"\x89PNG", "image/png")
        assert content[0]["type"] == "image_url"
        assert content[0]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_extract_document_passes_key(self, monkeypatch):
        captured = {}

        async def _fake_acompletion(**kwargs):
            captured.update(kwargs)
            return _fake_response('{"supplierName": "Acme"}')

        monkeypatch.setattr(llm_client.litellm, "acompletion", _fake_acompletion)
        text = asyncio.run(llm_client.extract_document(b"%PDF", "application/pdf", "sk-test"))
        assert text == '{"supplierName": "Acme"}'
        assert captured["api_key"] == "sk-test"
        assert captured["model"] == llm_client.LLM_EXTRACTION_MODEL

    def test_extract_document_classifies_failure(self, monkeypatch):
        async def _fail(**kwargs):
            raise RuntimeError("Request ETIMEDOUT after 60s")

        monkeypatch.setattr(llm_client.litellm, "acompletion", _fail)
        with pytest.raises(UpstreamAIError) as exc:
            asyncio.run(llm_client.extract_document(b"%PDF", "application/pdf", "sk-test"))
        assert exc.value.status_code == 504
        assert exc.value.message == llm_client.TIMEOUT_MESSAGE

    @pytest.mark.parametrize("text, status, message", [
        ("Error code: 401 - authentication_error", 500, llm_client.AUTH_MESSAGE),
        ("Error code: 429 - too many requests", 429, llm_client.RATE_LIMIT_MESSAGE),
        ("Error code: 403 - permission_error", 500, llm_client.PERMISSION_MESSAGE),
    ])
    def test_classify_error_from_text(self, text, status, message):
        error = llm_client.classify_error(RuntimeError(text))
        assert error.status_code == status
        assert error.message == message

    @pytest.mark.parametrize("text", [
        "Model failed to generate a response for this document",
        "Could not separate the pages of this scan",
        "Invalid image: file appears to be corrupted",
        "Error code: 400 - invalid_request_error: messages.0.content is empty",
    ])
    def test_ordinary_failures_not_misclassified(self, text):
        error = llm_client.classify_error(RuntimeError(text))
        assert error.status_code == 500
        assert error.code == "AI_EXTRACTION_FAILED"
        assert error.message == f"Extraction failed: {text}"

    @pytest.mark.parametrize("text, status, message", [
        ("AnthropicException - invalid x-api-key", 500, llm_client.AUTH_MESSAGE),
        ("rate_limit_error: Number of request tokens has exceeded your per-minute rate limit", 429,
         llm_client.RATE_LIMIT_MESSAGE),
    ])
    def test_classify_error_from_error_type(self, text, status, message):
        error = llm_client.classify_error(RuntimeError(text))
        assert error.status_code == status
        assert error.message == message

    def test_classify_generic_error(self):
        error = llm_client.classify_error(RuntimeError("Service unavailable"))
        assert error.status_code == 500
        assert error.message == "Extraction failed: Service unavailable"

    def test_connection_success(self, monkeypatch):
        async def _fake_acompletion(**kwargs):
            assert kwargs["max_tokens"] == 32
            return _fake_response("connected")

        monkeypatch.setattr(llm_client.litellm, "acompletion", _fake_acompletion)
        result = asyncio.run(llm_client.test_connection("sk-test"))
        assert result["success"] is True
        assert result["response"] == "connected"
        assert result["message"].startswith("Connected successfully. Model: ")

    def test_connection_failure_never_raises(self, monkeypatch):
        async def _fail(**kwargs):
            raise RuntimeError("Error code: 401 - invalid x-api-key")

        monkeypatch.setattr(llm_client.litellm, "acompletion", _fail)
        result = asyncio.run(llm_client.test_connection("sk-bad"))
        assert result == {"success": False, "error": llm_client.AUTH_MESSAGE}
