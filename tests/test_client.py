"""Tests for the CV Builder HTTP client."""

import httpx
import pytest

from cv_builder.client import CVBuilderClient
from cv_builder.models.cv_models import SectionKey


def make_client(handler):
    return CVBuilderClient("http://test", transport=httpx.MockTransport(handler))


def test_load_cv_parses_camel_case(sample_cv):
    """Test that the loaded CV is parsed from the API's JSON."""
    sample_cv.id = "cv-1"
    body = {
        "cv": sample_cv.model_dump(mode="json", by_alias=True),
        "prefilled": False,
        "degraded": True,
        "warnings": [{"section": "projects", "message": "timeout"}],
    }

    def handler(request):
        assert request.url.path == "/api/v1/cv/pro-1"
        return httpx.Response(200, json=body)

    cv, prefilled, warnings = make_client(handler).load_cv("pro-1")

    assert cv.id == "cv-1"
    assert cv.work_experience[0].job_title == "Engineer"
    assert prefilled is False
    assert warnings[0].section == SectionKey.PROJECTS


def test_save_cv_sends_aliases_and_accepts_partial(sample_cv):
    """Test that a partial save is returned rather than raised."""
    sent = {}

    def handler(request):
        sent["method"] = request.method
        sent["body"] = request.read()
        return httpx.Response(207, json={
            "cv_id": "cv-1",
            "saved_sections": ["work_experience"],
            "failed_sections": [{"section": "skills", "step": "insert", "detail": "boom"}],
        })

    result = make_client(handler).save_cv("pro-1", sample_cv)

    assert sent["method"] == "PUT"
    assert b'"workExperience"' in sent["body"]
    assert result.cv_id == "cv-1"
    assert result.failed_sections[0].section == SectionKey.SKILLS


def test_save_cv_raises_when_nothing_saved(sample_cv):
    """Test that a failed save raises."""
    client = make_client(lambda request: httpx.Response(503, json={"detail": "down"}))
    with pytest.raises(httpx.HTTPStatusError):
        client.save_cv("pro-1", sample_cv)


def test_export_pdf_reads_filename():
    """Test that the download name comes from the response headers."""
    def handler(request):
        return httpx.Response(
            200,
            content=b"%PDF-1.7",
            headers={"Content-Disposition": 'attachment; filename="Ada_Lovelace_CV.pdf"'},
        )

    content, filename = make_client(handler).export_pdf("pro-1")
    assert content == b"%PDF-1.7"
    assert filename == "Ada_Lovelace_CV.pdf"


def test_is_healthy():
    """Test the health check."""
    assert make_client(lambda request: httpx.Response(200, json={"status": "ok"})).is_healthy()
    assert not make_client(lambda request: httpx.Response(500)).is_healthy()

    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    assert not make_client(refuse).is_healthy()
