import smtplib
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from google.genai import errors as genai_errors

from ecoreport.core.errors import ExternalServiceFailure
from ecoreport.core.settings import settings
from ecoreport.integrations import mailer
from ecoreport.integrations.classifier import PROMPT, classify_image, parse_classification, split_data_url
from ecoreport.integrations.places import autocomplete


def _gemini_client(text=None, error=None) -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text=text), side_effect=error
    )
    return client


def test_parse_classification_strips_fences():
    result = parse_classification('```json\n{"wasteType": "plastic", "quantity": 2, "confidence": 0.9}\n```')
    assert result.waste_type == "plastic"
    assert result.quantity == "2"
    assert result.as_record() == {"wasteType": "plastic", "quantity": "2", "confidence": 0.9}


@pytest.mark.parametrize("text", [
    "",
    "not json at all",
    '{"wasteType": "plastic", "quantity": "2 kg"}',
    '{"wasteType": "plastic", "quantity": "2 kg", "confidence": 1.7}',
    '{"wasteType": "", "quantity": "2 kg", "confidence": 0.5}',
])
def test_parse_classification_rejects_bad_payloads(text):
    with pytest.raises(ExternalServiceFailure):
        parse_classification(text)


def test_split_data_url():
    assert split_data_url("data:image/png;base64,QUJD") == ("image/png", "QUJD")
    assert split_data_url("QUJD", "image/webp") == ("image/webp", "QUJD")


async def test_classify_image_sends_image_part(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    client = _gemini_client('```json\n{"wasteType": "glass", "quantity": "1 kg", "confidence": 0.75}\n```')

    result = await classify_image("data:image/png;base64,QUJD", client=client)

    assert result.waste_type == "glass"
    assert result.confidence == 0.75
    call = client.aio.models.generate_content.await_args
    assert call.kwargs["model"] == settings.GEMINI_MODEL
    prompt, part = call.kwargs["contents"]
    assert prompt == PROMPT
    assert part.inline_data.data == b"ABC"
    assert part.inline_data.mime_type == "image/png"


@pytest.mark.parametrize("text", [None, "", "I cannot tell"])
async def test_classify_image_unusable_reply(monkeypatch, text):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    with pytest.raises(ExternalServiceFailure):
        await classify_image("QUJD", client=_gemini_client(text))


async def test_classify_image_api_error(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    error = genai_errors.ServerError(500, {"error": {"code": 500, "message": "boom", "status": "INTERNAL"}})
    with pytest.raises(ExternalServiceFailure) as exc:
        await classify_image("QUJD", client=_gemini_client(error=error))
    assert exc.value.detail == "classifier_error"


async def test_classify_image_unreachable(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    error = httpx.ConnectError("down")
    with pytest.raises(ExternalServiceFailure) as exc:
        await classify_image("QUJD", client=_gemini_client(error=error))
    assert exc.value.detail == "classifier_unreachable"


async def test_classify_image_rejects_undecodable_image(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    client = _gemini_client("{}")
    with pytest.raises(ExternalServiceFailure) as exc:
        await classify_image("data:image/png;base64,not*base64", client=client)
    assert exc.value.detail == "image_invalid"
    client.aio.models.generate_content.assert_not_awaited()


async def test_classify_image_requires_key(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    with pytest.raises(ExternalServiceFailure):
        await classify_image("QUJD")


async def test_autocomplete_without_key_falls_back(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "")
    assert await autocomplete("Main St") == []


async def test_autocomplete_returns_descriptions(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "maps-key")

    def handler(request):
        assert request.url.params["input"] == "Main St"
        return httpx.Response(200, json={
            "status": "OK",
            "predictions": [{"description": "Main St 1, Springfield"}, {"description": "Main St 2, Shelbyville"}],
        })

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await autocomplete(" Main St ", client=client) == ["Main St 1, Springfield", "Main St 2, Shelbyville"]


async def test_autocomplete_denied(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "maps-key")
    reply = httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: reply)) as client:
        with pytest.raises(ExternalServiceFailure):
            await autocomplete("Main St", client=client)


async def test_mail_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_USER", "")
    assert await mailer.send_visit_alert("http://x", "2024-01-01T00:00:00Z") is False


async def test_mail_failure_is_logged_not_raised(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_USER", "me@example.com")
    monkeypatch.setattr(mailer, "_send", MagicMock(side_effect=smtplib.SMTPException("nope")))
    assert await mailer.send_email("you@example.com", "hi", "body") is False


async def test_mail_sent(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_USER", "me@example.com")
    monkeypatch.setattr(settings, "ALERT_EMAIL", "")
    send = MagicMock()
    monkeypatch.setattr(mailer, "_send", send)
    assert await mailer.send_visit_alert("http://x", "now") is True
    recipient, subject, body = send.call_args.args
    assert recipient == "me@example.com"
    assert subject == "New Website Visitor"
    assert "http://x" in body
