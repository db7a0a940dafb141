"""Waste classification with Gemini through the google-genai SDK."""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ecoreport.core.errors import ExternalServiceFailure
from ecoreport.core.settings import settings

logger = logging.getLogger(__name__)

PROMPT = """You are an expert in waste management. Analyze this image and return JSON:
{
  "wasteType": "type",
  "quantity": "amount in kg or L",
  "confidence": 0.9
}"""

_FENCE = re.compile(r"```json|```")
_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


class VerificationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    waste_type: str = Field(alias="wasteType", min_length=1)
    quantity: str = Field(min_length=1)
    confidence: float = Field(ge=0, le=1)

    @field_validator("waste_type", "quantity", mode="before")
    @classmethod
    def _as_text(cls, v):
        return str(v).strip() if v is not None else v

    def as_record(self) -> dict:
        return self.model_dump(by_alias=True)


def split_data_url(image: str, mime_type: str | None = None) -> tuple[str, str]:
    """Accept either a ``data:<mime>;base64,`` URL or bare base64 data."""
    m = _DATA_URL.match(image.strip())
    if m:
        return m.group("mime"), m.group("data")
    return mime_type or "image/jpeg", image.strip()


def parse_classification(text: str) -> VerificationResult:
    cleaned = _FENCE.sub("", text or "").strip()
    if not cleaned:
        raise ExternalServiceFailure("classification_empty")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("classifier returned non-JSON text: %.200s", cleaned)
        raise ExternalServiceFailure("classification_malformed")
    try:
        return VerificationResult.model_validate(data)
    except ValidationError:
        logger.warning("classifier returned unexpected payload: %s", data)
        raise ExternalServiceFailure("classification_malformed")


async def classify_image(image: str, mime_type: str | None = None, client: genai.Client | None = None) -> VerificationResult:
    if not settings.GEMINI_API_KEY and client is None:
        raise ExternalServiceFailure("classifier_not_configured")
    mime, data = split_data_url(image, mime_type)
    if not data:
        raise ExternalServiceFailure("image_missing")
    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error:
        raise ExternalServiceFailure("image_invalid")

    client = client or genai.Client(
        api_key=settings.GEMINI_API_KEY,
        http_options=types.HttpOptions(timeout=int(settings.HTTP_TIMEOUT * 1000)),
    )
    try:
        response = await client.aio.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=[PROMPT, types.Part.from_bytes(data=raw, mime_type=mime)],
        )
    except genai_errors.APIError as e:
        logger.error("classifier error %s: %s", e.code, e.message)
        raise ExternalServiceFailure("classifier_error")
    except httpx.HTTPError as e:
        logger.error("classifier unreachable: %s", e)
        raise ExternalServiceFailure("classifier_unreachable")
    return parse_classification(response.text)
