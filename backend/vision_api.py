import asyncio
import logging

import aiohttp
from pydantic import ValidationError

from config import Settings
from models import (
    AnnotateImageResponse,
    BatchAnnotateImagesResponse,
    LabelResult,
    ObjectResult,
)

logger = logging.getLogger(__name__)

UNKNOWN_ARTWORK = "Unknown Artwork"
NO_TEXT_DETECTED = "No text detected"

# Web entities below this score are treated as noise
MIN_ENTITY_SCORE = 0.5
MAX_RESULTS = 10


class VisionAPIError(Exception):
    """Raised when an annotate request cannot produce a usable response."""


def format_confidence(score: float | None) -> str:
    """Turn a 0-1 score into a percentage string with two decimals."""
    return f"{(score or 0.0) * 100:.2f}"


class VisionClient:
    """Thin async client for the Cloud Vision images:annotate endpoint.

    Every public ``detect_*`` method absorbs its own failures and returns a
    neutral default, so callers never have to handle errors.
    """

    def __init__(self, settings: Settings):
        self._api_key = settings.google_cloud_api_key
        self._url = settings.vision_url

    async def _annotate(
        self, image_b64: str, feature_type: str, max_results: int | None = None
    ) -> AnnotateImageResponse:
        if not self._api_key:
            raise VisionAPIError("Google Cloud API key not configured")

        feature = {"type": feature_type}
        if max_results is not None:
            feature["maxResults"] = max_results
        body = {"requests": [{"image": {"content": image_b64}, "features": [feature]}]}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._url, params={"key": self._api_key}, json=body
                ) as resp:
                    resp.raise_for_status()
                    data = await resp.json()
            batch = BatchAnnotateImagesResponse.model_validate(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValidationError, ValueError) as exc:
            raise VisionAPIError(f"{feature_type} request failed: {exc}") from exc

        if not batch.responses:
            return AnnotateImageResponse()

        result = batch.responses[0]
        if result.error is not None:
            logger.warning(
                "%s returned an error: %s (code %s)",
                feature_type,
                result.error.message,
                result.error.code,
            )
        return result

    async def detect_web_entities(self, image_b64: str) -> str:
        """Best guess at the artwork's name. Never empty."""
        try:
            result = await self._annotate(image_b64, "WEB_DETECTION", MAX_RESULTS)
        except VisionAPIError as exc:
            logger.error("Web detection failed: %s", exc)
            return UNKNOWN_ARTWORK

        entities = result.webDetection.webEntities if result.webDetection else []
        candidates = [
            e for e in entities if e.description and (e.score or 0.0) > MIN_ENTITY_SCORE
        ]
        if candidates:
            # max() keeps the first of equally scored entities
            return max(candidates, key=lambda e: e.score or 0.0).description

        labels = await self.detect_labels(image_b64)
        return labels[0].description if labels else UNKNOWN_ARTWORK

    async def detect_labels(self, image_b64: str) -> list[LabelResult]:
        try:
            result = await self._annotate(image_b64, "LABEL_DETECTION", MAX_RESULTS)
        except VisionAPIError as exc:
            logger.error("Label detection failed: %s", exc)
            return []

        return [
            LabelResult(description=a.description or "", confidence=format_confidence(a.score))
            for a in result.labelAnnotations
        ]

    async def detect_objects(self, image_b64: str) -> list[ObjectResult]:
        try:
            result = await self._annotate(image_b64, "OBJECT_LOCALIZATION", MAX_RESULTS)
        except VisionAPIError as exc:
            logger.error("Object localization failed: %s", exc)
            return []

        return [
            ObjectResult(name=a.name or "", confidence=format_confidence(a.score))
            for a in result.localizedObjectAnnotations
        ]

    async def detect_text(self, image_b64: str) -> str:
        try:
            result = await self._annotate(image_b64, "TEXT_DETECTION")
        except VisionAPIError as exc:
            logger.error("Text detection failed: %s", exc)
            return NO_TEXT_DETECTED

        # The first annotation covers the whole image
        if result.textAnnotations and result.textAnnotations[0].description:
            return result.textAnnotations[0].description
        return NO_TEXT_DETECTED
