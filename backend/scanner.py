import asyncio
import base64
import logging
from datetime import datetime, timezone

from description_llm import DescriptionGenerator
from models import ScanResult, VisionAnalysis
from vision_api import VisionClient

logger = logging.getLogger(__name__)

MAX_ITEMS = 10
MAX_TEXT_LENGTH = 500


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-05-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ArtworkScanner:
    def __init__(self, vision: VisionClient, describer: DescriptionGenerator):
        self.vision = vision
        self.describer = describer

    async def scan(self, image: bytes) -> ScanResult:
        image_b64 = base64.b64encode(image).decode("ascii")

        # The four vision features are independent; only the description
        # needs the resolved name.
        artwork_name, labels, objects, text = await asyncio.gather(
            self.vision.detect_web_entities(image_b64),
            self.vision.detect_labels(image_b64),
            self.vision.detect_objects(image_b64),
            self.vision.detect_text(image_b64),
        )
        logger.info("Identified artwork: %s", artwork_name)

        details = await self.describer.generate(artwork_name)

        return ScanResult(
            timestamp=utc_timestamp(),
            detectedArtwork=artwork_name,
            visionAnalysis=VisionAnalysis(
                labels=labels[:MAX_ITEMS],
                objects=objects[:MAX_ITEMS],
                detectedText=text[:MAX_TEXT_LENGTH],
            ),
            artworkDetails=details,
        )
