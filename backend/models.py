from typing import Any

from pydantic import BaseModel


# Google Cloud Vision images:annotate response shapes


class Status(BaseModel):
    code: int | None = None
    message: str | None = None


class WebEntity(BaseModel):
    entityId: str | None = None
    description: str | None = None
    score: float | None = None


class WebDetection(BaseModel):
    webEntities: list[WebEntity] = []


class EntityAnnotation(BaseModel):
    description: str | None = None
    score: float | None = None


class LocalizedObjectAnnotation(BaseModel):
    name: str | None = None
    score: float | None = None


class AnnotateImageResponse(BaseModel):
    webDetection: WebDetection | None = None
    labelAnnotations: list[EntityAnnotation] = []
    localizedObjectAnnotations: list[LocalizedObjectAnnotation] = []
    textAnnotations: list[EntityAnnotation] = []
    error: Status | None = None


class BatchAnnotateImagesResponse(BaseModel):
    responses: list[AnnotateImageResponse] = []


# Outgoing API shapes


class LabelResult(BaseModel):
    description: str
    confidence: str


class ObjectResult(BaseModel):
    name: str
    confidence: str


class VisionAnalysis(BaseModel):
    labels: list[LabelResult]
    objects: list[ObjectResult]
    detectedText: str


class ScanResult(BaseModel):
    status: str = "success"
    timestamp: str
    detectedArtwork: str
    visionAnalysis: VisionAnalysis
    artworkDetails: dict[str, Any]


class ApiKeysConfigured(BaseModel):
    googleCloud: bool
    groq: bool


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    apiKeysConfigured: ApiKeysConfigured
