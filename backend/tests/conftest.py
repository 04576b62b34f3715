import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app, get_scanner
from models import LabelResult, ObjectResult, ScanResult, VisionAnalysis


@pytest.fixture
def settings():
    return Settings(google_cloud_api_key="test-google-key", groq_api_key="test-groq-key")


@pytest.fixture
def scan_result():
    return ScanResult(
        timestamp="2024-01-01T00:00:00.000Z",
        detectedArtwork="Mona Lisa",
        visionAnalysis=VisionAnalysis(
            labels=[LabelResult(description="Painting", confidence="97.10")],
            objects=[ObjectResult(name="Person", confidence="88.00")],
            detectedText="No text detected",
        ),
        artworkDetails={"title": "Mona Lisa", "artist": "Leonardo da Vinci"},
    )


@pytest.fixture
def mock_scanner(mocker, scan_result):
    """An ArtworkScanner stand-in whose scan() returns a fixed result."""
    scanner = mocker.Mock()
    scanner.scan = mocker.AsyncMock(return_value=scan_result)
    return scanner


@pytest.fixture
def app(settings, mock_scanner):
    app = create_app(settings)
    app.dependency_overrides[get_scanner] = lambda: mock_scanner
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
