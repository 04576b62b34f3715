import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

GOOGLE_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"


def _env(*names: str) -> str | None:
    """Return the first non-blank value among the given environment variables."""
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    google_cloud_api_key: str | None = None
    groq_api_key: str | None = None
    port: int = 3000
    allowed_origins: list[str] = ["*"]
    groq_model: str = DEFAULT_GROQ_MODEL
    vision_url: str = GOOGLE_VISION_URL
    groq_base_url: str = GROQ_BASE_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        origins = _env("ALLOWED_ORIGINS") or "*"
        return cls(
            google_cloud_api_key=_env("GOOGLE_CLOUD_API_KEY"),
            # GROK_API_KEY is the name older deployments used
            groq_api_key=_env("GROQ_API_KEY", "GROK_API_KEY"),
            port=int(_env("PORT") or 3000),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
            groq_model=_env("GROQ_MODEL") or DEFAULT_GROQ_MODEL,
            log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        )
