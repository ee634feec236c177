# tutor/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "AI Avatar Tutor API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))

    # CORS origins for frontend (comma separated)
    CORS_ORIGINS: list[str] = _csv(os.getenv("CORS_ORIGIN", "http://localhost:3000"))

    # OpenAI (chat completions + Whisper)
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_api_base: str = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1")
    chat_model: str = os.getenv("OPENAI_CHAT_MODEL", "gpt-3.5-turbo")
    whisper_model: str = os.getenv("WHISPER_MODEL", "whisper-1")

    # ElevenLabs API Settings (for TTS)
    eleven_api_key: str | None = os.getenv("ELEVENLABS_API_KEY")
    eleven_api_base: str = os.getenv("ELEVENLABS_API_URL", "https://api.elevenlabs.io/v1")
    default_voice_id: str = os.getenv("DEFAULT_VOICE_ID", "21m00Tcm4TlvDq8ikWAM")

    # D-ID talking head videos
    did_api_key: str | None = os.getenv("DID_API_KEY")
    did_api_base: str = os.getenv("DID_API_URL", "https://api.d-id.com")
    did_voice_id: str = os.getenv("DID_VOICE_ID", "en-US-JennyNeural")
    did_source_url: str = os.getenv(
        "DID_SOURCE_URL",
        "https://create-images-results.d-id.com/DefaultPresenters/Sarah/image.jpeg",
    )

    # HeyGen video generation + streaming avatar
    heygen_api_key: str | None = os.getenv("HEYGEN_API_KEY")
    heygen_access_token: str | None = os.getenv("HEYGEN_ACCESS_TOKEN")
    heygen_api_base: str = os.getenv("HEYGEN_API_URL", "https://api.heygen.com")
    heygen_avatar_id: str = os.getenv("HEYGEN_AVATAR_ID", "Brandon_expressive_public")
    heygen_stream_avatar_id: str = os.getenv("HEYGEN_STREAM_AVATAR_ID", "Marianne_Red_Suit_public")
    heygen_voice_id: str = os.getenv("HEYGEN_VOICE_ID", "8661cd40d6c44c709e2d0031c0186ada")

    # Avatar video cascade: ordered provider ids, then the demo library
    avatar_provider_order: list[str] = _csv(os.getenv("AVATAR_PROVIDER_ORDER", "heygen,did"))
    video_poll_interval_sec: float = float(os.getenv("VIDEO_POLL_INTERVAL_SEC", "10"))
    video_poll_max_attempts: int = int(os.getenv("VIDEO_POLL_MAX_ATTEMPTS", "30"))

    # Conversation context sent to the LLM (most recent N messages)
    history_window: int = int(os.getenv("HISTORY_WINDOW", "20"))

settings = Settings()  # Instantiate configuration
