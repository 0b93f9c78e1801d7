"""
Configuration management using Pydantic Settings.

Environment variables (case-insensitive, also read from .env):
- OCR_ENGINE: 'tesseract' or 'vllm'
- OCR_LANGUAGE: Recognition language passed to the engine
- OCR_UPSCALE_FACTOR: Scale applied to region crops before recognition
- OCR_THROTTLE_DELAY: Seconds to wait between consecutive recognitions
- TESSERACT_CMD: Path to the tesseract binary
- VLLM_API_KEY / VLLM_SERVER_URL / VLLM_MODEL: OpenAI-compatible vision server
- RENDER_SCALE / RENDER_QUALITY / RENDER_FORMAT / RENDER_ANTIALIASING
- MIN_REGION_SIZE: Region acceptance threshold in page pixels
- DATABASE_URL: SQLAlchemy database URL
"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import DEFAULT_OCR_PARAMS, DEFAULT_RENDER_OPTIONS, MIN_REGION_SIZE
from core.models import RenderOptions


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OCR Parameters
    ocr_engine: str = Field(default="tesseract")
    ocr_language: str = Field(default=DEFAULT_OCR_PARAMS['language'])
    ocr_upscale_factor: float = Field(default=DEFAULT_OCR_PARAMS['upscale_factor'], gt=0)
    ocr_throttle_delay: float = Field(default=DEFAULT_OCR_PARAMS['throttle_delay'], ge=0)
    ocr_max_tokens: int = Field(default=DEFAULT_OCR_PARAMS['max_tokens'])
    ocr_temperature: float = Field(default=DEFAULT_OCR_PARAMS['temperature'])

    # Tesseract
    tesseract_cmd: Optional[str] = Field(default=None)
    tesseract_config: str = Field(default=DEFAULT_OCR_PARAMS['tesseract_config'])

    # vLLM / OpenAI-compatible vision server
    vllm_api_key: str = Field(default="123")
    vllm_server_url: str = Field(default="http://localhost:8000/v1")
    vllm_model: str = Field(default=DEFAULT_OCR_PARAMS['model'])

    # Page rendering
    render_scale: float = Field(default=DEFAULT_RENDER_OPTIONS['scale'])
    render_quality: float = Field(default=DEFAULT_RENDER_OPTIONS['quality'])
    render_format: str = Field(default=DEFAULT_RENDER_OPTIONS['image_format'])
    render_antialiasing: bool = Field(default=DEFAULT_RENDER_OPTIONS['antialiasing'])

    # Regions
    min_region_size: float = Field(default=MIN_REGION_SIZE, ge=0)

    # Database Configuration
    database_url: str = Field(default="sqlite:///pidflow.db")

    def get_render_options(self) -> RenderOptions:
        """Get render settings as RenderOptions (clamped)."""
        return RenderOptions(
            scale=self.render_scale,
            quality=self.render_quality,
            image_format=self.render_format,
            antialiasing=self.render_antialiasing
        )

    def get_orchestrator_config(self) -> dict:
        """Get orchestrator keyword arguments as dictionary."""
        return {
            'language': self.ocr_language,
            'upscale_factor': self.ocr_upscale_factor,
            'throttle_delay': self.ocr_throttle_delay,
        }

    def get_recognizer_config(self) -> dict:
        """Get recognizer factory keyword arguments as dictionary."""
        return {
            'tesseract_cmd': self.tesseract_cmd,
            'tesseract_config': self.tesseract_config,
            'api_key': self.vllm_api_key,
            'server_url': self.vllm_server_url,
            'model': self.vllm_model,
            'max_tokens': self.ocr_max_tokens,
            'temperature': self.ocr_temperature,
        }


# Global settings instance
settings = Settings()
