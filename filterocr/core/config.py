from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from filterocr.ocr.base_ocr import RecognitionConfig

# Latin alphanumerics, Persian digits, Persian letters, then a literal space.
DEFAULT_CHAR_WHITELIST = (
    "0123456789"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "۰۱۲۳۴۵۶۷۸۹"
    "آابپتثجچحخدذرزژسشصضطظعغفقکگلمنوهیة"
    " "
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    # OCR provider: tesseract | mock
    ocr_provider: str = "tesseract"
    ocr_languages: list[str] = ["eng", "fas"]
    ocr_char_whitelist: str = DEFAULT_CHAR_WHITELIST
    ocr_preserve_interword_spaces: bool = True
    ocr_timeout_seconds: float | None = None
    ocr_max_attempts: int = 1
    tesseract_cmd: str | None = None

    # Upload handling
    max_upload_bytes: int = 10 * 1024 * 1024
    uploads_dir: str = "uploads"
    keep_transient_copy: bool = True
    request_timeout_seconds: float | None = None

    cors_origins: list[str] = ["*"]

    def recognition_config(self) -> RecognitionConfig:
        return RecognitionConfig(
            languages=tuple(self.ocr_languages),
            char_whitelist=self.ocr_char_whitelist,
            preserve_interword_spaces=self.ocr_preserve_interword_spaces,
        )


settings = Settings()
