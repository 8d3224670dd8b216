from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    openai_api_key: str = ""
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"
    openai_model: str = "gpt-4o-mini"
    max_completion_tokens: Optional[int] = None
    temperature: Optional[float] = None

    request_timeout: float = 30.0
    use_fallback: bool = True
    verify_connectivity: bool = False

    # Per-document excerpt length injected into every prompt
    document_excerpt_chars: int = 500
    # 1 = sequential; >1 fans segments out within a single stage
    segment_concurrency: int = 1

    cors_origins: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
