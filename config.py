from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    overcast_base_url: str = "https://overcast.fm"
    overcast_session_cookie: str = ""  # pre-authenticated session, only used by account actions
    http_timeout_sec: float = 15.0
    gemini_api_key: str = ""  # empty disables episode hints
    cors_origins: List[str] = [
        "chrome-extension://*",
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Direct link weights
    weight_current_url: int = 100
    weight_anchor: int = 90
    weight_meta: int = 70
    weight_text: int = 40
    max_text_link_matches: int = 8
    max_embedded_apple_urls: int = 12
    min_apple_id_digits: int = 5

    # Query building
    podcast_title_query_boost: int = 100
    min_query_length: int = 3

    # Search fan-out
    max_search_queries: int = 3
    max_results_per_query: int = 4
    max_podcast_candidates: int = 3
    high_confidence_episode_budget: int = 180  # candidate returned alone by some query
    default_episode_budget: int = 50

    # Match thresholds
    short_circuit_score: float = 105
    acceptance_floor: float = 22

    # Gemini settings
    gemini_model: str = "gemini-3-flash"
    gemini_max_output_tokens: int = 512
    gemini_temperature: float = 0.1

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
