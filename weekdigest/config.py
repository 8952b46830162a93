from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path

# Get the project root directory (parent of weekdigest folder)
PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_TRUSTED_HOSTS = [
    "ocw.mit.edu",
    "khanacademy.org",
    "tutorial.math.lamar.edu",
    "youtube.com",
    "youtu.be",
    "openstax.org",
    "math.princeton.edu",
    "math.berkeley.edu",
    "math.stanford.edu",
    "harvard.edu",
    "edu",
]

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'weekdigest.db'}"

    # AI Provider Configuration
    ai_provider: str = "ollama"  # "ollama" or "claude"

    # Ollama settings (for local development)
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2:latest"

    # Claude API settings (for production)
    claude_api_key: str = ""
    claude_model: str = "claude-3-5-sonnet-20241022"

    # Generation knobs
    schedule_temperature: float = 0.0
    resource_temperature: float = 0.2
    max_output_tokens_schedule: int = 900
    max_output_tokens_resources: int = 1300

    # Characters of syllabus context sent with the schedule prompt
    syllabus_hint_chars: int = 1800

    # Host suffixes a curated resource URL must belong to
    trusted_resource_hosts: List[str] = DEFAULT_TRUSTED_HOSTS

    log_level: str = "INFO"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")

settings = Settings()
