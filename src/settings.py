"""
Runtime configuration read from the environment (and a local .env file).
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_MODEL_URL = "https://api-inference.huggingface.co/models/google/tapas-base-finetuned-wtq"
DEFAULT_CSV_PATH = "data-series.csv"
DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_PORT = 8080


class ConfigMissing(RuntimeError):
    """A required setting is absent or unusable."""


@dataclass(frozen=True)
class Settings:
    token: str
    csv_path: str = DEFAULT_CSV_PATH
    model_url: str = DEFAULT_MODEL_URL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    port: int = DEFAULT_PORT


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigMissing(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigMissing(f"{name} must be positive, got {value}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None, env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from env (default: os.environ after loading .env).
    env_file: explicit dotenv path; None searches for .env from the working directory.
    Raises ConfigMissing if HUGGINGFACE_TOKEN is missing.
    """
    if env is None:
        load_dotenv(env_file or find_dotenv(usecwd=True))
        env = os.environ

    token = (env.get("HUGGINGFACE_TOKEN") or "").strip()
    if not token:
        raise ConfigMissing("HUGGINGFACE_TOKEN not found in environment or .env file")

    return Settings(
        token=token,
        csv_path=env.get("TABLE_QA_CSV") or DEFAULT_CSV_PATH,
        model_url=env.get("TABLE_QA_MODEL_URL") or DEFAULT_MODEL_URL,
        max_attempts=_positive_int(env, "TABLE_QA_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
        port=_positive_int(env, "PORT", DEFAULT_PORT),
    )
