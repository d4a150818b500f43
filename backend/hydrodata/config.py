"""Runtime settings, read from the environment once at import."""
import os
from pathlib import Path
from typing import List


DATA_ROOT: Path = Path(os.getenv("HYDRO_DATA_ROOT", "data"))
MANIFEST_SOURCE: str = os.getenv("HYDRO_MANIFEST_SOURCE", str(DATA_ROOT / "regions.json"))
DATA_URL_PREFIX: str = os.getenv("HYDRO_DATA_URL_PREFIX", "/data")

REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
UPLOAD_TTL: int = int(os.getenv("HYDRO_UPLOAD_TTL", "3600"))

LOG_LEVEL: str = os.getenv("HYDRO_LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("HYDRO_LOG_FILE", "")

CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv("HYDRO_CORS_ORIGINS", "http://localhost:3000,*").split(",")
    if origin.strip()
]
