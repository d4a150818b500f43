import json
import uuid
from typing import Any, Optional

import redis

from hydrodata import config
from hydrodata.models.schemas import UploadedFile


class RedisCache:
    def __init__(self, client: Optional[Any] = None):
        if client is None:
            client = redis.Redis(host=config.REDIS_HOST, port=config.REDIS_PORT, decode_responses=True)
        self.client = client

    def get_json(self, key: str) -> Optional[Any]:
        data = self.client.get(key)
        if data is None:
            return None
        return json.loads(data)

    def set_json(self, key: str, value: Any, ex: Optional[int] = 3600) -> None:
        self.client.set(key, json.dumps(value), ex=ex)


class UploadStore(RedisCache):
    """Upload snapshots keyed by token. Every save writes a whole new snapshot."""

    prefix = "upload:"

    def __init__(self, client: Optional[Any] = None, ttl: Optional[int] = None):
        super().__init__(client)
        self.ttl = config.UPLOAD_TTL if ttl is None else ttl

    def save(self, upload: UploadedFile, token: Optional[str] = None) -> str:
        token = token or uuid.uuid4().hex
        self.set_json(self.prefix + token, upload.model_dump(mode="json"), ex=self.ttl)
        return token

    def load(self, token: str) -> Optional[UploadedFile]:
        raw = self.get_json(self.prefix + token)
        if raw is None:
            return None
        return UploadedFile.model_validate(raw)
