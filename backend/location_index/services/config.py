import json
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


def _indexes_from_env() -> Dict[str, str]:
    raw = os.getenv("LOCATION_INDEXES")
    if not raw:
        return {"en": "locations-en"}
    return {str(k).lower(): str(v) for k, v in json.loads(raw).items()}


def _clients_from_env() -> Tuple[str, ...]:
    raw = os.getenv("AUTH_MANAGER_CLIENTS", "")
    return tuple(c.strip() for c in raw.split(",") if c.strip())


@dataclass(frozen=True)
class SearchConfig:
    host: str = field(default_factory=lambda: os.getenv("ELASTIC_SEARCH_HOST", "http://localhost:9200"))
    api_key: str = field(default_factory=lambda: os.getenv("ELASTIC_SEARCH_API_KEY", ""))
    request_timeout: float = field(default_factory=lambda: float(os.getenv("ELASTIC_SEARCH_TIMEOUT", "60")))


@dataclass(frozen=True)
class IndexConfig:
    # language code -> index name, e.g. {"en": "locations-en", "ru": "locations-ru"}
    indexes: Dict[str, str] = field(default_factory=_indexes_from_env)
    language_code: str = field(default_factory=lambda: os.getenv("LOCATION_LANGUAGE", "en").lower())

    def get_index(self, language_code: str) -> Optional[str]:
        return self.indexes.get(language_code.lower())


@dataclass(frozen=True)
class MapperConfig:
    url: str = field(default_factory=lambda: os.getenv("MAPPER_URL", "http://localhost:5000"))
    access_token: str = field(default_factory=lambda: os.getenv("MAPPER_ACCESS_TOKEN", ""))
    timeout: float = field(default_factory=lambda: float(os.getenv("MAPPER_TIMEOUT", "300")))


@dataclass(frozen=True)
class AuthConfig:
    jwt_secret: str = field(default_factory=lambda: os.getenv("AUTH_JWT_SECRET", ""))
    jwt_algorithm: str = field(default_factory=lambda: os.getenv("AUTH_JWT_ALGORITHM", "HS256"))
    manager_clients: Tuple[str, ...] = field(default_factory=_clients_from_env)


@dataclass(frozen=True)
class QueueConfig:
    redis_url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://redis:6379/0"))
    queue_name: str = field(default_factory=lambda: os.getenv("RQ_QUEUE", "reupload"))
