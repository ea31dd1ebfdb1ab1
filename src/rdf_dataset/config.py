"""
Configuration for Datasets and remote SPARQL endpoints.

Provides:
- FederationConfig: how a Dataset executes queries
- EndpointConfig: connection settings for a SPARQL 1.1 Protocol endpoint
- Configuration validation and JSON persistence
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class ConfigValidationError(ValueError):
    """Configuration validation error."""
    pass


class DatasetConfigurationError(ConfigValidationError):
    """A Dataset was built from an invalid set of graphs."""
    pass


@dataclass
class FederationConfig:
    """
    Query execution settings of a Dataset.

    Attributes:
        optimize: push queries to a single shared backend via FROM /
            FROM NAMED rewriting when provenance allows it. False always
            materializes into a temporary backend.
        count_fallback: let the optimized union view count materialized
            triples when its COUNT query fails. False re-raises instead.
    """
    optimize: bool = True
    count_fallback: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "optimize": self.optimize,
            "count_fallback": self.count_fallback,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FederationConfig":
        return cls(
            optimize=data.get("optimize", True),
            count_fallback=data.get("count_fallback", True),
        )

    def save(self, path: Path) -> None:
        """Save configuration to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "FederationConfig":
        """Load configuration from a JSON file; defaults if it does not exist."""
        path = Path(path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls.from_dict(data)
        return cls()


@dataclass
class EndpointConfig:
    """Connection settings for a remote SPARQL endpoint."""
    url: str
    update_url: Optional[str] = None
    timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_backoff_seconds: float = 0.5
    auth_token: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        errors = self.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns list of error messages (empty if valid).
        """
        errors = []
        if not _is_http_url(self.url):
            errors.append(f"Invalid endpoint URL: {self.url!r}")
        if self.update_url is not None and not _is_http_url(self.update_url):
            errors.append(f"Invalid update URL: {self.update_url!r}")
        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")
        if self.max_retries < 0:
            errors.append("max_retries cannot be negative")
        if self.retry_backoff_seconds < 0:
            errors.append("retry_backoff_seconds cannot be negative")
        return errors

    @property
    def effective_update_url(self) -> str:
        return self.update_url or self.url

    def to_dict(self) -> Dict[str, Any]:
        # auth_token is never written to disk
        return {
            "url": self.url,
            "update_url": self.update_url,
            "timeout_seconds": self.timeout_seconds,
            "max_retries": self.max_retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "headers": dict(self.headers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndpointConfig":
        if "url" not in data:
            raise ConfigValidationError("Endpoint configuration requires 'url'")
        return cls(
            url=data["url"],
            update_url=data.get("update_url"),
            timeout_seconds=data.get("timeout_seconds", 30.0),
            max_retries=data.get("max_retries", 3),
            retry_backoff_seconds=data.get("retry_backoff_seconds", 0.5),
            auth_token=data.get("auth_token"),
            headers=data.get("headers", {}),
        )

    def save(self, path: Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "EndpointConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.debug(f"Loaded endpoint configuration from {path}")
        return cls.from_dict(data)


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
