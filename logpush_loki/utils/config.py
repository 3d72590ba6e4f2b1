"""
Environment-driven settings, read once at startup
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from logpush_loki.services.forwarder import ForwarderConfig


class Settings(BaseModel):
    """Process-wide settings for the adapter"""
    loki_push_url: Optional[str] = Field(default=None, description="Loki push endpoint")
    loki_push_timeout: Optional[float] = Field(default=None, gt=0, description="Push timeout in seconds")
    log_level: str = Field(default='INFO', description="Logging level")

    @field_validator('loki_push_url', 'loki_push_timeout', mode='before')
    @classmethod
    def blank_as_unset(cls, v):
        """Treat empty environment values as unset"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v):
        return v.strip().upper() or 'INFO'

    @property
    def forwarder(self) -> ForwarderConfig:
        return ForwarderConfig(push_url=self.loki_push_url, timeout=self.loki_push_timeout)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Raises:
        pydantic.ValidationError: If a value is malformed
    """
    if environ is None:
        environ = os.environ

    return Settings(
        loki_push_url=environ.get('LOKI_PUSH_URL'),
        loki_push_timeout=environ.get('LOKI_PUSH_TIMEOUT'),
        log_level=environ.get('LOG_LEVEL', 'INFO')
    )
