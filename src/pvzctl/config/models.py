"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, pvzctl.toml only contains overrides.
A fresh workspace needs no config file at all.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

Role = Literal["employee", "moderator"]


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    url: str = "sqlite:///pvzctl.db"
    statement_timeout_seconds: float = Field(default=5.0, gt=0)
    echo: bool = False


class PaginationConfig(BaseModel):
    """[pagination] section."""

    model_config = {"frozen": True}

    default_limit: int = Field(default=10, ge=1)
    max_limit: int = Field(default=30, ge=1)

    @model_validator(mode="after")
    def _default_within_max(self) -> PaginationConfig:
        if self.default_limit > self.max_limit:
            msg = "pagination.default_limit must not exceed pagination.max_limit"
            raise ValueError(msg)
        return self


class AuthConfig(BaseModel):
    """[auth] section."""

    model_config = {"frozen": True}

    default_role: Role = "employee"

