"""
espacos.config
==============
Settings pulled from `.env` + the process environment.

Environment
-----------
SUPABASE_URL
SUPABASE_KEY        (or SUPABASE_ANON_KEY for local dev)
SPACES_TABLE        default "spaces"
MEDIA_BUCKET        default "spaces"
LOG_LEVEL           default "INFO"
VALIDATION_MODE     "soft" | "blocking"   (default "soft")
MANAGER_ROLES       comma list            (default "admin,editor")
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()  # pulls vars from .env


class Settings(BaseModel):
    supabase_url:    Optional[str] = None
    supabase_key:    Optional[str] = None
    spaces_table:    str = "spaces"
    media_bucket:    str = "spaces"
    log_level:       str = "INFO"
    validation_mode: Literal["soft", "blocking"] = "soft"
    manager_roles:   List[str] = Field(default_factory=lambda: ["admin", "editor"])

    @field_validator("manager_roles", mode="before")
    @classmethod
    def _split_roles(cls, v):
        if isinstance(v, str):
            return [r.strip() for r in v.split(",") if r.strip()]
        return v

    @field_validator("validation_mode", mode="before")
    @classmethod
    def _lower_mode(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


def _env(name: str) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in ("", None) else None


def load_settings() -> Settings:
    raw = {
        "supabase_url":    _env("SUPABASE_URL"),
        "supabase_key":    _env("SUPABASE_KEY") or _env("SUPABASE_ANON_KEY"),
        "spaces_table":    _env("SPACES_TABLE"),
        "media_bucket":    _env("MEDIA_BUCKET"),
        "log_level":       _env("LOG_LEVEL"),
        "validation_mode": _env("VALIDATION_MODE"),
        "manager_roles":   _env("MANAGER_ROLES"),
    }
    # unset vars fall back to the model defaults
    return Settings(**{k: v for k, v in raw.items() if v is not None})


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
