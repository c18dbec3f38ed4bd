from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

NonNegativeInt = Annotated[int, Field(ge=0)]


def _normalize_base_url(value: str) -> str:
    url = (value or "").strip()
    if not url.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    if not url.endswith("/"):
        url += "/"
    return url


def _normalize_title(value: str) -> str:
    title = (value or "").strip()
    if not title:
        raise ValueError("must be a non-empty string")
    return title


class TwitterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "https://twitter.com/"
    title: str = "Twitter"

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_valid(cls, v: str) -> str:
        return _normalize_base_url(v)

    @field_validator("title")
    @classmethod
    def _title_must_be_set(cls, v: str) -> str:
        return _normalize_title(v)


class VkConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "https://vk.com/"
    title: str = "VK"
    language: Literal["ru", "en"] = "ru"

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_valid(cls, v: str) -> str:
        return _normalize_base_url(v)

    @field_validator("title")
    @classmethod
    def _title_must_be_set(cls, v: str) -> str:
        return _normalize_title(v)


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    indent: NonNegativeInt = 2  # 0 writes compact JSON
    ensure_ascii: bool = False


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    twitter: TwitterConfig = Field(default_factory=TwitterConfig)
    vk: VkConfig = Field(default_factory=VkConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
