"""Helpers for loading configuration from TOML and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import tomllib

DEFAULT_CONFIG_NAME = "notepub.toml"
CONFIG_ENV_VAR = "NOTEPUB_CONFIG"
TOKEN_ENV_VAR = "MICROBLOG_APP_TOKEN"

_DESCRIPTION_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}
_VISIBILITIES = {"draft", "published"}


@dataclass(slots=True)
class HttpSettings:
    timeout: float = 30.0


@dataclass(slots=True)
class MicroblogSettings:
    app_token: str = ""
    micropub_endpoint: str = "https://micro.blog/micropub"
    media_endpoint: str = "https://micro.blog/micropub/media"
    default_tags: str = ""
    post_visibility: str = "draft"
    selected_blog_id: str = "default"
    blogs: dict[str, str] = field(default_factory=dict)
    categories: dict[str, list[str]] = field(default_factory=dict)


@dataclass(slots=True)
class UploadSettings:
    delete_after_upload: bool = False
    use_description_service: bool = True


@dataclass(slots=True)
class DescriptionSettings:
    provider: str = "openai"
    api_key: str = ""
    model: str | None = None
    endpoint: str | None = None
    max_tokens: int = 60


@dataclass(slots=True)
class PublishSettings:
    rename_note_after_publish: bool = False


@dataclass(slots=True)
class AppConfig:
    microblog: MicroblogSettings
    upload: UploadSettings
    description: DescriptionSettings
    publish: PublishSettings
    http: HttpSettings
    source: Path | None = None


def _config_path(explicit: str | os.PathLike[str] | None, env: Mapping[str, str]) -> Path | None:
    if explicit:
        return Path(explicit)
    env_value = env.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value)
    return None


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _as_bool(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _build_microblog(data: Mapping[str, Any], env: Mapping[str, str]) -> MicroblogSettings:
    defaults = MicroblogSettings()
    visibility = str(data.get("post_visibility", defaults.post_visibility)).lower()
    if visibility not in _VISIBILITIES:
        raise ValueError(
            f"Unsupported post_visibility '{visibility}', expected one of {sorted(_VISIBILITIES)}"
        )
    categories_raw = data.get("categories", {})
    categories = {
        str(blog): [str(item) for item in items]
        for blog, items in categories_raw.items()
        if isinstance(items, list)
    }
    return MicroblogSettings(
        app_token=env.get(TOKEN_ENV_VAR) or str(data.get("app_token", "")),
        micropub_endpoint=str(data.get("micropub_endpoint", defaults.micropub_endpoint)),
        media_endpoint=str(data.get("media_endpoint", defaults.media_endpoint)),
        default_tags=str(data.get("default_tags", "")),
        post_visibility=visibility,
        selected_blog_id=str(data.get("selected_blog_id", defaults.selected_blog_id)),
        blogs={str(k): str(v) for k, v in data.get("blogs", {}).items()},
        categories=categories,
    )


def _build_description(data: Mapping[str, Any], env: Mapping[str, str]) -> DescriptionSettings:
    provider = str(data.get("provider", "openai")).lower()
    if provider not in _DESCRIPTION_KEY_ENV:
        raise ValueError(f"Unsupported description provider: {provider}")
    api_key = str(data.get("api_key", "")) or env.get(_DESCRIPTION_KEY_ENV[provider], "")
    model = data.get("model")
    endpoint = data.get("endpoint")
    return DescriptionSettings(
        provider=provider,
        api_key=api_key,
        model=str(model) if model else None,
        endpoint=str(endpoint) if endpoint else None,
        max_tokens=int(data.get("max_tokens", 60)),
    )


def load_config(
    config_path: str | os.PathLike[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load configuration, falling back to defaults when no file is present.

    Resolution order for the file: ``config_path``, ``$NOTEPUB_CONFIG``, then
    ``notepub.toml`` in the working directory. An explicitly named file that
    does not exist is an error; a missing default file is not.
    """
    environ = env if env is not None else os.environ
    path = _config_path(config_path, environ)
    if path is not None:
        data = _load_toml(path)
    else:
        candidate = Path.cwd() / DEFAULT_CONFIG_NAME
        path = candidate if candidate.exists() else None
        data = _load_toml(candidate) if path else {}

    upload_section = data.get("upload", {})
    publish_section = data.get("publish", {})
    http_section = data.get("http", {})

    return AppConfig(
        microblog=_build_microblog(data.get("microblog", {}), environ),
        upload=UploadSettings(
            delete_after_upload=_as_bool(
                upload_section.get("delete_after_upload"), default=False
            ),
            use_description_service=_as_bool(
                upload_section.get("use_description_service"), default=True
            ),
        ),
        description=_build_description(data.get("description", {}), environ),
        publish=PublishSettings(
            rename_note_after_publish=_as_bool(
                publish_section.get("rename_note_after_publish"), default=False
            ),
        ),
        http=HttpSettings(timeout=float(http_section.get("timeout", 30))),
        source=path,
    )


__all__ = [
    "AppConfig",
    "DescriptionSettings",
    "HttpSettings",
    "MicroblogSettings",
    "PublishSettings",
    "UploadSettings",
    "load_config",
]
