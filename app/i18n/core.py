from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any


BASE_DIR = Path(__file__).resolve().parent
DEFAULT_LOCALE = "en"


class _SafeDict(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@lru_cache(maxsize=4)
def _load_catalog(locale: str) -> dict[str, Any]:
    path = BASE_DIR / f"{locale}.json"
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    return data if isinstance(data, dict) else {}


def normalize_locale(value: str | None, default: str = DEFAULT_LOCALE) -> str:
    if not value:
        return default
    token = value.strip().lower()
    if "-" in token:
        token = token.split("-", 1)[0]
    if "_" in token:
        token = token.split("_", 1)[0]
    return token or default


@lru_cache(maxsize=1)
def available_locales() -> frozenset[str]:
    return frozenset(path.stem for path in BASE_DIR.glob("*.json"))


def locale_for_user(user, default: str = DEFAULT_LOCALE) -> str:
    locale = normalize_locale(getattr(user, "locale", None), default=default)
    return locale if locale in available_locales() else default


def t(key: str, locale: str = DEFAULT_LOCALE, **vars: Any) -> str:
    locale = normalize_locale(locale)
    data = _load_catalog(locale)
    template = data.get(key)
    if template is None and locale != DEFAULT_LOCALE:
        template = _load_catalog(DEFAULT_LOCALE).get(key)
    if template is None:
        template = key
    if not isinstance(template, str):
        return str(template)
    return template.format_map(_SafeDict(**vars))


def t_count(key: str, count: int, locale: str = DEFAULT_LOCALE, **vars: Any) -> str:
    suffix = "one" if count == 1 else "other"
    return t(f"{key}.{suffix}", locale, count=count, **vars)
