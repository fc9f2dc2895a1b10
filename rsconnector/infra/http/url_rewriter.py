from __future__ import annotations

import re

_API_SUFFIX = re.compile(r"/api/?$")


def site_root(base_url: str) -> str:
    """Корень сайта: base_url без хвоста /api/ и завершающих слэшей."""
    return _API_SUFFIX.sub("", base_url).rstrip("/")


def rewrite_to_internal_url(url: str, external_base_url: str, internal_base_url: str | None = None) -> str:
    """
    Назначение:
        Переписывает абсолютный URL, выданный сервером (по его публичному адресу),
        на адрес во внутренней сети (например, имя контейнера в docker-сети).

    Контракт:
        - internal_base_url не задан -> URL без изменений.
        - URL не начинается с публичного корня -> без изменений.
    """
    if not internal_base_url:
        return url

    external_root = site_root(external_base_url)
    if not external_root or not url.startswith(external_root):
        return url

    return site_root(internal_base_url) + url[len(external_root):]


__all__ = ["rewrite_to_internal_url", "site_root"]
