# === FILE: sitemap_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации SitemapScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_ACCEPT = "application/xml,text/xml,text/html;q=0.9,application/xhtml+xml;q=0.8,*/*;q=0.5"


class DiscoveryConfig(BaseModel):
    """Конфигурация загрузчика и обхода дерева sitemap."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field(BROWSER_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    accept: str = Field(DEFAULT_ACCEPT, min_length=1, description="Заголовок Accept.")
    timeout: float = Field(12.0, gt=0, description="Таймаут одной попытки (секунд).")
    max_attempts: int = Field(3, ge=1, description="Число попыток на один URL.")
    backoff_base: float = Field(0.3, ge=0, description="База линейно растущей паузы между попытками.")
    robots_timeout: float = Field(15.0, gt=0, description="Таймаут попытки для robots.txt.")
    robots_attempts: int = Field(3, ge=1, description="Число попыток для robots.txt.")
    robots_variants: bool = Field(True, description="Перебирать варианты протокола/www для robots.txt.")
    max_redirects: int = Field(10, ge=0, description="Максимальная длина цепочки редиректов.")
    concurrency: int = Field(16, ge=1, le=64, description="Ширина волны параллельных загрузок.")
    min_host_interval: float = Field(0.25, ge=0, description="Минимальный интервал между запросами к хосту.")
    throttle_max_hosts: int = Field(1024, ge=1, description="Сколько хостов помнит реестр троттлинга.")
    default_limit: int = Field(5000, ge=1, description="Лимит URL по умолчанию.")
    max_limit: int = Field(20000, ge=1, description="Жесткий потолок лимита URL.")
    fast: bool = Field(True, description="Прерывать волну сразу по достижении лимита.")
    fallback_paths: List[str] = Field(
        default_factory=lambda: ["/sitemap.xml", "/sitemap_index.xml", "/wp-sitemap.xml"],
        description="Стандартные пути sitemap, если robots.txt ничего не объявил.",
    )
    render_proxy: Optional[str] = Field(
        "https://r.jina.ai/", description="Префикс публичного прокси-рендерера (None — отключить)."
    )

    @field_validator("fallback_paths")
    @classmethod
    def _paths_are_absolute(cls, v: List[str]) -> List[str]:
        bad = [p for p in v if not p.startswith("/")]
        if bad:
            raise ValueError(f"fallback path must start with '/': {bad[0]}")
        return v

    @field_validator("render_proxy", mode="before")
    @classmethod
    def _blank_proxy_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _check_limits(self) -> DiscoveryConfig:
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit must not exceed max_limit")
        return self

    def clamp_limit(self, limit: Any) -> int:
        """Приводит запрошенный лимит к диапазону [1, max_limit]; мусор → default_limit."""
        try:
            value = int(limit)
        except (TypeError, ValueError):
            value = 0
        if value <= 0:
            value = self.default_limit
        return min(value, self.max_limit)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> DiscoveryConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект DiscoveryConfig.
    Без явного пути берёт configs/default.yaml, а если его нет — значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return DiscoveryConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return DiscoveryConfig(**data)


__all__ = ["DiscoveryConfig", "load_config", "BROWSER_USER_AGENT", "DEFAULT_ACCEPT"]
