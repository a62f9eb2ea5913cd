# === FILE: cache_warmer/config.py ===
"""
Модуль для загрузки и валидации конфигурации прогрева кеша.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

DEFAULT_USER_AGENT = "Varnish-Warmer/1.0 (Cache Warming Bot)"


class WarmerConfig(BaseModel):
    """Конфигурация одного запуска прогрева."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    sitemap_url: HttpUrl = Field(..., description="URL корневого sitemap.xml или sitemap index.")
    requests_per_second: float = Field(4.0, gt=0, description="Сколько новых запросов в секунду.")
    max_concurrent: int = Field(8, ge=1, description="Максимум одновременных запросов.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос страницы (секунд).")
    sitemap_timeout: float = Field(30.0, gt=0, description="Таймаут на загрузку sitemap (секунд).")
    retry_times: int = Field(3, ge=1, description="Число попыток загрузки каждого sitemap.")
    retry_delay: float = Field(2.0, ge=0, description="Пауза между попытками (секунд).")
    sitemap_pause: float = Field(1.0, ge=0, description="Пауза между дочерними sitemap (секунд).")
    progress_every: int = Field(100, ge=1, description="Шаг отчёта о прогрессе (URL).")
    warmup_header: str = Field("X-Cache-Warmup", min_length=1, description="Заголовок-маркер прогрева.")
    warmup_header_value: str = Field("1", description="Значение заголовка-маркера.")

    @field_validator("sitemap_url", mode="before")
    def _strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def delay(self) -> float:
        """Пауза между запусками запросов, 1 / requests_per_second."""
        return 1.0 / self.requests_per_second


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


def _read_file(path: Union[str, Path, None]) -> dict[str, Any]:
    if path is None:
        # без явного пути конфиг необязателен: всё можно передать флагами CLI
        if not _DEFAULT_CFG.is_file():
            return {}
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> WarmerConfig:
    """
    Читает YAML или JSON, применяет overrides (значения None пропускаются)
    и возвращает проверенный объект WarmerConfig.

    При отсутствии явно указанного файла бросает FileNotFoundError,
    при ошибке схемы - pydantic.ValidationError.
    """
    data = _read_file(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return WarmerConfig(**data)


__all__ = ["WarmerConfig", "load_config", "DEFAULT_USER_AGENT"]
