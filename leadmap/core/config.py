"""Application configuration helpers."""

import argparse
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, FrozenSet, Tuple

from dotenv import load_dotenv

from leadmap.models import DelayPolicy

logger = logging.getLogger(__name__)

DEFAULT_SECTORS: Tuple[str, ...] = (
    "pollerías",
    "restaurantes",
    "ferreterías",
    "farmacias",
    "clínicas",
    "talleres",
    "hoteles",
    "colegios privados",
    "barberías",
)
HIGH_YIELD_SECTORS: FrozenSet[str] = frozenset({"clínicas", "hoteles", "colegios privados"})


@dataclass(frozen=True)
class DeepSearchPreset:
    """A sector searched through many phrasings to get past the 60-result cap."""

    sector: str
    query_templates: Tuple[str, ...]
    output_stem: str

    def queries(self, city: str) -> Tuple[str, ...]:
        return tuple(template.format(city=city) for template in self.query_templates)


DEEP_SEARCH_PRESETS: Dict[str, DeepSearchPreset] = {
    "ropa": DeepSearchPreset(
        sector="Venta de Ropa",
        query_templates=(
            "tiendas de ropa en {city}",
            "boutiques en {city}",
            "ropa de mujer en {city}",
            "ropa de hombre en {city}",
            "ropa de niños en {city}",
            "ropa deportiva en {city}",
            "camisetas en {city}",
            "jeans en {city}",
            "vestidos en {city}",
            "zapatillas en {city}",
            "zapaterías en {city}",
            "centros comerciales de ropa en {city}",
            "galerías de moda en {city}",
            "tiendas de ropa en El Tambo {city}",
            "tiendas de ropa en Chilca {city}",
            "mercado mayorista ropa {city}",
            "confecciones textiles {city}",
        ),
        output_stem="ropa",
    ),
}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    city: str = "Huancayo"
    country: str = "PE"
    region: str = "pe"
    language: str = "es"
    max_pages: int = 3
    output_dir: str = "data"
    worker_port: int = 9000


@dataclass(frozen=True)
class CollectorConfig:
    """Static per-deployment knobs handed to a collection pipeline."""

    city: str = "Huancayo"
    country: str = "PE"
    region: str = "pe"
    language: str = "es"
    sectors: Tuple[str, ...] = DEFAULT_SECTORS
    high_yield_sectors: FrozenSet[str] = HIGH_YIELD_SECTORS
    max_pages: int = 3
    delays: DelayPolicy = field(default_factory=DelayPolicy)
    require_city_in_address: bool = False

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "CollectorConfig":
        values = dict(
            city=settings.city,
            country=settings.country,
            region=settings.region,
            language=settings.language,
            max_pages=settings.max_pages,
        )
        values.update(overrides)
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    city = os.getenv("LEADS_CITY") or "Huancayo"
    country = os.getenv("LEADS_COUNTRY") or "PE"
    region = (os.getenv("LEADS_REGION") or "pe").strip().lower()
    language = os.getenv("LEADS_LANGUAGE") or "es"
    max_pages = int(os.getenv("WORKER_MAX_PAGES", "3"))
    output_dir = os.getenv("LEADS_OUTPUT_DIR") or "data"
    worker_port = int(os.getenv("WORKER_PORT", "9000"))

    if not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places requests will fail.")

    return Settings(
        google_api_key=google_api_key,
        city=city,
        country=country,
        region=region,
        language=language,
        max_pages=max_pages,
        output_dir=output_dir,
        worker_port=worker_port,
    )


def require_api_key(settings: Settings) -> str:
    if not settings.google_api_key:
        raise ConfigError("GOOGLE_API_KEY must be set in the environment to query Google Places.")
    return settings.google_api_key


def build_query(sector: str, city: str) -> str:
    """Compose the text search string for a sector, e.g. 'hoteles en Huancayo'."""
    sector = (sector or "").strip()
    if not sector:
        raise ValueError("Sector must be provided to build a query")
    return f"{sector} en {city}".strip()


def validate_max_pages(max_pages: int) -> int:
    if max_pages < 1:
        raise ConfigError(f"max pages per query must be at least 1, got {max_pages}")
    return max_pages


def get_preset(name: str) -> DeepSearchPreset:
    try:
        return DEEP_SEARCH_PRESETS[name]
    except KeyError:
        raise ConfigError(f"Unknown deep search preset: {name}") from None


def positive_int(value: str) -> int:
    """argparse type for page caps and similar counts."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"{value!r} must be at least 1")
    return number
