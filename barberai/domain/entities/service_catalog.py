from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceCatalogEntry:
    service_key: str
    name_en: str
    name_ar: str
    duration_minutes: int
    price: int | None
    keywords_en: tuple[str, ...]
    keywords_ar: tuple[str, ...]
    priority: int = 0
    includes: tuple[str, ...] = ()  # combo services list the keys they bundle

    def display_name(self, language: str) -> str:
        return self.name_ar if language == "ar" else self.name_en
