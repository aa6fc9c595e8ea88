from __future__ import annotations

from barberai.application.ports.service_catalog import ServiceCatalogPort
from barberai.application.utils.message_rules import keyword_pattern, normalize_text
from barberai.domain.entities.service_catalog import ServiceCatalogEntry
from barberai.infrastructure.knowledge.service_catalog_data import SERVICE_CATALOG


class ServiceCatalogStore(ServiceCatalogPort):
    def __init__(self, catalog: dict[str, ServiceCatalogEntry] | None = None) -> None:
        self._catalog = catalog or SERVICE_CATALOG
        self._order = {key: index for index, key in enumerate(self._catalog)}

    def get_service(self, service_key: str) -> ServiceCatalogEntry | None:
        normalized_key = service_key.lower().strip()
        return self._catalog.get(normalized_key)

    def list_services(self) -> list[ServiceCatalogEntry]:
        return list(self._catalog.values())

    def match_service(self, text: str) -> ServiceCatalogEntry | None:
        """
        Keyword match in both languages.

        A keyword occurrence inside a longer matched keyword is ignored ("hot towel shave"
        does not also count as "shave" for another entry). Combos win when every bundled
        service was named; otherwise the highest priority wins, then catalog order.
        """
        normalized = normalize_text(text)
        if not normalized:
            return None

        hits: list[tuple[int, int, str]] = []
        for entry in self._catalog.values():
            for keyword in entry.keywords_en + entry.keywords_ar:
                for match in keyword_pattern(keyword).finditer(normalized):
                    hits.append((match.start("kw"), match.end("kw"), entry.service_key))

        if not hits:
            return None

        matched: set[str] = set()
        for start, end, key in hits:
            covered = any(
                other_start <= start and end <= other_end and (other_end - other_start) > (end - start)
                for other_start, other_end, _ in hits
            )
            if not covered:
                matched.add(key)

        for entry in self._catalog.values():
            if entry.includes and all(part in matched for part in entry.includes):
                matched.add(entry.service_key)

        best = max(
            (self._catalog[key] for key in matched),
            key=lambda entry: (entry.priority, -self._order[entry.service_key]),
        )
        return best
