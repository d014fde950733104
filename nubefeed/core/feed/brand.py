"""
Brand resolution for feed items.
"""

from typing import Any, Dict, Mapping, Optional

from .models import localized


BRAND_KEYS = ('brand', 'marca')


class BrandResolver:
    """
    Resolves the brand for a product.

    Order: per-store override, product brand (nested name preferred), vendor,
    manufacturer, a brand-like entry in attributes/properties, then the
    configured default. An empty result means no brand element is written.
    """

    def __init__(
        self,
        brand_map: Optional[Mapping[str, str]] = None,
        default_brand: str = '',
        primary_language: str = 'es'
    ):
        self.brand_map = brand_map or {}
        self.default_brand = (default_brand or '').strip()
        self.primary_language = primary_language

    def _text(self, value: Any) -> str:
        return localized(value, self.primary_language).strip()

    def _from_brand_field(self, value: Any) -> str:
        if isinstance(value, Mapping):
            # Brand objects: name, or a localized map keyed by language
            if 'name' in value:
                return self._text(value['name'])
            return self._text(value.get(self.primary_language))
        return self._text(value)

    def _from_bag(self, bag: Any) -> str:
        if isinstance(bag, Mapping):
            for key, value in bag.items():
                if str(key).strip().lower() in BRAND_KEYS:
                    brand = self._text(value)
                    if brand:
                        return brand
            return ''

        if isinstance(bag, list):
            for entry in bag:
                if not isinstance(entry, Mapping):
                    continue
                name = self._text(entry.get('name') or entry.get('key'))
                if name.lower() in BRAND_KEYS:
                    brand = self._text(entry.get('value'))
                    if brand:
                        return brand
        return ''

    def resolve(self, store_id: str, product: Dict[str, Any]) -> str:
        """
        Resolve the brand for one product.

        Args:
            store_id: Store id (for the per-store override)
            product: Raw product dict

        Returns:
            Trimmed brand, possibly ''
        """
        override = (self.brand_map.get(str(store_id)) or '').strip()
        if override:
            return override

        product = product or {}
        candidates = (
            lambda: self._from_brand_field(product.get('brand')),
            lambda: self._text(product.get('vendor')),
            lambda: self._text(product.get('manufacturer')),
            lambda: self._from_bag(product.get('attributes')),
            lambda: self._from_bag(product.get('properties')),
        )
        for candidate in candidates:
            brand = candidate()
            if brand:
                return brand

        return self.default_brand
