"""
Feed data models.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, Mapping, Union, Literal


VariantMode = Literal["split", "first"]
VARIANT_MODES = ("split", "first")

IN_STOCK = "in_stock"
OUT_OF_STOCK = "out_of_stock"


@dataclass(frozen=True)
class PlainText:
    """A text field given as a plain string."""
    value: str

    def resolve(self, primary_language: str = "es") -> str:
        return self.value


@dataclass(frozen=True)
class LocalizedMap:
    """A text field given as {language: text}; key order is preserved."""
    values: Mapping[str, Any]

    def resolve(self, primary_language: str = "es") -> str:
        if primary_language in self.values and self.values[primary_language] is not None:
            return _stringify(self.values[primary_language])
        for value in self.values.values():
            return _stringify(value)
        return ""


LocalizedText = Union[PlainText, LocalizedMap]


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple, set)):
        return ""
    return str(value)


def as_localized(value: Any) -> LocalizedText:
    """Wrap a raw upstream value as localized text."""
    if isinstance(value, Mapping):
        return LocalizedMap(value)
    return PlainText(_stringify(value))


def localized(value: Any, primary_language: str = "es") -> str:
    """Resolve a raw string-or-mapping field to text; malformed values give ''."""
    return as_localized(value).resolve(primary_language)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a price-like value; None for missing or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def format_price(value: Optional[Decimal]) -> Optional[str]:
    """Two-decimal string for a price, or None (also for values too large to quantize)."""
    if value is None:
        return None
    try:
        return str(value.quantize(Decimal("0.01")))
    except InvalidOperation:
        return None


@dataclass(frozen=True)
class FeedConfig:
    """Feed generation configuration."""
    variant_mode: VariantMode = "first"
    primary_language: str = "es"
    currency: str = "ARS"
    platform_domain: str = "tiendanube.com"
    platform_owned_domains: tuple = ("tiendanube.com", "mitiendanube.com")
    channel_title: str = "Feed de Productos Tiendanube"
    channel_description: str = "Feed generado desde la API de Tiendanube"
    link_path: str = "productos"
    tracking_query: str = "utm_source=xml"

    def __post_init__(self):
        if self.variant_mode not in VARIANT_MODES:
            raise ValueError(f"variant_mode must be one of {VARIANT_MODES}, got {self.variant_mode!r}")


@dataclass
class FeedItem:
    """Normalized feed item, built fresh for every generation pass."""
    item_id: str
    product_id: str
    title: str = ''
    description: str = ''
    handle: str = ''
    image_link: str = ''

    # Two-decimal strings; price None means the item is left out of the feed
    price: Optional[str] = None
    sale_price: Optional[str] = None

    availability: str = OUT_OF_STOCK

    # Raw upstream product, for per-item lookups such as brand
    source: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class CacheEntry:
    """One cached feed document."""
    store_id: str
    xml_bytes: bytes
    fingerprint: str
    generated_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class FeedResult:
    """Outcome of a feed request."""
    store_id: str
    xml_bytes: bytes
    fingerprint: str
    from_cache: bool
    item_count: Optional[int] = None
    not_modified: bool = False
    hostname: Optional[str] = None
