"""
Flatten Tiendanube products and variants into feed items.
"""

import html
import re
from typing import List, Optional, Dict, Any

from .models import (
    FeedItem,
    VariantMode,
    VARIANT_MODES,
    IN_STOCK,
    OUT_OF_STOCK,
    localized,
    to_decimal,
    format_price,
)


def strip_html(description: str) -> str:
    """Strip HTML tags and entities from a description, returning plain text."""
    if not description:
        return ''
    # Block-level tags become spaces so words don't run together
    description = re.sub(r'<\s*(br|/p|/div|/li|/h[1-6])\b[^>]*>', ' ', description, flags=re.IGNORECASE)
    description = re.sub(r'<[^>]+>', '', description)
    description = html.unescape(description)
    description = re.sub(r'\s+', ' ', description).strip()
    return description


def _image_src(image: Any) -> str:
    if not isinstance(image, dict):
        return ''
    return str(image.get('src') or image.get('url') or '')


def select_image(product: Dict[str, Any], variant: Optional[Dict[str, Any]]) -> str:
    """
    Pick the image for an item.

    The variant's own image wins when its image_id is in the product's image
    list; otherwise the product's first image; otherwise ''.
    """
    images = product.get('images') or []
    if not isinstance(images, list):
        images = []

    image_id = variant.get('image_id') if isinstance(variant, dict) else None
    if image_id is not None:
        for image in images:
            if isinstance(image, dict) and image.get('id') is not None and str(image.get('id')) == str(image_id):
                src = _image_src(image)
                if src:
                    return src

    return _image_src(images[0]) if images else ''


def resolve_prices(variant: Dict[str, Any]) -> tuple:
    """
    Price and sale price for a variant, as two-decimal strings.

    A sale price is only emitted when both values are numeric and
    0 < promotional_price < price.
    """
    price = to_decimal(variant.get('price'))
    promo = to_decimal(variant.get('promotional_price'))

    formatted = format_price(price)
    sale_price = None
    if formatted is not None and promo is not None and 0 < promo < price:
        sale_price = format_price(promo)

    return formatted, sale_price


def resolve_availability(variant: Dict[str, Any]) -> str:
    """in_stock unless the variant tracks stock and has none."""
    if not variant.get('stock_management'):
        return IN_STOCK
    stock = to_decimal(variant.get('stock'))
    if stock is not None and stock > 0:
        return IN_STOCK
    return OUT_OF_STOCK


def variant_name(variant: Dict[str, Any], primary_language: str = 'es') -> str:
    """Display name of a variant: its name, or its option values joined."""
    name = localized(variant.get('name'), primary_language).strip()
    if name:
        return name
    values = variant.get('values') or []
    if not isinstance(values, list):
        return ''
    parts = [localized(v, primary_language).strip() for v in values]
    return ' / '.join(p for p in parts if p)


def _is_default_name(name: str) -> bool:
    return name.strip().lower() == 'default'


def flatten_products(
    products: List[Dict[str, Any]],
    variant_mode: VariantMode = 'first',
    primary_language: str = 'es'
) -> List[FeedItem]:
    """
    Convert raw products into feed items.

    - split: one item per variant, id "{product_id}-{variant_id}"
      (variants without an id use "v{position}")
    - first: one item per product, taken from its first variant
    - products without variants give one out-of-stock item with no price

    Args:
        products: Raw product dicts, in catalog order
        variant_mode: "split" or "first"
        primary_language: Preferred key for localized fields

    Returns:
        List of FeedItem objects; the input is not modified
    """
    if variant_mode not in VARIANT_MODES:
        raise ValueError(f"variant_mode must be one of {VARIANT_MODES}, got {variant_mode!r}")

    items: List[FeedItem] = []

    for product in products:
        if not isinstance(product, dict):
            continue

        handle = localized(product.get('handle'), primary_language).strip()
        product_id = str(product['id']) if product.get('id') is not None else handle
        if not handle:
            handle = product_id

        title = localized(product.get('name'), primary_language).strip()
        description = strip_html(localized(product.get('description'), primary_language)) or title

        variants = [v for v in (product.get('variants') or []) if isinstance(v, dict)]

        if not variants:
            items.append(FeedItem(
                item_id=product_id,
                product_id=product_id,
                title=title,
                description=description,
                handle=handle,
                image_link=select_image(product, None),
                price=None,
                availability=OUT_OF_STOCK,
                source=product,
            ))
            continue

        if variant_mode == 'first':
            variant = variants[0]
            price, sale_price = resolve_prices(variant)
            items.append(FeedItem(
                item_id=product_id,
                product_id=product_id,
                title=title,
                description=description,
                handle=handle,
                image_link=select_image(product, variant),
                price=price,
                sale_price=sale_price,
                availability=resolve_availability(variant),
                source=product,
            ))
            continue

        for index, variant in enumerate(variants):
            variant_id = variant.get('id')
            if variant_id is None or str(variant_id).strip() == '':
                # Positional id for variants without one
                variant_id = f"v{index}"
            name = variant_name(variant, primary_language)
            item_title = title
            if name and not _is_default_name(name):
                item_title = f"{title} - {name}"

            price, sale_price = resolve_prices(variant)
            items.append(FeedItem(
                item_id=f"{product_id}-{variant_id}",
                product_id=product_id,
                title=item_title,
                description=description,
                handle=handle,
                image_link=select_image(product, variant),
                price=price,
                sale_price=sale_price,
                availability=resolve_availability(variant),
                source=product,
            ))

    return items
