"""
XML writer for the Google Shopping (GMC) product feed.
"""

import logging
import re
from typing import Callable, List, Optional
from urllib.parse import quote
from xml.sax.saxutils import escape

from .models import FeedItem, FeedConfig


logger = logging.getLogger(__name__)

# Google Shopping namespace
G_NS = 'http://base.google.com/ns/1.0'

# Characters not allowed anywhere in an XML 1.0 document
INVALID_XML_CHARS = re.compile('[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]')

ENTITIES = {'"': '&quot;', "'": '&apos;'}


def clean_text(text: Optional[str]) -> str:
    """Drop characters that would make the document ill-formed."""
    if not text:
        return ''
    return INVALID_XML_CHARS.sub('', str(text))


def xml_text(text: Optional[str]) -> str:
    """Entity-escape & < > \" ' for element content."""
    return escape(clean_text(text), ENTITIES)


def cdata(text: Optional[str]) -> str:
    """
    Wrap text in CDATA.

    A literal "]]>" would end the section early, so it is split across two
    adjacent sections: "]]" closes one and ">" opens the next.
    """
    text = clean_text(text)
    return '<![CDATA[' + text.replace(']]>', ']]]]><![CDATA[>') + ']]>'


def build_product_link(hostname: str, handle: str, config: FeedConfig) -> str:
    """https://{host}/{path}/{handle}/?{tracking}"""
    slug = quote(handle.strip('/'), safe='-_.~')
    return f"https://{hostname}/{config.link_path}/{slug}/?{config.tracking_query}"


def _item_lines(item: FeedItem, hostname: str, config: FeedConfig, brand: str) -> List[str]:
    lines = [
        '  <item>',
        f'    <g:id>{xml_text(item.item_id)}</g:id>',
        f'    <g:title>{cdata(item.title)}</g:title>',
        f'    <g:description>{cdata(item.description)}</g:description>',
        f'    <g:link>{xml_text(build_product_link(hostname, item.handle, config))}</g:link>',
    ]
    if item.image_link:
        lines.append(f'    <g:image_link>{xml_text(item.image_link)}</g:image_link>')

    lines.append(f'    <g:availability>{xml_text(item.availability)}</g:availability>')
    lines.append(f'    <g:price>{xml_text(item.price)} {xml_text(config.currency)}</g:price>')

    # Only include sale_price when there is an actual sale
    if item.sale_price:
        lines.append(f'    <g:sale_price>{xml_text(item.sale_price)} {xml_text(config.currency)}</g:sale_price>')

    lines.append('    <g:condition>new</g:condition>')
    if brand:
        lines.append(f'    <g:brand>{xml_text(brand)}</g:brand>')
    lines.append('    <g:identifier_exists>false</g:identifier_exists>')
    lines.append('  </item>')
    return lines


def write_feed_xml(
    items: List[FeedItem],
    hostname: str,
    config: Optional[FeedConfig] = None,
    brand_for: Optional[Callable[[FeedItem], str]] = None
) -> str:
    """
    Generate the Google Shopping feed XML.

    Items without a price are left out; consumers reject priceless items.
    An empty item list still yields a complete document.

    Args:
        items: Feed items in output order
        hostname: Public storefront host used for links
        config: Feed settings (currency, titles, link layout)
        brand_for: Callback returning the brand for an item ('' to omit)

    Returns:
        XML document string
    """
    config = config or FeedConfig()

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<rss version="2.0" xmlns:g="{G_NS}">',
        '<channel>',
        f'  <title>{xml_text(config.channel_title)}</title>',
        f'  <link>{xml_text(f"https://{hostname}/")}</link>',
        f'  <description>{xml_text(config.channel_description)}</description>',
    ]

    written = 0
    skipped = 0
    for item in items:
        if not item.price:
            skipped += 1
            continue
        brand = brand_for(item) if brand_for else ''
        lines.extend(_item_lines(item, hostname, config, brand))
        written += 1

    lines.append('</channel>')
    lines.append('</rss>')

    logger.debug(f"Feed XML for {hostname}: {written} items written, {skipped} skipped without price")
    return '\n'.join(lines) + '\n'
