# File: cache_warmer/parser/sitemap_parser.py
"""cache_warmer.parser.sitemap_parser: Модуль для парсинга sitemap.xml и извлечения URL."""

from __future__ import annotations

import gzip
import re
import zlib
from typing import List, Union

from lxml import etree

from cache_warmer.warmer.models import SitemapDocument

__all__ = ["parse_sitemap", "extract_locations", "is_page_url", "maybe_decompress"]

_GZIP_MAGIC = b"\x1f\x8b"
_HTTP_RE = re.compile(r"^https?://")


def maybe_decompress(content: bytes) -> bytes:
    """Распаковывает sitemap.xml.gz, если content начинается с сигнатуры gzip."""
    if content[:2] != _GZIP_MAGIC:
        return content
    try:
        return gzip.decompress(content)
    except (OSError, EOFError, zlib.error) as exc:
        raise ValueError(f"Corrupted gzip sitemap: {exc}") from exc


def is_page_url(value: str) -> bool:
    """True для абсолютных http/https URL."""
    return bool(_HTTP_RE.match(value))


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def extract_locations(root: etree._Element, parent: str) -> List[str]:
    """Возвращает текст всех <loc> внутри элементов <parent>, без учёта namespace.

    Args:
        root: корень XML-документа.
        parent: локальное имя родителя, ``"url"`` или ``"sitemap"``.

    Returns:
        Список строк из <loc>, отфильтрованных по ``^https?://``.
    """
    query = f"//*[local-name()='{parent}']/*[local-name()='loc']/text()"
    values = (str(text).strip() for text in root.xpath(query))
    return [value for value in values if is_page_url(value)]


def parse_sitemap(xml_content: Union[bytes, str]) -> SitemapDocument:
    """Разбирает sitemap или sitemap index и возвращает SitemapDocument.

    Args:
        xml_content: содержимое sitemap (bytes, возможно gzip, или str).

    Returns:
        SitemapDocument с флагом is_index и списком <loc>.

    Raises:
        ValueError: документ не является XML.

    Пример:
    ```python
    from cache_warmer.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', 'rb') as f:
        doc = parse_sitemap(f.read())
    print(doc.is_index, doc.locations)
    ```
    """
    if isinstance(xml_content, str):
        xml_content = xml_content.encode("utf-8")
    data = maybe_decompress(xml_content)

    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ValueError(f"Invalid sitemap XML: {exc}") from exc
    if root is None:
        raise ValueError("Invalid sitemap XML: empty document")

    if _local_name(root) == "sitemapindex":
        return SitemapDocument(is_index=True, locations=extract_locations(root, "sitemap"))
    return SitemapDocument(is_index=False, locations=extract_locations(root, "url"))
