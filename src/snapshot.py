"""
Snapshot persistence for the product catalog.

A snapshot is an ordered list of product records.  Each record carries its
variant tag and ``id``, ``name``, ``category``, ``price`` and either
``quantity`` (packaged) or ``weight`` (bulk).  Two encodings are provided
through a small serializer hierarchy, selected by file extension:

* JSON: an array of objects, price written as a decimal string so that no
  precision is lost.
* XML: ``<products><product type="packaged">...</product></products>``.

Every failure while reading, writing, encoding or decoding a snapshot is
raised as :class:`PersistenceError` with the original exception chained.

Usage example:

    from snapshot import SnapshotService
    service = SnapshotService(store)
    service.save("data/store.json")
    service.load("data/store.xml")
"""

from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterable, List

from metrics import SNAPSHOT_OPERATIONS_TOTAL
from product_collection import ProductCollection
from products import BULK, PACKAGED, Product, make_product, variant_of
from store import Store
from store_errors import PersistenceError, StoreError

logger = logging.getLogger(__name__)

# Characters XML 1.0 cannot carry, even escaped.
_XML_ILLEGAL = re.compile("[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def product_to_record(product: Product) -> Dict[str, Any]:
    variant = variant_of(product)
    record: Dict[str, Any] = {
        "type": variant,
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "price": str(product.price),
    }
    if variant == PACKAGED:
        record["quantity"] = product.quantity
    else:
        record["weight"] = product.weight
    return record


def record_to_product(record: Dict[str, Any]) -> Product:
    variant = record["type"]
    measure_key = "quantity" if variant == PACKAGED else "weight"
    return make_product(
        variant,
        int(record["id"]),
        str(record["name"]),
        str(record["category"]),
        record["price"],
        record[measure_key],
    )


class SnapshotSerializer:
    """Base class for snapshot encodings."""

    format_name = "abstract"

    def dumps(self, products: Iterable[Product]) -> str:  # pragma: no cover
        raise NotImplementedError

    def _parse(self, text: str) -> List[Dict[str, Any]]:  # pragma: no cover
        raise NotImplementedError

    def loads(self, text: str) -> ProductCollection:
        """Decode ``text`` into a collection.

        Raises:
            PersistenceError: if the text is malformed or a record is invalid.
        """
        try:
            records = self._parse(text)
            return ProductCollection(record_to_product(r) for r in records)
        except PersistenceError:
            raise
        except (ValueError, KeyError, TypeError, ArithmeticError, ET.ParseError, StoreError) as exc:
            raise PersistenceError(f"Invalid {self.format_name} snapshot: {exc}") from exc

    def serialize(self, file_path: str, products: Iterable[Product]) -> None:
        try:
            text = self.dumps(products)
        except StoreError as exc:
            raise PersistenceError(f"Cannot encode {self.format_name} snapshot: {exc}") from exc
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Cannot write snapshot {file_path}: {exc}") from exc

    def deserialize(self, file_path: str) -> ProductCollection:
        try:
            text = Path(file_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Cannot read snapshot {file_path}: {exc}") from exc
        return self.loads(text)


class JsonSnapshotSerializer(SnapshotSerializer):
    format_name = "json"

    def dumps(self, products: Iterable[Product]) -> str:
        records = [product_to_record(p) for p in products]
        return json.dumps(records, indent=2, ensure_ascii=False)

    def _parse(self, text: str) -> List[Dict[str, Any]]:
        data = json.loads(text)
        if not isinstance(data, list):
            raise PersistenceError("JSON snapshot must be an array of product objects")
        for idx, item in enumerate(data):
            if not isinstance(item, dict):
                raise PersistenceError(f"JSON snapshot record at index {idx} is not an object")
        return data


class XmlSnapshotSerializer(SnapshotSerializer):
    format_name = "xml"

    def dumps(self, products: Iterable[Product]) -> str:
        root = ET.Element("products")
        for product in products:
            record = product_to_record(product)
            node = ET.SubElement(root, "product", {"type": record.pop("type")})
            for key, value in record.items():
                text = str(value)
                if _XML_ILLEGAL.search(text):
                    raise PersistenceError(
                        f"Product {product.name!r} has a {key} that XML cannot represent: {text!r}"
                    )
                ET.SubElement(node, key).text = text
        ET.indent(root)
        return ET.tostring(root, encoding="unicode")

    def _parse(self, text: str) -> List[Dict[str, Any]]:
        root = ET.fromstring(text)
        if root.tag != "products":
            raise PersistenceError(f"Unexpected XML root element <{root.tag}>")
        records = []
        for node in root.findall("product"):
            variant = node.get("type")
            record: Dict[str, Any] = {"type": variant}
            for child in node:
                record[child.tag] = child.text or ""
            if variant == PACKAGED and "quantity" in record:
                record["quantity"] = int(record["quantity"])
            elif variant == BULK and "weight" in record:
                record["weight"] = float(record["weight"])
            records.append(record)
        return records


def select_serializer(file_path: str) -> SnapshotSerializer:
    """Pick a serializer from the file extension."""
    ext = Path(file_path).suffix.lower()
    if ext == ".json":
        return JsonSnapshotSerializer()
    if ext == ".xml":
        return XmlSnapshotSerializer()
    raise PersistenceError(f"Unsupported snapshot format: {ext or file_path}")


class SnapshotService:
    """Save the store's catalog to snapshot files and load it back."""

    def __init__(self, store: Store, log: logging.Logger | None = None) -> None:
        self.store = store
        self.logger = log or logger

    def save(self, file_path: str) -> int:
        serializer = select_serializer(file_path)
        products = self.store.all_products()
        try:
            serializer.serialize(file_path, products)
        except PersistenceError:
            SNAPSHOT_OPERATIONS_TOTAL.inc(operation="save", format=serializer.format_name, status="error")
            self.logger.error(f"Snapshot save failed: {file_path}")
            raise
        SNAPSHOT_OPERATIONS_TOTAL.inc(operation="save", format=serializer.format_name, status="ok")
        self.logger.info(
            f"Saved {len(products)} products to {file_path}",
            extra={"extra": {"format": serializer.format_name}},
        )
        return len(products)

    def load(self, file_path: str) -> int:
        """Add every product of the snapshot to the store; returns the count."""
        serializer = select_serializer(file_path)
        try:
            products = serializer.deserialize(file_path)
        except PersistenceError:
            SNAPSHOT_OPERATIONS_TOTAL.inc(operation="load", format=serializer.format_name, status="error")
            self.logger.error(f"Snapshot load failed: {file_path}")
            raise
        for product in products:
            self.store.add_product(product)
        SNAPSHOT_OPERATIONS_TOTAL.inc(operation="load", format=serializer.format_name, status="ok")
        self.logger.info(
            f"Loaded {len(products)} products from {file_path}",
            extra={"extra": {"format": serializer.format_name}},
        )
        return len(products)
