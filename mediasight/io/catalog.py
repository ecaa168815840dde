"""
Product catalog loading.

A catalog is a YAML or JSON document listing products and their images:

    products:
      - product_id: "123"
        name: Navy Blue Coat
        category: outerwear
        tags: [wool, winter]
        license: cc-by
        images:
          - {view: front, width: 2400, height: 3000, format: webp}

Entries are validated lazily so one bad image does not hide the rest.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Union

import yaml

from ..errors import ValidationError
from ..metadata.models import ImageDescriptor, ProductContext

logger = logging.getLogger(__name__)

_PRODUCT_ONLY_KEYS = ('images',)


@dataclass(frozen=True)
class CatalogEntry:
    """One image of one product, as raw catalog mappings."""
    key: str
    image: Mapping[str, Any]
    product: Mapping[str, Any]

    def descriptor(self) -> ImageDescriptor:
        data = dict(self.image)
        data.setdefault('product_id', self.product.get('product_id', self.product.get('productId')))
        return ImageDescriptor.from_dict(data)

    def context(self) -> ProductContext:
        return ProductContext.from_dict(self.product)


def parse_catalog(data: Any) -> List[CatalogEntry]:
    """
    Flatten a parsed catalog document into one entry per image.

    Raises:
        ValidationError: If the document does not have the catalog shape
    """
    if isinstance(data, Mapping):
        products = data.get('products')
    else:
        products = data
    if not isinstance(products, list):
        raise ValidationError('products', "catalog must contain a list of products")

    entries = []
    for index, product in enumerate(products):
        if not isinstance(product, Mapping):
            raise ValidationError(f'products[{index}]', "must be a mapping")
        images = product.get('images')
        if not isinstance(images, list) or not images:
            raise ValidationError(f'products[{index}].images', "must be a non-empty list")
        product_data = {k: v for k, v in product.items() if k not in _PRODUCT_ONLY_KEYS}
        product_id = product_data.get('product_id', product_data.get('productId', index))
        for image_index, image in enumerate(images):
            if not isinstance(image, Mapping):
                raise ValidationError(f'products[{index}].images[{image_index}]', "must be a mapping")
            view = image.get('view', image_index)
            entries.append(CatalogEntry(key=f"{product_id}/{view}", image=dict(image),
                                        product=product_data))
    return entries


def load_catalog(path: Union[str, Path]) -> List[CatalogEntry]:
    """
    Load a catalog file (.yaml, .yml or .json).

    Args:
        path: Catalog file path

    Returns:
        Catalog entries in file order
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() == '.json':
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValidationError('catalog', f"invalid JSON in {path}: {e}") from e
        else:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValidationError('catalog', f"invalid YAML in {path}: {e}") from e

    entries = parse_catalog(data or {})
    logger.info(f"Loaded {len(entries)} catalog images from {path}")
    return entries
