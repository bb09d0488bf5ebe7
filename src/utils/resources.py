"""
Catalog resource kinds.

Each kind (Product, ProductCategory, ...) is described by a ``ResourceKind``:
which attributes identify it, which attributes an edit may change, and how
it enters the approval workflow. The workflow itself is generic and only
talks to records through these descriptors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class RecordStatus(str, Enum):
    """Lifecycle status of a catalog record."""

    ACTIVE = "ACTIVE"
    NEW_RECORD = "NEW_RECORD"
    FOR_APPROVAL = "FOR_APPROVAL"
    FOR_DELETION = "FOR_DELETION"


# Statuses with an unresolved action; records in these accept no new mutation
PENDING_STATUSES = frozenset({RecordStatus.NEW_RECORD, RecordStatus.FOR_APPROVAL, RecordStatus.FOR_DELETION})


@dataclass(frozen=True)
class ResourceKind:
    """Descriptor for one catalog resource kind."""

    partition: str
    path: str
    label: str
    id_field: str
    name_field: str
    mutable_fields: Tuple[str, ...]
    integer_fields: Tuple[str, ...] = ()
    pending_create_status: RecordStatus = RecordStatus.FOR_APPROVAL

    def pick_fields(self, source: Mapping[str, Any]) -> Dict[str, Any]:
        """Return the mutable fields present in ``source``."""
        return {name: source[name] for name in self.mutable_fields if name in source}

    def record_id(self, record: Mapping[str, Any]) -> str:
        return str(record.get(self.id_field, ""))

    def record_name(self, record: Mapping[str, Any]) -> str:
        return str(record.get(self.name_field, ""))


PRODUCT = ResourceKind(
    partition="PRODUCT",
    path="products",
    label="Product",
    id_field="productId",
    name_field="productName",
    mutable_fields=(
        "productName",
        "criticalLevel",
        "productCategoryId",
        "productCategoryName",
        "productClassId",
        "productClassName",
        "productDeals",
        "productUnitPrice",
    ),
    integer_fields=("criticalLevel",),
    pending_create_status=RecordStatus.NEW_RECORD,
)

PRODUCT_CATEGORY = ResourceKind(
    partition="PRODUCT_CATEGORY",
    path="product-categories",
    label="Product category",
    id_field="productCategoryId",
    name_field="productCategoryName",
    mutable_fields=("productCategoryName",),
)

PRODUCT_CLASS = ResourceKind(
    partition="PRODUCT_CLASS",
    path="product-classes",
    label="Product class",
    id_field="productClassId",
    name_field="productClassName",
    mutable_fields=("productClassName",),
)

PRODUCT_PRICE_TYPE = ResourceKind(
    partition="PRODUCT_PRICE_TYPE",
    path="product-price-types",
    label="Product price type",
    id_field="productPriceTypeId",
    name_field="productPriceTypeName",
    mutable_fields=("productPriceTypeName",),
)

PRODUCT_UNIT = ResourceKind(
    partition="PRODUCT_UNIT",
    path="product-units",
    label="Product unit",
    id_field="productUnitId",
    name_field="productUnitName",
    mutable_fields=("productUnitName",),
)

PRODUCT_DEAL = ResourceKind(
    partition="PRODUCT_DEAL",
    path="product-deals",
    label="Product deal",
    id_field="productDealId",
    name_field="productDealName",
    mutable_fields=("productDealName", "minQty", "additionalQty"),
    integer_fields=("minQty", "additionalQty"),
)

RESOURCE_KINDS: Dict[str, ResourceKind] = {
    kind.path: kind
    for kind in (PRODUCT, PRODUCT_CATEGORY, PRODUCT_CLASS, PRODUCT_PRICE_TYPE, PRODUCT_UNIT, PRODUCT_DEAL)
}


def kind_for_path(path: Optional[str]) -> Optional[ResourceKind]:
    """
    Resolve the resource kind from a request path or resource template.

    Examples:
        >>> kind_for_path("/product-categories/abc/approve").partition
        'PRODUCT_CATEGORY'
        >>> kind_for_path("/unknown") is None
        True
    """
    if not path:
        return None
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return None
    return RESOURCE_KINDS.get(segments[0])
