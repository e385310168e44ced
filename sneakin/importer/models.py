"""
Import row and result models.

A catalog row arrives in one of two shapes, reflecting two generations of the
GOAT export:
    single-size: {size_value, price}   one listing per (product, size)
    multi-size:  {sizes: [...]}        one listing per product, sizes stored separately
The shape is decided once in ImportRow.from_payload and carried as `sizing`.
"""

from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from sneakin.importer.errors import MISSING_FIELDS_MESSAGE, BadRequest


class SizeEntry(BaseModel):
    size_value: str = Field(min_length=1)  # e.g. "uk 8.5"
    price: float = Field(gt=0)             # INR


class SingleSize(BaseModel):
    kind: Literal['single'] = 'single'
    size_value: Optional[str] = None
    price: float = 0

    @property
    def listing_price(self) -> float:
        return self.price

    @property
    def listing_size_value(self) -> Optional[str]:
        return self.size_value or None

    @property
    def dedup_size_value(self) -> Optional[str]:
        # Legacy rows are one-per-size: dedup on (title, size)
        return self.size_value or None


class MultiSize(BaseModel):
    kind: Literal['multi'] = 'multi'
    entries: List[SizeEntry] = Field(min_length=1)

    @property
    def listing_price(self) -> float:
        # Browse pages show the lowest price across sizes
        return min(entry.price for entry in self.entries)

    @property
    def listing_size_value(self) -> Optional[str]:
        return None

    @property
    def dedup_size_value(self) -> Optional[str]:
        return None


Sizing = Annotated[Union[SingleSize, MultiSize], Field(discriminator='kind')]


class ImportRow(BaseModel):
    title: str = Field(min_length=1)
    goat_url: str = Field(min_length=1)
    brand: str = ''
    model: str = ''
    image_urls: List[str] = Field(default_factory=list)
    retail_price: Optional[float] = None
    sizing: Sizing

    @property
    def is_multi_size(self) -> bool:
        return isinstance(self.sizing, MultiSize)

    @classmethod
    def from_payload(cls, payload: Any) -> 'ImportRow':
        """
        Validate a raw `row` object from a request body.

        A non-empty `sizes` list selects the multi-size shape; anything else is
        read as single-size (`size_value` + `price`, price defaulting to 0).

        Raises:
            BadRequest: If title or goat_url is missing, or a field is malformed
        """
        if not isinstance(payload, dict) or not payload.get('title') or not payload.get('goat_url'):
            raise BadRequest(MISSING_FIELDS_MESSAGE)

        sizes = payload.get('sizes')
        if isinstance(sizes, list) and sizes:
            sizing = {'kind': 'multi', 'entries': sizes}
        else:
            sizing = {
                'kind': 'single',
                'size_value': payload.get('size_value'),
                'price': payload.get('price') or 0,
            }

        try:
            return cls(
                title=payload['title'],
                goat_url=payload['goat_url'],
                brand=payload.get('brand') or '',
                model=payload.get('model') or '',
                image_urls=[u for u in (payload.get('image_urls') or []) if u],
                retail_price=payload.get('retail_price'),
                sizing=sizing,
            )
        except ValidationError as e:
            problems = '; '.join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise BadRequest(f"Invalid row: {problems}") from e

    def to_payload(self) -> Dict[str, Any]:
        """Request-body form of the row, as posted to the import endpoint."""
        payload: Dict[str, Any] = {
            'title': self.title,
            'brand': self.brand,
            'model': self.model,
            'goat_url': self.goat_url,
            'retail_price': self.retail_price,
        }
        if self.image_urls:
            payload['image_urls'] = list(self.image_urls)

        if isinstance(self.sizing, MultiSize):
            payload['sizes'] = [
                {'size_value': entry.size_value, 'price': entry.price}
                for entry in self.sizing.entries
            ]
        else:
            payload['size_value'] = self.sizing.size_value
            payload['price'] = self.sizing.price
        return payload


DUPLICATE_REASON = "Duplicate listing already exists"
NO_IMAGES_WARNING = "No images - run sneakin-enrich first to pre-fetch images from GOAT"


@dataclass
class ImportResult:
    """Per-row business outcome: imported, skipped or error."""
    status: str
    title: str
    size_value: Optional[str] = None
    reason: Optional[str] = None
    listing_id: Optional[str] = None
    sizes_imported: Optional[int] = None
    images_uploaded: int = 0
    warning: Optional[str] = None

    @classmethod
    def skipped(cls, row: ImportRow) -> 'ImportResult':
        return cls(status='skipped', title=row.title, size_value=row.sizing.listing_size_value,
                   reason=DUPLICATE_REASON)

    @classmethod
    def error(cls, row: ImportRow, reason: str) -> 'ImportResult':
        return cls(status='error', title=row.title, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        if self.status == 'skipped':
            return {'status': self.status, 'reason': self.reason,
                    'title': self.title, 'size_value': self.size_value}
        if self.status == 'error':
            return {'status': self.status, 'reason': self.reason, 'title': self.title}

        body: Dict[str, Any] = {
            'status': self.status,
            'listing_id': self.listing_id,
            'title': self.title,
            'size_value': self.size_value,
            'images_uploaded': self.images_uploaded,
        }
        if self.sizes_imported is not None:
            body['sizes_imported'] = self.sizes_imported
        if self.warning:
            body['warning'] = self.warning
        return body
