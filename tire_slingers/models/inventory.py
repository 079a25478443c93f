"""
Inventory and demand-event models.

``Organization`` is a tire yard (tenant). ``TireRow`` is one inventory line:
a batch of identical tires of one size, possibly with a DOT manufacture stamp.

The three demand signals the engine consumes each have their own event model:

  - ``SalesEvent``: units sold.
  - ``SearchEvent``: a storefront search; only zero-result searches
    count as demand.
  - ``CustomerRequest``: a customer asking the yard to source a size.

All models are frozen; events are append-only facts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from tire_slingers.sizes import extract_quantity_from_query, extract_size_from_query
from tire_slingers.utils.time_utils import DOT_YEAR_RANGE, is_valid_dot_year

RequestStatus = Literal["new", "in_progress", "fulfilled", "cancelled"]
OPEN_REQUEST_STATUSES: tuple[str, ...] = ("new", "in_progress")


class Organization(BaseModel):
    """A tire yard.

    Attributes:
        org_id: Primary key (opaque string id).
        name: Display name.
        capacity_total_tires: Facility ceiling on total units; ``None`` means
            the engine default applies.
        recommendations_stale: Set by inventory mutations elsewhere; cleared
            whenever recommendations are rewritten.
    """

    model_config = ConfigDict(frozen=True)

    org_id: str
    name: str
    capacity_total_tires: Optional[int] = None
    recommendations_stale: bool = True

    @field_validator("capacity_total_tires")
    @classmethod
    def validate_capacity(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"capacity_total_tires must be non-negative, got {v}.")
        return v


class TireRow(BaseModel):
    """One inventory line.

    Attributes:
        tire_id: Auto-assigned DB PK; ``None`` before insertion.
        org_id: Owning organization.
        size_key: Normalized size key, e.g. ``"205-55-16"``; may be ``None``
            for rows entered without a size.
        quantity: Units on hand in this line.
        dot_week: DOT manufacture week, if known.
        dot_year: DOT manufacture year (usually two digits), if known.
        is_active: Inactive rows are ignored by the engine.
        created_at: When the row was entered.
    """

    model_config = ConfigDict(frozen=True)

    tire_id: Optional[int] = None
    org_id: str
    size_key: Optional[str] = None
    brand: Optional[str] = None
    quantity: int = 1
    dot_week: Optional[int] = None
    dot_year: Optional[int] = None
    is_active: bool = True
    created_at: datetime

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"quantity must be non-negative, got {v}.")
        return v

    @field_validator("dot_week")
    @classmethod
    def validate_dot_week(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1 <= v <= 53:
            raise ValueError(f"dot_week must be in [1, 53], got {v}.")
        return v

    @field_validator("dot_year")
    @classmethod
    def validate_dot_year(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not is_valid_dot_year(v):
            raise ValueError(
                f"dot_year must be two digits or in [{DOT_YEAR_RANGE.start}, "
                f"{DOT_YEAR_RANGE.stop - 1}], got {v}."
            )
        return v


class SalesEvent(BaseModel):
    """Units of one size sold at a point in time."""

    model_config = ConfigDict(frozen=True)

    sale_id: Optional[int] = None
    org_id: str
    size_key: str
    quantity_sold: int = 1
    sold_at: datetime

    @field_validator("quantity_sold")
    @classmethod
    def validate_quantity_sold(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"quantity_sold must be >= 1, got {v}.")
        return v


class SearchEvent(BaseModel):
    """A storefront search and how many listings it returned.

    Attributes:
        query: Raw search text, if the search came from free text.
        requested_size: Size key extracted from the query, or ``None``.
        requested_quantity: Units asked for; ``None`` counts as 1.
        result_count: Listings shown; ``0`` marks a failed search.
    """

    model_config = ConfigDict(frozen=True)

    search_id: Optional[int] = None
    org_id: str
    query: Optional[str] = None
    requested_size: Optional[str] = None
    requested_quantity: Optional[int] = None
    result_count: int = 0
    searched_at: datetime

    @classmethod
    def from_query(
        cls,
        org_id: str,
        query: str,
        result_count: int,
        searched_at: datetime,
    ) -> "SearchEvent":
        """Build a search event, extracting size and quantity from ``query``."""
        size = extract_size_from_query(query)
        return cls(
            org_id=org_id,
            query=query,
            requested_size=size.size_key if size else None,
            requested_quantity=extract_quantity_from_query(query),
            result_count=result_count,
            searched_at=searched_at,
        )


class CustomerRequest(BaseModel):
    """A customer asking the yard to find a size it does not list.

    ``requested_size`` may be in display form (``"205/55R16"``); the engine
    normalizes it when aggregating.
    """

    model_config = ConfigDict(frozen=True)

    request_id: Optional[int] = None
    org_id: str
    requested_size: Optional[str] = None
    requested_quantity: Optional[int] = None
    status: RequestStatus = "new"
    customer_name: Optional[str] = None
    submitted_at: datetime
