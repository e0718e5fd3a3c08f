from wineo.models.user import User
from wineo.models.region import Region
from wineo.models.city import City
from wineo.models.category import Category
from wineo.models.filter import Filter, FILTER_TYPES
from wineo.models.listing import (
    Listing,
    LISTING_TYPES,
    RENT_PERIODS,
    CURRENCIES,
    PRICE_TYPES,
    LISTING_STATUSES,
)

__all__ = [
    "User",
    "Region",
    "City",
    "Category",
    "Filter",
    "Listing",
    "FILTER_TYPES",
    "LISTING_TYPES",
    "RENT_PERIODS",
    "CURRENCIES",
    "PRICE_TYPES",
    "LISTING_STATUSES",
]
