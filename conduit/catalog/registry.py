"""Platform catalog registry.

Maps platform types to their static catalogs. Platform types without a
catalog are valid; they simply expose no triggers or actions.
"""

from conduit.catalog.models import PlatformCatalog
from conduit.catalog.platforms import airtable, openai, splynx, vapi
from conduit.exceptions import CatalogError

CATALOGS: dict[str, PlatformCatalog] = {
    catalog.platform_type: catalog
    for catalog in (splynx.CATALOG, vapi.CATALOG, airtable.CATALOG, openai.CATALOG)
}


def find_catalog(platform_type: str) -> PlatformCatalog | None:
    """Get the catalog for a platform type, or None if it has none."""
    return CATALOGS.get(platform_type)


def get_catalog(platform_type: str) -> PlatformCatalog:
    """Get the catalog for a platform type.

    Raises:
        CatalogError: If the platform type has no catalog.
    """
    catalog = find_catalog(platform_type)
    if catalog is None:
        raise CatalogError(
            f"No catalog for platform type '{platform_type}'",
            platform_type=platform_type,
        )
    return catalog


def supported_platforms() -> list[str]:
    """Platform types that carry a catalog."""
    return sorted(CATALOGS)
