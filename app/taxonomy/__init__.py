from functools import lru_cache

from .local_taxonomy import LocalTaxonomy
from .provider import TaxonomyProvider


@lru_cache(maxsize=1)
def get_default_taxonomy_provider() -> TaxonomyProvider:
    """Skill tables bundled with the package, loaded once per process."""
    return LocalTaxonomy()


__all__ = ["TaxonomyProvider", "LocalTaxonomy", "get_default_taxonomy_provider"]
