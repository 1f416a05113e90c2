# src/llm/model_catalog.py - v1
"""Check configured model ids against the provider's model catalog.

Reports, for every model id, whether it exists verbatim, the provider's
listed prices, and similarly named alternatives when it does not.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from casereview.core.errors import TransportError

if TYPE_CHECKING:
    from casereview.llm.transport import OpenRouterTransport

logger = logging.getLogger(__name__)

MAX_SIMILAR = 5


class CatalogModel(BaseModel):
    """One entry of the provider catalog."""

    id: str
    name: str = ""
    prompt_price: float | None = None
    completion_price: float | None = None


class ModelCheck(BaseModel):
    """Availability of one configured model id."""

    model_id: str
    found: bool
    entry: CatalogModel | None = None
    similar: list[str] = Field(default_factory=list)


async def fetch_catalog(transport: OpenRouterTransport) -> list[CatalogModel]:
    """Fetch the provider model list.

    Raises:
        ConfigurationError: If the API key is not configured.
        TransportError: If the listing request fails.
    """
    import openai

    client = transport.get()
    try:
        page = await client.models.list()
    except (openai.OpenAIError, OSError) as exc:
        raise TransportError(str(exc)) from exc

    catalog = [_to_catalog_model(m) for m in page.data]
    logger.info("Provider catalog: %d models", len(catalog))
    return catalog


def check_models(model_ids: list[str], catalog: list[CatalogModel]) -> list[ModelCheck]:
    """Match model ids against the catalog."""
    by_id = {m.id: m for m in catalog}
    results: list[ModelCheck] = []
    for model_id in model_ids:
        entry = by_id.get(model_id)
        if entry is not None:
            results.append(ModelCheck(model_id=model_id, found=True, entry=entry))
            continue
        results.append(
            ModelCheck(model_id=model_id, found=False, similar=_similar(model_id, catalog))
        )
    return results


def _similar(model_id: str, catalog: list[CatalogModel]) -> list[str]:
    slug = model_id.split("/", 1)[-1].lower()
    family = slug.split("-", 1)[0]
    matches = [
        m.id for m in catalog
        if slug in m.id.lower() or family in m.id.lower() or family in m.name.lower()
    ]
    return matches[:MAX_SIMILAR]


def _to_catalog_model(raw: Any) -> CatalogModel:
    data = raw.model_dump() if hasattr(raw, "model_dump") else dict(raw)
    pricing = data.get("pricing") or {}
    return CatalogModel(
        id=data["id"],
        name=data.get("name") or "",
        prompt_price=_to_float(pricing.get("prompt")),
        completion_price=_to_float(pricing.get("completion")),
    )


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
