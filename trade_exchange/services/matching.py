"""
Provider ranking for free-text search.

Pure functions over Provider and Listing models; no store access here.

Scoring rules:
  - A blank query ranks by a popularity prior:
        0.1 + rating / 10 + completed_jobs / 1000
  - Otherwise every listing of the provider contributes
        2 * (non-overlapping occurrences of the query in its text)
        + a price bonus peaking at 120 and fading to 0 at +/- 300,
    and the provider's authority is added once:
        rating * 1.5 + log10(completed_jobs + 1)
  - Providers are deduplicated by id (first wins) and sorted by score,
    descending; ties keep their input order.
"""
import logging
import math
from collections import defaultdict
from typing import Iterable

from trade_exchange.models.listing import Listing
from trade_exchange.models.provider import Provider

logger = logging.getLogger(__name__)

HIT_WEIGHT = 2.0
RATING_WEIGHT = 1.5
PRICE_TARGET = 120.0
PRICE_SPAN = 300.0


def normalize_query(q: str | None) -> str:
    """Return the query trimmed and lower-cased; None becomes an empty string."""
    return (q or "").strip().lower()


def listing_haystack(listing: Listing) -> str:
    """Return the lower-cased text a query is matched against."""
    return f"{listing.title} {listing.description} {listing.tags}".lower()


def count_occurrences(haystack: str, needle: str) -> int:
    """Count non-overlapping occurrences of *needle*; an empty needle never matches."""
    if not needle:
        return 0
    return haystack.count(needle)


def price_bonus(price: float) -> float:
    """Return a 0..1 bonus peaking at PRICE_TARGET and fading over PRICE_SPAN."""
    return max(0.0, min(1.0, 1.0 - abs(price - PRICE_TARGET) / PRICE_SPAN))


def listing_score(listing: Listing, query: str) -> float:
    """Return HIT_WEIGHT per query hit plus the price bonus."""
    hits = count_occurrences(listing_haystack(listing), query)
    return HIT_WEIGHT * hits + price_bonus(listing.price)


def popularity_prior(provider: Provider) -> float:
    """Return the small rating and jobs prior every provider starts from."""
    return 0.1 + provider.rating / 10 + provider.completed_jobs / 1000


def authority(provider: Provider) -> float:
    """Return the rating and job-count boost added for any non-blank query."""
    return provider.rating * RATING_WEIGHT + math.log10(provider.completed_jobs + 1)


def score_provider(provider: Provider, listings: Iterable[Listing], query: str) -> float:
    """Score one provider against an already normalized query."""
    if not query:
        return popularity_prior(provider)
    return sum(listing_score(l, query) for l in listings) + authority(provider)


def rank_providers(
    providers: Iterable[Provider],
    listings: Iterable[Listing],
    q: str | None,
) -> list[tuple[Provider, float]]:
    """Return ``(provider, score)`` pairs ranked best first."""
    query = normalize_query(q)
    by_provider: dict[str, list[Listing]] = defaultdict(list)
    for listing in listings:
        by_provider[listing.provider_id].append(listing)

    seen: set[str] = set()
    scored: list[tuple[Provider, float]] = []
    for provider in providers:
        if provider.id in seen:
            continue
        seen.add(provider.id)
        scored.append((provider, score_provider(provider, by_provider[provider.id], query)))

    # list.sort is stable, so equal scores keep their input order
    scored.sort(key=lambda pair: pair[1], reverse=True)
    logger.trace("Ranked %s providers for query=%r", len(scored), query)
    return scored


def matches_query(listing: Listing, q: str | None) -> bool:
    """True when a listing's text contains the query, or the query is blank."""
    query = normalize_query(q)
    return not query or query in listing_haystack(listing)
