# src/resolver/key_resolver.py - v1
"""Key resolver: group page targets by canonical resource address.

Targets coming from different on-page lists (desktop and mobile track
listings) that point at the same resource collapse into one group, which
is what lets the scheduler fetch each resource once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from urllib.parse import urljoin, urlsplit, urlunsplit

from trackratings.core.models import ResourceGroup, ResourceKey, Target

logger = logging.getLogger(__name__)


def canonical_key(address: str | None, base_url: str | None = None) -> ResourceKey | None:
    """Derive the resource key for an address.

    Resolves relative addresses against ``base_url``, lowercases scheme and
    host, and drops the fragment. Returns None when no usable address is
    left.
    """
    if address is None:
        return None
    address = address.strip()
    if not address:
        return None
    if base_url:
        address = urljoin(base_url, address)

    parts = urlsplit(address)
    if not parts.scheme or not parts.netloc:
        return None
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, "")
    )


def resolve_groups(
    targets: Iterable[Target],
    base_url: str | None = None,
) -> list[ResourceGroup]:
    """Partition targets into groups keyed by canonical address.

    Groups are returned in first-seen key order; targets keep page order
    inside their group. Targets without a resolvable address are dropped.
    """
    groups: dict[ResourceKey, ResourceGroup] = {}
    dropped = 0
    total = 0

    for target in targets:
        total += 1
        key = canonical_key(target.address, base_url)
        if key is None:
            dropped += 1
            logger.debug("Dropping target %s: no resolvable address", target.target_id)
            continue
        group = groups.get(key)
        if group is None:
            group = groups[key] = ResourceGroup(key=key)
        group.targets.append(target)

    logger.info(
        "Resolved %d targets into %d groups (%d without address)",
        total, len(groups), dropped,
    )
    return list(groups.values())


def coalesce_groups(groups: Iterable[ResourceGroup]) -> list[ResourceGroup]:
    """Merge groups that share a key, keeping first-seen order.

    Input groups are not mutated.
    """
    merged: dict[ResourceKey, ResourceGroup] = {}
    for group in groups:
        existing = merged.get(group.key)
        if existing is None:
            merged[group.key] = ResourceGroup(key=group.key, targets=list(group.targets))
        else:
            existing.targets.extend(group.targets)
    return list(merged.values())
