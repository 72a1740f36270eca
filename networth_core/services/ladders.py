from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from networth_core.domain.models import (
    BracketLadder,
    FilingStatus,
    FilingStatusOverrides,
    LadderKey,
    Region,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_YEAR = 2025

# Country family -> requested status -> statuses tried next, in order.
# The catch-all "All" ladder is always tried last and is not listed here.
FILING_STATUS_FALLBACKS: Dict[str, Dict[FilingStatus, Tuple[FilingStatus, ...]]] = {
    "USA": {
        FilingStatus.HEAD_OF_HOUSEHOLD: (FilingStatus.MARRIED,),
        FilingStatus.SEPARATE: (FilingStatus.SINGLE,),
    },
    "Canada": {
        FilingStatus.MARRIED: (FilingStatus.SINGLE,),
        FilingStatus.SEPARATE: (FilingStatus.SINGLE,),
        FilingStatus.HEAD_OF_HOUSEHOLD: (FilingStatus.SINGLE,),
    },
}


class BracketIndex:
    """
    Read-only lookup of bracket ladders keyed by
    (region, jurisdiction, tax type, filing status).

    Safe to share between independent simulation runs.
    """

    def __init__(self, ladders: Iterable[BracketLadder], base_year: int = DEFAULT_BASE_YEAR):
        self.base_year = base_year
        self._ladders: Dict[LadderKey, BracketLadder] = {}
        states_by_country = defaultdict(set)
        countries = set()

        for ladder in ladders:
            if ladder.key in self._ladders:
                raise ValueError(f"Duplicate tax ladder for {ladder.key}")
            self._ladders[ladder.key] = ladder
            if ladder.key.region is Region.STATE_PROVINCE:
                if ladder.parent_region:
                    states_by_country[ladder.parent_region].add(ladder.key.jurisdiction)
                    countries.add(ladder.parent_region)
            else:
                countries.add(ladder.key.jurisdiction)

        self._states_by_country = {country: sorted(states) for country, states in states_by_country.items()}
        self._countries = sorted(countries)

    def __len__(self) -> int:
        return len(self._ladders)

    def __contains__(self, key: LadderKey) -> bool:
        return key in self._ladders

    def __iter__(self) -> Iterator[BracketLadder]:
        return iter(self._ladders.values())

    def get(self, key: LadderKey) -> Optional[BracketLadder]:
        return self._ladders.get(key)

    def countries(self) -> List[str]:
        return list(self._countries)

    def states(self, country: Optional[str] = None) -> List[str]:
        if country is not None:
            return list(self._states_by_country.get(country, []))
        return sorted({s for states in self._states_by_country.values() for s in states})

    def country_for(self, state: str) -> Optional[str]:
        for country, states in self._states_by_country.items():
            if state in states:
                return country
        return None

    def tax_types_for(self, region: Region, jurisdiction: str) -> List[str]:
        return sorted({k.tax_type for k in self._ladders if k.region is region and k.jurisdiction == jurisdiction})

    def filing_statuses_for(self, region: Region, jurisdiction: str, tax_type: str) -> List[FilingStatus]:
        found = {
            k.filing_status
            for k in self._ladders
            if k.region is region and k.jurisdiction == jurisdiction and k.tax_type == tax_type
        }
        return sorted(found, key=lambda s: s.value)


@dataclasses.dataclass(frozen=True)
class LadderResolution:
    ladder: Optional[BracketLadder]
    requested_status: FilingStatus
    resolved_status: Optional[FilingStatus]
    fallback_used: bool = False
    override_used: bool = False

    @property
    def found(self) -> bool:
        return self.ladder is not None


def country_family(index: BracketIndex, region: Region, jurisdiction: str) -> Optional[str]:
    if region is Region.FEDERAL:
        return jurisdiction
    return index.country_for(jurisdiction)


def fallback_chain(
    index: BracketIndex, region: Region, jurisdiction: str, status: FilingStatus
) -> List[FilingStatus]:
    """Statuses to try, in order, starting with the status itself."""
    chain = [status]
    if status is FilingStatus.ALL:
        return chain
    family = country_family(index, region, jurisdiction)
    for candidate in FILING_STATUS_FALLBACKS.get(family or "", {}).get(status, ()):
        if candidate not in chain:
            chain.append(candidate)
    chain.append(FilingStatus.ALL)
    return chain


def resolve_ladder(
    index: BracketIndex,
    region: Region,
    jurisdiction: str,
    tax_type: str,
    filing_status,
    overrides: Optional[FilingStatusOverrides] = None,
) -> LadderResolution:
    """
    Find the ladder to use for a query.

    A user override pinned for this jurisdiction replaces the requested status
    before anything else; then the exact key, the country family's fallback
    chain and finally the "All" ladder are tried. A miss is not an error: the
    resolution comes back with ``ladder=None`` and callers report zero tax
    flagged as not available.
    """
    requested = FilingStatus.parse(filing_status)
    status = requested
    override_used = False

    pinned = (overrides or {}).get(jurisdiction, {}).get(requested)
    if pinned is not None and pinned is not requested:
        status = FilingStatus.parse(pinned)
        override_used = True

    for candidate in fallback_chain(index, region, jurisdiction, status):
        ladder = index.get(LadderKey(region, jurisdiction, tax_type, candidate))
        if ladder is None:
            continue
        fallback_used = candidate is not status
        if fallback_used:
            logger.debug(
                "Filing status fallback %s -> %s for %s %s", status.value, candidate.value, jurisdiction, tax_type
            )
        return LadderResolution(
            ladder=ladder,
            requested_status=requested,
            resolved_status=candidate,
            fallback_used=fallback_used,
            override_used=override_used,
        )

    logger.debug("Tax ladder not found: %s_%s_%s_%s", region.value, jurisdiction, tax_type, status.value)
    return LadderResolution(
        ladder=None,
        requested_status=requested,
        resolved_status=None,
        override_used=override_used,
    )
