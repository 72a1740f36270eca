import pytest

from networth_core.domain.models import FilingStatus, LadderKey, Location, Region
from networth_core.services.ladders import BracketIndex, fallback_chain, resolve_ladder
from networth_core.services.taxes import compute_tax

from conftest import make_ladder


def test_missing_status_matches_direct_query_of_its_fallback(small_index):
    fallback = resolve_ladder(small_index, Region.STATE_PROVINCE, "Testland", "Income", FilingStatus.SEPARATE)
    direct = resolve_ladder(small_index, Region.STATE_PROVINCE, "Testland", "Income", FilingStatus.SINGLE)

    assert fallback.found
    assert fallback.fallback_used
    assert fallback.resolved_status is FilingStatus.SINGLE
    assert fallback.ladder.brackets == direct.ladder.brackets


def test_head_of_household_falls_back_to_married_in_usa(small_index):
    resolution = resolve_ladder(small_index, Region.FEDERAL, "USA", "Income", "head_of_household")
    assert resolution.resolved_status is FilingStatus.MARRIED

    hoh = compute_tax(80_000, "ordinary", "head", Location("Testland", "USA"), 2025, 0.0, small_index)
    married = compute_tax(80_000, "ordinary", "married", Location("Testland", "USA"), 2025, 0.0, small_index)
    assert hoh.total_tax == pytest.approx(married.total_tax)
    assert hoh.state_tax.fallback_used and not married.state_tax.fallback_used


def test_canada_uses_single_for_every_status(small_index):
    chain = fallback_chain(small_index, Region.STATE_PROVINCE, "Northshire", FilingStatus.MARRIED)
    assert chain == [FilingStatus.MARRIED, FilingStatus.SINGLE, FilingStatus.ALL]

    resolution = resolve_ladder(
        small_index, Region.FEDERAL, "Canada", "Income_and_CapitalGains", FilingStatus.HEAD_OF_HOUSEHOLD
    )
    assert resolution.resolved_status is FilingStatus.SINGLE


def test_all_ladder_is_the_last_resort(small_index):
    resolution = resolve_ladder(small_index, Region.STATE_PROVINCE, "Flatland", "Income", FilingStatus.MARRIED)
    assert resolution.resolved_status is FilingStatus.ALL
    assert resolution.fallback_used


def test_override_wins_over_exact_match(small_index):
    overrides = {"Testland": {FilingStatus.MARRIED: FilingStatus.SINGLE}}
    resolution = resolve_ladder(
        small_index, Region.STATE_PROVINCE, "Testland", "Income", FilingStatus.MARRIED, overrides
    )
    assert resolution.override_used
    assert resolution.requested_status is FilingStatus.MARRIED
    assert resolution.resolved_status is FilingStatus.SINGLE

    # other jurisdictions are untouched
    federal = resolve_ladder(small_index, Region.FEDERAL, "USA", "Income", FilingStatus.MARRIED, overrides)
    assert federal.resolved_status is FilingStatus.MARRIED and not federal.override_used


def test_unknown_ladder_is_not_found(small_index):
    resolution = resolve_ladder(small_index, Region.STATE_PROVINCE, "Atlantis", "Income", FilingStatus.SINGLE)
    assert not resolution.found
    assert resolution.resolved_status is None


def test_index_lookups(small_index):
    assert small_index.countries() == ["Canada", "USA"]
    assert small_index.states("USA") == ["Flatland", "Testland"]
    assert small_index.country_for("Northshire") == "Canada"
    assert small_index.country_for("Atlantis") is None
    assert LadderKey(Region.FEDERAL, "USA", "Income", FilingStatus.SINGLE) in small_index
    assert small_index.tax_types_for(Region.FEDERAL, "USA") == [
        "CapitalGains",
        "FICA Medicare",
        "FICA Medicare Additional",
        "FICA Social Security",
        "Income",
    ]


def test_duplicate_ladders_are_rejected():
    ladder = make_ladder(Region.FEDERAL, "USA", "Income", FilingStatus.SINGLE, [(0, 0.1)])
    with pytest.raises(ValueError):
        BracketIndex([ladder, ladder])
