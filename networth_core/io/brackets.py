from __future__ import annotations

import math
from pathlib import Path
from typing import List, Optional

import pandas as pd

from networth_core.domain.models import Bracket, BracketLadder, FilingStatus, LadderKey, Region
from networth_core.services.ladders import DEFAULT_BASE_YEAR, BracketIndex

REQUIRED_COLUMNS = {"Region", "Jurisdiction", "Parent Region", "TaxType", "Filing Status", "Step", "Min", "Max", "Rate"}
LADDER_COLUMNS = ["Region", "Jurisdiction", "TaxType", "Filing Status"]

# Older tables mark the open-ended top bracket with this value.
TOP_SENTINEL = 99999999

DEFAULT_LADDERS_CSV = Path(__file__).resolve().parent.parent / "data" / "tax_ladders.csv"


def load_bracket_index(csv_path: Optional[str | Path] = None, base_year: int = DEFAULT_BASE_YEAR) -> BracketIndex:
    path = Path(csv_path) if csv_path else DEFAULT_LADDERS_CSV
    if not path.exists():
        raise FileNotFoundError(path)

    df = pd.read_csv(path, skipinitialspace=True)
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns in tax ladder CSV: {missing}")
    return index_from_frame(df, base_year=base_year)


def index_from_frame(df: pd.DataFrame, base_year: int = DEFAULT_BASE_YEAR) -> BracketIndex:
    """
    Group rows into ladders. A blank ``Max`` is taken from the next step's
    ``Min``; the last step is open-ended.
    """
    df = df.copy()
    df["Parent Region"] = df["Parent Region"].fillna("")
    df["Min"] = df["Min"].fillna(0.0)

    ladders: List[BracketLadder] = []
    for (region, jurisdiction, tax_type, status), group in df.groupby(LADDER_COLUMNS, sort=False):
        group = group.sort_values("Step")
        mins = [float(v) for v in group["Min"]]
        maxes = list(group["Max"])
        rates = [float(v) for v in group["Rate"]]

        brackets = []
        for i, low in enumerate(mins):
            top = maxes[i]
            if pd.isna(top):
                top = mins[i + 1] if i + 1 < len(mins) else math.inf
            elif float(top) >= TOP_SENTINEL:
                top = math.inf
            brackets.append(Bracket(min=low, max=float(top), rate=rates[i]))

        ladders.append(
            BracketLadder(
                key=LadderKey(
                    region=Region(str(region).strip()),
                    jurisdiction=str(jurisdiction).strip(),
                    tax_type=str(tax_type).strip(),
                    filing_status=FilingStatus.parse(status),
                ),
                brackets=tuple(brackets),
                parent_region=str(group["Parent Region"].iloc[0]).strip(),
            )
        )
    return BracketIndex(ladders, base_year=base_year)
