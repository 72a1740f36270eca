from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from networth_core.domain.errors import InvalidInputError, MissingInputError
from networth_core.domain.models import FilingStatus, IncomeKind, Location, ProjectionResult, Region
from networth_core.io import brackets as brackets_io
from networth_core.io import config as config_io
from networth_core.io import export
from networth_core.services import amortization, pipeline, taxes, validation

app = typer.Typer(help="Household net-worth projection and tax CLI.")

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show per-year debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _save_json(path: Path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def _fail(exc: Exception) -> None:
    err_console.print(f"[red]{exc}[/red]")
    raise typer.Exit(code=1)


def _load_index(brackets: Optional[Path]):
    try:
        return brackets_io.load_bracket_index(brackets)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--brackets")


def _summary_table(result: ProjectionResult, present_value: bool) -> Table:
    title = "Projection (today's dollars)" if present_value else "Projection (nominal)"
    table = Table(title=title)
    for column in ("Year", "Calendar", "Gross", "Taxes", "Outflows", "Gap", "Cash", "Investments", "401k", "Net worth"):
        table.add_column(column, justify="right")
    for snap in result.snapshots:
        f = snap.present_value if present_value else snap.nominal
        table.add_row(
            str(snap.year),
            str(snap.calendar_year),
            f"{f.gross_income:,.0f}",
            f"{f.taxes:,.0f}",
            f"{f.total_outflows:,.0f}",
            f"{f.gap:,.0f}",
            f"{f.cash:,.0f}",
            f"{f.total_investment_value:,.0f}",
            f"{f.retirement_401k_value:,.0f}",
            f"{f.net_worth:,.0f}",
        )
    return table


@app.command()
def project(
    inputs: Path = typer.Option(
        ..., exists=True, dir_okay=False, help="Projection inputs JSON (profile, income, expenses, investments)"
    ),
    brackets: Optional[Path] = typer.Option(None, help="Tax ladder CSV; defaults to the bundled table"),
    out: Optional[Path] = typer.Option(None, help="Output path for projection JSON"),
    csv: Optional[Path] = typer.Option(None, help="Output path for a per-year CSV"),
    present_value: bool = typer.Option(False, help="Use today's dollars for the table and CSV"),
    table: bool = typer.Option(False, help="Print a per-year table instead of JSON"),
):
    """Run the year-by-year projection to retirement."""
    index = _load_index(brackets)
    try:
        data = config_io.load_inputs(inputs)
        with Progress(SpinnerColumn(), TextColumn("{task.description}"), console=err_console, transient=True) as progress:
            progress.add_task(f"Simulating {data.profile.years_to_retirement} years...", total=None)
            result = pipeline.run_projection(data, index)
    except (MissingInputError, InvalidInputError, json.JSONDecodeError) as exc:
        _fail(exc)

    if csv:
        csv.parent.mkdir(parents=True, exist_ok=True)
        export.snapshots_to_frame(result, present_value=present_value).to_csv(csv, index=False)
        typer.echo(f"Per-year CSV written to {csv}")

    payload = export.result_to_dict(result)
    if out:
        _save_json(out, payload)
        typer.echo(f"Projection written to {out}")
    elif table:
        console.print(_summary_table(result, present_value))
    elif not csv:
        typer.echo(json.dumps(payload, indent=2))

    if result.summary.tax_unavailable_years:
        err_console.print("[yellow]Some taxes had no bracket table and were counted as zero.[/yellow]")


@app.command()
def tax(
    amount: float = typer.Option(..., help="Income amount"),
    state: str = typer.Option("California", help="State or province"),
    country: Optional[str] = typer.Option(None, help="Country; inferred from the state when omitted"),
    filing_status: str = typer.Option("single", help="single|married|separate|head_of_household"),
    kind: str = typer.Option("ordinary", help="ordinary|capital_gains"),
    year: Optional[int] = typer.Option(None, help="Tax year; defaults to the table's base year"),
    inflation: float = typer.Option(2.7, help="Annual inflation percent used to index brackets"),
    custom_ladder: Optional[Path] = typer.Option(
        None, exists=True, dir_okay=False, help="Custom ladder JSON replacing the state and federal brackets"
    ),
    brackets: Optional[Path] = typer.Option(None, help="Tax ladder CSV; defaults to the bundled table"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Compute state, federal and payroll tax for one amount."""
    index = _load_index(brackets)
    try:
        status = FilingStatus.parse(filing_status)
        income_kind = IncomeKind.parse(kind)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    custom = None
    if custom_ladder:
        try:
            custom = config_io.load_custom_ladder(custom_ladder)
        except InvalidInputError as exc:
            raise typer.BadParameter(str(exc), param_hint="--custom-ladder")
        problems = validation.custom_ladder_problems(custom)
        if problems:
            raise typer.BadParameter("; ".join(problems), param_hint="--custom-ladder")

    result = taxes.compute_tax(
        amount,
        income_kind,
        status,
        Location(state, country),
        year or index.base_year,
        inflation,
        index,
        custom=custom,
    )
    if as_json:
        typer.echo(json.dumps(export.tax_to_dict(result), indent=2))
        return

    table = Table(title=f"{result.kind.value} tax, {state} {result.tax_year} ({result.filing_status.value})")
    table.add_column("Component")
    table.add_column("Filing status")
    table.add_column("Amount", justify="right")
    table.add_column("Rate", justify="right")
    for component in result.components():
        if component.not_available:
            table.add_row(component.label, "-", "[yellow]n/a[/yellow]", "-")
            continue
        resolved = component.resolved_status.value if component.resolved_status else "-"
        if component.fallback_used or component.override_used:
            resolved += " *"
        table.add_row(component.label, resolved, f"{component.amount:,.2f}", f"{component.effective_rate:.2%}")
    table.add_row("total", "", f"{result.total_tax:,.2f}", f"{result.effective_rate:.2%}")
    console.print(table)
    console.print(f"Take home: {result.take_home:,.2f}")


@app.command()
def ladders(
    country: Optional[str] = typer.Option(None, help="Limit to one country"),
    brackets: Optional[Path] = typer.Option(None, help="Tax ladder CSV; defaults to the bundled table"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """List the countries, states and tax types the bracket table covers."""
    index = _load_index(brackets)
    countries = [country] if country else index.countries()
    payload = {}
    for name in countries:
        payload[name] = {
            "federal": index.tax_types_for(Region.FEDERAL, name),
            "states": {s: index.tax_types_for(Region.STATE_PROVINCE, s) for s in index.states(name)},
        }

    if as_json:
        typer.echo(json.dumps({"base_year": index.base_year, "countries": payload}, indent=2))
        return

    table = Table(title=f"Tax ladders (base year {index.base_year})")
    table.add_column("Country")
    table.add_column("Jurisdiction")
    table.add_column("Tax types")
    for name, entry in payload.items():
        table.add_row(name, "(federal)", ", ".join(entry["federal"]))
        for state_name, tax_types in entry["states"].items():
            table.add_row("", state_name, ", ".join(tax_types))
    console.print(table)


@app.command()
def compare(
    inputs: Path = typer.Option(..., exists=True, dir_okay=False, help="Baseline projection inputs JSON"),
    overrides: Path = typer.Option(
        ..., exists=True, dir_okay=False, help="Scenario overrides JSON merged into the inputs"
    ),
    brackets: Optional[Path] = typer.Option(None, help="Tax ladder CSV; defaults to the bundled table"),
    out: Optional[Path] = typer.Option(None, help="Output path for comparison JSON"),
):
    """Compare a scenario against the baseline projection."""
    index = _load_index(brackets)
    try:
        with inputs.open("r", encoding="utf-8") as f:
            base_data = json.load(f)
        comparison = pipeline.compare_scenario(base_data, config_io.load_overrides(overrides), index)
    except (MissingInputError, InvalidInputError, json.JSONDecodeError) as exc:
        _fail(exc)

    payload = export.comparison_to_dict(comparison)
    if out:
        _save_json(out, payload)
        typer.echo(f"Scenario comparison written to {out}")
    else:
        typer.echo(json.dumps(payload, indent=2))


@app.command()
def mortgage(
    balance: float = typer.Option(..., help="Loan balance"),
    rate: float = typer.Option(..., help="Annual interest rate percent"),
    term: float = typer.Option(30, help="Term in years"),
    csv: Optional[Path] = typer.Option(None, help="Output path for the monthly schedule CSV"),
):
    """Show a fixed-rate amortization schedule by year."""
    schedule = amortization.amortization_schedule(balance, rate, term)
    if csv:
        csv.parent.mkdir(parents=True, exist_ok=True)
        schedule.to_csv(csv, index=False)
        typer.echo(f"Schedule written to {csv}")

    yearly = schedule.groupby("year").agg(
        payment=("payment", "sum"),
        interest=("interest", "sum"),
        principal=("principal", "sum"),
        balance=("balance", "last"),
    )
    table = Table(title=f"Monthly payment {amortization.monthly_payment(balance, rate, term):,.2f}")
    for column in ("Year", "Paid", "Interest", "Principal", "Balance"):
        table.add_column(column, justify="right")
    for year, row in yearly.iterrows():
        table.add_row(
            str(year),
            f"{row['payment']:,.2f}",
            f"{row['interest']:,.2f}",
            f"{row['principal']:,.2f}",
            f"{row['balance']:,.2f}",
        )
    console.print(table)


if __name__ == "__main__":
    app()
