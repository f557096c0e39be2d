"""
Click CLI for the ladder optimizer.

Commands:
- optimize: best ladder from a JSON list of candidate legs
- candidates: admit exchange book-summary records as candidate legs
- price: option analytics for a single contract
"""

import json
import logging
import sys
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import click

from .candidates import build_candidate_legs, quote_analytics
from .config import AppConfig, load_config
from .constants import DAYS_PER_YEAR, MAX_LADDER_LEGS
from .exceptions import ConfigurationError
from .instruments import quote_from_book_summary
from .models import CandidateLeg, ScoredLadder, format_strike
from .optimizer import LadderOptimizer, recommended_keys
from .pricing import conditional_tail_loss, greeks, hedged_annual_yield, probability_of_exercise


@dataclass
class CLIContext:
    """Context object passed to all CLI commands.

    Attributes:
        config: Loaded configuration
        verbose: Verbose output enabled
        json: JSON output enabled
    """

    config: AppConfig
    verbose: bool
    json: bool


def get_cli_context(ctx: click.Context) -> CLIContext:
    """Get the CLIContext from click context."""
    return ctx.obj


def print_error(message: str) -> None:
    """Print error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def print_warning(message: str) -> None:
    """Print warning message."""
    click.secho(f"Warning: {message}", fg="yellow")


def print_ladder(ladder: ScoredLadder, highlight: set[str], verbose: bool = False) -> None:
    """Print a ranked ladder in a formatted way."""
    click.echo()
    click.secho(
        f"=== Optimal {ladder.num_legs}-Leg Ladder (score {ladder.score:.1f}/10) ===", bold=True
    )
    click.echo(f"Top factor:     {ladder.top_factor}")
    click.echo(f"Total premium:  ${ladder.total_premium:,.2f}")
    click.echo(f"Expected value: ${ladder.expected_value:,.2f} (${ladder.ev_annual:,.2f}/yr)")
    click.echo(f"Avg APY:        {ladder.avg_apy:.1f}%")
    click.echo(f"P(all OTM):     {ladder.prob_all_otm * 100:.1f}%")
    if ladder.is_mixed_expiry:
        click.echo(f"Expiries:       {', '.join(ladder.expiries)} (mixed)")
    click.echo()

    for leg in ladder.legs:
        marker = "*" if leg.highlight_key in highlight else " "
        click.echo(
            f"{marker} {leg.expiry:>8} {format_strike(leg.strike):>8}P  "
            f"{leg.days_to_expiry:>3}d  IV {leg.mark_iv:5.1f}  "
            f"P(ex) {leg.probability_of_exercise * 100:5.1f}%  "
            f"APY {leg.annualized_yield_pct:5.1f}%  ${leg.premium_quote:,.2f}"
        )

    if verbose:
        click.echo()
        click.echo(f"Vol edge:        {ladder.vol_edge:+.4f}")
        click.echo(f"Theta eff:       ${ladder.theta_efficiency:,.2f}/day")
        click.echo(f"Risk/return:     {ladder.risk_return:.4f}")
        click.echo(f"Kelly:           {ladder.kelly:.4f}")
        click.echo(f"Diversification: {ladder.diversification:.4f}")


def _read_json(path: str) -> Any:
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {path}: {e}") from e


@click.group()
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
    envvar="LADDER_CONFIG_FILE",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--json", "output_json", is_flag=True, help="JSON output")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], verbose: bool, output_json: bool) -> None:
    """Cash-secured put ladder optimizer."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(Path(config_file) if config_file else None)
    except ConfigurationError as e:
        print_error(str(e))
        sys.exit(1)

    ctx.obj = CLIContext(config=config, verbose=verbose, json=output_json)


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--legs",
    "num_legs",
    type=click.IntRange(0, MAX_LADDER_LEGS),
    default=None,
    help="Legs per ladder, 0 = Auto (default: from config)",
)
@click.option(
    "--allow-repetition/--no-repetition",
    default=None,
    help="Allow the same contract more than once (default: from config)",
)
@click.option("--dvol", type=float, default=None, help="Volatility index override")
@click.pass_context
def optimize(
    ctx: click.Context,
    input_file: str,
    num_legs: Optional[int],
    allow_repetition: Optional[bool],
    dvol: Optional[float],
) -> None:
    """
    Find the best ladder among candidate legs in INPUT_FILE.

    INPUT_FILE holds a JSON list of legs, or an object with "legs" and
    an optional "volatility_index".

    Example: ladder-optimizer optimize legs.json --legs 3
    """
    cli_ctx = get_cli_context(ctx)
    data = _read_json(input_file)

    volatility_index = None
    if isinstance(data, dict):
        volatility_index = data.get("volatility_index")
        data = data.get("legs", [])
    if dvol is not None:
        volatility_index = dvol

    try:
        if volatility_index is not None:
            volatility_index = float(volatility_index)
        legs = [CandidateLeg.from_dict(item) for item in data]
        optimizer_config = replace(
            cli_ctx.config.optimizer,
            num_legs=cli_ctx.config.optimizer.num_legs if num_legs is None else num_legs,
            allow_repetition=(
                cli_ctx.config.optimizer.allow_repetition
                if allow_repetition is None
                else allow_repetition
            ),
        )
    except (ValueError, TypeError, ConfigurationError) as e:
        print_error(str(e))
        sys.exit(1)

    ladder = LadderOptimizer(optimizer_config).optimize(legs, volatility_index)
    highlight = recommended_keys(ladder, optimizer_config.recommend_score_threshold)

    if cli_ctx.json:
        payload = {
            "ladder": ladder.to_dict() if ladder else None,
            "highlight_keys": sorted(highlight),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    if ladder is None:
        print_warning(f"No ladder available from {len(legs)} candidate legs")
        return

    print_ladder(ladder, highlight, cli_ctx.verbose)


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--legs", "num_legs", type=click.IntRange(0, MAX_LADDER_LEGS), default=0,
              help="Intended ladder size, 0 = Auto")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write legs as JSON")
@click.option("--as-of", type=click.DateTime(), default=None, help="Valuation time (UTC)")
@click.pass_context
def candidates(
    ctx: click.Context,
    input_file: str,
    num_legs: int,
    output: Optional[str],
    as_of: Optional[datetime],
) -> None:
    """
    Admit book-summary records from INPUT_FILE as candidate legs.

    Example: ladder-optimizer candidates book.json -o legs.json
    """
    cli_ctx = get_cli_context(ctx)
    data = _read_json(input_file)
    if isinstance(data, dict):
        data = data.get("result", [])
    if not isinstance(data, list):
        print_error(f"Expected a list of book-summary records in {input_file}")
        sys.exit(1)

    now = as_of.replace(tzinfo=timezone.utc) if as_of else datetime.now(timezone.utc)
    admission = cli_ctx.config.admission

    quotes = []
    for item in data:
        quote = quote_from_book_summary(item, now, admission.strike_multiple)
        if quote is not None:
            quotes.append(quote)

    legs = build_candidate_legs(quotes, admission, num_legs)

    if output:
        with open(output, "w") as f:
            json.dump([leg.to_dict() for leg in legs], f, indent=2)
        if not cli_ctx.json:
            click.secho(f"Wrote {len(legs)} candidate legs to {output}", fg="green")

    if cli_ctx.json:
        click.echo(json.dumps([leg.to_dict() for leg in legs], indent=2))
        return

    if not legs:
        print_warning(f"No candidates admitted from {len(quotes)} quotes")
        return

    by_instrument = {q.instrument: q for q in quotes}
    click.secho(f"=== {len(legs)} Candidate Legs ===", bold=True)
    for leg in legs:
        analytics = quote_analytics(by_instrument[leg.instrument])
        click.echo(
            f"{leg.instrument:<22} {leg.days_to_expiry:>3}d  "
            f"APY {leg.annualized_yield_pct:5.1f}%  "
            f"P(ex) {leg.probability_of_exercise * 100:5.1f}%  "
            f"delta {analytics['greeks'].delta:+.3f}  "
            f"theta {analytics['greeks'].theta:,.2f}"
        )


@cli.command()
@click.option("--spot", type=float, required=True, help="Underlying reference price")
@click.option("--strike", type=float, required=True, help="Strike price")
@click.option("--dte", type=int, required=True, help="Days to expiry")
@click.option("--iv", type=float, required=True, help="Implied volatility, percent")
@click.option("--type", "option_type", type=click.Choice(["put", "call"]), default="put")
@click.option("--premium", type=float, default=None, help="Premium in underlying units")
@click.pass_context
def price(
    ctx: click.Context,
    spot: float,
    strike: float,
    dte: int,
    iv: float,
    option_type: str,
    premium: Optional[float],
) -> None:
    """
    Show probability of exercise, Greeks and tail loss for one option.

    Example: ladder-optimizer price --spot 60000 --strike 54000 --dte 30 --iv 55
    """
    cli_ctx = get_cli_context(ctx)
    T = dte / DAYS_PER_YEAR
    sigma = iv / 100

    result: dict[str, Any] = {
        "probability_of_exercise": probability_of_exercise(spot, strike, T, sigma, option_type),
        "conditional_tail_loss": conditional_tail_loss(spot, strike, T, sigma, option_type),
        "greeks": greeks(spot, strike, T, sigma, option_type).to_dict(),
    }
    if premium is not None and option_type == "put":
        result["hedged_annual_yield_pct"] = hedged_annual_yield(premium, spot, strike, dte)

    if cli_ctx.json:
        click.echo(json.dumps(result, indent=2))
        return

    g = result["greeks"]
    click.secho(f"=== {format_strike(strike)} {option_type.upper()} ({dte}d, IV {iv:.1f}) ===",
                bold=True)
    click.echo(f"P(exercise): {result['probability_of_exercise'] * 100:.2f}%")
    click.echo(f"Tail loss:   ${result['conditional_tail_loss']:,.2f}")
    click.echo(f"Delta: {g['delta']:+.4f}  Gamma: {g['gamma']:.3e}  "
               f"Theta: {g['theta']:,.2f}/day  Vega: {g['vega']:,.2f}")
    if "hedged_annual_yield_pct" in result:
        click.echo(f"Hedged APY:  {result['hedged_annual_yield_pct']:.2f}%")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
