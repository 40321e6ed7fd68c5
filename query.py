#!/usr/bin/env python3
"""Ad hoc query runner for the Recipe Success Predictor.

Run predictions and metrics directly against the configured database without
an agent in the loop.

Usage:
    python query.py seed data/demo.json           # Load profiles and recipes
    python query.py predict user-1 recipe-42
    python query.py predict user-1 recipe-42 --available-time 20 --stress 4 --time-of-day evening
    python query.py metrics --window 500
    python query.py --json predict user-1 recipe-42  # Raw JSON output

Features:
- Formatted prediction with key factors, risks and recommendations
- Metrics report over the most recent recorded outcomes
- JSON mode to print the full response model
- Clean exit after completion
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from src.models.models import MetricsReport, Prediction
from src.prediction.service import initialize_prediction_service
from src.stores.sql import SqlStore
from src.utils.logger import logger

console = Console()

USAGE = (
    "Usage: python query.py [--json] predict USER RECIPE "
    "[--available-time N] [--stress N] [--time-of-day X]\n"
    "       python query.py [--json] metrics [--window N]\n"
    "       python query.py seed FILE"
)

RISK_COLORS = {"low": "green", "medium": "yellow", "high": "red"}


def render_prediction(prediction: Prediction) -> None:
    """Print a prediction as a factor table followed by risks and advice."""
    color = RISK_COLORS.get(prediction.risk_level, "white")
    lower, upper = prediction.confidence_interval
    console.print(
        f"[bold]Success score:[/bold] [{color}]{prediction.success_score:.0%}[/{color}] "
        f"(interval {lower:.0%} - {upper:.0%}, {prediction.risk_level} risk)"
    )

    table = Table(title="Key factors")
    table.add_column("Factor", style="cyan")
    table.add_column("Impact", justify="right")
    table.add_column("Description")
    for factor in prediction.key_factors:
        impact_color = "green" if factor.impact >= 0 else "red"
        table.add_row(factor.factor, f"[{impact_color}]{factor.impact:+.3f}[/{impact_color}]", factor.description)
    console.print(table)

    for heading, items in (
        ("Risk factors", prediction.risk_factors),
        ("Recommendations", prediction.recommendations),
        ("Insights", prediction.insights),
        ("Easier alternatives", prediction.alternative_recipes),
    ):
        if items:
            console.print(f"\n[bold]{heading}[/bold]")
            for item in items:
                console.print(f"  • {item}")


def render_metrics(report: MetricsReport) -> None:
    """Print a metrics report as a two-column table."""
    if report.total_predictions == 0:
        console.print("[yellow]No recorded outcomes with predictions yet[/yellow]")
        return
    table = Table(title=f"Model metrics ({report.total_predictions} predictions)")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name in ("accuracy", "precision", "recall", "f1_score", "recent_accuracy"):
        table.add_row(name, f"{getattr(report, name):.3f}")
    console.print(table)


def seed_store(store: SqlStore, path: str) -> Dict[str, int]:
    """Load {"profiles": [...], "recipes": [...]} from a JSON file into the store.

    Returns:
        Counts of saved profiles and recipes.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If an entry has no id.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    counts = {"profiles": 0, "recipes": 0}
    for profile in data.get("profiles", []):
        if not profile.get("id"):
            raise ValueError(f"Profile entry without id in {path}")
        store.save_profile(str(profile["id"]), profile)
        counts["profiles"] += 1
    for recipe in data.get("recipes", []):
        if not recipe.get("id"):
            raise ValueError(f"Recipe entry without id in {path}")
        store.save_recipe(str(recipe["id"]), recipe)
        counts["recipes"] += 1
    return counts


def parse_args(argv: List[str]) -> Dict[str, Any]:
    """Parse query.py arguments into a command dict.

    Raises:
        ValueError: On unknown commands, unknown flags or missing values.
    """
    args = list(argv)
    as_json = False
    if args and args[0] == "--json":
        as_json = True
        args = args[1:]
    if not args:
        raise ValueError("No command provided")

    command, rest = args[0], args[1:]
    positional: List[str] = []
    options: Dict[str, str] = {}
    index = 0
    while index < len(rest):
        arg = rest[index]
        if arg == "--json":
            as_json = True
            index += 1
        elif arg.startswith("--"):
            if index + 1 >= len(rest):
                raise ValueError(f"{arg} flag requires a value")
            options[arg[2:]] = rest[index + 1]
            index += 2
        else:
            positional.append(arg)
            index += 1

    if command == "predict":
        if len(positional) != 2:
            raise ValueError("predict requires USER and RECIPE")
        unknown = set(options) - {"available-time", "stress", "time-of-day"}
        if unknown:
            raise ValueError(f"Unknown flag: --{sorted(unknown)[0]}")
        context: Dict[str, Any] = {}
        if "available-time" in options:
            context["available_time"] = float(options["available-time"])
        if "stress" in options:
            context["stress_level"] = int(options["stress"])
        if "time-of-day" in options:
            context["time_of_day"] = options["time-of-day"]
        return {
            "command": command,
            "user_id": positional[0],
            "recipe_id": positional[1],
            "context": context,
            "json": as_json,
        }

    if command == "metrics":
        unknown = set(options) - {"window"}
        if unknown:
            raise ValueError(f"Unknown flag: --{sorted(unknown)[0]}")
        window: Optional[int] = int(options["window"]) if "window" in options else None
        if window is not None and window < 1:
            raise ValueError("--window must be at least 1")
        return {"command": command, "window": window, "json": as_json}

    if command == "seed":
        if len(positional) != 1 or options:
            raise ValueError("seed requires exactly one FILE")
        return {"command": command, "path": positional[0], "json": as_json}

    raise ValueError(f"Unknown command: {command}")


def run_query(args: Dict[str, Any]) -> None:
    """Execute one parsed command and print the result.

    Args:
        args: Output of parse_args().
    """
    try:
        store = SqlStore()

        if args["command"] == "seed":
            counts = seed_store(store, args["path"])
            console.print(f"[green]✓ Seeded {counts['profiles']} profiles and {counts['recipes']} recipes[/green]")
            return

        service = initialize_prediction_service(store)
        logger.info("---")

        if args["command"] == "predict":
            result = asyncio.run(service.predict_success(args["user_id"], args["recipe_id"], args["context"]))
        else:
            result = asyncio.run(service.get_model_metrics(args["window"]))

        console.print()
        if args["json"]:
            console.print_json(data=result.model_dump())
        elif isinstance(result, Prediction):
            render_prediction(result)
        else:
            render_metrics(result)

    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    try:
        parsed = parse_args(sys.argv[1:])
    except ValueError as e:
        print(f"Error: {e}")
        print(USAGE)
        print("")
        print("Examples:")
        print("  python query.py seed data/demo.json")
        print("  python query.py predict user-1 recipe-42 --available-time 20 --stress 4")
        print("  python query.py --json metrics --window 500")
        sys.exit(1)

    run_query(parsed)
