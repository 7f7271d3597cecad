"""Entry point for the cuda-verify command line tool."""

from __future__ import annotations

import argparse
import dataclasses
import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import DEFAULT_CONFIG, VerifyConfig
from .formatting import (
    format_banner,
    format_bytes,
    format_next_steps,
    format_recommendations,
    format_step,
    format_summary,
)
from .probes import PROBES, Outcome, Verification, iter_probes, verify
from .recommendations import Recommendation, next_steps, recommend
from .system_state import HostInfo, gather_host_info

_RICH_STYLES = {
    Outcome.PASS: ("✓ PASS", "bold green"),
    Outcome.WARN: ("⚠ WARN", "bold yellow"),
    Outcome.FAIL: ("✗ FAIL", "bold red"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Verify that the NVIDIA driver, CUDA toolkit and Codon are ready for GPU programs.",
    )
    parser.add_argument("--json", action="store_true", help="print raw results and recommendations as JSON")
    parser.add_argument("--ui", action="store_true", help="render the report with Rich tables")
    parser.add_argument("--no-color", action="store_true", help="disable ANSI colors in plain output")
    parser.add_argument("--gpu-model", help=f"expected GPU model (default: {DEFAULT_CONFIG.gpu_model})")
    parser.add_argument(
        "--libdevice",
        action="append",
        metavar="PATH",
        help="candidate libdevice.10.bc location, may be repeated (replaces the default)",
    )
    parser.add_argument("--search-root", help=f"where to search for a misplaced libdevice (default: {DEFAULT_CONFIG.search_root})")
    parser.add_argument("--test-file", help=f"Codon program used for the final check (default: {DEFAULT_CONFIG.test_file})")
    return parser


def config_from_args(args: argparse.Namespace) -> VerifyConfig:
    overrides: Dict[str, Any] = {}
    if args.gpu_model:
        overrides["gpu_model"] = args.gpu_model
    if args.libdevice:
        overrides["libdevice_candidates"] = tuple(args.libdevice)
    if args.search_root:
        overrides["search_root"] = args.search_root
    if args.test_file:
        overrides["test_file"] = args.test_file
    return dataclasses.replace(DEFAULT_CONFIG, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    if args.json:
        verification = verify(config)
        print(_to_json(gather_host_info(), verification, _recommendations_for(config, verification)))
        return _exit_status(verification)

    if args.ui:
        verification = verify(config)
        _render_rich(gather_host_info(), config, verification)
        return _exit_status(verification)

    return _render_plain(config, color=not args.no_color)


def _render_plain(config: VerifyConfig, color: bool) -> int:
    print(format_banner(gather_host_info(), config))
    print()
    verification = Verification()
    for step, tally in iter_probes(config):
        print(format_step(step, len(PROBES), color), flush=True)
        verification.steps.append(step)
        verification.tally = tally

    print(format_summary(verification.tally, color))
    if verification.tally.failed > 0:
        print(format_recommendations(recommend(config)))
    else:
        print(format_next_steps(next_steps(config)))
    return _exit_status(verification)


def _recommendations_for(config: VerifyConfig, verification: Verification) -> List[Recommendation]:
    return recommend(config) if verification.tally.failed > 0 else []


def _exit_status(verification: Verification) -> int:
    return 1 if verification.tally.failed > 0 else 0


def _to_json(host: HostInfo, verification: Verification, recommendations: List[Recommendation]) -> str:
    payload: Dict[str, Any] = {
        "host": asdict(host),
        "steps": [asdict(step) for step in verification.steps],
        "passed": verification.tally.passed,
        "failed": verification.tally.failed,
        "recommendations": [asdict(r) for r in recommendations],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _render_rich(host: HostInfo, config: VerifyConfig, verification: Verification) -> None:
    console = Console()

    console.print(
        Panel(
            f"CUDA verification - {host.hostname} ({host.system} {host.release}, "
            f"{host.cpu_count} CPUs, {format_bytes(host.memory_total)} RAM)",
            style="bold cyan",
        )
    )

    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("#", justify="right")
    table.add_column("Check", style="bold")
    table.add_column("Status")
    table.add_column("Result")
    for step in verification.steps:
        for index, result in enumerate(step.results):
            label, style = _RICH_STYLES[result.outcome]
            message = "\n".join([result.message, *result.details])
            table.add_row(
                str(step.number) if index == 0 else "",
                step.title if index == 0 else "",
                f"[{style}]{label}[/]",
                escape(message),
                end_section=index == len(step.results) - 1,
            )
    console.print(table)

    summary = Table(show_header=False, box=box.ROUNDED)
    summary.add_row("Passed", f"[green]{verification.tally.passed}[/]")
    summary.add_row("Failed", f"[red]{verification.tally.failed}[/]")
    console.print(summary)

    if verification.tally.failed > 0:
        actions = Table(title="Recommended actions", box=box.SIMPLE_HEAD)
        actions.add_column("#", justify="right")
        actions.add_column("Action", style="bold red")
        actions.add_column("Commands")
        for index, recommendation in enumerate(recommend(config), start=1):
            actions.add_row(str(index), escape(recommendation.title), escape("\n".join(recommendation.commands)))
        console.print(actions)
    else:
        commands = "\n".join(next_steps(config))
        console.print(Panel(f"Your system is ready! Run the GPU-accelerated program:\n{commands}", style="bold green"))


if __name__ == "__main__":
    raise SystemExit(main())
