"""Console-friendly formatting utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:
    from .config import VerifyConfig
    from .probes import ProbeResult, ProbeStep, Tally
    from .recommendations import Recommendation
    from .system_state import HostInfo

GREEN = "\033[0;32m"
RED = "\033[0;31m"
YELLOW = "\033[1;33m"
RESET = "\033[0m"

RULE = "=" * 70

_MARKERS = {
    "pass": (GREEN, "✓"),
    "fail": (RED, "✗"),
    "warn": (YELLOW, "⚠"),
}


def format_bytes(num: float) -> str:
    suffixes = ["B", "KiB", "MiB", "GiB", "TiB"]
    value = float(num)
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}"
        value /= 1024
    return f"{value:.1f} TiB"


def colorize(text: str, color: str, enabled: bool = True) -> str:
    return f"{color}{text}{RESET}" if enabled else text


def format_banner(host: HostInfo, config: VerifyConfig) -> str:
    lines = [
        RULE,
        "CUDA System Installation Verification",
        f"{host.system} {host.release} | {host.cpu_count} CPUs | {format_bytes(host.memory_total)} RAM"
        f" | target GPU: {config.gpu_vendor} {config.gpu_model}",
        RULE,
    ]
    return "\n".join(lines)


def format_result(result: ProbeResult, color: bool = True) -> str:
    """Render one status line followed by its indented detail lines."""
    tint, marker = _MARKERS[result.outcome.value]
    lines = [f"{colorize(marker, tint, color)} {result.message}"]
    lines.extend(f"  {detail}" for detail in result.details)
    return "\n".join(lines)


def format_step(step: ProbeStep, total: int, color: bool = True) -> str:
    lines = [f"[{step.number}/{total}] {step.title}..."]
    lines.extend(format_result(result, color) for result in step.results)
    return "\n".join(lines) + "\n"


def format_summary(tally: Tally, color: bool = True) -> str:
    lines = [
        RULE,
        "VERIFICATION SUMMARY",
        RULE,
        f"Passed: {colorize(str(tally.passed), GREEN, color)}",
        f"Failed: {colorize(str(tally.failed), RED, color)}",
    ]
    return "\n".join(lines) + "\n"


def format_recommendations(recommendations: Sequence[Recommendation]) -> str:
    lines = [RULE, "RECOMMENDED ACTIONS", RULE]
    for index, recommendation in enumerate(recommendations, start=1):
        lines.append(f"{index}. {recommendation.title}")
        lines.extend(f"   {command}" for command in recommendation.commands)
        lines.append("")
    return "\n".join(lines)


def format_next_steps(commands: Sequence[str]) -> str:
    lines: List[str] = [RULE, "NEXT STEPS", RULE, "Your system is ready! Run the GPU-accelerated program:"]
    lines.extend(f"  {command}" for command in commands)
    lines.append("")
    return "\n".join(lines)
