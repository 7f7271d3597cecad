"""Run the ordered CUDA/Codon environment probes and fold their results into a tally."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import os
import re
from typing import Callable, Iterator, List, Sequence, Tuple

from . import system_state
from .config import VerifyConfig
from .formatting import format_bytes


class Outcome(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class CountsAs(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    NONE = "none"


@dataclass(frozen=True)
class ProbeResult:
    outcome: Outcome
    message: str
    counts_as: CountsAs
    details: Tuple[str, ...] = ()


def passed(message: str, *details: str) -> ProbeResult:
    return ProbeResult(Outcome.PASS, message, CountsAs.PASS, details)


def failed(message: str, *details: str) -> ProbeResult:
    return ProbeResult(Outcome.FAIL, message, CountsAs.FAIL, details)


def warned(message: str, *details: str, counts_as: CountsAs = CountsAs.NONE) -> ProbeResult:
    return ProbeResult(Outcome.WARN, message, counts_as, details)


@dataclass(frozen=True)
class Tally:
    passed: int = 0
    failed: int = 0

    def record(self, result: ProbeResult) -> "Tally":
        if result.counts_as is CountsAs.PASS:
            return Tally(self.passed + 1, self.failed)
        if result.counts_as is CountsAs.FAIL:
            return Tally(self.passed, self.failed + 1)
        return self


@dataclass
class ProbeStep:
    number: int
    title: str
    results: List[ProbeResult]


@dataclass
class Verification:
    steps: List[ProbeStep] = field(default_factory=list)
    tally: Tally = field(default_factory=Tally)


ProbeFunc = Callable[[VerifyConfig, Tally], List[ProbeResult]]


@dataclass(frozen=True)
class Probe:
    title: str
    check: ProbeFunc

    def describe(self, config: VerifyConfig) -> str:
        return self.title.format(config=config)


def probe_gpu(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    output = system_state.run_command([config.pci_tool])
    lines = output.stdout.splitlines() if output else []
    vendor_lines = [line for line in lines if config.gpu_vendor.lower() in line.lower()]
    if any(config.gpu_model.lower() in line.lower() for line in vendor_lines):
        return [passed(f"GPU detected: {config.gpu_vendor} {config.gpu_model}")]
    if vendor_lines:
        fields = vendor_lines[0].split(":")
        name = fields[2] if len(fields) > 2 else vendor_lines[0]
        return [warned(f"GPU detected but not {config.gpu_model}:{name}", counts_as=CountsAs.PASS)]
    return [failed(f"No {config.gpu_vendor} GPU detected")]


def probe_driver(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    tool = config.driver_tool
    if not system_state.which(tool):
        return [failed(f"{tool} not found - {config.gpu_vendor} driver not installed")]
    output = system_state.run_command([tool, "--query-gpu=driver_version", "--format=csv,noheader"])
    version = _first_line(output.stdout) if output else ""
    if not version:
        return [failed(f"{tool} found but driver not loaded")]
    summary = system_state.run_command([tool, "--query-gpu=name,driver_version,memory.total", "--format=csv,noheader"])
    details = tuple(summary.stdout.strip().splitlines()) if summary else ()
    return [passed(f"{config.gpu_vendor} driver loaded: Version {version}", *details)]


def probe_compiler(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    path = system_state.which(config.compiler)
    if not path:
        return [failed(f"{config.compiler} not found - CUDA toolkit not installed")]
    output = system_state.run_command([config.compiler, "--version"])
    version = parse_release(output.stdout if output else "") or "unknown"
    return [passed(f"{config.compiler} found: Version {version} at {path}")]


def probe_libdevice(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    name = config.libdevice_name
    for candidate in config.libdevice_candidates:
        size = system_state.file_size(candidate)
        if size is not None:
            return [passed(f"{name} found at: {candidate} ({format_bytes(size)})")]
    results = [failed(f"{name} not found at: {config.libdevice_path}", f"Searching for {name}...")]
    found = system_state.find_file(config.search_root, name)
    if found:
        results.append(warned(f"Found at alternative location: {found}"))
    return results


def probe_runtime_libraries(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    base = os.path.join(config.runtime_lib_dir, config.runtime_lib_name)
    matches = system_state.glob_files(base + "*")
    if not matches:
        return [failed(f"CUDA runtime libraries not found in {config.runtime_lib_dir}/")]
    versioned = system_state.glob_files(base + ".*")
    suffix = _version_suffix(config.runtime_lib_name, versioned[0]) if versioned else ""
    label = f"{config.runtime_lib_name}.{suffix}" if suffix else config.runtime_lib_name
    return [passed(f"CUDA runtime libraries found: {label}")]


def probe_toolkit_libraries(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    directory = config.toolkit_lib_dir
    if not system_state.is_dir(directory):
        return [failed("CUDA toolkit library directory not found")]
    count = len(system_state.glob_files(os.path.join(directory, "*.so")))
    return [passed(f"CUDA toolkit libraries found: {count} libraries in {directory}/")]


def probe_environment(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    results: List[ProbeResult] = []

    home = system_state.env_value(config.home_var)
    if home:
        results.append(passed(f"{config.home_var} is set: {home}"))
    else:
        results.append(
            failed(f"{config.home_var} is not set", f"Add to ~/.bashrc: export {config.home_var}=/usr")
        )

    libdevice = system_state.env_value(config.libdevice_var)
    if not libdevice:
        results.append(
            failed(
                f"{config.libdevice_var} is not set",
                f"Add to ~/.bashrc: export {config.libdevice_var}={config.libdevice_path}",
            )
        )
    elif system_state.file_size(libdevice) is None:
        results.append(failed(f"{config.libdevice_var} is set but file doesn't exist: {libdevice}"))
    else:
        results.append(passed(f"{config.libdevice_var} is set and file exists: {libdevice}"))

    library_path = system_state.env_value(config.library_path_var)
    if any(token in library_path for token in config.library_path_tokens):
        results.append(passed(f"{config.library_path_var} includes CUDA paths"))
    else:
        results.append(
            warned(
                f"{config.library_path_var} may not include CUDA paths",
                f"Current {config.library_path_var}: {library_path}",
            )
        )
    return results


def probe_companion_tool(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    tool = config.companion_tool
    path = system_state.which(tool)
    if not path:
        return [
            failed(
                f"{config.companion_label} not found in PATH",
                f'Install with: /bin/bash -c "$(curl -fsSL {config.install_script_url})"',
            )
        ]
    output = system_state.run_command([tool, "--version"])
    version = _first_line(output.combined) if output else ""
    return [passed(f"{config.companion_label} installed: {version} at {path}")]


def probe_test_file(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    size = system_state.file_size(config.test_file)
    if size is None:
        return [
            warned(
                f"Test file not found: {config.test_file}",
                "You'll need to create this file to test GPU acceleration",
            )
        ]
    return [passed(f"Test file exists: {config.test_file} ({format_bytes(size)})")]


def probe_readiness(config: VerifyConfig, tally: Tally) -> List[ProbeResult]:
    return [readiness(tally.failed, config.companion_label)]


def readiness(failed_count: int, tool_label: str = "Codon") -> ProbeResult:
    """Summarize the failures recorded so far into one overall verdict."""
    if failed_count == 0:
        return passed(f"All critical checks passed! System is ready for {tool_label} GPU.")
    if failed_count <= 2:
        return warned("System mostly ready, but some issues need attention")
    return failed(f"Multiple issues detected. System not ready for {tool_label} GPU.")


PROBES: Sequence[Probe] = (
    Probe("Checking GPU detection", probe_gpu),
    Probe("Checking {config.gpu_vendor} driver", probe_driver),
    Probe("Checking CUDA compiler ({config.compiler})", probe_compiler),
    Probe("Checking {config.libdevice_name}", probe_libdevice),
    Probe("Checking CUDA runtime libraries", probe_runtime_libraries),
    Probe("Checking CUDA toolkit libraries", probe_toolkit_libraries),
    Probe("Checking environment variables", probe_environment),
    Probe("Checking {config.companion_label} installation", probe_companion_tool),
    Probe("Checking for test file", probe_test_file),
    Probe("Overall system readiness", probe_readiness),
)


def iter_probes(config: VerifyConfig, probes: Sequence[Probe] = PROBES) -> Iterator[Tuple[ProbeStep, Tally]]:
    """Run each probe in order, yielding its step and the tally including it."""
    tally = Tally()
    for number, probe in enumerate(probes, start=1):
        results = probe.check(config, tally)
        for result in results:
            tally = tally.record(result)
        yield ProbeStep(number=number, title=probe.describe(config), results=results), tally


def verify(config: VerifyConfig, probes: Sequence[Probe] = PROBES) -> Verification:
    verification = Verification()
    for step, tally in iter_probes(config, probes):
        verification.steps.append(step)
        verification.tally = tally
    return verification


def parse_release(banner: str) -> str:
    match = re.search(r"release\s+([0-9][0-9.]*)", banner)
    return match.group(1) if match else ""


def _version_suffix(library: str, path: str) -> str:
    match = re.search(re.escape(library) + r"\.([0-9.]+)", os.path.basename(path))
    return match.group(1).rstrip(".") if match else ""


def _first_line(text: str) -> str:
    stripped = text.strip()
    return stripped.splitlines()[0].strip() if stripped else ""
