"""Remediation steps for the problems a verification run can uncover."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from . import system_state
from .config import VerifyConfig


@dataclass
class Recommendation:
    title: str
    commands: Sequence[str]


def recommend(config: VerifyConfig) -> List[Recommendation]:
    """Re-check the host and return one recommendation per missing prerequisite.

    These checks run independently of the probe results, so the list reflects
    the host state at the time of the call.
    """
    recommendations: List[Recommendation] = []

    if not system_state.which(config.driver_tool):
        recommendations.append(
            Recommendation(
                title=f"Install {config.gpu_vendor} driver:",
                commands=["sudo ubuntu-drivers autoinstall", "sudo reboot"],
            )
        )

    if not system_state.which(config.compiler):
        recommendations.append(
            Recommendation(
                title="Install CUDA toolkit:",
                commands=["sudo apt update", "sudo apt install -y nvidia-cuda-toolkit"],
            )
        )

    if not system_state.env_value(config.home_var) or not system_state.env_value(config.libdevice_var):
        recommendations.append(
            Recommendation(
                title="Configure environment variables in ~/.bashrc:",
                commands=[
                    "cat >> ~/.bashrc << 'EOF'",
                    f"export {config.library_path_var}={config.runtime_lib_dir}:{config.toolkit_lib_dir}:${config.library_path_var}",
                    f"export {config.home_var}=/usr",
                    f"export {config.libdevice_var}={config.libdevice_path}",
                    "EOF",
                    "source ~/.bashrc",
                ],
            )
        )

    if not system_state.which(config.companion_tool):
        recommendations.append(
            Recommendation(
                title=f"Install {config.companion_label}:",
                commands=[f'/bin/bash -c "$(curl -fsSL {config.install_script_url})"'],
            )
        )

    return recommendations


def next_steps(config: VerifyConfig) -> List[str]:
    return [f"{config.companion_tool} run {config.test_file}"]
