"""Locations and names the probes look for."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class VerifyConfig:
    gpu_vendor: str = "NVIDIA"
    gpu_model: str = "Tesla T4"
    pci_tool: str = "lspci"
    driver_tool: str = "nvidia-smi"
    compiler: str = "nvcc"
    companion_tool: str = "codon"
    libdevice_name: str = "libdevice.10.bc"
    libdevice_candidates: Tuple[str, ...] = ("/usr/lib/nvidia-cuda-toolkit/libdevice/libdevice.10.bc",)
    search_root: str = "/usr"
    runtime_lib_dir: str = "/usr/lib/x86_64-linux-gnu"
    runtime_lib_name: str = "libcudart.so"
    toolkit_lib_dir: str = "/usr/lib/nvidia-cuda-toolkit/lib64"
    home_var: str = "CUDA_HOME"
    libdevice_var: str = "CODON_GPU_LIBDEVICE"
    library_path_var: str = "LD_LIBRARY_PATH"
    library_path_tokens: Tuple[str, ...] = ("cuda", "nvidia")
    test_file: str = "image_blur_codon_gpu_par.codon"
    install_script_url: str = "https://exaloop.io/install.sh"

    @property
    def companion_label(self) -> str:
        return self.companion_tool.capitalize()

    @property
    def libdevice_path(self) -> str:
        """Preferred libdevice location, used in hints."""
        return self.libdevice_candidates[0] if self.libdevice_candidates else ""


DEFAULT_CONFIG = VerifyConfig()
