import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import pytest

from cuda_verify import system_state
from cuda_verify.config import VerifyConfig
from cuda_verify.system_state import CommandOutput

LSPCI_T4 = "00:1e.0 3D controller: NVIDIA Corporation TU104GL [Tesla T4] (rev a1)\n"
NVCC_BANNER = (
    "nvcc: NVIDIA (R) Cuda compiler driver\n"
    "Copyright (c) 2005-2023 NVIDIA Corporation\n"
    "Cuda compilation tools, release 12.0, V12.0.140\n"
    "Build cuda_12.0.r12.0/compiler.32267302_0\n"
)
DRIVER_QUERY = ("nvidia-smi", "--query-gpu=driver_version", "--format=csv,noheader")
SUMMARY_QUERY = ("nvidia-smi", "--query-gpu=name,driver_version,memory.total", "--format=csv,noheader")


@dataclass
class FakeHost:
    tools: Dict[str, str] = field(default_factory=dict)
    outputs: Dict[Tuple[str, ...], CommandOutput] = field(default_factory=dict)
    found: Optional[str] = None

    def which(self, name: str) -> Optional[str]:
        return self.tools.get(name)

    def run_command(self, args) -> Optional[CommandOutput]:
        return self.outputs.get(tuple(args))

    def find_file(self, root: str, filename: str) -> Optional[str]:
        return self.found

    def add_tool(self, name: str) -> None:
        self.tools[name] = f"/usr/bin/{name}"

    def set_output(self, args: Tuple[str, ...], stdout: str, stderr: str = "", returncode: int = 0) -> None:
        self.outputs[args] = CommandOutput(returncode=returncode, stdout=stdout, stderr=stderr)

    def remove_tool(self, name: str) -> None:
        self.tools.pop(name, None)
        for args in [args for args in self.outputs if args[0] == name]:
            del self.outputs[args]


@pytest.fixture
def host(monkeypatch):
    fake = FakeHost()
    monkeypatch.setattr(system_state, "which", fake.which)
    monkeypatch.setattr(system_state, "run_command", fake.run_command)
    monkeypatch.setattr(system_state, "find_file", fake.find_file)
    for name in ("CUDA_HOME", "CODON_GPU_LIBDEVICE", "LD_LIBRARY_PATH"):
        monkeypatch.delenv(name, raising=False)
    return fake


@pytest.fixture
def config(tmp_path):
    """Config whose filesystem locations all live under tmp_path and do not exist yet."""
    return VerifyConfig(
        libdevice_candidates=(str(tmp_path / "libdevice" / "libdevice.10.bc"),),
        search_root=str(tmp_path),
        runtime_lib_dir=str(tmp_path / "x86_64-linux-gnu"),
        toolkit_lib_dir=str(tmp_path / "lib64"),
        test_file=str(tmp_path / "image_blur_codon_gpu_par.codon"),
    )


@pytest.fixture
def installed(host, config, monkeypatch):
    """A host where every tool, file and variable is in place."""
    libdevice = config.libdevice_candidates[0]
    _write(libdevice, b"\0" * 2048)
    _write(f"{config.runtime_lib_dir}/libcudart.so", b"")
    _write(f"{config.runtime_lib_dir}/libcudart.so.12.0.146", b"")
    _write(f"{config.toolkit_lib_dir}/libcublas.so", b"")
    _write(f"{config.toolkit_lib_dir}/libcufft.so", b"")
    _write(config.test_file, b"print('hi')\n")

    host.add_tool("lspci")
    host.set_output(("lspci",), LSPCI_T4)
    host.add_tool("nvidia-smi")
    host.set_output(DRIVER_QUERY, "550.54.15\n")
    host.set_output(SUMMARY_QUERY, "Tesla T4, 550.54.15, 15360 MiB\n")
    host.add_tool("nvcc")
    host.set_output(("nvcc", "--version"), NVCC_BANNER)
    host.add_tool("codon")
    host.set_output(("codon", "--version"), "0.17.0\n")

    monkeypatch.setenv("CUDA_HOME", "/usr")
    monkeypatch.setenv("CODON_GPU_LIBDEVICE", libdevice)
    monkeypatch.setenv("LD_LIBRARY_PATH", "/usr/lib/x86_64-linux-gnu:/usr/lib/nvidia-cuda-toolkit/lib64")
    return host


def _write(path: str, data: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as handle:
        handle.write(data)
