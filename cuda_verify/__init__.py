"""
Sequential verification of a CUDA toolkit installation for GPU-enabled Codon builds.
"""

__all__ = ["config", "probes", "recommendations", "system_state", "cli"]
__version__ = "0.1.0"
