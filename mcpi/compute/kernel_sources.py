"""OpenCL kernel sources for the pi strategies."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from mcpi.benchmark.exceptions import KernelSourceNotFoundError

DEFAULT_KERNEL_DIR = Path(__file__).resolve().parent / "kernels"


def resolve_kernel_dir(kernel_dir: Optional[Union[str, Path]] = None) -> Path:
    if kernel_dir is None:
        return DEFAULT_KERNEL_DIR
    return Path(kernel_dir).expanduser().resolve()


@lru_cache()
def _read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_kernel_source(kernel_file: str, kernel_dir: Optional[Union[str, Path]] = None) -> str:
    """Return the text of ``kernel_file`` from ``kernel_dir``.

    Raises:
        KernelSourceNotFoundError: the file is missing or unreadable
    """
    path = resolve_kernel_dir(kernel_dir) / kernel_file
    try:
        return _read_source(path)
    except OSError as exc:
        raise KernelSourceNotFoundError(
            f"Kernel source not readable: {path} ({exc.strerror or exc})",
            path=str(path),
        ) from exc
