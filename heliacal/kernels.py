"""Acquisition of JPL planetary kernels for :class:`heliacal.ephemeris.SpiceEphemeris`."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import httpx

LOGGER = logging.getLogger(__name__)

DEFAULT_KERNEL_URL = "https://naif.jpl.nasa.gov/pub/naif/generic_kernels/spk/planets/de440s.bsp"
DEFAULT_KERNEL_FILENAME = "de440s.bsp"
DEFAULT_CACHE_DIR = Path.home() / ".heliacal" / "kernels"


class KernelAcquisitionError(RuntimeError):
    """Raised when no usable kernel can be found or downloaded."""


def _download(url: str, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.info(json.dumps({"event": "ephemeris_downloading", "url": url, "destination": str(destination)}))
    partial = destination.with_suffix(destination.suffix + ".part")
    try:
        with httpx.stream("GET", url, timeout=httpx.Timeout(120.0, connect=30.0), follow_redirects=True) as response:
            response.raise_for_status()
            total = int(response.headers.get("Content-Length", "0")) or None
            received = 0
            with partial.open("wb") as handle:
                for chunk in response.iter_bytes(chunk_size=1 << 20):
                    handle.write(chunk)
                    received += len(chunk)
    except (httpx.HTTPError, OSError) as exc:
        if partial.exists():
            partial.unlink()
        raise KernelAcquisitionError(f"Failed to download kernel from {url}: {exc}") from exc
    partial.replace(destination)
    LOGGER.info(
        json.dumps(
            {
                "event": "ephemeris_downloaded",
                "url": url,
                "destination": str(destination),
                "bytes": received,
                "total": total,
            }
        )
    )


def ensure_kernel(path: Path, url: str = DEFAULT_KERNEL_URL) -> Path:
    """Make sure *path* is a ``.bsp`` file or a directory holding at least one.

    A missing file, or a directory without kernels, is filled by downloading
    *url*.
    """

    if path.is_file():
        if path.suffix.lower() != ".bsp":
            raise KernelAcquisitionError(f"Kernel file must have .bsp extension: {path}")
        return path
    if path.is_dir():
        if not any(path.glob("*.bsp")):
            _download(url, path / DEFAULT_KERNEL_FILENAME)
        return path
    if path.exists():
        raise KernelAcquisitionError(f"Kernel path is not a file or directory: {path}")
    if path.suffix.lower() == ".bsp":
        _download(url, path)
        return path
    path.mkdir(parents=True, exist_ok=True)
    _download(url, path / DEFAULT_KERNEL_FILENAME)
    return path


def resolve_kernel_source() -> Path:
    """Return a usable kernel file or directory, downloading into the cache if needed.

    ``HELIACAL_BSP`` names a kernel file or directory explicitly;
    otherwise the kernel lives in ``HELIACAL_BSP_CACHE_DIR`` (default
    ``~/.heliacal/kernels``).
    """

    override = os.environ.get("HELIACAL_BSP")
    if override:
        return ensure_kernel(Path(override).expanduser())
    cache_root = Path(os.environ.get("HELIACAL_BSP_CACHE_DIR", str(DEFAULT_CACHE_DIR))).expanduser()
    return ensure_kernel(cache_root / DEFAULT_KERNEL_FILENAME)
