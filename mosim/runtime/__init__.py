"""Run bookkeeping."""

from mosim.runtime.manifest import RunManifest

__all__ = ["RunManifest"]
