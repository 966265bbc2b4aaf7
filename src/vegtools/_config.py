"""Renderer configuration for the vegtools package.

Controls which drawing surface the plotting functions use when the
caller does not inject a renderer explicitly.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_renderer`.
    2. The ``VEGTOOLS_RENDERER`` environment variable.
    3. Auto-detection: ``"matplotlib"`` if matplotlib is importable,
       else ``"null"``.

Valid renderer names are ``"matplotlib"`` and ``"null"``
(case-insensitive).  The ``"null"`` renderer fits and prints but draws
nothing, which is what batch jobs on headless machines usually want.

Examples:
    Disable drawing globally from the shell::

        export VEGTOOLS_RENDERER=null

    Disable drawing programmatically::

        import vegtools
        vegtools.set_renderer("null")

    Re-enable auto-detection::

        vegtools.set_renderer("auto")
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .rendering import Renderer

_VALID_RENDERERS = {"matplotlib", "null", "auto"}

# Sentinel indicating "no programmatic override has been set".
_renderer_override: str | None = None


def _matplotlib_is_available() -> bool:
    """Return ``True`` if matplotlib can be imported."""
    try:
        import matplotlib  # noqa: F401

        return True
    except ImportError:
        return False


def get_renderer() -> str:
    """Return the active renderer name (``"matplotlib"`` or ``"null"``).

    Resolution order:
        1. Value set by :func:`set_renderer` (unless ``"auto"``).
        2. ``VEGTOOLS_RENDERER`` environment variable.
        3. ``"matplotlib"`` if importable, otherwise ``"null"``.

    Returns:
        ``"matplotlib"`` or ``"null"``.
    """
    # 1. Programmatic override
    if _renderer_override is not None and _renderer_override != "auto":
        return _renderer_override

    # 2. Environment variable
    env = os.environ.get("VEGTOOLS_RENDERER", "").strip().lower()
    if env in ("matplotlib", "null"):
        return env

    # 3. Auto-detect
    return "matplotlib" if _matplotlib_is_available() else "null"


def set_renderer(name: str) -> None:
    """Override the renderer selection.

    Args:
        name: One of ``"matplotlib"``, ``"null"``, or ``"auto"``
            (case-insensitive).  ``"auto"`` restores the default
            resolution order.

    Raises:
        ValueError: If *name* is not a recognised renderer.
    """
    global _renderer_override
    normalised = name.strip().lower()
    if normalised not in _VALID_RENDERERS:
        raise ValueError(
            f"Unknown renderer '{name}'. Choose from: {sorted(_VALID_RENDERERS)}"
        )
    _renderer_override = normalised


def make_default_renderer() -> Renderer:
    """Build a fresh renderer according to :func:`get_renderer`."""
    from .rendering import MatplotlibRenderer, NullRenderer

    if get_renderer() == "matplotlib":
        return MatplotlibRenderer()
    return NullRenderer()
