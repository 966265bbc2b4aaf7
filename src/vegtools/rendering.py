"""Drawing surfaces for the plotting helpers.

The plotting functions never touch a global figure directly.  They
receive a :class:`Renderer`, a small capability object exposing the
handful of primitives the package needs (empty axes, lines, points,
legend, text labels, reference lines, shaded bands).  Three
implementations are provided:

* :class:`MatplotlibRenderer` draws onto a matplotlib ``Axes``.
* :class:`NullRenderer` draws nothing; useful for headless batch
  fitting where only the printed summaries and returned models matter.
* :class:`RecordingRenderer` keeps a log of every call so the
  orchestration logic (draw order, jitter, legend styles) can be
  inspected without a display.

Styles are addressed the way vegetation ecologists know them from R:
an integer index selects a colour from the default eight-colour
palette, a line type, or a point shape, recycling when the index runs
past the end of the table.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import numpy as np

# ------------------------------------------------------------------ #
# Indexed styles
# ------------------------------------------------------------------ #

_PALETTE = (
    "black",
    "#DF536B",
    "#61D04F",
    "#2297E6",
    "#28E2E5",
    "#CD0BBC",
    "#F5C710",
    "#9E9E9E",
)

_LINESTYLES: tuple[Any, ...] = (
    "solid",
    (0, (4, 4)),  # dashed
    (0, (1, 3)),  # dotted
    (0, (1, 3, 4, 3)),  # dotdash
    (0, (7, 3)),  # longdash
    (0, (2, 2, 6, 2)),  # twodash
)

_MARKERS = ("o", "^", "+", "x", "D", "v", "s", "*", "P", "X")


def palette_color(i: int) -> str:
    """Colour for 1-based index *i* from the default palette."""
    if i < 1:
        raise ValueError(f"Colour index must be >= 1, got {i}.")
    return _PALETTE[(i - 1) % len(_PALETTE)]


def line_style(i: int) -> Any:
    """Matplotlib line style for 1-based index *i*."""
    if i < 1:
        raise ValueError(f"Line type index must be >= 1, got {i}.")
    return _LINESTYLES[(i - 1) % len(_LINESTYLES)]


def point_marker(i: int) -> str:
    """Matplotlib marker for 1-based point shape index *i*."""
    if i < 1:
        raise ValueError(f"Point shape index must be >= 1, got {i}.")
    return _MARKERS[(i - 1) % len(_MARKERS)]


# ------------------------------------------------------------------ #
# Renderer protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class Renderer(Protocol):
    """Drawing capability consumed by the plotting helpers."""

    def draw_axes(
        self,
        xlim: tuple[float, float],
        ylim: tuple[float, float],
        *,
        main: str = "",
        xlab: str = "",
        ylab: str = "",
        ylog: bool = False,
    ) -> None:
        """Start an empty panel with the given bounds and labels."""
        ...

    def draw_line(
        self,
        x: Sequence[float],
        y: Sequence[float],
        *,
        color: str = "black",
        linestyle: Any = "solid",
        linewidth: float | None = None,
        marker: str | None = None,
    ) -> None: ...

    def draw_points(
        self,
        x: Sequence[float],
        y: Sequence[float],
        *,
        marker: str = "o",
        color: str = "black",
        alpha: float = 1.0,
    ) -> None: ...

    def draw_legend(
        self,
        labels: Sequence[str],
        *,
        colors: Sequence[str] | None = None,
        linestyles: Sequence[Any] | None = None,
        markers: Sequence[str | None] | None = None,
    ) -> None: ...

    def draw_text(self, x: float, y: float, label: str) -> None: ...

    def draw_hline(
        self, y: float, *, color: str = "black", linestyle: Any = "solid"
    ) -> None: ...

    def draw_band(
        self,
        x: Sequence[float],
        lower: Sequence[float],
        upper: Sequence[float],
        *,
        color: str = "gray",
        alpha: float = 0.3,
    ) -> None: ...


# ------------------------------------------------------------------ #
# Implementations
# ------------------------------------------------------------------ #


class MatplotlibRenderer:
    """Renderer backed by a matplotlib ``Axes``.

    Args:
        ax: Target axes.  When ``None`` a new figure with a single
            axes is created on the first :meth:`draw_axes` call.
    """

    def __init__(self, ax: Any = None) -> None:
        self.ax = ax

    def _axes(self) -> Any:
        if self.ax is None:
            import matplotlib.pyplot as plt

            _, self.ax = plt.subplots()
        return self.ax

    def draw_axes(self, xlim, ylim, *, main="", xlab="", ylab="", ylog=False):
        ax = self._axes()
        if ylog:
            ax.set_yscale("log")
        ax.set_xlim(*xlim)
        ax.set_ylim(*ylim)
        ax.set_title(main)
        ax.set_xlabel(xlab)
        ax.set_ylabel(ylab)

    def draw_line(self, x, y, *, color="black", linestyle="solid", linewidth=None, marker=None):
        self._axes().plot(
            x, y, color=color, linestyle=linestyle, linewidth=linewidth, marker=marker
        )

    def draw_points(self, x, y, *, marker="o", color="black", alpha=1.0):
        ax = self._axes()
        # Open shapes in monochrome mode need an edge colour only.
        if marker in ("+", "x"):
            ax.scatter(x, y, marker=marker, color=color, alpha=alpha)
        else:
            ax.scatter(x, y, marker=marker, facecolors=color, edgecolors=color, alpha=alpha)

    def draw_legend(self, labels, *, colors=None, linestyles=None, markers=None):
        from matplotlib.lines import Line2D

        n = len(labels)
        colors = list(colors) if colors is not None else ["black"] * n
        linestyles = list(linestyles) if linestyles is not None else ["solid"] * n
        markers = list(markers) if markers is not None else [None] * n
        handles = [
            Line2D([], [], color=c, linestyle=ls, marker=m)
            for c, ls, m in zip(colors, linestyles, markers)
        ]
        self._axes().legend(
            handles, labels, loc="upper right", frameon=False, fontsize="small"
        )

    def draw_text(self, x, y, label):
        self._axes().annotate(
            label, (x, y), textcoords="offset points", xytext=(4, 4), fontsize="small"
        )

    def draw_hline(self, y, *, color="black", linestyle="solid"):
        self._axes().axhline(y, color=color, linestyle=linestyle)

    def draw_band(self, x, lower, upper, *, color="gray", alpha=0.3):
        self._axes().fill_between(x, lower, upper, color=color, alpha=alpha)


class NullRenderer:
    """Renderer that discards every drawing call."""

    def draw_axes(self, xlim, ylim, *, main="", xlab="", ylab="", ylog=False):
        pass

    def draw_line(self, x, y, *, color="black", linestyle="solid", linewidth=None, marker=None):
        pass

    def draw_points(self, x, y, *, marker="o", color="black", alpha=1.0):
        pass

    def draw_legend(self, labels, *, colors=None, linestyles=None, markers=None):
        pass

    def draw_text(self, x, y, label):
        pass

    def draw_hline(self, y, *, color="black", linestyle="solid"):
        pass

    def draw_band(self, x, lower, upper, *, color="gray", alpha=0.3):
        pass


@dataclass
class DrawCall:
    """One recorded renderer call."""

    name: str
    args: tuple[Any, ...]
    kwargs: dict[str, Any]


@dataclass
class RecordingRenderer:
    """Renderer that records every call in :attr:`calls`."""

    calls: list[DrawCall] = field(default_factory=list)

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        args = tuple(np.asarray(a).copy() if isinstance(a, np.ndarray) else a for a in args)
        self.calls.append(DrawCall(name, args, kwargs))

    def named(self, name: str) -> list[DrawCall]:
        """All recorded calls of primitive *name*, in order."""
        return [c for c in self.calls if c.name == name]

    def draw_axes(self, xlim, ylim, *, main="", xlab="", ylab="", ylog=False):
        self._record("draw_axes", xlim, ylim, main=main, xlab=xlab, ylab=ylab, ylog=ylog)

    def draw_line(self, x, y, *, color="black", linestyle="solid", linewidth=None, marker=None):
        self._record(
            "draw_line", x, y, color=color, linestyle=linestyle,
            linewidth=linewidth, marker=marker,
        )

    def draw_points(self, x, y, *, marker="o", color="black", alpha=1.0):
        self._record("draw_points", x, y, marker=marker, color=color, alpha=alpha)

    def draw_legend(self, labels, *, colors=None, linestyles=None, markers=None):
        self._record(
            "draw_legend", list(labels), colors=colors,
            linestyles=linestyles, markers=markers,
        )

    def draw_text(self, x, y, label):
        self._record("draw_text", x, y, label)

    def draw_hline(self, y, *, color="black", linestyle="solid"):
        self._record("draw_hline", y, color=color, linestyle=linestyle)

    def draw_band(self, x, lower, upper, *, color="gray", alpha=0.3):
        self._record("draw_band", x, lower, upper, color=color, alpha=alpha)
