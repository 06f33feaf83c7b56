"""
Leaf atlas rasterization.

Draws the stamped compound leaf into a square RGBA image on an offscreen
matplotlib Agg canvas. Data coordinates are pixels with y pointing down, so
image row 0 corresponds to `bounds.min_y`; every figure element is placed by
an affine chain

    stamp (rotate, scale, translate)  ->  bounds (scale, offset)  ->  pixels

Drawing order, back to front:
    1. Stem outlines (black)
    2. Leaf outlines for every stamp (black), so neighbouring leaflets share
       a dark border
    3. Stem fill in the bark color
    4. Per stamp: a translucent dark edge, then a gradient fill clipped to the
       leaf silhouette
"""

import colorsys
import logging
from collections.abc import Sequence

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.colors import to_rgba
from matplotlib.figure import Figure
from matplotlib.patches import PathPatch
from matplotlib.path import Path
from matplotlib.transforms import Affine2D

from sapling.config import GradientDirection, LeafColorParams
from sapling.leaf_bounds import Bounds
from sapling.leaf_shape import Outline, mirror_outline, outline_extent
from sapling.leaf_stamps import LeafStamp, TwigStem
from sapling.random_stream import UniformSource

logger = logging.getLogger(__name__)

STEM_OUTLINE_WIDTH = 6.0
STEM_FILL_WIDTH = 4.0
LEAF_OUTLINE_WIDTH = 2.0
LEAF_EDGE_COLOR = "#00000044"
HSL_OFFSET_SCALE = 0.4  # Largest hue/lightness shift at full variation
GRADIENT_RESOLUTION = 64  # Samples across the gradient image


def leaf_path(outline: Outline) -> Path:
    """Closed path around both halves of a leaflet."""
    vertices = [(outline[0].x0, outline[0].y0)]
    codes = [Path.MOVETO]
    for s in (*outline, *mirror_outline(outline)):
        vertices.extend([(s.x0, s.y0), (s.x1, s.y1), (s.x2, s.y2), (s.x3, s.y3)])
        codes.extend([Path.LINETO, Path.CURVE4, Path.CURVE4, Path.CURVE4])
    vertices.append((0.0, 0.0))
    codes.append(Path.CLOSEPOLY)
    return Path(vertices, codes)


def stem_path(stems: Sequence[TwigStem]) -> Path:
    vertices = []
    codes = []
    for stem in stems:
        vertices.extend([(stem.x0, stem.y0), (stem.x1, stem.y1)])
        codes.extend([Path.MOVETO, Path.LINETO])
    return Path(vertices, codes)


def linear_to_srgb(c: float) -> float:
    """Linear channel value to sRGB-encoded, both in [0, 1]."""
    if c < 0.0031308:
        return c * 12.92
    return 1.055 * c ** (1 / 2.4) - 0.055


def hex_to_rgb(color: int) -> tuple[float, float, float]:
    return ((color >> 16) & 0xFF) / 255, ((color >> 8) & 0xFF) / 255, (color & 0xFF) / 255


def offset_hsl(
    rgb: tuple[float, float, float], hue: float, lightness: float
) -> tuple[float, float, float]:
    """Shift hue (wrapping) and lightness (clamped) of an RGB color."""
    h, l, s = colorsys.rgb_to_hls(*rgb)
    h = (h + hue) % 1.0
    l = min(1.0, max(0.0, l + lightness))
    return colorsys.hls_to_rgb(h, l, s)


def leaf_colors(
    props: LeafColorParams, rnd: UniformSource
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """
    Inner and outer color for one stamp.

    Draws two values: the hue offset, then the lightness offset.
    """
    hue = props.variation * rnd.next(-1, 1) * HSL_OFFSET_SCALE
    lightness = props.variation * rnd.next(-1, 1) * HSL_OFFSET_SCALE
    inner = tuple(linear_to_srgb(c) for c in hex_to_rgb(props.inner_color))
    outer = tuple(linear_to_srgb(c) for c in hex_to_rgb(props.outer_color))
    return offset_hsl(inner, hue, lightness), offset_hsl(outer, hue, lightness)


def gradient_image(
    direction: GradientDirection,
    inner: tuple[float, float, float],
    outer: tuple[float, float, float],
    extent: tuple[float, float, float, float],
    max_width: float,
    max_length: float,
) -> np.ndarray:
    """
    RGBA samples of the leaf fill over `extent` (x0, x1, y0, y1), row 0 at y0.

    Lateral: outer at x = -0.6 * max_width, inner at the midrib, outer at
    x = +0.6 * max_width. Axial: inner at the stem, outer at max_length.
    Beyond the end stops the end colors extend.
    """
    x0, x1, y0, y1 = extent
    n = GRADIENT_RESOLUTION
    xs = x0 + (np.arange(n) + 0.5) * (x1 - x0) / n
    ys = y0 + (np.arange(n) + 0.5) * (y1 - y0) / n
    gx, gy = np.meshgrid(xs, ys)

    if direction is GradientDirection.AXIAL:
        t = np.clip(gy / max(max_length, 1e-9), 0.0, 1.0)
    else:
        half = max(max_width * 0.6, 1e-9)
        t = np.abs(np.clip(gx / half, -1.0, 1.0))

    inner_rgba = np.array([*inner, 1.0])
    outer_rgba = np.array([*outer, 1.0])
    return inner_rgba + t[..., None] * (outer_rgba - inner_rgba)


def fill_extent(outline: Outline) -> tuple[float, float, float, float]:
    """
    Box (x0, x1, y0, y1) covering every control point of both leaf halves.

    Jittered or raked control points can cross the midrib, so the half width
    is taken from both signs of x rather than from the widest positive point.
    """
    points = np.array(outline, dtype=float).reshape(-1, 2)
    half_width = max(float(np.abs(points[:, 0]).max()), 1e-9)
    y0 = min(0.0, float(points[:, 1].min()))
    y1 = max(float(points[:, 1].max()), y0 + 1e-9)
    return -half_width, half_width, y0, y1


def stamp_transform(stamp: LeafStamp) -> Affine2D:
    return Affine2D().rotate(stamp.angle).scale(stamp.scale).translate(*stamp.translate)


def _points(px: float, dpi: float) -> float:
    return px * 72.0 / dpi


def draw_leaf_texture(
    outline: Outline,
    stamps: Sequence[LeafStamp],
    stems: Sequence[TwigStem],
    bounds: Bounds,
    rnd: UniformSource,
    colors: LeafColorParams,
    stem_color: int,
    size: int = 128,
) -> np.ndarray:
    """
    Rasterize the compound leaf.

    Consumes two random values per stamp (in stamp order), including stamps
    too small to draw.

    Args:
        outline: Half-outline of the leaflet
        stamps: Leaflet placements
        stems: Stem strokes
        bounds: Square atlas bounds; mapped onto the whole image
        rnd: Random stream
        colors: Leaf color parameters
        stem_color: Stem fill color (0xRRGGBB)
        size: Image edge length in pixels

    Returns:
        uint8 array of shape (size, size, 4)
    """
    dpi = float(size)
    fig = Figure(figsize=(1, 1), dpi=dpi, facecolor=(0, 0, 0, 0))
    canvas = FigureCanvasAgg(fig)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_axis_off()
    ax.patch.set_visible(False)
    ax.set_autoscale_on(False)
    ax.set_xlim(0, size)
    ax.set_ylim(size, 0)

    sx = size / bounds.width
    sy = size / bounds.height
    base = Affine2D().scale(sx, sy).translate(-bounds.min_x * sx, -bounds.min_y * sy) + ax.transData

    path = leaf_path(outline)
    max_width, max_length = outline_extent(outline)
    extent = fill_extent(outline)
    visible = [stamp for stamp in stamps if stamp.scale > 0]
    zorder = 1

    if stems:
        ax.add_patch(
            PathPatch(
                stem_path(stems),
                transform=base,
                facecolor="none",
                edgecolor="black",
                linewidth=_points(STEM_OUTLINE_WIDTH * sx, dpi),
                capstyle="round",
                joinstyle="round",
                zorder=zorder,
            )
        )
    zorder += 1

    for stamp in visible:
        ax.add_patch(
            PathPatch(
                path,
                transform=stamp_transform(stamp) + base,
                facecolor="none",
                edgecolor="black",
                linewidth=_points(LEAF_OUTLINE_WIDTH * sx, dpi),
                capstyle="round",
                joinstyle="round",
                zorder=zorder,
            )
        )
    zorder += 1

    if stems:
        ax.add_patch(
            PathPatch(
                stem_path(stems),
                transform=base,
                facecolor="none",
                edgecolor=hex_to_rgb(stem_color),
                linewidth=_points(STEM_FILL_WIDTH * sx, dpi),
                capstyle="round",
                joinstyle="round",
                zorder=zorder,
            )
        )
    zorder += 1

    for stamp in stamps:
        inner, outer = leaf_colors(colors, rnd)
        if stamp.scale <= 0:
            continue

        transform = stamp_transform(stamp) + base
        edge = PathPatch(
            path,
            transform=transform,
            facecolor="none",
            edgecolor=to_rgba(LEAF_EDGE_COLOR),
            linewidth=_points(LEAF_OUTLINE_WIDTH * sx, dpi),
            joinstyle="round",
            zorder=zorder,
        )
        ax.add_patch(edge)
        image = ax.imshow(
            gradient_image(
                colors.gradient_direction, inner, outer, extent, max_width, max_length
            ),
            origin="lower",
            extent=extent,
            transform=transform,
            interpolation="bilinear",
            aspect="auto",
            zorder=zorder + 1,
        )
        image.set_clip_path(edge)
        zorder += 2

    # imshow may have touched the view limits.
    ax.set_xlim(0, size)
    ax.set_ylim(size, 0)

    canvas.draw()
    pixels = np.asarray(canvas.buffer_rgba()).copy()
    logger.debug("rasterized %d leaflets into %dx%d atlas", len(visible), *pixels.shape[:2])
    return pixels
