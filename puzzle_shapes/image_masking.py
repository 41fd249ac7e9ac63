"""Rasterizing piece outlines into clip masks.

The renderer clips the puzzle picture with these masks. They are produced
from the same outlines used for hit testing, so what the player sees is what
the pointer can grab.
"""

from typing import List, Tuple

from PIL import Image, ImageDraw

from .geometry import KNOB_SCALE, piece_polygon_on_board
from .models import PieceRecord


def create_piece_mask(
    polygon: List[Tuple[float, float]],
    width: int,
    height: int,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
    antialias_scale: int = 4,
) -> Image.Image:
    """Create a mask image for a puzzle piece with anti-aliased edges.

    Uses supersampling for anti-aliasing: renders at higher resolution
    then downsamples.

    Args:
        polygon: List of (x, y) points in board coordinates.
        width: Output mask width in pixels.
        height: Output mask height in pixels.
        offset_x: X offset to subtract from polygon coordinates.
        offset_y: Y offset to subtract from polygon coordinates.
        antialias_scale: Supersampling factor (4 = render at 4x, then downsample).

    Returns:
        Grayscale PIL Image where white=inside, black=outside.
    """
    hi_res_mask = Image.new("L", (width * antialias_scale, height * antialias_scale), 0)
    draw = ImageDraw.Draw(hi_res_mask)

    scaled_polygon = [((x - offset_x) * antialias_scale, (y - offset_y) * antialias_scale) for x, y in polygon]

    if len(scaled_polygon) >= 3:
        draw.polygon(scaled_polygon, fill=255)

    return hi_res_mask.resize((width, height), Image.Resampling.LANCZOS)


def calculate_piece_bounds(
    polygon: List[Tuple[float, float]],
    padding: int = 4,
) -> Tuple[int, int, int, int]:
    """Calculate the bounding box of a piece polygon with padding.

    Args:
        polygon: List of (x, y) points.
        padding: Extra pixels to add around the bounding box.

    Returns:
        Tuple of (x_min, y_min, x_max, y_max) in integer pixels.
    """
    if not polygon:
        return (0, 0, 0, 0)

    xs = [p[0] for p in polygon]
    ys = [p[1] for p in polygon]

    x_min = int(min(xs)) - padding
    y_min = int(min(ys)) - padding
    x_max = int(max(xs)) + padding + 1  # +1 to include the max pixel
    y_max = int(max(ys)) + padding + 1
    return (x_min, y_min, x_max, y_max)


def render_piece_mask(
    piece: PieceRecord,
    knob_scale: float = KNOB_SCALE,
    points_per_curve: int = 12,
    padding: int = 4,
) -> Tuple[Image.Image, Tuple[int, int]]:
    """Render the clip mask of a piece at its solved position.

    Args:
        piece: The piece to render.
        knob_scale: Knob height relative to the smaller piece dimension.
        points_per_curve: Number of points to sample from each Bezier curve.
        padding: Extra pixels around the piece bounding box.

    Returns:
        Tuple of:
        - Grayscale mask covering the piece bounding box
        - (x_offset, y_offset) of the mask's top-left corner on the board
    """
    polygon = piece_polygon_on_board(piece, knob_scale, points_per_curve, at_solved=True)
    x_min, y_min, x_max, y_max = calculate_piece_bounds(polygon, padding=padding)
    mask = create_piece_mask(polygon, x_max - x_min, y_max - y_min, offset_x=x_min, offset_y=y_min)
    return mask, (x_min, y_min)
