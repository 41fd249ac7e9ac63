"""Service for producing piece clip masks for renderers."""

import base64
import io
from typing import Optional, Tuple

from PIL import Image

from puzzle_board import PuzzleBoard
from puzzle_shapes import PieceRecord, render_piece_mask

from app.config import settings


class PieceMaskRenderer:
    """Renders piece outlines into PNG clip masks."""

    def __init__(self, padding: int = 4, points_per_curve: int = 12):
        """Initialize the mask renderer.

        Args:
            padding: Padding around each piece in pixels.
            points_per_curve: Number of points to sample per Bezier curve.
        """
        self.padding = padding
        self.points_per_curve = points_per_curve

    def render(self, board: PuzzleBoard, piece: PieceRecord) -> Tuple[str, Tuple[int, int]]:
        """Render the mask of one piece at its solved position.

        Args:
            board: The board the piece belongs to.
            piece: The piece to render.

        Returns:
            Tuple of (base64 PNG data URL, board offset of the mask's top-left corner).
        """
        mask, offset = render_piece_mask(
            piece,
            knob_scale=board.knob_scale,
            points_per_curve=self.points_per_curve,
            padding=self.padding,
        )
        return self._image_to_base64(mask), offset

    def _image_to_base64(self, image: Image.Image) -> str:
        """Convert a PIL Image to a base64 data URL.

        Args:
            image: The image to convert.

        Returns:
            Base64 encoded data URL string.
        """
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        buffer.seek(0)
        base64_data = base64.b64encode(buffer.getvalue()).decode("utf-8")
        return f"data:image/png;base64,{base64_data}"


# Singleton instance
_mask_renderer: Optional[PieceMaskRenderer] = None


def get_mask_renderer() -> PieceMaskRenderer:
    """Get the singleton PieceMaskRenderer instance."""
    global _mask_renderer
    if _mask_renderer is None:
        _mask_renderer = PieceMaskRenderer(
            padding=settings.MASK_PADDING,
            points_per_curve=settings.OUTLINE_POINTS_PER_CURVE,
        )
    return _mask_renderer
