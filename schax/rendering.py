"""Display-to-RGB conversion for frontends."""

import numpy as np
from typing import Tuple

from schax.state import EmulatorState, display_view


def display_to_rgb(
    display: np.ndarray,
    scale: int = 8,
    on_color: Tuple[int, int, int] = (0, 255, 0),
    off_color: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """Convert an active display region to an RGB array with optional upscaling.

    Args:
        display: Array of shape (cols, rows) of 0/1 pixels, as returned by
            ``display_view`` (64x32 or 128x64)
        scale: Upscaling factor for better visibility (default: 8x)
        on_color: RGB color for "on" pixels (default: green)
        off_color: RGB color for "off" pixels (default: black)

    Returns:
        RGB array of shape (rows*scale, cols*scale, 3) with uint8 values
    """
    pixels = np.asarray(display).astype(np.bool_)

    # (cols, rows) -> image (rows, cols)
    pixels = pixels.T
    height, width = pixels.shape

    rgb_frame = np.zeros((height, width, 3), dtype=np.uint8)

    rgb_frame[pixels] = on_color
    rgb_frame[~pixels] = off_color

    # Nearest neighbor upscaling
    if scale > 1:
        rgb_frame = np.repeat(np.repeat(rgb_frame, scale, axis=0), scale, axis=1)

    return rgb_frame


def render_state(state: EmulatorState, scale: int = 8, color_scheme: str = "classic") -> np.ndarray:
    """Render the active display of ``state`` with a named color scheme."""
    on_color, off_color = create_color_scheme(color_scheme)
    return display_to_rgb(display_view(state), scale, on_color, off_color)


def create_color_scheme(
    scheme: str = "classic",
) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
    """Get predefined color schemes for rendering.

    Args:
        scheme: Color scheme name ("classic", "amber", "white", "blue", "retro")

    Returns:
        Tuple of (on_color, off_color) as RGB tuples
    """
    schemes = {
        "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
        "amber": ((255, 176, 0), (0, 0, 0)),  # Amber on black
        "white": ((255, 255, 255), (0, 0, 0)),  # White on black
        "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
        "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
    }

    if scheme not in schemes:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(schemes.keys())}"
        )

    return schemes[scheme]
