"""CHIP-8 / SuperCHIP display operations."""

import jax.numpy as jnp
from schax.state import EmulatorState
from schax.decode import DecodedInstruction
from schax.constants import (
    SCREEN_WIDTH, SCREEN_HEIGHT, HIRES_SCREEN_WIDTH, HIRES_SCREEN_HEIGHT, SCROLL_STEP,
)

# Pre-computed coordinate grids over the whole display buffer
xx, yy = jnp.meshgrid(jnp.arange(HIRES_SCREEN_WIDTH), jnp.arange(HIRES_SCREEN_HEIGHT), indexing='ij')

# Sprite-local (row, col) grid covering the largest (16x16) sprite
sprite_rows, sprite_cols = jnp.meshgrid(jnp.arange(16), jnp.arange(16), indexing='ij')


def active_size(state: EmulatorState) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Width and height of the active resolution mode."""
    cols = jnp.where(state.hires, HIRES_SCREEN_WIDTH, SCREEN_WIDTH)
    rows = jnp.where(state.hires, HIRES_SCREEN_HEIGHT, SCREEN_HEIGHT)
    return cols, rows


def clear(display: jnp.ndarray) -> jnp.ndarray:
    return jnp.zeros_like(display)


def scroll_down(state: EmulatorState, amount) -> jnp.ndarray:
    """Move the active region down ``amount`` rows, zero-filling the top."""
    cols, rows = active_size(state)
    source_y = yy - jnp.astype(amount, jnp.int32)
    keep = (source_y >= 0) & (yy < rows) & (xx < cols)
    shifted = state.display[xx, jnp.clip(source_y, 0, HIRES_SCREEN_HEIGHT - 1)]
    return shifted & keep


def scroll_right(state: EmulatorState) -> jnp.ndarray:
    """Move the active region right by four pixels, zero-filling the left edge."""
    cols, rows = active_size(state)
    source_x = xx - SCROLL_STEP
    keep = (source_x >= 0) & (xx < cols) & (yy < rows)
    shifted = state.display[jnp.clip(source_x, 0, HIRES_SCREEN_WIDTH - 1), yy]
    return shifted & keep


def scroll_left(state: EmulatorState) -> jnp.ndarray:
    """Move the active region left by four pixels, zero-filling the right edge."""
    cols, rows = active_size(state)
    source_x = xx + SCROLL_STEP
    keep = (source_x < cols) & (yy < rows)
    shifted = state.display[jnp.clip(source_x, 0, HIRES_SCREEN_WIDTH - 1), yy]
    return shifted & keep


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N; DXY0 draws 16x16 in high-res mode.

    Sprite bits are XORed in pixel by pixel, each wrapping around both
    axes independently. VF is set when any lit pixel is turned off.
    """
    cols, rows = active_size(state)
    origin_x = jnp.astype(state.V[instruction.x], jnp.int32)
    origin_y = jnp.astype(state.V[instruction.y], jnp.int32)

    # Some interpreters also draw 16x16 for DXY0 in low-res; here it is high-res only.
    large = (instruction.n == 0) & state.hires
    height = jnp.where(large, 16, jnp.astype(instruction.n, jnp.int32))
    width = jnp.where(large, 16, 8)

    # 8xN sprites use one byte per row, 16x16 sprites two.
    byte_offset = jnp.where(large, sprite_rows * 2 + sprite_cols // 8, sprite_rows)
    addresses = jnp.astype(state.I, jnp.int32) + byte_offset
    sprite_bytes = jnp.astype(state.memory.at[addresses].get(mode="fill", fill_value=0), jnp.int32)
    bits = (sprite_bytes >> (7 - sprite_cols % 8)) & 1
    sprite = (bits == 1) & (sprite_rows < height) & (sprite_cols < width)

    target_x = (origin_x + sprite_cols) % cols
    target_y = (origin_y + sprite_rows) % rows
    current = state.display[target_x, target_y]
    collision = jnp.any(current & sprite)

    return state.replace(
        display=state.display.at[target_x, target_y].set(current ^ sprite),
        V=state.V.at[0xF].set(jnp.astype(collision, jnp.uint8))
    )
