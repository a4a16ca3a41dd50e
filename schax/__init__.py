"""CHIP-8 / SuperCHIP emulator package."""

from schax.state import (
    EmulatorState, StackState, create_state, reset, set_quirks, set_key, reset_keys,
    dimensions, display_view, sound_active,
)
from schax.emulator import (
    Status, RomTooLargeError, execute, fetch, step, step_timers, run_n_cycles, run_frame,
    trace_n_cycles, trace_frame, load_rom,
)
from schax.decode import DecodedInstruction, Op, decode
from schax.constants import *
from schax.snapshot import snapshot, restore, to_bytes, from_bytes
from schax.rendering import display_to_rgb, render_state, create_color_scheme
from schax.logging import registers
from schax.machine import Machine

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "reset",
    "set_quirks",
    "set_key",
    "reset_keys",
    "dimensions",
    "display_view",
    "sound_active",
    "Status",
    "RomTooLargeError",
    "fetch",
    "execute",
    "step",
    "step_timers",
    "run_n_cycles",
    "run_frame",
    "trace_n_cycles",
    "trace_frame",
    "load_rom",
    "DecodedInstruction",
    "Op",
    "decode",
    "snapshot",
    "restore",
    "to_bytes",
    "from_bytes",
    "display_to_rgb",
    "render_state",
    "create_color_scheme",
    "registers",
    "Machine",
    "PROGRAM_START",
    "FONT_START",
    "HIRES_FONT_START",
    "MAX_ROM_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "HIRES_SCREEN_WIDTH",
    "HIRES_SCREEN_HEIGHT",
    "QUIRK_PRESETS",
]
