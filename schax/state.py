"""CHIP-8 / SuperCHIP emulator state structures."""

import jax
import jax.numpy as jnp
import numpy as np
from flax.struct import dataclass, PyTreeNode, field

from schax.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, HIRES_FONT_START, HIRES_FONT_DATA,
    SCREEN_WIDTH, SCREEN_HEIGHT, HIRES_SCREEN_WIDTH, HIRES_SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, RPL_SIZE, QUIRK_PRESETS,
)

QUIRK_FIELDS = ("load_store_quirk", "shift_quirk", "jump_quirk")


@dataclass
class StackState:
    """Return-address stack for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


def _zeros(shape, dtype):
    return field(default_factory=lambda: jnp.zeros(shape, dtype=dtype))


class EmulatorState(PyTreeNode):
    """Main emulator state.

    The display buffer is always allocated at the SuperCHIP size and indexed
    ``[x, y]``; in low-res mode only the ``[:64, :32]`` corner is used.
    Quirk flags are static configuration and not part of the pytree.
    """
    rng: jax.Array
    memory: jnp.ndarray = _zeros(MEMORY_SIZE, jnp.uint8)
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = _zeros((HIRES_SCREEN_WIDTH, HIRES_SCREEN_HEIGHT), jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _zeros((), jnp.uint8)
    sound_timer: jnp.ndarray = _zeros((), jnp.uint8)
    keypad: jnp.ndarray = _zeros(NUM_KEYS, jnp.bool_)
    V: jnp.ndarray = _zeros(NUM_REGISTERS, jnp.uint8)
    I: jnp.ndarray = _zeros((), jnp.uint16)
    hires: jnp.ndarray = _zeros((), jnp.bool_)
    halted: jnp.ndarray = _zeros((), jnp.bool_)
    rpl: jnp.ndarray = _zeros(RPL_SIZE, jnp.uint8)
    load_store_quirk: bool = field(pytree_node=False, default=False)
    shift_quirk: bool = field(pytree_node=False, default=False)
    jump_quirk: bool = field(pytree_node=False, default=False)

    @property
    def quirks(self) -> dict[str, bool]:
        return {name: getattr(self, name) for name in QUIRK_FIELDS}


def create_state(
    rng: jax.Array = jax.random.PRNGKey(0),
    load_store_quirk: bool = False,
    shift_quirk: bool = False,
    jump_quirk: bool = False,
) -> EmulatorState:
    """Create initial emulator state with both font tables loaded."""
    state = EmulatorState(
        rng,
        load_store_quirk=load_store_quirk,
        shift_quirk=shift_quirk,
        jump_quirk=jump_quirk,
    )
    memory = state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(
        jnp.array(FONT_DATA, dtype=jnp.uint8))
    memory = memory.at[HIRES_FONT_START:HIRES_FONT_START + len(HIRES_FONT_DATA)].set(
        jnp.array(HIRES_FONT_DATA, dtype=jnp.uint8))
    return state.replace(memory=memory)


def reset(state: EmulatorState) -> EmulatorState:
    """Return a fresh state, keeping quirks, RPL flag registers and the PRNG key."""
    return create_state(state.rng, **state.quirks).replace(rpl=state.rpl)


def set_quirks(state: EmulatorState, preset: str | None = None, **quirks: bool) -> EmulatorState:
    """Set quirk flags from a named preset and/or individual keyword flags."""
    flags = {}
    if preset is not None:
        if preset not in QUIRK_PRESETS:
            raise ValueError(f"Unknown quirk preset '{preset}'. Available: {list(QUIRK_PRESETS)}")
        flags.update(QUIRK_PRESETS[preset])
    for name, value in quirks.items():
        if name not in QUIRK_FIELDS:
            raise ValueError(f"Unknown quirk '{name}'. Available: {list(QUIRK_FIELDS)}")
        flags[name] = bool(value)
    return state.replace(**flags)


def set_key(state: EmulatorState, index: int, pressed: bool = True) -> EmulatorState:
    """Mark key ``index`` (0x0-0xF) as pressed or released."""
    return state.replace(keypad=state.keypad.at[index].set(pressed))


def reset_keys(state: EmulatorState) -> EmulatorState:
    """Release every key."""
    return state.replace(keypad=jnp.zeros_like(state.keypad))


def dimensions(state: EmulatorState) -> tuple[int, int]:
    """Current (rows, cols) of the active display."""
    if bool(state.hires):
        return HIRES_SCREEN_HEIGHT, HIRES_SCREEN_WIDTH
    return SCREEN_HEIGHT, SCREEN_WIDTH


def display_view(state: EmulatorState) -> np.ndarray:
    """Active region of the display as a (cols, rows) numpy array of 0/1 bytes."""
    rows, cols = dimensions(state)
    return np.asarray(state.display[:cols, :rows], dtype=np.uint8)


def sound_active(state: EmulatorState) -> bool:
    return bool(state.sound_timer > 0)
