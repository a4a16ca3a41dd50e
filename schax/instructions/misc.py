"""CHIP-8 / SuperCHIP miscellaneous instructions (Fxxx).

Block transfers relative to I never index past the end of memory: reads
beyond it yield 0 and writes beyond it are dropped.
"""

import jax
import jax.lax
import jax.numpy as jnp
from schax.state import EmulatorState
from schax.decode import DecodedInstruction
from schax.constants import FONT_START, FONT_SPRITE_SIZE, HIRES_FONT_START, HIRES_FONT_SPRITE_SIZE, NUM_REGISTERS

register_indices = jnp.arange(NUM_REGISTERS)


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I, wrapping at 16 bits. VF is not affected."""
    return state.replace(I=jnp.astype(state.I + jnp.astype(state.V[instruction.x], jnp.uint16), jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Stores the lowest pressed key in VX; with no key down PC is rewound so
    the instruction runs again on the next cycle.
    """
    def key_pressed_action(state):
        pressed_key = jnp.argmax(state.keypad)
        return state.replace(V=state.V.at[instruction.x].set(jnp.astype(pressed_key, jnp.uint8)))

    def wait_action(state):
        return state.replace(pc=state.pc - 2)

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of the 4x5 sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_SPRITE_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_hires_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX30 - Set I to location of the 8x10 sprite for digit VX."""
    font_address = HIRES_FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * HIRES_FONT_SPRITE_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    new_memory = state.memory.at[indices].set(digits, mode="drop")
    return state.replace(memory=new_memory)


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    if state.load_store_quirk:
        return state.I
    return jnp.astype(state.I + instruction.x + 1, jnp.uint16)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask = register_indices <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + register_indices
    current_memory_values = state.memory.at[base_indices].get(mode="fill", fill_value=0)
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values, mode="drop")
    return state.replace(memory=new_memory, I=_advance_index(state, instruction))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask = register_indices <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + register_indices
    memory_values = state.memory.at[base_indices].get(mode="fill", fill_value=0)
    new_V = jnp.where(register_mask, memory_values, state.V)
    return state.replace(V=new_V, I=_advance_index(state, instruction))


def execute_store_rpl(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX75 - Store V0 through VX (X <= 7) in the RPL flag registers."""
    register_mask = jnp.arange(state.rpl.shape[0]) <= instruction.x
    new_rpl = jnp.where(register_mask, state.V[:state.rpl.shape[0]], state.rpl)
    return state.replace(rpl=new_rpl)


def execute_load_rpl(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX85 - Load V0 through VX (X <= 7) from the RPL flag registers."""
    register_mask = register_indices <= instruction.x
    padded_rpl = jnp.zeros_like(state.V).at[:state.rpl.shape[0]].set(state.rpl)
    new_V = jnp.where(register_mask, padded_rpl, state.V)
    return state.replace(V=new_V)
