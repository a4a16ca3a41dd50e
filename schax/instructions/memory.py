"""CHIP-8 memory and register operations."""

import jax
import jax.numpy as jnp
from schax.state import EmulatorState
from schax.decode import DecodedInstruction


def execute_set(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """6XKK - Set VX = KK."""
    return state.replace(V=state.V.at[instruction.x].set(jnp.astype(instruction.nn, jnp.uint8)))


def execute_add(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """7XKK - Add KK to VX, wrapping. VF is not affected."""
    return state.replace(V=state.V.at[instruction.x].add(jnp.astype(instruction.nn, jnp.uint8)))


def execute_set_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """ANNN - Set I = NNN."""
    return state.replace(I=jnp.astype(instruction.nnn, jnp.uint16))


def execute_random(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """CXKK - Set VX = random byte & KK."""
    key, subkey = jax.random.split(state.rng)
    random_value = jax.random.bits(subkey, shape=(), dtype=jnp.uint8)
    mask = jnp.astype(instruction.nn, jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(random_value & mask), rng=key)
