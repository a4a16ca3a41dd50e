"""Test configuration and fixtures for emulator tests."""

import pytest
import jax.numpy as jnp
from schax import create_state, load_rom, execute


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state with every quirk off."""
    return create_state()


@pytest.fixture
def quirky_state():
    """Provide a fresh state with every quirk on."""
    return create_state(load_store_quirk=True, shift_quirk=True, jump_quirk=True)


@pytest.fixture
def hires_state():
    """Provide a fresh state switched to 128x64 mode."""
    return execute(create_state(), 0x00FF)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Assemble 16-bit words into big-endian ROM bytes."""
    return b"".join(word.to_bytes(2, "big") for word in words)


def state_with_program(*words, **quirks):
    """Fresh state with the given words loaded at 0x200."""
    return load_rom(create_state(**quirks), program(*words))
