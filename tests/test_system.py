"""Tests for system instructions (0xxx)."""

import jax.numpy as jnp
from schax import execute


def test_execute_clear_screen(fresh_state):
    """Test 00E0 - Clear display."""
    state = fresh_state.replace(display=fresh_state.display.at[0, 0].set(True))

    state = execute(state, 0x00E0)

    assert jnp.sum(state.display) == 0


def test_execute_call_and_return(fresh_state):
    """Test 2NNN (call) and 00EE (return) together."""
    state = fresh_state
    initial_pc = state.pc

    state = execute(state, 0x2300)
    assert state.pc == 0x300
    assert state.stack.data[state.stack.pointer - 1] == initial_pc

    state = execute(state, 0x00EE)
    assert state.pc == initial_pc
    assert state.stack.pointer == 0


def test_return_on_empty_stack_is_ignored(fresh_state):
    state = execute(fresh_state, 0x00EE)

    assert state.pc == fresh_state.pc
    assert state.stack.pointer == 0


def test_exit_halts(fresh_state):
    """Test 00FD - Exit interpreter."""
    state = execute(fresh_state, 0x00FD)
    assert state.halted


def test_high_res_switches_and_clears(fresh_state):
    """Test 00FF - Enable 128x64 mode."""
    state = fresh_state.replace(display=fresh_state.display.at[3, 3].set(True))

    state = execute(state, 0x00FF)

    assert state.hires
    assert jnp.sum(state.display) == 0


def test_low_res_switches_and_clears(hires_state):
    """Test 00FE - Back to 64x32 mode."""
    state = hires_state.replace(display=hires_state.display.at[100, 50].set(True))

    state = execute(state, 0x00FE)

    assert not state.hires
    assert jnp.sum(state.display) == 0


class TestScrollDown:
    """Test 00CN."""

    def test_scroll_down_low_res(self, fresh_state):
        state = fresh_state.replace(display=fresh_state.display.at[5, 0].set(True).at[6, 30].set(True))

        state = execute(state, 0x00C3)

        assert state.display[5, 3]
        assert not state.display[5, 0]
        # Pixels pushed past row 31 are gone, not moved into the high-res area
        assert jnp.sum(state.display) == 1

    def test_scroll_down_high_res(self, hires_state):
        state = hires_state.replace(display=hires_state.display.at[100, 10].set(True).at[0, 62].set(True))

        state = execute(state, 0x00C2)

        assert state.display[100, 12]
        assert jnp.sum(state.display) == 1

    def test_scroll_down_zero_rows(self, fresh_state):
        state = fresh_state.replace(display=fresh_state.display.at[1, 1].set(True))
        assert (execute(state, 0x00C0).display == state.display).all()


class TestScrollHorizontal:
    """Test 00FB and 00FC."""

    def test_scroll_right_low_res(self, fresh_state):
        state = fresh_state.replace(display=fresh_state.display.at[0, 0].set(True).at[62, 4].set(True))

        state = execute(state, 0x00FB)

        assert state.display[4, 0]
        assert not state.display[0, 0]
        assert not state.display[66, 4]
        assert jnp.sum(state.display) == 1

    def test_scroll_left_low_res(self, fresh_state):
        state = fresh_state.replace(display=fresh_state.display.at[10, 2].set(True).at[1, 2].set(True))

        state = execute(state, 0x00FC)

        assert state.display[6, 2]
        assert jnp.sum(state.display) == 1

    def test_scroll_left_clears_right_edge(self, fresh_state):
        state = fresh_state.replace(display=fresh_state.display.at[:64, :32].set(True))

        state = execute(state, 0x00FC)

        assert state.display[59, 0]
        assert not state.display[60, 0]
        assert jnp.sum(state.display) == 60 * 32

    def test_scroll_right_high_res(self, hires_state):
        state = hires_state.replace(display=hires_state.display.at[120, 60].set(True).at[125, 1].set(True))

        state = execute(state, 0x00FB)

        assert state.display[124, 60]
        assert jnp.sum(state.display) == 1

    def test_scroll_left_high_res(self, hires_state):
        state = hires_state.replace(display=hires_state.display.at[127, 63].set(True))

        state = execute(state, 0x00FC)

        assert state.display[123, 63]
        assert jnp.sum(state.display) == 1
