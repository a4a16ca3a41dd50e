"""Tests for the fetch/decode/execute cycle and ROM loading."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest
from schax import (
    Status, RomTooLargeError, create_state, fetch, step, step_timers, run_n_cycles, run_frame, trace_n_cycles,
    load_rom, reset, set_quirks, set_key, MAX_ROM_SIZE, PROGRAM_START,
)
from conftest import state_with_program


class TestLoadRom:
    """Test ROM loading."""

    def test_load_rom_places_bytes(self, fresh_state):
        state = load_rom(fresh_state, b"\x12\x34\x56")

        assert [int(v) for v in state.memory[0x200:0x204]] == [0x12, 0x34, 0x56, 0]

    def test_load_rom_accepts_sequences(self, fresh_state):
        state = load_rom(fresh_state, [0xA2, 0x2A])
        assert state.memory[0x201] == 0x2A

    def test_load_rom_largest(self, fresh_state):
        rom = bytes([0xAB]) * MAX_ROM_SIZE

        state = load_rom(fresh_state, rom)

        assert state.memory[0xFFF] == 0xAB
        assert state.memory[0x1FF] == 0

    def test_load_rom_too_large(self, fresh_state):
        rom = bytes([0xAB]) * (MAX_ROM_SIZE + 1)

        with pytest.raises(RomTooLargeError):
            load_rom(fresh_state, rom)

        # Rejection leaves the caller's state untouched
        assert jnp.sum(fresh_state.memory[PROGRAM_START:]) == 0

    def test_rom_too_large_is_value_error(self, fresh_state):
        with pytest.raises(ValueError):
            load_rom(fresh_state, bytes(4000))

    def test_load_rom_keeps_fonts(self, fresh_state):
        state = load_rom(fresh_state, b"\x00\xe0")
        assert (state.memory[:PROGRAM_START] == fresh_state.memory[:PROGRAM_START]).all()


class TestFetch:
    """Test instruction fetch."""

    def test_fetch_big_endian(self):
        state = state_with_program(0xA22A)

        state, instruction = fetch(state)

        assert instruction == 0xA22A
        assert state.pc == 0x202

    def test_fetch_at_end_of_memory(self, fresh_state):
        """The low byte past 0xFFF reads as zero."""
        state = fresh_state.replace(
            pc=jnp.asarray(0xFFF, dtype=jnp.uint16),
            memory=fresh_state.memory.at[0xFFF].set(0x12),
        )

        _, instruction = fetch(state)

        assert instruction == 0x1200


class TestStep:
    """Test single cycles and their status codes."""

    def test_step_ok(self):
        state = state_with_program(0x6A42)

        state, instruction, status = step(state)

        assert int(status) == Status.OK
        assert instruction == 0x6A42
        assert state.V[0xA] == 0x42
        assert state.pc == 0x202

    def test_step_jump(self):
        state = state_with_program(0x1300)
        state, _, _ = step(state)
        assert state.pc == 0x300

    def test_step_unknown_opcode(self, fresh_state):
        """0000 is reported and otherwise skipped."""
        state, instruction, status = step(fresh_state)

        assert int(status) == Status.UNKNOWN_OPCODE
        assert instruction == 0x0000
        assert state.pc == 0x202
        assert (state.V == fresh_state.V).all()

    def test_step_stack_overflow(self):
        state = state_with_program(0x2200)  # calls itself forever
        for _ in range(16):
            state, _, status = step(state)
            assert int(status) == Status.OK

        state, _, status = step(state)

        assert int(status) == Status.STACK_OVERFLOW
        assert state.pc == 0x202
        assert state.stack.pointer == 16

    def test_step_stack_underflow(self):
        state = state_with_program(0x00EE)

        state, _, status = step(state)

        assert int(status) == Status.STACK_UNDERFLOW
        assert state.pc == 0x202

    def test_step_exit_then_halted(self):
        state = state_with_program(0x6A07, 0xA300, 0x00FD, 0x6001)
        for _ in range(3):
            state, _, status = step(state)
            assert int(status) == Status.OK
        assert state.halted
        halted = state

        state, _, status = step(state)

        assert int(status) == Status.HALTED
        assert state.pc == halted.pc
        assert state.I == halted.I
        assert (state.V == halted.V).all()
        assert (state.memory == halted.memory).all()
        assert (state.display == halted.display).all()
        assert (state.stack.data == halted.stack.data).all()
        assert state.stack.pointer == halted.stack.pointer

    def test_wait_for_key_busy_polls(self):
        state = state_with_program(0xF50A, 0x6101)

        for _ in range(3):
            state, _, _ = step(state)
            assert state.pc == 0x200

        state = set_key(state, 0xB)
        state, _, _ = step(state)
        assert state.V[5] == 0xB
        assert state.pc == 0x202

    def test_skip_over_instruction(self):
        state = state_with_program(0x3000, 0x6011, 0x6122)

        state, _, _ = step(state)
        state, _, _ = step(state)

        assert state.V[0] == 0
        assert state.V[1] == 0x22


class TestTimers:
    """Test 60 Hz timer stepping."""

    def test_sound_timer_reaches_zero(self, fresh_state):
        state = fresh_state.replace(sound_timer=jnp.asarray(5, dtype=jnp.uint8))
        for _ in range(5):
            state = step_timers(state)
        assert state.sound_timer == 0

        state = step_timers(state)
        assert state.sound_timer == 0

    def test_timers_independent(self, fresh_state):
        state = fresh_state.replace(delay_timer=jnp.asarray(2, dtype=jnp.uint8))

        state = step_timers(state)

        assert state.delay_timer == 1
        assert state.sound_timer == 0

    def test_step_does_not_touch_timers(self):
        state = state_with_program(0x6001)
        state = state.replace(delay_timer=jnp.asarray(9, dtype=jnp.uint8))
        state, _, _ = step(state)
        assert state.delay_timer == 9


class TestRunning:
    """Test multi-cycle helpers."""

    def test_run_n_cycles(self):
        state = state_with_program(0x6001, 0x7001, 0x7001, 0x1206)

        state, statuses = run_n_cycles(state, 10)

        assert state.V[0] == 3
        assert statuses.shape == (10,)
        assert (np.asarray(statuses) == int(Status.OK)).all()

    def test_trace_n_cycles(self):
        state = state_with_program(0x6001, 0x0000, 0x1200)

        state, (statuses, instructions, pcs) = trace_n_cycles(state, 3)

        assert [int(s) for s in statuses] == [Status.OK, Status.UNKNOWN_OPCODE, Status.OK]
        assert [int(i) for i in instructions] == [0x6001, 0x0000, 0x1200]
        assert [int(p) for p in pcs] == [0x202, 0x204, 0x200]

    def test_run_frame_steps_timers_once(self):
        state = state_with_program(0x1200)
        state = state.replace(delay_timer=jnp.asarray(10, dtype=jnp.uint8))

        state, statuses = run_frame(state, 15)

        assert state.delay_timer == 9
        assert statuses.shape == (15,)

    def test_run_frame_reports_halt(self):
        state = state_with_program(0x00FD)

        state, statuses = run_frame(state, 3)

        assert [int(s) for s in statuses] == [Status.OK, Status.HALTED, Status.HALTED]

    def test_countdown_program(self):
        """Loop decrementing V0 from 5 to 0 through the ALU."""
        state = state_with_program(
            0x6005,  # 200: V0 = 5
            0x6101,  # 202: V1 = 1
            0x8015,  # 204: V0 -= V1
            0x3000,  # 206: skip if V0 == 0
            0x1204,  # 208: loop
            0x00FD,  # 20A: exit
        )

        state, _ = run_n_cycles(state, 40)

        assert state.halted
        assert state.V[0] == 0
        assert state.V[15] == 1


class TestResetAndQuirks:
    """Test state reset and quirk configuration."""

    def test_reset_clears_program_and_registers(self):
        state = state_with_program(0x6033, 0xF075, 0x00FF, shift_quirk=True)
        state, _ = run_n_cycles(state, 3)

        state = reset(state)

        assert state.pc == PROGRAM_START
        assert state.V[0] == 0
        assert not state.hires
        assert jnp.sum(state.memory[PROGRAM_START:]) == 0
        assert state.rpl[0] == 0x33
        assert state.shift_quirk

    def test_set_quirks_preset(self, fresh_state):
        state = set_quirks(fresh_state, "schip")
        assert state.quirks == {"load_store_quirk": True, "shift_quirk": True, "jump_quirk": True}

        state = set_quirks(state, "chip8", jump_quirk=True)
        assert state.quirks == {"load_store_quirk": False, "shift_quirk": False, "jump_quirk": True}

    def test_set_quirks_rejects_unknown(self, fresh_state):
        with pytest.raises(ValueError):
            set_quirks(fresh_state, "xochip")
        with pytest.raises(ValueError):
            set_quirks(fresh_state, wrap_quirk=True)

    def test_quirks_are_static(self):
        """Quirk flags are not pytree leaves."""
        state = create_state(shift_quirk=True)
        leaves = jax.tree.leaves(state)
        assert all(hasattr(leaf, "shape") for leaf in leaves)
        assert jax.tree.map(lambda x: x, state).shift_quirk
