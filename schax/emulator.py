"""Main CHIP-8 / SuperCHIP execution engine."""

import enum
from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from schax.state import EmulatorState
from schax.decode import Op, decode
from schax.constants import PROGRAM_START, MAX_ROM_SIZE
from schax.stack import is_full, is_empty
from schax.instructions.system import (
    no_op, execute_clear_screen, execute_return, execute_scroll_down, execute_scroll_right,
    execute_scroll_left, execute_exit, execute_low_res, execute_high_res
)
from schax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from schax.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub, execute_alu_shift_right, execute_alu_subn, execute_alu_shift_left
)
from schax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from schax.instructions.display import execute_display
from schax.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_hires_font_character, execute_bcd_conversion, execute_store_registers,
    execute_load_registers, execute_store_rpl, execute_load_rpl
)


class RomTooLargeError(ValueError):
    """Raised when a ROM does not fit between 0x200 and the end of memory."""


class Status(enum.IntEnum):
    """Outcome of a single ``step``."""
    OK = 0
    UNKNOWN_OPCODE = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3
    HALTED = 4


HANDLERS = {
    Op.UNKNOWN: no_op,
    Op.SCROLL_DOWN: execute_scroll_down,
    Op.CLEAR_SCREEN: execute_clear_screen,
    Op.RETURN: execute_return,
    Op.SCROLL_RIGHT: execute_scroll_right,
    Op.SCROLL_LEFT: execute_scroll_left,
    Op.EXIT: execute_exit,
    Op.LOW_RES: execute_low_res,
    Op.HIGH_RES: execute_high_res,
    Op.JUMP: execute_jump,
    Op.CALL: execute_call,
    Op.SKIP_EQ_IMM: execute_skip_if_equal_immediate,
    Op.SKIP_NE_IMM: execute_skip_if_not_equal_immediate,
    Op.SKIP_EQ_REG: execute_skip_if_equal_register,
    Op.SET: execute_set,
    Op.ADD: execute_add,
    Op.ALU_SET: execute_alu_set,
    Op.ALU_OR: execute_alu_or,
    Op.ALU_AND: execute_alu_and,
    Op.ALU_XOR: execute_alu_xor,
    Op.ALU_ADD: execute_alu_add,
    Op.ALU_SUB: execute_alu_sub,
    Op.ALU_SHIFT_RIGHT: execute_alu_shift_right,
    Op.ALU_SUBN: execute_alu_subn,
    Op.ALU_SHIFT_LEFT: execute_alu_shift_left,
    Op.SKIP_NE_REG: execute_skip_if_not_equal_register,
    Op.SET_INDEX: execute_set_index,
    Op.JUMP_OFFSET: execute_jump_with_offset,
    Op.RANDOM: execute_random,
    Op.DRAW: execute_display,
    Op.SKIP_KEY: execute_skip_if_key,
    Op.SKIP_NOT_KEY: execute_skip_if_not_key,
    Op.GET_DELAY_TIMER: execute_get_delay_timer,
    Op.WAIT_KEY: execute_wait_for_key,
    Op.SET_DELAY_TIMER: execute_set_delay_timer,
    Op.SET_SOUND_TIMER: execute_set_sound_timer,
    Op.ADD_INDEX: execute_add_to_index,
    Op.FONT: execute_font_character,
    Op.HIRES_FONT: execute_hires_font_character,
    Op.BCD: execute_bcd_conversion,
    Op.STORE_REGISTERS: execute_store_registers,
    Op.LOAD_REGISTERS: execute_load_registers,
    Op.STORE_RPL: execute_store_rpl,
    Op.LOAD_RPL: execute_load_rpl,
}

if set(HANDLERS) != set(Op):
    raise RuntimeError(f"missing handlers: {set(Op) - set(HANDLERS)}")

_BRANCHES = [HANDLERS[op] for op in sorted(Op)]


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single instruction. Unknown instructions leave the state unchanged."""
    decoded_instruction = decode(instruction)
    return jax.lax.switch(decoded_instruction.op, _BRANCHES, state, decoded_instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def _read_byte(state: EmulatorState, address) -> jnp.ndarray:
    return state.memory.at[jnp.astype(address, jnp.int32)].get(mode="fill", fill_value=0)


@jax.jit
def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray]:
    """Fetch next instruction from memory and advance PC past it."""
    instruction = _pack_u16(_read_byte(state, state.pc), _read_byte(state, jnp.astype(state.pc, jnp.int32) + 1))
    return state.replace(pc=state.pc + 2), instruction


def instruction_status(state: EmulatorState, instruction) -> jnp.ndarray:
    """Status an instruction will report when executed from ``state``."""
    op = decode(instruction).op
    status = jnp.where(op == int(Op.UNKNOWN), int(Status.UNKNOWN_OPCODE), int(Status.OK))
    status = jnp.where((op == int(Op.CALL)) & is_full(state.stack), int(Status.STACK_OVERFLOW), status)
    status = jnp.where((op == int(Op.RETURN)) & is_empty(state.stack), int(Status.STACK_UNDERFLOW), status)
    return jnp.astype(status, jnp.uint8)


@jax.jit
def step(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray, jnp.ndarray]:
    """Run one fetch-decode-execute cycle.

    Returns the new state, the fetched word and a ``Status`` code. A halted
    machine is returned untouched with ``Status.HALTED``.
    """
    def _halted(state):
        return state, jnp.zeros((), jnp.uint16), jnp.asarray(int(Status.HALTED), jnp.uint8)

    def _cycle(state):
        state, instruction = fetch(state)
        status = instruction_status(state, instruction)
        return execute(state, instruction), instruction, status

    return jax.lax.cond(state.halted, _halted, _cycle, state)


@jax.jit
def step_timers(state: EmulatorState) -> EmulatorState:
    """Decrement delay and sound timers toward zero. Call at 60 Hz."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def run_cycle(state, _):
    state, instruction, status = step(state)
    return state, (status, instruction, state.pc)


@partial(jax.jit, static_argnums=1)
def trace_n_cycles(state: EmulatorState, n: int):
    """Run ``n`` cycles, recording each cycle's status, fetched word and resulting PC."""
    return jax.lax.scan(run_cycle, state, length=n)


@partial(jax.jit, static_argnums=1)
def run_n_cycles(state: EmulatorState, n: int) -> tuple[EmulatorState, jnp.ndarray]:
    """Run ``n`` cycles, returning the final state and every cycle's status."""
    state, (statuses, _, _) = trace_n_cycles(state, n)
    return state, statuses


@partial(jax.jit, static_argnums=1)
def trace_frame(state: EmulatorState, cycles_per_frame: int):
    """``run_frame`` that also returns the per-cycle (status, word, PC) trace."""
    state, trace = trace_n_cycles(state, cycles_per_frame)
    return step_timers(state), trace


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, cycles_per_frame: int) -> tuple[EmulatorState, jnp.ndarray]:
    """Run one video frame: ``cycles_per_frame`` cycles then one timer step."""
    state, (statuses, _, _) = trace_frame(state, cycles_per_frame)
    return state, statuses


def load_rom(state: EmulatorState, rom_data) -> EmulatorState:
    """Copy ROM bytes into memory starting at 0x200.

    Raises:
        RomTooLargeError: if the ROM is longer than 3584 bytes. The state is
            not modified.
    """
    rom_data = bytes(rom_data)
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomTooLargeError(
            f"ROM is {len(rom_data)} bytes, larger than the permitted {MAX_ROM_SIZE} bytes"
        )
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)
