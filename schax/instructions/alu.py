"""CHIP-8 ALU operations (8xxx)."""

import jax.numpy as jnp
from schax.state import EmulatorState
from schax.decode import DecodedInstruction


def alu_set(vx: int, vy: int) -> int:
    """8XY0 - Set: VX = VY."""
    return vy


def alu_or(vx: int, vy: int) -> int:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy


def alu_and(vx: int, vy: int) -> int:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy


def alu_xor(vx: int, vy: int) -> int:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, VF = carry."""
    result = jnp.astype(vx, jnp.int32) + vy
    carry = jnp.astype(result > 255, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = NOT borrow."""
    not_borrow = jnp.astype(vx >= vy, jnp.uint8)
    result = jnp.astype((jnp.astype(vx, jnp.int32) - vy) & 0xFF, jnp.uint8)
    return result, not_borrow


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    not_borrow = jnp.astype(vy >= vx, jnp.uint8)
    result = jnp.astype((jnp.astype(vy, jnp.int32) - vx) & 0xFF, jnp.uint8)
    return result, not_borrow


def alu_shift_right(value: int) -> tuple[int, int]:
    """8XY6 - Shift right by one, VF = bit shifted out."""
    return value >> 1, value & 1


def alu_shift_left(value: int) -> tuple[int, int]:
    """8XYE - Shift left by one, VF = bit shifted out."""
    return (value << 1) & 0xFF, (value & 0x80) >> 7


def make_logic_instruction(alu_fn):
    """Factory for ALU instructions that leave VF untouched."""
    def logic_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result = alu_fn(state.V[instruction.x], state.V[instruction.y])
        return state.replace(V=state.V.at[instruction.x].set(result))
    return logic_instruction


def make_arithmetic_instruction(alu_fn):
    """Factory for ALU instructions writing VX, then the VF flag."""
    def arithmetic_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, flag = alu_fn(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[instruction.x].set(result)
        return state.replace(V=new_V.at[0xF].set(flag))
    return arithmetic_instruction


def make_shift_instruction(shift_fn):
    """Factory for shifts writing the VF flag, then VX.

    Without the shift quirk VY is shifted into VX; with it VX shifts in place.
    """
    def shift_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        source = instruction.x if state.shift_quirk else instruction.y
        result, flag = shift_fn(state.V[source])
        new_V = state.V.at[0xF].set(flag)
        return state.replace(V=new_V.at[instruction.x].set(result))
    return shift_instruction


execute_alu_set = make_logic_instruction(alu_set)
execute_alu_or = make_logic_instruction(alu_or)
execute_alu_and = make_logic_instruction(alu_and)
execute_alu_xor = make_logic_instruction(alu_xor)
execute_alu_add = make_arithmetic_instruction(alu_add)
execute_alu_sub = make_arithmetic_instruction(alu_sub_xy)
execute_alu_subn = make_arithmetic_instruction(alu_sub_yx)
execute_alu_shift_right = make_shift_instruction(alu_shift_right)
execute_alu_shift_left = make_shift_instruction(alu_shift_left)
