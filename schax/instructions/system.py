"""CHIP-8 / SuperCHIP system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from schax.state import EmulatorState
from schax.decode import DecodedInstruction
from schax.stack import pop, is_empty
from schax.instructions.display import clear, scroll_down, scroll_right, scroll_left


def no_op(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """No operation."""
    return state


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=clear(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine. Ignored on an empty stack."""
    def _return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address)

    return jax.lax.cond(is_empty(state.stack), lambda s: s, _return, state)


def execute_scroll_down(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00CN - Scroll display N rows down."""
    return state.replace(display=scroll_down(state, instruction.n))


def execute_scroll_right(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00FB - Scroll display 4 pixels right."""
    return state.replace(display=scroll_right(state))


def execute_scroll_left(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00FC - Scroll display 4 pixels left."""
    return state.replace(display=scroll_left(state))


def execute_exit(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00FD - Halt the interpreter."""
    return state.replace(halted=jnp.array(True))


def execute_low_res(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00FE - Switch to 64x32 mode and clear the screen."""
    return state.replace(hires=jnp.array(False), display=clear(state.display))


def execute_high_res(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00FF - Switch to 128x64 mode and clear the screen."""
    return state.replace(hires=jnp.array(True), display=clear(state.display))
