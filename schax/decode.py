"""CHIP-8 / SuperCHIP instruction decoding."""

import enum

import jax.numpy as jnp
from chex import dataclass


class Op(enum.IntEnum):
    """Every operation the decoder can select."""
    UNKNOWN = 0
    SCROLL_DOWN = enum.auto()          # 00CN
    CLEAR_SCREEN = enum.auto()         # 00E0
    RETURN = enum.auto()               # 00EE
    SCROLL_RIGHT = enum.auto()         # 00FB
    SCROLL_LEFT = enum.auto()          # 00FC
    EXIT = enum.auto()                 # 00FD
    LOW_RES = enum.auto()              # 00FE
    HIGH_RES = enum.auto()             # 00FF
    JUMP = enum.auto()                 # 1NNN
    CALL = enum.auto()                 # 2NNN
    SKIP_EQ_IMM = enum.auto()          # 3XKK
    SKIP_NE_IMM = enum.auto()          # 4XKK
    SKIP_EQ_REG = enum.auto()          # 5XY0
    SET = enum.auto()                  # 6XKK
    ADD = enum.auto()                  # 7XKK
    ALU_SET = enum.auto()              # 8XY0
    ALU_OR = enum.auto()               # 8XY1
    ALU_AND = enum.auto()              # 8XY2
    ALU_XOR = enum.auto()              # 8XY3
    ALU_ADD = enum.auto()              # 8XY4
    ALU_SUB = enum.auto()              # 8XY5
    ALU_SHIFT_RIGHT = enum.auto()      # 8XY6
    ALU_SUBN = enum.auto()             # 8XY7
    ALU_SHIFT_LEFT = enum.auto()       # 8XYE
    SKIP_NE_REG = enum.auto()          # 9XY0
    SET_INDEX = enum.auto()            # ANNN
    JUMP_OFFSET = enum.auto()          # BNNN
    RANDOM = enum.auto()               # CXKK
    DRAW = enum.auto()                 # DXYN
    SKIP_KEY = enum.auto()             # EX9E
    SKIP_NOT_KEY = enum.auto()         # EXA1
    GET_DELAY_TIMER = enum.auto()      # FX07
    WAIT_KEY = enum.auto()             # FX0A
    SET_DELAY_TIMER = enum.auto()      # FX15
    SET_SOUND_TIMER = enum.auto()      # FX18
    ADD_INDEX = enum.auto()            # FX1E
    FONT = enum.auto()                 # FX29
    HIRES_FONT = enum.auto()           # FX30
    BCD = enum.auto()                  # FX33
    STORE_REGISTERS = enum.auto()      # FX55
    LOAD_REGISTERS = enum.auto()       # FX65
    STORE_RPL = enum.auto()            # FX75, X <= 7
    LOAD_RPL = enum.auto()             # FX85, X <= 7


# (mask, value, op): a word selects ``op`` when ``word & mask == value``.
# Patterns are disjoint, so at most one matches.
PATTERNS = (
    (0xFFF0, 0x00C0, Op.SCROLL_DOWN),
    (0xFFFF, 0x00E0, Op.CLEAR_SCREEN),
    (0xFFFF, 0x00EE, Op.RETURN),
    (0xFFFF, 0x00FB, Op.SCROLL_RIGHT),
    (0xFFFF, 0x00FC, Op.SCROLL_LEFT),
    (0xFFFF, 0x00FD, Op.EXIT),
    (0xFFFF, 0x00FE, Op.LOW_RES),
    (0xFFFF, 0x00FF, Op.HIGH_RES),
    (0xF000, 0x1000, Op.JUMP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SKIP_EQ_IMM),
    (0xF000, 0x4000, Op.SKIP_NE_IMM),
    (0xF00F, 0x5000, Op.SKIP_EQ_REG),
    (0xF000, 0x6000, Op.SET),
    (0xF000, 0x7000, Op.ADD),
    (0xF00F, 0x8000, Op.ALU_SET),
    (0xF00F, 0x8001, Op.ALU_OR),
    (0xF00F, 0x8002, Op.ALU_AND),
    (0xF00F, 0x8003, Op.ALU_XOR),
    (0xF00F, 0x8004, Op.ALU_ADD),
    (0xF00F, 0x8005, Op.ALU_SUB),
    (0xF00F, 0x8006, Op.ALU_SHIFT_RIGHT),
    (0xF00F, 0x8007, Op.ALU_SUBN),
    (0xF00F, 0x800E, Op.ALU_SHIFT_LEFT),
    (0xF00F, 0x9000, Op.SKIP_NE_REG),
    (0xF000, 0xA000, Op.SET_INDEX),
    (0xF000, 0xB000, Op.JUMP_OFFSET),
    (0xF000, 0xC000, Op.RANDOM),
    (0xF000, 0xD000, Op.DRAW),
    (0xF0FF, 0xE09E, Op.SKIP_KEY),
    (0xF0FF, 0xE0A1, Op.SKIP_NOT_KEY),
    (0xF0FF, 0xF007, Op.GET_DELAY_TIMER),
    (0xF0FF, 0xF00A, Op.WAIT_KEY),
    (0xF0FF, 0xF015, Op.SET_DELAY_TIMER),
    (0xF0FF, 0xF018, Op.SET_SOUND_TIMER),
    (0xF0FF, 0xF01E, Op.ADD_INDEX),
    (0xF0FF, 0xF029, Op.FONT),
    (0xF0FF, 0xF030, Op.HIRES_FONT),
    (0xF0FF, 0xF033, Op.BCD),
    (0xF0FF, 0xF055, Op.STORE_REGISTERS),
    (0xF0FF, 0xF065, Op.LOAD_REGISTERS),
    (0xF8FF, 0xF075, Op.STORE_RPL),
    (0xF8FF, 0xF085, Op.LOAD_RPL),
)

_MASKS = jnp.array([mask for mask, _, _ in PATTERNS], dtype=jnp.uint16)
_VALUES = jnp.array([value for _, value, _ in PATTERNS], dtype=jnp.uint16)
_OPS = jnp.array([int(op) for _, _, op in PATTERNS], dtype=jnp.int32)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate, "kk")
    nnn: int     # Last 12 bits (12-bit address)
    op: int      # Op selected by the pattern table


def decode_op(instruction) -> jnp.ndarray:
    """Select the Op for a 16-bit word, Op.UNKNOWN if no pattern matches."""
    matches = (instruction & _MASKS) == _VALUES
    return jnp.where(jnp.any(matches), _OPS[jnp.argmax(matches)], int(Op.UNKNOWN))


def decode(instruction) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    instruction = jnp.asarray(instruction, dtype=jnp.uint16)
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF,
        op=decode_op(instruction),
    )
