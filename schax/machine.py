"""Stateful driver-facing wrapper around the functional emulator core."""

from typing import Any, Dict, List, Optional

import jax
import numpy as np
from tqdm import tqdm

from schax.constants import NUM_KEYS
from schax.emulator import Status, load_rom, step, step_timers, trace_frame
from schax.logging import MachineLogger, registers
from schax.snapshot import snapshot, restore
from schax.state import (
    EmulatorState, create_state, reset, set_quirks, set_key, reset_keys,
    dimensions, display_view, sound_active,
)


class Machine:
    """CHIP-8 / SuperCHIP machine owned by a single frontend driver.

    The driver presses keys, calls ``run_frame`` (or ``step`` and
    ``step_timers``) at 60 Hz, and reads ``display`` and ``sound_active``.
    Pacing, rendering and audio stay in the frontend.
    """

    def __init__(
        self,
        rom: Optional[bytes] = None,
        cycles_per_frame: int = 10,
        preset: Optional[str] = None,
        load_store_quirk: bool = False,
        shift_quirk: bool = False,
        jump_quirk: bool = False,
        seed: int = 0,
        log_level: str = "INFO",
        logger: Optional[MachineLogger] = None,
    ):
        """Create a machine.

        Args:
            rom: Optional ROM bytes to load immediately
            cycles_per_frame: Instructions executed per 60 Hz frame (typically 10-20)
            preset: Named quirk preset ("chip8" or "schip"); explicit quirk
                arguments set to True are applied on top of it
            load_store_quirk: Do not advance I after FX55/FX65
            shift_quirk: Shift VX in place in 8XY6/8XYE
            jump_quirk: BNNN adds VX (X = high nibble of NNN) instead of V0
            seed: Seed for the PRNG key used by CXKK
            log_level: Level for the default console logger
            logger: Logger to use instead of the default one
        """
        if cycles_per_frame < 1:
            raise ValueError(f"cycles_per_frame must be positive, got {cycles_per_frame}")
        self.cycles_per_frame = cycles_per_frame
        self.logger = logger or MachineLogger(log_level=log_level)

        state = create_state(jax.random.PRNGKey(seed))
        explicit = {
            name: True
            for name, value in (
                ("load_store_quirk", load_store_quirk),
                ("shift_quirk", shift_quirk),
                ("jump_quirk", jump_quirk),
            )
            if value
        }
        self.state: EmulatorState = set_quirks(state, preset, **explicit)
        self.rom: Optional[bytes] = None

        if rom is not None:
            self.load_rom(rom)

    def load_rom(self, rom) -> None:
        """Load ROM bytes at 0x200. Raises ``RomTooLargeError`` and keeps state on failure."""
        self.state = load_rom(self.state, rom)
        self.rom = bytes(rom)
        self.logger.log_rom_loaded(len(self.rom), self.state.quirks)

    def reset(self, reload_rom: bool = True) -> None:
        """Reset registers, memory and display; quirks and RPL flags persist."""
        self.state = reset(self.state)
        if reload_rom and self.rom is not None:
            self.state = load_rom(self.state, self.rom)
        self.logger.debug("Machine reset")

    def set_quirks(self, preset: Optional[str] = None, **quirks: bool) -> None:
        self.state = set_quirks(self.state, preset, **quirks)

    @property
    def quirks(self) -> Dict[str, bool]:
        return self.state.quirks

    def set_key(self, index: int, pressed: bool) -> None:
        if not 0 <= index < NUM_KEYS:
            raise ValueError(f"Key index must be in 0x0-0xF, got {index}")
        self.state = set_key(self.state, index, pressed)

    def press_key(self, index: int) -> None:
        self.set_key(index, True)

    def release_key(self, index: int) -> None:
        self.set_key(index, False)

    def reset_keys(self) -> None:
        self.state = reset_keys(self.state)

    def _report(self, status: int, instruction: int, pc: int) -> Status:
        status = Status(status)
        if status in (Status.UNKNOWN_OPCODE, Status.STACK_OVERFLOW, Status.STACK_UNDERFLOW):
            self.logger.log_fault(status.name, pc, instruction)
        return status

    def step(self) -> Status:
        """Execute one instruction and return its status."""
        was_halted = self.halted
        self.state, instruction, status = step(self.state)
        if self.halted and not was_halted:
            self.logger.log_halt(int(self.state.pc))
        return self._report(int(status), int(instruction), int(self.state.pc))

    def step_timers(self) -> None:
        """Decrement the 60 Hz timers."""
        self.state = step_timers(self.state)

    def run_frame(self) -> List[Status]:
        """Run one frame of ``cycles_per_frame`` instructions plus a timer step.

        Every faulting cycle is reported to the logger with its word and address.
        """
        was_halted = self.halted
        self.state, (statuses, instructions, pcs) = trace_frame(self.state, self.cycles_per_frame)
        statuses = [
            self._report(int(status), int(instruction), int(pc))
            for status, instruction, pc in zip(np.asarray(statuses), np.asarray(instructions), np.asarray(pcs))
        ]
        if self.halted and not was_halted:
            self.logger.log_halt(int(self.state.pc))
        return statuses

    def run(self, frames: int, progress: bool = False) -> None:
        """Run ``frames`` frames back to back, without pacing."""
        for _ in tqdm(range(frames), desc="Running", unit="frame", disable=not progress):
            if self.halted:
                break
            self.run_frame()

    @property
    def halted(self) -> bool:
        return bool(self.state.halted)

    @property
    def hires(self) -> bool:
        return bool(self.state.hires)

    @property
    def dimensions(self) -> tuple[int, int]:
        """(rows, cols) of the active display."""
        return dimensions(self.state)

    @property
    def display(self) -> np.ndarray:
        """Active display as a (cols, rows) array of 0/1 bytes."""
        return display_view(self.state)

    @property
    def video_buffer(self) -> np.ndarray:
        """Whole 128x64 display buffer, regardless of resolution mode."""
        return np.asarray(self.state.display, dtype=np.uint8)

    @property
    def sound_active(self) -> bool:
        return sound_active(self.state)

    def registers(self) -> Dict[str, int]:
        return registers(self.state)

    def memory(self) -> np.ndarray:
        return np.asarray(self.state.memory)

    def save_state(self) -> Dict[str, Any]:
        """Structural snapshot of the whole machine state."""
        return snapshot(self.state)

    def load_state(self, state_dict: Dict[str, Any]) -> None:
        self.state = restore(state_dict)
