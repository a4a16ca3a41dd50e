"""Console logging utilities for schax frontends and headless runs.

Provides a small colored console logger and an emulator-aware subclass
that formats faults, ROM loads and register dumps.
"""

import time
import sys
from typing import Any, Dict

from schax.state import EmulatorState


class ConsoleLogger:
    """Flexible console logger with level filtering and colors."""

    def __init__(
        self,
        name: str = "schax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = (
            use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {
            "DEBUG": 0,
            "INFO": 1,
            "WARNING": 2,
            "ERROR": 3,
            "CRITICAL": 4,
        }

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


def registers(state: EmulatorState) -> Dict[str, Any]:
    """Plain-int view of the register file for debuggers and logs."""
    values = {
        "PC": int(state.pc),
        "I": int(state.I),
        "SP": int(state.stack.pointer),
        "DT": int(state.delay_timer),
        "ST": int(state.sound_timer),
    }
    values.update({f"V{i:X}": int(v) for i, v in enumerate(state.V)})
    return values


class MachineLogger(ConsoleLogger):
    """Logger with emulator-specific messages."""

    def __init__(self, name: str = "Machine", **kwargs):
        super().__init__(name, **kwargs)
        self.fault_counts: Dict[str, int] = {}

    def log_rom_loaded(self, size: int, quirks: Dict[str, bool]):
        enabled = [name for name, value in quirks.items() if value] or ["none"]
        self.info(f"Loaded ROM ({size} bytes), quirks: {', '.join(enabled)}")

    def log_fault(self, status_name: str, pc: int, instruction: int):
        """Report a non-fatal fault; PC is the address of the next instruction."""
        self.fault_counts[status_name] = self.fault_counts.get(status_name, 0) + 1
        self.warning(
            f"{status_name.lower().replace('_', ' ')} 0x{instruction:04X} at 0x{(pc - 2) & 0xFFFF:03X}"
        )

    def log_halt(self, pc: int):
        self.info(f"Interpreter halted by EXIT at 0x{(pc - 2) & 0xFFFF:03X}")

    def log_registers(self, state: EmulatorState):
        """Dump the register file at DEBUG level."""
        values = registers(state)
        self.debug(
            " ".join(f"{name}:{values[name]:03X}" for name in ("PC", "I", "SP", "DT", "ST"))
        )
        for row in range(0, 16, 4):
            self.debug(" ".join(f"V{i:X}:{values[f'V{i:X}']:02X}" for i in range(row, row + 4)))
