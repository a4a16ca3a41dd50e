import time

import jax

from schax import Machine, create_state, load_rom, run_n_cycles

# Draws the hex digits 0-F across the screen, then loops forever.
ROM = bytes([
    0x60, 0x00,  # 200: V0 = 0      (digit)
    0x61, 0x01,  # 202: V1 = 1      (x)
    0x62, 0x02,  # 204: V2 = 2      (y)
    0xF0, 0x29,  # 206: I = font(V0)
    0xD1, 0x25,  # 208: draw 8x5 at (V1, V2)
    0x70, 0x01,  # 20A: V0 += 1
    0x71, 0x06,  # 20C: V1 += 6
    0x30, 0x0A,  # 20E: skip if V0 == 10
    0x12, 0x18,  # 210: jump 218
    0x61, 0x01,  # 212: V1 = 1
    0x72, 0x08,  # 214: V2 += 8
    0x12, 0x18,  # 216: jump 218
    0x30, 0x10,  # 218: skip if V0 == 16
    0x12, 0x06,  # 21A: jump 206
    0x12, 0x1C,  # 21C: halt-loop
])


def print_display(display):
    """Print a (cols, rows) 0/1 display as text."""
    for y in range(display.shape[1]):
        print("".join("#" if display[x, y] else "." for x in range(display.shape[0])))


if __name__ == "__main__":
    state = load_rom(create_state(), ROM)

    # Measure compilation time
    start_compile = time.time()
    rollout = jax.jit(lambda s: run_n_cycles(s, 10000))
    compiled = jax.block_until_ready(rollout.lower(state).compile())
    end_compile = time.time()

    print("Compilation time (s):", end_compile - start_compile)

    # Measure execution time
    start_exec = time.time()
    final_state, statuses = jax.block_until_ready(compiled(state))
    end_exec = time.time()

    print("Execution time (s):", end_exec - start_exec)

    # Same program through the stateful wrapper, one frame at a time
    machine = Machine(ROM, cycles_per_frame=20)
    machine.run(60, progress=True)
    machine.logger.log_registers(machine.state)
    print_display(machine.display)
