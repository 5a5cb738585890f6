# CHIP-8 CPU - Cowgod's CHIP-8 Technical Reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
# Fetch two bytes at pc, decode the four nibbles against the dispatch table,
# run the handler, advance pc. Registers, memory and stack belong to the thread
# running the loop. The timers, the screen (via its lock) and the keypad are
# shared with other threads.

import random
import threading
from enum import Enum

from .config import CPU_HZ, HALT_INSTRUCTION, PROGRAM_START
from .errors import Chip8Error, DecodeError, StackUnderflow
from .keypad import BYTE_FOR_KEY, InputSource, Keypad
from .logs import log, logger
from .memory import Memory, Stack
from .registers import Registers, VF
from .screen import NullDisplay, Screen
from .timers import TimerPair


class StepStatus(Enum):
    EXECUTED = "executed"
    BLOCKED = "blocked"     # Fx0A found no key, pc left on the same instruction
    HALTED = "halted"       # pc past the end of memory or halt sentinel


class Chip8:

    def __init__(self, memory=None, registers=None, stack=None, keypad=None, screen=None,
                 timers=None, display=None, input_source=None, rng=None, hz=CPU_HZ):
        self.memory = memory if memory is not None else Memory()
        self.registers = registers if registers is not None else Registers()
        self.stack = stack if stack is not None else Stack()
        self.keypad = keypad if keypad is not None else Keypad()
        self.screen = screen if screen is not None else Screen()
        self.timers = timers if timers is not None else TimerPair()
        self.display = display if display is not None else NullDisplay()
        self.input = input_source if input_source is not None else InputSource()
        self.rng = rng if rng is not None else random.Random()
        self.hz = hz

        self.pc = PROGRAM_START
        self.registers.write_i(self.memory.font_start)
        self.opcode = 0
        self.next_pc = self.pc
        self.blocked = False
        self.cycle_count = 0

        self.error = None
        self._stop_event = threading.Event()
        self._thread = None

        # dispatch table: (mask, pattern, handler), first match wins
        self.opcodes = [
            (0xFFFF, 0x00E0, self.op_CLS),
            (0xFFFF, 0x00EE, self.op_RET),

            (0xF000, 0x1000, self.op_JP),
            (0xF000, 0x2000, self.op_CALL),
            (0xF000, 0x3000, self.op_SE_Vx_kk),
            (0xF000, 0x4000, self.op_SNE_Vx_kk),
            (0xF00F, 0x5000, self.op_SE_Vx_Vy),
            (0xF000, 0x6000, self.op_LD_Vx_kk),
            (0xF000, 0x7000, self.op_ADD_Vx_kk),

            (0xF00F, 0x8000, self.op_LD_Vx_Vy),
            (0xF00F, 0x8001, self.op_OR),
            (0xF00F, 0x8002, self.op_AND),
            (0xF00F, 0x8003, self.op_XOR),
            (0xF00F, 0x8004, self.op_ADD),
            (0xF00F, 0x8005, self.op_SUB),
            (0xF00F, 0x8006, self.op_SHR),
            (0xF00F, 0x8007, self.op_SUBN),
            (0xF00F, 0x800E, self.op_SHL),

            (0xF00F, 0x9000, self.op_SNE_Vx_Vy),
            (0xF000, 0xA000, self.op_LD_I),
            (0xF000, 0xB000, self.op_JP_V0),
            (0xF000, 0xC000, self.op_RND),
            (0xF000, 0xD000, self.op_DRW),

            (0xF0FF, 0xE09E, self.op_SKP),
            (0xF0FF, 0xE0A1, self.op_SKNP),

            (0xF0FF, 0xF007, self.op_LD_Vx_DT),
            (0xF0FF, 0xF00A, self.op_WAITKEY),
            (0xF0FF, 0xF015, self.op_LD_DT_Vx),
            (0xF0FF, 0xF018, self.op_LD_ST_Vx),
            (0xF0FF, 0xF01E, self.op_ADD_I_Vx),
            (0xF0FF, 0xF029, self.op_FONT),
            (0xF0FF, 0xF033, self.op_BCD),
            (0xF0FF, 0xF055, self.op_STORE),
            (0xF0FF, 0xF065, self.op_LOAD),
        ]

    # ---- Program ----
    def load_program(self, program, start=PROGRAM_START):
        """Write a program into memory. Ints are 16-bit words, bytes go in as-is."""
        if isinstance(program, (bytes, bytearray)):
            data = bytes(program)
        else:
            data = b"".join(word.to_bytes(2, "big") for word in program)
        self.memory.write_block(start, data)
        return len(data)

    # ---- Cycle ----
    def fetch(self):
        return self.memory.read_word(self.pc)

    def decode(self, opcode):
        for mask, pattern, handler in self.opcodes:
            if (opcode & mask) == pattern:
                return handler
        raise DecodeError(opcode, self.pc)

    def execute(self, opcode):
        self.opcode = opcode
        self.next_pc = self.pc + 2
        self.blocked = False

        self.decode(opcode)(opcode)

        self.pc = self.next_pc
        if self.blocked:
            return StepStatus.BLOCKED
        self.cycle_count += 1
        return StepStatus.EXECUTED

    def step(self):
        if self.pc + 1 >= len(self.memory):
            return StepStatus.HALTED
        opcode = self.fetch()
        if opcode == HALT_INSTRUCTION:
            return StepStatus.HALTED
        return self.execute(opcode)

    def run(self, max_steps=None):
        """Run until halted, stopped, or `max_steps` instructions executed.

        Returns the number of instructions executed. Chip8Error propagates.
        """
        delay = 1.0 / self.hz if self.hz else 0
        steps = 0
        while not self._stop_event.is_set():
            if max_steps is not None and steps >= max_steps:
                break
            status = self.step()
            if status is StepStatus.HALTED:
                log("Halted at", hex(self.pc))
                break
            if status is StepStatus.BLOCKED:
                # the only suspension point: sleep until input arrives
                self.input.wait(cancel=self._stop_event)
                continue
            steps += 1
            if delay:
                self._stop_event.wait(delay)
        return steps

    # ---- Threads ----
    def start(self):
        """Start the timers and run the loop on its own thread."""
        self._stop_event.clear()
        self.error = None
        self.timers.start()
        self._thread = threading.Thread(target=self._run_thread, name="chip8-cpu", daemon=True)
        self._thread.start()
        return self._thread

    def _run_thread(self):
        try:
            self.run()
        except Chip8Error as e:
            self.error = e
            logger.error("Emulation error: %s\n%s", e, self.dump_state())

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout)
        return not self.running

    def stop(self):
        self._stop_event.set()
        self.input.wake()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self.timers.stop()

    # ---- Key events ----
    # Called from the front end thread. The input source only gets a key while
    # Fx0A is blocked, so presses made earlier never satisfy a later wait.
    def press_key(self, k):
        self.keypad.press(k)
        if self.blocked:
            self.input.feed(BYTE_FOR_KEY[k])

    def release_key(self, k):
        self.keypad.release(k)

    def dump_state(self):
        return "pc=0x%03X opcode=%04X sp=%d %r" % (self.pc, self.opcode, len(self.stack), self.registers)

    # ---- Opcode Handlers ----
    # Handlers steer control flow through self.next_pc: jumps overwrite it,
    # skips add another 2.

    # 00E0 - Clear the display
    def op_CLS(self, opcode):
        self.screen.clear()
        log("Clear the display")

    # 00EE - Return from subroutine
    def op_RET(self, opcode):
        addr = self.stack.pop()
        if addr is None:
            raise StackUnderflow("Stack underflow on 00EE at 0x%03X" % self.pc)
        self.next_pc = addr
        log("Return to", hex(addr))

    # 1nnn - Jump to address nnn
    def op_JP(self, opcode):
        self.next_pc = opcode & 0x0FFF
        log("Jump to address", hex(self.next_pc))

    # 2nnn - Call subroutine at nnn, the return address is the next instruction
    def op_CALL(self, opcode):
        self.stack.push(self.pc + 2)
        self.next_pc = opcode & 0x0FFF
        log("Call subroutine at", hex(self.next_pc))

    # 3xkk - Skip next instruction if Vx == kk
    def op_SE_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        if self.registers.V[x] == opcode & 0xFF:
            self.next_pc += 2

    # 4xkk - Skip next instruction if Vx != kk
    def op_SNE_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        if self.registers.V[x] != opcode & 0xFF:
            self.next_pc += 2

    # 5xy0 - Skip next instruction if Vx == Vy
    def op_SE_Vx_Vy(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        if self.registers.V[x] == self.registers.V[y]:
            self.next_pc += 2

    # 6xkk - Set Vx = kk
    def op_LD_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        self.registers.write(x, opcode & 0xFF)

    # 7xkk - Vx += kk, wraps, VF untouched
    def op_ADD_Vx_kk(self, opcode):
        x = (opcode >> 8) & 0xF
        self.registers.write(x, self.registers.V[x] + (opcode & 0xFF))

    # 8xy0..8xyE - operands are read before VF is written, so VF as
    # the target register ends up holding the result, not the flag
    def op_LD_Vx_Vy(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.registers.write(x, self.registers.V[y])

    def op_OR(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.registers.write(x, self.registers.V[x] | self.registers.V[y])

    def op_AND(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.registers.write(x, self.registers.V[x] & self.registers.V[y])

    def op_XOR(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        self.registers.write(x, self.registers.V[x] ^ self.registers.V[y])

    def op_ADD(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        total = self.registers.V[x] + self.registers.V[y]
        self.registers.flag = total > 0xFF
        self.registers.write(x, total)

    def op_SUB(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        vx, vy = self.registers.V[x], self.registers.V[y]
        self.registers.flag = vx >= vy   # NOT borrow
        self.registers.write(x, vx - vy)

    def op_SHR(self, opcode):
        x = (opcode >> 8) & 0xF
        vx = self.registers.V[x]
        self.registers.flag = vx & 0x01
        self.registers.write(x, vx >> 1)

    def op_SUBN(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        vx, vy = self.registers.V[x], self.registers.V[y]
        self.registers.flag = vy >= vx   # NOT borrow
        self.registers.write(x, vy - vx)

    def op_SHL(self, opcode):
        x = (opcode >> 8) & 0xF
        vx = self.registers.V[x]
        self.registers.flag = vx & 0x80
        self.registers.write(x, vx << 1)

    # 9xy0 - Skip next instruction if Vx != Vy
    def op_SNE_Vx_Vy(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        if self.registers.V[x] != self.registers.V[y]:
            self.next_pc += 2

    # Annn - Set I = nnn
    def op_LD_I(self, opcode):
        self.registers.write_i(opcode & 0x0FFF)

    # Bnnn - Jump to nnn + V0
    def op_JP_V0(self, opcode):
        self.next_pc = (opcode & 0x0FFF) + self.registers.V[0]
        log("Jump to address V0 +", hex(opcode & 0x0FFF), "=", hex(self.next_pc))

    # Cxkk - Vx = random byte AND kk
    def op_RND(self, opcode):
        x = (opcode >> 8) & 0xF
        self.registers.write(x, self.rng.randint(0, 255) & (opcode & 0xFF))

    # Dxyn - Draw n-byte sprite from memory[I] at (Vx, Vy), VF = collision
    def op_DRW(self, opcode):
        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        n = opcode & 0xF
        px, py = self.registers.V[x], self.registers.V[y]
        self.registers.flag = 0
        i = self.registers.read_i()
        rows = [self.memory.read(i + row) for row in range(n)]
        self.registers.flag = self.screen.draw_sprite(px, py, rows)
        self.display.show(self.screen)
        log("Drew sprite at", (px, py), "collision =", self.registers.V[VF])

    # Ex9E - Skip next instruction if key Vx is pressed
    def op_SKP(self, opcode):
        x = (opcode >> 8) & 0xF
        if self.keypad.is_pressed(self.registers.V[x]):
            self.next_pc += 2

    # ExA1 - Skip next instruction if key Vx is not pressed
    def op_SKNP(self, opcode):
        x = (opcode >> 8) & 0xF
        if not self.keypad.is_pressed(self.registers.V[x]):
            self.next_pc += 2

    # Fx07 - Vx = delay timer
    def op_LD_Vx_DT(self, opcode):
        x = (opcode >> 8) & 0xF
        self.registers.write(x, self.timers.delay.get())

    # Fx0A - Wait for a key, latch it and store it in Vx
    def op_WAITKEY(self, opcode):
        x = (opcode >> 8) & 0xF
        key = self.input.poll()
        if key is None:
            # stall: run() waits for input and re-executes this instruction
            self.next_pc = self.pc
            self.blocked = True
            return
        self.keypad.latch(key)
        self.registers.write(x, key)
        log("Key", hex(key), "-> V%X" % x)

    # Fx15 - delay timer = Vx
    def op_LD_DT_Vx(self, opcode):
        x = (opcode >> 8) & 0xF
        self.timers.delay.set(self.registers.V[x])

    # Fx18 - sound timer = Vx
    def op_LD_ST_Vx(self, opcode):
        x = (opcode >> 8) & 0xF
        self.timers.sound.set(self.registers.V[x])

    # Fx1E - I += Vx, carry ignored
    def op_ADD_I_Vx(self, opcode):
        x = (opcode >> 8) & 0xF
        self.registers.write_i(self.registers.read_i() + self.registers.V[x])

    # Fx29 - I = address of the font glyph for digit Vx
    def op_FONT(self, opcode):
        x = (opcode >> 8) & 0xF
        self.registers.write_i(self.memory.glyph_address(self.registers.V[x]))

    # Fx33 - BCD of Vx into memory[I..I+2]
    def op_BCD(self, opcode):
        x = (opcode >> 8) & 0xF
        v = self.registers.V[x]
        i = self.registers.read_i()
        self.memory.write(i, v // 100)
        self.memory.write(i + 1, (v // 10) % 10)
        self.memory.write(i + 2, v % 10)

    # Fx55 - Store V0..Vx at memory[I..]
    def op_STORE(self, opcode):
        x = (opcode >> 8) & 0xF
        self.memory.write_block(self.registers.read_i(), self.registers.V[:x + 1])

    # Fx65 - Load V0..Vx from memory[I..]
    def op_LOAD(self, opcode):
        x = (opcode >> 8) & 0xF
        self.registers.V[:x + 1] = self.memory.read_block(self.registers.read_i(), x + 1)
