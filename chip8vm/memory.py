from .config import MEMORY_SIZE, FONT_START, STACK_CAPACITY
from .errors import OutOfBounds, StackOverflow

# set fonts (binary pixel patterns)
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])  # notice 80 bytes
GLYPH_SIZE = 5


class Memory:
    """4096 bytes with the font table preloaded at FONT_START."""

    def __init__(self, size=MEMORY_SIZE, font_start=FONT_START):
        self.data = bytearray(size)
        self.font_start = font_start
        self.data[font_start:font_start + len(FONTSET)] = FONTSET

    def __len__(self):
        return len(self.data)

    def _check(self, addr, count=1):
        if addr < 0 or addr + count > len(self.data):
            raise OutOfBounds("Memory access out of bounds: 0x%04X (+%d)" % (addr, count))

    def read(self, addr):
        self._check(addr)
        return self.data[addr]

    def write(self, addr, value):
        self._check(addr)
        self.data[addr] = value & 0xFF

    def read_word(self, addr):
        # big-endian instruction fetch
        self._check(addr, 2)
        return (self.data[addr] << 8) | self.data[addr + 1]

    def read_block(self, addr, count):
        self._check(addr, count)
        return bytes(self.data[addr:addr + count])

    def write_block(self, addr, values):
        self._check(addr, len(values))
        self.data[addr:addr + len(values)] = bytes(values)

    def glyph_address(self, digit):
        return self.font_start + (digit & 0xF) * GLYPH_SIZE


class Stack:
    """Bounded LIFO of 16-bit return addresses."""

    def __init__(self, capacity=STACK_CAPACITY):
        self.capacity = capacity
        self.entries = []

    def __len__(self):
        return len(self.entries)

    def push(self, addr):
        if len(self.entries) >= self.capacity:
            raise StackOverflow("Stack overflow on CALL (depth %d)" % self.capacity)
        self.entries.append(addr & 0xFFFF)

    def pop(self):
        # None on empty, the caller decides whether that is fatal
        if not self.entries:
            return None
        return self.entries.pop()

    def peek(self):
        return self.entries[-1] if self.entries else None
