import pytest

from chip8vm.config import FONT_START, MEMORY_SIZE, PROGRAM_START
from chip8vm.errors import OutOfBounds, RomLoadError, StackOverflow
from chip8vm.loader import load_rom
from chip8vm.memory import FONTSET, Memory, Stack


def test_font_table_loaded_at_font_start():
    mem = Memory()
    assert len(mem) == MEMORY_SIZE
    assert mem.read_block(FONT_START, 80) == FONTSET
    assert mem.glyph_address(0xA) == FONT_START + 50
    assert mem.glyph_address(0x1A) == FONT_START + 50
    assert mem.read_block(mem.glyph_address(0), 5) == bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])


def test_read_word_is_big_endian():
    mem = Memory()
    mem.write_block(PROGRAM_START, b"\x12\x34")
    assert mem.read_word(PROGRAM_START) == 0x1234


@pytest.mark.parametrize("addr", [MEMORY_SIZE, MEMORY_SIZE + 10, -1])
def test_out_of_range_access_is_fatal(addr):
    mem = Memory()
    with pytest.raises(OutOfBounds):
        mem.read(addr)
    with pytest.raises(OutOfBounds):
        mem.write(addr, 1)


def test_block_write_past_end_is_fatal():
    mem = Memory()
    with pytest.raises(OutOfBounds):
        mem.write_block(MEMORY_SIZE - 2, b"\x01\x02\x03")
    with pytest.raises(OutOfBounds):
        mem.read_word(MEMORY_SIZE - 1)


def test_stack_is_lifo_and_bounded():
    stack = Stack()
    for addr in range(0x200, 0x200 + 24, 2):
        stack.push(addr)
    assert len(stack) == 12
    with pytest.raises(StackOverflow):
        stack.push(0x300)
    assert stack.pop() == 0x200 + 22
    assert stack.peek() == 0x200 + 20


def test_pop_from_empty_stack_returns_none():
    assert Stack().pop() is None


def test_load_rom_copies_bytes_at_0x200(tmp_path):
    rom = tmp_path / "prog.ch8"
    rom.write_bytes(bytes([0x00, 0xE0, 0x12, 0x00, 0xAB]))
    mem = Memory()
    assert load_rom(str(rom), mem) == 5
    assert mem.read_block(PROGRAM_START, 5) == bytes([0x00, 0xE0, 0x12, 0x00, 0xAB])
    assert mem.read(PROGRAM_START + 5) == 0


def test_load_rom_missing_file(tmp_path):
    with pytest.raises(RomLoadError):
        load_rom(str(tmp_path / "nope.ch8"), Memory())


def test_load_rom_too_large(tmp_path):
    rom = tmp_path / "big.ch8"
    rom.write_bytes(b"\x00" * (MEMORY_SIZE - PROGRAM_START + 1))
    with pytest.raises(RomLoadError):
        load_rom(str(rom), Memory())
