class Chip8Error(Exception):
    """Base for every fatal machine condition."""


class DecodeError(Chip8Error):
    def __init__(self, instruction, pc=None):
        self.instruction = instruction
        self.pc = pc
        where = "" if pc is None else " at 0x%03X" % pc
        super().__init__("Unknown opcode: %04X%s" % (instruction, where))


class StackOverflow(Chip8Error):
    pass


class StackUnderflow(Chip8Error):
    pass


class OutOfBounds(Chip8Error):
    pass


class RomLoadError(Chip8Error):
    pass
