from .cpu import Chip8, StepStatus
from .errors import Chip8Error, DecodeError, OutOfBounds, RomLoadError, StackOverflow, StackUnderflow
from .keypad import InputSource, Keypad
from .loader import load_rom
from .memory import Memory, Stack
from .registers import Registers
from .screen import ConsoleDisplay, NullDisplay, Screen
from .timers import Timer, TimerPair

__version__ = "0.1.0"
