from .config import PROGRAM_START
from .errors import RomLoadError
from .logs import log


# ---- Load ROM ----
def load_rom(path, memory, start=PROGRAM_START):
    """Copy a program image verbatim into memory at `start`.

    Returns the number of bytes loaded. Raises RomLoadError when the file
    can't be read or doesn't fit.
    """
    log("Loading ROM:", path)
    try:
        with open(path, "rb") as f:
            rom = f.read()
    except OSError as e:
        raise RomLoadError("Failed to load ROM %s: %s" % (path, e)) from e

    if start + len(rom) > len(memory):
        raise RomLoadError("ROM %s is %d bytes, only %d fit at 0x%03X"
                           % (path, len(rom), len(memory) - start, start))
    memory.write_block(start, rom)
    log("Loaded", len(rom), "bytes at", hex(start))
    return len(rom)
