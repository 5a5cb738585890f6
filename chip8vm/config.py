# ---- Configuration ----
# Machine layout (Cowgod's CHIP-8 Technical Reference) and run defaults.

MEMORY_SIZE = 4096
PROGRAM_START = 0x200       # first program byte, pc starts here
FONT_START = 0x050          # 16 glyphs x 5 bytes
STACK_CAPACITY = 12
REGISTER_COUNT = 16

width, height = 64, 32

TIMER_MAX = 255             # both timers boot at 255
HALT_INSTRUCTION = 0xFFFF   # end-of-program padding

# instructions per second, 0 means run unthrottled
CPU_HZ = 10

# "fine": -1 every 1/60s, "coarse": -60 every second
TIMER_MODE = "fine"
TIMER_MODES = {
    "fine": (1 / 60, 1),
    "coarse": (1.0, 60),
}

# window front end
SCALE = 10
WINDOW_HZ = 60
