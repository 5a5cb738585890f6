import sys
import threading

import numpy as np

from .config import width, height
from .errors import OutOfBounds

OFF, ON = 0, 1


class Screen:
    """64x32 framebuffer of on/off pixels, indexed [row, column]."""

    def __init__(self, w=width, h=height):
        self.width = w
        self.height = h
        self.pixels = np.zeros((h, w), dtype=np.uint8)
        # held while a draw or clear is in progress; readers on other threads take snapshot()
        self.lock = threading.Lock()

    def clear(self):
        with self.lock:
            self.pixels.fill(OFF)

    def snapshot(self):
        with self.lock:
            return self.pixels.copy()

    def get_pixel(self, x, y):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBounds("Pixel out of bounds: (%d, %d)" % (x, y))
        return int(self.pixels[y, x])

    def set_pixel(self, x, y, value):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBounds("Pixel out of bounds: (%d, %d)" % (x, y))
        self.pixels[y, x] = value

    def draw_sprite(self, x, y, rows):
        """XOR `rows` (one byte per row, MSB leftmost) at (x, y).

        Coordinates wrap at both edges. Returns True when any lit pixel
        was switched off.
        """
        x0 = x % self.width
        y0 = y % self.height
        collision = False
        with self.lock:
            for row, sprite in enumerate(rows):
                if sprite == 0:
                    continue
                py = (y0 + row) % self.height
                for bit in range(8):
                    if sprite & (0x80 >> bit):
                        px = (x0 + bit) % self.width
                        if self.get_pixel(px, py) == ON:
                            self.set_pixel(px, py, OFF)
                            collision = True
                        else:
                            self.set_pixel(px, py, ON)
        return collision

    def lit(self):
        return int(self.pixels.sum())

    def render(self, on="⬜", off="⬛"):
        return "\n".join("".join(on if p else off for p in row) for row in self.pixels)


def to_rgba(pixels, scale=1):
    """Framebuffer rows -> RGBA array, flipped so row 0 ends up at the top."""
    small = np.zeros((pixels.shape[0], pixels.shape[1], 4), dtype=np.uint8)
    small[..., :3] = (pixels[::-1] * 255)[..., None]
    small[..., 3] = 255
    if scale != 1:
        small = np.repeat(np.repeat(small, scale, axis=0), scale, axis=1)
    return small


# ---- Display sinks ----
# Anything with a show(screen) method can be handed to the machine.

class NullDisplay:
    def show(self, screen):
        pass


class ConsoleDisplay:
    """Clears the terminal and prints the grid on every draw."""

    CLEAR = "\x1b[2J\x1b[H"

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdout

    def show(self, screen):
        self.stream.write(self.CLEAR)
        self.stream.write(screen.render())
        self.stream.write("\n")
        self.stream.flush()
