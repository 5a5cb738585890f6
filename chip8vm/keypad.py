from collections import deque
import sys
import threading

import numpy as np

from .logs import log

# map binding keys (byte from the input source -> CHIP-8 key)
KEY_BYTES = {
    ord('1'): 0x1, ord('2'): 0x2, ord('3'): 0x3, ord('4'): 0xC,
    ord('q'): 0x4, ord('w'): 0x5, ord('e'): 0x6, ord('r'): 0xD,
    ord('a'): 0x7, ord('s'): 0x8, ord('d'): 0x9, ord('f'): 0xE,
    ord('z'): 0xA, ord('x'): 0x0, ord('c'): 0xB, ord('v'): 0xF,
}
BYTE_FOR_KEY = {k: b for b, k in KEY_BYTES.items()}

KEY_COUNT = 16


class Keypad:
    """16-key pressed/released latch. Out-of-range keys are ignored."""

    def __init__(self):
        self.keys = np.zeros(KEY_COUNT, dtype=np.uint8)

    def press(self, key):
        if 0 <= key < KEY_COUNT:
            self.keys[key] = 1

    def release(self, key):
        if 0 <= key < KEY_COUNT:
            self.keys[key] = 0

    def is_pressed(self, key):
        if 0 <= key < KEY_COUNT:
            return bool(self.keys[key])
        return False

    def latch(self, key):
        # press `key` and release everything else
        self.keys[:] = 0
        self.press(key)

    def pressed(self):
        return [int(k) for k in np.flatnonzero(self.keys)]


class InputSource:
    """Thread-safe buffer of raw input bytes.

    Fed by a console reader or the window's key handler, drained by the
    key-wait instruction.
    """

    def __init__(self, keymap=KEY_BYTES):
        self.keymap = keymap
        self._bytes = deque()
        self._ready = threading.Condition()

    def feed(self, data):
        if isinstance(data, str):
            data = data.encode()
        if isinstance(data, int):
            data = (data,)
        with self._ready:
            self._bytes.extend(data)
            self._ready.notify_all()

    def poll(self):
        """Next mapped key, or None when nothing mapped is waiting."""
        with self._ready:
            while self._bytes:
                b = self._bytes.popleft()
                key = self.keymap.get(b)
                if key is not None:
                    return key
                log("Ignored input byte", hex(b))
        return None

    def wait(self, timeout=None, cancel=None):
        """Block until a byte is available, without consuming it.

        Returns early (False) once the `cancel` event is set and wake() is called.
        """
        def ready():
            return bool(self._bytes) or (cancel is not None and cancel.is_set())

        with self._ready:
            return self._ready.wait_for(ready, timeout) and bool(self._bytes)

    def wake(self):
        # lets a stopping machine out of wait()
        with self._ready:
            self._ready.notify_all()

    def empty(self):
        with self._ready:
            return not self._bytes


class ConsoleInput(threading.Thread):
    """Reads single bytes from a binary stream into an InputSource."""

    def __init__(self, source, stream=None):
        super().__init__(name="chip8-input", daemon=True)
        self.source = source
        self.stream = stream if stream is not None else sys.stdin.buffer

    def run(self):
        while True:
            b = self.stream.read(1)
            if not b:
                log("Input stream closed")
                return
            self.source.feed(b)
