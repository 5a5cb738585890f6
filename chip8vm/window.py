# pyglet front end: the window is the display sink and the key event source.
# The CPU runs on its own thread; pyglet keeps the main thread and only reads
# the framebuffer when a draw marked it dirty.

import pyglet
from pyglet.window import key

from .config import SCALE, WINDOW_HZ, width, height
from .screen import to_rgba
from .logs import log, toggle_logs

# map binding keys
keymap = {
    key._1: 0x1, key._2: 0x2, key._3: 0x3, key._4: 0xC,
    key.Q: 0x4, key.W: 0x5, key.E: 0x6, key.R: 0xD,
    key.A: 0x7, key.S: 0x8, key.D: 0x9, key.F: 0xE,
    key.Z: 0xA, key.X: 0x0, key.C: 0xB, key.V: 0xF,
}


class Chip8Window(pyglet.window.Window):

    def __init__(self, machine, scale=SCALE):
        self.pixel_scale = scale
        self.machine = machine
        window_width, window_height = width * scale, height * scale
        super().__init__(window_width, window_height, caption="CHIP-8 Emulator", resizable=False, vsync=False)

        machine.display = self
        self.should_draw = True

        self.image = pyglet.image.ImageData(window_width, window_height, 'RGBA',
                                            to_rgba(machine.screen.pixels, scale).tobytes())

        # ---- Performance Counters ----
        self._fps_counter = 0
        self._last_cycles = 0
        self.fps_label = pyglet.text.Label("FPS: 0", font_size=12, x=5, y=window_height - 15,
                                           anchor_x='left', anchor_y='center', color=(255, 255, 255, 255))
        self.cps_label = pyglet.text.Label("Cycles/s: 0", font_size=12, x=5, y=window_height - 30,
                                           anchor_x='left', anchor_y='center', color=(255, 255, 255, 255))

        pyglet.clock.schedule_interval(self.draw_frame, 1 / WINDOW_HZ)
        pyglet.clock.schedule_interval(self._update_bench, 1.0)
        pyglet.clock.schedule_interval(self._watch_machine, 0.25)

    # display sink, called from the CPU thread
    def show(self, screen):
        self.should_draw = True

    def draw_frame(self, dt):
        if self.should_draw:
            self.dispatch_event('on_draw')

    def _update_bench(self, dt):
        cycles = self.machine.cycle_count
        self.fps_label.text = f"FPS: {self._fps_counter / dt:.1f}"
        self.cps_label.text = f"Cycles/s: {(cycles - self._last_cycles) / dt:.0f}"
        self._fps_counter = 0
        self._last_cycles = cycles

    def _watch_machine(self, dt):
        # a fatal error ends the session, a clean halt leaves the last frame up
        if self.machine.error is not None:
            log("Machine failed, closing window")
            self.close()

    # ---- Drawing ----
    def on_draw(self):
        self.clear()
        scaled = to_rgba(self.machine.screen.snapshot(), self.pixel_scale)
        self.image.set_data('RGBA', self.width * 4, scaled.tobytes())
        self.image.blit(0, 0)
        self.fps_label.draw()
        self.cps_label.draw()
        self.should_draw = False
        self._fps_counter += 1

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.close()
        elif symbol == key.F1:
            toggle_logs()
        elif symbol in keymap:
            self.machine.press_key(keymap[symbol])

    def on_key_release(self, symbol, modifiers):
        if symbol in keymap:
            self.machine.release_key(keymap[symbol])

    def close(self):
        pyglet.clock.unschedule(self.draw_frame)
        pyglet.clock.unschedule(self._update_bench)
        pyglet.clock.unschedule(self._watch_machine)
        self.machine.stop()
        super().close()


def run_window(machine, scale=SCALE):
    window = Chip8Window(machine, scale=scale)
    machine.start()
    pyglet.app.run()
    return window
