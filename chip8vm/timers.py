import threading

from .config import TIMER_MAX, TIMER_MODE, TIMER_MODES
from .logs import log


class Timer:
    """8-bit countdown shared between the CPU and one decrement thread.

    Every access takes the lock for a single read-modify-write only.
    """

    def __init__(self, name, value=TIMER_MAX):
        self.name = name
        self._value = value & 0xFF
        self._lock = threading.Lock()

    def get(self):
        with self._lock:
            return self._value

    def set(self, value):
        with self._lock:
            self._value = value & 0xFF

    def decrement(self, step=1):
        # clamps at 0, never wraps
        with self._lock:
            self._value = max(0, self._value - step)
            return self._value

    def __repr__(self):
        return "<Timer %s=%d>" % (self.name, self._value)


class TimerThread(threading.Thread):
    """Takes `step` off a timer every `interval` seconds until stopped."""

    def __init__(self, timer, interval, step):
        super().__init__(name="chip8-%s-timer" % timer.name, daemon=True)
        self.timer = timer
        self.interval = interval
        self.step = step
        self._stop_event = threading.Event()

    def run(self):
        while not self._stop_event.wait(self.interval):
            self.timer.decrement(self.step)

    def stop(self):
        self._stop_event.set()


class TimerPair:
    """The delay and sound timers with their decrement threads."""

    def __init__(self, mode=TIMER_MODE):
        if mode not in TIMER_MODES:
            raise ValueError("Unknown timer mode %r (expected one of %s)"
                             % (mode, ", ".join(sorted(TIMER_MODES))))
        self.mode = mode
        self.interval, self.step = TIMER_MODES[mode]
        self.delay = Timer("delay")
        self.sound = Timer("sound")
        self._threads = []

    @property
    def running(self):
        return any(t.is_alive() for t in self._threads)

    def start(self):
        if self._threads:
            return
        log("Starting timers:", self.mode, "cadence, -%d every %.4fs" % (self.step, self.interval))
        self._threads = [TimerThread(t, self.interval, self.step) for t in (self.delay, self.sound)]
        for t in self._threads:
            t.start()

    def stop(self):
        for t in self._threads:
            t.stop()
        for t in self._threads:
            t.join()
        self._threads = []
