import random

import pytest

from chip8vm import Chip8


@pytest.fixture
def machine():
    """Unthrottled machine with a seeded RNG; timer threads not started."""
    return Chip8(hz=0, rng=random.Random(1234))


@pytest.fixture
def run_program(machine):
    def run(words, max_steps=10000):
        machine.load_program(list(words) + [0xFFFF])
        machine.run(max_steps=max_steps)
        return machine
    return run
