from .config import REGISTER_COUNT

VF = 0xF  # carry / borrow / shifted-out bit


class Registers:
    """V0..VF plus the 16-bit address register I.

    Register ids come from decoded nibbles so they are always 0x0-0xF.
    """

    def __init__(self):
        self.V = bytearray(REGISTER_COUNT)
        self.I = 0

    def read(self, x):
        return self.V[x]

    def write(self, x, value):
        self.V[x] = value & 0xFF

    def read_i(self):
        return self.I

    def write_i(self, value):
        self.I = value & 0xFFFF

    @property
    def flag(self):
        return self.V[VF]

    @flag.setter
    def flag(self, value):
        self.V[VF] = 1 if value else 0

    def __repr__(self):
        regs = " ".join("V%X=%02X" % (i, v) for i, v in enumerate(self.V))
        return "<Registers %s I=%04X>" % (regs, self.I)
