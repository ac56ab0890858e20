import random
import time

from .config import Config
from .constants import (
    MEMORY_SIZE, REGISTER_COUNT, STACK_LEVELS, KEY_COUNT,
    SCREEN_WIDTH, SCREEN_HEIGHT,
    ROM_START_ADDRESS, FONT_START_ADDRESS, C8_FONTS,
    ADDRESS_WRAP, STACK_FAIL, STACK_WRAP,
)
from .errors import AddressError, StackOverflowError, StackUnderflowError


# ******************** MEMORY SECTION
# ********** WRAPS A LIST TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
class Memory:
    def __init__(self, policy=ADDRESS_WRAP, size=MEMORY_SIZE):
        self.policy = policy
        self.size = size
        self.inner = [0] * size
        self.load_fonts()

    def load_fonts(self):
        self.inner[FONT_START_ADDRESS:FONT_START_ADDRESS+len(C8_FONTS)] = C8_FONTS

    def clear(self):
        self.inner = [0] * self.size
        self.load_fonts()

    def resolve(self, address):
        """map an address on a memory cell according to the overflow policy"""
        if 0 <= address < self.size:
            return address
        if self.policy == ADDRESS_WRAP:
            return address % self.size
        raise AddressError(address)

    def __getitem__(self, address):
        return self.inner[self.resolve(address)]

    def __setitem__(self, address, value):
        self.inner[self.resolve(address)] = value & 0xFF

    def __len__(self):
        return self.size

    def read(self, address, count):
        """return `count` consecutive bytes starting at address"""
        return [self[address + i] for i in range(count)]

    def write(self, address, values):
        """with the strict policy nothing is written unless every byte fits"""
        values = list(values)
        if values:
            self.resolve(address)
            self.resolve(address + len(values) - 1)
        for i, value in enumerate(values):
            self[address + i] = value

    def load(self, address, data):
        """bulk copy used to load ROM images, data must fit in memory"""
        if address < 0 or address + len(data) > self.size:
            raise AddressError(address + len(data) - 1)
        self.inner[address:address+len(data)] = list(data)


# ********** WRAPS A LIST TO REPRESENT A STACK WITH A LIMITED SIZE OF 16 ADDRESSES
class Stack:
    def __init__(self, policy=STACK_FAIL, levels=STACK_LEVELS):
        self.policy = policy
        self.levels = levels
        self.slots = [0] * levels
        self.sp = 0

    def __len__(self):
        return self.sp

    def __repr__(self):
        return f"Stack(sp={self.sp}, slots={[hex(a) for a in self.slots[:self.sp]]})"

    def clear(self):
        self.slots = [0] * self.levels
        self.sp = 0

    def push(self, address):
        if self.sp >= self.levels:
            if self.policy == STACK_FAIL:
                raise StackOverflowError()
            if self.policy == STACK_WRAP:
                self.sp = 0
            else:
                # clamp: the top slot gets overwritten and sp stays at the limit
                self.slots[self.levels - 1] = address & 0xFFFF
                return
        self.slots[self.sp] = address & 0xFFFF
        self.sp += 1

    def pop(self):
        if self.sp <= 0:
            if self.policy == STACK_FAIL:
                raise StackUnderflowError()
            if self.policy == STACK_WRAP:
                self.sp = self.levels
            else:
                return self.slots[0]
        self.sp -= 1
        return self.slots[self.sp]


# ******************** I/O SECTION
class Keypad:
    """16 keys, set and cleared by the host between two cycles"""
    def __init__(self, count=KEY_COUNT):
        self.keys = [False] * count

    def __getitem__(self, key):
        # values outside the keypad never match a pressed key
        if 0 <= key < len(self.keys):
            return self.keys[key]
        return False

    def __setitem__(self, key, value):
        if not 0 <= key < len(self.keys):
            raise IndexError(f"There is no key 0x{key:x} on the CHIP-8 keypad")
        self.keys[key] = bool(value)

    def __repr__(self):
        return f"Keypad(pressed={self.pressed()})"

    def press(self, key):
        self[key] = True

    def release(self, key):
        self[key] = False

    def clear(self):
        self.keys = [False] * len(self.keys)

    def pressed(self):
        return [k for k, down in enumerate(self.keys) if down]

    def untouched(self):
        return not any(self.keys)

    def first(self):
        """get the lowest key currently pressed, None if there's none"""
        for k, down in enumerate(self.keys):
            if down:
                return k
        return None


class Video:
    """monochrome framebuffer, each cell is either 0 (OFF) or 1 (ON)"""
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT):
        self.w, self.h = w, h
        self.buffer = [0] * h * w

    def __str__(self):
        return "\n".join("".join("#" if p else "." for p in row) for row in self.rows())

    def clear(self):
        self.buffer = [0] * self.h * self.w

    def pixel(self, x, y):
        """return 1 if pixel is ON, return 0 if pixel is OFF"""
        return self.buffer[y * self.w + x]

    def flip(self, x, y):
        """XOR the pixel with ON and return its previous state"""
        i = y * self.w + x
        previous = self.buffer[i]
        self.buffer[i] = previous ^ 1
        return previous

    def rows(self):
        return [self.buffer[y*self.w:(y+1)*self.w] for y in range(self.h)]

    def lit(self):
        return sum(self.buffer)


class RandomByteSource:
    """
    uniform generator over 0..255
    any object exposing randint(a, b) can be plugged in, e.g. random.Random(42) in tests
    """
    def __init__(self, rng=None):
        self.rng = rng if rng is not None else random.Random(time.time_ns())

    def next_byte(self):
        return self.rng.randint(0, 255)


# ******************** MACHINE STATE SECTION
class Machine:
    """registers, memory, stack, timers and I/O cells the instructions operate on"""
    def __init__(self, config=None, rng=None):
        self.config = config if config is not None else Config()
        self.random = rng if isinstance(rng, RandomByteSource) else RandomByteSource(rng)
        self.mem = Memory(self.config.address_policy)
        self.stack = Stack(self.config.stack_policy)
        self.keypad = Keypad()
        self.video = Video()
        self._zero()

    def _zero(self):
        self.v_regs = [0] * REGISTER_COUNT
        self._idx = 0   # specify where the sprites reside in memory
        self._pc = ROM_START_ADDRESS
        self.dt = 0     # delay timer, active when non-zero
        self.st = 0     # sound timer, active when non-zero
        self.opcode = 0
        self.awaiting_key = False
        self.key_register = 0
        self.draw_flag = False

    def reset(self):
        """bring the machine back to its power-on state, the random source is kept"""
        self.mem.clear()
        self.stack.clear()
        self.keypad.clear()
        self.video.clear()
        self._zero()

    @property
    def idx(self):
        return self._idx

    @idx.setter
    def idx(self, value):
        self._idx = value & 0xFFFF

    @property
    def pc(self):
        return self._pc

    @pc.setter
    def pc(self, value):
        self._pc = value & 0xFFFF

    @property
    def sound_on(self):
        return self.st > 0

    def tick_timers(self):
        """decrement delay/sound timers, to be called by the host at a fixed rate (60Hz)"""
        if self.dt > 0:
            self.dt -= 1
        if self.st > 0:
            self.st -= 1

    def __str__(self):
        registers = f"PC_REGISTER:0x{self.pc:04x} | IDX_REGISTER:0x{self.idx:04x} | VARIABLE_REGISTERS:{self.v_regs}"
        timers = f"DELAY_TIMER:{self.dt} | SOUND_TIMER:{self.st}"
        stack = f"STACK:{self.stack}"
        flags = f"OPCODE:0x{self.opcode:04x} | AWAITING_KEY:{self.awaiting_key} | DRAW:{self.draw_flag}"
        return f"{registers}\n{timers}\n{stack}\n{flags}"
