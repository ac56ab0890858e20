# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# https://chip-8.github.io/links/
#
# COMPATIBILITY QUIRKS TABLE
# https://games.gulrak.net/cadmium/chip8-opcode-table.html#quirk6
#
# MASTERING CHIP-8
# https://github.com/mattmikolay/chip-8/wiki/Mastering-CHIP%E2%80%908
#
# TEST SUITE
# https://github.com/Timendus/chip8-test-suite

from functools import wraps

from .constants import (
    FLAG_REGISTER, FONT_START_ADDRESS, FONT_GLYPH_SIZE,
    QUIRK_LOGIC, QUIRK_SHIFT, QUIRK_LOAD_STORE, QUIRK_JUMP, QUIRK_CLIP,
)
from .dispatch import Dispatcher
from .rom import load_rom
from .state import Machine


# ******************** UTILITIES SECTION
def asm(msg):
    """decorator to print out the ASM of the instruction being called"""
    def decorator(fn):
        @wraps(fn)
        def wrapper_fn(self):
            mem_addr = self.pc - 2      # pc has already been moved past the instruction
            vals = fn(self)             # use the locals() values of each decorated function in the print
            if self.config.debug:
                vals['mem_addr'] = mem_addr
                print(f"opcode: 0x{self.opcode:04x}    " + msg.format(**vals))
        return wrapper_fn
    return decorator


# ******************** CPU SECTION
class Chip8(Machine):
    def __init__(self, config=None, rng=None):
        super().__init__(config, rng)
        self.dispatcher = Dispatcher(self)

    # ********** operand fields
    @property
    def x(self):
        return (self.opcode & 0x0F00) >> 8

    @property
    def y(self):
        return (self.opcode & 0x00F0) >> 4

    @property
    def kk(self):
        return self.opcode & 0x00FF

    @property
    def nnn(self):
        return self.opcode & 0x0FFF

    @property
    def n(self):
        return self.opcode & 0x000F

    def _goto_next_instruction(self):
        self.pc += 0x2

    def _set_flag(self, value):
        self.v_regs[FLAG_REGISTER] = value

    # ********** control flow
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: CLS")
    def _clear_screen(self):
        self.video.clear()
        self.draw_flag = True
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: RET")
    def _return(self):
        """return from a subroutine"""
        self.pc = self.stack.pop()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: JP 0x{address:04x}")
    def _jump(self):
        address = self.nnn
        self.pc = address
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: CALL 0x{address:04x}")
    def _call_addr(self):
        address = self.nnn
        self.stack.push(self.pc)
        self.pc = address
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: JP V{register}, 0x{address:04x}")
    def _jump_plus(self):
        """jump to nnn + V0, or to xnn + Vx with the jump quirk"""
        address = self.nnn
        register = self.x if self.config.has_quirk(QUIRK_JUMP) else 0x0
        self.pc = address + self.v_regs[register]
        return locals()

    # ********** conditional skips
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SE V{x}, {comparison_value}")
    def _skip_if_eq(self):
        x, comparison_value = self.x, self.kk
        if self.v_regs[x] == comparison_value:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SNE V{x}, {comparison_value}")
    def _skip_if_not_eq(self):
        x, comparison_value = self.x, self.kk
        if self.v_regs[x] != comparison_value:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SE V{x}, V{y}")
    def _skip_if_eq_regs(self):
        x, y = self.x, self.y
        if self.v_regs[x] == self.v_regs[y]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SNE V{x}, V{y}")
    def _skip_if_not_eq_regs(self):
        x, y = self.x, self.y
        if self.v_regs[x] != self.v_regs[y]:
            self._goto_next_instruction()
        return locals()

    # ********** registers
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, {value}")
    def _set_vk(self):
        """set the value of one of the 16 variable registers, Vx"""
        x, value = self.x, self.kk
        self.v_regs[x] = value
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD V{x}, {value}")
    def _add_to_vk(self):
        """add to the value already present in one of the variable registers, VF is left alone"""
        x, value = self.x, self.kk
        self.v_regs[x] = (self.v_regs[x] + value) & 0xFF    # keep only the lowest 8 bits from the result and store them in Vx
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, V{y}")
    def _set_vx_to_vy(self):
        """set the value of Vx equal to that of Vy"""
        x, y = self.x, self.y
        self.v_regs[x] = self.v_regs[y]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: OR V{x}, V{y}")
    def _set_vx_or_vy(self):
        """set the value of Vx to Vx OR Vy"""
        x, y = self.x, self.y
        self.v_regs[x] |= self.v_regs[y]
        if self.config.has_quirk(QUIRK_LOGIC):
            self._set_flag(0)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: AND V{x}, V{y}")
    def _set_vx_and_vy(self):
        """set the value of Vx to Vx AND Vy"""
        x, y = self.x, self.y
        self.v_regs[x] &= self.v_regs[y]
        if self.config.has_quirk(QUIRK_LOGIC):
            self._set_flag(0)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: XOR V{x}, V{y}")
    def _set_vx_xor_vy(self):
        """set the value of Vx to Vx XOR Vy"""
        x, y = self.x, self.y
        self.v_regs[x] ^= self.v_regs[y]
        if self.config.has_quirk(QUIRK_LOGIC):
            self._set_flag(0)
        return locals()

    # the arithmetic family writes VF after Vx, so VF holds the flag even when x is F
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD V{x}, V{y}")
    def _add_vx_vy(self):
        """set the value of Vx to Vx + Vy, VF = carry"""
        x, y = self.x, self.y
        total = self.v_regs[x] + self.v_regs[y]
        self.v_regs[x] = total & 0xFF     # keep only the lowest 8 bits from the result and store them in Vx
        self._set_flag(1 if total > 255 else 0)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SUB V{x}, V{y}")
    def _sub_vx_vy(self):
        """set the value of Vx to Vx - Vy, VF = NOT borrow"""
        x, y = self.x, self.y
        not_borrow = 1 if self.v_regs[x] > self.v_regs[y] else 0
        self.v_regs[x] = (self.v_regs[x] - self.v_regs[y]) & 0xFF
        self._set_flag(not_borrow)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SHR V{x} 1")
    def _shr(self):
        """set Vx equal to Vx SHR 1"""
        x, y = self.x, self.y
        if self.config.has_quirk(QUIRK_SHIFT):
            self.v_regs[x] = self.v_regs[y]
        LSB = self.v_regs[x] & 0x1
        self.v_regs[x] = self.v_regs[x] >> 1
        self._set_flag(LSB)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SUBN V{x}, V{y}")
    def _subn_vx_vy(self):
        """set the value of Vx to Vy - Vx, VF = NOT borrow"""
        x, y = self.x, self.y
        not_borrow = 1 if self.v_regs[y] > self.v_regs[x] else 0
        self.v_regs[x] = (self.v_regs[y] - self.v_regs[x]) & 0xFF
        self._set_flag(not_borrow)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SHL V{x} 1")
    def _shl(self):
        """set Vx equal to Vx SHL 1"""
        x, y = self.x, self.y
        if self.config.has_quirk(QUIRK_SHIFT):
            self.v_regs[x] = self.v_regs[y]
        MSB = (self.v_regs[x] & 0x80) >> 7
        self.v_regs[x] = (self.v_regs[x] << 1) & 0xFF   # multiply by 2 and keep only the lowest 8 bits from the result
        self._set_flag(MSB)
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: RND V{x}, 0x{kk:02x}")
    def _random_byte_and(self):
        x, kk = self.x, self.kk
        rnd = self.random.next_byte()
        self.v_regs[x] = rnd & kk
        return locals()

    # ********** index register and memory
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD I, 0x{value:03x}")
    def _set_idx(self):
        """set the value of the I register"""
        value = self.nnn
        self.idx = value
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ADD I, V{register}")
    def _add_to_idx(self):
        """set I = I + Vx, no overflow flag"""
        register = self.x
        self.idx += self.v_regs[register]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD F, V{register}")
    def _select_char(self):
        """set I to location of sprite for digit Vx"""
        register = self.x
        self.idx = FONT_START_ADDRESS + self.v_regs[register] * FONT_GLYPH_SIZE
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD B, V{x}")
    def _bcd_repr(self):
        """takes the decimal value of Vx and the hundreds digit in memory at I, the tens digit at I+1, the ones digit at I+2"""
        x = self.x
        value = self.v_regs[x]
        hundreds, tens, ones = value // 100, (value // 10) % 10, value % 10
        self.mem.write(self.idx, (hundreds, tens, ones))
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD [I], V{x}")
    def _store_vregs(self):
        """store registers V0 through Vx (included) in memory starting at location I"""
        x = self.x
        self.mem.write(self.idx, self.v_regs[:x+1])
        if self.config.has_quirk(QUIRK_LOAD_STORE):
            self.idx += x + 1
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, [I]")
    def _load_vregs(self):
        """read registers V0 through Vx (included) from memory starting at location I"""
        x = self.x
        self.v_regs[:x+1] = self.mem.read(self.idx, x + 1)
        if self.config.has_quirk(QUIRK_LOAD_STORE):
            self.idx += x + 1
        return locals()

    # ********** input
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SKP V{x}")
    def _skip_if_pressed(self):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is pressed"""
        x = self.x
        key = self.v_regs[x]
        if self.keypad[key]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: SKNP V{x}")
    def _skip_if_not_pressed(self):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is NOT pressed"""
        x = self.x
        key = self.v_regs[x]
        if not self.keypad[key]:
            self._goto_next_instruction()
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, K")
    def _wait_keypress(self):
        """wait for a key press and store its value in Vx"""
        x = self.x
        key = self.keypad.first()
        if key is None:
            # park on this instruction, cycle() resumes once a key is down
            self.awaiting_key = True
            self.key_register = x
            self.pc -= 0x2
        else:
            self.v_regs[x] = key
        return locals()

    # ********** timers
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD V{x}, DT")
    def _set_vx_dt(self):
        """set Vx = DT (delay timer) value"""
        x = self.x
        self.v_regs[x] = self.dt
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD DT, V{x}")
    def _set_dt_vx(self):
        """set DT (delay timer) = Vx"""
        x = self.x
        self.dt = self.v_regs[x]
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: LD ST, V{register}")
    def _set_st(self):
        """set ST = Vx"""
        register = self.x
        self.st = self.v_regs[register]
        return locals()

    # ********** video
    @asm("mem_addr: 0x{mem_addr:04x}    instruction: DRW V{x}, V{y}, {n_bytes}")
    def _to_screen(self):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        x, y, n_bytes = self.x, self.y, self.n
        w, h = self.video.w, self.video.h
        origin_x, origin_y = self.v_regs[x] % w, self.v_regs[y] % h
        clip = self.config.has_quirk(QUIRK_CLIP)
        self._set_flag(0)
        for row in range(n_bytes):
            sprite_byte = self.mem[self.idx + row]
            if clip and origin_y + row >= h:
                break
            y_coordinate = (origin_y + row) % h
            for col in range(8):   # step through each byte's bits, MSB first
                if not sprite_byte & (0x80 >> col):
                    continue
                if clip and origin_x + col >= w:
                    break
                x_coordinate = (origin_x + col) % w
                # sprites are XORed onto the existing screen and if this
                # causes any pixel to be erased then VF=1, otherwise VF=0
                if self.video.flip(x_coordinate, y_coordinate):
                    self._set_flag(1)
        self.draw_flag = True
        return locals()

    @asm("mem_addr: 0x{mem_addr:04x}    instruction: ??? (ignored)")
    def _noop(self):
        """bound to every opcode that isn't a CHIP-8 instruction"""
        return locals()

    # ********** cycle driver
    def cycle(self):
        """emulate one machine cycle: fetch, advance pc, decode + execute"""
        if self.awaiting_key:
            key = self.keypad.first()
            if key is None:
                return
            self.v_regs[self.key_register] = key
            self.awaiting_key = False
            self._goto_next_instruction()
            return
        # fetch (each instruction is two bytes long, big-endian)
        self.opcode = self.mem[self.pc] << 8 | self.mem[self.pc + 1]
        self._goto_next_instruction()
        self.dispatcher.dispatch()

    def run(self, cycles):
        for _ in range(cycles):
            self.cycle()

    def load_rom(self, source, truncate=False):
        """load a ROM from a path or a bytes-like object at the program start address"""
        return load_rom(self.mem, source, truncate=truncate, debug=self.config.debug)
