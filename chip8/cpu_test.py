import io
import random
import unittest
from contextlib import redirect_stdout

from chip8.config import Config
from chip8.constants import FONT_START_ADDRESS, ROM_START_ADDRESS
from chip8.cpu import Chip8
from chip8.errors import AddressError, StackOverflowError, StackUnderflowError


class FixedRng:
    def __init__(self, value):
        self.value = value

    def randint(self, a, b):
        return self.value


def program(*opcodes, config=None, rng=None):
    """build a chip with the given opcodes laid out from the program start address"""
    chip = Chip8(config, rng)
    for i, op in enumerate(opcodes):
        chip.mem[ROM_START_ADDRESS + 2*i] = op >> 8
        chip.mem[ROM_START_ADDRESS + 2*i + 1] = op & 0xFF
    return chip


def snapshot(chip):
    return (list(chip.v_regs), list(chip.mem.inner), chip.idx, list(chip.stack.slots), chip.stack.sp,
            chip.dt, chip.st, list(chip.video.buffer), list(chip.keypad.keys), chip.awaiting_key)


class TestCycle(unittest.TestCase):
    def test_fetch_is_big_endian(self):
        chip = program(0xA230)
        chip.cycle()
        self.assertEqual(chip.opcode, 0xA230)
        self.assertEqual(chip.idx, 0x230)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 2)

    def test_run(self):
        chip = program(0x6001, 0x7002, 0x7003)
        chip.run(3)
        self.assertEqual(chip.v_regs[0], 6)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 6)

    def test_cycle_does_not_touch_timers(self):
        chip = program(0x6005, 0xF015, 0xF018)
        chip.run(3)
        self.assertEqual((chip.dt, chip.st), (5, 5))
        chip.tick_timers()
        self.assertEqual((chip.dt, chip.st), (4, 4))

    def test_unknown_opcodes_are_noops(self):
        for op in (0x0123, 0x8008, 0x800F, 0xE000, 0xE0A3, 0xF000, 0xF0FF, 0xF066, 0xF019, 0xFFFF):
            with self.subTest(opcode=hex(op)):
                chip = program(op)
                chip.v_regs[:] = range(16)
                chip.idx = 0x300
                before = snapshot(chip)
                chip.cycle()
                self.assertEqual(snapshot(chip), before)
                self.assertEqual(chip.pc, ROM_START_ADDRESS + 2)

    def test_debug_trace(self):
        chip = program(0xA230, config=Config(debug=True))
        out = io.StringIO()
        with redirect_stdout(out):
            chip.cycle()
        self.assertIn("opcode: 0xa230", out.getvalue())
        self.assertIn("mem_addr: 0x0200    instruction: LD I, 0x230", out.getvalue())

    def test_no_trace_by_default(self):
        chip = program(0xA230)
        out = io.StringIO()
        with redirect_stdout(out):
            chip.cycle()
        self.assertEqual(out.getvalue(), "")

    def test_reset(self):
        chip = program(0x6A42, 0x00E0)
        chip.run(1)
        chip.video.flip(1, 1)
        chip.reset()
        self.assertEqual(chip.v_regs, [0] * 16)
        self.assertEqual(chip.pc, ROM_START_ADDRESS)
        self.assertEqual(chip.mem[ROM_START_ADDRESS], 0)
        self.assertEqual(chip.mem[FONT_START_ADDRESS], 0xF0)
        self.assertEqual(chip.video.lit(), 0)


class TestControlFlow(unittest.TestCase):
    def test_jump(self):
        chip = program(0x1ABC)
        chip.cycle()
        self.assertEqual(chip.pc, 0xABC)

    def test_call_and_return(self):
        chip = program(0x2300)
        chip.mem[0x300], chip.mem[0x301] = 0x00, 0xEE
        chip.cycle()
        self.assertEqual(chip.pc, 0x300)
        self.assertEqual(chip.stack.slots[0], ROM_START_ADDRESS + 2)
        self.assertEqual(chip.stack.sp, 1)
        chip.cycle()
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 2)
        self.assertEqual(chip.stack.sp, 0)

    def test_jump_plus_v0(self):
        chip = program(0x6010, 0xB300)
        chip.run(2)
        self.assertEqual(chip.pc, 0x310)

    def test_jump_quirk_uses_vx(self):
        chip = program(0x6010, 0x6320, 0xB300, config=Config(quirks={"jump"}))
        chip.run(3)
        self.assertEqual(chip.pc, 0x320)

    def test_stack_overflow(self):
        # a subroutine calling itself
        chip = program(0x2200)
        chip.run(16)
        self.assertEqual(chip.stack.sp, 16)
        with self.assertRaises(StackOverflowError):
            chip.cycle()

    def test_return_with_empty_stack(self):
        chip = program(0x00EE)
        with self.assertRaises(StackUnderflowError):
            chip.cycle()

    def test_clear_screen(self):
        chip = program(0x00E0)
        chip.video.flip(3, 4)
        chip.cycle()
        self.assertEqual(chip.video.lit(), 0)
        self.assertTrue(chip.draw_flag)


class TestSkips(unittest.TestCase):
    def check(self, opcodes, skipped):
        chip = program(*opcodes)
        chip.run(len(opcodes) - 1)
        start = chip.pc
        chip.cycle()
        self.assertEqual(chip.pc, start + (4 if skipped else 2))

    def test_skip_if_eq(self):
        self.check([0x6142, 0x3142], True)
        self.check([0x6142, 0x3143], False)

    def test_skip_if_not_eq(self):
        self.check([0x6142, 0x4143], True)
        self.check([0x6142, 0x4142], False)

    def test_skip_if_eq_regs(self):
        self.check([0x6107, 0x6207, 0x5120], True)
        self.check([0x6107, 0x6208, 0x5120], False)

    def test_skip_if_not_eq_regs(self):
        self.check([0x6107, 0x6208, 0x9120], True)
        self.check([0x6107, 0x6207, 0x9120], False)

    def test_immediate_is_masked_not_multiplied(self):
        chip = program(0x6A42)
        chip.cycle()
        self.assertEqual(chip.v_regs[0xA], 0x42)


class TestArithmetic(unittest.TestCase):
    def run_8xy(self, op, vx, vy, x=1, y=2, config=None):
        chip = program(op, config=config)
        chip.v_regs[x], chip.v_regs[y] = vx, vy
        chip.cycle()
        return chip

    def test_add_immediate_wraps_without_flag(self):
        chip = program(0x61FF, 0x7102)
        chip.v_regs[0xF] = 7
        chip.run(2)
        self.assertEqual(chip.v_regs[1], 1)
        self.assertEqual(chip.v_regs[0xF], 7)

    def test_copy_and_logic(self):
        self.assertEqual(self.run_8xy(0x8120, 1, 9).v_regs[1], 9)
        self.assertEqual(self.run_8xy(0x8121, 0b1100, 0b1010).v_regs[1], 0b1110)
        self.assertEqual(self.run_8xy(0x8122, 0b1100, 0b1010).v_regs[1], 0b1000)
        self.assertEqual(self.run_8xy(0x8123, 0b1100, 0b1010).v_regs[1], 0b0110)

    def test_logic_leaves_flag_alone(self):
        chip = program(0x8121)
        chip.v_regs[0xF] = 1
        chip.cycle()
        self.assertEqual(chip.v_regs[0xF], 1)

    def test_logic_quirk_resets_flag(self):
        chip = program(0x8121, config=Config(quirks={"logic"}))
        chip.v_regs[0xF] = 1
        chip.cycle()
        self.assertEqual(chip.v_regs[0xF], 0)

    def test_add_with_carry(self):
        chip = self.run_8xy(0x8124, 250, 10)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (4, 1))
        chip = self.run_8xy(0x8124, 1, 1)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (2, 0))

    def test_sub_with_borrow(self):
        chip = self.run_8xy(0x8125, 5, 10)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (251, 0))
        chip = self.run_8xy(0x8125, 10, 5)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (5, 1))

    def test_sub_equal_operands_clears_flag(self):
        chip = self.run_8xy(0x8125, 7, 7)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (0, 0))

    def test_reverse_sub(self):
        chip = self.run_8xy(0x8127, 5, 10)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (5, 1))
        chip = self.run_8xy(0x8127, 10, 5)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (251, 0))

    def test_shift_right(self):
        chip = self.run_8xy(0x8126, 0b101, 0)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (0b10, 1))
        chip = self.run_8xy(0x8126, 0b100, 0)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (0b10, 0))

    def test_shift_left(self):
        chip = self.run_8xy(0x812E, 0x81, 0)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (0x02, 1))
        chip = self.run_8xy(0x812E, 0x41, 0)
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (0x82, 0))

    def test_shift_quirk_uses_vy(self):
        chip = self.run_8xy(0x8126, 0xFF, 0b110, config=Config(quirks={"shift"}))
        self.assertEqual((chip.v_regs[1], chip.v_regs[0xF]), (0b11, 0))

    def test_flag_wins_when_x_is_vf(self):
        chip = self.run_8xy(0x8FE4, 200, 100, x=0xF, y=0xE)
        self.assertEqual(chip.v_regs[0xF], 1)

    def test_random_byte_is_masked(self):
        chip = program(0xC30F, rng=FixedRng(0xAB))
        chip.cycle()
        self.assertEqual(chip.v_regs[3], 0x0B)

    def test_random_with_seeded_source(self):
        chip = program(*[0xC0FF] * 50, rng=random.Random(1234))
        for _ in range(50):
            chip.cycle()
            self.assertTrue(0 <= chip.v_regs[0] <= 255)


class TestMemory(unittest.TestCase):
    def test_add_to_index_has_no_flag(self):
        chip = program(0xAFFF, 0x6110, 0xF11E)
        chip.v_regs[0xF] = 9
        chip.run(3)
        self.assertEqual(chip.idx, 0x100F)
        self.assertEqual(chip.v_regs[0xF], 9)

    def test_font_address(self):
        chip = program(0x6407, 0xF429)
        chip.run(2)
        self.assertEqual(chip.idx, FONT_START_ADDRESS + 35)

    def test_bcd(self):
        chip = program(0x62FF, 0xA300, 0xF233)
        chip.run(3)
        self.assertEqual(chip.mem.read(0x300, 3), [2, 5, 5])

    def test_bcd_small_value(self):
        chip = program(0x6207, 0xA300, 0xF233)
        chip.run(3)
        self.assertEqual(chip.mem.read(0x300, 3), [0, 0, 7])

    def test_store_and_load_registers(self):
        chip = program(0xA400, 0xF355, 0xA400, 0xF265)
        chip.v_regs[:5] = [1, 2, 3, 4, 5]
        chip.run(2)
        self.assertEqual(chip.mem.read(0x400, 5), [1, 2, 3, 4, 0])
        self.assertEqual(chip.idx, 0x400)
        chip.v_regs[:5] = [0] * 5
        chip.run(2)
        self.assertEqual(chip.v_regs[:5], [1, 2, 3, 0, 0])

    def test_load_store_quirk_moves_index(self):
        chip = program(0xA400, 0xF355, config=Config(quirks={"load_store"}))
        chip.run(2)
        self.assertEqual(chip.idx, 0x404)

    def test_store_wraps_around_memory(self):
        chip = program(0xAFFF, 0xF155)
        chip.v_regs[0], chip.v_regs[1] = 0x11, 0x22
        chip.run(2)
        self.assertEqual(chip.mem[0xFFF], 0x11)
        self.assertEqual(chip.mem[0x000], 0x22)


    def test_strict_store_past_memory_writes_nothing(self):
        chip = program(0xAFFE, 0xF255, config=Config(address_policy="strict"))
        chip.v_regs[:3] = [7, 8, 9]
        chip.cycle()
        with self.assertRaises(AddressError):
            chip.cycle()
        self.assertEqual(chip.mem.read(0xFFE, 2), [0, 0])

    def test_strict_bcd_past_memory_writes_nothing(self):
        chip = program(0xAFFF, 0xF033, config=Config(address_policy="strict"))
        chip.v_regs[0] = 123
        chip.cycle()
        with self.assertRaises(AddressError):
            chip.cycle()
        self.assertEqual(chip.mem[0xFFF], 0)


class TestInput(unittest.TestCase):
    def test_skip_if_pressed(self):
        chip = program(0x6105, 0xE19E)
        chip.keypad.press(5)
        chip.run(2)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 6)
        chip = program(0x6105, 0xE19E)
        chip.run(2)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 4)

    def test_skip_if_not_pressed(self):
        chip = program(0x6105, 0xE1A1)
        chip.run(2)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 6)
        chip = program(0x6105, 0xE1A1)
        chip.keypad.press(5)
        chip.run(2)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 4)

    def test_key_value_outside_keypad_is_never_pressed(self):
        chip = program(0x6120, 0xE1A1)
        chip.keypad.keys = [True] * 16
        chip.run(2)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 6)

    def test_wait_for_key_stalls(self):
        chip = program(0xF30A)
        chip.cycle()
        self.assertTrue(chip.awaiting_key)
        self.assertEqual(chip.pc, ROM_START_ADDRESS)
        chip.cycle()
        self.assertEqual(chip.pc, ROM_START_ADDRESS)
        self.assertEqual(chip.opcode, 0xF30A)
        chip.keypad.press(0xB)
        chip.cycle()
        self.assertFalse(chip.awaiting_key)
        self.assertEqual(chip.v_regs[3], 0xB)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 2)

    def test_wait_for_key_with_key_down(self):
        chip = program(0xF30A)
        chip.keypad.press(9)
        chip.keypad.press(4)
        chip.cycle()
        self.assertFalse(chip.awaiting_key)
        self.assertEqual(chip.v_regs[3], 4)
        self.assertEqual(chip.pc, ROM_START_ADDRESS + 2)


class TestTimers(unittest.TestCase):
    def test_delay_timer_round_trip(self):
        chip = program(0x6A09, 0xFA15, 0xFB07)
        chip.run(3)
        self.assertEqual(chip.v_regs[0xB], 9)

    def test_sound_timer(self):
        chip = program(0x6A02, 0xFA18)
        chip.run(2)
        self.assertTrue(chip.sound_on)
        chip.tick_timers()
        chip.tick_timers()
        self.assertFalse(chip.sound_on)
        chip.tick_timers()
        self.assertEqual(chip.st, 0)


class TestDraw(unittest.TestCase):
    def test_draw_twice_collides(self):
        chip = program(0xF029, 0xD015, 0xD015)     # glyph for 0 at (0, 0)
        chip.run(2)
        self.assertEqual(chip.v_regs[0xF], 0)
        self.assertEqual(chip.video.lit(), 14)
        self.assertEqual(chip.video.rows()[0][:5], [1, 1, 1, 1, 0])
        self.assertEqual(chip.video.rows()[1][:5], [1, 0, 0, 1, 0])
        chip.cycle()
        self.assertEqual(chip.v_regs[0xF], 1)
        self.assertEqual(chip.video.lit(), 0)

    def test_partial_overlap_collides(self):
        chip = program(0xA300, 0xD011, 0xA301, 0xD011)
        chip.mem[0x300], chip.mem[0x301] = 0b10000000, 0b11000000
        chip.run(4)
        self.assertEqual(chip.v_regs[0xF], 1)
        self.assertEqual(chip.video.pixel(0, 0), 0)
        self.assertEqual(chip.video.pixel(1, 0), 1)

    def test_flag_is_cleared_before_drawing(self):
        chip = program(0xA300, 0xD011)
        chip.mem[0x300] = 0xFF
        chip.v_regs[0xF] = 1
        chip.run(2)
        self.assertEqual(chip.v_regs[0xF], 0)

    def test_sprite_wraps_around_edges(self):
        chip = program(0x613E, 0x621F, 0xA300, 0xD122)
        chip.mem[0x300], chip.mem[0x301] = 0xFF, 0x80
        chip.run(4)
        lit = {(x, y) for y, row in enumerate(chip.video.rows()) for x, p in enumerate(row) if p}
        self.assertEqual(lit, {(62, 31), (63, 31), (0, 31), (1, 31), (2, 31), (3, 31), (4, 31), (5, 31), (62, 0)})

    def test_origin_wraps(self):
        chip = program(0x6143, 0x6222, 0xA300, 0xD121)
        chip.mem[0x300] = 0x80
        chip.run(4)
        self.assertEqual(chip.video.pixel(3, 2), 1)

    def test_clip_quirk(self):
        chip = program(0x613E, 0x621F, 0xA300, 0xD122, config=Config(quirks={"clip"}))
        chip.mem[0x300], chip.mem[0x301] = 0xFF, 0x80
        chip.run(4)
        lit = {(x, y) for y, row in enumerate(chip.video.rows()) for x, p in enumerate(row) if p}
        self.assertEqual(lit, {(62, 31), (63, 31)})

    def test_zero_height_sprite(self):
        chip = program(0xD010)
        chip.v_regs[0xF] = 1
        chip.cycle()
        self.assertEqual(chip.v_regs[0xF], 0)
        self.assertEqual(chip.video.lit(), 0)


if __name__ == "__main__":
    unittest.main()
