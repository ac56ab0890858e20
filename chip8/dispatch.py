"""
Two-level opcode lookup.

The top nibble of an opcode picks one of the 16 primary slots. Families 0, 8 and E
are shared by several instructions and are discriminated a second time on their
lowest nibble, family F on its lowest byte. Every slot is bound to a handler, the
ones that don't match a defined instruction are bound to the no-op, so any 16 bit
value resolves to exactly one handler.
"""

# top nibble -> handler name, for the families made of a single instruction
PRIMARY = {
    0x1: "_jump",
    0x2: "_call_addr",
    0x3: "_skip_if_eq",
    0x4: "_skip_if_not_eq",
    0x5: "_skip_if_eq_regs",
    0x6: "_set_vk",
    0x7: "_add_to_vk",
    0x9: "_skip_if_not_eq_regs",
    0xA: "_set_idx",
    0xB: "_jump_plus",
    0xC: "_random_byte_and",
    0xD: "_to_screen",
}

# top nibble -> (secondary table size, sub index -> handler name)
SECONDARY = {
    0x0: (0xF + 1, {
        0x0: "_clear_screen",
        0xE: "_return",
    }),
    0x8: (0xF + 1, {
        0x0: "_set_vx_to_vy",
        0x1: "_set_vx_or_vy",
        0x2: "_set_vx_and_vy",
        0x3: "_set_vx_xor_vy",
        0x4: "_add_vx_vy",
        0x5: "_sub_vx_vy",
        0x6: "_shr",
        0x7: "_subn_vx_vy",
        0xE: "_shl",
    }),
    0xE: (0xF + 1, {
        0xE: "_skip_if_pressed",
        0x1: "_skip_if_not_pressed",
    }),
    0xF: (0x65 + 1, {
        0x07: "_set_vx_dt",
        0x0A: "_wait_keypress",
        0x15: "_set_dt_vx",
        0x18: "_set_st",
        0x1E: "_add_to_idx",
        0x29: "_select_char",
        0x33: "_bcd_repr",
        0x55: "_store_vregs",
        0x65: "_load_vregs",
    }),
}


def secondary_index(family, opcode):
    """family F is discriminated on the lowest byte, the other ones on the lowest nibble"""
    return opcode & 0x00FF if family == 0xF else opcode & 0x000F


class Dispatcher:
    def __init__(self, cpu):
        self.cpu = cpu
        self.noop = cpu._noop
        self.primary = [self.noop] * 16
        self.secondary = {}
        for nibble, name in PRIMARY.items():
            self.primary[nibble] = getattr(cpu, name)
        for family, (size, handlers) in SECONDARY.items():
            table = [self.noop] * size
            for sub, name in handlers.items():
                table[sub] = getattr(cpu, name)
            self.secondary[family] = table
            self.primary[family] = self._family_slot(family)

    def _family_slot(self, family):
        def slot():
            self._lookup(family, self.cpu.opcode)()
        slot.__name__ = f"_table{family:X}"
        return slot

    def _lookup(self, family, opcode):
        table = self.secondary[family]
        index = secondary_index(family, opcode)
        # sparse F table, anything past 0x65 routes to the no-op too
        return table[index] if index < len(table) else self.noop

    def resolve(self, opcode):
        """return the handler an opcode would run, without running it"""
        family = (opcode & 0xF000) >> 12
        if family in self.secondary:
            return self._lookup(family, opcode)
        return self.primary[family]

    def dispatch(self):
        """run the handler matching the current opcode of the cpu"""
        self.primary[(self.cpu.opcode & 0xF000) >> 12]()
