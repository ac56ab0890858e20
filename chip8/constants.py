# ******************** STATIC SECTION
MEMORY_SIZE = 4096
REGISTER_COUNT = 16
STACK_LEVELS = 16
KEY_COUNT = 16
FLAG_REGISTER = 0xF

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32

ROM_START_ADDRESS = 0x200
ROM_MAX_SIZE = MEMORY_SIZE - ROM_START_ADDRESS
FONT_START_ADDRESS = 0x50
FONT_GLYPH_SIZE = 5     # each character font is made of 5 bytes

C8_FONTS = [0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
            0x20, 0x60, 0x20, 0x20, 0x70,  # 1
            0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
            0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
            0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
            0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
            0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
            0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
            0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
            0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
            0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
            0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
            0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
            0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
            0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
            0xF0, 0x80, 0xF0, 0x80, 0x80]  # F

# overflow policies, see config.Config
ADDRESS_WRAP = "wrap"
ADDRESS_STRICT = "strict"
ADDRESS_POLICIES = (ADDRESS_WRAP, ADDRESS_STRICT)

STACK_FAIL = "fail"
STACK_WRAP = "wrap"
STACK_CLAMP = "clamp"
STACK_POLICIES = (STACK_FAIL, STACK_WRAP, STACK_CLAMP)

# COMPATIBILITY QUIRKS TABLE
# https://games.gulrak.net/cadmium/chip8-opcode-table.html
QUIRK_LOGIC = "logic"               # 8xy1/8xy2/8xy3 reset VF
QUIRK_SHIFT = "shift"               # 8xy6/8xyE shift Vy instead of Vx
QUIRK_LOAD_STORE = "load_store"     # Fx55/Fx65 increment I
QUIRK_JUMP = "jump"                 # Bnnn jumps to nnn + Vx
QUIRK_CLIP = "clip"                 # sprites are clipped at the screen edges
QUIRKS = (QUIRK_LOGIC, QUIRK_SHIFT, QUIRK_LOAD_STORE, QUIRK_JUMP, QUIRK_CLIP)

CPU_HZ = 600
TIMER_HZ = 60
SCALE = 15
