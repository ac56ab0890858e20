class Chip8Error(Exception):
    """base class for every error raised by the virtual machine"""


class AddressError(Chip8Error):
    def __init__(self, address):
        super().__init__(f"Memory address 0x{address:04x} is out of range")
        self.address = address


class StackError(Chip8Error):
    pass


class StackOverflowError(StackError):
    def __init__(self):
        super().__init__("The CHIP-8 stack can contain at most 16 addresses. Limit exceeded")


class StackUnderflowError(StackError):
    def __init__(self):
        super().__init__("Tried to return from a subroutine with an empty stack")


class RomError(Chip8Error):
    pass


class RomTooLargeError(RomError):
    def __init__(self, size, limit):
        super().__init__(f"The ROM is {size} bytes long but only {limit} bytes are available")
        self.size = size
        self.limit = limit


class ConfigError(Chip8Error, ValueError):
    pass
