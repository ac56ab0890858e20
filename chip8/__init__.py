from .config import Config
from .cpu import Chip8
from .dispatch import Dispatcher
from .errors import (
    Chip8Error, AddressError, StackError, StackOverflowError, StackUnderflowError,
    RomError, RomTooLargeError, ConfigError,
)
from .rom import load_rom
from .state import Machine, Memory, Stack, Keypad, Video, RandomByteSource

__version__ = "0.1.0"
