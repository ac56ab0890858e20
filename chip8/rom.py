import os

from .constants import ROM_START_ADDRESS, ROM_MAX_SIZE
from .errors import RomError, RomTooLargeError


def read_rom(source):
    """return the raw bytes of a ROM given either its path or its content"""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    try:
        with open(source, mode='rb') as f:
            return f.read()
    except OSError as e:
        raise RomError(f"Unable to read the ROM at path {os.fspath(source)}: {e.strerror or e}") from e


def load_rom(mem, source, truncate=False, debug=False):
    """
    copy a ROM image verbatim into memory starting at the program start address
    an image bigger than the free space raises RomTooLargeError, unless truncate is set,
    memory is left untouched whenever the load fails
    returns the number of bytes written
    """
    rom = read_rom(source)
    if len(rom) > ROM_MAX_SIZE:
        if not truncate:
            raise RomTooLargeError(len(rom), ROM_MAX_SIZE)
        if debug: print(f"The ROM is {len(rom)} bytes long, only the first {ROM_MAX_SIZE} have been loaded")
        rom = rom[:ROM_MAX_SIZE]
    mem.load(ROM_START_ADDRESS, rom)
    if debug:
        name = "<bytes>" if isinstance(source, (bytes, bytearray, memoryview)) else os.fspath(source)
        print(f"The ROM at path {name} has been loaded successfully ({len(rom)} bytes)")
    return len(rom)
