import argparse
import os
import sys

from .config import Config
from .constants import ADDRESS_POLICIES, STACK_POLICIES, QUIRKS
from .cpu import Chip8
from .errors import Chip8Error, ConfigError, RomError


def get_args(argv=None):
    parser = argparse.ArgumentParser(prog="chip8", description="CHIP-8 virtual machine")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("--address-policy", choices=ADDRESS_POLICIES, help="how out of range memory addresses are handled")
    parser.add_argument("--stack-policy", choices=STACK_POLICIES, help="how stack overflows/underflows are handled")
    parser.add_argument("--quirks", help=f"comma separated compatibility quirks ({', '.join(QUIRKS)})")
    parser.add_argument("--cpu-hz", type=int, help="instructions executed per second")
    parser.add_argument("--scale", type=int, help="size in pixels of a CHIP-8 pixel")
    parser.add_argument("--truncate", action="store_true", help="load oversized ROMs partially instead of failing")
    parser.add_argument("--debug", action="store_true", default=None, help="print every executed instruction")
    return parser.parse_args(argv)


def build_chip(args):
    cfg = Config.from_env(
        address_policy=args.address_policy,
        stack_policy=args.stack_policy,
        quirks=args.quirks,
        cpu_hz=args.cpu_hz,
        scale=args.scale,
        debug=args.debug,
    )
    chip = Chip8(cfg)
    chip.load_rom(args.file, truncate=args.truncate)
    return chip


def main(argv=None):
    args = get_args(argv)
    try:
        chip = build_chip(args)
    except (RomError, ConfigError) as e:
        sys.exit(f"chip8: {e}")
    # imported here so that a bad command line doesn't pay for pygame's startup
    from . import host
    try:
        host.run(chip, caption=os.path.basename(args.file))
    except Chip8Error as e:
        sys.exit(f"********** THE EMULATOR CRASHED WITH THE FOLLOWING STATE\n{e}\n{chip}")


if __name__ == "__main__":
    main()
