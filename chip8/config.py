import os

from .constants import (
    ADDRESS_POLICIES, ADDRESS_WRAP,
    STACK_POLICIES, STACK_FAIL,
    QUIRKS, CPU_HZ, TIMER_HZ, SCALE,
)
from .errors import ConfigError


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def parse_quirks(raw):
    """turn a comma separated list like 'logic,shift' into a frozenset of quirk names"""
    if not raw:
        return frozenset()
    names = {q.strip().lower() for q in raw.split(",") if q.strip()}
    unknown = names.difference(QUIRKS)
    if unknown:
        raise ConfigError(f"Unknown quirks: {', '.join(sorted(unknown))} (valid ones: {', '.join(QUIRKS)})")
    return frozenset(names)


class Config:
    """
    knobs of the virtual machine and of its host
    the defaults describe the classic interpreter: addresses wrap around the 4KB of memory,
    a stack overflow/underflow is an error and no compatibility quirk is enabled
    """
    def __init__(self, address_policy=ADDRESS_WRAP, stack_policy=STACK_FAIL, quirks=(),
                 debug=False, cpu_hz=CPU_HZ, timer_hz=TIMER_HZ, scale=SCALE):
        if address_policy not in ADDRESS_POLICIES:
            raise ConfigError(f"Unknown address policy {address_policy!r} (valid ones: {', '.join(ADDRESS_POLICIES)})")
        if stack_policy not in STACK_POLICIES:
            raise ConfigError(f"Unknown stack policy {stack_policy!r} (valid ones: {', '.join(STACK_POLICIES)})")
        if isinstance(quirks, str):
            quirks = parse_quirks(quirks)
        quirks = frozenset(quirks)
        unknown = quirks.difference(QUIRKS)
        if unknown:
            raise ConfigError(f"Unknown quirks: {', '.join(sorted(unknown))}")
        if cpu_hz <= 0 or timer_hz <= 0:
            raise ConfigError("cpu_hz and timer_hz must be positive")
        if scale <= 0:
            raise ConfigError(f"scale must be positive, got {scale}")
        self.address_policy = address_policy
        self.stack_policy = stack_policy
        self.quirks = quirks
        self.debug = debug
        self.cpu_hz = cpu_hz
        self.timer_hz = timer_hz
        self.scale = scale

    @classmethod
    def from_env(cls, **overrides):
        """build a configuration from the environment, keyword arguments win over env vars"""
        values = {
            "address_policy": os.getenv("CHIP8_ADDRESS_POLICY", ADDRESS_WRAP).lower(),
            "stack_policy": os.getenv("CHIP8_STACK_POLICY", STACK_FAIL).lower(),
            "quirks": parse_quirks(os.getenv("CHIP8_QUIRKS", "")),
            "debug": _env_int("DEBUG", 0) >= 1,
            "cpu_hz": _env_int("CHIP8_CPU_HZ", CPU_HZ),
            "timer_hz": _env_int("CHIP8_TIMER_HZ", TIMER_HZ),
            "scale": _env_int("CHIP8_SCALE", SCALE),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def has_quirk(self, name):
        return name in self.quirks

    def __repr__(self):
        quirks = ",".join(sorted(self.quirks)) or "none"
        return (f"Config(address_policy={self.address_policy}, stack_policy={self.stack_policy}, "
                f"quirks={quirks}, debug={self.debug}, cpu_hz={self.cpu_hz}, timer_hz={self.timer_hz})")
