"""
pygame front end: paints the framebuffer, feeds the keypad, beeps while the sound
timer runs and paces cycles and timers on the wall clock.
None of this is needed to run the virtual machine itself.
"""
from array import array

import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
)

from .constants import SCREEN_WIDTH, SCREEN_HEIGHT, SCALE


KEY_MAPPINGS = {
    K_0: 0x0,
    K_1: 0x1,
    K_2: 0x2,
    K_3: 0x3,
    K_4: 0x4,
    K_5: 0x5,
    K_6: 0x6,
    K_7: 0x7,
    K_8: 0x8,
    K_9: 0x9,
    K_a: 0xA,
    K_b: 0xB,
    K_c: 0xC,
    K_d: 0xD,
    K_e: 0xE,
    K_f: 0xF,
}

BLUE = pygame.Color(80,69,155,255)
LIGHT_BLUE = pygame.Color(136,126,203,255)
TONE_HZ = 440
SAMPLE_RATE = 44100


class Screen:
    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE, surface=None):
        self.w, self.h, self.scale = w, h, s
        self.background = bg_color
        self.foreground = fg_color
        if surface is None:
            surface = pygame.display.set_mode((w * self.scale, h * self.scale))
        self.surface = surface
        self.surface.fill(self.background)

    def paint(self, video):
        """draw the whole framebuffer, the change is visible only after refresh"""
        self.surface.fill(self.background)
        for y, row in enumerate(video.rows()):
            for x, pixel in enumerate(row):
                if pixel:
                    pygame.draw.rect(
                        self.surface,
                        self.foreground,
                        (x * self.scale, y * self.scale, self.scale, self.scale)
                    )

    @staticmethod
    def refresh():
        pygame.display.flip()


def square_wave(frequency, channels, tone=TONE_HZ, seconds=1, amplitude=4096):
    """signed 16 bit square wave, samples interleaved across channels"""
    period = frequency // tone
    one_period = [amplitude] * (period // 2) + [-amplitude] * (period - period // 2)
    frames = (one_period * (tone * seconds))[:frequency * seconds]
    return array('h', [s for s in frames for _ in range(channels)])


class Beeper:
    """square wave played in loop for as long as the sound timer is non-zero"""
    def __init__(self, debug=False):
        self.playing = False
        self.sound = None
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(SAMPLE_RATE, -16, 1)
        except pygame.error as e:
            if debug: print(f"Sound disabled: {e}")
            return
        # the mixer may already be running with another format (pygame.init() opens it in stereo)
        frequency, size, channels = pygame.mixer.get_init()
        if size != -16:
            if debug: print(f"Sound disabled: unsupported mixer sample size {size}")
            return
        self.sound = pygame.mixer.Sound(buffer=square_wave(frequency, channels).tobytes())

    def update(self, sound_on):
        if self.sound is None or sound_on == self.playing:
            return
        if sound_on:
            self.sound.play(loops=-1)
        else:
            self.sound.stop()
        self.playing = sound_on


def handle_event(event, keypad):
    """apply one pygame event to the keypad, return False when the user asked to quit"""
    if event.type == pygame.QUIT:
        return False
    if event.type == pygame.KEYDOWN:
        if event.key == pygame.K_ESCAPE:
            return False
        if event.key in KEY_MAPPINGS:
            keypad.press(KEY_MAPPINGS[event.key])   # register keypress
    elif event.type == pygame.KEYUP and event.key in KEY_MAPPINGS:
        keypad.release(KEY_MAPPINGS[event.key])
    return True


def cycles_per_frame(cpu_hz, timer_hz):
    return max(1, round(cpu_hz / timer_hz))


def run(chip, caption="CHIP-8"):
    """emulation loop: one frame per timer tick, a batch of cycles per frame"""
    cfg = chip.config
    pygame.mixer.pre_init(SAMPLE_RATE, -16, 1)    # must come before pygame.init() opens the mixer
    pygame.init()
    pygame.display.set_caption(caption)
    clock = pygame.time.Clock()
    screen = Screen(s=cfg.scale)
    beeper = Beeper(cfg.debug)
    batch = cycles_per_frame(cfg.cpu_hz, cfg.timer_hz)
    try:
        running = True
        while running:
            # process user input, loop through the event queue
            for event in pygame.event.get():
                if not handle_event(event, chip.keypad):
                    running = False
            chip.run(batch)
            chip.tick_timers()
            beeper.update(chip.sound_on)
            # refresh screen if needed
            if chip.draw_flag:
                screen.paint(chip.video)
                screen.refresh()
                chip.draw_flag = False
            clock.tick(cfg.timer_hz)
    finally:
        pygame.quit()
