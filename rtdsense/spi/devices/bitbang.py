"""
Software SPI over general purpose pins, for wiring the converter to
arbitrary GPIO lines instead of the hardware SPI peripheral.
"""

from dataclasses import dataclass, field

from .device import WRITE_FLAG


def _default_gpio():
    from RPi import GPIO
    GPIO.setmode(GPIO.BCM)
    return GPIO


@dataclass
class GPIOSPIDevice:
    """Bit-banged SPI in mode 1 (clock idles low, data is sampled
    on the falling edge), MSB first.

    Pins are claimed on construction and released by close().
    gpio defaults to RPi.GPIO in BCM numbering.
    """

    clock: int
    miso: int
    mosi: int
    cs: int | None = None
    gpio: object = field(default=None, repr=False)

    def __post_init__(self):
        if self.gpio is None:
            self.gpio = _default_gpio()
        self.gpio.setup(self.clock, self.gpio.OUT, initial=self.gpio.LOW)
        self.gpio.setup(self.mosi, self.gpio.OUT, initial=self.gpio.LOW)
        self.gpio.setup(self.miso, self.gpio.IN)
        if self.cs is not None:
            self.gpio.setup(self.cs, self.gpio.OUT, initial=self.gpio.HIGH)
        self.claimed = True

    @property
    def pins(self) -> list[int]:
        pins = [self.clock, self.miso, self.mosi]
        if self.cs is not None:
            pins.append(self.cs)
        return pins

    def write_register(self, address: int, value: int):
        """Write one byte to the register at address."""
        self._transaction([address | WRITE_FLAG, value & 0xFF])

    def read_register(self, address: int, num_bytes: int = 1) -> int:
        """Read num_bytes starting at address, combined big-endian."""
        data = self._transaction([address & 0x7F] + [0x00] * num_bytes)
        return int.from_bytes(bytes(data[1:]), 'big')

    def close(self):
        """Release the pins back to the GPIO layer."""
        if self.claimed:
            self.gpio.cleanup(self.pins)
            self.claimed = False

    def _transaction(self, data: list[int]) -> list[int]:
        if not self.claimed:
            raise RuntimeError('GPIO pins have already been released.')
        self._select(True)
        try:
            return [self._transfer_byte(b) for b in data]
        finally:
            self._select(False)

    def _select(self, selected: bool):
        # chip select is active low
        if self.cs is not None:
            self.gpio.output(self.cs, self.gpio.LOW if selected else self.gpio.HIGH)

    def _transfer_byte(self, value: int) -> int:
        received = 0
        for bit in range(7, -1, -1):
            self.gpio.output(self.clock, self.gpio.HIGH)
            self.gpio.output(
                self.mosi, self.gpio.HIGH if (value >> bit) & 1 else self.gpio.LOW)
            self.gpio.output(self.clock, self.gpio.LOW)
            received = (received << 1) | (1 if self.gpio.input(self.miso) else 0)
        return received
