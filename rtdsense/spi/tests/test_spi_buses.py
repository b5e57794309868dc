"""
Framing tests for the two register buses: the kernel spidev driver
and the bit-banged GPIO implementation.
"""

import pytest

from rtdsense.spi.devices import device as device_module
from rtdsense.spi.devices.bitbang import GPIOSPIDevice
from rtdsense.spi.devices.device import SPIDevice


class FakeSpiDev:
    opened = []

    def __init__(self):
        self.written = []
        self.closed = False
        FakeSpiDev.opened.append(self)

    def open(self, bus, cs):
        self.bus, self.cs = bus, cs

    def writebytes(self, data):
        self.written.append(list(data))

    def xfer2(self, data):
        self.written.append(list(data))
        return [0x00, 0x12, 0x34, 0x56][:len(data)]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_spidev(monkeypatch):
    FakeSpiDev.opened = []
    monkeypatch.setattr(device_module.spidev, 'SpiDev', FakeSpiDev)
    return FakeSpiDev


def test_spidev_write(fake_spidev):
    device = SPIDevice(0, 1)
    device.write_register(0x00, 0xC3)
    spi = fake_spidev.opened[-1]
    assert spi.written == [[0x80, 0xC3]]
    assert (spi.bus, spi.cs) == (0, 1)
    assert spi.mode == 1
    assert spi.max_speed_hz == 5_000_000
    assert spi.closed


def test_spidev_read(fake_spidev):
    device = SPIDevice(0, 0)
    assert device.read_register(0x01, 2) == 0x1234
    assert fake_spidev.opened[-1].written == [[0x01, 0x00, 0x00]]
    assert device.read_register(0x07) == 0x12


class FakeGPIO:
    """Acts as an SPI mode 1 peripheral: samples MOSI on the falling
    clock edge and presents queued bits on MISO.
    """

    BCM = 'BCM'
    OUT = 'out'
    IN = 'in'
    HIGH = 1
    LOW = 0

    def __init__(self, clock: int, mosi: int, cs: int | None, reply: bytes = b''):
        self.clock, self.mosi, self.cs = clock, mosi, cs
        self.levels = {}
        self.modes = {}
        self.sampled = []
        self.cs_during_clock = set()
        self.miso_bits = [(byte >> bit) & 1 for byte in reply for bit in range(7, -1, -1)]
        self.cleaned = None

    def setup(self, pin, mode, initial=0):
        self.modes[pin] = mode
        if mode == self.OUT:
            self.levels[pin] = initial

    def output(self, pin, level):
        if pin == self.clock and self.levels[pin] == self.HIGH and level == self.LOW:
            self.sampled.append(self.levels[self.mosi])
            if self.cs is not None:
                self.cs_during_clock.add(self.levels[self.cs])
        self.levels[pin] = level

    def input(self, pin):
        return self.miso_bits.pop(0) if self.miso_bits else 0

    def cleanup(self, pins):
        self.cleaned = list(pins)

    @property
    def sent_bytes(self) -> list[int]:
        out = []
        for i in range(0, len(self.sampled), 8):
            value = 0
            for bit in self.sampled[i:i + 8]:
                value = (value << 1) | bit
            out.append(value)
        return out


def test_gpio_pin_allocation():
    gpio = FakeGPIO(clock=11, mosi=10, cs=8)
    device = GPIOSPIDevice(11, 9, 10, 8, gpio=gpio)
    assert gpio.modes == {11: 'out', 10: 'out', 9: 'in', 8: 'out'}
    assert gpio.levels[8] == gpio.HIGH
    assert gpio.levels[11] == gpio.LOW
    device.close()
    assert gpio.cleaned == [11, 9, 10, 8]
    with pytest.raises(RuntimeError):
        device.write_register(0x00, 0x01)


def test_gpio_write():
    gpio = FakeGPIO(clock=11, mosi=10, cs=8)
    device = GPIOSPIDevice(11, 9, 10, 8, gpio=gpio)
    device.write_register(0x00, 0xA5)
    assert gpio.sent_bytes == [0x80, 0xA5]
    assert gpio.cs_during_clock == {gpio.LOW}
    assert gpio.levels[8] == gpio.HIGH
    assert gpio.levels[11] == gpio.LOW


def test_gpio_read():
    gpio = FakeGPIO(clock=11, mosi=10, cs=None, reply=bytes([0x00, 0xBE, 0xEF]))
    device = GPIOSPIDevice(11, 9, 10, gpio=gpio)
    assert device.read_register(0x01, 2) == 0xBEEF
    assert gpio.sent_bytes == [0x01, 0x00, 0x00]
