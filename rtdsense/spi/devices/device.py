from dataclasses import dataclass

import spidev


WRITE_FLAG = 0x80


@dataclass
class Register:
    """Store information regarding a device's register."""

    name: str
    address: int
    num_bits: int

    @property
    def num_bytes(self) -> int:
        """Number of bytes in the register."""
        return self.num_bits // 8


@dataclass
class SPIDevice:
    """Register access over the kernel SPI driver.

    The chip expects a single address byte followed by data. The MSB of
    the address selects a write (1) or a read (0), and multi-byte
    registers are clocked out MSB first.
    """

    bus: int
    cs: int
    max_speed_hz: int = 5_000_000
    mode: int = 1

    def write_register(self, address: int, value: int):
        """Write one byte to the register at address."""
        self._open()
        self._spi.writebytes([address | WRITE_FLAG, value & 0xFF])
        self._close()

    def read_register(self, address: int, num_bytes: int = 1) -> int:
        """Read num_bytes starting at address, combined big-endian."""
        # dummy bytes keep the clock running while the device
        # shifts out the requested data
        self._open()
        data = self._spi.xfer2([address & 0x7F] + [0x00] * num_bytes)
        self._close()

        return int.from_bytes(bytes(data[1:]), 'big')

    def close(self):
        """The port is only held open during a transaction."""

    def _open(self):
        """Opens SPI port for device."""
        self._spi = spidev.SpiDev()
        self._spi.open(self.bus, self.cs)
        self._spi.max_speed_hz = self.max_speed_hz
        self._spi.mode = self.mode

    def _close(self):
        """Closes SPI port for device."""
        self._spi.close()
