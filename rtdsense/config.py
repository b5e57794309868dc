"""
Pin and calibration settings for an RTD driver, read either from
positional command line values or from a JSON configuration blob.
"""

import argparse
import json
import pathlib

from dataclasses import asdict, dataclass

from .errors import ConfigurationError


@dataclass(frozen=True)
class DriverConfig:
    clock: int
    miso: int
    mosi: int
    cs: int | None = None
    wires: int = 2
    filter_hz: int = 50
    reference: float = 400.0
    rtd_zero: float | None = None

    _REQUIRED_PINS = ('clock', 'miso', 'mosi')

    @classmethod
    def from_args(cls, argv: list[str] | None = None) -> 'DriverConfig':
        """Parse "clock miso mosi [cs]" from the command line."""
        parser = argparse.ArgumentParser(
            description='Pins connected to a MAX31865 RTD converter.')
        parser.add_argument('clock', type=int, help='serial clock pin')
        parser.add_argument('miso', type=int, help='data in pin (device SDO)')
        parser.add_argument('mosi', type=int, help='data out pin (device SDI)')
        parser.add_argument('cs', type=int, nargs='?', default=None,
                            help='chip select pin, if one is wired')
        try:
            args = parser.parse_args(argv)
        except SystemExit as e:
            raise ConfigurationError(f'Invalid pin arguments: {argv}') from e
        return cls(clock=args.clock, miso=args.miso, mosi=args.mosi, cs=args.cs)

    @classmethod
    def from_dict(cls, blob: dict) -> 'DriverConfig':
        """Build from a mapping with integer keys clock, miso, mosi and
        optionally cs. wires, filter_hz, reference and rtd_zero may
        also be given.
        """
        if not isinstance(blob, dict):
            raise ConfigurationError(
                f'Configuration must be an object, not {type(blob).__name__}')
        values = {}
        for key in cls._REQUIRED_PINS:
            if key not in blob:
                raise ConfigurationError(f'Missing required key "{key}"')
            values[key] = _expect_int(blob, key)
        for key in ('cs', 'wires', 'filter_hz'):
            if blob.get(key) is not None:
                values[key] = _expect_int(blob, key)
        for key in ('reference', 'rtd_zero'):
            if blob.get(key) is not None:
                values[key] = _expect_number(blob, key)

        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> 'DriverConfig':
        try:
            blob = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f'Configuration is not valid JSON: {e}') from e
        return cls.from_dict(blob)

    @classmethod
    def from_file(cls, fn: pathlib.Path) -> 'DriverConfig':
        """Read a JSON dump of the configuration."""
        with open(fn, 'r') as f:
            return cls.from_json(f.read())

    def to_file(self, fn: pathlib.Path):
        """Dump the configuration to a JSON file."""
        with open(fn, 'w') as f:
            json.dump(asdict(self), f)


def _expect_int(blob: dict, key: str) -> int:
    value = blob[key]
    # bool is a subclass of int but never a valid pin
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f'Key "{key}" must be an integer, not {type(value).__name__}')
    return value


def _expect_number(blob: dict, key: str) -> float:
    value = blob[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            f'Key "{key}" must be a number, not {type(value).__name__}')
    return float(value)
