import pathlib
import tempfile

import pytest

from rtdsense.config import DriverConfig
from rtdsense.errors import ConfigurationError


def test_from_args():
    cfg = DriverConfig.from_args(['11', '9', '10'])
    assert (cfg.clock, cfg.miso, cfg.mosi, cfg.cs) == (11, 9, 10, None)
    cfg = DriverConfig.from_args(['11', '9', '10', '8'])
    assert cfg.cs == 8
    assert cfg.wires == 2
    assert cfg.filter_hz == 50


@pytest.mark.parametrize('argv', [[], ['11', '9'], ['11', 'nine', '10'], ['1', '2', '3', '4', '5']])
def test_from_args_invalid(argv):
    with pytest.raises(ConfigurationError):
        DriverConfig.from_args(argv)


def test_from_dict():
    cfg = DriverConfig.from_dict({'clock': 11, 'miso': 9, 'mosi': 10, 'cs': 8})
    assert cfg == DriverConfig(11, 9, 10, 8)
    cfg = DriverConfig.from_dict({
        'clock': 11, 'miso': 9, 'mosi': 10,
        'wires': 3, 'filter_hz': 60, 'reference': 430, 'rtd_zero': 100.0})
    assert cfg.cs is None
    assert cfg.wires == 3
    assert cfg.filter_hz == 60
    assert cfg.reference == 430.0
    assert cfg.rtd_zero == 100.0


@pytest.mark.parametrize('blob', [
    {'miso': 9, 'mosi': 10},
    {'clock': 11, 'mosi': 10},
    {'clock': 11, 'miso': 9},
    {'clock': '11', 'miso': 9, 'mosi': 10},
    {'clock': 11.0, 'miso': 9, 'mosi': 10},
    {'clock': True, 'miso': 9, 'mosi': 10},
    {'clock': 11, 'miso': 9, 'mosi': 10, 'cs': 'eight'},
    {'clock': 11, 'miso': 9, 'mosi': 10, 'reference': 'big'},
    [11, 9, 10],
])
def test_from_dict_invalid(blob):
    with pytest.raises(ConfigurationError):
        DriverConfig.from_dict(blob)


def test_from_json():
    cfg = DriverConfig.from_json('{"clock": 11, "miso": 9, "mosi": 10, "cs": null}')
    assert cfg == DriverConfig(11, 9, 10)
    with pytest.raises(ConfigurationError):
        DriverConfig.from_json('{"clock": 11,')


def test_config_to_from_file():
    cfg = DriverConfig(11, 9, 10, 8, wires=4, filter_hz=60, reference=430.0)
    with tempfile.TemporaryDirectory() as tdn:
        out_file = pathlib.Path(tdn) / 'rtd.json'
        cfg.to_file(out_file)
        assert DriverConfig.from_file(out_file) == cfg
