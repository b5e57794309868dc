import pytest

from rtdsense import logging as rtdlog


def test_set_level():
    for name in rtdlog.LEVELS:
        rtdlog.set_level(name)
    rtdlog.set_level('info')
    with pytest.raises(ValueError):
        rtdlog.set_level('verbose')


def test_log_calls():
    rtdlog.log_debug('debug message')
    rtdlog.log_info('info message')
    rtdlog.log_warning('warning message')
    rtdlog.log_error('error message')
