"""
Standard functions for logging to the system journal with syslog.

Messages are tagged "rtdsense". The lowest level written is taken from
the RTDSENSE_LOG_LEVEL environment variable (debug, info, warning or
error) and defaults to info.
"""

import os
import syslog

LEVELS = {
    'debug': syslog.LOG_DEBUG,
    'info': syslog.LOG_INFO,
    'warning': syslog.LOG_WARNING,
    'error': syslog.LOG_ERR,
}


def set_level(name: str):
    """Only write messages at or above the named level."""
    if name not in LEVELS:
        raise ValueError(f'Log level "{name}" invalid, must be one of {list(LEVELS)}')
    syslog.setlogmask(syslog.LOG_UPTO(LEVELS[name]))


syslog.openlog(ident='rtdsense', facility=syslog.LOG_USER)
set_level(os.environ.get('RTDSENSE_LOG_LEVEL', 'info').lower())


def log_debug(s: str):
    syslog.syslog(syslog.LOG_DEBUG, s)

def log_info(s: str):
    syslog.syslog(syslog.LOG_INFO, s)

def log_warning(s: str):
    syslog.syslog(syslog.LOG_WARNING, s)

def log_error(s: str):
    syslog.syslog(syslog.LOG_ERR, s)
