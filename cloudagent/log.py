# This file is part of cloud-agent. See LICENSE file for license information.

import collections.abc
import io
import logging
import logging.config
import os
import sys
import time
from contextlib import suppress

DEFAULT_LOG_FORMAT = "%(asctime)s - %(filename)s[%(levelname)s]: %(message)s"


def setup_basic_logging(level=logging.DEBUG, formatter=None):
    formatter = formatter or logging.Formatter(DEFAULT_LOG_FORMAT)
    root = logging.getLogger()
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(level)
    root.addHandler(console)
    root.setLevel(level)


def _expand_log_cfgs(cfg):
    log_cfgs = []
    for a_cfg in cfg.get("log_cfgs") or []:
        if isinstance(a_cfg, str):
            log_cfgs.append(a_cfg)
        elif isinstance(a_cfg, collections.abc.Iterable):
            log_cfgs.append("\n".join([str(c) for c in a_cfg]))
        else:
            log_cfgs.append(str(a_cfg))
    return log_cfgs


def setup_logging(cfg=None, level=logging.DEBUG):
    """Configure the root logger from the agent config.

    Each entry of 'log_cfgs' is either a path to a logging.config file or
    the text of one; the first that loads wins.  When none does and
    'log_basic' is true, log to stderr at the given level.
    """
    if not cfg:
        cfg = {}

    am_tried = 0
    for log_cfg in _expand_log_cfgs(cfg):
        # A handler pointing at /dev/log or a missing directory is expected
        # to fail very early in boot, move on to the next one.
        with suppress(FileNotFoundError):
            am_tried += 1

            # If the value is not a filename, assume that it is a config.
            if not (log_cfg.startswith("/") and os.path.isfile(log_cfg)):
                log_cfg = io.StringIO(log_cfg)

            logging.config.fileConfig(log_cfg)
            return

    if cfg.get("log_basic", True):
        if am_tried:
            sys.stderr.write(
                "WARN: no logging configured! (tried %s configs)\n" % am_tried
            )
        setup_basic_logging(level)


def reset_logging():
    """Remove all current handlers and unset log level."""
    log = logging.getLogger()
    handlers = list(log.handlers)
    for h in handlers:
        h.flush()
        h.close()
        log.removeHandler(h)
    log.setLevel(logging.NOTSET)


def configure_root_logger():
    """Customize the root logger for cloud-agent"""

    # Always format logging timestamps as UTC time
    logging.Formatter.converter = time.gmtime
    reset_logging()
