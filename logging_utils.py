# -*- coding: utf-8 -*-
########################
# logging_utils.py
########################
# Purpose:
# - One-shot logging setup for the CLI and the harness.
#
# Design notes:
# - Modules log through logging.getLogger(__name__) and never configure handlers themselves.
# - setup_logging attaches a stderr handler and, optionally, a file handler in the user log directory.
# - Calling it again only updates the level; handlers are not duplicated.
#
########################
# Interfaces:
# Public functions:
# - setup_logging(level: int = logging.INFO, log_to_file: bool = True) -> Optional[pathlib.Path]
#
########################

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from paths import log_file_path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured_log_path: Optional[Path] = None
_configured = False


def setup_logging(level: int = logging.INFO, log_to_file: bool = True) -> Optional[Path]:
    global _configured, _configured_log_path

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if _configured:
        return _configured_log_path

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_to_file:
        path = log_file_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        _configured_log_path = path

    _configured = True
    return _configured_log_path
