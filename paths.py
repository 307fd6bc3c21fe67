# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the app.
# - Defines where the config file and the log file live.
#
# Design notes:
# - Keep path derivation consistent across modules.
# - No Qt usage. Return pathlib.Path only.
# - Directories are not created here; callers that write create what they need.
#
########################
# Interfaces:
# Public functions:
# - user_config_path() -> pathlib.Path
# - user_log_path() -> pathlib.Path
# - log_file_path() -> pathlib.Path
#
# Inputs:
# - BEATDASH_LOG_DIR environment variable (optional override for the log directory).
#
# Outputs:
# - Paths used by config.py and logging_utils.py.
#
########################

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

APP_NAME = "beatdash"


def user_config_path() -> Path:
    return Path(user_config_dir(APP_NAME, appauthor=False))


def user_log_path() -> Path:
    override = os.environ.get("BEATDASH_LOG_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    return Path(user_log_dir(APP_NAME, appauthor=False))


def log_file_path() -> Path:
    return user_log_path() / "beatdash.log"
