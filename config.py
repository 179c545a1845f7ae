#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Driver parameter defaults live in :class:`scene.parameters.DriverParameters`;
any of them can be overridden via ``DRIVER_<NAME>`` environment variables
through :func:`parameters_from_env` (see :mod:`main`).
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from scene.errors import ParameterError
from scene.parameters import DriverParameters

# ── Demo scenario defaults ───────────────────────────────────────────────────
DEFAULT_TIME_STEP_S: float = 0.5
DEFAULT_DURATION_S: float = 20.0
DEFAULT_SPEED_LIMIT_KMH: float = 50.0
DEFAULT_EGO_SPEED_MS: float = 12.0

# ── Logging ──────────────────────────────────────────────────────────────────
LOG_FILE: str = "conflicts.log"
DEBUG_LOG_FILE: str = "approach_debug.log"
LOG_MAX_BYTES: int = 1_000_000
LOG_BACKUPS: int = 2

# ── Environment ──────────────────────────────────────────────────────────────
ENV_PREFIX: str = "DRIVER_"


def parameters_from_env(prefix: str = ENV_PREFIX,
                        environ: Optional[Mapping[str, str]] = None,
                        base: Optional[DriverParameters] = None) -> DriverParameters:
    """Driver parameters with overrides from the environment.

    ``DRIVER_S0=2.5`` sets ``s0``; ``DRIVER_B_CRIT=none`` makes ``b_crit``
    absent.  Variables with the prefix that name no parameter are rejected.

    Raises
    ------
    ParameterError
        On an unknown name or a value that is not a number.
    """
    environ = os.environ if environ is None else environ
    base = base or DriverParameters()
    overrides = {}
    for name, raw in environ.items():
        if not name.startswith(prefix):
            continue
        key = name[len(prefix):].lower()
        overrides[key] = None if raw.strip().lower() in ("", "none") else raw
    if not overrides:
        return base
    values = {key: getattr(base, key) for key in base.__dataclass_fields__}
    unknown = sorted(set(overrides) - set(values))
    if unknown:
        raise ParameterError(f"Unknown parameter override(s): {', '.join(prefix + k.upper() for k in unknown)}.")
    values.update(overrides)
    return DriverParameters.from_mapping(values)
