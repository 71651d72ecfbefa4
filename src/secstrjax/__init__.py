# SPDX-License-Identifier: BSD-2-Clause
# Copyright (c) 2020 NKI/AVL, Netherlands Cancer Institute
# Substantial portions of this code are derived from the DSSP C++ implementation
# by Maarten L. Hekkelman and contributors, licensed under the BSD-2-Clause license.
# Full C++ source and license available at: https://github.com/PDB-REDO/dssp
"""Kabsch-Sander secondary structure assignment in JAX.

Exposes the pipeline entry points and configures logging.
"""

import logging
from rich.logging import RichHandler
import jax

# --- Configure Logging --- #
# Use RichHandler for console output, message only.
# Level INFO by default; user applications can override it.
logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_path=False, show_level=False, show_time=False)]
)

# Get the specific logger instance for this package
log = logging.getLogger("secstrjax")

# --- JAX Configuration --- #
# Energies and angles are computed in double precision
jax.config.update("jax_enable_x64", True)
log.debug("JAX float64 support enabled.")

# --- Public API --- #
from .main import (
    SecStrResult,
    assign_secondary_structure,
    calculate_secondary_structure,
    run_secstr,
    write_secondary_structure,
)
from .errors import SECSTR_OK, SECSTR_ERR_NOMEM, SecStrError, SecStrAllocationError
