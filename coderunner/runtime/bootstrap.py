# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for coderunner.

The one-time setup that happens before the CLI evaluates anything:
  1. Validate the environment (Python version)
  2. Seed Python's random module, if a seed was configured
  3. Initialize the logger

Library callers who just `import coderunner` and call `evaluate()` never go
through this; it's for the CLI.
"""

import random
from pathlib import Path
from typing import Optional

from coderunner.config.schema import GlobalConfig
from coderunner.logging.logger import get_logger
from coderunner.runtime.environment import check_minimum_python, get_system_info


def set_deterministic_seed(seed: int) -> None:
    """Seed Python's random module so fragments using it behave reproducibly."""
    random.seed(seed)


def bootstrap(config: GlobalConfig, seed_override: Optional[int] = None) -> None:
    """
    Run the full bootstrap sequence.

    Args:
        config: The validated global configuration.
        seed_override: Seed from the command line; takes precedence over config.
    """
    check_minimum_python()

    seed = seed_override if seed_override is not None else config.seed
    if seed is not None:
        set_deterministic_seed(seed)

    log_file = None
    if config.log_file is not None:
        log_file = Path(config.log_file)

    logger = get_logger("coderunner.runtime", log_level=config.log_level, log_file=log_file)

    system_info = get_system_info()
    logger.debug(
        "coderunner bootstrap complete",
        extra={
            "project": config.project_name,
            "seed": seed,
            "python_version": system_info.python_version,
            "implementation": system_info.implementation,
            "platform": system_info.platform,
        },
    )
