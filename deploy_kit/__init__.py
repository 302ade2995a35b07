"""deploy-kit - SST deployment safety checks

Static analysis of ``sst.config.ts`` files: detects configuration patterns
that silently break multi-stage deployments and applies safe fixes.
"""

__version__ = "1.0.0"
__description__ = "Pattern detection and auto-fixing for SST config files"

from .kit_logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
