"""
Switches for RDKit's own console logging.

RDKit reports parse failures and sanitization warnings through its
'rdApp.*' loggers; bulk loading is quieter with them disabled.
"""
from rdkit import RDLogger, rdBase


def rdkit_log_disable() -> bool:
    """Disable all RDKit logging."""
    RDLogger.DisableLog('rdApp.*')
    return True


def rdkit_log_enable() -> bool:
    """Enable all RDKit logging."""
    RDLogger.EnableLog('rdApp.*')
    return True


def rdkit_log_status() -> str:
    """Enabled/disabled state of each RDKit logger, as reported by RDKit."""
    return rdBase.LogStatus()
