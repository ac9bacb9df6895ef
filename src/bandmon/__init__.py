"""
fldigi-bandmon: run a command whenever fldigi's VFO moves to another amateur band
"""

__version__ = "1.0.0"
__author__ = "fldigi-bandmon contributors"

# Classification result for frequencies outside every band in the table
UNKNOWN_BAND = "unknown"

# fldigi XML-RPC defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7362
DEFAULT_INTERVAL = 5.0  # seconds


class BandmonError(Exception):
    """Base class for errors raised by bandmon"""
