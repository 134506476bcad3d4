"""usmcarvc - USMCA regional value content qualification from a BOM."""

from . import tariff
from .version import __version__

__all__ = [
    "tariff",
    "__version__",
]
