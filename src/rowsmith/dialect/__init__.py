"""Dialect phrase tables, capabilities and the driver.

Import the driver and vendor dialects from their modules
(``rowsmith.dialect.driver``, ``rowsmith.dialect.registry``); this package only
exposes the leaf definitions so expression modules can import phrases freely.
"""

from rowsmith.dialect.capabilities import DialectCapabilities, DriverFeature
from rowsmith.dialect.phrases import DEFAULT_PHRASES, SqlPhrase

__all__ = [
    "DEFAULT_PHRASES",
    "DialectCapabilities",
    "DriverFeature",
    "SqlPhrase",
]
