# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.exceptions

Exception hierarchy for the radio bridge driver.

All exceptions derive from RadioError. Transport exceptions also derive
from the matching built-in (ConnectionError, TimeoutError, OSError) so
callers can catch them either way.
"""


class RadioError(Exception):
    """Base exception for all pykv4p errors"""


class ValidationError(RadioError, ValueError):
    """Malformed frequency, tone, squelch or parameter input"""


class ConfigurationError(ValidationError):
    """Invalid RadioConfig value"""


class RadioConnectionError(RadioError, ConnectionError):
    """Link could not be opened, or is not open"""


class RadioTimeoutError(RadioError, TimeoutError):
    """Write (or handshake wait) did not complete in time"""


class RadioIOError(RadioError, OSError):
    """Any other transport fault"""


class ProtocolError(RadioError):
    """Unparsable or unsupported firmware version, malformed frame"""


__all__ = [
    'RadioError',
    'ValidationError',
    'ConfigurationError',
    'RadioConnectionError',
    'RadioTimeoutError',
    'RadioIOError',
    'ProtocolError',
]
