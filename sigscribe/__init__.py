"""
sigscribe - readable signatures for functions and classes.

Derives ``function name(params)`` / ``class Name(params)`` strings from
callable source for logging, REPLs and documentation tooling. Any callable
can declare its own signature instead, under the ``SIG`` marker.
"""

__version__ = "1.0.0"

from .errors import (
    ConfigError,
    InvalidObjectError,
    InvalidPathError,
    SigscribeError,
)
from .markers import (
    SIG,
    clear_signature,
    get_override,
    has_override,
    set_signature,
    signature,
)
from .prop_at import at, at_nicely
from .sig_types import SignatureParts
from .signatures import (
    Signed,
    describe,
    parse_signature,
    resolve_signature,
    signature_from_source,
    signed,
)

__all__ = [
    "resolve_signature",
    "signature_from_source",
    "parse_signature",
    "describe",
    "SignatureParts",
    "Signed",
    "signed",
    "SIG",
    "signature",
    "set_signature",
    "get_override",
    "has_override",
    "clear_signature",
    "at",
    "at_nicely",
    "SigscribeError",
    "InvalidObjectError",
    "InvalidPathError",
    "ConfigError",
    "__version__",
]
