"""schemata: schema definition and data validation.

    import schemata as s

    user = s.object_({"name": s.string(), "tags": s.array(s.string(), min_length=1)})
    s.parse(user, {"name": "Ada", "tags": ["math"]})   # Ok({...})
"""
__version__ = "0.1.0"

from schemata.core.errors import (  # noqa: E402
    Err,
    ErrorCode,
    Ok,
    ParseError,
    Result,
    ValidationError,
)
from schemata.core.logging import configure_logging  # noqa: E402
from schemata.validation import *  # noqa: E402,F401,F403
from schemata.validation import __all__ as _validation_all  # noqa: E402

__all__ = [
    "__version__",
    "Err",
    "ErrorCode",
    "Ok",
    "ParseError",
    "Result",
    "ValidationError",
    "configure_logging",
    *_validation_all,
]
