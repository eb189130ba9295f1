"""PageCov: JavaScript and CSS coverage collection for remotely instrumented browser pages."""

import importlib.metadata

from .config import CoverageConfig, CSSCoverageOptions, JSCoverageOptions, load_config
from .coverage import Coverage
from .css_coverage import CSSCoverage
from .errors import CoverageError, CoverageStateError, ProtocolError
from .js_coverage import EVALUATION_SCRIPT_URL, JSCoverage, anonymous_script_url, parse_anonymous_script_url
from .models import CoverageEntry, ResourceRecord
from .ranges import Range, RawRange, convert_to_disjoint_ranges
from .session import DevToolsSession, EventEmitterSession, Subscription


def _get_version() -> str:
    """
    Retrieve the package version from metadata.

    Returns:
        The version string, or a development version if not installed.

    """
    try:
        return importlib.metadata.version("PageCov")
    except importlib.metadata.PackageNotFoundError:
        # Fallback for when the package is not installed, e.g., in a development environment
        return "0.0.0-dev"


__version__ = _get_version()

__all__ = [
    "EVALUATION_SCRIPT_URL",
    "CSSCoverage",
    "CSSCoverageOptions",
    "Coverage",
    "CoverageConfig",
    "CoverageEntry",
    "CoverageError",
    "CoverageStateError",
    "DevToolsSession",
    "EventEmitterSession",
    "JSCoverage",
    "JSCoverageOptions",
    "ProtocolError",
    "Range",
    "RawRange",
    "ResourceRecord",
    "Subscription",
    "__version__",
    "anonymous_script_url",
    "convert_to_disjoint_ranges",
    "load_config",
    "parse_anonymous_script_url",
]
