__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'commandeer'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .binding import *
from .channels import *
from .commands import *
from .faults import *
from .kinds import *
from .manager import *
from .parameters import *
from .senders import *
from .tokens import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the binder
__all__ += binding.__all__  # type: ignore[attr-defined]
# Load the exposed API of the channels
__all__ += channels.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parameter types
__all__ += kinds.__all__  # type: ignore[attr-defined]
# Load the exposed API of the manager
__all__ += manager.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parameters
__all__ += parameters.__all__  # type: ignore[attr-defined]
# Load the exposed API of the senders
__all__ += senders.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokenizer
__all__ += tokens.__all__  # type: ignore[attr-defined]
