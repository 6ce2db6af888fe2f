from diminish.container import Container
from diminish.exceptions import (
    DiminishCircularDependencyError,
    DiminishContextNotAllowedError,
    DiminishDuplicateKeyError,
    DiminishError,
    DiminishImportFailedError,
    DiminishInvalidArityError,
    DiminishInvalidImportOptionsError,
    DiminishInvalidKeyError,
    DiminishInvalidRegistrationError,
    DiminishNotCallableError,
    DiminishNotRegisteredError,
    DiminishResolutionFailedError,
    DiminishUnsupportedNativeError,
)
from diminish.importing import ImportOptions, ModuleFinder, default_loader, module_producers
from diminish.markers import Group, depends_on
from diminish.pending import Pending
from diminish.types import ProducerKind

__all__ = [
    "Container",
    "DiminishCircularDependencyError",
    "DiminishContextNotAllowedError",
    "DiminishDuplicateKeyError",
    "DiminishError",
    "DiminishImportFailedError",
    "DiminishInvalidArityError",
    "DiminishInvalidImportOptionsError",
    "DiminishInvalidKeyError",
    "DiminishInvalidRegistrationError",
    "DiminishNotCallableError",
    "DiminishNotRegisteredError",
    "DiminishResolutionFailedError",
    "DiminishUnsupportedNativeError",
    "Group",
    "ImportOptions",
    "ModuleFinder",
    "Pending",
    "ProducerKind",
    "default_loader",
    "depends_on",
    "module_producers",
]
