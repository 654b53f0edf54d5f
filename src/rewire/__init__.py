from rewire.aliases import AliasRegistry
from rewire.config import Config
from rewire.container import Container
from rewire.contextual import ContextualBindingBuilder
from rewire.exceptions import (
    RewireAliasError,
    RewireBindingResolutionError,
    RewireCircularDependencyError,
    RewireError,
    RewireInvalidRegistrationError,
    RewireMethodNotBoundError,
    RewireNotInstantiableError,
    RewireTypeMismatchError,
    RewireUnresolvablePrimitiveError,
)
from rewire.lock_mode import LockMode
from rewire.types import Binding

__all__ = [
    "AliasRegistry",
    "Binding",
    "Config",
    "Container",
    "ContextualBindingBuilder",
    "LockMode",
    "RewireAliasError",
    "RewireBindingResolutionError",
    "RewireCircularDependencyError",
    "RewireError",
    "RewireInvalidRegistrationError",
    "RewireMethodNotBoundError",
    "RewireNotInstantiableError",
    "RewireTypeMismatchError",
    "RewireUnresolvablePrimitiveError",
]
