"""API metadata model and method generation."""

from .typeexpr import ApiType as ApiType
from .typeexpr import parse_type as parse_type
from .types import *
from .wrappers import GeneratedMethod as GeneratedMethod
from .wrappers import MethodMetadata as MethodMetadata
from .wrappers import Owner as Owner
from .wrappers import OwnerKind as OwnerKind
from .wrappers import generate_wrappers as generate_wrappers
from .wrappers import install_wrappers as install_wrappers
