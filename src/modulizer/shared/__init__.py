"""
Shared components: diagnostics, locations, settings and identifier helpers.
"""

from .source_location import SourceLocation, LineIndex
from .errors import (
    Diagnostic,
    DiagnosticReporter,
    Severity,
    ModulizerError,
    SetupError,
    UrlFormatError,
    RegistryFrozenError,
    ImportAllocationError,
    ModulizerImplementationError,
)
from .settings import (
    ConversionSettings,
    DeclarationKind,
    ImportStyle,
    PackageType,
    create_default_conversion_settings,
)
from .identifiers import find_available_identifier, allocate_identifier, get_module_id
