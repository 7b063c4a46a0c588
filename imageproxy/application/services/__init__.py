# Application services (re-exported for stable imports)
from .optimization_service import OptimizationService
from .single_flight import SingleFlight
from .source_resolver import SourceResolver

__all__ = [
    "OptimizationService",
    "SingleFlight",
    "SourceResolver",
]
