"""
Service layer for business logic.
"""
from .identity import IdentityResolver
from .portal_client import PortalClient
from .reconciler import Reconciler
from .result_parser import ParsedResult, ResultStatus, parse_result_cells
from .samples import SampleService
from .scheduler import SchedulerService
from .table_extractor import extract_cells, iter_table_cells

__all__ = [
    "IdentityResolver",
    "PortalClient",
    "Reconciler",
    "ParsedResult",
    "ResultStatus",
    "parse_result_cells",
    "SampleService",
    "SchedulerService",
    "extract_cells",
    "iter_table_cells",
]
