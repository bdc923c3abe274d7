from .catalog_service import CatalogService
from .gateway import ServiceGateway
from .ledger_service import SessionLedgerService
from .mastery_service import MasteryService, compute_mastery
from .review_service import ReviewOutcome, ReviewService

__all__ = [
    'CatalogService',
    'SessionLedgerService',
    'MasteryService',
    'ReviewService',
    'ReviewOutcome',
    'ServiceGateway',
    'compute_mastery',
]
