"""
Types d'erreurs du domaine loadbook.
"""
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from loadbook.domain.services.reconciliation_service import ImportSummary


class LoadbookError(Exception):
    """Exception de base du domaine."""

    pass


class MalformedRawCaptureError(LoadbookError):
    """Capture brute illisible (series d'echantillons invalides)."""

    def __init__(self, external_id: str, detail: str) -> None:
        self.external_id = external_id
        self.detail = detail
        super().__init__(f"Capture brute {external_id} invalide: {detail}")


class ReconciliationError(LoadbookError):
    """Erreur de niveau batch pendant une reconciliation."""

    pass


class ReconciliationInProgressError(ReconciliationError):
    """Une autre passe de reconciliation tient deja le verrou du store."""

    pass


class ReconciliationWriteError(ReconciliationError):
    """Le stockage a echoue en cours de batch.

    Attributes:
        summary: compteurs des items traites avant l'echec (deja commites)
        original_error: exception du stockage
    """

    def __init__(self, summary: "ImportSummary", original_error: Optional[Exception] = None) -> None:
        self.summary = summary
        self.original_error = original_error
        super().__init__(
            f"Echec d'ecriture apres {summary.newly_imported} import(s): {original_error}"
        )
