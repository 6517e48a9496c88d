"""
Eccezioni applicative
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Ogni eccezione porta lo status HTTP, un error_code stabile per il
frontend e un dizionario extra opzionale. L'handler in main.py le
converte in {"detail", "error_code", "extra"}.

Nessuna è fatale per il processo: nel caso peggiore le modifiche restano
in memoria e lo stato di persistenza lo segnala.
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "DuplicateError",
    "BusinessValidationError",
    "ConflictError",
    "CascadeConfirmationDeclined",
    "StorageError",
    "SyncError",
]


class AppException(Exception):
    """
    Base di tutte le eccezioni applicative.

    Le sottoclassi ridefiniscono solo gli attributi di classe.

    Attributes:
        status_code: HTTP status restituito dall'API
        error_code: Identificativo dell'errore (sovrascrivibile per istanza)
        default_detail: Messaggio usato se non ne viene passato uno
        detail: Messaggio per l'utente
        extra: Dati aggiuntivi per il frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Errore interno"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail if detail is not None else self.default_detail
        if error_code is not None:
            self.error_code = error_code
        self.extra = extra or None
        Exception.__init__(self, self.detail)


class NotFoundError(AppException):
    """Record assente dalle collezioni in memoria."""

    status_code = 404
    error_code = "RESOURCE_NOT_FOUND"
    default_detail = "Risorsa non trovata"


class DuplicateError(AppException):
    """
    Chiave già in uso: numero OS, nome cliente, descrizione di catalogo.

    Per il numero OS il duplicato è ammesso solo con conferma esplicita.
    """

    status_code = 409
    error_code = "DUPLICATE_RESOURCE"
    default_detail = "Risorsa già esistente"


class BusinessValidationError(ValueError, AppException):
    """
    Violazione di una regola di dominio (importo non positivo, periodo
    non valido, rate troppo piccole...).

    È anche un ValueError: sollevata dentro un validatore pydantic
    diventa un normale errore di validazione (422).
    """

    status_code = 422
    error_code = "BUSINESS_VALIDATION_ERROR"
    default_detail = "Dati non validi"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        AppException.__init__(self, detail, error_code, extra)


class ConflictError(AppException):
    """Operazione incompatibile con lo stato corrente della risorsa."""

    status_code = 409
    error_code = "CONFLICT_STATE"
    default_detail = "Conflitto di stato"


class CascadeConfirmationDeclined(ConflictError):
    """
    L'utente ha rifiutato una conferma da cui dipende la cascata.

    Lo stato resta quello precedente al comando. Esempio: uscita da
    FINALIZADO senza consenso alla rimozione del ricavo.
    """

    error_code = "CONFIRMATION_DECLINED"
    default_detail = "Operazione annullata dall'utente"


class StorageError(AppException):
    """Lettura, scrittura o backup del documento non riusciti."""

    status_code = 503
    error_code = "STORAGE_ERROR"
    default_detail = "Errore di accesso allo storage"


class SyncError(AppException):
    """
    Errore di sincronizzazione con il mirror remoto.

    Attributes:
        collection: Collezione coinvolta (se nota), ripetuta in extra
    """

    status_code = 502
    error_code = "SYNC_ERROR"
    default_detail = "Errore di sincronizzazione"

    def __init__(
        self,
        detail: Optional[str] = None,
        collection: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.collection = collection
        if collection is not None:
            extra = {**(extra or {}), "collection": collection}
        super().__init__(detail, error_code, extra)
