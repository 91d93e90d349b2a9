from .session import ProcessingSession
from .working_set import InvoiceWorkingSet

__all__ = ["InvoiceWorkingSet", "ProcessingSession"]
