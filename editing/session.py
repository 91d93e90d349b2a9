"""
Processing session: the one owner of nomenclature, working set and export config.

A session replaces the ambient UI state of a single user: it is created once
per browser session and passed by reference to every operation.

Stale-result guard:
Every batch start, reset and nomenclature change bumps `generation`. A batch
result is only applied when it carries the current generation; results of a
superseded batch are dropped on arrival.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence

from domain.errors import AllExtractionsFailed
from domain.invoice import ExportColumn, NomenclatureTable
from domain.plans import Plan, check_quota
from export.columns import default_export_config
from extraction.batch import BatchResult, Extractor, InvoiceUpload, process_batch
from input_readers.nomenclature import parse_nomenclature

from .working_set import InvoiceWorkingSet

logger = logging.getLogger(__name__)


class ProcessingSession:
    def __init__(self, export_config: Optional[List[ExportColumn]] = None):
        self.nomenclature = NomenclatureTable()
        self.working_set = InvoiceWorkingSet(nomenclature=self.nomenclature)
        self.export_config: List[ExportColumn] = export_config or default_export_config()
        self.last_batch: Optional[BatchResult] = None
        self.error: Optional[str] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_results(self) -> bool:
        return self.last_batch is not None

    @property
    def can_process(self) -> bool:
        return not self.nomenclature.is_empty

    def _bump(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    # ------------------------------------------------------------------
    # Nomenclature
    # ------------------------------------------------------------------
    def load_nomenclature(self, raw_text: str) -> NomenclatureTable:
        """Replace the nomenclature; any in-flight or finished batch is invalidated."""
        table = parse_nomenclature(raw_text)
        self.nomenclature = table
        self.reset()
        logger.info("Loaded nomenclature with %d products", len(table.products))
        return table

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._bump()
        self.working_set = InvoiceWorkingSet(nomenclature=self.nomenclature)
        self.last_batch = None
        self.error = None

    def begin_batch(self) -> int:
        """Start a new batch and return its generation token."""
        generation = self._bump()
        self.error = None
        return generation

    def apply_batch(self, generation: int, result: BatchResult) -> bool:
        """Install a batch result unless a newer batch/reset superseded it."""
        with self._lock:
            if generation != self._generation:
                logger.warning(
                    "Discarding stale batch result (generation %d, current %d)", generation, self._generation
                )
                return False
            self.working_set = InvoiceWorkingSet(result.items, nomenclature=self.nomenclature)
            self.last_batch = result
            self.error = result.error_message
        return True

    def fail_batch(self, generation: int, error: AllExtractionsFailed) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self.working_set = InvoiceWorkingSet(nomenclature=self.nomenclature)
            self.last_batch = None
            self.error = str(error)
        return True

    def run_batch(
        self,
        uploads: Sequence[InvoiceUpload],
        extractor: Optional[Extractor] = None,
        plan: Optional[Plan] = None,
        used_invoices: int = 0,
        **kwargs,
    ) -> BatchResult:
        """
        Process uploads and replace the working set with the result.

        Raises:
            ValueError: no usable nomenclature or nothing to process
            QuotaExceeded: the plan limit would be exceeded
            AllExtractionsFailed: every file failed (working set is cleared)
        """
        if not uploads:
            raise ValueError("Please upload at least one invoice file first.")
        if not self.can_process:
            raise ValueError("Please upload a nomenclature with 'name' and 'sku' columns first.")
        if plan is not None:
            check_quota(plan, used_invoices, len(uploads))

        generation = self.begin_batch()
        try:
            result = process_batch(uploads, self.nomenclature, extractor=extractor, **kwargs)
        except AllExtractionsFailed as e:
            self.fail_batch(generation, e)
            raise
        self.apply_batch(generation, result)
        return result
