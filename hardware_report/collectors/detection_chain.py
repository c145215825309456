# hardware_report/collectors/detection_chain.py
"""
Detection chain: run every detector of a category and collect all results.

Every detector runs, not just until the first success, since sources expose
different fields. Failures are collected as diagnostics and never stop the
chain.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ..errors import DetectionError, ParseFailedError, UnavailableError, UnitContractError
from ..models.base import PartialRecord
from .detector import Detector


@dataclass
class ChainResult:
    """Successful partial records (in priority order) plus detection errors"""
    records: List[PartialRecord] = field(default_factory=list)
    errors: List[DetectionError] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def error_dicts(self) -> List[dict]:
        return [error.to_dict() for error in self.errors]


class DetectionChain:
    """
    Ordered detectors for one category.

    Args:
        detectors: Detectors in any order; they run by ascending priority
        strict: Re-raise UnitContractError instead of recording it
        parallel: Run detectors in a thread pool
        max_workers: Thread pool size
        disabled: Method names to skip
    """

    def __init__(self, detectors: Iterable[Detector], strict: bool = False,
                 parallel: bool = False, max_workers: int = 4,
                 disabled: Iterable[str] = (), name: str = "chain"):
        # sorted() is stable: equal priorities keep declaration order
        self.detectors = sorted(detectors, key=lambda d: d.priority)
        self.strict = strict
        self.parallel = parallel
        self.max_workers = max_workers
        self.disabled = set(disabled or ())
        self.logger = logging.getLogger(f"chain.{name}")

    def run(self) -> ChainResult:
        result = ChainResult()
        active = []
        for detector in self.detectors:
            if detector.method in self.disabled:
                self.logger.debug(f"Skipping disabled detector {detector.method}")
                result.skipped.append(detector.method)
            else:
                active.append(detector)

        if self.parallel and len(active) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(active))) as executor:
                futures = [executor.submit(self._attempt, detector) for detector in active]
                # Collected in submission order, which is priority order
                outcomes = [future.result() for future in futures]
        else:
            outcomes = [self._attempt(detector) for detector in active]

        for detector, (records, error) in zip(active, outcomes):
            if error is not None:
                result.errors.append(error)
            else:
                result.records.extend(records)
                result.succeeded.append(detector.method)
        return result

    def _attempt(self, detector: Detector) -> Tuple[Optional[List[PartialRecord]], Optional[DetectionError]]:
        try:
            return detector.attempt(), None
        except UnitContractError as e:
            if self.strict:
                raise
            self.logger.error(f"[{detector.method}] unit contract violated: {e}")
            return None, ParseFailedError(f"unit contract violated: {e}", detector.method)
        except DetectionError as e:
            if isinstance(e, UnavailableError):
                self.logger.debug(str(e))
            else:
                self.logger.warning(str(e))
            return None, e.with_method(detector.method)
        except Exception as e:
            self.logger.warning(f"[{detector.method}] unexpected failure: {e}")
            return None, ParseFailedError(f"{type(e).__name__}: {e}", detector.method)
