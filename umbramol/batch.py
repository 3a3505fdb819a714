"""
Column-at-a-time execution with per-row failure isolation.

Each row is processed independently: a parse, malformed-buffer or
serialization failure marks only that row invalid and the rest of the batch
proceeds. None inputs pass through as invalid rows without a failure.
With strict=True the first row failure is raised instead.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, NamedTuple, Optional, Sequence

import numpy as np
from rdkit import Chem

from . import chem
from .codec import MolBuffer, MolStruct, PayloadKind, convert, decode_fingerprint, encode_bare, encode_prefixed
from .compare import SubstructureScreen
from .errors import CatalogError, Result, UmbramolError
from .fingerprints import DEFAULT_FINGERPRINTER

logger = logging.getLogger(__name__)


class BatchResult(NamedTuple):
    """
    values: one entry per row (None where the row is invalid)
    valid: boolean mask, True where the row produced a value
    failures: row index -> failed Result, for rows that raised
    """
    values: Any
    valid: np.ndarray
    failures: Dict[int, Result]

    def __len__(self) -> int:
        return len(self.valid)

    @property
    def n_invalid(self) -> int:
        return int((~self.valid).sum())


def _run_row(func: Callable, row: Any) -> Optional[Result]:
    if row is None:
        return None
    try:
        return Result.ok(func(row))
    except CatalogError:
        raise
    except UmbramolError as e:
        return Result.fail(e)


def map_rows(func: Callable, rows: Iterable, strict: bool = False,
             n_jobs: int = 1, show_progress: bool = False,
             desc: str = "Processing rows") -> BatchResult:
    """
    Apply func to every row, isolating failures.

    Args:
        func: Callable applied to each non-None row
        rows: Input column
        strict: Raise the first row failure instead of masking it
        n_jobs: Worker threads (rows never share a molecule object)
        show_progress: Show progress bar (requires tqdm)
        desc: Progress bar label

    Returns:
        BatchResult with a list of values
    """
    if n_jobs < 1:
        raise ValueError(f"n_jobs must be >= 1, got {n_jobs}")
    rows = list(rows)

    if show_progress:
        try:
            from tqdm import tqdm
            rows_iter = tqdm(rows, desc=desc)
        except ImportError:
            logger.warning("tqdm not available, progress bar disabled")
            rows_iter = rows
    else:
        rows_iter = rows

    if n_jobs == 1:
        outcomes = [_run_row(func, row) for row in rows_iter]
    else:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            outcomes = list(executor.map(lambda row: _run_row(func, row), rows_iter))

    values = []
    valid = np.zeros(len(rows), dtype=bool)
    failures = {}
    for i, outcome in enumerate(outcomes):
        if outcome is None:
            values.append(None)
            continue
        if not outcome.is_ok:
            if strict:
                outcome.unwrap()
            logger.debug("Row %d failed (%s): %s", i, outcome.failure.value, outcome.message)
            failures[i] = outcome
            values.append(None)
            continue
        values.append(outcome.value)
        valid[i] = True

    if failures:
        logger.warning("%d of %d rows failed", len(failures), len(rows))
    return BatchResult(values, valid, failures)


def _to_array(result: BatchResult, dtype, fill) -> BatchResult:
    arr = np.full(len(result.values), fill, dtype=dtype)
    for i, v in enumerate(result.values):
        if result.valid[i]:
            arr[i] = v
    return BatchResult(arr, result.valid, result.failures)


def encode_column(smiles: Sequence[Optional[str]],
                  kind: PayloadKind = PayloadKind.PREFIXED,
                  strict: bool = False, **kwargs) -> BatchResult:
    """SMILES column -> column of bare or prefixed buffers."""
    encode = encode_prefixed if kind is PayloadKind.PREFIXED else encode_bare
    return map_rows(lambda s: encode(chem.parse(s)), smiles, strict=strict,
                    desc="Encoding molecules", **kwargs)


def convert_column(buffers: Sequence[Optional[MolBuffer]],
                   strict: bool = False, **kwargs) -> BatchResult:
    return map_rows(convert, buffers, strict=strict, desc="Converting buffers", **kwargs)


def _row_fingerprint(value) -> int:
    if isinstance(value, MolStruct):
        return value.fingerprint
    if isinstance(value, MolBuffer):
        if value.has_prefix:
            return value.fingerprint
        return DEFAULT_FINGERPRINTER.generate(value.to_mol())
    if isinstance(value, Chem.Mol):
        return DEFAULT_FINGERPRINTER.generate(value)
    raise TypeError(f"Cannot fingerprint {type(value).__name__}")


def fingerprint_column(values: Sequence, strict: bool = False, **kwargs) -> BatchResult:
    """
    Fingerprints of a column as a uint64 array.

    Prefixed buffers and struct rows are read, not recomputed; bare buffers
    and molecules are fingerprinted. Invalid rows hold 0 and are masked.
    """
    result = map_rows(_row_fingerprint, values, strict=strict,
                      desc="Fingerprinting", **kwargs)
    return _to_array(result, np.uint64, 0)


def decode_fingerprints(buffers: Sequence[Optional[bytes]]) -> BatchResult:
    """Raw prefixed byte buffers -> uint64 array; short buffers are masked."""
    arr = np.zeros(len(buffers), dtype=np.uint64)
    valid = np.zeros(len(buffers), dtype=bool)
    for i, buf in enumerate(buffers):
        if buf is None:
            continue
        fp = decode_fingerprint(buf)
        if fp is not None:
            arr[i] = fp
            valid[i] = True
    return BatchResult(arr, valid, {})


def substructure_column(targets: Sequence, query, screen: Optional[SubstructureScreen] = None,
                        strict: bool = False, **kwargs) -> BatchResult:
    """is_substructure(target, query) for every target row."""
    screen = screen or SubstructureScreen()
    result = map_rows(lambda t: screen.is_substructure(t, query), targets,
                      strict=strict, desc="Substructure search", **kwargs)
    return _to_array(result, bool, False)


def substruct_count_column(targets: Sequence, query, screen: Optional[SubstructureScreen] = None,
                           strict: bool = False, **kwargs) -> BatchResult:
    screen = screen or SubstructureScreen()
    result = map_rows(lambda t: screen.substruct_count(t, query), targets,
                      strict=strict, desc="Counting matches", **kwargs)
    return _to_array(result, np.int32, 0)


def exact_match_column(values: Sequence, other, screen: Optional[SubstructureScreen] = None,
                       strict: bool = False, **kwargs) -> BatchResult:
    screen = screen or SubstructureScreen()
    result = map_rows(lambda v: screen.is_exact_match(v, other), values,
                      strict=strict, desc="Exact match", **kwargs)
    return _to_array(result, bool, False)
