# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Feature table construction.

Enumerates every (transcript, A site codon, d5, d3) combination and
derives its sequence context: the A, P and E site codons and the bias
sequences at the two ends of the footprint.

Coordinates are 1-based and inclusive. For a transcript with 5' UTR
length ``U`` the A site codon of index ``i`` spans ``U + 3(i-1) + 1`` to
``U + 3i``. Windows that run past either end of the sequence are clipped
(see :func:`riboprep.utils.helpers.substr`), so P and E sites of the
first codons, and bias windows near the transcript ends, may be shorter
than three nucleotides or empty.
"""

import logging as lg
from itertools import product

import numpy as np
import pandas as pd

from ..utils.helpers import substr
from ..utils.pool import WorkerPool

DEFAULT_D5_LENGTHS = range(15, 19)
DEFAULT_D3_LENGTHS = range(9, 12)
BIAS_WINDOWS = ('flanking', 'internal')

FEATURE_COLUMNS = ['transcript', 'cod_idx', 'A', 'P', 'E', 'd5', 'd3', 'f5', 'f3', 'count']
KEY_COLUMNS = ['transcript', 'cod_idx', 'd5', 'd3']


def get_codons(transcript, cod_idx):
    """Return the (A, P, E) site codons for A site codon ``cod_idx``.

    Args:
        transcript: :class:`Transcript` record.
        cod_idx: 1-based index of the A site codon within the CDS.

    Returns:
        Tuple of three strings, or three Nones if the transcript has no
        sequence.
    """
    utr5 = transcript.utr5_length
    seq = transcript.sequence
    a_codon = substr(seq, utr5 + 3 * (cod_idx - 1) + 1, utr5 + 3 * cod_idx)
    p_codon = substr(seq, utr5 + 3 * (cod_idx - 2) + 1, utr5 + 3 * (cod_idx - 1))
    e_codon = substr(seq, utr5 + 3 * (cod_idx - 3) + 1, utr5 + 3 * (cod_idx - 2))
    return a_codon, p_codon, e_codon


def bias_bounds(utr5_length, cod_idx, digest_length, region, bias_length=2, window='flanking'):
    """1-based inclusive bounds of a bias sequence.

    With ``window='flanking'`` (the default) the f5 window ends at
    ``A_start - d5``, the footprint's first nucleotide, and the f3 window
    starts at ``A_end + d3 + 1``, just past its last one. With
    ``window='internal'`` the bias sequence is the outermost
    ``bias_length`` nucleotides inside the footprint at either end.
    """
    a_start = utr5_length + 3 * (cod_idx - 1) + 1
    a_end = utr5_length + 3 * cod_idx
    if window not in BIAS_WINDOWS:
        raise ValueError(f'Unknown bias window "{window}"; expected one of {BIAS_WINDOWS}')
    if region == 'f5':
        if window == 'internal':
            start = a_start - digest_length
            return start, start + bias_length - 1
        end = a_start - digest_length
        return end - bias_length + 1, end
    elif region == 'f3':
        if window == 'internal':
            end = a_end + digest_length
            return end - bias_length + 1, end
        start = a_end + digest_length + 1
        return start, start + bias_length - 1
    raise ValueError(f'Unknown bias region "{region}"; expected "f5" or "f3"')


def get_bias_seq(transcript, cod_idx, digest_length, region, bias_length=2, window='flanking'):
    """Return the f5 or f3 bias sequence for one footprint configuration."""
    start, end = bias_bounds(transcript.utr5_length, cod_idx, digest_length,
                             region, bias_length, window)
    return substr(transcript.sequence, start, end)


def digest_grid(d5_lengths=DEFAULT_D5_LENGTHS, d3_lengths=DEFAULT_D3_LENGTHS, subsets=None):
    """Digest length pairs to enumerate per codon.

    Args:
        d5_lengths: Iterable of legal 5' digest lengths.
        d3_lengths: Iterable of legal 3' digest lengths.
        subsets: Optional DataFrame with columns ``d5`` and ``d3``. When
            given it replaces the full d5 x d3 grid.

    Returns:
        DataFrame with int columns ``d5`` and ``d3``, duplicates removed.
    """
    if subsets is not None:
        grid = subsets[['d5', 'd3']]
    else:
        grid = pd.DataFrame(list(product(d5_lengths, d3_lengths)), columns=['d5', 'd3'])
    grid = grid.astype('int64').drop_duplicates().reset_index(drop=True)
    if grid.empty:
        raise ValueError('Digest length grid is empty')
    return grid


def transcript_features(task):
    """Feature rows for a single transcript.

    Pure function of its argument so it can run in a worker process.

    Args:
        task: Tuple ``(transcript, d5, d3, f5_length, f3_length, window)``
            where ``d5`` and ``d3`` are parallel arrays describing the grid.

    Returns:
        DataFrame with ``FEATURE_COLUMNS``, ordered by cod_idx then grid row.
    """
    transcript, d5, d3, f5_length, f3_length, window = task
    n_codons = transcript.n_codons
    n_grid = len(d5)
    cod_idx = np.arange(1, n_codons + 1, dtype=np.int64)
    codons = [get_codons(transcript, i) for i in cod_idx]

    _rep_idx = np.repeat(cod_idx, n_grid)
    _d5 = np.tile(np.asarray(d5, dtype=np.int64), n_codons)
    _d3 = np.tile(np.asarray(d3, dtype=np.int64), n_codons)
    f5 = [get_bias_seq(transcript, i, d, 'f5', f5_length, window) for i, d in zip(_rep_idx, _d5)]
    f3 = [get_bias_seq(transcript, i, d, 'f3', f3_length, window) for i, d in zip(_rep_idx, _d3)]

    return pd.DataFrame({
        'transcript': transcript.name,
        'cod_idx': _rep_idx,
        'A': np.repeat(np.array([c[0] for c in codons], dtype=object), n_grid),
        'P': np.repeat(np.array([c[1] for c in codons], dtype=object), n_grid),
        'E': np.repeat(np.array([c[2] for c in codons], dtype=object), n_grid),
        'd5': _d5,
        'd3': _d3,
        'f5': pd.Series(f5, dtype=object),
        'f3': pd.Series(f3, dtype=object),
        'count': 0.0,
    }, columns=FEATURE_COLUMNS)


def _empty_table():
    table = pd.DataFrame({c: pd.Series(dtype=object) for c in FEATURE_COLUMNS})
    return table.astype({'cod_idx': 'int64', 'd5': 'int64', 'd3': 'int64', 'count': 'float64'})


def build_feature_table(transcripts, grid=None, f5_length=2, f3_length=2,
                        bias_window='flanking', pool=None):
    """Build the regression feature table.

    Args:
        transcripts: Iterable of :class:`Transcript` (e.g. a TranscriptIndex).
        grid: DataFrame of (d5, d3) pairs; default :func:`digest_grid`.
        f5_length: Length of the 5' bias sequence.
        f3_length: Length of the 3' bias sequence.
        bias_window: ``'flanking'`` (default) or ``'internal'``, see :func:`bias_bounds`.
        pool: Open :class:`WorkerPool`. Per-transcript blocks are computed
            through it; without one they are computed in-process.

    Returns:
        DataFrame with one row per transcript x codon x grid row and a
        zero ``count`` column.
    """
    if grid is None:
        grid = digest_grid()
    if bias_window not in BIAS_WINDOWS:
        raise ValueError(f'Unknown bias window "{bias_window}"; expected one of {BIAS_WINDOWS}')
    _d5 = grid['d5'].to_numpy()
    _d3 = grid['d3'].to_numpy()
    tasks = [(t, _d5, _d3, f5_length, f3_length, bias_window) for t in transcripts]
    lg.info(f'Building features for {len(tasks)} transcripts x {len(grid)} digest length pairs')
    if not tasks:
        return _empty_table()

    if pool is None:
        with WorkerPool(ncpu=1) as _pool:
            blocks = _pool.map_ordered(transcript_features, tasks)
    else:
        blocks = pool.map_ordered(transcript_features, tasks)

    table = pd.concat(blocks, ignore_index=True)
    if table.empty:
        return _empty_table()
    lg.info(f'Feature table has {len(table)} rows')
    return table


def as_model_frame(table):
    """Copy of ``table`` with the categorical predictors as pandas categoricals."""
    frame = table.copy()
    for col in ('d5', 'd3', 'A', 'P', 'E', 'f5', 'f3'):
        if col in frame.columns:
            frame[col] = frame[col].astype('category')
    return frame
