# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Readers for the reference tables: transcript lengths, FASTA, A site offsets."""

import logging as lg
from collections import OrderedDict

import pandas as pd
import pysam

LENGTH_COLUMNS = ['transcript', 'utr5_length', 'cds_length', 'utr3_length']
FRAME_COLUMNS = ['frame_0', 'frame_1', 'frame_2']


def load_lengths(lengths_path):
    """Load the transcript lengths table.

    Args:
        lengths_path: Whitespace delimited file, no header, with columns
            transcript, 5' UTR length, CDS length, 3' UTR length.

    Returns:
        pandas.DataFrame with columns ``LENGTH_COLUMNS``.
    """
    lengths = pd.read_csv(
        lengths_path,
        sep=r'\s+',
        header=None,
        names=LENGTH_COLUMNS,
        dtype={'transcript': str},
        comment='#',
    )
    for col in LENGTH_COLUMNS[1:]:
        if lengths[col].isna().any():
            raise ValueError(f'Missing values in column "{col}" of {lengths_path}')
        lengths[col] = lengths[col].astype('int64')
    if lengths['transcript'].duplicated().any():
        _dups = lengths.loc[lengths['transcript'].duplicated(), 'transcript'].tolist()
        raise ValueError(f'Duplicate transcripts in {lengths_path}: {_dups[:5]}')
    lg.debug(f'Loaded lengths for {len(lengths)} transcripts')
    return lengths


def load_fasta(fasta_path):
    """Load transcript sequences keyed by the first word of each header.

    Plain or gzipped FASTA, read with :class:`pysam.FastxFile`. A header
    with no sequence lines maps to ``''``.
    """
    seqs = OrderedDict()
    with pysam.FastxFile(fasta_path) as fh:
        for entry in fh:
            seqs[entry.name] = entry.sequence or ''
    lg.debug(f'Loaded {len(seqs)} sequences from {fasta_path}')
    return seqs


def _offsets_header(offsets_path):
    """Line number and fields of the first non-blank, non-comment line."""
    with open(offsets_path) as fh:
        for lineno, line in enumerate(fh):
            fields = line.split('#', 1)[0].split()
            if fields:
                return lineno, fields
    raise ValueError(f'Offsets file {offsets_path} is empty')


def load_offsets(offsets_path):
    """Load A site offset rules in long form.

    The file has a header ``frame_0 frame_1 frame_2`` and one row per
    footprint length, the length being the first field of the row. A
    header that also names the first column is accepted.

    Returns:
        pandas.DataFrame with columns ``frame``, ``length``, ``offset``,
        frame-major. Cells marked NA are omitted.
    """
    lineno, header = _offsets_header(offsets_path)
    missing = [c for c in FRAME_COLUMNS if c not in header]
    if missing:
        raise ValueError(f'Offsets file {offsets_path} lacks columns {missing}')
    if len(header) == len(FRAME_COLUMNS):
        names = ['length'] + header
    elif len(header) == len(FRAME_COLUMNS) + 1 and header[0] not in FRAME_COLUMNS:
        names = ['length'] + header[1:]
    else:
        raise ValueError(f'Cannot find read length column in {offsets_path}')

    table = pd.read_csv(
        offsets_path,
        sep=r'\s+',
        header=None,
        skiprows=lineno + 1,
        names=names,
        comment='#',
    )
    if table['length'].isna().any():
        raise ValueError(f'Missing read lengths in {offsets_path}')
    table = table.set_index('length')
    table.index = table.index.astype('int64')
    if table.index.duplicated().any():
        raise ValueError(f'Duplicate read lengths in {offsets_path}')

    parts = []
    for frame, col in enumerate(FRAME_COLUMNS):
        parts.append(pd.DataFrame({
            'frame': frame,
            'length': table.index.to_numpy(),
            'offset': table[col].to_numpy(),
        }))
    offsets = pd.concat(parts, ignore_index=True)
    offsets = offsets.dropna(subset=['offset']).reset_index(drop=True)
    offsets['offset'] = offsets['offset'].astype('int64')
    return offsets


def load_d5_d3_subsets(subsets_path):
    """Load explicit (d5, d3) pairs from a table with header ``d5 d3``."""
    subsets = pd.read_csv(subsets_path, sep=r'\s+', comment='#')
    if not {'d5', 'd3'}.issubset(subsets.columns):
        raise ValueError(f'{subsets_path} must have columns "d5" and "d3"')
    return subsets[['d5', 'd3']].astype('int64')


def load_transcript_list(list_path):
    """Read transcript ids, one per line; blank lines and # comments skipped."""
    names = []
    with open(list_path) as fh:
        for line in fh:
            line = line.strip()
            if line and not line.startswith('#'):
                names.append(line.split()[0])
    return names
