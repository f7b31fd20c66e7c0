# -*- coding: utf-8 -*-

# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Footprint alignments: BAM reading and A site assignment.

Each aligned footprint is placed on an A site codon and a pair of digest
lengths using the offset rules. Footprints that cannot be placed are
removed in stages, and each stage reports how many it removed.
"""

import logging as lg
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import pysam

from ..errors import MissingTranscriptError
from ..utils.helpers import percent

ALIGNMENT_COLUMNS = ['rname', 'pos', 'seq', 'qwidth', 'weight']
FOOTPRINT_COLUMNS = ['transcript', 'cod_idx', 'd5', 'd3', 'seq', 'count']


@dataclass(frozen=True)
class FilterStage:
    """Footprints removed by one filtering stage."""
    name: str
    removed: int
    total: int

    @property
    def percent(self):
        return percent(self.removed, self.total)

    def __str__(self):
        return '... Removing {:d} ({:.1f}%) {}'.format(self.removed, self.percent, self.name)


@dataclass
class FilterReport:
    """Diagnostic counts for a run of :func:`process_alignments`."""
    total: int = 0
    stages: list = field(default_factory=list)

    def add(self, name, removed):
        stage = FilterStage(name, int(removed), self.total)
        self.stages.append(stage)
        lg.info(str(stage))
        return stage

    @property
    def removed(self):
        return sum(s.removed for s in self.stages)

    @property
    def kept(self):
        return self.total - self.removed

    def to_frame(self):
        return pd.DataFrame(
            [(s.name, s.removed, s.percent) for s in self.stages],
            columns=['stage', 'removed', 'percent'],
        )


def _query_width(aln):
    qwidth = aln.infer_query_length()
    if qwidth is None:
        qwidth = aln.query_length
    return qwidth


def read_alignments(bam_path, weight_tag='ZW', threads=1):
    """Read every record of a SAM/BAM file, mapped or not.

    Args:
        bam_path: Path to the alignment file. An index is not required.
        weight_tag: Name of the numeric tag holding the footprint weight.
        threads: Decompression threads passed to pysam.

    Returns:
        DataFrame with ``ALIGNMENT_COLUMNS``. ``pos`` is 1-based; ``rname``
        and ``pos`` are missing for unmapped records; ``weight`` is missing
        for records without ``weight_tag``.
    """
    rname, pos, seq, qwidth, weight = [], [], [], [], []
    with pysam.AlignmentFile(bam_path, check_sq=False, threads=threads) as sf:
        for aln in sf.fetch(until_eof=True):
            if aln.is_unmapped:
                rname.append(None)
                pos.append(np.nan)
            else:
                rname.append(aln.reference_name)
                pos.append(aln.reference_start + 1)
            seq.append(aln.query_sequence)
            qwidth.append(_query_width(aln))
            weight.append(aln.get_tag(weight_tag) if aln.has_tag(weight_tag) else np.nan)

    lg.debug(f'Read {len(rname)} records from {bam_path}')
    return pd.DataFrame({
        'rname': pd.Series(rname, dtype=object),
        'pos': pd.Series(pos, dtype='float64'),
        'seq': pd.Series(seq, dtype=object),
        'qwidth': pd.Series(qwidth, dtype='int64'),
        'weight': pd.Series(weight, dtype='float64'),
    }, columns=ALIGNMENT_COLUMNS)


def offset_lookup(offsets):
    """``{(frame, length): d5}``; the first rule wins on duplicate keys."""
    lookup = {}
    for frame, length, offset in offsets[['frame', 'length', 'offset']].itertuples(index=False):
        lookup.setdefault((int(frame), int(length)), int(offset))
    return lookup


def process_alignments(alignments, lengths, offsets, strict=False, missing_weight=1.0):
    """Assign footprints to A site codons and digest lengths.

    Stages, in order:
        1. drop unaligned footprints (no reference);
        2. frame = (pos - utr5_length - 1) mod 3;
        3. d5 from the offset rules for (frame, qwidth), dropping
           footprints without a rule;
        4. d3 = qwidth - d5 - 3;
        5. cod_idx = (pos + d5 - utr5_length + 2) / 3, dropping
           footprints with cod_idx outside [0, cds_length / 3].

    Args:
        alignments: DataFrame from :func:`read_alignments`.
        lengths: DataFrame from :func:`load_lengths`.
        offsets: DataFrame from :func:`load_offsets`.
        strict: Raise on references missing from ``lengths`` and on
            missing weights, instead of dropping / defaulting them.
        missing_weight: Weight given to footprints without a weight tag.

    Returns:
        (footprints, report): DataFrame with ``FOOTPRINT_COLUMNS`` and the
        :class:`FilterReport`.
    """
    num_footprints = len(alignments)
    report = FilterReport(total=num_footprints)
    lg.info(f'Read in {num_footprints} total footprints')

    # 1. unaligned
    unaligned = alignments['rname'].isna()
    report.add('unaligned footprints', unaligned.sum())
    aln = alignments.loc[~unaligned].copy()

    # 2. frame
    _lengths = lengths.set_index('transcript')
    aln['utr5_length'] = aln['rname'].map(_lengths['utr5_length'])
    aln['cds_length'] = aln['rname'].map(_lengths['cds_length'])
    unknown = aln['utr5_length'].isna()
    if unknown.any():
        _names = sorted(aln.loc[unknown, 'rname'].unique())
        if strict:
            raise MissingTranscriptError(_names, 'lengths table')
        lg.warning(f'{unknown.sum()} footprints align to {len(_names)} references '
                   'missing from the lengths table; they have no frame')
    aln['frame'] = np.mod(aln['pos'] - aln['utr5_length'] - 1, 3)

    # 3. 5' digest length
    lookup = offset_lookup(offsets)
    d5 = [lookup.get((int(f), int(w))) if not np.isnan(f) else None
          for f, w in zip(aln['frame'].to_numpy(), aln['qwidth'].to_numpy())]
    aln['d5'] = pd.Series(d5, index=aln.index, dtype='float64')
    no_offset = aln['d5'].isna()
    report.add('footprints outside A site offset definitions', no_offset.sum())
    aln = aln.loc[~no_offset].copy()
    aln['d5'] = aln['d5'].astype('int64')

    # 4. 3' digest length
    aln['d3'] = aln['qwidth'] - aln['d5'] - 3

    # 5. codon index
    aln['cod_idx'] = (aln['pos'] + aln['d5'] - aln['utr5_length'] + 2) / 3
    outside_cds = (aln['cod_idx'] < 0) | (aln['cod_idx'] > aln['cds_length'] / 3)
    report.add('footprints outside CDS', outside_cds.sum())
    aln = aln.loc[~outside_cds]

    no_weight = aln['weight'].isna()
    if no_weight.any():
        if strict:
            raise ValueError(f'{no_weight.sum()} footprints lack a weight tag')
        lg.info(f'{no_weight.sum()} footprints lack a weight tag; using {missing_weight}')

    footprints = pd.DataFrame({
        'transcript': aln['rname'],
        'cod_idx': aln['cod_idx'],
        'd5': aln['d5'],
        'd3': aln['d3'],
        'seq': aln['seq'],
        'count': aln['weight'].fillna(missing_weight),
    }, columns=FOOTPRINT_COLUMNS).reset_index(drop=True)
    lg.info(f'Kept {len(footprints)} of {num_footprints} footprints')
    return footprints, report


def load_bam(bam_path, lengths, offsets, weight_tag='ZW', threads=1, strict=False,
             missing_weight=1.0):
    """Read a BAM file and assign its footprints. See :func:`process_alignments`."""
    alignments = read_alignments(bam_path, weight_tag=weight_tag, threads=threads)
    return process_alignments(alignments, lengths, offsets, strict=strict,
                              missing_weight=missing_weight)
