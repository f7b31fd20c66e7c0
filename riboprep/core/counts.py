# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Footprint aggregation and the join onto the feature table."""

import logging as lg
from dataclasses import dataclass

import numpy as np

from ..errors import UnmatchedFootprintError
from ..utils.helpers import percent
from .features import KEY_COLUMNS

UNMATCHED_POLICIES = ('drop', 'error')


@dataclass(frozen=True)
class JoinReport:
    """Outcome of :func:`count_footprints`.

    Rows are aggregated (transcript, cod_idx, d5, d3) keys; counts are
    summed footprint weights. Out of scope keys belong to transcripts
    absent from the feature table and are not unmatched.
    """
    matched_rows: int
    matched_count: float
    unmatched_rows: int
    unmatched_count: float
    out_of_scope_rows: int = 0
    out_of_scope_count: float = 0.0

    @property
    def total_count(self):
        return self.matched_count + self.unmatched_count + self.out_of_scope_count

    @property
    def unmatched_percent(self):
        return percent(self.unmatched_count, self.total_count)


def aggregate_footprints(footprints):
    """Sum footprint counts per (transcript, cod_idx, d5, d3)."""
    return footprints.groupby(KEY_COLUMNS, as_index=False, sort=True)['count'].sum()


def count_footprints(footprints, features, on_unmatched='drop'):
    """Write summed footprint counts into the feature table.

    Footprints on transcripts absent from ``features`` are set aside first
    and reported as out of scope. The rest are matched exactly on their
    keys; keys without a feature row (digest lengths outside the grid,
    codon index 0 or fractional) are dropped, or raise
    :class:`UnmatchedFootprintError` with ``on_unmatched='error'``.

    Args:
        footprints: DataFrame from :func:`process_alignments`.
        features: DataFrame from :func:`build_feature_table`. Not modified.
        on_unmatched: ``'drop'`` or ``'error'``.

    Returns:
        (table, report): copy of ``features`` with ``count`` filled in, and
        a :class:`JoinReport`.
    """
    if on_unmatched not in UNMATCHED_POLICIES:
        raise ValueError(f'on_unmatched must be one of {UNMATCHED_POLICIES}, got "{on_unmatched}"')

    in_scope = footprints['transcript'].isin(features['transcript'].unique())
    out_of_scope = aggregate_footprints(footprints.loc[~in_scope])
    if len(out_of_scope):
        lg.info('... Setting aside {:d} footprint keys on {:d} transcripts outside the feature table'.format(
            len(out_of_scope), out_of_scope['transcript'].nunique()))

    agg = aggregate_footprints(footprints.loc[in_scope])
    integral = np.floor(agg['cod_idx']) == agg['cod_idx']
    candidates = agg.loc[integral].astype({'cod_idx': 'int64', 'd5': 'int64', 'd3': 'int64'})

    _rows = features[KEY_COLUMNS].assign(_row=features.index)
    merged = _rows.merge(candidates, on=KEY_COLUMNS, how='inner')

    matched_count = float(merged['count'].sum())
    report = JoinReport(
        matched_rows=len(merged),
        matched_count=matched_count,
        unmatched_rows=len(agg) - len(merged),
        unmatched_count=float(agg['count'].sum()) - matched_count,
        out_of_scope_rows=len(out_of_scope),
        out_of_scope_count=float(out_of_scope['count'].sum()),
    )
    if report.unmatched_rows:
        if on_unmatched == 'error':
            raise UnmatchedFootprintError(report.unmatched_rows, report.unmatched_count)
        lg.info('... Dropping {:d} footprint keys ({:.1f}% of counts) without a feature row'.format(
            report.unmatched_rows, report.unmatched_percent))

    table = features.copy()
    table['count'] = table['count'].astype('float64')
    table.loc[merged['_row'].to_numpy(), 'count'] = merged['count'].to_numpy()
    return table, report


def count_d5_d3(footprints):
    """Footprint counts per digest length pair.

    Returns:
        DataFrame with columns ``d5, d3, count, proportion``, sorted by
        count (descending). ``proportion`` is the cumulative share of all
        counts up to and including the row.
    """
    counts = footprints.groupby(['d5', 'd3'], as_index=False)['count'].sum()
    counts = counts.sort_values('count', ascending=False, kind='mergesort').reset_index(drop=True)
    _total = counts['count'].sum()
    counts['proportion'] = counts['count'].cumsum() / _total if _total else 0.0
    return counts


def codon_profile(table, transcript):
    """Counts summed over digest lengths for each codon of ``transcript``."""
    subset = table.loc[table['transcript'] == transcript]
    return subset.groupby(['transcript', 'cod_idx'], as_index=False, sort=True)['count'].sum()
