# This file is part of Riboprep.
#
# Licensed under MIT License.

"""TSV output for the regression table and run statistics."""

import pandas as pd

from ..utils.helpers import percent


def write_table(table, filename):
    """Write a DataFrame as tab-separated text, missing values as ``NA``."""
    with open(filename, 'w') as outh:
        table.to_csv(outh, sep='\t', index=False, na_rep='NA')


def output_run_stats(run_info, filter_report, join_report, filename):
    """Write the run info comment line and per-stage drop counts.

    Args:
        run_info: OrderedDict of run-level values (version, totals).
        filter_report: :class:`FilterReport` from the alignment processor,
            or None.
        join_report: :class:`JoinReport` from the join, or None.
        filename: Output path.
    """
    rows = []
    if filter_report is not None:
        for stage in filter_report.stages:
            rows.append(('filter', stage.name, stage.removed, stage.percent))
    if join_report is not None:
        _total = join_report.total_count
        rows.append(('join', 'matched footprint counts', join_report.matched_count,
                     percent(join_report.matched_count, _total)))
        rows.append(('join', 'unmatched footprint counts', join_report.unmatched_count,
                     join_report.unmatched_percent))
        rows.append(('join', 'out-of-scope footprint counts', join_report.out_of_scope_count,
                     percent(join_report.out_of_scope_count, _total)))
    _stats = pd.DataFrame(rows, columns=['step', 'description', 'value', 'percent'])

    _comment = ['## RunInfo']
    _comment += ['{}:{}'.format(*tup) for tup in run_info.items()]

    with open(filename, 'w') as outh:
        outh.write('\t'.join(_comment) + '\n')
        _stats.to_csv(outh, sep='\t', index=False)
