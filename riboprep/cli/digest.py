# This file is part of Riboprep.
#
# Licensed under MIT License.

""" Riboprep digest

Summarise footprints by 5' and 3' digest length, to choose the grid used
by ``riboprep prep``.
"""
import os
import sys
import logging as lg
from time import time

from . import REPORTING_OPTS, SubcommandOptions, configure_logging
from ..annotation import load_lengths, load_offsets
from ..core.alignment import load_bam
from ..core.counts import count_d5_d3
from ..core.reporter import write_table
from ..utils.helpers import format_minutes as fmtmins


class DigestOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - bamfile:
            positional: True
            help: Footprint alignments (SAM or BAM).
        - lengths:
            positional: True
            help: Transcript lengths file.
        - offsets:
            positional: True
            help: A site offset rules.
        - weight_tag:
            default: ZW
            help: Alignment tag holding the footprint weight.
        - missing_weight:
            type: float
            default: 1.0
            help: Weight of footprints without the weight tag.
        - strict:
            action: store_true
            help: Fail on alignments to transcripts missing from the
                  lengths file.
    """ + REPORTING_OPTS

    def __init__(self, args):
        super().__init__(args)
        if getattr(self, 'logfile', None) is None:
            self.logfile = sys.stderr

    def outfile_path(self, suffix):
        return os.path.join(self.outdir, '%s-%s' % (self.exp_tag, suffix))


def run(args):
    opts = DigestOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    total_time = time()
    console.banner(opts.version)

    footprints, filter_report = load_bam(
        opts.bamfile, load_lengths(opts.lengths), load_offsets(opts.offsets),
        weight_tag=opts.weight_tag,
        strict=opts.strict,
        missing_weight=opts.missing_weight,
    )
    console.status('Loading alignments... done')
    console.filter_report(filter_report)

    counts = count_d5_d3(footprints)
    console.blank()
    console.section('Top digest length pairs')
    for row in counts.head(5).itertuples(index=False):
        console.detail('d5={:<3d} d3={:<3d} {:>12,.0f}  (cumulative {:.1%})'.format(
            row.d5, row.d3, row.count, row.proportion))

    _outfile = opts.outfile_path('digest_lengths.tsv')
    write_table(counts, _outfile)
    console.blank()
    console.section('Output')
    console.output_file(_outfile)
    console.blank()
    lg.info("riboprep digest complete (%s)" % fmtmins(time() - total_time))
    return counts
