# -*- coding: utf-8 -*-

# This file is part of Riboprep.
#
# Licensed under MIT License.

""" Riboprep prep / init

"""
import os
import sys
import logging as lg
from collections import OrderedDict
from time import time

from . import REPORTING_OPTS, SubcommandOptions, configure_logging
from .console import Stopwatch
from ..annotation import (
    TranscriptIndex,
    load_d5_d3_subsets,
    load_fasta,
    load_lengths,
    load_offsets,
    load_transcript_list,
)
from ..core.alignment import load_bam
from ..core.counts import count_footprints
from ..core.features import build_feature_table, digest_grid
from ..core.reporter import output_run_stats, write_table
from ..utils.helpers import format_minutes as fmtmins
from ..utils.helpers import parse_lengths
from ..utils.pool import WorkerPool


FEATURE_OPTS = """
    - Feature Options:
        - digest5_lengths:
            default: "15:18"
            help: Legal 5' digest lengths, as an inclusive range (15:18) or
                  a comma separated list.
        - digest3_lengths:
            default: "9:11"
            help: Legal 3' digest lengths, as an inclusive range (9:11) or
                  a comma separated list.
        - d5_d3_subsets:
            help: Table with columns "d5" and "d3" listing the digest length
                  pairs to use instead of the full d5 x d3 grid.
        - f5_length:
            type: int
            default: 2
            help: Length of the 5' bias sequence.
        - f3_length:
            type: int
            default: 2
            help: Length of the 3' bias sequence.
        - bias_window:
            default: flanking
            choices:
                - flanking
                - internal
            help: >
                  Placement of the bias sequences. "flanking" - the f5
                  window ends at the footprint's first nucleotide and the
                  f3 window starts just past its last nucleotide;
                  "internal" - the outermost nucleotides of the footprint.
        - which_transcripts:
            help: File listing the transcripts to include, one per line.
                  Default uses every transcript in the lengths file.
    - Run Modes:
        - strict:
            action: store_true
            help: Fail when the FASTA, lengths table and alignments disagree
                  about which transcripts exist, instead of dropping the
                  affected rows with a warning.
        - ncpu:
            type: int
            help: Number of worker processes used to build the feature
                  table. Default is all cores but eight (at least one).
"""


class InitOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - fasta:
            positional: True
            help: Transcriptome FASTA (5' UTR + CDS + 3' UTR sequences).
        - lengths:
            positional: True
            help: Transcript lengths file (transcript, 5' UTR, CDS, 3' UTR
                  lengths; whitespace delimited, no header).
    """ + FEATURE_OPTS + REPORTING_OPTS

    def __init__(self, args):
        super().__init__(args)
        if getattr(self, 'logfile', None) is None:
            self.logfile = sys.stderr
        self.d5_lengths = parse_lengths(self.digest5_lengths)
        self.d3_lengths = parse_lengths(self.digest3_lengths)

    def outfile_path(self, suffix):
        basename = '%s-%s' % (self.exp_tag, suffix)
        return os.path.join(self.outdir, basename)


class PrepOptions(InitOptions):

    OPTS = """
    - Input Options:
        - fasta:
            positional: True
            help: Transcriptome FASTA (5' UTR + CDS + 3' UTR sequences).
        - lengths:
            positional: True
            help: Transcript lengths file (transcript, 5' UTR, CDS, 3' UTR
                  lengths; whitespace delimited, no header).
        - offsets:
            positional: True
            help: A site offset rules. Header "frame_0 frame_1 frame_2";
                  one row per footprint length giving the 5' digest length.
        - bamfile:
            positional: True
            help: Footprint alignments (SAM or BAM), aligned to the
                  transcriptome.
        - weight_tag:
            default: ZW
            help: Alignment tag holding the footprint weight.
        - missing_weight:
            type: float
            default: 1.0
            help: Weight of footprints without the weight tag.
        - on_unmatched:
            default: drop
            choices:
                - drop
                - error
            help: What to do with footprints whose transcript, codon and
                  digest lengths have no row in the feature table (for
                  example digest lengths outside the grid). "drop" -
                  discard them and report the count; "error" - abort.
                  Footprints on transcripts left out of the feature table
                  are reported separately and never abort.
    """ + FEATURE_OPTS + REPORTING_OPTS


def _feature_grid(opts):
    if getattr(opts, 'd5_d3_subsets', None):
        return digest_grid(subsets=load_d5_d3_subsets(opts.d5_d3_subsets))
    return digest_grid(opts.d5_lengths, opts.d3_lengths)


def _which_transcripts(opts):
    if getattr(opts, 'which_transcripts', None):
        return load_transcript_list(opts.which_transcripts)
    return None


def init_data(opts, console, stopwatch):
    """Load references and build the feature table with zero counts.

    Returns:
        (lengths, transcripts, features)
    """
    stopwatch.start('Load references')
    lengths = load_lengths(opts.lengths)
    transcripts = TranscriptIndex.from_tables(lengths, load_fasta(opts.fasta),
                                              which=_which_transcripts(opts), strict=opts.strict)
    grid = _feature_grid(opts)
    console.status('Loaded {:,} transcripts ({:,} codons), {:d} digest length pairs'.format(
        len(transcripts), transcripts.total_codons, len(grid)))

    stopwatch.start('Build features')
    with WorkerPool(opts.ncpu) as pool:
        lg.info(f'Building features with {pool.ncpu} worker(s)')
        features = build_feature_table(
            transcripts, grid,
            f5_length=opts.f5_length,
            f3_length=opts.f3_length,
            bias_window=opts.bias_window,
            pool=pool,
        )
    console.status('Feature table: {:,} rows'.format(len(features)))
    return lengths, transcripts, features


def run_init(args):
    opts = InitOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    total_time = time()
    stopwatch = Stopwatch()
    console.banner(opts.version)

    _lengths, _transcripts, features = init_data(opts, console, stopwatch)

    stopwatch.start('Write output')
    _outfile = opts.outfile_path('features.tsv')
    write_table(features, _outfile)
    stopwatch.stop()

    console.blank()
    console.section('Output')
    console.output_file(_outfile)
    console.blank()
    console.timing_table(stopwatch)
    lg.info("riboprep init complete (%s)" % fmtmins(time() - total_time))


def run(args):
    """Build the feature table, count footprints and write the regression data."""
    opts = PrepOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    total_time = time()
    stopwatch = Stopwatch()
    console.banner(opts.version)

    console.section('Input')
    console.item('FASTA', os.path.basename(opts.fasta))
    console.item('Lengths', os.path.basename(opts.lengths))
    console.item('Offsets', os.path.basename(opts.offsets))
    console.item('BAM', os.path.basename(opts.bamfile))
    console.blank()

    lengths, _transcripts, features = init_data(opts, console, stopwatch)

    stopwatch.start('Load alignments')
    offsets = load_offsets(opts.offsets)
    footprints, filter_report = load_bam(
        opts.bamfile, lengths, offsets,
        weight_tag=opts.weight_tag,
        strict=opts.strict,
        missing_weight=opts.missing_weight,
    )
    console.status('Loading alignments... done')
    console.filter_report(filter_report)

    stopwatch.start('Count footprints')
    regression_data, join_report = count_footprints(footprints, features,
                                                    on_unmatched=opts.on_unmatched)
    console.detail('{:,.0f} footprint counts joined, {:,.0f} ({:.1f}%) without a feature row'.format(
        join_report.matched_count, join_report.unmatched_count, join_report.unmatched_percent))
    if join_report.out_of_scope_rows:
        console.detail('{:,.0f} footprint counts on transcripts outside the feature table'.format(
            join_report.out_of_scope_count))

    stopwatch.start('Write output')
    run_info = OrderedDict([
        ('version', opts.version),
        ('transcripts', len(_transcripts)),
        ('feature_rows', len(features)),
        ('total_footprints', filter_report.total),
        ('kept_footprints', filter_report.kept),
    ])
    _data_file = opts.outfile_path('regression_data.tsv')
    _stats_file = opts.outfile_path('run_stats.tsv')
    write_table(regression_data, _data_file)
    output_run_stats(run_info, filter_report, join_report, _stats_file)
    stopwatch.stop()

    console.blank()
    console.section('Output')
    console.output_file(_data_file)
    console.output_file(_stats_file)
    console.blank()
    console.timing_table(stopwatch)
    console.status('Completed in {:.1f}s'.format(time() - total_time))
    console.blank()
    lg.info("riboprep prep complete (%s)" % fmtmins(time() - total_time))
    return regression_data
