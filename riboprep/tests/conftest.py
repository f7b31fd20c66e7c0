# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Shared fixtures: a small transcriptome and a BAM writer."""

import pandas as pd
import pysam
import pytest

# txA: 30 nt 5' UTR, 100 codon CDS, 30 nt 3' UTR
TXA_SEQ = 'A' * 30 + 'ATG' + 'GCT' * 98 + 'TAA' + 'C' * 30


def write_bam(path, records, references=(('txA', 360),), weight_tag='ZW'):
    """Write an unsorted BAM.

    Args:
        path: Output path.
        records: Iterable of ``(rname, pos, qwidth, weight)``. ``rname`` None
            writes an unmapped read; ``pos`` is 1-based; ``weight`` None
            omits the weight tag.
    """
    header = {
        'HD': {'VN': '1.0'},
        'SQ': [{'SN': name, 'LN': length} for name, length in references],
    }
    ref_ids = {name: i for i, (name, _) in enumerate(references)}
    with pysam.AlignmentFile(str(path), 'wb', header=header) as outf:
        for n, (rname, pos, qwidth, weight) in enumerate(records):
            a = pysam.AlignedSegment(outf.header)
            a.query_name = f'read{n}'
            a.query_sequence = 'G' * qwidth
            if rname is None:
                a.flag = 4
                a.reference_id = -1
                a.reference_start = -1
            else:
                a.flag = 0
                a.reference_id = ref_ids[rname]
                a.reference_start = pos - 1
                a.mapping_quality = 255
                a.cigartuples = [(0, qwidth)]
            if weight is not None:
                a.set_tag(weight_tag, float(weight))
            outf.write(a)
    return str(path)


@pytest.fixture
def bam_writer():
    return write_bam


@pytest.fixture
def lengths_df():
    return pd.DataFrame({
        'transcript': ['txA'],
        'utr5_length': [30],
        'cds_length': [300],
        'utr3_length': [30],
    })


@pytest.fixture
def offsets_df():
    """Length 28 footprints; frame-consistent rules for every frame."""
    return pd.DataFrame({
        'frame': [0, 1, 2],
        'length': [28, 28, 28],
        'offset': [15, 14, 16],
    })


@pytest.fixture
def reference_files(tmp_path):
    """FASTA, lengths and offsets files describing txA."""
    fasta = tmp_path / 'transcripts.fa'
    fasta.write_text('>txA test transcript\n' + '\n'.join(
        TXA_SEQ[i:i + 60] for i in range(0, len(TXA_SEQ), 60)) + '\n')
    lengths = tmp_path / 'lengths.txt'
    lengths.write_text('txA\t30\t300\t30\n')
    offsets = tmp_path / 'offsets.txt'
    offsets.write_text('frame_0 frame_1 frame_2\n28 15 14 16\n')
    return str(fasta), str(lengths), str(offsets)
