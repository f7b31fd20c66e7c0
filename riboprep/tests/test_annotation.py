# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Tests for riboprep.annotation loaders and TranscriptIndex."""

import gzip

import pandas as pd
import pytest

from riboprep.annotation import (
    Transcript,
    TranscriptIndex,
    load_d5_d3_subsets,
    load_fasta,
    load_lengths,
    load_offsets,
    load_transcript_list,
    load_transcripts,
)
from riboprep.errors import MissingTranscriptError


@pytest.fixture
def fasta_file(tmp_path):
    path = tmp_path / 'tx.fa'
    path.write_text(
        '>tx1 first transcript\n'
        'AAACCC\n'
        'GGGTTT\n'
        '\n'
        '>tx2\n'
        'CCCATGAAATTTGGG\n'
    )
    return str(path)


@pytest.fixture
def lengths_file(tmp_path):
    path = tmp_path / 'lengths.txt'
    path.write_text('tx1 0 12 0\ntx2\t3\t9\t3\n')
    return str(path)


class TestLoadLengths:
    def test_columns_and_values(self, lengths_file):
        lengths = load_lengths(lengths_file)
        assert list(lengths.columns) == ['transcript', 'utr5_length', 'cds_length', 'utr3_length']
        assert lengths['transcript'].tolist() == ['tx1', 'tx2']
        assert lengths['cds_length'].tolist() == [12, 9]
        assert lengths['utr5_length'].dtype == 'int64'

    def test_duplicate_transcript_rejected(self, tmp_path):
        path = tmp_path / 'dup.txt'
        path.write_text('tx1 0 12 0\ntx1 0 12 0\n')
        with pytest.raises(ValueError):
            load_lengths(str(path))


class TestLoadFasta:
    def test_concatenates_lines(self, fasta_file):
        seqs = load_fasta(fasta_file)
        assert list(seqs) == ['tx1', 'tx2']
        assert seqs['tx1'] == 'AAACCCGGGTTT'
        assert seqs['tx2'] == 'CCCATGAAATTTGGG'

    def test_header_without_sequence(self, tmp_path):
        path = tmp_path / 'empty.fa'
        path.write_text('>tx1\n>tx2\nACG\n')
        seqs = load_fasta(str(path))
        assert seqs == {'tx1': '', 'tx2': 'ACG'}

    def test_text_before_first_header_skipped(self, tmp_path):
        path = tmp_path / 'lead.fa'
        path.write_text('ACGT\n>tx1\nACG\n')
        seqs = load_fasta(str(path))
        assert seqs == {'tx1': 'ACG'}

    def test_gzipped(self, tmp_path):
        path = tmp_path / 'tx.fa.gz'
        with gzip.open(path, 'wt') as fh:
            fh.write('>tx1\nAAACCC\nGGG\n')
        assert load_fasta(str(path)) == {'tx1': 'AAACCCGGG'}


class TestLoadOffsets:
    def test_long_form_frame_major(self, tmp_path):
        path = tmp_path / 'offsets.txt'
        path.write_text('frame_0 frame_1 frame_2\n28 15 NA 16\n29 15 16 NA\n')
        offsets = load_offsets(str(path))
        assert list(offsets.columns) == ['frame', 'length', 'offset']
        rows = list(offsets.itertuples(index=False, name=None))
        assert rows == [(0, 28, 15), (0, 29, 15), (1, 29, 16), (2, 28, 16)]

    def test_consecutive_lengths(self, tmp_path):
        path = tmp_path / 'offsets.txt'
        path.write_text('frame_0 frame_1 frame_2\n28 15 14 16\n29 15 16 17\n30 16 16 17\n')
        offsets = load_offsets(str(path))
        assert offsets['length'].tolist() == [28, 29, 30] * 3
        assert offsets['frame'].tolist() == [0, 0, 0, 1, 1, 1, 2, 2, 2]
        assert offsets['offset'].tolist() == [15, 15, 16, 14, 16, 16, 16, 17, 17]

    def test_header_after_comments(self, tmp_path):
        path = tmp_path / 'offsets.txt'
        path.write_text('# A site offsets\nframe_0 frame_1 frame_2\n28 12 12 13\n29 12 13 13\n')
        offsets = load_offsets(str(path))
        assert offsets['length'].tolist() == [28, 29] * 3
        assert offsets['offset'].tolist() == [12, 12, 12, 13, 13, 13]

    def test_named_length_column(self, tmp_path):
        path = tmp_path / 'offsets.txt'
        path.write_text('length frame_0 frame_1 frame_2\n28 15 14 16\n')
        offsets = load_offsets(str(path))
        assert offsets['length'].tolist() == [28, 28, 28]
        assert offsets['offset'].tolist() == [15, 14, 16]

    def test_missing_frame_column(self, tmp_path):
        path = tmp_path / 'offsets.txt'
        path.write_text('frame_0 frame_1\n28 15 14\n')
        with pytest.raises(ValueError):
            load_offsets(str(path))


class TestSmallTables:
    def test_d5_d3_subsets(self, tmp_path):
        path = tmp_path / 'subsets.txt'
        path.write_text('d5 d3\n15 9\n16 10\n')
        subsets = load_d5_d3_subsets(str(path))
        assert subsets.values.tolist() == [[15, 9], [16, 10]]

    def test_transcript_list(self, tmp_path):
        path = tmp_path / 'which.txt'
        path.write_text('# selected\ntx2\n\ntx1 extra\n')
        assert load_transcript_list(str(path)) == ['tx2', 'tx1']


class TestTranscriptIndex:
    def test_load_transcripts(self, fasta_file, lengths_file):
        index = load_transcripts(fasta_file, lengths_file)
        assert len(index) == 2
        assert index.names == ['tx1', 'tx2']
        tx2 = index['tx2']
        assert isinstance(tx2, Transcript)
        assert tx2.utr5_length == 3
        assert tx2.n_codons == 3
        assert tx2.sequence == 'CCCATGAAATTTGGG'
        assert index.total_codons == 7

    def test_get_returns_none_for_unknown(self, fasta_file, lengths_file):
        index = load_transcripts(fasta_file, lengths_file)
        assert index.get('nope') is None
        assert 'tx1' in index

    def test_which_restricts(self, fasta_file, lengths_file):
        index = load_transcripts(fasta_file, lengths_file, which=['tx2'])
        assert index.names == ['tx2']

    def test_which_unknown_strict(self, fasta_file, lengths_file):
        with pytest.raises(MissingTranscriptError):
            load_transcripts(fasta_file, lengths_file, which=['tx2', 'txX'], strict=True)

    def test_missing_sequence_permissive(self):
        lengths = pd.DataFrame({'transcript': ['tx1', 'tx3'], 'utr5_length': [0, 0],
                                'cds_length': [12, 6], 'utr3_length': [0, 0]})
        index = TranscriptIndex.from_tables(lengths, {'tx1': 'AAACCCGGGTTT'})
        assert index['tx3'].sequence is None
        assert not index['tx3'].has_sequence

    def test_missing_sequence_strict(self):
        lengths = pd.DataFrame({'transcript': ['tx1', 'tx3'], 'utr5_length': [0, 0],
                                'cds_length': [12, 6], 'utr3_length': [0, 0]})
        with pytest.raises(MissingTranscriptError) as excinfo:
            TranscriptIndex.from_tables(lengths, {'tx1': 'AAACCCGGGTTT'}, strict=True)
        assert excinfo.value.names == ['tx3']
        assert isinstance(excinfo.value, KeyError)

    def test_cds_not_multiple_of_three(self):
        lengths = pd.DataFrame({'transcript': ['tx1'], 'utr5_length': [0],
                                'cds_length': [10], 'utr3_length': [0]})
        index = TranscriptIndex.from_tables(lengths, {'tx1': 'A' * 10})
        assert index['tx1'].n_codons == 3
        with pytest.raises(ValueError):
            TranscriptIndex.from_tables(lengths, {'tx1': 'A' * 10}, strict=True)
