# -*- coding: utf-8 -*-

# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Transcript records joined from the lengths table and the FASTA."""

import logging as lg
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from ..errors import MissingTranscriptError
from .loaders import load_fasta, load_lengths


@dataclass(frozen=True)
class Transcript:
    """One transcript: region lengths plus the UTR + CDS + UTR sequence.

    ``sequence`` is None when the transcript had no FASTA entry.
    """
    name: str
    utr5_length: int
    cds_length: int
    utr3_length: int
    sequence: Optional[str] = None

    @property
    def n_codons(self) -> int:
        return self.cds_length // 3

    @property
    def has_sequence(self) -> bool:
        return self.sequence is not None


class TranscriptIndex:
    """Ordered name -> Transcript lookup."""

    def __init__(self, transcripts=()):
        self._records = OrderedDict((t.name, t) for t in transcripts)

    @classmethod
    def from_tables(cls, lengths, sequences, which=None, strict=False):
        """Join a lengths DataFrame with a name -> sequence mapping.

        Args:
            lengths: DataFrame from :func:`load_lengths`.
            sequences: Mapping of transcript name to sequence.
            which: Optional iterable of transcript names to keep.
            strict: Raise instead of logging when the two sources disagree
                or a CDS length is not a multiple of three.
        """
        if which is not None:
            which = list(which)
            _known = set(lengths['transcript'])
            absent = [n for n in which if n not in _known]
            if absent:
                if strict:
                    raise MissingTranscriptError(absent, 'lengths table')
                lg.warning(f'{len(absent)} selected transcripts not in lengths table')
            _keep = set(which)
            lengths = lengths[lengths['transcript'].isin(_keep)]

        records = []
        no_seq = []
        for row in lengths.itertuples(index=False):
            if row.cds_length % 3 != 0:
                msg = f'CDS length of {row.transcript} ({row.cds_length}) is not a multiple of 3'
                if strict:
                    raise ValueError(msg)
                lg.warning(msg)
            seq = sequences.get(row.transcript)
            if seq is None:
                no_seq.append(row.transcript)
            records.append(Transcript(
                name=row.transcript,
                utr5_length=int(row.utr5_length),
                cds_length=int(row.cds_length),
                utr3_length=int(row.utr3_length),
                sequence=seq,
            ))

        if no_seq:
            if strict:
                raise MissingTranscriptError(no_seq, 'FASTA')
            lg.warning(f'{len(no_seq)} transcripts have no sequence; '
                       'their sequence features will be missing')
        return cls(records)

    def get(self, name) -> Optional[Transcript]:
        return self._records.get(name)

    def __getitem__(self, name):
        return self._records[name]

    def __contains__(self, name):
        return name in self._records

    def __iter__(self):
        return iter(self._records.values())

    def __len__(self):
        return len(self._records)

    @property
    def names(self):
        return list(self._records)

    @property
    def total_codons(self):
        return sum(t.n_codons for t in self)


def load_transcripts(fasta_path, lengths_path, which=None, strict=False):
    """Load the FASTA and lengths table into a :class:`TranscriptIndex`."""
    sequences = load_fasta(fasta_path)
    lengths = load_lengths(lengths_path)
    return TranscriptIndex.from_tables(lengths, sequences, which=which, strict=strict)
