# This file is part of Riboprep.
#
# Licensed under MIT License.

from .loaders import (  # noqa: F401
    load_d5_d3_subsets,
    load_fasta,
    load_lengths,
    load_offsets,
    load_transcript_list,
)
from .transcripts import Transcript, TranscriptIndex, load_transcripts  # noqa: F401
