# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Exceptions raised in strict mode.

Permissive runs (the default) log the same conditions and carry on with
missing values; these are only raised when the caller asks for it.
"""


class RiboprepError(Exception):
    """Base class for Riboprep errors."""


class MissingTranscriptError(RiboprepError, KeyError):
    """A transcript is referenced but absent from the FASTA or lengths table."""

    def __init__(self, names, source):
        self.names = list(names)
        self.source = source
        _shown = ', '.join(self.names[:5])
        if len(self.names) > 5:
            _shown += ', ... ({} total)'.format(len(self.names))
        super().__init__('Transcript(s) missing from {}: {}'.format(source, _shown))

    def __str__(self):
        return self.args[0]


class UnmatchedFootprintError(RiboprepError, ValueError):
    """Aggregated footprints have no matching row in the feature table."""

    def __init__(self, nrows, count):
        self.nrows = nrows
        self.count = count
        super().__init__(
            '{:d} footprint keys ({:g} reads) have no feature row'.format(nrows, count))
