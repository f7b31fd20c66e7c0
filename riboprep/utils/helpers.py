# -*- coding: utf-8 -*-

# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Small helpers shared across modules."""

import os


def substr(seq, start, end):
    """Return the 1-based, inclusive slice ``seq[start..end]``.

    Bounds outside the sequence never raise. The slice is clipped to the
    part that overlaps the sequence, and is empty when nothing overlaps
    or when ``end < start``. A missing sequence (``None``) stays missing.

    Args:
        seq: Nucleotide string, or None.
        start: 1-based start position (may be < 1).
        end: 1-based end position, inclusive (may exceed len(seq)).

    Returns:
        Substring, possibly shorter than requested or empty, or None.
    """
    if seq is None:
        return None
    start = max(int(start), 1)
    end = int(end)
    if end < start:
        return ''
    return seq[start - 1:end]


def parse_lengths(value):
    """Parse a digest length argument into a list of ints.

    Accepts an inclusive range ``"15:18"``, a comma list ``"15,16,18"``,
    or a mix of both (``"9:11,13"``). Lists and ints pass through.
    """
    if isinstance(value, int):
        return [value]
    if not isinstance(value, str):
        return [int(v) for v in value]
    ret = []
    for part in value.split(','):
        part = part.strip()
        if not part:
            continue
        if ':' in part:
            lo, hi = part.split(':', 1)
            lo, hi = int(lo), int(hi)
            if hi < lo:
                raise ValueError(f'Invalid length range "{part}"')
            ret.extend(range(lo, hi + 1))
        else:
            ret.append(int(part))
    if not ret:
        raise ValueError(f'No lengths in "{value}"')
    return ret


def default_ncpu():
    """Default worker count: every core but eight, at least one."""
    return max(1, (os.cpu_count() or 1) - 8)


def format_minutes(seconds):
    mins = seconds // 60
    secs = seconds - (mins * 60)
    return '%d minutes and %d secs' % (mins, secs)


def percent(part, total):
    """Percentage rounded to one decimal; 0.0 when total is zero."""
    if not total:
        return 0.0
    return round(part / total * 100, 1)
