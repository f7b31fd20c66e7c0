# -*- coding: utf-8 -*-

# This file is part of Riboprep.
#
# Licensed under MIT License.

"""Caller-owned worker pool for embarrassingly parallel map steps.

The pool is an explicit handle rather than process-wide state::

    with WorkerPool(ncpu=4) as pool:
        table = build_feature_table(transcripts, grid, pool=pool)

With ``ncpu == 1`` work runs in-process and no children are started.
Child processes are terminated when the ``with`` block exits, whether it
completes or raises.
"""

import functools
import logging as lg
from multiprocessing import Pool

from .helpers import default_ncpu


def _positioned(func, task):
    pos, item = task
    return pos, func(item)


class WorkerPool:
    """Process pool handle with scoped acquisition and teardown."""

    def __init__(self, ncpu=None):
        self.ncpu = default_ncpu() if ncpu is None else int(ncpu)
        if self.ncpu < 1:
            raise ValueError(f'ncpu must be at least 1, got {self.ncpu}')
        self._pool = None
        self._open = False

    def __enter__(self):
        if self.ncpu > 1:
            lg.debug(f'Starting worker pool with {self.ncpu} processes')
            self._pool = Pool(processes=self.ncpu)
        self._open = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def is_open(self):
        return self._open

    def close(self):
        """Terminate worker processes. Safe to call more than once."""
        if self._pool is not None:
            self._pool.terminate()
            self._pool.join()
            self._pool = None
            lg.debug('Worker pool terminated')
        self._open = False

    def imap_unordered(self, func, items):
        """Apply ``func`` to each item, yielding ``(position, result)``.

        Results arrive in completion order. ``func`` must be picklable
        (a module-level function) when more than one process is used.
        """
        if not self._open:
            raise RuntimeError('WorkerPool is not open; use it as a context manager')
        tasks = list(enumerate(items))
        _call = functools.partial(_positioned, func)
        if self._pool is None:
            return map(_call, tasks)
        return self._pool.imap_unordered(_call, tasks)

    def map_ordered(self, func, items):
        """Apply ``func`` to each item, returning results in input order."""
        results = dict(self.imap_unordered(func, items))
        return [results[i] for i in range(len(results))]
