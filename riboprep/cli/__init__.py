# This file is part of Riboprep.
#
# Licensed under MIT License.

import argparse
import logging
from collections import OrderedDict

import yaml

from .console import Console

# Type lookup for YAML-defined CLI options
_SAFE_TYPES = {
    'int': int,
    'float': float,
    'str': str,
    "argparse.FileType('w')": argparse.FileType('w'),
}

REPORTING_OPTS = """
    - Reporting Options:
        - quiet:
            action: store_true
            help: Silence (most) output.
        - verbose:
            action: store_true
            help: Show detailed progress and timing.
        - debug:
            action: store_true
            help: Print debug messages.
        - logfile:
            type: argparse.FileType('w')
            help: Log output to this file.
        - outdir:
            default: .
            help: Output directory.
        - exp_tag:
            default: riboprep
            help: Experiment tag, used as the prefix of output files.
"""


class SubcommandOptions:
    """Options for one subcommand, declared as YAML groups in ``OPTS``.

    Each entry maps an option name to ``argparse.add_argument`` keywords.
    ``positional: True`` makes a positional argument; ``type`` names one
    of ``_SAFE_TYPES``.
    """
    OPTS = """
    - Input Options:
        - infile:
            positional: True
            help: Input file.
    """

    def __init__(self, args):
        self.opt_names, self.opt_groups = self._parse_yaml_opts(self.OPTS)
        for k, v in vars(args).items():
            setattr(self, k, v)

    @classmethod
    def add_arguments(cls, parser):
        _names, opt_groups = cls._parse_yaml_opts(cls.OPTS)
        for group_name, args in opt_groups.items():
            argparse_grp = parser.add_argument_group(group_name, '')
            for arg_name, arg_d in args.items():
                _d = dict(arg_d)
                _flag = arg_name if _d.pop('positional', False) else f'--{arg_name}'
                if 'type' in _d:
                    _d['type'] = cls._resolve_type(arg_name, _d['type'])
                argparse_grp.add_argument(_flag, **_d)

    @staticmethod
    def _resolve_type(arg_name, type_str):
        try:
            return _SAFE_TYPES[type_str]
        except KeyError:
            raise ValueError(f"Unsupported type '{type_str}' for option '{arg_name}'. "
                             f'Allowed: {list(_SAFE_TYPES)}') from None

    @staticmethod
    def _parse_yaml_opts(opts_yaml):
        _opt_names = []
        _opt_groups = OrderedDict()
        for grp in yaml.load(opts_yaml, Loader=yaml.SafeLoader):
            grp_name, args = list(grp.items())[0]
            _opt_groups[grp_name] = OrderedDict()
            for arg in args:
                arg_name, d = list(arg.items())[0]
                _opt_groups[grp_name][arg_name] = d
                _opt_names.append(arg_name)
        return _opt_names, _opt_groups

    def __str__(self):
        ret = []
        if hasattr(self, 'version'):
            ret.append('{:34}{}'.format('Version:', self.version))
        for group_name, args in self.opt_groups.items():
            ret.append(f'{group_name}')
            for arg_name in args:
                v = getattr(self, arg_name, 'Not set')
                v = v.name if hasattr(v, 'name') else v
                ret.append('    {:30}{}'.format(arg_name + ':', v))
        return '\n'.join(ret)


_LOG_FORMAT = '%(asctime)s %(levelname)-8s %(message)s'
_DEBUG_FORMAT = '%(asctime)s %(levelname)-8s %(message)-60s (%(funcName)s in %(filename)s:%(lineno)d)'


def _verbosity(opts):
    if getattr(opts, 'quiet', False):
        return 'quiet'
    if getattr(opts, 'debug', False):
        return 'debug'
    if getattr(opts, 'verbose', False):
        return 'verbose'
    return 'normal'


def configure_logging(opts):
    """Set the stderr log level and create the stdout Console.

    ``--quiet`` silences the console only; stderr logging is WARNING
    unless ``--verbose`` (INFO) or ``--debug`` (DEBUG) is given, and goes
    to ``--logfile`` when set.

    Returns:
        Console for progress output.
    """
    verbosity = _verbosity(opts)
    console_level = {
        'quiet': Console.QUIET,
        'normal': Console.NORMAL,
        'verbose': Console.VERBOSE,
        'debug': Console.DEBUG,
    }[verbosity]

    if getattr(opts, 'debug', False):
        loglev, logfmt = logging.DEBUG, _DEBUG_FORMAT
    elif getattr(opts, 'verbose', False):
        loglev, logfmt = logging.INFO, _LOG_FORMAT
    else:
        loglev, logfmt = logging.WARNING, _LOG_FORMAT
    logging.basicConfig(level=loglev, format=logfmt, datefmt='%Y-%m-%d %H:%M:%S',
                        stream=getattr(opts, 'logfile', None), force=True)

    return Console(level=console_level)
