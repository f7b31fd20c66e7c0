#! /usr/bin/env python
# -*- coding: utf-8 -*-

# This file is part of Riboprep.
#
# Licensed under MIT License.

""" Main functionality of Riboprep

"""
import sys
import argparse

from riboprep import __version__
from .cli import digest as cli_digest
from .cli import prep as cli_prep


USAGE = ''' %(prog)s <command> [<args>]

The most commonly used commands are:
   prep     Build the regression table: features joined with footprint counts
   init     Build the feature table only (counts set to zero)
   digest   Count footprints per 5'/3' digest length pair

'''


def main(argv=None):
    if argv is None and len(sys.argv) == 1:
        empty_parser = argparse.ArgumentParser(
            description='Regression data for ribosome profiling',
            usage=USAGE,
        )
        empty_parser.print_help(sys.stderr)
        sys.exit(1)

    parser = argparse.ArgumentParser(
        description='Regression data for ribosome profiling',
    )
    parser.add_argument('--version',
        action='version',
        version=__version__,
        default=__version__,
    )

    subparser = parser.add_subparsers(help='Sub-command help', dest='subcommand')

    ''' Parser for prep '''
    prep_parser = subparser.add_parser('prep',
        description='''Build features and join footprint counts''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_prep.PrepOptions.add_arguments(prep_parser)
    prep_parser.set_defaults(func=cli_prep.run)

    ''' Parser for init '''
    init_parser = subparser.add_parser('init',
        description='''Build the feature table with zero counts''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_prep.InitOptions.add_arguments(init_parser)
    init_parser.set_defaults(func=cli_prep.run_init)

    ''' Parser for digest '''
    digest_parser = subparser.add_parser('digest',
        description='''Count footprints per digest length pair''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_digest.DigestOptions.add_arguments(digest_parser)
    digest_parser.set_defaults(func=cli_digest.run)

    args = parser.parse_args(argv)
    if args.subcommand is None:
        parser.print_help(sys.stderr)
        sys.exit(1)
    args.func(args)


if __name__ == '__main__':
    main()
