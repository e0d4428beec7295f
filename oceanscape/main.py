##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Main entry point of the `oceanscape` command.
"""

import logging
import sys
import traceback

from oceanscape.cli.argparse_main import build_main_parser
from oceanscape.log_formatter import setup_logging


LOG = logging.getLogger("oceanscape")


def main():
    """
    Entry point for the Oceanscape command-line interface.

    Parses the arguments, sets up logging and runs the selected command. Any
    error is logged and turns into exit status 1.
    """
    parser = build_main_parser()
    if len(sys.argv) == 1:
        parser.print_help(sys.stdout)
        return 1
    args = parser.parse_args()

    setup_logging(logger=LOG, log_level=args.level.upper(), colors=True)

    try:
        args.func(args)
    # Top of the program stack: report every failure as an exit status.
    except Exception as excpt:  # pylint: disable=broad-except
        LOG.debug(traceback.format_exc())
        LOG.error(str(excpt))
        sys.exit(1)

    sys.exit()


if __name__ == "__main__":
    main()
