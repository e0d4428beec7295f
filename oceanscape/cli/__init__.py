##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
The `cli` package contains the command-line interface of Oceanscape.

Modules:
    argparse_main.py: Builds the main `oceanscape` parser.

Subpackages:
    commands: One module per `oceanscape` subcommand.
"""
