##############################################################################
# Copyright (c) Oceanscape Project developers. See top-level LICENSE and
# COPYRIGHT files for dates and other details. No copyright assignment is
# required to contribute to Oceanscape.
##############################################################################

"""
Oceanscape: fisheries samples and oceanic landscape descriptors.

This module contains the source code for Oceanscape.
"""

__version__ = "0.4.0"
VERSION = __version__
