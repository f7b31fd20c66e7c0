# This file is part of Riboprep.
#
# Licensed under MIT License.
