# -*- coding: utf-8 -*-
# Glint: Tabular BRDF/BTDF data in angular coordinate systems.
#
# Copyright (c) 2026 opticsWolf
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Project metadata for the opticsWolf Glint.
"""

from typing import Final

# Metadata Definitions
__title__: Final[str] = "Glint"
__description__: Final[str] = (
    "Sample grids, coordinate-system conversion and export preparation "
    "for measured and simulated BRDF/BTDF data."
)
__version__: Final[str] = "0.1.0"
__author__: Final[str] = "opticsWolf"
__license__: Final[str] = "LGPL-3.0-or-later"
__copyright__: Final[str] = "Copyright (c) 2026 opticsWolf"

def metadata_summary() -> dict[str, str]:
    """Returns a dictionary of project metadata for introspection."""
    return {
        "title": __title__,
        "version": __version__,
        "license": __license__,
        "description": __description__,
        "copyright": __copyright__,
    }
