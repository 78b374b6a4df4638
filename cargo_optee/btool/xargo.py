# SPDX-License-Identifier: GPL-2.0+
#
"""Bintool implementation for xargo

xargo wraps cargo so that the standard library can be built for targets which
have no prebuilt one, such as the *-unknown-optee targets used by std TAs.
"""

from cargo_optee.btool import cargo

class Bintoolxargo(cargo.Bintoolcargo):
    """Handles the 'xargo' tool"""
