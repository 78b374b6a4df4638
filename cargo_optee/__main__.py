# SPDX-License-Identifier: GPL-2.0+

import sys

from cargo_optee import main

sys.exit(main.start_cargo_optee())
