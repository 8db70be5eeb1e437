# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from cloudstep.cli.app import main

main()
