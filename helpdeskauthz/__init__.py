# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Helpdesk role-based access-control core.
Answers allow/deny for ticket, knowledge-base, follower and analytics
actions, and builds list filters with the same selectivity.
"""

__version__ = "0.1.0"
