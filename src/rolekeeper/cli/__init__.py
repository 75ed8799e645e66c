# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""rolekeeper CLI - manage role registries stored in a JSON file."""

from .main import app, main

__all__ = ["main", "app"]
