"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from importlib import metadata

try:
    __version__ = metadata.version("tokenclone")
except metadata.PackageNotFoundError:
    __version__ = "dev"
