"""Metadata for gtpbridge package."""

from __future__ import annotations

__title__ = "gtpbridge"
__package_name__ = "gtpbridge"
__version__ = "0.1.0"
__description__ = "Async client for GTP board-game engines running as a subprocess"
__email__ = "maintainers@gtpbridge.invalid"
__author__ = "gtpbridge contributors"
__github__ = "https://github.com/gtpbridge/gtpbridge"
__docs__ = "https://github.com/gtpbridge/gtpbridge#readme"
__tracker__ = "https://github.com/gtpbridge/gtpbridge/issues"
__pypi__ = "https://pypi.org/project/gtpbridge/"
__license__ = "MIT"
__copyright__ = "Copyright 2026- gtpbridge contributors"
