#!/usr/bin/env python3
"""Locate build products under a derived data directory"""

import logging
import os
from typing import List, Optional, Tuple

from mcp_xcode.platforms import ALL_PLATFORMS

logger = logging.getLogger(__name__)

APP_EXTENSION = ".app"
PRODUCTS_SEGMENT = "Products"

_KNOWN_SDKS = {sdk for p in ALL_PLATFORMS for sdk in (p.simulator_sdk, p.device_sdk) if sdk}


def find_app(derived_data_path: str, extension: str = APP_EXTENSION) -> Optional[str]:
    """
    Find the built product bundle under derived data.

    Args:
        derived_data_path: Root of the derived data tree
        extension: Bundle extension to look for

    Returns:
        The most recently modified bundle (ties broken by path), or None if
        the tree does not exist or holds no bundle.
    """
    if not derived_data_path or not os.path.isdir(derived_data_path):
        logger.debug("Derived data path does not exist: %s", derived_data_path)
        return None

    candidates: List[Tuple[float, str]] = []
    for root, dirs, _files in os.walk(derived_data_path):
        bundles = [d for d in dirs if d.endswith(extension)]
        for bundle in bundles:
            path = os.path.join(root, bundle)
            try:
                candidates.append((os.path.getmtime(path), path))
            except OSError as e:
                logger.debug("Skipping %s: %s", path, e)
        # Do not descend into bundles (embedded apps, extensions)
        dirs[:] = sorted(d for d in dirs if not d.endswith(extension))

    if not candidates:
        return None

    products = [c for c in candidates if os.sep + PRODUCTS_SEGMENT + os.sep in c[1]]
    if products:
        candidates = products

    # Newest first; equal mtimes fall back to lexical path order
    candidates.sort(key=lambda c: (-c[0], c[1]))
    return candidates[0][1]


def products_configuration(app_path: str) -> Optional[str]:
    """
    Configuration name from the products directory of an artifact path.

    '.../Build/Products/Beta-iphonesimulator/App.app' -> 'Beta'
    '.../Build/Products/Release/App.app' -> 'Release'
    """
    parts = os.path.normpath(app_path).split(os.sep)
    if PRODUCTS_SEGMENT not in parts:
        return None
    index = len(parts) - 1 - parts[::-1].index(PRODUCTS_SEGMENT)
    if index + 1 >= len(parts):
        return None
    segment = parts[index + 1]
    name, _, sdk = segment.rpartition("-")
    if name and sdk in _KNOWN_SDKS:
        return name
    return segment


def detect_configuration_mismatch(app_path: Optional[str], configuration: str) -> Optional[str]:
    """
    Warn when the product landed in a different configuration's directory.

    xcodebuild falls back to a default configuration for names it does not
    know without failing. This compares the products directory against the
    requested name, which is an inference rather than a signal from the tool.
    """
    if not app_path or not configuration:
        return None
    actual = products_configuration(app_path)
    if actual is None or actual.lower() == configuration.lower():
        return None
    return (f"Requested configuration '{configuration}' but the product was found under "
            f"'{actual}'. The configuration may not exist in this project (best-effort detection).")
