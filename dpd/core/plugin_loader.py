"""
Detector Loader for the Dark Pattern Detector
Handles detector discovery, loading and validation
"""

import importlib
import inspect
import logging
import pkgutil
from types import ModuleType
from typing import Any, Dict, List, Optional

from .errors import DetectorLoadError
from .model import CATEGORIES, SEVERITY_WEIGHTS

logger = logging.getLogger(__name__)

REQUIRED_METADATA = ("id", "name", "category", "severity_hint", "implemented")


def validate_detector(module: ModuleType, name: str) -> Dict[str, Any]:
    """Check a module against the detector contract and return its metadata."""
    metadata = getattr(module, "METADATA", None)
    if not isinstance(metadata, dict):
        raise DetectorLoadError(f"Detector {name} missing METADATA")

    missing = [key for key in REQUIRED_METADATA if key not in metadata]
    if missing:
        raise DetectorLoadError(f"Detector {name} metadata missing fields: {', '.join(missing)}")

    if metadata["category"] not in CATEGORIES:
        raise DetectorLoadError(f"Detector {name} has unknown category {metadata['category']!r}")
    if str(metadata["severity_hint"]).lower() not in SEVERITY_WEIGHTS:
        raise DetectorLoadError(f"Detector {name} has unknown severity {metadata['severity_hint']!r}")

    run_func = getattr(module, "run", None)
    if not callable(run_func):
        raise DetectorLoadError(f"Detector {name} missing run function")
    if inspect.iscoroutinefunction(run_func):
        raise DetectorLoadError(f"Detector {name} run function must be synchronous")

    return metadata


class DetectorLoader:
    """Loads and manages the detector modules."""

    def __init__(self, package: str = "dpd.detectors"):
        self.package = package
        self.loaded_detectors: Dict[str, ModuleType] = {}
        self.detector_metadata: Dict[str, Dict[str, Any]] = {}
        self.logger = logging.getLogger(__name__)

    def _package_module(self) -> ModuleType:
        return importlib.import_module(self.package)

    def discover_detectors(self) -> List[str]:
        """Detector module names, built-in order first, then any extras alphabetically."""
        package = self._package_module()
        found = sorted(
            info.name for info in pkgutil.iter_modules(package.__path__)
            if not info.name.startswith("_")
        )
        order = list(getattr(package, "DETECTOR_ORDER", ()))
        ordered = [name for name in order if name in found]
        ordered += [name for name in found if name not in order]

        self.logger.debug(f"Discovered {len(ordered)} detectors: {ordered}")
        return ordered

    def load_detector(self, detector_name: str) -> bool:
        """Load a single detector by module name."""
        try:
            module = importlib.import_module(f"{self.package}.{detector_name}")
            metadata = validate_detector(module, detector_name)
        except (ImportError, DetectorLoadError) as e:
            self.logger.error(f"Error loading detector {detector_name}: {e}")
            return False

        detector_id = metadata["id"]
        self.loaded_detectors[detector_id] = module
        self.detector_metadata[detector_id] = metadata
        self.logger.debug(f"Successfully loaded detector: {detector_id}")
        return True

    def load_all_detectors(self) -> int:
        names = self.discover_detectors()
        loaded_count = sum(1 for name in names if self.load_detector(name))
        self.logger.debug(f"Loaded {loaded_count}/{len(names)} detectors")
        return loaded_count

    def filter_detectors(self,
                         detector_list: Optional[List[str]] = None,
                         categories: Optional[List[str]] = None) -> Dict[str, ModuleType]:
        """Loaded detectors in run order, optionally restricted by id and/or category."""
        if detector_list:
            unknown = [name for name in detector_list if name not in self.loaded_detectors]
            if unknown:
                raise DetectorLoadError(f"Unknown detectors: {', '.join(unknown)}")

        filtered = {
            detector_id: module for detector_id, module in self.loaded_detectors.items()
            if not detector_list or detector_id in detector_list
        }

        if categories:
            wanted = [category.lower() for category in categories]
            filtered = {
                detector_id: module for detector_id, module in filtered.items()
                if any(category in self.detector_metadata[detector_id]["category"].lower()
                       for category in wanted)
            }
        return filtered

    def get_detector_stats(self) -> Dict[str, Any]:
        stats = {
            "total_detectors": len(self.loaded_detectors),
            "by_category": {},
            "by_severity": {},
        }
        for metadata in self.detector_metadata.values():
            category = metadata.get("category", "unknown")
            stats["by_category"][category] = stats["by_category"].get(category, 0) + 1
            severity = metadata.get("severity_hint", "low")
            stats["by_severity"][severity] = stats["by_severity"].get(severity, 0) + 1
        return stats
