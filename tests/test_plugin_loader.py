import inspect
from types import ModuleType

import pytest

from dpd.core.errors import DetectorLoadError
from dpd.core.plugin_loader import DetectorLoader, validate_detector
from dpd.detectors import DETECTOR_ORDER


@pytest.fixture(scope="module")
def loader():
    detector_loader = DetectorLoader()
    detector_loader.load_all_detectors()
    return detector_loader


def fake_detector(metadata=None, run=None):
    module = ModuleType("fake_detector")
    if metadata is not None:
        module.METADATA = metadata
    if run is not None:
        module.run = run
    return module


VALID_METADATA = {
    "id": "fake",
    "name": "Fake",
    "category": "Intrusive UX",
    "severity_hint": "low",
    "implemented": True,
}


def test_detectors_have_metadata_and_run_signature(loader):
    assert len(loader.loaded_detectors) == 14
    for detector_id, module in loader.loaded_detectors.items():
        assert module.METADATA["id"] == detector_id
        assert callable(module.run)
        assert not inspect.iscoroutinefunction(module.run)


def test_detectors_load_in_display_order(loader):
    assert tuple(loader.loaded_detectors) == DETECTOR_ORDER


def test_filter_by_id_keeps_display_order(loader):
    selected = loader.filter_detectors(["social_proof", "urgency"])
    assert list(selected) == ["urgency", "social_proof"]


def test_filter_unknown_detector(loader):
    with pytest.raises(DetectorLoadError):
        loader.filter_detectors(["urgency", "nope"])


def test_filter_by_category(loader):
    selected = loader.filter_detectors(categories=["forced continuity"])
    assert set(selected) == {"prechecked_boxes", "misleading_buttons"}


def test_detector_stats(loader):
    stats = loader.get_detector_stats()
    assert stats["total_detectors"] == 14
    assert stats["by_category"]["Intrusive UX"] == 2
    assert sum(stats["by_severity"].values()) == 14


def test_validate_accepts_contract():
    module = fake_detector(dict(VALID_METADATA), run=lambda session: [])
    assert validate_detector(module, "fake")["id"] == "fake"


@pytest.mark.parametrize("module", [
    fake_detector(None, run=lambda session: []),
    fake_detector({"id": "fake"}, run=lambda session: []),
    fake_detector(dict(VALID_METADATA, category="Spam"), run=lambda session: []),
    fake_detector(dict(VALID_METADATA, severity_hint="severe"), run=lambda session: []),
    fake_detector(dict(VALID_METADATA)),
])
def test_validate_rejects_broken_detectors(module):
    with pytest.raises(DetectorLoadError):
        validate_detector(module, "fake")


def test_validate_rejects_async_run():
    async def run(session):
        return []

    with pytest.raises(DetectorLoadError):
        validate_detector(fake_detector(dict(VALID_METADATA), run=run), "fake")


def test_missing_module_is_not_fatal(loader):
    assert loader.load_detector("does_not_exist") is False
