try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.clients import GeneratedImage
from app.services import ResultStore, ResultStoreView, UnknownAnalysisError

try:
    from ._payloads import build_analysis
except ImportError:  # pragma: no cover - fallback for direct execution
    from _payloads import build_analysis  # type: ignore


IMAGE = GeneratedImage(mime_type="image/png", data=b"png")


def test_commit_prepends_and_sets_current() -> None:
    store = ResultStore()
    first = build_analysis("First")
    second = build_analysis("Second")

    store.commit(first)
    store.commit(second)

    assert store.current == second
    assert [item.id for item in store.history] == [second.id, first.id]


def test_set_image_only_applies_to_current() -> None:
    store = ResultStore()
    first = build_analysis("First")
    second = build_analysis("Second")
    store.commit(first)
    store.commit(second)

    assert store.set_image(IMAGE, for_id=first.id) is False
    assert store.generated_image is None

    assert store.set_image(IMAGE, for_id=second.id) is True
    assert store.generated_image == IMAGE


def test_set_image_without_current_is_discarded() -> None:
    store = ResultStore()

    assert store.set_image(IMAGE, for_id="anything") is False
    assert store.generated_image is None


def test_select_history_clears_image() -> None:
    store = ResultStore()
    first = build_analysis("First")
    second = build_analysis("Second")
    store.commit(first)
    store.commit(second)
    store.set_image(IMAGE, for_id=second.id)

    selected = store.select_history(first.id)

    assert selected == first
    assert store.current.id == first.id
    assert store.generated_image is None
    assert len(store.history) == 2


def test_select_history_rejects_unknown_id_without_changes() -> None:
    store = ResultStore()
    analysis = build_analysis()
    store.commit(analysis)
    store.set_image(IMAGE, for_id=analysis.id)

    with pytest.raises(UnknownAnalysisError):
        store.select_history("missing")

    assert store.current == analysis
    assert store.generated_image == IMAGE
    assert store.history == (analysis,)


def test_reset_preserves_history() -> None:
    store = ResultStore()
    analysis = build_analysis()
    store.commit(analysis)
    store.set_image(IMAGE, for_id=analysis.id)

    store.reset()

    assert store.current is None
    assert store.generated_image is None
    assert store.history == (analysis,)


def test_view_exposes_no_writers() -> None:
    store = ResultStore()
    analysis = build_analysis()
    store.commit(analysis)
    view = ResultStoreView(store)

    assert view.current == analysis
    assert view.get(analysis.id) == analysis
    assert view.history == (analysis,)
    for writer in ("commit", "set_image", "reset", "select_history"):
        assert not hasattr(view, writer)


def test_committed_analysis_sequences_cannot_be_mutated() -> None:
    store = ResultStore()
    store.commit(build_analysis())
    current = store.current

    assert isinstance(current.stakeholders, tuple)
    assert isinstance(current.diagnosis.symptoms, tuple)
    with pytest.raises(AttributeError):
        current.stakeholders.append(current.stakeholders[0])  # type: ignore[attr-defined]
    with pytest.raises(AttributeError):
        current.blueprint.government.policy_changes.append("Curfew")  # type: ignore[attr-defined]
    assert len(store.current.stakeholders) == 2
