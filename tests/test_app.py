"""Smoke tests for the Streamlit page."""

from pathlib import Path

from streamlit.testing.v1 import AppTest

from engine import MemoryEngine

APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


class _FailingEngine(MemoryEngine):
    def allocate(self, req_size, algorithm=None):
        raise AssertionError("blocks cover 900KB of 1024KB")


def _button(at, label):
    return next(b for b in at.button if b.label == label)


class TestApp:

    def test_renders_without_errors(self) -> None:
        at = AppTest.from_file(APP_PATH, default_timeout=30).run()
        assert not at.exception
        engine = at.session_state.engine
        assert engine.snapshot().free_memory == 1024

    def test_allocate_button_places_request(self) -> None:
        at = AppTest.from_file(APP_PATH, default_timeout=30).run()
        _button(at, "Allocate").click().run()
        assert not at.exception
        assert at.session_state.engine.allocated_ids() == [1]

    def test_small_region_caps_request_size(self) -> None:
        at = AppTest.from_file(APP_PATH, default_timeout=30).run()
        at.sidebar.number_input[0].set_value(64).run()
        assert not at.exception
        assert at.session_state.engine.total_size == 64
        assert at.main.number_input[0].value == 64

    def test_engine_error_is_reported(self) -> None:
        at = AppTest.from_file(APP_PATH, default_timeout=30)
        at.session_state.engine = _FailingEngine()
        at.run()
        _button(at, "Allocate").click().run()
        assert not at.exception
        assert "blocks cover" in at.error[0].value

    def test_concepts_page(self) -> None:
        at = AppTest.from_file(APP_PATH, default_timeout=30).run()
        at.sidebar.radio[0].set_value("Concepts").run()
        assert not at.exception
