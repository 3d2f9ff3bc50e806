from conftest import ROOT
from streamlit.testing.v1 import AppTest


def _app() -> AppTest:
    at = AppTest.from_file(str(ROOT / "app.py"), default_timeout=120)
    at.run()
    return at


def test_app_loads_sample_and_previews():
    at = _app()
    assert not at.exception
    assert at.title[0].value == "Gantt Export"
    labels = [m.label for m in at.metric]
    assert "Tasks" in labels
    assert "Width" in labels


def test_switching_to_pdf_keeps_running():
    at = _app()
    at.sidebar.radio(key="export_format").set_value("pdf").run()
    assert not at.exception
    assert not at.error


def test_fit_to_width_mode():
    at = _app()
    at.sidebar.selectbox(key="zoom_mode").set_value("fit_to_width").run()
    assert not at.exception
    width = next(m for m in at.metric if m.label == "Width")
    assert width.value == "1,920 px"


def _click(at: AppTest, label: str) -> AppTest:
    return next(b for b in at.button if b.label == label).click().run()


def test_generated_export_kept_while_options_unchanged():
    at = _click(_app(), "Generate PNG")
    assert not at.exception
    assert "last_export" in at.session_state
    key, data = at.session_state["last_export"]
    assert data.startswith(b"\x89PNG")

    at.run()
    assert at.session_state["last_export"][0] == key


def test_changing_options_drops_generated_export():
    at = _click(_app(), "Generate PNG")
    assert "last_export" in at.session_state

    at.sidebar.selectbox(key="zoom_mode").set_value("fit_to_width").run()
    assert not at.exception
    assert "last_export" not in at.session_state
