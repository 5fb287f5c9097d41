"""Tests for the panel widgets in galaxy_gui.py (need a Tk display)."""

import pytest

tk = pytest.importorskip("tkinter")


@pytest.fixture
def root():
    try:
        win = tk.Tk()
    except tk.TclError:
        pytest.skip("no display available")
    win.withdraw()
    yield win
    win.destroy()


@pytest.fixture
def gui(root):
    import matplotlib
    import galaxy_gui
    yield galaxy_gui
    matplotlib.use("Agg")


def test_slider_entry_finishes_only_on_change(root, gui):
    var = tk.IntVar(master=root, value=1000)
    finished = []
    entry = gui.SliderEntry(root, "Points", var, 100, 500_000, 1000,
                            on_finish=lambda: finished.append(var.get()))

    entry._clamp_and_finish()          # tabbing through leaves the value alone
    assert finished == []

    var.set(2000)
    entry._clamp_and_finish()
    entry._clamp_and_finish()
    assert finished == [2000]


def test_slider_entry_clamps_before_committing(root, gui):
    var = tk.DoubleVar(master=root, value=1.0)
    finished = []
    entry = gui.SliderEntry(root, "Spin", var, -5.0, 5.0, 0.001,
                            on_finish=lambda: finished.append(var.get()))
    var.set(12.0)
    entry._clamp_and_finish()
    assert finished == [5.0]


def test_color_entry_finishes_only_on_change(root, gui):
    var = tk.StringVar(master=root, value="#ff6030")
    finished = []
    entry = gui.ColorEntry(root, "Inside colour", var,
                           on_finish=lambda: finished.append(var.get()))

    entry._commit()
    var.set("#FF6030")
    entry._commit()
    assert finished == []

    var.set("#1b3984")
    entry._commit()
    assert finished == ["#1b3984"]


def test_section_folds_and_unfolds(root, gui):
    sec = gui.Section(root, "Shape", start_open=False)
    assert not sec.is_open
    assert sec._header.cget("text") == "▶  Shape"

    sec.set_open(True)
    assert sec.is_open
    assert sec._header.cget("text") == "▼  Shape"
    assert sec.inner.winfo_manager() == "pack"

    sec.set_open(False)
    assert sec.inner.winfo_manager() == ""
