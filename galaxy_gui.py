"""
galaxy_gui.py
=============
Tkinter viewer for the spiral galaxy generator.

Layout
------
Left panel   – galaxy parameters (shape, randomness, colours, seed) and view
               options – scrollable, collapsible sections.
Centre panel – embedded matplotlib 3-D view, redrawn on a fixed cadence
               (optionally auto-rotating).

Regeneration happens on "finish editing" only: releasing a slider, pressing
Return or leaving a spinbox, or closing the colour picker.  Intermediate
slider positions never trigger a generation.

Usage
-----
    python galaxy_gui.py

Dependencies
------------
Same as the core generator (numpy, pandas, matplotlib) plus tkinter, which is
bundled with the standard Python installer.  On Ubuntu/Debian:
    sudo apt-get install python3-tk
"""

from __future__ import annotations

import os
from typing import Callable, Optional

import tkinter as tk
from tkinter import ttk, colorchooser, filedialog, messagebox

import matplotlib
matplotlib.use("TkAgg")
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg, NavigationToolbar2Tk

from galaxy_host import EditCommit, PointCloudSlot, Regenerator
from plot_galaxy import (
    add_centerlines,
    add_point_cloud,
    make_axes,
    set_view_limits,
)
from spiralgen import (
    PARAM_RANGES,
    GalaxyParams,
    GalaxyPointSet,
    clamp_params,
    save_params,
    save_point_set,
)


FRAME_MS = 40          # render-loop cadence (~25 fps)
ROTATE_DEG = 0.4       # azimuth advance per frame when auto-rotating


# ---------------------------------------------------------------------------
# Reusable compound widgets
# ---------------------------------------------------------------------------

class SliderEntry(ttk.Frame):
    """Linked horizontal scale + spinbox for a numeric parameter.

    *on_finish* fires once per completed edit that changed the value: on
    slider release and on Return / focus-out / arrow click in the spinbox.
    Dragging only updates the variable.
    """

    def __init__(
        self,
        parent,
        label: str,
        var: tk.Variable,
        lo: float,
        hi: float,
        step: float = 1.0,
        on_finish: Optional[Callable[[], None]] = None,
        label_width: int = 20,
        spin_width: int = 8,
        **kw,
    ):
        super().__init__(parent, **kw)
        self._var  = var
        self._step = step
        self._lo   = lo
        self._hi   = hi
        self._busy = False
        self._on_finish = on_finish
        self._committed = EditCommit(var.get())

        ttk.Label(self, text=label, width=label_width, anchor="w").grid(
            row=0, column=0, sticky="w", padx=(4, 2), pady=1,
        )
        self._scale = ttk.Scale(
            self, orient="horizontal", length=130,
            from_=lo, to=hi, variable=var,
            command=self._on_scale,
        )
        self._scale.grid(row=0, column=1, padx=4)
        self._scale.bind("<ButtonRelease-1>", self._finish)
        self._spin = ttk.Spinbox(
            self, from_=lo, to=hi, increment=step,
            textvariable=var, width=spin_width,
            command=self._finish,
        )
        self._spin.grid(row=0, column=2, padx=(2, 4))
        self._spin.bind("<Return>",   self._clamp_and_finish)
        self._spin.bind("<FocusOut>", self._clamp_and_finish)

    def _snap(self, raw: float) -> float:
        snapped = round(raw / self._step) * self._step
        snapped = round(snapped, 10)
        return max(self._lo, min(self._hi, snapped))

    def _on_scale(self, _val: str) -> None:
        if self._busy:
            return
        try:
            raw = float(_val)
        except ValueError:
            return
        snapped = self._snap(raw)
        if abs(raw - snapped) > 1e-9:
            self._busy = True
            self._var.set(snapped)
            self._busy = False

    def _clamp(self) -> None:
        try:
            val = float(self._spin.get())
        except ValueError:
            val = self._lo
        self._var.set(self._snap(val))

    def _clamp_and_finish(self, _evt=None) -> None:
        self._clamp()
        self._finish()

    def _finish(self, _evt=None) -> None:
        try:
            value = self._var.get()
        except tk.TclError:
            return
        if self._committed.commit(value) and self._on_finish is not None:
            self._on_finish()


# ---------------------------------------------------------------------------

class ColorEntry(ttk.Frame):
    """Colour swatch + hex entry + colour-picker button."""

    def __init__(self, parent, label: str, var: tk.StringVar,
                 on_finish: Optional[Callable[[], None]] = None,
                 label_width: int = 20, **kw):
        super().__init__(parent, **kw)
        self._var = var
        self._on_finish = on_finish
        self._committed = EditCommit(var.get().strip().lower())

        ttk.Label(self, text=label, width=label_width, anchor="w").grid(
            row=0, column=0, sticky="w", padx=(4, 2), pady=1,
        )
        self._swatch = tk.Label(self, width=3, relief="sunken", cursor="hand2")
        self._swatch.grid(row=0, column=1, padx=(2, 2))
        self._swatch.bind("<Button-1>", self._open_picker)

        self._entry = ttk.Entry(self, textvariable=var, width=10)
        self._entry.grid(row=0, column=2, padx=2)
        self._entry.bind("<Return>",   self._commit)
        self._entry.bind("<FocusOut>", self._commit)

        ttk.Button(self, text="Pick…", width=6,
                   command=self._open_picker).grid(row=0, column=3, padx=(2, 4))

        var.trace_add("write", self._refresh_swatch)
        self._refresh_swatch()

    def _refresh_swatch(self, *_) -> None:
        val = self._var.get().strip()
        try:
            self._swatch.configure(bg=val)
        except tk.TclError:
            self._swatch.configure(bg="#888888")

    def _commit(self, _evt=None) -> None:
        self._refresh_swatch()
        value = self._var.get().strip().lower()
        if self._committed.commit(value) and self._on_finish is not None:
            self._on_finish()

    def _open_picker(self, _evt=None) -> None:
        current = self._var.get()
        try:
            _rgb, hexval = colorchooser.askcolor(
                color=current, title="Choose colour", parent=self)
        except tk.TclError:
            return
        if hexval:
            self._var.set(hexval.lower())
            self._commit()


# ---------------------------------------------------------------------------

class Section(ttk.Frame):
    """Titled panel group whose body can be folded away.

    The header is a flat label row; clicking anywhere on it folds or unfolds
    the body.  Rows are packed into :attr:`inner`.
    """

    OPEN_MARK, CLOSED_MARK = "▼", "▶"

    def __init__(self, parent, title: str, start_open: bool = True, **kw):
        super().__init__(parent, **kw)
        self._title = title

        self._header = ttk.Label(self, anchor="w", cursor="hand2",
                                 padding=(4, 3), font=("TkDefaultFont", 9, "bold"))
        self._header.pack(fill="x", pady=(4, 0))
        self._header.bind("<Button-1>", lambda _e: self.set_open(not self.is_open))
        ttk.Separator(self, orient="horizontal").pack(fill="x", padx=2)

        self._inner = ttk.Frame(self, padding=(2, 2, 2, 6))
        self.is_open = not start_open
        self.set_open(start_open)

    @property
    def inner(self) -> ttk.Frame:
        return self._inner

    def set_open(self, is_open: bool) -> None:
        if is_open == self.is_open:
            return
        if is_open:
            self._inner.pack(fill="x", expand=True)
        else:
            self._inner.pack_forget()
        mark = self.OPEN_MARK if is_open else self.CLOSED_MARK
        self._header.configure(text=f"{mark}  {self._title}")
        self.is_open = is_open


# ---------------------------------------------------------------------------
# Main GUI class
# ---------------------------------------------------------------------------

class GalaxyGUI:
    """Top-level viewer window."""

    def __init__(self, root: tk.Tk) -> None:
        self.root = root
        root.title("Spiral Galaxy")
        root.minsize(1100, 720)

        self._points: Optional[GalaxyPointSet] = None
        self._points_params: Optional[GalaxyParams] = None
        self._points_seed: Optional[int] = None
        self._centerline_artists: list = []

        self._build_vars()
        self._build_ui()

        self._slot = PointCloudSlot(release=self._release_artist)
        self._regen = Regenerator(
            on_ready=self._on_points_ready,
            on_error=self._on_generate_failed,
            dispatch=lambda fn, *a: self.root.after(0, fn, *a),
        )

        self._request_generate()
        self.root.after(FRAME_MS, self._tick)

    # ── Variable definitions ──────────────────────────────────────────────

    def _build_vars(self) -> None:
        iv = tk.IntVar
        dv = tk.DoubleVar
        sv = tk.StringVar
        bv = tk.BooleanVar
        d  = GalaxyParams()

        # ── Galaxy ──────────────────────────────────────────────────────
        self.v_count            = iv(value=d.count)
        self.v_size             = dv(value=d.size)
        self.v_radius           = dv(value=d.radius)
        self.v_branches         = iv(value=d.branches)
        self.v_spin             = dv(value=d.spin)
        self.v_randomness       = dv(value=d.randomness)
        self.v_randomness_power = dv(value=d.randomness_power)
        self.v_inside_color     = sv(value=d.inside_color)
        self.v_outside_color    = sv(value=d.outside_color)

        # ── Reproducibility ─────────────────────────────────────────────
        self.v_fixed_seed       = bv(value=False)
        self.v_seed             = iv(value=7)

        # ── View ────────────────────────────────────────────────────────
        self.v_auto_rotate      = bv(value=True)
        self.v_centerlines      = bv(value=False)
        self.v_out_dir          = sv(value="output")

    # ── UI construction ───────────────────────────────────────────────────

    def _build_ui(self) -> None:
        self._build_action_bar()

        paned = ttk.PanedWindow(self.root, orient="horizontal")
        paned.pack(fill="both", expand=True, padx=6, pady=(6, 0))

        # Left panel: parameters
        left_outer = ttk.Frame(paned, width=390)
        left_outer.pack_propagate(False)
        paned.add(left_outer, weight=0)

        # Centre panel: 3-D view
        centre_frame = ttk.Frame(paned)
        paned.add(centre_frame, weight=1)

        self._build_param_panel(left_outer)
        self._build_view_panel(centre_frame)

    def _build_param_panel(self, parent: ttk.Frame) -> None:
        """Scrollable left panel with collapsible sections."""
        scroll_canvas = tk.Canvas(parent, highlightthickness=0, borderwidth=0)
        vscroll = ttk.Scrollbar(parent, orient="vertical",
                                command=scroll_canvas.yview)
        scroll_canvas.configure(yscrollcommand=vscroll.set)
        vscroll.pack(side="right", fill="y")
        scroll_canvas.pack(side="left", fill="both", expand=True)

        inner = ttk.Frame(scroll_canvas)
        win_id = scroll_canvas.create_window((0, 0), window=inner, anchor="nw")

        inner.bind("<Configure>",
                   lambda _e: scroll_canvas.configure(
                       scrollregion=scroll_canvas.bbox("all")))
        scroll_canvas.bind("<Configure>",
                           lambda e: scroll_canvas.itemconfigure(win_id, width=e.width))

        LW = 20
        regen = self._request_generate

        def slider(parent, label, name):
            rng = PARAM_RANGES[name]
            var = getattr(self, f"v_{name}")
            SliderEntry(parent, label, var, rng.lo, rng.hi, rng.step,
                        on_finish=regen, label_width=LW).pack(fill="x")

        # ── Shape ─────────────────────────────────────────────────────
        sec = Section(inner, "Shape")
        sec.pack(fill="x", padx=4, pady=3)
        s = sec.inner
        slider(s, "Points (count)",   "count")
        slider(s, "Point size",       "size")
        slider(s, "Radius",           "radius")
        slider(s, "Branches",         "branches")
        slider(s, "Spin",             "spin")

        # ── Randomness ────────────────────────────────────────────────
        sec = Section(inner, "Randomness")
        sec.pack(fill="x", padx=4, pady=3)
        s = sec.inner
        slider(s, "Randomness",       "randomness")
        slider(s, "Randomness power", "randomness_power")

        # ── Colours ───────────────────────────────────────────────────
        sec = Section(inner, "Colours")
        sec.pack(fill="x", padx=4, pady=3)
        s = sec.inner
        ColorEntry(s, "Inside colour",  self.v_inside_color,
                   on_finish=regen, label_width=LW).pack(fill="x")
        ColorEntry(s, "Outside colour", self.v_outside_color,
                   on_finish=regen, label_width=LW).pack(fill="x")

        # ── Reproducibility ───────────────────────────────────────────
        sec = Section(inner, "Reproducibility", start_open=False)
        sec.pack(fill="x", padx=4, pady=3)
        s = sec.inner
        ttk.Checkbutton(s, text="Use fixed seed", variable=self.v_fixed_seed,
                        command=regen).pack(anchor="w", padx=4, pady=2)
        row = ttk.Frame(s)
        row.pack(fill="x", pady=1)
        ttk.Label(row, text="Random seed", width=LW, anchor="w").pack(side="left", padx=(4, 2))
        seed_spin = ttk.Spinbox(row, from_=0, to=99_999, increment=1,
                                textvariable=self.v_seed, width=8, command=regen)
        seed_spin.pack(side="left")
        seed_spin.bind("<Return>", lambda _e: regen())

        # ── View ──────────────────────────────────────────────────────
        sec = Section(inner, "View")
        sec.pack(fill="x", padx=4, pady=3)
        s = sec.inner
        ttk.Checkbutton(s, text="Auto-rotate", variable=self.v_auto_rotate).pack(
            anchor="w", padx=4, pady=2)
        ttk.Checkbutton(s, text="Show branch centrelines", variable=self.v_centerlines,
                        command=self._refresh_centerlines).pack(anchor="w", padx=4, pady=2)

        # ── Output ────────────────────────────────────────────────────
        sec = Section(inner, "Output", start_open=False)
        sec.pack(fill="x", padx=4, pady=3)
        s = sec.inner
        row = ttk.Frame(s)
        row.pack(fill="x", pady=1)
        ttk.Label(row, text="Output directory", width=LW, anchor="w").pack(side="left", padx=(4, 2))
        ttk.Entry(row, textvariable=self.v_out_dir, width=12).pack(side="left")
        ttk.Button(row, text="…", width=3, command=self._browse_out_dir).pack(side="left", padx=2)

    # ── 3-D view panel (centre) ────────────────────────────────────────────

    def _build_view_panel(self, parent: ttk.Frame) -> None:
        self._fig, self._ax = make_axes()
        set_view_limits(self._ax, GalaxyParams().radius)

        canvas = FigureCanvasTkAgg(self._fig, master=parent)
        canvas.draw()
        canvas.get_tk_widget().pack(fill="both", expand=True)

        toolbar_frame = ttk.Frame(parent)
        toolbar_frame.pack(fill="x")
        NavigationToolbar2Tk(canvas, toolbar_frame).update()

        self._canvas = canvas

    # ── Action bar ────────────────────────────────────────────────────────

    def _build_action_bar(self) -> None:
        bar = ttk.Frame(self.root)
        bar.pack(side="bottom", fill="x", padx=6, pady=(0, 6))

        self.btn_generate = ttk.Button(bar, text="Regenerate",
                                       command=self._request_generate, width=12)
        self.btn_generate.pack(side="left", padx=(0, 4))

        ttk.Separator(bar, orient="vertical").pack(side="left", fill="y", padx=8, pady=4)

        self.btn_save = ttk.Button(bar, text="Save data",
                                   command=self._on_save_data, width=12)
        self.btn_save.pack(side="left", padx=4)

        self.btn_png = ttk.Button(bar, text="Export PNG…",
                                  command=self._on_export_png, width=13)
        self.btn_png.pack(side="left", padx=4)

        self._status_var = tk.StringVar(value="Ready.")
        ttk.Label(bar, textvariable=self._status_var, anchor="w").pack(
            side="left", padx=12)

        self._progress = ttk.Progressbar(bar, mode="indeterminate", length=110)
        self._progress.pack(side="right", padx=4)

    # ── Helpers ───────────────────────────────────────────────────────────

    def _browse_out_dir(self) -> None:
        path = filedialog.askdirectory(title="Choose output directory")
        if path:
            self.v_out_dir.set(path)

    def _build_params(self) -> GalaxyParams:
        """Snapshot the panel state into a clamped, immutable GalaxyParams."""
        return clamp_params(GalaxyParams(
            count            = self.v_count.get(),
            size             = self.v_size.get(),
            radius           = self.v_radius.get(),
            branches         = self.v_branches.get(),
            spin             = self.v_spin.get(),
            randomness       = self.v_randomness.get(),
            randomness_power = self.v_randomness_power.get(),
            inside_color     = self.v_inside_color.get(),
            outside_color    = self.v_outside_color.get(),
        ))

    def _status(self, msg: str) -> None:
        self._status_var.set(msg)

    def _set_busy(self, busy: bool) -> None:
        if busy:
            self._progress.start(10)
        else:
            self._progress.stop()

    # ── Generation ────────────────────────────────────────────────────────

    def _request_generate(self) -> None:
        try:
            params = self._build_params()
            seed = self.v_seed.get() if self.v_fixed_seed.get() else None
        except (ValueError, tk.TclError) as exc:
            self._status(f"Invalid parameter: {exc}")
            return
        self._set_busy(True)
        self._status(f"Generating {params.count:,} points…")
        self._regen.request(params, seed)

    def _on_points_ready(self, params: GalaxyParams, point_set: GalaxyPointSet,
                         seed: Optional[int]) -> None:
        """Main thread: install the new cloud, releasing the previous one."""
        artist = add_point_cloud(self._ax, point_set, params.size)
        self._slot.install(artist)
        self._points = point_set
        self._points_params = params
        self._points_seed = seed

        set_view_limits(self._ax, params.radius)
        self._refresh_centerlines()

        if not self._regen.is_busy():
            self._set_busy(False)
        self._status(f"{point_set.point_count:,} points  |  "
                     f"{params.branches} branches  |  spin {params.spin:g}")

    def _on_generate_failed(self, exc: BaseException) -> None:
        if not self._regen.is_busy():
            self._set_busy(False)
        msg = str(exc) or type(exc).__name__
        self._status(f"Generation failed: {msg}")
        messagebox.showerror("Generation failed", msg)

    @staticmethod
    def _release_artist(artist) -> None:
        artist.remove()

    def _refresh_centerlines(self) -> None:
        for line in self._centerline_artists:
            line.remove()
        self._centerline_artists = []
        if self.v_centerlines.get() and self._points_params is not None:
            self._centerline_artists = add_centerlines(self._ax, self._points_params)

    # ── Render loop ───────────────────────────────────────────────────────

    def _tick(self) -> None:
        """Fixed-cadence redraw of whatever cloud is currently installed."""
        if self._slot.current is not None:
            if self.v_auto_rotate.get():
                self._ax.view_init(elev=self._ax.elev,
                                   azim=(self._ax.azim + ROTATE_DEG) % 360.0)
            self._canvas.draw_idle()
        self.root.after(FRAME_MS, self._tick)

    # ── Export actions ────────────────────────────────────────────────────

    def _on_save_data(self) -> None:
        if self._points is None:
            messagebox.showwarning("No data", "Nothing generated yet.")
            return
        out_dir = self.v_out_dir.get()
        try:
            written = save_point_set(self._points, out_dir)
            params_path = os.path.join(out_dir, "params.json")
            save_params(self._points_params, params_path, seed=self._points_seed)
        except OSError as exc:
            self._status(f"Save failed: {exc}")
            messagebox.showerror("Save failed", str(exc))
            return
        self._status(f"Saved {len(written) + 1} files to '{out_dir}'.")

    def _on_export_png(self) -> None:
        if self._slot.current is None:
            messagebox.showwarning("No data", "Nothing generated yet.")
            return
        path = filedialog.asksaveasfilename(
            defaultextension=".png",
            filetypes=[("PNG files", "*.png"), ("All files", "*.*")],
            initialfile="galaxy.png",
            title="Export as PNG",
        )
        if not path:
            return
        try:
            self._fig.savefig(path, dpi=150, facecolor=self._fig.get_facecolor())
        except (OSError, ValueError) as exc:
            self._status(f"Export failed: {exc}")
            messagebox.showerror("Export failed", str(exc))
            return
        self._status(f"Saved → {path}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    root = tk.Tk()
    GalaxyGUI(root)
    root.mainloop()


if __name__ == "__main__":
    main()
