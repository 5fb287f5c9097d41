"""
galaxy_host.py
==============
Host-side plumbing between the parameter panel, the generator and the view.

PointCloudSlot
    Owns the one installed render resource (e.g. a matplotlib scatter
    artist).  ``install`` swaps the handle under a lock and then releases the
    previous resource, so the render step sees either the old cloud or the
    new one, never a mix, and every resource is released exactly once.

Regenerator
    Serialises regenerations.  At most one generation runs at a time; while
    one is running, further requests overwrite a single pending slot, so
    superseded snapshots are dropped rather than queued.  If newer requests
    arrive while a generation is running, its result (or error) is discarded
    as stale.

EditCommit
    Remembers the last committed value of one panel field, so a "finish
    editing" event (focus-out, slider release, Return) only triggers a
    regeneration when the value actually changed.

Usage
-----
    slot  = PointCloudSlot(release=lambda artist: artist.remove())
    regen = Regenerator(on_ready=lambda params, pts, seed: slot.install(build(pts)),
                        dispatch=lambda fn, *a: root.after(0, fn, *a))
    regen.request(current_params_snapshot, seed=None)
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Tuple

import numpy as np

from spiralgen import GalaxyParams, GalaxyPointSet, generate_galaxy


def _call_now(fn: Callable, *args) -> None:
    fn(*args)


# ---------------------------------------------------------------------------
# Installed resource slot
# ---------------------------------------------------------------------------

class PointCloudSlot:
    """Single-owner holder for the currently displayed point-cloud resource.

    Parameters
    ----------
    release : callable, optional
        Called with each resource once it has been replaced or cleared
        (geometry/material disposal, ``artist.remove()``, …).
    """

    def __init__(self, release: Optional[Callable[[Any], None]] = None) -> None:
        self._release = release
        self._lock = threading.Lock()
        self._current: Any = None
        self.installs = 0

    @property
    def current(self) -> Any:
        with self._lock:
            return self._current

    def install(self, resource: Any) -> None:
        """Make *resource* current and release the one it replaces."""
        with self._lock:
            old, self._current = self._current, resource
            self.installs += 1
        if old is not None and old is not resource:
            self._dispose(old)

    def clear(self) -> None:
        with self._lock:
            old, self._current = self._current, None
        if old is not None:
            self._dispose(old)

    def _dispose(self, resource: Any) -> None:
        if self._release is not None:
            self._release(resource)


# ---------------------------------------------------------------------------
# Edit commits
# ---------------------------------------------------------------------------

class EditCommit:
    """Last committed value of a single editable field."""

    def __init__(self, value: Any) -> None:
        self.value = value

    def commit(self, value: Any) -> bool:
        """Record *value*; True if it differs from the previous commit."""
        if value == self.value:
            return False
        self.value = value
        return True


# ---------------------------------------------------------------------------
# Regeneration scheduler
# ---------------------------------------------------------------------------

class Regenerator:
    """Runs generations one at a time, keeping only the latest request.

    Parameters
    ----------
    on_ready : callable(params, point_set, seed)
        Receives each non-stale result with the seed it was requested with,
        via *dispatch*.
    on_error : callable(exc), optional
        Receives exceptions raised by *generate* for the latest request, via
        *dispatch*.  When not given, the exception is re-raised once the
        pending requests have drained, unless a later result supersedes it.
        Errors from superseded requests are discarded like stale results.
    generate : callable(params, rng) -> GalaxyPointSet
        Defaults to ``spiralgen.generate_galaxy``.
    make_rng : callable(seed) -> random source
        Called once per generation with the seed passed to ``request``.
        Defaults to ``numpy.random.default_rng``.
    dispatch : callable(fn, *args)
        How results reach the consumer.  The GUI passes Tk's ``root.after``
        so results land on the main thread; the default calls directly.
    threaded : bool
        Run generations on a daemon worker thread (GUI) or inline in the
        caller of ``request`` (CLI, tests).
    """

    def __init__(
        self,
        on_ready: Callable[[GalaxyParams, GalaxyPointSet, Optional[int]], None],
        *,
        on_error: Optional[Callable[[BaseException], None]] = None,
        generate: Callable[..., GalaxyPointSet] = generate_galaxy,
        make_rng: Callable[[Optional[int]], Any] = np.random.default_rng,
        dispatch: Callable[..., None] = _call_now,
        threaded: bool = True,
    ) -> None:
        self._on_ready = on_ready
        self._on_error = on_error
        self._generate = generate
        self._make_rng = make_rng
        self._dispatch = dispatch
        self._threaded = threaded

        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._seq = 0
        self._pending: Optional[Tuple[int, GalaxyParams, Optional[int]]] = None
        self._running = False

        self.completed = 0   # results delivered to on_ready
        self.discarded = 0   # results or errors dropped because a newer request arrived

    def request(self, params: GalaxyParams, seed: Optional[int] = None) -> None:
        """Ask for a regeneration from the snapshot *params* and *seed*."""
        with self._lock:
            self._seq += 1
            self._pending = (self._seq, params, seed)
            if self._running:
                return
            self._running = True
            self._idle.clear()

        if self._threaded:
            threading.Thread(target=self._drain, daemon=True).start()
        else:
            self._drain()

    def is_busy(self) -> bool:
        with self._lock:
            return self._running

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no generation is running or pending."""
        return self._idle.wait(timeout)

    def _finish(self) -> None:
        self._running = False
        self._idle.set()

    def _drain(self) -> None:
        failure: Optional[BaseException] = None
        while True:
            with self._lock:
                job, self._pending = self._pending, None
                if job is None:
                    self._finish()
                    break
            seq, params, seed = job

            try:
                point_set = self._generate(params, self._make_rng(seed))
            except Exception as exc:
                if self._is_stale(seq):
                    self.discarded += 1
                elif self._on_error is None:
                    failure = exc
                else:
                    self._dispatch(self._on_error, exc)
                continue

            if self._is_stale(seq):
                self.discarded += 1
                continue
            failure = None
            self.completed += 1
            self._dispatch(self._on_ready, params, point_set, seed)

        if failure is not None:
            raise failure

    def _is_stale(self, seq: int) -> bool:
        with self._lock:
            return seq != self._seq
