"""Tests for the install slot and the regeneration scheduler."""

import threading

import numpy as np
import pytest

from galaxy_host import EditCommit, PointCloudSlot, Regenerator
from spiralgen import GalaxyParams, generate_galaxy


# ---------------------------------------------------------------------------
# PointCloudSlot
# ---------------------------------------------------------------------------

def test_install_releases_previous_resource_once():
    released = []
    slot = PointCloudSlot(release=released.append)

    slot.install("a")
    assert slot.current == "a"
    assert released == []

    slot.install("b")
    assert slot.current == "b"
    assert released == ["a"]

    slot.install("c")
    assert released == ["a", "b"]
    assert slot.installs == 3


def test_reinstalling_same_resource_does_not_release_it():
    released = []
    slot = PointCloudSlot(release=released.append)
    slot.install("a")
    slot.install("a")
    assert released == []
    assert slot.current == "a"


def test_clear_releases_current():
    released = []
    slot = PointCloudSlot(release=released.append)
    slot.clear()
    assert released == []
    slot.install("a")
    slot.clear()
    assert slot.current is None
    assert released == ["a"]


def test_concurrent_installs_release_each_replaced_resource_once():
    released = []
    lock = threading.Lock()

    def release(res):
        with lock:
            released.append(res)

    slot = PointCloudSlot(release=release)

    def installer(base):
        for i in range(500):
            slot.install(base + i)

    threads = [threading.Thread(target=installer, args=(k * 1_000,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    installed = {k * 1_000 + i for k in range(4) for i in range(500)}
    assert len(released) == len(set(released)) == len(installed) - 1
    assert set(released) | {slot.current} == installed


# ---------------------------------------------------------------------------
# Regenerator
# ---------------------------------------------------------------------------

def test_inline_request_delivers_result():
    got = []
    regen = Regenerator(
        on_ready=lambda params, pts, seed: got.append((params, pts, seed)),
        make_rng=lambda _seed: np.random.default_rng(0),
        threaded=False,
    )
    params = GalaxyParams(count=200)
    regen.request(params)

    assert not regen.is_busy()
    assert len(got) == 1
    assert got[0][0] is params
    assert got[0][2] is None
    expected = generate_galaxy(params, np.random.default_rng(0))
    assert np.array_equal(got[0][1].positions, expected.positions)
    assert regen.completed == 1


def test_superseded_requests_are_dropped():
    started = threading.Event()
    release = threading.Event()
    generated = []
    delivered = []

    def slow_generate(params, rng):
        generated.append(params.count)
        if len(generated) == 1:
            started.set()
            assert release.wait(5)
        return generate_galaxy(params, rng)

    regen = Regenerator(
        on_ready=lambda params, pts, seed: delivered.append(params.count),
        generate=slow_generate,
    )

    regen.request(GalaxyParams(count=100))
    assert started.wait(5)
    assert regen.is_busy()

    regen.request(GalaxyParams(count=200))   # superseded by the next one
    regen.request(GalaxyParams(count=300))
    release.set()

    assert regen.wait(5)
    assert generated == [100, 300]
    assert delivered == [300]
    assert regen.discarded == 1
    assert regen.completed == 1
    assert not regen.is_busy()


def test_errors_go_to_on_error():
    errors = []
    delivered = []

    def boom(params, rng):
        if params.count == 100:
            raise MemoryError("too many points")
        return generate_galaxy(params, rng)

    regen = Regenerator(
        on_ready=lambda params, pts, seed: delivered.append(params.count),
        on_error=errors.append,
        generate=boom,
        threaded=False,
    )
    regen.request(GalaxyParams(count=100))
    regen.request(GalaxyParams(count=200))

    assert len(errors) == 1 and isinstance(errors[0], MemoryError)
    assert delivered == [200]


def test_errors_propagate_without_handler():
    def boom(params, rng):
        raise MemoryError("too many points")

    regen = Regenerator(on_ready=lambda *_: None, generate=boom, threaded=False)
    with pytest.raises(MemoryError):
        regen.request(GalaxyParams())
    assert not regen.is_busy()
    assert regen.wait(0)


def test_results_go_through_dispatch():
    calls = []

    def dispatch(fn, *args):
        calls.append(fn)
        fn(*args)

    delivered = []
    on_ready = lambda params, pts, seed: delivered.append(pts.point_count)  # noqa: E731
    regen = Regenerator(on_ready=on_ready, dispatch=dispatch, threaded=False)
    regen.request(GalaxyParams(count=150))

    assert calls == [on_ready]
    assert delivered == [150]


def test_seed_travels_with_its_request():
    got = []
    regen = Regenerator(
        on_ready=lambda params, pts, seed: got.append((params.count, seed, pts)),
        threaded=False,
    )
    regen.request(GalaxyParams(count=120), seed=7)
    regen.request(GalaxyParams(count=130))

    assert [(count, seed) for count, seed, _ in got] == [(120, 7), (130, None)]
    expected = generate_galaxy(GalaxyParams(count=120), np.random.default_rng(7))
    assert np.array_equal(got[0][2].positions, expected.positions)


def _blocking_failure(started, release):
    """Generate callable whose first call blocks, then raises."""
    calls = []

    def generate(params, rng):
        calls.append(params.count)
        if len(calls) == 1:
            started.set()
            assert release.wait(5)
            raise MemoryError("first run failed")
        return generate_galaxy(params, rng)

    return generate, calls


def test_failed_run_without_handler_keeps_newer_request():
    started = threading.Event()
    release = threading.Event()
    generate, calls = _blocking_failure(started, release)
    delivered = []

    regen = Regenerator(
        on_ready=lambda params, pts, seed: delivered.append(params.count),
        generate=generate,
    )
    regen.request(GalaxyParams(count=100))
    assert started.wait(5)
    regen.request(GalaxyParams(count=300))
    release.set()

    assert regen.wait(5)
    assert calls == [100, 300]
    assert delivered == [300]
    assert regen.discarded == 1
    assert not regen.is_busy()


def test_error_from_superseded_run_is_discarded():
    started = threading.Event()
    release = threading.Event()
    generate, calls = _blocking_failure(started, release)
    delivered = []
    errors = []

    regen = Regenerator(
        on_ready=lambda params, pts, seed: delivered.append(params.count),
        on_error=errors.append,
        generate=generate,
    )
    regen.request(GalaxyParams(count=100))
    assert started.wait(5)
    regen.request(GalaxyParams(count=300))
    release.set()

    assert regen.wait(5)
    assert errors == []
    assert delivered == [300]
    assert regen.discarded == 1
    assert regen.completed == 1


# ---------------------------------------------------------------------------
# EditCommit
# ---------------------------------------------------------------------------

def test_edit_commit_reports_only_changes():
    committed = EditCommit(1000)
    assert not committed.commit(1000)      # focus passed through, nothing edited
    assert committed.commit(2000)
    assert not committed.commit(2000)
    assert committed.commit(1000)
    assert committed.value == 1000


def test_edit_commit_compares_normalised_colour_text():
    committed = EditCommit("#ff6030")
    assert not committed.commit(" #FF6030 ".strip().lower())
    assert committed.commit("#1b3984")
