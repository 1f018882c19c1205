import logging
import random

import pytest
from playwright.sync_api import Error as PlaywrightError

from demo_recorder.animations import (
    CURSOR_SCRIPT,
    DEFAULT_CURSOR,
    HIGHLIGHT_SCRIPT,
    MIN_TYPING_DELAY_MS,
    MOVE_CURSOR_SCRIPT,
    RIPPLE_SCRIPT,
    ZOOM_SCRIPT,
    InteractionEngine,
    cursor_path,
    ease_out_cubic,
    typing_delay,
)
from demo_recorder.errors import ConcurrentInteractionError

ANIMATION_LOGGER = "demo_recorder.animations"


# =============================================================================
# Easing and path maths
# =============================================================================

class TestEasing:
    def test_curve_endpoints(self):
        assert ease_out_cubic(0) == 0
        assert ease_out_cubic(1) == 1

    def test_curve_is_ease_out(self):
        """Most of the distance is covered early in the movement."""
        assert ease_out_cubic(0.5) == pytest.approx(0.875)

    @pytest.mark.parametrize("steps", [1, 2, 3, 7, 20, 60])
    def test_eased_values_never_decrease(self, steps):
        values = [ease_out_cubic(step / steps) for step in range(1, steps + 1)]
        assert all(b >= a for a, b in zip(values, values[1:]))

    @pytest.mark.parametrize("steps", [1, 2, 3, 7, 20, 60])
    @pytest.mark.parametrize(
        "start,end",
        [((100, 100), (300, 200)), ((0.1, 0.7), (0.3, 1 / 3)), ((500, 20), (12.5, 980.25))],
    )
    def test_path_ends_exactly_on_target(self, steps, start, end):
        points = list(cursor_path(start, end, steps))
        assert len(points) == steps
        assert points[-1] == end

    def test_path_moves_monotonically_towards_target(self):
        xs = [x for x, _ in cursor_path((100, 100), (300, 200), 20)]
        assert all(b >= a for a, b in zip(xs, xs[1:]))
        assert xs[0] > 100


class TestTypingDelay:
    def test_floor_when_delay_is_zero(self):
        assert typing_delay(0, 0, random.Random(1)) == MIN_TYPING_DELAY_MS

    def test_floor_holds_for_large_variation(self):
        rng = random.Random(7)
        delays = [typing_delay(5, 100, rng) for _ in range(500)]
        assert min(delays) >= MIN_TYPING_DELAY_MS

    def test_jitter_stays_within_variation(self):
        rng = random.Random(99)
        delays = [typing_delay(50, 20, rng) for _ in range(500)]
        assert all(30 <= d <= 70 for d in delays)
        assert len(set(delays)) > 1


# =============================================================================
# Engine setup
# =============================================================================

class TestSetup:
    def test_installs_cursor_and_resets_position(self, engine, page):
        engine.setup()
        assert page.calls_named("init_script") == [("init_script", CURSOR_SCRIPT)]
        assert ("evaluate", CURSOR_SCRIPT, None) in page.calls
        assert engine.cursor == DEFAULT_CURSOR
        assert page.mouse.moves == [DEFAULT_CURSOR]

    def test_setup_failure_propagates(self, engine, page):
        page.failing.add("add_init_script")
        with pytest.raises(PlaywrightError):
            engine.setup()


# =============================================================================
# move_to
# =============================================================================

class TestMoveTo:
    def test_example_scenario(self, engine, page):
        """20 steps from (100,100) to the centre of #btn at (300,200), 25ms apart."""
        engine.setup()
        page.calls.clear()
        page.mouse.moves.clear()

        engine.move_to("#btn", duration=500, steps=20)

        assert len(page.mouse.moves) == 20
        assert page.mouse.moves[-1] == (300.0, 200.0)
        assert page.waits == [25.0] * 20
        assert engine.cursor == (300.0, 200.0)

    def test_overlay_and_pointer_updated_together(self, engine, page):
        engine.move_to("#btn", duration=100, steps=4)
        overlay_updates = [call[2] for call in page.calls_named("evaluate")][1:]
        assert [tuple(p) for p in overlay_updates] == page.mouse.moves

    def test_overlay_restored_to_cursor_before_gliding(self, engine, page):
        """After a page load the overlay is back at its default spot; the glide re-places it first."""
        engine.move_to("#btn", duration=100, steps=4)
        page.calls.clear()

        engine.move_to("#input", duration=100, steps=4)

        first = page.calls_named("evaluate")[0]
        assert first == ("evaluate", MOVE_CURSOR_SCRIPT, [300.0, 200.0])
        assert page.calls.index(first) < page.calls.index(("mouse.move", *page.mouse.moves[-4]))

    def test_each_step_is_followed_by_a_wait(self, engine, page):
        engine.move_to("#btn", duration=100, steps=4)
        kinds = [call[0] for call in page.calls if call[0] in ("mouse.move", "wait")]
        assert kinds == ["mouse.move", "wait"] * 4

    def test_starts_from_default_cursor_without_setup(self, engine, page):
        engine.move_to("#btn", duration=200, steps=2)
        expected_x = 100 + (300 - 100) * ease_out_cubic(0.5)
        assert page.mouse.moves[0][0] == pytest.approx(expected_x)

    def test_next_move_starts_where_the_last_ended(self, engine, page):
        engine.move_to("#btn", duration=200, steps=4)
        page.mouse.moves.clear()
        engine.move_to("#input", duration=200, steps=2)
        first_x = 300 + (500 - 300) * ease_out_cubic(0.5)
        assert page.mouse.moves[0][0] == pytest.approx(first_x)
        assert page.mouse.moves[-1] == (500.0, 315.0)

    def test_zero_steps_jumps_straight_to_target(self, engine, page):
        engine.move_to("#btn", duration=300, steps=0)
        assert page.mouse.moves == [(300.0, 200.0)]
        assert page.waits == [300.0]

    def test_missing_element_does_not_move(self, engine, page, caplog):
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.move_to(".missing")
        assert page.mouse.moves == []
        assert page.waits == []
        assert engine.cursor is None
        assert "element not found" in caplog.text

    def test_pointer_failure_is_downgraded(self, engine, page, caplog):
        page.failing.add("mouse.move")
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.move_to("#btn")
        assert "Failed to move cursor" in caplog.text


# =============================================================================
# highlight
# =============================================================================

class TestHighlight:
    def test_overlay_then_wait_with_fade(self, engine, page):
        engine.highlight("#btn", 500)
        evaluate = page.calls_named("evaluate")[0]
        assert evaluate[1] == HIGHLIGHT_SCRIPT
        assert evaluate[2]["box"] == page.elements["#btn"]
        assert evaluate[2]["duration"] == 500
        assert page.waits == [700]

    def test_missing_element_skips_wait(self, engine, page, caplog):
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.highlight(".missing", 500)
        assert page.calls_named("evaluate") == []
        assert page.waits == []
        assert ".missing" in caplog.text

    def test_dom_failure_is_downgraded(self, engine, page, caplog):
        page.failing.add("evaluate")
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.highlight("#btn")
        assert "Failed to highlight" in caplog.text


# =============================================================================
# click_animated
# =============================================================================

class TestClickAnimated:
    def test_move_hover_ripple_click(self, engine, page):
        engine.click_animated("#btn", hover_duration=200, move_duration=400)

        assert page.mouse.moves[-1] == (300.0, 200.0)
        assert page.waits[:20] == [20.0] * 20
        assert page.waits[20] == 200

        ripple = [call for call in page.calls_named("evaluate") if call[1] == RIPPLE_SCRIPT]
        assert len(ripple) == 1
        assert ripple[0][2]["x"] == 300.0 and ripple[0][2]["y"] == 200.0

        tail = [call[0] for call in page.calls[-3:]]
        assert tail == ["wait", "evaluate", "click"]
        assert page.calls[-1] == ("click", "#btn")

    def test_missing_element_never_clicks(self, engine, page, caplog):
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.click_animated(".missing")
        assert page.calls_named("click") == []
        assert "Click: element not found" in caplog.text

    def test_click_failure_is_downgraded(self, engine, page, caplog):
        page.failing.add("click")
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.click_animated("#btn")
        assert "Failed to click" in caplog.text


# =============================================================================
# type_animated
# =============================================================================

class TestTypeAnimated:
    def test_example_scenario(self, engine, page):
        engine.type_animated("#input", "hi", delay=50, variation=20)

        assert page.calls[0] == ("click", "#input")
        assert page.calls[1] == ("wait", 100)
        assert page.keyboard.typed == ["h", "i"]
        after_focus = page.calls[2:]
        assert [call[0] for call in after_focus] == ["type", "wait", "type", "wait"]
        for _, ms in page.calls_named("wait")[1:]:
            assert 30 <= ms <= 70

    def test_delay_is_drawn_per_character(self, page):
        engine = InteractionEngine(page, rng=random.Random(5))
        engine.type_animated("#input", "abcdefgh", delay=50, variation=20)
        char_waits = page.waits[1:]
        assert len(char_waits) == 8
        assert len(set(char_waits)) > 1

    def test_delay_never_below_floor(self, engine, page):
        engine.type_animated("#input", "abc", delay=0, variation=0)
        assert page.waits[1:] == [MIN_TYPING_DELAY_MS] * 3

    def test_missing_element_types_nothing(self, engine, page, caplog):
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.type_animated(".missing", "hello")
        assert page.keyboard.typed == []
        assert "Type: element not found" in caplog.text

    def test_keyboard_failure_is_downgraded(self, engine, page, caplog):
        page.failing.add("keyboard.type")
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.type_animated("#input", "hello")
        assert "Failed to type" in caplog.text


# =============================================================================
# zoom_highlight
# =============================================================================

class TestZoomHighlight:
    def test_overlay_then_full_duration_wait(self, engine, page):
        engine.zoom_highlight("#btn", scale=1.1, duration=800)
        evaluate = page.calls_named("evaluate")[0]
        assert evaluate[1] == ZOOM_SCRIPT
        assert evaluate[2] == {"box": page.elements["#btn"], "scale": 1.1, "duration": 800}
        assert page.waits == [800]

    def test_defaults(self, engine, page):
        engine.zoom_highlight("#btn")
        assert page.calls_named("evaluate")[0][2]["scale"] == 1.05
        assert page.waits == [600]

    def test_keyframes_cover_four_phases(self):
        for offset in ("offset: 0,", "offset: 0.2,", "offset: 0.8,", "offset: 1,"):
            assert offset in ZOOM_SCRIPT


# =============================================================================
# Failure tier and sequencing
# =============================================================================

class TestMissingTargets:
    @pytest.mark.parametrize(
        "call",
        [
            lambda e: e.highlight(".missing"),
            lambda e: e.move_to(".missing"),
            lambda e: e.click_animated(".missing"),
            lambda e: e.type_animated(".missing", "text"),
            lambda e: e.zoom_highlight(".missing"),
        ],
        ids=["highlight", "move_to", "click_animated", "type_animated", "zoom_highlight"],
    )
    def test_helpers_warn_instead_of_raising(self, engine, caplog, call):
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            call(engine)
        assert any(record.levelno == logging.WARNING for record in caplog.records)

    def test_hidden_element_counts_as_missing(self, engine, page, caplog):
        page.elements["#hidden"] = None
        with caplog.at_level(logging.WARNING, logger=ANIMATION_LOGGER):
            engine.zoom_highlight("#hidden")
        assert page.waits == []


class TestSequentialUse:
    def test_overlapping_call_is_rejected(self, engine):
        engine._busy.acquire()
        try:
            with pytest.raises(ConcurrentInteractionError):
                engine.highlight("#btn")
        finally:
            engine._busy.release()

    def test_lock_released_after_each_call(self, engine, page):
        engine.highlight("#btn")
        engine.click_animated("#btn")
        engine.highlight(".missing")
        engine.highlight("#btn")
        assert page.waits.count(700) == 2
