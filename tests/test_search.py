import unittest
from unittest.mock import MagicMock

from autofill.core.constants import SearchOutcome, SearchState
from autofill.data.lexicon import Lexicon
from autofill.engine.grid import FillGrid
from autofill.engine.numbering import compute_numbering
from autofill.engine.patterns import PatternMatcher
from autofill.engine.search import CancellationToken, SearchDriver, solve
from autofill.engine.slots import extract_slots
from autofill.engine.strategies import (InputOrderSelector, LookaheadOrdering,
                                        ShuffledOrdering, WeakestLookaheadSelector)
from autofill.io.progress import RecordingProgressReporter


PLUS_ROWS = ["....."] + [".####"] * 4


def build(rows, words):
    grid = FillGrid.from_rows(rows)
    slots = extract_slots(grid, compute_numbering(grid))
    return grid, slots, PatternMatcher(Lexicon(words))


def assert_consistent(test, grid, slots, words):
    lexicon = {word.upper() for word in words}
    answers = [grid.word_at(slot) for slot in slots]
    for slot, answer in zip(slots, answers):
        test.assertIn(answer, lexicon)
        test.assertEqual(slot.answer, answer)
    test.assertEqual(len(set(answers)), len(answers))


class SearchScenarioTests(unittest.TestCase):
    def test_plus_grid_fills_hello_and_horse(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        used = set()
        result = solve(slots, grid, used, matcher)
        self.assertEqual(result.outcome, SearchOutcome.SOLVED)
        self.assertEqual(result.assignments, {"1-across": "HELLO", "1-down": "HORSE"})
        self.assertEqual(grid.to_strings()[0], "HELLO")
        self.assertEqual([row[0] for row in grid.to_strings()], list("HORSE"))
        self.assertEqual(used, {"HELLO", "HORSE"})
        self.assertEqual(result.stats.placements, 2)
        self.assertEqual(result.stats.backtracks, 0)

    def test_plus_grid_with_conflicting_words_is_exhausted(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "world"])
        before = grid.copy()
        used = {"UNRELATED"}
        result = solve(slots, grid, used, matcher)
        self.assertEqual(result.outcome, SearchOutcome.EXHAUSTED)
        self.assertIsNone(result.grid)
        self.assertEqual(grid, before)
        self.assertEqual(used, {"UNRELATED"})
        self.assertTrue(all(slot.answer is None for slot in slots))
        self.assertEqual(result.stats.backtracks, 2)
        self.assertEqual(result.stats.dead_ends, 2)

    def test_two_by_two_needs_four_distinct_words(self) -> None:
        grid, slots, matcher = build(["..", ".."], ["at", "it", "ai"])
        self.assertEqual(len(slots), 4)
        before = grid.copy()
        result = solve(slots, grid, set(), matcher)
        self.assertEqual(result.outcome, SearchOutcome.EXHAUSTED)
        self.assertEqual(grid, before)

    def test_two_by_two_solvable(self) -> None:
        words = ["at", "no", "an", "to"]
        grid, slots, matcher = build(["..", ".."], words)
        result = solve(slots, grid, set(), matcher)
        self.assertTrue(result.solved)
        self.assertEqual(grid.to_strings(), ["AN", "TO"])
        assert_consistent(self, grid, slots, words)

    def test_prefilled_letters_are_kept(self) -> None:
        words = ["hello", "horse", "house", "world"]
        grid, slots, matcher = build(["H...."] + [".####"] * 3 + ["E####"], words)
        result = solve(slots, grid, set(), matcher)
        self.assertTrue(result.solved)
        self.assertEqual(result.assignments, {"1-across": "HELLO", "1-down": "HORSE"})
        self.assertEqual(grid.letter_at(4, 0), "E")

    def test_fully_prefilled_slot_is_accepted(self) -> None:
        grid, slots, matcher = build(["CAT"], ["cat"])
        result = solve(slots, grid, set(), matcher)
        self.assertTrue(result.solved)
        self.assertEqual(result.assignments, {"1-across": "CAT"})

    def test_used_words_are_never_repeated(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        result = solve(slots, grid, {"HORSE"}, matcher)
        self.assertEqual(result.outcome, SearchOutcome.EXHAUSTED)


class SearchDeterminismTests(unittest.TestCase):
    def test_same_input_same_answers(self) -> None:
        words = ["at", "no", "an", "to", "on", "ta"]
        outcomes = []
        for _ in range(2):
            grid, slots, matcher = build(["..", ".."], words)
            outcomes.append(solve(slots, grid, set(), matcher).assignments)
        self.assertEqual(outcomes[0], outcomes[1])

    def test_shuffled_ordering_is_reproducible(self) -> None:
        words = ["at", "no", "an", "to", "on", "ta"]
        outcomes = []
        for _ in range(2):
            grid, slots, matcher = build(["..", ".."], words)
            result = solve(slots, grid, set(), matcher, ordering=ShuffledOrdering(seed=3))
            self.assertTrue(result.solved)
            assert_consistent(self, grid, slots, words)
            outcomes.append(result.assignments)
        self.assertEqual(outcomes[0], outcomes[1])

    def test_alternate_strategies_reach_valid_fills(self) -> None:
        words = ["at", "no", "an", "to"]
        variants = {
            "input order": dict(selector=InputOrderSelector()),
            "weakest lookahead": dict(selector=WeakestLookaheadSelector()),
            "lookahead ordering": dict(ordering=LookaheadOrdering()),
        }
        for name, options in variants.items():
            with self.subTest(name):
                grid, slots, matcher = build(["..", ".."], words)
                result = solve(slots, grid, set(), matcher, **options)
                self.assertTrue(result.solved)
                assert_consistent(self, grid, slots, words)


class SearchCollaboratorTests(unittest.TestCase):
    def test_final_state_matches_outcome(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        driver = SearchDriver(matcher)
        self.assertEqual(driver.state, SearchState.SELECTING)
        self.assertTrue(driver.solve(slots, grid, set()).solved)
        self.assertEqual(driver.state, SearchState.SUCCESS)

        grid, slots, matcher = build(PLUS_ROWS, ["hello", "world"])
        driver = SearchDriver(matcher)
        self.assertEqual(driver.solve(slots, grid, set()).outcome, SearchOutcome.EXHAUSTED)
        self.assertEqual(driver.state, SearchState.FAILURE)

    def test_progress_snapshot_before_each_selection(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        reporter = RecordingProgressReporter()
        SearchDriver(matcher, reporter=reporter).solve(slots, grid, set())
        self.assertEqual(len(reporter.snapshots), 3)
        self.assertEqual(reporter.snapshots[0].splitlines()[0], ". . . . .")
        self.assertEqual(reporter.snapshots[-1].splitlines()[0], "H E L L O")
        self.assertEqual(reporter.snapshots[-1].splitlines()[4], "E # # # #")

    def test_reporter_failures_are_ignored(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        reporter = MagicMock()
        reporter.update.side_effect = RuntimeError("terminal gone")
        with self.assertLogs("autofill.engine.search", level="WARNING"):
            result = SearchDriver(matcher, reporter=reporter).solve(slots, grid, set())
        self.assertTrue(result.solved)
        self.assertEqual(reporter.update.call_count, 3)

    def test_cancelled_before_start(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        token = CancellationToken()
        token.cancel()
        driver = SearchDriver(matcher, cancel_token=token)
        result = driver.solve(slots, grid, set())
        self.assertEqual(result.outcome, SearchOutcome.CANCELLED)
        self.assertEqual(result.stats.placements, 0)
        self.assertEqual(driver.state, SearchState.CANCELLED)

    def test_cancel_mid_search_rolls_back(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        before = grid.copy()
        token = CancellationToken()
        reporter = MagicMock()
        reporter.update.side_effect = lambda snapshot: token.cancel() if "H" in snapshot else None
        used = set()
        result = SearchDriver(matcher, reporter=reporter, cancel_token=token).solve(slots, grid, used)
        self.assertEqual(result.outcome, SearchOutcome.CANCELLED)
        self.assertEqual(result.stats.placements, 1)
        self.assertEqual(grid, before)
        self.assertEqual(used, set())

    def test_zero_timeout_cancels(self) -> None:
        grid, slots, matcher = build(PLUS_ROWS, ["hello", "horse"])
        result = SearchDriver(matcher, timeout_seconds=0).solve(slots, grid, set())
        self.assertEqual(result.outcome, SearchOutcome.CANCELLED)

    def test_place_and_undo_restore_state(self) -> None:
        grid, slots, matcher = build(["...", ".#."], ["cat", "ca", "to"])
        driver = SearchDriver(matcher)
        remaining = list(slots)
        used = {"DOG"}
        down = slots[1]
        down.best_score = 4
        placement = driver.place(slots[0], "CAT", remaining, grid, used)
        self.assertEqual(remaining, slots[1:])
        self.assertEqual(used, {"DOG", "CAT"})
        self.assertIsNone(down.best_score)
        placement.undo()
        self.assertEqual(remaining, slots)
        self.assertEqual(used, {"DOG"})
        self.assertEqual(grid.to_strings(), ["...", ".#."])
        self.assertIsNone(slots[0].answer)


if __name__ == "__main__":
    unittest.main()
