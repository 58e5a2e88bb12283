import io
import unittest
from unittest.mock import MagicMock

from autofill.core.constants import SearchOutcome
from autofill.core.exceptions import (LexiconCoverageError, NoSlotsError, NumberingError,
                                      ValidationError)
from autofill.data.lexicon import Lexicon
from autofill.engine.filler import FillConfig, GridFiller
from autofill.engine.grid import FillGrid
from autofill.engine.numbering import compute_numbering
from autofill.engine.search import CancellationToken
from autofill.engine.slots import extract_slots
from autofill.engine.validator import GridValidator, ValidationResult
from autofill.io.progress import RecordingProgressReporter
from autofill.utils.pretty import format_grid, print_fill_stats


PLUS_ROWS = ["....."] + [".####"] * 4
SQUARE_WORDS = ["at", "no", "an", "to"]


class LowercaseSource:
    """Source that hands out words as stored on disk, in lowercase."""

    def __init__(self, words):
        self.words = set(words)

    def words_of_length(self, length):
        return {word for word in self.words if len(word) == length}


def slots_for(grid):
    return extract_slots(grid, compute_numbering(grid))


class GridValidatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = GridValidator(Lexicon(SQUARE_WORDS))

    def test_valid_fill(self) -> None:
        grid = FillGrid.from_rows(["AN", "TO"])
        result = self.validator.validate(grid, slots_for(grid), FillGrid.from_rows(["..", ".."]))
        self.assertTrue(result.ok)
        self.assertEqual(result.messages, [])

    def test_word_outside_lexicon(self) -> None:
        grid = FillGrid.from_rows(["AN", "TX"])
        result = self.validator.validate(grid, slots_for(grid))
        self.assertFalse(result.ok)
        self.assertIn("NX", result.messages[0])

    def test_blank_cell(self) -> None:
        grid = FillGrid.from_rows(["AN", "T."])
        result = self.validator.validate(grid, slots_for(grid))
        self.assertFalse(result.ok)

    def test_duplicate_answers(self) -> None:
        grid = FillGrid.from_rows(["AA", "AA"])
        result = GridValidator(Lexicon(["aa"])).validate(grid, slots_for(grid))
        self.assertFalse(result.ok)
        self.assertIn("Duplicate", result.messages[0])

    def test_recorded_answers_must_agree_at_crossings(self) -> None:
        grid = FillGrid.from_rows(["AN", "TO"])
        slots = slots_for(grid)
        slots[1].answer = "OT"
        result = self.validator.validate(grid, slots)
        self.assertFalse(result.ok)
        self.assertIn("Crossing", result.messages[0])

    def test_input_letters_and_blocks_must_survive(self) -> None:
        grid = FillGrid.from_rows(["AN", "TO"])
        slots = slots_for(grid)
        self.assertFalse(self.validator.validate(grid, slots, FillGrid.from_rows(["N.", ".."])).ok)
        self.assertFalse(self.validator.validate(grid, slots, FillGrid.from_rows(["..", ".#"])).ok)

    def test_lowercase_source_words_are_accepted(self) -> None:
        grid = FillGrid.from_rows(["AN", "TO"])
        result = GridValidator(LowercaseSource(SQUARE_WORDS)).validate(grid, slots_for(grid))
        self.assertTrue(result.ok)


class GridFillerTests(unittest.TestCase):
    def test_missing_length_rejected_before_any_write(self) -> None:
        reporter = RecordingProgressReporter()
        filler = GridFiller(Lexicon(["cat", "dog"]), reporter=reporter)
        grid = FillGrid.from_rows(PLUS_ROWS)
        with self.assertRaises(LexiconCoverageError) as ctx:
            filler.fill(grid)
        self.assertEqual(ctx.exception.missing_lengths, [5])
        self.assertEqual(reporter.snapshots, [])
        self.assertEqual(grid.to_strings(), PLUS_ROWS)

    def test_fill_returns_answers_and_grid(self) -> None:
        filler = GridFiller(Lexicon(SQUARE_WORDS))
        original = FillGrid.from_rows(["..", ".."])
        result = filler.fill(original)
        self.assertTrue(result.solved)
        self.assertEqual(result.grid.to_strings(), ["AN", "TO"])
        self.assertEqual(
            result.answers,
            {"1-across": "AN", "1-down": "AT", "2-down": "NO", "3-across": "TO"},
        )
        self.assertEqual(result.validation_messages, [])
        self.assertEqual(original.to_strings(), ["..", ".."])

        payload = result.to_jsonable()
        self.assertEqual(payload["outcome"], "solved")
        self.assertEqual(payload["grid"], ["AN", "TO"])
        self.assertEqual(payload["stats"]["placements"], 4)
        self.assertGreaterEqual(payload["elapsed_seconds"], 0)
        self.assertEqual(payload["numbering"], {"0,0": 1, "0,1": 2, "1,0": 3})
        slots = {entry["id"]: entry for entry in payload["slots"]}
        self.assertEqual(
            slots["2-down"],
            {"id": "2-down", "start": [0, 1], "direction": "down", "length": 2, "answer": "NO"},
        )
        self.assertEqual(slots["3-across"]["start"], [1, 0])

    def test_exhausted_fill_has_no_grid(self) -> None:
        result = GridFiller(Lexicon(["hello", "world"])).fill(PLUS_ROWS)
        self.assertEqual(result.outcome, SearchOutcome.EXHAUSTED)
        self.assertIsNone(result.grid)
        self.assertIsNone(result.to_jsonable()["grid"])

    def test_lowercase_source_fills_and_validates(self) -> None:
        result = GridFiller(LowercaseSource(["hello", "horse"])).fill(PLUS_ROWS)
        self.assertTrue(result.solved)
        self.assertEqual(result.answers, {"1-across": "HELLO", "1-down": "HORSE"})
        self.assertEqual(result.validation_messages, [])

    def test_zero_timeout_is_cancelled(self) -> None:
        filler = GridFiller(Lexicon(["hello", "horse"]), FillConfig(timeout_seconds=0))
        result = filler.fill(PLUS_ROWS)
        self.assertEqual(result.outcome, SearchOutcome.CANCELLED)
        self.assertIsNone(result.grid)

    def test_explicit_numbering_in_json_form(self) -> None:
        result = GridFiller(Lexicon(["hello", "horse"])).fill(PLUS_ROWS, {"0,0": 7})
        self.assertEqual(result.answers, {"7-across": "HELLO", "7-down": "HORSE"})

    def test_bad_numbering_is_an_input_error(self) -> None:
        with self.assertRaises(NumberingError):
            GridFiller(Lexicon(["hello", "horse"])).fill(PLUS_ROWS, {"0,0": 1, "0,1": 2})

    def test_grid_without_slots(self) -> None:
        with self.assertRaises(NoSlotsError):
            GridFiller(Lexicon(["hello"])).fill(["#.#", "###"])

    def test_sequential_fills_share_the_pattern_cache(self) -> None:
        filler = GridFiller(Lexicon(SQUARE_WORDS))
        first = filler.fill(["..", ".."])
        misses = filler.matcher.misses
        second = filler.fill(["..", ".."])
        self.assertEqual(first.answers, second.answers)
        self.assertEqual(filler.matcher.misses, misses)

    def test_seeded_shuffle_is_valid(self) -> None:
        config = FillConfig(candidate_order="shuffled", seed=11)
        result = GridFiller(Lexicon(SQUARE_WORDS + ["on", "ta"]), config).fill(["..", ".."])
        self.assertTrue(result.solved)

    def test_failed_validation_raises(self) -> None:
        filler = GridFiller(Lexicon(SQUARE_WORDS))
        filler.validator = MagicMock()
        filler.validator.validate.return_value = ValidationResult(ok=False, messages=["broken"])
        with self.assertRaises(ValidationError):
            filler.fill(["..", ".."])

    def test_unknown_backend(self) -> None:
        with self.assertRaises(ValueError):
            GridFiller(Lexicon(SQUARE_WORDS), FillConfig(backend="annealing"))


class CpSatBackendTests(unittest.TestCase):
    def test_cpsat_fills_square(self) -> None:
        config = FillConfig(backend="cpsat", timeout_seconds=10)
        result = GridFiller(Lexicon(SQUARE_WORDS), config).fill(["..", ".."])
        self.assertTrue(result.solved)
        self.assertEqual(sorted(result.answers.values()), ["AN", "AT", "NO", "TO"])

    def test_cpsat_keeps_prefilled_letters(self) -> None:
        config = FillConfig(backend="cpsat", timeout_seconds=10)
        rows = ["H...."] + [".####"] * 3 + ["E####"]
        result = GridFiller(Lexicon(["hello", "horse", "world"]), config).fill(rows)
        self.assertTrue(result.solved)
        self.assertEqual(result.answers, {"1-across": "HELLO", "1-down": "HORSE"})

    def test_cpsat_reports_infeasible_as_exhausted(self) -> None:
        config = FillConfig(backend="cpsat", timeout_seconds=10)
        result = GridFiller(Lexicon(["hello", "world"]), config).fill(PLUS_ROWS)
        self.assertEqual(result.outcome, SearchOutcome.EXHAUSTED)
        self.assertIsNone(result.grid)

    def test_cpsat_warns_that_cancel_token_is_ignored(self) -> None:
        config = FillConfig(backend="cpsat", timeout_seconds=10)
        filler = GridFiller(Lexicon(["hello", "horse"]), config)
        with self.assertLogs("autofill.engine.filler", level="WARNING") as captured:
            result = filler.fill(PLUS_ROWS, cancel_token=CancellationToken())
        self.assertTrue(result.solved)
        self.assertIn("timeout_seconds", captured.output[0])


class PrettyTests(unittest.TestCase):
    def test_format_grid_has_header_and_rows(self) -> None:
        lines = format_grid(FillGrid.from_rows(["A#", ".B"])).splitlines()
        self.assertEqual(lines[0], "     0  1")
        self.assertEqual(lines[2], " 0 |  A  #")
        self.assertEqual(lines[3], " 1 |  .  B")

    def test_print_fill_stats(self) -> None:
        result = GridFiller(Lexicon(["hello", "horse"])).fill(PLUS_ROWS)
        stream = io.StringIO()
        print_fill_stats(result, stream=stream)
        text = stream.getvalue()
        self.assertIn("Outcome: solved", text)
        self.assertIn("1-across", text)
        self.assertIn("HORSE", text)


if __name__ == "__main__":
    unittest.main()
