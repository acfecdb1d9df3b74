"""
Unit tests for QuizCatalog loading and validation.
"""
import logging
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from quiz_attempts import quiz_catalog
from quiz_attempts.models import QuestionType
from quiz_attempts.quiz_catalog import QuizCatalog, SAMPLE_QUIZ
from tests.test_fixtures import TestFixtures


class TestQuizCatalog(unittest.TestCase):
    """Test cases for QuizCatalog file loading."""

    def setUp(self):
        """Set up a temporary quiz directory."""
        self._temp_dir = tempfile.TemporaryDirectory()
        self.temp_dir = self._temp_dir.name
        self.catalog = QuizCatalog(self.temp_dir)
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        self._temp_dir.cleanup()
        logging.disable(logging.NOTSET)

    def test_load_valid_quiz_file(self):
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", TestFixtures.create_valid_quiz_json())

        quizzes = self.catalog.load_quiz_files()

        self.assertEqual(list(quizzes), ["capitals"])
        quiz = self.catalog.get_quiz("capitals")
        self.assertEqual(quiz.title, "Capitals")
        self.assertEqual(quiz.question_count, 2)
        self.assertEqual(quiz.total_points, 3)
        self.assertEqual(quiz.questions[0].type, QuestionType.SINGLE_CHOICE)
        self.assertEqual(quiz.questions[0].correct_option_ids, frozenset({"b"}))
        self.assertEqual(quiz.questions[1].reference_answer, "Rome")
        self.assertFalse(self.catalog.has_load_errors())

    def test_quiz_settings_are_parsed(self):
        data = TestFixtures.create_valid_quiz_json(
            time_limit_seconds=120, max_attempts=2, passing_score_percent=90, show_correct_answers=True
        )
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", data)
        self.catalog.load_quiz_files()

        quiz = self.catalog.get_quiz("capitals")
        self.assertEqual(quiz.time_limit_seconds, 120)
        self.assertEqual(quiz.max_attempts, 2)
        self.assertEqual(quiz.passing_score_percent, 90)
        self.assertTrue(quiz.show_correct_answers)

    def test_default_passing_score_applies(self):
        catalog = QuizCatalog(self.temp_dir, default_passing_score=55)
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", TestFixtures.create_valid_quiz_json())
        catalog.load_quiz_files()
        self.assertEqual(catalog.get_quiz("capitals").passing_score_percent, 55)

    def test_quiz_id_falls_back_to_file_name(self):
        data = TestFixtures.create_valid_quiz_json()
        del data["quiz"]["id"]
        TestFixtures.write_quiz_file(self.temp_dir, "geography.json", data)

        self.catalog.load_quiz_files()
        self.assertTrue(self.catalog.quiz_exists("geography"))

    def test_invalid_json_is_reported(self):
        TestFixtures.write_quiz_file(self.temp_dir, "broken.json", "{ invalid json }")
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", TestFixtures.create_valid_quiz_json())

        self.catalog.load_quiz_files()

        self.assertEqual(self.catalog.get_available_quizzes(), ["capitals"])
        errors = self.catalog.get_load_errors()
        self.assertEqual(len(errors), 1)
        self.assertTrue(errors[0].startswith("broken.json: Invalid JSON"))

    def test_invalid_structures_are_reported(self):
        for i, data in enumerate(TestFixtures.create_invalid_quiz_json_structures()):
            TestFixtures.write_quiz_file(self.temp_dir, f"bad_{i}.json", data)

        quizzes = self.catalog.load_quiz_files()

        self.assertEqual(quizzes, {})
        self.assertEqual(len(self.catalog.get_load_errors()), len(TestFixtures.create_invalid_quiz_json_structures()))
        self.assertFalse(self.catalog.sample_quiz_created)

    def test_mistyped_settings_do_not_stop_loading(self):
        bad = TestFixtures.create_valid_quiz_json("bad", passing_score_percent="70")
        TestFixtures.write_quiz_file(self.temp_dir, "a_bad.json", bad)
        TestFixtures.write_quiz_file(self.temp_dir, "b_good.json", TestFixtures.create_valid_quiz_json())

        self.catalog.load_quiz_files()

        self.assertEqual(self.catalog.get_available_quizzes(), ["capitals"])
        self.assertEqual(
            self.catalog.get_load_errors(),
            ["a_bad.json: Quiz 'passing_score_percent' must be an integer"],
        )

    def test_null_settings_and_numeric_reference_are_reported(self):
        null_score = TestFixtures.create_valid_quiz_json("nulls", passing_score_percent=None)
        numeric_reference = TestFixtures.create_valid_quiz_json("numbers")
        numeric_reference["quiz"]["questions"][1]["reference_answer"] = 5
        TestFixtures.write_quiz_file(self.temp_dir, "a_nulls.json", null_score)
        TestFixtures.write_quiz_file(self.temp_dir, "b_numbers.json", numeric_reference)
        TestFixtures.write_quiz_file(self.temp_dir, "c_good.json", TestFixtures.create_valid_quiz_json())

        self.catalog.load_quiz_files()

        self.assertEqual(self.catalog.get_available_quizzes(), ["capitals"])
        errors = self.catalog.get_load_errors()
        self.assertEqual(len(errors), 2)
        self.assertTrue(errors[0].startswith("a_nulls.json:"))
        self.assertEqual(errors[1], "b_numbers.json: Question 1 'reference_answer' field must be a string")

    def test_null_time_limit_means_untimed(self):
        data = TestFixtures.create_valid_quiz_json(time_limit_seconds=None, max_attempts=None)
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", data)

        self.catalog.load_quiz_files()

        self.assertFalse(self.catalog.get_quiz("capitals").is_timed)
        self.assertFalse(self.catalog.has_load_errors())

    def test_semantic_errors_are_reported(self):
        data = TestFixtures.create_valid_quiz_json()
        data["quiz"]["questions"][0]["options"][0]["is_correct"] = True
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", data)

        self.catalog.load_quiz_files()

        self.assertFalse(self.catalog.quiz_exists("capitals"))
        self.assertIn("exactly one option must be correct", self.catalog.get_load_errors()[0])

    def test_duplicate_quiz_ids(self):
        TestFixtures.write_quiz_file(self.temp_dir, "a.json", TestFixtures.create_valid_quiz_json())
        TestFixtures.write_quiz_file(self.temp_dir, "b.json", TestFixtures.create_valid_quiz_json())

        self.catalog.load_quiz_files()

        self.assertEqual(self.catalog.get_quiz_count(), 1)
        self.assertEqual(self.catalog.get_load_errors(), ["b.json: Duplicate quiz id 'capitals'"])

    def test_non_json_files_are_ignored(self):
        TestFixtures.write_quiz_file(self.temp_dir, "notes.txt", "not a quiz")
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", TestFixtures.create_valid_quiz_json())

        self.catalog.load_quiz_files()
        self.assertEqual(self.catalog.get_available_quizzes(), ["capitals"])

    def test_file_too_large(self):
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", TestFixtures.create_valid_quiz_json())

        with patch.object(quiz_catalog, 'MAX_QUIZ_FILE_SIZE', 10):
            self.catalog.load_quiz_files()

        self.assertEqual(self.catalog.get_quiz_count(), 0)
        self.assertIn("File too large", self.catalog.get_load_errors()[0])

    def test_empty_directory_creates_sample_quiz(self):
        quizzes = self.catalog.load_quiz_files()

        self.assertIn("sample_quiz", quizzes)
        self.assertTrue(self.catalog.sample_quiz_created)
        self.assertTrue((Path(self.temp_dir) / "sample_quiz.json").exists())
        self.assertEqual(self.catalog.get_quiz("sample_quiz").validate(), [])

    def test_missing_directory_is_created(self):
        catalog = QuizCatalog(str(Path(self.temp_dir) / "nested" / "quizzes"))
        catalog.load_quiz_files()

        self.assertTrue((Path(self.temp_dir) / "nested" / "quizzes").is_dir())
        self.assertTrue(catalog.sample_quiz_created)

    def test_reload_clears_previous_state(self):
        TestFixtures.write_quiz_file(self.temp_dir, "broken.json", "{")
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", TestFixtures.create_valid_quiz_json())
        self.catalog.load_quiz_files()
        Path(self.temp_dir, "broken.json").unlink()

        self.catalog.load_quiz_files()

        self.assertFalse(self.catalog.has_load_errors())
        self.assertEqual(self.catalog.get_quiz_count(), 1)

    def test_get_quiz_unknown(self):
        self.assertIsNone(self.catalog.get_quiz("missing"))
        self.assertFalse(self.catalog.quiz_exists("missing"))

    def test_loading_summary(self):
        TestFixtures.write_quiz_file(self.temp_dir, "broken.json", "{")
        TestFixtures.write_quiz_file(self.temp_dir, "capitals.json", TestFixtures.create_valid_quiz_json())
        self.catalog.load_quiz_files()

        summary = self.catalog.get_loading_summary()

        self.assertEqual(summary['total_quizzes'], 1)
        self.assertTrue(summary['has_errors'])
        self.assertEqual(summary['error_count'], 1)
        self.assertFalse(summary['sample_created'])
        self.assertEqual(summary['available_quizzes'], ["capitals"])

    def test_get_load_errors_returns_copy(self):
        TestFixtures.write_quiz_file(self.temp_dir, "broken.json", "{")
        self.catalog.load_quiz_files()
        self.catalog.get_load_errors().clear()
        self.assertTrue(self.catalog.has_load_errors())


class TestQuizStructureValidation(unittest.TestCase):
    """Structural validation of quiz JSON data."""

    def setUp(self):
        self.catalog = QuizCatalog()

    def test_valid_structure(self):
        self.assertEqual(self.catalog.validate_quiz_structure(TestFixtures.create_valid_quiz_json()), [])

    def test_sample_quiz_structure(self):
        self.assertEqual(self.catalog.validate_quiz_structure(SAMPLE_QUIZ), [])

    def test_not_an_object(self):
        self.assertEqual(
            self.catalog.validate_quiz_structure([]),
            ["Quiz data must be an object with a 'quiz' object"],
        )

    def test_unknown_question_type(self):
        data = {"quiz": {"title": "Bad", "questions": [{"id": "q1", "type": "essay", "text": "?"}]}}
        self.assertEqual(
            self.catalog.validate_quiz_structure(data),
            ["Question 0 has unknown type 'essay'"],
        )

    def test_every_invalid_structure_has_issues(self):
        for data in TestFixtures.create_invalid_quiz_json_structures():
            self.assertTrue(self.catalog.validate_quiz_structure(data), data)


if __name__ == '__main__':
    unittest.main()
