"""
Quiz catalog: loads and validates JSON quiz definitions from a directory.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import Option, Question, QuestionType, QuizDefinition

MAX_QUIZ_FILE_SIZE = 10 * 1024 * 1024  # 10MB

SAMPLE_QUIZ = {
    "quiz": {
        "id": "sample_quiz",
        "title": "Sample Quiz",
        "description": "A short quiz showing every question type.",
        "time_limit_seconds": 300,
        "max_attempts": 3,
        "passing_score_percent": 70,
        "show_correct_answers": True,
        "questions": [
            {
                "id": "q1",
                "type": "single_choice",
                "text": "Which keyword defines a function in Python?",
                "options": [
                    {"id": "a", "text": "func"},
                    {"id": "b", "text": "def", "is_correct": True},
                    {"id": "c", "text": "lambda"}
                ],
                "explanation": "Named functions are defined with 'def'."
            },
            {
                "id": "q2",
                "type": "multi_choice",
                "text": "Which of these are immutable?",
                "points": 2,
                "options": [
                    {"id": "a", "text": "tuple", "is_correct": True},
                    {"id": "b", "text": "list"},
                    {"id": "c", "text": "frozenset", "is_correct": True}
                ]
            },
            {
                "id": "q3",
                "type": "true_false",
                "text": "Python lists keep insertion order.",
                "options": [
                    {"id": "true", "text": "True", "is_correct": True},
                    {"id": "false", "text": "False"}
                ]
            },
            {
                "id": "q4",
                "type": "free_text",
                "text": "What is the name of Python's package installer?",
                "reference_answer": "pip"
            }
        ]
    }
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class QuizCatalog:
    """Loads quiz definitions from JSON files and keeps them by quiz id."""

    def __init__(self, quiz_directory: str = "./quizzes/", default_passing_score: int = 70):
        """
        Initialize the catalog.

        Args:
            quiz_directory: Path to directory containing JSON quiz files
            default_passing_score: Passing score for quizzes that omit one
        """
        self.quiz_directory = Path(quiz_directory)
        self.default_passing_score = default_passing_score
        self.loaded_quizzes: Dict[str, QuizDefinition] = {}
        self.load_errors: List[str] = []
        self.sample_quiz_created = False
        self.logger = logging.getLogger(__name__)

    def load_quiz_files(self) -> Dict[str, QuizDefinition]:
        """
        Load all JSON files from the quiz directory.

        A file that fails to load is recorded in load_errors and skipped.
        When the directory holds no quiz files a sample quiz is written.

        Returns:
            Dictionary mapping quiz ids to QuizDefinition objects
        """
        self.loaded_quizzes.clear()
        self.load_errors.clear()
        self.sample_quiz_created = False

        directory_error = self._ensure_quiz_directory()
        if directory_error:
            self.load_errors.append(directory_error)
            return self.loaded_quizzes

        try:
            json_files = sorted(self.quiz_directory.glob("*.json"))
        except OSError as e:
            self.load_errors.append(f"System error scanning {self.quiz_directory}: {e}")
            return self.loaded_quizzes

        if not json_files:
            self.logger.warning(f"No JSON files found in {self.quiz_directory}")
            self.load_errors.append(f"No quiz files found in {self.quiz_directory}")
            return self._create_sample_quiz()

        for json_file in json_files:
            error = self._load_quiz_file(json_file)
            if error:
                self.logger.error(f"Failed to load {json_file.name}: {error}")
                self.load_errors.append(f"{json_file.name}: {error}")

        self.logger.info(f"Successfully loaded {len(self.loaded_quizzes)} quiz files")
        if self.load_errors:
            self.logger.warning(f"Encountered {len(self.load_errors)} loading errors")

        return self.loaded_quizzes

    def _ensure_quiz_directory(self) -> Optional[str]:
        """Create the quiz directory if needed. Returns an error message on failure."""
        try:
            if not self.quiz_directory.exists():
                self.quiz_directory.mkdir(parents=True, exist_ok=True)
                self.logger.info(f"Created quiz directory: {self.quiz_directory}")

            if not os.access(self.quiz_directory, os.R_OK):
                return f"Permission denied: Cannot read from {self.quiz_directory}"
            return None

        except PermissionError:
            return f"Permission denied: Cannot access {self.quiz_directory}"
        except OSError as e:
            return f"System error accessing {self.quiz_directory}: {e}"

    def _load_quiz_file(self, json_file: Path) -> Optional[str]:
        """
        Load a single quiz file into the catalog.

        Returns:
            None on success, otherwise an error message
        """
        try:
            file_size = json_file.stat().st_size
            if file_size > MAX_QUIZ_FILE_SIZE:
                return (
                    f"File too large ({file_size / 1024 / 1024:.1f}MB). "
                    f"Maximum size is {MAX_QUIZ_FILE_SIZE / 1024 / 1024}MB"
                )

            with open(json_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

        except json.JSONDecodeError as e:
            return f"Invalid JSON: {e}"
        except PermissionError:
            return "Permission denied"
        except OSError as e:
            return f"System error: {e}"

        issues = self.validate_quiz_structure(data)
        if issues:
            return "; ".join(issues)

        try:
            quiz = self.parse_quiz(data, fallback_id=json_file.stem)
            issues = quiz.validate()
        except Exception as e:
            return f"Unexpected error: {e}"
        if issues:
            return "; ".join(issues)

        if quiz.id in self.loaded_quizzes:
            return f"Duplicate quiz id '{quiz.id}'"

        self.loaded_quizzes[quiz.id] = quiz
        self.logger.info(f"Loaded quiz '{quiz.id}' with {quiz.question_count} questions")
        return None

    def validate_quiz_structure(self, data: Any) -> List[str]:
        """
        Validate that JSON data has the expected quiz structure.

        Expected structure:
        {
            "quiz": {
                "id": str,                      # optional, defaults to file name
                "title": str,
                "questions": [
                    {
                        "id": str,
                        "type": "single_choice" | "multi_choice" | "true_false" | "free_text",
                        "text": str,
                        "points": int,          # optional
                        "options": [{"id": str, "text": str, "is_correct": bool}],
                        "reference_answer": str # optional, free_text only
                    }
                ]
            }
        }

        Returns:
            List of structural issues; empty when the data can be parsed
        """
        if not isinstance(data, dict) or not isinstance(data.get("quiz"), dict):
            return ["Quiz data must be an object with a 'quiz' object"]

        quiz = data["quiz"]
        issues = []
        if not isinstance(quiz.get("title"), str):
            issues.append("Quiz must have a string 'title'")
        if "passing_score_percent" in quiz and not _is_int(quiz["passing_score_percent"]):
            issues.append("Quiz 'passing_score_percent' must be an integer")
        for field in ("time_limit_seconds", "max_attempts"):
            if quiz.get(field) is not None and not _is_int(quiz[field]):
                issues.append(f"Quiz '{field}' must be an integer or null")

        questions = quiz.get("questions")
        if not isinstance(questions, list) or not questions:
            issues.append("'questions' must be a non-empty array")
            return issues

        valid_types = {t.value for t in QuestionType}
        for i, question in enumerate(questions):
            if not isinstance(question, dict):
                issues.append(f"Question {i} must be an object")
                continue
            if not isinstance(question.get("id"), (str, int)):
                issues.append(f"Question {i} missing 'id' field")
            if question.get("type") not in valid_types:
                issues.append(f"Question {i} has unknown type {question.get('type')!r}")
            if not isinstance(question.get("text", ""), str):
                issues.append(f"Question {i} 'text' field must be a string")
            for field in ("reference_answer", "explanation"):
                if not isinstance(question.get(field), (str, type(None))):
                    issues.append(f"Question {i} '{field}' field must be a string")
            options = question.get("options", [])
            if not isinstance(options, list) or not all(
                isinstance(o, dict) and "id" in o for o in options
            ):
                issues.append(f"Question {i} 'options' must be an array of objects with an 'id'")

        return issues

    def parse_quiz(self, data: Dict[str, Any], fallback_id: str = "quiz") -> QuizDefinition:
        """
        Parse structurally valid quiz data into a QuizDefinition.

        Args:
            data: Data accepted by validate_quiz_structure
            fallback_id: Quiz id used when the data does not carry one

        Returns:
            QuizDefinition built from the data
        """
        quiz = data["quiz"]
        questions = [
            Question(
                id=str(q["id"]),
                type=QuestionType(q["type"]),
                text=q.get("text", ""),
                options=tuple(
                    Option(id=str(o["id"]), text=str(o.get("text", "")), is_correct=bool(o.get("is_correct", False)))
                    for o in q.get("options", [])
                ),
                points=q.get("points", 1),
                reference_answer=q.get("reference_answer"),
                explanation=q.get("explanation"),
            )
            for q in quiz["questions"]
        ]

        return QuizDefinition(
            id=str(quiz.get("id") or fallback_id),
            title=quiz["title"],
            questions=tuple(questions),
            time_limit_seconds=quiz.get("time_limit_seconds"),
            max_attempts=quiz.get("max_attempts"),
            passing_score_percent=quiz.get("passing_score_percent", self.default_passing_score),
            description=quiz.get("description", ""),
            randomize_questions=bool(quiz.get("randomize_questions", False)),
            randomize_options=bool(quiz.get("randomize_options", False)),
            show_correct_answers=bool(quiz.get("show_correct_answers", False)),
        )

    def _create_sample_quiz(self) -> Dict[str, QuizDefinition]:
        """Write and load a sample quiz when the directory is empty."""
        sample_file_path = self.quiz_directory / "sample_quiz.json"
        try:
            if not sample_file_path.exists():
                with open(sample_file_path, 'w', encoding='utf-8') as f:
                    json.dump(SAMPLE_QUIZ, f, indent=2, ensure_ascii=False)
                self.logger.info(f"Created sample quiz file: {sample_file_path}")
        except OSError as e:
            self.logger.error(f"Failed to write sample quiz: {e}")
            self.load_errors.append(f"Failed to write sample quiz: {e}")

        quiz = self.parse_quiz(SAMPLE_QUIZ)
        self.loaded_quizzes[quiz.id] = quiz
        self.sample_quiz_created = True
        return self.loaded_quizzes

    def get_available_quizzes(self) -> List[str]:
        return list(self.loaded_quizzes.keys())

    def get_quiz(self, quiz_id: str) -> Optional[QuizDefinition]:
        return self.loaded_quizzes.get(quiz_id)

    def quiz_exists(self, quiz_id: str) -> bool:
        return quiz_id in self.loaded_quizzes

    def get_quiz_count(self) -> int:
        return len(self.loaded_quizzes)

    def get_load_errors(self) -> List[str]:
        return self.load_errors.copy()

    def has_load_errors(self) -> bool:
        return len(self.load_errors) > 0

    def get_loading_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the last loading operation.

        Returns:
            Dictionary with loading statistics and status
        """
        return {
            'total_quizzes': len(self.loaded_quizzes),
            'has_errors': self.has_load_errors(),
            'error_count': len(self.load_errors),
            'errors': self.get_load_errors(),
            'sample_created': self.sample_quiz_created,
            'quiz_directory': str(self.quiz_directory),
            'available_quizzes': self.get_available_quizzes()
        }
