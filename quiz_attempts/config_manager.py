"""
Configuration manager for quiz attempt settings.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import AttemptSettings


class ConfigManager:
    """Manages runtime settings applied to new quiz attempts."""

    # Default configuration values
    DEFAULT_QUESTION_COUNT = None  # Use every question of a quiz
    DEFAULT_RANDOM_ORDER = False
    DEFAULT_SHUFFLE_OPTIONS = False
    DEFAULT_PASSING_SCORE = 70
    DEFAULT_QUIZ_DIRECTORY = "./quizzes/"

    # Validation limits
    MIN_QUESTION_COUNT = 1
    MAX_QUESTION_COUNT = 200
    MIN_PASSING_SCORE = 0
    MAX_PASSING_SCORE = 100

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = AttemptSettings(
            question_count=self.DEFAULT_QUESTION_COUNT,
            random_order=self.DEFAULT_RANDOM_ORDER,
            shuffle_options=self.DEFAULT_SHUFFLE_OPTIONS,
            default_passing_score=self.DEFAULT_PASSING_SCORE,
        )
        self._quiz_directory = self.DEFAULT_QUIZ_DIRECTORY

    def _ok(self, message: str, user_message: str, **extra: Any) -> Dict[str, Any]:
        self.logger.info(message)
        return {'success': True, 'message': message, 'user_message': user_message, **extra}

    def _fail(self, error: str, user_message: str) -> Dict[str, Any]:
        self.logger.error(error)
        return {'success': False, 'error': error, 'user_message': user_message}

    @staticmethod
    def _is_int(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    def get_attempt_settings(self) -> AttemptSettings:
        """
        Get a copy of the current attempt settings.

        Returns:
            AttemptSettings object with current configuration
        """
        return AttemptSettings(
            question_count=self._settings.question_count,
            random_order=self._settings.random_order,
            shuffle_options=self._settings.shuffle_options,
            default_passing_score=self._settings.default_passing_score,
        )

    def set_question_count(self, count: Optional[int]) -> Dict[str, Any]:
        """
        Limit how many questions an attempt draws from a quiz.

        Args:
            count: Number of questions, or None to use every question

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if count is None:
            self._settings.question_count = None
            return self._ok(
                "Question count set to use all available questions",
                "✅ Attempts will use every question of a quiz",
            )

        if not self._is_int(count):
            return self._fail(
                f"Question count must be an integer, got {type(count).__name__}",
                f"❌ Invalid input: Expected a number, got {type(count).__name__}",
            )

        if not self.MIN_QUESTION_COUNT <= count <= self.MAX_QUESTION_COUNT:
            return self._fail(
                f"Question count must be between {self.MIN_QUESTION_COUNT} and {self.MAX_QUESTION_COUNT}",
                f"❌ Question count must be between {self.MIN_QUESTION_COUNT} and {self.MAX_QUESTION_COUNT}",
            )

        self._settings.question_count = count
        return self._ok(f"Question count set to {count}", f"✅ Question count set to {count}")

    def get_question_count(self) -> Optional[int]:
        return self._settings.question_count

    def set_random_order(self, random_order: bool) -> Dict[str, Any]:
        """
        Set whether every attempt shuffles its questions.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(random_order, bool):
            return self._fail(
                f"Random order must be a boolean, got {type(random_order).__name__}",
                f"❌ Invalid input: Expected true/false, got {type(random_order).__name__}",
            )

        self._settings.random_order = random_order
        order_type = "random" if random_order else "quiz"
        return self._ok(
            f"Question order set to {order_type}",
            f"✅ Questions will be presented in {order_type} order",
        )

    def get_random_order(self) -> bool:
        return self._settings.random_order

    def toggle_random_order(self) -> Dict[str, Any]:
        """
        Toggle the random order setting.

        Returns:
            Dictionary with success status, new value, and user-friendly message
        """
        new_value = not self._settings.random_order
        result = self.set_random_order(new_value)
        if result['success']:
            result['new_value'] = new_value
        return result

    def set_shuffle_options(self, shuffle_options: bool) -> Dict[str, Any]:
        """
        Set whether answer options are shuffled for every attempt.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(shuffle_options, bool):
            return self._fail(
                f"Shuffle options must be a boolean, got {type(shuffle_options).__name__}",
                f"❌ Invalid input: Expected true/false, got {type(shuffle_options).__name__}",
            )

        self._settings.shuffle_options = shuffle_options
        state = "shuffled" if shuffle_options else "kept in quiz order"
        return self._ok(f"Answer options will be {state}", f"✅ Answer options will be {state}")

    def get_shuffle_options(self) -> bool:
        return self._settings.shuffle_options

    def set_default_passing_score(self, percent: int) -> Dict[str, Any]:
        """
        Set the passing score used for quizzes that do not define one.

        Args:
            percent: Passing score percentage

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not self._is_int(percent):
            return self._fail(
                f"Passing score must be an integer, got {type(percent).__name__}",
                f"❌ Invalid input: Expected a number, got {type(percent).__name__}",
            )

        if not self.MIN_PASSING_SCORE <= percent <= self.MAX_PASSING_SCORE:
            return self._fail(
                f"Passing score must be between {self.MIN_PASSING_SCORE} and {self.MAX_PASSING_SCORE}",
                f"❌ Passing score must be between {self.MIN_PASSING_SCORE}% and {self.MAX_PASSING_SCORE}%",
            )

        self._settings.default_passing_score = percent
        return self._ok(f"Default passing score set to {percent}%", f"✅ Default passing score set to {percent}%")

    def get_default_passing_score(self) -> int:
        return self._settings.default_passing_score

    def set_quiz_directory(self, directory: str) -> Dict[str, Any]:
        """
        Set the directory path for quiz files.

        Args:
            directory: Path to quiz files directory

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(directory, str):
            return self._fail(
                f"Quiz directory must be a string, got {type(directory).__name__}",
                f"❌ Invalid input: Expected a path string, got {type(directory).__name__}",
            )

        if not directory.strip():
            return self._fail("Quiz directory cannot be empty", "❌ Directory path cannot be empty")

        try:
            normalized_path = str(Path(directory).resolve())
        except (OSError, ValueError) as e:
            return self._fail(f"Invalid directory path format: {e}", f"❌ Invalid path format: {directory}")

        system_dirs = ['/bin', '/usr', '/etc', '/sys', '/proc', 'C:\\Windows', 'C:\\Program Files']
        if any(normalized_path.startswith(sys_dir) for sys_dir in system_dirs):
            return self._fail(
                f"Cannot use system directory: {normalized_path}",
                f"❌ Cannot use system directory: {directory}",
            )

        self._quiz_directory = normalized_path
        return self._ok(f"Quiz directory set to {normalized_path}", f"✅ Quiz directory set to {normalized_path}")

    def get_quiz_directory(self) -> str:
        return self._quiz_directory

    def apply_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Apply the 'quiz' section of a loaded config.json.

        Invalid values are logged and skipped so the defaults stay in effect.

        Returns:
            User-facing messages for every rejected setting
        """
        quiz_config = (config or {}).get('quiz', {})
        results = []

        if 'quiz_directory' in quiz_config:
            results.append(self.set_quiz_directory(quiz_config['quiz_directory']))
        if quiz_config.get('default_question_count') is not None:
            results.append(self.set_question_count(quiz_config['default_question_count']))
        if 'default_random_order' in quiz_config:
            results.append(self.set_random_order(quiz_config['default_random_order']))
        if 'shuffle_options' in quiz_config:
            results.append(self.set_shuffle_options(quiz_config['shuffle_options']))
        if 'default_passing_score' in quiz_config:
            results.append(self.set_default_passing_score(quiz_config['default_passing_score']))

        rejected = [r['user_message'] for r in results if not r['success']]
        if rejected:
            self.logger.warning(f"Ignored {len(rejected)} invalid settings from configuration")
        return rejected

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._settings = AttemptSettings(
            question_count=self.DEFAULT_QUESTION_COUNT,
            random_order=self.DEFAULT_RANDOM_ORDER,
            shuffle_options=self.DEFAULT_SHUFFLE_OPTIONS,
            default_passing_score=self.DEFAULT_PASSING_SCORE,
        )
        self._quiz_directory = self.DEFAULT_QUIZ_DIRECTORY
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        issues = []
        count = self._settings.question_count
        if count is not None and (
            not self._is_int(count) or not self.MIN_QUESTION_COUNT <= count <= self.MAX_QUESTION_COUNT
        ):
            issues.append(f"Invalid question count: {count}")

        if not isinstance(self._settings.random_order, bool):
            issues.append(f"Invalid random order setting: {self._settings.random_order}")

        if not isinstance(self._settings.shuffle_options, bool):
            issues.append(f"Invalid shuffle options setting: {self._settings.shuffle_options}")

        score = self._settings.default_passing_score
        if not self._is_int(score) or not self.MIN_PASSING_SCORE <= score <= self.MAX_PASSING_SCORE:
            issues.append(f"Invalid passing score: {score}")

        if not isinstance(self._quiz_directory, str) or not self._quiz_directory.strip():
            issues.append(f"Invalid quiz directory: {self._quiz_directory}")

        return {"valid": not issues, "issues": issues}

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        count = self._settings.question_count
        return (
            f"Attempt Settings:\n"
            f"• Questions: {count if count is not None else 'all available'}\n"
            f"• Order: {'random' if self._settings.random_order else 'quiz'}\n"
            f"• Shuffle options: {'yes' if self._settings.shuffle_options else 'no'}\n"
            f"• Default passing score: {self._settings.default_passing_score}%\n"
            f"• Quiz Directory: {self._quiz_directory}"
        )

    def get_configuration_health_check(self) -> Dict[str, Any]:
        """
        Perform a health check of the configuration.

        Returns:
            Dictionary with health status and recommendations
        """
        health_check = {'healthy': True, 'warnings': [], 'errors': [], 'recommendations': []}

        validation = self.validate_settings()
        if not validation['valid']:
            health_check['healthy'] = False
            health_check['errors'].extend(f"❌ {issue}" for issue in validation['issues'])

        quiz_dir = Path(self._quiz_directory)
        if not quiz_dir.exists():
            health_check['warnings'].append(f"⚠️ Quiz directory does not exist: {self._quiz_directory}")
            health_check['recommendations'].append(
                "The quiz directory will be created automatically when loading quiz files."
            )
        elif not os.access(quiz_dir, os.R_OK):
            health_check['healthy'] = False
            health_check['errors'].append(f"❌ Cannot read quiz directory: {self._quiz_directory}")
            health_check['recommendations'].append("Check file permissions for the quiz directory.")

        if self._settings.default_passing_score == 0:
            health_check['warnings'].append("⚠️ Default passing score is 0%: every attempt passes")

        return health_check
