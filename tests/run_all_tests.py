#!/usr/bin/env python3
"""
Test runner for the quiz attempt bot.
Runs all unit and integration tests and prints a summary report.
"""
import unittest
import sys
import time
from pathlib import Path

# Make the project root importable
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_MODULES = [
    'tests.test_models',
    'tests.test_validator',
    'tests.test_scoring',
    'tests.test_attempt_engine',
    'tests.test_attempt_timer',
    'tests.test_question_selector',
    'tests.test_config_manager',
    'tests.test_quiz_catalog',
    'tests.test_attempt_controller',
    'tests.test_bot_discord_integration',
    'tests.test_integration_comprehensive',
]

CATEGORIES = {
    'unit': TEST_MODULES[:9],
    'integration': ['tests.test_bot_discord_integration', 'tests.test_integration_comprehensive'],
    'engine': ['tests.test_models', 'tests.test_validator', 'tests.test_scoring', 'tests.test_attempt_engine'],
    'timer': ['tests.test_attempt_timer'],
    'catalog': ['tests.test_quiz_catalog'],
    'config': ['tests.test_config_manager'],
    'controller': ['tests.test_attempt_controller'],
}


def load_suite(module_names):
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()
    for module_name in module_names:
        try:
            suite.addTest(loader.loadTestsFromName(module_name))
            print(f"✓ Loaded tests from {module_name}")
        except Exception as e:
            print(f"✗ Failed to load {module_name}: {e}")
    return suite


def run_test_suite(module_names=TEST_MODULES):
    """Run the test suite and print a summary report."""
    print("=" * 70)
    print("Quiz Attempt Bot - Test Suite")
    print("=" * 70)

    suite = load_suite(module_names)

    print("\n" + "=" * 70)
    print("Running Tests...")
    print("=" * 70)

    runner = unittest.TextTestRunner(verbosity=2, stream=sys.stdout, buffer=True)

    start_time = time.time()
    result = runner.run(suite)
    end_time = time.time()

    print("\n" + "=" * 70)
    print("Test Summary Report")
    print("=" * 70)

    total_tests = result.testsRun
    failures = len(result.failures)
    errors = len(result.errors)
    skipped = len(result.skipped)
    passed = total_tests - failures - errors - skipped

    print(f"Total Tests Run: {total_tests}")
    print(f"Passed: {passed}")
    print(f"Failed: {failures}")
    print(f"Errors: {errors}")
    print(f"Skipped: {skipped}")
    print(f"Success Rate: {(passed/total_tests)*100:.1f}%" if total_tests > 0 else "N/A")
    print(f"Execution Time: {end_time - start_time:.2f} seconds")

    for label, items in (("FAILURES", result.failures), ("ERRORS", result.errors)):
        if items:
            print("\n" + "-" * 50)
            print(f"{label}:")
            print("-" * 50)
            for test, traceback in items:
                print(f"\n{test}:")
                print(traceback)

    print("\n" + "=" * 70)
    return failures == 0 and errors == 0


if __name__ == '__main__':
    if len(sys.argv) > 1:
        category = sys.argv[1]
        if category not in CATEGORIES:
            print(f"Unknown category: {category}")
            print(f"Available categories: {', '.join(CATEGORIES)}")
            sys.exit(1)
        success = run_test_suite(CATEGORIES[category])
    else:
        success = run_test_suite()

    sys.exit(0 if success else 1)
