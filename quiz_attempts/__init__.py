"""
Quiz attempt engine: validates answers, drives timed attempts and scores them,
with a Discord front end for taking quizzes.
"""
