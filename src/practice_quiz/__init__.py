"""Multiple-choice practice quizzes for the terminal."""
