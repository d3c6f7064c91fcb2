import random


def score_answers(questions, answers):
    """
    Mark a student's answers against the answer key.

    ``answers`` maps question id (as a string) to the chosen option label.
    Every question is worth one mark and labels must match exactly; a
    question with no answer counts as wrong. Returns ``(score, total)`` where
    ``total`` is the number of questions in the course.
    """
    score = 0
    total = 0
    for question in questions:
        total += 1
        if answers.get(str(question.pk)) == question.correct_answer:
            score += 1
    return score, total


def generate_ca_score(low, high):
    """Continuous assessment component, drawn once per new result."""
    return random.randint(low, high)
