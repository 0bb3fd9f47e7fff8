"""
Prompt library for the Gemini adapter.

Prompts are plain strings; the builders only splice in board/subject
context and the curriculum topic list when one is available.
"""

from __future__ import annotations

from typing import Sequence


def topic_instruction(board: str, subject: str, valid_topics: Sequence[str]) -> str:
    """Topic constraint shared by the topic and analysis prompts."""
    if valid_topics:
        listing = "\n".join(f'- "{topic}"' for topic in valid_topics)
        return (
            "CRITICAL INSTRUCTION: You are strictly bound to a specific curriculum list.\n"
            "You MUST classify the question into exactly ONE of the topics from the list below.\n"
            "If the question covers multiple, choose the most dominant one.\n\n"
            f"VALID TOPICS LIST:\n{listing}\n\n"
            "Do not output any topic that is not in this list."
        )
    return (
        "Classify it into ONE single academic topic string strictly based on "
        f"the official {board} {subject} syllabus."
    )


def build_topic_prompt(board: str, subject: str, valid_topics: Sequence[str]) -> str:
    return (
        "Analyze this exam question image.\n"
        f"{topic_instruction(board, subject, valid_topics)}\n\n"
        "Return ONLY the topic name. No explanations."
    )


MARKS_PROMPT = "Find the max marks (e.g. [3 marks]). Return ONLY the integer."

LINES_PROMPT = (
    "Count the number of horizontal ruled lines for the answer. "
    "Return ONLY the integer. If none, return 0."
)


def build_analysis_prompt(
    board: str,
    subject: str,
    paper: str,
    valid_topics: Sequence[str],
    *,
    has_scheme: bool,
) -> str:
    """
    Single-call prompt used by bulk enrichment.

    The question images come first in the request, followed by the mark
    scheme image when ``has_scheme`` is set.
    """
    scheme_note = (
        "The LAST image is the mark scheme for this question. "
        if has_scheme else "No mark scheme image is attached. "
    )
    return (
        f"You are processing a {board} {subject} {paper} past-paper question.\n"
        f"The question is split across the attached images in reading order. {scheme_note}\n\n"
        f"{topic_instruction(board, subject, valid_topics)}\n\n"
        "Respond with a JSON object with exactly these keys:\n"
        '  "topic": the topic name (string)\n'
        '  "marks": the maximum marks available, e.g. from "[3 marks]" (integer)\n'
        '  "lines": the number of ruled answer lines, 0 if none (integer)\n'
        '  "questionText": a faithful transcription of the question (string)\n'
        '  "schemeText": a faithful transcription of the mark scheme, "" if none (string)'
    )


def build_marking_prompt(
    marks: int,
    answer: str,
    *,
    has_scheme_image: bool,
    has_global_scheme: bool,
) -> str:
    prompt = (
        "You are an examiner. Mark the student answer.\n"
        f"Max Marks: {marks}\n"
        f'Student Answer: "{answer}"'
    )
    if has_global_scheme:
        prompt += "\nUse Global Guidance PDF."
    if has_scheme_image:
        prompt += "\nUse Mark Scheme Image."
    prompt += f"\nProvide score (e.g. 2/{marks}) and brief feedback."
    return prompt
