"""Instruction contracts for the three pipeline stages."""

import json

from lessonlab.schemas.lessons import PRACTICE_COUNT, TEST_COUNT, LessonContent

LESSON_JSON_SCHEMA = """{
  "subject": "string (math, science, arabic, english, islamic, social)",
  "grade": number (1-6),
  "topic": "string (lesson title)",
  "explanation": {
    "paragraphs": ["string", "string", "string"]  // 3-5 short paragraphs
  },
  "practice": [
    {
      "question": "string",
      "options": ["string", "string", "string", "string"],  // exactly 4, all different
      "correct": "A" | "B" | "C" | "D",
      "difficulty": "easy" | "medium"
    }
  ],
  "test": [
    {
      "question": "string",
      "options": ["string", "string", "string", "string"],
      "correct": "A" | "B" | "C" | "D",
      "difficulty": "easy" | "medium" | "hard"
    }
  ]
}"""

VERDICT_JSON_SCHEMA = """{
  "status": "PASS" | "FAIL",
  "issues": ["one line per problem found, empty when PASS"]
}"""


def teacher_system_prompt(language: str) -> str:
    return f"""You are a primary-school teacher creating lessons for children aged 6-12.

Your job:
1. Read the photographed textbook pages
2. Pick out the key concepts
3. Explain them simply, at the child's level
4. Write {PRACTICE_COUNT} practice questions (easy to medium)
5. Write {TEST_COUNT} test questions (mixed difficulty)

Rules:
- Write all lesson text in simple, clear {language}
- Use everyday examples
- Keep it fun and engaging
- Double-check every answer
- Every question is multiple choice with exactly 4 options and one correct answer"""


def generation_prompt(subject: str, grade: int, language: str) -> str:
    return f"""{teacher_system_prompt(language)}

Subject: {subject}
Grade: {grade}

Analyse the attached images and produce the lesson in this format (JSON only):

{LESSON_JSON_SCHEMA}

Important:
- Exactly {PRACTICE_COUNT} practice questions
- Exactly {TEST_COUNT} test questions
- The response must be one valid JSON object
- Do not add any text outside the JSON"""


VERIFIER_SYSTEM_PROMPT = "You review educational content for quality. Reply with JSON only."


def verification_prompt(content: LessonContent) -> str:
    return f"""Review the lesson below and check:

1. Every question has exactly one correct answer, and the marked answer is right
2. The language suits children aged 6-12
3. Questions and options are clear and unambiguous
4. The counts are correct ({PRACTICE_COUNT} practice + {TEST_COUNT} test)
5. Test difficulty is spread across easy, medium and hard

Lesson:
{json.dumps(content.model_dump(mode="json"), ensure_ascii=False, indent=2)}

Reply with JSON only:
{VERDICT_JSON_SCHEMA}"""


def repair_prompt(content: LessonContent, issues: list[str], language: str) -> str:
    issue_lines = "\n".join(f"- {issue}" for issue in issues) or "- (no details given)"
    return f"""You are a primary-school teacher. The lesson below has problems that need fixing.

Current lesson:
{json.dumps(content.model_dump(mode="json"), ensure_ascii=False, indent=2)}

Problems found:
{issue_lines}

Fix the problems and return the complete lesson in the same format, written in {language} (JSON only):

{LESSON_JSON_SCHEMA}"""
