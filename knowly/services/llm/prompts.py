from __future__ import annotations

CATEGORIES = (
    "Science",
    "Technology",
    "History",
    "Literature",
    "Mathematics",
    "Business",
    "Arts",
    "Health",
    "Language",
    "Social Studies",
    "Philosophy",
    "Engineering",
    "Other",
)

# lesson_length -> (requested count, level of detail)
LESSON_CONFIG = {
    "short": ("2-3", "brief and concise, focusing only on key points"),
    "normal": ("4-5", "moderate detail with clear explanations"),
    "long": ("6-8", "comprehensive and detailed with examples and in-depth explanations"),
}

DETECT_LANGUAGE_SYSTEM = (
    "You are a language detection expert. Detect the language of the provided text and return ONLY "
    "the language name in English (e.g., 'English', 'German', 'Spanish', 'French', etc.). "
    "Return just the language name, nothing else."
)
DETECT_LANGUAGE_USER = "Detect the language of this text:\n\n{text}"

TITLE_SYSTEM = (
    "You are a content analyst. Analyze the provided text and generate a short, descriptive title "
    "(3-8 words) that captures the main topic or subject. Respond ONLY with the title in {language}, "
    "nothing else."
)
TITLE_USER = "Generate a title for this content:\n\n{text}"

CATEGORY_SYSTEM = (
    "You are a content categorization expert. Analyze the provided text and assign it to ONE thematic "
    "category. Choose from: {categories}. Respond ONLY with the category name in {language}, nothing else."
)
CATEGORY_USER = "Categorize this content:\n\n{text}"

LESSONS_SYSTEM = (
    "You are an educational content creator. Create {count} {detail} micro-lessons from the provided text. "
    "You MUST respond in {language}. "
    'Return ONLY valid JSON in this exact format: {{"lessons": [{{"title": "...", "content": "..."}}]}}'
)
LESSONS_USER = "Create micro-lessons from this text:\n\n{text}"

_QUIZ_FORMAT = (
    'Return ONLY valid JSON in this exact format: {{"questions": [{{"question": "...", '
    '"options": ["A", "B", "C", "D"], "correctAnswer": 0, "explanation": "..."}}]}}'
)

QUIZ_SYSTEM = (
    "You are a quiz creator. Create 5-7 detailed multiple-choice questions with 4 options each. "
    "Include an explanation for each correct answer. You MUST respond in {language}. " + _QUIZ_FORMAT
)
QUIZ_USER = "Create quiz questions from this text:\n\n{text}"

NEW_QUIZ_SYSTEM = (
    "You are a quiz creator. Create 5-7 NEW and DIFFERENT detailed multiple-choice questions with "
    "4 options each. Make sure these questions are different from any previous questions. "
    "Include an explanation for each correct answer. You MUST respond in {language}. " + _QUIZ_FORMAT
)
NEW_QUIZ_USER = "Create NEW quiz questions from this text:\n\n{text}"
NEW_QUIZ_PREVIOUS = "\n\nDo NOT repeat any of these previous questions:\n{questions}"

SUMMARY_SYSTEM = (
    "You are a summarization expert. Create a concise 2-3 paragraph summary. You MUST respond in {language}."
)
SUMMARY_USER = "Summarize this text:\n\n{text}"

FLASHCARDS_SYSTEM = (
    "You are a flashcard creator. Create 10-12 detailed flashcards with a question/term on the front and "
    "a comprehensive answer/definition on the back. You MUST respond in {language}. "
    'Return ONLY valid JSON in this exact format: {{"flashcards": [{{"front": "...", "back": "..."}}]}}'
)
FLASHCARDS_USER = "Create flashcards from this text:\n\n{text}"
