from models import Prompt

MAX_PROMPT_CHARS = 3000
QUESTION_COUNT = 7
DIFFICULTY_MIX = {"easy": 2, "medium": 3, "hard": 2}

SYSTEM_PROMPT = """You are an expert educational content creator. Generate engaging quiz questions from Wikipedia articles.

Return ONLY valid JSON (no markdown, no explanation) in this exact format:
{
  "questions": [
    {
      "question": "Question text here?",
      "options": {
        "A": "Option A text",
        "B": "Option B text",
        "C": "Option C text",
        "D": "Option D text"
      },
      "correctAnswer": "A",
      "explanation": "Brief explanation why this is correct",
      "difficulty": "easy",
      "relatedTopics": ["Topic 1", "Topic 2"]
    }
  ]
}

RULES:
1. "options" must have exactly the keys "A", "B", "C" and "D"
2. "correctAnswer" must be one of those keys
3. "difficulty" must be "easy", "medium" or "hard"
4. Use only facts stated in the article text"""

USER_TEMPLATE = """Generate {count} engaging quiz questions from this Wikipedia article about "{title}":

{excerpt}

Create questions with varying difficulty ({mix}). Make them educational and interesting. Include related Wikipedia topics for further reading.

Return ONLY the JSON object, no other text."""


def build_prompt(title: str, excerpt: str) -> Prompt:
    """
    Render the system and user messages for one article.

    The excerpt is cut to MAX_PROMPT_CHARS here regardless of how the
    extractor bounded it, to keep the request size fixed.
    """
    mix = ", ".join(f"{n} {level}" for level, n in DIFFICULTY_MIX.items())
    user = USER_TEMPLATE.format(
        count=QUESTION_COUNT,
        title=title,
        excerpt=excerpt[:MAX_PROMPT_CHARS],
        mix=mix,
    )
    return Prompt(system=SYSTEM_PROMPT, user=user)
