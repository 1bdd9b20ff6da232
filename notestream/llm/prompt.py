"""
Prompt Catalog Module

Models and system purposes offered to the client.

A purpose is a named system message. The notes purpose teaches the model
the Query directive: instead of answering from memory it replies with a
line like "Query:[Plan for Summer]", which the compositor resolves
against the notes service.

Variables in templates:
{today} - Current date
"""

from datetime import date
from typing import Dict, List, Optional
import re

from notestream.core.config import settings
from notestream.core.logging import get_logger
from notestream.models.response import ModelInfo, PurposeInfo

logger = get_logger(__name__)


class PromptTemplate:
    """System message template"""

    def __init__(self, template: str, description: str = ""):
        """
        Initialize prompt template.

        Args:
            template: Template string with {variable} placeholders
            description: Description of the template
        """
        self.template = template
        self.description = description

    def format(self, **kwargs) -> str:
        """Format template with provided variables"""
        try:
            return self.template.format(**kwargs)
        except KeyError as e:
            logger.warning(f"Missing variable in template: {e}")
            raise

    def get_variables(self) -> List[str]:
        """Extract variable names from template"""
        return re.findall(r'\{(\w+)\}', self.template)


GENERIC_MESSAGE = (
    "You are ChatGPT, a large language model trained by OpenAI, based on the GPT-4 architecture.\n"
    "Knowledge cutoff: 2021-09\n"
    "Current date: {today}"
)

NOTES_MESSAGE = """You are a personal assistant bot with access to the user's notes.
Whenever there is a question or inquiry, the bot responds with
"Query:[Term related to the question]"

% Example session #1:
What is my plan for summer?
Bot's Thought: I am a bot and I don't have access to your personal information.
  But I can query the notes for this summer's plan.
Query:[Plan for Summer]
Observation: You are going to travel to Europe.

% Example session #2:
Information on Alex?
Bot's Thought: I should query the notes for more information on Alex
Query:[Alex]
Observation: Alex is your kid.

% Example session #3:
Question: What did I learn in March 2023?
Bot's Thought: "I" means the note owner. The bot should query the notes for March 2023
Query:[Learned in March 2023]
Observation: You learned the following in March 2023
"""


MODELS: Dict[str, ModelInfo] = {
    "gpt-4": ModelInfo(
        id="gpt-4",
        title="GPT-4",
        description="Most insightful, larger problems, but slow, expensive, and may be unavailable",
    ),
    "gpt-3.5-turbo": ModelInfo(
        id="gpt-3.5-turbo",
        title="3.5-Turbo",
        description="A good balance between speed and insight",
    ),
}


# (id, title, description, template, uses_notes)
_PURPOSES = [
    ("Developer", "Developer", "Helps you code",
     PromptTemplate("You are a sophisticated, accurate, and modern AI programming assistant"), False),
    ("Scientist", "Scientist", "Helps you write scientific papers",
     PromptTemplate(
         "You are a scientist's assistant. You assist with drafting persuasive grants, conducting "
         "reviews, and any other support-related tasks with professionalism and logical explanation. "
         "Focus on evidence-based information, emphasize data analysis, and promote curiosity and "
         "open-mindedness"
     ), False),
    ("Executive", "Executive", "Helps you write business emails",
     PromptTemplate("You are an executive assistant. Your communication style is concise, brief, formal"), False),
    ("Catalyst", "Catalyst", "The growth hacker with marketing superpowers",
     PromptTemplate(
         "You are a marketing extraordinaire for a booming startup fusing creativity, data-smarts, "
         "and digital prowess to skyrocket growth & wow audiences."
     ), False),
    ("Generic", "ChatGPT4", "Helps you think", PromptTemplate(GENERIC_MESSAGE), False),
    ("Custom", "Custom", "User-defined purpose", PromptTemplate(GENERIC_MESSAGE), False),
    ("Notes", "Notes v0.1", "Answers from your notes", PromptTemplate(NOTES_MESSAGE), True),
]


def list_models() -> List[ModelInfo]:
    return list(MODELS.values())


def default_model() -> str:
    return settings.LLM_MODEL_NAME if settings.LLM_MODEL_NAME in MODELS else "gpt-4"


def list_purposes(today: Optional[date] = None) -> List[PurposeInfo]:
    """
    Render every purpose's system message.

    Args:
        today: Date substituted for {today} (defaults to the current date)

    Returns:
        Purposes in display order
    """
    today_str = (today or date.today()).isoformat()
    purposes = []
    for purpose_id, title, description, template, uses_notes in _PURPOSES:
        variables = {"today": today_str} if "today" in template.get_variables() else {}
        purposes.append(PurposeInfo(
            id=purpose_id,
            title=title,
            description=description,
            system_message=template.format(**variables),
            uses_notes=uses_notes,
        ))
    return purposes
