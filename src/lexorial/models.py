"""Data classes for the course and progress domain model."""
from dataclasses import dataclass, field
from typing import Optional, Union

MULTIPLE = "multiple"
LONG = "long"
QUESTION_TYPES = (MULTIPLE, LONG)


@dataclass
class Module:
    id: int
    title: str
    description: str = ""
    level: Optional[int] = None


@dataclass
class Lesson:
    id: int
    module_id: int
    title: str
    order_index: int
    intro: Optional[str] = None


@dataclass
class Choice:
    id: int
    question_id: int
    choice_text: str
    order_index: int
    is_correct: bool = False


@dataclass
class LongAnswer:
    id: int
    question_id: int
    accepted_answer: str


@dataclass
class MultipleChoiceQuestion:
    id: int
    lesson_id: int
    question_text: str
    order_index: int = 1
    choices: list[Choice] = field(default_factory=list)
    question_type: str = MULTIPLE


@dataclass
class LongFormQuestion:
    id: int
    lesson_id: int
    question_text: str
    order_index: int = 1
    accepted_answers: list[LongAnswer] = field(default_factory=list)
    question_type: str = LONG


Question = Union[MultipleChoiceQuestion, LongFormQuestion]


@dataclass
class Video:
    lesson_id: int
    video_url: str


@dataclass
class Slide:
    lesson_id: int
    slide_url: str
    file_path: Optional[str] = None


@dataclass
class FlashcardLink:
    lesson_id: int
    url: str


@dataclass
class LessonContent:
    lesson: Lesson
    video: Optional[Video] = None
    slide: Optional[Slide] = None
    flashcard: Optional[FlashcardLink] = None
    questions: list[Question] = field(default_factory=list)


@dataclass(frozen=True)
class UserProgress:
    level: int = 1
    level_lesson: int = 0


@dataclass(frozen=True)
class ModuleState:
    module: Module
    level: int
    is_unlocked: bool


@dataclass(frozen=True)
class LessonState:
    lesson: Lesson
    is_unlocked: bool
    completed: bool


@dataclass(frozen=True)
class ProgressDisplay:
    display_level: int
    module_progress: float
