from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Existing web/desktop clients speak camelCase JSON
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(CamelModel):
    role: str = "user"
    content: str = ""


class ChatRequest(CamelModel):
    language: str = "en"
    scenario: str = "general"
    message: str = ""
    history: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(CamelModel):
    reply: str = ""
    translation: Optional[str] = None


class PronunciationRequest(CamelModel):
    language: str = "en"
    target_text: str = ""
    spoken_text: str = ""


class PronunciationWordResult(CamelModel):
    word: str = ""
    correct: bool = False
    error: str = ""


class PronunciationResponse(CamelModel):
    score: int = 0
    feedback: str = ""
    corrections: List[str] = Field(default_factory=list)
    words: List[PronunciationWordResult] = Field(default_factory=list)


class WritingRequest(CamelModel):
    language: str = "en"
    text: str = ""
    level: str = "intermediate"


class WritingCorrection(CamelModel):
    original: str = ""
    corrected: str = ""
    explanation: str = ""


class WritingResponse(CamelModel):
    corrected_text: str = ""
    corrections: List[WritingCorrection] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class VocabularyItem(CamelModel):
    word: str = ""
    meaning: str = ""
    pronunciation: str = ""
    example: str = ""


class VocabularyRequest(CamelModel):
    language: str = "en"
    theme: str = "daily"
    count: int = Field(default=10, ge=1, le=50)


class VocabularyResponse(CamelModel):
    words: List[VocabularyItem] = Field(default_factory=list)
    warning: str = ""


class EnrichRequest(CamelModel):
    items: List[VocabularyItem] = Field(default_factory=list)


class TranslateRequest(CamelModel):
    text: str = ""
    target_language: Optional[str] = None


class TranslateResponse(CamelModel):
    translated: str = ""
    original_language: str = "en"


class ReadingRequest(CamelModel):
    language: str = "en"
    level: str = "intermediate"
    topic: Optional[str] = None


class QuizQuestion(CamelModel):
    question: str = ""
    options: List[str] = Field(default_factory=list)
    correct_index: int = 0
    explanation: str = ""


class ReadingResponse(CamelModel):
    title: str = ""
    content: str = ""
    vocabulary: List[VocabularyItem] = Field(default_factory=list)
    questions: List[QuizQuestion] = Field(default_factory=list)


class TranscribeResponse(CamelModel):
    transcript: str = ""
    success: bool = False
    error: Optional[str] = None


class PracticeRequest(CamelModel):
    words: List[str] = Field(default_factory=list)
    language: str = "en"
    level: str = "Elementary"
    type: str = "fill_blank"
    count: int = Field(default=5, ge=1, le=30)


class PracticeExercise(CamelModel):
    question: str = ""
    correct_answer: str = ""
    options: List[str] = Field(default_factory=list)
    explanation: str = ""
    explanation_vi: str = ""
    target_word: str = ""


class PracticeResponse(CamelModel):
    exercises: List[PracticeExercise] = Field(default_factory=list)


class TranslationCheckRequest(CamelModel):
    original_text: str = ""
    user_answer: str = ""
    language: str = "ko"
    expected_answer: str = ""


class TranslationCheckResponse(CamelModel):
    is_correct: bool = False
    score: int = 0
    feedback: str = ""
    corrected_translation: str = ""
    word_by_word_breakdown: str = ""
    grammar_notes: str = ""
    alternative_translations: List[str] = Field(default_factory=list)
