from __future__ import annotations

import base64
import json
import logging
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel

from .gemini_client import GeminiClient, GeminiError
from .schemas import (
    ChatMessage,
    ChatResponse,
    PracticeRequest,
    PracticeResponse,
    PronunciationResponse,
    QuizQuestion,
    ReadingResponse,
    TranslationCheckRequest,
    TranslationCheckResponse,
    VocabularyItem,
    WritingResponse,
)

logger = logging.getLogger(__name__)

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "ko": "Korean",
    "zh": "Chinese (Mandarin)",
}

TRANSLATION_TARGETS: Dict[str, str] = {
    "en": "English",
    "zh": "Chinese (Simplified)",
    "vi": "Vietnamese",
    "ko": "Korean",
}

PRACTICE_TYPES: Dict[str, str] = {
    "fill_blank": "Fill in the blank sentences",
    "arrange": "Sentences with shuffled words",
    "translate": "Sentences to translate",
}

_VIETNAMESE_CHARS = set(
    "àáảãạăằắẳẵặâầấẩẫậèéẻẽẹêềếểễệìíỉĩịòóỏõọôồốổỗộơờớởỡợùúủũụưừứửữựỳýỷỹỵđĐ"
)

M = TypeVar("M", bound=BaseModel)


def language_name(code: Optional[str]) -> str:
    return LANGUAGE_NAMES.get((code or "").lower(), "English")


def extract_json(text: str) -> str:
    # Models sometimes wrap JSON in prose or markdown fences
    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        return text[start:end + 1]
    raise ValueError("no JSON object in model output")


def detect_language(text: str) -> str:
    for ch in text:
        cp = ord(ch)
        if 0xAC00 <= cp <= 0xD7AF:
            return "ko"
        if 0x4E00 <= cp <= 0x9FFF:
            return "zh"
        if 0x0E00 <= cp <= 0x0E7F:
            return "th"
    if any(ch in _VIETNAMESE_CHARS for ch in text):
        return "vi"
    return "en"


def _parse(model: Type[M], raw: str) -> M:
    data = json.loads(extract_json(raw).replace("\t", " "))
    return model.model_validate(data)


class _WordList(BaseModel):
    words: List[VocabularyItem] = []


class LanguageTutor:
    """Prompt shaping and response parsing for every practice mode.

    Each call goes through ``_ask`` so the (type, prompt, response) triple is
    kept in ``exchanges`` for the AI response log.
    """

    def __init__(self, client: GeminiClient, *, learner_language: str = "Vietnamese") -> None:
        self.client = client
        self.learner_language = learner_language
        self.exchanges: List[Tuple[str, str, str]] = []

    async def _ask(self, request_type: str, prompt: str) -> str:
        response = await self.client.generate(prompt)
        self.exchanges.append((request_type, prompt, response))
        return response

    async def chat(self, language: str, scenario: str, message: str, history: Sequence[ChatMessage]) -> ChatResponse:
        lang = language_name(language)
        lines = [
            f"You are a friendly native {lang} speaker helping someone practice {lang} conversation.",
            f"Scenario: {scenario}",
            "Rules:",
            f"- Respond ONLY in {lang}",
            "- Keep responses conversational and natural",
            "- If the user makes mistakes, gently correct them",
            "- Adapt to the user's level",
            f"- After your response, add a blank line and a brief translation in {self.learner_language}",
            "",
        ]
        for turn in history:
            lines.append(f"{turn.role}: {turn.content}")
        lines.append(f"User: {message}")
        lines.append("Assistant:")
        reply = await self._ask("Conversation", "\n".join(lines))
        parts = reply.strip().split("\n\n", 1)
        return ChatResponse(reply=parts[0], translation=parts[1] if len(parts) > 1 else None)

    async def evaluate_pronunciation(self, language: str, target: str, spoken: str) -> PronunciationResponse:
        lang = language_name(language)
        prompt = f"""
You are a {lang} pronunciation expert. Compare the target text with what was spoken.
Analyze the pronunciation of EACH word.

Target: {target}
Spoken: {spoken}

Respond in JSON format only (no markdown):
{{
  "score": <0-100 overall score>,
  "feedback": "<brief feedback in {self.learner_language}>",
  "corrections": ["<general tips in {self.learner_language}>"],
  "words": [{{"word": "<target word>", "correct": true/false, "error": "<brief error if false>"}}]
}}
""".strip()
        raw = await self._ask("Pronunciation", prompt)
        try:
            return _parse(PronunciationResponse, raw)
        except ValueError:
            logger.warning("Unparseable pronunciation evaluation, using fallback")
            return PronunciationResponse(score=50, feedback="Could not evaluate in detail")

    async def check_writing(self, language: str, text: str, level: str) -> WritingResponse:
        lang = language_name(language)
        prompt = f"""
You are a {lang} writing tutor. Check the following text for grammar, spelling, and style.
Level: {level}
Text: {text}

Respond in JSON format only (no markdown):
{{
  "correctedText": "<corrected version>",
  "corrections": [{{"original": "<wrong part>", "corrected": "<fixed part>", "explanation": "<explanation in {self.learner_language}>"}}],
  "suggestions": ["<improvement suggestions in {self.learner_language}>"]
}}
""".strip()
        raw = await self._ask("Writing", prompt)
        try:
            result = _parse(WritingResponse, raw)
        except ValueError:
            logger.warning("Unparseable writing check, returning original text")
            return WritingResponse(corrected_text=text)
        if not result.corrected_text:
            result.corrected_text = text
        return result

    async def generate_reading(self, language: str, level: str, topic: Optional[str]) -> ReadingResponse:
        lang = language_name(language)
        topic_part = topic or "any interesting topic"
        prompt = f"""
Generate a short reading passage in {lang} for {level} level learners about {topic_part}.

Respond in JSON format only (no markdown):
{{
  "title": "<title in {lang}>",
  "content": "<3-5 paragraphs in {lang}>",
  "vocabulary": [{{"word": "<word>", "meaning": "<{self.learner_language} meaning>", "pronunciation": "<romanization if applicable>", "example": "<example sentence>"}}],
  "questions": [{{"question": "<comprehension question in {self.learner_language}>", "options": ["A", "B", "C", "D"], "correctIndex": 0, "explanation": "<why it is correct, in {self.learner_language}>"}}]
}}
""".strip()
        raw = await self._ask("Reading", prompt)
        try:
            result = _parse(ReadingResponse, raw)
        except ValueError:
            logger.warning("Unparseable reading passage")
            return ReadingResponse(title="Error", content="Could not generate content")
        result.questions = [q for q in result.questions if _valid_question(q)]
        return result

    async def generate_vocabulary(self, language: str, theme: str, count: int) -> List[VocabularyItem]:
        lang = language_name(language)
        prompt = f"""
Generate {count} vocabulary words in {lang} related to the theme: {theme}.

Respond in JSON format only (no markdown):
{{
  "words": [{{"word": "<word in {lang}>", "meaning": "<{self.learner_language} meaning>", "pronunciation": "<romanization>", "example": "<example sentence in {lang} ({self.learner_language} translation)>"}}]
}}
""".strip()
        raw = await self._ask("Vocabulary", prompt)
        try:
            return _parse(_WordList, raw).words
        except ValueError:
            logger.warning("Unparseable vocabulary list")
            return []

    async def enrich_vocabulary(self, items: Sequence[VocabularyItem]) -> List[VocabularyItem]:
        if not items:
            return []
        listing = "\n".join(f"{item.word}: {item.meaning}" for item in items)
        prompt = f"""
I have a list of vocabulary words. Some entries may contain synonyms separated by '/', '|', ',', ';', '\\' or '='.
For such entries:
- Word: keep the original input string (e.g. 'A / B')
- Pronunciation: IPA for ALL synonyms, separated by ' - '
- Example: one short example per synonym with its {self.learner_language} translation in parentheses, entries separated by ' / '

Input:
{listing}

Respond in JSON format only (no markdown):
{{
  "words": [{{"word": "<original word>", "meaning": "<original meaning>", "pronunciation": "<IPA>", "example": "<example sentence ({self.learner_language} translation)>"}}]
}}
""".strip()
        plain = [VocabularyItem(word=item.word, meaning=item.meaning) for item in items]
        try:
            raw = await self._ask("Enrich", prompt)
            words = _parse(_WordList, raw).words
        except (GeminiError, ValueError):
            logger.exception("Error enriching vocabulary")
            return plain
        return words or plain

    async def translate(self, text: str, target_language: Optional[str]) -> str:
        target = TRANSLATION_TARGETS.get((target_language or "en").lower(), "English")
        prompt = (
            f"Translate the following text to {target}.\n"
            "Return ONLY the translation, nothing else. No explanations, no quotes.\n\n"
            f"Text: {text}\n\nTranslation:"
        )
        try:
            translation = await self._ask("Translate", prompt)
        except GeminiError:
            logger.exception("Translation failed, echoing input")
            return text
        return translation.strip().strip('"')

    async def transcribe_audio(self, data: bytes, language: str, mime_type: str = "audio/wav") -> str:
        lang = language_name(language)
        instruction = (
            f"Please transcribe the audio. The speaker is saying a word or phrase in {lang}. "
            "Return ONLY the transcribed text, nothing else. "
            "If you cannot understand the audio clearly, return your best guess. "
            "Do not add any explanation or punctuation, just the word(s)."
        )
        parts = [
            {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(data).decode("ascii")}},
            {"text": instruction},
        ]
        try:
            transcript = await self.client.generate_multimodal(parts)
        except GeminiError:
            logger.exception("Error transcribing audio")
            return ""
        self.exchanges.append(("Transcribe", instruction, transcript))
        return transcript.strip()

    async def generate_practice(self, request: PracticeRequest) -> PracticeResponse:
        lang = language_name(request.language)
        type_desc = PRACTICE_TYPES.get(request.type, "General practice sentences")
        pool = ", ".join(request.words)
        prompt = f"""
Generate {request.count} language practice exercises for {request.level} level students learning {lang}.
Type: {type_desc} (internal type: {request.type})
Vocabulary pool to integrate: {pool}

Level guidelines:
- Elementary: simple sentences, basic grammar, everyday situations
- Intermediate: compound sentences, varied grammar, social contexts
- Advanced: complex sentences, formal/informal registers, abstract topics

Requirements by type:
1. fill_blank: a {lang} sentence with ONE vocabulary word replaced by '_____'. correctAnswer is the missing word. options hold the correct word and 3 plausible distractors.
2. arrange: a complete {lang} sentence using the vocabulary. options MUST contain ALL words of the sentence, shuffled, none missing. correctAnswer is the ordered sentence.
3. translate: question is "[context] <{self.learner_language} sentence>" that naturally uses one vocabulary word without revealing it. correctAnswer is the {lang} translation. options is empty. explanation gives a word-by-word breakdown, grammar notes, and acceptable alternatives.

All explanations must be bilingual ({lang} + {self.learner_language}).

JSON response format:
{{
  "exercises": [{{"question": "...", "correctAnswer": "...", "options": ["..."], "explanation": "...", "explanationVi": "<{self.learner_language} explanation only>", "targetWord": "<vocabulary word practised>"}}]
}}
""".strip()
        raw = await self._ask("Practice", prompt)
        try:
            return _parse(PracticeResponse, raw)
        except ValueError:
            logger.exception("Error parsing practice exercises (response length %d)", len(raw))
            return PracticeResponse()

    async def check_translation(self, request: TranslationCheckRequest) -> TranslationCheckResponse:
        lang = language_name(request.language)
        prompt = f"""
You are a {lang} language teacher. Check the student's translation from {self.learner_language} to {lang}.

Original text: {request.original_text}
Student's translation: {request.user_answer}
Reference answer (for comparison): {request.expected_answer}

Be lenient: accept translations that convey the same meaning, including synonyms, different structures, and colloquial expressions.

RESPOND IN PLAIN JSON ONLY, no markdown:
{{
  "isCorrect": true/false,
  "score": <0-100>,
  "feedback": "<feedback in {self.learner_language}>",
  "correctedTranslation": "<the correct translation>",
  "wordByWordBreakdown": "<a single string, e.g. 'Word1: Meaning1, Word2: Meaning2'>",
  "grammarNotes": "<grammar notes in {self.learner_language}>",
  "alternativeTranslations": ["<alt1>", "<alt2>"]
}}
""".strip()
        raw = await self._ask("TranslationCheck", prompt)
        try:
            return _parse(TranslationCheckResponse, raw)
        except ValueError:
            logger.exception("Error checking translation")
            return TranslationCheckResponse(feedback="Could not analyse the answer", score=0)


def _valid_question(question: QuizQuestion) -> bool:
    return bool(question.question) and 0 <= question.correct_index < len(question.options)


async def get_tutor(request: Request) -> AsyncIterator[LanguageTutor]:
    config = request.app.state.settings
    try:
        client = GeminiClient(config=config)
    except ValueError:
        raise HTTPException(status_code=503, detail="Gemini is not configured")
    try:
        yield LanguageTutor(client, learner_language=config.learner_language)
    finally:
        await client.aclose()
