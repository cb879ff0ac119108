import json

import pytest

from linguaai.gemini_client import GeminiError
from linguaai.schemas import ChatMessage, PracticeRequest, TranslationCheckRequest, VocabularyItem
from linguaai.tutor import LanguageTutor, detect_language, extract_json, language_name

from .conftest import FakeGemini


class FailingGemini(FakeGemini):
    async def generate(self, prompt):
        self.prompts.append(prompt)
        raise GeminiError("down")

    async def generate_multimodal(self, parts, **kwargs):
        self.parts.append(parts)
        raise GeminiError("down")


def tutor_with(*responses):
    gemini = FakeGemini(responses)
    return LanguageTutor(gemini, learner_language="Vietnamese"), gemini


# Helpers


def test_extract_json_strips_fences_and_prose():
    raw = 'Sure! ```json\n{"a": {"b": 1}}\n``` hope that helps'
    assert json.loads(extract_json(raw)) == {"a": {"b": 1}}


@pytest.mark.parametrize("raw", ["no json here", "{broken", "} backwards {"])
def test_extract_json_without_object_raises(raw):
    with pytest.raises(ValueError):
        extract_json(raw)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("안녕하세요", "ko"),
        ("你好", "zh"),
        ("สวัสดี", "th"),
        ("Xin chào", "vi"),
        ("hello", "en"),
        ("", "en"),
    ],
)
def test_detect_language(text, expected):
    assert detect_language(text) == expected


def test_language_name_defaults_to_english():
    assert language_name("KO") == "Korean"
    assert language_name(None) == "English"
    assert language_name("xx") == "English"


# Conversation


@pytest.mark.asyncio
async def test_chat_splits_reply_and_translation():
    tutor, gemini = tutor_with("안녕하세요!\n\nXin chào!")
    history = [ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="hello")]

    result = await tutor.chat("ko", "coffee", "커피 주세요", history)

    assert result.reply == "안녕하세요!"
    assert result.translation == "Xin chào!"
    assert "Scenario: coffee" in gemini.prompts[0]
    assert "user: hi" in gemini.prompts[0]
    assert gemini.prompts[0].endswith("User: 커피 주세요\nAssistant:")


@pytest.mark.asyncio
async def test_chat_without_translation():
    tutor, _ = tutor_with("Hello there")

    result = await tutor.chat("en", "daily", "hi", [])

    assert result.reply == "Hello there"
    assert result.translation is None


@pytest.mark.asyncio
async def test_chat_records_exchange():
    tutor, _ = tutor_with("reply")

    await tutor.chat("en", "daily", "hi", [])

    assert len(tutor.exchanges) == 1
    assert tutor.exchanges[0][0] == "Conversation"
    assert tutor.exchanges[0][2] == "reply"


# Pronunciation


@pytest.mark.asyncio
async def test_pronunciation_parses_words():
    raw = json.dumps(
        {
            "score": 80,
            "feedback": "Tốt",
            "corrections": ["Chú ý âm cuối"],
            "words": [{"word": "hello", "correct": True}, {"word": "world", "correct": False, "error": "r sound"}],
        }
    )
    tutor, _ = tutor_with(raw)

    result = await tutor.evaluate_pronunciation("en", "hello world", "hello wold")

    assert result.score == 80
    assert [w.correct for w in result.words] == [True, False]
    assert result.words[1].error == "r sound"


@pytest.mark.asyncio
async def test_pronunciation_fallback_on_garbage():
    tutor, _ = tutor_with("I cannot do that")

    result = await tutor.evaluate_pronunciation("en", "hello", "helo")

    assert result.score == 50
    assert result.feedback == "Could not evaluate in detail"


# Writing


@pytest.mark.asyncio
async def test_writing_parses_corrections():
    raw = '{"correctedText": "I am happy.", "corrections": [{"original": "I is", "corrected": "I am", "explanation": "chia động từ"}], "suggestions": []}'
    tutor, _ = tutor_with(raw)

    result = await tutor.check_writing("en", "I is happy.", "beginner")

    assert result.corrected_text == "I am happy."
    assert result.corrections[0].corrected == "I am"


@pytest.mark.asyncio
async def test_writing_falls_back_to_original_text():
    tutor, _ = tutor_with("not json", '{"corrections": []}')

    assert (await tutor.check_writing("en", "My text", "beginner")).corrected_text == "My text"
    assert (await tutor.check_writing("en", "My text", "beginner")).corrected_text == "My text"


# Reading


@pytest.mark.asyncio
async def test_reading_drops_invalid_questions():
    raw = json.dumps(
        {
            "title": "Seoul",
            "content": "서울은 ...",
            "questions": [
                {"question": "Q1", "options": ["a", "b"], "correctIndex": 1},
                {"question": "Q2", "options": ["a", "b"], "correctIndex": 5},
                {"question": "", "options": ["a"], "correctIndex": 0},
                {"question": "Q4", "options": [], "correctIndex": 0},
            ],
        }
    )
    tutor, _ = tutor_with(raw)

    result = await tutor.generate_reading("ko", "beginner", None)

    assert result.title == "Seoul"
    assert [q.question for q in result.questions] == ["Q1"]


@pytest.mark.asyncio
async def test_reading_fallback():
    tutor, gemini = tutor_with("{broken")

    result = await tutor.generate_reading("ko", "beginner", "food")

    assert result.title == "Error"
    assert "about food" in gemini.prompts[0]


# Vocabulary


@pytest.mark.asyncio
async def test_vocabulary_generation():
    tutor, gemini = tutor_with('{"words": [{"word": "你好", "meaning": "xin chào", "pronunciation": "nǐ hǎo"}]}')

    words = await tutor.generate_vocabulary("zh", "greetings", 1)

    assert words[0].pronunciation == "nǐ hǎo"
    assert "Generate 1 vocabulary words in Chinese (Mandarin)" in gemini.prompts[0]


@pytest.mark.asyncio
async def test_vocabulary_unparseable_returns_empty():
    tutor, _ = tutor_with("sorry")

    assert await tutor.generate_vocabulary("zh", "greetings", 3) == []


@pytest.mark.asyncio
async def test_vocabulary_tolerates_tabs_in_json():
    tutor, _ = tutor_with('{"words": [{"word": "a\tb", "meaning": "m"}]}')

    words = await tutor.generate_vocabulary("en", "x", 1)

    assert words[0].word == "a b"


@pytest.mark.asyncio
async def test_enrich_falls_back_to_plain_items_on_failure():
    gemini = FailingGemini()
    tutor = LanguageTutor(gemini)
    items = [VocabularyItem(word="apple / pear", meaning="táo / lê", example="old")]

    words = await tutor.enrich_vocabulary(items)

    assert words == [VocabularyItem(word="apple / pear", meaning="táo / lê")]


@pytest.mark.asyncio
async def test_enrich_empty_input_skips_model():
    tutor, gemini = tutor_with()

    assert await tutor.enrich_vocabulary([]) == []
    assert gemini.prompts == []


# Translation


@pytest.mark.asyncio
async def test_translate_strips_quotes():
    tutor, gemini = tutor_with('  "Hello"  ')

    assert await tutor.translate("Xin chào", "en") == "Hello"
    assert "Translate the following text to English." in gemini.prompts[0]


@pytest.mark.asyncio
async def test_translate_unknown_target_defaults_to_english():
    tutor, gemini = tutor_with("Hi")

    await tutor.translate("Xin chào", "xx")

    assert "to English." in gemini.prompts[0]


@pytest.mark.asyncio
async def test_translate_echoes_input_on_failure():
    tutor = LanguageTutor(FailingGemini())

    assert await tutor.translate("Xin chào", "en") == "Xin chào"


# Transcription


@pytest.mark.asyncio
async def test_transcribe_sends_inline_audio():
    tutor, gemini = tutor_with(" 안녕 \n")

    transcript = await tutor.transcribe_audio(b"\x00\x01", "ko", "audio/webm")

    assert transcript == "안녕"
    inline = gemini.parts[0][0]["inline_data"]
    assert inline == {"mime_type": "audio/webm", "data": "AAE="}
    assert tutor.exchanges[0][0] == "Transcribe"


@pytest.mark.asyncio
async def test_transcribe_failure_returns_empty():
    tutor = LanguageTutor(FailingGemini())

    assert await tutor.transcribe_audio(b"\x00", "ko") == ""


# Practice


@pytest.mark.asyncio
async def test_practice_generation():
    raw = json.dumps(
        {
            "exercises": [
                {
                    "question": "[At a cafe] Tôi muốn uống cà phê",
                    "correctAnswer": "커피를 마시고 싶어요",
                    "options": [],
                    "explanation": "...",
                    "explanationVi": "...",
                    "targetWord": "커피",
                }
            ]
        }
    )
    tutor, gemini = tutor_with(raw)
    request = PracticeRequest(words=["커피", "물"], language="ko", type="translate", count=1)

    result = await tutor.generate_practice(request)

    assert result.exercises[0].target_word == "커피"
    assert "Vocabulary pool to integrate: 커피, 물" in gemini.prompts[0]
    assert "Type: Sentences to translate (internal type: translate)" in gemini.prompts[0]


@pytest.mark.asyncio
async def test_practice_unparseable_returns_empty():
    tutor, _ = tutor_with("nope")

    result = await tutor.generate_practice(PracticeRequest(words=["a"]))

    assert result.exercises == []


@pytest.mark.asyncio
async def test_check_translation():
    raw = '{"isCorrect": true, "score": 95, "feedback": "Rất tốt", "alternativeTranslations": ["커피 마시고 싶어"]}'
    tutor, _ = tutor_with(raw)
    request = TranslationCheckRequest(original_text="Tôi muốn uống cà phê", user_answer="커피를 마시고 싶어요")

    result = await tutor.check_translation(request)

    assert result.is_correct is True
    assert result.score == 95
    assert result.alternative_translations == ["커피 마시고 싶어"]


@pytest.mark.asyncio
async def test_check_translation_fallback():
    tutor, _ = tutor_with("??")
    request = TranslationCheckRequest(original_text="x", user_answer="y")

    result = await tutor.check_translation(request)

    assert result.score == 0
    assert result.feedback == "Could not analyse the answer"


@pytest.mark.asyncio
async def test_gemini_error_propagates_from_chat():
    tutor = LanguageTutor(FailingGemini())

    with pytest.raises(GeminiError):
        await tutor.chat("en", "daily", "hi", [])
