import json

import httpx
import pytest

from linguaai.client import HmacAuth, LinguaApiClient
from linguaai.hmac_auth import WINDOW_TICKS, build_authorization_header
from linguaai.schemas import PracticeRequest

USER_ID = "alice"
API_KEY = "secret123"

T = 638_700_000_123_456_789


def _recording_transport(seen):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={})

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_hmac_auth_sets_header():
    seen = []
    auth = HmacAuth("alice", "secret123", clock=lambda: T)
    async with httpx.AsyncClient(transport=_recording_transport(seen), auth=auth) as http:
        await http.get("http://lingua.test/api/anything")

    assert seen == ["HMAC-SHA256 alice:ca502877d4a94017f3e7e79855908189bfd0f7f585b4c2af186c9248c23efb62"]


@pytest.mark.asyncio
async def test_hmac_auth_signs_each_request_with_current_window():
    ticks = iter([T, T + WINDOW_TICKS])
    seen = []
    auth = HmacAuth("alice", "secret123", clock=lambda: next(ticks))
    async with httpx.AsyncClient(transport=_recording_transport(seen), auth=auth) as http:
        await http.get("http://lingua.test/a")
        await http.get("http://lingua.test/b")

    assert seen[0] == build_authorization_header("alice", "secret123", T)
    assert seen[1] == build_authorization_header("alice", "secret123", T + WINDOW_TICKS)
    assert seen[0] != seen[1]


@pytest.mark.parametrize("user_id, api_key", [("", "k"), ("alice", ""), ("al:ice", "k")])
def test_hmac_auth_rejects_bad_credentials(user_id, api_key):
    with pytest.raises(ValueError):
        HmacAuth(user_id, api_key)


# Round trip against the real application


def _api_client(app, user_id=USER_ID, api_key=API_KEY):
    return LinguaApiClient(
        "http://testserver",
        user_id,
        api_key,
        transport=httpx.ASGITransport(app=app),
    )


@pytest.mark.asyncio
async def test_round_trip_themes(app):
    async with _api_client(app) as api:
        themes = await api.get_themes()

    assert {"id": "greetings", "name": "Greetings", "icon": "👋"} in themes


@pytest.mark.asyncio
async def test_round_trip_vocabulary(app, fake_gemini):
    fake_gemini.queue(json.dumps({"words": [{"word": "사과", "meaning": "táo", "pronunciation": "sagwa", "example": "사과를 먹어요"}]}))

    async with _api_client(app) as api:
        result = await api.generate_vocabulary("ko", "food", count=1)

    assert result.words[0].word == "사과"
    assert result.warning == ""


@pytest.mark.asyncio
async def test_round_trip_practice_uses_camel_case(app, fake_gemini):
    fake_gemini.queue(
        '{"exercises": [{"question": "I like _____", "correctAnswer": "apples", '
        '"options": ["apples", "cars", "sky", "run"], "explanationVi": "táo", "targetWord": "apples"}]}'
    )

    async with _api_client(app) as api:
        result = await api.generate_practice(PracticeRequest(words=["apples"], language="en", count=1))

    assert result.exercises[0].correct_answer == "apples"
    assert result.exercises[0].target_word == "apples"
    assert "Vocabulary pool to integrate: apples" in fake_gemini.prompts[0]


@pytest.mark.asyncio
async def test_round_trip_transcribe_multipart(app, fake_gemini):
    fake_gemini.queue(" 안녕하세요 ")

    async with _api_client(app) as api:
        result = await api.transcribe(b"RIFF....", "ko", filename="hello.wav", mime_type="audio/wav")

    assert result.success is True
    assert result.transcript == "안녕하세요"
    assert fake_gemini.parts[0][0]["inline_data"]["mime_type"] == "audio/wav"


@pytest.mark.asyncio
async def test_round_trip_wrong_key_is_rejected(app):
    async with _api_client(app, api_key="not-the-key") as api:
        with pytest.raises(httpx.HTTPStatusError) as excinfo:
            await api.get_themes()

    assert excinfo.value.response.status_code == 401
    assert excinfo.value.response.json()["error"] == "Unauthorized"
