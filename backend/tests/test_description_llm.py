import asyncio
import json
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from config import Settings
from description_llm import DescriptionGenerator, extract_json_object

MONA_LISA = {
    "title": "Mona Lisa",
    "artist": "Leonardo da Vinci",
    "year_created": "c. 1503-1519",
    "description": "Half-length portrait of a woman.",
    "historical_context": "Italian Renaissance.",
    "artistic_technique": "Sfumato",
    "significance": "The most famous painting in the world.",
}


def completion(content):
    response = MagicMock()
    response.choices[0].message.content = content
    return response


def api_error(cls, status):
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return cls(f"Error code: {status}", response=response, body=None)


@pytest.fixture
def generator(settings, mocker):
    generator = DescriptionGenerator(settings)
    create = mocker.AsyncMock()
    mocker.patch.object(generator._client.chat.completions, "create", create)
    return generator


def test_extract_json_ignores_surrounding_prose():
    text = "Sure! Here is the information:\n" + json.dumps(MONA_LISA) + "\nEnjoy."
    assert extract_json_object(text) == MONA_LISA


def test_extract_json_from_code_fence():
    text = '```json\n{"title": "The Scream", "artist": "Edvard Munch"}\n```'
    assert extract_json_object(text) == {"title": "The Scream", "artist": "Edvard Munch"}


def test_extract_json_keeps_nested_objects():
    text = '{"title": "Guernica", "dimensions": {"height": "349 cm"}}'
    assert extract_json_object(text)["dimensions"] == {"height": "349 cm"}


@pytest.mark.parametrize(
    "text",
    [
        "I don't know this artwork.",
        "{title: Mona Lisa}",
        # greedy match spans both blocks, which is not valid JSON
        '{"title": "A"} and also {"title": "B"}',
    ],
)
def test_extract_json_returns_none(text):
    assert extract_json_object(text) is None


def test_generate_returns_parsed_json(generator):
    generator._client.chat.completions.create.return_value = completion(
        "Here you go: " + json.dumps(MONA_LISA)
    )

    assert asyncio.run(generator.generate("Mona Lisa")) == MONA_LISA


def test_generate_sends_expected_request(generator):
    create = generator._client.chat.completions.create
    create.return_value = completion(json.dumps(MONA_LISA))

    asyncio.run(generator.generate("Mona Lisa"))

    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "llama-3.3-70b-versatile"
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 1500
    assert kwargs["messages"][0]["role"] == "user"
    assert '"Mona Lisa"' in kwargs["messages"][0]["content"]


def test_generate_passes_partial_json_through(generator):
    generator._client.chat.completions.create.return_value = completion(
        '{"title": "Untitled", "mood": "calm"}'
    )

    assert asyncio.run(generator.generate("Untitled")) == {"title": "Untitled", "mood": "calm"}


def test_generate_falls_back_to_raw_text(generator):
    raw = "This appears to be a landscape painting from the 19th century."
    generator._client.chat.completions.create.return_value = completion(raw)

    assert asyncio.run(generator.generate("Landscape")) == {
        "title": "Landscape",
        "description": raw,
    }


def test_generate_without_key_makes_no_call(mocker):
    client_cls = mocker.patch("description_llm.openai.AsyncOpenAI")
    generator = DescriptionGenerator(Settings(google_cloud_api_key="k"))

    result = asyncio.run(generator.generate("Mona Lisa"))

    assert result == {"title": "Mona Lisa", "error": "Groq API key not configured"}
    client_cls.assert_not_called()


def test_generate_auth_failure(generator):
    generator._client.chat.completions.create.side_effect = api_error(
        openai.AuthenticationError, 401
    )

    assert asyncio.run(generator.generate("Mona Lisa")) == {
        "title": "Mona Lisa",
        "error": "Groq authentication failed - invalid API key",
        "status": 401,
    }


def test_generate_server_error(generator):
    generator._client.chat.completions.create.side_effect = api_error(
        openai.InternalServerError, 503
    )

    result = asyncio.run(generator.generate("Mona Lisa"))

    assert result["title"] == "Mona Lisa"
    assert result["error"] == "Failed to generate description"
    assert "503" in result["details"]


def test_generate_empty_content(generator):
    generator._client.chat.completions.create.return_value = completion("")

    assert asyncio.run(generator.generate("Mona Lisa")) == {
        "title": "Mona Lisa",
        "error": "Failed to generate description",
        "details": "No content from Groq",
    }


def test_generate_timeout(generator):
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    generator._client.chat.completions.create.side_effect = openai.APITimeoutError(request)

    result = asyncio.run(generator.generate("Mona Lisa"))

    assert result["error"] == "Failed to generate description"
