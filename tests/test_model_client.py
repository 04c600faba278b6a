import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from api.features.conversation.exceptions import (
    ModelAuthError,
    ModelQuotaError,
    ModelUnknownError,
)
from api.features.conversation.model_client import OpenAIChatModel, classify_openai_error

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def status_error(cls, status_code, code):
    response = httpx.Response(status_code, request=REQUEST)
    body = {"message": f"{code} happened", "code": code}
    return cls(f"Error code: {status_code}", response=response, body=body)


@pytest.mark.parametrize(
    "error, expected",
    [
        (status_error(openai.AuthenticationError, 401, "invalid_api_key"), ModelAuthError),
        (status_error(openai.AuthenticationError, 401, None), ModelAuthError),
        (status_error(openai.RateLimitError, 429, "insufficient_quota"), ModelQuotaError),
        (status_error(openai.RateLimitError, 429, "rate_limit_exceeded"), ModelUnknownError),
        (status_error(openai.InternalServerError, 500, None), ModelUnknownError),
        (openai.APIConnectionError(request=REQUEST), ModelUnknownError),
    ],
)
def test_classify_openai_error(error, expected):
    assert isinstance(classify_openai_error(error), expected)


class FakeResource:
    def __init__(self, create):
        self.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

    def get_client(self):
        return self.client


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_complete_sends_configured_parameters_and_returns_reply():
    seen = {}

    async def create(**kwargs):
        seen.update(kwargs)
        return completion("Sure thing")

    model = OpenAIChatModel(FakeResource(create), model="gpt-4.1-mini", max_tokens=1000, temperature=0.7)
    messages = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]

    reply = asyncio.run(model.complete(messages))

    assert reply == "Sure thing"
    assert seen == {
        "model": "gpt-4.1-mini",
        "messages": messages,
        "max_tokens": 1000,
        "temperature": 0.7,
    }


def test_complete_maps_sdk_errors():
    async def create(**kwargs):
        raise status_error(openai.RateLimitError, 429, "insufficient_quota")

    model = OpenAIChatModel(FakeResource(create), model="m", max_tokens=10, temperature=0.0)

    with pytest.raises(ModelQuotaError):
        asyncio.run(model.complete([{"role": "user", "content": "hi"}]))


def test_complete_rejects_empty_reply():
    async def create(**kwargs):
        return completion(None)

    model = OpenAIChatModel(FakeResource(create), model="m", max_tokens=10, temperature=0.0)

    with pytest.raises(ModelUnknownError):
        asyncio.run(model.complete([{"role": "user", "content": "hi"}]))
