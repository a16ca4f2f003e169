"""Tests for BridgeClient and the provider registry."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List

import httpx
import pytest
import pytest_asyncio

from ollama_tool_bridge import BridgeClient
from ollama_tool_bridge.config import OllamaConfig
from ollama_tool_bridge.exceptions import ConfigurationError, UnsupportedFeatureError
from ollama_tool_bridge.models import EmbedContentRequest, FinishReason
from ollama_tool_bridge.providers import available_providers, create_provider_instance
from ollama_tool_bridge.providers.ollama import OllamaAdapter

pytestmark = pytest.mark.asyncio

_CONFIG = OllamaConfig(host="localhost", port=11434, model="llama3.1")

_open_clients: List[httpx.AsyncClient] = []


@pytest_asyncio.fixture(autouse=True)
async def _close_http_clients() -> AsyncIterator[None]:
    yield
    while _open_clients:
        await _open_clients.pop().aclose()


def _mock_client(replies: List[str], prompts: List[str]) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        prompts.append(json.loads(request.content)["prompt"])
        return httpx.Response(200, json={"response": replies.pop(0)})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    _open_clients.append(client)
    return client


async def test_registry_knows_ollama() -> None:
    assert "ollama" in available_providers()
    provider = create_provider_instance("ollama", config=_CONFIG)
    assert isinstance(provider, OllamaAdapter)


async def test_unknown_provider_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="Invalid provider type"):
        BridgeClient(_CONFIG, provider_type="nonexistent")


async def test_bad_provider_arguments_are_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        BridgeClient(_CONFIG, max_concurrent_tools=0)


async def test_generate_from_message_dicts_with_registered_tool() -> None:
    prompts: List[str] = []
    client = BridgeClient(
        _CONFIG,
        http_client=_mock_client(
            [
                '<tool_code>{"tool_name": "get_weather", "parameters": {"city": "Oslo"}}</tool_code>',
                "It is sunny in Oslo.",
            ],
            prompts,
        ),
    )

    def get_weather(city: str) -> Dict[str, Any]:
        """Returns the current weather for a city."""
        return {"city": city, "sky": "sunny"}

    client.register_tool(
        get_weather,
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string", "description": "City name"}},
            "required": ["city"],
        },
    )

    reply = await client.generate(
        [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Weather in Oslo?"},
        ]
    )

    assert reply.finish_reason is FinishReason.STOP
    assert reply.text == "It is sunny in Oslo."
    assert "Description: Returns the current weather for a city." in prompts[0]
    assert prompts[0].endswith("Weather in Oslo?")
    assert '"sky": "sunny"' in prompts[1]
    assert client.tool_factory.get_tool_usage_counts() == {"get_weather": 1}


async def test_register_tool_without_docstring_gets_generic_description() -> None:
    client = BridgeClient(_CONFIG)
    client.register_tool(lambda: "x", name="anon")

    descriptor = client.tool_factory.get_descriptors()[0]
    assert descriptor.description == "Executes the anon function."


async def test_generate_stream_passes_through() -> None:
    prompts: List[str] = []
    client = BridgeClient(_CONFIG, http_client=_mock_client(["hi"], prompts))

    replies = [r async for r in client.generate_stream([{"role": "user", "content": "hey"}])]
    assert [r.text for r in replies] == ["hi"]


async def test_count_tokens_and_embed_content() -> None:
    client = BridgeClient(_CONFIG)
    counted = await client.count_tokens([{"role": "user", "content": "hello"}])
    assert counted.total_tokens > 0

    with pytest.raises(UnsupportedFeatureError):
        await client.embed_content(EmbedContentRequest())


async def test_from_config_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "ollama_config.json"
    path.write_text(json.dumps({"host": "box", "port": 11434, "model": "phi3"}))

    client = BridgeClient.from_config(path)
    assert isinstance(client.provider, OllamaAdapter)
    assert client.provider.model == "phi3"


async def test_from_config_without_configuration(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="No Ollama configuration"):
        BridgeClient.from_config(tmp_path / "absent.json")


async def test_from_config_disabled(tmp_path: Path) -> None:
    path = tmp_path / "ollama_config.json"
    path.write_text(
        json.dumps({"host": "box", "port": 1, "model": "m", "enabled": False})
    )
    with pytest.raises(ConfigurationError, match="disabled"):
        BridgeClient.from_config(path)
