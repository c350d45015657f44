# save as run_chat.py in repo root
import asyncio
import logging

from ollama_client import ModelLocation, OllamaClient, OllamaOptions, Tool


def get_weather(city: str, days: int = 1) -> str:
    """Get the weather forecast for a city."""
    return f"Sunny in {city} for the next {days} day(s), 21C"


async def main():
    logging.basicConfig(level=logging.INFO)

    client = OllamaClient(OllamaOptions.from_env())

    await client.pull_model(
        client.options.model,
        progress=lambda p: print(f"{p.status} {p.percentage or 0:.0f}%"),
    )

    async for text in client.get_chat_completion("Write a haiku about autumn."):
        print(text, end="", flush=True)
    print()

    answer = await client.get_chat_text_completion(
        "What's the weather in Paris for the next 3 days?",
        tool=Tool.from_callable(get_weather),
    )
    print(answer)

    for model in await client.list_models(location=ModelLocation.LOCAL):
        print(model.name, model.size)

asyncio.run(main())
