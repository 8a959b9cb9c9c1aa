import random

from pydantic import BaseModel, Field

CONDITIONS = ("sunny", "cloudy", "rainy")
MIN_TEMPERATURE_C = 10
MAX_TEMPERATURE_C = 39


class GetWeatherInput(BaseModel):
    city: str = Field(description="The city name")


class GetWeatherTool:
    """Mock weather lookup: random temperature and condition for any city."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    @property
    def name(self) -> str:
        return "getWeather"

    @property
    def description(self) -> str:
        return "Get the current weather for a city"

    @property
    def input_model(self) -> type[BaseModel]:
        return GetWeatherInput

    @property
    def input_schema(self) -> dict:
        return GetWeatherInput.model_json_schema()

    async def execute(self, tool_input: GetWeatherInput) -> str:
        temperature = self._rng.randint(MIN_TEMPERATURE_C, MAX_TEMPERATURE_C)
        condition = self._rng.choice(CONDITIONS)
        return f"The weather in {tool_input.city} is {temperature}°C and {condition}."
