"""Development MCP server exposing weather tools over streamable HTTP.

Serves http://localhost:3001/mcp, the default McpEndpoint. Bearer tokens sent
by the gateway are accepted without verification.
"""
from __future__ import annotations

import os
from typing import Any

import httpx
from mcp.server.fastmcp import FastMCP

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

mcp = FastMCP(
    "weather",
    host=os.environ.get("WEATHER_MCP_HOST", "127.0.0.1"),
    port=int(os.environ.get("WEATHER_MCP_PORT", "3001")),
)


async def _fetch_today(city: str) -> dict[str, Any]:
    async with httpx.AsyncClient(timeout=15.0) as client:
        geo = await client.get(GEOCODING_URL, params={"name": city, "count": 1})
        geo.raise_for_status()
        matches = geo.json().get("results") or []
        if not matches:
            raise ValueError(f"Unknown city: {city}")
        place = matches[0]

        forecast = await client.get(
            FORECAST_URL,
            params={
                "latitude": place["latitude"],
                "longitude": place["longitude"],
                "daily": "temperature_2m_max,temperature_2m_min,precipitation_probability_max",
                "forecast_days": 1,
                "timezone": "auto",
            },
        )
        forecast.raise_for_status()
        daily = forecast.json().get("daily") or {}

    return {
        "city": place.get("name", city),
        "country": place.get("country"),
        "date": (daily.get("time") or [None])[0],
        "temperature_max_c": (daily.get("temperature_2m_max") or [None])[0],
        "temperature_min_c": (daily.get("temperature_2m_min") or [None])[0],
        "precipitation_probability": (daily.get("precipitation_probability_max") or [None])[0],
    }


@mcp.tool(name="weather.today", description="Today's forecast for a city as a short sentence.")
async def weather_today(city: str) -> str:
    data = await _fetch_today(city)
    return (
        f"{data['city']}, {data['country']} on {data['date']}: "
        f"{data['temperature_min_c']}°C to {data['temperature_max_c']}°C, "
        f"{data['precipitation_probability']}% chance of precipitation."
    )


@mcp.tool(name="weather.today.raw", description="Today's forecast for a city as structured data.")
async def weather_today_raw(city: str) -> dict[str, Any]:
    return await _fetch_today(city)


if __name__ == "__main__":
    mcp.run(transport="streamable-http")
