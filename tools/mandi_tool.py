# mandi_tool.py
import logging
import math
import random
from typing import List

import requests

import config
from basemodel_dto.market_dto import MandiPrice

logger = logging.getLogger(__name__)

# Docs: https://data.gov.in/resource/daily-market-prices-agricultural-commodities
DATA_GOV_API_URL = "https://api.data.gov.in/resource/9ef84268-d588-465a-a308-a864a43d0070"


def _parse_records(records: list) -> List[MandiPrice]:
    prices = []
    for record in records:
        try:
            price = float(record["modal_price"])
            if not math.isfinite(price):
                raise ValueError(f"non-finite price {record['modal_price']!r}")
            prices.append(MandiPrice(market=record["market"], price=price))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping unparseable mandi record %s: %s", record, e)
    return prices


def get_mandi_prices(state: str, district: str, commodity: str) -> List[MandiPrice]:
    """Latest modal prices (Rs/quintal) for a commodity in a district's mandis."""
    if not config.DATA_GOV_API_KEY:
        logger.warning("data.gov.in API key not set. Returning mock data.")
        return [
            MandiPrice(market=f"Mock Market 1, {district}", price=random.randint(2000, 2499)),
            MandiPrice(market=f"Mock Market 2, {district}", price=random.randint(1900, 2399)),
        ]

    params = {
        "api-key": config.DATA_GOV_API_KEY,
        "format": "json",
        "limit": 10,
        "filters[state]": state,
        "filters[district]": district,
        "filters[commodity]": commodity,
    }

    try:
        response = requests.get(DATA_GOV_API_URL, params=params, timeout=config.HTTP_TIMEOUT)
        if response.status_code != 200:
            logger.error("Data.gov.in API Error: %s", response.text)
            raise Exception(f"Data.gov.in API request failed with status {response.status_code}")

        prices = _parse_records(response.json().get("records", []))
        if not prices:
            return [MandiPrice(market=f"Mock Market (No real data), {district}", price=random.randint(2000, 2499))]
        return prices

    except Exception as e:
        logger.error("Failed to fetch from data.gov.in API: %s", e)
        return [
            MandiPrice(market=f"Mock Market (API Error), {district}", price=2150),
            MandiPrice(market=f"Mock Market 2 (API Error), {district}", price=2050),
        ]


def mandi_prices_tool(state: str, district: str, crop: str) -> list:
    """
    Gets the latest market (mandi) prices for a specific crop in a given state and district.
    Args:
        state (str): The state to search for prices in.
        district (str): The district to search for prices in.
        crop (str): The crop to get prices for.
    Returns:
        list: Objects with 'market' and 'price' (Rs per quintal).
    """
    return [p.model_dump() for p in get_mandi_prices(state, district, crop)]
