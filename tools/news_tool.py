# news_tool.py
import logging
from typing import List

import requests

import config
from basemodel_dto.market_dto import NewsItem

logger = logging.getLogger(__name__)

NEWSDATA_API_URL = "https://newsdata.io/api/1/news"
MAX_ARTICLES = 5


def get_news(query: str) -> List[NewsItem]:
    if not config.NEWSDATA_API_KEY:
        logger.warning("newsdata.io API key not set. Returning mock data.")
        return [NewsItem(title="Mock News: Govt. increases MSP for Wheat", summary="A mock summary of the news.", link="#")]

    params = {
        "apikey": config.NEWSDATA_API_KEY,
        "q": query,
        "language": "en",
        "country": "in",
        "category": "business,science,technology",
    }

    try:
        response = requests.get(NEWSDATA_API_URL, params=params, timeout=config.HTTP_TIMEOUT)
        if response.status_code != 200:
            logger.error("Newsdata.io API Error: %s", response.text)
            raise Exception(f"Newsdata.io API request failed with status {response.status_code}")

        articles = response.json().get("results") or []
        return [
            NewsItem(
                title=article.get("title") or "",
                summary=article.get("description") or article.get("content") or "",
                link=article.get("link") or "",
            )
            for article in articles[:MAX_ARTICLES]
        ]
    except Exception as e:
        logger.error("Failed to fetch from newsdata.io API: %s", e)
        return [NewsItem(title="Mock News on API Error", summary="A mock summary of the news because the API failed.", link="#")]


def news_tool(query: str) -> list:
    """
    Gets recent news articles related to agriculture or a specific crop.
    Args:
        query (str): The search query for news, e.g., 'agriculture' or a crop name.
    Returns:
        list: Objects with 'title', 'summary' and 'link'.
    """
    return [n.model_dump() for n in get_news(query)]
