# places_tool.py
import logging
from typing import List

import requests

import config
from basemodel_dto.diagnosis_dto import Supplier

logger = logging.getLogger(__name__)

PLACES_API_URL = "https://places.googleapis.com/v1/places:searchText"
FIELD_MASK = "places.displayName,places.formattedAddress,places.nationalPhoneNumber"


def find_nearby_agri_shops(location: str) -> List[Supplier]:
    """Searches Krishi Kendras and seed/fertilizer/pesticide shops around a location."""
    if not config.GOOGLE_PLACES_API_KEY:
        logger.warning("Google Places API key is not set. Returning mock data.")
        return [Supplier(name="Mock Krishi Kendra", address="123 Mock Street, Mockville", phone="9876543210")]

    body = {
        "textQuery": (
            "Krishi Seva Kendra OR agricultural supply OR fertilizer shop OR "
            f"pesticide shop OR seed supplier in {location}"
        ),
        "languageCode": "en",
        "maxResultCount": 10,
    }
    headers = {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": config.GOOGLE_PLACES_API_KEY,
        "X-Goog-FieldMask": FIELD_MASK,
    }

    try:
        response = requests.post(PLACES_API_URL, json=body, headers=headers, timeout=config.HTTP_TIMEOUT)
        if response.status_code != 200:
            logger.error("Google Places API Error: %s", response.text)
            return []

        suppliers = {}
        for place in response.json().get("places") or []:
            name = (place.get("displayName") or {}).get("text")
            address = place.get("formattedAddress")
            if not name or not address:
                continue
            suppliers.setdefault(
                f"{name}-{address}",
                Supplier(name=name, address=address, phone=place.get("nationalPhoneNumber")),
            )
        return list(suppliers.values())

    except Exception as e:
        logger.error("Failed to fetch from Places API: %s", e)
        return []
