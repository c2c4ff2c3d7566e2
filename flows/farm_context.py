"""Helpers shared by the advisory flows: prompt rendering and post-processing."""
from typing import List, Sequence

from basemodel_dto.farm_dto import FarmDetails


def render_farm(farm: FarmDetails, include_planting_month: bool = True) -> str:
    lines = [
        f"- Location: {farm.location}",
        f"- Farm Size: {farm.size} {farm.sizeUnit}",
        f"- Soil Type: {farm.soilType or 'Not specified'}",
        f"- Irrigation: {farm.irrigation or 'Not specified'}",
    ]
    if include_planting_month and farm.plantingMonth:
        lines.append(f"- Intended Planting Month: {farm.plantingMonth}")
    if farm.mainCrop:
        lines.append(f"- Current Crop: {farm.mainCrop}")
    if farm.lastCrop:
        lines.append(f"- Last Crop Grown: {farm.lastCrop} (important for crop rotation)")
    return "\n".join(lines)


def language_line(language: str) -> str:
    return f"Respond in this language: {language}"


def ensure_single_best_fit(items: Sequence) -> List:
    """
    Leaves exactly one item with isBestFit=True in a non-empty list.
    The first flagged item wins; when the model flagged none, the first item is chosen.
    """
    items = list(items)
    if not items:
        return items
    best_index = next((i for i, item in enumerate(items) if item.isBestFit), 0)
    for i, item in enumerate(items):
        item.isBestFit = i == best_index
    return items
