# schemes.py
import logging

from agent import LANGUAGE_RULE, run_structured_agent, structured_agent
from basemodel_dto.scheme_dto import (PopulatedScheme, PopulateSchemeDetailsInput, SchemeDetails,
                                      SchemeFinderInput, SchemeFinderOutput)
from errors import NotFoundError
from flows.farm_context import language_line
from tools.scheme_catalog import get_scheme, load_schemes

logger = logging.getLogger(__name__)

scheme_finder_agent = structured_agent(
    name="SchemeFinderAgent",
    description="Picks the government schemes relevant to a farmer's query.",
    instruction=(
        "You are Krish-AI, an expert on Indian agricultural schemes. A farmer describes their situation or asks for help, possibly in their local language. "
        "Identify which of the available schemes listed in the message are relevant. Only return ids from that list, "
        "sorted from most to least relevant. If none are relevant, return an empty list."
    ),
    output_schema=SchemeFinderOutput,
)

scheme_details_agent = structured_agent(
    name="SchemeDetailsAgent",
    description="Writes farmer-friendly details for a government scheme.",
    instruction=(
        "You are Krish-AI, an expert on Indian agricultural schemes. Generate clear, concise and farmer-friendly details for the scheme "
        "identified in the message by its id and official website: title, a one-sentence description, benefits, eligibility, howToApply "
        "and requiredDocuments as a simple comma-separated list. Be accurate. " + LANGUAGE_RULE
    ),
    output_schema=SchemeDetails,
)


async def find_relevant_schemes(payload: SchemeFinderInput) -> SchemeFinderOutput:
    catalog = load_schemes()
    available = "\n".join(f"- {s.id} ({s.category}, {s.state})" for s in catalog)
    message = (
        f"Available Scheme IDs:\n{available}\n"
        f"Farmer's Query (in {payload.language}): \"{payload.query}\""
    )
    result = await run_structured_agent(scheme_finder_agent, message, SchemeFinderOutput)

    known = {s.id for s in catalog}
    relevant = []
    for scheme_id in result.relevantSchemeIds:
        if scheme_id in known and scheme_id not in relevant:
            relevant.append(scheme_id)
        elif scheme_id not in known:
            logger.warning("Dropping unknown scheme id from model output: %s", scheme_id)
    return SchemeFinderOutput(relevantSchemeIds=relevant)


async def populate_scheme_details(payload: PopulateSchemeDetailsInput) -> PopulatedScheme:
    scheme = get_scheme(payload.schemeId)
    if scheme is None:
        raise NotFoundError(f"Scheme '{payload.schemeId}' not found.")

    message = (
        f"Scheme ID: {scheme.id}\n"
        f"Official Website: {scheme.website}\n"
        f"{language_line(payload.language)}"
    )
    details = await run_structured_agent(scheme_details_agent, message, SchemeDetails)
    return PopulatedScheme(**scheme.model_dump(), **details.model_dump())
