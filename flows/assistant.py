# assistant.py
import logging

from google.adk.agents import LlmAgent
from google.adk.tools import FunctionTool

from agent import MODEL_NAME, build_content, run_agent_and_get_text, run_structured_agent, structured_agent
from basemodel_dto.assistant_dto import (AgriBotInput, AgriBotOutput, NavigationInput, NavigationOutput,
                                         VoiceInputForFarmDetailsInput, VoiceInputForFarmDetailsOutput)
from tools.mandi_tool import mandi_prices_tool
from tools.news_tool import news_tool
from tools.weather_tool import weather_tool

logger = logging.getLogger(__name__)

DEFAULT_ROUTE = "/my-farms"

ROUTES = {
    "/my-farms": "Main dashboard, farm overview, viewing your farms (मेरे खेत).",
    "/crop-planner": "Planning future crops, getting recommendations, variety suggestions (फसल योजना).",
    "/disease-diagnosis": "Identifying problems with current crops, diseases, pests (रोग निदान, फसल खराब है).",
    "/market-insights": "Market prices, sell/wait advice, mandi rates (बाजार भाव).",
    "/schemes": "Government schemes, subsidies, financial help (सरकारी योजनाएं).",
    "/community": "Community posts, asking questions to other farmers (समुदाय).",
    "/notifications": "Alerts, especially price alerts (सूचनाएं).",
    "/profile-setup": "Changing user details, settings (प्रोफ़ाइल).",
}

# ---------------------- AgriBot (chat with live data tools) ----------------------
agri_bot_agent = LlmAgent(
    model=MODEL_NAME,
    name="AgriBot",
    description="Friendly farming assistant that can look up weather, mandi prices and news.",
    instruction=(
        "You are AgriBot, a friendly and knowledgeable AI assistant for Indian farmers. "
        "Give helpful, concise and practical advice on farming topics, answering the user's question in the context of the conversation history. "
        "Keep answers brief and to the point. When the question needs live data, use the tools: "
        "weather_tool for forecasts, mandi_prices_tool for market prices (infer state and district from the question) and news_tool for recent news. "
        "You MUST answer in the language requested in the message."
    ),
    tools=[
        FunctionTool(weather_tool),
        FunctionTool(mandi_prices_tool),
        FunctionTool(news_tool),
    ]
)

voice_input_agent = structured_agent(
    name="VoiceInputAgent",
    description="Extracts a farm-details field value from a voice transcript.",
    instruction=(
        "You process voice input from farmers to populate farm details. You receive the transcript and the field to populate. "
        "Extract the value most appropriate for that field and format it properly for the field (numbers, dates, units). "
        "If the voice input does not contain the requested information, return an empty string."
    ),
    output_schema=VoiceInputForFarmDetailsOutput,
)

navigation_agent = structured_agent(
    name="NavigationRouterAgent",
    description="Maps a spoken command to an application route.",
    instruction=(
        "You are a master router for a farming application. Infer the user's goal from their voice command and select exactly one path "
        "from the available routes listed in the message. If the intent is unclear or matches no route, return /my-farms. "
        "Return the matched path even when the user is already on it. Do not provide any explanation."
    ),
    output_schema=NavigationOutput,
)


def _render_chat_message(payload: AgriBotInput) -> str:
    history = "\n".join(f"{m.role}: {m.content}" for m in payload.chatHistory or [])
    return (
        f"Conversation so far:\n{history or '(none)'}\n"
        f"Answer in this language: {payload.language}\n"
        f"User's Question: {payload.query}"
    )


async def ask_agri_bot(payload: AgriBotInput) -> AgriBotOutput:
    logger.info("AgriBot question with %d history messages", len(payload.chatHistory or []))
    text = await run_agent_and_get_text(agri_bot_agent, build_content(_render_chat_message(payload)))
    return AgriBotOutput(response=text.strip())


async def process_voice_input(payload: VoiceInputForFarmDetailsInput) -> VoiceInputForFarmDetailsOutput:
    message = f"Voice Input: {payload.voiceInput}\nField to Populate: {payload.fieldToPopulate}"
    result = await run_structured_agent(voice_input_agent, message, VoiceInputForFarmDetailsOutput)
    return VoiceInputForFarmDetailsOutput(processedValue=(result.processedValue or "").strip())


async def analyze_voice_input_and_route(payload: NavigationInput) -> NavigationOutput:
    routes = "\n".join(f"- '{path}': {purpose}" for path, purpose in ROUTES.items())
    message = (
        f"Available Routes:\n{routes}\n"
        f"Current Path: {payload.currentPath}\n"
        f"User's Command (in {payload.language}): \"{payload.voiceInput}\""
    )
    try:
        result = await run_structured_agent(navigation_agent, message, NavigationOutput)
    except Exception as e:
        logger.error("Navigation routing failed, defaulting to %s: %s", DEFAULT_ROUTE, e)
        return NavigationOutput(navigationPath=DEFAULT_ROUTE)

    if result.navigationPath not in ROUTES:
        logger.warning("Model returned unknown path %r. Defaulting to %s.", result.navigationPath, DEFAULT_ROUTE)
        return NavigationOutput(navigationPath=DEFAULT_ROUTE)
    return result
