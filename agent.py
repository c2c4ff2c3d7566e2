# agent.py
import asyncio
import base64
import json
import logging
import re
import uuid
from typing import List, Optional, Tuple, Type, TypeVar

from google.adk.agents import LlmAgent
from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types as genai_types
from pydantic import BaseModel, ValidationError

import config
from errors import FlowError

logger = logging.getLogger(__name__)

MODEL_NAME = config.MODEL_NAME

OutputT = TypeVar("OutputT", bound=BaseModel)

LANGUAGE_RULE = "Your entire response, including all text fields, MUST be in the language requested in the message."

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)
_FENCE_RE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL)

# ---------------------- Shared Session Service for Internal Runners ----------------------
_internal_session_service = InMemorySessionService()


def structured_agent(name: str, description: str, instruction: str, output_schema: Type[BaseModel]) -> LlmAgent:
    """An LlmAgent whose reply is constrained to the JSON shape of `output_schema`."""
    return LlmAgent(
        model=MODEL_NAME,
        name=name,
        description=description,
        instruction=instruction,
        output_schema=output_schema,
        disallow_transfer_to_parent=True,
        disallow_transfer_to_peers=True,
    )


def parse_data_uri(data_uri: str) -> Tuple[str, bytes]:
    match = _DATA_URI_RE.match(data_uri.strip())
    if not match:
        raise ValueError("Photo must be a base64 data URI: 'data:<mimetype>;base64,<encoded_data>'")
    return match.group("mime"), base64.b64decode(match.group("data"))


def build_content(text: str, images: Optional[List[Tuple[str, bytes]]] = None) -> genai_types.Content:
    parts = [genai_types.Part(text=text)]
    for mime_type, data in images or []:
        parts.append(genai_types.Part(inline_data=genai_types.Blob(mime_type=mime_type, data=data)))
    return genai_types.Content(role="user", parts=parts)


async def run_agent_and_get_text(agent: LlmAgent, input_content: genai_types.Content) -> str:
    """Runs an LlmAgent in a fresh session and returns its final text response."""
    app_name = f"{agent.name}App"
    internal_runner = Runner(
        app_name=app_name,
        agent=agent,
        session_service=_internal_session_service
    )
    session_id = f"tool_session_{uuid.uuid4()}"

    try:
        await _internal_session_service.create_session(
            app_name=app_name,
            user_id="tool_user",
            session_id=session_id
        )
        logger.debug("Created session '%s' for internal runner '%s'.", session_id, app_name)

        events = await asyncio.to_thread(
            lambda: list(internal_runner.run(
                user_id="tool_user",
                session_id=session_id,
                new_message=input_content
            ))
        )
    except Exception as e:
        logger.exception("Exception during internal agent '%s' run", agent.name)
        raise FlowError(f"Error processing request with {agent.name}: {e}") from e

    logger.debug("Collected %d events from internal agent %s.", len(events), agent.name)

    final_response_text = None
    for event in events:
        if getattr(event, 'error_message', None):
            raise FlowError(f"Error from {agent.name}: {event.error_message}")
        if not event.is_final_response():
            continue
        content = getattr(event, 'content', None)
        texts = [part.text for part in (content.parts if content and content.parts else []) if getattr(part, 'text', None)]
        if texts:
            final_response_text = "".join(texts)

    if not final_response_text:
        raise FlowError(f"No final text response from {agent.name}.")
    return final_response_text


def parse_json_reply(text: str, output_model: Type[OutputT]) -> OutputT:
    """Validates the model's JSON reply, tolerating a markdown code fence around it."""
    body = text.strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group("body")
    try:
        return output_model.model_validate_json(body)
    except ValidationError as e:
        logger.error("Reply did not match %s: %s", output_model.__name__, e)
        raise FlowError(f"The AI returned output that does not match {output_model.__name__}.") from e


def schema_hint(output_model: Type[BaseModel]) -> str:
    """JSON schema text for agents that cannot use output_schema (e.g. agents with tools)."""
    return json.dumps(output_model.model_json_schema(), ensure_ascii=False)


async def run_structured_agent(
        agent: LlmAgent,
        prompt: str,
        output_model: Type[OutputT],
        images: Optional[List[Tuple[str, bytes]]] = None,
) -> OutputT:
    logger.info("Running flow agent %s", agent.name)
    text = await run_agent_and_get_text(agent, build_content(prompt, images))
    return parse_json_reply(text, output_model)
