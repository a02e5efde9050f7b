"""
Pure infrastructure LLM client for LangChain integration.

Provides tool-augmented streaming and structured generation without any
domain knowledge. Prompts and contracts are built in the application layer.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Type

from langchain_core.messages import AIMessageChunk, BaseMessage, ToolMessage
from langchain_core.tools import BaseTool
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from slidereel.application.ports import StructuredGenerationPort, ToolStreamingPort
from slidereel.domain.exceptions import NoObjectGeneratedError
from slidereel.infra.config.logging_config import get_logger


def _chunk_text(content: Any) -> str:
    """Text of a message chunk; content may be a string or a list of blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return ""


def extract_structured_payload(result: Any) -> Optional[Dict[str, Any]]:
    """
    Pull the generated object out of an ``include_raw`` structured result.

    Falls back from the parsed model to the raw tool-call arguments and then
    to JSON in the raw message content, so output that failed strict parsing
    still reaches the repair pass.
    """
    if not isinstance(result, dict):
        return result.model_dump() if isinstance(result, BaseModel) else None

    parsed = result.get("parsed")
    if isinstance(parsed, BaseModel):
        return parsed.model_dump()
    if isinstance(parsed, dict):
        return parsed

    raw = result.get("raw")
    tool_calls = getattr(raw, "tool_calls", None) or []
    if tool_calls and isinstance(tool_calls[0].get("args"), dict):
        return tool_calls[0]["args"]

    content = _chunk_text(getattr(raw, "content", None))
    if content:
        try:
            payload = json.loads(content)
        except ValueError:
            return None
        if isinstance(payload, dict):
            return payload
        if isinstance(payload, list):
            return {"slides": payload}
    return None


class LangChainClient(StructuredGenerationPort, ToolStreamingPort):
    """
    Infrastructure-layer LLM client.

    No domain knowledge or prompts should be included here.
    """

    def __init__(
        self,
        model_name: str = "gpt-5",
        temperature: float = 0.7,
        max_tokens: int = 4000,
        base_url: Optional[str] = None,
        planning_model_name: Optional[str] = None,
        **kwargs,
    ):
        """Initialize LangChain client with LLM configuration."""
        llm_kwargs = {
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }

        # OpenAI-compatible servers
        if base_url:
            llm_kwargs["base_url"] = base_url

        self.llm = ChatOpenAI(model=model_name, **llm_kwargs)
        self.planning_llm = (
            ChatOpenAI(model=planning_model_name, **llm_kwargs)
            if planning_model_name and planning_model_name != model_name
            else self.llm
        )
        self._log = get_logger("infra.llm")

    async def stream_with_tools(
        self,
        messages: List[BaseMessage],
        tools: Sequence[BaseTool],
        max_rounds: int,
    ) -> AsyncIterator[str]:
        """
        Stream text while executing the model's tool calls.

        Each round streams one model turn. Tool results are fed back and a new
        round starts; the loop ends when a turn has no tool calls or after
        ``max_rounds`` rounds.
        """
        conversation = list(messages)
        tools_by_name = {tool.name: tool for tool in tools}
        llm = self.planning_llm.bind_tools(list(tools)) if tools else self.planning_llm

        for round_number in range(max_rounds):
            gathered: Optional[AIMessageChunk] = None
            async for chunk in llm.astream(conversation):
                gathered = chunk if gathered is None else gathered + chunk
                text = _chunk_text(chunk.content)
                if text:
                    yield text

            tool_calls = getattr(gathered, "tool_calls", None) or []
            if gathered is None or not tool_calls:
                self._log.info("llm.stream.end", rounds=round_number + 1)
                return

            conversation.append(gathered)
            for call in tool_calls:
                name = call.get("name") or ""
                args = call.get("args") if isinstance(call.get("args"), dict) else {}
                call_id = call.get("id") or f"{name}:{round_number}"
                observation = await self._run_tool(tools_by_name.get(name), name, args)
                conversation.append(
                    ToolMessage(content=json.dumps(observation, default=str), tool_call_id=call_id)
                )

        self._log.info("llm.stream.tool_budget_exhausted", rounds=max_rounds)

    async def _run_tool(
        self, tool: Optional[BaseTool], name: str, args: Dict[str, Any]
    ) -> Any:
        if tool is None:
            self._log.warning("llm.tool.unknown", tool=name)
            return {"error": f"Unknown tool {name}"}
        try:
            result = await tool.ainvoke(args)
        except Exception as e:
            # Reported back to the model, which may retry with other arguments.
            self._log.warning("llm.tool.failed", tool=name, error=str(e))
            return {"error": str(e)}
        self._log.info("llm.tool.called", tool=name)
        return result

    async def generate_object(
        self,
        messages: List[BaseMessage],
        response_model: Type[BaseModel],
        max_retries: int = 2,
    ) -> Dict[str, Any]:
        """
        Invoke structured output with automatic retry on failure.

        Raises:
            NoObjectGeneratedError: If no object was produced after retries
        """
        structured_llm = self.llm.with_structured_output(
            response_model, method="function_calling", include_raw=True
        )
        last_error: Optional[str] = None

        for attempt in range(max_retries + 1):
            try:
                result = await structured_llm.ainvoke(messages)
                payload = extract_structured_payload(result)
                if payload is not None:
                    self._log.info(
                        "llm.invoke.structured",
                        model=response_model.__name__,
                        attempt=attempt,
                    )
                    return payload
                last_error = "model returned no parsable object"
            except Exception as e:
                last_error = str(e)

            if attempt < max_retries:
                await asyncio.sleep(2**attempt)

        self._log.error("llm.invoke.failed", error=last_error)
        raise NoObjectGeneratedError(last_error)

    def get_model_info(self) -> dict:
        return {
            "model_name": self.llm.model_name,
            "planning_model_name": self.planning_llm.model_name,
            "temperature": self.llm.temperature,
            "max_tokens": self.llm.max_tokens,
        }
