import os
import sys
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
from loguru import logger

try:
    from .models import AgnoRunRequest, AgnoRunResponse, RunResponse
    from .stream_parser import StreamFrameParser
except ImportError:
    sys.path.append(os.path.dirname(__file__))
    from models import AgnoRunRequest, AgnoRunResponse, RunResponse
    from stream_parser import StreamFrameParser

USER_AGENT = "Agno-Playground-Proxy/1.0"


def get_agno_endpoint() -> str:
    return os.getenv("AGNO_API_URL", "http://localhost:7777")


def get_request_timeout() -> float:
    return float(os.getenv("AGNO_REQUEST_TIMEOUT", "300"))


class AgnoAPIError(Exception):
    """Agno runtime returned an error or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AgnoAPIRoutes:
    """Paths of the Agno runtime API, relative to its endpoint"""

    @staticmethod
    def agent_run(agent_id: str) -> str:
        return f"/v1/agents/{agent_id}/runs"

    @staticmethod
    def sessions(agent_id: str) -> str:
        return f"/v1/agents/{agent_id}/sessions"

    @staticmethod
    def session(agent_id: str, session_id: str) -> str:
        return f"/v1/agents/{agent_id}/sessions/{session_id}"

    @staticmethod
    def rename_session(agent_id: str, session_id: str) -> str:
        return f"/v1/agents/{agent_id}/sessions/{session_id}/rename"

    @staticmethod
    def memories(agent_id: str) -> str:
        return f"/v1/agents/{agent_id}/memories"

    @staticmethod
    def health() -> str:
        return "/v1/health"


class AgnoAPIClient:
    """Async client for agent runs and sessions on the Agno runtime"""

    def __init__(self, endpoint: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None, authorization: Optional[str] = None):
        self.endpoint = (endpoint or get_agno_endpoint()).rstrip("/")
        self.timeout = timeout or get_request_timeout()
        self.authorization = authorization
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if self.authorization:
            headers["Authorization"] = self.authorization
        return httpx.AsyncClient(
            base_url=self.endpoint,
            timeout=httpx.Timeout(self.timeout),
            headers=headers,
            transport=self._transport
        )

    @staticmethod
    def _error_from_response(response: httpx.Response) -> AgnoAPIError:
        message = f"HTTP {response.status_code}: {response.reason_phrase}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("detail"):
            message = str(body["detail"])
        return AgnoAPIError(message, status_code=response.status_code)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Agno request {method} {path} failed: {e}")
            raise AgnoAPIError(f"Failed to connect to Agno API: {e}", status_code=503) from e

        if response.is_error:
            raise self._error_from_response(response)
        return response

    @staticmethod
    def _run_form(request: AgnoRunRequest, stream: bool) -> Dict[str, str]:
        form = {"message": request.message, "stream": "true" if stream else "false"}
        if request.session_id:
            form["session_id"] = request.session_id
        if request.user_id:
            form["user_id"] = request.user_id
        return form

    @staticmethod
    def _run_files(request: AgnoRunRequest) -> Optional[List[Tuple[str, Tuple[str, bytes, str]]]]:
        if not request.files:
            return None
        return [(f.field, (f.filename, f.content, f.content_type)) for f in request.files]

    async def run_agent(self, agent_id: str, request: AgnoRunRequest) -> AgnoRunResponse:
        """Run an agent and wait for the complete response"""
        response = await self._request(
            "POST", AgnoAPIRoutes.agent_run(agent_id), data=self._run_form(request, stream=False),
            files=self._run_files(request)
        )
        return AgnoRunResponse.model_validate(response.json())

    async def stream_run(self, agent_id: str, request: AgnoRunRequest) -> AsyncIterator[RunResponse]:
        """Run an agent and yield its events as they arrive"""
        parser = StreamFrameParser()
        path = AgnoAPIRoutes.agent_run(agent_id)
        logger.info(f"Streaming run for agent {agent_id} from {self.endpoint}")

        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", path, data=self._run_form(request, stream=True), files=self._run_files(request)
                ) as response:
                    if response.is_error:
                        await response.aread()
                        raise self._error_from_response(response)

                    async for text in response.aiter_text():
                        for event in parser.feed(text):
                            yield event

            for event in parser.close():
                yield event
        except httpx.RequestError as e:
            logger.error(f"Agno stream for agent {agent_id} failed: {e}")
            raise AgnoAPIError(f"Failed to connect to Agno API: {e}", status_code=503) from e

    async def stream_response(
        self,
        agent_id: str,
        request: AgnoRunRequest,
        on_chunk: Callable[[RunResponse], Awaitable[None]],
        on_error: Callable[[AgnoAPIError], Awaitable[None]],
        on_complete: Callable[[], Awaitable[None]]
    ) -> None:
        """Callback flavour of stream_run(): transport errors go to on_error exactly once"""
        try:
            async for event in self.stream_run(agent_id, request):
                await on_chunk(event)
        except AgnoAPIError as e:
            await on_error(e)
            return
        await on_complete()

    async def get_agent_sessions(self, agent_id: str, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"user_id": user_id} if user_id else None
        try:
            response = await self._request("GET", AgnoAPIRoutes.sessions(agent_id), params=params)
        except AgnoAPIError as e:
            if e.status_code == 404:
                # Agents without storage have no sessions endpoint
                return []
            raise
        return response.json() if response.content else []

    async def get_session(self, agent_id: str, session_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        params = {"user_id": user_id} if user_id else None
        response = await self._request("GET", AgnoAPIRoutes.session(agent_id, session_id), params=params)
        return response.json()

    async def delete_session(self, agent_id: str, session_id: str, user_id: Optional[str] = None) -> None:
        params = {"user_id": user_id} if user_id else None
        await self._request("DELETE", AgnoAPIRoutes.session(agent_id, session_id), params=params)
        logger.info(f"Deleted session {session_id} of agent {agent_id}")

    async def rename_session(self, agent_id: str, session_id: str, name: str,
                             user_id: Optional[str] = None) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            AgnoAPIRoutes.rename_session(agent_id, session_id),
            json={"name": name, "user_id": user_id}
        )
        return response.json() if response.content else {}

    async def get_agent_memories(self, agent_id: str, user_id: str) -> List[Dict[str, Any]]:
        try:
            response = await self._request("GET", AgnoAPIRoutes.memories(agent_id), params={"user_id": user_id})
        except AgnoAPIError as e:
            if e.status_code == 404:
                # Agents without memory
                return []
            raise
        return response.json() if response.content else []

    async def check_health(self) -> Dict[str, Any]:
        response = await self._request("GET", AgnoAPIRoutes.health())
        return response.json() if response.content else {"status": "ok"}
