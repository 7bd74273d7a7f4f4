import json
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

import sys
import os

try:
    from .models import (
        AgnoRunRequest, ExtendedAgentConfig, RunFile, SessionRenameRequest,
        ValidateConfigRequest, ValidationResult
    )
    from .capabilities import MODEL_CAPABILITIES, get_capabilities
    from .validation import AgentConfigValidator
    from .agno_client import AgnoAPIClient, AgnoAPIError, get_agno_endpoint
except ImportError:
    sys.path.append(os.path.dirname(__file__))
    from models import (
        AgnoRunRequest, ExtendedAgentConfig, RunFile, SessionRenameRequest,
        ValidateConfigRequest, ValidationResult
    )
    from capabilities import MODEL_CAPABILITIES, get_capabilities
    from validation import AgentConfigValidator
    from agno_client import AgnoAPIClient, AgnoAPIError, get_agno_endpoint

load_dotenv()

app = FastAPI(
    title="Agno Playground API",
    description="Agent configuration validation and Agno runtime proxy for the playground control panel",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def create_agno_client(endpoint: str, authorization: Optional[str] = None) -> AgnoAPIClient:
    return AgnoAPIClient(endpoint, authorization=authorization)


def require_endpoint(endpoint: Optional[str]) -> str:
    """Check the Agno endpoint passed by the UI, 400 when missing or not an http(s) URL"""
    if not endpoint:
        raise HTTPException(status_code=400, detail="Missing endpoint parameter")

    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise HTTPException(status_code=400, detail="Invalid endpoint URL")
    return endpoint


def agno_http_error(e: AgnoAPIError) -> HTTPException:
    return HTTPException(status_code=e.status_code or 502, detail=e.message)


FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def build_run_request(fields: Dict[str, Any], files: Optional[List[RunFile]] = None) -> AgnoRunRequest:
    if not str(fields.get("message") or "").strip():
        raise HTTPException(status_code=400, detail="Please provide a 'message' field in your request")
    try:
        return AgnoRunRequest(**{**fields, "files": files or []})
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=[{"loc": list(error["loc"]), "msg": error["msg"]} for error in e.errors()]
        )


async def parse_run_request(request: Request) -> AgnoRunRequest:
    """Accept a JSON run request, a form (with optional file parts) or a plain text message"""
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Please provide a 'message' field in your JSON request")
        return build_run_request(body)

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields: Dict[str, Any] = {}
        files: List[RunFile] = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                files.append(RunFile(
                    field=key,
                    filename=value.filename or key,
                    content=await value.read(),
                    content_type=value.content_type or "application/octet-stream"
                ))
            else:
                fields[key] = value
        return build_run_request(fields, files)

    try:
        message = (await request.body()).decode("utf-8").strip()
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Message body is not valid UTF-8 text")
    if not message:
        raise HTTPException(status_code=400, detail="Empty message provided")
    return AgnoRunRequest(message=message)


@app.get("/")
async def root():
    return {
        "message": "Agno Playground API",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "agno_endpoint": get_agno_endpoint(),
        "known_models": len(MODEL_CAPABILITIES)
    }

# Model capabilities

@app.get("/models/capabilities")
async def list_model_capabilities():
    return {model_id: caps.model_dump() for model_id, caps in MODEL_CAPABILITIES.items()}

@app.get("/models/{model_id}/capabilities")
async def get_model_capabilities(model_id: str):
    capabilities = get_capabilities(model_id)
    if capabilities is None:
        raise HTTPException(status_code=404, detail=f"Unknown model '{model_id}'")
    return capabilities.model_dump()

# Agent configuration

@app.post("/agents/validate", response_model=ValidationResult)
async def validate_agent_config(body: ValidateConfigRequest):
    """Validate an agent configuration against its model and attached tools"""
    result = AgentConfigValidator.validate_config(body.model, body.agent_config, body.tool_ids)
    logger.info(
        f"Validated config for model {body.model.id}: "
        f"{len(result.errors)} errors, {len(result.warnings)} warnings, {len(result.suggestions)} suggestions"
    )
    return result

@app.get("/agents/recommendations/{agent_type}")
async def get_agent_recommendations(agent_type: str):
    return {
        "agent_type": agent_type,
        "agent_config": AgentConfigValidator.get_recommendations_for_agent_type(agent_type)
    }

@app.post("/agents/auto-configure")
async def auto_configure_agent(config: ExtendedAgentConfig):
    """Switch on the dependencies of every enabled feature"""
    configured = AgentConfigValidator.auto_configure_dependencies(config)
    return configured.model_dump(exclude_none=True, by_alias=True)

# Agno runtime proxy

@app.post("/agno/agents/{agent_id}/runs")
async def stream_agent_run(agent_id: str, request: Request, endpoint: Optional[str] = None):
    """Run an agent on the Agno runtime and relay its events via Server-Sent Events"""
    base_url = require_endpoint(endpoint)
    run_request = await parse_run_request(request)
    client = create_agno_client(base_url, authorization=request.headers.get("authorization"))

    async def event_generator():
        """Generate SSE events for decoded run events"""
        try:
            async for event in client.stream_run(agent_id, run_request):
                yield f"data: {event.model_dump_json(exclude_none=True)}\n\n"
            yield "data: [DONE]\n\n"
        except AgnoAPIError as e:
            logger.error(f"Error in run stream for agent {agent_id}: {e.message}")
            yield f"data: {json.dumps({'error': e.message, 'status_code': e.status_code})}\n\n"
        except Exception as e:
            logger.error(f"Unexpected error in run stream for agent {agent_id}: {e}")
            yield f"data: {json.dumps({'error': str(e), 'status_code': 500})}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive"
        }
    )

@app.get("/agno/agents/{agent_id}/sessions")
async def list_agent_sessions(agent_id: str, endpoint: Optional[str] = None, user_id: Optional[str] = None):
    client = create_agno_client(require_endpoint(endpoint))
    try:
        return await client.get_agent_sessions(agent_id, user_id)
    except AgnoAPIError as e:
        logger.warning(f"Sessions proxy failed for agent {agent_id}: {e.message}")
        raise agno_http_error(e)

@app.get("/agno/agents/{agent_id}/sessions/{session_id}")
async def get_agent_session(agent_id: str, session_id: str, endpoint: Optional[str] = None,
                            user_id: Optional[str] = None):
    client = create_agno_client(require_endpoint(endpoint))
    try:
        return await client.get_session(agent_id, session_id, user_id)
    except AgnoAPIError as e:
        logger.warning(f"Session proxy failed for {agent_id}/{session_id}: {e.message}")
        raise agno_http_error(e)

@app.delete("/agno/agents/{agent_id}/sessions/{session_id}")
async def delete_agent_session(agent_id: str, session_id: str, endpoint: Optional[str] = None,
                               user_id: Optional[str] = None):
    client = create_agno_client(require_endpoint(endpoint))
    try:
        await client.delete_session(agent_id, session_id, user_id)
    except AgnoAPIError as e:
        logger.warning(f"Session delete failed for {agent_id}/{session_id}: {e.message}")
        raise agno_http_error(e)
    return {"message": f"Session {session_id} deleted successfully"}

@app.post("/agno/agents/{agent_id}/sessions/{session_id}/rename")
async def rename_agent_session(agent_id: str, session_id: str, body: SessionRenameRequest,
                               endpoint: Optional[str] = None):
    client = create_agno_client(require_endpoint(endpoint))
    try:
        return await client.rename_session(agent_id, session_id, body.name, body.user_id)
    except AgnoAPIError as e:
        logger.warning(f"Session rename failed for {agent_id}/{session_id}: {e.message}")
        raise agno_http_error(e)

@app.get("/agno/agents/{agent_id}/memories")
async def list_agent_memories(agent_id: str, endpoint: Optional[str] = None, user_id: Optional[str] = None):
    base_url = require_endpoint(endpoint)
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing user_id parameter")

    client = create_agno_client(base_url)
    try:
        return await client.get_agent_memories(agent_id, user_id)
    except AgnoAPIError as e:
        logger.warning(f"Memories proxy failed for agent {agent_id}: {e.message}")
        raise agno_http_error(e)

@app.get("/agno/health")
async def agno_health(endpoint: Optional[str] = None) -> Dict[str, Any]:
    client = create_agno_client(require_endpoint(endpoint))
    try:
        return await client.check_health()
    except AgnoAPIError as e:
        logger.warning(f"Agno health check failed for {endpoint}: {e.message}")
        raise agno_http_error(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
