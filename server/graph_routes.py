"""API routes for editing the conversation graph of the running session."""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel

from promptree.errors import DanglingEdgeError, DuplicateIdError, ImportParseError
from promptree.graph.serializer import json_filename, tree_filename
from promptree.models.graph import Edge, Node
from promptree.session import ConversationSession

router = APIRouter()


class GraphState(BaseModel):
    """response body describing the whole session state."""

    nodes: list[Node]
    edges: list[Edge]
    selected_ids: list[str]
    response_count: int


class SelectionRequest(BaseModel):
    node_ids: list[str]


class ContentRequest(BaseModel):
    content: str


class ResponseCountRequest(BaseModel):
    response_count: int


class PromptRequest(BaseModel):
    text: str


class PromptResponse(BaseModel):
    """placeholders created for a prompt; they fill in once the batch settles."""

    prompt_id: str
    completion_ids: list[str]
    graph: GraphState


class ConnectRequest(BaseModel):
    source: str
    target: str


class SystemPromptResponse(BaseModel):
    output: str


def _session(request: Request) -> ConversationSession:
    return request.app.state.session


def _state(session: ConversationSession) -> GraphState:
    snapshot = session.store.snapshot()
    return GraphState(
        nodes=list(snapshot.nodes),
        edges=list(snapshot.edges),
        selected_ids=[node.id for node in session.find_selected()],
        response_count=session.response_count,
    )


def _attachment(body: str, filename: str, media_type: str) -> Response:
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/graph")
async def get_graph(request: Request) -> GraphState:
    """get nodes, edges, selection and response count."""
    return _state(_session(request))


@router.post("/selection")
async def select_nodes(request: Request, body: SelectionRequest) -> GraphState:
    """replace the current selection."""
    session = _session(request)
    session.select(body.node_ids)
    return _state(session)


@router.put("/selection/content")
async def update_selected_content(request: Request, body: ContentRequest) -> GraphState:
    """edit the content of the selected node(s)."""
    session = _session(request)
    if not session.find_selected():
        raise HTTPException(status_code=400, detail="No node selected")
    session.update_selected_content(body.content)
    return _state(session)


@router.delete("/selection")
async def delete_selected(request: Request) -> dict:
    """delete the selected nodes together with all their descendants."""
    removed = _session(request).delete_selected()
    return {"deleted": sorted(removed)}


@router.put("/settings/response-count")
async def set_response_count(request: Request, body: ResponseCountRequest) -> GraphState:
    session = _session(request)
    try:
        session.set_response_count(body.response_count)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _state(session)


@router.post("/nodes/system")
async def add_system_node(request: Request) -> Node:
    """start a new conversation root."""
    return _session(request).add_system_node()


@router.post("/edges")
async def connect_nodes(request: Request, body: ConnectRequest) -> Edge:
    """manually connect two nodes."""
    try:
        return _session(request).connect(body.source, body.target)
    except (DanglingEdgeError, DuplicateIdError) as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/prompts")
async def submit_prompt(
    request: Request,
    body: PromptRequest,
    background_tasks: BackgroundTasks,
) -> PromptResponse:
    """add a prompt under the selected node.

    Placeholders are returned immediately; the completions are generated
    after the response is sent.
    """
    session = _session(request)
    batch = session.stage_new_prompt(body.text)
    if batch is None:
        raise HTTPException(status_code=400, detail="No node selected")
    background_tasks.add_task(session.settle, batch)
    return PromptResponse(
        prompt_id=batch.prompt_id,
        completion_ids=batch.completion_ids,
        graph=_state(session),
    )


@router.post("/system-prompt")
async def run_system_prompt(request: Request) -> SystemPromptResponse:
    """send the system instructions to the generation backend."""
    try:
        output = await _session(request).run_system_prompt()
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Generation failed: {e}")
    if output is None:
        raise HTTPException(status_code=404, detail="No system prompt to send")
    return SystemPromptResponse(output=output)


@router.get("/export/json")
async def export_json(request: Request) -> Response:
    """download the graph as a JSON save file."""
    body = _session(request).export_json()
    return _attachment(body, json_filename(), "application/json")


@router.get("/export/tree")
async def export_tree(request: Request) -> Response:
    """download the conversation as an indented text tree."""
    body = _session(request).export_tree_text()
    if body is None:
        raise HTTPException(status_code=404, detail="No system node to export from")
    return _attachment(body, tree_filename(), "text/plain")


@router.post("/import")
async def import_graph(request: Request) -> GraphState:
    """merge a JSON save file (raw request body) into the graph."""
    session = _session(request)
    raw = await request.body()
    try:
        session.import_json(raw)
    except ImportParseError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (DanglingEdgeError, DuplicateIdError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state(session)
