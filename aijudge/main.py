import json
from typing import List, Optional

from fastapi import APIRouter, FastAPI, File, Form, HTTPException, Query, Request, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import documents, services
from .cases import CaseStore, ensure_can_argue, ensure_ready_for_verdict, validate_case_id
from .config import Settings, get_settings
from .errors import AIJudgeError, DocumentParseError, StorageError
from .logger import get_logger, setup_logging
from .models import ArgumentCreate, CaseCreate, CaseStatus, Document, SearchCriteria
from .rooms import ConnectionManager
from .storage import LocalFileStorage, build_storage

logger = get_logger(__name__)

router = APIRouter(prefix="/api")
ws_router = APIRouter()


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _cases(request: Request) -> CaseStore:
    return request.app.state.cases


# ---- HEALTH CHECK ----
@router.get("/health")
def health_check(request: Request):
    return {
        "status": "OK",
        "message": "AI Judge Server is running",
        "aiConfigured": _settings(request).ai_configured,
    }


# ---- CASE CREATION ----
@router.post("/case", status_code=201)
def create_case(payload: CaseCreate, request: Request):
    """Create a new, empty case"""
    case = _cases(request).create_case(payload)
    return _dump(case)


# ---- GET SINGLE CASE ----
@router.get("/case/{case_id}")
def get_case(case_id: str, request: Request):
    return _dump(_cases(request).require_case(case_id))


# ---- DELETE CASE ----
@router.delete("/case/{case_id}")
def delete_case(case_id: str, request: Request):
    if not _cases(request).delete_case(case_id):
        raise HTTPException(status_code=404, detail="Case not found")
    return {"message": "Case deleted", "caseId": case_id}


# ---- VERDICT ----
@router.post("/case/{case_id}/verdict")
async def request_verdict(case_id: str, request: Request):
    """Ask the AI judge for a verdict once both sides have submitted documents"""
    store = _cases(request)
    case = store.require_case(case_id)
    ensure_ready_for_verdict(case)

    verdict = await run_in_threadpool(services.generate_verdict, case, _settings(request))
    store.set_verdict(case_id, verdict)

    payload = _dump(verdict)
    await request.app.state.rooms.broadcast(case_id, "verdictRendered", payload)
    return {"message": "Verdict rendered", "caseId": case_id, "verdict": payload}


# ---- FOLLOW-UP ARGUMENTS ----
@router.post("/case/{case_id}/argument")
async def submit_argument(case_id: str, payload: ArgumentCreate, request: Request):
    """Submit a follow-up argument for one side and get the judge's response"""
    settings = _settings(request)
    store = _cases(request)
    text = payload.argument.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Argument text is required")

    case = store.require_case(case_id)
    limit = settings.max_arguments_per_side
    ensure_can_argue(case, payload.side, limit)
    used = len(case.arguments_for(payload.side))

    ai_response = await run_in_threadpool(services.respond_to_argument, case, payload.side, text, settings)
    entry = store.add_argument(case_id, payload.side, text, ai_response)
    logger.info(f"Argument {used + 1}/{limit} recorded", case_id=case_id, side=payload.side)

    argument = _dump(entry)
    await request.app.state.rooms.broadcast(case_id, "newArgument", argument)
    return {
        "message": "Argument submitted",
        "caseId": case_id,
        "argument": argument,
        "argumentsRemaining": limit - used - 1,
    }


# ---- CASE SUMMARY ----
@router.get("/case/{case_id}/summary")
async def get_case_summary(case_id: str, request: Request):
    case = _cases(request).require_case(case_id)
    summary = await run_in_threadpool(services.generate_case_summary, case, _settings(request))
    return {"caseId": case_id, "summary": summary}


# ---- DOCUMENT UPLOAD ----
async def _upload_side(request: Request, side: str, case_id: str, description: Optional[str],
                       files: Optional[List[UploadFile]]):
    settings = _settings(request)
    label = f"Side {side}"
    validate_case_id(case_id)
    files = [f for f in (files or []) if f.filename]

    logger.info(f"[{label}] Upload request, files: {len(files)}", case_id=case_id)
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > settings.max_files_per_upload:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum is {settings.max_files_per_upload} files per upload.",
        )

    received = []
    for upload in files:
        content = await upload.read()
        if len(content) > settings.max_file_size:
            raise HTTPException(
                status_code=400,
                detail=f"File too large. Maximum size is {settings.max_file_size_mb}MB.",
            )
        mimetype = documents.resolve_mimetype(upload.filename, upload.content_type)
        received.append((upload.filename, mimetype, content))

    # parse the whole batch before storing any of it
    texts = []
    parsed = []
    try:
        for filename, mimetype, content in received:
            logger.info(f"[{label}] Parsing {filename}, MIME: {mimetype}, size: {len(content)}", case_id=case_id)
            texts.append(await run_in_threadpool(documents.extract_text, content, mimetype))

        for (filename, mimetype, content), text in zip(received, texts):
            stored = await request.app.state.storage.save(content, filename, mimetype, case_id, side)
            parsed.append(Document(
                filename=filename,
                mimetype=mimetype,
                size=len(content),
                extracted_text=text,
                word_count=documents.count_words(text),
                pages=documents.count_pdf_pages(content) if mimetype == documents.PDF else None,
                file_url=stored.file_url,
                path=stored.storage_path,
            ))
    except (DocumentParseError, StorageError) as e:
        logger.error(f"[{label}] Error processing upload: {e}", case_id=case_id)
        raise HTTPException(status_code=500, detail="Failed to process uploaded documents") from e

    case = _cases(request).add_documents_to_side(case_id, side, description, parsed)
    logger.info(f"[{label}] Case updated, status: {case.status.value}", case_id=case_id)

    return {
        "message": f"Documents uploaded and processed for {label}",
        "caseId": case.case_id,
        "status": case.status.value,
        "documentsProcessed": len(parsed),
        "documents": [
            {"filename": doc.filename, "size": doc.size, "textLength": len(doc.extracted_text)}
            for doc in parsed
        ],
    }


@router.post("/upload/side-a")
async def upload_side_a(
    request: Request,
    case_id: str = Form(..., alias="caseId"),
    description: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None, alias="documents"),
):
    return await _upload_side(request, "A", case_id, description, files)


@router.post("/upload/side-b")
async def upload_side_b(
    request: Request,
    case_id: str = Form(..., alias="caseId"),
    description: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None, alias="documents"),
):
    return await _upload_side(request, "B", case_id, description, files)


# ---- LISTING / SEARCH / STATS ----
@router.get("/cases")
def list_cases(request: Request):
    cases = _cases(request).list_cases()
    return {"cases": [_dump(c) for c in cases], "count": len(cases)}


@router.get("/cases/search")
def search_cases(
    request: Request,
    status: Optional[CaseStatus] = None,
    country: Optional[str] = None,
    case_type: Optional[str] = Query(None, alias="caseType"),
    title: Optional[str] = None,
    has_verdict: Optional[bool] = Query(None, alias="hasVerdict"),
):
    criteria = SearchCriteria(
        status=status, country=country, case_type=case_type, title=title, has_verdict=has_verdict,
    )
    cases = _cases(request).search_cases(criteria)
    return {"cases": [_dump(c) for c in cases], "count": len(cases)}


@router.get("/stats")
def get_stats(request: Request):
    return _dump(_cases(request).get_statistics())


# ---- CASE ROOMS ----
@ws_router.websocket("/ws")
async def case_events(websocket: WebSocket):
    """Clients send {"action": "joinCase"|"leaveCase", "caseId": ...}"""
    rooms: ConnectionManager = websocket.app.state.rooms
    await websocket.accept()
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            # binary frames carry "bytes" instead of "text"
            raw = frame.get("text")
            try:
                message = json.loads(raw) if raw is not None else None
            except ValueError:
                message = None
            if not isinstance(message, dict):
                await websocket.send_json({"event": "error", "message": "Messages must be JSON objects"})
                continue

            action, case_id = message.get("action"), message.get("caseId")
            if action == "joinCase" and case_id:
                rooms.join(str(case_id), websocket)
                await websocket.send_json({"event": "joinedCase", "caseId": case_id})
            elif action == "leaveCase" and case_id:
                rooms.leave(str(case_id), websocket)
                await websocket.send_json({"event": "leftCase", "caseId": case_id})
            else:
                await websocket.send_json({"event": "error", "message": f"Unknown action: {action}"})
    except WebSocketDisconnect:
        pass
    finally:
        rooms.disconnect(websocket)


# ---- ERROR HANDLERS ----
async def handle_domain_error(request: Request, exc: AIJudgeError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Endpoint not found"
    return JSONResponse(status_code=exc.status_code, content={"error": detail}, headers=exc.headers)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.environment)

    app = FastAPI(title="AI Judge API", description="AI-rendered verdicts for two-party cases")
    app.state.settings = settings
    app.state.cases = CaseStore(settings.cases_dir)
    app.state.storage = build_storage(settings)
    app.state.rooms = ConnectionManager()

    origins = list(dict.fromkeys(settings.cors_origins + [settings.frontend_url]))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AIJudgeError, handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(router)
    app.include_router(ws_router)

    if isinstance(app.state.storage, LocalFileStorage):
        app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    logger.info(f"Case data directory: {settings.cases_dir}")
    if settings.ai_configured:
        logger.info(f"AI model configured: {settings.ai_model}")
    else:
        logger.warning("OPENROUTER_API_KEY not set; verdict and argument endpoints will answer 503")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
