from fastapi import FastAPI, HTTPException, File, Form, UploadFile, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ConfigDict
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Optional
import logging
import uuid

from models import ImageListResponse, UploadResponse, DeleteResponse, HealthResponse
from image_store import ImageStore, InvalidImageError, ImageNotFoundError

# Billboard module imports
from billboard import (
    BillboardExporter,
    ExportBusyError,
    ExportError,
    FontRegistry,
    ImageLoader,
    ImageLoadError,
    SessionStore,
    get_overlay_config,
)
from billboard.session import (
    BillboardSession,
    SessionError,
    SessionNotFoundError,
    ElementNotFoundError,
)
from billboard.api_models import (
    AddImageRequest,
    CreateSessionRequest,
    ExportRequest,
    FontSizeRequest,
    MoveRequest,
    OverlayResponse,
    ResizeRequest,
    SelectRequest,
    SessionStateResponse,
    TextUpdateRequest,
)

# Logging setup
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    public_dir: str = "public"  # Serves /images/... and holds the background
    background_path: Optional[str] = None  # Defaults to <public_dir>/billboard.png
    fonts_dir: str = "fonts"
    image_load_timeout: float = 30.0  # Seconds per image fetch + decode
    font_load_timeout: float = 10.0
    export_dir: str = "/tmp/billboards"

    model_config = ConfigDict(env_file=".env", extra="ignore")

    @property
    def background_file(self) -> Path:
        if self.background_path:
            return Path(self.background_path)
        return Path(self.public_dir) / "billboard.png"


settings = Settings()
app = FastAPI(title="Billboard Generator", version="1.0.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount(
    "/images",
    StaticFiles(directory=str(Path(settings.public_dir) / "images"), check_dir=False),
    name="images",
)

# Initialize services
image_store = ImageStore(settings.public_dir)
image_loader = ImageLoader(settings.public_dir, timeout=settings.image_load_timeout)
font_registry = FontRegistry(settings.fonts_dir)
sessions = SessionStore()
exporter = BillboardExporter(
    background_path=settings.background_file,
    fonts=font_registry,
    loader=image_loader,
    font_timeout=settings.font_load_timeout,
)


def _session_http_error(e: SessionError) -> HTTPException:
    if isinstance(e, (SessionNotFoundError, ElementNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _get_session(session_id: str) -> BillboardSession:
    try:
        return sessions.get(session_id)
    except SessionNotFoundError as e:
        raise _session_http_error(e)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="healthy", service="billboard-generator")


# ==================== IMAGE LIBRARY ENDPOINTS ====================

def _list_bucket(bucket: str):
    try:
        return ImageListResponse(images=image_store.list_images(bucket))
    except OSError as e:
        logger.error(f"Error reading {bucket} images: {e}")
        return JSONResponse({"images": []}, status_code=500)


@app.get("/api/people-images", response_model=ImageListResponse)
async def list_people_images():
    """Uploaded people images, as public URLs."""
    return _list_bucket("people")


@app.get("/api/logos", response_model=ImageListResponse)
async def list_logos():
    """Uploaded logo images, as public URLs."""
    return _list_bucket("logos")


@app.post("/api/upload", response_model=UploadResponse)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    type: str = Form("logos"),
):
    """
    Upload an image into the people or logos bucket.

    Accepts JPEG, PNG, GIF, WEBP and SVG. Returns the public URL.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    try:
        content = await file.read()
        url = image_store.save_upload(file.filename, file.content_type, content, type)
        return UploadResponse(url=url)
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        logger.error(f"Error uploading file: {e}")
        raise HTTPException(status_code=500, detail="Upload failed")


@app.delete("/api/delete-image", response_model=DeleteResponse)
async def delete_image(path: Optional[str] = None):
    """Delete an uploaded image by its /images/... URL."""
    try:
        image_store.delete_image(path or "")
        return DeleteResponse()
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ImageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OSError as e:
        logger.error(f"Error deleting image: {e}")
        raise HTTPException(status_code=500, detail="Delete failed")


# ==================== EDITOR SESSION ENDPOINTS ====================

@app.get("/api/billboard/overlay", response_model=OverlayResponse)
async def get_overlay():
    """Clip path, gradient and editable area shared with the export."""
    return OverlayResponse(**get_overlay_config())


@app.post("/api/sessions", response_model=SessionStateResponse)
async def create_session(request: Optional[CreateSessionRequest] = None):
    bounds = request.bounds.to_bounds() if request and request.bounds else None
    session = sessions.create()
    if bounds:
        try:
            session.update_bounds(bounds)
        except SessionError as e:
            sessions.remove(session.id)
            raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.get("/api/sessions/{session_id}", response_model=SessionStateResponse)
async def get_session(session_id: str):
    return SessionStateResponse.from_session(_get_session(session_id))


@app.delete("/api/sessions/{session_id}")
async def end_session(session_id: str):
    try:
        sessions.remove(session_id)
    except SessionNotFoundError as e:
        raise _session_http_error(e)
    return {"status": "deleted", "session_id": session_id}


@app.put("/api/sessions/{session_id}/bounds", response_model=SessionStateResponse)
async def update_bounds(session_id: str, request: CreateSessionRequest):
    """Report fresh billboard bounds (on load and on viewport resize)."""
    session = _get_session(session_id)
    if request.bounds is None:
        raise HTTPException(status_code=400, detail="No bounds provided")
    try:
        session.update_bounds(request.bounds.to_bounds())
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


async def _add_image_element(session_id: str, request: AddImageRequest, kind: str):
    session = _get_session(session_id)
    try:
        image = await image_loader.load(request.image_url)
    except ImageLoadError as e:
        logger.warning(f"Cannot add {kind}: {e}")
        raise HTTPException(status_code=400, detail=f"Failed to load image: {e}")

    try:
        if kind == "person":
            session.add_person(request.image_url, image.size)
        else:
            session.add_logo(request.image_url, image.size)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.post("/api/sessions/{session_id}/elements/person", response_model=SessionStateResponse)
async def add_person(session_id: str, request: AddImageRequest):
    return await _add_image_element(session_id, request, "person")


@app.post("/api/sessions/{session_id}/elements/logo", response_model=SessionStateResponse)
async def add_logo(session_id: str, request: AddImageRequest):
    return await _add_image_element(session_id, request, "logo")


@app.post("/api/sessions/{session_id}/elements/text", response_model=SessionStateResponse)
async def add_text(session_id: str):
    session = _get_session(session_id)
    try:
        session.add_text()
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.post("/api/sessions/{session_id}/select", response_model=SessionStateResponse)
async def select_element(session_id: str, request: SelectRequest):
    session = _get_session(session_id)
    try:
        session.select(request.element_id)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.put("/api/sessions/{session_id}/elements/{element_id}/move", response_model=SessionStateResponse)
async def move_element(session_id: str, element_id: str, request: MoveRequest):
    session = _get_session(session_id)
    try:
        session.move(element_id, request.x, request.y)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.post("/api/sessions/{session_id}/elements/{element_id}/resize/start", response_model=SessionStateResponse)
async def begin_resize(session_id: str, element_id: str):
    """Corner drag started (mousedown); later resizes measure from this box."""
    session = _get_session(session_id)
    try:
        session.begin_resize(element_id)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.post("/api/sessions/{session_id}/resize/end", response_model=SessionStateResponse)
async def end_resize(session_id: str):
    session = _get_session(session_id)
    session.end_resize()
    return SessionStateResponse.from_session(session)


@app.put("/api/sessions/{session_id}/elements/{element_id}/resize", response_model=SessionStateResponse)
async def resize_element(session_id: str, element_id: str, request: ResizeRequest):
    session = _get_session(session_id)
    try:
        session.resize(element_id, request.corner, request.delta_x)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.put("/api/sessions/{session_id}/elements/{element_id}/text", response_model=SessionStateResponse)
async def update_text(session_id: str, element_id: str, request: TextUpdateRequest):
    session = _get_session(session_id)
    try:
        session.update_text(element_id, request.html_content)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.put("/api/sessions/{session_id}/elements/{element_id}/font-size", response_model=SessionStateResponse)
async def update_font_size(session_id: str, element_id: str, request: FontSizeRequest):
    session = _get_session(session_id)
    try:
        session.update_font_size(element_id, request.font_size)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.delete("/api/sessions/{session_id}/elements/{element_id}", response_model=SessionStateResponse)
async def delete_element(session_id: str, element_id: str):
    session = _get_session(session_id)
    try:
        session.delete(element_id)
    except SessionError as e:
        raise _session_http_error(e)
    return SessionStateResponse.from_session(session)


@app.delete("/api/sessions/{session_id}/selected", response_model=SessionStateResponse)
async def delete_selected(session_id: str):
    session = _get_session(session_id)
    session.delete_selected()
    return SessionStateResponse.from_session(session)


# ==================== EXPORT ENDPOINT ====================

@app.post("/api/sessions/{session_id}/export")
async def export_billboard(session_id: str, request: Optional[ExportRequest] = None):
    """
    Render the billboard as a high resolution PNG.

    Bounds measured at save time should be sent with the request; the
    session's last reported bounds are used otherwise.

    Returns:
        billboard-hq.png as a download
    """
    import traceback

    session = _get_session(session_id)
    bounds = request.bounds.to_bounds() if request and request.bounds else session.bounds
    if bounds is None:
        raise HTTPException(status_code=400, detail="Billboard bounds have not been reported yet")

    try:
        logger.info(f"Exporting session {session_id[:8]} with {len(session.elements)} elements")
        result = await exporter.export(session.snapshot(), bounds)

        # Save to temp file
        output_dir = Path(settings.export_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"billboard_{uuid.uuid4().hex[:8]}.png"
        output_path.write_bytes(result.data)

        logger.info(f"Billboard exported: {output_path} ({result.width}x{result.height})")

        # Remove the temp file once the download has been sent
        cleanup = BackgroundTasks()
        cleanup.add_task(output_path.unlink, missing_ok=True)

        return FileResponse(
            path=str(output_path),
            media_type=result.media_type,
            filename=result.filename,
            background=cleanup,
        )

    except ExportBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ExportError as e:
        raise HTTPException(status_code=500, detail=e.message)
    except Exception as e:
        tb = traceback.format_exc()
        logger.error(f"Export error: {e}")
        logger.error(f"Traceback:\n{tb}")
        raise HTTPException(status_code=500, detail="Failed to save image")
