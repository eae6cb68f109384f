"""
ImageTrim FastAPI backend
Serves the border trimmer as a REST API: upload sessions for browser use and
a folder-to-folder transfer for local runs.
"""

import base64
import io
import logging
import mimetypes
import os
import tempfile
import uuid

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from PIL import Image

from . import __version__
from .config import CONFIG_FILE, AppConfig, load_config, save_config
from .core.batch import IMAGE_EXTS, TransferConfig, run_batch
from .core.color import DEFAULT_THRESHOLD

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App Setup
# ---------------------------------------------------------------------------
app = FastAPI(title="ImageTrim", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

CONFIG_PATH = os.environ.get("IMAGETRIM_CONFIG", CONFIG_FILE)

# Temp storage for uploads and processed files
UPLOAD_DIR = os.path.join(tempfile.gettempdir(), "imagetrim_uploads")
OUTPUT_DIR = os.path.join(tempfile.gettempdir(), "imagetrim_output")


def _make_thumbnail(img_path, max_size=300):
    """Create a base64-encoded JPEG thumbnail, or None if the file is unreadable."""
    try:
        with Image.open(img_path) as img:
            img = img.convert("RGB")
            img.thumbnail((max_size, max_size), Image.LANCZOS)
            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=70)
    except OSError as e:
        logger.warning("No thumbnail for %s: %s", img_path, e)
        return None
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


def _session_dir(root, session_id):
    if os.path.basename(session_id) != session_id or session_id in ("", ".", ".."):
        raise HTTPException(status_code=400, detail="Invalid session id")
    return os.path.join(root, session_id)


def _transfer_payload(result):
    return {
        "total": result.total,
        "images": result.images,
        "updated": result.updated,
        "summary": result.summary,
        "cancelled": result.cancelled,
        "error": result.error,
        "results": result.results,
        "log": result.log,
    }


# ---------------------------------------------------------------------------
# API Routes
# ---------------------------------------------------------------------------

@app.get("/api/status")
def health_check():
    return {"status": "ok", "engine": "rotate-scan-crop", "version": __version__}


@app.get("/api/config")
def get_config():
    return load_config(CONFIG_PATH).to_dict()


@app.post("/api/config")
def update_config(
    src_dir: str = Form(""),
    dst_dir: str = Form(""),
    allow_color: bool = Form(False),
    threshold: int = Form(DEFAULT_THRESHOLD),
    window_width: int = Form(800),
    window_height: int = Form(600),
):
    """Persist settings. The threshold is clamped to [0, 200] before saving."""
    conf = AppConfig(
        SrcDir=src_dir,
        DstDir=dst_dir,
        AllowColor=allow_color,
        Threshold=threshold,
        WindowWidth=window_width,
        WindowHeight=window_height,
    )
    try:
        save_config(conf, CONFIG_PATH)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Could not save settings: {e}") from e
    return conf.to_dict()


@app.post("/api/upload")
async def upload_files(files: list[UploadFile] = File(...)):
    """
    Upload image files. Returns a session ID and file list with thumbnails.
    """
    session_id = str(uuid.uuid4())[:8]
    session_dir = _session_dir(UPLOAD_DIR, session_id)
    os.makedirs(session_dir, exist_ok=True)

    uploaded = []

    for f in files:
        filename = os.path.basename(f.filename or "")
        ext = os.path.splitext(filename)[1].lower()
        if ext not in IMAGE_EXTS:
            continue

        file_path = os.path.join(session_dir, filename)
        content = await f.read()
        with open(file_path, "wb") as out:
            out.write(content)

        try:
            with Image.open(file_path) as img:
                w, h = img.size
        except OSError:
            w = h = None

        uploaded.append({
            "filename": filename,
            "width": w,
            "height": h,
            "size_kb": round(len(content) / 1024, 1),
            "thumbnail": _make_thumbnail(file_path),
        })

    return {
        "session_id": session_id,
        "count": len(uploaded),
        "files": uploaded,
    }


@app.post("/api/trim")
def trim_session(
    session_id: str = Form(...),
    threshold: int = Form(DEFAULT_THRESHOLD),
    allow_color: bool = Form(False),
):
    """
    Trim all uploaded images in a session.
    Returns results with thumbnails of the trimmed images.
    """
    session_dir = _session_dir(UPLOAD_DIR, session_id)
    if not os.path.isdir(session_dir):
        raise HTTPException(status_code=404, detail="Session not found")

    output_dir = _session_dir(OUTPUT_DIR, session_id)
    config = TransferConfig(session_dir, output_dir, allow_color, threshold)
    result = run_batch(config)

    for r in result.results:
        if r["success"]:
            r["trimmed_thumbnail"] = _make_thumbnail(os.path.join(output_dir, r["filename"]))

    payload = _transfer_payload(result)
    payload["session_id"] = session_id
    return payload


@app.get("/api/download/{session_id}/{filename}")
def download_file(session_id: str, filename: str):
    """Download a single trimmed image."""
    if os.path.basename(filename) != filename:
        raise HTTPException(status_code=400, detail="Invalid file name")
    file_path = os.path.join(_session_dir(OUTPUT_DIR, session_id), filename)
    if not os.path.isfile(file_path):
        raise HTTPException(status_code=404, detail="File not found")
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return FileResponse(file_path, media_type=media_type, filename=filename)


@app.post("/api/transfer")
def transfer_folder(
    src_dir: str = Form(...),
    dst_dir: str = Form(...),
    threshold: int = Form(DEFAULT_THRESHOLD),
    allow_color: bool = Form(False),
):
    """
    Trim every image of a local folder into another local folder.
    """
    config = TransferConfig(src_dir, dst_dir, allow_color, threshold)
    if not config.can_transfer:
        raise HTTPException(status_code=400, detail="Source and destination folders must be set and differ")
    if not os.path.isdir(src_dir):
        raise HTTPException(status_code=400, detail=f"Folder not found: {src_dir}")

    result = run_batch(config)
    payload = _transfer_payload(result)
    payload["output_folder"] = dst_dir
    return payload
