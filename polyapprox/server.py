"""Polygon approximation -- Web API Server.

Holds a single optimisation session and exposes it over HTTP so a
front-end can start a run, drive rounds, and poll the composite and the
difference overlay.

Launch:
    python -m polyapprox.server
    # or: uvicorn polyapprox.server:app --reload
"""

from __future__ import annotations

import base64
import io
import logging
import random
import threading
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from polyapprox.errors import PolyApproxError
from polyapprox.image_source import load_target
from polyapprox.optimizer import Optimizer
from polyapprox.shapes.renderer import to_image, to_png_bytes

logger = logging.getLogger(__name__)

OUTPUT_DIR = Path("output")
MAX_ROUNDS_PER_STEP = 5000

app = FastAPI(title="Polygon Approximation")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------

class AppState:
    """One optimisation session.

    Sync routes run in FastAPI's threadpool, so every access to the
    optimizer goes through ``lock``; rounds never overlap.
    """

    def __init__(self):
        self.optimizer: Optimizer | None = None
        self.image_path: str | None = None
        self.output_dir: Path = OUTPUT_DIR
        self.last_stop: str | None = None
        self.lock = threading.RLock()

    def start(self, image_path: str, config: dict, max_size: int | None = None,
              seed: int | None = None):
        with self.lock:
            if seed is not None:
                random.seed(seed)
            target = load_target(image_path, max_size=max_size)
            self.optimizer = Optimizer(target, config)
            self.image_path = image_path
            self.last_stop = None
        logger.info("started run on %s (%dx%d)", image_path, target.width, target.height)

    def step(self, rounds: int):
        with self.lock:
            reason = self.optimizer.run(rounds=rounds)
            self.last_stop = reason.value if reason is not None else None

    def get_state_payload(self) -> dict:
        with self.lock:
            opt = self.optimizer
            composite = to_image(opt.render(), opt.width, opt.height)
            overlay = to_image(opt.difference_map(), opt.width, opt.height)
            return {
                "image_path": self.image_path,
                "stopped": self.last_stop,
                **opt.stats(),
                "composite": _image_to_base64(composite),
                "difference": _image_to_base64(overlay),
            }

    def save_polygons(self) -> str:
        with self.lock:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / "polygons.json"
            self.optimizer.save_polygons(path)
        return str(path)

    def export_png(self) -> tuple[bytes, int]:
        with self.lock:
            opt = self.optimizer
            png = to_png_bytes(to_image(opt.render(), opt.width, opt.height))
            return png, opt.mutations


state = AppState()


def _image_to_base64(img) -> str:
    return base64.b64encode(to_png_bytes(img)).decode("ascii")


def _no_run() -> JSONResponse:
    return JSONResponse({"error": "No active run"}, status_code=400)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class StartRequest(BaseModel):
    image_path: str
    polygon_count: int = 100
    vertex_count: int = 3
    max_size: int | None = 128
    color_rate: float | None = None
    max_rounds: int | None = None
    target_match: float | None = None
    stagnation_rounds: int | None = None
    seed: int | None = None

class StepRequest(BaseModel):
    rounds: int = Field(default=100, ge=1, le=MAX_ROUNDS_PER_STEP)


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------

@app.post("/api/start")
def api_start(req: StartRequest):
    config = {
        "polygon_count": req.polygon_count,
        "vertex_count": req.vertex_count,
        "color_rate": req.color_rate,
        "max_rounds": req.max_rounds,
        "target_match": req.target_match,
        "stagnation_rounds": req.stagnation_rounds,
    }
    try:
        state.start(req.image_path, config, max_size=req.max_size, seed=req.seed)
    except PolyApproxError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return JSONResponse(state.get_state_payload())


@app.post("/api/step")
def api_step(req: StepRequest):
    if state.optimizer is None:
        return _no_run()
    with state.lock:
        state.step(req.rounds)
        payload = state.get_state_payload()
    return JSONResponse(payload)


@app.get("/api/state")
def api_state():
    if state.optimizer is None:
        return _no_run()
    return JSONResponse(state.get_state_payload())


@app.post("/api/save")
def api_save():
    if state.optimizer is None:
        return _no_run()
    path = state.save_polygons()
    return JSONResponse({"path": path})


@app.get("/api/export")
def api_export():
    if state.optimizer is None:
        return _no_run()
    png, mutations = state.export_png()
    return StreamingResponse(
        io.BytesIO(png),
        media_type="image/png",
        headers={"Content-Disposition": f"attachment; filename=composite_{mutations:08d}.png"},
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    print("Starting server at http://localhost:8000")
    uvicorn.run(app, host="0.0.0.0", port=8000)
