"""FastAPI application exposing the generation engine over HTTP."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from ..controller import PlotgenController
from ..engine import LayerNotFound, SnapshotError


def create_controller() -> PlotgenController:
    return PlotgenController()


def create_app(controller: Optional[PlotgenController] = None) -> FastAPI:
    controller = controller or create_controller()
    app = FastAPI(title="plotgen Server")
    app.state.controller = controller
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def layer_or_404(layer_id: str) -> Dict[str, Any]:
        try:
            return controller.layer_summary(layer_id)
        except LayerNotFound as exc:
            raise HTTPException(status_code=404, detail=f"Unknown layer: {layer_id}") from exc

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/algorithms")
    def algorithms() -> Dict[str, Any]:
        return {"algorithms": controller.algorithms()}

    @app.get("/api/layers")
    def list_layers() -> Dict[str, Any]:
        return controller.list_layers()

    @app.post("/api/layers")
    def add_layer(payload: Dict[str, Any] | None = None) -> Dict[str, Any]:
        payload = payload or {}
        params = payload.get("params")
        if params is not None and not isinstance(params, dict):
            raise HTTPException(status_code=400, detail="params must be an object")
        layer_id = controller.add_layer(str(payload.get("type") or "flowfield"), params)
        return layer_or_404(layer_id)

    @app.get("/api/layers/{layer_id}")
    def get_layer(layer_id: str) -> Dict[str, Any]:
        return layer_or_404(layer_id)

    @app.patch("/api/layers/{layer_id}")
    def patch_layer(layer_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            controller.update_layer(layer_id, payload)
        except LayerNotFound as exc:
            raise HTTPException(status_code=404, detail=f"Unknown layer: {layer_id}") from exc
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return layer_or_404(layer_id)

    @app.delete("/api/layers/{layer_id}")
    def delete_layer(layer_id: str) -> Dict[str, Any]:
        try:
            removed = controller.remove_layer(layer_id)
        except LayerNotFound as exc:
            raise HTTPException(status_code=404, detail=f"Unknown layer: {layer_id}") from exc
        if not removed:
            raise HTTPException(status_code=409, detail="The last layer cannot be removed")
        return {"ok": True}

    @app.post("/api/layers/{layer_id}/duplicate")
    def duplicate_layer(layer_id: str) -> Dict[str, Any]:
        try:
            new_id = controller.duplicate_layer(layer_id)
        except LayerNotFound as exc:
            raise HTTPException(status_code=404, detail=f"Unknown layer: {layer_id}") from exc
        return layer_or_404(new_id)

    @app.post("/api/layers/{layer_id}/move")
    def move_layer(layer_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            direction = int(payload.get("direction", 0))
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail="direction must be an integer") from exc
        try:
            moved = controller.move_layer(layer_id, direction)
        except LayerNotFound as exc:
            raise HTTPException(status_code=404, detail=f"Unknown layer: {layer_id}") from exc
        return {"ok": True, "moved": moved}

    @app.post("/api/optimize")
    def optimize(payload: Dict[str, Any] | None = None) -> Dict[str, Any]:
        payload = payload or {}
        layer_ids = payload.get("layer_ids")
        try:
            summaries = controller.optimize(layer_ids, payload.get("config"))
        except LayerNotFound as exc:
            raise HTTPException(status_code=404, detail=f"Unknown layer: {exc.args[0]}") from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"ok": True, "summaries": summaries}

    @app.get("/api/export.svg")
    def export_svg(precision: Optional[int] = None, dedupe: bool = True) -> Response:
        return Response(content=controller.svg(precision=precision, dedupe=dedupe), media_type="image/svg+xml")

    @app.get("/api/strokes")
    def strokes() -> Dict[str, Any]:
        return controller.strokes()

    @app.get("/api/state")
    def get_state() -> Dict[str, Any]:
        return controller.export_state()

    @app.put("/api/state")
    def put_state(payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            controller.import_state(payload)
        except SnapshotError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"ok": True}

    @app.post("/api/undo")
    def undo() -> Dict[str, Any]:
        return {"ok": controller.undo()}

    @app.post("/api/redo")
    def redo() -> Dict[str, Any]:
        return {"ok": controller.redo()}

    @app.get("/api/stats")
    def stats() -> Dict[str, Any]:
        return controller.stats()

    return app


app = create_app()


__all__ = ["app", "create_app", "create_controller"]
