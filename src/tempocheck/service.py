"""FastAPI service exposing the tempo estimator.

Clients either POST decoded mono samples as JSON to `/analyze` or the raw
bytes of an audio file (any format libsndfile reads) to `/analyze/wav`.
One analysis runs at a time; the CPU-bound pipeline is executed in the
threadpool so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from io import BytesIO
from typing import Optional

import numpy as np
from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from .decode import decode_audio
from .detector import TempoParams, TempoResult, analyze
from .errors import DecodeError, InvalidInput
from .session import format_bpm

logger = logging.getLogger(__name__)


class AnalyzeModel(BaseModel):
    sample_rate: float = Field(..., gt=0)
    samples: list[float] = Field(..., min_length=1)


class TempoModel(BaseModel):
    bpm: float
    display: str
    fallback: bool
    frames: int
    peaks: list[int]
    intervals: list[float]


def _to_model(res: TempoResult) -> TempoModel:
    return TempoModel(
        bpm=res.bpm,
        display=format_bpm(res.bpm),
        fallback=res.fallback,
        frames=int(res.onset.size),
        peaks=[int(i) for i in res.peaks],
        intervals=[float(v) for v in res.intervals],
    )


def make_app(params: Optional[TempoParams] = None) -> FastAPI:
    app = FastAPI(title="Tempo Checker Service", version="0.1.0")
    tempo_params = params or TempoParams()
    lock = asyncio.Lock()

    async def run_single(samples: np.ndarray, sample_rate: float) -> TempoModel:
        if lock.locked():
            raise HTTPException(status_code=409, detail="analysis already in progress")
        async with lock:
            try:
                res = await run_in_threadpool(analyze, samples, sample_rate, tempo_params)
            except InvalidInput as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
        logger.info("analyzed %d samples -> %.2f BPM", samples.size, res.bpm)
        return _to_model(res)

    @app.get("/health")
    async def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.get("/params")
    async def get_params() -> dict:
        return asdict(tempo_params)

    @app.post("/analyze", response_model=TempoModel)
    async def post_analyze(payload: AnalyzeModel) -> TempoModel:
        samples = np.asarray(payload.samples, dtype=np.float64)
        return await run_single(samples, payload.sample_rate)

    @app.post("/analyze/wav", response_model=TempoModel)
    async def post_analyze_wav(request: Request) -> TempoModel:
        body = await request.body()
        if not body:
            raise HTTPException(status_code=400, detail="empty request body")
        try:
            audio = decode_audio(BytesIO(body))
        except DecodeError as e:
            logger.warning("rejected upload: %s", e)
            raise HTTPException(status_code=400, detail=str(e)) from e
        return await run_single(audio.samples, audio.sample_rate)

    return app


app = make_app()


def main() -> None:  # pragma: no cover - manual run helper
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    uvicorn.run(app, host="127.0.0.1", port=8000)


if __name__ == "__main__":  # pragma: no cover
    main()
