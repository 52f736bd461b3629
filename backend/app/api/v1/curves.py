from fastapi import APIRouter, HTTPException

from app.schemas.curve import CurvePointSchema, CurveRequest, CurveResponse
from engine.solar.iv_curve import generate_iv_curve
from engine.solar.single_diode import ModuleParameters
from engine.weather.environment import EnvironmentalInput

router = APIRouter()


@router.post(
    "/curves",
    response_model=CurveResponse,
    summary="Compute I-V / P-V curve",
    description="Sweep the module from 0 V to the estimated Voc at the given irradiance "
    "and cell temperature (both clamped to their physical range).",
)
async def compute_curve(body: CurveRequest):
    env = EnvironmentalInput(body.irradiance, body.temperature)
    try:
        params = ModuleParameters(**body.module.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    curve = generate_iv_curve(env.irradiance, env.temperature, params)
    return CurveResponse(
        irradiance=env.irradiance,
        temperature=env.temperature,
        voc=curve.voc,
        il=curve.il,
        mpp=CurvePointSchema(**curve.mpp._asdict()),
        points=[CurvePointSchema(**p._asdict()) for p in curve.points],
    )
