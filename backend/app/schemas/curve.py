from pydantic import BaseModel, Field


class ModuleParametersSchema(BaseModel):
    cell_count: int = Field(default=36, ge=1)
    IL_stc: float = Field(default=5.5, ge=0)
    I0_stc: float = Field(default=1e-9, ge=0)
    Rs: float = Field(default=0.25, ge=0)
    Rsh: float = Field(default=200.0, gt=0)
    n: float = Field(default=1.3, gt=0)


class CurveRequest(BaseModel):
    irradiance: float = Field(default=1000.0, description="W/m^2, clamped to [0, 1000]")
    temperature: float = Field(default=25.0, description="degC, clamped to [-10, 75]")
    module: ModuleParametersSchema = Field(default_factory=ModuleParametersSchema)


class CurvePointSchema(BaseModel):
    V: float
    I: float
    P: float


class CurveResponse(BaseModel):
    irradiance: float
    temperature: float
    voc: float
    il: float
    mpp: CurvePointSchema
    points: list[CurvePointSchema]
