"""
KidChart — FastAPI Backend
==========================

Growth percentile charts for children against WHO and UK-WHO (NHS)
reference curves.

REST API endpoints:
    GET    /health                               Health check
    GET    /standards                            Available standards + band schemas
    GET    /age                                  Age in days between two dates
    GET    /reference/lines                      Centile curves for a chart
    GET    /reference/interpolate                Centile values at an exact age
    GET    /classify                             Centile band of a single value
    POST   /children                             Create child profile
    GET    /children                             List all children
    GET    /children/{id}                        Get child profile + measurements
    DELETE /children/{id}                        Delete child
    POST   /children/{id}/measurements           Record a new measurement
    DELETE /children/{id}/measurements/{mid}     Delete a measurement
    GET    /children/{id}/percentiles            Band of every measurement
    GET    /location, PUT /location              Preferred standard
    POST   /share                                Save children under a share id
    GET    /share/{share_id}                     Load shared children
"""
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

from config.settings import (
    CHILDREN_FILE, DEFAULT_STANDARD, HOST, LOCATION_FILE, LOG_LEVEL, PORT,
    SHARE_DIR, SHARE_URL_BASE,
)
from kidchart.ingestion.reference_data import build_default_store
from kidchart.models.ages import age_axis, calculate_age_in_days, format_age
from kidchart.models.data_structures import Child, classify_measurement
from kidchart.models.exceptions import (
    EmptyTableError, InvalidDateError, InvalidShareIdError, NotFoundError,
    ShareNotFoundError,
)
from kidchart.models.percentiles import classify, interpolate, percentile_lines
from kidchart.models.reference import ReferenceTableStore, Standard
from kidchart.storage.local import JsonChildStore
from kidchart.storage.share import ShareStore

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
MEASUREMENT_PATTERN = "^(height|weight|headCircumference)$"
GENDER_PATTERN = "^(male|female)$"

# ── Global State ──────────────────────────────────────────────

_reference_store: ReferenceTableStore = None
_child_store: JsonChildStore = None
_share_store: ShareStore = None
_children: Dict[str, Child] = {}


def _configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_system():
    """Load reference tables and the persisted child list."""
    global _reference_store, _child_store, _share_store

    _reference_store = build_default_store()
    _child_store = JsonChildStore(CHILDREN_FILE, LOCATION_FILE)
    _share_store = ShareStore(SHARE_DIR, SHARE_URL_BASE)

    _children.clear()
    for child in _child_store.load_children():
        _children[child.id] = child


def _persist():
    _child_store.save_children(list(_children.values()))


@asynccontextmanager
async def lifespan(app: FastAPI):
    _configure_logging()
    logger.info("Loading reference tables...")
    _load_system()
    logger.info("System ready — %d reference tables, %d children",
                len(_reference_store), len(_children))
    yield
    logger.info("Shutting down")


# ── App ──────────────────────────────────────────────────────

app = FastAPI(
    title="KidChart API",
    description=(
        "Track children's height, weight and head circumference and place "
        "each measurement on WHO or UK-WHO (NHS) percentile curves."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def _no_chart(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={
        "detail": f"No chart available for {exc.measurement_type} / "
                  f"{exc.gender} / {exc.standard}"
    })


@app.exception_handler(EmptyTableError)
async def _empty_table(request: Request, exc: EmptyTableError):
    logger.error("Reference data error: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(InvalidDateError)
async def _bad_date(request: Request, exc: InvalidDateError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(InvalidShareIdError)
async def _bad_share_id(request: Request, exc: InvalidShareIdError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ShareNotFoundError)
async def _share_missing(request: Request, exc: ShareNotFoundError):
    return JSONResponse(status_code=404,
                        content={"detail": "Share link not found or expired"})


# ── Request / Response Models ─────────────────────────────────

class CreateChildRequest(BaseModel):
    name: str = Field(..., min_length=1)
    date_of_birth: date
    gender: str = Field(..., pattern=GENDER_PATTERN)

class MeasurementRequest(BaseModel):
    date: date
    height: Optional[float] = Field(None, gt=0)
    weight: Optional[float] = Field(None, gt=0)
    head_circumference: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def _at_least_one_value(self):
        if self.height is None and self.weight is None \
                and self.head_circumference is None:
            raise ValueError("At least one measurement value is required")
        return self

class MeasurementResponse(BaseModel):
    id: str
    date: str
    age_in_days: int
    age: str
    height: Optional[float] = None
    weight: Optional[float] = None
    head_circumference: Optional[float] = None
    percentiles: Dict[str, str] = {}

class ClassifyResponse(BaseModel):
    measurement_type: str
    gender: str
    standard: str
    age_in_days: float
    value: float
    band: str
    lower: Optional[str] = None
    upper: Optional[str] = None

class ReferencePoint(BaseModel):
    age_days: float
    value: float

class ReferenceLine(BaseModel):
    band: str
    points: List[ReferencePoint]

class LocationRequest(BaseModel):
    location: Standard

class ShareRequest(BaseModel):
    share_id: Optional[str] = None
    child_ids: Optional[List[str]] = None


# ── Helper ────────────────────────────────────────────────────

def _get_child(child_id: str) -> Child:
    if child_id not in _children:
        raise HTTPException(404, f"Child '{child_id}' not found")
    return _children[child_id]


def _measurement_response(child: Child, m, standard: str) -> MeasurementResponse:
    return MeasurementResponse(
        id=m.id, date=m.date, age_in_days=m.age_in_days, age=m.age_label,
        height=m.height, weight=m.weight,
        head_circumference=m.head_circumference,
        percentiles=classify_measurement(m, child.gender, standard,
                                         _reference_store),
    )


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "reference_tables": len(_reference_store) if _reference_store else 0,
        "standards": [s.value for s in _reference_store.standards()]
        if _reference_store else [],
        "children_tracked": len(_children),
        "version": VERSION,
    }


@app.get("/standards")
async def list_standards():
    return [
        {
            "standard": s.value,
            "label": s.display_name,
            "bands": list(s.band_labels),
        }
        for s in _reference_store.standards()
    ]


@app.get("/age")
async def age_between(date_of_birth: str, measurement_date: str):
    days = calculate_age_in_days(date_of_birth, measurement_date)
    return {"age_in_days": days, "age": format_age(days)}


# ── Reference Curves ─────────────────────────────────────────

@app.get("/reference/lines")
async def get_reference_lines(
    measurement_type: str = Query("height", pattern=MEASUREMENT_PATTERN),
    gender: str = Query("male", pattern=GENDER_PATTERN),
    standard: str = Query(DEFAULT_STANDARD),
):
    table = _reference_store.lookup(measurement_type, gender, standard)
    lines = [
        ReferenceLine(band=band, points=[
            ReferencePoint(age_days=age, value=value) for age, value in points
        ])
        for band, points in percentile_lines(table).items()
    ]
    max_age = table.rows[-1].age if table.rows else 0
    unit, divisor = age_axis(max_age)
    return {
        "measurement_type": measurement_type, "gender": gender,
        "standard": table.standard.value,
        "age_unit": unit, "age_divisor": divisor,
        "lines": lines,
    }


@app.get("/reference/interpolate")
async def get_interpolated_row(
    age_days: float = Query(..., ge=0),
    measurement_type: str = Query("height", pattern=MEASUREMENT_PATTERN),
    gender: str = Query("male", pattern=GENDER_PATTERN),
    standard: str = Query(DEFAULT_STANDARD),
):
    table = _reference_store.lookup(measurement_type, gender, standard)
    row = interpolate(age_days, table)
    return {
        "age_days": row.age,
        "standard": table.standard.value,
        "values": {b.label: round(row[b.label], 3)
                   for b in table.bands if b.label in row},
    }


@app.get("/classify", response_model=ClassifyResponse)
async def classify_value(
    value: float,
    age_days: float = Query(..., ge=0),
    measurement_type: str = Query("height", pattern=MEASUREMENT_PATTERN),
    gender: str = Query("male", pattern=GENDER_PATTERN),
    standard: str = Query(DEFAULT_STANDARD),
):
    table = _reference_store.lookup(measurement_type, gender, standard)
    interval = classify(value, age_days, table)
    return ClassifyResponse(
        measurement_type=measurement_type, gender=gender,
        standard=table.standard.value, age_in_days=age_days, value=value,
        band=interval.label, lower=interval.lower, upper=interval.upper,
    )


# ── Child CRUD ────────────────────────────────────────────────

@app.post("/children", status_code=201)
async def create_child(req: CreateChildRequest):
    child = Child(name=req.name, date_of_birth=req.date_of_birth,
                  gender=req.gender)
    _children[child.id] = child
    _persist()
    return child.to_dict()


@app.get("/children")
async def list_children():
    return {
        "count": len(_children),
        "children": [
            {"id": c.id, "name": c.name, "gender": c.gender,
             "measurement_count": len(c.measurements)}
            for c in _children.values()
        ],
    }


@app.get("/children/{child_id}")
async def get_child(child_id: str):
    return _get_child(child_id).to_dict()


@app.delete("/children/{child_id}", status_code=204)
async def delete_child(child_id: str):
    _get_child(child_id)
    del _children[child_id]
    _persist()


# ── Measurements ──────────────────────────────────────────────

@app.post("/children/{child_id}/measurements", status_code=201,
          response_model=MeasurementResponse)
async def add_measurement(child_id: str, req: MeasurementRequest,
                          standard: str = Query(DEFAULT_STANDARD)):
    child = _get_child(child_id)
    m = child.add_measurement(
        req.date, height=req.height, weight=req.weight,
        head_circumference=req.head_circumference,
    )
    _persist()
    return _measurement_response(child, m, standard)


@app.delete("/children/{child_id}/measurements/{measurement_id}",
            status_code=204)
async def delete_measurement(child_id: str, measurement_id: str):
    child = _get_child(child_id)
    if not child.remove_measurement(measurement_id):
        raise HTTPException(404, f"Measurement '{measurement_id}' not found")
    _persist()


@app.get("/children/{child_id}/percentiles",
         response_model=List[MeasurementResponse])
async def get_percentiles(child_id: str,
                          standard: Optional[str] = Query(None)):
    child = _get_child(child_id)
    standard = standard or _child_store.load_location()
    return [_measurement_response(child, m, standard)
            for m in reversed(child.get_measurements())]


# ── Location ──────────────────────────────────────────────────

@app.get("/location")
async def get_location():
    return {"location": _child_store.load_location()}


@app.put("/location")
async def set_location(req: LocationRequest):
    _child_store.save_location(req.location.value)
    return {"location": req.location.value}


# ── Sharing ───────────────────────────────────────────────────

@app.post("/share")
async def share_children(req: ShareRequest):
    if req.child_ids is None:
        children = list(_children.values())
    else:
        children = [_get_child(cid) for cid in req.child_ids]
    result = _share_store.save(children, share_id=req.share_id)
    return {"success": True, "shareId": result.share_id,
            "shareUrl": result.share_url}


@app.get("/share/{share_id}")
async def load_shared(share_id: str):
    data = _share_store.load(share_id)
    return {
        "children": [c.to_dict() for c in data["children"]],
        "createdAt": data["createdAt"],
        "lastModified": data["lastModified"],
    }


# ── Run ───────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kidchart.api.server:app", host=HOST, port=PORT, reload=True)
