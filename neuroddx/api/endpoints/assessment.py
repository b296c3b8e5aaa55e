from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Body, HTTPException, Query

from neuroddx.schemas.assessment import Assessment, CatalogInfo
from neuroddx.schemas.features import FeatureSet
from neuroddx.services.decision_engine import DecisionEngine
from neuroddx.services.differential.catalog import UnknownCatalogError, catalog_info

router = APIRouter()
logger = structlog.get_logger()


# The body is taken as a plain object: snapshot validation is lenient and
# happens inside the engine, so half-filled forms never bounce with a 422.
@router.post("/assess", response_model=Assessment)
def assess(
    snapshot: Optional[Dict[str, Any]] = Body(None),
    catalog: Optional[str] = Query(None, description="Differential catalog name (defaults to settings)"),
):
    logger.info("assessment_request_received", catalog=catalog, groups=sorted(snapshot or {}))

    try:
        return DecisionEngine.compute(snapshot, catalog=catalog)
    except UnknownCatalogError:
        logger.warning("unknown_catalog_requested", catalog=catalog)
        raise HTTPException(status_code=400, detail=f"Unknown catalog '{catalog}'.")
    except Exception as e:
        logger.error("decision_engine_error", error=str(e))
        raise HTTPException(status_code=500, detail="Internal Decision Engine Error")


@router.post("/features", response_model=FeatureSet)
def features(snapshot: Optional[Dict[str, Any]] = Body(None)):
    """
    Derived features only, for debugging a snapshot.
    """
    try:
        return DecisionEngine.derive_features(snapshot)
    except Exception as e:
        logger.error("decision_engine_error", error=str(e))
        raise HTTPException(status_code=500, detail="Internal Decision Engine Error")


@router.get("/catalogs", response_model=List[CatalogInfo])
def list_catalogs():
    return catalog_info()
