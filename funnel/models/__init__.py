# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the JSON API. Mongo documents are converted
# into these before leaving the service, so ObjectIds and datetimes always
# serialise the same way.
# =============================================================================
