# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# domain.py holds the contracts that flow between agents (analyses, report,
# context, audit log). requests.py / responses.py hold the HTTP shapes.
# =============================================================================
