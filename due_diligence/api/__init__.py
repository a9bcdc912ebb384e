# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
#   - analyze.py: POST /analyze, the due-diligence pipeline entry point
#   - agents.py: registry introspection (registered agents, logs, stats)
#   - evaluate.py: substring-match regression scenarios over report text
#   - deps.py: dependency providers (registry, pipeline, scenarios)
# =============================================================================
