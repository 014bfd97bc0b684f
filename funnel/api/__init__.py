# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines an APIRouter for one feature:
#   - process.py: Upload a PDF statement, list all files
#   - results.py: Per-file financial model and analysis
#   - download.py: Stream a stored CSV
#   - facts.py: Quote → fact node conversion
#   - pages.py: HTML upload page, file table fragment, detail pages
#   - deps.py / errors.py: Shared dependencies and error rendering
# =============================================================================
