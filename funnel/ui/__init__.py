# =============================================================================
# UI Package — View-Models for the HTML Pages
# =============================================================================
#   - table.py: FileRecord → table row formatting and action state
# =============================================================================
