# =============================================================================
# Funnel — Financial Statement Upload Service
# =============================================================================
# Users upload PDF financial statements; the service forwards each PDF to an
# external analysis service, keeps the resulting CSV in GridFS and its
# metadata in MongoDB, and serves tables, analyses and downloads back.
#
# Package structure:
#   funnel/
#   ├── api/          → FastAPI route handlers (process, results, download,
#   │                    facts, HTML pages)
#   ├── agents/       → LLM agents (quote → fact nodes)
#   ├── db/           → Mongo connection, FileRecord repository, GridFS store
#   ├── models/       → Pydantic V2 request/response schemas
#   ├── services/     → Outbound analysis client, CSV summary, LLM providers
#   ├── ui/           → Table view-model and formatting for the HTML pages
#   ├── templates/    → Jinja2 templates
#   └── static/       → Browser script and stylesheet
# =============================================================================
