# dealtracker -- FastAPI server for venture deal tracking
#
# Modules:
#   app         -- FastAPI application factory with lifespan management
#   config      -- environment configuration (.env)
#   database    -- PostgreSQL / SQLite async engine and sessions
#   models      -- SQLAlchemy ORM models (startups, threshold issues, shortlists)
#   schemas     -- Pydantic request/response schemas
#   auth        -- current-user lookup from the gateway header
#   llm_client  -- OpenAI-compatible chat completions
#   import_csv  -- CSV -> database import CLI
#   services/   -- ranking, startups, shortlist, threshold issues, messages, CSV
#   routes/     -- API endpoints (startups, shortlist, threshold-issues, messages)
