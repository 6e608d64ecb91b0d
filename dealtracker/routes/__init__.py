# API endpoints, one APIRouter per resource.
