# Import all models so Alembic autogenerate and metadata.create_all see them
from app.models.database import Base  # noqa: F401
from app.models.calculation_session import CalculationSession  # noqa: F401
